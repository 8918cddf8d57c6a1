"""Placeholder substitution for template contents and paths."""

from __future__ import annotations

import re
from typing import Iterable, Iterator, Mapping

from .errors import WriteError
from .sources import Entry

__all__ = [
    "ReplacementSet",
    "is_binary",
    "map_path",
    "transform",
    "transform_bytes",
]


def _check_keys(keys: Iterable[str]) -> None:
    keys = list(keys)
    for key in keys:
        if not key:
            raise ValueError("placeholder tokens must not be empty")
    for key in keys:
        for other in keys:
            if key != other and key in other:
                raise ValueError(f"placeholder {key!r} is a substring of placeholder {other!r}")


class ReplacementSet(Mapping[str, str]):
    """Literal token to replacement mapping applied in a single pass.

    No token may contain another, so at any position at most one token can
    match and the result does not depend on insertion order. Replaced text is
    never scanned again.
    """

    def __init__(self, replacements: Mapping[str, str] | Iterable[tuple[str, str]] = ()) -> None:
        pairs = dict(replacements)
        _check_keys(pairs)
        self._pairs = pairs
        self._encoded = {key.encode("utf-8"): value.encode("utf-8") for key, value in pairs.items()}
        self._pattern: re.Pattern[str] | None = None
        self._bytes_pattern: re.Pattern[bytes] | None = None
        if pairs:
            self._pattern = re.compile("|".join(re.escape(key) for key in pairs))
            self._bytes_pattern = re.compile(b"|".join(re.escape(key) for key in self._encoded))

    def __getitem__(self, key: str) -> str:
        return self._pairs[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._pairs)

    def __len__(self) -> int:
        return len(self._pairs)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._pairs!r})"

    def apply(self, text: str) -> str:
        """Return ``text`` with every token replaced by its value."""

        if self._pattern is None:
            return text
        return self._pattern.sub(lambda match: self._pairs[match.group(0)], text)

    def apply_bytes(self, data: bytes) -> bytes:
        """Byte-level variant of :meth:`apply` that never decodes ``data``."""

        if self._bytes_pattern is None:
            return data
        return self._bytes_pattern.sub(lambda match: self._encoded[match.group(0)], data)


def is_binary(data: bytes) -> bool:
    """Classify ``data`` as binary when it contains a NUL byte."""

    return b"\x00" in data


def transform_bytes(data: bytes, replacements: ReplacementSet) -> bytes:
    if is_binary(data):
        return data
    return replacements.apply_bytes(data)


def transform(entry: Entry, replacements: ReplacementSet) -> bytes:
    """Read ``entry`` and return the bytes to write at its destination."""

    return transform_bytes(entry.read(), replacements)


def map_path(relative_path: str, replacements: ReplacementSet, *, rename: bool = True) -> str:
    """Map a template-relative path to its destination-relative path.

    When ``rename`` is true each path segment has its placeholders replaced.
    The mapped path must still be a plain relative path.
    """

    if not rename:
        return relative_path

    segments = [replacements.apply(segment) for segment in relative_path.split("/")]
    for segment in segments:
        if segment in {"", ".", ".."} or "/" in segment or "\\" in segment:
            raise WriteError(
                f"renaming {relative_path!r} produced an invalid path segment {segment!r}"
            )
    return "/".join(segments)
