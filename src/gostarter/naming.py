"""Project name validation and identifier helpers."""

from __future__ import annotations

import re
import unicodedata

from .errors import InvalidProjectName

__all__ = ["normalize_identifier", "validate_project_name"]


_SEPARATORS = re.compile(r"[\s\-.]+")
_INVALID_IDENTIFIER = re.compile(r"[^0-9a-zA-Z_]")
_MULTIPLE_UNDERSCORES = re.compile(r"_+")
_FORBIDDEN_CHARACTERS = frozenset('/\\\x00')


def validate_project_name(name: str) -> str:
    """Return ``name`` if it can be used as a single directory name.

    The name is taken verbatim: surrounding whitespace is rejected rather than
    stripped so the directory on disk always matches what the user typed.
    """

    if not name or not name.strip():
        raise InvalidProjectName("project name must not be empty")
    if name != name.strip():
        raise InvalidProjectName(f"project name {name!r} has leading or trailing whitespace")
    if name in {".", ".."}:
        raise InvalidProjectName(f"project name {name!r} is reserved")
    invalid = sorted(_FORBIDDEN_CHARACTERS.intersection(name))
    if invalid:
        shown = ", ".join(repr(char) for char in invalid)
        raise InvalidProjectName(f"project name {name!r} contains invalid characters: {shown}")
    return name


def normalize_identifier(name: str) -> str:
    """Return an identifier usable as a Go package or Python module name.

    ``"my-app"`` becomes ``"my_app"``; names that normalise to nothing fall
    back to ``"project"`` and a leading digit is prefixed with ``_``.
    """

    text = unicodedata.normalize("NFKD", name)
    text = text.encode("ascii", "ignore").decode("ascii").lower()
    candidate = _SEPARATORS.sub("_", text.strip())
    candidate = _INVALID_IDENTIFIER.sub("_", candidate)
    candidate = _MULTIPLE_UNDERSCORES.sub("_", candidate)
    candidate = candidate.strip("_")

    if not candidate:
        candidate = "project"

    if candidate[0].isdigit():
        candidate = f"_{candidate}"

    return candidate
