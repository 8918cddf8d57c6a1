"""Template sources and the tree walker that enumerates them."""

from __future__ import annotations

import logging
import os
import stat
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Iterable, Iterator, Mapping, Optional

from .errors import ReadError, TemplateNotFound, WalkError

__all__ = [
    "EmbeddedTemplate",
    "Entry",
    "LocalDirectory",
    "TemplateSource",
]


LOGGER = logging.getLogger(__name__)


def _invalid_reason(relative_path: str) -> Optional[str]:
    if not relative_path:
        return "path is empty"
    if relative_path.startswith("/") or "\\" in relative_path:
        return "path must be a relative POSIX path"
    for segment in relative_path.split("/"):
        if segment in {"", ".", ".."}:
            return f"path contains the segment {segment!r}"
    return None


def _sort_key(relative_path: str) -> list[str]:
    return relative_path.split("/")


@dataclass(frozen=True, slots=True)
class Entry:
    """A single file or directory below a template root."""

    relative_path: str
    is_dir: bool
    mode: int | None = None
    loader: Callable[[], bytes] | None = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        reason = _invalid_reason(self.relative_path)
        if reason is not None:
            raise WalkError(f"invalid template entry {self.relative_path!r}: {reason}")

    def read(self) -> bytes:
        """Load the raw content of a file entry."""

        if self.is_dir or self.loader is None:
            raise ReadError(f"template entry {self.relative_path!r} has no content")
        try:
            return self.loader()
        except OSError as exc:
            raise ReadError(f"cannot read template file {self.relative_path!r}: {exc}") from exc


class TemplateSource(ABC):
    """Enumerable template tree.

    Sources are context managers. Entering prepares the tree for walking and
    exiting releases anything the source created, whether or not the walk
    succeeded.
    """

    kind = "abstract"

    def __enter__(self) -> "TemplateSource":
        self.prepare()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cleanup()

    def prepare(self) -> None:
        """Make the tree available. Most sources have nothing to do."""

    def cleanup(self) -> None:
        """Release scratch resources created by :meth:`prepare`."""

    @abstractmethod
    def walk(self) -> Iterator[Entry]:
        """Yield every entry below the root, parents before children.

        Names are sorted within each directory level and the root itself is
        not yielded.
        """

    def describe(self) -> str:
        return self.kind


class EmbeddedTemplate(TemplateSource):
    """Immutable in-memory template snapshot."""

    kind = "embedded"

    def __init__(self, files: Mapping[str, bytes], directories: Iterable[str] = ()) -> None:
        file_map = dict(files)
        directory_set = set(directories)
        for path in (*file_map, *directory_set):
            reason = _invalid_reason(path)
            if reason is not None:
                raise ValueError(f"invalid embedded path {path!r}: {reason}")
        for path in file_map:
            parts = path.split("/")
            directory_set.update("/".join(parts[:index]) for index in range(1, len(parts)))
        clashes = directory_set.intersection(file_map)
        if clashes:
            raise ValueError(f"embedded paths used as both file and directory: {sorted(clashes)}")

        self._files = MappingProxyType(file_map)
        self._directories = frozenset(directory_set)

    @classmethod
    def from_package(cls, package: str = "gostarter", directory: str = "skeleton") -> "EmbeddedTemplate":
        """Snapshot the template shipped as package data in ``package``."""

        root = resources.files(package).joinpath(directory)
        if not root.is_dir():
            raise TemplateNotFound(f"embedded template '{directory}' is missing from {package}")

        files: dict[str, bytes] = {}
        directories: list[str] = []

        def collect(node, prefix: str) -> None:
            for child in node.iterdir():
                path = f"{prefix}{child.name}"
                if child.is_dir():
                    if child.name == "__pycache__":
                        continue
                    directories.append(path)
                    collect(child, f"{path}/")
                else:
                    files[path] = child.read_bytes()

        collect(root, "")
        if not files and not directories:
            raise TemplateNotFound(f"embedded template '{directory}' is empty")
        LOGGER.debug("loaded embedded template with %d files", len(files))
        return cls(files, directories)

    @property
    def files(self) -> Mapping[str, bytes]:
        return self._files

    def walk(self) -> Iterator[Entry]:
        for path in sorted(self._directories.union(self._files), key=_sort_key):
            if path in self._directories:
                yield Entry(path, is_dir=True)
                continue
            data = self._files[path]
            yield Entry(path, is_dir=False, loader=lambda data=data: data)


class LocalDirectory(TemplateSource):
    """Template stored as a directory on the local filesystem.

    Symbolic links are skipped, never followed, so every entry stays inside
    ``root``.
    """

    kind = "local"

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def describe(self) -> str:
        return f"{self.kind} directory {self.root}"

    def walk(self) -> Iterator[Entry]:
        if not self.root.is_dir():
            raise WalkError(f"template directory {self.root} is not readable")
        yield from self._walk(self.root, "")

    def _walk(self, directory: Path, prefix: str) -> Iterator[Entry]:
        try:
            with os.scandir(directory) as iterator:
                children = sorted(iterator, key=lambda child: child.name)
        except OSError as exc:
            raise WalkError(f"cannot list template directory {directory}: {exc}") from exc

        for child in children:
            relative = f"{prefix}{child.name}"
            try:
                if child.is_symlink():
                    LOGGER.warning("skipping symbolic link %s in template", child.path)
                    continue
                is_dir = child.is_dir(follow_symlinks=False)
                mode = stat.S_IMODE(child.stat(follow_symlinks=False).st_mode)
            except OSError as exc:
                raise WalkError(f"cannot inspect template entry {child.path}: {exc}") from exc

            if is_dir:
                yield Entry(relative, is_dir=True, mode=mode)
                yield from self._walk(Path(child.path), f"{relative}/")
            else:
                yield Entry(relative, is_dir=False, mode=mode, loader=Path(child.path).read_bytes)
