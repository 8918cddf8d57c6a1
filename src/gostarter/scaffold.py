"""Materialize a template source into a new project directory."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Sequence

from .config import ProjectContext
from .errors import DestinationExists, InvalidProjectName, PostStepFailed, UsageError, WriteError
from .remote import RemoteArchive
from .sources import Entry, TemplateSource
from .template import ReplacementSet, is_binary, map_path, transform_bytes

__all__ = [
    "CommandStep",
    "DEFAULT_DIR_MODE",
    "DEFAULT_FILE_MODE",
    "Materializer",
    "ProjectScaffolder",
    "ScaffoldReport",
    "Stage",
    "claim_destination",
    "ensure_available",
]


LOGGER = logging.getLogger(__name__)

DEFAULT_DIR_MODE = 0o755
DEFAULT_FILE_MODE = 0o644

PostStep = Callable[[ProjectContext], None]
SourceFactory = Callable[[], TemplateSource]


class Stage(str, Enum):
    """Progress of a single materialization."""

    IDLE = "idle"
    RESOLVING = "resolving"
    FETCHING = "fetching"
    EXTRACTING = "extracting"
    WALKING = "walking"
    WRITING = "writing"
    CLEANING = "cleaning"
    DONE = "done"
    FAILED = "failed"


def ensure_available(destination: Path) -> None:
    """Fail when anything already exists at ``destination``."""

    if destination.exists() or destination.is_symlink():
        raise DestinationExists(f"{destination} already exists")


def claim_destination(destination: Path) -> Path:
    """Check ``destination`` once more and create it.

    Creation tolerates a directory that appeared after the check; collision
    detection is best effort, not an exclusive lock.
    """

    ensure_available(destination)
    try:
        destination.mkdir(mode=DEFAULT_DIR_MODE, parents=True, exist_ok=True)
    except OSError as exc:
        raise WriteError(f"cannot create project directory {destination}: {exc}") from exc
    return destination


class Materializer:
    """Write template entries below a destination root."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def write(self, entry: Entry, relative_path: str | None = None, content: bytes | None = None) -> Path:
        """Create the directory or file for ``entry``.

        ``relative_path`` overrides the entry's own path, ``content`` its raw
        bytes. Files get the template's mode, or :data:`DEFAULT_FILE_MODE` when
        the source does not record one. Existing files are overwritten.
        """

        target = self.root.joinpath(*(relative_path or entry.relative_path).split("/"))
        try:
            if entry.is_dir:
                target.mkdir(mode=DEFAULT_DIR_MODE, parents=True, exist_ok=True)
                return target
            data = entry.read() if content is None else content
            target.parent.mkdir(mode=DEFAULT_DIR_MODE, parents=True, exist_ok=True)
            target.write_bytes(data)
            os.chmod(target, DEFAULT_FILE_MODE if entry.mode is None else entry.mode)
        except OSError as exc:
            raise WriteError(f"cannot write {target}: {exc}") from exc
        return target


@dataclass(slots=True)
class ScaffoldReport:
    """Summary of what a materialization wrote."""

    destination: Path
    directories: list[Path] = field(default_factory=list)
    files: list[Path] = field(default_factory=list)
    binary_files: list[Path] = field(default_factory=list)


class CommandStep:
    """Run an external command inside the freshly created project.

    ``{name}`` and ``{identifier}`` in the arguments are replaced with the
    project's values, e.g. ``go mod tidy`` or ``git init``.
    """

    def __init__(self, command: str | Sequence[str]) -> None:
        self.argv = shlex.split(command) if isinstance(command, str) else list(command)
        if not self.argv:
            raise UsageError("post-step command must not be empty")

    def __repr__(self) -> str:
        return f"{type(self).__name__}({shlex.join(self.argv)!r})"

    def arguments(self, context: ProjectContext) -> list[str]:
        values = context.values()
        arguments = []
        for argument in self.argv:
            for key, value in values.items():
                argument = argument.replace(f"{{{key}}}", value)
            arguments.append(argument)
        return arguments

    def __call__(self, context: ProjectContext) -> None:
        argv = self.arguments(context)
        LOGGER.info("running %s in %s", shlex.join(argv), context.destination_root)
        try:
            subprocess.run(argv, cwd=context.destination_root, check=True)
        except FileNotFoundError as exc:
            raise PostStepFailed(f"command not found: {argv[0]}") from exc
        except subprocess.CalledProcessError as exc:
            raise PostStepFailed(f"'{shlex.join(argv)}' exited with status {exc.returncode}") from exc


class ProjectScaffolder:
    """Drive one materialization from a template source to a project tree.

    The scaffolder walks ``IDLE -> RESOLVING -> [FETCHING -> EXTRACTING] ->
    WALKING -> WRITING -> CLEANING -> DONE`` and moves to ``FAILED`` from any
    stage. Cleaning always runs, so downloaded archives and scratch
    directories never outlive the call. Files already written to the
    destination are left in place on failure.

    ``source`` is either a ready :class:`TemplateSource` or a factory that
    resolves one; a factory is called during ``RESOLVING`` so lookup
    failures go through the state machine as well.
    """

    def __init__(
        self,
        source: TemplateSource | SourceFactory,
        replacements: ReplacementSet,
        *,
        rename_paths: bool = True,
        post_steps: Sequence[PostStep] = (),
    ) -> None:
        self.source = source
        self.replacements = replacements
        self.rename_paths = rename_paths
        self.post_steps = tuple(post_steps)
        self.stage = Stage.IDLE
        self.failure: BaseException | None = None

    def _enter(self, stage: Stage) -> None:
        LOGGER.debug("%s -> %s", self.stage.value, stage.value)
        self.stage = stage

    def create(self, context: ProjectContext) -> ScaffoldReport:
        """Materialize the template for ``context`` and run post-steps."""

        if self.stage is not Stage.IDLE:
            raise RuntimeError("a scaffolder can only create one project")

        try:
            ensure_available(context.destination_root)
            report = self._materialize(context.destination_root)
        except Exception as exc:
            self.failure = exc
            self._enter(Stage.FAILED)
            raise
        self._enter(Stage.DONE)

        for step in self.post_steps:
            step(context)
        return report

    def _resolve(self, destination: Path) -> TemplateSource:
        source = self.source if isinstance(self.source, TemplateSource) else self.source()
        self.source = source
        LOGGER.debug("resolved %s", source.describe())
        if isinstance(source, RemoteArchive) and source.archive_path.absolute() == destination.absolute():
            raise InvalidProjectName(
                f"project name '{destination.name}' clashes with the downloaded archive {source.archive_path}"
            )
        return source

    def _materialize(self, destination: Path) -> ScaffoldReport:
        self._enter(Stage.RESOLVING)
        source = self._resolve(destination)
        try:
            if isinstance(source, RemoteArchive):
                self._enter(Stage.FETCHING)
                source.download()
                self._enter(Stage.EXTRACTING)
                source.unpack()
            else:
                source.prepare()

            self._enter(Stage.WALKING)
            claim_destination(destination)
            materializer = Materializer(destination)
            report = ScaffoldReport(destination)
            for entry in source.walk():
                if self.stage is not Stage.WRITING:
                    self._enter(Stage.WRITING)
                target = map_path(entry.relative_path, self.replacements, rename=self.rename_paths)
                if entry.is_dir:
                    report.directories.append(materializer.write(entry, target))
                    continue
                raw = entry.read()
                path = materializer.write(entry, target, transform_bytes(raw, self.replacements))
                report.files.append(path)
                if is_binary(raw):
                    report.binary_files.append(path)
                LOGGER.debug("wrote %s", path)
        finally:
            self._enter(Stage.CLEANING)
            source.cleanup()

        LOGGER.info(
            "materialized %d files and %d directories into %s",
            len(report.files),
            len(report.directories),
            destination,
        )
        return report
