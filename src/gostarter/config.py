"""Per-invocation project context shared by the scaffolder and CLI."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from .naming import normalize_identifier, validate_project_name


@dataclass(frozen=True, slots=True)
class ProjectContext:
    """Identity and location of the project being created.

    Attributes
    ----------
    name:
        The project name exactly as supplied by the user. It doubles as the
        name of the destination directory.
    destination_root:
        Absolute path of the directory that will receive the project.
    identifier:
        :attr:`name` normalised into a language identifier, used for
        placeholders that must stay valid package names.
    """

    name: str
    destination_root: Path
    identifier: str

    @classmethod
    def from_name(cls, name: str, *, cwd: str | Path | None = None) -> "ProjectContext":
        """Validate ``name`` and place the project inside ``cwd``.

        Parameters
        ----------
        name:
            The project name given on the command line.
        cwd:
            Directory in which the project is created. Defaults to the
            current working directory.
        """

        validated = validate_project_name(name)
        base = Path.cwd() if cwd is None else Path(cwd)
        return cls(
            name=validated,
            destination_root=(base / validated).absolute(),
            identifier=normalize_identifier(validated),
        )

    def values(self) -> Mapping[str, str]:
        """Return the values placeholder styles and post-steps can refer to."""

        return {
            "name": self.name,
            "identifier": self.identifier,
        }
