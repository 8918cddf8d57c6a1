"""Settings controlling where templates come from and how they are rewritten."""

from __future__ import annotations

import logging
import tomllib
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Literal, Mapping
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .config import ProjectContext
from .errors import ConfigError
from .template import ReplacementSet

__all__ = [
    "DEFAULT_CONFIG_FILENAME",
    "DEFAULT_PLACEHOLDERS",
    "SourceKind",
    "StarterSettings",
    "load_settings",
]


LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = "gostarter.toml"

PlaceholderStyle = Literal["name", "identifier"]

DEFAULT_PLACEHOLDERS: Dict[str, PlaceholderStyle] = {
    "go-starter-template": "name",
    "response-std": "name",
    "response_std": "identifier",
}


class SourceKind(str, Enum):
    """Where the template tree is read from."""

    EMBEDDED = "embedded"
    LOCAL = "local"
    REMOTE = "remote"


class StarterSettings(BaseModel):
    """Validated configuration for a single ``new`` invocation."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    source: SourceKind = Field(default=SourceKind.EMBEDDED, description="Template source to materialize from.")
    template_dir: Path | None = Field(None, description="Explicit local template directory, relative to the working directory.")
    archive_url: str | None = Field(None, description="URL of the template archive used in remote mode.")
    repository: str | None = Field(None, description="Repository folder name expected inside the archive.")
    archive_name: str = Field("template.zip", description="File name of the downloaded archive in the working directory.")
    timeout: float = Field(30.0, gt=0, description="HTTP client timeout in seconds.")
    placeholders: Dict[str, PlaceholderStyle] = Field(
        default_factory=lambda: dict(DEFAULT_PLACEHOLDERS),
        description="Placeholder tokens mapped to the project value that replaces them.",
    )
    rename_paths: bool = Field(True, description="Also substitute placeholders in file and directory names.")
    post_commands: List[str] = Field(default_factory=list, description="Commands run inside the new project afterwards.")

    @field_validator("placeholders")
    @classmethod
    def check_placeholders(cls, value: Dict[str, str]) -> Dict[str, str]:
        ReplacementSet({token: token for token in value})
        return value

    @field_validator("archive_url")
    @classmethod
    def check_archive_url(cls, value: str | None) -> str | None:
        if value is not None and urlparse(value).scheme not in {"http", "https"}:
            raise ValueError("archive_url must be an http(s) URL")
        return value

    @field_validator("archive_name")
    @classmethod
    def check_archive_name(cls, value: str) -> str:
        if not value or "/" in value or "\\" in value or value in {".", ".."}:
            raise ValueError("archive_name must be a plain file name")
        return value

    @model_validator(mode="after")
    def check_remote(self) -> "StarterSettings":
        if self.source is SourceKind.REMOTE and not self.archive_url:
            raise ValueError("remote templates require archive_url")
        return self

    def replacements(self, context: ProjectContext) -> ReplacementSet:
        """Build the replacement set for ``context``."""

        values = context.values()
        return ReplacementSet({token: values[style] for token, style in self.placeholders.items()})


def load_settings(
    path: str | Path | None = None,
    *,
    cwd: str | Path | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> StarterSettings:
    """Load settings from TOML and apply command line ``overrides``.

    Without an explicit ``path`` a ``gostarter.toml`` in ``cwd`` is used when
    present. Overrides whose value is ``None`` are ignored so unset flags keep
    the file or default value.
    """

    base = Path.cwd() if cwd is None else Path(cwd)
    data: dict[str, Any] = {}

    if path is None:
        candidate = base / DEFAULT_CONFIG_FILENAME
        config_path = candidate if candidate.is_file() else None
    else:
        config_path = Path(path)
        if not config_path.is_file():
            raise ConfigError(f"settings file {config_path} does not exist")

    if config_path is not None:
        try:
            with config_path.open("rb") as handle:
                data = tomllib.load(handle)
        except (OSError, tomllib.TOMLDecodeError) as exc:
            raise ConfigError(f"cannot read settings file {config_path}: {exc}") from exc
        LOGGER.debug("loaded settings from %s", config_path)

    data.update({key: value for key, value in (overrides or {}).items() if value is not None})

    try:
        return StarterSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"invalid settings: {exc}") from exc
