"""Exception types raised while scaffolding a project."""

from __future__ import annotations


class ScaffoldError(RuntimeError):
    """Base class for every failure surfaced to the user."""

    exit_code = 1

    def __init__(self, message: str) -> None:
        super().__init__(message)


class UsageError(ScaffoldError):
    """Raised when the command line or its arguments are invalid."""

    exit_code = 2


class InvalidProjectName(UsageError):
    """Raised when the requested project name cannot name a directory."""


class ConfigError(UsageError):
    """Raised when a settings file cannot be read or validated."""


class TemplateNotFound(ScaffoldError):
    """Raised when no template source can be located."""


class TemplateDirNotFound(TemplateNotFound):
    """Raised when an extracted archive does not contain a template directory."""


class DownloadFailed(ScaffoldError):
    """Raised when the template archive cannot be downloaded."""


class ExtractFailed(ScaffoldError):
    """Raised when the template archive cannot be unpacked."""


class DestinationExists(ScaffoldError):
    """Raised when the project directory is already present."""


class MaterializeError(ScaffoldError):
    """Base class for filesystem failures while walking or writing."""


class WalkError(MaterializeError):
    """Raised when the template tree cannot be enumerated."""


class ReadError(MaterializeError):
    """Raised when a template file cannot be read."""


class WriteError(MaterializeError):
    """Raised when a destination entry cannot be written."""


class PostStepFailed(ScaffoldError):
    """Raised when a command run after materialization fails."""


__all__ = [
    "ConfigError",
    "DestinationExists",
    "DownloadFailed",
    "ExtractFailed",
    "InvalidProjectName",
    "MaterializeError",
    "PostStepFailed",
    "ReadError",
    "ScaffoldError",
    "TemplateDirNotFound",
    "TemplateNotFound",
    "UsageError",
    "WalkError",
    "WriteError",
]
