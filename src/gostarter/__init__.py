"""Scaffold new projects from a template tree.

The package resolves a template (shipped with the package, a local directory
or a downloaded archive), replaces placeholder tokens with the project name in
file contents and paths, and writes the result into a fresh project directory.
"""

from __future__ import annotations

from .config import ProjectContext
from .errors import ScaffoldError
from .resolver import resolve_source
from .scaffold import Materializer, ProjectScaffolder, Stage
from .settings import SourceKind, StarterSettings, load_settings
from .sources import EmbeddedTemplate, Entry, LocalDirectory, TemplateSource
from .template import ReplacementSet, is_binary, map_path, transform

__all__ = [
    "EmbeddedTemplate",
    "Entry",
    "LocalDirectory",
    "Materializer",
    "ProjectContext",
    "ProjectScaffolder",
    "ReplacementSet",
    "ScaffoldError",
    "SourceKind",
    "Stage",
    "StarterSettings",
    "TemplateSource",
    "is_binary",
    "load_settings",
    "map_path",
    "resolve_source",
    "transform",
]

__version__ = "0.1.0"
