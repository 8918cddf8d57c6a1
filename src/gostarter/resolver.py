"""Pick the template source for an invocation."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import requests

from .errors import TemplateNotFound, UsageError
from .remote import ArchiveExtractor, ArchiveFetcher, RemoteArchive
from .settings import SourceKind, StarterSettings
from .sources import EmbeddedTemplate, LocalDirectory, TemplateSource

__all__ = ["LOCAL_TEMPLATE_DIRNAME", "executable_dir", "local_candidates", "resolve_source"]


LOGGER = logging.getLogger(__name__)

LOCAL_TEMPLATE_DIRNAME = "template"


def executable_dir() -> Path:
    """Directory of the running program, used as the second template location."""

    return Path(sys.argv[0] or ".").resolve().parent


def local_candidates(cwd: Path, exe_dir: Path, template_dir: Path | None = None) -> list[Path]:
    if template_dir is not None:
        return [template_dir if template_dir.is_absolute() else cwd / template_dir]
    return [cwd / LOCAL_TEMPLATE_DIRNAME, exe_dir / LOCAL_TEMPLATE_DIRNAME]


def resolve_source(
    settings: StarterSettings,
    *,
    cwd: str | Path | None = None,
    exe_dir: str | Path | None = None,
    session: requests.Session | None = None,
    embedded: EmbeddedTemplate | None = None,
) -> TemplateSource:
    """Return the :class:`TemplateSource` selected by ``settings``.

    Only local mode touches the filesystem, and only to check which candidate
    directory exists. Remote sources download nothing until prepared.
    """

    base = Path.cwd() if cwd is None else Path(cwd)

    if settings.source is SourceKind.EMBEDDED:
        source = embedded if embedded is not None else EmbeddedTemplate.from_package()
        LOGGER.debug("using embedded template")
        return source

    if settings.source is SourceKind.LOCAL:
        candidates = local_candidates(
            base,
            executable_dir() if exe_dir is None else Path(exe_dir),
            settings.template_dir,
        )
        for candidate in candidates:
            if candidate.is_dir():
                LOGGER.debug("using local template %s", candidate)
                return LocalDirectory(candidate)
        probed = ", ".join(str(path) for path in candidates)
        raise TemplateNotFound(f"template directory not found (looked in: {probed})")

    if not settings.archive_url:
        raise UsageError("remote templates require an archive URL")
    return RemoteArchive(
        settings.archive_url,
        workdir=base,
        fetcher=ArchiveFetcher(session, timeout=settings.timeout),
        extractor=ArchiveExtractor(),
        repository=settings.repository,
        archive_name=settings.archive_name,
    )
