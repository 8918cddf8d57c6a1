"""Remote template acquisition: download, unpack and locate the template root."""

from __future__ import annotations

import logging
import os
import shutil
import tarfile
import tempfile
import zipfile
import zlib
from pathlib import Path
from typing import Iterator
from urllib.parse import urlparse

import requests

from .errors import DownloadFailed, ExtractFailed, TemplateDirNotFound, WalkError
from .sources import Entry, LocalDirectory, TemplateSource

__all__ = [
    "ArchiveExtractor",
    "ArchiveFetcher",
    "DEFAULT_ARCHIVE_NAME",
    "DEFAULT_TIMEOUT",
    "RemoteArchive",
    "discover_template_root",
    "repository_from_url",
]


LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
DEFAULT_ARCHIVE_NAME = "template.zip"
TEMPLATE_DIRNAME = "template"

_GITHUB_HOSTS = frozenset({"github.com", "www.github.com", "codeload.github.com"})


def repository_from_url(url: str) -> str | None:
    """Return the repository name of a GitHub archive URL, if recognisable."""

    parsed = urlparse(url)
    parts = [part for part in parsed.path.split("/") if part]
    if parsed.hostname in _GITHUB_HOSTS and len(parts) >= 2:
        return parts[1]
    return None


class ArchiveFetcher:
    """Download an archive with a single bounded HTTP request."""

    def __init__(
        self,
        session: requests.Session | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        chunk_size: int = 64 * 1024,
    ) -> None:
        self._session = session or requests.Session()
        self.timeout = timeout
        self.chunk_size = chunk_size

    def fetch(self, url: str, destination: str | Path) -> Path:
        """Stream ``url`` into ``destination``.

        ``destination`` is only created once the server has answered with a
        success status.
        """

        destination = Path(destination)
        LOGGER.info("downloading template archive from %s", url)
        try:
            response = self._session.get(url, stream=True, timeout=self.timeout)
        except requests.RequestException as exc:
            raise DownloadFailed(f"cannot download {url}: {exc}") from exc

        try:
            if not 200 <= response.status_code < 300:
                status = f"{response.status_code} {response.reason or ''}".strip()
                raise DownloadFailed(f"cannot download {url}: HTTP {status}")
            with destination.open("wb") as handle:
                for chunk in response.iter_content(chunk_size=self.chunk_size):
                    if chunk:
                        handle.write(chunk)
        except requests.RequestException as exc:
            raise DownloadFailed(f"download of {url} was interrupted: {exc}") from exc
        except OSError as exc:
            raise DownloadFailed(f"cannot save archive to {destination}: {exc}") from exc
        finally:
            response.close()

        LOGGER.debug("saved template archive to %s", destination)
        return destination


class ArchiveExtractor:
    """Unpack zip or tar archives into a fresh scratch directory."""

    def __init__(self, *, prefix: str = "gostarter-", scratch_root: str | Path | None = None) -> None:
        self.prefix = prefix
        self.scratch_root = scratch_root

    def extract(self, archive: str | Path) -> Path:
        """Unpack ``archive`` and return the scratch directory holding it.

        The caller owns the returned directory and must remove it. On failure
        the directory is removed before :class:`ExtractFailed` propagates.
        """

        archive = Path(archive)
        scratch = Path(tempfile.mkdtemp(prefix=self.prefix, dir=self.scratch_root))
        try:
            self._unpack(archive, scratch)
        except ExtractFailed:
            shutil.rmtree(scratch, ignore_errors=True)
            raise
        except (zipfile.BadZipFile, tarfile.TarError, zlib.error, EOFError, OSError) as exc:
            shutil.rmtree(scratch, ignore_errors=True)
            raise ExtractFailed(f"cannot extract {archive}: {exc}") from exc

        LOGGER.debug("extracted %s into %s", archive, scratch)
        return scratch

    def _unpack(self, archive: Path, scratch: Path) -> None:
        if zipfile.is_zipfile(archive):
            with zipfile.ZipFile(archive) as bundle:
                for info in bundle.infolist():
                    target = bundle.extract(info, scratch)
                    mode = (info.external_attr >> 16) & 0o777
                    if mode and not info.is_dir():
                        os.chmod(target, mode)
            return
        if tarfile.is_tarfile(archive):
            with tarfile.open(archive) as bundle:
                bundle.extractall(scratch, filter="data")
            return
        raise ExtractFailed(f"{archive} is not a zip or tar archive")


def discover_template_root(extracted: str | Path, repository: str | None = None) -> Path:
    """Locate the template directory inside an unpacked archive.

    Archives of a repository usually nest everything below a
    ``<repository>-<branch>`` folder, so that layout is probed first.
    """

    extracted = Path(extracted)
    candidates: list[Path] = []
    if repository:
        candidates.append(extracted / f"{repository}-main" / TEMPLATE_DIRNAME)
        candidates.append(extracted / f"{repository}-master" / TEMPLATE_DIRNAME)
    candidates.append(extracted / TEMPLATE_DIRNAME)
    try:
        top_level = sorted(path for path in extracted.iterdir() if path.is_dir())
    except OSError as exc:
        raise TemplateDirNotFound(f"cannot list extracted archive {extracted}: {exc}") from exc
    candidates.extend(path / TEMPLATE_DIRNAME for path in top_level)

    seen: list[Path] = []
    for candidate in candidates:
        if candidate in seen:
            continue
        seen.append(candidate)
        if candidate.is_dir():
            LOGGER.debug("using template root %s", candidate)
            return candidate

    probed = ", ".join(str(path.relative_to(extracted)) for path in seen)
    raise TemplateDirNotFound(f"archive does not contain a template directory (looked for: {probed})")


class RemoteArchive(TemplateSource):
    """Template downloaded as an archive and walked from a scratch directory."""

    kind = "remote"

    def __init__(
        self,
        url: str,
        *,
        workdir: str | Path,
        fetcher: ArchiveFetcher | None = None,
        extractor: ArchiveExtractor | None = None,
        repository: str | None = None,
        archive_name: str = DEFAULT_ARCHIVE_NAME,
    ) -> None:
        self.url = url
        self.archive_path = Path(workdir) / archive_name
        self.fetcher = fetcher or ArchiveFetcher()
        self.extractor = extractor or ArchiveExtractor()
        self.repository = repository or repository_from_url(url)
        self.scratch_dir: Path | None = None
        self._root: LocalDirectory | None = None

    def describe(self) -> str:
        return f"{self.kind} archive {self.url}"

    @property
    def template_root(self) -> Path | None:
        return None if self._root is None else self._root.root

    def download(self) -> Path:
        return self.fetcher.fetch(self.url, self.archive_path)

    def unpack(self) -> Path:
        self.scratch_dir = self.extractor.extract(self.archive_path)
        self._root = LocalDirectory(discover_template_root(self.scratch_dir, self.repository))
        return self._root.root

    def prepare(self) -> None:
        self.download()
        self.unpack()

    def cleanup(self) -> None:
        try:
            self.archive_path.unlink(missing_ok=True)
        except OSError as exc:
            LOGGER.warning("could not remove downloaded archive %s: %s", self.archive_path, exc)
        if self.scratch_dir is not None:
            try:
                shutil.rmtree(self.scratch_dir)
            except FileNotFoundError:
                pass
            except OSError as exc:
                LOGGER.warning("could not remove scratch directory %s: %s", self.scratch_dir, exc)
            self.scratch_dir = None
        self._root = None

    def walk(self) -> Iterator[Entry]:
        if self._root is None:
            raise WalkError("remote template has not been downloaded and unpacked")
        yield from self._root.walk()
