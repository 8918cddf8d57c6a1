from __future__ import annotations

import io
import zipfile
from pathlib import Path
from typing import Mapping

PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01"
    b"\x08\x06\x00\x00\x00\x1f\x15\xc4\x89response-std\x00\x00IEND\xaeB`\x82"
)


def make_zip(files: Mapping[str, bytes], modes: Mapping[str, int] | None = None) -> bytes:
    """Build an in-memory zip archive from ``files``."""

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as bundle:
        for name, data in files.items():
            info = zipfile.ZipInfo(name)
            mode = (modes or {}).get(name)
            if mode is not None:
                info.external_attr = mode << 16
            bundle.writestr(info, data)
    return buffer.getvalue()


class DummyResponse:
    def __init__(self, status_code: int, body: bytes = b"", *, reason: str = "", chunk: int = 7) -> None:
        self.status_code = status_code
        self.reason = reason
        self._body = body
        self._chunk = chunk
        self.closed = False

    def iter_content(self, chunk_size: int = 1):
        for start in range(0, len(self._body), self._chunk):
            yield self._body[start : start + self._chunk]

    def close(self) -> None:
        self.closed = True


class DummySession:
    def __init__(self, responses: list[DummyResponse] | None = None, *, error: Exception | None = None) -> None:
        self._responses = list(responses or [])
        self._error = error
        self.calls: list[tuple[str, float | None]] = []

    def get(self, url: str, stream: bool = False, timeout: float | None = None) -> DummyResponse:
        self.calls.append((url, timeout))
        if self._error is not None:
            raise self._error
        if not self._responses:
            raise AssertionError("no more responses queued")
        return self._responses.pop(0)


def build_template(root: Path) -> Path:
    """Create a small Go template tree with text, binary and executable files."""

    (root / "config").mkdir(parents=True)
    (root / "assets").mkdir()
    (root / "scripts").mkdir()
    (root / "empty").mkdir()
    (root / "go.mod").write_text("module go-starter-template\n\ngo 1.22\n", encoding="utf-8")
    (root / "README.md").write_text("# response-std\n\nresponse-std and response-std\n", encoding="utf-8")
    (root / "config" / "response-std.go").write_text("package response_std\n", encoding="utf-8")
    (root / "assets" / "logo.png").write_bytes(PNG_BYTES)
    script = root / "scripts" / "run.sh"
    script.write_text("#!/bin/sh\nexec ./response-std\n", encoding="utf-8")
    script.chmod(0o755)
    return root


def template_archive(prefix: str = "go-starter-main/") -> bytes:
    """Zip the files of :func:`build_template` below ``prefix``."""

    return make_zip(
        {
            f"{prefix}template/go.mod": b"module go-starter-template\n",
            f"{prefix}template/config/response-std.go": b"package response_std\n",
            f"{prefix}template/assets/logo.png": PNG_BYTES,
            f"{prefix}template/scripts/run.sh": b"#!/bin/sh\nexec ./response-std\n",
            f"{prefix}README.md": b"# repository readme\n",
        },
        modes={f"{prefix}template/scripts/run.sh": 0o755},
    )
