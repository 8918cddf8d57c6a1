from __future__ import annotations

from pathlib import Path

import pytest

from gostarter.errors import ReadError, TemplateNotFound, WalkError
from gostarter.sources import EmbeddedTemplate, Entry, LocalDirectory

from tests.helpers import PNG_BYTES


@pytest.mark.parametrize("path", ["", "../escape", "a/../b", "/absolute", "a//b", "./a", "a\\b"])
def test_entry_rejects_paths_outside_the_root(path):
    with pytest.raises(WalkError):
        Entry(path, is_dir=True)


def test_entry_read_returns_loader_bytes():
    assert Entry("a.txt", is_dir=False, loader=lambda: b"data").read() == b"data"


def test_entry_read_on_directory_fails():
    with pytest.raises(ReadError):
        Entry("dir", is_dir=True).read()


def test_entry_read_wraps_os_errors(tmp_path: Path):
    entry = Entry("missing.txt", is_dir=False, loader=(tmp_path / "missing.txt").read_bytes)
    with pytest.raises(ReadError):
        entry.read()


def test_embedded_walk_is_sorted_and_parents_first():
    template = EmbeddedTemplate(
        {
            "b.txt": b"b",
            "a/z.txt": b"z",
            "a/b/c.txt": b"c",
            "a-b.txt": b"ab",
        }
    )
    entries = list(template.walk())
    assert [entry.relative_path for entry in entries] == [
        "a",
        "a/b",
        "a/b/c.txt",
        "a/z.txt",
        "a-b.txt",
        "b.txt",
    ]
    assert [entry.is_dir for entry in entries] == [True, True, False, False, False, False]
    assert all(entry.mode is None for entry in entries)
    assert entries[2].read() == b"c"


def test_embedded_includes_explicit_empty_directories():
    template = EmbeddedTemplate({"main.go": b"package main\n"}, directories=["logs"])
    assert [(entry.relative_path, entry.is_dir) for entry in template.walk()] == [
        ("logs", True),
        ("main.go", False),
    ]


def test_embedded_rejects_conflicting_paths():
    with pytest.raises(ValueError):
        EmbeddedTemplate({"a": b"file", "a/b.txt": b"nested"})


def test_embedded_rejects_invalid_paths():
    with pytest.raises(ValueError):
        EmbeddedTemplate({"../evil.txt": b""})


def test_embedded_snapshot_is_read_only():
    template = EmbeddedTemplate({"a.txt": b"a"})
    with pytest.raises(TypeError):
        template.files["b.txt"] = b"b"  # type: ignore[index]


def test_from_package_loads_shipped_template():
    template = EmbeddedTemplate.from_package()
    assert "go.mod" in template.files
    assert "config/response-std.go" in template.files
    assert template.files["config/response-std.go"].startswith(b"package response_std")


def test_from_package_missing_directory():
    with pytest.raises(TemplateNotFound):
        EmbeddedTemplate.from_package(directory="does-not-exist")


def test_local_walk_matches_tree(template_dir: Path):
    entries = list(LocalDirectory(template_dir).walk())
    assert [entry.relative_path for entry in entries] == [
        "README.md",
        "assets",
        "assets/logo.png",
        "config",
        "config/response-std.go",
        "empty",
        "go.mod",
        "scripts",
        "scripts/run.sh",
    ]
    by_path = {entry.relative_path: entry for entry in entries}
    assert by_path["assets/logo.png"].read() == PNG_BYTES
    assert by_path["scripts/run.sh"].mode == 0o755
    assert by_path["config"].is_dir


def test_local_and_embedded_walk_in_the_same_order(template_dir: Path):
    local = [entry for entry in LocalDirectory(template_dir).walk()]
    files = {entry.relative_path: entry.read() for entry in local if not entry.is_dir}
    directories = [entry.relative_path for entry in local if entry.is_dir]
    embedded = EmbeddedTemplate(files, directories)
    assert [entry.relative_path for entry in embedded.walk()] == [entry.relative_path for entry in local]


def test_local_walk_missing_root(tmp_path: Path):
    with pytest.raises(WalkError):
        list(LocalDirectory(tmp_path / "missing").walk())


def test_sources_are_context_managers(template_dir: Path):
    source = LocalDirectory(template_dir)
    with source as entered:
        assert entered is source
        assert source.describe() == f"local directory {template_dir}"


def test_local_walk_does_not_follow_links_out_of_the_root(tmp_path: Path):
    secret = tmp_path / "secret"
    secret.mkdir()
    (secret / "id_rsa").write_text("private", encoding="utf-8")
    root = tmp_path / "template"
    root.mkdir()
    (root / "go.mod").write_text("module response-std\n", encoding="utf-8")
    (root / "link").symlink_to(secret, target_is_directory=True)
    (root / "key").symlink_to(secret / "id_rsa")

    assert [entry.relative_path for entry in LocalDirectory(root).walk()] == ["go.mod"]


def test_local_walk_terminates_on_link_loops(tmp_path: Path):
    root = tmp_path / "template"
    (root / "pkg").mkdir(parents=True)
    (root / "pkg" / "main.go").write_text("package main\n", encoding="utf-8")
    (root / "pkg" / "loop").symlink_to("..", target_is_directory=True)

    assert [entry.relative_path for entry in LocalDirectory(root).walk()] == ["pkg", "pkg/main.go"]
