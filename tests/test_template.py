from __future__ import annotations

import pytest

from gostarter.errors import WriteError
from gostarter.sources import Entry
from gostarter.template import ReplacementSet, is_binary, map_path, transform, transform_bytes

from tests.helpers import PNG_BYTES


@pytest.fixture()
def replacements() -> ReplacementSet:
    return ReplacementSet({"response-std": "myapp", "response_std": "myapp", "go-starter-template": "myapp"})


def test_apply_replaces_every_occurrence(replacements: ReplacementSet):
    text = "module go-starter-template\n// response-std, response-std\npackage response_std\n"
    assert replacements.apply(text) == "module myapp\n// myapp, myapp\npackage myapp\n"


def test_apply_is_case_sensitive(replacements: ReplacementSet):
    assert replacements.apply("Response-Std response-std") == "Response-Std myapp"


def test_apply_does_not_rescan_replaced_text():
    replacements = ReplacementSet({"alpha": "beta", "beta": "gamma"})
    assert replacements.apply("alpha beta") == "beta gamma"


def test_result_does_not_depend_on_insertion_order():
    forward = ReplacementSet([("one", "1"), ("two", "2")])
    backward = ReplacementSet([("two", "2"), ("one", "1")])
    text = "one two twoone"
    assert forward.apply(text) == backward.apply(text) == "1 2 21"


def test_reapplying_is_a_no_op(replacements: ReplacementSet):
    once = replacements.apply_bytes(b"package response_std // response-std")
    assert replacements.apply_bytes(once) == once


def test_keys_must_not_contain_each_other():
    with pytest.raises(ValueError):
        ReplacementSet({"std": "x", "response-std": "y"})


def test_keys_must_not_be_empty():
    with pytest.raises(ValueError):
        ReplacementSet({"": "x"})


def test_empty_set_leaves_text_untouched():
    assert ReplacementSet().apply("response-std") == "response-std"
    assert ReplacementSet().apply_bytes(b"response-std") == b"response-std"


def test_mapping_interface(replacements: ReplacementSet):
    assert len(replacements) == 3
    assert replacements["response-std"] == "myapp"
    assert "response_std" in replacements


def test_is_binary_detects_nul_bytes():
    assert is_binary(PNG_BYTES)
    assert not is_binary(b"package main\n")
    assert not is_binary(b"")


def test_binary_content_passes_through(replacements: ReplacementSet):
    assert transform_bytes(PNG_BYTES, replacements) == PNG_BYTES


def test_text_that_is_not_utf8_is_still_substituted(replacements: ReplacementSet):
    assert transform_bytes(b"\xff\xfe response-std", replacements) == b"\xff\xfe myapp"


def test_non_ascii_tokens_are_substituted_as_utf8():
    replacements = ReplacementSet({"projét": "myapp"})
    assert transform_bytes("le projét".encode("utf-8"), replacements) == b"le myapp"


def test_transform_reads_entry(replacements: ReplacementSet):
    entry = Entry("README.md", is_dir=False, loader=lambda: b"# response-std\n")
    assert transform(entry, replacements) == b"# myapp\n"


def test_map_path_renames_segments(replacements: ReplacementSet):
    assert map_path("config/response-std.go", replacements) == "config/myapp.go"
    assert map_path("response-std/response-std.go", replacements) == "myapp/myapp.go"


def test_map_path_without_rename_keeps_path(replacements: ReplacementSet):
    assert map_path("config/response-std.go", replacements, rename=False) == "config/response-std.go"


@pytest.mark.parametrize("value", ["..", "a/b", ""])
def test_map_path_rejects_invalid_segments(value):
    with pytest.raises(WriteError):
        map_path("token/file.txt", ReplacementSet({"token": value}))
