import pytest

from sambadmin import validation
from sambadmin.errors import ValidationError


@pytest.mark.parametrize("name,expected", [
    ("alice", True),
    ("a_b-c9", True),
    ("x" * 32, True),
    ("x" * 33, False),
    ("", False),
    ("bad name", False),
    ("../etc", False),
    ("bob;rm", False),
    ("alice\n", False),
    ("alice\r\n", False),
])
def test_account_names(name, expected):
    assert validation.is_valid_account_name(name) is expected


@pytest.mark.parametrize("name,expected", [
    ("docs", True),
    ("Photos2024", True),
    ("照片", True),
    ("my-docs", False),
    ("a b", False),
    ("", False),
    ("docs\n", False),
])
def test_record_names(name, expected):
    assert validation.is_valid_record_name(name) is expected


def test_parse_share_id():
    assert validation.parse_share_id("alice-share-docs") == ("alice", "docs")
    assert validation.parse_share_id("alice-share-20240101120000") == ("alice", "20240101120000")
    assert validation.parse_share_id("global") is None
    assert validation.parse_share_id("alice-share-") is None
    assert validation.parse_share_id("alice-share-docs\n") is None
    assert validation.is_valid_share_id("alice-share-docs\n") is False


def test_require_helpers_raise_validation_error():
    with pytest.raises(ValidationError):
        validation.require_account_name("no spaces")
    with pytest.raises(ValueError):
        validation.require_record_name("no/slash")
    assert validation.require_account_name("bob") == "bob"


@pytest.mark.parametrize("sub_path,expected", [
    (None, ""),
    ("", ""),
    (".", ""),
    ("./", ""),
    (".", ""),
    ("./", ""),
    ("docs", "docs"),
    ("/docs/", "docs"),
    ("a/./b", "a/b"),
    ("a/b/../c", "a/c"),
    ("a\\b", "a/b"),
])
def test_clean_subpath(sub_path, expected):
    assert validation.clean_subpath(sub_path) == expected


@pytest.mark.parametrize("sub_path", ["..", "../x", "a/../../b", "/a/../../b", "..\\etc"])
def test_clean_subpath_rejects_traversal(sub_path):
    with pytest.raises(ValidationError, match="path traversal"):
        validation.clean_subpath(sub_path)


@pytest.mark.parametrize("sub_path", ["a\n  path = /etc", "x\n[global]", "docs\r", "a\tb", "a\x00b"])
def test_clean_subpath_rejects_control_characters(sub_path):
    with pytest.raises(ValidationError, match="control characters"):
        validation.clean_subpath(sub_path)
