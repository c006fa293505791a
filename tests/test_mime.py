"""Tests for content type resolution."""

import pytest

from pastebin.mime import DEFAULT_BINARY_TYPE, DEFAULT_TEXT_TYPE, is_text, is_well_formed, resolve_content_type


def test_hint_wins_when_well_formed() -> None:
    assert resolve_content_type("image/png", "notes.txt", b"hello") == "image/png"


def test_hint_with_parameters_kept() -> None:
    assert resolve_content_type("text/html; charset=latin-1", None, b"x") == "text/html; charset=latin-1"


@pytest.mark.parametrize("hint", ["garbage", "text/", "/plain", "application/x-www-form-urlencoded"])
def test_unusable_hint_falls_back(hint: str) -> None:
    assert resolve_content_type(hint, None, b"hello") == DEFAULT_TEXT_TYPE


def test_file_name_extension() -> None:
    assert resolve_content_type(None, "data.json", b"{}") == "application/json"
    assert resolve_content_type(None, "picture.png", b"\x89PNG") == "image/png"


def test_payload_sniffing() -> None:
    assert resolve_content_type(None, None, b"hello") == DEFAULT_TEXT_TYPE
    assert resolve_content_type(None, "no_extension", b"") == DEFAULT_TEXT_TYPE
    assert resolve_content_type(None, None, b"\xff\xfe\x00\x81") == DEFAULT_BINARY_TYPE


def test_is_text() -> None:
    assert is_text("text/plain; charset=utf-8")
    assert is_text("application/x-sh")
    assert not is_text("image/png")
    assert not is_text(DEFAULT_BINARY_TYPE)


def test_is_well_formed() -> None:
    assert is_well_formed("application/vnd.api+json")
    assert not is_well_formed("text plain")
