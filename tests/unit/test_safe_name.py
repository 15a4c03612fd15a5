from __future__ import annotations

import re

import pytest

from table_importer.services.safe_name import build_safe_file_name, guess_extension, strip_unsafe

SAFE_NAME_RE = re.compile(r"^sparkBot_[0-9a-f]{32}(\.[^./\\]+)?$")


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("my photo.png", "myphoto.png"),
        ("../../etc/passwd", "_._etc_passwd"),
        ("a<b>c|d?.jpg", "a_b_c_d_.jpg"),
        ("...hidden..png", "hidden.png"),
        ("C:\\Users\\x.gif", "C_Users_x.gif"),
    ],
)
def test_strip_unsafe(raw, expected):
    assert strip_unsafe(raw) == expected


def test_extension_from_name_is_lowercased():
    assert guess_extension("Avatar.PNG", "image/png") == "png"


def test_extension_falls_back_to_content_type():
    assert guess_extension("avatar", "image/jpeg") == "jpg"
    assert guess_extension("avatar.", "image/svg+xml") == "svg"
    assert guess_extension(None, "image/webp") == "webp"


def test_unknown_extension_is_empty():
    assert guess_extension(None, "application/octet-stream") == ""
    assert guess_extension(None, None) == ""


def test_safe_name_never_contains_original_stem():
    name = build_safe_file_name("../../secret-report.png", "image/png")
    assert SAFE_NAME_RE.match(name)
    assert name.endswith(".png")
    assert "secret" not in name


def test_safe_name_without_extension():
    name = build_safe_file_name(None, None)
    assert SAFE_NAME_RE.match(name)
    assert "." not in name


def test_safe_names_are_unique():
    names = {build_safe_file_name("a.png", "image/png") for _ in range(50)}
    assert len(names) == 50
