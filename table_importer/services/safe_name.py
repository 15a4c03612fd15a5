from __future__ import annotations

import re
import uuid

"""Safe object-name generation for uploaded files.

The original file name is only used to guess an extension; the stored name
is always ``sparkBot_<random hex>[.<ext>]`` so that neither path traversal
nor the user's own file name can leak into the object key.
"""

__all__ = [
    "SAFE_NAME_PREFIX",
    "strip_unsafe",
    "guess_extension",
    "build_safe_file_name",
]

SAFE_NAME_PREFIX = "sparkBot_"

_WHITESPACE_RE = re.compile(r"\s+")
_RESERVED_RE = re.compile(r'[\\/:*?"<>|]+')
_MULTI_DOT_RE = re.compile(r"\.\.+")
_LEADING_DOT_RE = re.compile(r"^\.+")

CONTENT_TYPE_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/svg+xml": "svg",
}


def strip_unsafe(name: str) -> str:
    """Remove whitespace, replace reserved path characters, collapse dot runs."""
    cleaned = _WHITESPACE_RE.sub("", name)
    cleaned = _RESERVED_RE.sub("_", cleaned)
    cleaned = _MULTI_DOT_RE.sub(".", cleaned)
    return _LEADING_DOT_RE.sub("", cleaned)


def guess_extension(original: str | None, content_type: str | None) -> str:
    ext = ""
    if original is not None:
        clean = strip_unsafe(original)
        dot = clean.rfind(".")
        if -1 < dot < len(clean) - 1:
            ext = clean[dot + 1:]
    if not ext.strip() and content_type is not None:
        ext = CONTENT_TYPE_EXTENSIONS.get(content_type.lower(), "")
    return ext.lower()


def build_safe_file_name(original: str | None, content_type: str | None) -> str:
    ext = guess_extension(original, content_type)
    token = uuid.uuid4().hex
    return f"{SAFE_NAME_PREFIX}{token}" + (f".{ext}" if ext else "")
