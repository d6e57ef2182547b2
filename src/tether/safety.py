"""File name safety checks.

Two separate concerns live here:
- ``to_safe_file_name`` rewrites a name so it can be stored on any filesystem
- ``is_unsafe_extension`` flags extensions that should not be served from a
  web root (executables, scripts, server pages). It is advisory only; callers
  decide whether to reject the upload.
"""

from __future__ import annotations

import re

UNSAFE_EXTENSIONS: frozenset[str] = frozenset(
    {
        "aspx", "ascx", "ashx", "axd", "master", "bat", "bas", "asp", "app", "bin",
        "cla", "class", "cmd", "com", "sitemap", "skin", "asa", "cshtml", "cpl", "crt",
        "csc", "dll", "drv", "exe", "hta", "htm", "html", "ini", "ins", "js", "jse",
        "lnk", "mdb", "mde", "mht", "mhtm", "mhtml", "msc", "msi", "msp", "ldb",
        "resources", "resx", "mst", "obj", "config", "ocx", "pgm", "pif", "scr", "sct",
        "shb", "shs", "smm", "sys", "url", "vb", "vbe", "vbs", "vxd", "wsc", "wsf",
        "wsh", "php", "asmx", "cs", "jsl", "asax", "mdf", "cdx", "idc", "shtm",
        "shtml", "stm", "browser",
    }
)  # fmt: skip

_INVALID_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]')


def file_extension(file_name: str | None) -> str:
    """Return the extension of ``file_name`` including the leading dot."""
    if not file_name:
        return ""
    base = file_name.replace("\\", "/").rsplit("/", 1)[-1]
    _, dot, ext = base.rpartition(".")
    if not dot or not ext:
        return ""
    return f".{ext}"


def is_unsafe_extension(file_name: str | None) -> bool:
    """Determine whether the extension of ``file_name`` is potentially unsafe."""
    if not file_name:
        return False
    extension = "".join(ch for ch in file_extension(file_name) if ch.isalpha()).lower()
    return extension in UNSAFE_EXTENSIONS


def to_safe_file_name(name: str | None) -> str | None:
    """Strip directory parts and characters that are invalid in file names."""
    if name is None:
        return None
    base = name.replace("\\", "/").rsplit("/", 1)[-1]
    return _INVALID_CHARS.sub("-", base).strip().strip(".").strip()
