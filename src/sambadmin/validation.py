"""Input validation shared by every component that builds paths or commands.

Usernames and share names are checked against fixed patterns before they are
used in a file path or on a command line, so nothing needs escaping later.
"""

import posixpath
import re
from typing import Optional, Tuple

from sambadmin.errors import ValidationError

ACCOUNT_NAME_RE = re.compile(r"^[A-Za-z0-9_-]{1,32}$")

# ASCII letters and digits plus the CJK unified ideograph blocks.
RECORD_NAME_RE = re.compile(
    r"^[A-Za-z0-9"
    r"\u3400-\u4dbf"
    r"\u4e00-\u9fff"
    r"\uf900-\ufaff"
    r"\U00020000-\U0002a6df"
    r"\U0002a700-\U0002ebef"
    r"]+$"
)

SHARE_ID_RE = re.compile(r"^([A-Za-z0-9_-]+)-share-(.+)$")


def is_valid_account_name(name: str) -> bool:
    return bool(name) and ACCOUNT_NAME_RE.fullmatch(name) is not None


def is_valid_record_name(name: str) -> bool:
    """Custom share names: letters, digits and CJK characters, no symbols."""
    return bool(name) and RECORD_NAME_RE.fullmatch(name) is not None


def is_valid_share_id(share_id: str) -> bool:
    return SHARE_ID_RE.fullmatch(share_id or "") is not None


def parse_share_id(share_id: str) -> Optional[Tuple[str, str]]:
    """Split ``owner-share-suffix`` into ``(owner, suffix)``."""
    match = SHARE_ID_RE.fullmatch(share_id or "")
    if not match:
        return None
    return match.group(1), match.group(2)


def require_account_name(name: str, what: str = "username") -> str:
    if not is_valid_account_name(name):
        raise ValidationError(
            f"Invalid {what} '{name}': must be 1-32 letters, numbers, underscores or dashes."
        )
    return name


def require_record_name(name: str) -> str:
    if not is_valid_record_name(name):
        raise ValidationError(
            "Invalid share name: must contain only alphanumeric or Chinese characters, no symbols."
        )
    return name


def clean_subpath(sub_path: Optional[str]) -> str:
    """Normalize a subdirectory relative to a home directory.

    Returns ``""`` when the result designates the home directory itself.
    Raises :class:`ValidationError` when the path would leave it or holds
    control characters.
    """
    if not sub_path:
        return ""
    if any(ord(char) < 0x20 or ord(char) == 0x7F for char in sub_path):
        raise ValidationError("Invalid subdirectory path: control characters not allowed.")

    candidate = sub_path.replace("\\", "/").lstrip("/")
    if not candidate:
        return ""

    cleaned = posixpath.normpath(candidate)
    if ".." in cleaned.split("/"):
        raise ValidationError("Invalid subdirectory path: path traversal not allowed.")

    if cleaned == ".":
        return ""
    return cleaned
