from __future__ import annotations

import re
from typing import Any, Optional

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 18
_USERNAME_CHARS = re.compile(r"^[A-Za-z0-9 _-]+$")


def normalize_username(value: Any) -> Optional[str]:
    username = str(value if value is not None else "").strip()
    if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
        return None
    if not _USERNAME_CHARS.match(username):
        return None
    return username


def key_for_username(username: str) -> str:
    return str(username).strip().lower()
