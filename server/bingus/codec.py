"""URL-safe, padding-free base64 used for every token segment."""

from __future__ import annotations

import base64
import binascii
import re

_ALPHABET = re.compile(r"^[A-Za-z0-9_-]*$")


class TokenDecodeError(ValueError):
    pass


def b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def b64url_decode(data: str) -> bytes:
    if not isinstance(data, str) or not _ALPHABET.match(data):
        raise TokenDecodeError("Segment is not base64url text")
    if len(data) % 4 == 1:
        raise TokenDecodeError("Segment has an impossible length")
    padding = "=" * ((4 - len(data) % 4) % 4)
    try:
        return base64.b64decode(data + padding, altchars=b"-_", validate=True)
    except binascii.Error as exc:
        raise TokenDecodeError("Segment is not base64url text") from exc


def base64_url_encode(text: str) -> str:
    return b64url_encode(text.encode("utf-8"))


def base64_url_decode(text: str) -> str:
    raw = b64url_decode(text)
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise TokenDecodeError("Segment is not UTF-8 text") from exc
