from __future__ import annotations

import hashlib
import hmac
from typing import Optional


class MissingSecretError(RuntimeError):
    pass


def _key(secret: Optional[str]) -> bytes:
    if not secret:
        raise MissingSecretError("Session signing secret is not configured")
    return secret.encode("utf-8")


def sign(message: bytes, secret: Optional[str]) -> bytes:
    return hmac.new(_key(secret), message, hashlib.sha256).digest()


def verify(message: bytes, secret: Optional[str], candidate: bytes) -> bool:
    expected = sign(message, secret)
    return hmac.compare_digest(expected, candidate)
