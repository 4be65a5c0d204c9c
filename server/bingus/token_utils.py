"""Stateless session tokens: ``header.payload.signature``, HMAC-SHA256 signed.

A token proves that the server issued it for ``sub`` and, when ``exp`` is
set, that it is still current. Nothing is stored server-side; verification
recomputes the signature over the received header and payload segments.
"""

from __future__ import annotations

import json
import logging
import time
from functools import lru_cache
from typing import Any, Callable, Mapping, Optional

from pydantic import BaseModel, ConfigDict, StrictInt, ValidationError

from bingus import signing
from bingus.codec import TokenDecodeError, b64url_decode, b64url_encode
from bingus.config import Settings, get_settings
from bingus.models import SessionClaims, SessionError, SessionHeader, SessionPayload, VerificationResult

logger = logging.getLogger(__name__)

Clock = Callable[[], int]

HEADER = SessionHeader()


def wall_clock_ms() -> int:
    return int(time.time() * 1000)


def canonical_json(record: Mapping[str, Any]) -> bytes:
    return json.dumps(dict(record), separators=(",", ":"), sort_keys=True, ensure_ascii=False).encode("utf-8")


class TokenOptions(BaseModel):
    """Per-call overrides.

    secret: key used instead of the process secret.
    now_ms: epoch milliseconds used instead of the clock, for ``iat`` and the expiry check.
    iat: issued-at in epoch seconds written into issued tokens, instead of ``now_ms // 1000``.
    exp: expiry in epoch seconds written into issued tokens. Verification ignores it.

    ``iat`` and ``exp`` must be real integers; anything else raises ``ValidationError``.
    """

    model_config = ConfigDict(frozen=True)

    secret: Optional[str] = None
    now_ms: Optional[int] = None
    iat: Optional[StrictInt] = None
    exp: Optional[StrictInt] = None


class SessionTokens:
    """Issues and verifies session tokens with one immutable secret and clock."""

    def __init__(self, *, secret: Optional[str], clock: Clock = wall_clock_ms, ttl_seconds: Optional[int] = None) -> None:
        self._secret = secret
        self._clock = clock
        self.ttl_seconds = ttl_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> "SessionTokens":
        return cls(secret=settings.session_secret, ttl_seconds=settings.session_ttl_seconds)

    def _resolve(self, options: Optional[TokenOptions]) -> tuple[str, int]:
        opts = options or TokenOptions()
        secret = opts.secret if opts.secret is not None else self._secret
        if not secret:
            raise signing.MissingSecretError("Session signing secret is not configured")
        now_ms = opts.now_ms if opts.now_ms is not None else self._clock()
        return secret, int(now_ms)

    def sign(self, subject: Any, options: Optional[TokenOptions] = None) -> Optional[str]:
        secret, now_ms = self._resolve(options)
        if not isinstance(subject, str) or not subject.strip():
            return None

        opts = options or TokenOptions()
        iat = opts.iat if opts.iat is not None else now_ms // 1000
        claims: dict[str, Any] = {"sub": subject, "iat": iat}
        if opts.exp is not None:
            claims["exp"] = opts.exp

        header_segment = b64url_encode(canonical_json(HEADER.model_dump()))
        payload_segment = b64url_encode(canonical_json(claims))
        signing_input = f"{header_segment}.{payload_segment}"
        signature = signing.sign(signing_input.encode("ascii"), secret)
        return f"{signing_input}.{b64url_encode(signature)}"

    def verify(self, token: Any, options: Optional[TokenOptions] = None) -> VerificationResult:
        secret, now_ms = self._resolve(options)
        if not isinstance(token, str) or not token.strip():
            return _reject(SessionError.missing)

        segments = token.split(".")
        if len(segments) != 3 or not all(segments):
            return _reject(SessionError.invalid)
        header_segment, payload_segment, signature_segment = segments

        try:
            header_raw = b64url_decode(header_segment)
            payload_raw = b64url_decode(payload_segment)
            signature = b64url_decode(signature_segment)
        except TokenDecodeError:
            return _reject(SessionError.invalid)

        # Sign the segments exactly as received, never a re-serialization.
        signing_input = f"{header_segment}.{payload_segment}".encode("ascii")
        if not signing.verify(signing_input, secret, signature):
            return _reject(SessionError.invalid)

        try:
            SessionHeader.model_validate_json(header_raw)
            claims = SessionClaims.model_validate_json(payload_raw)
        except ValidationError:
            return _reject(SessionError.invalid)

        if claims.exp is not None and now_ms // 1000 >= claims.exp:
            return _reject(SessionError.expired)
        return VerificationResult.success(claims)

    def build_payload(self, subject: Any, options: Optional[TokenOptions] = None) -> SessionPayload:
        opts = options or TokenOptions()
        if opts.exp is None and self.ttl_seconds is not None:
            _, now_ms = self._resolve(opts)
            opts = opts.model_copy(update={"now_ms": now_ms, "exp": now_ms // 1000 + self.ttl_seconds})

        token = self.sign(subject, opts)
        if token is None:
            return SessionPayload()
        return SessionPayload(session_token=token, expires_at=opts.exp)


def _reject(error: SessionError) -> VerificationResult:
    logger.debug("Rejected session token: %s", error.value)
    return VerificationResult.failure(error)


@lru_cache
def get_session_tokens() -> SessionTokens:
    return SessionTokens.from_settings(get_settings())


def sign_session_token(subject: Any, options: Optional[TokenOptions] = None) -> Optional[str]:
    return get_session_tokens().sign(subject, options)


def verify_session_token(token: Any, options: Optional[TokenOptions] = None) -> VerificationResult:
    return get_session_tokens().verify(token, options)


def build_session_payload(subject: Any, options: Optional[TokenOptions] = None) -> SessionPayload:
    return get_session_tokens().build_payload(subject, options)
