from __future__ import annotations

from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator, model_validator
from pydantic.alias_generators import to_camel


class SessionError(str, Enum):
    missing = "missing"
    invalid = "invalid"
    expired = "expired"


class SessionHeader(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    alg: Literal["HS256"] = "HS256"
    typ: Literal["JWT"] = "JWT"


class SessionClaims(BaseModel):
    """Decoded token payload. Unknown flat keys are kept as extras."""

    model_config = ConfigDict(frozen=True, extra="allow")

    sub: StrictStr = Field(min_length=1)
    iat: StrictInt
    exp: Optional[StrictInt] = None

    @field_validator("sub")
    @classmethod
    def reject_blank_subject(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Subject must not be blank")
        return value

    @model_validator(mode="after")
    def reject_nested_extras(self) -> "SessionClaims":
        for key, value in (self.model_extra or {}).items():
            if not isinstance(value, (str, int, float, bool, type(None))):
                raise ValueError(f"Claim {key!r} is not a primitive value")
        return self


class VerificationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    ok: bool
    payload: Optional[SessionClaims] = None
    error: Optional[SessionError] = None

    @classmethod
    def success(cls, payload: SessionClaims) -> "VerificationResult":
        return cls(ok=True, payload=payload)

    @classmethod
    def failure(cls, error: SessionError) -> "VerificationResult":
        return cls(ok=False, error=error)


class SessionPayload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    session_token: Optional[str] = None
    expires_at: Optional[int] = None


class PublicUser(BaseModel):
    username: str
    key: str


class RegisterRequest(BaseModel):
    username: Any = None


class SessionResponse(SessionPayload):
    ok: bool = True
    user: Optional[PublicUser] = None
