from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware

from bingus.config import DEV_SESSION_SECRET, get_settings
from bingus.models import PublicUser, RegisterRequest, SessionError, SessionResponse
from bingus.token_utils import build_session_payload, verify_session_token
from bingus.usernames import key_for_username, normalize_username

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(_: FastAPI):
    if settings.app_env != "development" and settings.session_secret == DEV_SESSION_SECRET:
        logger.warning("%s is signing sessions with the development secret; set SESSION_SECRET", settings.app_name)
    yield


app = FastAPI(title=settings.app_name, lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


def _extract_session_token(request: Request) -> Optional[str]:
    token = request.cookies.get(settings.session_cookie_name)
    if token:
        return token

    scheme, _, credentials = request.headers.get("authorization", "").partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None


def _session_response(username: str) -> SessionResponse:
    session = build_session_payload(username)
    return SessionResponse(
        user=PublicUser(username=username, key=key_for_username(username)),
        session_token=session.session_token,
        expires_at=session.expires_at,
    )


def _set_session_cookie(response: Response, token: Optional[str]) -> None:
    if not token:
        return
    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=settings.session_ttl_seconds,
        path="/",
        samesite="lax",
        httponly=True,
        secure=settings.session_cookie_secure,
    )


@app.post("/api/register", response_model=SessionResponse)
async def register(body: RegisterRequest, response: Response) -> SessionResponse:
    username = normalize_username(body.username)
    if username is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="invalid_username")

    session = _session_response(username)
    _set_session_cookie(response, session.session_token)
    logger.info("Issued session for %s", key_for_username(username))
    return session


@app.get("/api/me", response_model=SessionResponse)
async def me(request: Request, response: Response) -> SessionResponse:
    result = verify_session_token(_extract_session_token(request))
    if result.error is SessionError.missing:
        return SessionResponse()
    if not result.ok or result.payload is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=result.error.value)

    session = _session_response(result.payload.sub)
    _set_session_cookie(response, session.session_token)
    return session


@app.post("/api/logout")
async def logout(response: Response) -> dict[str, bool]:
    response.delete_cookie(settings.session_cookie_name, path="/")
    return {"ok": True}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("bingus.main:app", host="0.0.0.0", port=8000, reload=True)
