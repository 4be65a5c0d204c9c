import re

from fastapi.testclient import TestClient

from bingus.config import get_settings
from bingus.main import app
from bingus.token_utils import SessionTokens, TokenOptions

TOKEN_SHAPE = re.compile(r"^[^.\s]+\.[^.\s]+\.[^.\s]+$")


def test_health() -> None:
    with TestClient(app) as client:
        assert client.get("/health").json() == {"status": "ok"}


def test_register_issues_session_and_me_recognizes_it() -> None:
    with TestClient(app) as client:
        register = client.post("/api/register", json={"username": "  PlayerOne "})
        assert register.status_code == 200

        body = register.json()
        assert body["ok"] is True
        assert body["user"] == {"username": "PlayerOne", "key": "playerone"}
        assert TOKEN_SHAPE.match(body["sessionToken"])
        assert client.cookies.get("bingus_session") == body["sessionToken"]

        me = client.get("/api/me")
        assert me.status_code == 200
        assert me.json()["user"]["username"] == "PlayerOne"
        assert TOKEN_SHAPE.match(me.json()["sessionToken"])


def test_register_rejects_invalid_username() -> None:
    with TestClient(app) as client:
        response = client.post("/api/register", json={"username": "x!"})
        assert response.status_code == 400
        assert response.json()["detail"] == "invalid_username"
        assert "bingus_session" not in client.cookies


def test_me_without_session_returns_no_user() -> None:
    with TestClient(app) as client:
        response = client.get("/api/me")
        assert response.status_code == 200
        assert response.json() == {"ok": True, "user": None, "sessionToken": None, "expiresAt": None}


def test_me_accepts_bearer_token() -> None:
    with TestClient(app) as issuer:
        token = issuer.post("/api/register", json={"username": "Syncer"}).json()["sessionToken"]

    with TestClient(app) as client:
        response = client.get("/api/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        assert response.json()["user"]["key"] == "syncer"


def test_me_rejects_invalid_session() -> None:
    with TestClient(app) as client:
        client.cookies.set("bingus_session", "a.b.c")
        response = client.get("/api/me")
        assert response.status_code == 401
        assert response.json()["detail"] == "invalid"


def test_me_rejects_session_signed_with_another_secret() -> None:
    token = SessionTokens(secret="some-other-secret").sign("PlayerOne")
    with TestClient(app) as client:
        response = client.get("/api/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["detail"] == "invalid"


def test_me_rejects_expired_session() -> None:
    tokens = SessionTokens(secret=get_settings().session_secret)
    token = tokens.sign("PlayerOne", TokenOptions(exp=1))
    with TestClient(app) as client:
        response = client.get("/api/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["detail"] == "expired"


def test_logout_clears_session_cookie() -> None:
    with TestClient(app) as client:
        client.post("/api/register", json={"username": "PlayerOne"})
        response = client.post("/api/logout")
        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert "bingus_session=" in response.headers["set-cookie"]


def test_register_accepts_numeric_username() -> None:
    with TestClient(app) as client:
        response = client.post("/api/register", json={"username": 12345})
        assert response.status_code == 200
        assert response.json()["user"] == {"username": "12345", "key": "12345"}


def test_register_rejects_missing_username() -> None:
    with TestClient(app) as client:
        response = client.post("/api/register", json={})
        assert response.status_code == 400
        assert response.json()["detail"] == "invalid_username"
