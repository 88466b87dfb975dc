import logging
import re

import pytest
from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient

from formguard.exceptions import SessionUnavailable
from formguard.security.manager import TokenManager
from formguard.settings import settings
from portal.dependencies.csrf import get_token_manager, require_csrf
from portal.main import app
from portal.middleware.error_handler import session_unavailable_handler
from portal.routes.auth import pwd_context

TOKEN_RE = re.compile(r'name="csrf_token" value="([^"]+)"')
PASSWORD = "correct horse battery staple"


def _token(response) -> str:
    match = TOKEN_RE.search(response.text)
    assert match, "form must carry a CSRF token"
    return match.group(1)


@pytest.fixture
def client():
    # https base URL so the secure session cookie is sent back
    with TestClient(app, base_url="https://testserver") as c:
        yield c


@pytest.fixture
def credentials(monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_USERNAME", "admin")
    monkeypatch.setattr(settings, "ADMIN_PASSWORD_HASH", pwd_context.hash(PASSWORD))


def _login(client, token, password=PASSWORD):
    return client.post(
        "/login",
        data={"username": "admin", "password": password, "csrf_token": token},
        follow_redirects=False,
    )


def test_root_redirects_to_login(client):
    response = client.get("/", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/login"


def test_login_page_renders_token(client):
    response = client.get("/login")
    assert response.status_code == 200
    assert "formguard portal - Login" in response.text
    assert re.fullmatch(r"login_form:[0-9a-f]{64}", _token(response))


def test_login_page_token_stable_across_renders(client):
    assert _token(client.get("/login")) == _token(client.get("/login"))


def test_security_headers(client):
    response = client.get("/login")
    assert response.headers["X-Frame-Options"] == "DENY"
    assert "form-action 'self'" in response.headers["Content-Security-Policy"]


def test_login_without_token_rejected(client, credentials):
    response = client.post("/login", data={"username": "admin", "password": PASSWORD}, follow_redirects=False)
    assert response.status_code == 403
    assert "403" in response.text


def test_login_with_forged_token_rejected(client, credentials):
    client.get("/login")
    response = _login(client, "login_form:" + "0" * 64)
    assert response.status_code == 403


def test_token_from_other_session_rejected(credentials):
    with TestClient(app, base_url="https://testserver") as victim, \
            TestClient(app, base_url="https://testserver") as attacker:
        stolen = _token(attacker.get("/login"))
        victim.get("/login")
        assert _login(victim, stolen).status_code == 403


def test_login_success_and_replay(client, credentials):
    token = _token(client.get("/login"))
    response = _login(client, token)
    assert response.status_code == 303
    assert response.headers["location"] == "/dashboard"

    # Same token a second time is a replay
    assert _login(client, token).status_code == 403


def test_failed_login_issues_new_token(client, credentials):
    token = _token(client.get("/login"))
    response = _login(client, token, password="wrong")
    assert response.status_code == 401
    fresh = _token(response)
    assert fresh != token
    assert _login(client, token).status_code == 403
    assert _login(client, fresh).status_code == 303


def test_login_token_via_header(client, credentials):
    token = _token(client.get("/login"))
    response = client.post(
        "/login",
        data={"username": "admin", "password": PASSWORD},
        headers={"X-CSRF-Token": token},
        follow_redirects=False,
    )
    assert response.status_code == 303


def test_login_not_configured(client, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_PASSWORD_HASH", None)
    token = _token(client.get("/login"))
    response = _login(client, token)
    assert response.status_code == 503
    assert "Вход не настроен" in response.text
    assert "ADMIN_PASSWORD_HASH" in response.text


def test_dashboard_requires_login(client):
    response = client.get("/dashboard", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/login"


def test_dashboard_and_logout(client, credentials):
    _login(client, _token(client.get("/login")))

    assert client.get("/", follow_redirects=False).headers["location"] == "/dashboard"
    assert client.get("/login", follow_redirects=False).status_code == 303

    dashboard = client.get("/dashboard")
    assert dashboard.status_code == 200
    assert "Signed in as admin" in dashboard.text
    logout_token = _token(dashboard)
    assert logout_token.startswith("logout_form:")

    # A login token cannot stand in for the logout form
    login_shaped = "login_form:" + logout_token.split(":", 1)[1]
    assert client.post("/logout", data={"csrf_token": login_shaped}, follow_redirects=False).status_code == 403

    response = client.post("/logout", data={"csrf_token": logout_token}, follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/login"
    assert client.get("/dashboard", follow_redirects=False).status_code == 303


def test_healthz(client):
    assert client.get("/healthz").json() == {"status": "ok"}


def test_session_unavailable_returns_503():
    bare = FastAPI()
    bare.add_exception_handler(SessionUnavailable, session_unavailable_handler)

    @bare.get("/form")
    async def form(manager: TokenManager = Depends(get_token_manager)):
        return {"token": manager.get_token("login_form")}

    @bare.post("/submit")
    async def submit(request: Request, csrf: bool = Depends(require_csrf)):
        return {"ok": True}

    with TestClient(bare) as c:
        response = c.get("/form")
        assert response.status_code == 503
        assert "csrf_tokens" not in response.text
        assert c.post("/submit", data={"csrf_token": "login_form:" + "a" * 64}).status_code == 403


def test_replayed_session_cookie_restores_consumed_token(credentials):
    # Cookie sessions keep consumed state on the client
    with TestClient(app, base_url="https://testserver") as c:
        token = _token(c.get("/login"))
        stale_cookie = c.cookies.get("session")
        assert _login(c, token).status_code == 303
        assert _login(c, token).status_code == 403

    with TestClient(app, base_url="https://testserver") as replay:
        response = replay.post(
            "/login",
            data={"username": "admin", "password": PASSWORD, "csrf_token": token},
            headers={"cookie": f"session={stale_cookie}"},
            follow_redirects=False,
        )
        assert response.status_code == 303


def test_rejected_form_name_cannot_forge_audit_lines(client, caplog):
    client.get("/login")
    forged = "login_form\r\nACTION | User: admin | Action: LOGIN_SUCCESS:" + "0" * 64
    with caplog.at_level(logging.INFO, logger="portal.middleware.audit"):
        response = client.post("/login", data={"username": "admin", "password": "x", "csrf_token": forged})
    assert response.status_code == 403
    messages = [r.getMessage() for r in caplog.records if r.name == "portal.middleware.audit"]
    assert any("CSRF_REJECTED" in m for m in messages)
    for message in messages:
        assert "\n" not in message and "\r" not in message


def test_username_control_characters_escaped_in_audit(client, credentials, caplog):
    token = _token(client.get("/login"))
    with caplog.at_level(logging.INFO, logger="portal.middleware.audit"):
        response = client.post(
            "/login",
            data={"username": "admin\r\nforged", "password": "wrong", "csrf_token": token},
            follow_redirects=False,
        )
    assert response.status_code == 401
    messages = [r.getMessage() for r in caplog.records if r.name == "portal.middleware.audit"]
    assert any("admin\\r\\nforged" in m for m in messages)
    for message in messages:
        assert "\n" not in message and "\r" not in message
