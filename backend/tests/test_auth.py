from __future__ import annotations

from types import SimpleNamespace
from uuid import uuid4

import pytest
from fastapi import HTTPException

from notes_app import dependencies
from notes_app.api.v1.schemas.auth import SignInRequest, SignUpRequest
from notes_app.core.services.auth_service import AuthService
from notes_app.utils.validation import validate_password_strength


@pytest.fixture(autouse=True)
def _reset_rate_limits():
    dependencies._login_attempts.clear()
    yield
    dependencies._login_attempts.clear()


def _request(ip: str = "203.0.113.7"):
    return SimpleNamespace(client=SimpleNamespace(host=ip))


def _session_response(email: str = "alice@notes-app.io"):
    return SimpleNamespace(
        user=SimpleNamespace(id=uuid4(), email=email),
        session=SimpleNamespace(access_token="access", expires_in=3600, refresh_token="refresh"),
    )


class _Auth:
    def __init__(self, result=None, error: Exception | None = None) -> None:
        self.result = result
        self.error = error
        self.calls: list[tuple[str, object]] = []

    def _answer(self, name, arg):
        self.calls.append((name, arg))
        if self.error is not None:
            raise self.error
        return self.result

    def sign_up(self, credentials):
        return self._answer("sign_up", credentials)

    def sign_in_with_password(self, credentials):
        return self._answer("sign_in", credentials)

    def refresh_session(self, token):
        return self._answer("refresh", token)


def _service(auth: _Auth) -> AuthService:
    return AuthService(SimpleNamespace(auth=auth))


@pytest.mark.parametrize(
    "password,ok",
    [("short", False), ("password123", False), ("1234567890", False), ("correct horse battery", True)],
)
def test_password_strength(password, ok):
    assert validate_password_strength(password)[0] is ok


@pytest.mark.asyncio
async def test_sign_up_sends_full_name_as_metadata():
    auth = _Auth(result=_session_response())
    payload = SignUpRequest(email="Alice@Notes-App.io", password="correct horse battery", full_name=" Alice ")

    response = await _service(auth).sign_up(_request(), payload)

    assert response.access_token == "access"
    _, credentials = auth.calls[0]
    assert credentials["email"] == "alice@notes-app.io"
    assert credentials["options"] == {"data": {"full_name": "Alice"}}


@pytest.mark.asyncio
async def test_sign_up_rejects_weak_password_without_calling_provider():
    auth = _Auth(result=_session_response())
    with pytest.raises(ValueError, match="too weak"):
        await _service(auth).sign_up(_request(), SignUpRequest(email="a@notes-app.io", password="password123"))
    assert auth.calls == []


@pytest.mark.asyncio
async def test_sign_in_maps_provider_errors():
    auth = _Auth(error=RuntimeError("Invalid login credentials"))
    with pytest.raises(ValueError, match="Invalid email or password"):
        await _service(auth).sign_in(_request(), SignInRequest(email="a@notes-app.io", password="whatever1"))


@pytest.mark.asyncio
async def test_refresh_maps_expired_token():
    auth = _Auth(error=RuntimeError("Refresh Token expired"))
    with pytest.raises(ValueError, match="Invalid or expired refresh token"):
        await _service(auth).refresh_token("stale")


@pytest.mark.asyncio
async def test_sign_in_is_rate_limited_per_ip(monkeypatch):
    monkeypatch.setattr(dependencies.settings, "max_login_attempts", 2)
    monkeypatch.setattr(dependencies.settings, "enable_rate_limiting", True)
    service = _service(_Auth(result=_session_response()))
    payload = SignInRequest(email="a@notes-app.io", password="whatever1")

    await service.sign_in(_request(), payload)
    await service.sign_in(_request(), payload)
    with pytest.raises(HTTPException) as exc_info:
        await service.sign_in(_request(), payload)
    assert exc_info.value.status_code == 429

    # a different client is unaffected
    await service.sign_in(_request("198.51.100.1"), payload)
