"""Tests for caller identity and the admin gate."""

import pytest
from fastapi import HTTPException
from jose import jwt

from talentpulse.core.auth import DEMO_USER_ID, get_caller, require_admin
from talentpulse.core.config import settings


def _make_token(user_id: str = "user-1", role: str = "user", secret: str | None = None) -> str:
    return jwt.encode(
        {"sub": user_id, "role": role},
        secret or settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )


class FakeCreds:
    def __init__(self, token):
        self.credentials = token


class TestGetCaller:
    def test_valid_token_extracts_identity(self):
        caller = get_caller(FakeCreds(_make_token("user-42", "recruiter")))
        assert caller.user_id == "user-42"
        assert caller.role == "recruiter"
        assert not caller.is_admin

    def test_role_defaults_to_user(self):
        token = jwt.encode({"sub": "user-1"}, settings.jwt_secret, algorithm=settings.jwt_algorithm)
        assert get_caller(FakeCreds(token)).role == "user"

    def test_no_credentials_is_demo_admin(self):
        caller = get_caller(None)
        assert caller.user_id == DEMO_USER_ID
        assert caller.is_admin

    def test_invalid_token_raises_401(self):
        with pytest.raises(HTTPException) as exc_info:
            get_caller(FakeCreds("invalid.jwt.token"))
        assert exc_info.value.status_code == 401

    def test_wrong_secret_raises_401(self):
        with pytest.raises(HTTPException) as exc_info:
            get_caller(FakeCreds(_make_token(secret="not-the-secret")))
        assert exc_info.value.status_code == 401

    def test_missing_subject_raises_401(self):
        token = jwt.encode({"role": "admin"}, settings.jwt_secret, algorithm=settings.jwt_algorithm)
        with pytest.raises(HTTPException) as exc_info:
            get_caller(FakeCreds(token))
        assert exc_info.value.status_code == 401


class TestRequireAdmin:
    def test_admin_passes(self):
        caller = get_caller(FakeCreds(_make_token(role="admin")))
        assert require_admin(caller) is caller

    def test_non_admin_forbidden(self):
        caller = get_caller(FakeCreds(_make_token(role="user")))
        with pytest.raises(HTTPException) as exc_info:
            require_admin(caller)
        assert exc_info.value.status_code == 403
