"""Tests for login and token verification."""
from datetime import timedelta

import pytest

from accounts.core.exceptions import Unauthorized
from accounts.core.tokens import issue_token, verify_token
from accounts.models.user import UserRole
from accounts.schemas.auth import LoginRequest
from accounts.services.auth_service import AuthService

from conftest import DEFAULT_PASSWORD


class TestLogin:
    def test__login__returns_identity_and_token(self, auth_service: AuthService, make_user) -> None:
        user = make_user("alice", roles=[UserRole.ADMIN, UserRole.USER])

        result = auth_service.login(LoginRequest(username="alice", password=DEFAULT_PASSWORD))

        assert result.user.id == user.id
        assert result.user.roles == [UserRole.ADMIN, UserRole.USER]
        assert verify_token(result.token) == user.id

    def test__login__response_never_carries_password(self, auth_service: AuthService, make_user) -> None:
        make_user("bob")

        wire = auth_service.login(LoginRequest(username="bob", password=DEFAULT_PASSWORD)).to_wire()

        assert set(wire) == {"user", "token"}
        assert "password" not in wire["user"]
        assert "hashedPassword" not in wire["user"]

    def test__login__wrong_password(self, auth_service: AuthService, make_user) -> None:
        make_user("carol")

        with pytest.raises(Unauthorized) as exc_info:
            auth_service.login(LoginRequest(username="carol", password="not-it"))

        assert exc_info.value.detail == "Invalid credentials"

    def test__login__unknown_user_fails_like_wrong_password(self, auth_service: AuthService) -> None:
        with pytest.raises(Unauthorized) as exc_info:
            auth_service.login(LoginRequest(username="nobody", password=DEFAULT_PASSWORD))

        assert exc_info.value.detail == "Invalid credentials"
        assert exc_info.value.status_code == 401

    def test__login__empty_password_is_invalid_credentials(self, auth_service: AuthService, make_user) -> None:
        make_user("cody")

        with pytest.raises(Unauthorized) as exc_info:
            auth_service.login(LoginRequest(username="cody", password=""))

        assert exc_info.value.detail == "Invalid credentials"

    def test__login__disabled_user_is_rejected(self, auth_service: AuthService, make_user) -> None:
        make_user("dave", deleted=True)

        with pytest.raises(Unauthorized):
            auth_service.login(LoginRequest(username="dave", password=DEFAULT_PASSWORD))


class TestVerify:
    def test__verify__returns_same_identity(self, auth_service: AuthService, make_user) -> None:
        user = make_user("erin")
        token = auth_service.login(LoginRequest(username="erin", password=DEFAULT_PASSWORD)).token

        result = auth_service.verify(token)

        assert result.user.id == user.id
        assert result.user.username == "erin"

    def test__verify__issues_a_fresh_token_each_time(self, auth_service: AuthService, make_user) -> None:
        user = make_user("frank")
        token = issue_token(user.id)

        first = auth_service.verify(token).token
        second = auth_service.verify(token).token

        assert first != token
        assert first != second
        assert verify_token(second) == user.id

    def test__verify__expired_token(self, auth_service: AuthService, make_user) -> None:
        user = make_user("gina")

        with pytest.raises(Unauthorized) as exc_info:
            auth_service.verify(issue_token(user.id, ttl=timedelta(seconds=-1)))

        assert exc_info.value.detail == "Invalid token"

    def test__verify__garbage_token(self, auth_service: AuthService) -> None:
        with pytest.raises(Unauthorized):
            auth_service.verify("definitely-not-a-token")

    def test__verify__disabled_subject(self, auth_service: AuthService, make_user) -> None:
        user = make_user("harry", deleted=True)

        with pytest.raises(Unauthorized) as exc_info:
            auth_service.verify(issue_token(user.id))

        assert exc_info.value.detail == "Invalid token"

    def test__verify__unknown_subject(self, auth_service: AuthService) -> None:
        with pytest.raises(Unauthorized):
            auth_service.verify(issue_token("0b9c1a52-6a39-4f6b-9d0c-2f1ad3f6b8e1"))
