"""
Authentication service: credential login and token verification.

Tokens are stateless and carry only the user id. Verification always
answers with a newly issued token (sliding expiration).
"""
import sqlite3
import logging

from accounts.core.exceptions import Unauthorized, handle_exception
from accounts.core.passwords import dummy_verify, verify_password
from accounts.core.policy import ACTIVE_ONLY
from accounts.core.tokens import TokenInvalid, issue_token, verify_token
from accounts.models.user import User
from accounts.repositories.user_repository import UserRepository
from accounts.schemas.auth import AuthResponse, LoginRequest
from accounts.schemas.user import CurrentUser

logger = logging.getLogger(__name__)

CONTEXT = "AuthService"


class AuthService:
    def __init__(self, conn: sqlite3.Connection) -> None:
        logger.trace("Initializing AuthService")
        self._user_repo = UserRepository(conn)

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    def login(self, data: LoginRequest) -> AuthResponse:
        """
        Validate credentials and issue a token. Unknown usernames, wrong
        passwords and disabled accounts all fail the same way.
        """
        logger.info("Authenticating user '%s'", data.username)
        try:
            user = self._user_repo.get_by_username(data.username, ACTIVE_ONLY)
            if user is None:
                dummy_verify()
                logger.warning("Invalid login attempt for '%s'", data.username)
                raise Unauthorized("Invalid credentials")

            if not verify_password(data.password, user.hashed_password):
                logger.warning("Invalid login attempt for '%s'", data.username)
                raise Unauthorized("Invalid credentials")
        except Exception as exc:
            handle_exception(exc, CONTEXT, "Error authenticating the user")

        logger.info("Login successful for user id=%s", user.id)
        return self._respond(user)

    # ------------------------------------------------------------------
    # Verify
    # ------------------------------------------------------------------

    def verify(self, token: str) -> AuthResponse:
        """Check *token* and answer with the identity plus a fresh token."""
        logger.info("Verifying token")
        try:
            try:
                user_id = verify_token(token)
            except TokenInvalid as exc:
                raise Unauthorized("Invalid token") from exc

            user = self._user_repo.get_by_id(user_id, ACTIVE_ONLY)
            if user is None:
                logger.warning("Token subject id=%s not found or disabled", user_id)
                raise Unauthorized("Invalid token")
        except Exception as exc:
            handle_exception(exc, CONTEXT, "Error verifying the token")

        logger.info("Token verified for user id=%s", user.id)
        return self._respond(user)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _respond(self, user: User) -> AuthResponse:
        return AuthResponse(
            user=CurrentUser.model_validate(user),
            token=issue_token(user.id),
        )
