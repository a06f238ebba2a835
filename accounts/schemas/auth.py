"""
Pydantic schemas for authentication payloads and responses.
"""
from pydantic import Field

from accounts.schemas.user import CamelModel, CurrentUser


class LoginRequest(CamelModel):
    # empty values are bad credentials (401), not malformed payloads
    username: str
    password: str


class VerifyRequest(CamelModel):
    token: str = Field(..., min_length=1)


class AuthResponse(CamelModel):
    """Returned by login and verify: the caller's identity and a fresh token."""

    user: CurrentUser
    token: str
