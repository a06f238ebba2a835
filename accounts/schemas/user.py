"""
Pydantic schemas for user RPC payloads and responses.

Wire format is camelCase (``createdAt``, ``createdById``); snake_case field
names are accepted on input as well.
"""
import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from accounts.models.user import UserRole


def is_uuid(value) -> bool:
    """True for a canonical (hyphenated) UUID string of any version."""
    if not isinstance(value, str):
        return False
    try:
        return str(uuid.UUID(value)) == value.lower()
    except ValueError:
        return False


def _check_uuid(value: Optional[str]) -> Optional[str]:
    if value is not None and not is_uuid(value):
        raise ValueError("must be a valid UUID")
    return value


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_wire(self) -> dict:
        """JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------

class CurrentUser(CamelModel):
    """The authenticated caller, as passed in every authorised payload."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        frozen=True,
    )

    id: str
    username: str
    email: str
    roles: List[UserRole] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class UserCreate(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    username: str = Field(..., min_length=3, max_length=50, pattern=r"^[a-zA-Z0-9_.-]+$")
    email: EmailStr
    password: Optional[str] = Field(None, min_length=6, max_length=72)
    roles: List[UserRole] = Field(default_factory=lambda: [UserRole.USER], min_length=1)
    created_by_id: Optional[str] = None

    @field_validator("created_by_id")
    @classmethod
    def created_by_is_uuid(cls, v: Optional[str]) -> Optional[str]:
        return _check_uuid(v)


class UserUpdate(CamelModel):
    """Partial update; every field but ``id`` is optional."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    id: str
    username: Optional[str] = Field(None, min_length=3, max_length=50, pattern=r"^[a-zA-Z0-9_.-]+$")
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6, max_length=72)
    roles: Optional[List[UserRole]] = Field(None, min_length=1)

    @field_validator("id")
    @classmethod
    def id_is_uuid(cls, v: str) -> str:
        if not is_uuid(v):
            raise ValueError("must be a valid UUID")
        return v


class Pagination(CamelModel):
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class UserSummaryResponse(CamelModel):
    id: str
    username: str
    email: str


class UserResponse(CamelModel):
    id: str
    username: str
    email: str
    roles: List[UserRole]
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime]
    created_by: Optional[UserSummaryResponse]
    updated_by: Optional[UserSummaryResponse]
    deleted_by: Optional[UserSummaryResponse]


class CreatedUserResponse(UserResponse):
    """Returned once, by create: carries the plaintext password."""

    password: str


class ListMeta(CamelModel):
    total: int
    page: int
    last_page: int


class UserListResponse(CamelModel):
    data: List[UserResponse]
    meta: ListMeta
