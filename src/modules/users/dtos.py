"""User DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Views) and the
Service layer.  DTOs are immutable (``frozen=True``).

- ``CreateUserDTO``: input for user creation.
- ``UpdateUserDTO``: explicit patch (absent vs. null per field).
- ``UserFilterDTO``: list predicates.
- ``UserOutputDTO``: canonical projection returned by every operation.
- ``UserStatsDTO``: order statistics for one user.
"""

from __future__ import annotations

import re
from datetime import datetime
from decimal import Decimal
from enum import StrEnum
from typing import TYPE_CHECKING, ClassVar, FrozenSet, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from modules.core.dtos import PatchDTO
from modules.core.validators import clean_optional_string, clean_string

if TYPE_CHECKING:
    from modules.users.models import User


# ---------------------------------------------------------------------------
# Enum (framework-agnostic, not Django TextChoices)
# ---------------------------------------------------------------------------


class UserStatusEnum(StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


USER_ORDERING_FIELDS = ("name", "email", "status", "created_at", "updated_at")

_PHONE_DIGITS = re.compile(r"^\d{10,15}$")


def _normalize_email(v):
    if isinstance(v, str):
        v = v.strip().lower()
        if len(v) > 100:
            raise ValueError("Email must be at most 100 characters long.")
    return v


def _normalize_phone(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    digits = re.sub(r"\D", "", v)
    if not digits:
        return None
    if not _PHONE_DIGITS.match(digits):
        raise ValueError("Phone number must contain 10 to 15 digits.")
    return digits


def _clean_name(v: str) -> str:
    cleaned = clean_string(v)
    if len(cleaned) < 2:
        raise ValueError("Name must be at least 2 characters long.")
    return cleaned


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateUserDTO(BaseModel):
    """Immutable DTO for user creation requests.

    Validates:
    - ``name`` is trimmed, stripped of ``<>"'`` and non-empty.
    - ``email`` is a well-formed address, normalised to lowercase.
    - ``phone`` keeps digits only (10 to 15 of them) or is omitted.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(max_length=50)
    email: EmailStr
    phone: Optional[str] = None
    address: Optional[str] = Field(default=None, max_length=200)

    @field_validator("name")
    @classmethod
    def clean_name(cls, v: str) -> str:
        return _clean_name(v)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return _normalize_email(v)

    @field_validator("phone")
    @classmethod
    def normalize_phone(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_phone(v)

    @field_validator("address")
    @classmethod
    def clean_address(cls, v: Optional[str]) -> Optional[str]:
        return clean_optional_string(v)


class UpdateUserDTO(PatchDTO):
    """Explicit patch for a user.

    ``phone`` and ``address`` may be sent as ``null`` to clear them;
    ``name``, ``email`` and ``status`` may be omitted but never nulled.
    """

    REQUIRED_FIELDS: ClassVar[FrozenSet[str]] = frozenset({"name", "email", "status"})

    name: Optional[str] = Field(default=None, max_length=50)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = Field(default=None, max_length=200)
    status: Optional[UserStatusEnum] = None

    @field_validator("name")
    @classmethod
    def clean_name(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _clean_name(v)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return _normalize_email(v)

    @field_validator("phone")
    @classmethod
    def normalize_phone(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_phone(v)

    @field_validator("address")
    @classmethod
    def clean_address(cls, v: Optional[str]) -> Optional[str]:
        return clean_optional_string(v)


class UserFilterDTO(BaseModel):
    """Predicates accepted by ``UserService.list_users``."""

    model_config = ConfigDict(frozen=True)

    status: Optional[UserStatusEnum] = None
    search: Optional[str] = Field(default=None, max_length=100)
    ordering: str = "-created_at"

    @field_validator("ordering")
    @classmethod
    def ordering_must_be_allowed(cls, v: str) -> str:
        if v.lstrip("-") not in USER_ORDERING_FIELDS:
            raise ValueError(
                f"Ordering must be one of: {', '.join(USER_ORDERING_FIELDS)}."
            )
        return v


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class UserOutputDTO(BaseModel):
    """Immutable DTO for user API responses."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    name: str
    email: str
    phone: Optional[str]
    address: Optional[str]
    status: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, user: User) -> UserOutputDTO:
        """Build an output DTO from a User model instance."""
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            phone=user.phone,
            address=user.address,
            status=user.status,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class UserStatsDTO(BaseModel):
    """Order statistics for a single user (all statuses counted)."""

    model_config = ConfigDict(frozen=True)

    user_id: UUID
    total_orders: int
    total_spent: Decimal
    avg_order_value: Decimal
    last_order_date: Optional[datetime]
    completed_orders: int
