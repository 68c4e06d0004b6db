"""User repository interface.

Extends ``IRepository[User]`` with the look-ups needed for email
uniqueness, list filtering, the open-order guard on deactivation and
per-user order statistics.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.users.dtos import UpdateUserDTO
    from modules.users.models import User


class IUserRepository(IRepository["User"]):
    """Repository contract for the User entity."""

    @abstractmethod
    def save(self, entity: User) -> User:
        """Persist (create or update) a user."""

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[User]:
        """Retrieve a user by (normalized) email address."""

    @abstractmethod
    def list(
        self, filters: Optional[Dict[str, Any]] = None, ordering: str = "-created_at"
    ) -> "models.QuerySet[User]":
        """Return a lazily evaluated, filtered and ordered queryset."""

    @abstractmethod
    def apply_patch(self, entity: User, patch: UpdateUserDTO) -> User:
        """Write the fields present in *patch* and persist them."""

    @abstractmethod
    def set_status(self, entity: User, status: str) -> User:
        """Persist a new status on an already-locked user."""

    @abstractmethod
    def has_active_orders(self, id: str) -> bool:
        """Whether the user owns orders in ``pending|confirmed|shipped``."""

    @abstractmethod
    def order_stats(self, id: str) -> Dict[str, Any]:
        """Aggregate the user's orders (count, sum, avg, last date, delivered)."""
