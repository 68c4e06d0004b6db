"""User model.

Business rules implemented:
- Email is unique and stored trimmed + lowercase, so uniqueness is
  case-insensitive.
- Users are never hard-deleted; ``deactivate`` flips ``status`` to
  ``inactive`` (enforced at service layer).
- Only ``active`` users can place orders (enforced at service layer).
"""

from __future__ import annotations

import re

from django.db import models

from modules.core.models import BaseModel


class UserStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    INACTIVE = "inactive", "Inactive"
    SUSPENDED = "suspended", "Suspended"


class User(BaseModel):
    """Customer placing orders. Not related to ``django.contrib.auth``."""

    name = models.CharField(max_length=50)
    email = models.EmailField(max_length=100, unique=True)
    phone = models.CharField(max_length=20, null=True, blank=True)  # noqa: DJ01
    address = models.CharField(max_length=200, null=True, blank=True)  # noqa: DJ01
    status = models.CharField(
        max_length=20,
        choices=UserStatus.choices,
        default=UserStatus.ACTIVE,
    )

    class Meta:
        db_table = "users"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="users_status_idx"),
            models.Index(fields=["-created_at"], name="users_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~models.Q(name=""),
                name="users_name_not_empty",
            ),
            models.CheckConstraint(
                condition=models.Q(status__in=UserStatus.values),
                name="users_status_valid",
            ),
        ]

    # ------------------------------------------------------------------
    # Normalisation
    # ------------------------------------------------------------------

    @staticmethod
    def normalize_email(value: str) -> str:
        return value.strip().lower()

    @staticmethod
    def normalize_phone(value: str | None) -> str | None:
        """Keep digits only; an empty result is stored as ``NULL``."""
        if value is None:
            return None
        digits = re.sub(r"\D", "", value)
        return digits or None

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args, **kwargs) -> None:
        if self.email:
            self.email = self.normalize_email(self.email)
        self.phone = self.normalize_phone(self.phone)
        super().save(*args, **kwargs)

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"
