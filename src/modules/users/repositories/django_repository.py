"""Django ORM implementation of the User repository.

Satisfies ``IUserRepository`` using Django's QuerySet API.
Error handling follows the Null Object pattern: look-ups return ``None``
instead of raising, and the Service Layer decides how to translate a
missing entity into a domain error.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.db.models import Avg, Count, Max, Q, Sum

from modules.orders.constants import ACTIVE_STATES
from modules.users.filters import UserFilter
from modules.users.models import User
from modules.users.repositories.interfaces import IUserRepository

logger = structlog.get_logger(__name__)


class UserDjangoRepository(IUserRepository):
    """Concrete User repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[User]:
        """Retrieve a user by primary key.

        Returns ``None`` for non-existent or invalid IDs (e.g. malformed UUID).
        """
        try:
            return User.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[User]:
        try:
            return User.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_email(self, email: str) -> Optional[User]:
        return User.objects.filter(email=User.normalize_email(email)).first()

    def list(
        self, filters: Optional[Dict[str, Any]] = None, ordering: str = "-created_at"
    ) -> "models.QuerySet[User]":
        """List users through ``UserFilter``.

        Examples of valid filters::

            {"status": "active"}
            {"search": "doe", "status": "suspended"}
        """
        queryset = User.objects.all()
        if filters:
            queryset = UserFilter(data=filters, queryset=queryset).qs
        return queryset.order_by(ordering, "id")

    @transaction.atomic
    def save(self, entity: User) -> User:
        """Persist (create or update) a user."""
        is_new = entity._state.adding
        entity.save()
        logger.info("user.saved", user_id=str(entity.id), is_new=is_new)
        return entity

    @transaction.atomic
    def apply_patch(self, entity: User, patch) -> User:
        changed: List[str] = []
        if patch.provided("name"):
            entity.name = patch.name
            changed.append("name")
        if patch.provided("email"):
            entity.email = patch.email
            changed.append("email")
        if patch.provided("phone"):
            entity.phone = patch.phone
            changed.append("phone")
        if patch.provided("address"):
            entity.address = patch.address
            changed.append("address")
        if patch.provided("status"):
            entity.status = patch.status
            changed.append("status")

        entity.save(update_fields=changed)
        logger.info("user.patched", user_id=str(entity.id), fields=changed)
        return entity

    def set_status(self, entity: User, status: str) -> User:
        entity.status = status
        entity.save(update_fields=["status"])
        logger.info("user.status_set", user_id=str(entity.id), status=status)
        return entity

    def has_active_orders(self, id: str) -> bool:
        return User.objects.filter(
            id=id, orders__status__in=ACTIVE_STATES
        ).exists()

    def order_stats(self, id: str) -> Dict[str, Any]:
        stats = User.objects.filter(id=id).aggregate(
            total_orders=Count("orders"),
            total_spent=Sum("orders__total_price"),
            avg_order_value=Avg("orders__total_price"),
            last_order_date=Max("orders__order_date"),
            completed_orders=Count("orders", filter=Q(orders__status="delivered")),
        )
        stats["total_spent"] = stats["total_spent"] or Decimal("0.00")
        stats["avg_order_value"] = stats["avg_order_value"] or Decimal("0.00")
        return stats
