"""User service layer (Use Cases).

Orchestrates business logic for the User entity, delegating persistence
to the injected ``IUserRepository``.

Business rules enforced here:
- Email must be unique (pre-checked, re-checked at commit).
- Deactivation is blocked while the user owns pending, confirmed or
  shipped orders.
- Every command returns a ``UserOutputDTO``, never a model instance.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Optional

import structlog
from django.db import IntegrityError, transaction

from modules.core.pagination import PageDTO, paginate
from modules.users.dtos import UserOutputDTO, UserStatsDTO
from modules.users.exceptions import (
    UserAlreadyExists,
    UserHasActiveOrders,
    UserNotFound,
)
from modules.users.models import User, UserStatus

if TYPE_CHECKING:
    from modules.users.dtos import CreateUserDTO, UpdateUserDTO, UserFilterDTO
    from modules.users.repositories.interfaces import IUserRepository

logger = structlog.get_logger(__name__)

CENT = Decimal("0.01")


class UserService:
    """Application service for User use-cases.

    Receives an ``IUserRepository`` via constructor injection (DIP).
    """

    def __init__(self, repository: IUserRepository) -> None:
        self._repo = repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_user(self, dto: CreateUserDTO) -> UserOutputDTO:
        """Create a new user after enforcing email uniqueness.

        Raises:
            UserAlreadyExists: if the normalized email is already taken,
                either at pre-check time or when the insert commits.
        """
        log = logger.bind(email=dto.email)

        if self._repo.get_by_email(dto.email):
            log.warning("user.duplicate_email")
            raise UserAlreadyExists(
                f"Email {dto.email} is already registered.", email=dto.email
            )

        user = User(
            name=dto.name,
            email=dto.email,
            phone=dto.phone,
            address=dto.address,
        )
        try:
            with transaction.atomic():
                user = self._repo.save(user)
        except IntegrityError:
            log.warning("user.duplicate_email", stage="commit")
            raise UserAlreadyExists(
                f"Email {dto.email} is already registered.", email=dto.email
            )

        log.info("user.created", user_id=str(user.id))
        return UserOutputDTO.from_entity(user)

    def update_user(self, id: str, patch: UpdateUserDTO) -> UserOutputDTO:
        """Apply an explicit patch to an existing user.

        Raises:
            UserNotFound: if the user does not exist.
            UserAlreadyExists: if the new email belongs to another user.
        """
        log = logger.bind(user_id=str(id), fields=sorted(patch.model_fields_set))
        try:
            with transaction.atomic():
                user = self._repo.get_for_update(id)
                if not user:
                    log.info("user.not_found", operation="update")
                    raise UserNotFound(f"User {id} not found.", user_id=str(id))

                if patch.provided("email") and patch.email != user.email:
                    existing = self._repo.get_by_email(patch.email)
                    if existing and existing.id != user.id:
                        log.warning("user.duplicate_email", email=patch.email)
                        raise UserAlreadyExists(
                            f"Email {patch.email} is already registered.",
                            email=patch.email,
                        )

                user = self._repo.apply_patch(user, patch)
        except IntegrityError:
            log.warning("user.duplicate_email", stage="commit")
            raise UserAlreadyExists(
                f"Email {patch.email} is already registered.", email=patch.email
            )

        log.info("user.updated")
        return UserOutputDTO.from_entity(user)

    @transaction.atomic
    def deactivate_user(self, id: str) -> UserOutputDTO:
        """Soft-deactivate a user (``status=inactive``).

        Raises:
            UserNotFound: if the user does not exist.
            UserHasActiveOrders: if pending/confirmed/shipped orders exist.
        """
        user = self._repo.get_for_update(id)
        if not user:
            logger.info("user.not_found", user_id=str(id), operation="deactivate")
            raise UserNotFound(f"User {id} not found.", user_id=str(id))

        if self._repo.has_active_orders(id):
            logger.warning("user.deactivate_blocked", user_id=str(id))
            raise UserHasActiveOrders(
                "Cannot deactivate user with active orders.", user_id=str(id)
            )

        user = self._repo.set_status(user, UserStatus.INACTIVE)
        logger.info("user.deactivated", user_id=str(id))
        return UserOutputDTO.from_entity(user)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_user(self, id: str) -> UserOutputDTO:
        """Retrieve a single user by ID.

        Raises:
            UserNotFound: if the user does not exist.
        """
        user = self._repo.get_by_id(id)
        if not user:
            logger.info("user.not_found", user_id=str(id), operation="get")
            raise UserNotFound(f"User {id} not found.", user_id=str(id))
        return UserOutputDTO.from_entity(user)

    def get_user_by_email(self, email: str) -> UserOutputDTO:
        user = self._repo.get_by_email(email)
        if not user:
            logger.info("user.not_found", email=email, operation="get_by_email")
            raise UserNotFound(f"User with email {email} not found.", email=email)
        return UserOutputDTO.from_entity(user)

    def list_users(
        self,
        filters: Optional[UserFilterDTO] = None,
        page: int = 1,
        page_size: Optional[int] = None,
    ) -> PageDTO[UserOutputDTO]:
        """Return one page of users matching *filters*."""
        predicates = {}
        ordering = "-created_at"
        if filters is not None:
            predicates = filters.model_dump(
                mode="json", exclude_none=True, exclude={"ordering"}
            )
            ordering = filters.ordering
        queryset = self._repo.list(predicates, ordering=ordering)
        return paginate(queryset, page, page_size, UserOutputDTO.from_entity)

    def get_user_stats(self, id: str) -> UserStatsDTO:
        """Order statistics for one user.

        Raises:
            UserNotFound: if the user does not exist.
        """
        if not self._repo.get_by_id(id):
            logger.info("user.not_found", user_id=str(id), operation="stats")
            raise UserNotFound(f"User {id} not found.", user_id=str(id))

        stats = self._repo.order_stats(id)
        return UserStatsDTO(
            user_id=id,
            total_orders=stats["total_orders"],
            total_spent=Decimal(stats["total_spent"]).quantize(CENT),
            avg_order_value=Decimal(stats["avg_order_value"]).quantize(CENT),
            last_order_date=stats["last_order_date"],
            completed_orders=stats["completed_orders"],
        )
