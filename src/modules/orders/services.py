"""Order service layer (Use Cases).

Orchestrates the Order Workflow Engine: creation, status transitions and
cancellation.  Every write runs inside one ``transaction.atomic`` unit of
work that couples the order mutation with the matching Stock Ledger
movement, so both commit together or neither does.

Business rules enforced:
- Quantity is a positive integer no larger than ``MAX_ORDER_QUANTITY``.
- The ordering user must exist and be ``active``.
- The product must be ``available`` with enough stock (checked by the
  Availability Validator, re-verified under the product row lock).
- ``unit_price`` is frozen from the availability snapshot.
- Status transitions follow the state machine; cancellation restores stock.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional
from uuid import UUID

import structlog
from django.conf import settings
from django.db import DatabaseError, transaction

from modules.core.exceptions import StorageFailure
from modules.core.pagination import PageDTO, paginate
from modules.core.validators import clean_optional_string
from modules.orders.constants import OrderStatus
from modules.orders.dtos import OrderAnalyticsDTO, OrderDetailDTO, OrderOutputDTO
from modules.orders.exceptions import (
    InvalidOrderQuantity,
    InvalidOrderStatus,
    OrderNotCancellable,
    OrderNotFound,
    UnknownOrderStatus,
)
from modules.products.availability import AvailabilityValidator
from modules.products.exceptions import ProductNotFound, ProductUnavailable
from modules.products.ledger import StockDirection, StockLedger
from modules.products.models import ProductStatus
from modules.users.exceptions import InactiveUser, UserNotFound

if TYPE_CHECKING:
    from modules.orders.dtos import CreateOrderDTO, OrderFilterDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.repositories.interfaces import IProductRepository
    from modules.users.repositories.interfaces import IUserRepository

logger = structlog.get_logger(__name__)

CENT = Decimal("0.01")
USER_UNAVAILABLE_MESSAGE = "User not found or inactive"


class OrderService:
    """Application service for Order use-cases.

    Receives repositories via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        user_repository: IUserRepository,
        product_repository: IProductRepository,
    ) -> None:
        self._order_repo = order_repository
        self._user_repo = user_repository
        self._product_repo = product_repository
        self._availability = AvailabilityValidator(product_repository)
        self._ledger = StockLedger(product_repository)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_order(self, dto: CreateOrderDTO) -> OrderDetailDTO:
        """Create a pending order and decrement stock in one unit of work.

        Steps:
        1. Validate the quantity.
        2. Validate the user exists and is active.
        3. Run the Availability Validator (reason propagated verbatim).
        4. Freeze ``unit_price`` from the snapshot; ``total_price`` is
           derived by the model in exact decimal arithmetic.
        5. Atomically: lock the product row, re-check it is still sellable,
           subtract the quantity through the Stock Ledger (which re-checks
           stock) and insert the order row.
        6. Return the order joined with user and product details.

        Raises:
            InvalidOrderQuantity: quantity < 1 or above the maximum.
            UserNotFound: the user does not exist.
            InactiveUser: the user is inactive or suspended.
            ProductNotFound / ProductUnavailable / InsufficientStock:
                the product cannot satisfy the order.
            StorageFailure: the store rejected a read or write.
        """
        user_id = str(dto.user_id)
        product_id = str(dto.product_id)
        log = logger.bind(user_id=user_id, product_id=product_id, quantity=dto.quantity)
        log.info("order.creation_started")

        # 1. Quantity
        self._check_quantity(dto.quantity, log)

        try:
            # 2. User
            user = self._user_repo.get_by_id(user_id)
            if not user:
                log.info("order.user_not_found")
                raise UserNotFound(USER_UNAVAILABLE_MESSAGE, user_id=user_id)
            if not user.is_active:
                log.info("order.user_inactive", user_status=user.status)
                raise InactiveUser(USER_UNAVAILABLE_MESSAGE, user_id=user_id)

            # 3-4. Availability and price snapshot
            snapshot = self._availability.check(
                product_id, dto.quantity
            ).raise_for_status()

            # 5. Unit of work
            with transaction.atomic():
                product = self._product_repo.get_for_update(product_id)
                if not product:
                    log.info("order.product_vanished")
                    raise ProductNotFound("Product not found", product_id=product_id)
                if product.status == ProductStatus.DISCONTINUED:
                    log.info("order.product_discontinued")
                    raise ProductUnavailable(
                        f"Product is {product.status}", product_id=product_id
                    )

                self._ledger.adjust(product_id, dto.quantity, StockDirection.SUBTRACT)
                order = self._order_repo.create(
                    {
                        "user_id": dto.user_id,
                        "product_id": dto.product_id,
                        "quantity": dto.quantity,
                        "unit_price": snapshot.price,
                        "notes": dto.notes,
                    }
                )

            log.info(
                "order.created",
                order_id=str(order.id),
                unit_price=str(order.unit_price),
                total_price=str(order.total_price),
            )

            # 6. Joined projection
            return OrderDetailDTO.from_entity(self._order_repo.get_by_id(str(order.id)))
        except DatabaseError as exc:
            log.error("order.create_failed", error=str(exc))
            raise StorageFailure(
                "Could not persist the order.",
                user_id=user_id,
                product_id=product_id,
                quantity=dto.quantity,
            ) from exc

    def update_status(
        self,
        order_id: UUID | str,
        new_status: str,
        notes: Optional[str] = None,
    ) -> OrderDetailDTO:
        """Transition an order to a new status.

        Acquires a row-level lock (``SELECT FOR UPDATE``) on the order
        before validating the transition.  A transition to ``cancelled``
        also restores stock, exactly like ``cancel_order``.

        Raises:
            UnknownOrderStatus: *new_status* is not an order status.
            OrderNotFound: order does not exist.
            InvalidOrderStatus: transition is not allowed.
            StorageFailure: the store rejected the read or write.
        """
        log = logger.bind(order_id=str(order_id), new_status=new_status)

        if new_status not in OrderStatus.values:
            log.info("order.unknown_status")
            raise UnknownOrderStatus(
                f"Invalid status '{new_status}'. Allowed: "
                f"{', '.join(OrderStatus.values)}.",
                attr="status",
                order_id=str(order_id),
            )

        try:
            with transaction.atomic():
                order = self._lock_order(order_id, "update_status")
                log = log.bind(current_status=order.status)

                if not order.can_transition_to(new_status):
                    log.warning("order.invalid_transition")
                    raise InvalidOrderStatus(
                        f"Cannot change status from {order.status} to {new_status}",
                        order_id=str(order_id),
                        current_status=order.status,
                        requested_status=new_status,
                    )

                if new_status == OrderStatus.CANCELLED:
                    self._restore_stock(order)
                self._order_repo.set_status(
                    order, new_status, clean_optional_string(notes)
                )

            log.info("order.status_updated")
            return self.get_order(str(order_id))
        except DatabaseError as exc:
            log.error("order.status_update_failed", error=str(exc))
            raise StorageFailure(
                "Could not update the order status.", order_id=str(order_id)
            ) from exc

    def cancel_order(
        self, order_id: UUID | str, reason: Optional[str] = None
    ) -> OrderDetailDTO:
        """Cancel an order and restore its quantity to the product stock.

        Acquires a row-level lock on the order **first** so concurrent
        cancellations cannot restore stock twice.

        Raises:
            OrderNotFound: order does not exist.
            OrderNotCancellable: order is already cancelled or delivered.
            StorageFailure: the store rejected the read or write.
        """
        log = logger.bind(order_id=str(order_id))

        try:
            with transaction.atomic():
                order = self._lock_order(order_id, "cancel")
                log = log.bind(current_status=order.status)

                if order.is_terminal:
                    log.warning("order.cancel_rejected")
                    raise OrderNotCancellable(
                        "Order is already cancelled"
                        if order.status == OrderStatus.CANCELLED
                        else f"Cannot cancel {order.status} order",
                        order_id=str(order_id),
                    )

                self._restore_stock(order)
                self._order_repo.set_status(
                    order, OrderStatus.CANCELLED, clean_optional_string(reason)
                )

            log.info("order.cancelled", quantity=order.quantity)
            return self.get_order(str(order_id))
        except DatabaseError as exc:
            log.error("order.cancel_failed", error=str(exc))
            raise StorageFailure(
                "Could not cancel the order.", order_id=str(order_id)
            ) from exc

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str) -> OrderDetailDTO:
        """Retrieve a single order joined with user and product.

        Raises:
            OrderNotFound: if the order does not exist.
        """
        order = self._order_repo.get_by_id(str(order_id))
        if not order:
            logger.info("order.not_found", order_id=str(order_id), operation="get")
            raise OrderNotFound(f"Order {order_id} not found.", order_id=str(order_id))
        return OrderDetailDTO.from_entity(order)

    def list_orders(
        self,
        filters: Optional[OrderFilterDTO] = None,
        page: int = 1,
        page_size: Optional[int] = None,
    ) -> PageDTO:
        """Return one page of orders; joined details when requested."""
        predicates = {}
        ordering = "-order_date"
        to_dto = OrderOutputDTO.from_entity
        if filters is not None:
            predicates = filters.model_dump(
                mode="json",
                exclude_none=True,
                exclude={"ordering", "include_details"},
            )
            ordering = filters.ordering
            if filters.include_details:
                to_dto = OrderDetailDTO.from_entity
        queryset = self._order_repo.list(predicates, ordering=ordering)
        return paginate(queryset, page, page_size, to_dto)

    def get_analytics(
        self,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        user_id: Optional[UUID | str] = None,
    ) -> OrderAnalyticsDTO:
        """Counts per status and revenue figures over the selected orders."""
        filters = {}
        if date_from is not None:
            filters["date_from"] = date_from.isoformat()
        if date_to is not None:
            filters["date_to"] = date_to.isoformat()
        if user_id is not None:
            filters["user_id"] = str(user_id)

        stats = self._order_repo.analytics(filters)
        total = stats["total_orders"]
        cancelled = stats["cancelled_orders"]
        rate = (
            (Decimal(cancelled) * 100 / Decimal(total)).quantize(CENT)
            if total
            else Decimal("0.00")
        )
        return OrderAnalyticsDTO(
            total_orders=total,
            pending_orders=stats["pending_orders"],
            confirmed_orders=stats["confirmed_orders"],
            shipped_orders=stats["shipped_orders"],
            delivered_orders=stats["delivered_orders"],
            cancelled_orders=cancelled,
            total_revenue=_money(stats["total_revenue"]),
            avg_order_value=_money(stats["avg_order_value"]),
            delivered_revenue=_money(stats["delivered_revenue"]),
            cancellation_rate=rate,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _check_quantity(self, quantity: int, log) -> None:
        maximum = settings.MAX_ORDER_QUANTITY
        if quantity < 1:
            log.info("order.invalid_quantity")
            raise InvalidOrderQuantity(
                "Quantity must be a positive integer.", attr="quantity", quantity=quantity
            )
        if quantity > maximum:
            log.info("order.invalid_quantity", maximum=maximum)
            raise InvalidOrderQuantity(
                f"Quantity cannot exceed {maximum}.",
                attr="quantity",
                quantity=quantity,
                maximum=maximum,
            )

    def _lock_order(self, order_id: UUID | str, operation: str) -> Order:
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            logger.info("order.not_found", order_id=str(order_id), operation=operation)
            raise OrderNotFound(f"Order {order_id} not found.", order_id=str(order_id))
        return order

    def _restore_stock(self, order: Order) -> None:
        self._ledger.adjust(str(order.product_id), order.quantity, StockDirection.ADD)


def _money(value) -> Decimal:
    return Decimal(value or 0).quantize(CENT)
