"""Order API views.

Exposes the ``OrderService`` via HTTP using a DRF ``ViewSet``.
Domain exceptions propagate to ``modules.core.exception_handler``, which
translates each error kind into its HTTP status; the view never swallows
exceptions.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import ViewSet

from modules.core.serializers import page_params
from modules.orders.dtos import CreateOrderDTO, OrderFilterDTO
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    CancelOrderSerializer,
    CreateOrderSerializer,
    OrderAnalyticsQuerySerializer,
    UpdateOrderStatusSerializer,
)
from modules.orders.services import OrderService
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.users.repositories.django_repository import UserDjangoRepository


class OrderViewSet(ViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with injected repositories (DIP).
    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer.  Orders are never deleted.
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = OrderService(
            order_repository=OrderDjangoRepository(),
            user_repository=UserDjangoRepository(),
            product_repository=ProductDjangoRepository(),
        )

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/"""
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        data = serializer.validated_data
        dto = CreateOrderDTO(
            user_id=data["user_id"],
            product_id=data["product_id"],
            quantity=data["quantity"],
            notes=data.get("notes"),
        )
        order = self._service.create_order(dto)
        return Response(order.model_dump(mode="json"), status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/?status=&user_id=&product_id=&date_from=&date_to=&min_total=&max_total=&include_details="""
        page, page_size = page_params(request)
        filters = OrderFilterDTO.model_validate(request.query_params.dict())
        result = self._service.list_orders(filters, page=page, page_size=page_size)
        return Response(result.model_dump(mode="json"))

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        order = self._service.get_order(pk)
        return Response(order.model_dump(mode="json"))

    @action(detail=False, methods=["get"])
    def analytics(self, request: Request) -> Response:
        """GET /api/v1/orders/analytics/?date_from=&date_to=&user_id="""
        query = OrderAnalyticsQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        data = query.validated_data
        report = self._service.get_analytics(
            date_from=data.get("date_from"),
            date_to=data.get("date_to"),
            user_id=data.get("user_id"),
        )
        return Response(report.model_dump(mode="json"))

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    @action(detail=True, methods=["patch"], url_path="status")
    def update_status(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/status/ {"status": "confirmed", "notes": "..."}"""
        serializer = UpdateOrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        order = self._service.update_status(
            pk, data["status"], notes=data.get("notes")
        )
        return Response(order.model_dump(mode="json"))

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/ {"reason": "..."}"""
        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.cancel_order(
            pk, reason=serializer.validated_data.get("reason")
        )
        return Response(order.model_dump(mode="json"))
