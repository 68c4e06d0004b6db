"""Product API views.

Exposes the ``ProductService`` via HTTP using a DRF ``ViewSet``.  Domain
errors propagate to ``modules.core.exception_handler``; views only parse
input into DTOs and render output DTOs.
"""

from __future__ import annotations

from rest_framework import serializers, status
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import ViewSet

from modules.core.serializers import page_params
from modules.products.dtos import (
    CreateProductDTO,
    ProductFilterDTO,
    StockAdjustmentDTO,
    UpdateProductDTO,
)
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.services import ProductService


class LowStockQuerySerializer(serializers.Serializer):
    threshold = serializers.IntegerField(min_value=0, required=False)


class ProductViewSet(ViewSet):
    """ViewSet for Product operations.

    ``DELETE`` discontinues instead of removing the row; stock moves only
    through ``POST /products/{id}/stock/``.
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = ProductService(repository=ProductDjangoRepository())

    def list(self, request: Request) -> Response:
        """GET /api/v1/products/?category=&status=&min_price=&max_price=&search=&in_stock="""
        page, page_size = page_params(request)
        filters = ProductFilterDTO.model_validate(request.query_params.dict())
        result = self._service.list_products(filters, page=page, page_size=page_size)
        return Response(result.model_dump(mode="json"))

    def create(self, request: Request) -> Response:
        """POST /api/v1/products/"""
        dto = CreateProductDTO.model_validate(request.data)
        product = self._service.create_product(dto)
        return Response(product.model_dump(mode="json"), status=status.HTTP_201_CREATED)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/products/{pk}/"""
        product = self._service.get_product(pk)
        return Response(product.model_dump(mode="json"))

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/products/{pk}/"""
        patch = UpdateProductDTO.model_validate(request.data)
        product = self._service.update_product(pk, patch)
        return Response(product.model_dump(mode="json"))

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/products/{pk}/ (discontinue)"""
        product = self._service.discontinue_product(pk)
        return Response(product.model_dump(mode="json"))

    @action(detail=True, methods=["post"])
    def stock(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/products/{pk}/stock/ {"quantity": 5, "direction": "add"}"""
        dto = StockAdjustmentDTO.model_validate(request.data)
        product = self._service.adjust_stock(pk, dto)
        return Response(product.model_dump(mode="json"))

    @action(detail=False, methods=["get"])
    def categories(self, request: Request) -> Response:
        """GET /api/v1/products/categories/"""
        rows = self._service.list_categories()
        return Response([row.model_dump(mode="json") for row in rows])

    @action(detail=False, methods=["get"], url_path="low-stock")
    def low_stock(self, request: Request) -> Response:
        """GET /api/v1/products/low-stock/?threshold="""
        query = LowStockQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        products = self._service.list_low_stock(query.validated_data.get("threshold"))
        return Response([p.model_dump(mode="json") for p in products])
