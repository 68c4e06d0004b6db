"""Django ORM implementation of the Product repository.

Satisfies ``IProductRepository`` using Django's QuerySet API.
Error handling follows the Null Object pattern: look-ups return ``None``
instead of raising, and the Service Layer decides how to translate a
missing entity into a domain error.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.db.models import Avg, Count, Q

from modules.orders.constants import OPEN_STATES
from modules.products.filters import ProductFilter
from modules.products.models import Product, ProductStatus
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        """Retrieve a product by primary key.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return Product.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Product]:
        """Retrieve a product with a row-level lock (SELECT FOR UPDATE)."""
        try:
            return Product.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_sku(self, sku: str) -> Optional[Product]:
        """Retrieve a product by SKU (case-insensitive via upper normalisation)."""
        normalized = Product.normalize_sku(sku)
        if normalized is None:
            return None
        return Product.objects.filter(sku=normalized).first()

    def list(
        self, filters: Optional[Dict[str, Any]] = None, ordering: str = "name"
    ) -> "models.QuerySet[Product]":
        """List products through ``ProductFilter``.

        Examples of valid filters::

            {"status": "available", "category": "laptops"}
            {"min_price": "10.00", "search": "macbook", "in_stock": True}
        """
        queryset = Product.objects.all()
        if filters:
            queryset = ProductFilter(data=filters, queryset=queryset).qs
        return queryset.order_by(ordering, "id")

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        """Persist (create or update) a product."""
        is_new = entity._state.adding
        entity.save()
        logger.info(
            "product.saved",
            product_id=str(entity.id),
            sku=entity.sku,
            is_new=is_new,
        )
        return entity

    @transaction.atomic
    def apply_patch(self, entity: Product, patch) -> Product:
        changed: List[str] = []
        if patch.provided("name"):
            entity.name = patch.name
            changed.append("name")
        if patch.provided("description"):
            entity.description = patch.description or ""
            changed.append("description")
        if patch.provided("price"):
            entity.price = patch.price
            changed.append("price")
        if patch.provided("category"):
            entity.category = patch.category
            changed.append("category")
        if patch.provided("sku"):
            entity.sku = patch.sku
            changed.append("sku")

        entity.save(update_fields=changed)
        logger.info("product.patched", product_id=str(entity.id), fields=changed)
        return entity

    def update_stock(self, entity: Product) -> Product:
        entity.save(update_fields=["stock_quantity", "status"])
        return entity

    def set_status(self, entity: Product, status: str) -> Product:
        entity.status = status
        entity.save(update_fields=["status"])
        logger.info("product.status_set", product_id=str(entity.id), status=status)
        return entity

    def has_open_orders(self, id: str) -> bool:
        return Product.objects.filter(
            id=id, orders__status__in=OPEN_STATES
        ).exists()

    def categories(self) -> List[Dict[str, Any]]:
        return list(
            Product.objects.order_by()
            .values("category")
            .annotate(
                product_count=Count("id"),
                available_count=Count(
                    "id", filter=Q(status=ProductStatus.AVAILABLE)
                ),
                avg_price=Avg("price"),
            )
            .order_by("category")
        )

    def low_stock(self, threshold: int) -> "models.QuerySet[Product]":
        return (
            Product.objects.filter(stock_quantity__lte=threshold)
            .exclude(status=ProductStatus.DISCONTINUED)
            .order_by("stock_quantity", "name")
        )
