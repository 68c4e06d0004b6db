"""Product model with SKU uniqueness and stock control.

Business rules implemented:
- SKU is optional, unique when present, stored trimmed + uppercase.
- Price must be greater than zero.
- Stock quantity can never be negative.
- ``status`` is ``out_of_stock`` exactly when ``stock_quantity == 0``;
  the rule is applied by ``modules.products.ledger``, which is the only
  code path that changes stock.
- ``discontinued`` is terminal; products are never hard-deleted.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from modules.core.models import BaseModel

MIN_PRICE = Decimal("0.01")
MAX_PRICE = Decimal("999999.99")
DEFAULT_CATEGORY = "general"


class ProductStatus(models.TextChoices):
    AVAILABLE = "available", "Available"
    OUT_OF_STOCK = "out_of_stock", "Out of stock"
    DISCONTINUED = "discontinued", "Discontinued"


class Product(BaseModel):
    """Product aggregate root.

    ``sku`` is normalised to uppercase on save to prevent visual duplicates
    (e.g. "sku-01" vs "SKU-01").  A blank SKU is stored as ``NULL`` so the
    unique index only applies to products that actually carry one.
    """

    name = models.CharField(max_length=100)
    description = models.TextField(blank=True, default="")
    price = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        validators=[MinValueValidator(MIN_PRICE), MaxValueValidator(MAX_PRICE)],
    )
    category = models.CharField(max_length=50, default=DEFAULT_CATEGORY)
    stock_quantity = models.PositiveIntegerField(default=0)
    sku = models.CharField(  # noqa: DJ01
        max_length=20, unique=True, null=True, blank=True
    )
    status = models.CharField(
        max_length=20,
        choices=ProductStatus.choices,
        default=ProductStatus.AVAILABLE,
    )

    class Meta:
        db_table = "products"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["status"], name="products_status_idx"),
            models.Index(fields=["category"], name="products_category_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gt=0),
                name="products_price_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(stock_quantity__gte=0),
                name="products_stock_non_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(status__in=ProductStatus.values),
                name="products_status_valid",
            ),
        ]

    # ------------------------------------------------------------------
    # Normalisation
    # ------------------------------------------------------------------

    @staticmethod
    def normalize_sku(value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip().upper() or None

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args, **kwargs) -> None:
        self.sku = self.normalize_sku(self.sku)
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.sku or '-'} - {self.name}"
