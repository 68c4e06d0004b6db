"""Product DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Views) and the
Service layer.  DTOs are immutable (``frozen=True``).

- ``CreateProductDTO``: input for product creation.
- ``UpdateProductDTO``: explicit patch; stock and status are not patchable.
- ``StockAdjustmentDTO``: input for the administrative stock endpoint.
- ``ProductFilterDTO``: list predicates.
- ``ProductOutputDTO``: canonical projection returned by every operation.
- ``CategorySummaryDTO``: per-category aggregates.
"""

from __future__ import annotations

import re
from datetime import datetime
from decimal import Decimal
from enum import StrEnum
from typing import TYPE_CHECKING, ClassVar, FrozenSet, Optional, Self
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from modules.core.dtos import PatchDTO
from modules.core.validators import clean_string
from modules.products.ledger import StockDirection
from modules.products.models import DEFAULT_CATEGORY, MAX_PRICE, MIN_PRICE

if TYPE_CHECKING:
    from modules.products.models import Product


class ProductStatusEnum(StrEnum):
    AVAILABLE = "available"
    OUT_OF_STOCK = "out_of_stock"
    DISCONTINUED = "discontinued"


PRODUCT_ORDERING_FIELDS = (
    "name",
    "price",
    "category",
    "stock_quantity",
    "status",
    "created_at",
    "updated_at",
)

_SKU_PATTERN = re.compile(r"^[A-Z0-9-]{3,20}$")


def _coerce_decimal(v):
    # JSON numbers arrive as floats; go through repr to avoid binary noise.
    if isinstance(v, float):
        return Decimal(repr(v))
    return v


def _check_price(v: Decimal) -> Decimal:
    if v < MIN_PRICE:
        raise ValueError("Price must be at least 0.01.")
    if v > MAX_PRICE:
        raise ValueError("Price cannot exceed 999999.99.")
    if v.as_tuple().exponent < -2:
        raise ValueError("Price must have at most 2 decimal places.")
    return v.quantize(Decimal("0.01"))


def _normalize_sku(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    sku = v.strip().upper()
    if not sku:
        return None
    if not _SKU_PATTERN.match(sku):
        raise ValueError(
            "SKU must be 3 to 20 characters of letters, digits or hyphens."
        )
    return sku


def _clean_required(v: str, field: str, min_length: int = 2) -> str:
    cleaned = clean_string(v)
    if len(cleaned) < min_length:
        raise ValueError(f"{field} must be at least {min_length} characters long.")
    return cleaned


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateProductDTO(BaseModel):
    """Immutable DTO for product creation requests.

    Validates:
    - ``price`` is between 0.01 and 999999.99 with at most 2 decimals.
    - ``stock_quantity`` is a non-negative integer.
    - ``sku`` is optional; when present it is uppercased and must be
      3 to 20 characters of ``[A-Z0-9-]``.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(max_length=100)
    price: Decimal
    description: str = Field(default="", max_length=500)
    category: str = Field(default=DEFAULT_CATEGORY, max_length=50)
    stock_quantity: int = Field(default=0, ge=0)
    sku: Optional[str] = None

    @field_validator("name")
    @classmethod
    def clean_name(cls, v: str) -> str:
        return _clean_required(v, "Name")

    @field_validator("description", mode="before")
    @classmethod
    def clean_description(cls, v):
        if v is None:
            return ""
        return clean_string(v) if isinstance(v, str) else v

    @field_validator("category")
    @classmethod
    def clean_category(cls, v: str) -> str:
        return _clean_required(v, "Category")

    @field_validator("price", mode="before")
    @classmethod
    def coerce_price(cls, v):
        return _coerce_decimal(v)

    @field_validator("price")
    @classmethod
    def price_in_range(cls, v: Decimal) -> Decimal:
        return _check_price(v)

    @field_validator("sku")
    @classmethod
    def normalize_sku(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_sku(v)


class UpdateProductDTO(PatchDTO):
    """Explicit patch for a product.

    ``description`` and ``sku`` may be sent as ``null`` to clear them.
    ``stock_quantity`` and ``status`` are rejected: stock moves only
    through the stock endpoint and ``discontinued`` is set by ``DELETE``.
    """

    REQUIRED_FIELDS: ClassVar[FrozenSet[str]] = frozenset({"name", "price", "category"})

    name: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    price: Optional[Decimal] = None
    category: Optional[str] = Field(default=None, max_length=50)
    sku: Optional[str] = None

    @field_validator("name")
    @classmethod
    def clean_name(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _clean_required(v, "Name")

    @field_validator("description")
    @classmethod
    def clean_description(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else clean_string(v)

    @field_validator("category")
    @classmethod
    def clean_category(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _clean_required(v, "Category")

    @field_validator("price", mode="before")
    @classmethod
    def coerce_price(cls, v):
        return _coerce_decimal(v)

    @field_validator("price")
    @classmethod
    def price_in_range(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return None if v is None else _check_price(v)

    @field_validator("sku")
    @classmethod
    def normalize_sku(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_sku(v)


class StockAdjustmentDTO(BaseModel):
    """Administrative stock movement (restock or write-off)."""

    model_config = ConfigDict(frozen=True)

    quantity: int = Field(gt=0)
    direction: StockDirection


class ProductFilterDTO(BaseModel):
    """Predicates accepted by ``ProductService.list_products``."""

    model_config = ConfigDict(frozen=True)

    category: Optional[str] = Field(default=None, max_length=50)
    status: Optional[ProductStatusEnum] = None
    min_price: Optional[Decimal] = Field(default=None, gt=0)
    max_price: Optional[Decimal] = Field(default=None, gt=0)
    search: Optional[str] = Field(default=None, max_length=100)
    in_stock: Optional[bool] = None
    ordering: str = "name"

    @field_validator("ordering")
    @classmethod
    def ordering_must_be_allowed(cls, v: str) -> str:
        if v.lstrip("-") not in PRODUCT_ORDERING_FIELDS:
            raise ValueError(
                f"Ordering must be one of: {', '.join(PRODUCT_ORDERING_FIELDS)}."
            )
        return v

    @model_validator(mode="after")
    def price_range_is_ordered(self) -> Self:
        if (
            self.min_price is not None
            and self.max_price is not None
            and self.min_price > self.max_price
        ):
            raise ValueError("min_price cannot be greater than max_price.")
        return self


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class ProductOutputDTO(BaseModel):
    """Immutable DTO for product API responses."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    name: str
    description: str
    price: Decimal
    category: str
    stock_quantity: int
    sku: Optional[str]
    status: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, product: Product) -> ProductOutputDTO:
        """Build an output DTO from a Product model instance."""
        return cls(
            id=product.id,
            name=product.name,
            description=product.description,
            price=product.price,
            category=product.category,
            stock_quantity=product.stock_quantity,
            sku=product.sku,
            status=product.status,
            created_at=product.created_at,
            updated_at=product.updated_at,
        )


class CategorySummaryDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: str
    product_count: int
    available_count: int
    avg_price: Decimal
