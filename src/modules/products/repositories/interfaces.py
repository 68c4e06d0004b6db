"""Product repository interface.

Extends ``IRepository[Product]`` with the look-ups needed for SKU
uniqueness, list filtering, the open-order guard on discontinuation,
stock writes from the Stock Ledger and catalog reports.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.dtos import UpdateProductDTO
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def save(self, entity: Product) -> Product:
        """Persist (create or update) a product."""

    @abstractmethod
    def get_by_sku(self, sku: str) -> Optional[Product]:
        """Retrieve a product by SKU (case-insensitive)."""

    @abstractmethod
    def list(
        self, filters: Optional[Dict[str, Any]] = None, ordering: str = "name"
    ) -> "models.QuerySet[Product]":
        """Return a lazily evaluated, filtered and ordered queryset."""

    @abstractmethod
    def apply_patch(self, entity: Product, patch: UpdateProductDTO) -> Product:
        """Write the fields present in *patch* and persist them."""

    @abstractmethod
    def update_stock(self, entity: Product) -> Product:
        """Persist ``stock_quantity`` and ``status`` only."""

    @abstractmethod
    def set_status(self, entity: Product, status: str) -> Product:
        """Persist a new status on an already-locked product."""

    @abstractmethod
    def has_open_orders(self, id: str) -> bool:
        """Whether pending or confirmed orders reference the product."""

    @abstractmethod
    def categories(self) -> List[Dict[str, Any]]:
        """Per-category product count, available count and average price."""

    @abstractmethod
    def low_stock(self, threshold: int) -> "models.QuerySet[Product]":
        """Non-discontinued products with ``stock_quantity <= threshold``."""
