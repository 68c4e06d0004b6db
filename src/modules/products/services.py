"""Product service layer (Use Cases).

Orchestrates business logic for the Product aggregate, delegating
persistence to the injected ``IProductRepository`` and every stock change
to the ``StockLedger``.

Business rules enforced here:
- SKU must be unique when present (pre-checked, re-checked at commit).
- A new product starts ``out_of_stock`` when created with zero stock.
- Discontinuation is blocked while pending or confirmed orders exist.
- Every command returns a ``ProductOutputDTO``, never a model instance.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

import structlog
from django.conf import settings
from django.db import IntegrityError, transaction

from modules.core.pagination import PageDTO, paginate
from modules.products.dtos import CategorySummaryDTO, ProductOutputDTO
from modules.products.exceptions import (
    ProductAlreadyExists,
    ProductHasOpenOrders,
    ProductNotFound,
)
from modules.products.ledger import StockLedger, reconcile_status
from modules.products.models import Product, ProductStatus

if TYPE_CHECKING:
    from modules.products.dtos import (
        CreateProductDTO,
        ProductFilterDTO,
        StockAdjustmentDTO,
        UpdateProductDTO,
    )
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)

CENT = Decimal("0.01")


class ProductService:
    """Application service for Product use-cases.

    Receives an ``IProductRepository`` via constructor injection (DIP).
    """

    def __init__(self, repository: IProductRepository) -> None:
        self._repo = repository
        self._ledger = StockLedger(repository)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_product(self, dto: CreateProductDTO) -> ProductOutputDTO:
        """Create a new product after enforcing SKU uniqueness.

        Raises:
            ProductAlreadyExists: if the SKU is already taken.
        """
        log = logger.bind(sku=dto.sku)

        if dto.sku and self._repo.get_by_sku(dto.sku):
            log.warning("product.duplicate_sku")
            raise ProductAlreadyExists(
                f"SKU '{dto.sku}' already registered.", sku=dto.sku
            )

        product = Product(
            name=dto.name,
            description=dto.description,
            price=dto.price,
            category=dto.category,
            stock_quantity=dto.stock_quantity,
            sku=dto.sku,
            status=reconcile_status(ProductStatus.AVAILABLE, dto.stock_quantity),
        )
        try:
            with transaction.atomic():
                product = self._repo.save(product)
        except IntegrityError:
            log.warning("product.duplicate_sku", stage="commit")
            raise ProductAlreadyExists(
                f"SKU '{dto.sku}' already registered.", sku=dto.sku
            )

        log.info("product.created", product_id=str(product.id))
        return ProductOutputDTO.from_entity(product)

    def update_product(self, id: str, patch: UpdateProductDTO) -> ProductOutputDTO:
        """Apply an explicit patch to an existing product.

        Raises:
            ProductNotFound: if the product does not exist.
            ProductAlreadyExists: if the new SKU belongs to another product.
        """
        log = logger.bind(product_id=str(id), fields=sorted(patch.model_fields_set))
        try:
            with transaction.atomic():
                product = self._repo.get_for_update(id)
                if not product:
                    log.info("product.not_found", operation="update")
                    raise ProductNotFound(
                        f"Product {id} not found.", product_id=str(id)
                    )

                if patch.provided("sku") and patch.sku and patch.sku != product.sku:
                    existing = self._repo.get_by_sku(patch.sku)
                    if existing and existing.id != product.id:
                        log.warning("product.duplicate_sku", sku=patch.sku)
                        raise ProductAlreadyExists(
                            f"SKU '{patch.sku}' already registered.", sku=patch.sku
                        )

                product = self._repo.apply_patch(product, patch)
        except IntegrityError:
            log.warning("product.duplicate_sku", stage="commit")
            raise ProductAlreadyExists(
                f"SKU '{patch.sku}' already registered.", sku=patch.sku
            )

        log.info("product.updated")
        return ProductOutputDTO.from_entity(product)

    @transaction.atomic
    def discontinue_product(self, id: str) -> ProductOutputDTO:
        """Set the terminal ``discontinued`` status.

        Raises:
            ProductNotFound: if the product does not exist.
            ProductHasOpenOrders: if pending/confirmed orders reference it.
        """
        product = self._repo.get_for_update(id)
        if not product:
            logger.info("product.not_found", product_id=str(id), operation="discontinue")
            raise ProductNotFound(f"Product {id} not found.", product_id=str(id))

        if self._repo.has_open_orders(id):
            logger.warning("product.discontinue_blocked", product_id=str(id))
            raise ProductHasOpenOrders(
                "Cannot discontinue product with pending orders.",
                product_id=str(id),
            )

        product = self._repo.set_status(product, ProductStatus.DISCONTINUED)
        logger.info("product.discontinued", product_id=str(id))
        return ProductOutputDTO.from_entity(product)

    @transaction.atomic
    def adjust_stock(self, id: str, dto: StockAdjustmentDTO) -> ProductOutputDTO:
        """Administrative restock / write-off through the Stock Ledger.

        Raises:
            ProductNotFound: if the product does not exist.
            InsufficientStock: if a subtract would make stock negative.
        """
        product = self._ledger.adjust(id, dto.quantity, dto.direction)
        return ProductOutputDTO.from_entity(product)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_product(self, id: str) -> ProductOutputDTO:
        """Retrieve a single product by ID.

        Raises:
            ProductNotFound: if the product does not exist.
        """
        product = self._repo.get_by_id(id)
        if not product:
            logger.info("product.not_found", product_id=str(id), operation="get")
            raise ProductNotFound(f"Product {id} not found.", product_id=str(id))
        return ProductOutputDTO.from_entity(product)

    def get_product_by_sku(self, sku: str) -> ProductOutputDTO:
        product = self._repo.get_by_sku(sku)
        if not product:
            logger.info("product.not_found", sku=sku, operation="get_by_sku")
            raise ProductNotFound(f"Product with SKU '{sku}' not found.", sku=sku)
        return ProductOutputDTO.from_entity(product)

    def list_products(
        self,
        filters: Optional[ProductFilterDTO] = None,
        page: int = 1,
        page_size: Optional[int] = None,
    ) -> PageDTO[ProductOutputDTO]:
        """Return one page of products matching *filters*."""
        predicates = {}
        ordering = "name"
        if filters is not None:
            predicates = filters.model_dump(
                mode="json", exclude_none=True, exclude={"ordering"}
            )
            ordering = filters.ordering
        queryset = self._repo.list(predicates, ordering=ordering)
        return paginate(queryset, page, page_size, ProductOutputDTO.from_entity)

    def list_categories(self) -> List[CategorySummaryDTO]:
        return [
            CategorySummaryDTO(
                category=row["category"],
                product_count=row["product_count"],
                available_count=row["available_count"],
                avg_price=Decimal(row["avg_price"] or 0).quantize(CENT),
            )
            for row in self._repo.categories()
        ]

    def list_low_stock(self, threshold: Optional[int] = None) -> List[ProductOutputDTO]:
        """Non-discontinued products at or below *threshold*, lowest first."""
        if threshold is None:
            threshold = settings.LOW_STOCK_THRESHOLD
        return [ProductOutputDTO.from_entity(p) for p in self._repo.low_stock(threshold)]
