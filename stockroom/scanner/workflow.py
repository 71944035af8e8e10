"""
==============================================================================
Product Lookup Workflow Module
==============================================================================

Resolves a scanned code against the catalog and handles the
create-on-miss form.

Flow:
----
    code ──▶ lookup() ──▶ one catalog read (normalised SKU)
                 │
        ┌────────┴─────────┐
        ▼                  ▼
     FOUND             NOT_FOUND
   product record     ProductDraft(sku=code)
                           │
                       submit(draft)
                           │
              blank field? ├──▶ VALIDATION_ERROR, nothing written
                           ▼
                     catalog.create()

Collaborators:
-------------
- CatalogService: ``lookup(code)`` and ``create(draft)``
- AudioCue: ``play_confirmation()``, failures ignored by the caller

==============================================================================
"""

from __future__ import annotations

import logging
import sys
from typing import ClassVar, List, Optional, TextIO, Tuple

from pydantic import BaseModel, Field, ValidationError
from sqlalchemy.orm import Session

from stockroom.core import exceptions
from stockroom.core.exceptions import AppException
from stockroom.schemas.product import ProductCreate, ProductDetail, normalize_sku
from stockroom.scanner.events import ScanOutcome
from stockroom.services.product_service import ProductService


# Module logger
logger = logging.getLogger(__name__)


# =============================================================================
# MODELS
# =============================================================================

class ProductDraft(BaseModel):
    """
    Creation form filled in after a miss.

    Mutable: the operator edits it until ``submit`` succeeds.
    """

    name: Optional[str] = Field(default=None)
    sku: str = Field(default="")
    quantity: Optional[int] = Field(default=None)
    category: Optional[str] = Field(default=None)

    REQUIRED: ClassVar[Tuple[str, ...]] = ("name", "sku", "quantity", "category")

    def missing_fields(self) -> List[str]:
        """Names of required fields that are None or blank text."""
        missing = []
        for field in self.REQUIRED:
            value = getattr(self, field)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(field)
        return missing


class LookupResult(BaseModel):
    """Outcome of a single lookup."""

    code: str
    outcome: ScanOutcome
    product: Optional[ProductDetail] = None
    draft: Optional[ProductDraft] = None


# =============================================================================
# COLLABORATORS
# =============================================================================

class CatalogService:
    """Catalog contract used by the workflow."""

    def lookup(self, code: str) -> Optional[ProductDetail]:
        raise NotImplementedError

    def create(self, draft: ProductDraft) -> ProductDetail:
        raise NotImplementedError


class DatabaseCatalog(CatalogService):
    """Catalog backed by the products table."""

    def __init__(self, db: Session) -> None:
        self._db = db
        self._products = ProductService(db)

    def lookup(self, code: str) -> Optional[ProductDetail]:
        product = self._products.find_by_sku(code)
        return ProductDetail.from_model(product) if product else None

    def create(self, draft: ProductDraft) -> ProductDetail:
        """
        Raises:
            AppException: VALIDATION_ERROR on invalid values, SKU_EXISTS
        """
        try:
            data = ProductCreate(
                name=draft.name,
                sku=draft.sku,
                quantity=draft.quantity,
                category=draft.category,
            )
        except ValidationError as e:
            raise exceptions.invalid_fields(e)

        return ProductDetail.from_model(self._products.create_product(data))


class AudioCue:
    """Scan confirmation sound. The base class is silent."""

    def play_confirmation(self) -> None:
        pass


class TerminalBell(AudioCue):
    """Rings the terminal bell."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream or sys.stdout

    def play_confirmation(self) -> None:
        self._stream.write("\a")
        self._stream.flush()


# =============================================================================
# WORKFLOW
# =============================================================================

class ProductLookupWorkflow:
    """
    Example:
        >>> workflow = ProductLookupWorkflow(DatabaseCatalog(db))
        >>> result = workflow.lookup("9999999999999")
        >>> result.outcome
        <ScanOutcome.NOT_FOUND: 'not_found'>
        >>> result.draft.name = "Widget"
        >>> ...
        >>> product = workflow.submit(result.draft)
    """

    def __init__(self, catalog: CatalogService) -> None:
        self._catalog = catalog

    def lookup(self, code: str) -> LookupResult:
        """
        Perform exactly one catalog read for ``code``.

        Raises:
            AppException: LOOKUP_FAILED if the catalog cannot be read
        """
        sku = normalize_sku(code)

        try:
            product = self._catalog.lookup(sku)
        except AppException:
            raise
        except Exception as e:
            logger.error(f"Catalog lookup failed for {sku}: {e}")
            raise exceptions.lookup_failed(str(e)) from e

        if product is not None:
            logger.info(f"✅ Found {sku}: {product.name}")
            return LookupResult(code=sku, outcome=ScanOutcome.FOUND, product=product)

        logger.info(f"❓ No product for {sku}")
        return LookupResult(
            code=sku,
            outcome=ScanOutcome.NOT_FOUND,
            draft=ProductDraft(sku=sku),
        )

    def submit(self, draft: ProductDraft) -> ProductDetail:
        """
        Create a product from a completed draft.

        Raises:
            AppException: VALIDATION_ERROR listing blank fields (nothing is
                written), or LOOKUP_FAILED if the catalog is unreachable
        """
        missing = draft.missing_fields()
        if missing:
            logger.info(f"Draft for {draft.sku or '?'} missing: {', '.join(missing)}")
            raise exceptions.validation_error(missing)

        try:
            product = self._catalog.create(draft)
        except AppException:
            raise
        except Exception as e:
            logger.error(f"Catalog create failed for {draft.sku}: {e}")
            raise exceptions.lookup_failed(str(e)) from e

        logger.info(f"✅ Product created from scan: {product.sku}")
        return product
