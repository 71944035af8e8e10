"""
==============================================================================
Product Service Module
==============================================================================

Catalog management service.

This module implements:
- ProductService: product CRUD and exact SKU lookup
- CSV bulk import (rows missing a field or reusing a SKU are skipped)
- CSV and Excel (openpyxl) export
- Low-stock queries used by the stats endpoint and the background monitor

SKU Rules:
---------
- Stored trimmed and upper-cased
- Unique across the catalog (SKU_EXISTS on conflict)

==============================================================================
"""

from __future__ import annotations

import csv
import io
import logging
from typing import List, Optional, Set, Tuple

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stockroom.config import get_settings
from stockroom.db.models import OrderItem, Product
from stockroom.core.dependencies import ListParams
from stockroom.core import exceptions
from stockroom.schemas.product import (
    ImportResult,
    ProductCreate,
    ProductUpdate,
    normalize_sku,
    parse_data_url,
)
from stockroom.services.listing import paginate


# Module logger
logger = logging.getLogger(__name__)

EXPORT_COLUMNS = ("name", "sku", "quantity", "category")
IMPORT_REQUIRED = ("name", "sku", "quantity", "category")


class ProductService:
    """
    Product catalog service.

    Example:
        >>> service = ProductService(db_session)
        >>> product = service.create_product(ProductCreate(
        ...     name="Widget", sku="0123456789012", quantity=4, category="Tools"
        ... ))
        >>> service.find_by_sku(" 0123456789012 ").id == product.id
        True
    """

    SORT_COLUMNS = {
        "name": Product.name,
        "sku": Product.sku,
        "quantity": Product.quantity,
        "category": Product.category,
        "created_at": Product.created_at,
    }

    def __init__(self, db: Session) -> None:
        self._db = db
        self._settings = get_settings()

    # =========================================================================
    # CREATE OPERATIONS
    # =========================================================================

    def create_product(self, data: ProductCreate) -> Product:
        """
        Create a catalog product.

        Raises:
            AppException: SKU_EXISTS if another product has the SKU
        """
        if self.find_by_sku(data.sku) is not None:
            logger.warning(f"Product creation failed: SKU exists - {data.sku}")
            raise exceptions.sku_exists(data.sku)

        product = Product(
            name=data.name,
            sku=data.sku,
            quantity=data.quantity,
            category=data.category,
        )
        if data.image:
            product.image_content_type, product.image_data = parse_data_url(data.image)

        try:
            self._db.add(product)
            self._db.commit()
            self._db.refresh(product)
        except IntegrityError:
            self._db.rollback()
            raise exceptions.sku_exists(data.sku)

        logger.info(f"✅ Product created: {product.sku} ({product.name})")
        return product

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    def get_by_id(self, product_id: str) -> Product:
        """
        Raises:
            AppException: PRODUCT_NOT_FOUND
        """
        product = self._db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise exceptions.product_not_found(product_id)
        return product

    def find_by_sku(self, sku: str) -> Optional[Product]:
        """Exact match on the normalised SKU, or None."""
        return self._db.query(Product).filter(
            Product.sku == normalize_sku(sku)
        ).first()

    def get_by_sku(self, sku: str) -> Product:
        """
        Raises:
            AppException: PRODUCT_NOT_FOUND
        """
        product = self.find_by_sku(sku)
        if not product:
            raise exceptions.product_not_found(normalize_sku(sku))
        return product

    def list_products(self, params: ListParams) -> Tuple[List[Product], int]:
        """List products, searchable by name, SKU and category."""
        return paginate(
            self._db.query(Product),
            params,
            search_columns=(Product.name, Product.sku, Product.category),
            sort_columns=self.SORT_COLUMNS,
        )

    def count_products(self) -> int:
        return self._db.query(Product).count()

    def low_stock(self, threshold: Optional[int] = None) -> List[Product]:
        """Products whose quantity is strictly below the threshold."""
        limit = self._settings.low_stock_threshold if threshold is None else threshold
        return (
            self._db.query(Product)
            .filter(Product.quantity < limit)
            .order_by(Product.quantity.asc(), Product.name.asc())
            .all()
        )

    def count_low_stock(self, threshold: Optional[int] = None) -> int:
        limit = self._settings.low_stock_threshold if threshold is None else threshold
        return self._db.query(Product).filter(Product.quantity < limit).count()

    # =========================================================================
    # UPDATE OPERATIONS
    # =========================================================================

    def update_product(self, product_id: str, data: ProductUpdate) -> Product:
        """
        Update product attributes. Only provided fields are updated.

        Raises:
            AppException: PRODUCT_NOT_FOUND or SKU_EXISTS
        """
        product = self.get_by_id(product_id)

        if data.sku is not None and data.sku != product.sku:
            clash = self.find_by_sku(data.sku)
            if clash is not None:
                raise exceptions.sku_exists(data.sku)
            product.sku = data.sku

        if data.name is not None:
            product.name = data.name
        if data.quantity is not None:
            product.quantity = data.quantity
        if data.category is not None:
            product.category = data.category
        if data.image:
            product.image_content_type, product.image_data = parse_data_url(data.image)

        try:
            self._db.commit()
        except IntegrityError:
            self._db.rollback()
            raise exceptions.sku_exists(product.sku)

        self._db.refresh(product)
        logger.info(f"Product updated: {product.sku}")
        return product

    # =========================================================================
    # DELETE OPERATIONS
    # =========================================================================

    def delete_product(self, product_id: str) -> None:
        """
        Raises:
            AppException: PRODUCT_NOT_FOUND, or FORBIDDEN while order lines
                reference the product
        """
        product = self.get_by_id(product_id)
        sku = product.sku

        in_orders = self._db.query(OrderItem).filter(
            OrderItem.product_id == product.id
        ).first()
        if in_orders is not None:
            raise exceptions.forbidden("Product is used by orders and cannot be deleted")

        self._db.delete(product)
        self._db.commit()

        logger.info(f"Product deleted: {sku}")

    # =========================================================================
    # CSV IMPORT
    # =========================================================================

    def import_csv(self, content: bytes) -> ImportResult:
        """
        Bulk-create products from CSV with a header row.

        Expected columns: name, sku, quantity, category. Rows missing any of
        them, or with a quantity that is not a non-negative integer, are
        skipped as invalid. Rows whose SKU already exists (in the catalog or
        earlier in the file) are skipped as existing.

        Raises:
            AppException: INVALID_FILE if the upload is not UTF-8 CSV
        """
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError:
            raise exceptions.invalid_file("CSV must be UTF-8 encoded")

        reader = csv.DictReader(io.StringIO(text))
        if not reader.fieldnames:
            raise exceptions.invalid_file("CSV has no header row")

        headers = {name.strip().lower() for name in reader.fieldnames if name}
        missing = [column for column in IMPORT_REQUIRED if column not in headers]
        if missing:
            raise exceptions.invalid_file(f"missing columns: {', '.join(missing)}")

        existing: Set[str] = {sku for (sku,) in self._db.query(Product.sku).all()}
        imported = skipped_existing = skipped_invalid = 0

        for raw in reader:
            row = {
                (key or "").strip().lower(): (value or "").strip()
                for key, value in raw.items()
                if isinstance(value, str) or value is None
            }

            if not all(row.get(column) for column in IMPORT_REQUIRED):
                skipped_invalid += 1
                continue

            try:
                quantity = int(row["quantity"])
            except ValueError:
                skipped_invalid += 1
                continue
            if quantity < 0:
                skipped_invalid += 1
                continue

            sku = normalize_sku(row["sku"])
            if sku in existing:
                skipped_existing += 1
                logger.debug(f"CSV import: skipped existing SKU {sku}")
                continue

            existing.add(sku)
            self._db.add(Product(
                name=row["name"],
                sku=sku,
                quantity=quantity,
                category=row["category"],
            ))
            imported += 1

        self._db.commit()

        logger.info(
            f"📥 CSV import complete: {imported} imported, "
            f"{skipped_existing} existing, {skipped_invalid} invalid"
        )
        return ImportResult(
            imported=imported,
            skipped_existing=skipped_existing,
            skipped_invalid=skipped_invalid,
        )

    # =========================================================================
    # EXPORT
    # =========================================================================

    def _export_rows(self) -> List[Product]:
        return self._db.query(Product).order_by(Product.name.asc()).all()

    def export_csv(self) -> bytes:
        """Export the catalog as UTF-8 CSV."""
        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow(EXPORT_COLUMNS)
        for product in self._export_rows():
            writer.writerow([getattr(product, column) for column in EXPORT_COLUMNS])
        return output.getvalue().encode("utf-8")

    def export_xlsx(self) -> bytes:
        """Export the catalog as an Excel workbook."""
        workbook = Workbook()
        ws = workbook.active
        ws.title = "Products"

        header_font = Font(bold=True, color="FFFFFF")
        header_fill = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")

        for col, header in enumerate(EXPORT_COLUMNS, 1):
            cell = ws.cell(row=1, column=col, value=header.capitalize())
            cell.font = header_font
            cell.fill = header_fill

        for row, product in enumerate(self._export_rows(), 2):
            for col, column in enumerate(EXPORT_COLUMNS, 1):
                ws.cell(row=row, column=col, value=getattr(product, column))

        for col, width in enumerate((30, 18, 10, 20), 1):
            ws.column_dimensions[get_column_letter(col)].width = width

        output = io.BytesIO()
        workbook.save(output)
        return output.getvalue()
