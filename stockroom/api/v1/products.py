"""
==============================================================================
Product Catalog Endpoints
==============================================================================

Product CRUD, exact SKU lookup, CSV import and catalog export.

Fixed paths (``/sku/...``, ``/export``, ``/import-csv``) are declared
before ``/{product_id}`` so they are not captured as an ID.

==============================================================================
"""

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile, status
from sqlalchemy.orm import Session

from stockroom.db.database import get_db
from stockroom.db.models import User
from stockroom.core.dependencies import ListParams, get_current_user
from stockroom.services.product_service import ProductService
from stockroom.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductDetail,
    ProductResponse,
    ImportResult,
)
from stockroom.schemas.common import MessageResponse, PaginatedResponse


router = APIRouter(prefix="/products", tags=["Products"])

EXPORT_MEDIA_TYPES = {
    "csv": "text/csv",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


class ProductController:
    """Controller for product catalog operations."""

    def __init__(self, db: Session):
        self._service = ProductService(db)

    def list_all(self, params: ListParams) -> PaginatedResponse[ProductDetail]:
        products, total = self._service.list_products(params)
        return PaginatedResponse[ProductDetail].create(
            items=[ProductDetail.from_model(p) for p in products],
            total=total,
            page=params.page,
            limit=params.limit,
        )

    def get(self, product_id: str) -> ProductResponse:
        return ProductResponse(product=ProductDetail.from_model(self._service.get_by_id(product_id)))

    def get_by_sku(self, sku: str) -> ProductResponse:
        return ProductResponse(product=ProductDetail.from_model(self._service.get_by_sku(sku)))

    def create(self, data: ProductCreate) -> ProductResponse:
        return ProductResponse(product=ProductDetail.from_model(self._service.create_product(data)))

    def update(self, product_id: str, data: ProductUpdate) -> ProductResponse:
        product = self._service.update_product(product_id, data)
        return ProductResponse(product=ProductDetail.from_model(product))

    def delete(self, product_id: str) -> MessageResponse:
        self._service.delete_product(product_id)
        return MessageResponse(message="Product deleted")

    def import_csv(self, content: bytes) -> ImportResult:
        return self._service.import_csv(content)

    def export(self, file_format: str) -> Response:
        """Build a downloadable catalog export."""
        if file_format == "xlsx":
            content = self._service.export_xlsx()
        else:
            content = self._service.export_csv()

        return Response(
            content=content,
            media_type=EXPORT_MEDIA_TYPES[file_format],
            headers={"Content-Disposition": f'attachment; filename="products.{file_format}"'},
        )


@router.get("", response_model=PaginatedResponse[ProductDetail])
async def list_products(
    params: ListParams = Depends(),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    List products.

    Searchable by name, SKU and category. Sortable by name, sku,
    quantity, category and created_at.
    """
    return ProductController(db).list_all(params)


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    data: ProductCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a product. The SKU is trimmed, upper-cased and must be unique."""
    return ProductController(db).create(data)


@router.get("/sku/{sku}", response_model=ProductResponse)
async def get_product_by_sku(
    sku: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Exact SKU lookup."""
    return ProductController(db).get_by_sku(sku)


@router.post("/import-csv", response_model=ImportResult)
async def import_products_csv(
    file: UploadFile = File(...),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Bulk import from a CSV with columns name, sku, quantity, category.

    Invalid rows and existing SKUs are skipped and counted.
    """
    content = await file.read()
    return ProductController(db).import_csv(content)


@router.get("/export")
async def export_products(
    format: str = Query("csv", pattern="^(csv|xlsx)$"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Download the catalog as CSV or Excel."""
    return ProductController(db).export(format)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get product by ID."""
    return ProductController(db).get(product_id)


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: str,
    data: ProductUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update a product."""
    return ProductController(db).update(product_id, data)


@router.delete("/{product_id}", response_model=MessageResponse)
async def delete_product(
    product_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete a product."""
    return ProductController(db).delete(product_id)
