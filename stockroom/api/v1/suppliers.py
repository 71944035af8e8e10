"""
==============================================================================
Supplier Endpoints
==============================================================================

Supplier directory CRUD.

==============================================================================
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from stockroom.db.database import get_db
from stockroom.db.models import User
from stockroom.core.dependencies import ListParams, get_current_user
from stockroom.services.customer_service import SupplierService
from stockroom.schemas.customer import (
    SupplierCreate,
    SupplierUpdate,
    SupplierDetail,
    SupplierResponse,
)
from stockroom.schemas.common import MessageResponse, PaginatedResponse


router = APIRouter(prefix="/suppliers", tags=["Suppliers"])


class SupplierController:
    """Controller for supplier operations."""

    def __init__(self, db: Session):
        self._service = SupplierService(db)

    def list_all(self, params: ListParams) -> PaginatedResponse[SupplierDetail]:
        suppliers, total = self._service.list_suppliers(params)
        return PaginatedResponse[SupplierDetail].create(
            items=[SupplierDetail.model_validate(s) for s in suppliers],
            total=total,
            page=params.page,
            limit=params.limit,
        )

    def get(self, supplier_id: str) -> SupplierResponse:
        supplier = self._service.get_by_id(supplier_id)
        return SupplierResponse(supplier=SupplierDetail.model_validate(supplier))

    def create(self, data: SupplierCreate) -> SupplierResponse:
        supplier = self._service.create_supplier(data)
        return SupplierResponse(supplier=SupplierDetail.model_validate(supplier))

    def update(self, supplier_id: str, data: SupplierUpdate) -> SupplierResponse:
        supplier = self._service.update_supplier(supplier_id, data)
        return SupplierResponse(supplier=SupplierDetail.model_validate(supplier))

    def delete(self, supplier_id: str) -> MessageResponse:
        self._service.delete_supplier(supplier_id)
        return MessageResponse(message="Supplier deleted")


@router.get("", response_model=PaginatedResponse[SupplierDetail])
async def list_suppliers(
    params: ListParams = Depends(),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List suppliers. Searchable by name, email and phone."""
    return SupplierController(db).list_all(params)


@router.post("", response_model=SupplierResponse, status_code=status.HTTP_201_CREATED)
async def create_supplier(
    data: SupplierCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return SupplierController(db).create(data)


@router.get("/{supplier_id}", response_model=SupplierResponse)
async def get_supplier(
    supplier_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return SupplierController(db).get(supplier_id)


@router.put("/{supplier_id}", response_model=SupplierResponse)
async def update_supplier(
    supplier_id: str,
    data: SupplierUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return SupplierController(db).update(supplier_id, data)


@router.delete("/{supplier_id}", response_model=MessageResponse)
async def delete_supplier(
    supplier_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return SupplierController(db).delete(supplier_id)
