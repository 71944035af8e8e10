"""
==============================================================================
Customer Endpoints
==============================================================================

Customer directory CRUD. Email and phone are unique per customer.

==============================================================================
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from stockroom.db.database import get_db
from stockroom.db.models import User
from stockroom.core.dependencies import ListParams, get_current_user
from stockroom.services.customer_service import CustomerService
from stockroom.schemas.customer import (
    CustomerCreate,
    CustomerUpdate,
    CustomerDetail,
    CustomerResponse,
)
from stockroom.schemas.common import MessageResponse, PaginatedResponse


router = APIRouter(prefix="/customers", tags=["Customers"])


class CustomerController:
    """Controller for customer operations."""

    def __init__(self, db: Session):
        self._service = CustomerService(db)

    def list_all(self, params: ListParams) -> PaginatedResponse[CustomerDetail]:
        customers, total = self._service.list_customers(params)
        return PaginatedResponse[CustomerDetail].create(
            items=[CustomerDetail.model_validate(c) for c in customers],
            total=total,
            page=params.page,
            limit=params.limit,
        )

    def get(self, customer_id: str) -> CustomerResponse:
        customer = self._service.get_by_id(customer_id)
        return CustomerResponse(customer=CustomerDetail.model_validate(customer))

    def create(self, data: CustomerCreate) -> CustomerResponse:
        customer = self._service.create_customer(data)
        return CustomerResponse(customer=CustomerDetail.model_validate(customer))

    def update(self, customer_id: str, data: CustomerUpdate) -> CustomerResponse:
        customer = self._service.update_customer(customer_id, data)
        return CustomerResponse(customer=CustomerDetail.model_validate(customer))

    def delete(self, customer_id: str) -> MessageResponse:
        self._service.delete_customer(customer_id)
        return MessageResponse(message="Customer deleted")


@router.get("", response_model=PaginatedResponse[CustomerDetail])
async def list_customers(
    params: ListParams = Depends(),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List customers. Searchable by name, email and phone."""
    return CustomerController(db).list_all(params)


@router.post("", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
async def create_customer(
    data: CustomerCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a customer."""
    return CustomerController(db).create(data)


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return CustomerController(db).get(customer_id)


@router.put("/{customer_id}", response_model=CustomerResponse)
async def update_customer(
    customer_id: str,
    data: CustomerUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return CustomerController(db).update(customer_id, data)


@router.delete("/{customer_id}", response_model=MessageResponse)
async def delete_customer(
    customer_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete a customer. Customers with orders cannot be deleted."""
    return CustomerController(db).delete(customer_id)
