"""
==============================================================================
Customer & Supplier Service Module
==============================================================================

CRUD services for the two contact directories.

- CustomerService: email and phone are unique (CUSTOMER_EXISTS)
- SupplierService: no uniqueness constraint

==============================================================================
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stockroom.db.models import Customer, Order, Supplier
from stockroom.core.dependencies import ListParams
from stockroom.core import exceptions
from stockroom.schemas.customer import (
    CustomerCreate,
    CustomerUpdate,
    SupplierCreate,
    SupplierUpdate,
)
from stockroom.services.listing import paginate


# Module logger
logger = logging.getLogger(__name__)


class CustomerService:
    """
    Customer directory service.

    Example:
        >>> service = CustomerService(db_session)
        >>> customer = service.create_customer(CustomerCreate(
        ...     name="Ann", email="ann@shop.test", phone="555-0100"
        ... ))
    """

    SORT_COLUMNS = {
        "name": Customer.name,
        "email": Customer.email,
        "phone": Customer.phone,
        "created_at": Customer.created_at,
    }

    def __init__(self, db: Session) -> None:
        self._db = db

    def _ensure_unique(
        self,
        email: Optional[str],
        phone: Optional[str],
        exclude_id: Optional[str] = None
    ) -> None:
        conditions = []
        if email:
            conditions.append(Customer.email == email)
        if phone:
            conditions.append(Customer.phone == phone)
        if not conditions:
            return

        query = self._db.query(Customer).filter(or_(*conditions))
        if exclude_id:
            query = query.filter(Customer.id != exclude_id)

        if query.first() is not None:
            logger.warning(f"Customer contact already used: {email} / {phone}")
            raise exceptions.customer_exists()

    def create_customer(self, data: CustomerCreate) -> Customer:
        """
        Raises:
            AppException: CUSTOMER_EXISTS
        """
        self._ensure_unique(data.email, data.phone)

        customer = Customer(name=data.name, email=data.email, phone=data.phone)
        try:
            self._db.add(customer)
            self._db.commit()
            self._db.refresh(customer)
        except IntegrityError:
            self._db.rollback()
            raise exceptions.customer_exists()

        logger.info(f"✅ Customer created: {customer.name}")
        return customer

    def get_by_id(self, customer_id: str) -> Customer:
        customer = self._db.query(Customer).filter(Customer.id == customer_id).first()
        if not customer:
            raise exceptions.customer_not_found(customer_id)
        return customer

    def list_customers(self, params: ListParams) -> Tuple[List[Customer], int]:
        """List customers, searchable by name, email and phone."""
        return paginate(
            self._db.query(Customer),
            params,
            search_columns=(Customer.name, Customer.email, Customer.phone),
            sort_columns=self.SORT_COLUMNS,
        )

    def update_customer(self, customer_id: str, data: CustomerUpdate) -> Customer:
        customer = self.get_by_id(customer_id)
        self._ensure_unique(data.email, data.phone, exclude_id=customer.id)

        for field in ("name", "email", "phone"):
            value = getattr(data, field)
            if value is not None:
                setattr(customer, field, value)

        try:
            self._db.commit()
        except IntegrityError:
            self._db.rollback()
            raise exceptions.customer_exists()

        self._db.refresh(customer)
        return customer

    def delete_customer(self, customer_id: str) -> None:
        """
        Raises:
            AppException: FORBIDDEN while the customer still has orders
        """
        customer = self.get_by_id(customer_id)

        has_orders = self._db.query(Order).filter(
            Order.customer_id == customer.id
        ).first()
        if has_orders is not None:
            raise exceptions.forbidden("Customer has orders and cannot be deleted")

        self._db.delete(customer)
        self._db.commit()
        logger.info(f"Customer deleted: {customer_id}")


class SupplierService:
    """Supplier directory service."""

    SORT_COLUMNS = {
        "name": Supplier.name,
        "email": Supplier.email,
        "created_at": Supplier.created_at,
    }

    def __init__(self, db: Session) -> None:
        self._db = db

    def create_supplier(self, data: SupplierCreate) -> Supplier:
        supplier = Supplier(
            name=data.name,
            email=data.email,
            phone=data.phone,
            address=data.address,
        )
        self._db.add(supplier)
        self._db.commit()
        self._db.refresh(supplier)

        logger.info(f"✅ Supplier created: {supplier.name}")
        return supplier

    def get_by_id(self, supplier_id: str) -> Supplier:
        supplier = self._db.query(Supplier).filter(Supplier.id == supplier_id).first()
        if not supplier:
            raise exceptions.supplier_not_found(supplier_id)
        return supplier

    def list_suppliers(self, params: ListParams) -> Tuple[List[Supplier], int]:
        return paginate(
            self._db.query(Supplier),
            params,
            search_columns=(Supplier.name, Supplier.email, Supplier.phone),
            sort_columns=self.SORT_COLUMNS,
        )

    def update_supplier(self, supplier_id: str, data: SupplierUpdate) -> Supplier:
        supplier = self.get_by_id(supplier_id)

        for field in ("name", "email", "phone", "address"):
            value = getattr(data, field)
            if value is not None:
                setattr(supplier, field, value)

        self._db.commit()
        self._db.refresh(supplier)
        return supplier

    def delete_supplier(self, supplier_id: str) -> None:
        supplier = self.get_by_id(supplier_id)
        self._db.delete(supplier)
        self._db.commit()
        logger.info(f"Supplier deleted: {supplier_id}")
