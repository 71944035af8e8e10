"""
==============================================================================
Pytest Configuration and Fixtures
==============================================================================

Provides test database, client, authentication and catalog fixtures.

==============================================================================
"""

import os

# The application lifespan seeds its own database; keep it in memory.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOW_STOCK_ALERTS_ENABLED", "false")

import pytest
from datetime import datetime
from typing import Generator, Dict
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from stockroom.main import app
from stockroom.db.database import Base, get_db
from stockroom.db.models import Customer, Order, OrderItem, Product, User, UserRole
from stockroom.core.security import get_security_manager


# ============================================================================
# DATABASE FIXTURES
# ============================================================================

# In-memory SQLite for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite://"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, expire_on_commit=False, bind=engine
)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db: Session) -> Generator[TestClient, None, None]:
    """Create test client with database override."""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ============================================================================
# USER FIXTURES
# ============================================================================

def _create_user(db: Session, name: str, email: str, password: str, role: UserRole) -> User:
    security = get_security_manager()
    user = User(
        name=name,
        email=email,
        password_hash=security.hash_password(password),
        role=role,
        is_active=True
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin_user(db: Session) -> User:
    """Create an admin user in the test database."""
    return _create_user(db, "Admin", "admin@example.com", "admin123", UserRole.ADMIN)


@pytest.fixture
def staff_user(db: Session) -> User:
    """Create a staff user in the test database."""
    return _create_user(db, "Sam Staff", "staff@example.com", "staff123", UserRole.STAFF)


# ============================================================================
# TOKEN FIXTURES
# ============================================================================

def _token_for(user: User) -> str:
    security = get_security_manager()
    return security.create_access_token({
        "sub": user.id,
        "email": user.email,
        "role": user.role.value
    })


@pytest.fixture
def admin_token(admin_user: User) -> str:
    """Create access token for admin user."""
    return _token_for(admin_user)


@pytest.fixture
def staff_token(staff_user: User) -> str:
    """Create access token for staff user."""
    return _token_for(staff_user)


# ============================================================================
# HEADER FIXTURES
# ============================================================================

@pytest.fixture
def admin_headers(admin_token: str) -> Dict[str, str]:
    """Authorization headers for admin user."""
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def staff_headers(staff_token: str) -> Dict[str, str]:
    """Authorization headers for staff user."""
    return {"Authorization": f"Bearer {staff_token}"}


# ============================================================================
# CATALOG FIXTURES
# ============================================================================

@pytest.fixture
def widget(db: Session) -> Product:
    """A product whose SKU is an EAN-13 code."""
    product = Product(name="Widget", sku="0123456789012", quantity=12, category="Tools")
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


@pytest.fixture
def low_stock_product(db: Session) -> Product:
    product = Product(name="Gasket", sku="GSK-1", quantity=2, category="Spares")
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


@pytest.fixture
def customer(db: Session) -> Customer:
    customer = Customer(name="Ada Buyer", email="ada@example.com", phone="555-0100")
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return customer


@pytest.fixture
def orders(db: Session, customer: Customer, widget: Product) -> list:
    """Two orders in different months, oldest first."""
    placed = [
        Order(
            customer_id=customer.id,
            total=100.0,
            created_at=datetime(2024, 1, 15, 10, 0),
            items=[OrderItem(product_id=widget.id, quantity=2)],
        ),
        Order(
            customer_id=customer.id,
            total=50.5,
            created_at=datetime(2024, 3, 2, 9, 30),
            items=[OrderItem(product_id=widget.id, quantity=1)],
        ),
    ]
    db.add_all(placed)
    db.commit()
    return placed
