"""
==============================================================================
API Integration Tests
==============================================================================

Tests for REST API endpoints.

==============================================================================
"""

import io

import pytest
from fastapi.testclient import TestClient
from openpyxl import load_workbook

from stockroom.db.models import Customer, Product, User


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_health_check(self, client: TestClient):
        """Test health check returns status."""
        response = client.get("/api/v1/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] in ["healthy", "degraded"]
        assert data["components"]["database"] == "healthy"

    def test_readiness_probe(self, client: TestClient):
        """Test readiness probe."""
        response = client.get("/api/v1/health/ready")
        assert response.status_code == 200
        assert response.json()["ready"] is True

    def test_liveness_probe(self, client: TestClient):
        """Test liveness probe."""
        response = client.get("/api/v1/health/live")
        assert response.status_code == 200
        assert response.json()["alive"] is True


class TestAuthEndpoints:
    """Tests for authentication endpoints."""

    def test_register_creates_staff(self, client: TestClient):
        response = client.post(
            "/api/v1/auth/register",
            json={"name": "New Hire", "email": "New@Example.com", "password": "secret1"}
        )
        assert response.status_code == 201
        user = response.json()["user"]
        assert user["email"] == "new@example.com"
        assert user["role"] == "staff"

    def test_register_duplicate_email(self, client: TestClient, staff_user: User):
        response = client.post(
            "/api/v1/auth/register",
            json={"name": "Again", "email": staff_user.email, "password": "secret1"}
        )
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "EMAIL_EXISTS"

    def test_login_success(self, client: TestClient, admin_user: User):
        """Test successful login."""
        response = client.post(
            "/api/v1/auth/login",
            json={"email": admin_user.email, "password": "admin123"}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert "access_token" in data
        assert "refresh_token" in data
        assert data["user"]["email"] == admin_user.email

    def test_login_invalid_password(self, client: TestClient, admin_user: User):
        """Test login with invalid password."""
        response = client.post(
            "/api/v1/auth/login",
            json={"email": admin_user.email, "password": "wrongpassword"}
        )
        assert response.status_code == 401

    def test_login_user_not_found(self, client: TestClient):
        """Test login with nonexistent user."""
        response = client.post(
            "/api/v1/auth/login",
            json={"email": "ghost@example.com", "password": "password123"}
        )
        assert response.status_code == 401

    def test_refresh(self, client: TestClient, staff_user: User):
        login = client.post(
            "/api/v1/auth/login",
            json={"email": staff_user.email, "password": "staff123"}
        ).json()
        response = client.post(
            "/api/v1/auth/refresh",
            json={"refresh_token": login["refresh_token"]}
        )
        assert response.status_code == 200
        assert response.json()["user"]["id"] == staff_user.id

    def test_refresh_rejects_access_token(self, client: TestClient, staff_token: str):
        response = client.post("/api/v1/auth/refresh", json={"refresh_token": staff_token})
        assert response.status_code == 401

    def test_get_current_user(self, client: TestClient, admin_headers: dict, admin_user: User):
        """Test getting current user info."""
        response = client.get("/api/v1/auth/me", headers=admin_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["user"]["email"] == admin_user.email

    def test_get_current_user_no_token(self, client: TestClient):
        """Test getting current user without token."""
        response = client.get("/api/v1/auth/me")
        assert response.status_code == 401


class TestUserEndpoints:
    """Tests for user management endpoints."""

    def test_list_users(self, client: TestClient, admin_headers: dict, staff_user: User):
        """Test listing users."""
        response = client.get("/api/v1/users", headers=admin_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["total"] == 2
        assert data["page"] == 1

    def test_list_users_as_staff_fails(self, client: TestClient, staff_headers: dict):
        response = client.get("/api/v1/users", headers=staff_headers)
        assert response.status_code == 403

    def test_update_user(self, client: TestClient, admin_headers: dict, staff_user: User):
        response = client.put(
            f"/api/v1/users/{staff_user.id}",
            headers=admin_headers,
            json={"role": "admin", "is_active": False}
        )
        assert response.status_code == 200
        user = response.json()["user"]
        assert user["role"] == "admin"
        assert user["is_active"] is False

    def test_delete_user(self, client: TestClient, admin_headers: dict, staff_user: User):
        response = client.delete(f"/api/v1/users/{staff_user.id}", headers=admin_headers)
        assert response.status_code == 200

        response = client.get(f"/api/v1/users/{staff_user.id}", headers=admin_headers)
        assert response.status_code == 404

    def test_admin_cannot_delete_self(self, client: TestClient, admin_headers: dict, admin_user: User):
        response = client.delete(f"/api/v1/users/{admin_user.id}", headers=admin_headers)
        assert response.status_code == 403


class TestProductEndpoints:
    """Tests for product catalog endpoints."""

    def test_create_normalizes_sku(self, client: TestClient, staff_headers: dict):
        response = client.post(
            "/api/v1/products",
            headers=staff_headers,
            json={"name": "Bolt", "sku": " blt-10 ", "quantity": 0, "category": "Hardware"}
        )
        assert response.status_code == 201
        product = response.json()["product"]
        assert product["sku"] == "BLT-10"
        assert product["quantity"] == 0
        assert product["image"] is None

    def test_create_duplicate_sku(self, client: TestClient, staff_headers: dict, widget: Product):
        response = client.post(
            "/api/v1/products",
            headers=staff_headers,
            json={"name": "Other", "sku": widget.sku, "quantity": 1, "category": "Tools"}
        )
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "SKU_EXISTS"

    def test_create_negative_quantity(self, client: TestClient, staff_headers: dict):
        response = client.post(
            "/api/v1/products",
            headers=staff_headers,
            json={"name": "Bolt", "sku": "BLT", "quantity": -1, "category": "Hardware"}
        )
        assert response.status_code == 422

    def test_create_with_image(self, client: TestClient, staff_headers: dict):
        image = "data:image/png;base64,iVBORw0KGgo="
        response = client.post(
            "/api/v1/products",
            headers=staff_headers,
            json={"name": "Pic", "sku": "PIC", "quantity": 1, "category": "Misc", "image": image}
        )
        assert response.status_code == 201
        assert response.json()["product"]["image"] == image

    def test_create_rejects_non_image(self, client: TestClient, staff_headers: dict):
        response = client.post(
            "/api/v1/products",
            headers=staff_headers,
            json={
                "name": "Doc", "sku": "DOC", "quantity": 1, "category": "Misc",
                "image": "data:text/plain;base64,aGVsbG8="
            }
        )
        assert response.status_code == 422

    def test_requires_auth(self, client: TestClient):
        assert client.get("/api/v1/products").status_code == 401

    def test_list_search_and_sort(
        self, client: TestClient, staff_headers: dict, widget: Product, low_stock_product: Product
    ):
        response = client.get(
            "/api/v1/products",
            headers=staff_headers,
            params={"sort": "quantity", "order": "desc"}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert [p["sku"] for p in data["items"]] == [widget.sku, low_stock_product.sku]

        response = client.get(
            "/api/v1/products", headers=staff_headers, params={"search": "spares"}
        )
        assert [p["sku"] for p in response.json()["items"]] == [low_stock_product.sku]

    def test_list_pagination(self, client: TestClient, staff_headers: dict, widget: Product, low_stock_product: Product):
        response = client.get(
            "/api/v1/products",
            headers=staff_headers,
            params={"page": 2, "limit": 1, "sort": "name"}
        )
        data = response.json()
        assert data["pages"] == 2
        assert [p["name"] for p in data["items"]] == ["Widget"]

    def test_list_limit_bounds(self, client: TestClient, staff_headers: dict):
        response = client.get("/api/v1/products", headers=staff_headers, params={"limit": 101})
        assert response.status_code == 422

    def test_get_by_sku(self, client: TestClient, staff_headers: dict, widget: Product):
        response = client.get(f"/api/v1/products/sku/{widget.sku}", headers=staff_headers)
        assert response.status_code == 200
        assert response.json()["product"]["id"] == widget.id

    def test_get_by_sku_missing(self, client: TestClient, staff_headers: dict):
        response = client.get("/api/v1/products/sku/9999999999999", headers=staff_headers)
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "PRODUCT_NOT_FOUND"

    def test_update_and_delete(self, client: TestClient, staff_headers: dict, widget: Product):
        response = client.put(
            f"/api/v1/products/{widget.id}",
            headers=staff_headers,
            json={"quantity": 3}
        )
        assert response.status_code == 200
        assert response.json()["product"]["quantity"] == 3

        response = client.delete(f"/api/v1/products/{widget.id}", headers=staff_headers)
        assert response.status_code == 200
        response = client.get(f"/api/v1/products/{widget.id}", headers=staff_headers)
        assert response.status_code == 404

    def test_update_rejects_blank_sku(
        self, client: TestClient, staff_headers: dict, widget: Product
    ):
        response = client.put(
            f"/api/v1/products/{widget.id}",
            headers=staff_headers,
            json={"sku": "   "}
        )
        assert response.status_code == 422

        response = client.get(f"/api/v1/products/{widget.id}", headers=staff_headers)
        assert response.json()["product"]["sku"] == "0123456789012"

    def test_delete_product_in_order(self, client: TestClient, staff_headers: dict, orders: list, widget: Product):
        response = client.delete(f"/api/v1/products/{widget.id}", headers=staff_headers)
        assert response.status_code == 403

    def test_import_csv(self, client: TestClient, staff_headers: dict, widget: Product):
        content = (
            "name,sku,quantity,category\n"
            "Bolt,blt-1,10,Hardware\n"
            ",NONAME,1,Hardware\n"
            "Widget again,0123456789012,3,Tools\n"
            "Nut,nut-1,many,Hardware\n"
            "Washer,wsh-1,4,Hardware\n"
        )
        response = client.post(
            "/api/v1/products/import-csv",
            headers=staff_headers,
            files={"file": ("products.csv", content.encode("utf-8"), "text/csv")}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["imported"] == 2
        assert data["skipped_existing"] == 1
        assert data["skipped_invalid"] == 2

        response = client.get("/api/v1/products/sku/BLT-1", headers=staff_headers)
        assert response.status_code == 200

    def test_import_csv_missing_columns(self, client: TestClient, staff_headers: dict):
        response = client.post(
            "/api/v1/products/import-csv",
            headers=staff_headers,
            files={"file": ("products.csv", b"name,sku\nBolt,BLT\n", "text/csv")}
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_FILE"

    def test_export_csv(self, client: TestClient, staff_headers: dict, widget: Product):
        response = client.get("/api/v1/products/export", headers=staff_headers)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "products.csv" in response.headers["content-disposition"]
        lines = response.content.decode("utf-8").splitlines()
        assert lines[0] == "name,sku,quantity,category"
        assert lines[1] == "Widget,0123456789012,12,Tools"

    def test_export_xlsx(self, client: TestClient, staff_headers: dict, widget: Product):
        response = client.get(
            "/api/v1/products/export", headers=staff_headers, params={"format": "xlsx"}
        )
        assert response.status_code == 200
        ws = load_workbook(io.BytesIO(response.content)).active
        assert ws["A1"].value == "Name"
        assert ws["B2"].value == widget.sku
        assert ws["C2"].value == 12

    def test_export_unknown_format(self, client: TestClient, staff_headers: dict):
        response = client.get(
            "/api/v1/products/export", headers=staff_headers, params={"format": "pdf"}
        )
        assert response.status_code == 422


class TestCustomerEndpoints:
    """Tests for customer and supplier endpoints."""

    def test_create_customer(self, client: TestClient, staff_headers: dict):
        response = client.post(
            "/api/v1/customers",
            headers=staff_headers,
            json={"name": "Bo", "email": "BO@example.com", "phone": "555-0199"}
        )
        assert response.status_code == 201
        assert response.json()["customer"]["email"] == "bo@example.com"

    @pytest.mark.parametrize("field", ["email", "phone"])
    def test_duplicate_contact(self, client: TestClient, staff_headers: dict, customer: Customer, field: str):
        payload = {"name": "Copy", "email": "copy@example.com", "phone": "555-0000"}
        payload[field] = getattr(customer, field)
        response = client.post("/api/v1/customers", headers=staff_headers, json=payload)
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "CUSTOMER_EXISTS"

    def test_missing_phone(self, client: TestClient, staff_headers: dict):
        response = client.post(
            "/api/v1/customers",
            headers=staff_headers,
            json={"name": "Bo", "email": "bo@example.com"}
        )
        assert response.status_code == 422

    def test_search_customers(self, client: TestClient, staff_headers: dict, customer: Customer):
        response = client.get("/api/v1/customers", headers=staff_headers, params={"search": "0100"})
        assert response.json()["total"] == 1
        response = client.get("/api/v1/customers", headers=staff_headers, params={"search": "nobody"})
        assert response.json()["total"] == 0

    def test_delete_customer_with_orders(self, client: TestClient, staff_headers: dict, orders: list, customer: Customer):
        response = client.delete(f"/api/v1/customers/{customer.id}", headers=staff_headers)
        assert response.status_code == 403

    def test_supplier_crud(self, client: TestClient, staff_headers: dict):
        response = client.post(
            "/api/v1/suppliers",
            headers=staff_headers,
            json={"name": "Acme", "email": "sales@acme.test", "phone": "555-0142"}
        )
        assert response.status_code == 201
        supplier_id = response.json()["supplier"]["id"]

        response = client.put(
            f"/api/v1/suppliers/{supplier_id}",
            headers=staff_headers,
            json={"address": "1 Road"}
        )
        assert response.json()["supplier"]["address"] == "1 Road"

        assert client.get("/api/v1/suppliers", headers=staff_headers).json()["total"] == 1
        assert client.delete(f"/api/v1/suppliers/{supplier_id}", headers=staff_headers).status_code == 200
        assert client.get(f"/api/v1/suppliers/{supplier_id}", headers=staff_headers).status_code == 404


class TestOrderEndpoints:
    """Tests for order endpoints."""

    def test_create_order(self, client: TestClient, staff_headers: dict, customer: Customer, widget: Product):
        response = client.post(
            "/api/v1/orders",
            headers=staff_headers,
            json={
                "customer_id": customer.id,
                "items": [{"product_id": widget.id, "quantity": 3}],
                "total": 29.97
            }
        )
        assert response.status_code == 201
        order = response.json()["order"]
        assert order["status"] == "pending"
        assert order["customer_name"] == customer.name
        assert order["items"][0]["sku"] == widget.sku

    def test_create_order_unknown_product(self, client: TestClient, staff_headers: dict, customer: Customer):
        response = client.post(
            "/api/v1/orders",
            headers=staff_headers,
            json={
                "customer_id": customer.id,
                "items": [{"product_id": "missing", "quantity": 1}],
                "total": 1
            }
        )
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "PRODUCT_NOT_FOUND"

    def test_create_order_zero_quantity(self, client: TestClient, staff_headers: dict, customer: Customer, widget: Product):
        response = client.post(
            "/api/v1/orders",
            headers=staff_headers,
            json={
                "customer_id": customer.id,
                "items": [{"product_id": widget.id, "quantity": 0}],
                "total": 0
            }
        )
        assert response.status_code == 422

    def test_list_newest_first(self, client: TestClient, staff_headers: dict, orders: list):
        response = client.get("/api/v1/orders", headers=staff_headers)
        assert response.status_code == 200
        assert [o["total"] for o in response.json()["items"]] == [50.5, 100.0]

    def test_update_status(self, client: TestClient, staff_headers: dict, orders: list):
        response = client.put(
            f"/api/v1/orders/{orders[0].id}",
            headers=staff_headers,
            json={"status": "shipped"}
        )
        assert response.status_code == 200
        assert response.json()["order"]["status"] == "shipped"

    def test_delete_order(self, client: TestClient, staff_headers: dict, orders: list):
        response = client.delete(f"/api/v1/orders/{orders[0].id}", headers=staff_headers)
        assert response.status_code == 200
        assert client.get("/api/v1/orders", headers=staff_headers).json()["total"] == 1


class TestStatsEndpoints:

    def test_summary(
        self, client: TestClient, staff_headers: dict, orders: list, low_stock_product: Product
    ):
        response = client.get("/api/v1/stats/summary", headers=staff_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["product_count"] == 2
        assert data["order_count"] == 2
        assert data["low_stock_count"] == 1
        assert data["recent_sales"] == [
            {"month": 1, "total_sales": 100.0},
            {"month": 3, "total_sales": 50.5},
        ]
