"""
Application Exception Handling

Single AppException class for all application errors with FastAPI integration.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError


class AppException(Exception):
    """
    Unified application exception for all error scenarios.

    Provides consistent error response format across the API and the
    websocket scan channel.

    Usage:
        raise AppException("Invalid credentials", "INVALID_CREDENTIALS", 401)
        raise AppException("Camera unavailable", "CAMERA_UNAVAILABLE", 503)

    Error Codes:
        Authentication:
            - INVALID_CREDENTIALS (401)
            - TOKEN_EXPIRED (401)
            - TOKEN_INVALID (401)
            - ACCOUNT_DISABLED (403)

        Authorization:
            - FORBIDDEN (403)
            - ADMIN_REQUIRED (403)

        Records:
            - USER_NOT_FOUND / PRODUCT_NOT_FOUND / CUSTOMER_NOT_FOUND /
              SUPPLIER_NOT_FOUND / ORDER_NOT_FOUND (404)
            - EMAIL_EXISTS / SKU_EXISTS / CUSTOMER_EXISTS (409)

        Scanning:
            - CAMERA_UNAVAILABLE (503)
            - ALREADY_ACTIVE (409)
            - LOOKUP_FAILED (502)

        General:
            - VALIDATION_ERROR (422)
            - INVALID_FILE (400)
            - INVALID_MESSAGE / UNKNOWN_MESSAGE (400, websocket only)
    """

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize application exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code (e.g., "USER_NOT_FOUND")
            status_code: HTTP status code (default: 400)
            details: Additional error context (optional)
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        error_dict = {
            "success": False,
            "error": {
                "code": self.code,
                "message": self.message,
                "timestamp": self.timestamp
            }
        }

        if self.details:
            error_dict["error"]["details"] = self.details

        return error_dict


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    FastAPI exception handler for AppException.

    Converts AppException to consistent JSON error response.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(AppException, app_exception_handler)


# ============================================
# CONVENIENCE FACTORY FUNCTIONS
# ============================================

def invalid_credentials() -> AppException:
    """Create invalid credentials exception."""
    return AppException("Invalid email or password", "INVALID_CREDENTIALS", 401)


def token_expired() -> AppException:
    """Create token expired exception."""
    return AppException("Token has expired", "TOKEN_EXPIRED", 401)


def token_invalid() -> AppException:
    """Create invalid token exception."""
    return AppException("Invalid or malformed token", "TOKEN_INVALID", 401)


def account_disabled() -> AppException:
    """Create account disabled exception."""
    return AppException("Account has been disabled", "ACCOUNT_DISABLED", 403)


def forbidden(message: str = "Access denied") -> AppException:
    """Create forbidden access exception."""
    return AppException(message, "FORBIDDEN", 403)


def admin_required() -> AppException:
    """Create admin role required exception."""
    return AppException("Admin role required", "ADMIN_REQUIRED", 403)


def user_not_found(user_id: Optional[str] = None) -> AppException:
    """Create user not found exception."""
    details = {"user_id": user_id} if user_id else {}
    return AppException("User not found", "USER_NOT_FOUND", 404, details)


def email_exists(email: str) -> AppException:
    """Create email already in use exception."""
    return AppException(
        "Email already in use",
        "EMAIL_EXISTS",
        409,
        {"email": email}
    )


def product_not_found(key: Optional[str] = None) -> AppException:
    """Create product not found exception."""
    details = {"product": key} if key else {}
    return AppException("Product not found", "PRODUCT_NOT_FOUND", 404, details)


def sku_exists(sku: str) -> AppException:
    """Create duplicate SKU exception."""
    return AppException(
        f"SKU '{sku}' already exists",
        "SKU_EXISTS",
        409,
        {"sku": sku}
    )


def customer_not_found(customer_id: Optional[str] = None) -> AppException:
    """Create customer not found exception."""
    details = {"customer_id": customer_id} if customer_id else {}
    return AppException("Customer not found", "CUSTOMER_NOT_FOUND", 404, details)


def customer_exists() -> AppException:
    """Create duplicate customer contact exception."""
    return AppException("Email or phone already exists", "CUSTOMER_EXISTS", 409)


def supplier_not_found(supplier_id: Optional[str] = None) -> AppException:
    """Create supplier not found exception."""
    details = {"supplier_id": supplier_id} if supplier_id else {}
    return AppException("Supplier not found", "SUPPLIER_NOT_FOUND", 404, details)


def order_not_found(order_id: Optional[str] = None) -> AppException:
    """Create order not found exception."""
    details = {"order_id": order_id} if order_id else {}
    return AppException("Order not found", "ORDER_NOT_FOUND", 404, details)


def validation_error(missing: List[str]) -> AppException:
    """Create missing required fields exception."""
    return AppException(
        "All fields required",
        "VALIDATION_ERROR",
        422,
        {"missing_fields": missing}
    )


def invalid_fields(error: ValidationError) -> AppException:
    """Create rejected field values exception from a pydantic error."""
    fields = sorted({str(item["loc"][0]) for item in error.errors() if item["loc"]})
    return AppException(
        "Invalid product fields",
        "VALIDATION_ERROR",
        422,
        {"invalid_fields": fields}
    )


def invalid_message(reason: str) -> AppException:
    """Create undecodable websocket message exception."""
    return AppException(f"Invalid message: {reason}", "INVALID_MESSAGE", 400)


def invalid_file(reason: str) -> AppException:
    """Create invalid upload exception."""
    return AppException(f"Invalid file: {reason}", "INVALID_FILE", 400)


def camera_unavailable(reason: str = "Camera init failed") -> AppException:
    """Create camera permission/device failure exception."""
    return AppException(reason, "CAMERA_UNAVAILABLE", 503)


def already_active() -> AppException:
    """Create scan session already running exception."""
    return AppException("Scan session already active", "ALREADY_ACTIVE", 409)


def lookup_failed(reason: Optional[str] = None) -> AppException:
    """Create catalog unreachable exception."""
    details = {"reason": reason} if reason else {}
    return AppException("Lookup failed", "LOOKUP_FAILED", 502, details)
