"""
==============================================================================
WebSocket Package
==============================================================================

Real-time WebSocket handlers.

Handlers:
---------
- scanner: Browser-driven barcode scanning with lookup-or-create

==============================================================================
"""

from .scanner import router as scanner_router

__all__ = ["scanner_router"]
