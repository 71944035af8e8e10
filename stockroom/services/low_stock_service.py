"""
==============================================================================
Low Stock Service Module
==============================================================================

Background monitor for products running out of stock.

This module implements:
- LowStockService: finds low-stock products and sends the alert mail
- LowStockTaskManager: background asyncio task running the check

Background Task:
---------------
Every ``LOW_STOCK_CHECK_MINUTES`` the task:
1. Lists products with quantity below ``LOW_STOCK_THRESHOLD``
2. Logs them
3. Mails the list to ``ALERT_RECIPIENT`` when SMTP is configured

==============================================================================
"""

from __future__ import annotations

import asyncio
import logging
import smtplib
from email.message import EmailMessage
from typing import List, Optional

from sqlalchemy.orm import Session

from stockroom.config import get_settings
from stockroom.db.database import DatabaseManager
from stockroom.db.models import Product
from stockroom.services.product_service import ProductService


# Module logger
logger = logging.getLogger(__name__)


class LowStockService:
    """
    Low-stock check and alerting.

    Example:
        >>> service = LowStockService(db_session)
        >>> products = service.check()
    """

    SUBJECT = "⚠️ Low Stock Alert"

    def __init__(self, db: Session) -> None:
        self._db = db
        self._settings = get_settings()

    def find_low_stock(self) -> List[Product]:
        return ProductService(self._db).low_stock(self._settings.low_stock_threshold)

    @staticmethod
    def format_alert(products: List[Product]) -> str:
        """Plain-text mail body listing each product and its quantity."""
        lines = [f"• {p.name} [{p.sku}] (Qty: {p.quantity})" for p in products]
        return "The following products are low on stock:\n\n" + "\n".join(lines)

    def build_message(self, products: List[Product]) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = self.SUBJECT
        message["From"] = f"Inventory System <{self._settings.alert_sender}>"
        message["To"] = self._settings.alert_recipient
        message.set_content(self.format_alert(products))
        return message

    def send_alert(self, products: List[Product]) -> None:
        """
        Send the alert mail.

        Raises:
            smtplib.SMTPException, OSError: on delivery failure
        """
        settings = self._settings
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=30) as smtp:
            smtp.starttls()
            if settings.smtp_username and settings.smtp_password:
                smtp.login(settings.smtp_username, settings.smtp_password)
            smtp.send_message(self.build_message(products))

        logger.info(f"📧 Email sent: {len(products)} low-stock items")

    def check(self) -> List[Product]:
        """
        Run one check.

        Returns:
            The low-stock products found
        """
        products = self.find_low_stock()

        if not products:
            logger.info("✅ All stock levels okay")
            return products

        logger.warning(
            f"⚠️ {len(products)} products below {self._settings.low_stock_threshold}: "
            + ", ".join(p.sku for p in products)
        )

        if self._settings.smtp_enabled:
            self.send_alert(products)

        return products


class LowStockTaskManager:
    """
    Manager for the background low-stock task.

    Example:
        >>> manager = LowStockTaskManager()
        >>> manager.start()  # Start background task
        >>> # ... application runs ...
        >>> manager.stop()   # Stop on shutdown
    """

    _instance: Optional[LowStockTaskManager] = None

    def __new__(cls) -> LowStockTaskManager:
        """Singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self) -> None:
        if getattr(self, "_initialized", False):
            return

        self._settings = get_settings()
        self._task: Optional[asyncio.Task] = None
        self._running = False
        self._initialized = True

    def _run_check(self) -> None:
        with DatabaseManager().session_scope() as session:
            LowStockService(session).check()

    async def _monitor_loop(self) -> None:
        """Background monitor loop."""
        logger.info("🔄 Low-stock monitor started")

        while self._running:
            try:
                await asyncio.sleep(self._settings.low_stock_check_minutes * 60)

                if not self._settings.low_stock_alerts_enabled:
                    continue

                logger.debug("Running scheduled low-stock check...")
                await asyncio.to_thread(self._run_check)

            except asyncio.CancelledError:
                logger.info("🛑 Low-stock monitor cancelled")
                break
            except Exception as e:
                logger.error(f"Low-stock monitor error: {e}")

    def start(self) -> asyncio.Task:
        """
        Start the background task.

        Returns:
            The asyncio Task object
        """
        if self._task is None or self._task.done():
            self._running = True
            self._task = asyncio.create_task(self._monitor_loop())
            logger.info("✅ Low-stock task started")
        return self._task

    def stop(self) -> None:
        """Stop the background task."""
        self._running = False
        if self._task and not self._task.done():
            self._task.cancel()
            logger.info("🛑 Low-stock task stopped")

    @property
    def is_running(self) -> bool:
        return self._running and self._task is not None and not self._task.done()
