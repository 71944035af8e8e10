"""
Detection cooldown gate.

A detection is accepted only when strictly more than the cooldown has
elapsed since the last accepted one. The gate does not look at the code,
so the same barcode is accepted again once the cooldown has passed.
Elapsed time is measured between event timestamps.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from stockroom.config import get_settings
from stockroom.scanner.events import ScanEvent


logger = logging.getLogger(__name__)


class DetectionDebouncer:
    """
    Example:
        >>> gate = DetectionDebouncer(cooldown_ms=2000)
        >>> gate.accept(first)    # always accepted
        True
        >>> gate.accept(second)   # 500 ms later
        False
    """

    def __init__(self, cooldown_ms: Optional[int] = None) -> None:
        if cooldown_ms is None:
            cooldown_ms = get_settings().scan_cooldown_ms
        if cooldown_ms < 0:
            raise ValueError("cooldown_ms must be >= 0")

        self._cooldown = timedelta(milliseconds=cooldown_ms)
        self._last_accepted: Optional[datetime] = None

    @property
    def cooldown(self) -> timedelta:
        return self._cooldown

    @property
    def last_accepted(self) -> Optional[datetime]:
        return self._last_accepted

    @property
    def cooldown_until(self) -> Optional[datetime]:
        """End of the current cooldown window, or None before the first accept."""
        if self._last_accepted is None:
            return None
        return self._last_accepted + self._cooldown

    def accept(self, event: ScanEvent) -> bool:
        """Return True and start a new cooldown window if the event passes."""
        if self._last_accepted is not None:
            elapsed = event.timestamp - self._last_accepted
            if elapsed <= self._cooldown:
                logger.debug(
                    f"Detection dropped: {event.code} "
                    f"({elapsed.total_seconds() * 1000:.0f} ms after last accept)"
                )
                return False

        self._last_accepted = event.timestamp
        return True

    def reset(self) -> None:
        self._last_accepted = None
