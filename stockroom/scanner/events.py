"""
==============================================================================
Scan Event Models Module
==============================================================================

Value types shared by the decoder, debouncer and session controller.

Lifecycle:
---------
    ScanEvent          created per raw detection, dropped or consumed
         │
    ScanHistoryEntry   appended once per accepted scan, never mutated
         │
    ScanSession        snapshot of controller state for the presentation layer

==============================================================================
"""

from __future__ import annotations

import enum
import logging
from datetime import datetime
from typing import Callable, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field


# Module logger
logger = logging.getLogger(__name__)

T = TypeVar("T")


# =============================================================================
# ENUMS
# =============================================================================

class Symbology(str, enum.Enum):
    """Barcode encodings the decoder can be configured for."""

    CODE_128 = "code_128"
    EAN_13 = "ean_13"
    EAN_8 = "ean_8"
    UPC_A = "upc_a"
    UPC_E = "upc_e"
    CODE_39 = "code_39"
    CODABAR = "codabar"
    INTERLEAVED_2OF5 = "i2of5"
    STANDARD_2OF5 = "2of5"

    def __str__(self) -> str:
        return self.value


class ScanOutcome(str, enum.Enum):
    """Resolved result of a catalog lookup."""

    FOUND = "found"
    NOT_FOUND = "not_found"

    def __str__(self) -> str:
        return self.value


class SessionState(str, enum.Enum):
    """
    Scan session states.

    - IDLE: no decoder; ``begin_session`` allowed
    - ACTIVE: decoder running, detections flow to the debouncer
    - PAUSED: decoder still owns the camera, detections are dropped
    """

    IDLE = "idle"
    ACTIVE = "active"
    PAUSED = "paused"

    def __str__(self) -> str:
        return self.value


# =============================================================================
# VALUE MODELS
# =============================================================================

class ScanEvent(BaseModel):
    """A single raw detection emitted by the decoder."""

    model_config = ConfigDict(frozen=True)

    code: str = Field(..., min_length=1, description="Decoded barcode text")
    symbology: Symbology
    timestamp: datetime


class ScanHistoryEntry(BaseModel):
    """Accepted scan and its lookup outcome."""

    model_config = ConfigDict(frozen=True)

    code: str
    symbology: Symbology
    timestamp: datetime
    outcome: ScanOutcome

    @classmethod
    def from_event(cls, event: ScanEvent, outcome: ScanOutcome) -> "ScanHistoryEntry":
        return cls(
            code=event.code,
            symbology=event.symbology,
            timestamp=event.timestamp,
            outcome=outcome,
        )


class ScanSession(BaseModel):
    """Read-only snapshot of a controller's session."""

    model_config = ConfigDict(frozen=True)

    state: SessionState
    cooldown_until: Optional[datetime] = None


# =============================================================================
# SUBSCRIPTIONS
# =============================================================================

class Subscription(Generic[T]):
    """
    Handle returned by ``subscribe``.

    Calling ``unsubscribe`` detaches the listener; calling it again is a
    no-op.

    Example:
        >>> subscription = adapter.subscribe(print)
        >>> subscription.unsubscribe()
    """

    def __init__(self, listeners: List[Callable[[T], None]], listener: Callable[[T], None]) -> None:
        self._listeners = listeners
        self._listener = listener
        self._listeners.append(listener)

    @property
    def active(self) -> bool:
        return self._listener in self._listeners

    def unsubscribe(self) -> None:
        if self._listener in self._listeners:
            self._listeners.remove(self._listener)


def notify(listeners: List[Callable[[T], None]], value: T) -> None:
    """Deliver ``value`` to a snapshot of ``listeners`` in subscription order."""
    for listener in list(listeners):
        listener(value)
