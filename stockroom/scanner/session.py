"""
==============================================================================
Scan Session Controller Module
==============================================================================

Orchestrates one view's scanning: decoder lifecycle, cooldown gate,
lookup and the session-scoped history.

State Machine:
-------------
               begin_session()
    ┌──────┐ ─────────────────▶ ┌────────┐  pause()  ┌────────┐
    │ IDLE │                    │ ACTIVE │ ────────▶ │ PAUSED │
    └──────┘ ◀───────────────── └────────┘ ◀──────── └────────┘
        ▲     end_session() /        │      resume()      │
        │     accepted detection     │                    │
        └────────────────────────────┴────── end_session()┘

Accepted Detection:
------------------
1. Stop the decoder (no second detection can be accepted)
2. Move to IDLE (scanning is one scan per begin_session)
3. Play the audio confirmation (errors ignored)
4. Look the code up
5. Append a history entry with the outcome
6. Notify result subscribers

A LOOKUP_FAILED error skips steps 5 and 6 and is raised to the caller
driving the frames.

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Tuple

from pydantic import BaseModel

from stockroom.core import exceptions
from stockroom.core.exceptions import AppException
from stockroom.schemas.product import ProductDetail
from stockroom.scanner.debouncer import DetectionDebouncer
from stockroom.scanner.decoder import DecoderAdapter
from stockroom.scanner.events import (
    ScanEvent,
    ScanHistoryEntry,
    ScanSession,
    SessionState,
    Subscription,
    notify,
)
from stockroom.scanner.workflow import AudioCue, ProductDraft, ProductLookupWorkflow


# Module logger
logger = logging.getLogger(__name__)

DecoderFactory = Callable[[], DecoderAdapter]


class ScanResult(BaseModel):
    """Delivered to result subscribers after each accepted scan."""

    entry: ScanHistoryEntry
    product: Optional[ProductDetail] = None
    draft: Optional[ProductDraft] = None


class ScanSessionController:
    """
    Single-shot scan session controller.

    One controller exists per view (websocket connection or scan
    station). It creates a fresh DecoderAdapter for every session.

    Attributes:
        _decoder_factory: Builds an unstarted DecoderAdapter
        _workflow: Lookup/create workflow
        _debouncer: Cooldown gate, reset per session
        _audio: Confirmation cue
        _history: Append-only log of accepted scans

    Example:
        >>> controller = ScanSessionController(
        ...     decoder_factory=lambda: DecoderAdapter(CameraFrameSource()),
        ...     workflow=ProductLookupWorkflow(DatabaseCatalog(db)),
        ... )
        >>> controller.subscribe(show_result)
        >>> controller.begin_session()
        >>> controller.pump()
    """

    def __init__(
        self,
        decoder_factory: DecoderFactory,
        workflow: ProductLookupWorkflow,
        debouncer: Optional[DetectionDebouncer] = None,
        audio: Optional[AudioCue] = None
    ) -> None:
        self._decoder_factory = decoder_factory
        self._workflow = workflow
        self._debouncer = debouncer or DetectionDebouncer()
        self._audio = audio or AudioCue()

        self._state = SessionState.IDLE
        self._adapter: Optional[DecoderAdapter] = None
        self._decoder_subscription: Optional[Subscription] = None
        self._history: List[ScanHistoryEntry] = []
        self._listeners: List[Callable[[ScanResult], None]] = []
        self._last_error: Optional[AppException] = None

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session(self) -> ScanSession:
        return ScanSession(
            state=self._state,
            cooldown_until=self._debouncer.cooldown_until,
        )

    @property
    def history(self) -> Tuple[ScanHistoryEntry, ...]:
        """Accepted scans, oldest first."""
        return tuple(self._history)

    @property
    def last_error(self) -> Optional[AppException]:
        return self._last_error

    @property
    def workflow(self) -> ProductLookupWorkflow:
        return self._workflow

    # =========================================================================
    # SESSION LIFECYCLE
    # =========================================================================

    def begin_session(self) -> None:
        """
        Start a new scan.

        Raises:
            AppException: ALREADY_ACTIVE if a session is running
            AppException: CAMERA_UNAVAILABLE if the decoder cannot start;
                the session stays IDLE
        """
        if self._state != SessionState.IDLE:
            logger.warning(f"begin_session while {self._state.value}")
            raise exceptions.already_active()

        self._debouncer.reset()
        self._last_error = None

        adapter = self._decoder_factory()
        try:
            adapter.start()
        except AppException as e:
            self._last_error = e
            adapter.stop()
            logger.warning(f"Scan session not started: {e.code} - {e.message}")
            raise

        self._adapter = adapter
        self._decoder_subscription = adapter.subscribe(self._on_detection)
        self._state = SessionState.ACTIVE

        logger.info("▶️ Scan session active")

    def end_session(self) -> None:
        """Stop scanning. No-op when already IDLE."""
        if self._state == SessionState.IDLE:
            return

        self._release_decoder()
        self._state = SessionState.IDLE

        logger.info("⏹️ Scan session ended")

    def pause(self) -> None:
        """Keep the camera but drop detections. No-op unless ACTIVE."""
        if self._state == SessionState.ACTIVE:
            self._state = SessionState.PAUSED
            logger.info("⏸️ Scan session paused")

    def resume(self) -> None:
        """No-op unless PAUSED."""
        if self._state == SessionState.PAUSED:
            self._state = SessionState.ACTIVE
            logger.info("▶️ Scan session resumed")

    def pump(self) -> int:
        """
        Run the active decoder over available frames.

        For a camera source this blocks until a scan is accepted, the
        session ends or the stream ends. For a queue source it drains the
        queued frames and returns.

        Returns:
            Number of detections seen

        Raises:
            AppException: LOOKUP_FAILED from the lookup of an accepted scan
        """
        adapter = self._adapter
        if adapter is None or self._state == SessionState.IDLE:
            return 0
        return adapter.run()

    def close(self) -> None:
        """Tear down the view: end the session, clear history and listeners."""
        self.end_session()
        self._history.clear()
        self._listeners.clear()
        logger.debug("Scan controller closed")

    def _release_decoder(self) -> None:
        if self._decoder_subscription is not None:
            self._decoder_subscription.unsubscribe()
            self._decoder_subscription = None
        if self._adapter is not None:
            adapter, self._adapter = self._adapter, None
            adapter.stop()

    # =========================================================================
    # RESULTS
    # =========================================================================

    def subscribe(self, listener: Callable[[ScanResult], None]) -> Subscription:
        return Subscription(self._listeners, listener)

    def submit_draft(self, draft: ProductDraft) -> ProductDetail:
        """Create the product for a missed scan."""
        return self._workflow.submit(draft)

    # =========================================================================
    # DETECTION HANDLING
    # =========================================================================

    def _on_detection(self, event: ScanEvent) -> None:
        if self._state != SessionState.ACTIVE:
            logger.debug(f"Detection dropped while {self._state.value}: {event.code}")
            return

        if not self._debouncer.accept(event):
            return

        self._handle_accepted(event)

    def _handle_accepted(self, event: ScanEvent) -> None:
        logger.info(f"📦 Accepted {event.symbology.value} {event.code}")

        self._release_decoder()
        self._state = SessionState.IDLE

        try:
            self._audio.play_confirmation()
        except Exception as e:
            logger.debug(f"Audio confirmation failed: {e}")

        try:
            lookup = self._workflow.lookup(event.code)
        except AppException as e:
            self._last_error = e
            logger.warning(f"Scan of {event.code} not recorded: {e.code}")
            raise

        entry = ScanHistoryEntry.from_event(event, lookup.outcome)
        self._history.append(entry)

        notify(self._listeners, ScanResult(
            entry=entry,
            product=lookup.product,
            draft=lookup.draft,
        ))
