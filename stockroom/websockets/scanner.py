"""
==============================================================================
Scanner WebSocket Module
==============================================================================

Browser-driven barcode scanning over a WebSocket.

The browser owns the camera and streams frames; the server decodes,
debounces, looks up and reports. Each connection owns one
ScanSessionController, closed when the socket goes away.

Protocol:
---------
1. Client connects to ``/ws/scan?token=<access token>``
2. Server sends ``{"type": "ready", ...}``
3. Client messages:
    {"type": "start"}
    {"type": "frame", "frame": "<base64 JPEG/PNG>"}
    {"type": "pause"} / {"type": "resume"} / {"type": "stop"}
    {"type": "create", "draft": {"name", "sku", "quantity", "category"}}
    {"type": "history"}
    {"type": "close"}
4. Server messages:
    {"type": "state", "state": "idle|active|paused", "cooldown_until": ...}
    {"type": "scan", "entry": {...}, "product": {...}|null, "draft": {...}|null}
    {"type": "created", "product": {...}}
    {"type": "history", "entries": [...]}
    {"type": "error", "code": "...", "message": "...", "details": {...}}

==============================================================================
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Any, Dict, List, Optional

import cv2
import numpy as np
from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from pydantic import ValidationError
from sqlalchemy.orm import Session

from stockroom.config import get_settings
from stockroom.core import exceptions
from stockroom.core.dependencies import AuthenticationManager
from stockroom.core.exceptions import AppException
from stockroom.core.security import get_security_manager
from stockroom.db.database import get_db
from stockroom.db.models import User
from stockroom.scanner import (
    DatabaseCatalog,
    DecoderAdapter,
    DetectionDebouncer,
    ProductDraft,
    ProductLookupWorkflow,
    QueueFrameSource,
    ScanResult,
    ScanSessionController,
    SessionState,
)


# Module logger
logger = logging.getLogger(__name__)

router = APIRouter()

# Close code for policy violations (RFC 6455)
WS_POLICY_VIOLATION = 1008
WS_INTERNAL_ERROR = 1011


def decode_frame_payload(payload: Any) -> np.ndarray:
    """
    Decode a base64 image, with or without a data URL prefix.

    Raises:
        AppException: INVALID_FILE if the payload is not an image
    """
    if not isinstance(payload, str) or not payload:
        raise exceptions.invalid_file("frame must be a base64 string")

    if payload.startswith("data:"):
        payload = payload.partition(",")[2]

    try:
        img_data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        raise exceptions.invalid_file("frame is not valid base64")

    frame = cv2.imdecode(np.frombuffer(img_data, np.uint8), cv2.IMREAD_COLOR)
    if frame is None:
        raise exceptions.invalid_file("frame is not a decodable image")
    return frame


class ScannerWebSocketHandler:
    """
    Handler for one scanning WebSocket connection.

    Manages the lifecycle of a scanning view:
    - Authentication
    - Session control messages
    - Frame decoding and result reporting
    """

    def __init__(self, websocket: WebSocket, db: Session) -> None:
        self._websocket = websocket
        self._db = db
        self._settings = get_settings()
        self._user: Optional[User] = None

        self._frames = QueueFrameSource(self._settings.scanner_queue_size)
        self._results: List[ScanResult] = []
        self._controller = ScanSessionController(
            decoder_factory=self._create_decoder,
            workflow=ProductLookupWorkflow(DatabaseCatalog(db)),
            debouncer=DetectionDebouncer(self._settings.scan_cooldown_ms),
        )
        self._controller.subscribe(self._results.append)

        self._handlers = {
            "start": self.handle_start,
            "frame": self.handle_frame,
            "pause": self.handle_pause,
            "resume": self.handle_resume,
            "stop": self.handle_stop,
            "create": self.handle_create,
            "history": self.handle_history,
        }

    def _create_decoder(self) -> DecoderAdapter:
        return DecoderAdapter(self._frames, self._settings.symbology_list)

    # =========================================================================
    # OUTGOING MESSAGES
    # =========================================================================

    async def send(self, message_type: str, **payload: Any) -> None:
        await self._websocket.send_json({"type": message_type, **payload})

    async def send_error(self, error: AppException) -> None:
        await self.send(
            "error",
            code=error.code,
            message=error.message,
            details=error.details,
        )

    async def send_state(self) -> None:
        session = self._controller.session.model_dump(mode="json")
        await self.send("state", **session)

    async def flush_results(self) -> None:
        while self._results:
            result = self._results.pop(0)
            await self.send("scan", **result.model_dump(mode="json"))

    # =========================================================================
    # AUTHENTICATION
    # =========================================================================

    def authenticate(self, token: Optional[str]) -> User:
        """
        Raises:
            AppException: token or account errors
        """
        auth = AuthenticationManager(get_security_manager(), self._db)
        return auth.get_current_user_ws(token)

    # =========================================================================
    # MESSAGE HANDLERS
    # =========================================================================

    async def handle_start(self, data: Dict[str, Any]) -> None:
        self._controller.begin_session()
        await self.send_state()

    async def handle_frame(self, data: Dict[str, Any]) -> None:
        if self._controller.state == SessionState.IDLE:
            logger.debug("Frame ignored: no active session")
            return

        self._frames.push(decode_frame_payload(data.get("frame")))

        try:
            self._controller.pump()
        finally:
            await self.flush_results()

        if self._controller.state == SessionState.IDLE:
            await self.send_state()

    async def handle_pause(self, data: Dict[str, Any]) -> None:
        self._controller.pause()
        await self.send_state()

    async def handle_resume(self, data: Dict[str, Any]) -> None:
        self._controller.resume()
        await self.send_state()

    async def handle_stop(self, data: Dict[str, Any]) -> None:
        self._controller.end_session()
        await self.send_state()

    async def handle_create(self, data: Dict[str, Any]) -> None:
        fields = data.get("draft")
        if not isinstance(fields, dict):
            raise exceptions.validation_error(list(ProductDraft.REQUIRED))

        try:
            draft = ProductDraft.model_validate(
                {key: value for key, value in fields.items() if value != ""}
            )
        except ValidationError as e:
            raise exceptions.invalid_fields(e)

        product = self._controller.submit_draft(draft)
        await self.send("created", product=product.model_dump(mode="json"))

    async def handle_history(self, data: Dict[str, Any]) -> None:
        await self.send(
            "history",
            entries=[entry.model_dump(mode="json") for entry in self._controller.history],
        )

    # =========================================================================
    # MAIN LOOP
    # =========================================================================

    async def receive_message(self) -> Dict[str, Any]:
        """
        Raises:
            AppException: INVALID_MESSAGE if the text is not a JSON object
        """
        text = await self._websocket.receive_text()
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            raise exceptions.invalid_message("not valid JSON")
        if not isinstance(data, dict):
            raise exceptions.invalid_message("expected a JSON object")
        return data

    async def run(self, token: Optional[str]) -> None:
        """Main handler loop."""
        await self._websocket.accept()

        try:
            self._user = self.authenticate(token)
        except AppException as e:
            logger.warning(f"Scanner WebSocket rejected: {e.code}")
            await self.send_error(e)
            await self._websocket.close(code=WS_POLICY_VIOLATION)
            return

        logger.info(f"📱 Scanner WebSocket connected: {self._user.email}")

        try:
            await self.send(
                "ready",
                user=self._user.email,
                state=self._controller.state.value,
                cooldown_ms=self._settings.scan_cooldown_ms,
            )

            while True:
                try:
                    data = await self.receive_message()
                except AppException as e:
                    await self.send_error(e)
                    continue

                message_type = data.get("type")

                if message_type == "close":
                    logger.info("🛑 Client requested close")
                    await self._websocket.close()
                    break

                handler = self._handlers.get(message_type)
                if handler is None:
                    await self.send_error(AppException(
                        f"Unknown message type: {message_type}",
                        "UNKNOWN_MESSAGE",
                        400
                    ))
                    continue

                try:
                    await handler(data)
                except AppException as e:
                    await self.send_error(e)
                    if message_type in ("start", "frame"):
                        await self.send_state()

        except WebSocketDisconnect:
            logger.info("📱 Client disconnected")
        except Exception as e:
            logger.error(f"Scanner WebSocket error: {e}")
            await self._websocket.close(code=WS_INTERNAL_ERROR)
        finally:
            self._controller.close()
            logger.info("✅ Scanner WebSocket closed")


@router.websocket("/ws/scan")
async def websocket_scan(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    db: Session = Depends(get_db)
):
    """Real-time barcode scanning via WebSocket."""
    handler = ScannerWebSocketHandler(websocket, db)
    await handler.run(token)
