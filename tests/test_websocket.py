"""
==============================================================================
Scanner WebSocket Tests
==============================================================================

Browser-style scanning over /ws/scan with pyzbar patched out.

==============================================================================
"""

import base64
from types import SimpleNamespace
from unittest.mock import patch

import cv2
import numpy as np
import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from stockroom.core.exceptions import AppException
from stockroom.db.models import Product
from stockroom.scanner import decoder
from stockroom.websockets.scanner import ScannerWebSocketHandler, decode_frame_payload


def encoded_frame(data_url: bool = False) -> str:
    ok, buffer = cv2.imencode(".png", np.zeros((16, 16, 3), dtype=np.uint8))
    assert ok
    payload = base64.b64encode(buffer.tobytes()).decode("ascii")
    return f"data:image/png;base64,{payload}" if data_url else payload


def ean13(code: str):
    return [SimpleNamespace(data=code.encode(), type="EAN13", rect=(0, 0, 8, 8))]


class TestDecodeFramePayload:

    def test_accepts_data_url(self):
        frame = decode_frame_payload(encoded_frame(data_url=True))
        assert frame.shape == (16, 16, 3)

    @pytest.mark.parametrize("payload", [None, "", "not base64!!", base64.b64encode(b"text").decode()])
    def test_rejects_non_images(self, payload):
        with pytest.raises(AppException) as exc:
            decode_frame_payload(payload)
        assert exc.value.code == "INVALID_FILE"


class TestScannerWebSocket:

    def test_rejects_missing_token(self, client: TestClient):
        with client.websocket_connect("/ws/scan") as ws:
            message = ws.receive_json()
            assert message["type"] == "error"
            assert message["code"] == "TOKEN_INVALID"
            with pytest.raises(WebSocketDisconnect):
                ws.receive_json()

    def test_scan_known_product(self, client: TestClient, staff_token: str, widget: Product):
        with client.websocket_connect(f"/ws/scan?token={staff_token}") as ws:
            ready = ws.receive_json()
            assert ready["type"] == "ready"
            assert ready["state"] == "idle"
            assert ready["cooldown_ms"] == 2000

            ws.send_json({"type": "start"})
            assert ws.receive_json() == {"type": "state", "state": "active", "cooldown_until": None}

            with patch.object(decoder, "decode", return_value=ean13(widget.sku)):
                ws.send_json({"type": "frame", "frame": encoded_frame()})
                scan = ws.receive_json()

            assert scan["type"] == "scan"
            assert scan["entry"]["outcome"] == "found"
            assert scan["entry"]["symbology"] == "ean_13"
            assert scan["product"]["id"] == widget.id
            assert scan["draft"] is None

            state = ws.receive_json()
            assert state["state"] == "idle"
            assert state["cooldown_until"] is not None

            ws.send_json({"type": "history"})
            history = ws.receive_json()
            assert [e["code"] for e in history["entries"]] == [widget.sku]

            ws.send_json({"type": "close"})

    def test_miss_then_create(self, client: TestClient, staff_token: str, db):
        with client.websocket_connect(f"/ws/scan?token={staff_token}") as ws:
            ws.receive_json()
            ws.send_json({"type": "start"})
            ws.receive_json()

            with patch.object(decoder, "decode", return_value=ean13("9999999999999")):
                ws.send_json({"type": "frame", "frame": encoded_frame()})
                scan = ws.receive_json()
            ws.receive_json()

            assert scan["entry"]["outcome"] == "not_found"
            draft = scan["draft"]
            assert draft["sku"] == "9999999999999"

            draft.update(name="", quantity=3, category="Toys")
            ws.send_json({"type": "create", "draft": draft})
            error = ws.receive_json()
            assert error["code"] == "VALIDATION_ERROR"
            assert error["details"]["missing_fields"] == ["name"]
            assert db.query(Product).count() == 0

            draft["name"] = "Gizmo"
            ws.send_json({"type": "create", "draft": draft})
            created = ws.receive_json()
            assert created["type"] == "created"
            assert created["product"]["sku"] == "9999999999999"

    def test_start_twice(self, client: TestClient, staff_token: str):
        with client.websocket_connect(f"/ws/scan?token={staff_token}") as ws:
            ws.receive_json()
            ws.send_json({"type": "start"})
            ws.receive_json()

            ws.send_json({"type": "start"})
            error = ws.receive_json()
            assert error["code"] == "ALREADY_ACTIVE"
            assert ws.receive_json()["state"] == "active"

    def test_pause_and_resume(self, client: TestClient, staff_token: str):
        with client.websocket_connect(f"/ws/scan?token={staff_token}") as ws:
            ws.receive_json()
            ws.send_json({"type": "start"})
            ws.receive_json()

            ws.send_json({"type": "pause"})
            assert ws.receive_json()["state"] == "paused"
            ws.send_json({"type": "resume"})
            assert ws.receive_json()["state"] == "active"
            ws.send_json({"type": "stop"})
            assert ws.receive_json()["state"] == "idle"

    def test_bad_frame_and_unknown_message(self, client: TestClient, staff_token: str):
        with client.websocket_connect(f"/ws/scan?token={staff_token}") as ws:
            ws.receive_json()
            ws.send_json({"type": "start"})
            ws.receive_json()

            ws.send_json({"type": "frame", "frame": "####"})
            assert ws.receive_json()["code"] == "INVALID_FILE"
            assert ws.receive_json()["state"] == "active"

            ws.send_json({"type": "dance"})
            assert ws.receive_json()["code"] == "UNKNOWN_MESSAGE"

    def test_malformed_messages_keep_connection(self, client: TestClient, staff_token: str):
        with client.websocket_connect(f"/ws/scan?token={staff_token}") as ws:
            ws.receive_json()

            ws.send_text("{not json")
            error = ws.receive_json()
            assert error["type"] == "error"
            assert error["code"] == "INVALID_MESSAGE"

            ws.send_json(["start"])
            assert ws.receive_json()["code"] == "INVALID_MESSAGE"

            ws.send_json({"type": "history"})
            assert ws.receive_json() == {"type": "history", "entries": []}

    def test_unexpected_error_closes_socket(self, client: TestClient, staff_token: str):
        with patch.object(
            ScannerWebSocketHandler, "handle_history", side_effect=RuntimeError("boom")
        ):
            with client.websocket_connect(f"/ws/scan?token={staff_token}") as ws:
                ws.receive_json()
                ws.send_json({"type": "history"})
                with pytest.raises(WebSocketDisconnect) as exc:
                    ws.receive_json()
                assert exc.value.code == 1011

    def test_create_with_invalid_quantity(self, client: TestClient, staff_token: str, db):
        with client.websocket_connect(f"/ws/scan?token={staff_token}") as ws:
            ws.receive_json()
            ws.send_json({"type": "create", "draft": {
                "name": "Gizmo", "sku": "NEW-1", "quantity": "lots", "category": "Toys"
            }})
            error = ws.receive_json()
            assert error["code"] == "VALIDATION_ERROR"
            assert error["details"]["invalid_fields"] == ["quantity"]
            assert db.query(Product).count() == 0
