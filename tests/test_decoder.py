"""
==============================================================================
Decoder Adapter Tests
==============================================================================

pyzbar is replaced with canned barcodes; frames are blank images.

==============================================================================
"""

import logging
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from stockroom.core.exceptions import AppException
from stockroom.scanner import decoder
from stockroom.scanner.decoder import (
    CameraFrameSource,
    DecoderAdapter,
    FrameSource,
    OpenCVWindowPreview,
    PreviewSurface,
    QueueFrameSource,
    decode_frame,
    resolve_symbologies,
)
from stockroom.scanner.events import Symbology


T0 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def blank_frame() -> np.ndarray:
    return np.zeros((40, 40, 3), dtype=np.uint8)


def barcode(data: bytes, kind: str = "EAN13", rect=(1, 2, 30, 10)):
    return SimpleNamespace(data=data, type=kind, rect=rect)


class FailingSource(FrameSource):
    def __init__(self):
        self.released = False

    def open(self):
        raise AppException("Cannot open camera 0", "CAMERA_UNAVAILABLE", 503)

    def read(self):
        return None

    def release(self):
        self.released = True


class TestDecodeFrame:

    def test_decodes_enabled_symbology(self):
        with patch.object(decoder, "decode", return_value=[barcode(b"0123456789012")]):
            found = decode_frame(blank_frame(), [Symbology.EAN_13], T0)

        assert len(found) == 1
        assert found[0].event.code == "0123456789012"
        assert found[0].event.symbology == Symbology.EAN_13
        assert found[0].event.timestamp == T0
        assert found[0].rect == (1, 2, 30, 10)

    def test_passes_only_enabled_symbols_to_zbar(self):
        with patch.object(decoder, "decode", return_value=[]) as fake:
            decode_frame(blank_frame(), [Symbology.CODE_128, Symbology.UPC_A], T0)

        symbols = fake.call_args.kwargs["symbols"]
        assert symbols == [decoder.ZBarSymbol.CODE128, decoder.ZBarSymbol.UPCA]

    def test_skips_disabled_and_unknown_types(self):
        barcodes = [
            barcode(b"0123456789012", "EAN13"),
            barcode(b"https://example.com", "QRCODE"),
            barcode(b"A-1", "CODE128"),
        ]
        with patch.object(decoder, "decode", return_value=barcodes):
            found = decode_frame(blank_frame(), [Symbology.CODE_128], T0)

        assert [d.event.code for d in found] == ["A-1"]

    def test_skips_undecodable_and_blank_payloads(self):
        barcodes = [barcode(b"\xff\xfe", "CODE128"), barcode(b"   ", "CODE128")]
        with patch.object(decoder, "decode", return_value=barcodes):
            assert decode_frame(blank_frame(), [Symbology.CODE_128], T0) == []

    def test_decoder_error_yields_nothing(self):
        with patch.object(decoder, "decode", side_effect=RuntimeError("zbar crashed")):
            assert decode_frame(blank_frame(), [Symbology.CODE_128], T0) == []

    def test_only_unsupported_symbology_skips_zbar(self):
        with patch.object(decoder, "decode") as fake:
            assert decode_frame(blank_frame(), [Symbology.STANDARD_2OF5], T0) == []
        fake.assert_not_called()


class TestResolveSymbologies:

    def test_normalizes_and_dedupes(self):
        assert resolve_symbologies([" EAN_13", "ean_13", "code_128"]) == [
            Symbology.EAN_13,
            Symbology.CODE_128,
        ]

    def test_unknown_name(self):
        with pytest.raises(ValueError):
            resolve_symbologies(["qr"])


class TestQueueFrameSource:

    def test_push_while_closed_is_ignored(self):
        source = QueueFrameSource(maxsize=2)
        assert source.push(blank_frame()) is False
        assert len(source) == 0

    def test_drops_oldest_when_full(self):
        source = QueueFrameSource(maxsize=2)
        source.open()
        frames = [np.full((2, 2, 3), i, dtype=np.uint8) for i in range(3)]
        for frame in frames:
            source.push(frame)

        assert source.read()[0, 0, 0] == 1
        assert source.read()[0, 0, 0] == 2
        assert source.read() is None

    def test_release_clears(self):
        source = QueueFrameSource(maxsize=2)
        source.open()
        source.push(blank_frame())
        source.release()
        assert not source.is_open
        assert source.read() is None


class TestCameraFrameSource:

    def test_unopenable_camera(self):
        cap = MagicMock()
        cap.isOpened.return_value = False
        with patch.object(decoder.cv2, "VideoCapture", return_value=cap):
            source = CameraFrameSource(camera_index=3)
            with pytest.raises(AppException) as exc:
                source.open()

        assert exc.value.code == "CAMERA_UNAVAILABLE"
        cap.release.assert_called_once()

    def test_failed_read_ends_stream(self):
        cap = MagicMock()
        cap.isOpened.return_value = True
        cap.read.return_value = (False, None)
        with patch.object(decoder.cv2, "VideoCapture", return_value=cap):
            source = CameraFrameSource(camera_index=0, width=640, height=480)
            source.open()
            assert source.read() is None
            source.release()

        cap.set.assert_any_call(decoder.cv2.CAP_PROP_FRAME_WIDTH, 640)
        cap.release.assert_called_once()


class TestDecoderAdapter:

    def make_adapter(self, source=None, preview=None):
        return DecoderAdapter(
            source or QueueFrameSource(maxsize=4),
            symbologies=["ean_13", "code_128"],
            preview=preview,
            clock=lambda: T0,
        )

    def test_run_dispatches_in_order(self):
        source = QueueFrameSource(maxsize=4)
        adapter = self.make_adapter(source)
        received = []
        adapter.subscribe(received.append)

        barcodes = [barcode(b"111", "CODE128"), barcode(b"222", "CODE128")]
        with adapter, patch.object(decoder, "decode", return_value=barcodes):
            source.push(blank_frame())
            assert adapter.run() == 2

        assert [e.code for e in received] == ["111", "222"]
        assert adapter.state == DecoderAdapter.STATE_STOPPED

    def test_stop_is_idempotent_and_final(self):
        adapter = self.make_adapter()
        adapter.start()
        adapter.stop()
        adapter.stop()

        with pytest.raises(RuntimeError):
            adapter.start()
        assert list(adapter.detections()) == []

    def test_start_failure_releases_source(self):
        source = FailingSource()
        adapter = self.make_adapter(source)

        with pytest.raises(AppException):
            adapter.start()

        assert source.released
        assert adapter.state == DecoderAdapter.STATE_STOPPED

    def test_listener_error_stops_adapter(self):
        source = QueueFrameSource(maxsize=4)
        adapter = self.make_adapter(source)

        def explode(event):
            raise ValueError("boom")

        adapter.subscribe(explode)
        adapter.start()
        source.push(blank_frame())

        with patch.object(decoder, "decode", return_value=[barcode(b"111", "CODE128")]):
            with pytest.raises(ValueError):
                adapter.run()

        assert not adapter.is_running
        assert not source.is_open

    def test_stop_from_listener_drops_rest_of_frame(self):
        source = QueueFrameSource(maxsize=4)
        adapter = self.make_adapter(source)
        received = []

        def first_only(event):
            received.append(event)
            adapter.stop()

        adapter.subscribe(first_only)
        adapter.start()
        source.push(blank_frame())

        barcodes = [barcode(b"111", "CODE128"), barcode(b"222", "CODE128")]
        with patch.object(decoder, "decode", return_value=barcodes):
            assert adapter.run() == 1

        assert [e.code for e in received] == ["111"]

    def test_unsubscribe(self):
        source = QueueFrameSource(maxsize=4)
        adapter = self.make_adapter(source)
        received = []
        subscription = adapter.subscribe(received.append)
        subscription.unsubscribe()
        subscription.unsubscribe()
        assert not subscription.active

        adapter.start()
        source.push(blank_frame())
        with patch.object(decoder, "decode", return_value=[barcode(b"111", "CODE128")]):
            adapter.run()
        assert received == []

    def test_preview_can_stop_scanning(self):
        preview = MagicMock(spec=PreviewSurface)
        preview.show.return_value = False
        source = QueueFrameSource(maxsize=4)
        adapter = self.make_adapter(source, preview)
        received = []
        adapter.subscribe(received.append)

        adapter.start()
        source.push(blank_frame())
        with patch.object(decoder, "decode", return_value=[barcode(b"111", "CODE128")]):
            adapter.run()

        assert received == []
        preview.attach.assert_called_once()
        preview.detach.assert_called_once()

    def test_warns_on_unsupported_symbology(self, caplog):
        with caplog.at_level(logging.WARNING, logger="stockroom.scanner.decoder"):
            DecoderAdapter(QueueFrameSource(maxsize=1), symbologies=["2of5", "ean_13"])
        assert "2of5" in caplog.text


@pytest.fixture
def highgui():
    """OpenCV window calls replaced with mocks; ``waitKey`` returns no key."""
    with patch.object(decoder.cv2, "namedWindow") as named, \
            patch.object(decoder.cv2, "imshow") as imshow, \
            patch.object(decoder.cv2, "waitKey", return_value=-1) as wait_key, \
            patch.object(decoder.cv2, "destroyWindow") as destroy:
        yield SimpleNamespace(
            namedWindow=named, imshow=imshow, waitKey=wait_key, destroyWindow=destroy
        )


class TestOpenCVWindowPreview:

    def test_attach_show_detach(self, highgui):
        preview = OpenCVWindowPreview("Test")
        preview.attach()
        highgui.namedWindow.assert_called_once_with("Test", decoder.cv2.WINDOW_NORMAL)

        assert preview.show(blank_frame(), []) is True
        highgui.imshow.assert_called_once()

        preview.detach()
        preview.detach()
        highgui.destroyWindow.assert_called_once_with("Test")

    def test_q_key_stops(self, highgui):
        highgui.waitKey.return_value = ord("q")
        preview = OpenCVWindowPreview()
        preview.attach()
        assert preview.show(blank_frame(), []) is False

    def test_missing_gui_support(self, highgui):
        highgui.namedWindow.side_effect = decoder.cv2.error("The function is not implemented")
        preview = OpenCVWindowPreview()

        with pytest.raises(AppException) as exc:
            preview.attach()

        assert exc.value.code == "CAMERA_UNAVAILABLE"
        preview.detach()
        highgui.destroyWindow.assert_not_called()

    def test_adapter_detaches_after_q(self, highgui):
        highgui.waitKey.return_value = ord("q")
        source = QueueFrameSource(maxsize=4)
        adapter = DecoderAdapter(
            source, symbologies=["code_128"], preview=OpenCVWindowPreview(), clock=lambda: T0
        )
        received = []
        adapter.subscribe(received.append)

        adapter.start()
        source.push(blank_frame())
        with patch.object(decoder, "decode", return_value=[barcode(b"111", "CODE128")]):
            adapter.run()

        assert received == []
        highgui.imshow.assert_called_once()
        highgui.destroyWindow.assert_called_once()
        assert not source.is_open

    def test_adapter_start_failure_releases_camera(self, highgui):
        highgui.namedWindow.side_effect = decoder.cv2.error("The function is not implemented")
        cap = MagicMock()
        cap.isOpened.return_value = True
        adapter = DecoderAdapter(
            CameraFrameSource(camera_index=0), symbologies=["ean_13"], preview=OpenCVWindowPreview()
        )

        with patch.object(decoder.cv2, "VideoCapture", return_value=cap):
            with pytest.raises(AppException):
                adapter.start()

        cap.release.assert_called_once()
        highgui.destroyWindow.assert_not_called()
        assert adapter.state == DecoderAdapter.STATE_STOPPED
