"""
==============================================================================
Barcode Decoder Adapter Module
==============================================================================

Bridges a stream of video frames to a stream of ScanEvents using OpenCV
and pyzbar.

Components:
----------
- FrameSource: where frames come from
    - CameraFrameSource: local camera via cv2.VideoCapture
    - QueueFrameSource: bounded buffer fed by websocket clients
- PreviewSurface: optional live preview
    - OpenCVWindowPreview: OpenCV window with detection boxes
- DecoderAdapter: owns the source for one session and emits ScanEvents

Lifecycle:
---------
    new ──start()──▶ running ──stop()──▶ stopped
                                  ▲
            start() failure ──────┘

A stopped adapter cannot be started again; the session controller
creates a fresh adapter per scan.

Symbologies:
-----------
zbar has no decoder for Standard (Industrial) 2-of-5. The name is
accepted in configuration but logged as unsupported.

==============================================================================
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from datetime import datetime, timezone
from typing import Callable, Deque, Iterable, Iterator, List, NamedTuple, Optional, Sequence

import cv2
import numpy as np
from pyzbar.pyzbar import ZBarSymbol, decode

from stockroom.config import get_settings
from stockroom.core import exceptions
from stockroom.scanner.events import ScanEvent, Subscription, Symbology, notify


# Module logger
logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

ZBAR_SYMBOLS = {
    Symbology.CODE_128: ZBarSymbol.CODE128,
    Symbology.EAN_13: ZBarSymbol.EAN13,
    Symbology.EAN_8: ZBarSymbol.EAN8,
    Symbology.UPC_A: ZBarSymbol.UPCA,
    Symbology.UPC_E: ZBarSymbol.UPCE,
    Symbology.CODE_39: ZBarSymbol.CODE39,
    Symbology.CODABAR: ZBarSymbol.CODABAR,
    Symbology.INTERLEAVED_2OF5: ZBarSymbol.I25,
}

# barcode.type as reported by pyzbar
ZBAR_TYPES = {
    "CODE128": Symbology.CODE_128,
    "EAN13": Symbology.EAN_13,
    "EAN8": Symbology.EAN_8,
    "UPCA": Symbology.UPC_A,
    "UPCE": Symbology.UPC_E,
    "CODE39": Symbology.CODE_39,
    "CODABAR": Symbology.CODABAR,
    "I25": Symbology.INTERLEAVED_2OF5,
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def resolve_symbologies(names: Iterable[str]) -> List[Symbology]:
    """
    Convert configured names to Symbology values.

    Raises:
        ValueError: On an unknown name
    """
    resolved = []
    for name in names:
        try:
            symbology = Symbology(name.strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown symbology '{name}'. "
                f"Supported: {', '.join(s.value for s in Symbology)}"
            )
        if symbology not in resolved:
            resolved.append(symbology)
    return resolved


class Detection(NamedTuple):
    """A decoded event plus its bounding box (left, top, width, height)."""

    event: ScanEvent
    rect: tuple


def decode_frame(
    frame: np.ndarray,
    symbologies: Sequence[Symbology],
    timestamp: Optional[datetime] = None
) -> List[Detection]:
    """
    Decode all barcodes of the enabled symbologies in one frame.

    Undecodable payloads and symbologies outside ``symbologies`` are
    skipped. A decoder failure is logged and yields no detections.
    """
    if frame is None or frame.size == 0:
        return []

    symbols = [ZBAR_SYMBOLS[s] for s in symbologies if s in ZBAR_SYMBOLS]
    if not symbols:
        return []

    try:
        barcodes = decode(frame, symbols=symbols)
    except Exception as e:
        logger.error(f"Decode error: {e}")
        return []

    timestamp = timestamp or utc_now()
    detections = []

    for barcode in barcodes:
        symbology = ZBAR_TYPES.get(barcode.type)
        if symbology is None or symbology not in symbologies:
            logger.debug(f"Ignoring {barcode.type} barcode")
            continue

        try:
            code = barcode.data.decode("utf-8").strip()
        except UnicodeDecodeError:
            logger.debug(f"Ignoring non UTF-8 {barcode.type} payload")
            continue

        if not code:
            continue

        detections.append(Detection(
            event=ScanEvent(code=code, symbology=symbology, timestamp=timestamp),
            rect=tuple(barcode.rect),
        ))

    return detections


# =============================================================================
# FRAME SOURCES
# =============================================================================

class FrameSource:
    """
    Source of BGR frames.

    ``read`` returns None when the stream has no more frames.
    """

    def open(self) -> None:
        raise NotImplementedError

    def read(self) -> Optional[np.ndarray]:
        raise NotImplementedError

    def release(self) -> None:
        raise NotImplementedError


class CameraFrameSource(FrameSource):
    """
    Local camera through cv2.VideoCapture.

    The device index defaults to the configured environment-facing
    camera. A failed read ends the stream.
    """

    def __init__(
        self,
        camera_index: Optional[int] = None,
        width: Optional[int] = None,
        height: Optional[int] = None
    ) -> None:
        settings = get_settings()
        self._camera_index = (
            settings.scanner_camera_index if camera_index is None else camera_index
        )
        self._width = width or settings.scanner_frame_width
        self._height = height or settings.scanner_frame_height
        self._cap = None
        self._lock = threading.Lock()

    @property
    def camera_index(self) -> int:
        return self._camera_index

    def open(self) -> None:
        """
        Raises:
            AppException: CAMERA_UNAVAILABLE if the device cannot be opened
        """
        with self._lock:
            if self._cap is not None:
                return

            cap = cv2.VideoCapture(self._camera_index)
            if not cap.isOpened():
                cap.release()
                logger.error(f"Cannot open camera {self._camera_index}")
                raise exceptions.camera_unavailable(
                    f"Cannot open camera {self._camera_index}"
                )

            cap.set(cv2.CAP_PROP_FRAME_WIDTH, self._width)
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self._height)
            self._cap = cap

        logger.info(f"📷 Camera {self._camera_index} opened")

    def read(self) -> Optional[np.ndarray]:
        with self._lock:
            if self._cap is None:
                return None
            ret, frame = self._cap.read()

        if not ret:
            logger.warning("Failed to read frame")
            return None
        return frame

    def release(self) -> None:
        with self._lock:
            if self._cap is None:
                return
            self._cap.release()
            self._cap = None

        logger.info(f"📷 Camera {self._camera_index} released")


class QueueFrameSource(FrameSource):
    """
    Bounded frame buffer for frames pushed by a remote client.

    When full, the oldest frame is discarded. ``read`` never blocks: an
    empty buffer ends the current drain. Frames pushed while the source
    is closed are ignored.
    """

    def __init__(self, maxsize: Optional[int] = None) -> None:
        self._frames: Deque[np.ndarray] = deque(
            maxlen=maxsize or get_settings().scanner_queue_size
        )
        self._open = False
        self._lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        return self._open

    def __len__(self) -> int:
        return len(self._frames)

    def push(self, frame: np.ndarray) -> bool:
        """Queue a frame. Returns False if the source is closed."""
        with self._lock:
            if not self._open:
                return False
            self._frames.append(frame)
            return True

    def open(self) -> None:
        with self._lock:
            self._frames.clear()
            self._open = True

    def read(self) -> Optional[np.ndarray]:
        with self._lock:
            if not self._open or not self._frames:
                return None
            return self._frames.popleft()

    def release(self) -> None:
        with self._lock:
            self._open = False
            self._frames.clear()


# =============================================================================
# PREVIEW SURFACES
# =============================================================================

class PreviewSurface:
    """
    Live preview attached for the lifetime of a running adapter.

    The base class renders nothing.
    """

    def attach(self) -> None:
        pass

    def show(self, frame: np.ndarray, detections: List[Detection]) -> bool:
        """Render a frame. Returning False asks the adapter to stop."""
        return True

    def detach(self) -> None:
        pass


class OpenCVWindowPreview(PreviewSurface):
    """OpenCV window with a green box per detection. 'q' stops scanning."""

    BOX_COLOR = (0, 255, 0)
    TEXT_COLOR = (0, 0, 0)

    def __init__(self, window_name: str = "Stockroom Scanner") -> None:
        self._window_name = window_name
        self._attached = False

    def attach(self) -> None:
        """
        Raises:
            AppException: CAMERA_UNAVAILABLE if OpenCV has no GUI support
        """
        try:
            cv2.namedWindow(self._window_name, cv2.WINDOW_NORMAL)
        except cv2.error as e:
            logger.error(f"Preview window failed: {e}")
            raise exceptions.camera_unavailable(
                "Preview window unavailable (run with --no-preview)"
            )
        self._attached = True

    def show(self, frame: np.ndarray, detections: List[Detection]) -> bool:
        for detection in detections:
            self._draw_box(frame, detection)

        cv2.imshow(self._window_name, frame)

        if cv2.waitKey(1) & 0xFF == ord("q"):
            logger.info("User pressed 'q' - stopping scan")
            return False
        return True

    def _draw_box(self, frame: np.ndarray, detection: Detection) -> None:
        x, y, w, h = detection.rect
        label = f"{detection.event.symbology.value}: {detection.event.code}"

        cv2.rectangle(frame, (x, y), (x + w, y + h), self.BOX_COLOR, 3)

        font = cv2.FONT_HERSHEY_SIMPLEX
        label_size, _ = cv2.getTextSize(label, font, 0.6, 2)
        label_y = y - 10 if y - 10 > label_size[1] else y + h + label_size[1] + 10
        cv2.rectangle(
            frame,
            (x, label_y - label_size[1] - 5),
            (x + label_size[0] + 10, label_y + 5),
            self.BOX_COLOR,
            -1
        )
        cv2.putText(frame, label, (x + 5, label_y), font, 0.6, self.TEXT_COLOR, 2)

    def detach(self) -> None:
        if not self._attached:
            return
        self._attached = False
        cv2.destroyWindow(self._window_name)
        cv2.waitKey(1)


# =============================================================================
# DECODER ADAPTER
# =============================================================================

class DecoderAdapter:
    """
    One-shot decoder over a frame source.

    Attributes:
        _source: FrameSource owned while running
        _symbologies: Enabled symbologies
        _preview: Optional PreviewSurface
        _clock: Timestamp source for emitted events

    Example:
        >>> adapter = DecoderAdapter(CameraFrameSource())
        >>> subscription = adapter.subscribe(handle_event)
        >>> with adapter:
        ...     adapter.run()
    """

    STATE_NEW = "new"
    STATE_RUNNING = "running"
    STATE_STOPPED = "stopped"

    def __init__(
        self,
        source: FrameSource,
        symbologies: Optional[Iterable[str]] = None,
        preview: Optional[PreviewSurface] = None,
        clock: Optional[Clock] = None
    ) -> None:
        if symbologies is None:
            symbologies = get_settings().symbology_list

        self._source = source
        self._symbologies = resolve_symbologies(symbologies)
        self._preview = preview
        self._clock = clock or utc_now
        self._listeners: List[Callable[[ScanEvent], None]] = []
        self._state = self.STATE_NEW
        self._lock = threading.RLock()

        unsupported = [s.value for s in self._symbologies if s not in ZBAR_SYMBOLS]
        if unsupported:
            logger.warning(f"Symbologies not supported by zbar: {', '.join(unsupported)}")

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def state(self) -> str:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state == self.STATE_RUNNING

    @property
    def symbologies(self) -> List[Symbology]:
        return list(self._symbologies)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self) -> None:
        """
        Open the frame source and attach the preview.

        Raises:
            AppException: CAMERA_UNAVAILABLE if the source cannot be opened
            RuntimeError: If the adapter was already stopped
        """
        with self._lock:
            if self._state == self.STATE_RUNNING:
                return
            if self._state == self.STATE_STOPPED:
                raise RuntimeError("A stopped DecoderAdapter cannot be restarted")

            try:
                self._source.open()
                if self._preview is not None:
                    self._preview.attach()
            except Exception:
                self.stop()
                raise

            self._state = self.STATE_RUNNING

        logger.info(
            f"🚀 Decoder started ({', '.join(s.value for s in self._symbologies)})"
        )

    def stop(self) -> None:
        """Release the source, detach the preview and drop all listeners."""
        with self._lock:
            if self._state == self.STATE_STOPPED:
                return

            was_running = self._state == self.STATE_RUNNING
            self._state = self.STATE_STOPPED
            self._listeners.clear()

            try:
                self._source.release()
            finally:
                if self._preview is not None:
                    self._preview.detach()

        if was_running:
            logger.info("🛑 Decoder stopped")

    def __enter__(self) -> "DecoderAdapter":
        self.start()
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.stop()

    # =========================================================================
    # EVENTS
    # =========================================================================

    def subscribe(self, listener: Callable[[ScanEvent], None]) -> Subscription:
        return Subscription(self._listeners, listener)

    def detections(self) -> Iterator[ScanEvent]:
        """
        Yield events as frames are decoded.

        Ends when the adapter stops or the source runs out of frames.
        Yields nothing once the adapter has stopped.
        """
        while self.is_running:
            frame = self._source.read()
            if frame is None:
                return

            found = decode_frame(frame, self._symbologies, self._clock())

            if self._preview is not None and not self._preview.show(frame, found):
                self.stop()
                return

            for detection in found:
                if not self.is_running:
                    return
                yield detection.event

    def run(self) -> int:
        """
        Dispatch detections to subscribers in arrival order.

        The adapter is stopped if a listener raises.

        Returns:
            Number of events dispatched
        """
        count = 0
        try:
            for event in self.detections():
                notify(self._listeners, event)
                count += 1
        except Exception:
            self.stop()
            raise
        return count
