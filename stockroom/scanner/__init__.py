"""
==============================================================================
Scanner Package - Barcode Scan Workflow
==============================================================================

Barcode scanning with OpenCV and pyzbar.

Modules:
--------
- events: ScanEvent, ScanHistoryEntry, Symbology and subscriptions
- decoder: DecoderAdapter and frame sources
- debouncer: DetectionDebouncer cooldown gate
- workflow: ProductLookupWorkflow, catalog and audio collaborators
- session: ScanSessionController
- station: local scan station CLI

==============================================================================
"""

from .events import (
    ScanEvent,
    ScanHistoryEntry,
    ScanOutcome,
    ScanSession,
    SessionState,
    Subscription,
    Symbology,
)
from .decoder import (
    CameraFrameSource,
    DecoderAdapter,
    FrameSource,
    OpenCVWindowPreview,
    PreviewSurface,
    QueueFrameSource,
    decode_frame,
)
from .debouncer import DetectionDebouncer
from .workflow import (
    AudioCue,
    CatalogService,
    DatabaseCatalog,
    LookupResult,
    ProductDraft,
    ProductLookupWorkflow,
    TerminalBell,
)
from .session import ScanResult, ScanSessionController

__all__ = [
    "ScanEvent",
    "ScanHistoryEntry",
    "ScanOutcome",
    "ScanSession",
    "SessionState",
    "Subscription",
    "Symbology",
    "CameraFrameSource",
    "DecoderAdapter",
    "FrameSource",
    "OpenCVWindowPreview",
    "PreviewSurface",
    "QueueFrameSource",
    "decode_frame",
    "DetectionDebouncer",
    "AudioCue",
    "CatalogService",
    "DatabaseCatalog",
    "LookupResult",
    "ProductDraft",
    "ProductLookupWorkflow",
    "TerminalBell",
    "ScanResult",
    "ScanSessionController",
]
