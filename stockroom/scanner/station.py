"""
==============================================================================
Scan Station CLI
==============================================================================

Local camera scanning against the inventory database.

Each scan is one session: the camera opens, the first accepted barcode is
looked up, and the camera closes. Known products are printed. Unknown
codes open a prompt for the remaining product fields.

Usage:
------
    stockroom-scan                      # default camera, preview window
    stockroom-scan --camera 1 --no-preview --cooldown-ms 1500

Keys: 'q' in the preview window ends the current session.

==============================================================================
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Callable, List, Optional

from stockroom.config import get_settings
from stockroom.core.exceptions import AppException
from stockroom.db.database import DatabaseManager
from stockroom.db.init_db import init_db
from stockroom.scanner.debouncer import DetectionDebouncer
from stockroom.scanner.decoder import CameraFrameSource, DecoderAdapter, OpenCVWindowPreview
from stockroom.scanner.session import ScanResult, ScanSessionController
from stockroom.scanner.workflow import (
    DatabaseCatalog,
    ProductDraft,
    ProductLookupWorkflow,
    TerminalBell,
)


# Module logger
logger = logging.getLogger(__name__)

Prompt = Callable[[str], str]


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    settings = get_settings()
    p = argparse.ArgumentParser(description="Stockroom barcode scan station")
    p.add_argument(
        "--camera", type=int, default=settings.scanner_camera_index,
        help=f"Camera device index (default {settings.scanner_camera_index})"
    )
    p.add_argument("--no-preview", action="store_true", help="Do not open a preview window")
    p.add_argument(
        "--cooldown-ms", type=int, default=settings.scan_cooldown_ms,
        help=f"Detection cooldown in ms (default {settings.scan_cooldown_ms})"
    )
    p.add_argument("--once", action="store_true", help="Exit after the first scan")
    p.add_argument("--debug", action="store_true", help="Verbose logging")
    return p.parse_args(argv)


def prompt_draft(draft: ProductDraft, prompt: Prompt = input) -> ProductDraft:
    """Ask for the fields still missing on ``draft``."""
    print(f"New product for SKU {draft.sku}")
    draft.name = prompt("  Name: ").strip() or None
    quantity = prompt("  Quantity: ").strip()
    try:
        draft.quantity = int(quantity) if quantity else None
    except ValueError:
        print(f"  '{quantity}' is not a whole number")
        draft.quantity = None
    draft.category = prompt("  Category: ").strip() or None
    return draft


def handle_result(
    result: ScanResult,
    controller: ScanSessionController,
    prompt: Prompt = input
) -> None:
    """Print a found product, or run the create form until it succeeds or is skipped."""
    entry = result.entry
    if result.product is not None:
        product = result.product
        print(
            f"✅ {entry.code} ({entry.symbology.value}): {product.name} "
            f"| qty {product.quantity} | {product.category or '-'}"
        )
        return

    print(f"❓ {entry.code} ({entry.symbology.value}) is not in the catalog")
    draft = result.draft
    while True:
        if prompt("Create it? [Y/n] ").strip().lower() in ("n", "no"):
            return
        prompt_draft(draft, prompt)
        try:
            product = controller.submit_draft(draft)
        except AppException as e:
            print(f"⚠️ {e.message} {e.details or ''}".rstrip())
            continue
        print(f"✅ Created {product.sku}: {product.name}")
        return


def run_station(
    controller: ScanSessionController,
    once: bool = False,
    prompt: Prompt = input
) -> int:
    """
    Scan loop. Returns the process exit code.

    Camera and lookup errors end the current scan only; the operator
    decides whether to scan again.
    """
    results: List[ScanResult] = []
    controller.subscribe(results.append)

    try:
        while True:
            results.clear()
            print("📷 Scanning... (press 'q' in the preview to cancel)")
            try:
                controller.begin_session()
                controller.pump()
            except AppException as e:
                print(f"⚠️ {e.code}: {e.message}")
                if e.code == "CAMERA_UNAVAILABLE":
                    return 1
            finally:
                controller.end_session()

            for result in results:
                handle_result(result, controller, prompt)

            if once or prompt("Scan again? [Y/n] ").strip().lower() in ("n", "no"):
                return 0
    except (KeyboardInterrupt, EOFError):
        print()
        return 0
    finally:
        history = controller.history
        if history:
            print(f"📊 {len(history)} scans this session")
        controller.close()


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if (args.debug or settings.debug) else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    settings.ensure_directories()
    init_db()

    session = DatabaseManager().get_session()
    preview = None if args.no_preview else OpenCVWindowPreview()

    controller = ScanSessionController(
        decoder_factory=lambda: DecoderAdapter(
            CameraFrameSource(camera_index=args.camera),
            preview=preview,
        ),
        workflow=ProductLookupWorkflow(DatabaseCatalog(session)),
        debouncer=DetectionDebouncer(args.cooldown_ms),
        audio=TerminalBell(),
    )

    try:
        return run_station(controller, once=args.once)
    finally:
        session.close()


if __name__ == "__main__":
    sys.exit(main())
