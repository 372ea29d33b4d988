"""slidedeck – AI outline to slide deck pipeline

Exposes the public API (`DeckGenerator`, `split`, `SlideRenderer`, …) and
sets up a minimal logging configuration that honours the
`SLIDEDECK_LOG_LEVEL` environment variable.
"""

from __future__ import annotations

import logging
import os

LOG_LEVEL = os.getenv("SLIDEDECK_LOG_LEVEL", "INFO").upper()
if not logging.getLogger().handlers:
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

# Public API re-exports ------------------------------------------------
from .errors import (  # noqa: E402  (import after logger)
    ExportFailedError,
    ExportUnavailableError,
    InsufficientSlidesError,
    SlideDeckError,
)
from .exporter import DocumentExporter  # noqa: E402
from .generation_queue import GenerationQueue  # noqa: E402
from .generator import DeckGenerator  # noqa: E402
from .models import GeneratedAsset, NavigatorState, RawLine, Slide, VisualNode  # noqa: E402
from .navigator import Navigator  # noqa: E402
from .outline_parser import OutlineParser, join_slides, split  # noqa: E402
from .renderer import SlideRenderer, render  # noqa: E402
from .sanitize import escape_html, is_safe_url  # noqa: E402

__all__ = [
    "DeckGenerator",
    "DocumentExporter",
    "ExportFailedError",
    "ExportUnavailableError",
    "GeneratedAsset",
    "GenerationQueue",
    "InsufficientSlidesError",
    "Navigator",
    "NavigatorState",
    "OutlineParser",
    "RawLine",
    "Slide",
    "SlideDeckError",
    "SlideRenderer",
    "VisualNode",
    "escape_html",
    "is_safe_url",
    "join_slides",
    "render",
    "split",
]
