#!/usr/bin/env python3
"""
Export the live presentation to a fixed-size, multi-page PDF.

The exporter walks the navigator through every slide, clones each rendered
slide into an isolated capture surface, rasterizes it and assembles the
pages. The navigator is returned to its starting position afterwards,
whether the export succeeded or not.
"""

import asyncio
import logging
import re
from datetime import datetime
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple

from PIL import Image

from .capture import CaptureBackend, PyppeteerCaptureBackend
from .css_utils import CSSParser
from .errors import ExportFailedError, ExportUnavailableError
from .models import ExportedDocument, NavigatorState, Slide
from .navigator import Navigator
from .sanitize import strip_active_content

logger = logging.getLogger(__name__)

DEFAULT_SCALE = 2
DEFAULT_SETTLE_DELAY = 0.5


def export_file_name(timestamp: datetime, prefix: str = "presentation") -> str:
    """Filesystem-safe document name derived from a timestamp."""
    stamp = re.sub(r"[^A-Za-z0-9]", "-", timestamp.isoformat())
    return f"{prefix}-{stamp}.pdf"


class DocumentExporter:
    """
    Drive a :class:`Navigator` through the deck and produce a PDF.

    Exports are not reentrant: while one runs, another attempt on the same
    exporter fails instead of waiting.

    Args:
        navigator: Navigator owning an initialized live view
        backend: Capture backend; defaults to capturing in the live view's browser
        settle_delay: Seconds to wait after each jump before capturing
        page_size: Surface and page size in logical px; read from the
            theme's ``--export-width``/``--export-height`` when omitted
        scale: Pixel density of the rasters
        theme: CSS theme for the capture surfaces
        sleep: Coroutine used for the settle delay (injectable for tests)
        now: Clock used to name the document
    """

    def __init__(
        self,
        navigator: Navigator,
        backend: Optional[CaptureBackend] = None,
        *,
        settle_delay: float = DEFAULT_SETTLE_DELAY,
        page_size: Optional[Tuple[int, int]] = None,
        scale: float = DEFAULT_SCALE,
        theme: str = "default",
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        now: Callable[[], datetime] = datetime.now,
    ):
        self.navigator = navigator
        self.backend = backend
        self.settle_delay = settle_delay
        self.page_size = page_size or CSSParser(theme).get_export_size()
        self.scale = scale
        self.theme = theme
        self._sleep = sleep
        self._now = now
        self._exporting = False

    @property
    def exporting(self) -> bool:
        return self._exporting

    def _resolve_backend(self) -> CaptureBackend:
        if self.backend is not None:
            return self.backend
        view = self.navigator.view
        if view is None or not hasattr(view, "new_page"):
            raise ExportUnavailableError("Live view cannot open capture surfaces")
        return PyppeteerCaptureBackend(view.new_page, theme=self.theme)

    async def export_document(self, slides: Sequence[Slide]) -> ExportedDocument:
        """
        Capture every slide and return the assembled PDF.

        Args:
            slides: Slides currently shown by the navigator's view

        Returns:
            The exported document, one page per slide

        Raises:
            ExportUnavailableError: No live view, or an export is already running
            ExportFailedError: Capturing a slide failed; nothing is returned
        """
        if not self.navigator.is_ready:
            raise ExportUnavailableError("Live view is not initialized")
        if self._exporting:
            raise ExportUnavailableError("An export is already in progress")
        if not slides:
            raise ExportUnavailableError("There are no slides to export")

        self._exporting = True
        try:
            backend = self._resolve_backend()
            original = await self.navigator.refresh()
            try:
                pages = await self._capture_all(backend, len(slides))
            finally:
                await self._restore(original)

            width, height = self.page_size
            try:
                data = backend.assemble(pages, width, height)
            except Exception as exc:
                raise ExportFailedError(f"Could not assemble document: {exc}") from exc

            document = ExportedDocument(export_file_name(self._now()), data, len(pages))
            logger.info(f"✅ Exported {document.page_count} pages to {document.name}")
            return document
        finally:
            self._exporting = False

    async def _capture_all(self, backend: CaptureBackend, total: int) -> List[Image.Image]:
        pages = []
        for index in range(total):
            try:
                await self.navigator.jump_to(index, 0, None, transition=False)
                await self._sleep(self.settle_delay)
                pages.append(await self._capture_slide(backend, index))
            except ExportFailedError:
                raise
            except Exception as exc:
                raise ExportFailedError(f"Export failed on slide {index + 1}/{total}: {exc}", index) from exc
            logger.debug(f"Captured slide {index + 1}/{total}")
        return pages

    async def _capture_slide(self, backend: CaptureBackend, index: int) -> Image.Image:
        fragment = strip_active_content(await self.navigator.view.slide_html(index))
        width, height = self.page_size

        surface = await backend.create_surface(fragment, width, height, self.scale)
        try:
            return await backend.capture(surface)
        finally:
            try:
                await backend.remove_surface(surface)
            except Exception as exc:
                logger.warning(f"⚠️ Could not remove capture surface for slide {index + 1}: {exc}")

    async def _restore(self, original: NavigatorState) -> None:
        try:
            await self.navigator.jump_to(
                original.horizontal, original.vertical, original.fragment, transition=False
            )
        except Exception as exc:
            logger.warning(f"⚠️ Could not restore position {original} after export: {exc}")
