#!/usr/bin/env python3
"""
Raster capture and PDF assembly for document export.
"""

import io
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Sequence

from PIL import Image

from .deck_page import build_surface_document

logger = logging.getLogger(__name__)

PDF_POINTS_PER_INCH = 72.0


@dataclass
class CaptureSurface:
    """An isolated, fixed-size page holding one cleaned slide clone."""
    handle: Any
    width: int
    height: int
    scale: float


class CaptureBackend(ABC):
    """Creates capture surfaces, rasterizes them and assembles the document."""

    @abstractmethod
    async def create_surface(self, fragment_html: str, width: int, height: int, scale: float) -> CaptureSurface:
        """Place a slide fragment on a new off-screen surface."""

    @abstractmethod
    async def capture(self, surface: CaptureSurface) -> Image.Image:
        """Rasterize a surface at ``surface.scale`` pixel density."""

    @abstractmethod
    async def remove_surface(self, surface: CaptureSurface) -> None:
        """Dispose of a surface."""

    def assemble(self, pages: Sequence[Image.Image], width: int, height: int) -> bytes:
        """
        Combine rasters into a PDF whose pages measure ``width`` x ``height`` points.

        Args:
            pages: One raster per slide, all at the same pixel density
            width: Page width in logical px (rendered as points)
            height: Page height in logical px

        Returns:
            PDF bytes
        """
        if not pages:
            raise ValueError("Cannot assemble a document without pages")

        rgb_pages = [self._to_rgb(page) for page in pages]
        # Pillow sizes PDF pages as pixels / resolution inches
        resolution = rgb_pages[0].width / width * PDF_POINTS_PER_INCH
        if abs(rgb_pages[0].height / height * PDF_POINTS_PER_INCH - resolution) > 0.01:
            logger.warning(
                f"⚠️ Raster {rgb_pages[0].size} does not match page aspect {width}x{height}"
            )

        buffer = io.BytesIO()
        rgb_pages[0].save(
            buffer,
            format="PDF",
            save_all=True,
            append_images=rgb_pages[1:],
            resolution=resolution,
        )
        return buffer.getvalue()

    @staticmethod
    def _to_rgb(image: Image.Image) -> Image.Image:
        if image.mode == "RGB":
            return image
        if image.mode in ("RGBA", "LA", "P"):
            image = image.convert("RGBA")
            background = Image.new("RGB", image.size, (255, 255, 255))
            background.paste(image, mask=image.split()[-1])
            return background
        return image.convert("RGB")


class PyppeteerCaptureBackend(CaptureBackend):
    """
    Capture surfaces as extra pages in the live view's browser.

    Surfaces run with JavaScript disabled and receive markup that has
    already been stripped of active content.

    Args:
        page_factory: Coroutine returning a new pyppeteer page, usually
            :meth:`PyppeteerView.new_page`
        theme: CSS theme applied to the surface
    """

    def __init__(self, page_factory: Callable[[], Awaitable[Any]], *, theme: str = "default"):
        self.page_factory = page_factory
        self.theme = theme

    async def create_surface(self, fragment_html: str, width: int, height: int, scale: float) -> CaptureSurface:
        page = await self.page_factory()
        surface = CaptureSurface(page, width, height, scale)
        try:
            await page.setJavaScriptEnabled(False)
            await page.setViewport({'width': width, 'height': height, 'deviceScaleFactor': scale})
            await page.setContent(build_surface_document(
                fragment_html, width=width, height=height, theme=self.theme
            ))
        except Exception:
            await self.remove_surface(surface)
            raise
        return surface

    async def capture(self, surface: CaptureSurface) -> Image.Image:
        png = await surface.handle.screenshot({
            'type': 'png',
            'clip': {'x': 0, 'y': 0, 'width': surface.width, 'height': surface.height},
        })
        image = Image.open(io.BytesIO(png))
        image.load()
        return image

    async def remove_surface(self, surface: CaptureSurface) -> None:
        page = surface.handle
        if page is not None and not page.isClosed():
            await page.close()
