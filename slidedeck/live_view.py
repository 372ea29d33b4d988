#!/usr/bin/env python3
"""
Live presentation view backed by a headless Chromium page.

A view is a single-owner handle: it is created, initialized with a deck
document, navigated, and destroyed. The :class:`Navigator` owns exactly one
at a time and rebuilds it whenever the deck content changes.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from pyppeteer import launch

from .models import NavigatorState

logger = logging.getLogger(__name__)

SlideChangedCallback = Callable[[NavigatorState], None]

BROWSER_ARGS = [
    '--no-sandbox',
    '--disable-setuid-sandbox',
    '--allow-file-access-from-files',
]


class LiveView(ABC):
    """Interface the navigator and exporter need from a presentation view."""

    def __init__(self):
        self._listeners: List[SlideChangedCallback] = []

    def on_slide_changed(self, callback: SlideChangedCallback) -> None:
        """Register a callback fired with the new position after every move."""
        self._listeners.append(callback)

    def _emit_slide_changed(self, state: NavigatorState) -> None:
        for callback in list(self._listeners):
            callback(state)

    @abstractmethod
    async def initialize(self, document_html: str) -> None:
        """Load a deck document and wait until its runtime is ready."""

    @abstractmethod
    async def destroy(self) -> None:
        """Release every resource. Must be safe to call more than once."""

    @abstractmethod
    async def slide(self, h: int, v: int = 0, f: Optional[int] = None, transition: bool = True) -> None:
        """Move to a position."""

    @abstractmethod
    async def get_indices(self) -> NavigatorState:
        """Current position as reported by the view."""

    @abstractmethod
    async def slide_count(self) -> int:
        """Number of slides in the loaded document."""

    @abstractmethod
    async def slide_html(self, index: int) -> str:
        """Rendered markup of one slide, as currently laid out."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.destroy()


class PyppeteerView(LiveView):
    """
    :class:`LiveView` running the deck document in pyppeteer.

    Args:
        width: Viewport width in px (theme ``--slide-width``)
        height: Viewport height in px (theme ``--slide-height``)
        browser: Existing browser to open the page in; when omitted the view
            launches and owns its own browser
        debug: Log page console output
    """

    def __init__(self, *, width: int = 960, height: int = 700, browser=None, debug: bool = False):
        super().__init__()
        self.width = width
        self.height = height
        self.debug = debug
        self.browser = browser
        self.page = None
        self._owns_browser = browser is None

    async def initialize(self, document_html: str) -> None:
        if self.browser is None:
            self.browser = await launch(headless=True, args=BROWSER_ARGS)
        self.page = await self.browser.newPage()
        await self.page.setViewport({'width': self.width, 'height': self.height})

        if self.debug:
            self.page.on('console', lambda msg: logger.debug(f"[view console] {msg.text}"))

        # Must be exposed before the runtime starts so the first move is reported
        await self.page.exposeFunction('onSlideChanged', self._handle_slide_changed)
        await self.page.setContent(document_html)
        await self.page.waitForFunction('() => window.deckReady === true')

        if self.debug:
            logger.info(f"Live view ready with {await self.slide_count()} slides")

    def _handle_slide_changed(self, h, v, f):
        self._emit_slide_changed(NavigatorState.from_indices({'h': h, 'v': v, 'f': f}))

    async def destroy(self) -> None:
        page, self.page = self.page, None
        browser = self.browser
        try:
            if page is not None and not page.isClosed():
                await page.close()
        finally:
            if self._owns_browser and browser is not None:
                self.browser = None
                await browser.close()

    def _require_page(self):
        if self.page is None:
            raise RuntimeError("Live view is not initialized")
        return self.page

    async def slide(self, h: int, v: int = 0, f: Optional[int] = None, transition: bool = True) -> None:
        await self._require_page().evaluate(
            '(h, v, f, t) => { window.deck.slide(h, v, f, t); }', h, v, f, transition
        )

    async def get_indices(self) -> NavigatorState:
        indices = await self._require_page().evaluate('() => window.deck.getIndices()')
        return NavigatorState.from_indices(indices)

    async def slide_count(self) -> int:
        return int(await self._require_page().evaluate('() => window.deck.count()'))

    async def slide_html(self, index: int) -> str:
        markup = await self._require_page().evaluate('(i) => window.deck.slideHtml(i)', index)
        if markup is None:
            raise IndexError(f"Slide {index} does not exist in the live view")
        return markup

    async def new_page(self):
        """Open an extra page in the view's browser (used for capture surfaces)."""
        if self.browser is None:
            raise RuntimeError("Live view is not initialized")
        return await self.browser.newPage()
