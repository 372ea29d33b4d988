import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

import pytest
from PIL import Image

# Ensure project root is on sys.path so `import slidedeck` works
project_root = Path(__file__).resolve().parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from slidedeck.capture import CaptureBackend, CaptureSurface  # noqa: E402
from slidedeck.live_view import LiveView  # noqa: E402
from slidedeck.models import NavigatorState  # noqa: E402


class FakeLiveView(LiveView):
    """In-memory live view recording every call."""

    def __init__(self, slide_total: int = 3, fail_on_initialize: bool = False):
        super().__init__()
        self.slide_total = slide_total
        self.fail_on_initialize = fail_on_initialize
        self.initialized = False
        self.destroyed = False
        self.document = None
        self.moves: List[tuple] = []
        self._state = NavigatorState()

    async def initialize(self, document_html: str) -> None:
        await asyncio.sleep(0)
        if self.fail_on_initialize:
            raise RuntimeError("view failed to start")
        self.document = document_html
        self.initialized = True

    async def destroy(self) -> None:
        self.destroyed = True

    async def slide(self, h: int, v: int = 0, f: Optional[int] = None, transition: bool = True) -> None:
        h = max(0, min(self.slide_total - 1, h))
        self.moves.append((h, v, f, transition))
        self._state = NavigatorState(h, v, f)
        self._emit_slide_changed(self._state)

    async def get_indices(self) -> NavigatorState:
        return self._state

    async def slide_count(self) -> int:
        return self.slide_total

    async def slide_html(self, index: int) -> str:
        return (
            f'<section class="slide" data-index="{index}" onclick="steal()">'
            f'<h1>Slide {index}</h1><script>alert(1)</script></section>'
        )

    def user_navigates(self, h: int) -> None:
        """Simulate a keyboard move inside the page."""
        self._state = NavigatorState(h, 0, None)
        self._emit_slide_changed(self._state)


class FakeCaptureBackend(CaptureBackend):
    """Capture backend producing blank rasters, optionally failing on one slide."""

    def __init__(self, fail_on: Optional[int] = None):
        self.fail_on = fail_on
        self.created: List[CaptureSurface] = []
        self.removed: List[CaptureSurface] = []
        self.fragments: List[str] = []

    async def create_surface(self, fragment_html, width, height, scale):
        surface = CaptureSurface(handle=len(self.created), width=width, height=height, scale=scale)
        self.created.append(surface)
        self.fragments.append(fragment_html)
        return surface

    async def capture(self, surface):
        if self.fail_on is not None and surface.handle == self.fail_on:
            raise RuntimeError("capture crashed")
        size = (int(surface.width * surface.scale), int(surface.height * surface.scale))
        return Image.new("RGB", size, (255, 255, 255))

    async def remove_surface(self, surface):
        self.removed.append(surface)


class FakeClock:
    """Monotonic clock advanced only by the fake sleep."""

    def __init__(self):
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += max(0.0, seconds)
        await asyncio.sleep(0)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def fake_view_factory():
    """Factory creating FakeLiveView instances and remembering each one."""
    created: List[FakeLiveView] = []

    def _factory(**kwargs):
        def _make():
            view = FakeLiveView(**kwargs)
            created.append(view)
            return view
        _make.created = created
        return _make

    return _factory


@pytest.fixture
def fake_backend():
    return FakeCaptureBackend


@pytest.fixture
def root_logging():
    """Restore root logger handlers and level after a test reconfigures them."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
