#!/usr/bin/env python3
"""
Navigator owning the live view and tracking its position.

The navigator is the only owner of the :class:`LiveView`. On every content
change the old view is torn down before a new one is built; if the content
actually changed, the last known position is restored once the new view is
up, with a short deferred retry for views that finish laying out late.
"""

import asyncio
import logging
from typing import Callable, Optional, Sequence, Tuple

from .errors import ViewNotReadyError
from .live_view import LiveView
from .models import NavigatorState, Slide

logger = logging.getLogger(__name__)

ViewFactory = Callable[[], LiveView]


class Navigator:
    """
    Programmatic navigation over a re-initializable live view.

    Args:
        view_factory: Creates a fresh, uninitialized view for every load
        restore_delay: Seconds before the deferred position-restore retry
    """

    def __init__(self, view_factory: ViewFactory, *, restore_delay: float = 0.1):
        self.view_factory = view_factory
        self.restore_delay = restore_delay
        self._view: Optional[LiveView] = None
        self._state = NavigatorState()
        self._content: Optional[Tuple[Slide, ...]] = None
        self._mounted = True
        self._restore_task: Optional[asyncio.Task] = None
        self._load_lock: Optional[asyncio.Lock] = None

    @property
    def state(self) -> NavigatorState:
        return self._state

    @property
    def view(self) -> Optional[LiveView]:
        return self._view

    @property
    def is_ready(self) -> bool:
        return self._mounted and self._view is not None

    @property
    def slide_total(self) -> int:
        return len(self._content) if self._content is not None else 0

    async def load(self, slides: Sequence[Slide], document_html: str) -> bool:
        """
        Replace the deck content, rebuilding the live view.

        Args:
            slides: Slides the document was rendered from
            document_html: Complete live-view document

        Returns:
            ``True`` if the new view is active, ``False`` if the navigator
            was closed while the view was initializing
        """
        # Loads are serialized so a second view is never built next to the first
        if self._load_lock is None:
            self._load_lock = asyncio.Lock()
        async with self._load_lock:
            return await self._load(tuple(slides), document_html)

    async def _load(self, new_content: Tuple[Slide, ...], document_html: str) -> bool:
        if not self._mounted:
            logger.debug("Navigator closed; ignoring load")
            return False

        await self._teardown()

        view = self.view_factory()
        try:
            await view.initialize(document_html)
        except BaseException:
            await self._destroy_quietly(view)
            raise

        if not self._mounted:
            # Closed while initializing: never keep a second live view around
            await self._destroy_quietly(view)
            return False

        self._view = view
        view.on_slide_changed(self._on_slide_changed)

        if self._content is not None and self._content != new_content:
            target = self._state
            logger.debug(f"Content changed, restoring position {target}")
            await self._restore(view, target)
            self._restore_task = asyncio.ensure_future(self._deferred_restore(view, target))
        else:
            self._state = await view.get_indices()

        self._content = new_content
        return True

    async def jump_to(self, h: int, v: int = 0, f: Optional[int] = None, *, transition: bool = True) -> NavigatorState:
        """
        Move the live view to ``(h, v, f)``.

        Raises:
            ViewNotReadyError: If no view is loaded
        """
        view = self._require_view()
        await view.slide(h, v, f, transition=transition)
        self._state = await view.get_indices()
        return self._state

    async def refresh(self) -> NavigatorState:
        """Re-read the position from the view."""
        self._state = await self._require_view().get_indices()
        return self._state

    async def close(self) -> None:
        """Unmount: cancel a pending restore and release the view."""
        self._mounted = False
        await self._cancel_restore()
        await self._teardown()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    def _require_view(self) -> LiveView:
        if not self.is_ready:
            raise ViewNotReadyError("Live view is not initialized")
        return self._view

    def _on_slide_changed(self, state: NavigatorState) -> None:
        self._state = state

    async def _restore(self, view: LiveView, target: NavigatorState) -> None:
        try:
            await view.slide(target.horizontal, target.vertical, target.fragment, transition=False)
            self._state = await view.get_indices()
        except Exception as exc:
            logger.warning(f"⚠️ Could not restore position {target}: {exc}")

    async def _deferred_restore(self, view: LiveView, target: NavigatorState) -> None:
        await asyncio.sleep(self.restore_delay)
        if self._mounted and self._view is view:
            await self._restore(view, target)

    async def _cancel_restore(self) -> None:
        task, self._restore_task = self._restore_task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _teardown(self) -> None:
        await self._cancel_restore()
        view, self._view = self._view, None
        if view is None:
            return
        try:
            self._state = await view.get_indices()
        except Exception as exc:
            logger.warning(f"⚠️ Could not read position before teardown: {exc}")
        finally:
            await self._destroy_quietly(view)

    @staticmethod
    async def _destroy_quietly(view: LiveView) -> None:
        try:
            await view.destroy()
        except Exception as exc:
            logger.warning(f"⚠️ Error during live view cleanup: {exc}")
