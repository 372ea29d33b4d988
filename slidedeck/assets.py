#!/usr/bin/env python3
"""
Per-slide image and narration generation on top of :class:`GenerationQueue`.
"""

import asyncio
import logging
import uuid
from typing import Callable, Dict, Optional, Sequence

from .ai_client import DEFAULT_NARRATION_MODEL, ImageBackend, TextGenerator
from .generation_queue import GenerationQueue
from .models import GeneratedAsset, Slide
from .prompts import image_prompt, narration_messages, slide_plain_text

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class _SlideGenerator:
    """Shared fan-out logic: enqueue every slide, collect non-null results by index."""

    queue: GenerationQueue

    async def generate(self, slide: Slide):
        raise NotImplementedError

    async def generate_all(
        self,
        slides: Sequence[Slide],
        progress: Optional[ProgressCallback] = None,
    ) -> Dict[int, object]:
        """
        Generate results for every slide.

        Slides are enqueued in order, so the queue dispatches them in order.

        Args:
            slides: Slides to generate for
            progress: Called with ``(done, total)`` after each slide resolves

        Returns:
            Mapping of slide index to result; failed slides are absent
        """
        total = len(slides)
        done = 0
        results: Dict[int, object] = {}

        async def _one(slide: Slide):
            nonlocal done
            result = await self.generate(slide)
            done += 1
            if progress is not None:
                progress(done, total)
            if result is not None:
                results[slide.index] = result

        await asyncio.gather(*(_one(slide) for slide in slides))
        missing = total - len(results)
        if missing:
            logger.warning(f"⚠️ {self.queue.name}: {missing}/{total} slides got no result")
        return results


class ImageGenerator(_SlideGenerator):
    """
    Generates one decorative image per slide, at most 5 per minute by default.
    """

    def __init__(self, backend: ImageBackend, *, rate_limit: int = 5, window: float = 60.0, **queue_kwargs):
        self.backend = backend
        self.queue = GenerationQueue(
            self._call, rate_limit=rate_limit, window=window, name="image", **queue_kwargs
        )

    async def _call(self, slide_text: str) -> Optional[str]:
        return await self.backend.generate_image(image_prompt(slide_text))

    async def generate(self, slide: Slide) -> Optional[GeneratedAsset]:
        url = await self.queue.enqueue(slide.source)
        if not url:
            return None
        summary = slide_plain_text(slide.source)[:50]
        return GeneratedAsset(
            id=uuid.uuid4().hex,
            url=url,
            source_slide_index=slide.index,
            alt=f"AI generated image for: {summary}...",
        )


class NarrationGenerator(_SlideGenerator):
    """
    Generates a 1-3 sentence spoken narration per slide.
    """

    def __init__(
        self,
        text_generator: TextGenerator,
        *,
        model: str = DEFAULT_NARRATION_MODEL,
        rate_limit: int = 20,
        window: float = 60.0,
        **queue_kwargs,
    ):
        self.text_generator = text_generator
        self.model = model
        self.queue = GenerationQueue(
            self._call, rate_limit=rate_limit, window=window, name="narration", **queue_kwargs
        )

    async def _call(self, slide_text: str) -> Optional[str]:
        text = await self.text_generator.generate_text(narration_messages(slide_text), model=self.model)
        return text.strip() or None

    async def generate(self, slide: Slide) -> Optional[str]:
        return await self.queue.enqueue(slide.source)
