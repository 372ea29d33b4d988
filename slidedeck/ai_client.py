"""OpenAI-backed text and image generation used by the deck pipeline."""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol, Sequence

from openai import AsyncOpenAI

from .prompts import ChatMessage

logger = logging.getLogger(__name__)

DEFAULT_TEXT_MODEL = "gpt-4-turbo-preview"
DEFAULT_NARRATION_MODEL = "gpt-4"
DEFAULT_IMAGE_MODEL = "dall-e-3"
DEFAULT_TEMPERATURE = 0.7


class TextGenerator(Protocol):
    async def generate_text(
        self, messages: Sequence[ChatMessage], model: str = ..., temperature: float = ...
    ) -> str: ...


class ImageBackend(Protocol):
    async def generate_image(self, prompt: str) -> Optional[str]: ...


class OpenAIGateway:
    """Text and image generation through the OpenAI API.

    ``OPENAI_API_KEY`` is read by the SDK unless a client is passed in.
    """

    def __init__(
        self,
        client: Optional[Any] = None,
        *,
        text_model: str = DEFAULT_TEXT_MODEL,
        image_model: str = DEFAULT_IMAGE_MODEL,
        image_size: str = "1024x1024",
    ):
        self.client = client if client is not None else AsyncOpenAI()
        self.text_model = text_model
        self.image_model = image_model
        self.image_size = image_size

    async def generate_text(
        self,
        messages: Sequence[ChatMessage],
        model: Optional[str] = None,
        temperature: float = DEFAULT_TEMPERATURE,
    ) -> str:
        """Run a chat completion and return the first choice's text ("" if empty)."""
        response = await self.client.chat.completions.create(
            model=model or self.text_model,
            messages=list(messages),
            temperature=temperature,
        )
        content = response.choices[0].message.content if response.choices else None
        return content or ""

    async def generate_image(self, prompt: str) -> Optional[str]:
        """Generate one image and return its URL, or ``None`` when none came back."""
        response = await self.client.images.generate(
            model=self.image_model,
            prompt=prompt,
            n=1,
            size=self.image_size,
            quality="standard",
            style="natural",
        )
        if not response.data:
            logger.warning("Image generation returned no data")
            return None
        return response.data[0].url
