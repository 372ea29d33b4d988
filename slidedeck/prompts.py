"""Prompt builders for outline, narration and image generation."""

import re
from typing import Dict, List

from .models import OutlineRequest

ChatMessage = Dict[str, str]

OUTLINE_SYSTEM_PROMPT = """You are a professional presentation creator. Your task is to create a presentation outline with EXACTLY {count} slides, no more and no less. Follow these rules strictly:
1. Create EXACTLY {count} distinct slides
2. Each slide must be separated by TWO newlines
3. Use this format:
   - First slide MUST contain:
     # {title}
     ## {company}
     ## {creator}
   - Other slides:
     # [Slide Title]
     [Content with bullet points using "-"]
4. Include bullet points with "-" where appropriate
5. Make each slide substantive and meaningful
6. Count your slides carefully and ensure it matches {count}
7. DO NOT include any extra slides
8. DO NOT include any transition text or notes between slides"""

OUTLINE_USER_PROMPT = """Create a presentation outline with exactly {count} slides.
Title: {title}
Company: {company}
Creator: {creator}
Overview: {overview}
Purpose: {purpose}

IMPORTANT: The presentation MUST have EXACTLY {count} slides, no more and no less."""

NARRATION_SYSTEM_PROMPT = (
    "You are a professional presenter. Write a short, engaging narration for "
    "the slide you are given. Use clear, natural spoken language and keep it "
    "to one to three sentences."
)

IMAGE_PROMPT = (
    "Create a professional presentation slide image that represents: {text}. "
    "Make it abstract and subtle, suitable as a background or complementary "
    "image for a business presentation."
)

_IMAGE_REF = re.compile(r"!\[.*?\]\(.*?\)")
_MARKUP_CHARS = re.compile(r"[#\-]")


def outline_messages(request: OutlineRequest) -> List[ChatMessage]:
    """Chat messages asking for an outline with exactly ``request.slide_count`` slides."""
    fields = {
        "count": request.slide_count,
        "title": request.title,
        "company": request.company,
        "creator": request.creator,
        "overview": request.overview,
        "purpose": request.purpose,
    }
    return [
        {"role": "system", "content": OUTLINE_SYSTEM_PROMPT.format(**fields)},
        {"role": "user", "content": OUTLINE_USER_PROMPT.format(**fields)},
    ]


def narration_messages(slide_text: str) -> List[ChatMessage]:
    return [
        {"role": "system", "content": NARRATION_SYSTEM_PROMPT},
        {"role": "user", "content": f"Write the narration for this slide:\n\n{slide_text}"},
    ]


def slide_plain_text(slide_text: str) -> str:
    """Slide text without image references and ``#``/``-`` markup."""
    return _MARKUP_CHARS.sub("", _IMAGE_REF.sub("", slide_text)).strip()


def image_prompt(slide_text: str) -> str:
    return IMAGE_PROMPT.format(text=slide_plain_text(slide_text))
