"""
Outline parser that splits AI-generated outline text into structured slides.
"""
import re
from typing import List, Optional, Sequence

from .errors import InsufficientSlidesError
from .models import LineKind, RawLine, Slide

SLIDE_SEPARATOR = "---"

_BLOCK_SPLIT = re.compile(r"\n{2,}")
_IMAGE_REF = re.compile(r"!\[(.*?)\]\((.*?)\)")

# Checked in order; first match wins. Images are matched separately since
# they may appear anywhere in the line.
_PREFIX_RULES = (
    ("# ", LineKind.HEADING1),
    ("## ", LineKind.HEADING2),
    ("- ", LineKind.BULLET),
)


class OutlineParser:
    """
    Parser for the small outline dialect produced by the text generator.

    Slides are separated by blank lines. Inside a slide each line is one of
    ``# heading``, ``## subheading``, ``- bullet``, ``![alt](url)`` or a
    plain paragraph.
    """

    def split_blocks(self, outline: str) -> List[str]:
        """
        Split outline text into trimmed, non-empty slide blocks.

        Args:
            outline: Raw outline text

        Returns:
            Block texts in their original order
        """
        text = outline.replace("\r\n", "\n").replace("\r", "\n")
        blocks = []
        for block in _BLOCK_SPLIT.split(text):
            block = block.strip()
            if not block or block == SLIDE_SEPARATOR:
                continue
            blocks.append(block)
        return blocks

    def parse_line(self, line: str) -> Optional[RawLine]:
        """
        Classify a single outline line.

        Returns:
            The parsed line, or ``None`` for blank lines and bare separators
        """
        line = line.strip()
        if not line or line == SLIDE_SEPARATOR:
            return None

        image_match = _IMAGE_REF.search(line)
        if image_match:
            alt, url = image_match.groups()
            return RawLine(LineKind.IMAGE, text=alt, alt=alt, url=url.strip())

        for prefix, kind in _PREFIX_RULES:
            if line.startswith(prefix):
                return RawLine(kind, text=line[len(prefix):].strip())

        return RawLine(LineKind.PARAGRAPH, text=line)

    def parse_block(self, block: str, index: int) -> Slide:
        """
        Parse one slide block into a :class:`Slide`.

        Bullets are kept as a flat sequence; grouping them into a list is
        the renderer's job.
        """
        lines = []
        for raw in block.split("\n"):
            parsed = self.parse_line(raw)
            if parsed is not None:
                lines.append(parsed)
        return Slide(index=index, lines=tuple(lines), source=block.strip())

    def split(self, outline: str, requested_count: int) -> List[Slide]:
        """
        Split an outline into exactly ``requested_count`` slides.

        Surplus blocks are dropped silently; too few blocks is an error the
        caller must handle by generating a new outline.

        Args:
            outline: Raw outline text
            requested_count: Number of slides the caller asked for

        Returns:
            List of slides indexed from 0

        Raises:
            InsufficientSlidesError: If fewer blocks than requested survive
            ValueError: If requested_count is smaller than 1
        """
        if requested_count < 1:
            raise ValueError(f"requested_count must be at least 1, got {requested_count}")

        blocks = self.split_blocks(outline)
        if len(blocks) < requested_count:
            raise InsufficientSlidesError(len(blocks), requested_count)

        return [self.parse_block(block, i) for i, block in enumerate(blocks[:requested_count])]

    def parse_all(self, outline: str) -> List[Slide]:
        """Parse every block of an outline without enforcing a count."""
        return [self.parse_block(block, i) for i, block in enumerate(self.split_blocks(outline))]


_default_parser = OutlineParser()


def split(outline: str, requested_count: int) -> List[Slide]:
    """Module-level shortcut for :meth:`OutlineParser.split`."""
    return _default_parser.split(outline, requested_count)


def join_slides(slides: Sequence[Slide]) -> str:
    """Join slides back into the outline text that gets persisted."""
    return "\n\n".join(slide.source for slide in slides)
