"""
Data models for the slide deck pipeline.
"""
import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple


class LineKind(str, Enum):
    """Kinds of outline lines recognised by the parser."""
    HEADING1 = "heading1"
    HEADING2 = "heading2"
    BULLET = "bullet"
    IMAGE = "image"
    PARAGRAPH = "paragraph"


@dataclass(frozen=True)
class RawLine:
    """
    One parsed outline line. ``alt``/``url`` are only set for images.
    """
    kind: LineKind
    text: str = ""
    alt: Optional[str] = None
    url: Optional[str] = None

    def is_heading(self):
        """Check if this line is a heading."""
        return self.kind in (LineKind.HEADING1, LineKind.HEADING2)

    def is_bullet(self):
        """Check if this line is a bullet item."""
        return self.kind == LineKind.BULLET

    def is_image(self):
        """Check if this line is an image reference."""
        return self.kind == LineKind.IMAGE


@dataclass(frozen=True)
class Slide:
    """
    One structured slide. Immutable once parsed; edits restart from outline text.
    """
    index: int
    lines: Tuple[RawLine, ...]
    source: str = ""  # trimmed block text the slide was parsed from

    @property
    def is_cover(self):
        """The first slide is the title/cover slide."""
        return self.index == 0

    @property
    def title(self) -> Optional[str]:
        for line in self.lines:
            if line.kind == LineKind.HEADING1:
                return line.text
        return None


@dataclass
class VisualNode:
    """
    Sanitized, display-ready tree node.

    ``text`` and attribute values are stored already escaped, so
    :meth:`to_html` only has to join them.
    """
    tag: str
    attrs: Dict[str, str] = field(default_factory=dict)
    children: List["VisualNode"] = field(default_factory=list)
    text: Optional[str] = None

    def append(self, child: "VisualNode") -> "VisualNode":
        self.children.append(child)
        return child

    def find_all(self, tag: str) -> List["VisualNode"]:
        """Depth-first search for descendant nodes with the given tag."""
        found = []
        for child in self.children:
            if child.tag == tag:
                found.append(child)
            found.extend(child.find_all(tag))
        return found

    def has_class(self, name: str) -> bool:
        return name in self.attrs.get("class", "").split()

    def to_html(self) -> str:
        attrs = "".join(f' {key}="{value}"' for key, value in self.attrs.items())
        if self.tag == "img":
            return f"<img{attrs}>"
        inner = self.text or ""
        inner += "".join(child.to_html() for child in self.children)
        return f"<{self.tag}{attrs}>{inner}</{self.tag}>"


@dataclass(frozen=True)
class GeneratedAsset:
    """An externally generated image owned by one slide index."""
    id: str
    url: str
    source_slide_index: int
    alt: str = ""


@dataclass
class QueueTask:
    """A payload waiting in a generation queue and the future it resolves."""
    payload: str
    future: asyncio.Future


@dataclass(frozen=True)
class NavigatorState:
    """Current position of the live view."""
    horizontal: int = 0
    vertical: int = 0
    fragment: Optional[int] = None

    @classmethod
    def from_indices(cls, indices: Optional[Dict[str, Any]]) -> "NavigatorState":
        """Build a state from the ``{h, v, f}`` dict the in-page runtime reports."""
        if not indices:
            return cls()
        fragment = indices.get("f")
        return cls(
            horizontal=int(indices.get("h") or 0),
            vertical=int(indices.get("v") or 0),
            fragment=int(fragment) if fragment is not None else None,
        )


@dataclass
class OutlineRequest:
    """Form data used to ask the text generator for an outline."""
    title: str
    company: str
    creator: str
    overview: str = ""
    purpose: str = ""
    slide_count: int = 5

    def __post_init__(self):
        if not 1 <= self.slide_count <= 50:
            raise ValueError(f"slide_count must be between 1 and 50, got {self.slide_count}")


@dataclass
class PresentationRecord:
    """
    Shape of a saved presentation as the external CRUD layer stores it.
    """
    title: str
    company: str
    creator: str
    content: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None
    thumbnail_url: str = ""

    def __post_init__(self):
        if self.updated_at is None:
            self.updated_at = self.created_at

    def to_dict(self) -> Dict[str, str]:
        return {
            "title": self.title,
            "company": self.company,
            "creator": self.creator,
            "content": self.content,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
            "thumbnailUrl": self.thumbnail_url,
        }


@dataclass
class ExportedDocument:
    """A finished PDF export."""
    name: str
    data: bytes
    page_count: int

    def save(self, directory) -> Path:
        path = Path(directory) / self.name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.data)
        return path
