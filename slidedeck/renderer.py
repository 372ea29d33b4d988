"""
Sanitizing renderer that turns parsed slides into display-ready node trees.
"""
import logging
import random
from typing import Callable, Iterable, List, Optional, Sequence

from .errors import UnsafeUrlRejected
from .models import GeneratedAsset, LineKind, RawLine, Slide, VisualNode
from .sanitize import escape_html, is_safe_url

logger = logging.getLogger(__name__)

# Anchors for the decorative background image, as CSS class suffixes.
DECOR_POSITIONS = (
    "top-left",
    "top-right",
    "bottom-left",
    "bottom-right",
    "middle-left",
    "middle-right",
)

UNSAFE_URL_MESSAGE = "Image not shown: only http and https URLs are allowed."

PositionChooser = Callable[[Sequence[str]], str]


class SlideRenderer:
    """
    Render :class:`Slide` objects into :class:`VisualNode` trees.

    Every piece of text is escaped and every URL checked before it reaches
    the tree. ``choose_position`` picks the anchor of the decorative
    background image; pass a deterministic function for reproducible output.
    """

    def __init__(self, choose_position: Optional[PositionChooser] = None):
        self.choose_position = choose_position or random.choice

    def render(
        self,
        slide: Slide,
        asset: Optional[GeneratedAsset] = None,
        narration: Optional[str] = None,
    ) -> VisualNode:
        """
        Render a single slide.

        Args:
            slide: Parsed slide
            asset: Generated image for this slide, if any
            narration: Narration text shown as an annotation, if any

        Returns:
            ``section.slide`` node
        """
        section = VisualNode("section", {
            "class": "slide cover" if slide.is_cover else "slide",
            "data-index": str(slide.index),
        })

        if asset is not None:
            section.append(self._render_decor(asset))

        content = section.append(VisualNode("div", {"class": "slide-content"}))
        for node in self._render_lines(slide.lines, slide.is_cover):
            content.append(node)

        if narration:
            content.append(VisualNode("aside", {"class": "narration"}, text=escape_html(narration)))

        return section

    def render_deck(
        self,
        slides: Iterable[Slide],
        assets: Optional[dict] = None,
        narrations: Optional[dict] = None,
    ) -> List[VisualNode]:
        """Render every slide, looking up assets and narrations by slide index."""
        assets = assets or {}
        narrations = narrations or {}
        return [
            self.render(slide, assets.get(slide.index), narrations.get(slide.index))
            for slide in slides
        ]

    def _render_lines(self, lines: Sequence[RawLine], is_cover: bool) -> List[VisualNode]:
        nodes = []
        current_list = None

        for line in lines:
            if line.kind == LineKind.BULLET:
                if current_list is None:
                    current_list = VisualNode("ul", {"class": "bullets"})
                    nodes.append(current_list)
                current_list.append(VisualNode("li", text=escape_html(line.text)))
                continue

            # Any other line closes an open list.
            current_list = None

            if line.kind == LineKind.IMAGE:
                nodes.append(self._render_image(line))
            elif line.kind == LineKind.HEADING1:
                css_class = "cover-title" if is_cover else "slide-title"
                nodes.append(VisualNode("h1", {"class": css_class}, text=escape_html(line.text)))
            elif line.kind == LineKind.HEADING2:
                nodes.append(VisualNode("h2", {"class": "subtitle"}, text=escape_html(line.text)))
            else:
                nodes.append(VisualNode("p", {"class": "body-text"}, text=escape_html(line.text)))

        return nodes

    def _render_image(self, line: RawLine) -> VisualNode:
        if not is_safe_url(line.url):
            return self._unsafe_url_warning(line.url)
        figure = VisualNode("div", {"class": "figure"})
        figure.append(VisualNode("img", {
            "src": escape_html(line.url),
            "alt": escape_html(line.alt or ""),
            "class": "slide-image",
        }))
        return figure

    def _render_decor(self, asset: GeneratedAsset) -> VisualNode:
        if not is_safe_url(asset.url):
            return self._unsafe_url_warning(asset.url)
        position = self.choose_position(DECOR_POSITIONS)
        decor = VisualNode("div", {
            "class": f"decor decor-{position}",
            "aria-hidden": "true",
            "style": "pointer-events: none;",
        })
        decor.append(VisualNode("img", {
            "src": escape_html(asset.url),
            "alt": escape_html(asset.alt),
            "class": "decor-image",
            "data-asset-id": escape_html(asset.id),
        }))
        return decor

    def _unsafe_url_warning(self, url) -> VisualNode:
        logger.warning(f"⚠️ {UnsafeUrlRejected(url)}")
        return VisualNode(
            "div",
            {"class": "unsafe-url-warning", "role": "alert"},
            text=escape_html(UNSAFE_URL_MESSAGE),
        )


def render(
    slide: Slide,
    asset: Optional[GeneratedAsset] = None,
    narration: Optional[str] = None,
    choose_position: Optional[PositionChooser] = None,
) -> VisualNode:
    """Module-level shortcut for :meth:`SlideRenderer.render`."""
    return SlideRenderer(choose_position).render(slide, asset, narration)
