#!/usr/bin/env python3
"""
Main deck generator tying together outline generation, rendering, asset
generation and PDF export.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .ai_client import DEFAULT_TEMPERATURE, ImageBackend, OpenAIGateway, TextGenerator
from .assets import ImageGenerator, NarrationGenerator, ProgressCallback
from .css_utils import CSSParser
from .deck_page import build_deck_document
from .exporter import DocumentExporter
from .live_view import PyppeteerView
from .models import GeneratedAsset, LineKind, OutlineRequest, PresentationRecord, Slide
from .navigator import Navigator
from .outline_parser import OutlineParser, join_slides
from .paths import prepare_workspace
from .prompts import outline_messages
from .renderer import PositionChooser, SlideRenderer
from .theme_loader import list_available_themes, validate_theme

logger = logging.getLogger(__name__)


class DeckGenerator:
    """
    Build a slide deck from an outline request or from outline text.
    """

    def __init__(
        self,
        *,
        output_dir,
        text_generator: Optional[TextGenerator] = None,
        image_backend: Optional[ImageBackend] = None,
        theme: str = "default",
        keep_tmp: bool = False,
        debug: bool = False,
        choose_position: Optional[PositionChooser] = None,
        image_rate_limit: int = 5,
        image_window: float = 60.0,
    ):
        """Create a new :class:`DeckGenerator`.

        Parameters
        ----------
        output_dir
            Directory where the deck HTML, outline, record and PDF are
            written. *Required*.
        text_generator
            Outline and narration source. Defaults to :class:`OpenAIGateway`.
        image_backend
            Image source. Defaults to the same :class:`OpenAIGateway`.
        theme
            CSS theme of the deck and of the exported pages.
        keep_tmp
            Keep the scratch directory inside *output_dir* after exit.
        debug
            Verbose logging and a copy of the live-view document in the
            scratch directory.
        choose_position
            Picks the anchor of each slide's decorative image.
        image_rate_limit, image_window
            Image generation quota: completions per window (seconds).
        """
        self.theme = theme
        self.debug = debug
        self.paths = prepare_workspace(output_dir, keep_tmp=keep_tmp)

        self._gateway: Optional[OpenAIGateway] = None
        self._text_generator = text_generator
        self._image_backend = image_backend

        self.parser = OutlineParser()
        self.renderer = SlideRenderer(choose_position)
        self.image_rate_limit = image_rate_limit
        self.image_window = image_window
        self._image_generator: Optional[ImageGenerator] = None
        self._narration_generator: Optional[NarrationGenerator] = None

    def _default_gateway(self) -> OpenAIGateway:
        if self._gateway is None:
            self._gateway = OpenAIGateway()
        return self._gateway

    @property
    def text_generator(self) -> TextGenerator:
        if self._text_generator is None:
            self._text_generator = self._default_gateway()
        return self._text_generator

    @property
    def image_generator(self) -> ImageGenerator:
        if self._image_generator is None:
            backend = self._image_backend or self._default_gateway()
            self._image_generator = ImageGenerator(
                backend, rate_limit=self.image_rate_limit, window=self.image_window
            )
        return self._image_generator

    @property
    def narration_generator(self) -> NarrationGenerator:
        if self._narration_generator is None:
            self._narration_generator = NarrationGenerator(self.text_generator)
        return self._narration_generator

    async def generate_outline(self, request: OutlineRequest) -> List[Slide]:
        """
        Ask the text generator for an outline and split it into slides.

        Raises:
            InsufficientSlidesError: The model produced too few slides
        """
        outline = await self.text_generator.generate_text(
            outline_messages(request), temperature=DEFAULT_TEMPERATURE
        )
        slides = self.parser.split(outline, request.slide_count)
        logger.info(f"Generated outline with {len(slides)} slides for '{request.title}'")
        return slides

    def parse_outline(self, outline: str, slide_count: Optional[int] = None) -> List[Slide]:
        """Parse outline text; with ``slide_count`` the count is enforced."""
        if slide_count is None:
            return self.parser.parse_all(outline)
        return self.parser.split(outline, slide_count)

    async def generate_images(
        self, slides: Sequence[Slide], progress: Optional[ProgressCallback] = None
    ) -> Dict[int, GeneratedAsset]:
        return await self.image_generator.generate_all(slides, progress)

    async def generate_narrations(
        self, slides: Sequence[Slide], progress: Optional[ProgressCallback] = None
    ) -> Dict[int, str]:
        return await self.narration_generator.generate_all(slides, progress)

    def build_document(
        self,
        slides: Sequence[Slide],
        assets: Optional[Dict[int, GeneratedAsset]] = None,
        narrations: Optional[Dict[int, str]] = None,
        title: str = "Presentation",
    ) -> str:
        sections = self.renderer.render_deck(slides, assets, narrations)
        return build_deck_document(sections, theme=self.theme, title=title)

    def build_record(
        self,
        slides: Sequence[Slide],
        request: Optional[OutlineRequest] = None,
        assets: Optional[Dict[int, GeneratedAsset]] = None,
    ) -> PresentationRecord:
        """Persistence record for the external store."""
        if request is not None:
            title, company, creator = request.title, request.company, request.creator
        else:
            title, company, creator = _cover_identity(slides)
        thumbnail = ""
        if assets:
            thumbnail = assets[min(assets)].url
        return PresentationRecord(
            title=title,
            company=company,
            creator=creator,
            content=join_slides(slides),
            thumbnail_url=thumbnail,
        )

    async def export_pdf(self, slides: Sequence[Slide], document_html: str) -> Path:
        """Open the deck in a live view, export it and write the PDF to the output directory."""
        width, height = CSSParser(self.theme).get_slide_size()

        def _view_factory():
            return PyppeteerView(width=width, height=height, debug=self.debug)

        async with Navigator(_view_factory) as navigator:
            await navigator.load(slides, document_html)
            exporter = DocumentExporter(navigator, theme=self.theme)
            document = await exporter.export_document(slides)

        return document.save(self.paths["output_dir"])

    async def generate(
        self,
        *,
        request: Optional[OutlineRequest] = None,
        outline_text: Optional[str] = None,
        slide_count: Optional[int] = None,
        images: bool = False,
        narration: bool = False,
        pdf: bool = False,
    ) -> Dict[str, Path]:
        """
        Run the whole pipeline and write its artifacts.

        Exactly one of ``request`` (generate the outline) or
        ``outline_text`` (use given text) must be provided.

        Returns:
            Mapping of artifact kind to written path
        """
        if (request is None) == (outline_text is None):
            raise ValueError("Provide either an outline request or outline text")

        if request is not None:
            slides = await self.generate_outline(request)
        else:
            slides = self.parse_outline(outline_text, slide_count)
        if not slides:
            raise ValueError("Outline contains no slides")

        def _progress(kind):
            def _report(done, total):
                logger.info(f"{kind} {done}/{total}")
            return _report

        assets = await self.generate_images(slides, _progress("🖼️ image")) if images else {}
        narrations = await self.generate_narrations(slides, _progress("🎙️ narration")) if narration else {}

        record = self.build_record(slides, request, assets)
        document_html = self.build_document(slides, assets, narrations, title=record.title or "Presentation")

        output_dir = self.paths["output_dir"]
        written = {
            "outline": output_dir / "outline.md",
            "deck": output_dir / "presentation.html",
            "record": output_dir / "presentation.json",
        }
        written["outline"].write_text(record.content, encoding="utf-8")
        written["deck"].write_text(document_html, encoding="utf-8")
        written["record"].write_text(json.dumps(record.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")

        if self.debug:
            (self.paths["tmp_dir"] / "live_view.html").write_text(document_html, encoding="utf-8")
            logger.info(f"Slides: {len(slides)}, images: {len(assets)}, narrations: {len(narrations)}")

        if pdf:
            written["pdf"] = await self.export_pdf(slides, document_html)

        return written


def _cover_identity(slides: Sequence[Slide]):
    """Title, company and creator as laid out on the cover slide."""
    if not slides:
        return "", "", ""
    cover = slides[0]
    subtitles = [line.text for line in cover.lines if line.kind == LineKind.HEADING2]
    subtitles += ["", ""]
    return cover.title or "", subtitles[0], subtitles[1]


def main():
    """Command-line entry point for the deck generator."""
    import argparse
    import asyncio
    import sys

    from .errors import SlideDeckError

    def _build_parser() -> argparse.ArgumentParser:
        p = argparse.ArgumentParser(prog="slidedeck", description="Generate a slide deck from an AI outline.")
        source = p.add_argument_group("outline source")
        source.add_argument("--outline", type=Path, help="Use outline text from this file instead of generating it")
        source.add_argument("--title", help="Presentation title")
        source.add_argument("--company", default="", help="Company name")
        source.add_argument("--creator", default="", help="Creator name")
        source.add_argument("--overview", default="", help="What the presentation is about")
        source.add_argument("--purpose", default="", help="What the presentation should achieve")
        p.add_argument("--slides", "-n", type=int, help="Exact number of slides (default: 5 when generating)")
        p.add_argument("--images", action="store_true", help="Generate a decorative image per slide")
        p.add_argument("--narration", action="store_true", help="Generate a spoken narration per slide")
        p.add_argument("--pdf", action="store_true", help="Export the deck to PDF")
        p.add_argument("--output", "-o", type=Path, default=Path("output"), help="Output directory")
        p.add_argument("--theme", "-t", default="default", help="CSS theme to use (default, dark, ...)")
        p.add_argument("--keep-tmp", action="store_true", help="Keep the scratch directory after the run")
        p.add_argument("--debug", action="store_true", help="Enable verbose logging")
        return p

    async def _generate_async(args) -> Dict[str, Path]:
        generator = DeckGenerator(
            output_dir=args.output,
            theme=args.theme,
            keep_tmp=args.keep_tmp,
            debug=args.debug,
        )
        if args.outline:
            if not args.outline.exists():
                logger.error(f"Outline file '{args.outline}' not found")
                sys.exit(1)
            return await generator.generate(
                outline_text=args.outline.read_text(encoding="utf-8"),
                slide_count=args.slides,
                images=args.images,
                narration=args.narration,
                pdf=args.pdf,
            )

        request = OutlineRequest(
            title=args.title,
            company=args.company,
            creator=args.creator,
            overview=args.overview,
            purpose=args.purpose,
            slide_count=args.slides or 5,
        )
        return await generator.generate(
            request=request, images=args.images, narration=args.narration, pdf=args.pdf
        )

    parser = _build_parser()
    args = parser.parse_args()
    if not args.outline and not args.title:
        parser.error("either --outline or --title is required")
    if not validate_theme(args.theme):
        parser.error(f"unknown theme '{args.theme}' (available: {', '.join(list_available_themes())})")

    # Replaces the import-time configuration from slidedeck/__init__.py
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(levelname)s  %(message)s",
        force=True,
    )

    try:
        written = asyncio.run(_generate_async(args))
    except (SlideDeckError, ValueError) as exc:
        logger.error(f"❌ {exc}")
        sys.exit(1)

    for kind, path in written.items():
        logger.info(f"✅ {kind} written to {path}")


if __name__ == "__main__":
    main()
