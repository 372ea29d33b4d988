"""Live view runtime and PDF export against a real headless Chromium.

Runs whenever pyppeteer's Chromium is installed (``pyppeteer-install``);
``SLIDEDECK_BROWSER_TESTS=1`` forces the run and lets pyppeteer download it.
"""

import asyncio
import os

import pytest
from pyppeteer.chromium_downloader import check_chromium

pytestmark = pytest.mark.slow
if not (check_chromium() or os.environ.get("SLIDEDECK_BROWSER_TESTS")):
    pytest.skip("Chromium for pyppeteer is not installed", allow_module_level=True)

from slidedeck.deck_page import build_deck_document  # noqa: E402
from slidedeck.exporter import DocumentExporter  # noqa: E402
from slidedeck.live_view import PyppeteerView  # noqa: E402
from slidedeck.models import NavigatorState  # noqa: E402
from slidedeck.navigator import Navigator  # noqa: E402
from slidedeck.outline_parser import split  # noqa: E402
from slidedeck.renderer import SlideRenderer  # noqa: E402

OUTLINE = "# Cover\n## Co\n\n# Two\n- a\n\n# Three\n<script>window.pwned = 1</script>"


@pytest.fixture
def deck():
    slides = split(OUTLINE, 3)
    return slides, build_deck_document(SlideRenderer().render_deck(slides))


def test_runtime_navigation_and_events(deck):
    slides, document_html = deck

    async def scenario():
        events = []
        async with PyppeteerView() as view:
            await view.initialize(document_html)
            view.on_slide_changed(events.append)

            count = await view.slide_count()
            await view.slide(5, transition=False)  # clamped to the last slide
            last = await view.get_indices()
            await view.page.keyboard.press("ArrowLeft")
            after_key = await view.get_indices()
            markup = await view.slide_html(1)
            visible = await view.page.evaluate(
                "() => Array.from(document.querySelectorAll('.slides > section.present'))"
                ".map(el => el.dataset.index)"
            )
            with pytest.raises(IndexError):
                await view.slide_html(9)
            # exposeFunction callbacks arrive asynchronously
            for _ in range(20):
                if len(events) >= 2:
                    break
                await asyncio.sleep(0.05)
        return count, last, after_key, markup, visible, events

    count, last, after_key, markup, visible, events = asyncio.run(scenario())

    assert count == 3
    assert last == NavigatorState(2, 0, None)
    assert after_key == NavigatorState(1, 0, None)
    assert markup.startswith('<section class="slide"')
    assert "<li>a</li>" in markup
    assert visible == ["1"]
    assert events[:2] == [NavigatorState(2, 0, None), NavigatorState(1, 0, None)]


def test_navigate_and_export_real_deck(deck):
    slides, document_html = deck

    async def scenario():
        async with Navigator(lambda: PyppeteerView()) as navigator:
            assert await navigator.load(slides, document_html)
            assert await navigator.view.slide_count() == 3
            assert await navigator.view.page.evaluate("() => window.pwned === undefined")

            await navigator.jump_to(1)
            exporter = DocumentExporter(navigator, settle_delay=0.05)
            document = await exporter.export_document(slides)
            return document, navigator.state

    document, state = asyncio.run(scenario())

    assert document.page_count == 3
    assert document.data.startswith(b"%PDF")
    assert state == NavigatorState(1, 0, None)
