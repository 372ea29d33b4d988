"""Test PDF export through the navigator."""

import asyncio
import re
from datetime import datetime

import pytest
from PIL import Image

from slidedeck.capture import CaptureBackend, CaptureSurface
from slidedeck.errors import ExportFailedError, ExportUnavailableError
from slidedeck.exporter import DocumentExporter, export_file_name
from slidedeck.models import NavigatorState
from slidedeck.navigator import Navigator
from slidedeck.outline_parser import split

SLIDES = split("# One\n\n# Two\n\n# Three", 3)
FIXED_NOW = datetime(2024, 5, 1, 12, 30, 15)


def run(coro):
    return asyncio.run(coro)


async def no_wait(seconds):
    await asyncio.sleep(0)


def make_exporter(navigator, backend):
    return DocumentExporter(
        navigator,
        backend,
        page_size=(1920, 1080),
        scale=2,
        sleep=no_wait,
        now=lambda: FIXED_NOW,
    )


async def loaded_navigator(factory, start=1):
    navigator = Navigator(factory, restore_delay=0)
    await navigator.load(SLIDES, "doc")
    factory.created[-1].user_navigates(start)
    return navigator


def page_count(pdf: bytes) -> int:
    return len(re.findall(rb"/Type\s*/Page\b", pdf))


def test_export_captures_one_page_per_slide(fake_view_factory, fake_backend):
    factory = fake_view_factory()
    backend = fake_backend()

    async def scenario():
        navigator = await loaded_navigator(factory)
        document = await make_exporter(navigator, backend).export_document(SLIDES)
        return document, navigator

    document, navigator = run(scenario())

    assert document.page_count == 3
    assert document.data.startswith(b"%PDF")
    assert page_count(document.data) == 3
    assert document.name == "presentation-2024-05-01T12-30-15.pdf"
    assert len(backend.created) == len(backend.removed) == 3
    assert [s.width for s in backend.created] == [1920] * 3
    assert [s.scale for s in backend.created] == [2] * 3
    # Original position restored
    assert navigator.state == NavigatorState(1, 0, None)


def test_export_visits_every_slide_without_transitions(fake_view_factory, fake_backend):
    factory = fake_view_factory()

    async def scenario():
        navigator = await loaded_navigator(factory, start=2)
        await make_exporter(navigator, fake_backend()).export_document(SLIDES)

    run(scenario())

    moves = factory.created[0].moves
    assert [m[0] for m in moves] == [0, 1, 2, 2]
    assert all(m[3] is False for m in moves)


def test_fragments_are_stripped_of_active_content(fake_view_factory, fake_backend):
    factory = fake_view_factory()
    backend = fake_backend()

    async def scenario():
        navigator = await loaded_navigator(factory)
        await make_exporter(navigator, backend).export_document(SLIDES)

    run(scenario())

    for index, fragment in enumerate(backend.fragments):
        assert "<script" not in fragment
        assert "onclick" not in fragment
        assert f"Slide {index}" in fragment


def test_capture_failure_aborts_and_cleans_up(fake_view_factory, fake_backend):
    factory = fake_view_factory()
    backend = fake_backend(fail_on=1)

    async def scenario():
        navigator = await loaded_navigator(factory, start=2)
        exporter = make_exporter(navigator, backend)
        with pytest.raises(ExportFailedError) as exc_info:
            await exporter.export_document(SLIDES)
        return exc_info.value, navigator, exporter

    error, navigator, exporter = run(scenario())

    assert error.slide_index == 1
    assert "capture crashed" in str(error)
    # The failing surface was still removed; nothing after it was created
    assert len(backend.created) == 2
    assert backend.removed == backend.created
    assert navigator.state == NavigatorState(2, 0, None)
    assert not exporter.exporting


def test_surface_removal_failure_is_logged(fake_view_factory, caplog):
    class LeakyBackend(CaptureBackend):
        async def create_surface(self, fragment_html, width, height, scale):
            return CaptureSurface(None, width, height, scale)

        async def capture(self, surface):
            return Image.new("RGB", (surface.width * 2, surface.height * 2), "white")

        async def remove_surface(self, surface):
            raise RuntimeError("page already gone")

    factory = fake_view_factory()

    async def scenario():
        navigator = await loaded_navigator(factory)
        return await make_exporter(navigator, LeakyBackend()).export_document(SLIDES)

    document = run(scenario())

    assert document.page_count == 3
    assert "page already gone" in caplog.text


def test_export_requires_loaded_view(fake_view_factory, fake_backend):
    async def scenario():
        navigator = Navigator(fake_view_factory(), restore_delay=0)
        await make_exporter(navigator, fake_backend()).export_document(SLIDES)

    with pytest.raises(ExportUnavailableError):
        run(scenario())


def test_export_is_not_reentrant(fake_view_factory, fake_backend):
    factory = fake_view_factory()
    backend = fake_backend()

    async def scenario():
        navigator = await loaded_navigator(factory)
        exporter = make_exporter(navigator, backend)
        first = asyncio.ensure_future(exporter.export_document(SLIDES))
        await asyncio.sleep(0)
        assert exporter.exporting
        with pytest.raises(ExportUnavailableError):
            await exporter.export_document(SLIDES)
        return await first

    document = run(scenario())

    assert document.page_count == 3
    assert len(backend.created) == 3


def test_export_without_slides_is_rejected(fake_view_factory, fake_backend):
    factory = fake_view_factory()

    async def scenario():
        navigator = await loaded_navigator(factory)
        await make_exporter(navigator, fake_backend()).export_document([])

    with pytest.raises(ExportUnavailableError):
        run(scenario())


def test_assemble_converts_transparent_pages(fake_backend):
    pages = [Image.new("RGBA", (200, 100), (0, 0, 0, 0)), Image.new("L", (200, 100), 128)]

    data = fake_backend().assemble(pages, 100, 50)

    assert data.startswith(b"%PDF")
    assert page_count(data) == 2


def test_assemble_rejects_empty_page_list(fake_backend):
    with pytest.raises(ValueError):
        fake_backend().assemble([], 100, 50)


def test_export_file_name_is_filesystem_safe():
    name = export_file_name(datetime(2023, 1, 2, 3, 4, 5, 678000))
    assert name == "presentation-2023-01-02T03-04-05-678000.pdf"
    assert re.fullmatch(r"[A-Za-z0-9.\-]+", name)


def test_default_page_size_comes_from_theme(fake_view_factory):
    exporter = DocumentExporter(Navigator(fake_view_factory()))
    assert exporter.page_size == (1920, 1080)
