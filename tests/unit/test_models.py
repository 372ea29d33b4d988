"""Test data model helpers and prompt builders."""

from datetime import datetime, timezone

import pytest

from slidedeck.models import (
    ExportedDocument, NavigatorState, OutlineRequest, PresentationRecord, VisualNode,
)
from slidedeck.prompts import image_prompt, outline_messages, slide_plain_text


def test_navigator_state_from_runtime_indices():
    assert NavigatorState.from_indices({"h": 3, "v": 1, "f": 2}) == NavigatorState(3, 1, 2)
    assert NavigatorState.from_indices({"h": 1, "v": None, "f": None}) == NavigatorState(1, 0, None)
    assert NavigatorState.from_indices(None) == NavigatorState()


@pytest.mark.parametrize("count", [0, 51])
def test_outline_request_rejects_out_of_range_count(count):
    with pytest.raises(ValueError):
        OutlineRequest(title="T", company="C", creator="P", slide_count=count)


def test_presentation_record_uses_camel_case_keys():
    created = datetime(2024, 1, 1, tzinfo=timezone.utc)
    record = PresentationRecord("T", "C", "P", "# T", created_at=created)

    data = record.to_dict()

    assert data["createdAt"] == "2024-01-01T00:00:00+00:00"
    assert data["updatedAt"] == data["createdAt"]
    assert data["thumbnailUrl"] == ""


def test_visual_node_html_and_search():
    root = VisualNode("div", {"class": "a b"})
    root.append(VisualNode("p", text="x")).append(VisualNode("img", {"src": "s"}))

    assert root.to_html() == '<div class="a b"><p>x<img src="s"></p></div>'
    assert len(root.find_all("img")) == 1
    assert root.has_class("b")
    assert not root.has_class("c")


def test_exported_document_save(tmp_path):
    path = ExportedDocument("deck.pdf", b"%PDF-1.4", 1).save(tmp_path / "nested")
    assert path.read_bytes() == b"%PDF-1.4"


def test_outline_messages_carry_request_fields():
    request = OutlineRequest(
        title="Launch", company="Acme", creator="Sam", overview="New product", purpose="Inform", slide_count=7,
    )

    system, user = outline_messages(request)

    assert system["role"] == "system"
    assert "EXACTLY 7 slides" in system["content"]
    assert "# Launch" in system["content"]
    assert "Overview: New product" in user["content"]
    assert "Purpose: Inform" in user["content"]


def test_plain_text_drops_markup_and_image_refs():
    text = "# Title\n- point\n![chart](https://x.test/c.png) done"
    assert slide_plain_text(text) == "Title\n point\n done"
    assert "https://" not in image_prompt(text)
