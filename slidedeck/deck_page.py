#!/usr/bin/env python3
"""
HTML document for the live presentation view.

The page holds one ``<section>`` per slide inside ``.slides`` and a small
navigation runtime exposed as ``window.deck``. The runtime shows one slide
at a time, handles keyboard navigation and reports position changes to
``window.onSlideChanged`` when the host has exposed it.
"""

import logging
from typing import Iterable

from jinja2 import DictLoader, Environment
from markupsafe import Markup

from .css_utils import CSSParser
from .models import VisualNode
from .theme_loader import get_css

logger = logging.getLogger(__name__)

# Layout rules for the live view only; the theme decides how slides look.
VIEW_CSS = """
html, body { margin: 0; padding: 0; overflow: hidden; }
.deck { position: relative; margin: 0 auto; overflow: hidden; }
.slides > section { display: none; width: 100%; height: 100%; }
.slides > section.present { display: block; }
.slides.animated > section.present { animation: deck-fade 0.3s ease-in; }
@keyframes deck-fade { from { opacity: 0; } to { opacity: 1; } }
"""

DECK_RUNTIME_JS = """
(function () {
    var slides = Array.prototype.slice.call(document.querySelectorAll('.slides > section'));
    var container = document.querySelector('.slides');
    var state = { h: 0, v: 0, f: null };

    function clamp(index) {
        if (!slides.length) { return 0; }
        return Math.max(0, Math.min(slides.length - 1, index));
    }

    function notify() {
        if (typeof window.onSlideChanged === 'function') {
            window.onSlideChanged(state.h, state.v, state.f);
        }
    }

    function show(h, v, f, transition) {
        state = { h: clamp(h), v: v || 0, f: (f === undefined ? null : f) };
        container.classList.toggle('animated', transition !== false);
        slides.forEach(function (el, i) { el.classList.toggle('present', i === state.h); });
        notify();
        return state;
    }

    window.deck = {
        count: function () { return slides.length; },
        getIndices: function () { return { h: state.h, v: state.v, f: state.f }; },
        slide: function (h, v, f, transition) { return show(h, v, f, transition); },
        next: function () { return show(state.h + 1, 0, null, true); },
        prev: function () { return show(state.h - 1, 0, null, true); },
        slideHtml: function (i) { return slides[i] ? slides[i].outerHTML : null; }
    };

    document.addEventListener('keydown', function (event) {
        if (event.key === 'ArrowRight' || event.key === 'PageDown' || event.key === ' ') {
            window.deck.next();
        } else if (event.key === 'ArrowLeft' || event.key === 'PageUp') {
            window.deck.prev();
        }
    });

    slides.forEach(function (el, i) { el.classList.toggle('present', i === 0); });
    window.deckReady = true;
})();
"""

DECK_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{{ title }}</title>
<style>{{ view_css }}
{{ theme_css }}
.deck { width: {{ width }}px; height: {{ height }}px; }</style>
</head>
<body>
<div class="deck">
<div class="slides">
{% for section in sections %}{{ section }}
{% endfor %}</div>
</div>
<script>{{ runtime }}</script>
</body>
</html>
"""

SURFACE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<style>{{ theme_css }}
html, body { margin: 0; padding: 0; width: {{ width }}px; height: {{ height }}px; overflow: hidden; background: white; }
.surface > section { display: block; visibility: visible; transform: none; width: 100%; height: 100%; }</style>
</head>
<body>
<div class="surface" style="width: {{ width }}px; height: {{ height }}px;">{{ fragment }}</div>
</body>
</html>
"""

_env = Environment(
    loader=DictLoader({"deck.html": DECK_TEMPLATE, "surface.html": SURFACE_TEMPLATE}),
    autoescape=True,
)


def build_deck_document(sections: Iterable[VisualNode], *, theme: str = "default", title: str = "Presentation") -> str:
    """
    Assemble the live-view HTML document.

    Args:
        sections: Rendered ``section.slide`` nodes, already sanitized
        theme: CSS theme name
        title: Document title (escaped by the template)

    Returns:
        Complete HTML document
    """
    width, height = CSSParser(theme).get_slide_size()
    rendered = [Markup(node.to_html()) for node in sections]
    logger.debug(f"Building deck document with {len(rendered)} slides ({width}x{height}, theme={theme})")
    return _env.get_template("deck.html").render(
        title=title,
        view_css=Markup(VIEW_CSS),
        theme_css=Markup(get_css(theme)),
        width=width,
        height=height,
        sections=rendered,
        runtime=Markup(DECK_RUNTIME_JS),
    )


def build_surface_document(fragment_html: str, *, width: int, height: int, theme: str = "default") -> str:
    """
    Wrap one cleaned slide fragment into a fixed-size capture page.

    ``fragment_html`` must already have gone through
    :func:`slidedeck.sanitize.strip_active_content`.
    """
    return _env.get_template("surface.html").render(
        theme_css=Markup(get_css(theme)),
        width=width,
        height=height,
        fragment=Markup(fragment_html),
    )
