"""
HTML escaping, URL allow-listing and active-content stripping.
"""
import html
import logging
import re
from urllib.parse import urlparse

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

SAFE_URL_SCHEMES = ("http", "https")

# Elements that can run code or pull in other documents.
ACTIVE_ELEMENTS = ("script", "iframe", "object", "embed", "frame", "frameset", "base", "meta", "link")
URL_ATTRIBUTES = ("href", "src", "xlink:href", "action", "formaction", "srcset", "poster", "background")

_DATA_IMAGE = re.compile(r"^data:image/(png|jpe?g|gif|webp);", re.IGNORECASE)


def escape_html(text) -> str:
    """Escape ``& < > " '`` so text can be placed in element or attribute content.

    Single quotes come out as ``&#039;`` rather than ``html.escape``'s ``&#x27;``.
    """
    return html.escape(str(text), quote=True).replace("&#x27;", "&#039;")


def is_safe_url(url) -> bool:
    """
    Check a URL against the protocol allow-list.

    Only absolute ``http``/``https`` URLs with a host are accepted. Anything
    that does not parse is rejected.
    """
    if not isinstance(url, str) or not url.strip():
        return False
    if url != url.strip() or any(ch in url for ch in "\x00\n\r\t"):
        return False
    try:
        parsed = urlparse(url)
        # Accessing .port validates the netloc ("http://host:abc" raises).
        parsed.port
    except ValueError:
        return False
    return parsed.scheme.lower() in SAFE_URL_SCHEMES and bool(parsed.hostname)


def _is_allowed_capture_url(value: str) -> bool:
    return is_safe_url(value) or bool(_DATA_IMAGE.match(value.strip()))


def strip_active_content(html_fragment: str) -> str:
    """
    Remove script-bearing elements and event-bearing attributes from HTML.

    Used on cloned slide markup before it is handed to a capture backend,
    which may execute embedded script.

    Args:
        html_fragment: HTML of one rendered slide

    Returns:
        Cleaned HTML fragment
    """
    soup = BeautifulSoup(html_fragment, "html.parser")

    removed = 0
    for element in soup.find_all(ACTIVE_ELEMENTS):
        element.decompose()
        removed += 1

    for element in soup.find_all(True):
        for attr in list(element.attrs):
            name = attr.lower()
            if name.startswith("on"):
                del element[attr]
                removed += 1
            elif name in URL_ATTRIBUTES:
                value = element[attr]
                if isinstance(value, list):
                    value = " ".join(value)
                if name == "srcset" or not _is_allowed_capture_url(value):
                    del element[attr]
                    removed += 1
            elif name == "style" and re.search(r"expression\s*\(|javascript:|url\s*\(", element[attr], re.IGNORECASE):
                del element[attr]
                removed += 1

    if removed:
        logger.debug(f"Stripped {removed} active elements/attributes from capture clone")

    return str(soup)
