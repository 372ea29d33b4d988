"""
CSS variable access for deck themes.

Slide geometry lives in the theme's ``:root`` block so the live view, the
capture surfaces and the PDF pages all agree on it.
"""
import re
from typing import Dict, Tuple

from .theme_loader import get_css

_ROOT_BLOCK = re.compile(r':root\s*\{([^}]+)\}', re.DOTALL)
_VARIABLE = re.compile(r'--([\w-]+)\s*:\s*([^;]+);')
_PIXELS = re.compile(r'^(\d+)px$')


class CSSParser:
    """Read ``--name: value;`` variables from a theme's ``:root`` section."""

    def __init__(self, theme: str = "default"):
        self.theme = theme
        self._variables = None

    @property
    def variables(self) -> Dict[str, str]:
        """All ``:root`` variables of the theme, without the leading ``--``."""
        if self._variables is None:
            root = _ROOT_BLOCK.search(get_css(self.theme))
            if root is None:
                raise ValueError(f"Theme '{self.theme}' has no :root block")
            self._variables = {
                name: value.strip() for name, value in _VARIABLE.findall(root.group(1))
            }
        return self._variables

    def get_px_value(self, name: str) -> int:
        """Integer value of a ``--name: <n>px`` variable."""
        try:
            value = self.variables[name]
        except KeyError:
            raise ValueError(f"Theme '{self.theme}' does not define --{name}") from None

        match = _PIXELS.match(value)
        if match is None:
            raise ValueError(f"--{name} in theme '{self.theme}' must be a px value, got {value!r}")
        return int(match.group(1))

    def get_slide_size(self) -> Tuple[int, int]:
        """Logical size of a slide in the live view."""
        return self.get_px_value('slide-width'), self.get_px_value('slide-height')

    def get_export_size(self) -> Tuple[int, int]:
        """Size of a capture surface and of a PDF page."""
        return self.get_px_value('export-width'), self.get_px_value('export-height')
