"""CSS themes shipped in ``slidedeck/themes``.

A theme is a single ``<name>.css`` file. Its ``:root`` block carries the
geometry variables read by :class:`slidedeck.css_utils.CSSParser`; the rest
styles the classes emitted by the renderer.
"""
import re
from pathlib import Path
from typing import List

THEMES_DIR = Path(__file__).parent / "themes"

# Plain names only, so a theme can never resolve outside THEMES_DIR
_THEME_NAME = re.compile(r"^[A-Za-z0-9_-]+$")


def theme_path(theme: str) -> Path:
    """Path of a theme file, after checking the name."""
    if not isinstance(theme, str) or not _THEME_NAME.match(theme):
        raise ValueError(f"Invalid theme name: {theme!r}")
    return THEMES_DIR / f"{theme}.css"


def get_css(theme: str = "default") -> str:
    """
    CSS text of a theme.

    Raises:
        ValueError: If the name contains anything but letters, digits, ``-`` or ``_``
        FileNotFoundError: If no such theme is shipped
    """
    path = theme_path(theme)
    if not path.is_file():
        raise FileNotFoundError(
            f"Theme '{theme}' not found in {THEMES_DIR} (available: {', '.join(list_available_themes())})"
        )
    return path.read_text(encoding="utf-8")


def list_available_themes() -> List[str]:
    return sorted(path.stem for path in THEMES_DIR.glob("*.css"))


def validate_theme(theme: str) -> bool:
    """``True`` if ``theme`` names a shipped theme. Used to vet CLI input."""
    try:
        return theme_path(theme).is_file()
    except ValueError:
        return False
