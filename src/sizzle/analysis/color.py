"""Color utilities for visual weight classification."""

import re
from typing import List, Optional

HEX_DIGITS = re.compile(r"^[0-9a-fA-F]{6}$")
HEX_COLOR = re.compile(r"#([0-9a-fA-F]{3}(?:[0-9a-fA-F]{3})?)\b")

# color, background and background-color declarations; border-color and friends are skipped
COLOR_DECLARATION = re.compile(
    r"(?<![\w-])(?:background-color|background|color)\s*:\s*([^;\"'}]+)",
    re.IGNORECASE,
)


def _expand_shorthand(value: str) -> str:
    if len(value) == 3:
        return "".join(ch * 2 for ch in value)
    return value


def _linearize(channel: float) -> float:
    if channel <= 0.03928:
        return channel / 12.92
    return ((channel + 0.055) / 1.055) ** 2.4


def hex_to_luminance(hex_color: Optional[str]) -> Optional[float]:
    """Convert a hex color to WCAG 2.0 relative luminance.

    Args:
        hex_color: ``#rgb`` or ``#rrggbb``, with or without the leading ``#``.

    Returns:
        Luminance between 0 (black) and 1 (white), or None if unparseable.
    """
    if not hex_color or not isinstance(hex_color, str):
        return None

    clean = _expand_shorthand(hex_color.strip().lstrip("#"))
    if not HEX_DIGITS.match(clean):
        return None

    r, g, b = (int(clean[i:i + 2], 16) / 255 for i in (0, 2, 4))
    return 0.2126 * _linearize(r) + 0.7152 * _linearize(g) + 0.0722 * _linearize(b)


def extract_colors_from_html(html: Optional[str]) -> List[str]:
    """Extract hex colors from inline style declarations in HTML.

    Only ``color``, ``background`` and ``background-color`` values are read,
    which includes every stop of a ``linear-gradient(...)`` background.

    Returns:
        Lowercase six-digit hex strings with a leading ``#``, in document order.
    """
    if not html or not isinstance(html, str):
        return []

    colors = []
    for declaration in COLOR_DECLARATION.finditer(html):
        for match in HEX_COLOR.finditer(declaration.group(1)):
            colors.append("#" + _expand_shorthand(match.group(1).lower()))
    return colors
