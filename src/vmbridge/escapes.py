"""Terminal control sequence formatting."""

from __future__ import annotations

from enum import Enum

ESC = "\x1b"
CSI = f"{ESC}["
RESET = f"{CSI}0m"

RGB = tuple[int, int, int]
BLACK: RGB = (0, 0, 0)


class ClearTarget(str, Enum):
    AFTER = "after"
    BEFORE = "before"
    SCREEN = "screen"
    SCROLLBACK = "scrollback"


class ColorLayer(str, Enum):
    FOREGROUND = "foreground"
    BACKGROUND = "background"


# ED (erase in display) parameter for each clear target.
_ERASE_PARAMS = {
    ClearTarget.AFTER: 0,
    ClearTarget.BEFORE: 1,
    ClearTarget.SCREEN: 2,
    ClearTarget.SCROLLBACK: 3,
}

_LAYER_PARAMS = {
    ColorLayer.FOREGROUND: 38,
    ColorLayer.BACKGROUND: 48,
}


def cursor_position(x: int, y: int) -> str:
    """Return the CUP sequence for zero-based column ``x`` and row ``y``."""
    if x < 0 or y < 0:
        raise ValueError(f"Cursor coordinates must be non-negative: ({x}, {y})")
    return f"{CSI}{y + 1};{x + 1}H"


def erase(target: ClearTarget) -> str:
    return f"{CSI}{_ERASE_PARAMS[target]}J"


def style(text: str, *params: int) -> str:
    """Wrap ``text`` in an SGR sequence built from ``params`` and a reset."""
    if not params:
        return text
    codes = ";".join(str(item) for item in params)
    return f"{CSI}{codes}m{text}{RESET}"


def colored(text: str, color: RGB, layer: ColorLayer = ColorLayer.FOREGROUND) -> str:
    red, green, blue = (_clamp_channel(item) for item in color)
    return f"{CSI}{_LAYER_PARAMS[layer]};2;{red};{green};{blue}m{text}{RESET}"


def parse_rgb_color(value: object) -> RGB:
    """Coerce a host colour value into an RGB triple.

    Accepts ``#rrggbb`` and ``#rgb`` strings, packed ``0xRRGGBB`` integers
    (also as decimal strings) and three-item sequences. Anything else is black.
    """
    if isinstance(value, bool):
        return BLACK
    if isinstance(value, int):
        return _unpack_rgb(value)
    if isinstance(value, (tuple, list)):
        if len(value) < 3:
            return BLACK
        try:
            return (
                _clamp_channel(int(value[0])),
                _clamp_channel(int(value[1])),
                _clamp_channel(int(value[2])),
            )
        except (TypeError, ValueError, OverflowError):
            return BLACK
    if not isinstance(value, str):
        return BLACK

    text = value.strip()
    if text.startswith("#"):
        digits = text[1:]
        if len(digits) == 3:
            digits = "".join(char * 2 for char in digits)
        if len(digits) != 6:
            return BLACK
        try:
            return _unpack_rgb(int(digits, 16))
        except ValueError:
            return BLACK
    if text.isascii() and text.isdigit():
        return _unpack_rgb(int(text))
    return BLACK


def _unpack_rgb(packed: int) -> RGB:
    return ((packed >> 16) & 0xFF, (packed >> 8) & 0xFF, packed & 0xFF)


def _clamp_channel(value: int) -> int:
    return max(0, min(255, int(value)))
