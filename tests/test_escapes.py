from __future__ import annotations

import pytest

from vmbridge.escapes import (
    BLACK,
    ClearTarget,
    ColorLayer,
    colored,
    cursor_position,
    erase,
    parse_rgb_color,
    style,
)


def test_cursor_position_is_one_indexed_row_then_column() -> None:
    assert cursor_position(3, 5) == "\x1b[6;4H"
    assert cursor_position(0, 0) == "\x1b[1;1H"


def test_cursor_position_rejects_negative_coordinates() -> None:
    with pytest.raises(ValueError):
        cursor_position(-1, 0)


@pytest.mark.parametrize(
    ("target", "expected"),
    [
        (ClearTarget.AFTER, "\x1b[0J"),
        (ClearTarget.BEFORE, "\x1b[1J"),
        (ClearTarget.SCREEN, "\x1b[2J"),
        (ClearTarget.SCROLLBACK, "\x1b[3J"),
    ],
)
def test_erase_maps_targets_to_ed_parameters(target: ClearTarget, expected: str) -> None:
    assert erase(target) == expected


def test_colored_wraps_text_in_truecolor_foreground_and_reset() -> None:
    assert colored("hi", (255, 0, 0), ColorLayer.FOREGROUND) == "\x1b[38;2;255;0;0mhi\x1b[0m"


def test_colored_background_uses_48_and_clamps_channels() -> None:
    assert colored("x", (300, -5, 16), ColorLayer.BACKGROUND) == "\x1b[48;2;255;0;16mx\x1b[0m"


def test_style_joins_params_and_leaves_plain_text_alone() -> None:
    assert style("ok", 1, 32) == "\x1b[1;32mok\x1b[0m"
    assert style("plain") == "plain"


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("#ff0000", (255, 0, 0)),
        ("#0F0", (0, 255, 0)),
        (" #123456 ", (0x12, 0x34, 0x56)),
        (0x00FF80, (0, 255, 128)),
        ("16711680", (255, 0, 0)),
        ((1, 2, 3), (1, 2, 3)),
        ([10, 20, 30], (10, 20, 30)),
    ],
)
def test_parse_rgb_color_accepts_host_color_forms(value: object, expected: tuple[int, int, int]) -> None:
    assert parse_rgb_color(value) == expected


@pytest.mark.parametrize(
    "value",
    [
        "red",
        "#12345",
        "#zzzzzz",
        None,
        True,
        (1, 2),
        ["a", "b", "c"],
        1.5,
        "\u00b2",
        (float("inf"), 0, 0),
        [0, float("nan"), 0],
    ],
)
def test_parse_rgb_color_falls_back_to_black(value: object) -> None:
    assert parse_rgb_color(value) == BLACK
