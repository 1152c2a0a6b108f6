from __future__ import annotations

import io

from vmbridge.terminal.models import CursorPosition, TerminalSize
from vmbridge.terminal.widget import StreamTerminal


def _terminal(stream: io.StringIO, sizes: list[TerminalSize] | None = None) -> StreamTerminal:
    queue = list(sizes or [TerminalSize(cols=10, rows=4)])

    def size_provider() -> TerminalSize:
        if len(queue) > 1:
            return queue.pop(0)
        return queue[0]

    return StreamTerminal(stream, size_provider=size_provider)


def test_write_and_writeln_pass_text_through() -> None:
    stream = io.StringIO()
    terminal = _terminal(stream)

    terminal.write("ab")
    terminal.writeln("c")

    assert stream.getvalue() == "abc\r\n"
    assert terminal.cursor_position() == CursorPosition(x=0, y=1)


def test_cursor_tracks_wrapping_and_position_sequences() -> None:
    terminal = _terminal(io.StringIO())

    terminal.write("0123456789x")
    assert terminal.cursor_position() == CursorPosition(x=1, y=1)

    terminal.write("\x1b[3;5H")
    assert terminal.cursor_position() == CursorPosition(x=4, y=2)

    terminal.write("\x1b[1;31mred\x1b[0m")
    assert terminal.cursor_position() == CursorPosition(x=7, y=2)


def test_cursor_stays_inside_viewport() -> None:
    terminal = _terminal(io.StringIO())

    terminal.write("\n\n\n\n\n")
    terminal.write("\x1b[99;99H")

    assert terminal.cursor_position() == CursorPosition(x=9, y=3)


def test_feed_dispatches_to_data_callbacks() -> None:
    terminal = _terminal(io.StringIO())
    seen: list[str] = []
    terminal.on_data(seen.append)

    terminal.feed("ls\r")
    terminal.feed("")

    assert seen == ["ls\r"]


def test_fit_reports_only_real_size_changes() -> None:
    terminal = _terminal(
        io.StringIO(),
        [TerminalSize(cols=10, rows=4), TerminalSize(cols=10, rows=4), TerminalSize(cols=20, rows=8)],
    )
    seen: list[TerminalSize] = []
    terminal.on_resize(seen.append)

    terminal.fit()
    terminal.fit()

    assert seen == [TerminalSize(cols=20, rows=8)]
    assert (terminal.cols, terminal.rows) == (20, 8)


def test_clear_erases_screen_and_homes_cursor() -> None:
    stream = io.StringIO()
    terminal = _terminal(stream)
    terminal.write("abc")

    terminal.clear()

    assert stream.getvalue().endswith("\x1b[2J\x1b[H")
    assert terminal.cursor_position() == CursorPosition(x=0, y=0)
