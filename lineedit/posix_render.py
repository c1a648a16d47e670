"""Renderer for POSIX terminals that speak ANSI escape sequences."""

from __future__ import annotations

import logging
import os
import sys
from typing import BinaryIO, Callable, Optional

from lineedit.render import (
    BellStyle,
    Layout,
    OutputStreamType,
    Position,
    Prompt,
    Renderer,
    _EscapeTracker,
    _graphemes,
    prompt_and_line_text,
)

logger = logging.getLogger("lineedit")

WindowSize = Callable[[], "tuple[int, int]"]

_STREAM_FDS = {OutputStreamType.STDOUT: 1, OutputStreamType.STDERR: 2}


def _query_window_size(fd: int) -> tuple[int, int]:
    """Return (columns, rows) of the terminal on ``fd``, or (80, 24)."""
    try:
        size = os.get_terminal_size(fd)
    except (OSError, ValueError):
        return 80, 24
    # pseudo-terminals may report zero: assume 80 columns and unlimited rows
    cols = size.columns or 80
    rows = size.lines or sys.maxsize
    return cols, rows


class PosixRenderer(Renderer):
    """Draws the prompt and input line with ANSI escape sequences."""

    def __init__(
        self,
        out: OutputStreamType = OutputStreamType.STDOUT,
        tab_stop: int = 8,
        colors_enabled: bool = False,
        bell_style: BellStyle = BellStyle.AUDIBLE,
        *,
        output: Optional[BinaryIO] = None,
        window_size: Optional[WindowSize] = None,
    ) -> None:
        self.out = out
        self.tab_stop = tab_stop
        self.bell_style = bell_style
        self._colors_enabled = colors_enabled
        self._output = output
        fd = _STREAM_FDS[out]
        self._window_size: WindowSize = window_size or (lambda: _query_window_size(fd))
        self.cols, _ = self._window_size()
        self.buffer = ""

    def _stream(self) -> BinaryIO:
        if self._output is not None:
            return self._output
        stream = sys.stdout if self.out is OutputStreamType.STDOUT else sys.stderr
        return stream.buffer

    def _clear_old_rows(self, layout: Layout) -> str:
        current_row = layout.cursor.row
        old_rows = layout.end.row
        # old_rows < current_row when a multi-line default prompt is shown
        parts = []
        movement = max(old_rows - current_row, 0)
        if movement > 0:
            parts.append(f"\x1b[{movement}B")
        parts.append("\r\x1b[0K\x1b[A" * old_rows)
        parts.append("\r\x1b[0K")
        return "".join(parts)

    def calculate_position(self, s: str, orig: Position, left_margin: int) -> Position:
        """Zero width for control sequences; wide characters are never split."""
        row, col = orig.row, orig.col
        tracker = _EscapeTracker()
        for grapheme in _graphemes(s):
            if grapheme == "\n":
                row += 1
                col = left_margin
                continue
            if grapheme == "\t":
                cw = self.tab_stop - (col % self.tab_stop)
            else:
                cw = tracker.width(grapheme)
            col += cw
            if col > self.cols:
                row += 1
                col = cw
        if col == self.cols:
            col = 0
            row += 1
        return Position(row=row, col=col)

    def move_cursor(self, old: Position, new: Position) -> None:
        parts = []
        if new.row > old.row:
            shift = new.row - old.row
            parts.append("\x1b[B" if shift == 1 else f"\x1b[{shift}B")
        elif new.row < old.row:
            shift = old.row - new.row
            parts.append("\x1b[A" if shift == 1 else f"\x1b[{shift}A")
        if new.col > old.col:
            shift = new.col - old.col
            parts.append("\x1b[C" if shift == 1 else f"\x1b[{shift}C")
        elif new.col < old.col:
            shift = old.col - new.col
            parts.append("\x1b[D" if shift == 1 else f"\x1b[{shift}D")
        self.buffer = "".join(parts)
        self.write_and_flush(self.buffer.encode())

    def refresh_line(
        self,
        prompt: Prompt,
        line: str,
        pos: int,
        hint: Optional[str],
        old_layout: Layout,
        new_layout: Layout,
    ) -> None:
        cursor = new_layout.cursor
        end_pos = new_layout.end
        parts = [self._clear_old_rows(old_layout), prompt_and_line_text(prompt, line)]
        if hint is not None:
            parts.append(hint)
        ends_with_newline = hint.endswith("\n") if hint is not None else line.endswith("\n")
        # the terminal does not wrap on its own when the text fills the last column
        if end_pos.col == 0 and end_pos.row > 0 and not ends_with_newline:
            parts.append("\n")
        movement = end_pos.row - cursor.row
        if movement > 0:
            parts.append(f"\x1b[{movement}A")
        if cursor.col > 0:
            parts.append(f"\r\x1b[{cursor.col}C")
        else:
            parts.append("\r")
        self.buffer = "".join(parts)
        self.write_and_flush(self.buffer.encode())

    def write_and_flush(self, data: bytes) -> None:
        stream = self._stream()
        stream.write(data)
        stream.flush()

    def beep(self) -> None:
        if self.bell_style is BellStyle.AUDIBLE:
            err = sys.stderr.buffer
            err.write(b"\x07")
            err.flush()

    def clear_screen(self) -> None:
        self.write_and_flush(b"\x1b[H\x1b[2J")

    def update_size(self) -> None:
        self.cols, _ = self._window_size()

    def get_columns(self) -> int:
        return self.cols

    def get_rows(self) -> int:
        _, rows = self._window_size()
        return rows

    def colors_enabled(self) -> bool:
        return self._colors_enabled