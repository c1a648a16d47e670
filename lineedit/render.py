"""Screen layout of a prompt and its input line, and the renderer contract."""

from __future__ import annotations

import abc
import enum
from dataclasses import dataclass, field
from typing import Optional

import regex
from wcwidth import wcwidth

_GRAPHEME = regex.compile(r"\X")
_DIGITS = "0123456789"


class BellStyle(enum.Enum):
    """How the terminal signals that there is nothing to do."""

    AUDIBLE = "audible"
    NONE = "none"
    VISIBLE = "visible"


class OutputStreamType(enum.Enum):
    """The standard stream the editor writes to."""

    STDOUT = "stdout"
    STDERR = "stderr"


@dataclass(frozen=True, order=True, kw_only=True)
class Position:
    """A screen position relative to the start of the prompt."""

    row: int = 0
    col: int = 0


@dataclass(frozen=True, kw_only=True)
class Layout:
    """Where the prompt, cursor and end of input fall on the screen."""

    prompt_size: Position = field(default_factory=Position)
    left_margin: int = 0
    default_prompt: bool = False
    cursor: Position = field(default_factory=Position)
    end: Position = field(default_factory=Position)


@dataclass(frozen=True, kw_only=True)
class Prompt:
    """The prompt text and the space it takes on screen."""

    text: str
    size: Position = field(default_factory=Position)
    is_default: bool = True
    has_continuation: bool = False


class _EscapeTracker:
    """Measures graphemes one by one, giving ANSI escape sequences no width."""

    def __init__(self) -> None:
        # 0: normal text, 1: just after ESC, 2: inside a CSI sequence
        self.state = 0

    def width(self, grapheme: str) -> int:
        if self.state == 1:
            self.state = 2 if grapheme == "[" else 0
            return 0
        if self.state == 2:
            if not (grapheme == ";" or grapheme[0] in _DIGITS):
                self.state = 0
            return 0
        if grapheme == "\x1b":
            self.state = 1
            return 0
        if grapheme == "\n":
            return 0
        return sum(max(wcwidth(ch), 0) for ch in grapheme)


def _graphemes(s: str) -> list[str]:
    return _GRAPHEME.findall(s)


def text_width(s: str) -> int:
    """Return the number of columns ``s`` takes, ignoring escape sequences."""
    tracker = _EscapeTracker()
    return sum(tracker.width(g) for g in _graphemes(s))


def prompt_and_line_text(prompt: Prompt, line: str) -> str:
    """Return the text written to show ``prompt`` followed by ``line``."""
    return prompt.text + line


class Renderer(abc.ABC):
    """Displays a prompt, the input line and the cursor on a terminal."""

    @abc.abstractmethod
    def calculate_position(self, s: str, orig: Position, left_margin: int) -> Position:
        """Return where output ends after writing ``s`` starting at ``orig``."""

    def compute_layout(
        self, prompt: Prompt, line: str, pos: int, info: Optional[str] = None
    ) -> Layout:
        """Lay out ``prompt``, ``line`` with its cursor at ``pos``, and ``info``."""
        left_margin = prompt.size.col if prompt.has_continuation else 0
        cursor = self.calculate_position(line[:pos], prompt.size, left_margin)
        if pos == len(line):
            end = cursor
        else:
            end = self.calculate_position(line[pos:], cursor, left_margin)
        if info is not None:
            end = self.calculate_position(info, end, left_margin)
        return Layout(
            prompt_size=prompt.size,
            left_margin=left_margin,
            default_prompt=prompt.is_default,
            cursor=cursor,
            end=end,
        )

    @abc.abstractmethod
    def move_cursor(self, old: Position, new: Position) -> None:
        """Move the terminal cursor from ``old`` to ``new``."""

    @abc.abstractmethod
    def refresh_line(
        self,
        prompt: Prompt,
        line: str,
        pos: int,
        hint: Optional[str],
        old_layout: Layout,
        new_layout: Layout,
    ) -> None:
        """Redraw the prompt, the line and the hint."""

    @abc.abstractmethod
    def write_and_flush(self, data: bytes) -> None:
        """Write raw bytes to the output stream."""

    @abc.abstractmethod
    def beep(self) -> None:
        """Signal that there is nothing to complete."""

    @abc.abstractmethod
    def clear_screen(self) -> None:
        """Clear the whole screen."""

    @abc.abstractmethod
    def update_size(self) -> None:
        """Refresh the known terminal size."""

    @abc.abstractmethod
    def get_columns(self) -> int:
        """Return the terminal width."""

    @abc.abstractmethod
    def get_rows(self) -> int:
        """Return the terminal height."""

    @abc.abstractmethod
    def colors_enabled(self) -> bool:
        """Return whether colored output is allowed."""


class Sink(Renderer):
    """A renderer that draws nothing, for scripted input."""

    def calculate_position(self, s: str, orig: Position, left_margin: int) -> Position:
        return Position(row=orig.row, col=orig.col + len(s))

    def move_cursor(self, old: Position, new: Position) -> None:
        return None

    def refresh_line(
        self,
        prompt: Prompt,
        line: str,
        pos: int,
        hint: Optional[str],
        old_layout: Layout,
        new_layout: Layout,
    ) -> None:
        return None

    def write_and_flush(self, data: bytes) -> None:
        return None

    def beep(self) -> None:
        return None

    def clear_screen(self) -> None:
        return None

    def update_size(self) -> None:
        return None

    def get_columns(self) -> int:
        return 80

    def get_rows(self) -> int:
        return 24

    def colors_enabled(self) -> bool:
        return False