"""Decoding of terminal input bytes into key events."""

from __future__ import annotations

import codecs
import dataclasses
import enum
import logging
from dataclasses import dataclass
from typing import Any, ClassVar, Mapping, Protocol

logger = logging.getLogger("lineedit")

_DIGITS = "0123456789"


class KeyCode(enum.Enum):
    """The kind of key that was pressed."""

    CHAR = "char"
    F = "function"
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    HOME = "home"
    END = "end"
    INSERT = "insert"
    DELETE = "delete"
    PAGE_UP = "page_up"
    PAGE_DOWN = "page_down"
    BACK_TAB = "back_tab"
    ENTER = "enter"
    ESC = "esc"
    BRACKETED_PASTE_START = "bracketed_paste_start"
    BRACKETED_PASTE_END = "bracketed_paste_end"
    UNKNOWN_ESC_SEQ = "unknown_esc_seq"


class Modifiers(enum.Flag):
    """Modifier keys held down with a key."""

    NONE = 0
    SHIFT = 1
    ALT = 2
    CTRL = 4
    ALT_SHIFT = ALT | SHIFT
    CTRL_SHIFT = CTRL | SHIFT
    CTRL_ALT = CTRL | ALT
    CTRL_ALT_SHIFT = CTRL | ALT | SHIFT


@dataclass(frozen=True)
class KeyEvent:
    """A key with its modifiers; ``char`` or ``number`` qualify CHAR and F keys."""

    code: KeyCode
    mods: Modifiers = Modifiers.NONE
    char: str | None = None
    number: int | None = None

    ESC: ClassVar[KeyEvent]
    ENTER: ClassVar[KeyEvent]

    @classmethod
    def from_char(cls, c: str, mods: Modifiers = Modifiers.NONE) -> KeyEvent:
        """Build the event for character ``c``; the escape character becomes Esc."""
        if c == "\x1b":
            return cls(KeyCode.ESC, mods)
        return cls(KeyCode.CHAR, mods, char=c)

    @classmethod
    def alt(cls, c: str) -> KeyEvent:
        """Build the event for ``c`` pressed with Alt."""
        return cls.from_char(c, Modifiers.ALT)

    @classmethod
    def function(cls, n: int, mods: Modifiers = Modifiers.NONE) -> KeyEvent:
        """Build the event for function key F``n``."""
        return cls(KeyCode.F, mods, number=n)


KeyEvent.ESC = KeyEvent(KeyCode.ESC)
KeyEvent.ENTER = KeyEvent(KeyCode.ENTER)

_UNKNOWN = KeyEvent(KeyCode.UNKNOWN_ESC_SEQ)
_PASTE_END = KeyEvent(KeyCode.BRACKETED_PASTE_END)

M = Modifiers

# xterm modifier parameter digits
_MOD_DIGITS = {
    "2": M.SHIFT,
    "3": M.ALT,
    "4": M.ALT_SHIFT,
    "5": M.CTRL,
    "6": M.CTRL_SHIFT,
    "7": M.CTRL_ALT,
    "8": M.CTRL_ALT_SHIFT,
}

_CURSOR_KEYS = {
    "A": KeyCode.UP,
    "B": KeyCode.DOWN,
    "C": KeyCode.RIGHT,
    "D": KeyCode.LEFT,
}
_NAV_KEYS = {**_CURSOR_KEYS, "F": KeyCode.END, "H": KeyCode.HOME}


def _k(code: KeyCode, mods: Modifiers = M.NONE) -> KeyEvent:
    return KeyEvent(code, mods)


# \E[ <letter>
_CSI_ANSI = {
    **{c: _k(code) for c, code in _NAV_KEYS.items()},
    "Z": _k(KeyCode.BACK_TAB),
    "a": _k(KeyCode.UP, M.SHIFT),
    "b": _k(KeyCode.DOWN, M.SHIFT),
    "c": _k(KeyCode.RIGHT, M.SHIFT),
    "d": _k(KeyCode.LEFT, M.SHIFT),
}

# \E[[ <letter> (Linux console)
_LINUX_CONSOLE = {c: KeyEvent.function(n) for n, c in enumerate("ABCDE", start=1)}

# \E[ <digit> ~
_CSI_TILDE = {
    "1": _k(KeyCode.HOME),
    "7": _k(KeyCode.HOME),
    "2": _k(KeyCode.INSERT),
    "3": _k(KeyCode.DELETE),
    "4": _k(KeyCode.END),
    "8": _k(KeyCode.END),
    "5": _k(KeyCode.PAGE_UP),
    "6": _k(KeyCode.PAGE_DOWN),
}

# \E[ <digit><digit> ~
_FUNCTION_CODES = {
    "11": 1,
    "12": 2,
    "13": 3,
    "14": 4,
    "15": 5,
    "17": 6,
    "18": 7,
    "19": 8,
    "20": 9,
    "21": 10,
    "23": 11,
    "24": 12,
}
_CSI_FUNCTION = {seq: KeyEvent.function(n) for seq, n in _FUNCTION_CODES.items()}
# \E[ <digit><digit> ; 5 ~
_CSI_CTRL_FUNCTION = {
    seq: KeyEvent.function(n, M.CTRL) for seq, n in _FUNCTION_CODES.items() if n >= 5
}

# \E[ <digit><digit><digit> ~
_CSI_THREE_DIGITS = {
    "200": _k(KeyCode.BRACKETED_PASTE_START),
    "201": _k(KeyCode.BRACKETED_PASTE_END),
}


def _build_modified_csi() -> dict[tuple[str, str], KeyEvent]:
    """Table for \\E[1 ; <modifier> <letter>."""
    table: dict[tuple[str, str], KeyEvent] = {}
    for digit, mods in _MOD_DIGITS.items():
        for letter, code in _NAV_KEYS.items():
            table[digit, letter] = _k(code, mods)
    table["5", "P"] = KeyEvent.function(1, M.CTRL)
    table["5", "Q"] = KeyEvent.function(2, M.CTRL)
    table["5", "S"] = KeyEvent.function(4, M.CTRL)
    for digit in "5678":
        for letter, number in zip("pqrstuvwxy", _DIGITS):
            table[digit, letter] = KeyEvent(KeyCode.CHAR, _MOD_DIGITS[digit], char=number)
    # Meta + arrow on some Macs with iTerm defaults
    for letter, code in _CURSOR_KEYS.items():
        table["9", letter] = _k(code, M.ALT)
    return table


_CSI_MODIFIED = _build_modified_csi()

_TILDE_KEYS = {
    "2": KeyCode.INSERT,
    "3": KeyCode.DELETE,
    "5": KeyCode.PAGE_UP,
    "6": KeyCode.PAGE_DOWN,
}
# \E[ <digit> ; <modifier> ~
_CSI_MODIFIED_TILDE = {
    (key_digit, mod_digit): _k(code, mods)
    for key_digit, code in _TILDE_KEYS.items()
    for mod_digit, mods in _MOD_DIGITS.items()
}

_RXVT_SHIFT = "$"
_RXVT_CTRL = "\x1e"
_RXVT_CTRL_SHIFT = "@"
_RXVT_SUFFIXES = {
    _RXVT_CTRL: M.CTRL,
    _RXVT_SHIFT: M.SHIFT,
    _RXVT_CTRL_SHIFT: M.CTRL_SHIFT,
}


def _build_rxvt() -> dict[tuple[str, str], KeyEvent]:
    """Table for rxvt style \\E[ <digit> <suffix>."""
    table: dict[tuple[str, str], KeyEvent] = {
        ("3", _RXVT_CTRL): _k(KeyCode.DELETE, M.CTRL),
        ("3", _RXVT_CTRL_SHIFT): _k(KeyCode.DELETE, M.CTRL_SHIFT),
    }
    for letter, code in _CURSOR_KEYS.items():
        table["5", letter] = _k(code, M.CTRL)
    keys = {
        "5": KeyCode.PAGE_UP,
        "6": KeyCode.PAGE_DOWN,
        "7": KeyCode.HOME,
        "8": KeyCode.END,
    }
    for digit, code in keys.items():
        for suffix, mods in _RXVT_SUFFIXES.items():
            table[digit, suffix] = _k(code, mods)
    return table


_CSI_RXVT = _build_rxvt()

# \EO <letter>
_SS3 = {
    **{c: _k(code) for c, code in _NAV_KEYS.items()},
    "M": KeyEvent.ENTER,
    "P": KeyEvent.function(1),
    "Q": KeyEvent.function(2),
    "R": KeyEvent.function(3),
    "S": KeyEvent.function(4),
    "a": _k(KeyCode.UP, M.CTRL),
    "b": _k(KeyCode.DOWN, M.CTRL),
    "c": _k(KeyCode.RIGHT, M.CTRL),
    "d": _k(KeyCode.LEFT, M.CTRL),
    "l": KeyEvent.function(8),
    "t": KeyEvent.function(5),
    "u": KeyEvent.function(6),
    "v": KeyEvent.function(7),
    "w": KeyEvent.function(9),
    "x": KeyEvent.function(10),
}


class _ByteSource(Protocol):
    def read(self, size: int) -> bytes: ...

    def poll(self, timeout_ms: int) -> int: ...


def _unknown(description: str) -> KeyEvent:
    logger.debug("unsupported esc sequence: %s", description)
    return _UNKNOWN


class KeyDecoder:
    """Reads bytes from a source and turns them into key events.

    The source must offer ``read(size)``, returning ``b""`` at end of input,
    and ``poll(timeout_ms)``, returning how many inputs are ready; a negative
    timeout waits without limit.
    """

    def __init__(
        self,
        source: _ByteSource,
        timeout_ms: int = -1,
        key_map: Mapping[KeyEvent, Any] | None = None,
    ) -> None:
        self.source = source
        self.timeout_ms = timeout_ms
        self.key_map: dict[KeyEvent, Any] = dict(key_map or {})
        self._decoder = codecs.getincrementaldecoder("utf-8")()

    def poll(self, timeout_ms: int) -> int:
        """Wait up to ``timeout_ms`` for input; return the number of ready inputs."""
        return self.source.poll(timeout_ms)

    def next_char(self) -> str:
        """Read one UTF-8 encoded character.

        Raises EOFError at end of input and UnicodeDecodeError on bad UTF-8.
        """
        while True:
            data = self.source.read(1)
            if not data:
                raise EOFError("end of input")
            try:
                text = self._decoder.decode(data)
            except UnicodeDecodeError:
                self._decoder.reset()
                raise
            if text:
                return text

    def next_key(self, single_esc_abort: bool = False) -> KeyEvent:
        """Read one key press, decoding escape sequences."""
        c = self.next_char()
        key = KeyEvent.from_char(c)
        if key == KeyEvent.ESC:
            timeout = 0 if single_esc_abort and self.timeout_ms == -1 else self.timeout_ms
            if self.poll(timeout) != 0:
                key = self.escape_sequence()
        logger.debug("c: %r => key: %r", c, key)
        return key

    def escape_sequence(self) -> KeyEvent:
        """Decode the rest of a sequence whose escape byte was already read."""
        return self._escape_sequence(allow_recurse=True)

    def _escape_sequence(self, allow_recurse: bool) -> KeyEvent:
        seq1 = self.next_char()
        if seq1 == "[":
            return self._escape_csi()
        if seq1 == "O":
            return self._escape_o()
        if seq1 == "\x1b":
            # ESC ESC <seq>: the key of <seq> with Alt (rxvt, iTerm)
            if not allow_recurse:
                return KeyEvent.ESC
            timeout = 100 if self.timeout_ms < 0 else self.timeout_ms
            try:
                ready = self.poll(timeout)
            except OSError:
                return KeyEvent.ESC
            if ready == 0:
                return KeyEvent.ESC
            key = self._escape_sequence(allow_recurse=False)
            return dataclasses.replace(key, mods=key.mods | M.ALT)
        return KeyEvent.alt(seq1)

    def _escape_csi(self) -> KeyEvent:
        seq2 = self.next_char()
        if seq2 in _DIGITS:
            if seq2 in "09":
                return _unknown(f"\\E[{seq2!r}")
            return self._extended_escape(seq2)
        if seq2 == "[":
            seq3 = self.next_char()
            return _LINUX_CONSOLE.get(seq3) or _unknown(f"\\E[[{seq3!r}")
        return _CSI_ANSI.get(seq2) or _unknown(f"\\E[{seq2!r}")

    def _extended_escape(self, seq2: str) -> KeyEvent:
        seq3 = self.next_char()
        if seq3 == "~":
            return _CSI_TILDE.get(seq2) or _unknown(f"\\E[{seq2}~")
        if seq3 in _DIGITS:
            return self._two_digit_escape(seq2, seq3)
        if seq3 == ";":
            seq4 = self.next_char()
            if seq4 not in _DIGITS:
                return _unknown(f"\\E[{seq2};{seq4!r}")
            seq5 = self.next_char()
            if seq5 in _DIGITS:
                self.next_char()  # 'R' expected
                return _UNKNOWN
            if seq2 == "1":
                return _CSI_MODIFIED.get((seq4, seq5)) or _unknown(f"\\E[1;{seq4}{seq5!r}")
            if seq5 == "~":
                return _CSI_MODIFIED_TILDE.get((seq2, seq4)) or _unknown(
                    f"\\E[{seq2};{seq4!r}~"
                )
            return _unknown(f"\\E[{seq2};{seq4}{seq5!r}")
        return _CSI_RXVT.get((seq2, seq3)) or _unknown(f"\\E[{seq2}{seq3!r}")

    def _two_digit_escape(self, seq2: str, seq3: str) -> KeyEvent:
        seq4 = self.next_char()
        if seq4 == "~":
            return _CSI_FUNCTION.get(seq2 + seq3) or _unknown(f"\\E[{seq2}{seq3}~")
        if seq4 == ";":
            seq5 = self.next_char()
            if seq5 not in _DIGITS:
                return _unknown(f"\\E[{seq2}{seq3};{seq5!r}")
            seq6 = self.next_char()
            if seq6 in _DIGITS:
                self.next_char()  # 'R' expected
                return _UNKNOWN
            if seq6 == "R":
                return _UNKNOWN
            if seq6 == "~":
                if seq5 == "5":
                    found = _CSI_CTRL_FUNCTION.get(seq2 + seq3)
                    if found is not None:
                        return found
                return _unknown(f"\\E[{seq2}{seq3};{seq5}~")
            return _unknown(f"\\E[{seq2}{seq3};{seq5}{seq6}")
        if seq4 in _DIGITS:
            seq5 = self.next_char()
            if seq5 == "~":
                return _CSI_THREE_DIGITS.get(seq2 + seq3 + seq4) or _unknown(
                    f"\\E[{seq2}{seq3}{seq4}~"
                )
            return _unknown(f"\\E[{seq2}{seq3}{seq4}{seq5}")
        return _unknown(f"\\E[{seq2}{seq3}{seq4!r}")

    def _escape_o(self) -> KeyEvent:
        seq2 = self.next_char()
        return _SS3.get(seq2) or _unknown(f"\\EO{seq2!r}")

    def read_pasted_text(self) -> str:
        """Read bracketed-paste text up to its end marker, normalising newlines."""
        parts: list[str] = []
        while True:
            c = self.next_char()
            if c == "\x1b":
                if self.escape_sequence() == _PASTE_END:
                    break
                continue
            parts.append(c)
        return "".join(parts).replace("\r\n", "\n").replace("\r", "\n")

    def find_binding(self, key: KeyEvent) -> Any:
        """Return the command the terminal binds to ``key``, or None."""
        cmd = self.key_map.get(key)
        if cmd is not None:
            logger.debug("terminal key binding: %r => %r", key, cmd)
        return cmd