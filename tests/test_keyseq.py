import io

import pytest

from lineedit.keyseq import KeyCode, KeyDecoder, KeyEvent, Modifiers


class FakeSource:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self._buf = io.BytesIO(data)
        self.polls: list[int] = []

    def read(self, size: int) -> bytes:
        return self._buf.read(size)

    def poll(self, timeout_ms: int) -> int:
        self.polls.append(timeout_ms)
        return 1 if self._buf.tell() < len(self._data) else 0


def decoder(data: bytes, timeout_ms: int = -1, key_map=None) -> KeyDecoder:
    return KeyDecoder(FakeSource(data), timeout_ms=timeout_ms, key_map=key_map)


def test_plain_character():
    assert decoder(b"a").next_key() == KeyEvent.from_char("a")


def test_multibyte_character():
    dec = decoder("é☺".encode())
    assert dec.next_char() == "é"
    assert dec.next_char() == "☺"


def test_end_of_input_raises():
    with pytest.raises(EOFError):
        decoder(b"").next_key()


def test_invalid_utf8_raises():
    with pytest.raises(UnicodeDecodeError):
        decoder(b"\xff").next_char()


def test_escape_char_maps_to_esc():
    assert KeyEvent.from_char("\x1b") == KeyEvent.ESC


def test_lone_escape():
    assert decoder(b"\x1b").next_key() == KeyEvent.ESC


def test_alt_helper():
    key = KeyEvent.alt("x")
    assert key.mods == Modifiers.ALT
    assert key.char == "x"


@pytest.mark.parametrize(
    "data, expected",
    [
        (b"\x1b[A", KeyEvent(KeyCode.UP)),
        (b"\x1b[H", KeyEvent(KeyCode.HOME)),
        (b"\x1b[Z", KeyEvent(KeyCode.BACK_TAB)),
        (b"\x1b[a", KeyEvent(KeyCode.UP, Modifiers.SHIFT)),
        (b"\x1b[[A", KeyEvent.function(1)),
        (b"\x1b[3~", KeyEvent(KeyCode.DELETE)),
        (b"\x1b[7~", KeyEvent(KeyCode.HOME)),
        (b"\x1b[15~", KeyEvent.function(5)),
        (b"\x1b[24~", KeyEvent.function(12)),
        (b"\x1b[15;5~", KeyEvent.function(5, Modifiers.CTRL)),
        (b"\x1b[200~", KeyEvent(KeyCode.BRACKETED_PASTE_START)),
        (b"\x1b[201~", KeyEvent(KeyCode.BRACKETED_PASTE_END)),
        (b"\x1b[1;5A", KeyEvent(KeyCode.UP, Modifiers.CTRL)),
        (b"\x1b[1;2F", KeyEvent(KeyCode.END, Modifiers.SHIFT)),
        (b"\x1b[1;8H", KeyEvent(KeyCode.HOME, Modifiers.CTRL_ALT_SHIFT)),
        (b"\x1b[1;5P", KeyEvent.function(1, Modifiers.CTRL)),
        (b"\x1b[1;5p", KeyEvent(KeyCode.CHAR, Modifiers.CTRL, char="0")),
        (b"\x1b[1;6y", KeyEvent(KeyCode.CHAR, Modifiers.CTRL_SHIFT, char="9")),
        (b"\x1b[1;9D", KeyEvent(KeyCode.LEFT, Modifiers.ALT)),
        (b"\x1b[3;2~", KeyEvent(KeyCode.DELETE, Modifiers.SHIFT)),
        (b"\x1b[6;7~", KeyEvent(KeyCode.PAGE_DOWN, Modifiers.CTRL_ALT)),
        (b"\x1b[5^", KeyEvent(KeyCode.PAGE_UP, Modifiers.CTRL)),
        (b"\x1b[8$", KeyEvent(KeyCode.END, Modifiers.SHIFT)),
        (b"\x1b[3@", KeyEvent(KeyCode.DELETE, Modifiers.CTRL_SHIFT)),
        (b"\x1b[5C", KeyEvent(KeyCode.RIGHT, Modifiers.CTRL)),
        (b"\x1bOP", KeyEvent.function(1)),
        (b"\x1bOM", KeyEvent.ENTER),
        (b"\x1bOd", KeyEvent(KeyCode.LEFT, Modifiers.CTRL)),
        (b"\x1bOx", KeyEvent.function(10)),
        (b"\x1bx", KeyEvent.alt("x")),
        (b"\x1b\x1b[A", KeyEvent(KeyCode.UP, Modifiers.ALT)),
    ],
)
def test_escape_sequences(data, expected):
    assert decoder(data).next_key() == expected


@pytest.mark.parametrize(
    "data",
    [b"\x1b[0", b"\x1b[9", b"\x1b[[Z", b"\x1b[Q", b"\x1bOz", b"\x1b[9~"[:3], b"\x1b[16~"],
)
def test_unknown_sequences(data):
    assert decoder(data).next_key() == KeyEvent(KeyCode.UNKNOWN_ESC_SEQ)


def test_cursor_report_is_consumed_entirely():
    dec = decoder(b"\x1b[12;40Rq")
    assert dec.next_key() == KeyEvent(KeyCode.UNKNOWN_ESC_SEQ)
    assert dec.next_key() == KeyEvent.from_char("q")


def test_keys_following_a_sequence():
    dec = decoder(b"\x1b[Ab")
    assert dec.next_key() == KeyEvent(KeyCode.UP)
    assert dec.next_key() == KeyEvent.from_char("b")


def test_double_escape_alone_is_escape():
    source = FakeSource(b"\x1b\x1b")
    dec = KeyDecoder(source)
    assert dec.next_key() == KeyEvent.ESC
    # waits 100 ms for more input when no timeout is configured
    assert source.polls[-1] == 100


def test_single_esc_abort_polls_without_waiting():
    source = FakeSource(b"\x1b")
    dec = KeyDecoder(source, timeout_ms=-1)
    assert dec.next_key(single_esc_abort=True) == KeyEvent.ESC
    assert source.polls == [0]


def test_configured_timeout_is_used():
    source = FakeSource(b"\x1b")
    dec = KeyDecoder(source, timeout_ms=500)
    dec.next_key(single_esc_abort=True)
    assert source.polls == [500]


def test_read_pasted_text_normalises_newlines():
    dec = decoder(b"one\r\ntwo\rthree\x1b[A!\x1b[201~rest")
    assert dec.read_pasted_text() == "one\ntwo\nthree!"
    assert dec.next_char() == "r"


def test_read_pasted_text_without_end_raises():
    with pytest.raises(EOFError):
        decoder(b"unterminated").read_pasted_text()


def test_find_binding():
    interrupt = KeyEvent.from_char("\x03")
    dec = decoder(b"", key_map={interrupt: "interrupt"})
    assert dec.find_binding(interrupt) == "interrupt"
    assert dec.find_binding(KeyEvent.from_char("a")) is None


def test_function_key_helper():
    key = KeyEvent.function(7, Modifiers.CTRL)
    assert key.code is KeyCode.F
    assert key.number == 7
    assert key.mods == Modifiers.CTRL