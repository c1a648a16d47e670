import pytest

from lineedit.undo import Changeset


class FakeLine:
    def __init__(self, text=""):
        self.text = text
        self.pos = len(text)

    def insert_str(self, idx, text):
        self.text = self.text[:idx] + text + self.text[idx:]
        self.pos = idx + len(text)

    def delete_range(self, start, end):
        self.text = self.text[:start] + self.text[end:]
        self.pos = start

    def replace(self, start, end, text):
        self.text = self.text[:start] + text + self.text[end:]
        self.pos = start + len(text)

    def set_pos(self, pos):
        self.pos = pos


def test_insert_chars():
    cs = Changeset()
    cs.insert(0, "H")
    cs.insert(1, "i")
    assert len(cs.undos) == 1
    assert len(cs.redos) == 0
    cs.insert(0, " ")
    assert len(cs.undos) == 2


def test_insert_non_alnum_not_merged():
    cs = Changeset()
    cs.insert(0, "H")
    cs.insert(1, " ")
    assert len(cs.undos) == 2


def test_insert_strings():
    cs = Changeset()
    cs.insert_str(0, "Hello")
    cs.insert_str(5, ", ")
    assert len(cs.undos) == 2
    assert len(cs.redos) == 0


def test_insert_empty_string_ignored():
    cs = Changeset()
    cs.insert_str(0, "")
    cs.delete(0, "")
    assert len(cs.undos) == 0


def test_undo_insert():
    buf = FakeLine("Hello, world!")
    cs = Changeset()
    cs.insert_str(5, ", world!")

    assert cs.undo(buf, 1) is True
    assert len(cs.undos) == 0
    assert len(cs.redos) == 1
    assert buf.text == "Hello"

    assert cs.redo(buf) is True
    assert len(cs.undos) == 1
    assert len(cs.redos) == 0
    assert buf.text == "Hello, world!"


def test_undo_delete():
    buf = FakeLine("Hello")
    cs = Changeset()
    cs.delete(5, ", world!")

    cs.undo(buf, 1)
    assert buf.text == "Hello, world!"
    assert buf.pos == 13

    cs.redo(buf)
    assert buf.text == "Hello"


def test_delete_chars():
    buf = FakeLine("Hlo")
    cs = Changeset()
    cs.delete(1, "e")
    cs.delete(1, "l")
    assert len(cs.undos) == 1

    cs.undo(buf, 1)
    assert buf.text == "Hello"


def test_backspace_chars():
    buf = FakeLine("Hlo")
    cs = Changeset()
    cs.delete(2, "l")
    cs.delete(1, "e")
    assert len(cs.undos) == 1

    cs.undo(buf, 1)
    assert buf.text == "Hello"


def test_delete_punctuation_not_merged():
    cs = Changeset()
    cs.delete(1, ",")
    cs.delete(1, ",")
    assert len(cs.undos) == 2


def test_undo_replace():
    buf = FakeLine("Hello, world!")
    buf.replace(1, 5, "i")
    assert buf.text == "Hi, world!"
    cs = Changeset()
    cs.replace(1, "ello", "i")

    cs.undo(buf, 1)
    assert buf.text == "Hello, world!"

    cs.redo(buf)
    assert buf.text == "Hi, world!"


def test_replace_merges_consecutive():
    buf = FakeLine("ab")
    cs = Changeset()
    buf.replace(0, 1, "A")
    cs.replace(0, "a", "A")
    buf.replace(1, 2, "B")
    cs.replace(1, "b", "B")
    assert len(cs.undos) == 1
    cs.undo(buf, 1)
    assert buf.text == "ab"


def test_last_insert():
    cs = Changeset()
    cs.begin()
    cs.delete(0, "Hello")
    cs.insert_str(0, "Bye")
    cs.end()
    assert cs.last_insert() == "Bye"


def test_last_insert_after_delete_is_none():
    cs = Changeset()
    cs.insert_str(0, "Bye")
    cs.delete(0, "B")
    assert cs.last_insert() is None


def test_end():
    cs = Changeset()
    cs.begin()
    assert cs.end() is False
    cs.begin()
    cs.insert_str(0, "Hi")
    assert cs.end() is True


def test_empty_group_leaves_no_trace():
    cs = Changeset()
    assert cs.begin() == 0
    cs.end()
    assert cs.undos == []


def test_group_undone_and_redone_together():
    buf = FakeLine("")
    cs = Changeset()
    cs.begin()
    buf.insert_str(0, "Hello")
    cs.insert_str(0, "Hello")
    buf.insert_str(5, " you")
    cs.insert_str(5, " you")
    cs.end()

    assert cs.undo(buf, 1) is True
    assert buf.text == ""
    assert cs.undos == []

    assert cs.redo(buf) is True
    assert buf.text == "Hello you"
    assert cs.redos == []


def test_undo_many():
    buf = FakeLine("")
    cs = Changeset()
    for idx, word in [(0, "a "), (2, "b "), (4, "c")]:
        buf.insert_str(idx, word)
        cs.insert_str(idx, word)
    cs.undo(buf, 2)
    assert buf.text == "a "


def test_undo_nothing():
    cs = Changeset()
    buf = FakeLine("x")
    assert cs.undo(buf, 1) is False
    assert cs.redo(buf) is False
    assert buf.text == "x"


def test_truncate():
    cs = Changeset()
    mark = cs.begin()
    cs.insert_str(0, "Hi")
    cs.truncate(mark)
    assert cs.undos == []


@pytest.mark.parametrize("c", ["x", "1"])
def test_insert_char_listener(c):
    cs = Changeset()
    cs.insert_char(0, "a")
    cs.insert_char(1, c)
    assert cs.last_insert() == "a" + c


def test_new_change_clears_redos():
    buf = FakeLine("Hi")
    cs = Changeset()
    cs.insert_str(0, "Hi")
    cs.undo(buf, 1)
    assert len(cs.redos) == 1
    cs.insert_str(0, "x")
    assert cs.redos == []