# lineedit

Pieces for building an interactive line editor on a terminal: an undo
history, input validation, decoding of terminal key sequences, and the screen
layout and redrawing of a prompt and its input line.

## Modules

- `lineedit.undo`: `Changeset` records insertions, deletions and
  replacements made to a line so they can be undone with `undo(line, n)` and
  redone with `redo(line)`. Typing alphanumeric characters one after another,
  or deleting single alphanumeric characters one after another (forward or
  backspace), is merged into a single change, as are consecutive
  replacements. `begin()` and `end()` group changes so they are undone
  together; `end()` returns whether anything changed inside the group.
  `last_insert()` returns the text of the most recent insertion or
  replacement. The line passed to `undo` and `redo` must offer
  `insert_str(idx, text)`, `delete_range(start, end)`,
  `replace(start, end, text)` and `set_pos(pos)`.
- `lineedit.validate`: `Validator`, `ValidationContext`, `ValidationResult`
  (with `ValidationKind`) and `MatchingBracketValidator`, which decide whether
  input is complete before it is accepted. `validate_brackets(text)` returns
  an incomplete result while `(`, `[` or `{` remain open and an invalid result
  with a message for unpaired or mismatched closing brackets.
- `lineedit.keyseq`: `KeyEvent`, `KeyCode` and `Modifiers`, and `KeyDecoder`,
  which reads UTF-8 bytes from a source and turns them into key events,
  decoding xterm, rxvt and Linux console escape sequences. It also reads
  bracketed-paste text (`read_pasted_text()`) and looks up terminal key
  bindings (`find_binding(key)`). The source must offer `read(size)`, which
  returns `b""` at end of input, and `poll(timeout_ms)`.
- `lineedit.render`: `Position`, `Layout`, `Prompt`, `BellStyle` and
  `OutputStreamType`; `text_width(s)`, which measures text in columns while
  ignoring ANSI escape sequences; and the abstract `Renderer`, whose
  `compute_layout(prompt, line, pos, info)` works out where the cursor and the
  end of the input land. `Sink` is a renderer that writes nothing and counts
  one column per character.
- `lineedit.posix_render`: `PosixRenderer`, which wraps text at the terminal
  width (tabs, wide characters and escape sequences included) and redraws the
  prompt, line and hint with ANSI escape sequences. Output goes to stdout or
  stderr, or to a binary stream passed as `output=`; the terminal size can be
  supplied with `window_size=`.

## Example

```python
from lineedit.render import Position, Prompt, Sink
from lineedit.undo import Changeset
from lineedit.validate import validate_brackets

changes = Changeset()
changes.insert(0, "H")
changes.insert(1, "i")          # merged with the previous insertion
print(changes.last_insert())    # "Hi"

print(validate_brackets("(a [b] {c})").is_valid())   # True
print(validate_brackets("([)").has_message())        # True

prompt = Prompt(text="> ", size=Position(col=2))
layout = Sink().compute_layout(prompt, "abc", 1)
print(layout.cursor, layout.end)  # Position(row=0, col=3) Position(row=0, col=5)
```

## What this package does not do

It does not put the terminal into raw mode, detect whether stdin or stdout
is a terminal, or read key presses from stdin by itself: a `KeyDecoder` reads
only from the source it is given. There is no editing loop, key map, history
or completion, and no `readline` function to call. These pieces are meant to
be put together by the program that uses them.

## Installing

```
pip install .
pip install ".[test]"   # to run the tests with pytest
```