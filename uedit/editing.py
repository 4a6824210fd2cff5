"""Assorted editing commands: columns, tabs, newlines, deletion and kills."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .modes import Mode
from .text import CommandFlag, Editor, ReadOnlyError, WindowFlag, _char_length

# Longest indentation copied by a C-mode newline.
_MAX_INDENT = 255


@dataclass
class CursorPosition:
    """Where dot is in the buffer, as reported by the position command."""

    line: int
    total_lines: int
    column: int
    end_column: int
    offset: int
    total_chars: int
    percent: int
    char: int

    def __str__(self) -> str:
        return (
            f"Line {self.line}/{self.total_lines} "
            f"Col {self.column}/{self.end_column} "
            f"Char {self.offset}/{self.total_chars} ({self.percent}%) "
            f"char = 0x{self.char:x}"
        )


def _require_writable(editor: Editor) -> None:
    if editor.buffer.modes & Mode.VIEW:
        raise ReadOnlyError()


def _start_kill(editor: Editor) -> None:
    if not editor.last_flag & CommandFlag.KILL:
        editor.kill_buffer.clear()
    editor.this_flag |= CommandFlag.KILL


def _decode_at(text: bytearray, offset: int):
    length = _char_length(text, offset)
    if length == 1:
        return text[offset], 1
    return ord(bytes(text[offset:offset + length]).decode("utf-8")), length


def set_fill_column(editor: Editor, n: int) -> None:
    """Set the fill column to *n*."""
    editor.settings.fill_column = n


def cursor_position(editor: Editor) -> CursorPosition:
    """Count lines and characters before dot and in the whole buffer."""
    win = editor.window
    header = editor.buffer.header
    chars = lines = before_chars = before_lines = 0
    char = 0
    for line in editor.buffer:
        if line is win.dot_line:
            before_lines = lines
            before_chars = chars + win.dot_offset
            if win.dot_offset == len(line.text):
                char = 0x0A
            else:
                char = line.text[win.dot_offset]
        lines += 1
        chars += len(line.text) + 1
    if win.dot_line is header:
        before_lines = lines
        before_chars = chars
        char = 0

    column = current_column(editor, False)
    saved = win.dot_offset
    win.dot_offset = len(win.dot_line.text)
    end_column = current_column(editor, False)
    win.dot_offset = saved

    percent = (100 * before_chars) // chars if chars else 0
    return CursorPosition(
        line=before_lines + 1,
        total_lines=lines + 1,
        column=column,
        end_column=end_column,
        offset=before_chars,
        total_chars=chars,
        percent=percent,
        char=char,
    )


def current_line_number(editor: Editor) -> int:
    """Return the 1-based number of the line dot is on."""
    count = 0
    for line in editor.buffer:
        if line is editor.window.dot_line:
            break
        count += 1
    return count + 1


def current_column(editor: Editor, stop_at_nonblank: bool = False) -> int:
    """Return the display column of dot, or of the first non-blank if asked."""
    win = editor.window
    text = win.dot_line.text
    mask = editor.settings.tab_mask
    col = i = 0
    while i < win.dot_offset:
        c, length = _decode_at(text, i)
        i += length
        if stop_at_nonblank and c not in (0x20, 0x09):
            break
        if c == 0x09:
            col |= mask
        elif c < 0x20 or c == 0x7F:
            col += 1
        col += 1
    return col


def set_column(editor: Editor, pos: int) -> bool:
    """Move dot to display column *pos* on its line; False if the line is too short."""
    win = editor.window
    text = win.dot_line.text
    mask = editor.settings.tab_mask
    col = i = 0
    while i < len(text) and col < pos:
        c = text[i]
        if c == 0x09:
            col |= mask
        elif c < 0x20 or c == 0x7F:
            col += 1
        col += 1
        i += 1
    win.dot_offset = i
    return col >= pos


def twiddle(editor: Editor) -> bool:
    """Swap the two characters around dot (or before it, at the end of a line)."""
    _require_writable(editor)
    win = editor.window
    text = win.dot_line.text
    doto = win.dot_offset
    if doto == len(text):
        doto -= 1
        if doto < 0:
            return False
    right = text[doto]
    doto -= 1
    if doto < 0:
        return False
    text[doto], text[doto + 1] = right, text[doto]
    editor.change(WindowFlag.EDIT)
    return True


def quote(editor: Editor, c: Union[int, str], n: int = 1) -> bool:
    """Insert character *c* literally *n* times; a newline still splits lines."""
    _require_writable(editor)
    if n < 0:
        return False
    if n == 0:
        return True
    if c in (0x0A, "\n"):
        for _ in range(n):
            editor.newline()
        return True
    editor.insert(n, c)
    return True


def insert_tab(editor: Editor, n: int = 1) -> bool:
    """Insert a tab, or with an argument other than 1 set the soft tab size."""
    if n < 0:
        return False
    if n == 0 or n > 1:
        editor.tab_size = n
        return True
    if not editor.tab_size:
        editor.insert(1, "\t")
    else:
        editor.insert(editor.tab_size - current_column(editor) % editor.tab_size, " ")
    return True


def open_line(editor: Editor, n: int = 1) -> bool:
    """Insert *n* newlines and leave dot before them."""
    _require_writable(editor)
    if n < 0:
        return False
    if n == 0:
        return True
    for _ in range(n):
        editor.newline()
    return editor.backward_char(n)


def insert_newline(editor: Editor, n: int = 1) -> bool:
    """Insert *n* newlines, indenting C code when CMODE is on."""
    _require_writable(editor)
    if n < 0:
        return False
    if (n == 1 and editor.buffer.modes & Mode.CMODE
            and editor.window.dot_line is not editor.buffer.header):
        return c_newline(editor)
    for _ in range(n):
        editor.newline()
        editor.window.flags |= WindowFlag.INS
    return True


def c_newline(editor: Editor) -> bool:
    """Insert a newline copying the indentation, plus a tab after an opening brace."""
    win = editor.window
    text = win.dot_line.text
    last = win.dot_offset - 1
    brace = last >= 0 and text[last] == ord("{")
    i = 0
    while i < last and i < _MAX_INDENT and text[i] in (0x20, 0x09):
        i += 1
    indentation = bytes(text[:i]).decode("ascii")
    editor.newline()
    editor.insert_string(indentation)
    if brace:
        insert_tab(editor, 1)
    win.flags |= WindowFlag.INS
    return True


def delete_blank_lines(editor: Editor) -> bool:
    """Delete the blank lines around dot, or after the current line if it is not blank."""
    _require_writable(editor)
    header = editor.buffer.header
    first = editor.window.dot_line
    while not first.text and first.prev is not header:
        first = first.prev
    count = 0
    line = first.next
    while line is not header and not line.text:
        count += 1
        line = line.next
    if count == 0:
        return True
    editor.window.dot_line = first.next
    editor.window.dot_offset = 0
    return editor.delete(count, False)


def indent(editor: Editor, n: int = 1) -> bool:
    """Insert a newline and the current line's indentation, in tabs and spaces."""
    _require_writable(editor)
    if n < 0:
        return False
    mask = editor.settings.tab_mask
    for _ in range(n):
        column = 0
        for c in editor.window.dot_line.text:
            if c not in (0x20, 0x09):
                break
            if c == 0x09:
                column |= mask
            column += 1
        editor.newline()
        tabs, spaces = divmod(column, 8)
        if tabs:
            editor.insert(tabs, "\t")
        if spaces:
            editor.insert(spaces, " ")
    return True


def forward_delete(editor: Editor, f: bool, n: int) -> bool:
    """Delete *n* characters forward; with an argument the text is killed."""
    _require_writable(editor)
    if n < 0:
        return backward_delete(editor, f, -n)
    if f:
        _start_kill(editor)
    return editor.delete_char(n, bool(f))


def backward_delete(editor: Editor, f: bool, n: int) -> bool:
    """Delete *n* characters backward; with an argument the text is killed."""
    _require_writable(editor)
    if n < 0:
        return forward_delete(editor, f, -n)
    if f:
        _start_kill(editor)
    if not editor.backward_char(n):
        return False
    return editor.delete_char(n, bool(f))


def kill_text(editor: Editor, f: bool, n: int) -> bool:
    """Kill to the end of the line, or over *n* newlines, or to its start when n is 0."""
    _require_writable(editor)
    _start_kill(editor)
    win = editor.window
    header = editor.buffer.header
    if not f:
        chunk = len(win.dot_line.text) - win.dot_offset or 1
    elif n == 0:
        chunk = win.dot_offset
        win.dot_offset = 0
    elif n > 0:
        chunk = len(win.dot_line.text) - win.dot_offset + 1
        line = win.dot_line.next
        for _ in range(n - 1):
            if line is header:
                return False
            chunk += len(line.text) + 1
            line = line.next
    else:
        raise ValueError("neg kill")
    return editor.delete(chunk, True)


def _repeat_count(f: bool, n: int) -> int:
    return abs(n) if f else 1


def insert_string_command(editor: Editor, text: str, f: bool, n: int) -> bool:
    """Insert *text* |n| times (once without an argument)."""
    for _ in range(_repeat_count(f, n)):
        editor.insert_string(text)
    return True


def overwrite_string_command(editor: Editor, text: str, f: bool, n: int) -> bool:
    """Overwrite with *text* |n| times (once without an argument)."""
    for _ in range(_repeat_count(f, n)):
        editor.overwrite_string(text)
    return True