"""C-mode helpers, fence matching, tab conversion and mode switching."""

from __future__ import annotations

from typing import Optional, Tuple, Union

from .editing import backward_delete, current_column
from .modes import COLOR_NAMES, MODE_NAMES, Mode, mode_from_name
from .text import CommandFlag, Editor, Line, ReadOnlyError, WindowFlag

_BLANKS = (0x20, 0x09)
_NEWLINE = 0x0A

# Close fence -> open fence, for brace indentation.
_OPENER = {ord("}"): ord("{"), ord("]"): ord("["), ord(")"): ord("(")}

# Fence under the cursor -> (its partner, search forward?).
_PAIRS = {
    ord("("): (ord(")"), True),
    ord("{"): (ord("}"), True),
    ord("["): (ord("]"), True),
    ord(")"): (ord("("), False),
    ord("}"): (ord("{"), False),
    ord("]"): (ord("["), False),
}


def _code(c: Union[int, str]) -> int:
    return ord(c) if isinstance(c, str) else c


def _require_writable(editor: Editor) -> None:
    if editor.buffer.modes & Mode.VIEW:
        raise ReadOnlyError()


def _char_at_dot(editor: Editor) -> int:
    win = editor.window
    text = win.dot_line.text
    if win.dot_offset >= len(text):
        return _NEWLINE
    return text[win.dot_offset]


def _at_boundary(editor: Editor, forward: bool) -> bool:
    win = editor.window
    header = editor.buffer.header
    if forward:
        return (win.dot_offset == len(win.dot_line.text)
                and win.dot_line.next is header)
    return win.dot_offset == 0 and win.dot_line.prev is header


def _blank_before_dot(editor: Editor) -> bool:
    win = editor.window
    return all(b in _BLANKS for b in win.dot_line.text[:win.dot_offset])


def _next_tab(col: int, mask: int) -> int:
    return (col & ~mask) + mask + 1


def insert_brace(editor: Editor, n: int, c: Union[int, str]) -> bool:
    """Insert a close fence, first indenting it to match its open fence."""
    _require_writable(editor)
    code = _code(c)
    win = editor.window
    if not _blank_before_dot(editor):
        editor.insert(n, code)
        return True
    opener = _OPENER.get(code)
    if opener is None:
        return False

    old_line, old_offset = win.dot_line, win.dot_offset
    count = 1
    editor.backward_char(1)
    while count > 0:
        ch = _char_at_dot(editor)
        if ch == code:
            count += 1
        if ch == opener:
            count -= 1
        editor.backward_char(1)
        if _at_boundary(editor, False):
            break

    if count != 0:
        win.dot_line, win.dot_offset = old_line, old_offset
        editor.insert(n, code)
        return True

    win.dot_offset = 0
    while (win.dot_offset < len(win.dot_line.text)
           and win.dot_line.text[win.dot_offset] in _BLANKS):
        editor.forward_char(1)
    target = current_column(editor)
    win.dot_line, win.dot_offset = old_line, old_offset

    while target != (col := current_column(editor)):
        if target < col:
            while current_column(editor) > target:
                backward_delete(editor, False, 1)
        else:
            while target - current_column(editor) >= 8:
                editor.insert(1, "\t")
            editor.insert(target - current_column(editor), " ")

    editor.insert(n, code)
    return True


def insert_pound(editor: Editor) -> bool:
    """Insert '#', moving it to column 0 if only blanks precede dot."""
    _require_writable(editor)
    if editor.window.dot_offset != 0 and _blank_before_dot(editor):
        while current_column(editor) >= 1:
            backward_delete(editor, False, 1)
    editor.insert(1, "#")
    return True


def goto_fence(editor: Editor) -> bool:
    """Move dot to the fence matching the one under it; False if none."""
    win = editor.window
    old_line, old_offset = win.dot_line, win.dot_offset
    ch = _char_at_dot(editor)
    pair = _PAIRS.get(ch)
    if pair is None:
        return False
    other, forward = pair
    step = editor.forward_char if forward else editor.backward_char
    back = editor.backward_char if forward else editor.forward_char

    count = 1
    step(1)
    while count > 0:
        c = _char_at_dot(editor)
        if c == ch:
            count += 1
        if c == other:
            count -= 1
        step(1)
        if _at_boundary(editor, forward):
            break

    if count == 0:
        back(1)
        win.flags |= WindowFlag.MOVE
        return True
    win.dot_line, win.dot_offset = old_line, old_offset
    return False


def match_fence(editor: Editor, ch: Union[int, str]) -> Optional[Tuple[Line, int]]:
    """Find the open fence for close fence *ch* just typed before dot.

    The search stops above the top of the window. Return the position of
    the open fence, or None; dot is left where it was.
    """
    code = _code(ch)
    if code == ord(")"):
        opener = ord("(")
    elif code == ord("}"):
        opener = ord("{")
    else:
        opener = ord("[")

    win = editor.window
    old_line, old_offset = win.dot_line, win.dot_offset
    top = win.top_line.prev
    first = win.buffer.header.next

    count = 1
    editor.backward_char(2)
    while count > 0 and win.dot_line is not top:
        c = _char_at_dot(editor)
        if c == code:
            count += 1
        if c == opener:
            count -= 1
        editor.backward_char(1)
        if win.dot_line is first and win.dot_offset == 0:
            break

    found = None
    if count == 0:
        editor.forward_char(1)
        found = (win.dot_line, win.dot_offset)
    win.dot_line, win.dot_offset = old_line, old_offset
    return found


def _finish_line_command(editor: Editor) -> None:
    editor.this_flag &= ~CommandFlag.GOAL
    editor.change(WindowFlag.EDIT)


def detab(editor: Editor, f: bool, n: int) -> bool:
    """Turn tabs into spaces on *n* lines (one without an argument)."""
    _require_writable(editor)
    if not f:
        n = 1
    mask = editor.settings.tab_mask
    inc = 1 if n > 0 else -1
    win = editor.window
    while n:
        win.dot_offset = 0
        while win.dot_offset < len(win.dot_line.text):
            if win.dot_line.text[win.dot_offset] == 0x09:
                editor.delete_char(1, False)
                width = mask + 1 - (win.dot_offset & mask)
                editor.insert(width, " ")
                editor.backward_char(width)
            editor.forward_char(1)
        editor.forward_line(inc)
        n -= inc
    win.dot_offset = 0
    _finish_line_command(editor)
    return True


def entab(editor: Editor, f: bool, n: int) -> bool:
    """Turn runs of spaces into tabs where possible on *n* lines."""
    _require_writable(editor)
    if not f:
        n = 1
    mask = editor.settings.tab_mask
    inc = 1 if n > 0 else -1
    win = editor.window
    while n:
        win.dot_offset = 0
        first_space = -1
        col = 0
        while win.dot_offset < len(win.dot_line.text):
            if first_space >= 0 and _next_tab(first_space, mask) <= col:
                run = col - first_space
                if run >= 2:
                    editor.backward_char(run)
                    editor.delete(run, False)
                    editor.insert(1, "\t")
                first_space = -1
            ch = win.dot_line.text[win.dot_offset]
            if ch == 0x09:
                col = _next_tab(col, mask)
            elif ch == 0x20:
                if first_space == -1:
                    first_space = col
                col += 1
            else:
                col += 1
                first_space = -1
            editor.forward_char(1)
        editor.forward_line(inc)
        n -= inc
    win.dot_offset = 0
    _finish_line_command(editor)
    return True


def trim(editor: Editor, f: bool, n: int) -> bool:
    """Remove trailing blanks after dot on *n* lines."""
    _require_writable(editor)
    if not f:
        n = 1
    inc = 1 if n > 0 else -1
    win = editor.window
    while n:
        line = win.dot_line
        offset = win.dot_offset
        length = len(line.text)
        while length > offset and line.text[length - 1] in _BLANKS:
            length -= 1
        del line.text[length:]
        editor.forward_line(inc)
        n -= inc
    _finish_line_command(editor)
    return True


def adjust_mode(editor: Editor, name: str, add: bool = True,
                global_: bool = False) -> bool:
    """Set or clear a mode, or set a colour, by name.

    A colour name starting with a capital sets the foreground colour,
    otherwise the background. Raise ValueError for an unknown name.
    """
    if not name:
        raise ValueError("No mode name given")
    capital = "A" <= name[0] <= "Z"
    wanted = "".join(ch.upper() if "a" <= ch <= "z" else ch for ch in name)
    win = editor.window

    if wanted in COLOR_NAMES:
        index = COLOR_NAMES.index(wanted)
        if capital:
            if global_:
                editor.settings.fg_color = index
            win.fg_color = index
        else:
            if global_:
                editor.settings.bg_color = index
            win.bg_color = index
        win.flags |= WindowFlag.COLOR
        return True

    if wanted not in MODE_NAMES:
        raise ValueError("No such mode!")
    mode = mode_from_name(wanted)
    if global_:
        if add:
            editor.settings.global_modes |= mode
        else:
            editor.settings.global_modes &= ~mode
    else:
        if add:
            editor.buffer.modes |= mode
        else:
            editor.buffer.modes &= ~mode
        for wp in editor.windows:
            if wp.buffer is editor.buffer:
                wp.flags |= WindowFlag.MODE
    return True