import pytest

from uedit.editing import (
    backward_delete,
    c_newline,
    current_column,
    current_line_number,
    cursor_position,
    delete_blank_lines,
    forward_delete,
    indent,
    insert_newline,
    insert_string_command,
    insert_tab,
    kill_text,
    open_line,
    overwrite_string_command,
    quote,
    set_column,
    set_fill_column,
    twiddle,
)
from uedit.modes import Mode
from uedit.text import Editor, ReadOnlyError


def make_editor(text):
    ed = Editor()
    ed.buffer.set_text(text)
    ed.window.dot_line = ed.buffer.first_line
    ed.window.top_line = ed.buffer.first_line
    ed.window.dot_offset = 0
    return ed


def goto(ed, line, offset):
    ed.window.dot_line = list(ed.buffer)[line]
    ed.window.dot_offset = offset


def line_texts(ed):
    return [str(line) for line in ed.buffer]


def test_set_fill_column():
    ed = make_editor("")
    set_fill_column(ed, 40)
    assert ed.settings.fill_column == 40


def test_current_line_number():
    ed = make_editor("ab\ncd\nef\n")
    goto(ed, 1, 0)
    assert current_line_number(ed) == 2


def test_cursor_position_counts():
    src = "ab\ncd\n"
    ed = make_editor(src)
    goto(ed, 1, 1)
    pos = cursor_position(ed)
    assert pos.line == current_line_number(ed)
    assert pos.total_lines == src.count("\n") + 1
    assert pos.offset == len("ab\n") + 1
    assert pos.total_chars == len(src)
    assert pos.char == ord("d")
    assert pos.end_column == len("cd")
    assert pos.percent == (100 * pos.offset) // pos.total_chars


def test_cursor_position_end_of_buffer():
    src = "ab\n"
    ed = make_editor(src)
    ed.window.dot_line = ed.buffer.header
    pos = cursor_position(ed)
    assert pos.char == 0
    assert pos.offset == pos.total_chars == len(src)
    assert str(pos).startswith("Line ")


def test_current_column_tab():
    ed = make_editor("\tx\n")
    goto(ed, 0, 1)
    assert current_column(ed, False) == ed.settings.tab_mask + 1


def test_current_column_stops_at_nonblank():
    ed = make_editor("  abc\n")
    goto(ed, 0, 5)
    assert current_column(ed, True) == 2
    assert current_column(ed, False) == 5


def test_current_column_multibyte():
    ed = make_editor("\u00e9x\n")
    goto(ed, 0, len("\u00e9x".encode()))
    assert current_column(ed, False) == 2


def test_set_column():
    ed = make_editor("abcdef\n")
    assert set_column(ed, 3) is True
    assert ed.window.dot_offset == 3
    assert set_column(ed, 10) is False
    assert ed.window.dot_offset == len("abcdef")


def test_twiddle_at_end_of_line():
    ed = make_editor("ab\n")
    goto(ed, 0, 2)
    assert twiddle(ed) is True
    assert line_texts(ed) == ["ba"]


def test_twiddle_at_start_fails():
    ed = make_editor("ab\n")
    assert twiddle(ed) is False
    assert line_texts(ed) == ["ab"]


def test_quote_inserts_and_splits():
    ed = make_editor("ab\n")
    goto(ed, 0, 1)
    assert quote(ed, "x", 2) is True
    assert line_texts(ed) == ["axxb"]
    assert quote(ed, "\n", 1) is True
    assert line_texts(ed) == ["axx", "b"]
    assert quote(ed, "y", -1) is False


def test_insert_tab_soft_tabs():
    ed = make_editor("a\n")
    goto(ed, 0, 1)
    assert insert_tab(ed, 4) is True
    assert ed.tab_size == 4
    insert_tab(ed, 1)
    assert line_texts(ed) == ["a" + " " * 3]
    assert current_column(ed) % 4 == 0


def test_insert_tab_hard_tab():
    ed = make_editor("a\n")
    goto(ed, 0, 1)
    insert_tab(ed, 1)
    assert line_texts(ed) == ["a\t"]
    assert insert_tab(ed, -1) is False


def test_open_line_keeps_dot():
    ed = make_editor("abcd\n")
    goto(ed, 0, 2)
    assert open_line(ed, 2) is True
    assert line_texts(ed) == ["ab", "", "cd"]
    assert ed.window.dot_line is list(ed.buffer)[0]
    assert ed.window.dot_offset == 2


def test_insert_newline_repeated():
    ed = make_editor("abcd\n")
    goto(ed, 0, 2)
    assert insert_newline(ed, 2) is True
    assert line_texts(ed) == ["ab", "", "cd"]
    assert current_line_number(ed) == 3


def test_c_newline_copies_indent_and_adds_tab():
    ed = make_editor("  if {\n")
    ed.buffer.modes |= Mode.CMODE
    goto(ed, 0, len("  if {"))
    assert insert_newline(ed, 1) is True
    assert line_texts(ed) == ["  if {", "  \t"]


def test_c_newline_without_brace():
    ed = make_editor("    x\n")
    goto(ed, 0, len("    x"))
    assert c_newline(ed) is True
    assert line_texts(ed) == ["    x", "    "]


def test_delete_blank_lines_after_text():
    ed = make_editor("a\n\n\n\nb\n")
    assert delete_blank_lines(ed) is True
    assert ed.buffer.text() == "a\nb\n"


def test_delete_blank_lines_on_blank_line():
    ed = make_editor("a\n\n\n\nb\n")
    goto(ed, 2, 0)
    delete_blank_lines(ed)
    assert ed.buffer.text() == "a\nb\n"


def test_indent_copies_indentation():
    ed = make_editor("\tfoo\n")
    goto(ed, 0, len("\tfoo"))
    assert indent(ed, 1) is True
    assert line_texts(ed) == ["\tfoo", "\t"]


def test_forward_delete_kills_with_argument():
    ed = make_editor("abcdef\n")
    assert forward_delete(ed, True, 3) is True
    assert line_texts(ed) == ["def"]
    assert ed.kill_buffer.contents() == b"abc"


def test_forward_delete_without_argument_keeps_kill_buffer():
    ed = make_editor("abcdef\n")
    ed.kill_buffer.append(b"old")
    forward_delete(ed, False, 2)
    assert line_texts(ed) == ["cdef"]
    assert ed.kill_buffer.contents() == b"old"


def test_backward_delete():
    ed = make_editor("abcdef\n")
    goto(ed, 0, 4)
    assert backward_delete(ed, False, 2) is True
    assert line_texts(ed) == ["abef"]
    assert ed.window.dot_offset == 2


def test_negative_delete_reverses_direction():
    ed = make_editor("abcdef\n")
    goto(ed, 0, 4)
    forward_delete(ed, False, -1)
    assert line_texts(ed) == ["abcef"]


def test_kill_text_to_end_then_newline():
    ed = make_editor("abc\ndef\n")
    goto(ed, 0, 1)
    kill_text(ed, False, 1)
    assert line_texts(ed) == ["a", "def"]
    ed.last_flag = ed.this_flag
    kill_text(ed, False, 1)
    assert line_texts(ed) == ["adef"]
    assert ed.kill_buffer.contents() == b"bc\n"


def test_kill_text_to_start_of_line():
    ed = make_editor("abcdef\n")
    goto(ed, 0, 3)
    kill_text(ed, True, 0)
    assert line_texts(ed) == ["def"]
    assert ed.kill_buffer.contents() == b"abc"


def test_kill_text_lines():
    src = "one\ntwo\nthree\n"
    ed = make_editor(src)
    assert kill_text(ed, True, 2) is True
    assert ed.buffer.text() == "three\n"
    assert ed.kill_buffer.contents() == b"one\ntwo\n"


def test_kill_text_negative_raises():
    ed = make_editor("abc\n")
    with pytest.raises(ValueError):
        kill_text(ed, True, -1)


def test_insert_string_command_repeats():
    ed = make_editor("\n")
    insert_string_command(ed, "ab", True, -2)
    assert line_texts(ed) == ["abab"]
    insert_string_command(ed, "c", False, 5)
    assert line_texts(ed) == ["ababc"]


def test_overwrite_string_command():
    ed = make_editor("xxxxx\n")
    overwrite_string_command(ed, "ab", True, 2)
    assert line_texts(ed) == ["ababx"]


def test_read_only_commands_raise():
    ed = make_editor("abc\n")
    ed.buffer.modes |= Mode.VIEW
    for command in (
        lambda: twiddle(ed),
        lambda: open_line(ed, 1),
        lambda: kill_text(ed, False, 1),
        lambda: forward_delete(ed, False, 1),
        lambda: delete_blank_lines(ed),
    ):
        with pytest.raises(ReadOnlyError):
            command()
    assert ed.buffer.text() == "abc\n"