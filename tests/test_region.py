import pytest

from uedit.modes import Mode
from uedit.region import (
    copy_region,
    get_region,
    kill_region,
    lower_region,
    upper_region,
)
from uedit.text import Editor, ReadOnlyError

SRC = "hello\nworld\nagain\n"


def make_editor(text):
    ed = Editor()
    ed.buffer.set_text(text)
    ed.window.dot_line = ed.buffer.first_line
    ed.window.top_line = ed.buffer.first_line
    ed.window.dot_offset = 0
    return ed


def lines(ed):
    return list(ed.buffer)


def set_dot_mark(ed, dot, mark):
    ls = lines(ed)
    ed.window.dot_line, ed.window.dot_offset = ls[dot[0]], dot[1]
    ed.window.mark_line, ed.window.mark_offset = ls[mark[0]], mark[1]


def test_no_mark_raises():
    ed = make_editor(SRC)
    with pytest.raises(ValueError):
        get_region(ed)


def test_same_line_region():
    ed = make_editor(SRC)
    set_dot_mark(ed, (0, 4), (0, 1))
    region = get_region(ed)
    assert region.line is lines(ed)[0]
    assert region.offset == 1
    assert region.size == 4 - 1


def test_region_symmetric():
    ed = make_editor(SRC)
    set_dot_mark(ed, (0, 2), (1, 3))
    forward = get_region(ed)
    set_dot_mark(ed, (1, 3), (0, 2))
    backward = get_region(ed)
    assert forward.line is backward.line
    assert forward.offset == backward.offset
    assert forward.size == backward.size


def test_copy_region_multi_line():
    ed = make_editor(SRC)
    set_dot_mark(ed, (0, 2), (1, 3))
    copy_region(ed)
    start = 2
    end = len("hello\n") + 3
    assert ed.kill_buffer.contents() == SRC[start:end].encode()
    assert ed.buffer.text() == SRC
    assert ed.window.dot_offset == 2


def test_kill_region_removes_text():
    ed = make_editor(SRC)
    set_dot_mark(ed, (0, 2), (1, 3))
    start, end = 2, len("hello\n") + 3
    assert kill_region(ed) is True
    assert ed.buffer.text() == SRC[:start] + SRC[end:]
    assert ed.kill_buffer.contents() == SRC[start:end].encode()
    assert ed.window.dot_line is lines(ed)[0]
    assert ed.window.dot_offset == start


def test_kill_region_backward_mark():
    ed = make_editor(SRC)
    set_dot_mark(ed, (2, 1), (0, 4))
    start, end = 4, len("hello\nworld\n") + 1
    kill_region(ed)
    assert ed.buffer.text() == SRC[:start] + SRC[end:]


def test_consecutive_kills_append():
    ed = make_editor(SRC)
    set_dot_mark(ed, (0, 0), (0, 2))
    copy_region(ed)
    ed.last_flag = ed.this_flag
    set_dot_mark(ed, (1, 0), (1, 2))
    copy_region(ed)
    assert ed.kill_buffer.contents() == (SRC[0:2] + SRC[6:8]).encode()


def test_upper_and_lower_region():
    ed = make_editor(SRC)
    set_dot_mark(ed, (0, 2), (2, 3))
    start, end = 2, len("hello\nworld\n") + 3
    upper_region(ed)
    assert ed.buffer.text() == SRC[:start] + SRC[start:end].upper() + SRC[end:]
    lower_region(ed)
    assert ed.buffer.text() == SRC


def test_read_only_refuses_kill():
    ed = make_editor(SRC)
    ed.buffer.modes |= Mode.VIEW
    set_dot_mark(ed, (0, 0), (0, 3))
    with pytest.raises(ReadOnlyError):
        kill_region(ed)
    with pytest.raises(ReadOnlyError):
        upper_region(ed)
    assert ed.buffer.text() == SRC