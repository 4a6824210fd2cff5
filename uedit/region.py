"""The region: the text between dot and mark in the current window."""

from __future__ import annotations

from dataclasses import dataclass

from .modes import Mode
from .text import CommandFlag, Editor, Line, ReadOnlyError, WindowFlag


@dataclass
class Region:
    """Where a region starts and how many bytes it spans (newlines count one)."""

    line: Line
    offset: int
    size: int


def _require_writable(editor: Editor) -> None:
    if editor.buffer.modes & Mode.VIEW:
        raise ReadOnlyError()


def _start_kill(editor: Editor) -> None:
    if not editor.last_flag & CommandFlag.KILL:
        editor.kill_buffer.clear()
    editor.this_flag |= CommandFlag.KILL


def _walk(region: Region):
    """Yield (line, offset) for every byte of the region; offset is None at a newline."""
    line = region.line
    offset = region.offset
    for _ in range(region.size):
        if offset == len(line.text):
            yield line, None
            line = line.next
            offset = 0
        else:
            yield line, offset
            offset += 1


def get_region(editor: Editor) -> Region:
    """Work out the bounds of the region in the current window.

    Raise ValueError if no mark is set.
    """
    win = editor.window
    mark = win.mark_line
    if mark is None:
        raise ValueError("No mark set in this window")
    if win.dot_line is mark:
        start = min(win.dot_offset, win.mark_offset)
        return Region(win.dot_line, start, abs(win.mark_offset - win.dot_offset))

    header = editor.buffer.header
    forward = backward = win.dot_line
    backward_size = win.dot_offset
    forward_size = len(forward.text) - win.dot_offset + 1
    while forward is not header or backward.prev is not header:
        if forward is not header:
            forward = forward.next
            if forward is mark:
                return Region(win.dot_line, win.dot_offset,
                              forward_size + win.mark_offset)
            forward_size += len(forward.text) + 1
        if backward.prev is not header:
            backward = backward.prev
            backward_size += len(backward.text) + 1
            if backward is mark:
                return Region(backward, win.mark_offset,
                              backward_size - win.mark_offset)
    raise RuntimeError("Bug: lost mark")


def kill_region(editor: Editor) -> bool:
    """Delete the region into the kill buffer, leaving dot at its start."""
    _require_writable(editor)
    region = get_region(editor)
    _start_kill(editor)
    editor.window.dot_line = region.line
    editor.window.dot_offset = region.offset
    return editor.delete(region.size, True)


def copy_region(editor: Editor) -> None:
    """Copy the region into the kill buffer without moving dot."""
    region = get_region(editor)
    _start_kill(editor)
    for line, offset in _walk(region):
        editor.kill_buffer.append(0x0A if offset is None else line.text[offset])


def _map_region(editor: Editor, low: int, high: int, delta: int) -> None:
    _require_writable(editor)
    region = get_region(editor)
    editor.change(WindowFlag.HARD)
    for line, offset in _walk(region):
        if offset is not None and low <= line.text[offset] <= high:
            line.text[offset] += delta


def lower_region(editor: Editor) -> None:
    """Turn ASCII capitals in the region into lower case."""
    _map_region(editor, ord("A"), ord("Z"), ord("a") - ord("A"))


def upper_region(editor: Editor) -> None:
    """Turn ASCII lower-case letters in the region into capitals."""
    _map_region(editor, ord("a"), ord("z"), ord("A") - ord("a"))