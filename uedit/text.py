"""Buffers of text lines, windows onto them and the primitive editing operations."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterator, List, Optional, Union

from .modes import Mode, Settings

_ENCODING = "utf-8"
_ERRORS = "surrogateescape"

# Rows of the terminal, including the message line.
DEFAULT_SCREEN_ROWS = 24


class ReadOnlyError(Exception):
    """The current buffer is in VIEW mode and may not be changed."""

    def __init__(self, message: str = "(Key illegal in VIEW mode)"):
        super().__init__(message)


class BufferFlag(enum.IntFlag):
    """State of a buffer."""

    INVISIBLE = 1
    CHANGED = 2
    TRUNCATED = 4


class WindowFlag(enum.IntFlag):
    """What a window needs redrawn."""

    FORCE = 1
    MOVE = 2
    EDIT = 4
    HARD = 8
    MODE = 16
    COLOR = 32
    INS = 64
    KILLS = 128


class CommandFlag(enum.IntFlag):
    """What the current or last command was."""

    GOAL = 1
    KILL = 2


class Line:
    """One line of text, held as bytes, linked to its neighbours."""

    __slots__ = ("text", "next", "prev")

    def __init__(self, text: Union[bytes, bytearray] = b""):
        self.text = bytearray(text)
        self.next: Line = self
        self.prev: Line = self

    def __str__(self) -> str:
        return self.text.decode(_ENCODING, _ERRORS)

    def __repr__(self) -> str:
        return f"Line({bytes(self.text)!r})"


def _link_before(anchor: Line, line: Line) -> None:
    line.prev = anchor.prev
    line.next = anchor
    anchor.prev.next = line
    anchor.prev = line


def _unlink(line: Line) -> None:
    line.prev.next = line.next
    line.next.prev = line.prev


def _char_length(text: bytearray, offset: int) -> int:
    """Return the byte length of the UTF-8 character at *offset* (1 if invalid)."""
    if offset >= len(text):
        return 1
    lead = text[offset]
    if lead < 0xC0:
        return 1
    if lead < 0xE0:
        need = 2
    elif lead < 0xF0:
        need = 3
    elif lead < 0xF8:
        need = 4
    else:
        return 1
    tail = text[offset + 1:offset + need]
    if len(tail) != need - 1 or any(b & 0xC0 != 0x80 for b in tail):
        return 1
    return need


def _prev_char_start(text: bytearray, offset: int) -> int:
    """Return the offset of the character that ends at *offset*."""
    for start in range(max(offset - 4, 0), offset):
        if text[start] & 0xC0 != 0x80 and start + _char_length(text, start) == offset:
            return start
    return offset - 1


class Buffer:
    """A named list of lines, ending at a blank header line."""

    def __init__(self, name: str, flags: BufferFlag = BufferFlag(0)):
        self.name = name
        self.flags = BufferFlag(flags)
        self.modes = Mode(0)
        self.filename = ""
        self.active = True
        self.window_count = 0
        self.header = Line()
        self.dot_line: Line = self.header
        self.dot_offset = 0
        self.mark_line: Optional[Line] = None
        self.mark_offset = 0

    def __iter__(self) -> Iterator[Line]:
        line = self.header.next
        while line is not self.header:
            yield line
            line = line.next

    @property
    def first_line(self) -> Line:
        return self.header.next

    def set_text(self, text: str) -> None:
        """Replace the contents with *text*; a final newline ends the last line."""
        self.header.next = self.header.prev = self.header
        if text:
            parts = text.split("\n")
            if parts[-1] == "":
                parts.pop()
            for part in parts:
                _link_before(self.header, Line(part.encode(_ENCODING, _ERRORS)))
        self.dot_line = self.first_line
        self.dot_offset = 0
        self.mark_line = None
        self.mark_offset = 0

    def text(self) -> str:
        """Return the contents with a newline after every line."""
        return "".join(f"{line}\n" for line in self)


@dataclass(eq=False)
class Window:
    """A view onto a buffer, with its own point and mark."""

    buffer: Buffer
    top_line: Line
    dot_line: Line
    dot_offset: int = 0
    mark_line: Optional[Line] = None
    mark_offset: int = 0
    top_row: int = 0
    rows: int = 0
    force: int = 0
    flags: WindowFlag = WindowFlag(0)
    fg_color: int = 7
    bg_color: int = 0


class KillBuffer:
    """Text removed by kill commands, kept for yanking back."""

    def __init__(self) -> None:
        self._data = bytearray()

    def clear(self) -> None:
        self._data.clear()

    def append(self, data: Union[bytes, bytearray, str, int]) -> None:
        if isinstance(data, int):
            self._data.append(data & 0xFF)
        elif isinstance(data, str):
            self._data += data.encode(_ENCODING, _ERRORS)
        else:
            self._data += data

    def contents(self) -> bytes:
        return bytes(self._data)

    def __len__(self) -> int:
        return len(self._data)


class Editor:
    """The buffers, windows and kill buffer, with the text primitives."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings if settings is not None else Settings()
        self.kill_buffer = KillBuffer()
        self.this_flag = CommandFlag(0)
        self.last_flag = CommandFlag(0)
        self.tab_size = 0
        main_buffer = Buffer("main")
        self.list_buffer = Buffer("*List*", BufferFlag.INVISIBLE)
        self.buffers: List[Buffer] = [main_buffer, self.list_buffer]
        main_buffer.window_count = 1
        window = Window(
            buffer=main_buffer,
            top_line=main_buffer.header,
            dot_line=main_buffer.header,
            rows=DEFAULT_SCREEN_ROWS - 2,
            flags=WindowFlag.MODE | WindowFlag.HARD,
            fg_color=self.settings.fg_color,
            bg_color=self.settings.bg_color,
        )
        self.windows: List[Window] = [window]
        self.window = window
        self.buffer = main_buffer

    # -- helpers -----------------------------------------------------------

    def _check_writable(self) -> None:
        if self.buffer.modes & Mode.VIEW:
            raise ReadOnlyError()

    def _free_line(self, line: Line) -> None:
        for wp in self.windows:
            if wp.top_line is line:
                wp.top_line = line.next
            if wp.dot_line is line:
                wp.dot_line = line.next
                wp.dot_offset = 0
            if wp.mark_line is line:
                wp.mark_line = line.next
                wp.mark_offset = 0
        for bp in self.buffers:
            if bp.window_count == 0:
                if bp.dot_line is line:
                    bp.dot_line = line.next
                    bp.dot_offset = 0
                if bp.mark_line is line:
                    bp.mark_line = line.next
                    bp.mark_offset = 0
        _unlink(line)

    def _insert_bytes(self, data: bytes) -> None:
        self._check_writable()
        self.change(WindowFlag.EDIT)
        win = self.window
        line = win.dot_line
        n = len(data)
        if line is self.buffer.header:
            if win.dot_offset != 0:
                raise RuntimeError("bug: linsert")
            new = Line(data)
            _link_before(line, new)
            win.dot_line = new
            win.dot_offset = n
            return
        doto = win.dot_offset
        line.text[doto:doto] = data
        for wp in self.windows:
            if wp.dot_line is line and (wp is win or wp.dot_offset > doto):
                wp.dot_offset += n
            if wp.mark_line is line and wp.mark_offset > doto:
                wp.mark_offset += n

    # -- primitives --------------------------------------------------------

    def change(self, flag: WindowFlag) -> None:
        """Record a change to the current buffer and mark its windows for redraw."""
        flag = WindowFlag(flag)
        if self.buffer.window_count != 1:
            flag = WindowFlag.HARD
        if not self.buffer.flags & BufferFlag.CHANGED:
            flag |= WindowFlag.MODE
            self.buffer.flags |= BufferFlag.CHANGED
        for wp in self.windows:
            if wp.buffer is self.buffer:
                wp.flags |= flag

    def insert(self, n: int, c: Union[int, str]) -> None:
        """Insert *n* copies of character *c* (a code point or a one-character string) at dot."""
        ch = chr(c) if isinstance(c, int) else c
        if len(ch) != 1:
            raise ValueError("insert takes a single character")
        self._check_writable()
        encoded = ch.encode(_ENCODING, _ERRORS)
        count = max(n, 0)
        if len(encoded) > 1 and count == 0:
            return
        self._insert_bytes(encoded * count)

    def insert_string(self, text: str) -> None:
        """Insert *text* at dot; newlines split the line."""
        for ch in text:
            if ch == "\n":
                self.newline()
            else:
                self.insert(1, ch)

    def overwrite(self, c: Union[int, str]) -> None:
        """Replace the character at dot with *c*, leaving tabs before a tab stop."""
        win = self.window
        text = win.dot_line.text
        offset = win.dot_offset
        mask = self.settings.tab_mask
        if offset < len(text) and (text[offset] != 0x09 or offset & mask == mask):
            self.delete_char(1, False)
        self.insert(1, c)

    def overwrite_string(self, text: str) -> None:
        """Overwrite *text* at dot; newlines split the line."""
        for ch in text:
            if ch == "\n":
                self.newline()
            else:
                self.overwrite(ch)

    def newline(self) -> None:
        """Split the current line at dot."""
        self._check_writable()
        self.change(WindowFlag.HARD | WindowFlag.INS)
        old = self.window.dot_line
        doto = self.window.dot_offset
        new = Line(old.text[:doto])
        del old.text[:doto]
        _link_before(old, new)
        for wp in self.windows:
            if wp.top_line is old:
                wp.top_line = new
            if wp.dot_line is old:
                if wp.dot_offset < doto:
                    wp.dot_line = new
                else:
                    wp.dot_offset -= doto
            if wp.mark_line is old:
                if wp.mark_offset < doto:
                    wp.mark_line = new
                else:
                    wp.mark_offset -= doto

    def delete(self, n: int, kill: bool = False) -> bool:
        """Delete *n* bytes from dot, newlines counting one; False if the buffer ran out."""
        self._check_writable()
        while n > 0:
            win = self.window
            line = win.dot_line
            doto = win.dot_offset
            if line is self.buffer.header:
                return False
            chunk = min(len(line.text) - doto, n)
            if chunk == 0:
                self.change(WindowFlag.HARD | WindowFlag.KILLS)
                self.delete_newline()
                if kill:
                    self.kill_buffer.append(b"\n")
                n -= 1
                continue
            self.change(WindowFlag.EDIT)
            if kill:
                self.kill_buffer.append(line.text[doto:doto + chunk])
            del line.text[doto:doto + chunk]
            for wp in self.windows:
                if wp.dot_line is line and wp.dot_offset >= doto:
                    wp.dot_offset = max(wp.dot_offset - chunk, doto)
                if wp.mark_line is line and wp.mark_offset >= doto:
                    wp.mark_offset = max(wp.mark_offset - chunk, doto)
            n -= chunk
        return True

    def delete_char(self, n: int, kill: bool = False) -> bool:
        """Delete *n* characters from dot."""
        for _ in range(n):
            win = self.window
            if not self.delete(_char_length(win.dot_line.text, win.dot_offset), kill):
                return False
        return True

    def delete_newline(self) -> bool:
        """Join the current line with the next one."""
        self._check_writable()
        first = self.window.dot_line
        second = first.next
        if second is self.buffer.header:
            if not first.text:
                self._free_line(first)
            return True
        joint = len(first.text)
        for wp in self.windows:
            if wp.top_line is second:
                wp.top_line = first
            if wp.dot_line is second:
                wp.dot_line = first
                wp.dot_offset += joint
            if wp.mark_line is second:
                wp.mark_line = first
                wp.mark_offset += joint
        first.text += second.text
        _unlink(second)
        return True

    def current_line_text(self) -> str:
        return str(self.window.dot_line)

    def replace_current_line(self, text: str) -> bool:
        """Kill the current line and put *text* in its place."""
        self._check_writable()
        win = self.window
        win.dot_offset = 0
        if not self.last_flag & CommandFlag.KILL:
            self.kill_buffer.clear()
        self.this_flag |= CommandFlag.KILL
        if not self.delete(len(win.dot_line.text) + 1, True):
            return False
        self.insert_string(text)
        self.newline()
        self.forward_line(-1)
        return True

    def forward_char(self, n: int = 1) -> bool:
        """Move dot forward *n* characters; False on reaching the end of the buffer."""
        if n < 0:
            return self.backward_char(-n)
        win = self.window
        for _ in range(n):
            line = win.dot_line
            if line is self.buffer.header:
                return False
            if win.dot_offset == len(line.text):
                win.dot_line = line.next
                win.dot_offset = 0
                win.flags |= WindowFlag.MOVE
            else:
                win.dot_offset += _char_length(line.text, win.dot_offset)
        return True

    def backward_char(self, n: int = 1) -> bool:
        """Move dot back *n* characters; False on reaching the start of the buffer."""
        if n < 0:
            return self.forward_char(-n)
        win = self.window
        for _ in range(n):
            if win.dot_offset == 0:
                prev = win.dot_line.prev
                if prev is self.buffer.header:
                    return False
                win.dot_line = prev
                win.dot_offset = len(prev.text)
                win.flags |= WindowFlag.MOVE
            else:
                win.dot_offset = _prev_char_start(win.dot_line.text, win.dot_offset)
        return True

    def forward_line(self, n: int = 1) -> bool:
        """Move dot *n* lines (back if negative), keeping the offset where it fits."""
        win = self.window
        header = self.buffer.header
        line = win.dot_line
        if n >= 0:
            if line is header:
                return False
            for _ in range(n):
                if line is header:
                    break
                line = line.next
        else:
            if line.prev is header:
                return False
            for _ in range(-n):
                if line.prev is header:
                    break
                line = line.prev
        text = line.text
        offset = min(win.dot_offset, len(text))
        while 0 < offset < len(text) and text[offset] & 0xC0 == 0x80:
            offset -= 1
        win.dot_line = line
        win.dot_offset = offset
        win.flags |= WindowFlag.MOVE
        return True

    def yank(self, n: int = 1) -> bool:
        """Insert the kill buffer *n* times at dot."""
        self._check_writable()
        if n < 0:
            return False
        data = self.kill_buffer.contents()
        if not data:
            return True
        first, *rest = data.split(b"\n")
        for _ in range(n):
            if first:
                self._insert_bytes(first)
            for segment in rest:
                self.newline()
                if segment:
                    self._insert_bytes(segment)
        return True