"""Raw terminal input and output, and decoding of keyboard bytes into keys."""

from __future__ import annotations

import fcntl
import os
import select
import struct
import termios
import time
from collections import deque
from typing import Deque, List, Optional, Tuple, Union

# ESC '[' arrives as this single key code.
CSI = 128 + 27

_ESC = 27
_NBSP = 0xA0
_READ_SIZE = 32
_OUTPUT_BUFFER = 128
_TIMEOUT = 0.1
_MAX_SEQUENCE = 6


def _sequence_length(lead: int) -> int:
    """Return how many bytes a UTF-8 sequence starting with *lead* claims."""
    if lead < 0xC0:
        return 1
    length = 2
    mask = 0x20
    while lead & mask:
        length += 1
        mask >>= 1
    return length if length <= _MAX_SEQUENCE else 1


def _decode(buf: bytearray) -> Tuple[int, int]:
    """Decode one character; an invalid sequence yields its first byte."""
    lead = buf[0]
    need = _sequence_length(lead)
    if need == 1 or need > len(buf):
        return lead, 1
    value = lead & (0x7F >> need)
    for byte in buf[1:need]:
        if byte & 0xC0 != 0x80:
            return lead, 1
        value = (value << 6) | (byte & 0x3F)
    return value, need


def _flags(*names: str) -> int:
    value = 0
    for name in names:
        value |= getattr(termios, name, 0)
    return value


class KeyDecoder:
    """Turns keyboard bytes into key codes.

    Printable ASCII passes straight through, ESC '[' becomes CSI, UTF-8
    sequences become code points and a no-break space becomes a space.
    A sequence that may still be incomplete is held back until more bytes
    arrive or flush() is called.
    """

    def __init__(self) -> None:
        self._buf = bytearray()

    def feed(self, data: Union[bytes, bytearray]) -> List[int]:
        """Add *data* and return the keys it completes."""
        self._buf += data
        return self._drain(final=False)

    def flush(self) -> List[int]:
        """Decode whatever is held back, as it stands."""
        return self._drain(final=True)

    def pending(self) -> int:
        """Return the number of bytes not yet decoded."""
        return len(self._buf)

    def _drain(self, final: bool) -> List[int]:
        keys = []
        while self._buf:
            key = self._next(final)
            if key is None:
                break
            keys.append(key)
        return keys

    @staticmethod
    def _wanted(lead: int) -> int:
        if lead == _ESC:
            return 2
        return _sequence_length(lead)

    def _next(self, final: bool) -> Optional[int]:
        buf = self._buf
        lead = buf[0]
        if 32 <= lead < 128:
            value, length = lead, 1
        elif lead == _ESC and len(buf) >= 2 and buf[1] == ord("["):
            value, length = CSI, 2
        else:
            if not final and len(buf) < self._wanted(lead):
                return None
            value, length = _decode(buf)
            if value == _NBSP:
                value = ord(" ")
        del buf[:length]
        return value


def decode_keys(data: Union[bytes, bytearray]) -> List[int]:
    """Decode a complete run of keyboard bytes into key codes."""
    decoder = KeyDecoder()
    return decoder.feed(data) + decoder.flush()


class Terminal:
    """A terminal in raw mode: keys in from *fd*, characters out to output_fd."""

    def __init__(self, fd: int = 0):
        self.fd = fd
        self.output_fd = 1
        self._decoder = KeyDecoder()
        self._keys: Deque[int] = deque()
        self._out = bytearray()
        self._saved: Optional[list] = None

    def open(self) -> None:
        """Put the terminal into raw mode, remembering the old settings."""
        if not os.isatty(self.fd):
            return
        saved = termios.tcgetattr(self.fd)
        attrs = termios.tcgetattr(self.fd)
        attrs[0] &= ~_flags("IGNBRK", "BRKINT", "IGNPAR", "PARMRK",
                            "INPCK", "INLCR", "IGNCR", "ICRNL")
        attrs[1] &= ~_flags("OPOST", "ONLCR", "OLCUC", "OCRNL",
                            "ONOCR", "ONLRET")
        attrs[3] &= ~_flags("ISIG", "ICANON", "XCASE", "ECHO", "ECHOE",
                            "ECHOK", "ECHONL", "NOFLSH", "TOSTOP", "ECHOCTL",
                            "ECHOPRT", "ECHOKE", "FLUSHO", "PENDIN", "IEXTEN")
        cc = list(attrs[6])
        cc[termios.VMIN] = 1
        cc[termios.VTIME] = 0
        attrs[6] = cc
        termios.tcsetattr(self.fd, termios.TCSADRAIN, attrs)
        self._saved = saved

    def close(self) -> None:
        """Restore the terminal settings saved by open()."""
        if self._saved is not None:
            termios.tcsetattr(self.fd, termios.TCSADRAIN, self._saved)
            self._saved = None

    def _read(self) -> bytes:
        try:
            return os.read(self.fd, _READ_SIZE)
        except OSError:
            return b""

    def _read_more(self) -> bytes:
        ready, _, _ = select.select([self.fd], [], [], _TIMEOUT)
        if not ready:
            return b""
        return self._read()

    def getc(self) -> int:
        """Return the next key; 0 if the input is closed."""
        if self._keys:
            return self._keys.popleft()
        if not self._decoder.pending():
            data = self._read()
            if not data:
                return 0
            self._keys.extend(self._decoder.feed(data))
            if self._keys:
                return self._keys.popleft()
        self._keys.extend(self._decoder.feed(self._read_more()))
        if not self._keys:
            self._keys.extend(self._decoder.flush())
        return self._keys.popleft()

    def putc(self, c: int) -> None:
        """Queue code point *c* for output as UTF-8."""
        self._out += chr(c).encode("utf-8", "surrogatepass")
        if len(self._out) >= _OUTPUT_BUFFER:
            self.flush()

    def flush(self) -> None:
        """Write all queued output, waiting while the terminal is busy."""
        while self._out:
            try:
                written = os.write(self.output_fd, self._out)
            except BlockingIOError:
                time.sleep(1)
                continue
            del self._out[:written]

    def typeahead(self) -> int:
        """Return how much input is waiting to be read."""
        count = 0
        request = getattr(termios, "FIONREAD", None)
        if request is not None:
            try:
                raw = fcntl.ioctl(self.fd, request, b"\0\0\0\0")
                count = struct.unpack("i", raw)[0]
            except OSError:
                count = 0
        return count + len(self._keys) + self._decoder.pending()

    def __enter__(self) -> "Terminal":
        self.open()
        return self

    def __exit__(self, *args) -> None:
        self.flush()
        self.close()