"""Reading and writing text files one line at a time."""

from __future__ import annotations

import os
from typing import BinaryIO, Iterator, Optional, Union

_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


class FileIOError(OSError):
    """A read, write or close on an open file failed."""


class LineReader:
    """Reads a file line by line, without the newline characters.

    A final line with no newline is still returned; an empty trailing
    fragment is not. NUL bytes are dropped when *accept_nulls* is set,
    otherwise a line is cut at its first NUL.
    """

    def __init__(self, path: Union[str, os.PathLike], accept_nulls: bool = False):
        self._file: BinaryIO = open(path, "rb")
        self._accept_nulls = accept_nulls
        self._eof = False

    def read_line(self) -> Optional[str]:
        """Return the next line, or None at end of file."""
        if self._eof:
            return None
        try:
            raw = self._file.readline()
        except OSError as exc:
            raise FileIOError("File read error") from exc
        if raw.endswith(b"\n"):
            raw = raw[:-1]
        else:
            self._eof = True
            if not raw:
                return None
        if self._accept_nulls:
            raw = raw.replace(b"\x00", b"")
        else:
            raw = raw.split(b"\x00", 1)[0]
        return raw.decode(_ENCODING, _ERRORS)

    def close(self) -> None:
        self._eof = False
        try:
            self._file.close()
        except OSError as exc:
            raise FileIOError("Error closing file") from exc

    def __iter__(self) -> Iterator[str]:
        while (line := self.read_line()) is not None:
            yield line

    def __enter__(self) -> "LineReader":
        return self

    def __exit__(self, *args) -> None:
        self.close()


class LineWriter:
    """Writes lines to a file, adding a newline after each."""

    def __init__(self, path: Union[str, os.PathLike]):
        try:
            self._file: BinaryIO = open(path, "wb")
        except OSError as exc:
            raise FileIOError("Cannot open file for writing") from exc

    def write_line(self, text: Union[str, bytes]) -> None:
        data = text if isinstance(text, bytes) else text.encode(_ENCODING, _ERRORS)
        try:
            self._file.write(data)
            self._file.write(b"\n")
        except OSError as exc:
            raise FileIOError("Write I/O error") from exc

    def close(self) -> None:
        try:
            self._file.close()
        except OSError as exc:
            raise FileIOError("Error closing file") from exc

    def __enter__(self) -> "LineWriter":
        return self

    def __exit__(self, *args) -> None:
        self.close()


def file_exists(path: Union[str, os.PathLike]) -> bool:
    """Return True if *path* can be opened for reading."""
    try:
        with open(path, "rb"):
            return True
    except OSError:
        return False