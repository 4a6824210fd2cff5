"""Reading keys: prefix handling, keyboard macros, prompts and name completion."""

from __future__ import annotations

import enum
import glob
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, Union

from .modes import CONTROL, CTLX, META, SPEC, Settings

# Longest reply a prompt accepts by default, including the terminator.
NSTRING = 128
# Size of the keyboard macro store; recording stops one short of it.
MACRO_SIZE = 256

# The single key code that ESC '[' arrives as.
CSI = 128 + 27

_ESC = CONTROL | ord("[")
_RETURN = CONTROL | 0x4D
_NEWLINE_KEY = CONTROL | 0x40 | 0x0A
_DIFCASE = 0x20

FILE_PROMPTS = frozenset({
    "Find file: ",
    "View file: ",
    "Insert file: ",
    "Write file: ",
    "Read file: ",
    "File to execute: ",
})

KeySource = Union[Callable[[], Union[int, str]], Iterable[Union[int, str]]]


class Aborted(Exception):
    """The user pressed the abort key."""


class MacroMode(enum.Enum):
    """What the keyboard macro machinery is doing."""

    STOP = 0
    PLAY = 1
    RECORD = 2


def ectoc(c: int) -> int:
    """Collapse the CONTROL and SPEC flags of a key back into a character code."""
    if c & CONTROL:
        c &= ~(CONTROL | 0x40)
    if c & SPEC:
        c &= 0xFF
    return c


def ctoec(c: int) -> int:
    """Turn a C0 control character into its CONTROL key form."""
    if 0x00 <= c <= 0x1F:
        c = CONTROL | (c + ord("@"))
    return c


def complete_name(prefix: str, names: Sequence[str]) -> Optional[Tuple[str, bool]]:
    """Complete *prefix* against the ordered table *names*.

    Return ``(name, True)`` when the first match is the only one in its run,
    ``(text, False)`` with the prefix extended as far as the run of matching
    names agrees, or None when nothing matches.
    """
    for index, name in enumerate(names):
        if not name.startswith(prefix):
            continue
        following = names[index + 1] if index + 1 < len(names) else None
        if following is None or not following.startswith(prefix):
            return name, True
        last = index + 1
        while last + 1 < len(names) and names[last + 1].startswith(prefix):
            last += 1
        candidates = names[index + 1:last + 1]
        text = prefix
        pos = len(prefix)
        while pos < len(name) and all(
                pos < len(other) and other[pos] == name[pos] for other in candidates):
            text += name[pos]
            pos += 1
        return text, False
    return None


class KeyReader:
    """Reads keys from *source*, handling prefixes and keyboard macros.

    *source* is either a callable returning the next key code or an
    iterable of key codes (one-character strings are taken as their code).
    Prompts and echoed input go to ``output`` when it is set; ``bell`` is
    called where the editor would beep.
    """

    def __init__(self, source: KeySource):
        if callable(source):
            self._next = source
        else:
            iterator = iter(source)

            def _from_iterable():
                try:
                    return next(iterator)
                except StopIteration:
                    raise EOFError("no more input") from None

            self._next = _from_iterable
        self.settings = Settings()
        self.mode = MacroMode.STOP
        self.macro: List[int] = []
        self._play_pos = 0
        self._repeat = 0
        self.output: Optional[Callable[[str], None]] = None
        self.bell: Callable[[], None] = lambda: None

    # -- output ------------------------------------------------------------

    def _show(self, text: str) -> None:
        if self.output is not None:
            self.output(text)

    def _echo(self, text: str) -> None:
        if self.settings.display_input:
            self._show(text)

    def _echo_char(self, c: int) -> None:
        if c == 0x0A:
            self._echo("<NL>")
        elif c < 0x20:
            self._echo("^" + chr(c ^ 0x40))
        else:
            self._echo(chr(c))

    def _erase_char(self, c: int) -> None:
        self._echo("\b \b")
        if c < 0x20:
            self._echo("\b \b")
        if c == 0x0A:
            self._echo("\b\b  \b\b")

    def _abort(self) -> None:
        self.bell()
        self.mode = MacroMode.STOP
        self._show("(Aborted)")
        raise Aborted("(Aborted)")

    # -- raw keys ----------------------------------------------------------

    def _read_source(self) -> int:
        c = self._next()
        return ord(c) if isinstance(c, str) else c

    def tgetc(self) -> int:
        """Return the next key, playing back or recording a keyboard macro."""
        if self.mode is MacroMode.PLAY:
            if self._play_pos < len(self.macro):
                c = self.macro[self._play_pos]
                self._play_pos += 1
                return c
            self._repeat -= 1
            if self._repeat < 1 or not self.macro:
                self.mode = MacroMode.STOP
            else:
                self._play_pos = 1
                return self.macro[0]

        c = self._read_source()
        self.settings.last_key = c

        if self.mode is MacroMode.RECORD:
            self.macro.append(c)
            if len(self.macro) == MACRO_SIZE - 1:
                self.mode = MacroMode.STOP
                self.bell()
        return c

    def get1key(self) -> int:
        """Return one keystroke, with C0 controls turned into CONTROL keys."""
        return ctoec(self.tgetc())

    # -- commands ----------------------------------------------------------

    @staticmethod
    def _meta_key(c: int) -> int:
        if ord("a") <= c <= ord("z"):
            c ^= _DIFCASE
        return META | ctoec(c)

    def _escape_sequence(self, cmask: int) -> Tuple[str, int]:
        """Read the rest of a CSI sequence.

        Return ("key", code) for a finished key, ("ctlx", 0) for the DO key
        and ("meta", c) when an ESC key stands for the meta prefix.
        """
        c = self.get1key()
        if ord("A") <= c <= ord("D"):
            return "key", SPEC | c | cmask
        if ord("E") <= c <= ord("z") and c not in (ord("i"), ord("c")):
            return "key", SPEC | c | cmask
        d = self.get1key()
        if d == ord("~"):
            return "key", SPEC | c | cmask
        offsets = {ord("1"): 32, ord("2"): 48, ord("3"): 64}
        c = d + offsets[c] if c in offsets else ord("?")
        self.get1key()
        if c == ord("i"):
            return "ctlx", 0
        if c == ord("c"):
            return "meta", self.get1key()
        return "key", SPEC | c | cmask

    def getcmd(self) -> int:
        """Read a whole command key, folding in META, CTLX and escape sequences."""
        settings = self.settings
        c = self.get1key()
        cmask = 0
        while True:
            ctlx = False
            meta_c: Optional[int] = None
            if c == CSI:
                kind, value = self._escape_sequence(cmask)
            elif c == _ESC:
                c = self.get1key()
                if c in (ord("["), ord("O")):
                    kind, value = self._escape_sequence(cmask)
                else:
                    kind, value = "meta", c
            elif c == settings.meta_key:
                kind, value = "meta", self.get1key()
            elif c == settings.ctlx_key:
                kind, value = "ctlx", 0
            else:
                return c

            if kind == "key":
                return value
            if kind == "meta":
                meta_c = value
            else:
                ctlx = True

            if meta_c is not None:
                if meta_c == _ESC:
                    cmask = META
                    c = meta_c
                    continue
                return self._meta_key(meta_c)

            if ctlx:
                c = self.get1key()
                if c == _ESC:
                    cmask = CTLX
                    continue
                if ord("a") <= c <= ord("z"):
                    c -= 0x20
                return CTLX | ctoec(c)

    # -- keyboard macros ---------------------------------------------------

    def start_recording(self) -> None:
        """Begin recording a keyboard macro."""
        if self.mode is not MacroMode.STOP:
            raise RuntimeError("Macro already active")
        self.macro = []
        self.mode = MacroMode.RECORD

    def stop_recording(self) -> None:
        """End the macro being recorded."""
        if self.mode is MacroMode.STOP:
            raise RuntimeError("Macro not active")
        if self.mode is MacroMode.RECORD:
            self.mode = MacroMode.STOP

    def play(self, n: int = 1) -> None:
        """Play the recorded macro back *n* times."""
        if self.mode is not MacroMode.STOP:
            raise RuntimeError("Macro already active")
        if n <= 0:
            return
        self._repeat = n
        self._play_pos = 0
        self.mode = MacroMode.PLAY

    # -- prompts -----------------------------------------------------------

    def yes_no(self, prompt: str) -> bool:
        """Ask a yes-or-no question; raise Aborted on the abort key."""
        abort = ectoc(self.settings.abort_key)
        while True:
            self._show(prompt + " (y/n)? ")
            c = self.tgetc()
            if c == abort:
                raise Aborted("(Aborted)")
            if c in (ord("y"), ord("Y")):
                return True
            if c in (ord("n"), ord("N")):
                return False

    def get_string(self, prompt: str, limit: int = NSTRING,
                   eolchar: Optional[int] = None) -> str:
        """Read a reply ended by *eolchar* (newline by default).

        At most ``limit - 1`` characters are kept. Rubout and C-U edit the
        reply, the quote key takes the next key literally, and in a file
        name prompt TAB or space completes the name, cycling through the
        matches on repeated presses. Raise Aborted on the abort key.
        """
        settings = self.settings
        if eolchar is None:
            eolchar = ctoec(0x0A)
        file_prompt = prompt in FILE_PROMPTS
        chars: List[int] = []
        quoted = False
        matches: Optional[List[str]] = None
        skip = 0
        completing = False

        self._show(prompt)
        while True:
            if not completing:
                matches = None
            completing = False

            c = self.get1key()
            if c == _RETURN and not quoted:
                c = _NEWLINE_KEY
            if c == eolchar and not quoted:
                self._show("")
                return "".join(map(chr, chars))

            c = ectoc(c)
            if c == ectoc(settings.abort_key) and not quoted:
                self._abort()
            elif c in (0x7F, 0x08) and not quoted:
                if chars:
                    self._erase_char(chars.pop())
            elif c == 0x15 and not quoted:
                while chars:
                    self._erase_char(chars.pop())
            elif c in (0x09, 0x20) and not quoted and file_prompt:
                completing = True
                text = "".join(map(chr, chars))
                while chars:
                    self._erase_char(chars.pop())
                if matches is None:
                    wild = "*" in text or "?" in text
                    matches = sorted(glob.glob(text if wild else text + "*"))
                    skip = 0
                    if not matches:
                        candidate = text.split("*", 1)[0]
                        self.bell()
                    else:
                        candidate = matches[0]
                        skip = 1
                elif skip < len(matches):
                    candidate = matches[skip]
                    skip += 1
                else:
                    self.bell()
                    candidate = ""
                    skip = 0
                chars = [ord(ch) for ch in candidate[:max(limit - 1, 0)]]
                for ch in chars:
                    self._echo_char(ch)
            elif c in (settings.quote_key, 0x16) and not quoted:
                quoted = True
            else:
                quoted = False
                if len(chars) < limit - 1:
                    chars.append(c)
                    self._echo_char(c)