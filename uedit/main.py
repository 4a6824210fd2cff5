"""The command loop: argument parsing, key dispatch, keyboard macros and quitting."""

from __future__ import annotations

import os
import re
import sys
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from . import cmode, editing, region
from .keys import Aborted, KeyReader, MacroMode
from .lockfile import LockError, LockTable
from .modes import CONTROL, CTLX, META, SPEC, Mode
from .text import Buffer, BufferFlag, CommandFlag, Editor, ReadOnlyError

PROGRAM_NAME = "em"
VERSION = "4.0"

# Longest search pattern kept from the command line.
NPAT = 128

# Key run before every command; bound to nothing by default.
COMMAND_HOOK = META | SPEC | ord("C")
# Key bound to the word wrapping command.
WRAP_HOOK = META | SPEC | ord("W")

_DEFAULT_AUTOSAVE = 256

Command = Callable[[bool, int], object]


@dataclass
class FileArg:
    """A file named on the command line and how it is to be opened."""

    name: str
    view: bool = False
    key: Optional[str] = None


@dataclass
class Options:
    """What the command line asked for."""

    files: List[FileArg] = field(default_factory=list)
    goto_line: Optional[int] = None
    search: Optional[str] = None
    error_file: bool = False
    accept_nulls: bool = False
    restricted: bool = False
    startup_files: List[str] = field(default_factory=list)
    show_help: bool = False
    show_version: bool = False


def _atoi(text: str) -> int:
    match = re.match(r"\s*([+-]?\d+)", text)
    return int(match.group(1)) if match else 0


def parse_args(argv) -> Options:
    """Parse the command-line arguments (without the program name)."""
    args = list(argv)
    options = Options()
    if len(args) == 1:
        if args[0] == "--help":
            options.show_help = True
            return options
        if args[0] == "--version":
            options.show_version = True
            return options

    view = False
    key: Optional[str] = None
    for arg in args:
        if arg.startswith("+"):
            options.goto_line = _atoi(arg[1:])
        elif arg.startswith("-"):
            switch = arg[1:2].lower()
            if switch == "a":
                options.error_file = True
            elif switch == "e":
                view = False
            elif switch == "g":
                options.goto_line = _atoi(arg[2:])
            elif switch == "k":
                key = arg[2:]
            elif switch == "n":
                options.accept_nulls = True
            elif switch == "r":
                options.restricted = True
            elif switch == "s":
                options.search = arg[2:2 + NPAT]
            elif switch == "v":
                view = True
        elif arg.startswith("@"):
            options.startup_files.append(arg[1:])
        else:
            options.files.append(FileArg(arg, view, key))
    return options


def usage() -> str:
    """Return the usage text."""
    return "\n".join([
        f"Usage: {PROGRAM_NAME} filename",
        f"   or: {PROGRAM_NAME} [options]",
        "",
        "      +          start at the end of file",
        "      +<n>       start at line <n>",
        "      -g[G]<n>   go to line <n>",
        "      --help     display this help and exit",
        "      --version  output version information and exit",
        "",
    ])


def _is_digit(c: int) -> bool:
    return ord("0") <= c <= ord("9")


class Session:
    """Dispatches keys to commands for one editor."""

    def __init__(self, editor: Editor, keys: KeyReader,
                 bindings: Optional[Mapping[int, Command]] = None):
        self.editor = editor
        self.keys = keys
        keys.settings = editor.settings
        self.bindings: Dict[int, Command] = (
            dict(bindings) if bindings is not None else _default_bindings(self))
        self.repeat_key = CONTROL | ord("U")
        self.message = ""
        self.display: Optional[Callable[[str], None]] = None
        self.save: Callable[[Buffer], bool] = self._write_buffer
        self.locks: Optional[LockTable] = None
        self.autosave_interval = _DEFAULT_AUTOSAVE
        self.autosave_count = _DEFAULT_AUTOSAVE
        self.matched_fence = None
        self.search_pattern: Optional[str] = None

    # -- output ------------------------------------------------------------

    def _say(self, text: str) -> None:
        self.message = text
        if self.display is not None:
            self.display(text)

    def _bell(self) -> None:
        self.keys.bell()

    # -- dispatch ----------------------------------------------------------

    def _run_guarded(self, action: Callable[[], object]) -> object:
        try:
            return action()
        except ReadOnlyError as exc:
            self._bell()
            self._say(str(exc))
        except Aborted:
            pass
        except (ValueError, RuntimeError) as exc:
            self._say(str(exc))
        return False

    def execute(self, c: int, f: bool = False, n: int = 1) -> object:
        """Run the command bound to key *c*, or insert it if it is a character."""
        editor = self.editor
        command = self.bindings.get(c)
        if command is not None:
            editor.this_flag = CommandFlag(0)
            status = self._run_guarded(lambda: command(f, n))
            editor.last_flag = editor.this_flag
            return status

        buf = editor.window.buffer
        if (c == ord(" ") and buf.modes & Mode.WRAP
                and editor.settings.fill_column > 0 and n >= 0
                and editing.current_column(editor) > editor.settings.fill_column
                and not buf.modes & Mode.VIEW):
            self.execute(WRAP_HOOK, False, 1)

        if 0x20 <= c <= 0x7E or 0xA0 <= c <= 0x10FFFF:
            if n <= 0:
                editor.last_flag = CommandFlag(0)
                return n == 0
            editor.this_flag = CommandFlag(0)
            status = self._run_guarded(lambda: self._self_insert(c, n))
            editor.last_flag = editor.this_flag
            return status

        self._bell()
        self._say("(Key not bound)")
        editor.last_flag = CommandFlag(0)
        return False

    def _self_insert(self, c: int, n: int) -> bool:
        editor = self.editor
        win = editor.window
        buf = editor.buffer
        text = win.dot_line.text
        doto = win.dot_offset
        if (win.buffer.modes & Mode.OVER and doto < len(text)
                and (text[doto] != 0x09 or doto % 8 == 7)):
            editor.delete_char(1, False)

        in_cmode = bool(buf.modes & Mode.CMODE)
        if c == ord("}") and in_cmode:
            status = cmode.insert_brace(editor, n, c)
        elif c == ord("#") and in_cmode:
            status = cmode.insert_pound(editor)
        else:
            editor.insert(n, c)
            status = True

        if c in (ord("}"), ord(")"), ord("]")) and in_cmode:
            self.matched_fence = cmode.match_fence(editor, c)

        if buf.modes & Mode.ASAVE:
            self.autosave_count -= 1
            if self.autosave_count == 0:
                self.save(buf)
                self.autosave_count = self.autosave_interval
        return status

    def read_argument(self, c: int) -> Tuple[int, bool, int]:
        """Collect a numeric argument starting at key *c*.

        Handles META digits and the universal-argument key; return the
        command key that followed, whether an argument was given, and its value.
        """
        f = False
        n = 1
        base = c & ~META
        if c & META and (_is_digit(base) or base == ord("-")):
            f = True
            n = 0
            sign = 1
            c = base
            while _is_digit(c) or c == ord("-"):
                if c == ord("-"):
                    if sign == -1 or n != 0:
                        break
                    sign = -1
                else:
                    n = n * 10 + (c - ord("0"))
                if n == 0 and sign == -1:
                    self._say("Arg:")
                else:
                    self._say(f"Arg: {n * sign}")
                c = self.keys.getcmd()
            n *= sign

        if c == self.repeat_key:
            f = True
            n = 4
            sign = 0
            self._say("Arg: 4")
            while True:
                c = self.keys.getcmd()
                if not (_is_digit(c) or c == self.repeat_key or c == ord("-")):
                    break
                if c == self.repeat_key:
                    n = n * 4 if (n > 0) == (n * 4 > 0) else 1
                elif c == ord("-"):
                    if sign:
                        break
                    n = 0
                    sign = -1
                else:
                    if not sign:
                        n = 0
                        sign = 1
                    n = 10 * n + c - ord("0")
                shown = n if sign >= 0 else (-n if n else -1)
                self._say(f"Arg: {shown}")
            if sign == -1:
                if n == 0:
                    n += 1
                n = -n
        return c, f, n

    def run(self) -> None:
        """Read and execute commands until the editor quits."""
        editor = self.editor
        while True:
            if COMMAND_HOOK in self.bindings:
                saved = editor.last_flag
                self.execute(COMMAND_HOOK, False, 1)
                editor.last_flag = saved
            c = self.keys.getcmd()
            if self.message:
                self._say("")
            c, f, n = self.read_argument(c)
            self.execute(c, f, n)

    # -- keyboard macros ---------------------------------------------------

    def begin_macro(self) -> bool:
        """Start recording a keyboard macro."""
        if self.keys.mode is not MacroMode.STOP:
            self._say("%Macro already active")
            return False
        self._say("(Start macro)")
        self.keys.start_recording()
        return True

    def end_macro(self) -> bool:
        """Stop recording the keyboard macro."""
        if self.keys.mode is MacroMode.STOP:
            self._say("%Macro not active")
            return False
        if self.keys.mode is MacroMode.RECORD:
            self._say("(End macro)")
        self.keys.stop_recording()
        return True

    def run_macro(self, n: int = 1) -> bool:
        """Play the keyboard macro back *n* times."""
        if self.keys.mode is not MacroMode.STOP:
            self._say("%Macro already active")
            return False
        self.keys.play(n)
        return True

    def abort(self) -> bool:
        """Beep, stop any keyboard macro and report the abort."""
        self._bell()
        self.keys.mode = MacroMode.STOP
        self._say("(Aborted)")
        return False

    # -- leaving -----------------------------------------------------------

    def _any_changed(self) -> bool:
        return any(bp.flags & BufferFlag.CHANGED and not bp.flags & BufferFlag.INVISIBLE
                   for bp in self.editor.buffers)

    def quit(self, f: bool = False, n: int = 0) -> bool:
        """Leave the editor, asking first if buffers are modified.

        Raises SystemExit when leaving; returns False if the user declines.
        """
        confirmed = bool(f) or not self._any_changed()
        if not confirmed:
            try:
                confirmed = self.keys.yes_no("Modified buffers exist. Leave anyway")
            except Aborted:
                confirmed = False
        if not confirmed:
            self._say("")
            return False
        if self.locks is not None:
            try:
                self.locks.release_all()
            except LockError:
                raise SystemExit(1) from None
        raise SystemExit(n if f else 0)

    def quick_exit(self, f: bool = False, n: int = 0) -> bool:
        """Save every modified buffer, then quit."""
        editor = self.editor
        original = editor.buffer
        for bp in editor.buffers:
            if (bp.flags & BufferFlag.CHANGED
                    and not bp.flags & BufferFlag.TRUNCATED
                    and not bp.flags & BufferFlag.INVISIBLE):
                editor.buffer = bp
                self._say(f"(Saving {bp.filename})")
                if not self.save(bp):
                    editor.buffer = original
                    return False
        editor.buffer = original
        return self.quit(f, n)

    def _write_buffer(self, buffer: Buffer) -> bool:
        if not buffer.filename:
            self._say("No file name")
            return False
        try:
            with open(buffer.filename, "wb") as stream:
                for line in buffer:
                    stream.write(bytes(line.text) + b"\n")
        except OSError:
            self._say("Cannot open file for writing")
            return False
        buffer.flags &= ~BufferFlag.CHANGED
        return True


def _set_mark(editor: Editor) -> bool:
    win = editor.window
    win.mark_line = win.dot_line
    win.mark_offset = win.dot_offset
    return True


def _default_bindings(session: Session) -> Dict[int, Command]:
    editor = session.editor

    def ctl(ch: str) -> int:
        return CONTROL | ord(ch)

    return {
        ctl("G"): lambda f, n: session.abort(),
        ctl("F"): lambda f, n: editor.forward_char(n),
        ctl("B"): lambda f, n: editor.backward_char(n),
        ctl("N"): lambda f, n: editor.forward_line(n),
        ctl("P"): lambda f, n: editor.forward_line(-n),
        ctl("D"): lambda f, n: editing.forward_delete(editor, f, n),
        ctl("H"): lambda f, n: editing.backward_delete(editor, f, n),
        0x7F: lambda f, n: editing.backward_delete(editor, f, n),
        ctl("K"): lambda f, n: editing.kill_text(editor, f, n),
        ctl("Y"): lambda f, n: editor.yank(n),
        ctl("W"): lambda f, n: region.kill_region(editor),
        META | ord("W"): lambda f, n: region.copy_region(editor) or True,
        ctl("@"): lambda f, n: _set_mark(editor),
        ctl("M"): lambda f, n: editing.insert_newline(editor, n),
        ctl("J"): lambda f, n: editing.indent(editor, n),
        ctl("I"): lambda f, n: editing.insert_tab(editor, n),
        ctl("O"): lambda f, n: editing.open_line(editor, n),
        ctl("T"): lambda f, n: editing.twiddle(editor),
        ctl("Q"): lambda f, n: editing.quote(editor, session.keys.tgetc(), n),
        CTLX | ctl("O"): lambda f, n: editing.delete_blank_lines(editor),
        CTLX | ctl("C"): session.quit,
        META | ord("Z"): session.quick_exit,
        CTLX | ord("("): lambda f, n: session.begin_macro(),
        CTLX | ord(")"): lambda f, n: session.end_macro(),
        CTLX | ord("E"): lambda f, n: session.run_macro(n),
    }


def _buffer_name(editor: Editor, filename: str) -> str:
    base = os.path.basename(filename) or filename
    taken = {bp.name for bp in editor.buffers}
    name = base
    suffix = 0
    while name in taken:
        name = f"{base}{suffix}"
        suffix += 1
    return name


def _read_file(buffer: Buffer, accept_nulls: bool) -> None:
    try:
        with open(buffer.filename, "rb") as stream:
            data = stream.read()
    except OSError:
        data = b""
    if not accept_nulls:
        data = data.replace(b"\0", b"")
    buffer.set_text(data.decode("utf-8", "surrogateescape"))
    buffer.active = True


def _load_files(editor: Editor, options: Options) -> None:
    main_buffer = editor.buffer
    created = []
    for spec in options.files:
        bp = Buffer(_buffer_name(editor, spec.name))
        bp.filename = spec.name
        bp.active = False
        if spec.view:
            bp.modes |= Mode.VIEW
        editor.buffers.append(bp)
        created.append(bp)
    if not created:
        main_buffer.modes |= editor.settings.global_modes
        return
    first = created[0]
    _read_file(first, options.accept_nulls)
    editor.buffers.remove(main_buffer)
    win = editor.window
    win.buffer = first
    win.top_line = win.dot_line = first.first_line
    win.dot_offset = 0
    first.window_count = 1
    editor.buffer = first


def _goto_line(editor: Editor, n: int) -> bool:
    if n < 0:
        return False
    win = editor.window
    if n == 0:
        win.dot_line = editor.buffer.header
        win.dot_offset = 0
        return True
    win.dot_line = editor.buffer.first_line
    win.dot_offset = 0
    if n > 1:
        editor.forward_line(n - 1)
    return True


def main(argv=None) -> int:
    """Run the editor on the terminal; return the exit status."""
    from .terminal import Terminal

    options = parse_args(sys.argv[1:] if argv is None else argv)
    if options.show_help:
        print(usage(), end="")
        return 1
    if options.show_version:
        print(f"{PROGRAM_NAME} version {VERSION}")
        return 0

    editor = Editor()
    _load_files(editor, options)
    with Terminal() as terminal:
        keys = KeyReader(terminal.getc)

        def show(text: str) -> None:
            for ch in "\r" + text + "\r\n":
                terminal.putc(ord(ch))
            terminal.flush()

        keys.output = show
        keys.bell = lambda: terminal.putc(0x07)
        session = Session(editor, keys)
        session.display = show
        session.search_pattern = options.search
        if options.goto_line is not None and options.search is not None:
            session._say("(Can not search and goto at the same time!)")
        elif options.goto_line is not None:
            if not _goto_line(editor, options.goto_line):
                session._say("(Bogus goto argument)")
        try:
            session.run()
        except SystemExit as exc:
            return exc.code if isinstance(exc.code, int) else 0
        except EOFError:
            return 0
    return 0