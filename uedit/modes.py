"""Editor modes, global settings and the names known to the macro language."""

from __future__ import annotations

import enum
from dataclasses import dataclass

# Key code prefixes used by the key reader and the bindings.
CONTROL = 0x10000000
META = 0x20000000
CTLX = 0x40000000
SPEC = 0x80000000

MODE_NAMES = (
    "WRAP", "CMODE", "SPELL", "EXACT", "VIEW", "OVER",
    "MAGIC", "CRYPT", "ASAVE", "UTF-8",
)
MODE_DISPLAY_NAMES = (
    "Wrap", "Cmode", "Spell", "Exact", "View", "Over",
    "Magic", "Crypt", "Asave", "utf-8",
)
MODE_CODES = "WCSEVOMYAU"

COLOR_NAMES = (
    "BLACK", "RED", "GREEN", "YELLOW", "BLUE", "MAGENTA", "CYAN", "WHITE",
)

DIRECTIVE_NAMES = (
    "if", "else", "endif", "goto", "return", "endm",
    "while", "endwhile", "break", "force",
)

ERROR_LITERAL = "ERROR"
TRUE_LITERAL = "TRUE"
FALSE_LITERAL = "FALSE"

ENV_VARS = (
    "fillcol", "pagelen", "curcol", "curline", "ram", "flicker",
    "curwidth", "cbufname", "cfname", "sres", "debug", "status",
    "palette", "asave", "acount", "lastkey", "curchar", "discmd",
    "version", "progname", "seed", "disinp", "wline", "cwline",
    "target", "search", "replace", "match", "kill", "cmode", "gmode",
    "tpause", "pending", "lwidth", "line", "gflags", "rval", "tab",
    "overlap", "jump", "scroll",
)

# Maximum number of characters in a user variable name.
MAX_VAR_NAME = 10


class Mode(enum.IntFlag):
    """Buffer and global editing modes."""

    WRAP = 1 << 0
    CMODE = 1 << 1
    SPELL = 1 << 2
    EXACT = 1 << 3
    VIEW = 1 << 4
    OVER = 1 << 5
    MAGIC = 1 << 6
    CRYPT = 1 << 7
    ASAVE = 1 << 8
    UTF8 = 1 << 9


_MODES_IN_ORDER = tuple(Mode(1 << i) for i in range(len(MODE_NAMES)))


class FunctionArity(enum.IntEnum):
    """How many arguments a macro-language function takes."""

    NILNAMIC = 0
    MONAMIC = 1
    DYNAMIC = 2
    TRINAMIC = 3


@dataclass(frozen=True)
class UserFunction:
    """A macro-language function: its name and how many arguments it takes."""

    name: str
    arity: FunctionArity


_N, _M, _D, _T = (
    FunctionArity.NILNAMIC,
    FunctionArity.MONAMIC,
    FunctionArity.DYNAMIC,
    FunctionArity.TRINAMIC,
)

USER_FUNCTIONS = tuple(
    UserFunction(name, arity)
    for name, arity in (
        ("add", _D), ("sub", _D), ("tim", _D), ("div", _D), ("mod", _D),
        ("neg", _M), ("cat", _D), ("lef", _D), ("rig", _D), ("mid", _T),
        ("not", _M), ("equ", _D), ("les", _D), ("gre", _D), ("seq", _D),
        ("sle", _D), ("sgr", _D), ("ind", _M), ("and", _D), ("or", _D),
        ("len", _M), ("upp", _M), ("low", _M), ("tru", _M), ("asc", _M),
        ("chr", _M), ("gtk", _N), ("rnd", _M), ("abs", _M), ("sin", _D),
        ("env", _M), ("bin", _M), ("exi", _M), ("fin", _M), ("ban", _D),
        ("bor", _D), ("bxo", _D), ("bno", _M), ("xla", _T),
    )
)


@dataclass
class Settings:
    """Editor-wide settings and their start-up values."""

    fill_column: int = 72
    global_modes: Mode = Mode(0)
    read_first_file: bool = True
    fg_color: int = 7
    bg_color: int = 0
    autosave_interval: int = 256
    autosave_count: int = 256
    display_commands: bool = True
    display_input: bool = True
    meta_key: int = CONTROL | ord("[")
    ctlx_key: int = CONTROL | ord("X")
    repeat_key: int = CONTROL | ord("U")
    abort_key: int = CONTROL | ord("G")
    quote_key: int = 0x11
    tab_mask: int = 0x07
    restricted: bool = False
    accept_nulls: bool = False
    justify: bool = False
    overlap: int = 0
    scroll_count: int = 1
    seed: int = 0
    macro_debug: bool = False
    palette: str = ""
    last_key: int = 0
    command_status: bool = True
    subprocess_status: int = 0


def mode_from_name(name: str) -> Mode:
    """Return the mode called *name*, ignoring case; raise ValueError if unknown."""
    wanted = name.upper()
    for mode_name, mode in zip(MODE_NAMES, _MODES_IN_ORDER):
        if mode_name == wanted:
            return mode
    raise ValueError(f"No such mode: {name!r}")


def mode_letters(modes: Mode) -> str:
    """Return the one-letter codes of the modes set in *modes*, in table order."""
    return "".join(
        code for code, mode in zip(MODE_CODES, _MODES_IN_ORDER) if modes & mode
    )


def lookup_function(name: str) -> UserFunction:
    """Find a macro function by the first three letters of *name*."""
    key = name[:3].lower()
    for func in USER_FUNCTIONS:
        if func.name == key:
            return func
    raise KeyError(name)


def lookup_env_var(name: str) -> int:
    """Return the index of environment variable *name*."""
    try:
        return ENV_VARS.index(name.lower())
    except ValueError:
        raise KeyError(name) from None


def color_index(name: str) -> int:
    """Return the index of colour *name*, ignoring case."""
    try:
        return COLOR_NAMES.index(name.upper())
    except ValueError:
        raise KeyError(name) from None


def directive_index(name: str) -> int:
    """Return the index of macro directive *name*."""
    try:
        return DIRECTIVE_NAMES.index(name.lower())
    except ValueError:
        raise KeyError(name) from None