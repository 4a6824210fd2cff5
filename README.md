# uedit

The core of a small MicroEMACS-style text editor. Text is kept in buffers
of linked lines; on top of that come a kill buffer with yank, mark-and-point
regions, keyboard macros, numeric and universal arguments, C-mode
indentation helpers, tab conversion, UTF-8 key decoding for a raw POSIX
terminal, and `.lock~` file locking.

## Installing

```
pip install .
```

## Running

```
uedit [options] filename...
```

`uedit` puts the terminal in raw mode and runs the command loop on the
first file named. Options:

| Option        | Meaning                                          |
|---------------|--------------------------------------------------|
| `+`           | start at the end of the file                     |
| `+<n>`        | start at line `<n>`                              |
| `-g<n>`       | go to line `<n>`                                 |
| `-v`          | open the following files in VIEW (read-only) mode |
| `-e`          | open the following files for editing (default)   |
| `-n`          | keep NUL characters when reading the file        |
| `--help`      | print usage and exit with status 1               |
| `--version`   | print the version and exit                       |

`parse_args` also records `-s<text>`, `-k<key>`, `-a`, `-r` and
`@<file>` in `Options`, but the command loop does nothing further with
them. Giving both a goto and `-s` only produces a message.

Default key bindings in `Session`:

| Key            | Command                                    |
|----------------|--------------------------------------------|
| C-F / C-B      | forward / backward character               |
| C-N / C-P      | next / previous line                       |
| C-D, C-H, DEL  | delete forward / backward                  |
| C-K            | kill to end of line                        |
| C-Y            | yank                                       |
| C-@            | set mark                                   |
| C-W / M-W      | kill region / copy region                  |
| C-M / C-J      | newline / newline and indent               |
| C-I            | tab (with an argument, set soft tab size)  |
| C-O, C-X C-O   | open line / delete blank lines             |
| C-T            | transpose characters                       |
| C-Q            | quote next character                       |
| C-U, M-digits  | numeric argument                           |
| C-X ( / ) / E  | begin / end / run keyboard macro           |
| C-G            | abort                                      |
| C-X C-C        | quit (asks if buffers are modified)        |
| M-Z            | save modified buffers and quit             |

Printable characters insert themselves, with OVER, CMODE and ASAVE modes
honoured.

## What it does not do

There is no screen display: the loop edits the buffer and shows only
message-line text. There are no search or replace commands, no commands
to find, read or write files other than the save done by M-Z and
auto-save, no key rebinding, and no macro language interpreter — `modes`
holds only the tables of its variable, function and directive names.
Locking (`uedit.lockfile`) is available as a library but not used when
files are opened.

## Using it as a library

The editing core works without a terminal:

```python
from uedit.modes import Settings
from uedit.text import Editor
from uedit import region

ed = Editor(Settings())
ed.insert_string("hello world")
ed.backward_char(5)
ed.window.mark_line = ed.window.dot_line
ed.window.mark_offset = 0
region.upper_region(ed)
print(ed.buffer.text())   # HELLO world
```

Modules:

- `uedit.modes` — `Mode` flags, `Settings`, colour, directive, variable and
  macro-function tables with `mode_from_name`, `mode_letters`,
  `lookup_function`, `lookup_env_var`, `color_index`, `directive_index`
- `uedit.fileio` — `LineReader`, `LineWriter`, `file_exists`, `FileIOError`
- `uedit.lockfile` — `lock_path`, `acquire`, `release`, `LockTable`, `LockError`
- `uedit.text` — `Line`, `Buffer`, `Window`, `KillBuffer`, `Editor`, `ReadOnlyError`
- `uedit.region` — `Region`, `get_region`, `kill_region`, `copy_region`,
  `lower_region`, `upper_region`
- `uedit.editing` — column handling, `cursor_position`, `twiddle`, `quote`,
  `insert_tab`, `open_line`, `insert_newline`, `indent`, deletes and kills
- `uedit.cmode` — `insert_brace`, `insert_pound`, `goto_fence`,
  `match_fence`, `detab`, `entab`, `trim`, `adjust_mode`
- `uedit.terminal` — `KeyDecoder`, `decode_keys`, `Terminal`
- `uedit.keys` — `KeyReader` (prefixes, macros, `yes_no`, `get_string`),
  `ectoc`, `ctoec`, `complete_name`, `Aborted`
- `uedit.main` — `parse_args`, `Options`, `usage`, `Session`, `main`

## Running the tests

```
pip install .[test]
pytest
```