import pytest

from uedit.keys import KeyReader, MacroMode
from uedit.main import (
    META,
    SPEC,
    Options,
    Session,
    main,
    parse_args,
    usage,
)
from uedit.modes import CONTROL, Mode
from uedit.text import BufferFlag, CommandFlag, Editor


def make_session(keys=(), text=None, bindings=None):
    editor = Editor()
    if text is not None:
        editor.buffer.set_text(text)
        editor.window.dot_line = editor.buffer.first_line
        editor.window.top_line = editor.buffer.first_line
        editor.window.dot_offset = 0
    reader = KeyReader(list(keys))
    return Session(editor, reader, bindings if bindings is not None else {})


# -- parse_args --------------------------------------------------------------

def test_plus_alone_goes_to_end():
    assert parse_args(["+"]).goto_line == 0


def test_plus_with_line():
    assert parse_args(["+12", "a.txt"]).goto_line == 12


def test_goto_switch():
    assert parse_args(["-g5"]).goto_line == 5
    assert parse_args(["-G7"]).goto_line == 7


def test_view_switch_applies_to_following_files():
    options = parse_args(["a.txt", "-v", "b.txt", "-e", "c.txt"])
    assert [(f.name, f.view) for f in options.files] == [
        ("a.txt", False), ("b.txt", True), ("c.txt", False)]


def test_search_and_startup():
    options = parse_args(["-sfoo", "@start.rc"])
    assert options.search == "foo"
    assert options.startup_files == ["start.rc"]


def test_unknown_switch_ignored():
    assert parse_args(["-x"]) == Options()


def test_help_and_version_only_alone():
    assert parse_args(["--help"]).show_help
    assert parse_args(["--version"]).show_version
    assert not parse_args(["--help", "a.txt"]).show_help


def test_usage_lists_options():
    text = usage()
    assert text.startswith("Usage:")
    assert "--version" in text


def test_main_help_and_version(capsys):
    assert main(["--help"]) == 1
    assert "Usage:" in capsys.readouterr().out
    assert main(["--version"]) == 0
    assert "version" in capsys.readouterr().out


# -- execute -----------------------------------------------------------------

def test_self_insert():
    session = make_session()
    assert session.execute(ord("a"), False, 3)
    assert session.editor.buffer.text() == "aaa\n"


def test_self_insert_fenceposts():
    session = make_session()
    assert session.execute(ord("a"), True, 0) is True
    assert session.execute(ord("a"), True, -1) is False
    assert session.editor.buffer.text() == ""


def test_unbound_key():
    session = make_session()
    assert session.execute(CONTROL | ord("Z")) is False
    assert session.message == "(Key not bound)"


def test_bound_command_receives_arguments_and_sets_last_flag():
    calls = []

    def command(f, n):
        calls.append((f, n))
        session.editor.this_flag |= CommandFlag.KILL
        return True

    session = make_session(bindings={CONTROL | ord("A"): command})
    assert session.execute(CONTROL | ord("A"), True, 9) is True
    assert calls == [(True, 9)]
    assert session.editor.last_flag & CommandFlag.KILL


def test_view_mode_refuses_insert():
    session = make_session(text="abc")
    session.editor.buffer.modes |= Mode.VIEW
    assert session.execute(ord("x")) is False
    assert session.message == "(Key illegal in VIEW mode)"
    assert session.editor.buffer.text() == "abc\n"


def test_overwrite_mode():
    session = make_session(text="abc")
    session.editor.buffer.modes |= Mode.OVER
    session.execute(ord("x"))
    assert session.editor.buffer.text() == "xbc\n"


def test_space_past_fill_column_runs_wrap_hook():
    calls = []
    session = make_session(
        text="abcdef",
        bindings={META | SPEC | ord("W"): lambda f, n: calls.append((f, n)) or True})
    session.editor.settings.fill_column = 3
    session.editor.buffer.modes |= Mode.WRAP
    session.editor.window.dot_offset = 6
    session.execute(ord(" "))
    assert calls == [(False, 1)]
    assert session.editor.buffer.text() == "abcdef \n"


# -- arguments ---------------------------------------------------------------

def test_plain_key_has_no_argument():
    session = make_session()
    assert session.read_argument(ord("a")) == (ord("a"), False, 1)


def test_meta_digits():
    session = make_session(keys=[ord("2"), ord("x")])
    assert session.read_argument(META | ord("1")) == (ord("x"), True, 12)
    assert session.message == "Arg: 12"


def test_meta_negative():
    session = make_session(keys=[ord("5"), ord("x")])
    assert session.read_argument(META | ord("-")) == (ord("x"), True, -5)


def test_universal_argument_default():
    session = make_session(keys=[ord("x")])
    assert session.read_argument(CONTROL | ord("U")) == (ord("x"), True, 4)


def test_universal_argument_repeated():
    session = make_session(keys=[0x15, ord("x")])
    assert session.read_argument(CONTROL | ord("U")) == (ord("x"), True, 16)


def test_universal_argument_digits_and_minus():
    session = make_session(keys=[ord("3"), ord("7"), ord("x")])
    assert session.read_argument(CONTROL | ord("U")) == (ord("x"), True, 37)
    session = make_session(keys=[ord("-"), ord("x")])
    assert session.read_argument(CONTROL | ord("U")) == (ord("x"), True, -1)


# -- macros ------------------------------------------------------------------

def test_macro_record_and_play():
    session = make_session(keys=[ord("h"), ord("i")])
    assert session.begin_macro()
    assert session.begin_macro() is False
    assert session.message == "%Macro already active"
    session.keys.tgetc()
    session.keys.tgetc()
    assert session.end_macro()
    assert session.keys.macro == [ord("h"), ord("i")]
    assert session.run_macro(1)
    assert session.keys.tgetc() == ord("h")


def test_end_macro_when_stopped():
    session = make_session()
    assert session.end_macro() is False
    assert session.message == "%Macro not active"


def test_abort_stops_macro():
    session = make_session()
    session.begin_macro()
    assert session.abort() is False
    assert session.keys.mode is MacroMode.STOP
    assert session.message == "(Aborted)"


# -- quitting ----------------------------------------------------------------

def test_quit_with_argument_exits_with_it():
    session = make_session()
    with pytest.raises(SystemExit) as info:
        session.quit(True, 3)
    assert info.value.code == 3


def test_quit_clean_exits_zero():
    session = make_session()
    with pytest.raises(SystemExit) as info:
        session.quit(False, 0)
    assert info.value.code == 0


def test_quit_modified_declined():
    session = make_session(keys=[ord("n")], text="x")
    session.editor.buffer.flags |= BufferFlag.CHANGED
    assert session.quit(False, 0) is False


def test_quit_modified_confirmed():
    session = make_session(keys=[ord("y")], text="x")
    session.editor.buffer.flags |= BufferFlag.CHANGED
    with pytest.raises(SystemExit):
        session.quit(False, 0)


def test_quick_exit_saves_changed_buffers(tmp_path):
    path = tmp_path / "out.txt"
    session = make_session(text="hello\nworld")
    buf = session.editor.buffer
    buf.filename = str(path)
    buf.flags |= BufferFlag.CHANGED
    with pytest.raises(SystemExit):
        session.quick_exit(False, 0)
    assert path.read_text() == "hello\nworld\n"
    assert not buf.flags & BufferFlag.CHANGED


def test_quick_exit_without_filename_fails():
    session = make_session(text="x")
    session.editor.buffer.flags |= BufferFlag.CHANGED
    assert session.quick_exit(False, 0) is False