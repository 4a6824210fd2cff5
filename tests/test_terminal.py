import os

import pytest

from uedit.terminal import CSI, KeyDecoder, Terminal, decode_keys


@pytest.fixture
def pipe():
    r, w = os.pipe()
    yield r, w
    for fd in (r, w):
        try:
            os.close(fd)
        except OSError:
            pass


def test_csi_code():
    assert decode_keys(b"\x1b[A")[0] == 128 + 27
    assert CSI == 128 + 27


def test_ascii_passes_through():
    assert decode_keys(b"abc") == [ord(c) for c in "abc"]


def test_escape_bracket_becomes_csi():
    assert decode_keys(b"\x1b[A") == [CSI, ord("A")]


def test_lone_escape():
    assert decode_keys(b"\x1b") == [27]
    assert decode_keys(b"\x1bx") == [27, ord("x")]


def test_control_characters():
    assert decode_keys(b"\x01\r") == [1, 13]


def test_utf8_sequences():
    text = "é€😀"
    assert decode_keys(text.encode("utf-8")) == [ord(c) for c in text]


def test_no_break_space_becomes_space():
    assert decode_keys("\u00a0".encode("utf-8")) == [ord(" ")]


def test_invalid_sequences_yield_first_byte():
    assert decode_keys(b"\xc3A") == [0xC3, ord("A")]
    assert decode_keys(b"\x80") == [0x80]


def test_incremental_feed():
    decoder = KeyDecoder()
    encoded = "€".encode("utf-8")
    assert decoder.feed(encoded[:2]) == []
    assert decoder.pending() == 2
    assert decoder.feed(encoded[2:]) == [ord("€")]
    assert decoder.pending() == 0


def test_flush_decodes_incomplete_tail():
    decoder = KeyDecoder()
    assert decoder.feed(b"a\xc3") == [ord("a")]
    assert decoder.pending() == 1
    assert decoder.flush() == [0xC3]
    assert decoder.pending() == 0


def test_held_escape_completes_to_csi():
    decoder = KeyDecoder()
    assert decoder.feed(b"\x1b") == []
    assert decoder.feed(b"[B") == [CSI, ord("B")]


def test_terminal_reads_keys(pipe):
    r, w = pipe
    os.write(w, b"a\x1b[A" + "é".encode("utf-8"))
    term = Terminal(r)
    assert [term.getc() for _ in range(4)] == [ord("a"), CSI, ord("A"), ord("é")]


def test_terminal_lone_escape_after_timeout(pipe):
    r, w = pipe
    os.write(w, b"\x1b")
    term = Terminal(r)
    assert term.getc() == 27


def test_terminal_closed_input_returns_zero(pipe):
    r, w = pipe
    os.close(w)
    term = Terminal(r)
    assert term.getc() == 0


def test_terminal_output(pipe):
    r, w = pipe
    term = Terminal(r)
    term.output_fd = w
    for ch in "hé":
        term.putc(ord(ch))
    term.flush()
    assert os.read(r, 64) == "hé".encode("utf-8")


def test_terminal_output_flushes_when_full(pipe):
    r, w = pipe
    term = Terminal(r)
    term.output_fd = w
    for _ in range(200):
        term.putc(ord("x"))
    data = os.read(r, 1024)
    assert data
    assert set(data) == {ord("x")}
    term.flush()
    assert len(data) + len(os.read(r, 1024)) == 200


def test_typeahead_counts_waiting_input(pipe):
    r, w = pipe
    term = Terminal(r)
    assert term.typeahead() == 0
    os.write(w, b"xyz")
    assert term.typeahead() == 3
    assert term.getc() == ord("x")
    assert term.typeahead() == 2


def test_context_manager_on_pipe(pipe):
    r, w = pipe
    os.write(w, b"q")
    with Terminal(r) as term:
        term.output_fd = w
        assert term.getc() == ord("q")
        term.putc(ord("z"))
    assert os.read(r, 8) == b"z"