import pytest

from y86tools.isa import Register
from y86tools.memory import (
    BYTES_PER_LINE,
    Memory,
    MemoryAccessError,
    MemoryLoadError,
    RegisterFile,
)


def test_length_rounded_to_line():
    assert len(Memory(1)) == BYTES_PER_LINE
    assert len(Memory(BYTES_PER_LINE + 1)) == 2 * BYTES_PER_LINE
    assert len(Memory(0)) == 0


def test_word_round_trip_signed():
    m = Memory(64)
    for value in (0, 1, -1, 2**63 - 1, -(2**63)):
        m.set_word(8, value)
        assert m.get_word(8) == value


def test_word_is_little_endian():
    m = Memory(32)
    m.set_word(0, 0x1122334455667788)
    assert m.get_byte(0) == 0x88
    assert m.get_byte(7) == 0x11


def test_byte_round_trip_masks():
    m = Memory(32)
    m.set_byte(3, 0x1AB)
    assert m.get_byte(3) == 0xAB


@pytest.mark.parametrize("pos", [-1, 25, 32])
def test_word_out_of_range(pos):
    m = Memory(32)
    with pytest.raises(MemoryAccessError):
        m.get_word(pos)
    with pytest.raises(MemoryAccessError):
        m.set_word(pos, 1)


def test_byte_out_of_range():
    m = Memory(32)
    with pytest.raises(MemoryAccessError):
        m.get_byte(32)


def test_copy_is_independent_and_clear():
    m = Memory(32)
    m.set_word(0, 42)
    c = m.copy()
    c.set_word(0, 7)
    assert m.get_word(0) == 42
    m.clear()
    assert m.contents == bytes(32)


def test_diff_reports_changed_words():
    old = Memory(64)
    new = old.copy()
    new.set_word(16, -5)
    assert old.diff(new) == [(16, 0, -5)]
    assert old.diff(old.copy()) == []


def test_dump_format():
    m = Memory(64)
    m.set_word(0, 1)
    assert m.dump(0, 8) == (
        "0x0000: 0000000000000001 0000000000000000"
        " 0000000000000000 0000000000000000"
    )


def test_dump_aligns_down():
    m = Memory(64)
    assert m.dump(40, 1).startswith("0x0020:")


def test_load_yo_lines():
    m = Memory(64)
    lines = [
        "0x000: 30f40001000000000000 | irmovq $256,%rsp\n",
        "                            | # comment\n",
        "0x00a: 00                   | halt\n",
    ]
    assert m.load(lines) == 11
    assert m.get_byte(0) == 0x30
    assert m.get_word(2) == 256
    assert m.get_byte(10) == 0


def test_load_missing_colon(capsys):
    m = Memory(32)
    with pytest.raises(MemoryLoadError, match="Expected colon"):
        m.load(["0x000 30\n"], report_error=True)
    assert "Expected colon" in capsys.readouterr().err


def test_load_invalid_address_quiet(capsys):
    m = Memory(32)
    with pytest.raises(MemoryLoadError, match="Invalid address"):
        m.load(["0x020: 00\n"], report_error=False)
    assert capsys.readouterr().err == ""


def test_register_file_get_set():
    r = RegisterFile()
    r.set(Register.RAX, -3)
    r.set(Register.NONE, 9)
    assert r.get(Register.RAX) == -3
    assert r.get(Register.NONE) == 0
    assert r.get(Register.RBX) == 0


def test_register_file_diff_and_copy():
    r = RegisterFile()
    c = r.copy()
    c.set(Register.RSP, 256)
    assert r.diff(c) == [(Register.RSP, 0, 256)]
    assert r.get(Register.RSP) == 0


def test_register_file_dump():
    r = RegisterFile()
    r.set(Register.RAX, -1)
    names, values, _ = r.dump().split("\n")
    assert names.split()[0] == "%rax"
    assert names.split()[-1] == "%r14"
    assert values.split()[0] == "ffffffffffffffff"
    assert len(values.split()) == 15