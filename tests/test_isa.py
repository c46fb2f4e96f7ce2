import pytest

from y86tools.isa import (
    DEFAULT_CC,
    AluOp,
    ArgType,
    Cond,
    InstrType,
    Register,
    Status,
    bad_instr,
    cc_name,
    compute_alu,
    compute_cc,
    cond_holds,
    find_instr,
    find_register,
    hpack,
    iname,
    op_name,
    reg_name,
    reg_valid,
    stat_name,
    to_signed,
)


def test_find_register_known_names():
    assert find_register("%rsp") == Register.RSP
    assert find_register("%r14") == Register.R14


def test_find_register_unknown_is_err():
    assert find_register("%r15") == Register.ERR
    assert find_register("----") == Register.ERR


def test_reg_name_round_trip():
    for reg in Register:
        if reg_valid(reg):
            assert find_register(reg_name(reg)) == reg


def test_reg_name_none():
    assert reg_name(Register.NONE) == "----"
    assert reg_name(Register.ERR) == "----"


def test_reg_valid():
    assert reg_valid(Register.R14)
    assert not reg_valid(Register.NONE)
    assert not reg_valid(-1)


def test_hpack_unpack_round_trip():
    byte = hpack(InstrType.ALU, AluOp.XOR)
    assert byte >> 4 == InstrType.ALU
    assert byte & 0xF == AluOp.XOR


def test_iname_of_encoded_instructions():
    assert iname(hpack(InstrType.ALU, AluOp.ADD)) == "addq"
    assert iname(hpack(InstrType.JMP, Cond.LE)) == "jle"
    assert iname(hpack(InstrType.HALT, 0)) == "halt"
    assert iname(0xFF) == "<bad>"


def test_find_instr():
    instr = find_instr("irmovq")
    assert instr.bytes == 10
    assert instr.arg1 is ArgType.IMMEDIATE
    assert instr.arg2 is ArgType.REGISTER
    assert iname(instr.code) == "irmovq"
    assert find_instr("bogus") is None


def test_bad_instr():
    assert bad_instr().name == "XXX"
    assert bad_instr().bytes == 0


def test_op_name():
    assert op_name(AluOp.ADD) == "+"
    assert op_name(AluOp.XOR) == "^"
    assert op_name(AluOp.NONE) == "?"


def test_to_signed_wraps():
    assert to_signed(2**63) == -(2**63)
    assert to_signed(-1) == -1
    assert to_signed(2**64 + 5) == 5


def test_compute_alu_sub_is_b_minus_a():
    assert compute_alu(AluOp.SUB, 3, 10) == -compute_alu(AluOp.SUB, 10, 3)
    assert compute_alu(AluOp.ADD, 3, 10) == compute_alu(AluOp.ADD, 10, 3)


def test_compute_alu_wraps_and_unknown():
    assert compute_alu(AluOp.ADD, 2**63 - 1, 1) == -(2**63)
    assert compute_alu(AluOp.NONE, 5, 6) == 0
    assert compute_alu(AluOp.XOR, 12345, 12345) == 0


def test_compute_cc_add_overflow():
    assert cc_name(compute_cc(AluOp.ADD, 2**63 - 1, 1)) == "Z=0 S=1 O=1"


def test_compute_cc_sub_zero():
    assert compute_cc(AluOp.SUB, 1, 1) == DEFAULT_CC
    assert cc_name(compute_cc(AluOp.SUB, 1, 1)) == "Z=1 S=0 O=0"


def test_compute_cc_and_sign():
    assert cc_name(compute_cc(AluOp.AND, -1, -1)) == "Z=0 S=1 O=0"


def test_cc_name_out_of_range():
    assert cc_name(8) == "???????????"
    assert cc_name(-1) == "???????????"


def test_stat_name():
    assert stat_name(Status.HLT) == "HLT"
    assert stat_name(Status.PIP) == "PIP"
    assert stat_name(99) == "Invalid Status"


@pytest.mark.parametrize(
    "cond, expected",
    [
        (Cond.YES, True),
        (Cond.LE, True),
        (Cond.L, False),
        (Cond.E, True),
        (Cond.NE, False),
        (Cond.GE, True),
        (Cond.G, False),
        (99, False),
    ],
)
def test_cond_holds_on_zero(cond, expected):
    assert cond_holds(DEFAULT_CC, cond) is expected


def test_cond_holds_on_negative():
    cc = compute_cc(AluOp.SUB, 5, 1)  # 1 - 5 < 0
    assert cond_holds(cc, Cond.L)
    assert cond_holds(cc, Cond.LE)
    assert not cond_holds(cc, Cond.GE)
    assert not cond_holds(cc, Cond.G)
    assert cond_holds(cc, Cond.NE)