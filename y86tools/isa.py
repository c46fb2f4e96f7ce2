"""Y86-64 instruction set: registers, encodings, ALU operations and condition codes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum

WORD_MASK = (1 << 64) - 1
MEM_SIZE = 1 << 13
BIG_MEM_SIZE = 1 << 16


class Register(IntEnum):
    """Program register identifiers; NONE marks "no register"."""

    RAX = 0
    RCX = 1
    RDX = 2
    RBX = 3
    RSP = 4
    RBP = 5
    RSI = 6
    RDI = 7
    R8 = 8
    R9 = 9
    R10 = 10
    R11 = 11
    R12 = 12
    R13 = 13
    R14 = 14
    NONE = 0xF
    ERR = 0x10


_REGISTER_NAMES = (
    "%rax", "%rcx", "%rdx", "%rbx", "%rsp", "%rbp", "%rsi", "%rdi",
    "%r8", "%r9", "%r10", "%r11", "%r12", "%r13", "%r14",
)
_NO_REGISTER_NAME = "----"


class ArgType(Enum):
    """Kinds of instruction operands."""

    REGISTER = "R"
    MEMORY = "M"
    IMMEDIATE = "I"
    NONE = "-"


class InstrType(IntEnum):
    """Instruction codes (high nibble of the first byte)."""

    HALT = 0
    NOP = 1
    RRMOVQ = 2
    IRMOVQ = 3
    RMMOVQ = 4
    MRMOVQ = 5
    ALU = 6
    JMP = 7
    CALL = 8
    RET = 9
    PUSHQ = 10
    POPQ = 11
    IADDQ = 12
    POP2 = 13


class AluOp(IntEnum):
    """ALU function codes."""

    ADD = 0
    SUB = 1
    AND = 2
    XOR = 3
    NONE = 4


class Cond(IntEnum):
    """Branch and conditional-move conditions."""

    YES = 0
    LE = 1
    L = 2
    E = 3
    NE = 4
    GE = 5
    G = 6


class Status(IntEnum):
    """Processor status codes."""

    BUB = 0
    AOK = 1
    HLT = 2
    ADR = 3
    INS = 4
    PIP = 5


def hpack(hi: int, lo: int) -> int:
    """Pack two 4-bit values into one byte."""
    return ((hi & 0xF) << 4) | (lo & 0xF)


def to_signed(value: int) -> int:
    """Wrap an integer to a signed 64-bit word."""
    value &= WORD_MASK
    return value - (1 << 64) if value >> 63 else value


@dataclass(frozen=True)
class Instruction:
    """Encoding description of one instruction or data directive."""

    name: str
    code: int
    bytes: int
    arg1: ArgType
    arg1pos: int
    arg1hi: int
    arg2: ArgType
    arg2pos: int
    arg2hi: int


_R, _M, _I, _N = ArgType.REGISTER, ArgType.MEMORY, ArgType.IMMEDIATE, ArgType.NONE

INSTRUCTION_SET: tuple[Instruction, ...] = (
    Instruction("nop", hpack(InstrType.NOP, 0), 1, _N, 0, 0, _N, 0, 0),
    Instruction("halt", hpack(InstrType.HALT, 0), 1, _N, 0, 0, _N, 0, 0),
    Instruction("rrmovq", hpack(InstrType.RRMOVQ, 0), 2, _R, 1, 1, _R, 1, 0),
    Instruction("cmovle", hpack(InstrType.RRMOVQ, Cond.LE), 2, _R, 1, 1, _R, 1, 0),
    Instruction("cmovl", hpack(InstrType.RRMOVQ, Cond.L), 2, _R, 1, 1, _R, 1, 0),
    Instruction("cmove", hpack(InstrType.RRMOVQ, Cond.E), 2, _R, 1, 1, _R, 1, 0),
    Instruction("cmovne", hpack(InstrType.RRMOVQ, Cond.NE), 2, _R, 1, 1, _R, 1, 0),
    Instruction("cmovge", hpack(InstrType.RRMOVQ, Cond.GE), 2, _R, 1, 1, _R, 1, 0),
    Instruction("cmovg", hpack(InstrType.RRMOVQ, Cond.G), 2, _R, 1, 1, _R, 1, 0),
    Instruction("irmovq", hpack(InstrType.IRMOVQ, 0), 10, _I, 2, 8, _R, 1, 0),
    Instruction("rmmovq", hpack(InstrType.RMMOVQ, 0), 10, _R, 1, 1, _M, 1, 0),
    Instruction("mrmovq", hpack(InstrType.MRMOVQ, 0), 10, _M, 1, 0, _R, 1, 1),
    Instruction("addq", hpack(InstrType.ALU, AluOp.ADD), 2, _R, 1, 1, _R, 1, 0),
    Instruction("subq", hpack(InstrType.ALU, AluOp.SUB), 2, _R, 1, 1, _R, 1, 0),
    Instruction("andq", hpack(InstrType.ALU, AluOp.AND), 2, _R, 1, 1, _R, 1, 0),
    Instruction("xorq", hpack(InstrType.ALU, AluOp.XOR), 2, _R, 1, 1, _R, 1, 0),
    Instruction("jmp", hpack(InstrType.JMP, Cond.YES), 9, _I, 1, 8, _N, 0, 0),
    Instruction("jle", hpack(InstrType.JMP, Cond.LE), 9, _I, 1, 8, _N, 0, 0),
    Instruction("jl", hpack(InstrType.JMP, Cond.L), 9, _I, 1, 8, _N, 0, 0),
    Instruction("je", hpack(InstrType.JMP, Cond.E), 9, _I, 1, 8, _N, 0, 0),
    Instruction("jne", hpack(InstrType.JMP, Cond.NE), 9, _I, 1, 8, _N, 0, 0),
    Instruction("jge", hpack(InstrType.JMP, Cond.GE), 9, _I, 1, 8, _N, 0, 0),
    Instruction("jg", hpack(InstrType.JMP, Cond.G), 9, _I, 1, 8, _N, 0, 0),
    Instruction("call", hpack(InstrType.CALL, 0), 9, _I, 1, 8, _N, 0, 0),
    Instruction("ret", hpack(InstrType.RET, 0), 1, _N, 0, 0, _N, 0, 0),
    Instruction("pushq", hpack(InstrType.PUSHQ, 0), 2, _R, 1, 1, _N, 0, 0),
    Instruction("popq", hpack(InstrType.POPQ, 0), 2, _R, 1, 1, _N, 0, 0),
    Instruction("iaddq", hpack(InstrType.IADDQ, 0), 10, _I, 2, 8, _R, 1, 0),
    # Gives the POP2 code an associated name.
    Instruction("pop2", hpack(InstrType.POP2, 0), 0, _N, 0, 0, _N, 0, 0),
    # For data directives, arg1hi is the number of bytes.
    Instruction(".byte", 0x00, 1, _I, 0, 1, _N, 0, 0),
    Instruction(".word", 0x00, 2, _I, 0, 2, _N, 0, 0),
    Instruction(".long", 0x00, 4, _I, 0, 4, _N, 0, 0),
    Instruction(".quad", 0x00, 8, _I, 0, 8, _N, 0, 0),
)

_INVALID_INSTR = Instruction("XXX", 0, 0, _N, 0, 0, _N, 0, 0)

DEFAULT_CC = 0b100  # Z=1 S=0 O=0

_CC_NAMES = (
    "Z=0 S=0 O=0",
    "Z=0 S=0 O=1",
    "Z=0 S=1 O=0",
    "Z=0 S=1 O=1",
    "Z=1 S=0 O=0",
    "Z=1 S=0 O=1",
    "Z=1 S=1 O=0",
    "Z=1 S=1 O=1",
)

_STAT_NAMES = ("BUB", "AOK", "HLT", "ADR", "INS", "PIP")

_ALU_SYMBOLS = {AluOp.ADD: "+", AluOp.SUB: "-", AluOp.AND: "&", AluOp.XOR: "^"}


def find_register(name: str) -> Register:
    """Return the register with the given name, or Register.ERR."""
    try:
        return Register(_REGISTER_NAMES.index(name))
    except ValueError:
        return Register.ERR


def reg_name(reg_id: int) -> str:
    """Return the printed name of a register ID."""
    if 0 <= reg_id < Register.NONE:
        return _REGISTER_NAMES[reg_id]
    return _NO_REGISTER_NAME


def reg_valid(reg_id: int) -> bool:
    """Is the ID that of a real program register?"""
    return 0 <= reg_id < Register.NONE


def find_instr(name: str) -> Instruction | None:
    """Look up an instruction or directive by name."""
    return next((instr for instr in INSTRUCTION_SET if instr.name == name), None)


def iname(code: int) -> str:
    """Return the name of an instruction given its first byte."""
    return next((instr.name for instr in INSTRUCTION_SET if instr.code == code), "<bad>")


def bad_instr() -> Instruction:
    """Return the placeholder used for invalid instructions."""
    return _INVALID_INSTR


def op_name(op: int) -> str:
    """Return the symbol of an ALU operation."""
    return _ALU_SYMBOLS.get(op, "?")


def compute_alu(op: int, arg_a: int, arg_b: int) -> int:
    """Apply an ALU operation; SUB computes arg_b - arg_a."""
    a, b = to_signed(arg_a), to_signed(arg_b)
    if op == AluOp.ADD:
        val = a + b
    elif op == AluOp.SUB:
        val = b - a
    elif op == AluOp.AND:
        val = a & b
    elif op == AluOp.XOR:
        val = a ^ b
    else:
        val = 0
    return to_signed(val)


def compute_cc(op: int, arg_a: int, arg_b: int) -> int:
    """Return the packed condition codes produced by an ALU operation."""
    a, b = to_signed(arg_a), to_signed(arg_b)
    val = compute_alu(op, a, b)
    zero = val == 0
    sign = val < 0
    if op == AluOp.ADD:
        ovf = (a < 0) == (b < 0) and (val < 0) != (a < 0)
    elif op == AluOp.SUB:
        ovf = (a > 0) == (b < 0) and (val < 0) != (b < 0)
    else:
        ovf = False
    return (int(zero) << 2) | (int(sign) << 1) | int(ovf)


def cc_name(cc: int) -> str:
    """Return the printed form of packed condition codes."""
    if 0 <= cc <= 7:
        return _CC_NAMES[cc]
    return "???????????"


def stat_name(status: int) -> str:
    """Return the printed name of a status code."""
    if 0 <= status <= Status.PIP:
        return _STAT_NAMES[status]
    return "Invalid Status"


def cond_holds(cc: int, cond: int) -> bool:
    """Does the condition hold under the given condition codes?"""
    zf = (cc >> 2) & 1
    sf = (cc >> 1) & 1
    of = cc & 1
    if cond == Cond.YES:
        return True
    if cond == Cond.LE:
        return bool((sf ^ of) | zf)
    if cond == Cond.L:
        return bool(sf ^ of)
    if cond == Cond.E:
        return bool(zf)
    if cond == Cond.NE:
        return not zf
    if cond == Cond.GE:
        return not (sf ^ of)
    if cond == Cond.G:
        return not (sf ^ of) and not zf
    return False