"""Instruction-level model of the Y86-64 machine."""

from __future__ import annotations

from typing import TextIO

from y86tools.isa import (
    DEFAULT_CC,
    WORD_MASK,
    AluOp,
    InstrType,
    Register,
    Status,
    cc_name,
    compute_alu,
    compute_cc,
    cond_holds,
    reg_name,
    reg_valid,
    to_signed,
)
from y86tools.memory import Memory, MemoryAccessError, RegisterFile

_NEEDS_REGIDS = frozenset(
    {
        InstrType.RRMOVQ,
        InstrType.ALU,
        InstrType.PUSHQ,
        InstrType.POPQ,
        InstrType.IRMOVQ,
        InstrType.RMMOVQ,
        InstrType.MRMOVQ,
        InstrType.IADDQ,
    }
)

_NEEDS_IMMEDIATE = frozenset(
    {
        InstrType.IRMOVQ,
        InstrType.RMMOVQ,
        InstrType.MRMOVQ,
        InstrType.JMP,
        InstrType.CALL,
        InstrType.IADDQ,
    }
)


def _hex16(value: int) -> str:
    return f"0x{value & WORD_MASK:016x}"


def _format_reg_changes(old: RegisterFile, new: RegisterFile) -> list[str]:
    return [
        f"{reg_name(reg_id)}:\t{_hex16(ov)}\t{_hex16(nv)}"
        for reg_id, ov, nv in old.diff(new)
    ]


def _format_mem_changes(old: Memory, new: Memory) -> list[str]:
    return [
        f"0x{pos & WORD_MASK:04x}:\t{_hex16(ov)}\t{_hex16(nv)}"
        for pos, ov, nv in old.diff(new)
    ]


class State:
    """Program counter, registers, memory and condition codes."""

    def __init__(self, memlen: int):
        self.pc = 0
        self.r = RegisterFile()
        self.m = Memory(memlen)
        self.cc = DEFAULT_CC

    def copy(self) -> State:
        """Return an independent copy of the whole state."""
        new = State(0)
        new.pc = self.pc
        new.r = self.r.copy()
        new.m = self.m.copy()
        new.cc = self.cc
        return new

    def diff(self, other: State) -> list[str]:
        """Describe every difference from another state; empty when equal."""
        lines = []
        if self.pc != other.pc:
            lines.append(f"pc:\t{_hex16(self.pc)}\t{_hex16(other.pc)}")
        if self.cc != other.cc:
            lines.append(f"cc:\t{cc_name(self.cc)}\t{cc_name(other.cc)}")
        lines.extend(_format_reg_changes(self.r, other.r))
        lines.extend(_format_mem_changes(self.m, other.m))
        return lines

    def step(self, error_file: TextIO | None = None) -> Status:
        """Execute one instruction and return the resulting status.

        Diagnostics for failing instructions go to error_file when given.
        """
        pc = self.pc

        def report(message: str) -> None:
            if error_file is not None:
                error_file.write(f"PC = 0x{pc & WORD_MASK:x}, {message}\n")

        def bad_reg(reg_id: int) -> Status:
            report(f"Invalid register ID 0x{reg_id:x}")
            return Status.INS

        ftpc = pc
        try:
            byte0 = self.m.get_byte(ftpc)
        except MemoryAccessError:
            report("Invalid instruction address")
            return Status.ADR
        ftpc += 1
        hi0, lo0 = byte0 >> 4, byte0 & 0xF

        ok1 = True
        hi1 = lo1 = int(Register.NONE)
        if hi0 in _NEEDS_REGIDS:
            try:
                byte1 = self.m.get_byte(ftpc)
            except MemoryAccessError:
                ok1 = False
                byte1 = 0
            ftpc += 1
            hi1, lo1 = byte1 >> 4, byte1 & 0xF

        okc = True
        cval = 0
        if hi0 in _NEEDS_IMMEDIATE:
            try:
                cval = self.m.get_word(ftpc)
            except MemoryAccessError:
                okc = False
            ftpc += 8

        if hi0 == InstrType.NOP:
            self.pc = ftpc
            return Status.AOK
        if hi0 == InstrType.HALT:
            return Status.HLT

        if hi0 not in _NEEDS_REGIDS and hi0 not in _NEEDS_IMMEDIATE and hi0 != InstrType.RET:
            report(f"Invalid instruction {byte0:02x}")
            return Status.INS

        if not ok1:
            report("Invalid instruction address")
            return Status.ADR

        if hi0 == InstrType.RRMOVQ:
            if not reg_valid(hi1):
                return bad_reg(hi1)
            if not reg_valid(lo1):
                return bad_reg(lo1)
            val = self.r.get(hi1)
            if cond_holds(self.cc, lo0):
                self.r.set(lo1, val)
            self.pc = ftpc
        elif hi0 == InstrType.IRMOVQ:
            if not okc:
                report("Invalid instruction address")
                return Status.INS
            if not reg_valid(lo1):
                return bad_reg(lo1)
            self.r.set(lo1, cval)
            self.pc = ftpc
        elif hi0 == InstrType.RMMOVQ:
            if not okc:
                report("Invalid instruction address")
                return Status.INS
            if not reg_valid(hi1):
                return bad_reg(hi1)
            if reg_valid(lo1):
                cval = to_signed(cval + self.r.get(lo1))
            try:
                self.m.set_word(cval, self.r.get(hi1))
            except MemoryAccessError:
                report(f"Invalid data address 0x{cval & WORD_MASK:x}")
                return Status.ADR
            self.pc = ftpc
        elif hi0 == InstrType.MRMOVQ:
            if not okc:
                report("Invalid instruction address")
                return Status.INS
            if not reg_valid(hi1):
                return bad_reg(hi1)
            if reg_valid(lo1):
                cval = to_signed(cval + self.r.get(lo1))
            try:
                val = self.m.get_word(cval)
            except MemoryAccessError:
                return Status.ADR
            self.r.set(hi1, val)
            self.pc = ftpc
        elif hi0 == InstrType.ALU:
            arg_a = self.r.get(hi1)
            arg_b = self.r.get(lo1)
            self.r.set(lo1, compute_alu(lo0, arg_a, arg_b))
            self.cc = compute_cc(lo0, arg_a, arg_b)
            self.pc = ftpc
        elif hi0 == InstrType.JMP:
            if not okc:
                report("Invalid instruction address")
                return Status.ADR
            self.pc = cval if cond_holds(self.cc, lo0) else ftpc
        elif hi0 == InstrType.CALL:
            if not okc:
                report("Invalid instruction address")
                return Status.ADR
            val = to_signed(self.r.get(Register.RSP) - 8)
            self.r.set(Register.RSP, val)
            try:
                self.m.set_word(val, ftpc)
            except MemoryAccessError:
                report(f"Invalid stack address 0x{val & WORD_MASK:x}")
                return Status.ADR
            self.pc = cval
        elif hi0 == InstrType.RET:
            dval = self.r.get(Register.RSP)
            try:
                val = self.m.get_word(dval)
            except MemoryAccessError:
                report(f"Invalid stack address 0x{dval & WORD_MASK:x}")
                return Status.ADR
            self.r.set(Register.RSP, dval + 8)
            self.pc = val
        elif hi0 == InstrType.PUSHQ:
            if not reg_valid(hi1):
                return bad_reg(hi1)
            val = self.r.get(hi1)
            dval = to_signed(self.r.get(Register.RSP) - 8)
            self.r.set(Register.RSP, dval)
            try:
                self.m.set_word(dval, val)
            except MemoryAccessError:
                report(f"Invalid stack address 0x{dval & WORD_MASK:x}")
                return Status.ADR
            self.pc = ftpc
        elif hi0 == InstrType.POPQ:
            if not reg_valid(hi1):
                return bad_reg(hi1)
            dval = self.r.get(Register.RSP)
            self.r.set(Register.RSP, dval + 8)
            try:
                val = self.m.get_word(dval)
            except MemoryAccessError:
                report(f"Invalid stack address 0x{dval & WORD_MASK:x}")
                return Status.ADR
            self.r.set(hi1, val)
            self.pc = ftpc
        elif hi0 == InstrType.IADDQ:
            if not okc:
                report("Invalid instruction address")
                return Status.INS
            if not reg_valid(lo1):
                return bad_reg(lo1)
            arg_b = self.r.get(lo1)
            self.r.set(lo1, arg_b + cval)
            self.cc = compute_cc(AluOp.ADD, cval, arg_b)
            self.pc = ftpc
        return Status.AOK