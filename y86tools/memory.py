"""Byte-addressed memory and the register file of the Y86-64 machine."""

from __future__ import annotations

import sys
from typing import Iterable

from y86tools.isa import WORD_MASK, Register, reg_valid, to_signed

BYTES_PER_LINE = 32
REGISTER_FILE_BYTES = 128

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


class MemoryAccessError(IndexError):
    """An address lies outside the memory."""


class MemoryLoadError(ValueError):
    """An object file could not be loaded."""


def _char(line: str, pos: int) -> str:
    return line[pos] if 0 <= pos < len(line) else ""


def _skip_space(line: str, pos: int) -> int:
    while pos < len(line) and line[pos].isspace():
        pos += 1
    return pos


class Memory:
    """A zero-initialised memory whose size is a multiple of 32 bytes."""

    def __init__(self, length: int):
        length = max(0, (length + BYTES_PER_LINE - 1) // BYTES_PER_LINE * BYTES_PER_LINE)
        self._contents = bytearray(length)

    def __len__(self) -> int:
        return len(self._contents)

    @property
    def contents(self) -> bytes:
        return bytes(self._contents)

    def clear(self) -> None:
        """Set every byte to zero."""
        self._contents[:] = bytes(len(self._contents))

    def copy(self) -> Memory:
        """Return an independent copy."""
        new = Memory(len(self))
        new._contents[:] = self._contents
        return new

    def _check(self, pos: int, size: int) -> None:
        if pos < 0 or pos + size > len(self._contents):
            raise MemoryAccessError(f"address 0x{pos & WORD_MASK:x} out of range")

    def get_byte(self, pos: int) -> int:
        self._check(pos, 1)
        return self._contents[pos]

    def get_word(self, pos: int) -> int:
        """Read a signed little-endian 8-byte word."""
        self._check(pos, 8)
        return int.from_bytes(self._contents[pos:pos + 8], "little", signed=True)

    def set_byte(self, pos: int, value: int) -> None:
        self._check(pos, 1)
        self._contents[pos] = value & 0xFF

    def set_word(self, pos: int, value: int) -> None:
        """Write an 8-byte word in little-endian order."""
        self._check(pos, 8)
        self._contents[pos:pos + 8] = (value & WORD_MASK).to_bytes(8, "little")

    def _peek_word(self, pos: int) -> int:
        try:
            return self.get_word(pos)
        except MemoryAccessError:
            return 0

    def diff(self, other: Memory) -> list[tuple[int, int, int]]:
        """Return (address, old word, new word) for every word that differs."""
        limit = min(len(self), len(other))
        changes = []
        for pos in range(0, limit, 8):
            old, new = self._peek_word(pos), other._peek_word(pos)
            if old != new:
                changes.append((pos, old, new))
        return changes

    def dump(self, pos: int, length: int) -> str:
        """Render whole 32-byte lines covering the given range."""
        shift = pos % BYTES_PER_LINE
        pos -= shift
        length += shift
        length = (length + BYTES_PER_LINE - 1) // BYTES_PER_LINE * BYTES_PER_LINE
        if pos + length > len(self):
            length = len(self) - pos
        parts = []
        for i in range(0, length, BYTES_PER_LINE):
            parts.append(f"0x{(pos + i) & WORD_MASK:04x}:")
            val = 0
            for j in range(0, BYTES_PER_LINE, 8):
                try:
                    val = self.get_word(pos + i + j)
                except MemoryAccessError:
                    pass
                parts.append(f" {val & WORD_MASK:016x}")
        return "".join(parts)

    def load(self, lines: Iterable[str], report_error: bool = True) -> int:
        """Load the code bytes of a .yo listing and return how many were read.

        Raises MemoryLoadError on a malformed line or an address beyond the
        memory; with report_error the diagnostic is also written to stderr.
        """
        count = 0
        for lineno, line in enumerate(lines, 1):
            cpos = _skip_space(line, 0)
            if _char(line, cpos) != "0" or _char(line, cpos + 1) not in ("x", "X"):
                continue
            cpos += 2
            addr = 0
            while (ch := _char(line, cpos)) in _HEX_DIGITS:
                addr = addr * 16 + int(ch, 16)
                cpos += 1
            cpos = _skip_space(line, cpos)
            if _char(line, cpos) != ":":
                self._fail(
                    report_error,
                    "Error reading file. Expected colon\n"
                    f"Line {lineno}:{line.rstrip(chr(10))}\n"
                    f"Reading '{_char(line, cpos + 1)}' at position {cpos + 1}",
                )
            cpos = _skip_space(line, cpos + 1)
            while (hi := _char(line, cpos)) in _HEX_DIGITS and (
                lo := _char(line, cpos + 1)
            ) in _HEX_DIGITS:
                cpos += 2
                if addr >= len(self):
                    self._fail(
                        report_error,
                        f"Error reading file. Invalid address. 0x{addr:x}\n"
                        f"Line {lineno}:{line.rstrip(chr(10))}",
                    )
                self._contents[addr] = int(hi + lo, 16)
                addr += 1
                count += 1
        return count

    @staticmethod
    def _fail(report_error: bool, message: str) -> None:
        if report_error:
            print(message, file=sys.stderr)
        raise MemoryLoadError(message)


class RegisterFile:
    """The sixteen 8-byte register slots; writes to Register.NONE are ignored."""

    def __init__(self):
        self._memory = Memory(REGISTER_FILE_BYTES)

    def copy(self) -> RegisterFile:
        new = RegisterFile()
        new._memory = self._memory.copy()
        return new

    def get(self, reg_id: int) -> int:
        if 0 <= reg_id < Register.NONE:
            return self._memory.get_word(reg_id * 8)
        return 0

    def set(self, reg_id: int, value: int) -> None:
        if 0 <= reg_id < Register.NONE:
            self._memory.set_word(reg_id * 8, to_signed(value))

    def diff(self, other: RegisterFile) -> list[tuple[Register, int, int]]:
        """Return (register, old value, new value) for every register that differs."""
        return [
            (Register(pos // 8), old, new)
            for pos, old, new in self._memory.diff(other._memory)
        ]

    def dump(self) -> str:
        """Render a line of register names and a line of their hex values."""
        ids = [reg_id for reg_id in Register if reg_valid(reg_id)]
        names = "".join(f"   {reg_id_name(reg_id)}  " for reg_id in ids)
        values = "".join(f" {self.get(reg_id) & WORD_MASK:x}" for reg_id in ids)
        return f"{names}\n{values}\n"


def reg_id_name(reg_id: int) -> str:
    from y86tools.isa import reg_name

    return reg_name(reg_id)