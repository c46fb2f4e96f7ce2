"""Two-pass assembler turning Y86-64 assembly (.ys) into object listings (.yo)."""

from __future__ import annotations

import contextlib
import re
import sys
from dataclasses import dataclass
from enum import Enum

from y86tools.isa import (
    ArgType,
    Instruction,
    Register,
    bad_instr,
    find_instr,
    find_register,
    hpack,
    to_signed,
)

MAX_CODE_BYTES = 10
MAX_ROOT_LENGTH = 500


class TokenType(Enum):
    """Kinds of tokens found on one line of assembly."""

    IDENT = "I"
    NUM = "N"
    REG = "R"
    INSTR = "X"
    PUNCT = "P"
    ERR = "E"


@dataclass(frozen=True)
class Token:
    """One lexical token: its kind, text, numeric value and punctuation char."""

    type: TokenType
    text: str | None = None
    value: int = 0
    char: str = " "


class AssemblyError(Exception):
    """Assembly failed; messages holds the diagnostics.

    output holds the listing produced by the second pass, or None when the
    first pass already failed.
    """

    def __init__(self, messages: list[str], output: str | None = None):
        super().__init__("\n".join(messages))
        self.messages = list(messages)
        self.output = output


_TOKEN_RE = re.compile(
    r"""
    (?P<space>\s+)
    |(?P<comment>\#.*|/\*.*?(?:\*/|$))
    |(?P<reg>%[A-Za-z0-9]+)
    |(?P<num>\$?-?(?:0[xX][0-9a-fA-F]+|[0-9]+))
    |(?P<word>\.?[A-Za-z_][A-Za-z0-9_]*)
    |(?P<punct>[:,()])
    """,
    re.VERBOSE,
)

_DIRECTIVES = frozenset({".pos", ".align"})


def _parse_number(text: str) -> int:
    text = text.lstrip("$")
    negative = text.startswith("-")
    if negative:
        text = text[1:]
    value = int(text, 16) if text[:2].lower() == "0x" else int(text)
    return to_signed(-value if negative else value)


def tokenize_line(line: str) -> list[Token]:
    """Split one line of assembly into tokens, dropping blanks and comments.

    Characters that start no token become ERR tokens.
    """
    tokens: list[Token] = []
    pos = 0
    while pos < len(line):
        match = _TOKEN_RE.match(line, pos)
        if match is None or match.end() == pos:
            tokens.append(Token(TokenType.ERR, line[pos], 0, line[pos]))
            pos += 1
            continue
        pos = match.end()
        kind, text = match.lastgroup, match.group()
        if kind in ("space", "comment"):
            continue
        if kind == "reg":
            if find_register(text) == Register.ERR:
                tokens.append(Token(TokenType.ERR, text))
            else:
                tokens.append(Token(TokenType.REG, text))
        elif kind == "num":
            tokens.append(Token(TokenType.NUM, None, _parse_number(text)))
        elif kind == "word":
            if text.startswith(".") or text in _DIRECTIVES or find_instr(text):
                tokens.append(Token(TokenType.INSTR, text))
            else:
                tokens.append(Token(TokenType.IDENT, text))
        else:
            tokens.append(Token(TokenType.PUNCT, None, 0, text))
    return tokens


_NO_TOKEN = Token(TokenType.ERR)


class Assembler:
    """Assembles source text in two passes: symbols first, then code."""

    def __init__(self, vcode: bool = False, block_factor: int = 0):
        self.vcode = vcode
        self.block_factor = block_factor
        self.symbols: dict[str, int] = {}
        self._reset()

    def _reset(self) -> None:
        self.symbols = {}
        self._errors: list[str] = []
        self._code = bytearray(MAX_CODE_BYTES)
        self._pass = 1
        self._lineno = 0
        self._line = ""
        self._bytepos = 0
        self._bcount = 0
        self._error_mode = False
        self._tokens: list[Token] = []
        self._tpos = 0
        self._out: list[str] = []

    def assemble(self, source: str) -> str:
        """Return the object listing for the source text.

        Raises AssemblyError when any line is in error.
        """
        self._reset()
        lines = source.splitlines(keepends=True)
        self._run_pass(1, lines)
        if self._errors:
            raise AssemblyError(self._errors)
        self._run_pass(2, lines)
        output = "".join(self._out)
        if self._errors:
            raise AssemblyError(self._errors, output)
        return output

    def _run_pass(self, number: int, lines: list[str]) -> None:
        self._pass = number
        self._bytepos = 0
        self._error_mode = False
        for lineno, raw in enumerate(lines, 1):
            self._lineno = lineno
            self._line = raw.rstrip("\r\n")
            self._error_mode = False
            self._bcount = 0
            tokens = tokenize_line(self._line)
            if any(tok.type is TokenType.ERR for tok in tokens):
                self._fail("Invalid line")
            if not raw.endswith(("\n", "\r")):
                if tokens:
                    self._fail("Missing end-of-line on final line")
                break
            self._finish_line(tokens)

    def _fail(self, message: str) -> None:
        if not self._error_mode:
            self._errors.append(
                f"Error on line {self._lineno}: {message}\n"
                f"Line {self._lineno}, Byte 0x{self._bytepos & 0xFFFFFFFF:04x}: {self._line}"
            )
        self._error_mode = True

    def _tok(self, index: int) -> Token:
        return self._tokens[index] if 0 <= index < len(self._tokens) else _NO_TOKEN

    def _find_symbol(self, name: str) -> int:
        if name in self.symbols:
            return self.symbols[name]
        self._fail("Can't find label")
        return -1

    def _finish_line(self, tokens: list[Token]) -> None:
        self._tokens = tokens
        self._tpos = 0
        save = self._bytepos
        if not tokens:
            if self._pass > 1:
                self._emit(save)
            return
        if self._error_mode:
            return

        first = self._tok(0)
        if first.type is TokenType.IDENT:
            colon = self._tok(1)
            if colon.type is not TokenType.PUNCT or colon.char != ":":
                self._fail("Missing Colon")
                return
            if self._pass == 1:
                self.symbols.setdefault(first.text, self._bytepos)
            self._tpos = 2
            if len(tokens) == 2:
                if self._pass > 1:
                    self._emit(save)
                return

        tok = self._tok(self._tpos)
        if tok.type is not TokenType.INSTR:
            self._fail("Bad Instruction")
            return
        if tok.text == ".pos":
            self._tpos += 1
            arg = self._tok(self._tpos)
            if arg.type is not TokenType.NUM:
                self._fail("Invalid Address")
                return
            self._bytepos = arg.value
            if self._pass > 1:
                self._emit(self._bytepos)
            return
        if tok.text == ".align":
            self._tpos += 1
            arg = self._tok(self._tpos)
            if arg.type is not TokenType.NUM or arg.value <= 0:
                self._fail("Invalid Alignment")
                return
            align = arg.value
            self._bytepos = (self._bytepos + align - 1) // align * align
            if self._pass > 1:
                self._emit(self._bytepos)
            return

        instr: Instruction | None = find_instr(tok.text)
        self._tpos += 1
        if instr is None:
            self._fail("Invalid Instruction")
            instr = bad_instr()
        self._bytepos += instr.bytes
        self._bcount = instr.bytes
        if self._pass == 1:
            return

        self._code[0] = instr.code
        self._code[1] = hpack(Register.NONE, Register.NONE)
        self._get_arg(instr.arg1, instr.arg1pos, instr.arg1hi)
        if instr.arg2 is not ArgType.NONE:
            comma = self._tok(self._tpos)
            if comma.type is not TokenType.PUNCT or comma.char != ",":
                self._fail("Expecting Comma")
                return
            self._tpos += 1
            self._get_arg(instr.arg2, instr.arg2pos, instr.arg2hi)
        self._emit(save)

    def _get_arg(self, kind: ArgType, pos: int, hi: int) -> None:
        if kind is ArgType.REGISTER:
            self._get_reg(pos, hi)
        elif kind is ArgType.MEMORY:
            self._get_mem(pos)
        elif kind is ArgType.IMMEDIATE:
            self._get_num(pos, hi)

    def _get_reg(self, pos: int, hi: int) -> None:
        tok = self._tok(self._tpos)
        if tok.type is not TokenType.REG:
            self._fail("Expecting Register ID")
            return
        rval = int(find_register(tok.text)) & 0xF
        byte = self._code[pos]
        self._code[pos] = ((byte & 0x0F) | (rval << 4)) if hi else ((byte & 0xF0) | rval)
        self._tpos += 1

    def _store(self, pos: int, value: int, count: int) -> None:
        for i in range(count):
            if pos + i < len(self._code):
                self._code[pos + i] = (value >> (8 * i)) & 0xFF

    def _get_num(self, pos: int, count: int) -> None:
        tok = self._tok(self._tpos)
        if tok.type is TokenType.NUM:
            value = tok.value
        elif tok.type is TokenType.IDENT:
            value = self._find_symbol(tok.text)
        else:
            self._fail("Number Expected")
            return
        self._store(pos, value, count)
        self._tpos += 1

    def _get_mem(self, pos: int) -> None:
        rval = int(Register.NONE)
        value = 0
        tok = self._tok(self._tpos)
        if tok.type is TokenType.NUM:
            value = tok.value
            self._tpos += 1
        elif tok.type is TokenType.IDENT:
            value = self._find_symbol(tok.text)
            self._tpos += 1
        tok = self._tok(self._tpos)
        if tok.type is TokenType.PUNCT and tok.char == "(":
            self._tpos += 1
            reg = self._tok(self._tpos)
            if reg.type is not TokenType.REG:
                self._fail("Expecting Register Id")
                return
            rval = int(find_register(reg.text))
            self._tpos += 1
            close = self._tok(self._tpos)
            if close.type is not TokenType.PUNCT:
                self._fail("Expecting ')'")
                return
            self._tpos += 1
            if close.char != ")":
                self._fail("Expecting ')'")
                return
        self._code[pos] = (self._code[pos] & 0xF0) | (rval & 0xF)
        self._store(pos + 1, value, 8)

    def _emit(self, pos: int) -> None:
        has_tokens = bool(self._tokens)
        code_hex = bytes(self._code[: self._bcount]).hex()
        if pos > 0xFFF:
            if has_tokens:
                if pos > 0xFFFF:
                    self._fail("Code address limit exceeded")
                    raise AssemblyError(self._errors)
                prefix = f"0x{pos:04x}:" + code_hex.ljust(20) + "  | "
            else:
                prefix = " " * 29 + "| "
        elif has_tokens:
            prefix = f"0x{pos & 0xFFF:03x}: " + code_hex.ljust(20) + " | "
        else:
            prefix = " " * 28 + "| "

        if not self.vcode:
            self._out.append(f"{prefix}{self._line}\n")
            return
        self._out.append(f"//{prefix}{self._line}\n")
        if has_tokens:
            for i in range(self._bcount):
                addr = pos + i
                byte = self._code[i]
                if self.block_factor:
                    bank, index = addr % self.block_factor, addr // self.block_factor
                    self._out.append(f"    bank{bank}[{index}] = 8'h{byte:02x};\n")
                else:
                    self._out.append(f"    mem[{addr}] = 8'h{byte:02x};\n")


def assemble(source: str, vcode: bool = False, block_factor: int = 0) -> str:
    """Assemble source text and return the listing; raises AssemblyError."""
    return Assembler(vcode, block_factor).assemble(source)


def _atoi(text: str) -> int:
    match = re.match(r"\s*([+-]?\d+)", text)
    return int(match.group(1)) if match else 0


def _usage() -> int:
    print("Usage: yas [-V[n]] file.ys")
    print("   -V[n]  Generate memory initialization in Verilog format (n-way blocking)")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Command-line entry point: yas [-V[n]] file.ys."""
    if argv is None:
        argv = sys.argv[1:]
    if not argv:
        return _usage()
    vcode = False
    block_factor = 0
    index = 0
    if argv[0].startswith("-"):
        if argv[0][1:2] != "V":
            return _usage()
        vcode = True
        rest = argv[0][2:]
        if rest:
            block_factor = _atoi(rest)
            if block_factor != 8:
                print(f"Unknown blocking factor {block_factor}", file=sys.stderr)
                return 1
        index = 1
    if index >= len(argv) or not argv[index].endswith(".ys"):
        return _usage()
    root = argv[index][:-3]
    if len(root) > MAX_ROOT_LENGTH:
        print("File name too long", file=sys.stderr)
        return 1

    in_name = root + ".ys"
    try:
        with open(in_name, encoding="utf-8", errors="replace", newline="") as infile:
            source = infile.read()
    except OSError:
        print(f"Can't open input file '{in_name}'", file=sys.stderr)
        return 1

    if vcode:
        target = contextlib.nullcontext(sys.stdout)
    else:
        out_name = root + ".yo"
        try:
            target = open(out_name, "w", encoding="utf-8")
        except OSError:
            print(f"Can't open output file '{out_name}'", file=sys.stderr)
            return 1

    with target as outfile:
        try:
            listing = assemble(source, vcode, block_factor)
        except AssemblyError as err:
            for message in err.messages:
                print(message, file=sys.stderr)
            if err.output:
                outfile.write(err.output)
            return 1
        outfile.write(listing)
    return 0


if __name__ == "__main__":
    sys.exit(main())