"""Parse-tree nodes for HCL expressions and generation of C code from them."""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, TextIO

from y86tools.outgen import OutputGenerator

SYMBOL_LIMIT = 100
MAX_ERROR_LENGTH = 80
MAX_COLUMN = 75
FIRST_INDENT = 4
OTHER_INDENTS = 2


class NodeType(Enum):
    """Kinds of parse-tree nodes."""

    QUOTE = "quote"
    VAR = "var"
    NUM = "num"
    AND = "and"
    OR = "or"
    NOT = "not"
    COMP = "comp"
    ELE = "ele"
    CASE = "case"


@dataclass(eq=False)
class Node:
    """One parse-tree node; next links nodes into lists."""

    type: NodeType
    isbool: bool
    sval: str
    arg1: Node | None = None
    arg2: Node | None = None
    ref: int = 0
    next: Node | None = None

    def __iter__(self) -> Iterator[Node]:
        node: Node | None = self
        while node is not None:
            yield node
            node = node.next


class HclError(Exception):
    """An HCL description is in error."""


def _atoll(text: str) -> int:
    match = re.match(r"\s*([+-]?\d+)", text)
    return int(match.group(1)) if match else 0


def make_quote(qstring: str) -> Node:
    """Make a node for a quoted string, dropping the surrounding quotes."""
    return Node(NodeType.QUOTE, False, qstring[1:-1])


def make_var(name: str) -> Node:
    """Make a variable node, initially assumed not Boolean."""
    return Node(NodeType.VAR, False, name)


def make_num(name: str) -> Node:
    """Make a numeric literal node."""
    return Node(NodeType.NUM, False, name)


def concat(first: Node | None, second: Node | None) -> Node | None:
    """Append the second list to the end of the first and return the result."""
    if first is None:
        return second
    tail = first
    while tail.next is not None:
        tail = tail.next
    tail.next = second
    return first


class _ExprPrinter:
    """Builds a length-limited rendering of an expression."""

    def __init__(self) -> None:
        self.parts: list[str] = []
        self.length = 0

    def add(self, text: str) -> None:
        self.parts.append(text)
        self.length += len(text)

    def room(self) -> bool:
        return self.length < MAX_ERROR_LENGTH

    def leaf(self, text: str) -> None:
        if len(text) + self.length < MAX_ERROR_LENGTH:
            self.add(text)

    def binary(self, expr: Node, op: str) -> None:
        if self.room():
            self.add("(")
            self.show(expr.arg1)
            self.add(op)
        if self.room():
            self.show(expr.arg2)
            self.add(")")

    def show(self, expr: Node | None) -> None:
        if expr is None:
            return
        kind = expr.type
        if kind is NodeType.QUOTE:
            self.leaf(f"'{expr.sval}'")
        elif kind in (NodeType.VAR, NodeType.NUM):
            self.leaf(expr.sval)
        elif kind is NodeType.AND:
            self.binary(expr, " & ")
        elif kind is NodeType.OR:
            self.binary(expr, " | ")
        elif kind is NodeType.COMP:
            self.binary(expr, f" {expr.sval} ")
        elif kind is NodeType.NOT:
            if self.room():
                self.add("!")
                self.show(expr.arg1)
        elif kind is NodeType.ELE:
            if self.room():
                self.add("(")
                self.show(expr.arg1)
                self.add(" in {")
            for ele in expr.arg2 or ():
                if self.room():
                    self.show(ele)
                    if ele.next is not None:
                        self.add(", ")
            if self.room():
                self.add("})")
        elif kind is NodeType.CASE:
            if self.room():
                self.add("[ ")
            for ele in expr:
                if not self.room():
                    break
                self.show(ele.arg1)
                self.add(" : ")
                self.show(ele.arg2)
            if self.room():
                self.add(" ]")

    def text(self) -> str:
        result = "".join(self.parts)
        return result + "..." if self.length >= MAX_ERROR_LENGTH else result


class HclGenerator:
    """Checks HCL expressions and writes the C functions they define."""

    def __init__(self, out: TextIO | None = None, simname: str = ""):
        self._out = out if out is not None else sys.stdout
        self._symbols: list[tuple[Node, Node]] = []
        if simname:
            self._out.write(f'char simname[] = "Y86-64 Processor: {simname}";\n')
        else:
            self._out.write('char simname[] = "Y86-64 Processor";\n')
        self._gen = OutputGenerator(self._out, MAX_COLUMN, FIRST_INDENT, OTHER_INDENTS)

    def _add_symbol(self, name: Node, val: Node) -> None:
        if len(self._symbols) >= SYMBOL_LIMIT:
            raise HclError("Symbol table limit exceeded")
        self._symbols.append((name, val))

    def _find_symbol(self, name: str) -> Node:
        for sym, val in self._symbols:
            if sym.sval == name:
                sym.ref += 1
                return val
        raise HclError(f"Symbol {name} not found")

    def _check_arg(self, arg: Node | None, wantbool: bool) -> None:
        if arg is None:
            raise HclError("Null node encountered")
        if arg.type is NodeType.VAR:
            qval = self._find_symbol(arg.sval)
            if wantbool != qval.isbool:
                kind = "Boolean" if wantbool else "integer"
                raise HclError(f"Variable '{arg.sval}' not {kind}")
            return
        if arg.type is NodeType.NUM:
            if wantbool and arg.sval not in ("0", "1"):
                raise HclError(f"Value '{arg.sval}' not Boolean")
            return
        if wantbool and not arg.isbool:
            raise HclError(f"Non Boolean argument '{self.show_expr(arg)}'")
        if not wantbool and arg.isbool:
            raise HclError(f"Non integer argument '{self.show_expr(arg)}'")

    def make_not(self, arg: Node) -> Node:
        self._check_arg(arg, True)
        return Node(NodeType.NOT, True, "!", arg)

    def make_and(self, arg1: Node, arg2: Node) -> Node:
        self._check_arg(arg1, True)
        self._check_arg(arg2, True)
        return Node(NodeType.AND, True, "&", arg1, arg2)

    def make_or(self, arg1: Node, arg2: Node) -> Node:
        self._check_arg(arg1, True)
        self._check_arg(arg2, True)
        return Node(NodeType.OR, True, "|", arg1, arg2)

    def make_comp(self, op: Node, arg1: Node, arg2: Node) -> Node:
        self._check_arg(arg1, False)
        self._check_arg(arg2, False)
        return Node(NodeType.COMP, True, op.sval, arg1, arg2)

    def make_ele(self, arg1: Node, arg2: Node) -> Node:
        self._check_arg(arg1, False)
        for ele in arg1:
            self._check_arg(ele, False)
        return Node(NodeType.ELE, True, "in", arg1, arg2)

    def make_case(self, arg1: Node, arg2: Node) -> Node:
        self._check_arg(arg1, True)
        self._check_arg(arg2, False)
        return Node(NodeType.CASE, False, ":", arg1, arg2)

    def insert_code(self, qstring: Node | None) -> None:
        """Copy a quoted block of code straight to the output."""
        if qstring is None:
            raise HclError("Null node")
        self._out.write(qstring.sval + "\n")

    def add_arg(self, var: Node | None, qstring: Node | None, isbool: bool) -> None:
        """Declare a signal name and the C expression that gives its value."""
        if var is None or qstring is None:
            raise HclError("Null node")
        self._add_symbol(var, qstring)
        if isbool:
            var.isbool = True
            qstring.isbool = True

    def show_expr(self, expr: Node) -> str:
        """Render an expression for diagnostics, cut short after 80 characters."""
        printer = _ExprPrinter()
        printer.show(expr)
        return printer.text()

    def _gen_expr(self, expr: Node) -> None:
        gen = self._gen
        kind = expr.type
        if kind is NodeType.QUOTE:
            raise HclError(f"Unexpected quoted string {expr.sval}")
        if kind is NodeType.VAR:
            qstring = self._find_symbol(expr.sval)
            gen.print(f"({qstring.sval})")
        elif kind is NodeType.NUM:
            self._out.write(expr.sval)
        elif kind in (NodeType.AND, NodeType.OR, NodeType.COMP):
            op = {NodeType.AND: "&", NodeType.OR: "|"}.get(kind, expr.sval)
            gen.print("(")
            gen.upindent()
            self._gen_expr(expr.arg1)
            gen.print(f" {op} ")
            self._gen_expr(expr.arg2)
            gen.print(")")
            gen.downindent()
        elif kind is NodeType.NOT:
            gen.print("!")
            self._gen_expr(expr.arg1)
        elif kind is NodeType.ELE:
            gen.print("(")
            gen.upindent()
            for ele in expr.arg2 or ():
                self._gen_expr(expr.arg1)
                gen.print(" == ")
                self._gen_expr(ele)
                if ele.next is not None:
                    gen.print(" || ")
            gen.print(")")
            gen.downindent()
        elif kind is NodeType.CASE:
            gen.print("(")
            gen.upindent()
            done = False
            for ele in expr:
                if ele.arg1.type is NodeType.NUM and _atoll(ele.arg1.sval) == 1:
                    self._gen_expr(ele.arg2)
                    done = True
                    break
                self._gen_expr(ele.arg1)
                gen.print(" ? ")
                self._gen_expr(ele.arg2)
                gen.print(" : ")
            if not done:
                gen.print("0")
            gen.print(")")
            gen.downindent()
        else:
            raise HclError("Unknown node type")

    def gen_funct(self, var: Node | None, expr: Node | None, isbool: bool) -> None:
        """Write the C function computing the value of var."""
        if var is None or expr is None:
            raise HclError("Null node")
        self._check_arg(expr, isbool)
        gen = self._gen
        gen.print(f"long long gen_{var.sval}()")
        gen.terminate()
        gen.print("{")
        gen.terminate()
        gen.print("    return ")
        self._gen_expr(expr)
        gen.print(";")
        gen.terminate()
        gen.print("}")
        gen.terminate()
        gen.terminate()

    def finish(self, check_ref: bool) -> list[str]:
        """Warn about declared signals never used; return their names."""
        if not check_ref:
            return []
        unused = [sym.sval for sym, _ in self._symbols if not sym.ref]
        for name in unused:
            print(f"Warning, argument '{name}' not referenced", file=sys.stderr)
        return unused