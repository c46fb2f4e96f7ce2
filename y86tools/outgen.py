"""Output generator that keeps generated lines within a column limit."""

from __future__ import annotations

import sys
from typing import TextIO


class OutputGenerator:
    """Writes tokens, starting a new indented line when one would overflow."""

    def __init__(
        self,
        out: TextIO | None = None,
        max_column: int = 80,
        first_indent: int = 4,
        other_indents: int = 2,
    ):
        self.out = out if out is not None else sys.stdout
        self.max_column = max_column
        self.first_indent = first_indent
        self.other_indents = other_indents
        self.cur_pos = 0
        self.indent = first_indent

    def print(self, text: str) -> None:
        """Write one token, wrapping first if it would pass the column limit."""
        if len(text) + self.cur_pos > self.max_column:
            self.out.write("\n" + " " * max(self.indent, 0))
            self.cur_pos = self.indent
        self.out.write(text)
        self.cur_pos += len(text)

    def terminate(self) -> None:
        """End the current statement and reset the indentation."""
        self.out.write("\n")
        self.cur_pos = 0
        self.indent = self.first_indent

    def upindent(self) -> None:
        """Increase the indentation used for wrapped lines."""
        self.indent += self.other_indents

    def downindent(self) -> None:
        """Decrease the indentation used for wrapped lines."""
        self.indent -= self.other_indents