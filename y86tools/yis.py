"""Instruction set simulator: run a .yo object file and report the changes."""

from __future__ import annotations

import re
import sys
from typing import Iterable, TextIO

from y86tools.isa import MEM_SIZE, WORD_MASK, Status, cc_name, stat_name
from y86tools.memory import MemoryLoadError
from y86tools.state import State, _format_mem_changes, _format_reg_changes

DEFAULT_MAX_STEPS = 10000


def run(
    code_lines: Iterable[str], max_steps: int = DEFAULT_MAX_STEPS, out: TextIO | None = None
) -> tuple[State, int, Status]:
    """Load and execute a program; return the final state, step count and status.

    A report of the run is written to out (standard output by default).
    Raises MemoryLoadError when no code could be loaded.
    """
    if out is None:
        out = sys.stdout
    state = State(MEM_SIZE)
    saved_regs = state.r.copy()
    if not state.m.load(code_lines, True):
        raise MemoryLoadError("No code loaded")
    saved_mem = state.m.copy()

    status = Status.AOK
    steps = 0
    while steps < max_steps and status == Status.AOK:
        status = state.step(out)
        steps += 1

    out.write(
        f"Stopped in {steps} steps at PC = 0x{state.pc & WORD_MASK:x}.  "
        f"Status '{stat_name(status)}', CC {cc_name(state.cc)}\n"
    )
    out.write("Changes to registers:\n")
    for line in _format_reg_changes(saved_regs, state.r):
        out.write(line + "\n")
    out.write("\nChanges to memory:\n")
    for line in _format_mem_changes(saved_mem, state.m):
        out.write(line + "\n")
    return state, steps, status


def _atoi(text: str) -> int:
    match = re.match(r"\s*([+-]?\d+)", text)
    return int(match.group(1)) if match else 0


def main(argv: list[str] | None = None) -> int:
    """Command-line entry point: yis code_file [max_steps]."""
    if argv is None:
        argv = sys.argv[1:]
    if not 1 <= len(argv) <= 2:
        print("Usage: yis code_file [max_steps]")
        return 0
    try:
        code_file = open(argv[0], encoding="utf-8", errors="replace")
    except OSError:
        print(f"Can't open code file '{argv[0]}'", file=sys.stderr)
        return 1
    max_steps = _atoi(argv[1]) if len(argv) > 1 else DEFAULT_MAX_STEPS
    with code_file:
        try:
            run(code_file, max_steps, sys.stdout)
        except MemoryLoadError:
            print("Exiting")
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())