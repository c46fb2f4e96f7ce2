# y86tools

Tools for the Y86-64 teaching architecture:

- **yas**: a two-pass assembler that turns `.ys` assembly source into `.yo`
  object listings, or into Verilog memory initialisation with `-V`.
- **yis**: an instruction-set simulator that runs a `.yo` listing and
  reports the step count, final PC, status, condition codes, and every
  register and memory word that changed.
- The library underneath them:
  - `y86tools.isa`: register IDs, the instruction table, ALU operations,
    condition codes and status codes.
  - `y86tools.memory`: `Memory` (byte-addressed, little-endian words,
    `.yo` loading) and `RegisterFile`.
  - `y86tools.state`: `State`, the machine state with a single-step
    executor `State.step`.
  - `y86tools.hcl` and `y86tools.outgen`: HCL expression nodes, type
    checking, and generation of C functions through a column-limited
    writer.
  - `y86tools.examples`: reference versions of the sample routines
    `sum_list`, `rsum_list`, `copy_block` and `ncopy`.

## Installing

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Command line

Assemble a program. This writes `prog.yo` next to `prog.ys`:

```
yas prog.ys
```

Print Verilog memory initialisation to standard output instead. `-V8`
selects 8-way banked memory; any other blocking factor is refused:

```
yas -V prog.ys
yas -V8 prog.ys
```

Errors are printed to standard error and `yas` exits with status 1.

Run an object listing. The optional second argument sets the step limit,
10000 by default:

```
yis prog.yo
yis prog.yo 500
```

If the listing is malformed or holds no code, `yis` prints `Exiting` and
exits with status 1.

## Library use

Assemble and run in memory:

```python
import io
from y86tools.yas import assemble
from y86tools.yis import run

source = """\
    irmovq $5, %rax
    irmovq $7, %rbx
    addq %rax, %rbx
    halt
"""
listing = assemble(source)          # text of the .yo listing
out = io.StringIO()
state, steps, status = run(listing.splitlines(keepends=True), 10000, out)
print(out.getvalue())
```

`assemble` raises `y86tools.yas.AssemblyError`; its `messages` hold the
diagnostics. `run` raises `y86tools.memory.MemoryLoadError` when the
listing cannot be loaded.

Step the machine yourself:

```python
from y86tools.state import State
from y86tools.isa import Status, stat_name

state = State(1 << 13)
state.m.load(listing.splitlines(keepends=True), True)
status = Status.AOK
while status == Status.AOK:
    status = state.step(None)
print(stat_name(status), hex(state.pc))
```

`State.copy` and `State.diff` let you snapshot a state and list what
changed since.

Generate a C function from an HCL expression built in Python:

```python
import io
from y86tools.hcl import HclGenerator, concat, make_num, make_quote, make_var

out = io.StringIO()
gen = HclGenerator(out, "demo")
gen.add_arg(make_var("icode"), make_quote("'icode'"), False)
expr = gen.make_ele(make_var("icode"), concat(make_num("2"), make_num("3")))
gen.gen_funct(make_var("need_regids"), expr, True)
print(out.getvalue())
```

Type errors and unknown signals raise `y86tools.hcl.HclError`.

## What is not included

- There is no HCL parser and no command that reads an HCL file: HCL
  expressions are built by calling `make_var`, `make_num`, `make_quote`,
  `concat` and the `HclGenerator.make_*` methods.
- There is no sequential or pipelined processor simulator and no graphical
  interface; simulation is at the instruction level only (`State.step`,
  `yis`).