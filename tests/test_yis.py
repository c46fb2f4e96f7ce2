import io

import pytest

from y86tools.isa import Register, Status
from y86tools.memory import MemoryLoadError
from y86tools.yis import main, run

HALT_PROGRAM = [
    "0x000: 30f00a00000000000000 | irmovq $10, %rax\n",
    "0x00a: 00                   | halt\n",
]

LOOP_PROGRAM = ["0x000: 700000000000000000 | loop: jmp loop\n"]

STORE_PROGRAM = [
    "0x000: 30f00a00000000000000 | irmovq $10, %rax\n",
    "0x00a: 400f8000000000000000 | rmmovq %rax, 0x80\n",
    "0x014: 00                   | halt\n",
]


def test_run_reports_halt_and_register_change():
    out = io.StringIO()
    state, steps, status = run(HALT_PROGRAM, 10000, out)
    assert status == Status.HLT
    assert steps == 2
    assert state.r.get(Register.RAX) == 10
    text = out.getvalue()
    assert "Stopped in 2 steps at PC = 0xa.  Status 'HLT', CC Z=1 S=0 O=0" in text
    assert "%rax:\t0x0000000000000000\t0x000000000000000a" in text


def test_run_stops_at_step_limit():
    out = io.StringIO()
    _, steps, status = run(LOOP_PROGRAM, 5, out)
    assert steps == 5
    assert status == Status.AOK
    assert "Stopped in 5 steps" in out.getvalue()


def test_run_reports_memory_changes():
    out = io.StringIO()
    state, _, status = run(STORE_PROGRAM, 100, out)
    assert status == Status.HLT
    assert state.m.get_word(0x80) == 10
    text = out.getvalue()
    memory_part = text.split("Changes to memory:")[1]
    assert "0x0080:\t0x0000000000000000\t0x000000000000000a" in memory_part


def test_run_without_code_raises():
    with pytest.raises(MemoryLoadError):
        run(["# nothing here\n"], 10, io.StringIO())


def test_main_runs_file(tmp_path, capsys):
    path = tmp_path / "prog.yo"
    path.write_text("".join(HALT_PROGRAM))
    assert main([str(path)]) == 0
    assert "Status 'HLT'" in capsys.readouterr().out


def test_main_honours_step_argument(tmp_path, capsys):
    path = tmp_path / "loop.yo"
    path.write_text("".join(LOOP_PROGRAM))
    assert main([str(path), "3"]) == 0
    assert "Stopped in 3 steps" in capsys.readouterr().out


def test_main_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / "missing.yo")]) == 1
    assert "Can't open code file" in capsys.readouterr().err


def test_main_without_arguments_prints_usage(capsys):
    assert main([]) == 0
    assert "Usage:" in capsys.readouterr().out


def test_main_with_empty_file_exits(tmp_path, capsys):
    path = tmp_path / "empty.yo"
    path.write_text("")
    assert main([str(path)]) == 1
    assert "Exiting" in capsys.readouterr().out