"""Tests for the programmatic API and the run pipeline."""

import io

import pytest

from stratcom import compile_source, load_program, run, run_program, trace_source
from stratcom.errors import (
    DuplicateLabelError,
    InvalidCharacterError,
    UnknownLabelError,
)
from stratcom.ir import Opcode
from stratcom.native import NativeRuntime
from stratcom.run_types import BackendKind, RunConfig

HELLO = "align assets to sales and legal\ndeliver assets\n"


class TestLoadProgram:
    def test_normalizes(self):
        program = load_program("  ALIGN assets to legal \n\n", name="demo")
        assert program.name == "demo"
        assert program.lines == ("align assets to legal",)

    def test_duplicate_labels(self):
        with pytest.raises(DuplicateLabelError):
            load_program("going forward, x\ngoing forward, x")


class TestRun:
    def test_interpreter_stats(self):
        output = io.StringIO()
        stats = run(HELLO, name="hello", runtime=NativeRuntime(stdout=output))
        assert output.getvalue() == "H"
        assert stats.program_name == "hello"
        assert stats.backend == "interpreter"
        assert stats.source_lines == 2
        assert stats.executed_steps == 2
        assert stats.total_time >= stats.execution_time

    def test_compiler_stats(self):
        output = io.StringIO()
        config = RunConfig(backend=BackendKind.COMPILER)
        stats = run(HELLO, config=config, runtime=NativeRuntime(stdout=output))
        assert output.getvalue() == "H"
        assert stats.block_count == 1
        assert "1 basic blocks" in stats.report()


class TestRunProgramErrors:
    def test_error_carries_partial_trace(self):
        program = load_program("innovate assets\ncircle back to nowhere")
        config = RunConfig(trace=True)
        with pytest.raises(UnknownLabelError) as excinfo:
            run_program(program, config, NativeRuntime(stdout=io.StringIO()))
        assert excinfo.value.trace.executed_lines == [0]

    def test_compiled_error_has_no_trace(self):
        program = load_program("revamp assets\ndeliver assets")
        config = RunConfig(backend=BackendKind.COMPILER)
        with pytest.raises(InvalidCharacterError) as excinfo:
            run_program(program, config, NativeRuntime(stdout=io.StringIO()))
        assert excinfo.value.trace is None


class TestTraceSource:
    def test_records_every_step(self):
        output, trace = trace_source(
            "crowdsource assets\ndeliver assets\ncrowdsource assets\n", stdin=b"z"
        )
        assert output == "z"
        assert trace.executed_lines == [0, 1, 2]
        assert [step.opcode for step in trace.steps] == [
            Opcode.READ,
            Opcode.PRINT,
            Opcode.READ,
        ]
        assert trace.steps[0].registers["assets"] == ord("z")
        assert trace.steps[2].registers["assets"] == -1

    def test_seeded_runs_repeat(self):
        source = "paradigm shift assets\ndeliver assets\n"
        first, _ = trace_source(source, seed=3)
        second, _ = trace_source(source, seed=3)
        assert first == second


class TestCompileSource:
    def test_does_not_execute(self):
        backend = compile_source(HELLO)
        assert backend.compiled
        assert "print_value" in str(backend.module)
