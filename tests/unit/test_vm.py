"""Tests for the interpreter backend."""

import io
import random

import pytest

from stratcom.constants import REGISTER_MAX, REGISTER_MIN
from stratcom.errors import (
    InvalidCharacterError,
    UnknownInstructionError,
    UnknownLabelError,
)
from stratcom.native import NativeRuntime
from stratcom.program import Program
from stratcom.vm import InterpreterBackend, Operators, divide_toward_zero
from stratcom.ir import TransformKind

COUNTDOWN = """\
align customer experience to marketing
align revenue streams to finance and manufacturing
moving forward, loop
align assets to customer experience
synergize assets and revenue streams
deliver assets
streamline customer experience
pivot customer experience to done
circle back to loop
moving forward, done
"""


def _interpreter(source, stdin=b"", seed=0, trace=False):
    output = io.StringIO()
    runtime = NativeRuntime(
        stdout=output, stdin=io.BytesIO(stdin), rng=random.Random(seed)
    )
    backend = InterpreterBackend(
        Program.from_source("test", source), runtime, trace=trace
    )
    return backend, output


def _run(source, stdin=b""):
    backend, output = _interpreter(source, stdin)
    backend.run()
    return backend, output.getvalue()


class TestDivideTowardZero:
    @pytest.mark.parametrize(
        "dividend,divisor,expected",
        [(7, 2, 3), (-7, 2, -3), (7, -2, -3), (-7, -2, 3), (0, 2, 0), (1, 2, 0)],
    )
    def test_truncates(self, dividend, divisor, expected):
        assert divide_toward_zero(dividend, divisor) == expected


class TestOperators:
    def test_add_wraps(self):
        assert Operators.apply(TransformKind.ADD, REGISTER_MAX, 1) == REGISTER_MIN

    def test_subtract_wraps(self):
        assert Operators.apply(TransformKind.SUBTRACT, REGISTER_MIN, 1) == REGISTER_MAX

    def test_negate_minimum_is_minimum(self):
        assert Operators.apply(TransformKind.MULTIPLY, REGISTER_MIN, -1) == REGISTER_MIN

    def test_set_ignores_current(self):
        assert Operators.apply(TransformKind.SET, 99, 4) == 4


class TestRegisters:
    def test_all_registers_start_at_zero(self):
        backend, _ = _interpreter("deliver assets")
        assert set(backend.registers.values()) == {0}
        assert len(backend.registers) == 8

    def test_unary_instructions(self):
        backend, _ = _run(
            "align assets to sales\n"
            "innovate assets\n"
            "amplify assets\n"
            "optimize assets\n"
            "overhaul assets\n"
        )
        assert backend.registers["assets"] == -15

    def test_halve_truncates_toward_zero(self):
        backend, _ = _run("align assets to sales\nrevamp assets\nbackburner assets")
        assert backend.registers["assets"] == -3

    def test_double_wraps_after_32_doublings(self):
        source = "align assets to engineering\n" + "amplify assets\n" * 31
        backend, _ = _run(source)
        assert backend.registers["assets"] == REGISTER_MIN
        backend, _ = _run(source + "amplify assets\n")
        assert backend.registers["assets"] == 0

    def test_add_and_subtract_registers(self):
        backend, _ = _run(
            "align assets to finance\n"
            "align revenue streams to legal\n"
            "synergize assets with revenue streams\n"
            "differentiate revenue streams to assets\n"
        )
        assert backend.registers["assets"] == 6
        assert backend.registers["revenue streams"] == -4

    def test_read_consumes_bytes_then_end_of_input(self):
        backend, _ = _run(
            "crowdsource assets\ncrowdsource best practices\ncrowdsource core competencies",
            stdin=b"hi",
        )
        assert backend.registers["assets"] == ord("h")
        assert backend.registers["best practices"] == ord("i")
        assert backend.registers["core competencies"] == -1

    def test_randomize_yields_digit(self):
        backend, _ = _run("paradigm shift assets\n" * 20)
        assert 0 <= backend.registers["assets"] <= 9


class TestControlFlow:
    def test_countdown_prints_digits(self):
        backend, output = _run(COUNTDOWN)
        assert output == "54321"
        assert backend.registers["customer experience"] == 0

    def test_jump_resumes_after_label_line(self):
        backend, _ = _interpreter(COUNTDOWN, trace=True)
        backend.run()
        executed = backend.trace.executed_lines
        # "circle back to loop" is line 8, the label sits on line 2.
        jump_position = executed.index(8)
        assert executed[jump_position + 1] == 3
        assert executed.count(2) == 1

    def test_jump_if_negative_taken(self):
        source = (
            "align assets to engineering\n"
            "revamp assets\n"
            "restructure assets to negative\n"
            "align best practices to manufacturing and hr\n"
            "deliver best practices\n"
            "moving forward, negative\n"
            "align best practices to sales and manufacturing\n"
            "deliver best practices\n"
        )
        _, output = _run(source)
        assert output == "N"

    def test_jump_if_zero_not_taken_on_negative(self):
        source = (
            "align assets to engineering\n"
            "revamp assets\n"
            "pivot assets to skip\n"
            "align best practices to manufacturing and hr\n"
            "deliver best practices\n"
            "moving forward, skip\n"
        )
        _, output = _run(source)
        assert output == "P"

    def test_echo_until_end_of_input(self):
        source = (
            "going forward, next\n"
            "crowdsource assets\n"
            "restructure assets to end\n"
            "deliver assets\n"
            "circle back to next\n"
            "going forward, end\n"
        )
        _, output = _run(source, stdin="héllo".encode("latin-1"))
        assert output == "héllo"

    def test_step_count(self):
        backend, _ = _interpreter("innovate assets\n" * 3)
        assert backend.run() == 3


class TestRuntimeErrors:
    def test_invalid_character_reports_line_after_output(self):
        backend, output = _interpreter(
            "align assets to sales and legal\n"
            "deliver assets\n"
            "revamp assets\n"
            "deliver assets\n"
        )
        with pytest.raises(InvalidCharacterError) as excinfo:
            backend.run()
        assert output.getvalue() == "H"
        assert str(excinfo.value) == (
            "line 4: -72 does not correspond to a valid UTF-8 character"
        )

    def test_unknown_instruction_only_when_reached(self):
        backend, output = _interpreter(
            "align assets to sales and legal\n"
            "deliver assets\n"
            "circle back to end\n"
            "leverage assets\n"
            "going forward, end\n"
        )
        backend.run()
        assert output.getvalue() == "H"

        backend, _ = _interpreter("deliver assets\nleverage assets")
        with pytest.raises(UnknownInstructionError) as excinfo:
            backend.run()
        assert excinfo.value.line == 1

    def test_unknown_label_raised_at_execution(self):
        backend, _ = _interpreter("innovate assets\ncircle back to nowhere")
        with pytest.raises(UnknownLabelError) as excinfo:
            backend.run()
        assert excinfo.value.line == 1
        assert backend.registers["assets"] == 1
