"""Interpreter backend — walks source lines against live register storage."""

from __future__ import annotations

import logging
from typing import Callable

from .backend import ExecutionBackend
from .constants import REGISTER_NAMES
from .errors import InvalidCharacterError
from .instructions import dispatch
from .ir import Operand, Transformation, TransformKind, wrap_i32
from .native import NativeRuntime
from .program import Program
from .trace_types import ExecutionTrace, TraceStep

logger = logging.getLogger(__name__)


def divide_toward_zero(dividend: int, divisor: int) -> int:
    quotient = abs(dividend) // abs(divisor)
    return -quotient if (dividend < 0) != (divisor < 0) else quotient


class Operators:
    """Register transformation semantics with native i32 wraparound."""

    TRANSFORM_TABLE: dict[TransformKind, Callable[[int, int], int]] = {
        TransformKind.ADD: lambda a, b: a + b,
        TransformKind.SUBTRACT: lambda a, b: a - b,
        TransformKind.MULTIPLY: lambda a, b: a * b,
        TransformKind.DIVIDE: divide_toward_zero,
        TransformKind.SET: lambda a, b: b,
    }

    @classmethod
    def apply(cls, kind: TransformKind, current: int, operand: int) -> int:
        return wrap_i32(cls.TRANSFORM_TABLE[kind](current, operand))


class InterpreterBackend(ExecutionBackend):
    """Executes each line as it is dispatched.

    ``current_line`` is the only control state. Jumps set it to the label's
    defining line and the step loop then advances past it.
    """

    def __init__(self, program: Program, runtime: NativeRuntime, trace: bool = False):
        super().__init__(program, runtime)
        self.registers: dict[str, int] = {name: 0 for name in REGISTER_NAMES}
        self.current_line = 0
        self.steps = 0
        self.trace: ExecutionTrace | None = ExecutionTrace() if trace else None

    def __repr__(self) -> str:
        return (
            f"InterpreterBackend(program={self.program.name!r}, "
            f"current_line={self.current_line}, registers={self.registers})"
        )

    def get_register_value(self, name: str) -> int:
        return self.registers[name]

    def set_register_value(self, name: str, value: int) -> None:
        self.registers[name] = wrap_i32(value)

    def _operand_value(self, operand: Operand) -> int:
        if operand.is_register:
            return self.get_register_value(operand.name)
        return operand.value

    # ── Capabilities ─────────────────────────────────────────────

    def modify_register(
        self, line: int, name: str, transformation: Transformation
    ) -> None:
        operand = self._operand_value(transformation.operand)
        self.registers[name] = Operators.apply(
            transformation.kind, self.get_register_value(name), operand
        )

    def print_register(self, line: int, name: str) -> None:
        try:
            self.runtime.print_value(self.get_register_value(name))
        except InvalidCharacterError as err:
            err.line = line
            raise

    def read_register(self, line: int, name: str) -> None:
        self.set_register_value(name, self.runtime.read_byte())

    def randomize_register(self, line: int, name: str) -> None:
        self.set_register_value(name, self.runtime.random_digit())

    def enter_label(self, line: int, label: str) -> None:
        pass

    def jump(self, line: int, label: str) -> None:
        self.current_line = self.program.label_line(label, line)

    def jump_if_zero(self, line: int, register: str, label: str) -> None:
        if self.get_register_value(register) == 0:
            self.jump(line, label)

    def jump_if_negative(self, line: int, register: str, label: str) -> None:
        if self.get_register_value(register) < 0:
            self.jump(line, label)

    # ── Step loop ────────────────────────────────────────────────

    def execute_current_line(self) -> None:
        """Execute ``lines[current_line]`` and advance to the next line to run."""
        line_index = self.current_line
        text = self.program.lines[line_index]
        logger.debug("executing line %d: %s", line_index + 1, text)
        logger.debug("registers before: %s", self.registers)
        opcode = dispatch(line_index, text, self)
        logger.debug("registers after: %s", self.registers)
        if self.trace is not None:
            self.trace.steps.append(
                TraceStep(
                    step_index=self.steps,
                    line_index=line_index,
                    line=text,
                    opcode=opcode,
                    registers=dict(self.registers),
                )
            )
        self.steps += 1
        self.current_line += 1

    def run(self) -> int:
        logger.debug("created context: %r", self)
        while self.current_line < self.program.line_count:
            self.execute_current_line()
        return self.steps
