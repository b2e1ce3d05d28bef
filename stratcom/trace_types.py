"""Trace data types for step-by-step execution replay."""

from __future__ import annotations

from dataclasses import dataclass, field

from .ir import Opcode


@dataclass(frozen=True)
class TraceStep:
    """A single interpreted line.

    Captures the line executed and a copy of every register's value after
    the line's effect was applied.
    """

    step_index: int
    line_index: int
    line: str
    opcode: Opcode
    registers: dict[str, int]


@dataclass(frozen=True)
class ExecutionTrace:
    """Complete trace of an interpreter run."""

    steps: list[TraceStep] = field(default_factory=list)

    @property
    def executed_lines(self) -> list[int]:
        return [step.line_index for step in self.steps]
