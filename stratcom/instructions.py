"""Instruction table, dispatcher and the per-opcode handlers.

Handlers are written once against :class:`ExecutionBackend`; every operand
is validated before the backend is touched so a rejected instruction never
mutates state.
"""

from __future__ import annotations

import logging
import re
from typing import Callable

from .backend import ExecutionBackend
from .constants import LABEL_PATTERN
from .errors import InvalidOperandError, UnknownInstructionError
from .ir import Opcode, Operand, OperandKind, Transformation
from .lexer import parse_operands

logger = logging.getLogger(__name__)

# First match wins.
INSTRUCTION_TABLE: tuple[tuple[re.Pattern, Opcode], ...] = (
    (re.compile(LABEL_PATTERN), Opcode.LABEL),
    (re.compile(r"^(innovate|value-add) "), Opcode.INCREMENT),
    (re.compile(r"^(streamline|optimize) "), Opcode.DECREMENT),
    (re.compile(r"^(revamp|overhaul) "), Opcode.NEGATE),
    (re.compile(r"^(amplify|incentivize) "), Opcode.DOUBLE),
    (re.compile(r"^backburner "), Opcode.HALVE),
    (re.compile(r"^paradigm shift "), Opcode.RANDOMIZE),
    (re.compile(r"^align "), Opcode.ASSIGN),
    (re.compile(r"^(synergize|integrate) "), Opcode.ADD),
    (re.compile(r"^differentiate "), Opcode.SUBTRACT),
    (re.compile(r"^crowdsource "), Opcode.READ),
    (re.compile(r"^(deliver|produce) "), Opcode.PRINT),
    (re.compile(r"^(circle back to|revisit) "), Opcode.JUMP),
    (re.compile(r"^pivot "), Opcode.JUMP_IF_ZERO),
    (re.compile(r"^restructure "), Opcode.JUMP_IF_NEGATIVE),
)

_DESCRIPTIONS: dict[Opcode, str] = {
    Opcode.INCREMENT: "increment",
    Opcode.DECREMENT: "decrement",
    Opcode.NEGATE: "negate",
    Opcode.DOUBLE: "double",
    Opcode.HALVE: "halve",
    Opcode.RANDOMIZE: "randomize",
    Opcode.ASSIGN: "assignment",
    Opcode.ADD: "add",
    Opcode.SUBTRACT: "subtract",
    Opcode.READ: "read",
    Opcode.PRINT: "print",
    Opcode.JUMP_IF_ZERO: "jump if zero",
    Opcode.JUMP_IF_NEGATIVE: "jump if negative",
}

# Fixed transformations of the single-register instructions.
_UNARY_TRANSFORMATIONS: dict[Opcode, Transformation] = {
    Opcode.INCREMENT: Transformation.add(Operand.literal(1)),
    Opcode.DECREMENT: Transformation.subtract(Operand.literal(1)),
    Opcode.NEGATE: Transformation.multiply(Operand.literal(-1)),
    Opcode.DOUBLE: Transformation.multiply(Operand.literal(2)),
    Opcode.HALVE: Transformation.divide(Operand.literal(2)),
}


def match_instruction(line: str) -> tuple[Opcode, str] | None:
    """Return the opcode for *line* and its operand residual, or ``None``."""
    for pattern, opcode in INSTRUCTION_TABLE:
        match = pattern.match(line)
        if match:
            return opcode, line[match.end() :]
    return None


# ── Operand validation ───────────────────────────────────────────


def _expect_count(operands: list[Operand], count: int, opcode: Opcode, line: int):
    if len(operands) != count:
        raise InvalidOperandError(
            f"wrong number of operands for {_DESCRIPTIONS[opcode]}: "
            f"expected {count}, got {len(operands)}",
            line,
        )


def _expect_kind(
    operands: list[Operand],
    position: int,
    kinds: tuple[OperandKind, ...],
    opcode: Opcode,
    line: int,
) -> Operand:
    operand = operands[position]
    if operand.kind not in kinds:
        expected = " or ".join(f"a {k.value}" for k in kinds)
        raise InvalidOperandError(
            f"operand {position + 1} for {_DESCRIPTIONS[opcode]} must be {expected}",
            line,
        )
    return operand


def _single_register(residual: str, opcode: Opcode, line: int) -> str:
    operands = parse_operands(residual)
    _expect_count(operands, 1, opcode, line)
    return _expect_kind(operands, 0, (OperandKind.REGISTER,), opcode, line).name


# ── Handlers ─────────────────────────────────────────────────────


def _label(residual: str, line: int, backend: ExecutionBackend) -> None:
    backend.enter_label(line, residual)


def _unary(opcode: Opcode) -> Callable[[str, int, ExecutionBackend], None]:
    def handler(residual: str, line: int, backend: ExecutionBackend) -> None:
        register = _single_register(residual, opcode, line)
        backend.require_register(line, register)
        backend.modify_register(line, register, _UNARY_TRANSFORMATIONS[opcode])

    return handler


def _randomize(residual: str, line: int, backend: ExecutionBackend) -> None:
    register = _single_register(residual, Opcode.RANDOMIZE, line)
    backend.require_register(line, register)
    backend.randomize_register(line, register)


def _read(residual: str, line: int, backend: ExecutionBackend) -> None:
    register = _single_register(residual, Opcode.READ, line)
    backend.require_register(line, register)
    backend.read_register(line, register)


def _print(residual: str, line: int, backend: ExecutionBackend) -> None:
    register = _single_register(residual, Opcode.PRINT, line)
    backend.require_register(line, register)
    backend.print_register(line, register)


def _assign(residual: str, line: int, backend: ExecutionBackend) -> None:
    # Either "register to register|literal" or "literal to register".
    operands = parse_operands(residual)
    _expect_count(operands, 2, Opcode.ASSIGN, line)
    first = _expect_kind(
        operands,
        0,
        (OperandKind.REGISTER, OperandKind.LITERAL),
        Opcode.ASSIGN,
        line,
    )
    if first.is_register:
        target = first
        source = _expect_kind(
            operands,
            1,
            (OperandKind.REGISTER, OperandKind.LITERAL),
            Opcode.ASSIGN,
            line,
        )
    else:
        source = first
        target = _expect_kind(
            operands, 1, (OperandKind.REGISTER,), Opcode.ASSIGN, line
        )

    backend.require_register(line, target.name)
    if source.is_register:
        backend.require_register(line, source.name)
    backend.modify_register(line, target.name, Transformation.set(source))


def _binary(opcode: Opcode) -> Callable[[str, int, ExecutionBackend], None]:
    build = (
        Transformation.add if opcode == Opcode.ADD else Transformation.subtract
    )

    def handler(residual: str, line: int, backend: ExecutionBackend) -> None:
        operands = parse_operands(residual)
        _expect_count(operands, 2, opcode, line)
        target = _expect_kind(operands, 0, (OperandKind.REGISTER,), opcode, line)
        source = _expect_kind(
            operands, 1, (OperandKind.REGISTER, OperandKind.LITERAL), opcode, line
        )
        backend.require_register(line, target.name)
        if source.is_register:
            backend.require_register(line, source.name)
        backend.modify_register(line, target.name, build(source))

    return handler


def _jump(residual: str, line: int, backend: ExecutionBackend) -> None:
    backend.require_label(line, residual)
    backend.jump(line, residual)


def _conditional_jump(opcode: Opcode) -> Callable[[str, int, ExecutionBackend], None]:
    def handler(residual: str, line: int, backend: ExecutionBackend) -> None:
        operands = parse_operands(residual)
        _expect_count(operands, 2, opcode, line)
        register = _expect_kind(operands, 0, (OperandKind.REGISTER,), opcode, line)
        label = _expect_kind(operands, 1, (OperandKind.LABEL,), opcode, line)
        backend.require_register(line, register.name)
        backend.require_label(line, label.name)
        if opcode == Opcode.JUMP_IF_ZERO:
            backend.jump_if_zero(line, register.name, label.name)
        else:
            backend.jump_if_negative(line, register.name, label.name)

    return handler


HANDLERS: dict[Opcode, Callable[[str, int, ExecutionBackend], None]] = {
    Opcode.LABEL: _label,
    Opcode.INCREMENT: _unary(Opcode.INCREMENT),
    Opcode.DECREMENT: _unary(Opcode.DECREMENT),
    Opcode.NEGATE: _unary(Opcode.NEGATE),
    Opcode.DOUBLE: _unary(Opcode.DOUBLE),
    Opcode.HALVE: _unary(Opcode.HALVE),
    Opcode.RANDOMIZE: _randomize,
    Opcode.ASSIGN: _assign,
    Opcode.ADD: _binary(Opcode.ADD),
    Opcode.SUBTRACT: _binary(Opcode.SUBTRACT),
    Opcode.READ: _read,
    Opcode.PRINT: _print,
    Opcode.JUMP: _jump,
    Opcode.JUMP_IF_ZERO: _conditional_jump(Opcode.JUMP_IF_ZERO),
    Opcode.JUMP_IF_NEGATIVE: _conditional_jump(Opcode.JUMP_IF_NEGATIVE),
}


def dispatch(line: int, text: str, backend: ExecutionBackend) -> Opcode:
    """Execute (or lower) one source line against *backend*.

    Returns:
        The opcode the line matched.

    Raises:
        UnknownInstructionError: if no instruction prefix matches.
    """
    matched = match_instruction(text)
    if matched is None:
        raise UnknownInstructionError(text, line)
    opcode, residual = matched
    logger.debug("line %d: %s operands=%r", line + 1, opcode.value, residual)
    HANDLERS[opcode](residual, line, backend)
    return opcode
