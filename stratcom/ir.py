"""Instruction, operand and transformation data types."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel

from .constants import REGISTER_BITS, REGISTER_MIN


class Opcode(str, Enum):
    LABEL = "LABEL"
    # Register transformations
    INCREMENT = "INCREMENT"
    DECREMENT = "DECREMENT"
    NEGATE = "NEGATE"
    DOUBLE = "DOUBLE"
    HALVE = "HALVE"
    ASSIGN = "ASSIGN"
    ADD = "ADD"
    SUBTRACT = "SUBTRACT"
    # Native support calls
    RANDOMIZE = "RANDOMIZE"
    READ = "READ"
    PRINT = "PRINT"
    # Control flow
    JUMP = "JUMP"
    JUMP_IF_ZERO = "JUMP_IF_ZERO"
    JUMP_IF_NEGATIVE = "JUMP_IF_NEGATIVE"


class OperandKind(str, Enum):
    REGISTER = "register"
    LITERAL = "literal"
    LABEL = "label"


class Operand(BaseModel):
    kind: OperandKind
    name: str = ""  # register or label name
    value: int = 0  # literal value

    @classmethod
    def register(cls, name: str) -> Operand:
        return cls(kind=OperandKind.REGISTER, name=name)

    @classmethod
    def literal(cls, value: int) -> Operand:
        return cls(kind=OperandKind.LITERAL, value=value)

    @classmethod
    def label(cls, name: str) -> Operand:
        return cls(kind=OperandKind.LABEL, name=name)

    @property
    def is_register(self) -> bool:
        return self.kind == OperandKind.REGISTER

    @property
    def is_literal(self) -> bool:
        return self.kind == OperandKind.LITERAL

    @property
    def is_label(self) -> bool:
        return self.kind == OperandKind.LABEL

    def __str__(self) -> str:
        if self.is_literal:
            return str(self.value)
        if self.is_register:
            return f"%{self.name}"
        return f"@{self.name}"


class TransformKind(str, Enum):
    ADD = "ADD"
    SUBTRACT = "SUBTRACT"
    MULTIPLY = "MULTIPLY"
    DIVIDE = "DIVIDE"
    SET = "SET"


class Transformation(BaseModel):
    """An update applied to one register; the operand is a literal or a register."""

    kind: TransformKind
    operand: Operand

    @classmethod
    def add(cls, operand: Operand) -> Transformation:
        return cls(kind=TransformKind.ADD, operand=operand)

    @classmethod
    def subtract(cls, operand: Operand) -> Transformation:
        return cls(kind=TransformKind.SUBTRACT, operand=operand)

    @classmethod
    def multiply(cls, operand: Operand) -> Transformation:
        return cls(kind=TransformKind.MULTIPLY, operand=operand)

    @classmethod
    def divide(cls, operand: Operand) -> Transformation:
        return cls(kind=TransformKind.DIVIDE, operand=operand)

    @classmethod
    def set(cls, operand: Operand) -> Transformation:
        return cls(kind=TransformKind.SET, operand=operand)

    def __str__(self) -> str:
        return f"{self.kind.value.lower()} {self.operand}"


def wrap_i32(value: int) -> int:
    """Wrap an arbitrary Python int to a signed 32-bit value."""
    span = 1 << REGISTER_BITS
    return (value - REGISTER_MIN) % span + REGISTER_MIN
