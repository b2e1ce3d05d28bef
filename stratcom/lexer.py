"""Operand lexing: turns an instruction's residual text into typed operands."""

from __future__ import annotations

import logging

from .constants import (
    LITERALS,
    LITERAL_CONNECTORS,
    OPERAND_CONNECTORS,
    REGISTER_NAMES,
)
from .ir import Operand, wrap_i32

logger = logging.getLogger(__name__)


def _strip_connector(text: str, connectors: tuple[str, ...]) -> str:
    """Remove at most one leading connector from *text*."""
    for connector in connectors:
        if text.startswith(connector):
            return text[len(connector) :]
    return text


def _match_prefix(text: str, names) -> str:
    """Return the name in *names* that *text* starts with, or ``""``."""
    return next((name for name in names if text.startswith(name)), "")


def parse_literal(text: str) -> tuple[int, str]:
    """Decode a run of digit names at the start of *text*.

    Digits are read most-significant first, so ``"finance and legal"``
    decodes to 42. Decoding stops at the first token that is not a digit
    name.

    Returns:
        Tuple of (decoded value wrapped to i32, remaining text).
    """
    digits: list[int] = []
    remaining = text
    while remaining:
        name = _match_prefix(remaining, LITERALS)
        if not name:
            break
        digits.append(LITERALS[name])
        remaining = _strip_connector(remaining[len(name) :], LITERAL_CONNECTORS)

    combined = 0
    for digit in digits:
        combined = combined * 10 + digit
    return wrap_i32(combined), remaining


def parse_operands(text: str) -> list[Operand]:
    """Split *text* into register, literal and label operands.

    Registers and literals are matched greedily by prefix; anything else
    makes the entire remaining text a single label operand.
    """
    operands: list[Operand] = []
    remaining = text
    while remaining:
        logger.debug("remaining operands: %s", remaining)
        register = _match_prefix(remaining, REGISTER_NAMES)
        if register:
            operands.append(Operand.register(register))
            remaining = _strip_connector(
                remaining[len(register) :], OPERAND_CONNECTORS
            )
            continue

        if _match_prefix(remaining, LITERALS):
            value, remaining = parse_literal(remaining)
            operands.append(Operand.literal(value))
            remaining = _strip_connector(remaining, OPERAND_CONNECTORS)
            continue

        operands.append(Operand.label(remaining))
        remaining = ""

    logger.debug("parsed operands: %s", [str(op) for op in operands])
    return operands
