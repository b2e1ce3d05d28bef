"""Shared helpers for the whole-program test suite."""

import io
import logging
import random

from stratcom.constants import LITERALS
from stratcom.native import NativeRuntime
from stratcom.program import Program
from stratcom.run import run_program
from stratcom.run_types import BackendKind, RunConfig

logger = logging.getLogger(__name__)

_DIGIT_NAMES = {value: name for name, value in LITERALS.items()}


def literal_for(value: int) -> str:
    """Spell a non-negative integer as a digit-name literal."""
    return ", ".join(_DIGIT_NAMES[int(digit)] for digit in str(value))


def print_string_source(text: str, register: str = "assets") -> str:
    """Build a program that prints *text* one character at a time."""
    lines = []
    for char in text:
        lines.append(f"align {register} to {literal_for(ord(char))}")
        lines.append(f"deliver {register}")
    return "\n".join(lines)


def execute(source: str, backend: BackendKind, stdin: bytes = b"", seed: int = 0) -> str:
    """Run *source* on *backend* with in-memory streams; returns the output."""
    output = io.StringIO()
    runtime = NativeRuntime(
        stdout=output, stdin=io.BytesIO(stdin), rng=random.Random(seed)
    )
    run_program(Program.from_source("program", source), RunConfig(backend=backend), runtime)
    return output.getvalue()


def execute_both(source: str, stdin: bytes = b"") -> str:
    """Run *source* on both backends, assert they agree and return the output."""
    interpreted = execute(source, BackendKind.INTERPRETER, stdin)
    compiled = execute(source, BackendKind.COMPILER, stdin)
    logger.info("interpreted=%r compiled=%r", interpreted, compiled)
    assert interpreted == compiled
    return interpreted
