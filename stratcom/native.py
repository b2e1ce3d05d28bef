"""Native support routines called by both backends.

The interpreter calls these methods directly; compiled code reaches them
through ctypes callbacks bound to the ``print_value``, ``read_byte`` and
``random_digit`` symbols.
"""

from __future__ import annotations

import logging
import random
import sys
from typing import BinaryIO, TextIO

from .constants import END_OF_INPUT, MAX_CODE_POINT, SURROGATE_RANGE
from .errors import InvalidCharacterError

logger = logging.getLogger(__name__)


def code_point_to_char(value: int) -> str:
    """Convert *value* to a character, rejecting negatives and non-scalars."""
    if value < 0 or value > MAX_CODE_POINT or value in SURROGATE_RANGE:
        raise InvalidCharacterError(value)
    return chr(value)


class NativeRuntime:
    """Host I/O and randomness with injectable streams."""

    def __init__(
        self,
        stdout: TextIO | None = None,
        stdin: BinaryIO | None = None,
        rng: random.Random | None = None,
    ):
        self.stdout = stdout if stdout is not None else sys.stdout
        self.stdin = stdin if stdin is not None else sys.stdin.buffer
        self.rng = rng if rng is not None else random.Random()

    def print_value(self, value: int) -> None:
        """Write *value* as a single character and flush."""
        self.stdout.write(code_point_to_char(value))
        self.stdout.flush()

    def read_byte(self) -> int:
        """Read one byte of input; end of input and read failures yield -1."""
        try:
            data = self.stdin.read(1)
        except (OSError, ValueError) as exc:
            logger.debug("read failed, treating as end of input: %s", exc)
            return END_OF_INPUT
        if not data:
            return END_OF_INPUT
        return data[0]

    def random_digit(self) -> int:
        return self.rng.randint(0, 9)
