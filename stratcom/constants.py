"""Fixed tables of the language and other named constants."""

from __future__ import annotations

REGISTER_NAMES: tuple[str, ...] = (
    "customer experience",
    "revenue streams",
    "core competencies",
    "best practices",
    "stakeholder engagement",
    "key performance indicators",
    "return on investment",
    "assets",
)

LITERALS: dict[str, int] = {
    "hr": 0,
    "engineering": 1,
    "legal": 2,
    "pr": 3,
    "finance": 4,
    "marketing": 5,
    "r&d": 6,
    "sales": 7,
    "manufacturing": 8,
    "executive management": 9,
}

# Strings that can be placed between operands.
OPERAND_CONNECTORS: tuple[str, ...] = (" and ", " with ", " to ")

# Strings that can be placed between literal digits, longest first.
LITERAL_CONNECTORS: tuple[str, ...] = (", and ", " and ", ", ")

LABEL_PATTERN = r"^(moving|going) forward, "

REGISTER_BITS = 32
REGISTER_MIN = -(2 ** (REGISTER_BITS - 1))
REGISTER_MAX = 2 ** (REGISTER_BITS - 1) - 1

MAX_CODE_POINT = 0x10FFFF
SURROGATE_RANGE = range(0xD800, 0xE000)

END_OF_INPUT = -1

CFG_ENTRY_LABEL = "entry"
MODULE_NAME = "business"
MAIN_FUNCTION_NAME = "main"

NATIVE_PRINT_VALUE = "print_value"
NATIVE_READ_BYTE = "read_byte"
NATIVE_RANDOM_DIGIT = "random_digit"

OPT_LEVELS: tuple[int, ...] = (0, 1, 2, 3)

MERMAID_MAX_NODE_LINES = 12


def _check_prefix_free(names, kind: str) -> None:
    """Greedy lexing is only deterministic if no name is a prefix of another."""
    for name in names:
        for other in names:
            if name != other and other.startswith(name):
                raise ValueError(f"{kind} name {name!r} is a prefix of {other!r}")


_check_prefix_free(REGISTER_NAMES, "register")
_check_prefix_free(tuple(LITERALS), "literal")
