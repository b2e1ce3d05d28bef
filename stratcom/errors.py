"""Error taxonomy for program construction, dispatch and execution."""

from __future__ import annotations


class StratcomError(Exception):
    """Base class for every fatal error a program run can raise.

    ``line`` is the 0-indexed source line the error is tied to, or ``None``
    for whole-program failures. ``trace`` holds the steps interpreted before
    the failure when tracing was on. ``str()`` renders the diagnostic.
    """

    def __init__(self, message: str, line: int | None = None):
        super().__init__(message)
        self.message = message
        self.line = line
        self.trace = None

    def __str__(self) -> str:
        if self.line is None:
            return f"error: {self.message}"
        return f"line {self.line + 1}: {self.message}"


class DuplicateLabelError(StratcomError):
    def __init__(self, label: str, first_line: int, second_line: int):
        super().__init__(
            f"label '{label}' defined on line {second_line + 1} "
            f"was already defined on line {first_line + 1}"
        )
        self.label = label
        self.first_line = first_line
        self.second_line = second_line


class UnknownInstructionError(StratcomError):
    def __init__(self, text: str, line: int):
        super().__init__(f"unexpected expression: {text}", line)
        self.text = text


class InvalidOperandError(StratcomError):
    pass


class UnknownLabelError(StratcomError):
    def __init__(self, label: str, line: int | None = None):
        super().__init__(f"unknown label: {label}", line)
        self.label = label


class UnknownRegisterError(StratcomError):
    def __init__(self, name: str, line: int | None = None):
        super().__init__(f"invalid register name: {name}", line)
        self.name = name


class InvalidCharacterError(StratcomError):
    def __init__(self, value: int, line: int | None = None):
        super().__init__(
            f"{value} does not correspond to a valid UTF-8 character", line
        )
        self.value = value


class CompilationError(StratcomError):
    """LLVM rejected the generated module or the JIT could not be built."""
