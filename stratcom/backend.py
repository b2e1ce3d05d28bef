"""Execution backend abstraction shared by the interpreter and the compiler."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .constants import REGISTER_NAMES
from .errors import UnknownLabelError, UnknownRegisterError
from .ir import Transformation
from .native import NativeRuntime
from .program import Program
from .run_types import BackendKind, RunConfig


class ExecutionBackend(ABC):
    """Capabilities the instruction handlers are written against.

    Every method taking ``line`` receives the 0-indexed source line being
    dispatched so errors can be reported against it. The interpreter performs
    each effect immediately; the compiler emits code for it.
    """

    def __init__(self, program: Program, runtime: NativeRuntime):
        self.program = program
        self.runtime = runtime

    def has_register(self, name: str) -> bool:
        return name in REGISTER_NAMES

    def has_label(self, label: str) -> bool:
        return self.program.has_label(label)

    def require_register(self, line: int, name: str) -> None:
        if not self.has_register(name):
            raise UnknownRegisterError(name, line)

    def require_label(self, line: int, label: str) -> None:
        if not self.has_label(label):
            raise UnknownLabelError(label, line)

    @abstractmethod
    def modify_register(
        self, line: int, name: str, transformation: Transformation
    ) -> None: ...

    @abstractmethod
    def print_register(self, line: int, name: str) -> None: ...

    @abstractmethod
    def read_register(self, line: int, name: str) -> None: ...

    @abstractmethod
    def randomize_register(self, line: int, name: str) -> None: ...

    @abstractmethod
    def enter_label(self, line: int, label: str) -> None: ...

    @abstractmethod
    def jump(self, line: int, label: str) -> None: ...

    @abstractmethod
    def jump_if_zero(self, line: int, register: str, label: str) -> None: ...

    @abstractmethod
    def jump_if_negative(self, line: int, register: str, label: str) -> None: ...

    @abstractmethod
    def run(self) -> int:
        """Execute the program once; returns the number of steps or blocks."""
        ...


def get_backend(
    program: Program,
    runtime: NativeRuntime,
    config: RunConfig = RunConfig(),
) -> ExecutionBackend:
    """Factory for execution backends.

    Args:
        program: The program to execute.
        runtime: Native support routines the backend prints/reads through.
        config: Run configuration selecting the backend and its options.
    """
    if config.backend == BackendKind.INTERPRETER:
        from .vm import InterpreterBackend

        return InterpreterBackend(program, runtime, trace=config.trace)
    if config.backend == BackendKind.COMPILER:
        from .codegen import CompilerBackend

        return CompilerBackend(
            program,
            runtime,
            opt_level=config.opt_level,
            print_ir=config.print_ir,
            view_cfg=config.view_cfg,
        )
    raise ValueError(f"Unknown backend: {config.backend}")
