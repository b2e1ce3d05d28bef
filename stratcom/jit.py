"""JIT execution engine. Verifies, optimizes and runs a compiled module once.

Native support routines are exposed to compiled code as ctypes callbacks
registered under the symbol names the module declares.
"""

from __future__ import annotations

import ctypes
import logging

import llvmlite.binding as llvm
from llvmlite import ir

from .constants import (
    MAIN_FUNCTION_NAME,
    NATIVE_PRINT_VALUE,
    NATIVE_RANDOM_DIGIT,
    NATIVE_READ_BYTE,
    OPT_LEVELS,
)
from .errors import CompilationError, InvalidCharacterError, StratcomError
from .native import NativeRuntime

logger = logging.getLogger(__name__)

PRINT_VALUE_TYPE = ctypes.CFUNCTYPE(ctypes.c_int32, ctypes.c_int32)
NATIVE_INT_TYPE = ctypes.CFUNCTYPE(ctypes.c_int32)
MAIN_TYPE = ctypes.CFUNCTYPE(ctypes.c_int32)

_initialized = False


def initialize_llvm():
    global _initialized
    if not _initialized:
        llvm.initialize_native_target()
        llvm.initialize_native_asmprinter()
        _initialized = True


class NativeBindings:
    """ctypes callbacks that forward compiled-code calls to a NativeRuntime.

    Exceptions cannot unwind through JIT frames, so a failed print is
    recorded in ``error`` and reported to the caller as a non-zero status.
    """

    def __init__(self, runtime: NativeRuntime):
        self.runtime = runtime
        self.error: StratcomError | None = None
        # Held for the lifetime of the run; the JIT only keeps raw addresses.
        self._callbacks = {
            NATIVE_PRINT_VALUE: PRINT_VALUE_TYPE(self._print_value),
            NATIVE_READ_BYTE: NATIVE_INT_TYPE(runtime.read_byte),
            NATIVE_RANDOM_DIGIT: NATIVE_INT_TYPE(runtime.random_digit),
        }

    def _print_value(self, value: int) -> int:
        try:
            self.runtime.print_value(value)
        except InvalidCharacterError as err:
            self.error = err
            return 1
        return 0

    def install(self):
        for name, callback in self._callbacks.items():
            address = ctypes.cast(callback, ctypes.c_void_p).value
            llvm.add_symbol(name, address)


class JitEngine:
    """One compile-and-run cycle; use as a context manager to release the engine."""

    def __init__(self, opt_level: int = 0):
        if opt_level not in OPT_LEVELS:
            raise ValueError(f"Unknown optimization level: {opt_level}")
        initialize_llvm()
        self.opt_level = opt_level
        target = llvm.Target.from_default_triple()
        self.target_machine = target.create_target_machine(opt=opt_level)
        self._engine: llvm.ExecutionEngine | None = None

    def __enter__(self) -> JitEngine:
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self):
        if self._engine is not None:
            self._engine.close()
            self._engine = None

    def load(self, module: ir.Module) -> llvm.ModuleRef:
        """Parse, verify and optimize *module*."""
        try:
            module_ref = llvm.parse_assembly(str(module))
            module_ref.verify()
        except RuntimeError as exc:
            raise CompilationError(f"invalid module: {exc}") from exc
        module_ref.triple = self.target_machine.triple
        module_ref.data_layout = str(self.target_machine.target_data)
        self._optimize(module_ref)
        return module_ref

    def _optimize(self, module_ref: llvm.ModuleRef):
        if self.opt_level == 0:
            return
        tuning = llvm.create_pipeline_tuning_options(speed_level=self.opt_level)
        pass_builder = llvm.create_pass_builder(self.target_machine, tuning)
        pass_builder.getModulePassManager().run(module_ref, pass_builder)
        logger.info("Optimized module at -O%d", self.opt_level)

    def run_main(self, module_ref: llvm.ModuleRef, bindings: NativeBindings) -> int:
        """Run the module's entry function; returns its i32 status."""
        bindings.install()
        self._engine = llvm.create_mcjit_compiler(module_ref, self.target_machine)
        self._engine.finalize_object()
        address = self._engine.get_function_address(MAIN_FUNCTION_NAME)
        if not address:
            raise CompilationError(f"no '{MAIN_FUNCTION_NAME}' function in module")
        entry = MAIN_TYPE(address)
        logger.info("Running JIT-compiled '%s'", MAIN_FUNCTION_NAME)
        return entry()


def render_ir(module: ir.Module, opt_level: int = 0) -> str:
    """Return the verified (and optimized) textual IR of *module*."""
    with JitEngine(opt_level) as engine:
        return str(engine.load(module))
