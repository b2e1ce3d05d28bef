"""Compiler backend — lowers a program into LLVM basic blocks and JIT-runs it."""

from __future__ import annotations

import logging
import re
import sys
from typing import TextIO

from llvmlite import ir

from .backend import ExecutionBackend
from .cfg import CFG, Terminator, cfg_to_mermaid
from .constants import (
    CFG_ENTRY_LABEL,
    MAIN_FUNCTION_NAME,
    MODULE_NAME,
    NATIVE_PRINT_VALUE,
    NATIVE_RANDOM_DIGIT,
    NATIVE_READ_BYTE,
    REGISTER_BITS,
    REGISTER_NAMES,
)
from .errors import CompilationError
from .instructions import dispatch
from .ir import Opcode, Operand, Transformation, TransformKind
from .jit import JitEngine, NativeBindings
from .native import NativeRuntime
from .program import Program

logger = logging.getLogger(__name__)

_BUILD_OPS = {
    TransformKind.ADD: ir.IRBuilder.add,
    TransformKind.SUBTRACT: ir.IRBuilder.sub,
    TransformKind.MULTIPLY: ir.IRBuilder.mul,
    TransformKind.DIVIDE: ir.IRBuilder.sdiv,
}


def _ir_name(text: str) -> str:
    return re.sub(r"[^\w.']", "_", text)


class CompilerBackend(ExecutionBackend):
    """Emits code for each dispatched line instead of executing it.

    Blocks for every label are allocated up front, so jumps in either
    direction always find their target. ``current`` names the logical block
    the write cursor is in; ``cfg`` mirrors the emitted control flow.
    """

    def __init__(
        self,
        program: Program,
        runtime: NativeRuntime,
        opt_level: int = 0,
        print_ir: bool = False,
        view_cfg: bool = False,
        diagnostics: TextIO | None = None,
    ):
        super().__init__(program, runtime)
        self.opt_level = opt_level
        self.print_ir = print_ir
        self.view_cfg = view_cfg
        self.diagnostics = diagnostics if diagnostics is not None else sys.stderr

        self.register_type = ir.IntType(REGISTER_BITS)
        self.module = ir.Module(name=MODULE_NAME)
        self.function = ir.Function(
            self.module, ir.FunctionType(self.register_type, []), name=MAIN_FUNCTION_NAME
        )
        self.builder = ir.IRBuilder()
        self.natives: dict[str, ir.Function] = {}
        self.registers: dict[str, ir.AllocaInstr] = {}
        self.blocks: dict[str, ir.Block] = {}
        self.label_keys: dict[str, str] = {}
        self.cfg = CFG()
        self.current = CFG_ENTRY_LABEL
        self.compiled = False
        self._declare_natives()

    def _declare_natives(self):
        i32 = self.register_type
        signatures = {
            NATIVE_PRINT_VALUE: ir.FunctionType(i32, [i32]),
            NATIVE_READ_BYTE: ir.FunctionType(i32, []),
            NATIVE_RANDOM_DIGIT: ir.FunctionType(i32, []),
        }
        for name, fn_type in signatures.items():
            self.natives[name] = ir.Function(self.module, fn_type, name=name)

    def _const(self, value: int) -> ir.Constant:
        return ir.Constant(self.register_type, value)

    def _unique_key(self, base: str) -> str:
        key = base
        while key in self.cfg.blocks:
            key += "'"
        return key

    # ── Block construction ───────────────────────────────────────

    def create_basic_blocks(self):
        """Allocate the entry block, then one block per label in line order."""
        entry = self.function.append_basic_block(name=CFG_ENTRY_LABEL)
        self.blocks[CFG_ENTRY_LABEL] = entry
        self.cfg.add_block(CFG_ENTRY_LABEL)
        self.builder.position_at_end(entry)

        for label in self.program.labels_in_line_order():
            key = self._unique_key(label)
            self.blocks[key] = self.function.append_basic_block(name=_ir_name(key))
            self.cfg.add_block(key)
            self.label_keys[label] = key
        logger.info("Allocated %d basic blocks", len(self.blocks))

    def _insert_block(self, base: str) -> str:
        """Insert a fresh block right after the one being written."""
        key = self._unique_key(base)
        index = self.function.blocks.index(self.builder.block) + 1
        self.blocks[key] = self.function.insert_basic_block(index, name=_ir_name(key))
        self.cfg.add_block(key)
        return key

    def _move_to(self, key: str):
        self.builder.position_at_end(self.blocks[key])
        self.current = key

    def _terminate(self, terminator: Terminator, *targets: str):
        self.cfg.blocks[self.current].terminator = terminator
        for target in targets:
            self.cfg.add_edge(self.current, target)

    def allocate_registers(self):
        for name in REGISTER_NAMES:
            slot = self.builder.alloca(self.register_type, name=_ir_name(name))
            self.builder.store(self._const(0), slot)
            self.registers[name] = slot

    def compile(self) -> ir.Module:
        """Lower every line into ``main``; safe to call more than once."""
        if self.compiled:
            return self.module
        self.create_basic_blocks()
        self.allocate_registers()

        for index, text in enumerate(self.program.lines):
            block_key = self.current
            opcode = dispatch(index, text, self)
            if opcode != Opcode.LABEL:
                self.cfg.blocks[block_key].lines.append(text)

        if not self.builder.block.is_terminated:
            self.builder.ret(self._const(0))
            self._terminate(Terminator.RETURN)
        self.compiled = True
        return self.module

    # ── Capabilities ─────────────────────────────────────────────

    def _operand_value(self, operand: Operand) -> ir.Value:
        if operand.is_register:
            return self.builder.load(self.registers[operand.name], name="operand")
        return self._const(operand.value)

    def modify_register(
        self, line: int, name: str, transformation: Transformation
    ) -> None:
        slot = self.registers[name]
        if transformation.kind == TransformKind.SET:
            self.builder.store(self._operand_value(transformation.operand), slot)
            return
        value = self.builder.load(slot, name="value")
        operand = self._operand_value(transformation.operand)
        build = _BUILD_OPS[transformation.kind]
        self.builder.store(build(self.builder, value, operand, name="value"), slot)

    def print_register(self, line: int, name: str) -> None:
        value = self.builder.load(self.registers[name], name="value")
        status = self.builder.call(
            self.natives[NATIVE_PRINT_VALUE], [value], name="print"
        )
        failed = self.builder.icmp_signed("!=", status, self._const(0), name="failed")
        # A failed print aborts the run, returning the 1-indexed line.
        with self.builder.if_then(failed, likely=False):
            self.builder.ret(self._const(line + 1))

    def read_register(self, line: int, name: str) -> None:
        result = self.builder.call(self.natives[NATIVE_READ_BYTE], [], name="read")
        self.builder.store(result, self.registers[name])

    def randomize_register(self, line: int, name: str) -> None:
        result = self.builder.call(
            self.natives[NATIVE_RANDOM_DIGIT], [], name="randomize"
        )
        self.builder.store(result, self.registers[name])

    def enter_label(self, line: int, label: str) -> None:
        key = self.label_keys[label]
        if not self.builder.block.is_terminated:
            self.builder.branch(self.blocks[key])
            self._terminate(Terminator.BRANCH, key)
        self._move_to(key)

    def jump(self, line: int, label: str) -> None:
        key = self.label_keys[label]
        self.builder.branch(self.blocks[key])
        self._terminate(Terminator.BRANCH, key)
        # Lines up to the next label are unreachable but must still lower.
        self._move_to(self._insert_block(f"{self.current}.dead"))

    def _conditional_jump(self, predicate: str, register: str, label: str):
        key = self.label_keys[label]
        value = self.builder.load(self.registers[register], name="value")
        cond = self.builder.icmp_signed(predicate, value, self._const(0), name="cmp")
        continuation = self._insert_block(f"{self.current}'")
        self.builder.cbranch(cond, self.blocks[key], self.blocks[continuation])
        self._terminate(Terminator.COND_BRANCH, key, continuation)
        self._move_to(continuation)

    def jump_if_zero(self, line: int, register: str, label: str) -> None:
        self._conditional_jump("==", register, label)

    def jump_if_negative(self, line: int, register: str, label: str) -> None:
        self._conditional_jump("<", register, label)

    # ── Execution ────────────────────────────────────────────────

    def run(self) -> int:
        self.compile()
        if self.view_cfg:
            print(cfg_to_mermaid(self.cfg), file=self.diagnostics)

        bindings = NativeBindings(self.runtime)
        with JitEngine(self.opt_level) as engine:
            module_ref = engine.load(self.module)
            if self.print_ir:
                print(str(module_ref), file=self.diagnostics)
            status = engine.run_main(module_ref, bindings)

        if status != 0:
            error = bindings.error or CompilationError(
                f"compiled program exited with status {status}"
            )
            error.line = status - 1
            raise error
        return len(self.blocks)
