"""Composable API functions.

Each function corresponds to a CLI workflow (--print-ir, --view-cfg,
--trace) but is callable programmatically without argparse.
"""

from __future__ import annotations

import io
import logging
import random

from .cfg import cfg_to_mermaid
from .codegen import CompilerBackend
from .jit import render_ir
from .native import NativeRuntime
from .program import Program
from .run import run_program
from .run_types import BackendKind, RunConfig
from .trace_types import ExecutionTrace

logger = logging.getLogger(__name__)


def load_program(source: str, name: str = "<source>") -> Program:
    """Normalize *source* and construct a label-validated Program."""
    return Program.from_source(name, source)


def compile_source(source: str, name: str = "<source>") -> CompilerBackend:
    """Lower *source* into an LLVM module without running it.

    The returned backend's ``module`` holds the IR and ``cfg`` the logical
    control-flow graph.
    """
    backend = CompilerBackend(load_program(source, name), NativeRuntime())
    backend.compile()
    return backend


def dump_ir(source: str, opt_level: int = 0, name: str = "<source>") -> str:
    """Compile *source* and return its verified, optionally optimized IR."""
    backend = compile_source(source, name)
    return render_ir(backend.module, opt_level)


def dump_cfg(source: str, name: str = "<source>") -> str:
    """Compile *source* and return its control-flow graph as text."""
    return str(compile_source(source, name).cfg)


def dump_mermaid(source: str, name: str = "<source>") -> str:
    """Compile *source* and return its control-flow graph as a Mermaid flowchart."""
    return cfg_to_mermaid(compile_source(source, name).cfg)


def trace_source(
    source: str,
    stdin: bytes = b"",
    seed: int | None = None,
    name: str = "<source>",
) -> tuple[str, ExecutionTrace]:
    """Interpret *source* with tracing on.

    Args:
        source: Raw program text.
        stdin: Bytes the program's read instructions consume.
        seed: Seed for the random digit generator.
        name: Program name.

    Returns:
        Tuple of (printed output, ExecutionTrace).
    """
    output = io.StringIO()
    runtime = NativeRuntime(
        stdout=output, stdin=io.BytesIO(stdin), rng=random.Random(seed)
    )
    config = RunConfig(backend=BackendKind.INTERPRETER, trace=True)
    logger.info("Tracing program '%s'", name)
    _stats, trace = run_program(load_program(source, name), config, runtime)
    return output.getvalue(), trace
