"""Pipeline orchestration: construct, compile and execute a program."""

from __future__ import annotations

import logging
import time

from .backend import get_backend
from .errors import StratcomError
from .native import NativeRuntime
from .program import Program
from .run_types import BackendKind, RunConfig, RunStats
from .trace_types import ExecutionTrace

logger = logging.getLogger(__name__)


def run_program(
    program: Program,
    config: RunConfig = RunConfig(),
    runtime: NativeRuntime | None = None,
) -> tuple[RunStats, ExecutionTrace | None]:
    """Execute an already-constructed program with the configured backend.

    Args:
        program: The program to execute.
        config: Backend selection and options.
        runtime: Native support routines; defaults to the process streams.

    Returns:
        Tuple of (RunStats, ExecutionTrace or None when tracing is off).
    """
    runtime = runtime if runtime is not None else NativeRuntime()
    stats = RunStats(
        program_name=program.name,
        backend=config.backend.value,
        source_lines=program.line_count,
        label_count=len(program.labels),
    )

    backend = get_backend(program, runtime, config)
    if config.backend == BackendKind.COMPILER:
        t0 = time.perf_counter()
        backend.compile()
        stats.compile_time = time.perf_counter() - t0

    t0 = time.perf_counter()
    try:
        result = backend.run()
    except StratcomError as err:
        err.trace = getattr(backend, "trace", None)
        raise
    stats.execution_time = time.perf_counter() - t0

    if config.backend == BackendKind.COMPILER:
        stats.block_count = result
    else:
        stats.executed_steps = result
    logger.info(
        "Program '%s' finished on the %s backend in %.1fms",
        program.name,
        config.backend.value,
        stats.execution_time * 1000,
    )
    return stats, getattr(backend, "trace", None)


def run(
    source: str,
    name: str = "<source>",
    config: RunConfig = RunConfig(),
    runtime: NativeRuntime | None = None,
) -> RunStats:
    """End-to-end: normalize → construct program → execute.

    Args:
        source: Raw program text.
        name: Program name used in diagnostics and as the module name.
        config: Backend selection and options.
        runtime: Native support routines; defaults to the process streams.
    """
    pipeline_start = time.perf_counter()

    t0 = time.perf_counter()
    program = Program.from_source(name, source)
    construct_time = time.perf_counter() - t0

    stats, _trace = run_program(program, config, runtime)
    stats.construct_time = construct_time
    stats.total_time = time.perf_counter() - pipeline_start

    return stats
