"""Command-line entry point."""

from __future__ import annotations

import argparse
import logging
import sys
import time

from .errors import StratcomError
from .native import NativeRuntime
from .program import Program
from .run import run_program
from .run_types import BackendKind, RunConfig
from .trace_types import ExecutionTrace

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stratcom",
        description="Interpreter and JIT compiler for Strategic Communication programs",
    )
    parser.add_argument("file",
                        help="The path to the file containing source code to execute")
    parser.add_argument("--compile", "-c", action="store_true",
                        help="Compile to LLVM IR and run it with the JIT engine")
    parser.add_argument("--print-ir", action="store_true",
                        help="Print the generated LLVM IR to stderr (implies --compile)")
    parser.add_argument("--view-cfg", action="store_true",
                        help="Print the control-flow graph as a Mermaid flowchart "
                             "to stderr (implies --compile)")
    parser.add_argument("--opt-level", "-O", type=int, default=0,
                        choices=[0, 1, 2, 3],
                        help="Optimization level for the compiled backend (default: 0)")
    parser.add_argument("--trace", action="store_true",
                        help="Print every interpreted line with the register state")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Debug logging and run statistics")
    return parser


def config_from_args(args: argparse.Namespace) -> RunConfig:
    compiled = args.compile or args.print_ir or args.view_cfg
    return RunConfig(
        backend=BackendKind.COMPILER if compiled else BackendKind.INTERPRETER,
        opt_level=args.opt_level,
        print_ir=args.print_ir,
        view_cfg=args.view_cfg,
        trace=args.trace,
        verbose=args.verbose,
    )


def format_trace(trace: ExecutionTrace) -> str:
    lines = ["═══ Trace ═══"]
    for step in trace.steps:
        changed = ", ".join(
            f"{name}={value}" for name, value in step.registers.items() if value
        )
        lines.append(
            f"  [{step.step_index}] line {step.line_index + 1}: {step.line}"
            + (f"  ({changed})" if changed else "")
        )
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    config = config_from_args(args)
    if config.trace and config.backend == BackendKind.COMPILER:
        parser.error("--trace is only available for the interpreter")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(name)s: %(message)s",
    )

    try:
        with open(args.file, encoding="utf-8") as f:
            source = f.read()
    except OSError as exc:
        print(f"error: cannot open file: {exc}", file=sys.stderr)
        return 1

    try:
        t0 = time.perf_counter()
        program = Program.from_source(args.file, source)
        construct_time = time.perf_counter() - t0
        stats, trace = run_program(program, config, NativeRuntime())
    except StratcomError as err:
        if err.trace is not None:
            print(format_trace(err.trace), file=sys.stderr)
        print(err, file=sys.stderr)
        return 1

    if trace is not None:
        print(format_trace(trace), file=sys.stderr)
    if config.verbose:
        stats.construct_time = construct_time
        stats.total_time = time.perf_counter() - t0
        print(stats.report(), file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
