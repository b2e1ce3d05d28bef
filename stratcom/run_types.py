"""Run pipeline data types (pure data, no business logic)."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class BackendKind(Enum):
    """Which implementation executes the program."""

    INTERPRETER = "interpreter"
    COMPILER = "compiler"


@dataclass(frozen=True)
class RunConfig:
    """Groups run configuration."""

    backend: BackendKind = BackendKind.INTERPRETER
    opt_level: int = 0
    print_ir: bool = False
    view_cfg: bool = False
    trace: bool = False
    verbose: bool = False


@dataclass
class RunStats:
    """Timing and size statistics for each pipeline stage."""

    program_name: str = ""
    backend: str = ""
    source_lines: int = 0
    label_count: int = 0

    # Stage timings (seconds)
    construct_time: float = 0.0
    compile_time: float = 0.0
    execution_time: float = 0.0
    total_time: float = 0.0

    # Backend output: interpreter steps or compiled basic blocks
    executed_steps: int = 0
    block_count: int = 0

    def report(self) -> str:
        lines = [
            "═══ Run Statistics ═══",
            f"  Program: {self.program_name} ({self.source_lines} lines,"
            f" {self.label_count} labels, {self.backend} backend)",
            "",
            f"  {'Stage':<20} {'Time':>10}  {'Output':>24}",
            f"  {'─' * 20} {'─' * 10}  {'─' * 24}",
        ]

        stages = [
            ("Construct program", self.construct_time, f"{self.label_count} labels"),
        ]
        if self.backend == BackendKind.COMPILER.value:
            stages.append(
                ("Compile", self.compile_time, f"{self.block_count} basic blocks")
            )
            stages.append(("Execute", self.execution_time, "JIT"))
        else:
            stages.append(
                ("Execute", self.execution_time, f"{self.executed_steps} steps")
            )
        for name, t, output in stages:
            time_str = f"{t * 1000:>8.1f}ms"
            lines.append(f"  {name:<20} {time_str:>10}  {output:>24}")

        lines.append(f"  {'─' * 20} {'─' * 10}  {'─' * 24}")
        lines.append(f"  {'Total':<20} {self.total_time * 1000:>8.1f}ms")
        return "\n".join(lines)
