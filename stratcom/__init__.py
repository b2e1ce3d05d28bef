"""Strategic Communication interpreter and JIT compiler package."""

from .run import run, run_program  # noqa: F401
from .api import (  # noqa: F401
    load_program,
    compile_source,
    dump_ir,
    dump_cfg,
    dump_mermaid,
    trace_source,
)
