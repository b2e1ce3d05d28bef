"""Logical control-flow graph of a compiled program, and Mermaid export."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

from . import constants


class Terminator(str, Enum):
    NONE = "none"
    BRANCH = "branch"
    COND_BRANCH = "cond_branch"
    RETURN = "return"


@dataclass
class BasicBlock:
    label: str
    lines: list[str] = field(default_factory=list)
    successors: list[str] = field(default_factory=list)
    predecessors: list[str] = field(default_factory=list)
    terminator: Terminator = Terminator.NONE


@dataclass
class CFG:
    blocks: dict[str, BasicBlock] = field(default_factory=dict)
    entry: str = constants.CFG_ENTRY_LABEL

    def add_block(self, label: str) -> BasicBlock:
        block = BasicBlock(label=label)
        self.blocks[label] = block
        return block

    def add_edge(self, src: str, dst: str):
        if dst not in self.blocks[src].successors:
            self.blocks[src].successors.append(dst)
        if src not in self.blocks[dst].predecessors:
            self.blocks[dst].predecessors.append(src)

    def __str__(self) -> str:
        lines = []
        for label, block in self.blocks.items():
            preds = ", ".join(block.predecessors) if block.predecessors else "(none)"
            succs = ", ".join(block.successors) if block.successors else "(none)"
            lines.append(f"[{label}]  preds={preds}  succs={succs}")
            for text in block.lines:
                lines.append(f"  {text}")
            lines.append("")
        return "\n".join(lines)


def _escape_mermaid(text: str) -> str:
    """Escape characters that break Mermaid node labels."""
    return (
        text.replace("&", "#amp;")
        .replace('"', "#quot;")
        .replace("<", "#lt;")
        .replace(">", "#gt;")
    )


def _line_summary(text: str, max_len: int = 60) -> str:
    """Return a truncated, Mermaid-safe string for a source line."""
    truncated = text[:max_len] + "..." if len(text) > max_len else text
    return _escape_mermaid(truncated)


def _node_ids(labels: list[str]) -> dict[str, str]:
    """Sanitise block labels into unique Mermaid node IDs."""
    ids: dict[str, str] = {}
    used: set[str] = set()
    for label in labels:
        base = re.sub(r"\W", "_", label) or "block"
        nid = base
        counter = 1
        while nid in used:
            nid = f"{base}_{counter}"
            counter += 1
        used.add(nid)
        ids[label] = nid
    return ids


def _reachable_blocks(cfg: CFG) -> set[str]:
    """Return the set of block labels reachable from the entry via BFS."""
    visited: set[str] = set()
    queue = [cfg.entry]
    while queue:
        label = queue.pop(0)
        if label in visited:
            continue
        visited.add(label)
        if label in cfg.blocks:
            queue.extend(cfg.blocks[label].successors)
    return visited


def _node_shape(block: BasicBlock, is_entry: bool) -> tuple[str, str]:
    """Return (open_delim, close_delim) for the Mermaid node shape."""
    if is_entry or block.terminator == Terminator.RETURN:
        return '(["', '"])'
    if block.terminator == Terminator.COND_BRANCH:
        return '{"', '"}'
    return '["', '"]'


def _collapse_lines(
    lines: list[str], max_lines: int = constants.MERMAID_MAX_NODE_LINES
) -> list[str]:
    """Collapse long line lists, preserving the last line.

    If *lines* has more than *max_lines* entries, return the first
    ``max_lines - 2`` lines, an ``... (N more)`` placeholder, and the
    last line.  Otherwise return *lines* unchanged.
    """
    if len(lines) <= max_lines:
        return lines
    head_count = max_lines - 2
    hidden = len(lines) - head_count - 1
    return lines[:head_count] + [f"... ({hidden} more)"] + [lines[-1]]


def _render_node(block: BasicBlock, nid: str, is_entry: bool) -> str:
    body_lines = _collapse_lines([_line_summary(text) for text in block.lines])
    body = "<br/>".join(body_lines) if body_lines else "(empty)"
    node_label = f"<b>{_escape_mermaid(block.label)}</b><br/>{body}"
    open_delim, close_delim = _node_shape(block, is_entry)
    return f"    {nid}{open_delim}{node_label}{close_delim}"


def cfg_to_mermaid(cfg: CFG) -> str:
    """Convert a CFG to a Mermaid flowchart TD diagram.

    Blocks unreachable from the entry (code after an unconditional jump
    that no label resumes) are omitted.
    """
    reachable = _reachable_blocks(cfg)
    block_labels = [label for label in cfg.blocks if label in reachable]
    ids = _node_ids(block_labels)

    lines: list[str] = ["flowchart TD"]
    for label in block_labels:
        lines.append(
            _render_node(cfg.blocks[label], ids[label], is_entry=label == cfg.entry)
        )

    for label in block_labels:
        block = cfg.blocks[label]
        src = ids[label]
        if block.terminator == Terminator.COND_BRANCH and len(block.successors) == 2:
            true_target, false_target = block.successors
            lines.append(f'    {src} -->|"T"| {ids[true_target]}')
            lines.append(f'    {src} -->|"F"| {ids[false_target]}')
        else:
            for succ in block.successors:
                lines.append(f"    {src} --> {ids[succ]}")

    if cfg.entry in ids:
        lines.append(f"    style {ids[cfg.entry]} fill:#28a745,color:#fff")

    return "\n".join(lines)
