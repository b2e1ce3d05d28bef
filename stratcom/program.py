"""Program model: normalized source lines plus the label table."""

from __future__ import annotations

import logging
import re
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict

from .constants import LABEL_PATTERN
from .errors import DuplicateLabelError, UnknownLabelError

logger = logging.getLogger(__name__)

LABEL_RE = re.compile(LABEL_PATTERN)


def normalize_source(source: str) -> list[str]:
    """Trim and lowercase every line and drop the blank ones."""
    lines = (line.strip().lower() for line in source.split("\n"))
    return [line for line in lines if line]


def find_labels(lines) -> dict[str, int]:
    """Map each label name to the 0-indexed line that defines it.

    Raises:
        DuplicateLabelError: on the first label defined twice.
    """
    labels: dict[str, int] = {}
    for line_number, line in enumerate(lines):
        match = LABEL_RE.match(line)
        if not match:
            continue
        label = line[match.end() :]
        if label in labels:
            raise DuplicateLabelError(label, labels[label], line_number)
        labels[label] = line_number
    return labels


class Program(BaseModel):
    """An immutable, label-validated program."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    lines: tuple[str, ...]
    labels: MappingProxyType

    @classmethod
    def from_lines(cls, name: str, lines) -> Program:
        lines = tuple(lines)
        labels = find_labels(lines)
        logger.info(
            "Constructed program '%s': %d lines, %d labels",
            name,
            len(lines),
            len(labels),
        )
        return cls(name=name, lines=lines, labels=MappingProxyType(labels))

    @classmethod
    def from_source(cls, name: str, source: str) -> Program:
        return cls.from_lines(name, normalize_source(source))

    @property
    def line_count(self) -> int:
        return len(self.lines)

    def has_label(self, label: str) -> bool:
        return label in self.labels

    def label_line(self, label: str, line: int | None = None) -> int:
        """Return the defining line of *label*; *line* is the referencing line."""
        if label not in self.labels:
            raise UnknownLabelError(label, line)
        return self.labels[label]

    def labels_in_line_order(self) -> list[str]:
        return sorted(self.labels, key=self.labels.__getitem__)
