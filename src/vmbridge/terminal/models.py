"""Terminal-side domain models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from typing_extensions import TypedDict


class TerminalMetric(str, Enum):
    SIZE = "size"
    CURSOR = "cursor"


class MetricPayload(TypedDict):
    x: int
    y: int


@dataclass(frozen=True)
class TerminalSize:
    cols: int
    rows: int

    def to_payload(self) -> MetricPayload:
        return MetricPayload(x=self.cols, y=self.rows)


@dataclass(frozen=True)
class CursorPosition:
    x: int
    y: int

    def to_payload(self) -> MetricPayload:
        return MetricPayload(x=self.x, y=self.y)
