"""
Reading-order reconstruction for OCR observations.

OCR engines hand back text fragments in no useful order. In line-aware mode the
fragments are clustered into visual lines (first-fit on the vertical centre),
lines are read top to bottom and fragments left to right. Raw mode keeps the
engine's own order, one fragment per line.

Boxes are normalized with a bottom-left origin, so a larger y is higher on the
image. Everything here is pure and safe to call from worker threads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Tuple

from TextSnip.selection.geometry import CoordinateSpace, Rect

# Fraction of a line's height the vertical centres may differ by and still share the line
SAME_LINE_TOLERANCE = 0.5


class ReadingMode(str, Enum):
    LINE_AWARE = "line_aware"
    RAW_ORDER = "raw_order"


@dataclass(frozen=True)
class TextObservation:
    text: str
    box: Rect

    @classmethod
    def from_bounds(cls, text: str, min_x: float, min_y: float, max_x: float, max_y: float) -> TextObservation:
        return cls(text, Rect(min_x, min_y, max_x - min_x, max_y - min_y, CoordinateSpace.NORMALIZED))

    @property
    def mid_y(self) -> float:
        return self.box.min_y + self.box.height / 2

    @property
    def height(self) -> float:
        return self.box.max_y - self.box.min_y


@dataclass
class Line:
    """A visual line. Its reference centre and height come from the first member."""

    mid_y: float
    height: float
    items: List[TextObservation] = field(default_factory=list)

    @classmethod
    def starting_with(cls, observation: TextObservation) -> Line:
        return cls(mid_y=observation.mid_y, height=observation.height, items=[observation])

    def accepts(self, observation: TextObservation) -> bool:
        return abs(observation.mid_y - self.mid_y) < self.height * SAME_LINE_TOLERANCE

    @property
    def text(self) -> str:
        return " ".join(item.text for item in self.items)


@dataclass(frozen=True)
class ReadingResult:
    lines: Tuple[Line, ...]
    text: str


def group_lines(observations: Iterable[TextObservation]) -> List[Line]:
    """Assign each observation to the first line that accepts it, in input order.

    Earlier assignments are never revisited.
    """
    lines: List[Line] = []
    for observation in observations:
        line = next((candidate for candidate in lines if candidate.accepts(observation)), None)
        if line is None:
            lines.append(Line.starting_with(observation))
        else:
            line.items.append(observation)
    return lines


def order_lines(lines: List[Line]) -> List[Line]:
    """Top line first, fragments left to right. Both sorts are stable."""
    ordered = sorted(lines, key=lambda line: line.mid_y, reverse=True)
    for line in ordered:
        line.items.sort(key=lambda item: item.box.min_x)
    return ordered


def reconstruct(observations: Iterable[TextObservation], mode: ReadingMode = ReadingMode.LINE_AWARE) -> ReadingResult:
    observations = list(observations)
    if mode is ReadingMode.RAW_ORDER:
        lines = [Line.starting_with(observation) for observation in observations]
    else:
        lines = order_lines(group_lines(observations))
    return ReadingResult(lines=tuple(lines), text="\n".join(line.text for line in lines))


def reconstruct_text(observations: Iterable[TextObservation], mode: ReadingMode = ReadingMode.LINE_AWARE) -> str:
    return reconstruct(observations, mode).text
