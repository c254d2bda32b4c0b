"""
Data models for glyphpatterns.

Shapes, shape families, plain geometry and classifier verdicts shared by
the graph, the classifier port and the correction patterns.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

# =============================================================================
# SHAPES
# =============================================================================


class Shape(Enum):
    """Symbol categories a glyph can be assigned."""

    # Garbage
    NOISE = "noise"
    CLUTTER = "clutter"

    # Lines
    STEM = "stem"
    LEDGER = "ledger"
    BEAM = "beam"
    BEAM_HOOK = "beam_hook"

    # Heads
    NOTEHEAD_BLACK = "notehead_black"
    NOTEHEAD_VOID = "notehead_void"
    WHOLE_NOTE = "whole_note"

    # Flags
    FLAG_1 = "flag_1"
    FLAG_2 = "flag_2"
    FLAG_1_UP = "flag_1_up"
    FLAG_2_UP = "flag_2_up"

    # Dots
    DOT_SET = "dot_set"
    AUGMENTATION_DOT = "augmentation_dot"
    STACCATO = "staccato"
    REPEAT_DOT = "repeat_dot"

    # Text
    CHARACTER = "character"
    TEXT = "text"

    # Accidentals
    SHARP = "sharp"
    FLAT = "flat"
    NATURAL = "natural"

    @property
    def is_well_known(self) -> bool:
        """Whether this shape denotes an actual symbol (not garbage)."""
        return self not in GARBAGE

    @classmethod
    def from_name(cls, name: str) -> Shape:
        """Look up a shape by value or member name (case-insensitive)."""
        key = name.strip().lower()
        for shape in cls:
            if shape.value == key or shape.name.lower() == key:
                return shape
        raise ValueError(f"Unknown shape: {name!r}")


GARBAGE = frozenset({Shape.NOISE, Shape.CLUTTER})

NOTE_HEADS = frozenset({Shape.NOTEHEAD_BLACK, Shape.NOTEHEAD_VOID})

FLAGS = frozenset({Shape.FLAG_1, Shape.FLAG_2, Shape.FLAG_1_UP, Shape.FLAG_2_UP})

BEAMS = frozenset({Shape.BEAM, Shape.BEAM_HOOK})

# Symbols a stem can be attached to
STEM_SYMBOLS = NOTE_HEADS | FLAGS | BEAMS

DOTS = frozenset({Shape.DOT_SET, Shape.AUGMENTATION_DOT, Shape.STACCATO, Shape.REPEAT_DOT})


class Orientation(Enum):
    """Orientation of runs and sections."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


# =============================================================================
# GEOMETRY
# =============================================================================


@dataclass(frozen=True)
class Point:
    """A point in image coordinates."""

    x: float
    y: float


@dataclass(frozen=True)
class Rect:
    """Axis-aligned box in image coordinates (x, y is the top-left corner)."""

    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        """Abscissa just past the box."""
        return self.x + self.width

    @property
    def bottom(self) -> int:
        """Ordinate just past the box."""
        return self.y + self.height

    @property
    def center(self) -> Point:
        return Point(self.x + self.width / 2.0, self.y + self.height / 2.0)

    def union(self, other: Rect) -> Rect:
        """Smallest box containing both boxes."""
        x0 = min(self.x, other.x)
        y0 = min(self.y, other.y)
        x1 = max(self.right, other.right)
        y1 = max(self.bottom, other.bottom)
        return Rect(x0, y0, x1 - x0, y1 - y0)

    def intersects(self, other: Rect) -> bool:
        """Whether both boxes share at least one pixel."""
        return (
            self.x < other.right
            and other.x < self.right
            and self.y < other.bottom
            and other.y < self.bottom
        )

    def touches(self, other: Rect) -> bool:
        """Whether both boxes share or abut (8-connectivity) at least one pixel."""
        return (
            self.x <= other.right
            and other.x <= self.right
            and self.y <= other.bottom
            and other.y <= self.bottom
        )

    @classmethod
    def enclosing(cls, rects) -> Rect:
        """Union of a non-empty iterable of boxes."""
        iterator = iter(rects)
        try:
            result = next(iterator)
        except StopIteration:
            raise ValueError("Cannot enclose an empty set of boxes") from None
        for rect in iterator:
            result = result.union(rect)
        return result


@dataclass(frozen=True)
class Line:
    """Line segment from (x1, y1) to (x2, y2), typically a text baseline."""

    x1: float
    y1: float
    x2: float
    y2: float

    @property
    def length(self) -> float:
        return math.hypot(self.x2 - self.x1, self.y2 - self.y1)

    def distance_to(self, point: Point) -> float:
        """
        Perpendicular distance from point to the infinite line through the segment.

        Degenerate segments fall back to the distance to their first end.
        """
        dx = self.x2 - self.x1
        dy = self.y2 - self.y1
        length = math.hypot(dx, dy)
        if length == 0:
            return math.hypot(point.x - self.x1, point.y - self.y1)
        return abs(dy * (point.x - self.x1) - dx * (point.y - self.y1)) / length


@dataclass(frozen=True)
class Scale:
    """Scale of a region, driven by the staff interline (in pixels)."""

    interline: int = 20

    def __post_init__(self):
        if self.interline <= 0:
            raise ValueError(f"interline must be > 0, got {self.interline}")

    def to_pixels(self, fraction: float) -> float:
        """Convert an interline fraction to pixels."""
        return fraction * self.interline


# =============================================================================
# CLASSIFICATION
# =============================================================================


@dataclass(frozen=True)
class Evaluation:
    """A classifier verdict: a shape and the grade the classifier gives it."""

    shape: Shape
    grade: float

    def __str__(self) -> str:
        return f"{self.shape.name}({self.grade:.3f})"
