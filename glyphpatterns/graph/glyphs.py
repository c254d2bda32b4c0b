"""
Glyphs: aggregates of sections, the unit of shape classification.

A glyph keeps the ids of its member sections, never the sections
themselves. Its members never change once built; re-segmentation creates
new glyphs instead, so a removed glyph can be restored exactly as it was.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from glyphpatterns.exceptions import GraphConsistencyError
from glyphpatterns.graph.sections import Section
from glyphpatterns.models import Evaluation, Orientation, Point, Rect, Shape
from glyphpatterns.text import TextWord

logger = logging.getLogger(__name__)

# Grade given to shapes set by a human operator
MANUAL_GRADE = 1.0


@dataclass(eq=False)
class Glyph:
    """
    A symbol candidate made of one or more sections.

    Glyphs compare by identity. Use `Glyph.from_sections` or
    `Region.create_glyph` rather than building them by hand.

    Attributes:
        id: Identifier, unique within its region.
        members: Ids of the member sections.
        bounds: Bounding box of all members.
        weight: Total pixel count.
        area_center: Mass center of all members.
        shape: Assigned shape, None when unassigned.
        grade: Grade of the assigned shape.
        manual: Set by an operator; patterns never change a manual shape.
        active: Whether the glyph currently owns its sections in a region.
        interline: Region interline when the glyph was built.
        pitch_position: Staff pitch position, classifier feature only.
        with_ledger: Whether a ledger crosses the glyph, classifier feature only.
        stem_number: Number of attached stems, classifier feature only.
    """

    id: int
    members: frozenset[int]
    bounds: Rect
    weight: int
    area_center: Point
    shape: Shape | None = None
    grade: float = 0.0
    manual: bool = False
    active: bool = False
    interline: int = 0
    pitch_position: float = 0.0
    with_ledger: bool = False
    stem_number: int = 0
    text_words: dict[str, TextWord] = field(default_factory=dict, repr=False)

    def __post_init__(self):
        if not self.members:
            raise GraphConsistencyError(f"Glyph#{self.id} has no member sections")
        self.members = frozenset(self.members)

    @classmethod
    def from_sections(cls, glyph_id: int, sections: Iterable[Section], **features: Any) -> Glyph:
        """
        Build a glyph from its member sections.

        Args:
            glyph_id: Identifier of the new glyph.
            sections: Member sections (at least one).
            **features: Extra glyph attributes (interline, pitch_position...).

        Raises:
            GraphConsistencyError: If no section is given.
        """
        sections = list(sections)
        if not sections:
            raise GraphConsistencyError(f"Glyph#{glyph_id} has no member sections")

        weight = sum(s.weight for s in sections)
        cx = sum(s.area_center.x * s.weight for s in sections) / weight
        cy = sum(s.area_center.y * s.weight for s in sections) / weight

        return cls(
            id=glyph_id,
            members=frozenset(s.id for s in sections),
            bounds=Rect.enclosing(s.bounds for s in sections),
            weight=weight,
            area_center=Point(cx, cy),
            **features,
        )

    # -------------------------------------------------------------------------
    # Shape
    # -------------------------------------------------------------------------

    def set_shape(self, shape: Shape | None, grade: float | None = None) -> bool:
        """
        Assign (or deassign, with None) the glyph shape.

        Manual shapes are never overridden: the call is then a no-op.

        Returns:
            True if the shape was changed.
        """
        if self.manual:
            logger.debug("Glyph#%d has manual shape %s, not changed", self.id, self.shape)
            return False

        self.shape = shape
        if shape is None:
            self.grade = 0.0
        elif grade is not None:
            self.grade = grade
        return True

    def set_evaluation(self, evaluation: Evaluation) -> bool:
        """Assign the shape and grade of a classifier verdict."""
        return self.set_shape(evaluation.shape, evaluation.grade)

    def set_manual_shape(self, shape: Shape) -> None:
        """Assign a shape on behalf of an operator and lock it."""
        self.shape = shape
        self.grade = MANUAL_GRADE
        self.manual = True

    @property
    def evaluation(self) -> Evaluation | None:
        if self.shape is None:
            return None
        return Evaluation(self.shape, self.grade)

    def is_well_known(self, min_grade: float) -> bool:
        """Whether the glyph carries a real symbol shape with enough confidence."""
        if self.shape is None or not self.shape.is_well_known:
            return False
        return self.manual or self.grade >= min_grade

    def is_stem(self) -> bool:
        return self.shape is Shape.STEM

    # -------------------------------------------------------------------------
    # Geometry
    # -------------------------------------------------------------------------

    def aspect(self, orientation: Orientation) -> float:
        """Length / thickness ratio along the given orientation."""
        if orientation is Orientation.HORIZONTAL:
            return self.bounds.width / self.bounds.height
        return self.bounds.height / self.bounds.width

    # -------------------------------------------------------------------------
    # Text
    # -------------------------------------------------------------------------

    def set_text_word(self, language: str, word: TextWord) -> None:
        self.text_words[language] = word

    def text_word(self, language: str) -> TextWord | None:
        return self.text_words.get(language)

    def __str__(self) -> str:
        shape = self.shape.name if self.shape else "-"
        flags = "M" if self.manual else ""
        return f"Glyph#{self.id}{flags}[{shape}]"


@dataclass
class GlyphValue:
    """
    Serializable value of a glyph, decoupled from the in-memory graph.

    Used to store classifier training samples.
    """

    id: int
    interline: int
    shape: Shape | None
    stem_number: int
    with_ledger: bool
    pitch_position: float
    members: tuple[int, ...]
    bounds: Rect
    weight: int

    @classmethod
    def from_glyph(cls, glyph: Glyph) -> GlyphValue:
        return cls(
            id=glyph.id,
            interline=glyph.interline,
            shape=glyph.shape,
            stem_number=glyph.stem_number,
            with_ledger=glyph.with_ledger,
            pitch_position=glyph.pitch_position,
            members=tuple(sorted(glyph.members)),
            bounds=glyph.bounds,
            weight=glyph.weight,
        )

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to dictionary for JSON serialization.

        Returns:
            Dictionary representation of the glyph value
        """
        return {
            "id": self.id,
            "interline": self.interline,
            "shape": self.shape.value if self.shape else None,
            "stem_number": self.stem_number,
            "with_ledger": self.with_ledger,
            "pitch_position": self.pitch_position,
            "members": list(self.members),
            "bounds": [self.bounds.x, self.bounds.y, self.bounds.width, self.bounds.height],
            "weight": self.weight,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GlyphValue:
        shape = data.get("shape")
        return cls(
            id=int(data["id"]),
            interline=int(data["interline"]),
            shape=Shape.from_name(shape) if shape else None,
            stem_number=int(data.get("stem_number", 0)),
            with_ledger=bool(data.get("with_ledger", False)),
            pitch_position=float(data.get("pitch_position", 0.0)),
            members=tuple(data.get("members", ())),
            bounds=Rect(*data["bounds"]),
            weight=int(data["weight"]),
        )
