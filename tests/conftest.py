"""
Pytest configuration and fixtures for glyphpatterns tests.
"""

from collections.abc import Callable

import pytest

from glyphpatterns.classifier import ShapeEvaluator
from glyphpatterns.graph import Region, SectionArena
from glyphpatterns.models import Evaluation, Orientation, Rect, Scale


class MappingEvaluator(ShapeEvaluator):
    """Test evaluator answering by glyph member set."""

    name = "mapping"

    def __init__(self, verdicts=None, default=None):
        self.verdicts = {frozenset(k): v for k, v in (verdicts or {}).items()}
        self.default = default
        self.calls = []

    def evaluate(self, glyph, region, min_grade):
        self.calls.append(glyph.members)
        vote = self.verdicts.get(glyph.members, self.default)
        if vote is None or vote.grade < min_grade:
            return None
        return vote


@pytest.fixture
def make_region() -> Callable[..., Region]:
    """Build a region from section boxes, linking the boxes that touch."""

    def _make(boxes, interline=1, sentences=(), region_id=1, orientation=Orientation.VERTICAL):
        arena = SectionArena()
        for box in boxes:
            arena.create_section(Rect(*box), orientation)
        arena.connect_touching()
        return Region(
            arena,
            region_id=region_id,
            scale=Scale(interline=interline),
            sentences=sentences,
        )

    return _make


@pytest.fixture
def make_evaluator() -> Callable[..., MappingEvaluator]:
    """Build a test evaluator from {section ids: Evaluation}."""

    def _make(verdicts=None, default: Evaluation | None = None) -> MappingEvaluator:
        return MappingEvaluator(verdicts, default)

    return _make
