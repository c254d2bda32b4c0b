"""
Unit tests for shapes and geometry.
"""

import math

import pytest

from glyphpatterns.models import (
    DOTS,
    GARBAGE,
    STEM_SYMBOLS,
    Evaluation,
    Line,
    Point,
    Rect,
    Scale,
    Shape,
)


class TestShape:
    """Test shapes and shape families."""

    def test_garbage_is_not_well_known(self):
        """Noise and clutter are not symbols."""
        assert not Shape.NOISE.is_well_known
        assert not Shape.CLUTTER.is_well_known
        assert Shape.STEM.is_well_known

    def test_stem_symbols(self):
        """Heads, flags and beams can take a stem."""
        assert Shape.NOTEHEAD_BLACK in STEM_SYMBOLS
        assert Shape.FLAG_2_UP in STEM_SYMBOLS
        assert Shape.BEAM_HOOK in STEM_SYMBOLS
        assert Shape.STEM not in STEM_SYMBOLS
        assert Shape.SHARP not in STEM_SYMBOLS

    def test_families_are_disjoint(self):
        """Dots, stem symbols and garbage do not overlap."""
        assert not DOTS & STEM_SYMBOLS
        assert not DOTS & GARBAGE
        assert not STEM_SYMBOLS & GARBAGE

    @pytest.mark.parametrize("name", ["staccato", "STACCATO", " Staccato "])
    def test_from_name(self, name):
        """Lookup by value or member name, case-insensitive."""
        assert Shape.from_name(name) is Shape.STACCATO

    def test_from_unknown_name(self):
        """Unknown names raise ValueError."""
        with pytest.raises(ValueError, match="Unknown shape"):
            Shape.from_name("treble_clef")


class TestRect:
    """Test boxes."""

    def test_edges(self):
        """Right and bottom are exclusive."""
        rect = Rect(2, 3, 4, 5)
        assert rect.right == 6
        assert rect.bottom == 8
        assert rect.center == Point(4.0, 5.5)

    def test_union(self):
        """Union encloses both boxes."""
        assert Rect(0, 0, 2, 2).union(Rect(5, 1, 2, 4)) == Rect(0, 0, 7, 5)

    def test_intersects_vs_touches(self):
        """Adjacent boxes touch without intersecting."""
        a = Rect(0, 0, 2, 2)
        b = Rect(2, 0, 2, 2)
        c = Rect(3, 0, 2, 2)

        assert not a.intersects(b)
        assert a.touches(b)
        assert not a.touches(c)
        assert a.intersects(Rect(1, 1, 2, 2))

    def test_diagonal_touch(self):
        """Corner adjacency counts as touching."""
        assert Rect(0, 0, 2, 2).touches(Rect(2, 2, 2, 2))

    def test_enclosing(self):
        """Enclosing box of several boxes."""
        boxes = [Rect(0, 5, 1, 1), Rect(3, 0, 1, 1), Rect(1, 2, 1, 1)]
        assert Rect.enclosing(boxes) == Rect(0, 0, 4, 6)

    def test_enclosing_nothing(self):
        """At least one box is required."""
        with pytest.raises(ValueError):
            Rect.enclosing([])


class TestLine:
    """Test baselines."""

    def test_horizontal_distance(self):
        """Distance to a horizontal line is the ordinate offset."""
        line = Line(0, 50, 100, 50)
        assert line.distance_to(Point(120, 47)) == pytest.approx(3.0)

    def test_distance_beyond_segment_end(self):
        """Distance is measured to the infinite line."""
        line = Line(0, 0, 10, 10)
        assert line.distance_to(Point(100, 100)) == pytest.approx(0.0)
        assert line.distance_to(Point(0, 2)) == pytest.approx(math.sqrt(2))

    def test_degenerate_line(self):
        """A point-like segment measures the distance to that point."""
        assert Line(1, 1, 1, 1).distance_to(Point(4, 5)) == pytest.approx(5.0)

    def test_length(self):
        """Euclidean length."""
        assert Line(0, 0, 3, 4).length == 5.0


class TestScale:
    """Test region scale."""

    def test_to_pixels(self):
        """Fractions are multiples of the interline."""
        assert Scale(interline=18).to_pixels(0.5) == 9.0

    def test_invalid_interline(self):
        """Interline must be positive."""
        with pytest.raises(ValueError):
            Scale(interline=0)


class TestEvaluation:
    """Test classifier verdicts."""

    def test_str(self):
        """Shape name and grade."""
        assert str(Evaluation(Shape.FLAT, 0.8)) == "FLAT(0.800)"
