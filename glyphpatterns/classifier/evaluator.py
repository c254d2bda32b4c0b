"""
Shape evaluators: the classifier port used by the correction patterns.

An evaluator looks at a glyph in its region and returns the best
(shape, grade) verdict, or None when no shape reaches the requested
minimum grade. A missing verdict is a normal outcome, not an error.

Evaluators never mutate the graph and keep no per-call state, so one
instance can serve several regions at once.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from glyphpatterns.models import Evaluation, Rect, Shape

if TYPE_CHECKING:
    from glyphpatterns.graph.glyphs import Glyph, GlyphValue
    from glyphpatterns.graph.region import Region

logger = logging.getLogger(__name__)


# =============================================================================
# FEATURES
# =============================================================================

FEATURE_NAMES = (
    "width",  # interline units
    "height",  # interline units
    "weight",  # square interline units
    "aspect",  # width / height
    "stems",
    "ledger",
    "pitch",
)


def feature_vector(
    bounds: Rect,
    weight: int,
    interline: int,
    stem_number: int = 0,
    with_ledger: bool = False,
    pitch_position: float = 0.0,
) -> np.ndarray:
    """Scale-normalized feature vector, in FEATURE_NAMES order."""
    interline = max(interline, 1)
    return np.array(
        [
            bounds.width / interline,
            bounds.height / interline,
            weight / float(interline * interline),
            bounds.width / max(bounds.height, 1),
            stem_number,
            1.0 if with_ledger else 0.0,
            pitch_position,
        ],
        dtype=np.float64,
    )


def glyph_features(glyph: Glyph, region: Region) -> np.ndarray:
    """Features of a glyph as it currently sits in its region."""
    return feature_vector(
        glyph.bounds,
        glyph.weight,
        region.scale.interline,
        stem_number=region.count_stems(glyph),
        with_ledger=glyph.with_ledger,
        pitch_position=glyph.pitch_position,
    )


def value_features(value: GlyphValue) -> np.ndarray:
    """Features of a stored glyph value."""
    return feature_vector(
        value.bounds,
        value.weight,
        value.interline,
        stem_number=value.stem_number,
        with_ledger=value.with_ledger,
        pitch_position=value.pitch_position,
    )


# =============================================================================
# EVALUATORS
# =============================================================================


class ShapeEvaluator(ABC):
    """Abstract base for shape evaluators."""

    name: str = "base"

    @abstractmethod
    def evaluate(self, glyph: Glyph, region: Region, min_grade: float) -> Evaluation | None:
        """
        Return the best verdict for the glyph, if it reaches min_grade.

        Must be synchronous and must not modify the glyph or the region.
        """
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class NullEvaluator(ShapeEvaluator):
    """Evaluator that never recognizes anything."""

    name = "none"

    def evaluate(self, glyph: Glyph, region: Region, min_grade: float) -> Evaluation | None:
        return None


@dataclass(frozen=True)
class ShapeTemplate:
    """Typical feature values of a shape and their tolerated spread."""

    mean: tuple[float, ...]
    spread: tuple[float, ...]


def _template(mean, spread=(0.3, 0.3, 0.3, 0.4, 1.0, 1.0, 10.0)) -> ShapeTemplate:
    return ShapeTemplate(tuple(float(v) for v in mean), tuple(float(v) for v in spread))


# Rough printed-music proportions, in interline units
DEFAULT_TEMPLATES: dict[Shape, ShapeTemplate] = {
    Shape.NOTEHEAD_BLACK: _template((1.2, 1.0, 0.9, 1.2, 1, 0, 0)),
    Shape.NOTEHEAD_VOID: _template((1.2, 1.0, 0.5, 1.2, 1, 0, 0)),
    Shape.WHOLE_NOTE: _template((1.6, 1.0, 0.7, 1.6, 0, 0, 0)),
    Shape.STEM: _template((0.15, 3.5, 0.5, 0.04, 0, 0, 0), (0.1, 1.0, 0.3, 0.05, 1.0, 1.0, 10.0)),
    Shape.BEAM: _template((3.0, 0.5, 1.5, 6.0, 2, 0, 0), (1.5, 0.2, 0.8, 3.0, 1.0, 1.0, 10.0)),
    Shape.FLAG_1: _template((0.9, 2.5, 0.8, 0.36, 1, 0, 0)),
    Shape.STACCATO: _template((0.4, 0.4, 0.13, 1.0, 0, 0, 0), (0.15, 0.15, 0.1, 0.4, 1.0, 1.0, 10.0)),
    Shape.AUGMENTATION_DOT: _template((0.4, 0.4, 0.13, 1.0, 0, 0, 0), (0.15, 0.15, 0.1, 0.4, 1.0, 1.0, 10.0)),
    Shape.SHARP: _template((0.9, 2.6, 0.9, 0.35, 0, 0, 0)),
    Shape.FLAT: _template((0.8, 2.2, 0.6, 0.36, 0, 0, 0)),
    Shape.NATURAL: _template((0.6, 2.6, 0.6, 0.23, 0, 0, 0)),
}

# Spreads below this are clamped, to keep distances finite
MIN_SPREAD = 0.05


class TemplateEvaluator(ShapeEvaluator):
    """
    Nearest-template evaluator in scale-normalized feature space.

    The grade of a shape is exp(-d / distance_scale), where d is the
    RMS of the feature differences divided by the template spreads.

    Example:
        >>> evaluator = TemplateEvaluator(distance_scale=1.5)
        >>> evaluator.evaluate(glyph, region, min_grade=0.3)
        Evaluation(shape=<Shape.NOTEHEAD_BLACK: 'notehead_black'>, grade=0.82)
    """

    name = "template"

    def __init__(
        self,
        templates: Mapping[Shape, ShapeTemplate] | None = None,
        distance_scale: float = 1.0,
    ) -> None:
        if distance_scale <= 0:
            raise ValueError(f"distance_scale must be > 0, got {distance_scale}")

        templates = dict(templates or DEFAULT_TEMPLATES)
        if not templates:
            raise ValueError("At least one template is required")

        self.distance_scale = distance_scale
        self.shapes = list(templates)
        self._means = np.array([templates[s].mean for s in self.shapes], dtype=np.float64)
        self._spreads = np.maximum(
            np.array([templates[s].spread for s in self.shapes], dtype=np.float64),
            MIN_SPREAD,
        )

    def __repr__(self) -> str:
        return f"TemplateEvaluator(shapes={len(self.shapes)}, distance_scale={self.distance_scale})"

    def grades(self, features: np.ndarray) -> np.ndarray:
        """Grade of every template shape for a feature vector."""
        normalized = (features[np.newaxis, :] - self._means) / self._spreads
        distances = np.sqrt(np.mean(normalized**2, axis=1))
        return np.exp(-distances / self.distance_scale)

    def evaluate(self, glyph: Glyph, region: Region, min_grade: float) -> Evaluation | None:
        grades = self.grades(glyph_features(glyph, region))
        best = int(np.argmax(grades))
        grade = float(grades[best])

        if grade < min_grade:
            logger.debug("%s: best %s %.3f below %.3f", glyph, self.shapes[best].name, grade, min_grade)
            return None
        return Evaluation(self.shapes[best], grade)

    @classmethod
    def from_samples(
        cls,
        samples: Iterable[GlyphValue],
        distance_scale: float = 1.0,
    ) -> TemplateEvaluator:
        """
        Train templates from labelled glyph values.

        Each shape's template is the mean of its samples' features, with
        their standard deviation as spread.

        Raises:
            ValueError: If no sample carries a shape.
        """
        by_shape: dict[Shape, list[np.ndarray]] = {}
        for value in samples:
            if value.shape is None:
                continue
            by_shape.setdefault(value.shape, []).append(value_features(value))

        if not by_shape:
            raise ValueError("No labelled sample to train from")

        templates = {}
        for shape, vectors in by_shape.items():
            matrix = np.vstack(vectors)
            templates[shape] = ShapeTemplate(
                mean=tuple(matrix.mean(axis=0)),
                spread=tuple(matrix.std(axis=0)),
            )
            logger.debug("Trained %s from %d samples", shape.name, len(vectors))

        return cls(templates, distance_scale=distance_scale)
