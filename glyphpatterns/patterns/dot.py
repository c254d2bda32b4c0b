"""
Dot/dash correction pattern.

Filters the dot glyphs to find those which are actually text dashes ('-')
within sentences, and turns them into characters of those sentences.
"""

from __future__ import annotations

import functools
import logging
from typing import TYPE_CHECKING

from glyphpatterns.config import DotPatternConfig
from glyphpatterns.models import DOTS, Orientation, Shape
from glyphpatterns.patterns.base import PatternStrategy
from glyphpatterns.text import TextWord

if TYPE_CHECKING:
    from glyphpatterns.graph.glyphs import Glyph
    from glyphpatterns.graph.region import Region
    from glyphpatterns.text import TextLine

logger = logging.getLogger(__name__)


def questionable_dots(region: Region) -> list[Glyph]:
    """Active, unlocked glyphs currently assigned a dot shape."""
    dots = [
        glyph
        for glyph in region.glyphs
        if glyph.shape in DOTS and not glyph.manual and glyph.active
    ]
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "%sQuestionable dots: %s",
            region.log_prefix,
            ", ".join(str(g.id) for g in dots) or "none",
        )
    return dots


def embracing_line(glyph: Glyph, region: Region, max_dx: float, max_dy: float) -> TextLine | None:
    """
    Find the first sentence of the region that embraces the glyph.

    Args:
        glyph: The (dot) glyph to check.
        region: Region whose sentences are searched, in order.
        max_dx: Maximum abscissa offset (pixels) past the baseline end.
        max_dy: Maximum distance (pixels) from the baseline to the glyph center.

    Returns:
        The embracing sentence if any, otherwise None.
    """
    box = glyph.bounds

    for sentence in region.sentences:
        baseline = sentence.baseline

        # Not before sentence beginning
        if box.right <= baseline.x1:
            continue

        # Not too far after sentence end
        if box.x - baseline.x2 > max_dx:
            continue

        # Close enough to the baseline
        if baseline.distance_to(glyph.area_center) > max_dy:
            continue

        return sentence

    return None


def is_dash_looking(glyph: Glyph, min_aspect: float) -> bool:
    """Check whether the glyph looks like a '-' character."""
    return glyph.aspect(Orientation.HORIZONTAL) >= min_aspect


def run_dot_pattern(region: Region, config: DotPatternConfig | None = None) -> int:
    """
    In a region, reassign the dots that are actually sentence dashes.

    Args:
        region: Region to correct.
        config: Tolerances (defaults to DotPatternConfig()).

    Returns:
        Number of dots reassigned.
    """
    config = config or DotPatternConfig()
    max_dx = region.scale.to_pixels(config.max_line_dx)
    max_dy = region.scale.to_pixels(config.max_line_dy)
    nb = 0

    for glyph in questionable_dots(region):
        line = embracing_line(glyph, region, max_dx, max_dy)
        if line is None:
            continue

        if not is_dash_looking(glyph, config.min_aspect):
            continue

        glyph.set_shape(Shape.CHARACTER)

        word = TextWord.create_manual_word(glyph, config.dash_text)
        glyph.set_text_word(region.language, word)
        line.add_words([word])
        logger.debug("%sReassigned dot %s to line '%s'", region.log_prefix, glyph, line.value)

        nb += 1

    return nb


def dot_pattern(config: DotPatternConfig | None = None) -> PatternStrategy:
    """Dot pattern as a strategy, with its config bound."""
    return PatternStrategy("dot", functools.partial(run_dot_pattern, config=config))
