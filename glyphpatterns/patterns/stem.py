"""
Stem correction pattern.

Stems are thin and easily absorb nearby noise. A stem with no reliable
symbol (head, flag, beam) attached to it is suspect: the pattern removes
it, rebuilds glyphs from the freed sections and classifies them. If one of
the stem's sections ends up in a recognized symbol the stem stays removed;
otherwise the stem is restored as it was.

All suspect stems of a region are processed as one transaction:
1. Scan: collect suspect stems, with the unreliable glyphs around them
2. Detach: deassign those glyphs, remove the stems
3. Resegment: one region-wide extraction of new glyphs
4. Reclassify: evaluate every unassigned glyph
5. Verify: per stem, commit or roll back
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from glyphpatterns.config import StemPatternConfig
from glyphpatterns.models import STEM_SYMBOLS, Shape
from glyphpatterns.patterns.base import PatternStrategy

if TYPE_CHECKING:
    from glyphpatterns.classifier.evaluator import ShapeEvaluator
    from glyphpatterns.graph.glyphs import Glyph
    from glyphpatterns.graph.region import Region

logger = logging.getLogger(__name__)


class CorrectionState(Enum):
    """Life-cycle of a stem correction."""

    SCANNING = "scanning"
    DETACHED = "detached"
    RESEGMENTED = "resegmented"
    RECLASSIFIED = "reclassified"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


def is_reliable_stem_symbol(glyph: Glyph, well_known_grade: float) -> bool:
    """Whether a glyph is a trustworthy symbol for a stem to hang on."""
    shape = glyph.shape
    return (
        glyph.is_well_known(well_known_grade)
        and not glyph.manual
        and shape in STEM_SYMBOLS
        and shape is not Shape.BEAM_HOOK
    )


@dataclass(eq=False)
class StemCandidate:
    """A suspect stem and the unreliable glyphs found around it."""

    stem: Glyph
    bads: set[Glyph] = field(default_factory=set)
    previous_shapes: dict[Glyph, Shape | None] = field(default_factory=dict)
    state: CorrectionState = CorrectionState.SCANNING


class StemCorrection:
    """
    One run of the stem pattern over a region.

    The removed stems stay referenced by their candidates until
    verification, which is what makes an exact rollback possible. Once
    verified, the region discards whatever glyphs the run removed.
    """

    def __init__(
        self,
        region: Region,
        evaluator: ShapeEvaluator,
        config: StemPatternConfig | None = None,
    ) -> None:
        self.region = region
        self.evaluator = evaluator
        self.config = config or StemPatternConfig()
        self.candidates: list[StemCandidate] = []
        self.symbols: list[Glyph] = []
        self._previous: dict[Glyph, Shape | None] = {}

    def run(self) -> int:
        """
        Run all phases.

        Returns:
            Number of newly recognized well-known symbols.
        """
        self.scan()
        if not self.candidates:
            return 0

        self.detach()
        self.resegment()
        self.reclassify()
        self.verify()
        self.region.discard_removed()

        committed = sum(1 for c in self.candidates if c.state is CorrectionState.COMMITTED)
        logger.debug(
            "%sStem pattern: %d suspect stems, %d discarded, %d new symbols",
            self.region.log_prefix,
            len(self.candidates),
            committed,
            len(self.symbols),
        )
        return len(self.symbols)

    def scan(self) -> None:
        """Collect stems with no reliable symbol attached, and deassign their bad neighbors."""
        well_known = self.config.well_known_grade

        def reliable(glyph: Glyph) -> bool:
            return is_reliable_stem_symbol(glyph, well_known)

        for glyph in self.region.glyphs:
            if not (glyph.is_stem() and not glyph.manual and glyph.active):
                continue

            goods: set[Glyph] = set()
            bads: set[Glyph] = set()
            self.region.symbols_before(glyph, reliable, goods, bads)
            self.region.symbols_after(glyph, reliable, goods, bads)

            if goods:
                continue

            logger.debug("%sSuspected stem %s", self.region.log_prefix, glyph)
            bads -= {c.stem for c in self.candidates}
            candidate = StemCandidate(glyph, bads)
            self.candidates.append(candidate)

            # Deassigning right away means a bad stem is no longer a stem
            # when the scan reaches it
            for bad in sorted(bads, key=lambda g: g.id):
                if bad.manual:
                    continue
                logger.debug("%sDeassigning bad glyph %s", self.region.log_prefix, bad)
                candidate.previous_shapes[bad] = self._previous.setdefault(bad, bad.shape)
                bad.set_shape(None)

    def detach(self) -> None:
        """Remove every suspect stem from the region."""
        for candidate in self.candidates:
            self.region.remove_glyph(candidate.stem)
            candidate.state = CorrectionState.DETACHED

    def resegment(self) -> None:
        """Rebuild glyphs from all loose sections at once."""
        self.region.extract_new_glyphs()
        for candidate in self.candidates:
            candidate.state = CorrectionState.RESEGMENTED

    def reclassify(self) -> None:
        """
        Evaluate every unassigned glyph, counting the well-known ones.

        A deassigned glyph recognized again as the shape it had before the
        scan is not a new symbol.
        """
        for glyph in self.region.glyphs:
            if glyph.shape is not None or glyph.manual:
                continue

            vote = self.evaluator.evaluate(glyph, self.region, self.config.min_grade)
            if vote is None:
                continue

            glyph.set_evaluation(vote)
            if glyph in self._previous and self._previous[glyph] is glyph.shape:
                continue
            if glyph.is_well_known(self.config.well_known_grade):
                logger.debug("%sNew symbol %s", self.region.log_prefix, glyph)
                self.symbols.append(glyph)

        for candidate in self.candidates:
            candidate.state = CorrectionState.RECLASSIFIED

    def verify(self) -> None:
        """Keep stems replaced by a symbol removed, restore the others."""
        for candidate in self.candidates:
            stem = candidate.stem
            holders = self._holders(stem)

            if any(h.is_well_known(self.config.well_known_grade) for h in holders):
                candidate.state = CorrectionState.COMMITTED
                logger.debug("%sDiscarded stem %s", self.region.log_prefix, stem)
                continue

            self.rollback(candidate, holders)

    def rollback(self, candidate: StemCandidate, holders: list[Glyph]) -> None:
        """
        Give the stem its sections back.

        Bads keep the verdict they got in the reclassification, those with
        no verdict stay deassigned.
        """
        # A holder shared by several stems is removed only once
        for holder in holders:
            if holder.active:
                self.region.remove_glyph(holder)

        self.region.add_glyph(candidate.stem)
        candidate.state = CorrectionState.ROLLED_BACK
        logger.debug("%sRestored stem %s", self.region.log_prefix, candidate.stem)

    def _holders(self, stem: Glyph) -> list[Glyph]:
        """Distinct glyphs now owning the stem's former sections, in id order."""
        holders = {}
        for sid in stem.members:
            holder = self.region.owner_of(sid)
            if holder is not None:
                holders[holder.id] = holder
        return [holders[gid] for gid in sorted(holders)]


def run_stem_pattern(
    region: Region,
    evaluator: ShapeEvaluator,
    config: StemPatternConfig | None = None,
) -> int:
    """
    Look for stems that should not be kept, rebuild and recognize what is around them.

    Args:
        region: Region to correct.
        evaluator: Classifier used on the rebuilt glyphs.
        config: Grades to use (defaults to StemPatternConfig()).

    Returns:
        Number of symbols recognized.
    """
    return StemCorrection(region, evaluator, config).run()


def stem_pattern(evaluator: ShapeEvaluator, config: StemPatternConfig | None = None) -> PatternStrategy:
    """Stem pattern as a strategy, with its evaluator and config bound."""
    return PatternStrategy("stem", functools.partial(run_stem_pattern, evaluator=evaluator, config=config))
