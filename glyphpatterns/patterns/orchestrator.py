"""
Pattern orchestrator.

Runs the registered correction patterns on each region, in a fixed order:
1. Stem pattern (remove unanchored stems, recognize what they hid)
2. Dot pattern (turn sentence dashes mistaken for dots into characters)

A structural graph error aborts the current region only; the other
regions are still processed.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from glyphpatterns.classifier.evaluator import ShapeEvaluator
from glyphpatterns.classifier.registry import (
    ConfiguredEvaluator,
    EvaluatorDescriptor,
    create_evaluator,
)
from glyphpatterns.config import EngineConfig
from glyphpatterns.exceptions import GraphConsistencyError
from glyphpatterns.graph.region import Region
from glyphpatterns.patterns.base import PatternStrategy
from glyphpatterns.patterns.dot import dot_pattern
from glyphpatterns.patterns.stem import stem_pattern

logger = logging.getLogger(__name__)


# =============================================================================
# DATA STRUCTURES
# =============================================================================


@dataclass
class RegionReport:
    """Result of running the patterns on one region."""

    region_id: int
    corrections: dict[str, int] = field(default_factory=dict)
    passes: int = 0
    failed: bool = False
    error: str | None = None
    processing_time_ms: float = 0.0

    @property
    def total_corrections(self) -> int:
        return sum(self.corrections.values())


@dataclass
class OrchestratorStats:
    """Aggregate statistics over several regions."""

    regions_processed: int = 0
    regions_failed: int = 0
    total_corrections: int = 0
    corrections_by_pattern: dict[str, int] = field(default_factory=dict)
    total_processing_time_ms: float = 0.0

    def add(self, report: RegionReport) -> None:
        self.regions_processed += 1
        if report.failed:
            self.regions_failed += 1
        for name, nb in report.corrections.items():
            self.corrections_by_pattern[name] = self.corrections_by_pattern.get(name, 0) + nb
            self.total_corrections += nb
        self.total_processing_time_ms += report.processing_time_ms


# =============================================================================
# ORCHESTRATOR
# =============================================================================

PatternFactory = Callable[[EngineConfig, ShapeEvaluator], PatternStrategy]

PATTERN_FACTORIES: dict[str, PatternFactory] = {
    "stem": lambda config, evaluator: stem_pattern(evaluator, config.stem),
    "dot": lambda config, evaluator: dot_pattern(config.dot),
}


class PatternOrchestrator:
    """
    Runs correction strategies over regions.

    Usage:
        orchestrator = PatternOrchestrator.from_config(EngineConfig())
        reports, stats = orchestrator.run_regions(regions)
        for report in reports:
            print(report.region_id, report.corrections)
    """

    def __init__(
        self,
        strategies: Sequence[PatternStrategy],
        *,
        max_passes: int = 1,
        validate_graph: bool = False,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            strategies: Strategies to run, in order.
            max_passes: Maximum runs of the whole sequence on one region;
                another pass happens only if the previous one corrected something.
            validate_graph: Check region invariants after every strategy.
        """
        if max_passes < 1:
            raise ValueError(f"max_passes must be >= 1, got {max_passes}")
        self.strategies = list(strategies)
        self.max_passes = max_passes
        self.validate_graph = validate_graph

    @classmethod
    def from_config(
        cls,
        config: EngineConfig | None = None,
        evaluator: ShapeEvaluator | None = None,
    ) -> PatternOrchestrator:
        """
        Build an orchestrator with the strategies enabled in a configuration.

        Args:
            config: Engine configuration (defaults to EngineConfig()).
            evaluator: Evaluator to use; when omitted one is built from
                config.classifier.
        """
        config = config or EngineConfig()
        if evaluator is None:
            evaluator = create_evaluator(EvaluatorDescriptor.from_config(config.classifier))

        enabled = {"stem": config.stem.enabled, "dot": config.dot.enabled}
        strategies = [
            PATTERN_FACTORIES[name](config, evaluator)
            for name in config.pattern_order
            if enabled.get(name, True)
        ]
        return cls(strategies, max_passes=config.max_passes, validate_graph=config.validate_graph)

    @classmethod
    def with_default_evaluator(cls, config: EngineConfig | None = None) -> PatternOrchestrator:
        """Build an orchestrator whose evaluator follows DEFAULT_EVALUATOR."""
        return cls.from_config(config, evaluator=ConfiguredEvaluator())

    def run_region(self, region: Region) -> RegionReport:
        """
        Run all strategies on one region.

        Args:
            region: Region to correct.

        Returns:
            RegionReport with per-strategy correction counts.
        """
        start_time = time.time()
        report = RegionReport(region_id=region.id)
        report.corrections = {s.name: 0 for s in self.strategies}

        try:
            for _ in range(self.max_passes):
                report.passes += 1
                nb_pass = 0
                for strategy in self.strategies:
                    nb = strategy(region)
                    if self.validate_graph:
                        region.check_consistency()
                    report.corrections[strategy.name] += nb
                    nb_pass += nb
                    logger.debug("%s%s: %d", region.log_prefix, strategy, nb)
                if nb_pass == 0:
                    break
        except GraphConsistencyError as e:
            report.failed = True
            report.error = str(e)
            logger.error("%sPattern run aborted: %s", region.log_prefix, e)

        report.processing_time_ms = (time.time() - start_time) * 1000

        if report.total_corrections:
            logger.info(
                "%sCorrections: %s",
                region.log_prefix,
                ", ".join(f"{name}={nb}" for name, nb in report.corrections.items()),
            )
        return report

    def run_regions(
        self,
        regions: Iterable[Region],
        parallel: bool = False,
        max_workers: int = 4,
    ) -> tuple[list[RegionReport], OrchestratorStats]:
        """
        Run all strategies on several independent regions.

        Args:
            regions: Regions to correct; each must own its own arena.
            parallel: Process regions on a thread pool.
            max_workers: Pool size when parallel.

        Returns:
            Tuple of (reports in region order, aggregate statistics).
        """
        regions = list(regions)

        if parallel and len(regions) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                reports = list(pool.map(self.run_region, regions))
        else:
            reports = [self.run_region(region) for region in regions]

        stats = OrchestratorStats()
        for report in reports:
            stats.add(report)

        if stats.regions_failed:
            logger.warning(
                "%d of %d regions failed", stats.regions_failed, stats.regions_processed
            )
        return reports, stats


def run_patterns(
    regions: Iterable[Region],
    config: EngineConfig | None = None,
    evaluator: ShapeEvaluator | None = None,
) -> tuple[list[RegionReport], OrchestratorStats]:
    """
    Run the configured patterns over regions.

    Args:
        regions: Regions to correct.
        config: Engine configuration (defaults to EngineConfig()).
        evaluator: Evaluator to use instead of the configured one.

    Returns:
        Tuple of (region reports, aggregate statistics).
    """
    config = config or EngineConfig()
    orchestrator = PatternOrchestrator.from_config(config, evaluator)
    return orchestrator.run_regions(
        regions, parallel=config.parallel, max_workers=config.max_workers
    )
