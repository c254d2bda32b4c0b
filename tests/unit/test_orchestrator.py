"""
Unit tests for the pattern orchestrator.
"""

import pytest

from glyphpatterns.classifier import ConfiguredEvaluator, NullEvaluator
from glyphpatterns.config import DotPatternConfig, EngineConfig, StemPatternConfig
from glyphpatterns.exceptions import GraphConsistencyError
from glyphpatterns.models import Evaluation, Shape
from glyphpatterns.patterns import (
    OrchestratorStats,
    PatternOrchestrator,
    PatternStrategy,
    RegionReport,
    run_patterns,
)


def recording(name, calls, result=0):
    """Strategy appending (name, region id) to calls and returning result."""

    def _run(region):
        calls.append((name, region.id))
        return result

    return PatternStrategy(name, _run)


@pytest.fixture
def regions(make_region):
    """Three independent single-section regions."""
    return [make_region([(0, 0, 2, 2)], region_id=i) for i in (1, 2, 3)]


class TestStrategyOrder:
    """Strategies run in a fixed, configured order."""

    def test_strategies_run_in_order(self, regions):
        """Every strategy runs on the region, in list order."""
        calls = []
        orchestrator = PatternOrchestrator([recording("stem", calls), recording("dot", calls)])

        orchestrator.run_region(regions[0])

        assert calls == [("stem", 1), ("dot", 1)]

    def test_default_order_from_config(self):
        """Stem runs before dot by default."""
        orchestrator = PatternOrchestrator.from_config(EngineConfig(), NullEvaluator())

        assert [s.name for s in orchestrator.strategies] == ["stem", "dot"]

    def test_custom_order_from_config(self):
        """pattern_order is honored."""
        config = EngineConfig(pattern_order=("dot", "stem"))
        orchestrator = PatternOrchestrator.from_config(config, NullEvaluator())

        assert [s.name for s in orchestrator.strategies] == ["dot", "stem"]

    def test_disabled_pattern_is_skipped(self):
        """A disabled pattern is not part of the run."""
        config = EngineConfig(stem=StemPatternConfig(enabled=False))
        orchestrator = PatternOrchestrator.from_config(config, NullEvaluator())

        assert [s.name for s in orchestrator.strategies] == ["dot"]

    def test_all_disabled(self, regions):
        """With no strategy, regions are still reported."""
        config = EngineConfig(
            stem=StemPatternConfig(enabled=False),
            dot=DotPatternConfig(enabled=False),
        )
        orchestrator = PatternOrchestrator.from_config(config, NullEvaluator())

        report = orchestrator.run_region(regions[0])

        assert report.corrections == {}
        assert report.passes == 1
        assert not report.failed

    def test_evaluator_built_from_config(self):
        """Without an explicit evaluator, one is created from the classifier section."""
        orchestrator = PatternOrchestrator.from_config(EngineConfig())

        assert len(orchestrator.strategies) == 2

    def test_with_default_evaluator(self):
        """The stem strategy is bound to a configured evaluator."""
        orchestrator = PatternOrchestrator.with_default_evaluator()

        stem = orchestrator.strategies[0]
        assert stem.name == "stem"
        assert isinstance(stem.run.keywords["evaluator"], ConfiguredEvaluator)

    def test_invalid_max_passes(self):
        """max_passes below 1 is rejected."""
        with pytest.raises(ValueError):
            PatternOrchestrator([], max_passes=0)


class TestPasses:
    """The pattern sequence can be repeated while it corrects something."""

    def test_single_pass_by_default(self, regions):
        """Only one pass even if something was corrected."""
        calls = []
        orchestrator = PatternOrchestrator([recording("stem", calls, result=1)])

        report = orchestrator.run_region(regions[0])

        assert report.passes == 1
        assert report.corrections == {"stem": 1}

    def test_repeat_until_nothing_corrected(self, regions):
        """Passes stop as soon as a whole pass corrects nothing."""
        results = iter([1, 1, 0, 5])
        strategy = PatternStrategy("stem", lambda region: next(results))
        orchestrator = PatternOrchestrator([strategy], max_passes=10)

        report = orchestrator.run_region(regions[0])

        assert report.passes == 3
        assert report.corrections == {"stem": 2}

    def test_max_passes_bounds_the_run(self, regions):
        """No more than max_passes passes are run."""
        calls = []
        orchestrator = PatternOrchestrator([recording("dot", calls, result=1)], max_passes=3)

        report = orchestrator.run_region(regions[0])

        assert report.passes == 3
        assert len(calls) == 3
        assert report.total_corrections == 3


class TestFailureIsolation:
    """A structural error aborts its region only."""

    @staticmethod
    def failing_on(region_id):
        def _run(region):
            if region.id == region_id:
                raise GraphConsistencyError("broken ownership")
            return 1

        return PatternStrategy("stem", _run)

    def test_failed_region_is_reported(self, regions):
        """The failing region is marked failed with its error."""
        orchestrator = PatternOrchestrator([self.failing_on(2)])

        reports, stats = orchestrator.run_regions(regions)

        assert [r.failed for r in reports] == [False, True, False]
        assert "broken ownership" in reports[1].error
        assert stats.regions_processed == 3
        assert stats.regions_failed == 1
        assert stats.total_corrections == 2

    def test_failure_stops_remaining_strategies(self, regions):
        """Strategies after the failing one do not run on that region."""
        calls = []
        orchestrator = PatternOrchestrator([self.failing_on(1), recording("dot", calls)])

        report = orchestrator.run_region(regions[0])

        assert report.failed
        assert calls == []

    def test_failure_is_logged(self, regions, caplog):
        """Aborted regions are logged as errors, failures summarized as warning."""
        orchestrator = PatternOrchestrator([self.failing_on(2)])

        with caplog.at_level("WARNING", logger="glyphpatterns"):
            orchestrator.run_regions(regions)

        messages = [r.getMessage() for r in caplog.records]
        assert any("S2 Pattern run aborted" in m for m in messages)
        assert any("1 of 3 regions failed" in m for m in messages)

    def test_other_errors_propagate(self, regions):
        """Only graph consistency errors are contained."""

        def _boom(region):
            raise RuntimeError("bug")

        orchestrator = PatternOrchestrator([PatternStrategy("stem", _boom)])

        with pytest.raises(RuntimeError):
            orchestrator.run_region(regions[0])

    def test_validate_graph_detects_corruption(self, make_region):
        """With validate_graph, a strategy breaking ownership fails the region."""
        region = make_region([(0, 0, 2, 2)])
        glyph = region.create_glyph([0])

        def _corrupt(region):
            # Deactivated without releasing its section
            glyph.active = False
            return 0

        strategy = PatternStrategy("stem", _corrupt)

        report = PatternOrchestrator([strategy]).run_region(region)
        assert not report.failed

        glyph.active = True
        report = PatternOrchestrator([strategy], validate_graph=True).run_region(region)
        assert report.failed


class TestParallel:
    """Regions can be processed on a thread pool."""

    def test_parallel_reports_in_region_order(self, regions):
        """Reports follow the input order whatever the scheduling."""
        calls = []
        orchestrator = PatternOrchestrator([recording("dot", calls, result=1)])

        reports, stats = orchestrator.run_regions(regions, parallel=True, max_workers=3)

        assert [r.region_id for r in reports] == [1, 2, 3]
        assert sorted(calls) == [("dot", 1), ("dot", 2), ("dot", 3)]
        assert stats.corrections_by_pattern == {"dot": 3}

    def test_parallel_stem_runs(self, make_region, make_evaluator):
        """Real stem corrections on independent regions, in parallel."""
        regions = []
        stems = []
        for i in range(4):
            region = make_region([(10, 0, 2, 40), (12, 30, 10, 8)], region_id=i + 1)
            stems.append(region.create_glyph([0], shape=Shape.STEM, grade=0.9))
            regions.append(region)
        evaluator = make_evaluator({(0, 1): Evaluation(Shape.NOTEHEAD_BLACK, 0.9)})
        config = EngineConfig(parallel=True, max_workers=4)

        reports, stats = run_patterns(regions, config, evaluator)

        assert stats.corrections_by_pattern == {"stem": 4, "dot": 0}
        assert not any(stem.active for stem in stems)
        for region in regions:
            region.check_consistency()


class TestRunPatterns:
    """Test the run_patterns entry point."""

    def test_run_patterns(self, make_region, make_evaluator):
        """A lonely stem is discarded and reported."""
        region = make_region([(10, 0, 2, 40), (12, 30, 10, 8)])
        region.create_glyph([0], shape=Shape.STEM, grade=0.9)
        evaluator = make_evaluator({(0, 1): Evaluation(Shape.NOTEHEAD_BLACK, 0.9)})

        reports, stats = run_patterns([region], evaluator=evaluator)

        assert reports[0].corrections == {"stem": 1, "dot": 0}
        assert stats.total_corrections == 1
        assert stats.regions_failed == 0

    def test_empty_regions(self):
        """No region, no report."""
        reports, stats = run_patterns([], evaluator=NullEvaluator())

        assert reports == []
        assert stats.regions_processed == 0


class TestReports:
    """Test report and statistics structures."""

    def test_total_corrections(self):
        """Sum over patterns."""
        report = RegionReport(region_id=1, corrections={"stem": 2, "dot": 3})
        assert report.total_corrections == 5

    def test_stats_add(self):
        """Statistics aggregate per-pattern counts and failures."""
        stats = OrchestratorStats()
        stats.add(RegionReport(1, {"stem": 1, "dot": 0}, processing_time_ms=2.0))
        stats.add(RegionReport(2, {"stem": 2}, failed=True, processing_time_ms=3.0))

        assert stats.regions_processed == 2
        assert stats.regions_failed == 1
        assert stats.corrections_by_pattern == {"stem": 3, "dot": 0}
        assert stats.total_corrections == 3
        assert stats.total_processing_time_ms == 5.0
