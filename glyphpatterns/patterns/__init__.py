"""
Glyph correction patterns and their orchestrator.

Each pattern is a function `(region) -> correction count`:
- Stem pattern: discard unanchored stems when a better symbol appears
- Dot pattern: reassign dots that are sentence dashes
"""

from glyphpatterns.patterns.base import PatternFunction, PatternStrategy
from glyphpatterns.patterns.dot import (
    dot_pattern,
    embracing_line,
    is_dash_looking,
    questionable_dots,
    run_dot_pattern,
)
from glyphpatterns.patterns.orchestrator import (
    PATTERN_FACTORIES,
    OrchestratorStats,
    PatternOrchestrator,
    RegionReport,
    run_patterns,
)
from glyphpatterns.patterns.stem import (
    CorrectionState,
    StemCandidate,
    StemCorrection,
    is_reliable_stem_symbol,
    run_stem_pattern,
    stem_pattern,
)

__all__ = [
    # Strategies
    "PatternFunction",
    "PatternStrategy",
    # Stem
    "CorrectionState",
    "StemCandidate",
    "StemCorrection",
    "is_reliable_stem_symbol",
    "run_stem_pattern",
    "stem_pattern",
    # Dot
    "questionable_dots",
    "embracing_line",
    "is_dash_looking",
    "run_dot_pattern",
    "dot_pattern",
    # Orchestration
    "PATTERN_FACTORIES",
    "PatternOrchestrator",
    "RegionReport",
    "OrchestratorStats",
    "run_patterns",
]
