"""
glyphpatterns: pattern-based correction of segmented music glyphs.

Sections (connected runs of foreground pixels) are grouped into glyphs,
glyphs are classified, and correction patterns revisit doubtful glyphs:
they speculatively undo a grouping, rebuild glyphs from the freed
sections, classify them again, and keep or roll back the change depending
on the classifier confidence.

Example:
    >>> import glyphpatterns
    >>> region = glyphpatterns.build_region(image)
    >>> reports, stats = glyphpatterns.run_patterns([region])
    >>> print(stats.corrections_by_pattern)
"""

from glyphpatterns.classifier import (
    DEFAULT_EVALUATOR,
    ConfiguredEvaluator,
    EvaluatorDescriptor,
    EvaluatorKind,
    NullEvaluator,
    ShapeEvaluator,
    TemplateEvaluator,
)
from glyphpatterns.config import (
    ClassifierConfig,
    DotPatternConfig,
    EngineConfig,
    FilterConfig,
    StemPatternConfig,
    load_config,
)
from glyphpatterns.exceptions import (
    ConfigurationError,
    GlyphPatternsError,
    GraphConsistencyError,
    UnknownKindError,
)
from glyphpatterns.graph import Glyph, GlyphValue, Region, Run, Section, SectionArena
from glyphpatterns.models import (
    DOTS,
    STEM_SYMBOLS,
    Evaluation,
    Line,
    Orientation,
    Point,
    Rect,
    Scale,
    Shape,
)
from glyphpatterns.patterns import (
    PatternOrchestrator,
    PatternStrategy,
    RegionReport,
    dot_pattern,
    run_dot_pattern,
    run_patterns,
    run_stem_pattern,
    stem_pattern,
)
from glyphpatterns.segmentation import build_region
from glyphpatterns.text import TextLine, TextWord

__version__ = "0.1.0"
__all__ = [
    # Main API
    "run_patterns",
    "build_region",
    "PatternOrchestrator",
    "RegionReport",
    # Patterns
    "PatternStrategy",
    "run_stem_pattern",
    "stem_pattern",
    "run_dot_pattern",
    "dot_pattern",
    # Configuration
    "EngineConfig",
    "StemPatternConfig",
    "DotPatternConfig",
    "ClassifierConfig",
    "FilterConfig",
    "load_config",
    # Graph
    "Run",
    "Section",
    "SectionArena",
    "Glyph",
    "GlyphValue",
    "Region",
    # Text
    "TextLine",
    "TextWord",
    # Models
    "Shape",
    "STEM_SYMBOLS",
    "DOTS",
    "Orientation",
    "Point",
    "Rect",
    "Line",
    "Scale",
    "Evaluation",
    # Classifier
    "ShapeEvaluator",
    "NullEvaluator",
    "TemplateEvaluator",
    "ConfiguredEvaluator",
    "EvaluatorKind",
    "EvaluatorDescriptor",
    "DEFAULT_EVALUATOR",
    # Exceptions
    "GlyphPatternsError",
    "ConfigurationError",
    "UnknownKindError",
    "GraphConsistencyError",
]
