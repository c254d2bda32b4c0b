"""
Classifier port for the correction patterns.

`evaluate(glyph, region, min_grade) -> Evaluation | None`, with:
- NullEvaluator: never votes
- TemplateEvaluator: nearest shape template in feature space
- ConfiguredEvaluator: follows the process-wide DEFAULT_EVALUATOR setting
"""

from glyphpatterns.classifier.evaluator import (
    DEFAULT_TEMPLATES,
    FEATURE_NAMES,
    NullEvaluator,
    ShapeEvaluator,
    ShapeTemplate,
    TemplateEvaluator,
    feature_vector,
    glyph_features,
    value_features,
)
from glyphpatterns.classifier.registry import (
    DEFAULT_EVALUATOR,
    ConfiguredEvaluator,
    EvaluatorDescriptor,
    EvaluatorKind,
    EvaluatorSetting,
    create_evaluator,
    register_evaluator,
)

__all__ = [
    # Port
    "ShapeEvaluator",
    # Implementations
    "NullEvaluator",
    "TemplateEvaluator",
    "ShapeTemplate",
    "DEFAULT_TEMPLATES",
    "ConfiguredEvaluator",
    # Features
    "FEATURE_NAMES",
    "feature_vector",
    "glyph_features",
    "value_features",
    # Registry
    "EvaluatorKind",
    "EvaluatorDescriptor",
    "EvaluatorSetting",
    "DEFAULT_EVALUATOR",
    "create_evaluator",
    "register_evaluator",
]
