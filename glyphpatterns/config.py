"""
Configuration for the glyph pattern-correction engine.

Thresholds are configuration, not part of the correction contract: every
default below can be overridden in code or loaded from a YAML file.

Example:
    >>> config = EngineConfig(
    ...     dot=DotPatternConfig(max_line_dx=8.0),
    ...     max_passes=2,
    ... )
    >>> orchestrator = PatternOrchestrator.from_config(config)
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from glyphpatterns.exceptions import ConfigurationError

# Names accepted in EngineConfig.pattern_order
KNOWN_PATTERNS = ("stem", "dot")


def _check_grade(name: str, value: float) -> None:
    if value < 0.0 or value > 1.0:
        raise ConfigurationError(f"{name} must be between 0.0 and 1.0, got {value}")


@dataclass
class StemPatternConfig:
    """
    Parameters of the stem correction pattern.

    Example:
        >>> StemPatternConfig(min_grade=0.2, well_known_grade=0.7)
    """

    enabled: bool = True

    # Minimum grade for the classifier to return a verdict at all
    min_grade: float = 0.3

    # Minimum grade for an assigned glyph to count as a reliable symbol
    well_known_grade: float = 0.6

    def __post_init__(self):
        """Validate configuration."""
        _check_grade("min_grade", self.min_grade)
        _check_grade("well_known_grade", self.well_known_grade)
        if self.min_grade > self.well_known_grade:
            raise ConfigurationError(
                f"min_grade ({self.min_grade}) must not exceed "
                f"well_known_grade ({self.well_known_grade})"
            )


@dataclass
class DotPatternConfig:
    """
    Parameters of the dot/dash correction pattern.

    Distances are interline fractions, converted to pixels with the
    region scale.
    """

    enabled: bool = True
    max_line_dx: float = 10.0  # Maximum abscissa offset from sentence end to dash
    max_line_dy: float = 2.0  # Maximum distance from sentence baseline to dash
    min_aspect: float = 2.0  # Minimum width / height ratio for a dash
    dash_text: str = "-"

    def __post_init__(self):
        """Validate configuration."""
        if self.max_line_dx < 0:
            raise ConfigurationError(f"max_line_dx must be >= 0, got {self.max_line_dx}")
        if self.max_line_dy < 0:
            raise ConfigurationError(f"max_line_dy must be >= 0, got {self.max_line_dy}")
        if self.min_aspect <= 0:
            raise ConfigurationError(f"min_aspect must be > 0, got {self.min_aspect}")
        if not self.dash_text:
            raise ConfigurationError("dash_text must not be empty")


@dataclass
class ClassifierConfig:
    """Kind of shape evaluator and its numeric parameters."""

    kind: str = "template"
    parameters: dict[str, float] = field(default_factory=dict)

    def __post_init__(self):
        """Validate configuration."""
        self.kind = self.kind.lower()
        for name, value in self.parameters.items():
            if not isinstance(value, (int, float)):
                raise ConfigurationError(
                    f"classifier parameter {name!r} must be numeric, got {value!r}"
                )


@dataclass
class FilterConfig:
    """Kind of pixel filter and its numeric parameters."""

    kind: str = "global"
    threshold: int = 140  # global: gray level at or below which a pixel is foreground
    mean_coeff: float = 0.7  # adaptive: weight of the local mean
    std_dev_coeff: float = 0.9  # adaptive: weight of the local standard deviation
    window: int = 31  # adaptive: side of the neighborhood window

    def __post_init__(self):
        """Validate configuration."""
        self.kind = self.kind.lower()
        valid_kinds = ("global", "adaptive")
        if self.kind not in valid_kinds:
            raise ConfigurationError(
                f"filter kind must be one of {valid_kinds}, got {self.kind!r}"
            )
        if not 0 <= self.threshold <= 255:
            raise ConfigurationError(f"threshold must be between 0 and 255, got {self.threshold}")
        if self.window < 3:
            raise ConfigurationError(f"window must be >= 3, got {self.window}")


@dataclass
class EngineConfig:
    """
    Configuration of a whole correction run.

    All options have sensible defaults. Create a config only
    if you need to customize behavior.
    """

    stem: StemPatternConfig = field(default_factory=StemPatternConfig)
    dot: DotPatternConfig = field(default_factory=DotPatternConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    filter: FilterConfig = field(default_factory=FilterConfig)

    # Fixed, deterministic order in which patterns run on a region
    pattern_order: tuple[str, ...] = KNOWN_PATTERNS

    # Maximum number of times the whole sequence is run on a region
    max_passes: int = 1

    # Region-level parallelism
    parallel: bool = False
    max_workers: int = 4

    # Check ownership invariants after each pattern
    validate_graph: bool = False

    def __post_init__(self):
        """Validate configuration."""
        self.pattern_order = tuple(self.pattern_order)
        for name in self.pattern_order:
            if name not in KNOWN_PATTERNS:
                raise ConfigurationError(
                    f"pattern_order entries must be among {KNOWN_PATTERNS}, got {name!r}"
                )
        if len(set(self.pattern_order)) != len(self.pattern_order):
            raise ConfigurationError(f"pattern_order has duplicates: {self.pattern_order}")
        if self.max_passes < 1:
            raise ConfigurationError(f"max_passes must be >= 1, got {self.max_passes}")
        if self.max_workers < 1:
            raise ConfigurationError(f"max_workers must be >= 1, got {self.max_workers}")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EngineConfig:
        """
        Build a configuration from a plain mapping (e.g. parsed YAML).

        Raises:
            ConfigurationError: On unknown keys or invalid values.
        """
        nested = {
            "stem": StemPatternConfig,
            "dot": DotPatternConfig,
            "classifier": ClassifierConfig,
            "filter": FilterConfig,
        }
        kwargs: dict[str, Any] = {}
        for key, value in (data or {}).items():
            if key in nested:
                kwargs[key] = _build(nested[key], value, prefix=key)
            elif key in _field_names(cls):
                kwargs[key] = value
            else:
                raise ConfigurationError(f"Unknown configuration key: {key!r}")
        return cls(**kwargs)


def _field_names(cls) -> set[str]:
    return {f.name for f in fields(cls)}


def _build(cls, data: Any, prefix: str):
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ConfigurationError(f"{prefix} must be a mapping, got {type(data).__name__}")
    unknown = set(data) - _field_names(cls)
    if unknown:
        raise ConfigurationError(f"Unknown {prefix} keys: {sorted(unknown)}")
    try:
        return cls(**data)
    except TypeError as e:
        raise ConfigurationError(f"Invalid {prefix} configuration: {e}") from e


def load_config(path: str | Path) -> EngineConfig:
    """
    Load an EngineConfig from a YAML file.

    Args:
        path: Path to a YAML document whose top level mirrors EngineConfig.

    Returns:
        The validated configuration.

    Raises:
        ConfigurationError: If the file cannot be parsed or holds invalid values.
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return EngineConfig()
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration root must be a mapping in {path}")
    return EngineConfig.from_dict(data)
