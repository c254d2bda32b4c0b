"""
Evaluator registry and the process-wide default evaluator setting.

The kind of evaluator to use is configuration (a kind plus numeric
parameters). Kinds map to constructor functions through an explicit
table; the default descriptor lives in a live setting, and evaluators
bound to that setting pick up changes on their next evaluation.

Example:
    >>> evaluator = ConfiguredEvaluator()  # follows DEFAULT_EVALUATOR
    >>> DEFAULT_EVALUATOR.set(EvaluatorDescriptor(EvaluatorKind.NONE))
    True
    >>> evaluator.evaluate(glyph, region, 0.3)  # now uses NullEvaluator
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from glyphpatterns.classifier.evaluator import NullEvaluator, ShapeEvaluator, TemplateEvaluator
from glyphpatterns.exceptions import UnknownKindError

if TYPE_CHECKING:
    from glyphpatterns.config import ClassifierConfig
    from glyphpatterns.graph.glyphs import Glyph
    from glyphpatterns.graph.region import Region
    from glyphpatterns.models import Evaluation

logger = logging.getLogger(__name__)


class EvaluatorKind(Enum):
    """Available evaluator implementations."""

    TEMPLATE = "template"
    NONE = "none"


@dataclass(frozen=True)
class EvaluatorDescriptor:
    """Kind of evaluator plus its numeric parameters."""

    kind: EvaluatorKind = EvaluatorKind.TEMPLATE
    parameters: Mapping[str, float] = field(default_factory=dict)

    def __hash__(self) -> int:
        return hash((self.kind, tuple(sorted(self.parameters.items()))))

    def __str__(self) -> str:
        params = ", ".join(f"{k}={v}" for k, v in sorted(self.parameters.items()))
        return f"{self.kind.value}({params})"

    @classmethod
    def from_config(cls, config: ClassifierConfig) -> EvaluatorDescriptor:
        """
        Build a descriptor from a ClassifierConfig.

        Raises:
            UnknownKindError: If the configured kind is not an EvaluatorKind.
        """
        try:
            kind = EvaluatorKind(config.kind)
        except ValueError:
            valid = [k.value for k in EvaluatorKind]
            raise UnknownKindError(
                f"Unknown evaluator kind {config.kind!r}. Supported: {valid}"
            ) from None
        return cls(kind, dict(config.parameters))


EvaluatorFactory = Callable[[EvaluatorDescriptor], ShapeEvaluator]


def _template_factory(descriptor: EvaluatorDescriptor) -> ShapeEvaluator:
    return TemplateEvaluator(distance_scale=descriptor.parameters.get("distance_scale", 1.0))


def _null_factory(descriptor: EvaluatorDescriptor) -> ShapeEvaluator:
    return NullEvaluator()


_FACTORIES: dict[EvaluatorKind, EvaluatorFactory] = {
    EvaluatorKind.TEMPLATE: _template_factory,
    EvaluatorKind.NONE: _null_factory,
}


def register_evaluator(kind: EvaluatorKind, factory: EvaluatorFactory) -> None:
    """Register (or replace) the constructor used for an evaluator kind."""
    _FACTORIES[kind] = factory
    logger.debug("Registered evaluator factory for %s", kind.value)


def create_evaluator(descriptor: EvaluatorDescriptor) -> ShapeEvaluator:
    """
    Build the evaluator described by a descriptor.

    Raises:
        UnknownKindError: If no factory is registered for the kind.
    """
    factory = _FACTORIES.get(descriptor.kind)
    if factory is None:
        raise UnknownKindError(f"No evaluator registered for kind {descriptor.kind.value!r}")
    return factory(descriptor)


class EvaluatorSetting:
    """
    A live, thread-safe evaluator descriptor.

    Each effective change bumps `version`, which bound evaluators use to
    notice that they must rebuild their delegate.
    """

    def __init__(self, descriptor: EvaluatorDescriptor | None = None) -> None:
        self._descriptor = descriptor or EvaluatorDescriptor()
        self._version = 0
        self._lock = threading.Lock()

    def get(self) -> EvaluatorDescriptor:
        with self._lock:
            return self._descriptor

    @property
    def version(self) -> int:
        with self._lock:
            return self._version

    def snapshot(self) -> tuple[EvaluatorDescriptor, int]:
        """Current descriptor and version, read together."""
        with self._lock:
            return self._descriptor, self._version

    def set(self, descriptor: EvaluatorDescriptor) -> bool:
        """
        Change the descriptor.

        Returns:
            True if the descriptor actually changed.
        """
        with self._lock:
            if descriptor == self._descriptor:
                return False
            self._descriptor = descriptor
            self._version += 1

        logger.info("Default evaluator is now '%s'", descriptor)
        return True


# Process-wide default
DEFAULT_EVALUATOR = EvaluatorSetting()


class ConfiguredEvaluator(ShapeEvaluator):
    """
    Evaluator that delegates to whatever its setting currently describes.

    The delegate is rebuilt lazily, on the first evaluation after a change.
    """

    name = "configured"

    def __init__(self, setting: EvaluatorSetting | None = None) -> None:
        self.setting = setting or DEFAULT_EVALUATOR
        self._delegate: ShapeEvaluator | None = None
        self._version = -1
        self._lock = threading.Lock()

    @property
    def delegate(self) -> ShapeEvaluator:
        """The evaluator matching the current setting."""
        descriptor, version = self.setting.snapshot()
        with self._lock:
            if self._delegate is None or version != self._version:
                self._delegate = create_evaluator(descriptor)
                self._version = version
                logger.debug("Resolved evaluator %r for '%s'", self._delegate, descriptor)
            return self._delegate

    def evaluate(self, glyph: Glyph, region: Region, min_grade: float) -> Evaluation | None:
        return self.delegate.evaluate(glyph, region, min_grade)

    def __repr__(self) -> str:
        return f"ConfiguredEvaluator({self.setting.get()})"
