"""
Pixel filters: decide which pixels of a grayscale image are foreground.

Two kinds are available:
- GLOBAL: one gray threshold for the whole image
- ADAPTIVE: a threshold computed from the local mean and standard
  deviation around each pixel

The kind and its parameters form a descriptor; descriptors map to filter
classes through an explicit registry.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Union

import numpy as np
from PIL import Image

from glyphpatterns.exceptions import UnknownKindError

if TYPE_CHECKING:
    from glyphpatterns.config import FilterConfig

logger = logging.getLogger(__name__)


class FilterKind(Enum):
    """Available pixel filters."""

    GLOBAL = "global"
    ADAPTIVE = "adaptive"


@dataclass(frozen=True)
class GlobalDescriptor:
    """Global filter: foreground where gray <= threshold."""

    threshold: int = 140

    @property
    def kind(self) -> FilterKind:
        return FilterKind.GLOBAL


@dataclass(frozen=True)
class AdaptiveDescriptor:
    """Adaptive filter: foreground where gray <= mean * mean_coeff + std * std_dev_coeff."""

    mean_coeff: float = 0.7
    std_dev_coeff: float = 0.9
    window: int = 31

    @property
    def kind(self) -> FilterKind:
        return FilterKind.ADAPTIVE


FilterDescriptor = Union[GlobalDescriptor, AdaptiveDescriptor]


def descriptor_from_config(config: FilterConfig) -> FilterDescriptor:
    """Build the filter descriptor matching a FilterConfig."""
    if config.kind == FilterKind.GLOBAL.value:
        return GlobalDescriptor(threshold=config.threshold)
    if config.kind == FilterKind.ADAPTIVE.value:
        return AdaptiveDescriptor(
            mean_coeff=config.mean_coeff,
            std_dev_coeff=config.std_dev_coeff,
            window=config.window,
        )
    raise UnknownKindError(f"Unknown filter kind {config.kind!r}")


# =============================================================================
# IMAGE INPUT
# =============================================================================


def to_grayscale(image: Image.Image | np.ndarray) -> np.ndarray:
    """Return image as a 2-D uint8 array."""
    if isinstance(image, Image.Image):
        return np.array(image.convert("L"), dtype=np.uint8)

    array = np.asarray(image)
    if array.ndim == 2:
        return array.astype(np.uint8, copy=False)

    if array.ndim == 3 and array.shape[2] in (3, 4):
        return np.array(Image.fromarray(array.astype(np.uint8)).convert("L"), dtype=np.uint8)

    raise ValueError(f"Unsupported image data of shape {array.shape}")


# =============================================================================
# FILTERS
# =============================================================================


class PixelFilter(ABC):
    """Abstract base for pixel filters."""

    kind: FilterKind

    @abstractmethod
    def foreground(self, gray: np.ndarray) -> np.ndarray:
        """Boolean mask of foreground pixels of a 2-D gray array."""
        pass


class GlobalFilter(PixelFilter):
    kind = FilterKind.GLOBAL

    def __init__(self, descriptor: GlobalDescriptor) -> None:
        self.threshold = descriptor.threshold

    def foreground(self, gray: np.ndarray) -> np.ndarray:
        return gray <= self.threshold


class AdaptiveFilter(PixelFilter):
    """
    Local threshold from mean and standard deviation.

    Local statistics come from integral images of the gray levels and of
    their squares, so the cost does not depend on the window size.
    """

    kind = FilterKind.ADAPTIVE

    def __init__(self, descriptor: AdaptiveDescriptor) -> None:
        self.mean_coeff = descriptor.mean_coeff
        self.std_dev_coeff = descriptor.std_dev_coeff
        self.window = max(3, int(descriptor.window)) | 1

    def foreground(self, gray: np.ndarray) -> np.ndarray:
        values = gray.astype(np.float64)
        mean = _box_mean(values, self.window)
        mean_sq = _box_mean(values * values, self.window)
        std = np.sqrt(np.maximum(mean_sq - mean * mean, 0.0))
        threshold = mean * self.mean_coeff + std * self.std_dev_coeff
        return values <= threshold


def _box_mean(values: np.ndarray, k: int) -> np.ndarray:
    """Mean over a k x k window centered on each pixel, clipped at the borders."""
    r = k // 2
    h, w = values.shape
    pad = np.pad(values, ((1, 0), (1, 0)), mode="constant")
    ii = pad.cumsum(0).cumsum(1)
    y0 = np.clip(np.arange(h) - r, 0, h)
    y1 = np.clip(np.arange(h) + r + 1, 0, h)
    x0 = np.clip(np.arange(w) - r, 0, w)
    x1 = np.clip(np.arange(w) + r + 1, 0, w)
    Y0, X0 = np.meshgrid(y0, x0, indexing="ij")
    Y1, X1 = np.meshgrid(y1, x1, indexing="ij")
    total = ii[Y1, X1] - ii[Y0, X1] - ii[Y1, X0] + ii[Y0, X0]
    area = (Y1 - Y0) * (X1 - X0)
    return total / area


_FILTERS: dict[FilterKind, type[PixelFilter]] = {
    FilterKind.GLOBAL: GlobalFilter,
    FilterKind.ADAPTIVE: AdaptiveFilter,
}


def create_filter(descriptor: FilterDescriptor) -> PixelFilter:
    """
    Create the filter instance described by a descriptor.

    Raises:
        UnknownKindError: If no filter is registered for the descriptor kind.
    """
    filter_class = _FILTERS.get(descriptor.kind)
    if filter_class is None:
        raise UnknownKindError(f"No pixel filter registered for kind {descriptor.kind!r}")
    return filter_class(descriptor)


def binarize(
    image: Image.Image | np.ndarray,
    descriptor: FilterDescriptor | None = None,
) -> np.ndarray:
    """
    Compute the foreground mask of an image.

    Args:
        image: PIL image or numpy array (gray, RGB or RGBA).
        descriptor: Filter to use (defaults to GlobalDescriptor()).

    Returns:
        2-D boolean array, True on foreground pixels.
    """
    descriptor = descriptor or GlobalDescriptor()
    gray = to_grayscale(image)
    mask = create_filter(descriptor).foreground(gray)
    logger.debug(
        "Binarized %dx%d image with %s: %d foreground pixels",
        gray.shape[1],
        gray.shape[0],
        descriptor,
        int(mask.sum()),
    )
    return mask
