"""
Upstream segmentation: from an image to a region of sections.

- Pixel filters (global or adaptive threshold)
- Section building from pixel runs
"""

from glyphpatterns.segmentation.filters import (
    AdaptiveDescriptor,
    AdaptiveFilter,
    FilterDescriptor,
    FilterKind,
    GlobalDescriptor,
    GlobalFilter,
    PixelFilter,
    binarize,
    create_filter,
    descriptor_from_config,
    to_grayscale,
)
from glyphpatterns.segmentation.lag import build_region, build_sections, column_runs

__all__ = [
    # Filters
    "FilterKind",
    "FilterDescriptor",
    "GlobalDescriptor",
    "AdaptiveDescriptor",
    "PixelFilter",
    "GlobalFilter",
    "AdaptiveFilter",
    "create_filter",
    "descriptor_from_config",
    "to_grayscale",
    "binarize",
    # Sections
    "column_runs",
    "build_sections",
    "build_region",
]
