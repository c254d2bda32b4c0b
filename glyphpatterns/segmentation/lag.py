"""
Build sections from a binary image.

Foreground pixels are run-length encoded column by column (row by row for
horizontal sections). A run extends the section of the previous column's
run when the junction between them is one-to-one and their lengths are
compatible; any other junction starts a new section, linked to the
sections it touches. Glyphs are then the connected components of sections.
"""

from __future__ import annotations

import logging

import numpy as np
from PIL import Image

from glyphpatterns.graph.region import Region
from glyphpatterns.graph.sections import Run, Section, SectionArena
from glyphpatterns.models import Orientation, Rect, Scale
from glyphpatterns.segmentation.filters import FilterDescriptor, binarize

logger = logging.getLogger(__name__)

# Maximum length ratio between two runs of the same section
DEFAULT_MAX_JUNCTION_RATIO = 1.5


def column_runs(binary: np.ndarray) -> list[list[tuple[int, int]]]:
    """Return the (start, stop) foreground runs of each column of binary."""
    h, w = binary.shape
    runs_by_column = []
    for x in range(w):
        column = np.zeros(h + 2, dtype=np.int8)
        column[1:-1] = binary[:, x] != 0
        diff = np.diff(column)
        starts = np.flatnonzero(diff == 1)
        stops = np.flatnonzero(diff == -1)
        runs_by_column.append([(int(s), int(e)) for s, e in zip(starts, stops)])
    return runs_by_column


def _overlaps(a: tuple[int, int], b: tuple[int, int]) -> bool:
    return a[0] < b[1] and b[0] < a[1]


def _compatible(a: tuple[int, int], b: tuple[int, int], max_ratio: float) -> bool:
    la = a[1] - a[0]
    lb = b[1] - b[0]
    return max(la, lb) <= max_ratio * min(la, lb)


def build_sections(
    binary: np.ndarray,
    arena: SectionArena,
    orientation: Orientation = Orientation.VERTICAL,
    max_junction_ratio: float = DEFAULT_MAX_JUNCTION_RATIO,
) -> list[Section]:
    """
    Create the sections of a binary image into an arena.

    Args:
        binary: 2-D array, non-zero on foreground pixels.
        arena: Arena receiving the sections and their links.
        orientation: VERTICAL for column runs, HORIZONTAL for row runs.
        max_junction_ratio: Maximum length ratio of two joined runs.

    Returns:
        The created sections, in creation order.
    """
    work = binary if orientation is Orientation.VERTICAL else binary.T
    runs_by_column = column_runs(work)

    members: list[list[Run]] = []
    links: set[tuple[int, int]] = set()
    prev_runs: list[tuple[int, int]] = []
    prev_ids: list[int] = []

    for pos, runs in enumerate(runs_by_column):
        current_ids = []
        for run in runs:
            before = [j for j, p in enumerate(prev_runs) if _overlaps(p, run)]

            joined = None
            if len(before) == 1:
                p = prev_runs[before[0]]
                after = [r for r in runs if _overlaps(p, r)]
                if len(after) == 1 and _compatible(p, run, max_junction_ratio):
                    joined = prev_ids[before[0]]

            if joined is None:
                joined = len(members)
                members.append([])
                for j in before:
                    links.add((prev_ids[j], joined))

            members[joined].append(Run(pos, run[0], run[1] - run[0]))
            current_ids.append(joined)

        prev_runs = runs
        prev_ids = current_ids

    sections = []
    for section_runs in members:
        sections.append(
            arena.create_section(_bounds(section_runs, orientation), orientation, runs=section_runs)
        )
    for source, target in sorted(links):
        arena.link(sections[source].id, sections[target].id)

    logger.debug("Built %d sections and %d links", len(sections), len(links))
    return sections


def _bounds(runs: list[Run], orientation: Orientation) -> Rect:
    pos0 = min(r.pos for r in runs)
    pos1 = max(r.pos for r in runs) + 1
    start = min(r.start for r in runs)
    stop = max(r.stop for r in runs)
    if orientation is Orientation.VERTICAL:
        return Rect(pos0, start, pos1 - pos0, stop - start)
    return Rect(start, pos0, stop - start, pos1 - pos0)


def build_region(
    image: Image.Image | np.ndarray,
    descriptor: FilterDescriptor | None = None,
    *,
    region_id: int = 1,
    scale: Scale | None = None,
    orientation: Orientation = Orientation.VERTICAL,
    max_junction_ratio: float = DEFAULT_MAX_JUNCTION_RATIO,
) -> Region:
    """
    Segment an image into a region of sections and initial glyphs.

    Args:
        image: PIL image or numpy array of the region.
        descriptor: Pixel filter to binarize with.
        region_id: Identifier of the new region.
        scale: Region scale (defaults to Scale()).
        orientation: Orientation of the sections.
        max_junction_ratio: Maximum length ratio of two joined runs.

    Returns:
        Region whose glyphs are the connected components of its sections.
    """
    binary = binarize(image, descriptor)
    arena = SectionArena()
    build_sections(binary, arena, orientation, max_junction_ratio)

    region = Region(arena, region_id=region_id, scale=scale)
    glyphs = region.extract_new_glyphs()
    logger.info(
        "%sSegmented %d sections into %d glyphs",
        region.log_prefix,
        len(arena),
        len(glyphs),
    )
    return region
