"""
Sections and the section arena.

A section is an atomic connected set of foreground pixel runs. Sections are
created once by the upstream segmenter and never recreated; the only thing
that changes over time is which glyph owns them.

The arena stores sections by stable integer id and keeps the ownership table
(section id -> glyph id) outside the sections themselves. Ownership transfer
is therefore a pure index operation, and `claim`/`release` validate every
section before touching the table so that a failed transfer leaves it intact.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from glyphpatterns.exceptions import GraphConsistencyError
from glyphpatterns.models import Orientation, Point, Rect

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Run:
    """
    A maximal sequence of foreground pixels along one column (or row).

    Attributes:
        pos: Column index for vertical runs, row index for horizontal ones.
        start: First pixel coordinate along the run.
        length: Number of pixels.
    """

    pos: int
    start: int
    length: int

    @property
    def stop(self) -> int:
        return self.start + self.length


@dataclass(frozen=True)
class Section:
    """A connected set of runs, the atomic unit glyphs are made of."""

    id: int
    orientation: Orientation
    bounds: Rect
    weight: int
    runs: tuple[Run, ...] = ()

    @property
    def area_center(self) -> Point:
        """Mass center of the section pixels (box center when runs are unknown)."""
        if not self.runs:
            return self.bounds.center

        total = 0
        sum_pos = 0.0
        sum_mid = 0.0
        for run in self.runs:
            total += run.length
            sum_pos += (run.pos + 0.5) * run.length
            sum_mid += (run.start + run.length / 2.0) * run.length

        if self.orientation is Orientation.VERTICAL:
            return Point(sum_pos / total, sum_mid / total)
        return Point(sum_mid / total, sum_pos / total)

    def __str__(self) -> str:
        return f"Section#{self.id}"


class SectionArena:
    """
    Arena of sections indexed by stable ids, with ownership and adjacency.

    Adjacency is directed: `link(a, b)` records that section a lies before
    section b along the scan direction (to its left for vertical sections).
    """

    def __init__(self) -> None:
        self._sections: list[Section] = []
        self._owners: dict[int, int] = {}
        self._targets: dict[int, set[int]] = {}
        self._sources: dict[int, set[int]] = {}

    def __len__(self) -> int:
        return len(self._sections)

    def __iter__(self) -> Iterator[Section]:
        return iter(self._sections)

    def __getitem__(self, section_id: int) -> Section:
        self._check(section_id)
        return self._sections[section_id]

    def __contains__(self, section_id: object) -> bool:
        return isinstance(section_id, int) and 0 <= section_id < len(self._sections)

    def _check(self, section_id: int) -> None:
        if section_id not in self:
            raise GraphConsistencyError(f"Unknown section id {section_id!r}")

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    def create_section(
        self,
        bounds: Rect,
        orientation: Orientation = Orientation.VERTICAL,
        weight: int | None = None,
        runs: Iterable[Run] = (),
    ) -> Section:
        """
        Append a new section to the arena.

        Args:
            bounds: Bounding box of the section.
            orientation: Orientation of its runs.
            weight: Pixel count (defaults to the run total, or the box area).
            runs: Runs the section is made of, if known.

        Returns:
            The new section, whose id is its index in the arena.

        Raises:
            GraphConsistencyError: If the box is empty or the weight is not
                positive.
        """
        if bounds.width <= 0 or bounds.height <= 0:
            raise GraphConsistencyError(f"Section box must not be empty, got {bounds}")
        runs = tuple(runs)
        if weight is None:
            weight = sum(r.length for r in runs) if runs else bounds.width * bounds.height
        if weight <= 0:
            raise GraphConsistencyError(f"Section weight must be positive, got {weight}")

        section = Section(
            id=len(self._sections),
            orientation=orientation,
            bounds=bounds,
            weight=weight,
            runs=runs,
        )
        self._sections.append(section)
        self._targets[section.id] = set()
        self._sources[section.id] = set()
        return section

    def link(self, source_id: int, target_id: int) -> None:
        """Record that source touches target and lies before it."""
        self._check(source_id)
        self._check(target_id)
        if source_id == target_id:
            return
        self._targets[source_id].add(target_id)
        self._sources[target_id].add(source_id)

    def connect_touching(self) -> int:
        """
        Link every pair of sections whose boxes touch.

        The link goes from the section that starts first along the x axis
        (then y, then id) to the other one. Useful when sections are built
        from boxes rather than from pixel runs.

        Returns:
            Number of links added.
        """
        count = 0
        ordered = sorted(self._sections, key=lambda s: (s.bounds.x, s.bounds.y, s.id))
        for i, first in enumerate(ordered):
            for second in ordered[i + 1 :]:
                if second.bounds.x > first.bounds.right:
                    # Sorted on x: nothing further can touch first
                    break
                if first.bounds.touches(second.bounds) and second.id not in self._targets[first.id]:
                    self.link(first.id, second.id)
                    count += 1
        return count

    # -------------------------------------------------------------------------
    # Adjacency
    # -------------------------------------------------------------------------

    def sources(self, section_id: int) -> frozenset[int]:
        """Sections touching this one on its "before" side."""
        self._check(section_id)
        return frozenset(self._sources[section_id])

    def targets(self, section_id: int) -> frozenset[int]:
        """Sections touching this one on its "after" side."""
        self._check(section_id)
        return frozenset(self._targets[section_id])

    def neighbors(self, section_id: int) -> frozenset[int]:
        return self.sources(section_id) | self.targets(section_id)

    # -------------------------------------------------------------------------
    # Ownership
    # -------------------------------------------------------------------------

    def owner_of(self, section_id: int) -> int | None:
        """Id of the glyph owning the section, None when unowned."""
        self._check(section_id)
        return self._owners.get(section_id)

    def claim(self, section_ids: Iterable[int], glyph_id: int) -> None:
        """
        Give ownership of all sections to a glyph, atomically.

        Raises:
            GraphConsistencyError: If any section is unknown or already
                owned by another glyph. Nothing is changed in that case.
        """
        ids = list(section_ids)
        for sid in ids:
            self._check(sid)
            owner = self._owners.get(sid)
            if owner is not None and owner != glyph_id:
                raise GraphConsistencyError(
                    f"Section#{sid} already owned by glyph#{owner}, cannot give it to glyph#{glyph_id}"
                )
        for sid in ids:
            self._owners[sid] = glyph_id

    def release(self, section_ids: Iterable[int], glyph_id: int) -> None:
        """
        Remove a glyph's ownership of all sections, atomically.

        Raises:
            GraphConsistencyError: If any section is not owned by that glyph.
        """
        ids = list(section_ids)
        for sid in ids:
            owner = self.owner_of(sid)
            if owner != glyph_id:
                raise GraphConsistencyError(
                    f"Glyph#{glyph_id} cannot release Section#{sid} owned by {owner}"
                )
        for sid in ids:
            del self._owners[sid]

    def unowned(self) -> list[int]:
        """Ids of all sections no glyph owns, in id order."""
        return [s.id for s in self._sections if s.id not in self._owners]

    def owned_by(self, glyph_id: int) -> set[int]:
        return {sid for sid, owner in self._owners.items() if owner == glyph_id}
