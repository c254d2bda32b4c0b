"""
Region ("system"): the spatial scope the correction patterns work on.

A region owns an exclusive slice of the section/glyph graph: its section
arena, its active glyphs and its text sentences. Removed glyphs are kept
aside only until the running correction discards them. Nothing is
shared between regions, so regions can be processed independently.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from itertools import count
from typing import Any

from glyphpatterns.exceptions import GraphConsistencyError
from glyphpatterns.graph.glyphs import Glyph
from glyphpatterns.graph.sections import SectionArena
from glyphpatterns.models import Scale
from glyphpatterns.text import TextLine

logger = logging.getLogger(__name__)

GlyphPredicate = Callable[[Glyph], bool]


class Region:
    """
    Active glyphs, loose sections and sentences of one part of a page.

    Example:
        >>> region = Region(arena, region_id=2, scale=Scale(interline=18))
        >>> stem = region.create_glyph([0, 1])
        >>> region.remove_glyph(stem)  # sections 0 and 1 become unowned
        >>> region.add_glyph(stem)  # and are owned by the stem again
    """

    def __init__(
        self,
        arena: SectionArena | None = None,
        *,
        region_id: int = 1,
        scale: Scale | None = None,
        sentences: Iterable[TextLine] = (),
        language: str = "eng",
    ) -> None:
        self.arena = arena if arena is not None else SectionArena()
        self.id = region_id
        self.scale = scale or Scale()
        self.sentences: list[TextLine] = list(sentences)
        self.language = language

        self._glyphs: dict[int, Glyph] = {}
        self._removed: dict[int, Glyph] = {}
        self._ids = count(1)

    def __repr__(self) -> str:
        return (
            f"Region(id={self.id}, sections={len(self.arena)}, "
            f"glyphs={len(self.glyphs)}, sentences={len(self.sentences)})"
        )

    @property
    def log_prefix(self) -> str:
        return f"S{self.id} "

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    @property
    def glyphs(self) -> list[Glyph]:
        """Active glyphs, in id order."""
        return [self._glyphs[gid] for gid in sorted(self._glyphs) if self._glyphs[gid].active]

    def glyph(self, glyph_id: int) -> Glyph:
        """Active glyph, or removed glyph not discarded yet."""
        glyph = self._glyphs.get(glyph_id) or self._removed.get(glyph_id)
        if glyph is None:
            raise GraphConsistencyError(f"{self.log_prefix}Unknown glyph#{glyph_id}")
        return glyph

    def owner_of(self, section_id: int) -> Glyph | None:
        """Active glyph owning the section, None when the section is loose."""
        glyph_id = self.arena.owner_of(section_id)
        if glyph_id is None:
            return None
        return self.glyph(glyph_id)

    def unowned_sections(self) -> list[int]:
        return self.arena.unowned()

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def create_glyph(self, section_ids: Iterable[int], **features: Any) -> Glyph:
        """
        Build a new active glyph from loose sections.

        Args:
            section_ids: Ids of the member sections, all currently unowned.
            **features: Extra glyph attributes (shape, pitch_position...).

        Raises:
            GraphConsistencyError: If no section is given or one is owned.
        """
        features.setdefault("interline", self.scale.interline)
        glyph = Glyph.from_sections(
            next(self._ids),
            (self.arena[sid] for sid in section_ids),
            **features,
        )
        self.arena.claim(glyph.members, glyph.id)
        glyph.active = True
        self._glyphs[glyph.id] = glyph
        return glyph

    def remove_glyph(self, glyph: Glyph) -> None:
        """
        Deactivate a glyph: its sections become unowned.

        The glyph is set aside with its members, so `add_glyph` can restore
        it until `discard_removed` is called.
        """
        if self._removed.get(glyph.id) is glyph:
            raise GraphConsistencyError(f"{self.log_prefix}{glyph} is not active")
        self._check_member(glyph)

        self.arena.release(glyph.members, glyph.id)
        glyph.active = False
        del self._glyphs[glyph.id]
        self._removed[glyph.id] = glyph
        logger.debug("%sRemoved %s", self.log_prefix, glyph)

    def add_glyph(self, glyph: Glyph) -> None:
        """
        Reactivate a removed glyph: it owns its member sections again.

        Raises:
            GraphConsistencyError: If the glyph is already active, was
                discarded, or one of its sections is owned by another glyph.
        """
        if self._glyphs.get(glyph.id) is glyph:
            raise GraphConsistencyError(f"{self.log_prefix}{glyph} is already active")
        if self._removed.get(glyph.id) is not glyph:
            raise GraphConsistencyError(
                f"{self.log_prefix}{glyph} does not belong to this region or was discarded"
            )

        self.arena.claim(glyph.members, glyph.id)
        glyph.active = True
        del self._removed[glyph.id]
        self._glyphs[glyph.id] = glyph
        logger.debug("%sRestored %s", self.log_prefix, glyph)

    def discard_removed(self) -> int:
        """
        Forget the removed glyphs: they can no longer be restored.

        Returns:
            Number of glyphs discarded.
        """
        discarded = len(self._removed)
        self._removed.clear()
        if discarded:
            logger.debug("%sDiscarded %d removed glyphs", self.log_prefix, discarded)
        return discarded

    def _check_member(self, glyph: Glyph) -> None:
        if self._glyphs.get(glyph.id) is not glyph:
            raise GraphConsistencyError(f"{self.log_prefix}{glyph} does not belong to this region")

    def extract_new_glyphs(self) -> list[Glyph]:
        """
        Build fresh glyphs out of the loose sections.

        Loose sections are grouped into connected components following the
        section adjacency; each component becomes a new unassigned glyph.

        Returns:
            The new glyphs, in creation order.
        """
        loose = set(self.arena.unowned())
        created = []

        for seed in sorted(loose):
            if seed not in loose:
                continue

            component = []
            stack = [seed]
            loose.discard(seed)
            while stack:
                sid = stack.pop()
                component.append(sid)
                for neighbor in self.arena.neighbors(sid):
                    if neighbor in loose:
                        loose.discard(neighbor)
                        stack.append(neighbor)

            created.append(self.create_glyph(sorted(component)))

        if created:
            logger.debug(
                "%sExtracted %d new glyphs: %s",
                self.log_prefix,
                len(created),
                ", ".join(str(g) for g in created),
            )
        return created

    # -------------------------------------------------------------------------
    # Neighborhood
    # -------------------------------------------------------------------------

    def symbols_before(
        self,
        glyph: Glyph,
        predicate: GlyphPredicate,
        goods: set[Glyph],
        bads: set[Glyph],
    ) -> None:
        """Split the glyphs touching the "before" side of a glyph into goods and bads."""
        self._collect(glyph, self.arena.sources, predicate, goods, bads)

    def symbols_after(
        self,
        glyph: Glyph,
        predicate: GlyphPredicate,
        goods: set[Glyph],
        bads: set[Glyph],
    ) -> None:
        """Split the glyphs touching the "after" side of a glyph into goods and bads."""
        self._collect(glyph, self.arena.targets, predicate, goods, bads)

    def _collect(self, glyph, step, predicate, goods, bads) -> None:
        for sid in glyph.members:
            for other_sid in step(sid):
                other = self.owner_of(other_sid)
                if other is None or other is glyph:
                    continue
                if predicate(other):
                    goods.add(other)
                else:
                    bads.add(other)

    def touching_glyphs(self, glyph: Glyph) -> set[Glyph]:
        """Active glyphs owning a section adjacent to the glyph."""
        result = set()
        for sid in glyph.members:
            for other_sid in self.arena.neighbors(sid):
                other = self.owner_of(other_sid)
                if other is not None and other is not glyph:
                    result.add(other)
        return result

    def count_stems(self, glyph: Glyph) -> int:
        """Number of distinct active stems touching the glyph."""
        return sum(1 for g in self.touching_glyphs(glyph) if g.is_stem())

    # -------------------------------------------------------------------------
    # Invariants
    # -------------------------------------------------------------------------

    def check_consistency(self) -> None:
        """
        Verify the ownership invariants of the region.

        Every active glyph owns exactly its member sections, no inactive
        glyph owns anything, and every owner id is a known glyph.

        Raises:
            GraphConsistencyError: On the first violation found.
        """
        seen: dict[int, int] = {}
        for glyph in self._glyphs.values():
            if not glyph.active:
                continue
            for sid in glyph.members:
                if sid in seen:
                    raise GraphConsistencyError(
                        f"{self.log_prefix}Section#{sid} claimed by glyph#{seen[sid]} "
                        f"and glyph#{glyph.id}"
                    )
                seen[sid] = glyph.id
                owner = self.arena.owner_of(sid)
                if owner != glyph.id:
                    raise GraphConsistencyError(
                        f"{self.log_prefix}Section#{sid} of {glyph} is owned by {owner}"
                    )

        for section in self.arena:
            owner = self.arena.owner_of(section.id)
            if owner is not None and seen.get(section.id) != owner:
                raise GraphConsistencyError(
                    f"{self.log_prefix}Section#{section.id} owned by inactive or "
                    f"unknown glyph#{owner}"
                )
