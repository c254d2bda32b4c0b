"""
Spatial graph of sections owned by glyphs.

- SectionArena: sections by stable id, ownership table, adjacency
- Glyph: aggregate of sections, the unit of classification
- Region: the scope ("system") patterns mutate
"""

from glyphpatterns.graph.glyphs import Glyph, GlyphValue
from glyphpatterns.graph.region import Region
from glyphpatterns.graph.sections import Run, Section, SectionArena

__all__ = [
    "Run",
    "Section",
    "SectionArena",
    "Glyph",
    "GlyphValue",
    "Region",
]
