"""
Text lines ("sentences") and words as seen by the correction patterns.

Sentences come from an external text-line detector. The patterns only read
them, except for appending a manually created word to a sentence.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from glyphpatterns.models import Line, Rect

if TYPE_CHECKING:
    from glyphpatterns.graph.glyphs import Glyph


@dataclass
class TextWord:
    """A word of a sentence, optionally backed by a glyph."""

    text: str
    bounds: Rect
    glyph_id: int | None = None
    manual: bool = False
    confidence: float = 1.0

    @classmethod
    def create_manual_word(cls, glyph: Glyph, text: str) -> TextWord:
        """Create a word for a glyph whose text is known without OCR."""
        return cls(text=text, bounds=glyph.bounds, glyph_id=glyph.id, manual=True)


@dataclass
class TextLine:
    """
    A detected text line: a baseline and its words in abscissa order.

    Example:
        >>> line = TextLine(Line(0, 50, 100, 50))
        >>> line.add_words([TextWord("Allegro", Rect(0, 38, 60, 12))])
        >>> line.value
        'Allegro'
    """

    baseline: Line
    words: list[TextWord] = field(default_factory=list)

    def __post_init__(self):
        self.words.sort(key=lambda w: w.bounds.x)

    def add_words(self, words: Iterable[TextWord]) -> None:
        """Insert words, keeping the word list ordered by abscissa."""
        self.words.extend(words)
        self.words.sort(key=lambda w: w.bounds.x)

    @property
    def value(self) -> str:
        return " ".join(w.text for w in self.words)

    @property
    def bounds(self) -> Rect | None:
        if not self.words:
            return None
        return Rect.enclosing(w.bounds for w in self.words)
