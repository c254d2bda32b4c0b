"""
Exception classes for glyphpatterns.

All glyphpatterns exceptions inherit from GlyphPatternsError,
making it easy to catch all library errors.

Classifier misses and manually locked glyphs are not errors: a missing
verdict leaves the glyph unassigned and a locked glyph is skipped.

Example:
    >>> try:
    ...     region.add_glyph(glyph)
    ... except glyphpatterns.GraphConsistencyError as e:
    ...     print(f"Broken graph: {e}")
"""


class GlyphPatternsError(Exception):
    """
    Base exception for all glyphpatterns errors.

    Catch this to handle any glyphpatterns-specific error.
    """

    pass


class ConfigurationError(GlyphPatternsError, ValueError):
    """
    Raised for invalid configuration.

    Example:
        >>> DotPatternConfig(min_aspect=-1)
        ConfigurationError: min_aspect must be > 0, got -1
    """

    pass


class UnknownKindError(ConfigurationError):
    """
    Raised when no factory is registered for an evaluator or filter kind.
    """

    pass


class GraphConsistencyError(GlyphPatternsError):
    """
    Raised when the section/glyph graph would break an ownership invariant.

    This covers duplicate section ownership, release by a glyph that does
    not own the section, empty glyphs, and add/remove on a glyph in the
    wrong state. It aborts the pattern run of the region it occurs in.
    """

    pass
