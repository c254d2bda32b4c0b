"""
Correction strategies.

A correction pattern is a plain function `(region) -> number of corrections`
with its parameters already bound. `PatternStrategy` tags such a function
with a name so the orchestrator can run and report it.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from glyphpatterns.graph.region import Region

PatternFunction = Callable[["Region"], int]


@dataclass(frozen=True)
class PatternStrategy:
    """A named correction function."""

    name: str
    run: PatternFunction

    def __call__(self, region: Region) -> int:
        return self.run(region)

    def __str__(self) -> str:
        return f"{self.name.capitalize()}Pattern"
