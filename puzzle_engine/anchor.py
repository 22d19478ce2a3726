"""Immutable 2D points used for piece positions."""

import math
from typing import Tuple

from pydantic import BaseModel, ConfigDict


class Anchor(BaseModel):
    """Model representing a position in 2D space.

    Anchors are frozen: every operation returns a new instance.
    """

    model_config = ConfigDict(frozen=True)

    x: float
    y: float

    def translate(self, dx: float, dy: float) -> "Anchor":
        """Return this anchor moved by ``(dx, dy)``."""
        return Anchor(x=self.x + dx, y=self.y + dy)

    def scale(self, factor: float) -> "Anchor":
        """Return this anchor with both coordinates multiplied by ``factor``."""
        return Anchor(x=self.x * factor, y=self.y * factor)

    def diff(self, other: "Anchor") -> Tuple[float, float]:
        """Return the ``(dx, dy)`` vector going from ``other`` to this anchor."""
        return (self.x - other.x, self.y - other.y)

    def distance(self, other: "Anchor") -> float:
        """Euclidean distance to ``other``."""
        return math.hypot(self.x - other.x, self.y - other.y)

    def close_to(self, other: "Anchor", tolerance: float) -> bool:
        """Whether ``other`` lies within ``tolerance`` on both axes."""
        dx, dy = self.diff(other)
        return abs(dx) <= tolerance and abs(dy) <= tolerance

    def clone(self) -> "Anchor":
        """Return a value-equal but distinct anchor."""
        return Anchor(x=self.x, y=self.y)

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def __str__(self) -> str:
        return f"({self.x:g}, {self.y:g})"


def anchor(x: float, y: float) -> Anchor:
    """Shorthand constructor for :class:`Anchor`."""
    return Anchor(x=x, y=y)
