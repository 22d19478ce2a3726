"""Edge shapes of puzzle pieces.

A piece has four sides (up, right, down, left). Each side carries an insert:
a tab (protrusion), a slot (indent) or nothing at all for borders. Two
pieces only fit together along a tab facing a slot.
"""

from enum import Enum
from typing import Mapping, Union


class Insert(Enum):
    """Shape of a single piece side.

    Values are the characters used by the compact structure notation.
    """

    TAB = "T"
    SLOT = "S"
    NONE = "-"

    @classmethod
    def from_char(cls, char: str) -> "Insert":
        """Decode a notation character. Unknown characters mean no insert."""
        if char == "T":
            return cls.TAB
        if char == "S":
            return cls.SLOT
        return cls.NONE

    def complement(self) -> "Insert":
        """Return the insert that fits this one (``NONE`` stays ``NONE``)."""
        if self is Insert.TAB:
            return Insert.SLOT
        if self is Insert.SLOT:
            return Insert.TAB
        return Insert.NONE

    def __str__(self) -> str:
        return self.name.lower()


Tab = Insert.TAB
Slot = Insert.SLOT
Flat = Insert.NONE


def compatible(side: Insert, facing: Insert) -> bool:
    """Whether two facing sides interlock: exactly one tab and one slot."""
    return {side, facing} == {Insert.TAB, Insert.SLOT}


class Side(Enum):
    """The four sides of a piece, in signal emission order."""

    UP = "up"
    RIGHT = "right"
    DOWN = "down"
    LEFT = "left"

    @property
    def opposite(self) -> "Side":
        return _OPPOSITES[self]


_OPPOSITES = {
    Side.UP: Side.DOWN,
    Side.RIGHT: Side.LEFT,
    Side.DOWN: Side.UP,
    Side.LEFT: Side.RIGHT,
}

# Compact notation lists sides in this order
NOTATION_ORDER = (Side.RIGHT, Side.DOWN, Side.LEFT, Side.UP)

StructureLike = Union["Structure", str, Mapping[str, Insert], None]


class Structure:
    """The four inserts of a piece.

    Build it from keyword arguments (missing sides have no insert) or from
    the compact notation, a 4 character string listing right, down, left
    and up, in that order: ``Structure.from_notation("STS-")`` has a slot
    on the right, a tab below, a slot on the left and a flat top.
    """

    __slots__ = ("up", "right", "down", "left")

    def __init__(
        self,
        up: Insert = Insert.NONE,
        right: Insert = Insert.NONE,
        down: Insert = Insert.NONE,
        left: Insert = Insert.NONE,
    ) -> None:
        self.up = Insert(up)
        self.right = Insert(right)
        self.down = Insert(down)
        self.left = Insert(left)

    @classmethod
    def from_notation(cls, notation: str) -> "Structure":
        """Parse the compact right-down-left-up notation.

        Raises:
            ValueError: If ``notation`` is not exactly 4 characters long.
        """
        if len(notation) != 4:
            raise ValueError(f"Structure notation must have 4 characters, got {notation!r}")
        inserts = {side.value: Insert.from_char(char) for side, char in zip(NOTATION_ORDER, notation)}
        return cls(**inserts)

    @classmethod
    def coerce(cls, value: StructureLike) -> "Structure":
        """Build a structure from a structure, a notation string or a mapping."""
        if value is None:
            return cls()
        if isinstance(value, Structure):
            return value
        if isinstance(value, str):
            return cls.from_notation(value)
        unknown = set(value) - {side.value for side in Side}
        if unknown:
            raise ValueError(f"Unknown structure sides: {sorted(unknown)}")
        return cls(**value)

    def to_notation(self) -> str:
        return "".join(self.insert(side).value for side in NOTATION_ORDER)

    def insert(self, side: Side) -> Insert:
        """Return the insert on ``side``."""
        return getattr(self, side.value)

    def fits(self, side: Side, other: "Structure") -> bool:
        """Whether ``side`` of this structure fits the facing side of ``other``."""
        return compatible(self.insert(side), other.insert(side.opposite))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Structure):
            return NotImplemented
        return all(self.insert(side) is other.insert(side) for side in Side)

    def __hash__(self) -> int:
        return hash(self.to_notation())

    def __repr__(self) -> str:
        return f"Structure({self.to_notation()!r})"
