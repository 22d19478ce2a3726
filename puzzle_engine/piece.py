"""Puzzle pieces and the connection protocol between them."""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Optional

from .anchor import Anchor
from .errors import PuzzleError, SideOccupied, StructureMismatch
from .metadata import ById, ByIndex, Metadata, PieceKey
from .structure import Insert, Side, Structure

if TYPE_CHECKING:
    from .puzzle import Puzzle

logger = logging.getLogger(__name__)


@dataclass
class Link:
    """State of one side of a piece.

    ``neighbor`` is the arena index of the linked piece in the owning puzzle.
    """

    neighbor: Optional[int] = None
    connected: bool = False


class Piece:
    """A node of the puzzle graph.

    Pieces are created by :meth:`Puzzle.new_piece` or by autogeneration and
    refer to their neighbours by index into the owning puzzle.
    """

    def __init__(self, puzzle: "Puzzle", index: int, structure: Structure, metadata: Metadata) -> None:
        self._puzzle = puzzle
        self._index = index
        self.structure = structure
        self.metadata = metadata
        self._links: Dict[Side, Link] = {side: Link() for side in Side}

    @property
    def puzzle(self) -> "Puzzle":
        return self._puzzle

    @property
    def index(self) -> int:
        """Position of this piece in its puzzle, starting at 0."""
        return self._index

    @property
    def key(self) -> PieceKey:
        """Address of this piece: its id when present, its 1-based index otherwise."""
        if self.metadata.id is not None:
            return ById(self.metadata.id)
        return ByIndex(self._index + 1)

    @property
    def up(self) -> Insert:
        return self.structure.up

    @property
    def right(self) -> Insert:
        return self.structure.right

    @property
    def down(self) -> Insert:
        return self.structure.down

    @property
    def left(self) -> Insert:
        return self.structure.left

    # Positions

    @property
    def central_anchor(self) -> Anchor:
        """Where the centre of this piece currently sits."""
        return self.metadata.current_position

    @property
    def target_anchor(self) -> Anchor:
        return self.metadata.target_position

    def place_at(self, anchor: Anchor) -> "Piece":
        """Set both the current and the target position to ``anchor``."""
        self.metadata.current_position = anchor.clone()
        self.metadata.target_position = anchor.clone()
        return self

    def relocate_to(self, anchor: Anchor) -> "Piece":
        """Move the piece without changing where it belongs."""
        self.metadata.current_position = anchor.clone()
        return self

    def translate(self, dx: float, dy: float) -> "Piece":
        return self.relocate_to(self.central_anchor.translate(dx, dy))

    def side_anchor(self, side: Side) -> Anchor:
        """Midpoint of ``side``, used for proximity checks."""
        half = self._puzzle.piece_size / 2
        offsets = {
            Side.UP: (0.0, -half),
            Side.RIGHT: (half, 0.0),
            Side.DOWN: (0.0, half),
            Side.LEFT: (-half, 0.0),
        }
        return self.central_anchor.translate(*offsets[side])

    # Neighbours

    def neighbor(self, side: Side) -> Optional["Piece"]:
        """Return the piece linked on ``side``, if any."""
        index = self._links[side].neighbor
        return None if index is None else self._puzzle.piece_at(index)

    def is_connected(self, side: Side) -> bool:
        return self._links[side].connected

    @property
    def connected(self) -> bool:
        """Whether at least one side is linked."""
        return any(link.connected for link in self._links.values())

    @property
    def connections(self) -> List["Piece"]:
        """Linked neighbours in up, right, down, left order."""
        return [piece for piece in (self.neighbor(side) for side in Side) if piece is not None]

    @property
    def right_connection(self) -> Optional["Piece"]:
        return self.neighbor(Side.RIGHT)

    @property
    def down_connection(self) -> Optional["Piece"]:
        return self.neighbor(Side.DOWN)

    # Proximity

    def close_to(self, side: Side, other: "Piece") -> bool:
        """Whether ``side`` of this piece lies within proximity of the facing side of ``other``."""
        return self.side_anchor(side).close_to(other.side_anchor(side.opposite), self._puzzle.proximity)

    def horizontally_close_to(self, other: "Piece") -> bool:
        return self.close_to(Side.RIGHT, other)

    def vertically_close_to(self, other: "Piece") -> bool:
        return self.close_to(Side.DOWN, other)

    def can_connect_with(self, side: Side, other: "Piece") -> bool:
        """Whether ``other`` may be linked on ``side`` right now.

        Both sides must be free, structurally compatible and within proximity.
        """
        return (
            other is not self
            and self._links[side].neighbor is None
            and other._links[side.opposite].neighbor is None
            and self.structure.fits(side, other.structure)
            and self.close_to(side, other)
        )

    def try_connect_with(self, other: "Piece") -> bool:
        """Link ``other`` on whichever side it fits and lies close to.

        Returns:
            True if a connection was made.
        """
        for side in Side:
            if self.can_connect_with(side, other):
                self._connect(side, other)
                return True
        return False

    # Connection protocol

    def connect_horizontally_with(self, other: "Piece") -> None:
        """Link ``other`` as the right neighbour of this piece.

        Raises:
            StructureMismatch: If the right side does not fit the left side of ``other``.
            SideOccupied: If either side is already linked to a different piece.
        """
        self._connect(Side.RIGHT, other)

    def connect_vertically_with(self, other: "Piece") -> None:
        """Link ``other`` as the bottom neighbour of this piece.

        Raises:
            StructureMismatch: If the down side does not fit the up side of ``other``.
            SideOccupied: If either side is already linked to a different piece.
        """
        self._connect(Side.DOWN, other)

    def _connect(self, side: Side, other: "Piece", notify: bool = True) -> None:
        if other is self:
            raise PuzzleError(f"{self} cannot be connected with itself")
        if other._puzzle is not self._puzzle:
            raise PuzzleError(f"{self} and {other} belong to different puzzles")
        if not self.structure.fits(side, other.structure):
            raise StructureMismatch(
                self, other, side.value, self.structure.insert(side), other.structure.insert(side.opposite)
            )

        mine = self._links[side]
        theirs = other._links[side.opposite]
        if mine.neighbor not in (None, other._index):
            raise SideOccupied(f"{side.value} side of {self} is already linked to {self.neighbor(side)}")
        if theirs.neighbor not in (None, self._index):
            raise SideOccupied(
                f"{side.opposite.value} side of {other} is already linked to {other.neighbor(side.opposite)}"
            )

        self._links[side] = Link(neighbor=other._index, connected=True)
        other._links[side.opposite] = Link(neighbor=self._index, connected=True)
        logger.debug("Connected %s (%s) with %s", self, side.value, other)
        if notify:
            self._puzzle._fire_connect(self, other)

    def disconnect(self) -> None:
        """Break every link of this piece.

        One disconnect signal is emitted per broken link, in up, right, down,
        left order. Calling it on an unlinked piece does nothing.
        """
        for side in Side:
            link = self._links[side]
            if not link.connected or link.neighbor is None:
                continue
            neighbor = self._puzzle.piece_at(link.neighbor)
            self._links[side] = Link()
            neighbor._links[side.opposite] = Link()
            logger.debug("Disconnected %s (%s) from %s", self, side.value, neighbor)
            self._puzzle._fire_disconnect(self, neighbor)

    def __repr__(self) -> str:
        key = self.key
        label = key.id if isinstance(key, ById) else f"#{key.index}"
        return f"Piece({label}, {self.structure.to_notation()!r})"
