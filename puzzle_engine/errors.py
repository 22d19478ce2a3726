"""Exceptions raised by the puzzle engine."""


class PuzzleError(Exception):
    """Base class for puzzle engine errors."""


class StructureMismatch(PuzzleError):
    """Raised when two pieces are connected through incompatible sides."""

    def __init__(self, piece: object, other: object, side: str, insert: object, facing: object) -> None:
        """Build the error message from the offending sides.

        Args:
            piece: The piece the connection was requested on.
            other: The piece it was asked to connect with.
            side: The side of ``piece`` that touches ``other``.
            insert: The insert on that side.
            facing: The insert on the facing side of ``other``.
        """
        self.piece = piece
        self.other = other
        self.side = side
        super().__init__(f"Cannot connect {piece} with {other}: {side} side is {insert}, facing side is {facing}")


class SideOccupied(PuzzleError):
    """Raised when a side already linked to another piece is linked again."""


class UnknownPiece(PuzzleError, KeyError):
    """Raised by strict figure lookups for pieces that were never drawn."""


class InvalidShuffleFactor(PuzzleError, ValueError):
    """Raised when a shuffle factor lies outside (0, 1]."""
