"""Puzzle: an ordered collection of pieces plus its geometry.

The puzzle is the arena that owns every piece. Pieces refer to their
neighbours by index into it, and connect/disconnect signals raised by
pieces are dispatched from here to the registered observers.
"""

import logging
import random
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .anchor import Anchor
from .config import settings
from .errors import InvalidShuffleFactor
from .generators import InsertsGenerator, flipflop
from .metadata import ByIndex, Metadata, PieceKey
from .piece import Piece
from .structure import Insert, Side, Structure, StructureLike

logger = logging.getLogger(__name__)

ConnectListener = Callable[[Piece, Piece], None]
DisconnectListener = Callable[[Piece, Piece], None]
MetadataLike = Union[Metadata, Mapping[str, Any], None]


class GridOptions(BaseModel):
    """Options accepted by :meth:`Puzzle.autogenerate`."""

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)

    vertical_pieces_count: int = Field(
        default_factory=lambda: settings.DEFAULT_VERTICAL_PIECES_COUNT, gt=0, description="Number of rows"
    )
    horizontal_pieces_count: int = Field(
        default_factory=lambda: settings.DEFAULT_HORIZONTAL_PIECES_COUNT, gt=0, description="Number of columns"
    )
    inserts_generator: InsertsGenerator = Field(default=flipflop, description="Insert chosen for each interior edge")
    metadata: Optional[List[Dict[str, Any]]] = Field(
        default=None, description="Metadata merged into the generated pieces, in row-major order"
    )
    origin: Anchor = Field(default_factory=lambda: Anchor(x=0, y=0), description="Position of the first cell")


class Puzzle:
    """An insertion-ordered collection of pieces."""

    def __init__(
        self,
        piece_size: Optional[float] = None,
        proximity: Optional[float] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        """Initialize an empty puzzle.

        Args:
            piece_size: Edge length of a piece. Defaults to the configured canvas
                piece size divided by the canvas scale factor.
            proximity: Maximum distance at which facing sides may auto-connect.
            rng: Random source used by :meth:`shuffle`.

        Raises:
            ValueError: If ``piece_size`` is not positive or ``proximity`` is negative.
        """
        scale = settings.CANVAS_SCALE_FACTOR
        self.piece_size = settings.DEFAULT_PIECE_SIZE / scale if piece_size is None else piece_size
        self.proximity = settings.DEFAULT_PROXIMITY / scale if proximity is None else proximity
        if self.piece_size <= 0:
            raise ValueError(f"piece_size must be positive, got {self.piece_size}")
        if self.proximity < 0:
            raise ValueError(f"proximity must not be negative, got {self.proximity}")

        self.rng = rng or random.Random()
        self._pieces: List[Piece] = []
        self._connect_listeners: List[ConnectListener] = []
        self._disconnect_listeners: List[DisconnectListener] = []

    # Collection

    @property
    def pieces(self) -> List[Piece]:
        """The pieces in insertion order."""
        return list(self._pieces)

    @property
    def head(self) -> Optional[Piece]:
        """The first piece, if any."""
        return self._pieces[0] if self._pieces else None

    def piece_at(self, index: int) -> Piece:
        return self._pieces[index]

    def piece_for(self, key: PieceKey) -> Optional[Piece]:
        """Resolve a piece key, returning None when nothing matches."""
        if isinstance(key, ByIndex):
            if 1 <= key.index <= len(self._pieces):
                return self._pieces[key.index - 1]
            return None
        for piece in self._pieces:
            if piece.key == key:
                return piece
        return None

    def __len__(self) -> int:
        return len(self._pieces)

    def __iter__(self) -> Iterator[Piece]:
        return iter(self._pieces)

    def new_piece(self, structure: StructureLike = None, metadata: MetadataLike = None) -> Piece:
        """Append a new piece and return it.

        Args:
            structure: A :class:`Structure`, a compact notation string or a
                mapping of sides to inserts. Missing sides are flat.
            metadata: A :class:`Metadata` or a mapping of its fields.
        """
        piece = self._build_piece(structure, metadata, len(self._pieces))
        self._pieces.append(piece)
        return piece

    def _build_piece(self, structure: StructureLike, metadata: MetadataLike, index: int) -> Piece:
        if isinstance(metadata, Metadata):
            resolved = metadata
        else:
            resolved = Metadata.model_validate(dict(metadata or {}))
        return Piece(self, index, Structure.coerce(structure), resolved)

    # Signals

    def on_connect(self, listener: ConnectListener) -> None:
        """Call ``listener(piece, target)`` whenever two pieces are connected."""
        self._connect_listeners.append(listener)

    def on_disconnect(self, listener: DisconnectListener) -> None:
        """Call ``listener(piece, neighbor)`` for every link broken by a disconnect."""
        self._disconnect_listeners.append(listener)

    def off_connect(self, listener: ConnectListener) -> None:
        """Stop calling a listener registered with :meth:`on_connect`."""
        if listener in self._connect_listeners:
            self._connect_listeners.remove(listener)

    def off_disconnect(self, listener: DisconnectListener) -> None:
        if listener in self._disconnect_listeners:
            self._disconnect_listeners.remove(listener)

    def _fire_connect(self, piece: Piece, target: Piece) -> None:
        for listener in list(self._connect_listeners):
            listener(piece, target)

    def _fire_disconnect(self, piece: Piece, neighbor: Piece) -> None:
        for listener in list(self._disconnect_listeners):
            listener(piece, neighbor)

    # Generation

    def autogenerate(self, options: Optional[GridOptions] = None, **kwargs: Any) -> List[Piece]:
        """Generate a fully assembled grid of pieces.

        Cells are created in row-major order. The right and bottom inserts
        of each interior cell come from the inserts generator and the facing
        cell gets the complement, so every interior edge interlocks. Border
        sides are flat. All grid neighbours start connected, without
        emitting connect signals.

        Args:
            options: Grid options. Keyword arguments build one when omitted.

        Returns:
            The generated pieces.

        The grid is built and linked apart from the puzzle and only appended
        once complete, so a failure leaves the puzzle untouched.

        Raises:
            pydantic.ValidationError: If the options or a metadata entry are
                invalid, e.g. a non-positive pieces count.
            ValueError: If the inserts generator returns neither a tab nor a slot.
        """
        opts = options or GridOptions(**kwargs)
        rows = opts.vertical_pieces_count
        cols = opts.horizontal_pieces_count
        entries = opts.metadata or []

        def generate(row: int, col: int) -> Insert:
            insert = opts.inserts_generator(row, col)
            if insert not in (Insert.TAB, Insert.SLOT):
                raise ValueError(f"Inserts generator returned {insert!r} for cell ({row}, {col})")
            return insert

        start = len(self._pieces)
        grid: List[List[Piece]] = []
        for row in range(rows):
            line: List[Piece] = []
            for col in range(cols):
                structure = Structure(
                    up=Insert.NONE if row == 0 else generate(row - 1, col).complement(),
                    right=Insert.NONE if col == cols - 1 else generate(row, col),
                    down=Insert.NONE if row == rows - 1 else generate(row, col),
                    left=Insert.NONE if col == 0 else generate(row, col - 1).complement(),
                )
                position = Anchor(x=col, y=row).scale(self.piece_size).translate(opts.origin.x, opts.origin.y)
                fields: Dict[str, Any] = {"current_position": position, "target_position": position}
                cell = row * cols + col
                if cell < len(entries):
                    fields.update(entries[cell])
                line.append(self._build_piece(structure, fields, start + cell))
            grid.append(line)

        for row, line in enumerate(grid):
            for col, piece in enumerate(line):
                if col > 0:
                    line[col - 1]._connect(Side.RIGHT, piece, notify=False)
                if row > 0:
                    grid[row - 1][col]._connect(Side.DOWN, piece, notify=False)

        pieces = [piece for line in grid for piece in line]
        self._pieces.extend(pieces)
        logger.info("Autogenerated a %dx%d puzzle", rows, cols)
        return pieces

    def shuffle(self, factor: float, width: float, height: float) -> None:
        """Scatter every piece within the central ``factor`` of the bounds.

        Only current positions change; target positions are kept.

        Raises:
            InvalidShuffleFactor: If ``factor`` is not in (0, 1].
        """
        if not 0 < factor <= 1:
            raise InvalidShuffleFactor(f"Shuffle factor must be in (0, 1], got {factor}")

        span_x, span_y = width * factor, height * factor
        left, top = (width - span_x) / 2, (height - span_y) / 2
        for piece in self._pieces:
            piece.relocate_to(Anchor(x=left + self.rng.uniform(0, span_x), y=top + self.rng.uniform(0, span_y)))
        logger.debug("Shuffled %d pieces with factor %s", len(self._pieces), factor)

    # Assembly

    def autoconnect(self) -> int:
        """Connect every pair of pieces that lie close enough and fit.

        Returns:
            The number of connections made.
        """
        made = 0
        for piece in self._pieces:
            for other in self._pieces:
                if other is not piece and piece.try_connect_with(other):
                    made += 1
        return made

    def disconnect_all(self) -> None:
        for piece in self._pieces:
            piece.disconnect()

    @property
    def solved(self) -> bool:
        """Whether every piece sits at its target position."""
        return all(piece.central_anchor == piece.target_anchor for piece in self._pieces)

    @property
    def fully_connected(self) -> bool:
        """Whether every non-flat side of every piece is linked."""
        return all(
            piece.is_connected(side)
            for piece in self._pieces
            for side in Side
            if piece.structure.insert(side) is not Insert.NONE
        )

    def __repr__(self) -> str:
        return f"Puzzle(pieces={len(self._pieces)}, piece_size={self.piece_size}, proximity={self.proximity})"
