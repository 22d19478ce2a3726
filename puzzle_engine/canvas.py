"""Canvas: keeps a puzzle and its rendered figures in sync.

The canvas owns one puzzle and one painter. Drawing lazily asks the painter
for a figure per piece, keyed by the piece id or its 1-based index. Connect
and disconnect signals of the puzzle are forwarded to the canvas listeners
together with the figures of the pieces involved.
"""

import logging
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .anchor import Anchor
from .config import settings
from .errors import UnknownPiece
from .metadata import PieceKey
from .painters import NullLayer, SupportsSketch
from .piece import Piece
from .puzzle import GridOptions, MetadataLike, Puzzle
from .structure import StructureLike

logger = logging.getLogger(__name__)

ConnectFigureListener = Callable[[Piece, Any, Piece, Any], None]
DisconnectFigureListener = Callable[..., None]


class CanvasSettings(BaseModel):
    """Configuration surface of a :class:`Canvas`."""

    model_config = ConfigDict(
        arbitrary_types_allowed=True, extra="forbid", alias_generator=to_camel, populate_by_name=True
    )

    width: float = Field(..., gt=0, description="Canvas width, bounds shuffling")
    height: float = Field(..., gt=0, description="Canvas height, bounds shuffling")
    piece_size: float = Field(default_factory=lambda: settings.DEFAULT_PIECE_SIZE, gt=0)
    proximity: float = Field(default_factory=lambda: settings.DEFAULT_PROXIMITY, ge=0)
    border_fill: float = Field(default=0.0, ge=0, description="Margin kept around the generated grid")
    stroke_width: float = Field(default=3.0, ge=0)
    line_softness: float = Field(default=0.0, ge=0)
    stroke_color: str = "black"
    scale_factor: float = Field(
        default_factory=lambda: settings.CANVAS_SCALE_FACTOR,
        gt=0,
        description="Canvas units per puzzle unit",
    )
    painter: SupportsSketch


class Canvas:
    """Rendering surface of a single puzzle.

    Geometry on the canvas (``piece_size``, ``proximity``, bounds) is
    expressed in canvas units; the owned puzzle works in puzzle units,
    ``scale_factor`` times smaller.
    """

    def __init__(self, **options: Any) -> None:
        """Initialize the canvas.

        Args:
            **options: Fields of :class:`CanvasSettings`, in snake_case or
                camelCase (``piece_size`` or ``pieceSize``).

        Raises:
            pydantic.ValidationError: If the painter is missing, an option is
                unknown or the geometry is invalid.
        """
        config = CanvasSettings(**options)
        self.width = config.width
        self.height = config.height
        self.piece_size = config.piece_size
        self.proximity = config.proximity
        self.border_fill = config.border_fill
        self.stroke_width = config.stroke_width
        self.line_softness = config.line_softness
        self.stroke_color = config.stroke_color
        self.scale_factor = config.scale_factor
        self._painter = config.painter

        self._puzzle: Optional[Puzzle] = None
        self._figures: Dict[PieceKey, Any] = {}
        self.layer: Any = None
        self.drawn = False
        self._connect_listeners: List[ConnectFigureListener] = []
        self._disconnect_listeners: List[Tuple[DisconnectFigureListener, bool]] = []

    @property
    def painter(self) -> SupportsSketch:
        return self._painter

    @property
    def puzzle(self) -> Puzzle:
        """The owned puzzle, created empty on first access."""
        if self._puzzle is not None:
            return self._puzzle
        puzzle = Puzzle(
            piece_size=self.piece_size / self.scale_factor,
            proximity=self.proximity / self.scale_factor,
        )
        self._adopt(puzzle)
        return puzzle

    @property
    def figures(self) -> Mapping[PieceKey, Any]:
        """Read-only view of the figures drawn so far."""
        return MappingProxyType(self._figures)

    def _adopt(self, puzzle: Puzzle) -> None:
        # The relays are wired to the owned puzzle only, and at most once
        self._release()
        self._puzzle = puzzle
        puzzle.on_connect(self._relay_connect)
        puzzle.on_disconnect(self._relay_disconnect)

    def _release(self) -> None:
        if self._puzzle is not None:
            self._puzzle.off_connect(self._relay_connect)
            self._puzzle.off_disconnect(self._relay_disconnect)
        self._puzzle = None
        self._figures = {}
        self.layer = None
        self.drawn = False

    # Building

    def sketch_piece(self, structure: StructureLike = None, metadata: MetadataLike = None) -> Piece:
        """Add a single piece to the owned puzzle without drawing it."""
        return self.puzzle.new_piece(structure, metadata)

    def render_puzzle(self, puzzle: Puzzle) -> None:
        """Replace the owned puzzle with ``puzzle`` and adopt its geometry."""
        self._adopt(puzzle)
        self.piece_size = puzzle.piece_size * self.scale_factor
        self.proximity = puzzle.proximity * self.scale_factor
        logger.info("Rendering %r", puzzle)

    def autogenerate(self, **options: Any) -> List[Piece]:
        """Generate a grid in the owned puzzle, inside the border fill.

        Args:
            **options: Fields of :class:`GridOptions`.
        """
        puzzle = self.puzzle
        offset = self.border_fill / self.scale_factor + puzzle.piece_size / 2
        options.setdefault("origin", Anchor(x=offset, y=offset))
        return puzzle.autogenerate(GridOptions(**options))

    def shuffle(self, factor: float) -> None:
        """Scatter the pieces within the central ``factor`` of the canvas."""
        self.puzzle.shuffle(factor, self.width / self.scale_factor, self.height / self.scale_factor)

    # Rendering

    def draw(self) -> None:
        """Sketch a figure for every piece that has none yet, then draw the layer.

        Painters without ``create_layer`` sketch onto a :class:`NullLayer` and
        painters without ``draw`` skip the final rendering step.
        """
        if self.layer is None:
            create_layer = getattr(self._painter, "create_layer", None)
            self.layer = create_layer(self) if create_layer is not None else NullLayer()
        for piece in self.puzzle:
            key = piece.key
            if key not in self._figures:
                self._figures[key] = self._painter.sketch(self.layer, piece, self)
        render = getattr(self._painter, "draw", None)
        if render is not None:
            render(self.layer)
        self.drawn = True
        logger.debug("Drew %d figures", len(self._figures))

    def get_figure(self, piece: Piece) -> Optional[Any]:
        """Return the figure of ``piece``, or None if it was never drawn here."""
        if piece.puzzle is not self._puzzle:
            return None
        return self._figures.get(piece.key)

    def require_figure(self, piece: Piece) -> Any:
        """Return the figure of ``piece``.

        Raises:
            UnknownPiece: If the piece was never drawn on this canvas.
        """
        figure = self.get_figure(piece)
        if figure is None:
            raise UnknownPiece(f"{piece} has not been drawn on this canvas")
        return figure

    def clear(self) -> None:
        """Drop the puzzle, its figures and the layer. The painter is kept."""
        self._release()
        logger.info("Cleared canvas")

    # Events

    def on_connect(self, listener: ConnectFigureListener) -> None:
        """Call ``listener(piece, figure, target, target_figure)`` on every connection."""
        self._connect_listeners.append(listener)

    def on_disconnect(self, listener: DisconnectFigureListener, with_neighbor: bool = False) -> None:
        """Call ``listener(piece, figure)`` for every broken link.

        Args:
            listener: The callback.
            with_neighbor: Also pass the former neighbour and its figure:
                ``listener(piece, figure, neighbor, neighbor_figure)``.
        """
        self._disconnect_listeners.append((listener, with_neighbor))

    def _relay_connect(self, piece: Piece, target: Piece) -> None:
        if piece.puzzle is not self._puzzle:
            return
        figure, target_figure = self.get_figure(piece), self.get_figure(target)
        for listener in list(self._connect_listeners):
            listener(piece, figure, target, target_figure)

    def _relay_disconnect(self, piece: Piece, neighbor: Piece) -> None:
        if piece.puzzle is not self._puzzle:
            return
        figure = self.get_figure(piece)
        for listener, with_neighbor in list(self._disconnect_listeners):
            if with_neighbor:
                listener(piece, figure, neighbor, self.get_figure(neighbor))
            else:
                listener(piece, figure)
