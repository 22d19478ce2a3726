"""Painters turn pieces into figures on a rendering layer.

A painter is the only component that knows how drawing happens. The canvas
asks it for a layer once, for one figure per piece, and to draw the layer at
the end of every draw cycle.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, List, Optional, Protocol, Tuple, runtime_checkable

from PIL import Image, ImageDraw

from .anchor import Anchor
from .metadata import PieceKey
from .piece import Piece
from .structure import Insert, Side, Structure

if TYPE_CHECKING:
    from .canvas import Canvas

Point = Tuple[float, float]

# Insert depth relative to the piece size
INSERT_DEPTH_RATIO = 0.2
# Insert span along the edge, relative to the edge length
INSERT_START = 0.35
INSERT_END = 0.65


@runtime_checkable
class SupportsSketch(Protocol):
    """Minimal painter contract accepted by the canvas.

    Only ``sketch`` is required. ``create_layer`` and ``draw`` are used when
    the painter provides them.
    """

    def sketch(self, layer: Any, piece: Piece, canvas: "Canvas") -> Any:
        ...


class Painter(ABC):
    """Base class of the bundled painters, producing figures for pieces."""

    @abstractmethod
    def create_layer(self, canvas: "Canvas") -> Any:
        """Create the surface figures of ``canvas`` are drawn on."""

    @abstractmethod
    def sketch(self, layer: Any, piece: Piece, canvas: "Canvas") -> Any:
        """Create the figure of ``piece`` on ``layer`` and return it."""

    def draw(self, layer: Any) -> None:
        """Render every figure sketched on ``layer``."""


@dataclass
class NullLayer:
    """Layer that only counts what happened to it.

    Used by the dummy painter and by painters that create no layer of their own.
    """

    figures: int = 0
    drawn: bool = False


@dataclass(eq=False)
class DummyFigure:
    """Figure handle of the dummy painter, compared by identity."""

    key: PieceKey


class DummyPainter(Painter):
    """Painter that draws nothing, for tests and headless use."""

    def create_layer(self, canvas: "Canvas") -> NullLayer:
        return NullLayer()

    def sketch(self, layer: NullLayer, piece: Piece, canvas: "Canvas") -> DummyFigure:
        layer.figures += 1
        return DummyFigure(piece.key)

    def draw(self, layer: NullLayer) -> None:
        layer.drawn = True


def outline_points(center: Anchor, size: float, structure: Structure) -> List[Point]:
    """Compute the closed outline of a piece, clockwise from its top-left corner.

    Tabs bulge out of the square by ``INSERT_DEPTH_RATIO * size`` and slots
    dig into it by the same amount.

    Args:
        center: Centre of the piece.
        size: Edge length of the piece square.
        structure: Inserts of the piece.

    Returns:
        Outline vertices; the last vertex connects back to the first.
    """
    half = size / 2
    top_left = (center.x - half, center.y - half)
    top_right = (center.x + half, center.y - half)
    bottom_right = (center.x + half, center.y + half)
    bottom_left = (center.x - half, center.y + half)
    edges = (
        (Side.UP, top_left, top_right, (0.0, -1.0)),
        (Side.RIGHT, top_right, bottom_right, (1.0, 0.0)),
        (Side.DOWN, bottom_right, bottom_left, (0.0, 1.0)),
        (Side.LEFT, bottom_left, top_left, (-1.0, 0.0)),
    )

    points: List[Point] = []
    for side, start, end, normal in edges:
        points.append(start)
        insert = structure.insert(side)
        if insert is Insert.NONE:
            continue
        depth = size * INSERT_DEPTH_RATIO * (1 if insert is Insert.TAB else -1)
        dx, dy = end[0] - start[0], end[1] - start[1]
        for ratio, offset in ((INSERT_START, 0.0), (INSERT_START, depth), (INSERT_END, depth), (INSERT_END, 0.0)):
            points.append((start[0] + dx * ratio + normal[0] * offset, start[1] + dy * ratio + normal[1] * offset))
    return points


@dataclass
class PillowLayer:
    """Raster layer of the Pillow painter."""

    image: Image.Image
    background: Tuple[int, int, int, int]
    figures: List["PieceOutline"] = field(default_factory=list)
    drawn: bool = False


@dataclass(eq=False)
class PieceOutline:
    """Figure of the Pillow painter: a piece outline in canvas coordinates."""

    piece: Piece
    size: float
    scale: float
    fill: Optional[str]
    outline: str
    width: int

    @property
    def points(self) -> List[Point]:
        """Outline at the piece's current position."""
        return outline_points(self.piece.central_anchor.scale(self.scale), self.size, self.piece.structure)


class PillowPainter(Painter):
    """Painter drawing piece outlines onto a Pillow RGBA image.

    Pieces are filled with their ``color`` metadata hint, when present, and
    stroked with the canvas ``stroke_color`` and ``stroke_width``.
    """

    def __init__(self, background: Tuple[int, int, int, int] = (255, 255, 255, 0)):
        """Initialize the painter.

        Args:
            background: RGBA colour the layer is cleared with before drawing.
        """
        self.background = background

    def create_layer(self, canvas: "Canvas") -> PillowLayer:
        image = Image.new("RGBA", (int(canvas.width), int(canvas.height)), self.background)
        return PillowLayer(image=image, background=self.background)

    def sketch(self, layer: PillowLayer, piece: Piece, canvas: "Canvas") -> PieceOutline:
        figure = PieceOutline(
            piece=piece,
            size=canvas.piece_size,
            scale=canvas.scale_factor,
            fill=piece.metadata.hints.get("color"),
            outline=canvas.stroke_color,
            width=max(1, int(canvas.stroke_width)),
        )
        layer.figures.append(figure)
        return figure

    def draw(self, layer: PillowLayer) -> None:
        # Redraw from scratch so moved pieces leave no trace
        layer.image.paste(layer.background, (0, 0, *layer.image.size))
        draw = ImageDraw.Draw(layer.image)
        for figure in layer.figures:
            draw.polygon(figure.points, fill=figure.fill, outline=figure.outline, width=figure.width)
        layer.drawn = True
