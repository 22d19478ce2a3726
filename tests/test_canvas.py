"""Tests for canvas drawing and event synchronization."""

from typing import Any, List

import pytest
from pydantic import ValidationError

from puzzle_engine import (
    ById,
    ByIndex,
    Canvas,
    DummyPainter,
    Flat,
    Puzzle,
    Slot,
    Tab,
    UnknownPiece,
    anchor,
    generators,
)
from puzzle_engine.painters import NullLayer

painter = DummyPainter()


@pytest.fixture
def canvas() -> Canvas:
    """Create a fully configured canvas with the dummy painter."""
    return Canvas(
        width=800,
        height=800,
        piece_size=100,
        proximity=20,
        border_fill=10,
        stroke_width=2,
        line_softness=0.12,
        stroke_color="red",
        painter=painter,
    )


def test_single_piece_puzzle(canvas: Canvas) -> None:
    """Test drawing a single sketched piece."""
    canvas.sketch_piece(
        structure={"right": Tab, "down": Tab, "left": Slot},
        metadata={"id": "a", "current_position": {"x": 50, "y": 50}, "color": "red"},
    )

    canvas.draw()

    assert isinstance(canvas.layer, NullLayer)
    assert canvas.layer.figures == 1
    assert canvas.layer.drawn is True
    assert ByIndex(1) not in canvas.figures
    assert ById("a") in canvas.figures
    assert len(canvas.puzzle.pieces) == 1
    assert canvas.puzzle.head is not None
    assert canvas.puzzle.head.central_anchor == anchor(50, 50)


def test_single_piece_without_positions() -> None:
    """Test that positions default to the origin without aliasing."""
    canvas = Canvas(width=800, height=800, painter=painter)
    canvas.sketch_piece(structure="----", metadata={"id": "a"})

    canvas.draw()

    head = canvas.puzzle.head
    assert head is not None
    assert head.metadata.target_position == anchor(0, 0)
    assert head.metadata.current_position == head.metadata.target_position
    assert head.metadata.current_position is not head.metadata.target_position


def test_single_piece_with_target_only() -> None:
    """Test that the current position defaults to a copy of the target."""
    canvas = Canvas(width=800, height=800, painter=painter)
    canvas.sketch_piece(structure="----", metadata={"id": "a", "target_position": {"x": 10, "y": 15}})

    canvas.draw()

    head = canvas.puzzle.head
    assert head is not None
    assert head.metadata.target_position == anchor(10, 15)
    assert head.metadata.current_position == head.metadata.target_position
    assert head.metadata.current_position is not head.metadata.target_position


def test_single_piece_from_notation(canvas: Canvas) -> None:
    """Test sketching a piece from the compact notation."""
    canvas.sketch_piece(
        structure="STS-",
        metadata={"id": "a", "current_position": {"x": 50, "y": 50}, "color": "red"},
    )

    canvas.draw()

    assert canvas.layer.figures == 1
    assert ById("a") in canvas.figures
    [piece] = canvas.puzzle.pieces
    assert piece.right is Slot
    assert piece.down is Tab
    assert piece.left is Slot
    assert piece.up is Flat


def test_autogenerated_puzzle(canvas: Canvas) -> None:
    """Test drawing an autogenerated and shuffled puzzle."""
    canvas.autogenerate(
        vertical_pieces_count=4,
        horizontal_pieces_count=4,
        inserts_generator=generators.flipflop,
    )
    canvas.shuffle(0.7)

    canvas.draw()

    assert canvas.layer.figures == 16
    assert canvas.layer.drawn is True
    assert ByIndex(0) not in canvas.figures
    assert ByIndex(1) in canvas.figures
    assert ByIndex(16) in canvas.figures
    assert ByIndex(17) not in canvas.figures
    assert len(canvas.puzzle.pieces) == 16
    for piece in canvas.puzzle:
        assert canvas.get_figure(piece) is not None
        assert 0 <= piece.central_anchor.x <= 400
        assert 0 <= piece.central_anchor.y <= 400


def test_autogenerated_grid_sits_inside_border(canvas: Canvas) -> None:
    """Test that the first cell is offset by the border fill and half a piece."""
    canvas.autogenerate(vertical_pieces_count=2, horizontal_pieces_count=2)

    first, second, _, _ = canvas.puzzle.pieces

    assert canvas.puzzle.piece_size == 50
    assert first.target_anchor == anchor(30, 30)
    assert second.target_anchor == anchor(80, 30)


def test_draw_is_idempotent(canvas: Canvas) -> None:
    """Test that already drawn pieces are not sketched again."""
    canvas.autogenerate(vertical_pieces_count=2, horizontal_pieces_count=2)
    canvas.draw()
    figures = dict(canvas.figures)

    canvas.draw()
    canvas.sketch_piece(metadata={"id": "extra"})
    canvas.draw()

    assert canvas.layer.figures == 5
    for key, figure in figures.items():
        assert canvas.figures[key] is figure


def test_clear_canvas(canvas: Canvas) -> None:
    """Test that clearing drops the puzzle and figures but keeps the painter."""
    canvas.autogenerate()
    canvas.draw()

    canvas.clear()

    assert canvas.painter is painter
    assert canvas._puzzle is None
    assert len(canvas.puzzle.pieces) == 0
    assert dict(canvas.figures) == {}
    assert canvas.layer is None


def test_render_whole_puzzle() -> None:
    """Test adopting an externally built puzzle and its geometry."""
    canvas = Canvas(width=800, height=800, painter=painter)
    puzzle = Puzzle(piece_size=13, proximity=7)
    puzzle.new_piece({"right": Tab}).place_at(anchor(0, 0))
    puzzle.new_piece({"left": Slot, "right": Tab}).place_at(anchor(3, 0))

    canvas.render_puzzle(puzzle)
    canvas.draw()

    assert canvas.puzzle is puzzle
    assert canvas.layer.figures == 2
    assert canvas.layer.drawn is True
    assert canvas.piece_size == 26
    assert canvas.proximity == 14


def test_render_puzzle_rebuilds_figures(canvas: Canvas) -> None:
    """Test that figures of the previous puzzle are discarded."""
    canvas.autogenerate(vertical_pieces_count=1, horizontal_pieces_count=2)
    canvas.draw()
    old = canvas.puzzle.head
    assert old is not None

    replacement = Puzzle(piece_size=10)
    replacement.new_piece()
    canvas.render_puzzle(replacement)

    assert dict(canvas.figures) == {}
    assert canvas.get_figure(old) is None
    canvas.draw()
    assert list(canvas.figures) == [ByIndex(1)]


def test_autogenerated_puzzle_with_metadata(canvas: Canvas) -> None:
    """Test that metadata entries are merged into generated pieces."""
    canvas.autogenerate(
        vertical_pieces_count=2,
        horizontal_pieces_count=2,
        metadata=[{"label": {"text": text}} for text in "abcd"],
    )
    canvas.draw()

    labels = [piece.metadata.label["text"] for piece in canvas.puzzle.pieces]  # type: ignore[attr-defined]
    assert labels == ["a", "b", "c", "d"]


def test_get_figure_before_draw(canvas: Canvas) -> None:
    """Test that lookups of undrawn pieces report absence."""
    piece = canvas.sketch_piece(metadata={"id": "a"})

    assert canvas.get_figure(piece) is None
    with pytest.raises(UnknownPiece):
        canvas.require_figure(piece)

    canvas.draw()

    assert canvas.require_figure(piece) is canvas.get_figure(piece)


def test_get_figure_of_foreign_piece(canvas: Canvas) -> None:
    """Test that pieces of other puzzles have no figure here."""
    canvas.sketch_piece()
    canvas.draw()
    stranger = Puzzle().new_piece()

    assert canvas.get_figure(stranger) is None


def test_connect_events_carry_figures(canvas: Canvas) -> None:
    """Test that connect listeners receive both pieces and their figures."""
    canvas.autogenerate(vertical_pieces_count=2, horizontal_pieces_count=2, inserts_generator=generators.flipflop)
    canvas.draw()
    assert canvas.layer.figures == 4
    first, second = canvas.puzzle.pieces[:2]
    events: List[Any] = []
    canvas.on_connect(lambda *args: events.append(args))

    first.disconnect()
    first.connect_horizontally_with(second)

    assert len(events) == 1
    piece, figure, target, target_figure = events[0]
    assert piece is first
    assert figure is canvas.get_figure(first)
    assert target is second
    assert target_figure is canvas.get_figure(second)
    assert figure is not None and target_figure is not None


def test_disconnect_events_carry_figures(canvas: Canvas) -> None:
    """Test one connect then one disconnect, each with resolved figures."""
    canvas.autogenerate(vertical_pieces_count=1, horizontal_pieces_count=2, inserts_generator=generators.flipflop)
    canvas.draw()
    first, second = canvas.puzzle.pieces
    connects: List[Any] = []
    disconnects: List[Any] = []
    canvas.on_connect(lambda *args: connects.append(args))
    canvas.on_disconnect(lambda *args: disconnects.append(args))

    first.connect_horizontally_with(second)
    first.disconnect()

    assert connects == [(first, canvas.get_figure(first), second, canvas.get_figure(second))]
    assert disconnects == [(first, canvas.get_figure(first))]


def test_disconnect_events_with_neighbor(canvas: Canvas) -> None:
    """Test the optional neighbour payload of disconnect events."""
    canvas.autogenerate(vertical_pieces_count=1, horizontal_pieces_count=2)
    canvas.draw()
    first, second = canvas.puzzle.pieces
    events: List[Any] = []
    canvas.on_disconnect(lambda *args: events.append(args), with_neighbor=True)

    second.disconnect()

    assert events == [(second, canvas.get_figure(second), first, canvas.get_figure(first))]


def test_multiple_disconnect_events(canvas: Canvas) -> None:
    """Test that the centre of a 3x3 grid emits four disconnect events."""
    canvas.autogenerate(vertical_pieces_count=3, horizontal_pieces_count=3, inserts_generator=generators.flipflop)
    canvas.draw()
    assert canvas.layer.figures == 9
    center = canvas.puzzle.pieces[4]
    figures: List[Any] = []
    canvas.on_disconnect(lambda piece, figure: figures.append(figure))

    center.disconnect()

    assert figures == [canvas.get_figure(center)] * 4


def test_listeners_run_in_subscription_order(canvas: Canvas) -> None:
    """Test that several listeners are all called, in order."""
    canvas.autogenerate(vertical_pieces_count=1, horizontal_pieces_count=2)
    canvas.draw()
    calls: List[str] = []
    canvas.on_disconnect(lambda piece, figure: calls.append("first"))
    canvas.on_disconnect(lambda piece, figure: calls.append("second"))

    canvas.puzzle.pieces[0].disconnect()

    assert calls == ["first", "second"]


def test_listeners_survive_clear(canvas: Canvas) -> None:
    """Test that listeners follow the canvas to its next puzzle."""
    canvas.autogenerate(vertical_pieces_count=1, horizontal_pieces_count=2)
    old_first = canvas.puzzle.pieces[0]
    calls: List[Any] = []
    canvas.on_disconnect(lambda piece, figure: calls.append(piece))

    canvas.clear()
    old_first.disconnect()
    canvas.autogenerate(vertical_pieces_count=1, horizontal_pieces_count=2)
    canvas.draw()
    new_first = canvas.puzzle.pieces[0]
    new_first.disconnect()

    assert calls == [new_first]


def test_events_before_draw_have_no_figures(canvas: Canvas) -> None:
    """Test that events are still delivered for undrawn pieces."""
    canvas.autogenerate(vertical_pieces_count=1, horizontal_pieces_count=2)
    events: List[Any] = []
    canvas.on_disconnect(lambda *args: events.append(args))

    canvas.puzzle.pieces[0].disconnect()

    assert events == [(canvas.puzzle.pieces[0], None)]


def test_missing_painter_is_rejected() -> None:
    """Test that a canvas cannot be built without a painter."""
    with pytest.raises(ValidationError):
        Canvas(width=800, height=800)


@pytest.mark.parametrize("options", [{"width": 0, "height": 800}, {"width": 800, "height": 800, "piece_size": -1}])
def test_invalid_geometry_is_rejected(options: dict) -> None:
    """Test that invalid canvas geometry fails at construction."""
    with pytest.raises(ValidationError):
        Canvas(painter=painter, **options)


def test_rendering_same_puzzle_twice_relays_once(canvas: Canvas) -> None:
    """Test that re-rendering a puzzle does not duplicate its events."""
    puzzle = Puzzle(piece_size=50)
    puzzle.autogenerate(vertical_pieces_count=1, horizontal_pieces_count=2)
    events: List[Any] = []
    canvas.on_disconnect(lambda *args: events.append(args))

    canvas.render_puzzle(puzzle)
    canvas.render_puzzle(puzzle)
    puzzle.pieces[0].disconnect()

    assert len(events) == 1


def test_render_clear_render_relays_once(canvas: Canvas) -> None:
    """Test that a puzzle rendered again after clear emits one event per connect."""
    puzzle = Puzzle(piece_size=50)
    first, second = puzzle.autogenerate(vertical_pieces_count=1, horizontal_pieces_count=2)
    first.disconnect()
    events: List[Any] = []
    canvas.on_connect(lambda *args: events.append(args))

    canvas.render_puzzle(puzzle)
    canvas.clear()
    canvas.render_puzzle(puzzle)
    first.connect_horizontally_with(second)

    assert len(events) == 1


def test_replaced_puzzle_is_released(canvas: Canvas) -> None:
    """Test that the canvas stops listening to a puzzle it no longer owns."""
    old = Puzzle(piece_size=50)
    first, second = old.autogenerate(vertical_pieces_count=1, horizontal_pieces_count=2)
    raw: List[Any] = []
    old.on_disconnect(lambda piece, neighbor: raw.append(piece))
    events: List[Any] = []
    canvas.on_disconnect(lambda *args: events.append(args))

    canvas.render_puzzle(old)
    canvas.render_puzzle(Puzzle(piece_size=50))
    first.disconnect()

    assert raw == [first]
    assert events == []


def test_camel_case_options_are_accepted() -> None:
    """Test that options may use their camelCase names."""
    canvas = Canvas(width=800, height=800, pieceSize=100, borderFill=10, strokeColor="red", painter=painter)

    assert canvas.piece_size == 100
    assert canvas.border_fill == 10
    assert canvas.stroke_color == "red"

    pieces = canvas.autogenerate(verticalPiecesCount=2, horizontalPiecesCount=3)
    assert len(pieces) == 6


def test_unknown_option_is_rejected() -> None:
    """Test that misspelled canvas options fail instead of being ignored."""
    with pytest.raises(ValidationError):
        Canvas(width=800, height=800, painter=painter, pieceSise=100)


def test_unknown_grid_option_is_rejected(canvas: Canvas) -> None:
    """Test that misspelled grid options fail and generate nothing."""
    with pytest.raises(ValidationError):
        canvas.autogenerate(verticalPieceCount=3)

    assert len(canvas.puzzle) == 0


class SketchOnlyPainter:
    """Painter honouring only the minimal contract, without subclassing Painter."""

    def sketch(self, layer: Any, piece: Any, canvas: Canvas) -> str:
        return f"figure-{piece.index}"


def test_duck_typed_painter_is_accepted() -> None:
    """Test that any object with a sketch method can paint."""
    canvas = Canvas(width=200, height=200, painter=SketchOnlyPainter())
    canvas.autogenerate(vertical_pieces_count=1, horizontal_pieces_count=2)

    canvas.draw()

    assert isinstance(canvas.layer, NullLayer)
    assert canvas.drawn is True
    assert [canvas.get_figure(piece) for piece in canvas.puzzle] == ["figure-0", "figure-1"]


def test_painter_without_sketch_is_rejected() -> None:
    """Test that objects unable to sketch are not accepted as painters."""
    with pytest.raises(ValidationError):
        Canvas(width=200, height=200, painter=object())
