"""Puzzle engine - jigsaw puzzle graph and connection engine.

This package models pieces with interlocking edges, autogenerates grid
puzzles, tracks which pieces are joined and keeps a rendering canvas in sync
with the puzzle through a pluggable painter.
"""

from . import generators, painters
from .anchor import Anchor, anchor
from .canvas import Canvas, CanvasSettings
from .config import Settings, configure_logging, get_settings, settings
from .errors import InvalidShuffleFactor, PuzzleError, SideOccupied, StructureMismatch, UnknownPiece
from .generators import flipflop, two_and_two
from .metadata import ById, ByIndex, Metadata, PieceKey
from .painters import DummyPainter, Painter, PillowPainter, SupportsSketch
from .piece import Piece
from .puzzle import GridOptions, Puzzle
from .structure import Flat, Insert, Side, Slot, Structure, Tab, compatible

__all__ = [
    # Geometry
    "Anchor",
    "anchor",
    # Structure
    "Insert",
    "Tab",
    "Slot",
    "Flat",
    "Side",
    "Structure",
    "compatible",
    # Graph
    "Metadata",
    "ById",
    "ByIndex",
    "PieceKey",
    "Piece",
    "Puzzle",
    "GridOptions",
    "generators",
    "flipflop",
    "two_and_two",
    # Rendering
    "Canvas",
    "CanvasSettings",
    "painters",
    "Painter",
    "SupportsSketch",
    "DummyPainter",
    "PillowPainter",
    # Configuration
    "Settings",
    "get_settings",
    "settings",
    "configure_logging",
    # Errors
    "PuzzleError",
    "StructureMismatch",
    "SideOccupied",
    "UnknownPiece",
    "InvalidShuffleFactor",
]
