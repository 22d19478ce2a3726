"""Piece metadata and piece addressing."""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from .anchor import Anchor


class Metadata(BaseModel):
    """Open bag of values attached to a piece.

    Besides ``id`` and the two positions, any extra field (``color``,
    ``label``...) is accepted and handed to the painter untouched. The
    positions may also be given in camelCase (``currentPosition``,
    ``targetPosition``).

    The positions are always distinct objects: a missing target defaults to
    the origin and a missing current position to a copy of the target.
    """

    model_config = ConfigDict(extra="allow", alias_generator=to_camel, populate_by_name=True)

    id: Optional[str] = None
    current_position: Anchor
    target_position: Anchor = Field(default_factory=lambda: Anchor(x=0, y=0))

    @model_validator(mode="before")
    @classmethod
    def default_positions(cls, data: Any) -> Any:
        """Normalize position keys and derive a missing current position."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for name in ("current_position", "target_position"):
            alias = to_camel(name)
            if alias in data:
                data[name] = data.pop(alias)
            if data.get(name) is None:
                data.pop(name, None)
        if "current_position" not in data:
            data["current_position"] = data.get("target_position", Anchor(x=0, y=0))
        return data

    @model_validator(mode="after")
    def separate_positions(self) -> "Metadata":
        if self.current_position is self.target_position:
            self.current_position = self.target_position.clone()
        return self

    @property
    def hints(self) -> Dict[str, Any]:
        """Extra rendering hints, such as ``color`` or ``label``."""
        return dict(self.model_extra or {})


@dataclass(frozen=True)
class ById:
    """Key of a piece that carries an explicit id."""

    id: str


@dataclass(frozen=True)
class ByIndex:
    """Key of an anonymous piece: its 1-based insertion index."""

    index: int


PieceKey = Union[ById, ByIndex]
