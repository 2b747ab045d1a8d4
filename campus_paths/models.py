from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import DecodeError

# Placeholder value of an untouched selection control.
UNSELECTED = "Select..."


class Coordinate(BaseModel):
    """Pixel position on the map image's native resolution."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float

    @field_validator("x", "y")
    @classmethod
    def finite(cls, v: float) -> float:
        if v != v or v in (float("inf"), float("-inf")):
            raise ValueError("coordinate must be finite")
        return v

    def as_tuple(self) -> tuple[float, float]:
        return (self.x, self.y)


class PathSegment(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: Coordinate
    end: Coordinate
    cost: float


class Path(BaseModel):
    """Ordered route as walked; an empty path means there is nothing to draw."""

    model_config = ConfigDict(frozen=True)

    segments: tuple[PathSegment, ...] = ()

    def __len__(self) -> int:
        return len(self.segments)

    @property
    def is_empty(self) -> bool:
        return not self.segments

    @property
    def total_cost(self) -> float:
        return sum(seg.cost for seg in self.segments)


class FindPathPayload(BaseModel):
    """Body of a successful ``/find-path`` response.

    The server serializes its whole path object, so ``cost`` and ``start`` may
    also be present at the top level; only ``path`` is read.
    """

    model_config = ConfigDict(extra="ignore")

    path: list[PathSegment]


RenderPoints = tuple[Coordinate, ...]


def decode_path(payload: Any) -> Path:
    if not isinstance(payload, dict):
        raise DecodeError("find-path payload must be a JSON object")
    try:
        parsed = FindPathPayload.model_validate(payload, strict=True)
    except PydanticValidationError as e:
        raise DecodeError(f"find-path payload invalid: {e.error_count()} error(s)") from e
    return Path(segments=tuple(parsed.path))


def decode_directory(payload: Any) -> dict[str, str]:
    if not isinstance(payload, dict):
        raise DecodeError("get-map payload must be a JSON object")
    out: dict[str, str] = {}
    for key, value in payload.items():
        if not isinstance(key, str) or not isinstance(value, str):
            raise DecodeError(f"get-map entry {key!r} is not a string mapping")
        out[key] = value
    return out


def render_points(path: Path | Sequence[PathSegment]) -> RenderPoints:
    """Flatten a path into the points a polyline passes through.

    Each segment contributes its start; the last segment's end closes the
    sequence, so n segments give n + 1 points and no points for n == 0.
    """
    segments = path.segments if isinstance(path, Path) else tuple(path)
    if not segments:
        return ()
    points = [seg.start for seg in segments]
    points.append(segments[-1].end)
    return tuple(points)
