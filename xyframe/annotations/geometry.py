from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal


Point = tuple[float, float]


@dataclass(frozen=True)
class PointMarker:
    x: float
    y: float
    radius: float
    kind: str = "xy"
    label: str | None = None
    class_name: str = ""
    datum: Any = None


@dataclass(frozen=True)
class Callout:
    x: float
    y: float
    dx: float = 0.0
    dy: float = 0.0
    callout_type: Any = "react-annotation"
    note: Mapping[str, Any] | None = None
    subject: Mapping[str, Any] | None = None
    connector: Mapping[str, Any] | None = None
    class_name: str = ""
    datum: Any = None


@dataclass(frozen=True)
class EncloseCircle:
    cx: float
    cy: float
    r: float
    label: str | None = None
    class_name: str = ""


@dataclass(frozen=True)
class EncloseRect:
    x: float
    y: float
    width: float
    height: float
    label: str | None = None
    class_name: str = ""


@dataclass(frozen=True)
class ReferenceLine:
    """Axis-aligned line across the plot; the note anchor sits in the margin."""

    axis: Literal["x", "y"]
    x1: float
    y1: float
    x2: float
    y2: float
    note_x: float
    note_y: float
    label: str | None = None
    class_name: str = ""


@dataclass(frozen=True)
class BoundsRect:
    x: float
    y: float
    width: float
    height: float
    label: str | None = None
    class_name: str = ""


@dataclass(frozen=True)
class Polyline:
    points: tuple[Point, ...]
    label: str | None = None
    class_name: str = ""


@dataclass(frozen=True)
class Polygon:
    points: tuple[Point, ...]
    closed: bool = True
    label: str | None = None
    class_name: str = ""


@dataclass(frozen=True)
class ClusterPoint:
    x: float
    y: float
    radius: float
    style: Any = None
    datum: Any = None


@dataclass(frozen=True)
class PointCluster:
    axis: Literal["horizontal", "vertical"]
    value: float
    points: tuple[ClusterPoint, ...]
    class_name: str = ""


@dataclass(frozen=True)
class TooltipContent:
    lines: tuple[str, ...]


@dataclass(frozen=True)
class HtmlTooltip:
    x: float
    y: float
    content: Any
    size: tuple[float, float]
    class_name: str = "annotation annotation-or-tooltip"
    datum: Any = None


Geometry = (
    PointMarker
    | Callout
    | EncloseCircle
    | EncloseRect
    | ReferenceLine
    | BoundsRect
    | Polyline
    | Polygon
    | PointCluster
)
