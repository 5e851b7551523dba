from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
import logging
from typing import Any, Literal, Union

from xyframe.accessors import coerce_number

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class XYAnnotation:
    datum: Any
    kind: Literal["xy", "frame-hover"] = "xy"
    label: str | None = None
    class_name: str = ""


@dataclass(frozen=True)
class CalloutAnnotation:
    """Generic callout; `screen` pins it to precomputed screen coordinates."""

    datum: Any
    callout_type: Any = "react-annotation"
    note: Mapping[str, Any] | None = None
    subject: Mapping[str, Any] | None = None
    connector: Mapping[str, Any] | None = None
    dx: float = 0.0
    dy: float = 0.0
    class_name: str = ""
    screen: tuple[float, float] | None = None


@dataclass(frozen=True)
class EncloseAnnotation:
    coordinates: tuple[Any, ...]
    rect: bool = False
    padding: float | None = None
    label: str | None = None
    class_name: str = ""
    datum: Any = None


@dataclass(frozen=True)
class XAnnotation:
    datum: Any
    label: str | None = None
    class_name: str = ""


@dataclass(frozen=True)
class YAnnotation:
    datum: Any
    label: str | None = None
    class_name: str = ""


@dataclass(frozen=True)
class BoundsAnnotation:
    bounds: tuple[Any, ...]
    label: str | None = None
    class_name: str = ""
    datum: Any = None


@dataclass(frozen=True)
class LineAnnotation:
    coordinates: tuple[Any, ...]
    label: str | None = None
    class_name: str = ""
    datum: Any = None


@dataclass(frozen=True)
class AreaAnnotation:
    coordinates: tuple[Any, ...]
    label: str | None = None
    class_name: str = ""
    datum: Any = None


@dataclass(frozen=True)
class HorizontalPointsAnnotation:
    datum: Any
    radius: float | None = None
    class_name: str = ""


@dataclass(frozen=True)
class VerticalPointsAnnotation:
    datum: Any
    radius: float | None = None
    class_name: str = ""


@dataclass(frozen=True)
class CustomAnnotation:
    """Any type without a built-in rule; only a caller resolver can draw it."""

    kind: str | None
    datum: Any


Annotation = Union[
    XYAnnotation,
    CalloutAnnotation,
    EncloseAnnotation,
    XAnnotation,
    YAnnotation,
    BoundsAnnotation,
    LineAnnotation,
    AreaAnnotation,
    HorizontalPointsAnnotation,
    VerticalPointsAnnotation,
    CustomAnnotation,
]

ANNOTATION_TYPES: tuple[type, ...] = (
    XYAnnotation,
    CalloutAnnotation,
    EncloseAnnotation,
    XAnnotation,
    YAnnotation,
    BoundsAnnotation,
    LineAnnotation,
    AreaAnnotation,
    HorizontalPointsAnnotation,
    VerticalPointsAnnotation,
    CustomAnnotation,
)

# Variants drawn at a single datum; both screen coordinates must exist.
# Custom variants reach the caller rule whatever their coordinates.
POINT_ANNOTATION_TYPES: tuple[type, ...] = (XYAnnotation, CalloutAnnotation)

# Variants that carry their own multi-point shape.
SHAPE_ANNOTATION_TYPES: tuple[type, ...] = (EncloseAnnotation, LineAnnotation, AreaAnnotation)


def parse_annotation(raw: Any) -> Annotation | None:
    """Turn a `{"type": ..., ...}` mapping into its annotation variant.

    Shape types missing their `coordinates`/`bounds` come back as a
    `CustomAnnotation` (and log), so only a caller rule can still draw them.
    Returns `None` for anything that is not a mapping.
    """
    if isinstance(raw, ANNOTATION_TYPES):
        return raw
    if not isinstance(raw, Mapping):
        LOGGER.warning("ignoring annotation that is not a mapping: %r", raw)
        return None

    kind = raw.get("type")
    label = raw.get("label")
    class_name = str(raw.get("class_name", raw.get("className", "")) or "")

    if kind is not None and not callable(kind) and not isinstance(kind, str):
        return CustomAnnotation(kind=str(kind), datum=raw)
    if callable(kind) or kind == "react-annotation":
        return CalloutAnnotation(
            datum=raw,
            callout_type=kind,
            note=raw.get("note"),
            subject=raw.get("subject"),
            connector=raw.get("connector"),
            dx=coerce_number(raw.get("dx")) or 0.0,
            dy=coerce_number(raw.get("dy")) or 0.0,
            class_name=class_name,
        )
    if kind in {"xy", "frame-hover"}:
        return XYAnnotation(datum=raw, kind=kind, label=label, class_name=class_name)
    if kind in {"enclose", "enclose-rect"}:
        coordinates = _shape(raw.get("coordinates"), kind=kind, key="coordinates")
        if coordinates is None:
            return CustomAnnotation(kind=kind, datum=raw)
        padding = raw.get("padding")
        return EncloseAnnotation(
            coordinates=coordinates,
            rect=kind == "enclose-rect",
            padding=coerce_number(padding),
            label=label,
            class_name=class_name,
            datum=raw,
        )
    if kind == "x":
        return XAnnotation(datum=raw, label=label, class_name=class_name)
    if kind == "y":
        return YAnnotation(datum=raw, label=label, class_name=class_name)
    if kind == "bounds":
        bounds = raw.get("bounds")
        if isinstance(bounds, Mapping):
            bounds = [bounds]
        shape = _shape(bounds, kind=kind, key="bounds")
        if shape is None:
            return CustomAnnotation(kind=kind, datum=raw)
        return BoundsAnnotation(bounds=shape[:2], label=label, class_name=class_name, datum=raw)
    if kind == "line":
        coordinates = _shape(raw.get("coordinates"), kind=kind, key="coordinates")
        if coordinates is None:
            return CustomAnnotation(kind=kind, datum=raw)
        return LineAnnotation(coordinates=coordinates, label=label, class_name=class_name, datum=raw)
    if kind == "area":
        coordinates = _shape(raw.get("coordinates"), kind=kind, key="coordinates")
        if coordinates is None:
            return CustomAnnotation(kind=kind, datum=raw)
        return AreaAnnotation(coordinates=coordinates, label=label, class_name=class_name, datum=raw)
    if kind == "horizontal-points":
        return HorizontalPointsAnnotation(datum=raw, radius=coerce_number(raw.get("r")), class_name=class_name)
    if kind == "vertical-points":
        return VerticalPointsAnnotation(datum=raw, radius=coerce_number(raw.get("r")), class_name=class_name)
    return CustomAnnotation(kind=None if kind is None else str(kind), datum=raw)


def _shape(value: Any, *, kind: str, key: str) -> tuple[Any, ...] | None:
    if value is None or isinstance(value, (str, bytes)) or not isinstance(value, Sequence) or len(value) == 0:
        LOGGER.warning("annotation of type %r is missing `%s`; only a custom rule can draw it", kind, key)
        return None
    return tuple(value)
