from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
import logging
import math
from typing import TYPE_CHECKING, Any, Callable, Iterable, Sequence

from xyframe.accessors import coerce_number, field_accessor, read_value
from xyframe.annotations.descriptors import (
    ANNOTATION_TYPES,
    POINT_ANNOTATION_TYPES,
    SHAPE_ANNOTATION_TYPES,
    Annotation,
    AreaAnnotation,
    BoundsAnnotation,
    CalloutAnnotation,
    CustomAnnotation,
    EncloseAnnotation,
    HorizontalPointsAnnotation,
    LineAnnotation,
    VerticalPointsAnnotation,
    XAnnotation,
    XYAnnotation,
    YAnnotation,
    parse_annotation,
)
from xyframe.annotations.enclose import bounding_rect, enclosing_circle
from xyframe.annotations.geometry import (
    BoundsRect,
    Callout,
    ClusterPoint,
    EncloseCircle,
    EncloseRect,
    HtmlTooltip,
    PointCluster,
    PointMarker,
    Polygon,
    Polyline,
    ReferenceLine,
    TooltipContent,
)
from xyframe.projection import ProjectedRecord
from xyframe.scales import format_tick

if TYPE_CHECKING:
    from xyframe.frame import FrameState

LOGGER = logging.getLogger(__name__)

_PERCENT = field_accessor("percent")

ScreenCoordinates = tuple[Any, ...]


@dataclass(frozen=True)
class AnnotationContext:
    """Everything a rule sees for one descriptor. Read-only view of the snapshot."""

    annotation: Annotation
    index: int
    screen_coordinates: ScreenCoordinates
    state: "FrameState"

    @property
    def x_scale(self):
        return self.state.x_scale

    @property
    def y_scale(self):
        return self.state.y_scale

    @property
    def accessors(self):
        return self.state.accessors

    @property
    def layers(self):
        return self.state.layers


AnnotationRule = Callable[[AnnotationContext], Any]
TooltipContentFn = Callable[[Any], Any]


class AnnotationResolver:
    """Turns annotation descriptors into geometry against one `FrameState`.

    A caller rule is consulted first and wins whenever it returns something
    other than `None`; otherwise the built-in rule for the descriptor's
    variant runs. Unresolvable descriptors produce `None`.
    """

    def __init__(
        self,
        state: "FrameState",
        *,
        svg_rules: AnnotationRule | None = None,
        html_rules: AnnotationRule | None = None,
        tooltip_content: TooltipContentFn | None = None,
    ) -> None:
        inputs = state.inputs
        self._state = state
        self._svg_rules = svg_rules if svg_rules is not None else inputs.svg_annotation_rules
        self._html_rules = html_rules if html_rules is not None else inputs.html_annotation_rules
        self._tooltip_content = tooltip_content if tooltip_content is not None else inputs.tooltip_content

    @property
    def state(self) -> "FrameState":
        return self._state

    def resolve(self, raw: Any, index: int = 0) -> Any | None:
        context = self._context(raw, index)
        if context is None:
            return None
        if self._svg_rules is not None:
            custom = self._svg_rules(context)
            if custom is not None:
                return custom
        builder = _SVG_BUILDERS[type(context.annotation)]
        return builder(context)

    def resolve_all(self, annotations: Iterable[Any] | None = None) -> list[Any]:
        source = self._state.annotations if annotations is None else annotations
        out: list[Any] = []
        for i, raw in enumerate(source):
            geometry = self.resolve(raw, i)
            if geometry is not None:
                out.append(geometry)
        return out

    def resolve_html(self, raw: Any, index: int = 0) -> Any | None:
        context = self._context(raw, index)
        if context is None:
            return None
        if self._html_rules is not None:
            custom = self._html_rules(context)
            if custom is not None:
                return custom
        annotation = context.annotation
        if not isinstance(annotation, XYAnnotation) or annotation.kind != "frame-hover":
            return None
        if self._tooltip_content is not None:
            content = self._tooltip_content(annotation.datum)
        else:
            content = default_tooltip_content(annotation.datum, self._state)
        x, y = context.screen_coordinates
        return HtmlTooltip(
            x=x,
            y=y,
            content=content,
            size=(float(self._state.size[0]), float(self._state.size[1])),
            datum=annotation.datum,
        )

    def resolve_html_all(self, annotations: Iterable[Any] | None = None) -> list[Any]:
        source = self._state.annotations if annotations is None else annotations
        out: list[Any] = []
        for i, raw in enumerate(source):
            tooltip = self.resolve_html(raw, i)
            if tooltip is not None:
                out.append(tooltip)
        return out

    def _context(self, raw: Any, index: int) -> AnnotationContext | None:
        annotation = parse_annotation(raw)
        if annotation is None:
            return None
        coordinates = screen_coordinates(annotation, self._state)
        if isinstance(annotation, POINT_ANNOTATION_TYPES):
            if len(coordinates) != 2 or coordinates[0] is None or coordinates[1] is None:
                LOGGER.debug("annotation %d has no valid screen coordinates", index)
                return None
        return AnnotationContext(annotation=annotation, index=index, screen_coordinates=coordinates, state=self._state)


def screen_coordinates(annotation: Annotation, state: "FrameState") -> ScreenCoordinates:
    """Single-point variants get `(x, y)`; shape variants get a vertex tuple."""
    projector = state.projector
    if isinstance(annotation, CalloutAnnotation) and annotation.screen is not None:
        return tuple(annotation.screen)
    if isinstance(annotation, SHAPE_ANNOTATION_TYPES):
        return projector.vertices(annotation.coordinates)
    if isinstance(annotation, BoundsAnnotation):
        return ()
    return projector.point(annotation.datum)


def default_tooltip_content(datum: Any, state: "FrameState") -> TooltipContent:
    if isinstance(datum, ProjectedRecord):
        x_value, y_value, percent = datum.x, datum.y, datum.percent
    else:
        x_value = read_value(state.accessors.x, datum)
        y_value = read_value(state.accessors.y, datum)
        percent = coerce_number(read_value(_PERCENT, datum))
    lines = [value_text(x_value), value_text(y_value)]
    if percent:
        lines.append(percent_text(percent))
    return TooltipContent(lines=tuple(lines))


def value_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return format_tick(float(value))
    return str(value)


def percent_text(fraction: float) -> str:
    pct = Decimal(str(fraction * 100.0)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    text = format(pct, "f")
    if text.endswith(".0"):
        text = text[:-2]
    return f"{text}%"


def _xy_marker(context: AnnotationContext) -> PointMarker:
    annotation = context.annotation
    x, y = context.screen_coordinates
    return PointMarker(
        x=x,
        y=y,
        radius=context.state.config.marker_radius,
        kind=annotation.kind,
        label=annotation.label,
        class_name=annotation.class_name,
        datum=annotation.datum,
    )


def _callout(context: AnnotationContext) -> Callout:
    annotation = context.annotation
    x, y = context.screen_coordinates
    return Callout(
        x=x,
        y=y,
        dx=annotation.dx,
        dy=annotation.dy,
        callout_type=annotation.callout_type,
        note=annotation.note,
        subject=annotation.subject,
        connector=annotation.connector,
        class_name=annotation.class_name,
        datum=annotation.datum,
    )


def _enclose(context: AnnotationContext) -> EncloseCircle | EncloseRect | None:
    annotation = context.annotation
    points = context.screen_coordinates
    if not points:
        return None
    padding = context.state.config.enclose_padding if annotation.padding is None else annotation.padding
    if annotation.rect:
        rect = bounding_rect(points, padding)
        if rect is None:
            return None
        x, y, w, h = rect
        return EncloseRect(x=x, y=y, width=w, height=h, label=annotation.label, class_name=annotation.class_name)
    circle = enclosing_circle(points)
    if circle is None:
        return None
    cx, cy, r = circle
    return EncloseCircle(cx=cx, cy=cy, r=r + padding, label=annotation.label, class_name=annotation.class_name)


def _x_line(context: AnnotationContext) -> ReferenceLine | None:
    x = context.screen_coordinates[0] if context.screen_coordinates else None
    if x is None:
        return None
    state = context.state
    height = state.adjusted_size[1]
    return ReferenceLine(
        axis="x",
        x1=x,
        y1=0.0,
        x2=x,
        y2=height,
        note_x=x,
        note_y=-state.margin.top / 2.0,
        label=context.annotation.label,
        class_name=context.annotation.class_name,
    )


def _y_line(context: AnnotationContext) -> ReferenceLine | None:
    y = context.screen_coordinates[1] if len(context.screen_coordinates) > 1 else None
    if y is None:
        return None
    state = context.state
    width = state.adjusted_size[0]
    return ReferenceLine(
        axis="y",
        x1=0.0,
        y1=y,
        x2=width,
        y2=y,
        note_x=width + state.margin.right / 2.0,
        note_y=y,
        label=context.annotation.label,
        class_name=context.annotation.class_name,
    )


def _bounds(context: AnnotationContext) -> BoundsRect | None:
    annotation = context.annotation
    state = context.state
    if not annotation.bounds:
        return None
    width, height = state.adjusted_size
    projector = state.projector
    start = annotation.bounds[0]
    end = annotation.bounds[1] if len(annotation.bounds) > 1 else None
    # Missing corner values fall back to the plot edges.
    x0 = _or_default(projector.x(start), 0.0)
    y0 = _or_default(state.y_scale(read_value(state.accessors.y, start)), height)
    x1 = width if end is None else _or_default(projector.x(end), width)
    y1 = 0.0 if end is None else _or_default(state.y_scale(read_value(state.accessors.y, end)), 0.0)
    return BoundsRect(
        x=min(x0, x1),
        y=min(y0, y1),
        width=abs(x1 - x0),
        height=abs(y1 - y0),
        label=annotation.label,
        class_name=annotation.class_name,
    )


def _polyline(context: AnnotationContext) -> Polyline | None:
    points = context.screen_coordinates
    if len(points) < 2:
        LOGGER.debug("line annotation %d has fewer than two valid vertices", context.index)
        return None
    return Polyline(points=tuple(points), label=context.annotation.label, class_name=context.annotation.class_name)


def _polygon(context: AnnotationContext) -> Polygon | None:
    points = context.screen_coordinates
    if len(points) < 3:
        LOGGER.debug("area annotation %d has fewer than three valid vertices", context.index)
        return None
    return Polygon(points=tuple(points), label=context.annotation.label, class_name=context.annotation.class_name)


def _horizontal_points(context: AnnotationContext) -> PointCluster | None:
    return _point_cluster(context, axis="horizontal")


def _vertical_points(context: AnnotationContext) -> PointCluster | None:
    return _point_cluster(context, axis="vertical")


def _point_cluster(context: AnnotationContext, *, axis: str) -> PointCluster | None:
    annotation = context.annotation
    state = context.state
    datum = annotation.datum
    if isinstance(datum, ProjectedRecord):
        raw_target = datum.y if axis == "horizontal" else datum.x
    else:
        accessor = state.accessors.y if axis == "horizontal" else state.accessors.x
        raw_target = read_value(accessor, datum)
    target = coerce_number(raw_target)
    if target is None:
        return None

    style_fn = state.layer_style("points")
    radius = annotation.radius if annotation.radius is not None else state.config.marker_radius
    found: list[ClusterPoint] = []
    for record in _cluster_candidates(state):
        if not record.valid:
            continue
        value = coerce_number(record.y if axis == "horizontal" else record.x)
        if value is None or not math.isclose(value, target, rel_tol=1e-9, abs_tol=1e-12):
            continue
        y = record.screen_y_middle if record.screen_y_middle is not None else record.screen_y
        found.append(
            ClusterPoint(
                x=record.screen_x,
                y=y,
                radius=radius,
                style=None if style_fn is None else style_fn(record),
                datum=record,
            )
        )
    if not found:
        return None
    return PointCluster(axis=axis, value=target, points=tuple(found), class_name=annotation.class_name)


def _cluster_candidates(state: "FrameState") -> Sequence[ProjectedRecord]:
    # Line members shown as points are the very records held by the lines.
    seen: set[int] = set()
    out: list[ProjectedRecord] = []
    for record in [r for line in state.layers.lines for r in line.data] + list(state.layers.points):
        if id(record) in seen:
            continue
        seen.add(id(record))
        out.append(record)
    return out


def _no_geometry(context: AnnotationContext) -> None:
    return None


def _or_default(value: float | None, default: float) -> float:
    return default if value is None else float(value)


_SVG_BUILDERS: dict[type, Callable[[AnnotationContext], Any]] = {
    XYAnnotation: _xy_marker,
    CalloutAnnotation: _callout,
    EncloseAnnotation: _enclose,
    XAnnotation: _x_line,
    YAnnotation: _y_line,
    BoundsAnnotation: _bounds,
    LineAnnotation: _polyline,
    AreaAnnotation: _polygon,
    HorizontalPointsAnnotation: _horizontal_points,
    VerticalPointsAnnotation: _vertical_points,
    CustomAnnotation: _no_geometry,
}

_missing_builders = [t.__name__ for t in ANNOTATION_TYPES if t not in _SVG_BUILDERS]
if _missing_builders:
    raise TypeError(f"annotation variants without a builder: {', '.join(_missing_builders)}")
