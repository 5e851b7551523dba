from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, fields, replace
import logging
from typing import Any, Callable
import uuid

from xyframe.accessors import Accessor, AccessorSpec, FrameAccessors, coerce_number, read_value, resolve_accessor, resolve_frame_accessors
from xyframe.annotations.descriptors import CalloutAnnotation
from xyframe.annotations.resolver import AnnotationResolver, AnnotationRule, TooltipContentFn
from xyframe.axis import AxisGeometry, AxisSpec, Segment, as_axis_spec, build_axes
from xyframe.config import DEFAULT_FRAME_CONFIG, FrameConfig
from xyframe.errors import FrameConfigError
from xyframe.extent import Extent, calculate_data_extent, normalize_extent_settings, notify_extent_change, resolve_extent
from xyframe.layout import (
    FrameTitle,
    Margin,
    MarginSpec,
    MattePath,
    adjusted_position_size,
    calculate_margin,
    generate_frame_title,
    matte_path,
)
from xyframe.projection import (
    STACKED_LINE_TYPES,
    ProjectedArea,
    ProjectedLayers,
    ProjectedRecord,
    ScreenProjector,
    as_group_list,
    line_type_name,
    project_layers,
)
from xyframe.scales import ScaleLike, ScaleType, build_screen_scales

LOGGER = logging.getLogger(__name__)

LAYER_KINDS: tuple[str, ...] = ("lines", "areas", "points")


@dataclass(frozen=True)
class FrameInputs:
    """Everything a frame is computed from.

    `data_version` is the revision token: when set, an unchanged value means
    the data has not changed and the per-field comparison is skipped.
    `size` falls back to the configured default.
    """

    lines: Any = None
    points: Any = None
    areas: Any = None
    x_accessor: AccessorSpec = "x"
    y_accessor: AccessorSpec = "y"
    line_id_accessor: AccessorSpec = None
    line_data_accessor: AccessorSpec = None
    area_id_accessor: AccessorSpec = None
    area_data_accessor: AccessorSpec = None
    x_extent: Any = None
    y_extent: Any = None
    x_scale_type: ScaleType = None
    y_scale_type: ScaleType = None
    invert_x: bool = False
    invert_y: bool = False
    size: tuple[float, float] | None = None
    position: tuple[float, float] = (0.0, 0.0)
    margin: MarginSpec = None
    axes: Sequence[AxisSpec | Mapping[str, Any]] = ()
    title: Any = None
    legend: Any = None
    matte: Any = None
    line_type: str | Mapping[str, Any] = "line"
    show_line_points: bool = False
    area_label: Any = None
    line_style: Any = None
    point_style: Any = None
    area_style: Any = None
    line_class: Any = None
    point_class: Any = None
    area_class: Any = None
    line_render_mode: Any = None
    point_render_mode: Any = None
    area_render_mode: Any = None
    render_key: Any = None
    annotations: Sequence[Any] = ()
    svg_annotation_rules: AnnotationRule | None = None
    html_annotation_rules: AnnotationRule | None = None
    tooltip_content: TooltipContentFn | None = None
    data_version: Any = None

    def __post_init__(self) -> None:
        if self.size is not None and len(self.size) != 2:
            raise FrameConfigError("size must be a (width, height) pair")
        if len(self.position) != 2:
            raise FrameConfigError("position must be an (x, y) pair")


# Read when annotations are resolved; changing them never recomputes the frame.
OVERLAY_INPUTS: tuple[str, ...] = ("annotations", "svg_annotation_rules", "html_annotation_rules", "tooltip_content")

# Compared field by field when no revision token is set.
TRACKED_INPUTS: tuple[str, ...] = tuple(
    f.name for f in fields(FrameInputs) if f.name not in {"data_version", "size", *OVERLAY_INPUTS}
)


@dataclass(frozen=True)
class LayerRender:
    """Draw settings for one layer; style/class/render-mode/key are always callables."""

    kind: str
    data: tuple[Any, ...]
    style_fn: Callable[..., Any]
    class_fn: Callable[..., Any]
    render_mode: Callable[..., Any] | None = None
    render_key_fn: Callable[..., Any] | None = None
    line_type: str | None = None


@dataclass(frozen=True)
class LegendGroup:
    type: str
    items: tuple[Mapping[str, Any], ...]
    style_fn: Any = None


@dataclass(frozen=True)
class LegendSpec:
    settings: Mapping[str, Any]
    groups: tuple[Any, ...] = ()


@dataclass(frozen=True)
class FrameState:
    """One immutable snapshot of a frame. Never mutated after `recompute` returns it."""

    inputs: FrameInputs
    key: str
    revision: int
    config: FrameConfig
    accessors: FrameAccessors
    data_layers: ProjectedLayers
    layers: ProjectedLayers
    calculated_x_extent: Extent
    calculated_y_extent: Extent
    x_extent: Extent
    y_extent: Extent
    x_scale: ScaleLike
    y_scale: ScaleLike
    projector: ScreenProjector
    axes: tuple[AxisGeometry, ...]
    axes_tick_lines: tuple[tuple[Segment, ...], ...]
    margin: Margin
    size: tuple[float, float]
    adjusted_position: tuple[float, float]
    adjusted_size: tuple[float, float]
    title: FrameTitle | None = None
    legend: LegendSpec | None = None
    matte: MattePath | None = None
    area_annotations: tuple[CalloutAnnotation, ...] = ()
    annotations: tuple[Any, ...] = ()
    render_pipeline: tuple[LayerRender, ...] = field(default_factory=tuple)

    def layer_render(self, kind: str) -> LayerRender:
        for layer in self.render_pipeline:
            if layer.kind == kind:
                return layer
        raise KeyError(f"unknown layer: {kind}")

    def layer_style(self, kind: str) -> Callable[..., Any] | None:
        return self.layer_render(kind).style_fn

    def hover_targets(self) -> tuple[ProjectedRecord, ...]:
        return self.layers.hover_targets()


def needs_recompute(inputs: FrameInputs, previous: FrameState | None) -> bool:
    if previous is None:
        return True
    before = previous.inputs
    if (before.data_version is not None or inputs.data_version is not None) and not _same(
        before.data_version, inputs.data_version
    ):
        return True
    if _frame_size(inputs, previous.config) != previous.size:
        return True
    if inputs.data_version is None:
        for name in TRACKED_INPUTS:
            if not _same(getattr(inputs, name), getattr(before, name)):
                LOGGER.debug("frame input %s changed", name)
                return True
    return False


def recompute(
    inputs: FrameInputs,
    previous: FrameState | None = None,
    config: FrameConfig = DEFAULT_FRAME_CONFIG,
    *,
    key: str | None = None,
) -> FrameState:
    """Build a new snapshot from `inputs`, or hand back `previous`.

    Runs extent, scales, layer projection, then axes and area labels, in
    that order. The only side effect is the extent `on_change` notification.
    When nothing needs recomputing, `previous` comes back as is, or with
    only its annotation inputs swapped when those changed.
    """
    if previous is not None and not needs_recompute(inputs, previous):
        return refresh_overlays(inputs, previous)

    size = _frame_size(inputs, config)
    accessors = resolve_frame_accessors(
        x=inputs.x_accessor,
        y=inputs.y_accessor,
        line_id=inputs.line_id_accessor,
        line_data=inputs.line_data_accessor,
        area_id=inputs.area_id_accessor,
        area_data=inputs.area_data_accessor,
    )

    same_revision = (
        previous is not None
        and inputs.data_version is not None
        and previous.inputs.data_version == inputs.data_version
    )
    if same_revision:
        data_layers = previous.data_layers
        calculated_x, calculated_y = previous.calculated_x_extent, previous.calculated_y_extent
    else:
        data_layers = project_layers(
            lines=inputs.lines,
            points=inputs.points,
            areas=inputs.areas,
            accessors=accessors,
            line_type=inputs.line_type,
            show_line_points=inputs.show_line_points,
        )
        calculated_x, calculated_y = calculate_data_extent(data_layers, fallback=config.extent_fallback)

    x_settings = normalize_extent_settings(inputs.x_extent)
    y_settings = normalize_extent_settings(inputs.y_extent)
    x_extent = resolve_extent(x_settings, calculated_x, invert=inputs.invert_x)
    y_extent = resolve_extent(y_settings, calculated_y, invert=inputs.invert_y)

    axis_specs = tuple(as_axis_spec(axis) for axis in inputs.axes or ())
    margin = calculate_margin(inputs.margin, axes=axis_specs, title=inputs.title, size=size, config=config)
    adjusted_position, adjusted_size = adjusted_position_size(size, inputs.position, margin)

    x_scale, y_scale = build_screen_scales(
        x_extent,
        y_extent,
        adjusted_size,
        x_scale_type=inputs.x_scale_type,
        y_scale_type=inputs.y_scale_type,
    )
    projector = ScreenProjector(
        x_scale=x_scale,
        y_scale=y_scale,
        accessors=accessors,
        lines=data_layers.lines,
        adjusted_position=adjusted_position,
        boundary_policy=config.line_boundary_policy,
    )
    layers = projector.project_layers(data_layers)

    axes, tick_lines = build_axes(
        axis_specs,
        x_scale,
        y_scale,
        full_dataset=layers.full_dataset,
        size=size,
        adjusted_size=adjusted_size,
        margin=margin,
        config=config,
    )
    area_annotations = area_label_annotations(layers.areas, inputs.area_label, x_scale, y_scale)

    if not same_revision:
        before_x = previous.calculated_x_extent if previous is not None else None
        before_y = previous.calculated_y_extent if previous is not None else None
        notify_extent_change(x_settings, before_x, calculated_x)
        notify_extent_change(y_settings, before_y, calculated_y)

    if key is None:
        key = previous.key if previous is not None else "xyframe"
    state = FrameState(
        inputs=inputs,
        key=key,
        revision=0 if previous is None else previous.revision + 1,
        config=config,
        accessors=accessors,
        data_layers=data_layers,
        layers=layers,
        calculated_x_extent=calculated_x,
        calculated_y_extent=calculated_y,
        x_extent=x_extent,
        y_extent=y_extent,
        x_scale=x_scale,
        y_scale=y_scale,
        projector=projector,
        axes=axes,
        axes_tick_lines=tick_lines,
        margin=margin,
        size=size,
        adjusted_position=adjusted_position,
        adjusted_size=adjusted_size,
        title=generate_frame_title(inputs.title, size, margin),
        legend=build_legend(inputs, accessors),
        matte=_matte(inputs.matte, margin, size),
        area_annotations=area_annotations,
        annotations=tuple(inputs.annotations or ()) + area_annotations,
        render_pipeline=build_render_pipeline(inputs, layers),
    )
    LOGGER.debug(
        "frame %s revision %d: %d lines, %d points, %d areas",
        key,
        state.revision,
        len(layers.lines),
        len(layers.points),
        len(layers.areas),
    )
    return state


def refresh_overlays(inputs: FrameInputs, previous: FrameState) -> FrameState:
    changed = {
        name: getattr(inputs, name)
        for name in OVERLAY_INPUTS
        if not _same(getattr(inputs, name), getattr(previous.inputs, name))
    }
    if not changed:
        return previous
    LOGGER.debug("frame %s: annotation inputs changed (%s)", previous.key, ", ".join(changed))
    overlay_inputs = replace(previous.inputs, **changed)
    return replace(
        previous,
        inputs=overlay_inputs,
        annotations=tuple(overlay_inputs.annotations or ()) + previous.area_annotations,
    )


def build_render_pipeline(inputs: FrameInputs, layers: ProjectedLayers) -> tuple[LayerRender, ...]:
    """Layers in draw order: lines, then areas, then points."""
    data = {"lines": layers.lines, "areas": layers.areas, "points": layers.points}
    styles = {"lines": inputs.line_style, "areas": inputs.area_style, "points": inputs.point_style}
    classes = {"lines": inputs.line_class, "areas": inputs.area_class, "points": inputs.point_class}
    modes = {
        "lines": inputs.line_render_mode,
        "areas": inputs.area_render_mode,
        "points": inputs.point_render_mode,
    }
    out: list[LayerRender] = []
    for kind in LAYER_KINDS:
        out.append(
            LayerRender(
                kind=kind,
                data=tuple(data[kind]),
                style_fn=resolve_accessor(styles[kind], _empty_style, constant=True),
                class_fn=resolve_accessor(classes[kind], _empty_class, constant=True),
                render_mode=resolve_accessor(modes[kind], None, constant=True),
                render_key_fn=resolve_accessor(inputs.render_key, _default_render_key(kind), constant=True),
                line_type=line_type_name(inputs.line_type) if kind == "lines" else None,
            )
        )
    return tuple(out)


def build_legend(inputs: FrameInputs, accessors: FrameAccessors) -> LegendSpec | None:
    legend = inputs.legend
    if not legend:
        return None
    settings: dict[str, Any] = {} if legend is True else dict(legend)
    groups = settings.pop("legend_groups", settings.pop("legendGroups", None))
    lines = as_group_list(inputs.lines)
    if groups is None and lines:
        kind = "fill" if line_type_name(inputs.line_type) in STACKED_LINE_TYPES else "line"
        items: list[Mapping[str, Any]] = []
        for i, line in enumerate(lines):
            label = read_value(accessors.line_id, line)
            label = f"line-{i}" if label is None else label
            if isinstance(line, Mapping):
                items.append({"label": label, **line})
            else:
                items.append({"label": label, "datum": line})
        groups = [LegendGroup(type=kind, items=tuple(items), style_fn=inputs.line_style)]
    return LegendSpec(settings=settings, groups=tuple(groups or ()))


def area_label_annotations(
    areas: Sequence[ProjectedArea],
    area_label: Any,
    x_scale: ScaleLike,
    y_scale: ScaleLike,
) -> tuple[CalloutAnnotation, ...]:
    """Callouts placed at each area's label bounds.

    `area_label` is a mapping, or a callable taking the area datum and
    returning one (or `None` to skip that area).
    """
    if not area_label:
        return ()
    out: list[CalloutAnnotation] = []
    for i, area in enumerate(areas):
        for bounds in area.bounds:
            label = area_label(area.datum) if callable(area_label) else area_label
            if not label:
                continue
            if not isinstance(label, Mapping):
                label = {}
            position = label.get("position", "center")
            anchor = bounds.get(position)
            if anchor is None or isinstance(anchor, (str, bytes)) or len(anchor) < 2:
                LOGGER.debug("area %s has no %r label bounds", area.area_id, position)
                continue
            sx, sy = x_scale(anchor[0]), y_scale(anchor[1])
            if sx is None or sy is None:
                LOGGER.debug("area %s label bounds fall outside the scales", area.area_id)
                continue
            content = label.get("content") or _default_area_label(i)
            text = content(area.datum)
            out.append(
                CalloutAnnotation(
                    datum=area.datum,
                    callout_type=label.get("type", "react-annotation"),
                    note=label.get("note") or {"title": text},
                    subject=label.get("subject") or {"text": text},
                    connector=label.get("connector"),
                    dx=coerce_number(label.get("dx")) or 0.0,
                    dy=coerce_number(label.get("dy")) or 0.0,
                    class_name=str(label.get("class_name", label.get("className", "")) or ""),
                    screen=(sx, sy),
                )
            )
    return tuple(out)


class XYFrame:
    """Holds the latest snapshot of one chart and its stable frame key."""

    def __init__(
        self,
        inputs: FrameInputs | None = None,
        *,
        frame_key: str | None = None,
        config: FrameConfig = DEFAULT_FRAME_CONFIG,
    ) -> None:
        self._key = frame_key or f"xyframe-{uuid.uuid4().hex[:12]}"
        self._config = config
        self._state: FrameState | None = None
        if inputs is not None:
            self.update(inputs)

    @property
    def key(self) -> str:
        return self._key

    @property
    def config(self) -> FrameConfig:
        return self._config

    @property
    def state(self) -> FrameState:
        if self._state is None:
            raise RuntimeError("frame has not been computed yet; call update() first")
        return self._state

    def update(self, inputs: FrameInputs | None = None, **changes: Any) -> FrameState:
        """Recompute from `inputs`, or from the current inputs with `changes` applied."""
        if inputs is None:
            if self._state is None:
                raise RuntimeError("first update() needs a FrameInputs")
            inputs = replace(self._state.inputs, **changes)
        elif changes:
            inputs = replace(inputs, **changes)
        self._state = recompute(inputs, self._state, self._config, key=self._key)
        return self._state

    def resolver(self, **rules: Any) -> AnnotationResolver:
        return AnnotationResolver(self.state, **rules)

    def resolve_annotations(self, annotations: Sequence[Any] | None = None, **rules: Any) -> list[Any]:
        return self.resolver(**rules).resolve_all(annotations)

    def resolve_html(self, annotations: Sequence[Any] | None = None, **rules: Any) -> list[Any]:
        return self.resolver(**rules).resolve_html_all(annotations)


def _frame_size(inputs: FrameInputs, config: FrameConfig) -> tuple[float, float]:
    size = config.size if inputs.size is None else inputs.size
    return (float(size[0]), float(size[1]))


def _same(a: Any, b: Any) -> bool:
    if a is b:
        return True
    if callable(a) or callable(b):
        return False
    try:
        return bool(a == b)
    except (TypeError, ValueError):
        return False


def _matte(matte: Any, margin: Margin, size: Sequence[float]) -> MattePath | None:
    if not matte:
        return None
    inset = 5.0
    if isinstance(matte, Mapping) and matte.get("inset") is not None:
        inset = float(matte["inset"])
    return matte_path(margin, size, inset)


def _empty_style(*_args: Any) -> dict[str, Any]:
    return {}


def _empty_class(*_args: Any) -> str:
    return ""


def _default_render_key(kind: str) -> Accessor:
    prefix = kind[:-1]

    def _key(_datum: Any, index: int = 0) -> str:
        return f"{prefix}-{index}"

    return _key


def _default_area_label(index: int) -> Callable[[Any], Any]:
    def _content(datum: Any) -> Any:
        for name in ("value", "id"):
            value = datum.get(name) if isinstance(datum, Mapping) else getattr(datum, name, None)
            if value:
                return value
        return index

    return _content
