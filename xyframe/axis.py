from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
import logging
from typing import Any, Callable

from xyframe.accessors import coerce_number
from xyframe.config import DEFAULT_FRAME_CONFIG, FrameConfig
from xyframe.errors import FrameConfigError
from xyframe.layout import ORIENTS, Margin, Orient
from xyframe.scales import ScaleLike, format_tick, format_tick_values

LOGGER = logging.getLogger(__name__)

TickGenerator = Callable[[Sequence[Any], Sequence[float], ScaleLike], Sequence[Any]]


@dataclass(frozen=True)
class AxisSpec:
    """One configured axis.

    `baseline` is tri-state: `None` lets the per-orientation dedup decide,
    `True` forces a baseline, `False` suppresses it.
    """

    orient: Orient = "left"
    tick_values: Sequence[Any] | TickGenerator | None = None
    ticks: int | None = None
    tick_format: Callable[[Any], str] | None = None
    label: str | None = None
    baseline: bool | None = None
    padding: float | None = None
    tick_size: float | None = None
    footer: bool = False
    class_name: str = ""
    key: str | None = None
    name: str | None = None
    rotate: float | None = None

    def __post_init__(self) -> None:
        if self.orient not in ORIENTS:
            raise FrameConfigError(f"unknown axis orient: {self.orient}")
        if self.ticks is not None and self.ticks <= 0:
            raise FrameConfigError("axis ticks must be > 0")
        if self.padding is not None and self.padding < 0:
            raise FrameConfigError("axis padding must be >= 0")

    @property
    def is_horizontal(self) -> bool:
        return self.orient in {"top", "bottom"}

    @staticmethod
    def from_dict(raw: Mapping[str, Any]) -> "AxisSpec":
        def pick(*names: str) -> Any:
            for name in names:
                if name in raw:
                    return raw[name]
            return None

        baseline = pick("baseline")
        return AxisSpec(
            orient=str(raw.get("orient", "left")),  # type: ignore[arg-type]
            tick_values=pick("tick_values", "tickValues"),
            ticks=pick("ticks"),
            tick_format=pick("tick_format", "tickFormat"),
            label=pick("label"),
            baseline=None if baseline is None else bool(baseline),
            padding=pick("padding"),
            tick_size=pick("tick_size", "tickSize"),
            footer=bool(raw.get("footer", False)),
            class_name=str(pick("class_name", "className") or ""),
            key=pick("key"),
            name=pick("name"),
            rotate=pick("rotate"),
        )


def as_axis_spec(raw: AxisSpec | Mapping[str, Any]) -> AxisSpec:
    if isinstance(raw, AxisSpec):
        return raw
    if isinstance(raw, Mapping):
        return AxisSpec.from_dict(raw)
    raise FrameConfigError(f"axis must be an AxisSpec or mapping, got {type(raw)!r}")


@dataclass(frozen=True)
class Segment:
    x1: float
    y1: float
    x2: float
    y2: float


@dataclass(frozen=True)
class AxisTick:
    value: Any
    position: float
    label: str
    label_x: float
    label_y: float
    line: Segment


@dataclass(frozen=True)
class AxisGeometry:
    key: str
    orient: Orient
    class_name: str
    ticks: tuple[AxisTick, ...]
    tick_lines: tuple[Segment, ...]
    baseline: Segment | None
    text_anchor: str
    label: str | None = None
    label_x: float = 0.0
    label_y: float = 0.0
    label_rotate: float = 0.0
    rotate: float | None = None
    name: str | None = None


def build_axes(
    specs: Sequence[AxisSpec | Mapping[str, Any]],
    x_scale: ScaleLike,
    y_scale: ScaleLike,
    *,
    full_dataset: Sequence[Any],
    size: Sequence[float],
    adjusted_size: Sequence[float],
    margin: Margin,
    config: FrameConfig = DEFAULT_FRAME_CONFIG,
) -> tuple[tuple[AxisGeometry, ...], tuple[tuple[Segment, ...], ...]]:
    """Build axis geometry in input order, plus the tick-line sets on their own."""
    seen_orients: set[str] = set()
    axes: list[AxisGeometry] = []
    for i, raw in enumerate(specs):
        spec = as_axis_spec(raw)
        if spec.orient in seen_orients:
            draw_baseline = bool(spec.baseline)
        else:
            draw_baseline = spec.baseline is not False
        seen_orients.add(spec.orient)
        scale = x_scale if spec.is_horizontal else y_scale
        axes.append(
            axis_geometry(
                spec,
                scale,
                index=i,
                draw_baseline=draw_baseline,
                full_dataset=full_dataset,
                size=size,
                adjusted_size=adjusted_size,
                margin=margin,
                config=config,
            )
        )
    return tuple(axes), tuple(axis.tick_lines for axis in axes)


def axis_geometry(
    spec: AxisSpec,
    scale: ScaleLike,
    *,
    index: int,
    draw_baseline: bool,
    full_dataset: Sequence[Any],
    size: Sequence[float],
    adjusted_size: Sequence[float],
    margin: Margin,
    config: FrameConfig = DEFAULT_FRAME_CONFIG,
) -> AxisGeometry:
    width, height = float(adjusted_size[0]), float(adjusted_size[1])
    padding = config.axis_padding if spec.padding is None else float(spec.padding)
    if spec.tick_size is not None:
        tick_size = float(spec.tick_size)
    elif spec.footer:
        tick_size = config.footer_tick_size
    else:
        tick_size = height if spec.is_horizontal else width
    label_gap = padding + max(0.0, -tick_size)

    values = resolve_tick_values(spec, scale, full_dataset=full_dataset, size=size, adjusted_size=adjusted_size, config=config)
    labels = format_tick_labels(spec, scale, values)

    ticks: list[AxisTick] = []
    for value, label in zip(values, labels):
        position = scale(value)
        if position is None:
            LOGGER.debug("axis %s tick %r has no screen position", spec.orient, value)
            continue
        p = float(position)
        if spec.orient == "top":
            line = Segment(p, 0.0, p, tick_size)
            anchor = (p, -label_gap)
        elif spec.orient == "bottom":
            line = Segment(p, height, p, height - tick_size)
            anchor = (p, height + label_gap)
        elif spec.orient == "right":
            line = Segment(width, p, width - tick_size, p)
            anchor = (width + label_gap, p)
        else:
            line = Segment(0.0, p, tick_size, p)
            anchor = (-label_gap, p)
        ticks.append(AxisTick(value=value, position=p, label=label, label_x=anchor[0], label_y=anchor[1], line=line))

    baseline = _baseline_segment(spec.orient, width, height) if draw_baseline else None
    text_anchor = {"top": "middle", "bottom": "middle", "left": "end", "right": "start"}[spec.orient]
    label_offset = max(label_gap, margin.side(spec.orient) - padding)
    if spec.orient == "top":
        label_pos, label_rotate = (width / 2.0, -label_offset), 0.0
    elif spec.orient == "bottom":
        label_pos, label_rotate = (width / 2.0, height + label_offset), 0.0
    elif spec.orient == "right":
        label_pos, label_rotate = (width + label_offset, height / 2.0), 90.0
    else:
        label_pos, label_rotate = (-label_offset, height / 2.0), -90.0

    axis_class = " ".join(
        part for part in (spec.class_name, "axis", "x" if spec.is_horizontal else "y", spec.orient) if part
    )
    return AxisGeometry(
        key=spec.key or f"axis-{index}",
        orient=spec.orient,
        class_name=axis_class,
        ticks=tuple(ticks),
        tick_lines=tuple(tick.line for tick in ticks),
        baseline=baseline,
        text_anchor=text_anchor,
        label=spec.label,
        label_x=label_pos[0],
        label_y=label_pos[1],
        label_rotate=label_rotate,
        rotate=spec.rotate,
        name=spec.name,
    )


def resolve_tick_values(
    spec: AxisSpec,
    scale: ScaleLike,
    *,
    full_dataset: Sequence[Any],
    size: Sequence[float],
    adjusted_size: Sequence[float],
    config: FrameConfig = DEFAULT_FRAME_CONFIG,
) -> list[Any]:
    if spec.tick_values is not None and not callable(spec.tick_values):
        return list(spec.tick_values)
    if callable(spec.tick_values):
        return list(spec.tick_values(full_dataset, size, scale) or ())
    ticks_fn = getattr(scale, "ticks", None)
    if not callable(ticks_fn):
        return []
    axis_length = float(adjusted_size[0] if spec.is_horizontal else adjusted_size[1])
    count = spec.ticks or max(2, int(axis_length // config.tick_spacing_px))
    return list(ticks_fn(count))


def format_tick_labels(spec: AxisSpec, scale: ScaleLike, values: Sequence[Any]) -> list[str]:
    if spec.tick_format is not None:
        return [str(spec.tick_format(value)) for value in values]
    numbers = [coerce_number(value) for value in values]
    if values and all(n is not None for n in numbers):
        scale_format = getattr(scale, "tick_format", None)
        if callable(scale_format):
            return list(scale_format(numbers))
        return format_tick_values(numbers)
    return [format_tick(n) if n is not None and not isinstance(v, str) else str(v) for v, n in zip(values, numbers)]


def _baseline_segment(orient: str, width: float, height: float) -> Segment:
    if orient == "top":
        return Segment(0.0, 0.0, width, 0.0)
    if orient == "bottom":
        return Segment(0.0, height, width, height)
    if orient == "right":
        return Segment(width, 0.0, width, height)
    return Segment(0.0, 0.0, 0.0, height)
