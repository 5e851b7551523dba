from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
import logging
from typing import Any, Literal

import numpy as np

from xyframe.accessors import FrameAccessors, coerce_number, read_value
from xyframe.config import LineBoundaryPolicy
from xyframe.errors import FrameConfigError
from xyframe.scales import ScaleLike

LOGGER = logging.getLogger(__name__)

LineType = Literal["line", "cumulative", "stackedarea", "stackedpercent"]
LINE_TYPES: frozenset[str] = frozenset({"line", "cumulative", "stackedarea", "stackedpercent"})
STACKED_LINE_TYPES: frozenset[str] = frozenset({"stackedarea", "stackedpercent"})

ParentKind = Literal["line", "area"]
ScreenPoint = tuple[float, float]


@dataclass(frozen=True)
class ProjectedRecord:
    """A dataset record decorated with data-space and screen-space coordinates.

    `y_top`/`y_bottom` describe the vertical span of band records (stacked
    lines), `y_middle` its center. Screen fields stay `None` until a
    `ScreenProjector` has run, and stay `None` when the scale cannot map the
    value.
    """

    datum: Any
    index: int
    x: Any = None
    y: Any = None
    y_top: float | None = None
    y_middle: float | None = None
    y_bottom: float | None = None
    parent: Any = None
    parent_id: str | None = None
    parent_kind: ParentKind | None = None
    percent: float | None = None
    screen_x: float | None = None
    screen_y: float | None = None
    screen_y_top: float | None = None
    screen_y_middle: float | None = None
    screen_y_bottom: float | None = None

    @property
    def valid(self) -> bool:
        return self.screen_x is not None and self.screen_y is not None

    @property
    def y_anchor(self) -> Any:
        return self.y_middle if self.y_middle is not None else self.y


@dataclass(frozen=True)
class ProjectedLine:
    line_id: str
    datum: Any
    data: tuple[ProjectedRecord, ...]


@dataclass(frozen=True)
class ProjectedArea:
    area_id: str
    datum: Any
    coordinates: tuple[ProjectedRecord, ...]
    screen_coordinates: tuple[ScreenPoint, ...] = ()
    bounds: tuple[Mapping[str, Any], ...] = ()


@dataclass(frozen=True)
class ProjectedLayers:
    lines: tuple[ProjectedLine, ...] = ()
    points: tuple[ProjectedRecord, ...] = ()
    areas: tuple[ProjectedArea, ...] = ()
    full_dataset: tuple[ProjectedRecord, ...] = ()

    def hover_targets(self) -> tuple[ProjectedRecord, ...]:
        return tuple(record for record in self.full_dataset if record.valid)


def as_group_list(value: Any) -> list[Any]:
    """Lines/areas may be given as one group or a sequence of groups."""
    if value is None:
        return []
    if isinstance(value, Mapping):
        return [value]
    return list(value)


def line_type_name(line_type: Any) -> str:
    """Accept `"stackedarea"` or a `{"type": "stackedarea", ...}` mapping."""
    if isinstance(line_type, Mapping):
        line_type = line_type.get("type", "line")
    if not isinstance(line_type, str) or line_type not in LINE_TYPES:
        raise FrameConfigError(f"unsupported line type: {line_type!r}")
    return line_type


def project_layers(
    *,
    lines: Any,
    points: Any,
    areas: Any,
    accessors: FrameAccessors,
    line_type: Any = "line",
    show_line_points: bool = False,
) -> ProjectedLayers:
    """Data-space projection of the three layers; screen fields left empty."""
    line_type = line_type_name(line_type)

    projected_lines = _project_lines(as_group_list(lines), accessors, line_type)
    projected_areas = _project_areas(as_group_list(areas), accessors)

    plain_points: list[ProjectedRecord] = []
    for i, record in enumerate(list(points or ())):
        plain_points.append(
            ProjectedRecord(
                datum=record,
                index=i,
                x=read_value(accessors.x, record),
                y=read_value(accessors.y, record),
            )
        )

    line_members = [record for line in projected_lines for record in line.data]
    area_members = [record for area in projected_areas for record in area.coordinates]
    point_layer = plain_points + line_members if show_line_points else plain_points

    return ProjectedLayers(
        lines=tuple(projected_lines),
        points=tuple(point_layer),
        areas=tuple(projected_areas),
        full_dataset=tuple(plain_points + line_members + area_members),
    )


def _project_lines(groups: list[Any], accessors: FrameAccessors, line_type: str) -> list[ProjectedLine]:
    raw_lines: list[tuple[str, Any, list[ProjectedRecord]]] = []
    for i, group in enumerate(groups):
        line_id = read_value(accessors.line_id, group)
        line_id = f"line-{i}" if line_id is None else str(line_id)
        members = read_value(accessors.line_data, group)
        if members is None:
            LOGGER.debug("line %s has no member data", line_id)
            members = ()
        records = [
            ProjectedRecord(
                datum=member,
                index=j,
                x=read_value(accessors.x, member),
                y=read_value(accessors.y, member),
                parent=group,
                parent_id=line_id,
                parent_kind="line",
            )
            for j, member in enumerate(members)
        ]
        raw_lines.append((line_id, group, records))

    if line_type == "cumulative":
        raw_lines = [(lid, group, _cumulative(records)) for lid, group, records in raw_lines]
    elif line_type in STACKED_LINE_TYPES:
        raw_lines = _stack(raw_lines, percent=line_type == "stackedpercent")

    return [ProjectedLine(line_id=lid, datum=group, data=tuple(records)) for lid, group, records in raw_lines]


def _cumulative(records: list[ProjectedRecord]) -> list[ProjectedRecord]:
    running = 0.0
    out: list[ProjectedRecord] = []
    for record in records:
        value = coerce_number(record.y)
        if value is None:
            out.append(record)
            continue
        running += value
        out.append(replace(record, y=running))
    return out


def _stack(
    raw_lines: list[tuple[str, Any, list[ProjectedRecord]]],
    *,
    percent: bool,
) -> list[tuple[str, Any, list[ProjectedRecord]]]:
    totals: dict[float, float] = {}
    if percent:
        for _, _, records in raw_lines:
            for record in records:
                x = coerce_number(record.x)
                y = coerce_number(record.y)
                if x is not None and y is not None:
                    totals[x] = totals.get(x, 0.0) + y

    offsets: dict[float, float] = {}
    stacked: list[tuple[str, Any, list[ProjectedRecord]]] = []
    for line_id, group, records in raw_lines:
        out: list[ProjectedRecord] = []
        for record in records:
            x = coerce_number(record.x)
            y = coerce_number(record.y)
            if x is None or y is None:
                out.append(record)
                continue
            share = None
            if percent:
                total = totals.get(x, 0.0)
                share = y / total if total else 0.0
                y = share
            bottom = offsets.get(x, 0.0)
            top = bottom + y
            offsets[x] = top
            out.append(
                replace(
                    record,
                    y=top,
                    y_top=top,
                    y_bottom=bottom,
                    y_middle=(top + bottom) / 2.0,
                    percent=share,
                )
            )
        stacked.append((line_id, group, out))
    return stacked


def _project_areas(groups: list[Any], accessors: FrameAccessors) -> list[ProjectedArea]:
    out: list[ProjectedArea] = []
    for i, group in enumerate(groups):
        area_id = read_value(accessors.area_id, group)
        area_id = f"area-{i}" if area_id is None else str(area_id)
        vertices = read_value(accessors.area_data, group)
        if vertices is None:
            LOGGER.debug("area %s has no coordinates", area_id)
            vertices = ()
        raw_bounds = group.get("bounds") if isinstance(group, Mapping) else getattr(group, "bounds", None)
        if raw_bounds is None:
            bounds: tuple[Mapping[str, Any], ...] = ()
        elif isinstance(raw_bounds, Mapping):
            bounds = (raw_bounds,)
        else:
            bounds = tuple(b for b in raw_bounds if isinstance(b, Mapping))
        out.append(
            ProjectedArea(
                area_id=area_id,
                datum=group,
                coordinates=tuple(
                    ProjectedRecord(
                        datum=vertex,
                        index=j,
                        x=read_value(accessors.x, vertex),
                        y=read_value(accessors.y, vertex),
                        parent=group,
                        parent_id=area_id,
                        parent_kind="area",
                    )
                    for j, vertex in enumerate(vertices)
                ),
                bounds=bounds,
            )
        )
    return out


@dataclass(frozen=True)
class ScreenProjector:
    """Maps records and annotation data onto screen space for one snapshot.

    Every consumer of single screen coordinates goes through this object so
    points, line hover targets and annotations share one interpolation policy.
    """

    x_scale: ScaleLike
    y_scale: ScaleLike
    accessors: FrameAccessors
    lines: tuple[ProjectedLine, ...] = ()
    adjusted_position: tuple[float, float] = (0.0, 0.0)
    boundary_policy: LineBoundaryPolicy = "clamp"

    def project_layers(self, layers: ProjectedLayers) -> ProjectedLayers:
        """Screen-project every layer, keeping the data-space record order.

        Line members shown as points are the same records as in `lines`.
        """
        lines = tuple(
            replace(line, data=tuple(self.project_record(record, line) for record in line.data))
            for line in layers.lines
        )
        areas = tuple(
            replace(
                area,
                coordinates=tuple(self.project_record(record) for record in area.coordinates),
                screen_coordinates=self.vertices(area.coordinates),
            )
            for area in layers.areas
        )
        plain = tuple(self.project_record(record) for record in layers.points if record.parent_kind is None)
        line_members = tuple(record for line in lines for record in line.data)
        area_members = tuple(record for area in areas for record in area.coordinates)
        shows_line_points = any(record.parent_kind == "line" for record in layers.points)
        points = plain + line_members if shows_line_points else plain
        full = plain + line_members + area_members
        invalid = sum(1 for record in full if not record.valid)
        if invalid:
            LOGGER.debug("%d of %d records have no valid screen coordinates", invalid, len(full))
        return ProjectedLayers(lines=lines, points=points, areas=areas, full_dataset=full)

    def project_record(self, record: ProjectedRecord, line: ProjectedLine | None = None) -> ProjectedRecord:
        """Own y first; a line member without one is interpolated along `line`."""
        if record.y is None and line is not None:
            screen_y = self.interpolate_line_y(line, record.x)
        else:
            screen_y = self.y_scale(record.y)
        return replace(
            record,
            screen_x=self.x_scale(record.x),
            screen_y=screen_y,
            screen_y_top=None if record.y_top is None else self.y_scale(record.y_top),
            screen_y_middle=None if record.y_middle is None else self.y_scale(record.y_middle),
            screen_y_bottom=None if record.y_bottom is None else self.y_scale(record.y_bottom),
        )

    def x(self, datum: Any) -> float | None:
        if isinstance(datum, ProjectedRecord):
            return self.x_scale(datum.x)
        return self.x_scale(read_value(self.accessors.x, datum))

    def y(self, datum: Any) -> float | None:
        """Screen y of a datum: own value first, then interpolation along its line."""
        if isinstance(datum, ProjectedRecord):
            base = datum.y_anchor
            line_id = datum.parent_id if datum.parent_kind == "line" else None
            x_value = datum.x
        else:
            base = read_value(self.accessors.y, datum)
            line_id = read_value(self.accessors.line_id, datum)
            x_value = read_value(self.accessors.x, datum)
        if base is not None:
            return self.y_scale(base)
        if line_id is None:
            return None
        line = _find_line(self.lines, line_id)
        if line is None:
            return None
        return self.interpolate_line_y(line, x_value)

    def point(self, datum: Any) -> tuple[float | None, float | None]:
        return (self.x(datum), self.y(datum))

    def interpolate_line_y(self, line: ProjectedLine, x_value: Any) -> float | None:
        xq = coerce_number(x_value)
        if xq is None:
            return None
        samples = sorted(
            (sx, sy)
            for sx, sy in ((coerce_number(r.x), coerce_number(r.y_anchor)) for r in line.data)
            if sx is not None and sy is not None
        )
        if not samples:
            return None
        xs = np.asarray([s[0] for s in samples], dtype=np.float64)
        ys = np.asarray([s[1] for s in samples], dtype=np.float64)
        if self.boundary_policy == "reject" and (xq < xs[0] or xq > xs[-1]):
            return None
        # np.interp holds the end samples outside the sampled range.
        return self.y_scale(float(np.interp(xq, xs, ys)))

    def vertices(self, vertices: Sequence[Any] | None) -> tuple[ScreenPoint, ...]:
        """Map an explicit shape vertex by vertex, offset by the adjusted position."""
        if not vertices:
            return ()
        ox, oy = self.adjusted_position
        out: list[ScreenPoint] = []
        for vertex in vertices:
            sx, sy = self.point(vertex)
            if sx is None or sy is None:
                LOGGER.debug("dropping shape vertex without screen coordinates: %r", vertex)
                continue
            out.append((sx + ox, sy + oy))
        return tuple(out)


def _find_line(lines: Sequence[ProjectedLine], line_id: Any) -> ProjectedLine | None:
    key = str(line_id)
    for line in lines:
        if line.line_id == key:
            return line
    return None
