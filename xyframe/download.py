from __future__ import annotations

from collections.abc import Mapping, Sequence
import logging
from typing import TYPE_CHECKING, Any, Literal

from xyframe.accessors import field_accessor, read_value
from xyframe.errors import FrameConfigError
from xyframe.projection import ProjectedRecord, as_group_list

if TYPE_CHECKING:
    from xyframe.frame import FrameState

LOGGER = logging.getLogger(__name__)

DownloadMode = Literal["points", "layer"]

# Parent geometry is never copied onto its members.
_PARENT_EXCLUDED_KEYS = frozenset({"coordinates"})


def map_parents_to_points(full_dataset: Sequence[ProjectedRecord]) -> list[dict[str, Any]]:
    """Flatten each record into a dict, with line/area parent fields layered on top."""
    out: list[dict[str, Any]] = []
    for record in full_dataset:
        row = _as_dict(record.datum)
        if record.parent is not None:
            parent = _as_dict(record.parent)
            row.update({k: v for k, v in parent.items() if k not in _PARENT_EXCLUDED_KEYS})
        out.append(row)
    return out


def download_rows(
    state: "FrameState",
    mode: DownloadMode = "points",
    fields: Sequence[str] = (),
) -> list[dict[str, Any]]:
    """Tabular rows for export: `x`, `y` and any requested `fields`.

    `"points"` exports every record of the full dataset with its parent's
    fields merged in. `"layer"` exports the raw points, or failing that the
    raw lines/areas expanded member by member.
    """
    if mode == "points":
        merged = map_parents_to_points(state.layers.full_dataset)
        return [
            _row(record.x, record.y, row, fields)
            for record, row in zip(state.layers.full_dataset, merged)
        ]
    if mode != "layer":
        raise FrameConfigError(f"unsupported download mode: {mode}")

    inputs = state.inputs
    accessors = state.accessors
    if inputs.points:
        return [
            _row(read_value(accessors.x, p), read_value(accessors.y, p), _as_dict(p), fields)
            for p in inputs.points
        ]
    if inputs.lines:
        groups, members_of = as_group_list(inputs.lines), accessors.line_data
    else:
        groups, members_of = as_group_list(inputs.areas), accessors.area_data
    rows: list[dict[str, Any]] = []
    for group in groups:
        parent = {k: v for k, v in _as_dict(group).items() if k not in _PARENT_EXCLUDED_KEYS}
        for member in read_value(members_of, group) or ():
            merged = {**_as_dict(member), **parent}
            rows.append(_row(read_value(accessors.x, member), read_value(accessors.y, member), merged, fields))
    LOGGER.debug("exported %d layer rows", len(rows))
    return rows


def _row(x: Any, y: Any, source: Mapping[str, Any], fields: Sequence[str]) -> dict[str, Any]:
    row: dict[str, Any] = {"x": x, "y": y}
    for name in fields:
        row[name] = read_value(field_accessor(name), source)
    return row


def _as_dict(value: Any) -> dict[str, Any]:
    if isinstance(value, Mapping):
        return dict(value)
    if hasattr(value, "__dict__"):
        return dict(vars(value))
    return {"value": value}
