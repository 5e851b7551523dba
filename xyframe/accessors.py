from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
import logging
import math
from typing import Any, Callable

LOGGER = logging.getLogger(__name__)

Accessor = Callable[[Any], Any]
AccessorSpec = Accessor | str | None


def resolve_accessor(spec: object, default: Accessor | None = None, *, constant: bool = False) -> Accessor | None:
    """Normalize a field name or callable into one accessor callable.

    With ``constant=True`` a non-callable, non-None spec becomes a function
    returning that value (style objects, class names, render modes).
    """
    if spec is None:
        return default
    if callable(spec):
        return spec
    if constant:
        return lambda *_args: spec
    if isinstance(spec, str):
        return field_accessor(spec)
    raise TypeError(f"accessor must be a callable or field name, got {type(spec)!r}")


def field_accessor(name: str) -> Accessor:
    def _read(record: Any) -> Any:
        if isinstance(record, Mapping):
            return record.get(name)
        return getattr(record, name, None)

    _read.__name__ = f"field_{name}"
    return _read


def read_value(accessor: Accessor | None, record: Any) -> Any:
    if accessor is None or record is None:
        return None
    try:
        return accessor(record)
    except (KeyError, IndexError, AttributeError, TypeError) as exc:
        LOGGER.debug("accessor %r failed for record %r: %s", accessor, record, exc)
        return None


def coerce_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        value = float(value)
    if hasattr(value, "timestamp") and callable(value.timestamp):
        value = value.timestamp()
    try:
        out = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(out):
        return None
    return out


@dataclass(frozen=True)
class FrameAccessors:
    x: Accessor
    y: Accessor
    line_id: Accessor
    line_data: Accessor
    area_id: Accessor
    area_data: Accessor


def resolve_frame_accessors(
    *,
    x: AccessorSpec = "x",
    y: AccessorSpec = "y",
    line_id: AccessorSpec = None,
    line_data: AccessorSpec = None,
    area_id: AccessorSpec = None,
    area_data: AccessorSpec = None,
) -> FrameAccessors:
    return FrameAccessors(
        x=resolve_accessor(x, field_accessor("x")),  # type: ignore[arg-type]
        y=resolve_accessor(y, field_accessor("y")),  # type: ignore[arg-type]
        line_id=resolve_accessor(line_id, field_accessor("id")),  # type: ignore[arg-type]
        line_data=resolve_accessor(line_data, field_accessor("coordinates")),  # type: ignore[arg-type]
        area_id=resolve_accessor(area_id, field_accessor("id")),  # type: ignore[arg-type]
        area_data=resolve_accessor(area_data, field_accessor("coordinates")),  # type: ignore[arg-type]
    )
