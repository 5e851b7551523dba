from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
import logging
from typing import Any, Callable

import numpy as np

from xyframe.accessors import coerce_number
from xyframe.errors import FrameConfigError
from xyframe.projection import ProjectedLayers

LOGGER = logging.getLogger(__name__)

Extent = tuple[float, float]
PartialExtent = tuple[float | None, float | None]
ExtentCallback = Callable[[Extent], None]


@dataclass(frozen=True)
class ExtentSettings:
    extent: PartialExtent | None = None
    on_change: ExtentCallback | None = None


def normalize_extent_settings(raw: Any) -> ExtentSettings:
    """Accept `None`, `[min, max]`, `{"extent": ..., "onChange": ...}` or `ExtentSettings`."""
    if raw is None:
        return ExtentSettings()
    if isinstance(raw, ExtentSettings):
        return ExtentSettings(extent=_parse_partial(raw.extent), on_change=raw.on_change)
    if isinstance(raw, Mapping):
        on_change = raw.get("on_change", raw.get("onChange"))
        if on_change is not None and not callable(on_change):
            raise FrameConfigError("extent onChange must be callable")
        return ExtentSettings(extent=_parse_partial(raw.get("extent")), on_change=on_change)
    return ExtentSettings(extent=_parse_partial(raw))


def calculate_data_extent(
    layers: ProjectedLayers,
    *,
    fallback: Extent = (0.0, 0.0),
) -> tuple[Extent, Extent]:
    """Scan every record (points, line members, area vertices) for x and y bounds.

    Band records contribute their whole `y_bottom`..`y_top` span.
    """
    xs: list[float] = []
    ys: list[float] = []
    for record in layers.full_dataset:
        x = coerce_number(record.x)
        if x is not None:
            xs.append(x)
        for raw in (record.y, record.y_top, record.y_bottom):
            y = coerce_number(raw)
            if y is not None:
                ys.append(y)
    return _reduce(xs, fallback), _reduce(ys, fallback)


def resolve_extent(
    settings: ExtentSettings,
    calculated: Extent,
    *,
    invert: bool = False,
) -> Extent:
    """Fill caller-supplied slots over the calculated extent."""
    lo, hi = calculated
    if settings.extent is not None:
        given_lo, given_hi = settings.extent
        if given_lo is not None:
            lo = given_lo
        if given_hi is not None:
            hi = given_hi
    return (hi, lo) if invert else (lo, hi)


def notify_extent_change(settings: ExtentSettings, previous: Extent | None, current: Extent) -> bool:
    """Call `on_change` once when the calculated extent moved; returns whether it fired."""
    if settings.on_change is None:
        return False
    if previous is not None and tuple(previous) == tuple(current):
        return False
    LOGGER.debug("calculated extent changed %s -> %s", previous, current)
    settings.on_change(current)
    return True


def _reduce(values: list[float], fallback: Extent) -> Extent:
    if not values:
        return (float(fallback[0]), float(fallback[1]))
    arr = np.asarray(values, dtype=np.float64)
    return (float(np.min(arr)), float(np.max(arr)))


def _parse_partial(raw: Any) -> PartialExtent | None:
    if raw is None:
        return None
    if isinstance(raw, (str, bytes)) or not isinstance(raw, (Sequence, np.ndarray)) or len(raw) != 2:
        raise FrameConfigError("extent must be a [min, max] pair")
    lo = None if raw[0] is None else coerce_number(raw[0])
    hi = None if raw[1] is None else coerce_number(raw[1])
    if (raw[0] is not None and lo is None) or (raw[1] is not None and hi is None):
        raise FrameConfigError(f"extent values must be numeric, got {list(raw)!r}")
    return (lo, hi)
