from __future__ import annotations

import copy
from decimal import ROUND_HALF_UP, Decimal
import math
from typing import Any, Callable, Protocol, Sequence

import numpy as np

from xyframe.accessors import coerce_number
from xyframe.errors import FrameConfigError


class ScaleLike(Protocol):
    """Minimal capability a frame needs from a scale.

    `set_domain` is optional: scales without it keep a caller-managed domain.
    """

    def __call__(self, value: Any) -> float | None:
        ...

    def set_range(self, values: Sequence[float]) -> Any:
        ...


ScaleType = ScaleLike | Callable[[], ScaleLike] | None


class LinearScale:
    def __init__(
        self,
        domain: Sequence[float] = (0.0, 1.0),
        range_: Sequence[float] = (0.0, 1.0),
        *,
        clamp: bool = False,
    ) -> None:
        self._domain = _as_pair(domain, label="domain")
        self._range = _as_pair(range_, label="range")
        self.clamp = clamp

    @property
    def domain(self) -> tuple[float, float]:
        return self._domain

    @property
    def range(self) -> tuple[float, float]:
        return self._range

    def set_domain(self, values: Sequence[float]) -> "LinearScale":
        self._domain = _as_pair(values, label="domain")
        return self

    def set_range(self, values: Sequence[float]) -> "LinearScale":
        self._range = _as_pair(values, label="range")
        return self

    def __call__(self, value: Any) -> float | None:
        v = coerce_number(value)
        if v is None:
            return None
        t = self._normalize(v)
        if self.clamp:
            t = min(1.0, max(0.0, t))
        r0, r1 = self._range
        return r0 + t * (r1 - r0)

    def invert(self, pixel: float) -> float | None:
        p = coerce_number(pixel)
        if p is None:
            return None
        r0, r1 = self._range
        if r0 == r1:
            return self._denormalize(0.5)
        t = (p - r0) / (r1 - r0)
        if self.clamp:
            t = min(1.0, max(0.0, t))
        return self._denormalize(t)

    def ticks(self, count: int = 10) -> list[float]:
        d0, d1 = self._domain
        return [float(t) for t in nice_ticks(d0, d1, max(1, int(count)))]

    def tick_format(self, ticks: Sequence[float]) -> list[str]:
        return format_tick_values(ticks)

    def copy(self) -> "LinearScale":
        return copy.copy(self)

    def _normalize(self, value: float) -> float:
        d0, d1 = self._domain
        span = d1 - d0
        if span == 0:
            return 0.5
        return (value - d0) / span

    def _denormalize(self, t: float) -> float:
        d0, d1 = self._domain
        return d0 + t * (d1 - d0)

    def __repr__(self) -> str:
        return f"LinearScale(domain={self._domain}, range={self._range})"


class LogScale(LinearScale):
    def __init__(
        self,
        domain: Sequence[float] = (1.0, 10.0),
        range_: Sequence[float] = (0.0, 1.0),
        *,
        base: float = 10.0,
        clamp: bool = False,
    ) -> None:
        if base <= 0 or base == 1:
            raise FrameConfigError("log base must be > 0 and != 1")
        self.base = float(base)
        super().__init__(domain, range_, clamp=clamp)

    def __call__(self, value: Any) -> float | None:
        v = coerce_number(value)
        if v is None or v <= 0:
            return None
        return super().__call__(v)

    def invert(self, pixel: float) -> float | None:
        p = coerce_number(pixel)
        if p is None:
            return None
        r0, r1 = self._range
        t = 0.5 if r0 == r1 else (p - r0) / (r1 - r0)
        if self.clamp:
            t = min(1.0, max(0.0, t))
        l0, l1 = self._log_domain()
        if l0 is None or l1 is None:
            return None
        return float(self.base ** (l0 + t * (l1 - l0)))

    def ticks(self, count: int = 10) -> list[float]:
        l0, l1 = self._log_domain()
        if l0 is None or l1 is None:
            return []
        lo, hi = min(l0, l1), max(l0, l1)
        out = [float(self.base**e) for e in range(int(math.floor(lo)), int(math.ceil(hi)) + 1)]
        eps = 1e-9
        return [t for t in out if lo - eps <= math.log(t, self.base) <= hi + eps]

    def _normalize(self, value: float) -> float:
        l0, l1 = self._log_domain()
        if l0 is None or l1 is None or l1 == l0:
            return 0.5
        return (math.log(value, self.base) - l0) / (l1 - l0)

    def _log_domain(self) -> tuple[float | None, float | None]:
        d0, d1 = self._domain
        l0 = math.log(d0, self.base) if d0 > 0 else None
        l1 = math.log(d1, self.base) if d1 > 0 else None
        return l0, l1

    def __repr__(self) -> str:
        return f"LogScale(domain={self._domain}, range={self._range}, base={self.base})"


def new_scale(scale_type: ScaleType) -> ScaleLike:
    """Return a scale owned by one frame.

    Accepts nothing (linear default), a zero-argument factory, or a template
    instance that gets copied.
    """
    if scale_type is None:
        return LinearScale()
    if hasattr(scale_type, "set_range"):
        copier = getattr(scale_type, "copy", None)
        if callable(copier):
            return copier()
        return copy.copy(scale_type)
    if callable(scale_type):
        scale = scale_type()
        if not hasattr(scale, "set_range"):
            raise FrameConfigError("scale factory must return an object with set_range()")
        return scale
    raise FrameConfigError(f"unsupported scale type: {type(scale_type)!r}")


def build_screen_scales(
    x_extent: Sequence[float],
    y_extent: Sequence[float],
    adjusted_size: Sequence[float],
    *,
    x_scale_type: ScaleType = None,
    y_scale_type: ScaleType = None,
) -> tuple[ScaleLike, ScaleLike]:
    x_scale = new_scale(x_scale_type)
    y_scale = new_scale(y_scale_type)
    set_x_domain = getattr(x_scale, "set_domain", None)
    if callable(set_x_domain):
        set_x_domain(tuple(x_extent))
    set_y_domain = getattr(y_scale, "set_domain", None)
    if callable(set_y_domain):
        set_y_domain(tuple(y_extent))
    x_scale.set_range((0.0, float(adjusted_size[0])))
    # Screen origin is top-left, so the y range runs bottom-up.
    y_scale.set_range((float(adjusted_size[1]), 0.0))
    return x_scale, y_scale


def tick_step(start: float, stop: float, count: int) -> float:
    """Round step of 1, 2 or 5 times a power of ten giving about `count` ticks."""
    raw = abs(stop - start) / max(int(count), 1)
    power = math.floor(math.log10(raw))
    error = raw / 10**power
    if error >= _SQRT_50:
        factor = 10
    elif error >= _SQRT_10:
        factor = 5
    elif error >= _SQRT_2:
        factor = 2
    else:
        factor = 1
    return factor * 10.0**power


def nice_ticks(start: float, stop: float, count: int) -> np.ndarray:
    """Ticks on the `tick_step` grid that fall inside `[start, stop]`, ascending."""
    if count <= 0:
        raise ValueError("tick count must be > 0")
    lo, hi = min(start, stop), max(start, stop)
    if lo == hi:
        return np.asarray([lo], dtype=np.float64)
    step = tick_step(lo, hi, count)
    if step >= 1:
        first, last = _grid_bounds(lo / step, hi / step, lambda i: i * step, lo, hi)
        return np.arange(first, last + 1, dtype=np.float64) * step
    # Divide by the inverse step so 0.1-style steps land on exact decimals.
    inverse = round(1.0 / step)
    first, last = _grid_bounds(lo * inverse, hi * inverse, lambda i: i / inverse, lo, hi)
    return np.arange(first, last + 1, dtype=np.float64) / inverse


def _grid_bounds(
    lo_index: float,
    hi_index: float,
    value_at: Callable[[int], float],
    lo: float,
    hi: float,
) -> tuple[int, int]:
    first, last = round(lo_index), round(hi_index)
    if value_at(first) < lo:
        first += 1
    if value_at(last) > hi:
        last -= 1
    return first, last


def format_tick(value: float, *, step: float | None = None) -> str:
    """Plain decimal text, with as many decimals as `step` needs (6 without one)."""
    if not math.isfinite(value):
        return str(value)
    magnitude = abs(value)
    if magnitude != 0 and (magnitude >= 1e15 or magnitude < 1e-6):
        return f"{value:.4e}"
    places = 6 if step is None else _step_places(step)
    text = format(Decimal(repr(value)).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def format_tick_values(values: Sequence[float]) -> list[str]:
    """Labels for a tick row; the smallest gap between ticks sets the precision."""
    ticks = np.asarray(list(values), dtype=np.float64)
    if ticks.size < 2:
        return [format_tick(float(v)) for v in ticks]
    gaps = np.abs(np.diff(ticks))
    gaps = gaps[gaps > 0]
    step = float(gaps.min()) if gaps.size else None
    return [format_tick(float(v), step=step) for v in ticks]


def _step_places(step: float) -> int:
    if not math.isfinite(step) or step <= 0:
        return 6
    text = np.format_float_positional(step, precision=12, trim="-")
    return len(text.partition(".")[2])


_SQRT_50 = math.sqrt(50)
_SQRT_10 = math.sqrt(10)
_SQRT_2 = math.sqrt(2)


def _as_pair(values: Sequence[float], *, label: str) -> tuple[float, float]:
    pair = tuple(values)
    if len(pair) != 2:
        raise FrameConfigError(f"scale {label} must have exactly two values")
    return (float(pair[0]), float(pair[1]))
