from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Callable, Literal

from xyframe.config import DEFAULT_FRAME_CONFIG, FrameConfig
from xyframe.errors import FrameConfigError


Orient = Literal["top", "bottom", "left", "right"]
ORIENTS: tuple[str, ...] = ("top", "bottom", "left", "right")


@dataclass(frozen=True)
class Margin:
    top: float = 0.0
    bottom: float = 0.0
    left: float = 0.0
    right: float = 0.0

    def __post_init__(self) -> None:
        if self.top < 0 or self.bottom < 0 or self.left < 0 or self.right < 0:
            raise FrameConfigError("margin values must be >= 0")

    def side(self, orient: str) -> float:
        if orient not in ORIENTS:
            raise FrameConfigError(f"unknown orient: {orient}")
        return float(getattr(self, orient))


MarginSpec = float | int | Mapping[str, float] | Margin | Callable[..., Any] | None


@dataclass(frozen=True)
class FrameTitle:
    text: Any
    x: float
    y: float
    orient: Orient = "top"
    rotate: float = 0.0


@dataclass(frozen=True)
class MattePath:
    """Frame-sized outer rectangle and the plot-area hole cut out of it."""

    outer: tuple[tuple[float, float], ...]
    inner: tuple[tuple[float, float], ...]


def calculate_margin(
    margin: MarginSpec,
    *,
    axes: Sequence[Any] = (),
    title: Any = None,
    size: Sequence[float] | None = None,
    config: FrameConfig = DEFAULT_FRAME_CONFIG,
) -> Margin:
    if callable(margin) and not isinstance(margin, Margin):
        margin = margin({"axes": tuple(axes), "title": title, "size": size})
    if isinstance(margin, Margin):
        return margin
    if isinstance(margin, bool):
        raise FrameConfigError("margin must be a number or a mapping")
    if isinstance(margin, (int, float)):
        m = float(margin)
        return Margin(top=m, bottom=m, left=m, right=m)
    if isinstance(margin, Mapping):
        unknown = sorted(str(k) for k in margin if k not in ORIENTS)
        if unknown:
            raise FrameConfigError(f"unknown margin sides: {', '.join(unknown)}")
        return Margin(**{side: float(margin.get(side, 0.0)) for side in ORIENTS})
    if margin is not None:
        raise FrameConfigError(f"unsupported margin: {margin!r}")

    sides = {side: 0.0 for side in ORIENTS}
    for axis in axes:
        orient = _attr(axis, "orient", "left")
        label = _attr(axis, "label", None)
        sides[orient] = config.labeled_axis_margin if label else config.axis_margin
    if title:
        sides[_title_orient(title)] += config.title_margin
    return Margin(**sides)


def adjusted_position_size(
    size: Sequence[float],
    position: Sequence[float],
    margin: Margin,
) -> tuple[tuple[float, float], tuple[float, float]]:
    width, height = float(size[0]), float(size[1])
    if width <= 0 or height <= 0:
        raise FrameConfigError("frame width/height must be > 0")
    adjusted_w = width - margin.left - margin.right
    adjusted_h = height - margin.top - margin.bottom
    if adjusted_w <= 0 or adjusted_h <= 0:
        raise FrameConfigError("frame too small for its margin")
    return (float(position[0]), float(position[1])), (adjusted_w, adjusted_h)


def generate_frame_title(title: Any, size: Sequence[float], margin: Margin) -> FrameTitle | None:
    if not title:
        return None
    text = title
    if isinstance(title, Mapping):
        text = title.get("text", title.get("title"))
        if not text:
            return None
    orient = _title_orient(title)
    width, height = float(size[0]), float(size[1])
    if orient == "top":
        return FrameTitle(text=text, x=width / 2.0, y=margin.top / 2.0, orient="top")
    if orient == "bottom":
        return FrameTitle(text=text, x=width / 2.0, y=height - margin.bottom / 2.0, orient="bottom")
    if orient == "left":
        return FrameTitle(text=text, x=margin.left / 2.0, y=height / 2.0, orient="left", rotate=-90.0)
    return FrameTitle(text=text, x=width - margin.right / 2.0, y=height / 2.0, orient="right", rotate=90.0)


def matte_path(margin: Margin, size: Sequence[float], inset: float = 5.0) -> MattePath:
    width, height = float(size[0]), float(size[1])
    x0 = margin.left - inset
    y0 = margin.top - inset
    x1 = width - margin.right + inset
    y1 = height - margin.bottom + inset
    return MattePath(
        outer=((0.0, 0.0), (width, 0.0), (width, height), (0.0, height)),
        inner=((x0, y0), (x1, y0), (x1, y1), (x0, y1)),
    )


def _title_orient(title: Any) -> str:
    orient = "top"
    if isinstance(title, Mapping):
        orient = str(title.get("orient", "top"))
    if orient not in ORIENTS:
        raise FrameConfigError(f"unknown title orient: {orient}")
    return orient


def _attr(obj: Any, name: str, default: Any) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name, default)
    return getattr(obj, name, default)
