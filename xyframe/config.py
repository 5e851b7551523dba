from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
import tomllib
from typing import Literal, Mapping

from xyframe.errors import FrameConfigError


LineBoundaryPolicy = Literal["clamp", "reject"]


@dataclass(frozen=True)
class FrameConfig:
    size: tuple[float, float] = (500.0, 500.0)
    tick_spacing_px: float = 40.0
    axis_padding: float = 5.0
    axis_margin: float = 50.0
    labeled_axis_margin: float = 60.0
    title_margin: float = 40.0
    marker_radius: float = 5.0
    enclose_padding: float = 2.0
    footer_tick_size: float = -10.0
    line_boundary_policy: LineBoundaryPolicy = "clamp"
    extent_fallback: tuple[float, float] = (0.0, 0.0)

    def __post_init__(self) -> None:
        if len(self.size) != 2 or self.size[0] <= 0 or self.size[1] <= 0:
            raise FrameConfigError("size must be a (width, height) pair with both values > 0")
        if self.tick_spacing_px <= 0:
            raise FrameConfigError("tick_spacing_px must be > 0")
        if self.axis_padding < 0:
            raise FrameConfigError("axis_padding must be >= 0")
        if self.axis_margin < 0 or self.labeled_axis_margin < 0 or self.title_margin < 0:
            raise FrameConfigError("margins must be >= 0")
        if self.marker_radius <= 0:
            raise FrameConfigError("marker_radius must be > 0")
        if self.enclose_padding < 0:
            raise FrameConfigError("enclose_padding must be >= 0")
        if self.line_boundary_policy not in {"clamp", "reject"}:
            raise FrameConfigError(f"unsupported line_boundary_policy: {self.line_boundary_policy}")
        if len(self.extent_fallback) != 2:
            raise FrameConfigError("extent_fallback must be a (min, max) pair")

    @staticmethod
    def from_dict(payload: Mapping[str, object]) -> "FrameConfig":
        known = {f.name for f in fields(FrameConfig)}
        unknown = sorted(str(k) for k in payload if k not in known)
        if unknown:
            raise FrameConfigError(f"unknown frame config keys: {', '.join(unknown)}")
        kwargs: dict[str, object] = {}
        for key, raw in payload.items():
            if key in {"size", "extent_fallback"}:
                kwargs[key] = _parse_pair(raw, field_name=key)
            elif key == "line_boundary_policy":
                kwargs[key] = str(raw)
            else:
                kwargs[key] = _parse_float(raw, field_name=key)
        return FrameConfig(**kwargs)  # type: ignore[arg-type]


DEFAULT_FRAME_CONFIG = FrameConfig()


def load_frame_config(path: str | Path) -> FrameConfig:
    """Read a `FrameConfig` from a TOML file.

    Keys may sit at the top level or under a `[frame]` table.
    """
    config_path = Path(path)
    with config_path.open("rb") as f:
        try:
            raw = tomllib.load(f)
        except tomllib.TOMLDecodeError as exc:
            raise FrameConfigError(f"invalid frame config TOML in {config_path}: {exc}") from exc
    section = raw.get("frame", raw)
    if not isinstance(section, Mapping):
        raise FrameConfigError("[frame] must be a table")
    return FrameConfig.from_dict(section)


def _parse_pair(raw: object, *, field_name: str) -> tuple[float, float]:
    if isinstance(raw, (str, bytes)) or not isinstance(raw, (list, tuple)) or len(raw) != 2:
        raise FrameConfigError(f"{field_name} must be a 2-element array")
    return (_parse_float(raw[0], field_name=field_name), _parse_float(raw[1], field_name=field_name))


def _parse_float(raw: object, *, field_name: str) -> float:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise FrameConfigError(f"{field_name} must be numeric")
    return float(raw)
