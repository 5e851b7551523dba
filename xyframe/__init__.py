from xyframe.accessors import FrameAccessors, resolve_accessor, resolve_frame_accessors
from xyframe.axis import AxisGeometry, AxisSpec, build_axes
from xyframe.config import DEFAULT_FRAME_CONFIG, FrameConfig, load_frame_config
from xyframe.download import download_rows, map_parents_to_points
from xyframe.errors import FrameConfigError
from xyframe.extent import ExtentSettings, calculate_data_extent, resolve_extent
from xyframe.frame import FrameInputs, FrameState, XYFrame, needs_recompute, recompute
from xyframe.layout import Margin, calculate_margin
from xyframe.projection import ProjectedLayers, ProjectedRecord, ScreenProjector, project_layers
from xyframe.scales import LinearScale, LogScale, build_screen_scales

__all__ = [
    "AxisGeometry",
    "AxisSpec",
    "DEFAULT_FRAME_CONFIG",
    "ExtentSettings",
    "FrameAccessors",
    "FrameConfig",
    "FrameConfigError",
    "FrameInputs",
    "FrameState",
    "LinearScale",
    "LogScale",
    "Margin",
    "ProjectedLayers",
    "ProjectedRecord",
    "ScreenProjector",
    "XYFrame",
    "build_axes",
    "build_screen_scales",
    "calculate_data_extent",
    "calculate_margin",
    "download_rows",
    "load_frame_config",
    "map_parents_to_points",
    "needs_recompute",
    "project_layers",
    "recompute",
    "resolve_accessor",
    "resolve_extent",
    "resolve_frame_accessors",
]
