from xyframe.annotations.descriptors import (
    ANNOTATION_TYPES,
    AreaAnnotation,
    BoundsAnnotation,
    CalloutAnnotation,
    CustomAnnotation,
    EncloseAnnotation,
    HorizontalPointsAnnotation,
    LineAnnotation,
    VerticalPointsAnnotation,
    XAnnotation,
    XYAnnotation,
    YAnnotation,
    parse_annotation,
)
from xyframe.annotations.enclose import bounding_rect, enclosing_circle
from xyframe.annotations.geometry import (
    BoundsRect,
    Callout,
    ClusterPoint,
    EncloseCircle,
    EncloseRect,
    Geometry,
    HtmlTooltip,
    PointCluster,
    PointMarker,
    Polygon,
    Polyline,
    ReferenceLine,
    TooltipContent,
)
from xyframe.annotations.resolver import AnnotationContext, AnnotationResolver

__all__ = [
    "ANNOTATION_TYPES",
    "AnnotationContext",
    "AnnotationResolver",
    "AreaAnnotation",
    "BoundsAnnotation",
    "BoundsRect",
    "Callout",
    "CalloutAnnotation",
    "ClusterPoint",
    "CustomAnnotation",
    "EncloseAnnotation",
    "EncloseCircle",
    "EncloseRect",
    "Geometry",
    "HorizontalPointsAnnotation",
    "HtmlTooltip",
    "LineAnnotation",
    "PointCluster",
    "PointMarker",
    "Polygon",
    "Polyline",
    "ReferenceLine",
    "TooltipContent",
    "VerticalPointsAnnotation",
    "XAnnotation",
    "XYAnnotation",
    "YAnnotation",
    "bounding_rect",
    "enclosing_circle",
    "parse_annotation",
]
