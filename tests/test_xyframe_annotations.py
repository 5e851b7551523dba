from __future__ import annotations

import unittest
from unittest import mock

from xyframe.annotations import (
    AnnotationResolver,
    BoundsRect,
    Callout,
    CalloutAnnotation,
    CustomAnnotation,
    EncloseCircle,
    EncloseRect,
    HtmlTooltip,
    PointCluster,
    PointMarker,
    Polygon,
    Polyline,
    ReferenceLine,
    TooltipContent,
    XYAnnotation,
    bounding_rect,
    enclosing_circle,
    parse_annotation,
)
import xyframe.annotations.resolver as resolver_module
from xyframe.frame import FrameInputs, recompute


def _state(**overrides):
    inputs = FrameInputs(
        points=[{"x": 0, "y": 0}, {"x": 10, "y": 10}],
        size=(200, 100),
        margin=0,
        **overrides,
    )
    return recompute(inputs)


class XYFrameEncloseTests(unittest.TestCase):
    def test_enclosing_circle(self) -> None:
        cx, cy, r = enclosing_circle([(0, 0), (4, 0), (2, 1)])
        self.assertAlmostEqual(cx, 2.0)
        self.assertAlmostEqual(cy, 0.0)
        self.assertAlmostEqual(r, 2.0)
        cx, cy, r = enclosing_circle([(0, 0), (2, 0), (1, 3)])
        for x, y in [(0, 0), (2, 0), (1, 3)]:
            self.assertLessEqual(((x - cx) ** 2 + (y - cy) ** 2) ** 0.5, r + 1e-9)
        self.assertEqual(enclosing_circle([(3, 4)]), (3.0, 4.0, 0.0))
        self.assertIsNone(enclosing_circle([]))

    def test_collinear_points_use_widest_pair(self) -> None:
        cx, cy, r = enclosing_circle([(0, 0), (1, 0), (3, 0), (2, 0)])
        self.assertAlmostEqual(cx, 1.5)
        self.assertAlmostEqual(r, 1.5)

    def test_bounding_rect(self) -> None:
        self.assertEqual(bounding_rect([(1, 2), (5, 8)], 1), (0.0, 1.0, 6.0, 8.0))
        self.assertIsNone(bounding_rect([]))


class XYFrameAnnotationParseTests(unittest.TestCase):
    def test_unknown_and_missing_types_become_custom(self) -> None:
        self.assertEqual(parse_annotation({"type": "sparkle"}).kind, "sparkle")
        self.assertIsNone(parse_annotation({"label": "no type"}).kind)
        self.assertIsInstance(parse_annotation({"type": 7}), CustomAnnotation)

    def test_callable_type_is_a_callout(self) -> None:
        marker = lambda: None
        parsed = parse_annotation({"type": marker, "x": 1, "dx": "4"})
        self.assertIsInstance(parsed, CalloutAnnotation)
        self.assertIs(parsed.callout_type, marker)
        self.assertEqual(parsed.dx, 4.0)

    def test_shape_without_coordinates_becomes_custom(self) -> None:
        with self.assertLogs("xyframe.annotations.descriptors", level="WARNING"):
            parsed = parse_annotation({"type": "enclose"})
        self.assertEqual(parsed, CustomAnnotation(kind="enclose", datum={"type": "enclose"}))
        self.assertEqual(parse_annotation({"type": "line", "coordinates": "ab"}).kind, "line")
        self.assertEqual(parse_annotation({"type": "bounds", "bounds": []}).kind, "bounds")

    def test_non_mapping_descriptor_is_dropped(self) -> None:
        with self.assertLogs("xyframe.annotations.descriptors", level="WARNING"):
            self.assertIsNone(parse_annotation("xy"))

    def test_variants_pass_through(self) -> None:
        annotation = XYAnnotation(datum={"x": 1, "y": 1})
        self.assertIs(parse_annotation(annotation), annotation)


class XYFrameAnnotationResolverTests(unittest.TestCase):
    def test_xy_marker(self) -> None:
        marker = AnnotationResolver(_state()).resolve({"type": "xy", "x": 5, "y": 5, "label": "mid"})
        self.assertEqual(marker.__class__, PointMarker)
        self.assertEqual((marker.x, marker.y, marker.radius, marker.label), (100.0, 50.0, 5.0, "mid"))

    def test_invalid_point_never_reaches_any_rule(self) -> None:
        rule = mock.Mock(return_value="custom")
        resolver = AnnotationResolver(_state(), svg_rules=rule)
        self.assertEqual(resolver.resolve_all([{"type": "xy", "x": None, "y": 5}, {"type": "xy", "x": 1}]), [])
        rule.assert_not_called()

    def test_custom_rule_wins_and_builtin_never_runs(self) -> None:
        builtin = mock.Mock(return_value="builtin")
        rule = mock.Mock(return_value="custom")
        with mock.patch.dict(resolver_module._SVG_BUILDERS, {XYAnnotation: builtin}):
            result = AnnotationResolver(_state(), svg_rules=rule).resolve({"type": "xy", "x": 5, "y": 5})
        self.assertEqual(result, "custom")
        rule.assert_called_once()
        builtin.assert_not_called()
        context = rule.call_args.args[0]
        self.assertEqual(context.screen_coordinates, (100.0, 50.0))
        self.assertEqual(context.index, 0)

    def test_custom_rule_returning_none_falls_back(self) -> None:
        rule = mock.Mock(return_value=None)
        result = AnnotationResolver(_state(), svg_rules=rule).resolve({"type": "xy", "x": 5, "y": 5})
        self.assertIsInstance(result, PointMarker)
        rule.assert_called_once()

    def test_rules_from_frame_inputs(self) -> None:
        state = _state(svg_annotation_rules=lambda context: "from-inputs")
        self.assertEqual(AnnotationResolver(state).resolve({"type": "xy", "x": 5, "y": 5}), "from-inputs")

    def test_custom_type_only_resolves_through_rule(self) -> None:
        resolver = AnnotationResolver(_state())
        self.assertIsNone(resolver.resolve({"type": "sparkle", "x": 5, "y": 5}))
        ruled = AnnotationResolver(
            _state(),
            svg_rules=lambda c: "sparkle" if isinstance(c.annotation, CustomAnnotation) else None,
        )
        self.assertEqual(ruled.resolve({"type": "sparkle", "x": 5, "y": 5}), "sparkle")

    def test_rule_overrides_shape_descriptor_without_shape(self) -> None:
        rule = mock.Mock(return_value="mine")
        resolver = AnnotationResolver(_state(), svg_rules=rule, html_rules=rule)
        self.assertEqual(resolver.resolve({"type": "line", "x": 5, "y": 5}), "mine")
        context = rule.call_args.args[0]
        self.assertEqual(context.annotation.kind, "line")
        self.assertEqual(context.screen_coordinates, (100.0, 50.0))
        self.assertEqual(resolver.resolve({"type": "bounds"}), "mine")
        self.assertEqual(resolver.resolve_html({"type": "area"}), "mine")
        self.assertEqual(rule.call_count, 3)
        self.assertIsNone(AnnotationResolver(_state()).resolve({"type": "line", "x": 5, "y": 5}))

    def test_callout(self) -> None:
        callout = AnnotationResolver(_state()).resolve(
            {"type": "react-annotation", "x": 10, "y": 0, "dx": 5, "dy": -5, "note": {"label": "hi"}}
        )
        self.assertIsInstance(callout, Callout)
        self.assertEqual((callout.x, callout.y, callout.dx, callout.dy), (200.0, 100.0, 5.0, -5.0))
        self.assertEqual(callout.note, {"label": "hi"})

    def test_enclose_circle_and_rect(self) -> None:
        resolver = AnnotationResolver(_state())
        circle = resolver.resolve({"type": "enclose", "coordinates": [{"x": 0, "y": 0}, {"x": 10, "y": 0}]})
        self.assertIsInstance(circle, EncloseCircle)
        self.assertAlmostEqual(circle.cx, 100.0)
        self.assertAlmostEqual(circle.cy, 100.0)
        self.assertAlmostEqual(circle.r, 102.0)
        rect = resolver.resolve(
            {"type": "enclose-rect", "padding": 3, "coordinates": [{"x": 0, "y": 0}, {"x": 10, "y": 10}]}
        )
        self.assertEqual(rect, EncloseRect(x=-3.0, y=-3.0, width=206.0, height=106.0))

    def test_reference_lines(self) -> None:
        resolver = AnnotationResolver(_state())
        x_line = resolver.resolve({"type": "x", "x": 5, "label": "now"})
        self.assertIsInstance(x_line, ReferenceLine)
        self.assertEqual((x_line.x1, x_line.y1, x_line.x2, x_line.y2), (100.0, 0.0, 100.0, 100.0))
        self.assertEqual(x_line.label, "now")
        y_line = resolver.resolve({"type": "y", "y": 5})
        self.assertEqual((y_line.x1, y_line.y1, y_line.x2, y_line.y2), (0.0, 50.0, 200.0, 50.0))
        self.assertIsNone(resolver.resolve({"type": "x"}))

    def test_bounds(self) -> None:
        resolver = AnnotationResolver(_state())
        rect = resolver.resolve({"type": "bounds", "bounds": [{"x": 2, "y": 2}, {"x": 4, "y": 8}]})
        self.assertEqual(rect, BoundsRect(x=40.0, y=20.0, width=40.0, height=60.0))
        open_ended = resolver.resolve({"type": "bounds", "bounds": [{"x": 5}]})
        self.assertEqual(open_ended, BoundsRect(x=100.0, y=0.0, width=100.0, height=100.0))

    def test_line_and_area_shapes(self) -> None:
        resolver = AnnotationResolver(_state())
        line = resolver.resolve({"type": "line", "coordinates": [{"x": 0, "y": 0}, {"x": 10, "y": 10}]})
        self.assertEqual(line, Polyline(points=((0.0, 100.0), (200.0, 0.0))))
        self.assertIsNone(resolver.resolve({"type": "line", "coordinates": [{"x": 0, "y": 0}, {"x": None, "y": 1}]}))
        area = resolver.resolve(
            {"type": "area", "coordinates": [{"x": 0, "y": 0}, {"x": 10, "y": 0}, {"x": 10, "y": 10}]}
        )
        self.assertIsInstance(area, Polygon)
        self.assertTrue(area.closed)
        self.assertEqual(len(area.points), 3)

    def test_point_clusters(self) -> None:
        resolver = AnnotationResolver(_state(point_style={"fill": "red"}))
        cluster = resolver.resolve({"type": "horizontal-points", "y": 10})
        self.assertIsInstance(cluster, PointCluster)
        self.assertEqual(cluster.value, 10.0)
        self.assertEqual([(p.x, p.y, p.style) for p in cluster.points], [(200.0, 0.0, {"fill": "red"})])
        vertical = resolver.resolve({"type": "vertical-points", "x": 0, "r": 2})
        self.assertEqual([(p.x, p.y, p.radius) for p in vertical.points], [(0.0, 100.0, 2.0)])
        self.assertIsNone(resolver.resolve({"type": "vertical-points", "x": 3}))

    def test_point_clusters_keep_lines_sharing_an_id(self) -> None:
        lines = [
            {"id": "a", "coordinates": [{"x": 0, "y": 5}]},
            {"id": "a", "coordinates": [{"x": 10, "y": 5}]},
        ]
        for show_line_points in (False, True):
            state = _state(lines=lines, show_line_points=show_line_points)
            cluster = AnnotationResolver(state).resolve({"type": "horizontal-points", "y": 5})
            self.assertEqual([(p.x, p.y) for p in cluster.points], [(0.0, 50.0), (200.0, 50.0)])

    def test_resolve_all_skips_failures_and_keeps_order(self) -> None:
        resolver = AnnotationResolver(_state())
        out = resolver.resolve_all(
            [{"type": "xy", "x": 0, "y": 0}, "garbage", {"type": "enclose"}, {"type": "y", "y": 1}]
        )
        self.assertEqual([type(g) for g in out], [PointMarker, ReferenceLine])

    def test_resolution_does_not_touch_state(self) -> None:
        state = _state(annotations=({"type": "xy", "x": 1, "y": 1},))
        layers_before = state.layers
        annotations_before = state.annotations
        AnnotationResolver(state).resolve_all()
        AnnotationResolver(state).resolve_html_all()
        self.assertIs(state.layers, layers_before)
        self.assertIs(state.annotations, annotations_before)


class XYFrameHtmlAnnotationTests(unittest.TestCase):
    def test_frame_hover_tooltip(self) -> None:
        tooltip = AnnotationResolver(_state()).resolve_html({"type": "frame-hover", "x": 5, "y": 2.5})
        self.assertEqual(
            tooltip,
            HtmlTooltip(
                x=100.0,
                y=75.0,
                content=TooltipContent(lines=("5", "2.5")),
                size=(200.0, 100.0),
                datum={"type": "frame-hover", "x": 5, "y": 2.5},
            ),
        )
        self.assertEqual(tooltip.class_name, "annotation annotation-or-tooltip")

    def test_percent_line_is_rounded_to_one_decimal(self) -> None:
        tooltip = AnnotationResolver(_state()).resolve_html(
            {"type": "frame-hover", "x": 5, "y": 5, "percent": 0.12345}
        )
        self.assertEqual(tooltip.content.lines, ("5", "5", "12.3%"))
        self.assertEqual(resolver_module.percent_text(0.5), "50%")
        self.assertEqual(resolver_module.percent_text(0.375), "37.5%")

    def test_tooltip_content_override(self) -> None:
        resolver = AnnotationResolver(_state(), tooltip_content=lambda d: f"value {d['y']}")
        self.assertEqual(resolver.resolve_html({"type": "frame-hover", "x": 1, "y": 4}).content, "value 4")

    def test_only_frame_hover_has_builtin_html(self) -> None:
        resolver = AnnotationResolver(_state())
        self.assertIsNone(resolver.resolve_html({"type": "xy", "x": 1, "y": 1}))
        html_rule = mock.Mock(return_value="<b>hi</b>")
        ruled = AnnotationResolver(_state(), html_rules=html_rule)
        self.assertEqual(ruled.resolve_html_all([{"type": "xy", "x": 1, "y": 1}]), ["<b>hi</b>"])


if __name__ == "__main__":
    unittest.main()
