from __future__ import annotations

import unittest
from unittest import mock

from xyframe.axis import AxisSpec, Segment, as_axis_spec, build_axes
from xyframe.errors import FrameConfigError
from xyframe.layout import Margin
from xyframe.scales import LinearScale, LogScale


def _build(specs, *, x_scale=None, y_scale=None, full_dataset=(), margin=None):
    return build_axes(
        specs,
        x_scale or LinearScale((0, 10), (0, 200)),
        y_scale or LinearScale((0, 10), (100, 0)),
        full_dataset=full_dataset,
        size=(200, 100),
        adjusted_size=(200, 100),
        margin=margin or Margin(),
    )


class XYFrameAxisTests(unittest.TestCase):
    def test_first_axis_per_orient_owns_the_baseline(self) -> None:
        axes, _ = _build([AxisSpec(orient="bottom"), AxisSpec(orient="bottom"), AxisSpec(orient="left")])
        self.assertEqual(axes[0].baseline, Segment(0.0, 100.0, 200.0, 100.0))
        self.assertIsNone(axes[1].baseline)
        self.assertEqual(axes[2].baseline, Segment(0.0, 0.0, 0.0, 100.0))

    def test_sibling_can_force_or_first_can_suppress_baseline(self) -> None:
        axes, _ = _build([AxisSpec(orient="bottom"), AxisSpec(orient="bottom", baseline=True)])
        self.assertIsNotNone(axes[0].baseline)
        self.assertIsNotNone(axes[1].baseline)
        axes, _ = _build([AxisSpec(orient="top", baseline=False), AxisSpec(orient="top")])
        self.assertIsNone(axes[0].baseline)
        self.assertIsNone(axes[1].baseline)

    def test_explicit_tick_values_become_gridlines(self) -> None:
        axes, tick_lines = _build([AxisSpec(orient="bottom", tick_values=[0, 5, 10])])
        axis = axes[0]
        self.assertEqual([t.position for t in axis.ticks], [0.0, 100.0, 200.0])
        self.assertEqual([t.label for t in axis.ticks], ["0", "5", "10"])
        self.assertEqual(axis.ticks[1].line, Segment(100.0, 100.0, 100.0, 0.0))
        self.assertEqual((axis.ticks[1].label_x, axis.ticks[1].label_y), (100.0, 105.0))
        self.assertEqual(axis.text_anchor, "middle")
        self.assertEqual(axis.class_name, "axis x bottom")
        self.assertEqual(axis.key, "axis-0")
        self.assertEqual(tick_lines, (axis.tick_lines,))

    def test_tick_generator_receives_dataset_size_and_scale(self) -> None:
        generator = mock.Mock(return_value=[0, 10])
        y_scale = LinearScale((0, 10), (100, 0))
        axes, _ = _build([AxisSpec(orient="left", tick_values=generator)], y_scale=y_scale, full_dataset=("d",))
        generator.assert_called_once_with(("d",), (200, 100), y_scale)
        self.assertEqual([t.position for t in axes[0].ticks], [100.0, 0.0])
        self.assertEqual(axes[0].ticks[0].line, Segment(0.0, 100.0, 200.0, 100.0))
        self.assertEqual(axes[0].text_anchor, "end")

    def test_scale_ticks_are_used_by_default(self) -> None:
        axes, _ = _build([AxisSpec(orient="bottom")])
        values = [t.value for t in axes[0].ticks]
        self.assertEqual(values[0], 0.0)
        self.assertEqual(values[-1], 10.0)
        self.assertEqual(axes[0].ticks[0].label, "0")

    def test_explicit_tick_count(self) -> None:
        axes, _ = _build([AxisSpec(orient="bottom", ticks=2)])
        self.assertEqual([t.value for t in axes[0].ticks], [0.0, 10.0])

    def test_unmappable_ticks_are_dropped(self) -> None:
        axes, _ = _build(
            [AxisSpec(orient="bottom", tick_values=[0, 1, 10])],
            x_scale=LogScale((1, 10), (0, 200)),
        )
        self.assertEqual([t.value for t in axes[0].ticks], [1, 10])

    def test_footer_ticks_point_outward(self) -> None:
        axes, _ = _build([AxisSpec(orient="bottom", footer=True, tick_values=[5])])
        tick = axes[0].ticks[0]
        self.assertEqual(tick.line, Segment(100.0, 100.0, 100.0, 110.0))
        self.assertEqual(tick.label_y, 115.0)

    def test_tick_format_and_axis_label_placement(self) -> None:
        spec = AxisSpec(orient="left", tick_values=[2], tick_format=lambda v: f"${v}", label="Price")
        axes, _ = _build([spec], margin=Margin(left=60))
        axis = axes[0]
        self.assertEqual(axis.ticks[0].label, "$2")
        self.assertEqual((axis.label_x, axis.label_y, axis.label_rotate), (-55.0, 50.0, -90.0))

    def test_axis_spec_from_camel_case_mapping(self) -> None:
        spec = as_axis_spec({"orient": "bottom", "tickValues": [1], "tickSize": 3, "className": "money", "baseline": 0})
        self.assertEqual(spec.tick_values, [1])
        self.assertEqual(spec.tick_size, 3)
        self.assertFalse(spec.baseline)
        axes, _ = _build([spec])
        self.assertEqual(axes[0].class_name, "money axis x bottom")
        self.assertEqual(axes[0].ticks[0].line, Segment(20.0, 100.0, 20.0, 97.0))

    def test_invalid_axis_specs_raise(self) -> None:
        with self.assertRaises(FrameConfigError):
            AxisSpec(orient="middle")  # type: ignore[arg-type]
        with self.assertRaises(FrameConfigError):
            AxisSpec(ticks=0)
        with self.assertRaises(FrameConfigError):
            as_axis_spec("left")  # type: ignore[arg-type]


if __name__ == "__main__":
    unittest.main()
