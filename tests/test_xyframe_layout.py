from __future__ import annotations

import unittest

from xyframe.axis import AxisSpec
from xyframe.errors import FrameConfigError
from xyframe.layout import (
    Margin,
    adjusted_position_size,
    calculate_margin,
    generate_frame_title,
    matte_path,
)


class XYFrameLayoutTests(unittest.TestCase):
    def test_number_margin_applies_to_every_side(self) -> None:
        self.assertEqual(calculate_margin(12), Margin(12.0, 12.0, 12.0, 12.0))

    def test_mapping_margin_merges_over_zero(self) -> None:
        self.assertEqual(calculate_margin({"left": 30}), Margin(left=30.0))
        with self.assertRaises(FrameConfigError):
            calculate_margin({"middle": 3})

    def test_callable_margin_sees_axes_and_title(self) -> None:
        seen = {}

        def margin_fn(context):
            seen.update(context)
            return {"top": 5}

        self.assertEqual(calculate_margin(margin_fn, title="T", size=(100, 100)), Margin(top=5.0))
        self.assertEqual(seen["title"], "T")
        self.assertEqual(seen["axes"], ())

    def test_automatic_margin_from_axes_and_title(self) -> None:
        axes = [AxisSpec(orient="left", label="Y"), AxisSpec(orient="bottom")]
        self.assertEqual(
            calculate_margin(None, axes=axes, title="T"),
            Margin(top=40.0, bottom=50.0, left=60.0, right=0.0),
        )
        self.assertEqual(
            calculate_margin(None, axes=[{"orient": "top"}], title={"text": "T", "orient": "top"}),
            Margin(top=90.0),
        )

    def test_negative_or_bad_margin_raises(self) -> None:
        with self.assertRaises(FrameConfigError):
            calculate_margin(-1)
        with self.assertRaises(FrameConfigError):
            calculate_margin(True)
        with self.assertRaises(FrameConfigError):
            calculate_margin("wide")

    def test_adjusted_size_subtracts_margin(self) -> None:
        position, size = adjusted_position_size((500, 400), (3, 4), Margin(10, 20, 30, 40))
        self.assertEqual(position, (3.0, 4.0))
        self.assertEqual(size, (430.0, 370.0))
        with self.assertRaises(FrameConfigError):
            adjusted_position_size((50, 50), (0, 0), Margin(left=30, right=30))
        with self.assertRaises(FrameConfigError):
            adjusted_position_size((0, 50), (0, 0), Margin())

    def test_title_positions(self) -> None:
        top = generate_frame_title("Sales", (500, 400), Margin(top=40))
        self.assertEqual((top.x, top.y, top.rotate), (250.0, 20.0, 0.0))
        left = generate_frame_title({"text": "Sales", "orient": "left"}, (500, 400), Margin(left=60))
        self.assertEqual((left.x, left.y, left.rotate), (30.0, 200.0, -90.0))
        right = generate_frame_title({"text": "Sales", "orient": "right"}, (500, 400), Margin(right=40))
        self.assertEqual((right.x, right.rotate), (480.0, 90.0))
        bottom = generate_frame_title({"text": "Sales", "orient": "bottom"}, (500, 400), Margin(bottom=40))
        self.assertEqual(bottom.y, 380.0)
        self.assertIsNone(generate_frame_title(None, (500, 400), Margin()))
        with self.assertRaises(FrameConfigError):
            generate_frame_title({"text": "x", "orient": "middle"}, (500, 400), Margin())

    def test_matte_path_cuts_out_the_plot_area(self) -> None:
        matte = matte_path(Margin(10, 10, 10, 10), (100, 100))
        self.assertEqual(matte.outer, ((0.0, 0.0), (100.0, 0.0), (100.0, 100.0), (0.0, 100.0)))
        self.assertEqual(matte.inner, ((5.0, 5.0), (95.0, 5.0), (95.0, 95.0), (5.0, 95.0)))

    def test_margin_side_lookup(self) -> None:
        self.assertEqual(Margin(left=7).side("left"), 7.0)
        with self.assertRaises(FrameConfigError):
            Margin().side("center")


if __name__ == "__main__":
    unittest.main()
