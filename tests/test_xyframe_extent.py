from __future__ import annotations

import unittest
from unittest import mock

from xyframe.accessors import resolve_frame_accessors
from xyframe.errors import FrameConfigError
from xyframe.extent import (
    ExtentSettings,
    calculate_data_extent,
    normalize_extent_settings,
    notify_extent_change,
    resolve_extent,
)
from xyframe.projection import project_layers


def _layers(points=None, lines=None, areas=None, line_type="line", **accessors):
    return project_layers(
        lines=lines,
        points=points,
        areas=areas,
        accessors=resolve_frame_accessors(**accessors),
        line_type=line_type,
    )


class XYFrameExtentTests(unittest.TestCase):
    def test_extent_is_inferred_from_accessor(self) -> None:
        records = [{"v": 1}, {"v": 5}, {"v": 3}]
        layers = _layers(points=records, x=lambda r: r["v"], y=lambda r: r["v"])
        x_extent, y_extent = calculate_data_extent(layers)
        self.assertEqual(x_extent, (1.0, 5.0))
        self.assertEqual(y_extent, (1.0, 5.0))

    def test_missing_and_non_numeric_values_are_ignored(self) -> None:
        records = [{"x": 2, "y": None}, {"x": "abc", "y": 4}, {"x": 6, "y": float("inf")}, {"x": 3, "y": 1}]
        x_extent, y_extent = calculate_data_extent(_layers(points=records))
        self.assertEqual(x_extent, (2.0, 6.0))
        self.assertEqual(y_extent, (1.0, 4.0))

    def test_empty_scan_uses_fallback(self) -> None:
        x_extent, y_extent = calculate_data_extent(_layers(points=[]), fallback=(0.0, 1.0))
        self.assertEqual(x_extent, (0.0, 1.0))
        self.assertEqual(y_extent, (0.0, 1.0))

    def test_extent_covers_line_members_and_area_vertices(self) -> None:
        lines = [{"id": "a", "coordinates": [{"x": -4, "y": 2}, {"x": 1, "y": 3}]}]
        areas = [{"id": "z", "coordinates": [{"x": 0, "y": 0}, {"x": 9, "y": 11}, {"x": 4, "y": 5}]}]
        x_extent, y_extent = calculate_data_extent(_layers(lines=lines, areas=areas))
        self.assertEqual(x_extent, (-4.0, 9.0))
        self.assertEqual(y_extent, (0.0, 11.0))

    def test_stacked_bands_contribute_their_span(self) -> None:
        lines = [
            {"id": "a", "coordinates": [{"x": 0, "y": 2}]},
            {"id": "b", "coordinates": [{"x": 0, "y": 3}]},
        ]
        _, y_extent = calculate_data_extent(_layers(lines=lines, line_type="stackedarea"))
        self.assertEqual(y_extent, (0.0, 5.0))

    def test_partial_extent_fills_missing_side(self) -> None:
        self.assertEqual(resolve_extent(ExtentSettings(extent=(None, 10.0)), (1.0, 5.0)), (1.0, 10.0))
        self.assertEqual(resolve_extent(ExtentSettings(extent=(-2.0, None)), (1.0, 5.0)), (-2.0, 5.0))
        self.assertEqual(resolve_extent(ExtentSettings(), (1.0, 5.0), invert=True), (5.0, 1.0))

    def test_normalize_extent_settings_forms(self) -> None:
        callback = mock.Mock()
        self.assertEqual(normalize_extent_settings(None), ExtentSettings())
        self.assertEqual(normalize_extent_settings([0, 10]).extent, (0.0, 10.0))
        settings = normalize_extent_settings({"extent": [0, 10], "onChange": callback})
        self.assertEqual(settings.extent, (0.0, 10.0))
        self.assertIs(settings.on_change, callback)
        self.assertIs(normalize_extent_settings({"on_change": callback}).on_change, callback)

    def test_normalize_extent_settings_rejects_bad_input(self) -> None:
        with self.assertRaises(FrameConfigError):
            normalize_extent_settings("ab")
        with self.assertRaises(FrameConfigError):
            normalize_extent_settings([1, 2, 3])
        with self.assertRaises(FrameConfigError):
            normalize_extent_settings(["a", 2])
        with self.assertRaises(FrameConfigError):
            normalize_extent_settings({"extent": [0, 1], "onChange": "nope"})

    def test_on_change_fires_only_when_calculated_extent_moves(self) -> None:
        callback = mock.Mock()
        settings = ExtentSettings(on_change=callback)
        self.assertTrue(notify_extent_change(settings, None, (0.0, 12.0)))
        self.assertFalse(notify_extent_change(settings, (0.0, 12.0), (0.0, 12.0)))
        self.assertTrue(notify_extent_change(settings, (0.0, 12.0), (0.0, 13.0)))
        self.assertEqual(callback.call_args_list, [mock.call((0.0, 12.0)), mock.call((0.0, 13.0))])
        self.assertFalse(notify_extent_change(ExtentSettings(), None, (0.0, 1.0)))


if __name__ == "__main__":
    unittest.main()
