from __future__ import annotations

import unittest

from grapher_plot.stacking import StackedPoint, StackedSeries, stack_series, with_missing_values_as_zeroes


def _series(name: str, values: dict[str, float]) -> StackedSeries:
    return StackedSeries(
        series_name=name,
        color=(0, 0, 0, 255),
        points=tuple(StackedPoint(position=p, time=2020, value=v) for p, v in values.items()),
    )


class StackSeriesTests(unittest.TestCase):
    def test_offsets_accumulate_per_position(self) -> None:
        stacked = stack_series([_series("a", {"X": 1.0, "Y": 2.0}), _series("b", {"Y": 3.0}), _series("c", {"X": 4.0, "Y": 5.0})])
        self.assertEqual([p.value_offset for p in stacked[0].points], [0.0, 0.0])
        self.assertEqual(stacked[1].point_for("Y").value_offset, 2.0)
        self.assertEqual(stacked[2].point_for("X").value_offset, 1.0)
        self.assertEqual(stacked[2].point_for("Y").value_offset, 5.0)
        self.assertEqual(stacked[2].point_for("Y").top, 10.0)
        self.assertIsNone(stacked[1].point_for("X"))

    def test_input_is_not_modified(self) -> None:
        original = [_series("a", {"X": 1.0}), _series("b", {"X": 2.0})]
        stack_series(original)
        self.assertEqual(original[1].points[0].value_offset, 0.0)

    def test_empty(self) -> None:
        self.assertEqual(stack_series([]), [])


class MissingValuesAsZeroesTests(unittest.TestCase):
    def test_adds_fake_zero_points(self) -> None:
        filled = with_missing_values_as_zeroes([_series("a", {"X": 1.0}), _series("b", {"Y": 2.0})])
        self.assertEqual([p.position for p in filled[0].points], ["X", "Y"])
        fake = filled[0].point_for("Y")
        self.assertEqual((fake.value, fake.fake), (0.0, True))
        self.assertFalse(filled[1].point_for("Y").fake)

    def test_uniform_spacing_sorts_positions(self) -> None:
        filled = with_missing_values_as_zeroes([_series("a", {"b": 1.0, "a": 1.0})], enforce_uniform_spacing=True)
        self.assertEqual([p.position for p in filled[0].points], ["a", "b"])

    def test_fake_points_stack_without_changing_tops(self) -> None:
        stacked = stack_series(with_missing_values_as_zeroes([_series("a", {"X": 1.0}), _series("b", {"Y": 2.0, "X": 3.0})]))
        self.assertEqual(stacked[1].point_for("X").top, 4.0)
        self.assertEqual(stacked[1].point_for("Y").top, 2.0)


if __name__ == "__main__":
    unittest.main()
