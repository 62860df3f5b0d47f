from __future__ import annotations

import unittest

import numpy as np

from grapher_plot.items import bar_width, build_items, first_placeholder_index, place_items, sort_items
from grapher_plot.scales import LinearAxis
from grapher_plot.series import BarShape, EntityColor, PlacedItem, SimplePoint, SimpleSeries
from grapher_plot.stacking import StackedPoint, StackedSeries, stack_series


RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)


def _x_series(values: dict[str, float]) -> SimpleSeries:
    return SimpleSeries(
        series_name="population",
        points=tuple(SimplePoint(value=v, entity=e, time=2020) for e, v in values.items()),
    )


def _series(name: str, color, values: dict[str, float]) -> StackedSeries:
    return StackedSeries(
        series_name=name,
        color=color,
        points=tuple(StackedPoint(position=e, time=2020, value=v) for e, v in values.items()),
    )


class BarStackBuilderTests(unittest.TestCase):
    def test_items_follow_entity_order_and_series_order(self) -> None:
        stacked = stack_series([_series("gdp", RED, {"A": 5.0, "B": 2.0}), _series("co2", BLUE, {"A": 1.0})])
        items = build_items(["B", "A"], _x_series({"A": 10.0, "B": 20.0}), stacked)

        self.assertEqual([item.entity_name for item in items], ["B", "A"])
        self.assertEqual([bar.series_name for bar in items[1].bars], ["gdp", "co2"])
        self.assertEqual(items[1].bars[1].y_point.value_offset, 5.0)
        # A series without a point for B contributes no bar, not a zero bar.
        self.assertEqual([bar.series_name for bar in items[0].bars], ["gdp"])
        self.assertEqual(items[0].bars[0].color, RED)

    def test_entities_without_x_value_are_excluded(self) -> None:
        stacked = stack_series([_series("gdp", RED, {"A": 5.0, "Q": 3.0})])
        items = build_items(["A", "Q"], _x_series({"A": 10.0}), stacked)
        self.assertEqual([item.entity_name for item in items], ["A"])

    def test_entity_without_bars_becomes_placeholder(self) -> None:
        items = build_items(["A"], _x_series({"A": 10.0}), [])
        self.assertTrue(items[0].is_placeholder)
        (placeholder,) = items[0].bars_or_placeholder()
        self.assertIs(placeholder.kind, BarShape.PLACEHOLDER)
        self.assertEqual(placeholder.series_name, "A")
        self.assertEqual(items[0].top_of_stack, float("-inf"))

    def test_entity_colors_are_attached(self) -> None:
        colors = {"A": EntityColor(color=BLUE, color_domain_value="Europe")}
        items = build_items(["A", "B"], _x_series({"A": 1.0, "B": 1.0}), [], colors)
        self.assertEqual(items[0].entity_color, colors["A"])
        self.assertIsNone(items[1].entity_color)

    def test_sorted_descending_by_top_of_stack(self) -> None:
        stacked = stack_series(
            [
                _series("gdp", RED, {"A": 1.0, "B": 4.0, "C": 2.0}),
                _series("co2", BLUE, {"A": 5.0, "C": 1.0}),
            ]
        )
        items = build_items(["A", "B", "C", "D"], _x_series({"A": 1.0, "B": 1.0, "C": 1.0, "D": 1.0}), stacked)
        ordered = sort_items(items)
        self.assertEqual([item.entity_name for item in ordered], ["A", "B", "C", "D"])

    def test_ties_come_out_in_reverse_encounter_order(self) -> None:
        stacked = stack_series([_series("gdp", RED, {"A": 3.0, "B": 3.0})])
        items = build_items(["A", "B", "X", "Y"], _x_series({"A": 1.0, "B": 1.0, "X": 1.0, "Y": 1.0}), stacked)
        ordered = sort_items(items)
        self.assertEqual([item.entity_name for item in ordered], ["B", "A", "Y", "X"])

    def test_only_one_entity_with_data_puts_placeholders_last(self) -> None:
        stacked = stack_series([_series("gdp", RED, {"Y": 3.0})])
        items = build_items(["X", "Y", "Z"], _x_series({"X": 1.0, "Y": 1.0, "Z": 1.0}), stacked)
        ordered = sort_items(items)
        self.assertEqual(ordered[0].entity_name, "Y")
        self.assertEqual({item.entity_name for item in ordered[1:]}, {"X", "Z"})

        axis = LinearAxis(domain=(0.0, 3.0), range=(0.0, 300.0))
        placed = place_items(ordered, 1.0, axis)
        with self.assertNoLogs("grapher_plot.items", level="ERROR"):
            self.assertEqual(first_placeholder_index(placed), 1)

        unsorted = place_items(items, 1.0, axis)
        with self.assertLogs("grapher_plot.items", level="ERROR") as logs:
            self.assertEqual(first_placeholder_index(unsorted), 0)
        self.assertIn("Y", logs.output[0])

    def test_no_placeholders_has_no_no_data_range(self) -> None:
        stacked = stack_series([_series("gdp", RED, {"A": 3.0})])
        items = build_items(["A"], _x_series({"A": 1.0}), stacked)
        axis = LinearAxis(domain=(0.0, 1.0), range=(0.0, 10.0))
        self.assertIsNone(first_placeholder_index(place_items(items, 1.0, axis)))


class ItemPlacerTests(unittest.TestCase):
    def test_small_entities_get_one_pixel_and_the_rest_fills_the_axis(self) -> None:
        stacked = stack_series([_series("gdp", RED, {"A": 3.0, "B": 2.0, "C": 1.0})])
        items = sort_items(build_items(["A", "B", "C"], _x_series({"A": 1.0, "B": 1.0, "C": 98.0}), stacked))
        axis = LinearAxis(domain=(0.0, 100.0), range=(0.0, 10.0))
        placed = place_items(items, 80.0 / 98.0, axis)

        self.assertEqual([p.x_position for p in placed[:2]], [0.0, 1.0])
        self.assertEqual(placed[2].x_position, 2.0)
        self.assertEqual(bar_width(placed[0].item, 80.0 / 98.0, axis), 1.0)
        self.assertAlmostEqual(bar_width(placed[2].item, 80.0 / 98.0, axis), 8.0, places=9)

    def test_positions_are_monotonic_with_at_least_one_pixel_steps(self) -> None:
        rng = np.random.default_rng(3)
        values = {f"E{i}": float(v) for i, v in enumerate(rng.exponential(5.0, size=80))}
        tops = {e: float(v) for e, v in zip(values, rng.uniform(0, 10, size=80))}
        items = sort_items(build_items(list(values), _x_series(values), stack_series([_series("gdp", RED, tops)])))
        axis = LinearAxis(domain=(0.0, sum(values.values())), range=(50.0, 350.0))
        placed = place_items(items, 0.9, axis)
        for current, following in zip(placed, placed[1:]):
            self.assertGreaterEqual(following.x_position - current.x_position, 1.0)

    def test_positions_exclude_axis_offset(self) -> None:
        items = build_items(["A"], _x_series({"A": 1.0}), [])
        axis = LinearAxis(domain=(0.0, 1.0), range=(40.0, 140.0))
        placed = place_items(items, 1.0, axis)
        self.assertEqual(placed, [PlacedItem(item=items[0], x_position=0.0)])
        self.assertEqual(bar_width(items[0], 1.0, axis), 100.0)

    def test_no_items_places_nothing(self) -> None:
        axis = LinearAxis(domain=(0.0, 1.0), range=(0.0, 10.0))
        self.assertEqual(place_items([], 1.0, axis), [])
        self.assertIsNone(first_placeholder_index([]))


if __name__ == "__main__":
    unittest.main()
