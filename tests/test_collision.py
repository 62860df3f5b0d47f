from __future__ import annotations

import math
import unittest

import numpy as np

from grapher_plot.collision import (
    ConnectorLine,
    LabelWithPlacement,
    connector_lines,
    corrected_label_width,
    resolve_label_collisions,
)


def _label(key: str, preferred: float, corrected: float | None = None, *, selected: bool = False) -> LabelWithPlacement:
    return LabelWithPlacement(
        label_key=key,
        preferred_placement=preferred,
        corrected_placement=preferred if corrected is None else corrected,
        is_selected=selected,
    )


class CorrectedLabelWidthTests(unittest.TestCase):
    def test_tangent_takes_the_angle_value_unconverted(self) -> None:
        # tan(-45) on the raw value is -1.6197751905438615
        self.assertAlmostEqual(corrected_label_width(10.0, 50.0, -45.0), 26.197751905438615)
        self.assertAlmostEqual(corrected_label_width(10.0, 50.0, -45.0), 10.0 * (1.0 + abs(math.tan(-45.0))))

    def test_horizontal_labels_use_only_height(self) -> None:
        self.assertAlmostEqual(corrected_label_width(10.0, 50.0, 0.0), 10.0)

    def test_short_labels_are_capped_at_their_width(self) -> None:
        self.assertAlmostEqual(corrected_label_width(10.0, 12.0, -45.0), 22.0)

    def test_zero_height_falls_back_to_width(self) -> None:
        self.assertEqual(corrected_label_width(0.0, 50.0, -45.0), 50.0)


class ResolveLabelCollisionsTests(unittest.TestCase):
    def test_empty(self) -> None:
        self.assertEqual(resolve_label_collisions([], 20.0, 100.0), [])

    def test_pushes_overlapping_labels_right(self) -> None:
        labels = [_label("a", 0.0), _label("b", 5.0), _label("c", 10.0), _label("d", 100.0)]
        resolved = resolve_label_collisions(labels, 20.0, 200.0)
        self.assertEqual([label.corrected_placement for label in resolved], [0.0, 20.0, 40.0, 100.0])
        self.assertEqual([label.is_shifted for label in resolved], [False, True, True, False])

    def test_clamps_last_label_and_pulls_left(self) -> None:
        labels = [_label("c", 100.0), _label("a", 90.0), _label("b", 95.0)]
        resolved = resolve_label_collisions(labels, 20.0, 100.0)
        self.assertEqual([label.label_key for label in resolved], ["a", "b", "c"])
        self.assertEqual([label.corrected_placement for label in resolved], [60.0, 80.0, 100.0])

    def test_keeps_preferred_placement_and_selection(self) -> None:
        (resolved,) = resolve_label_collisions([_label("a", 12.0, 0.0, selected=True)], 20.0, 5.0)
        self.assertEqual(resolved.preferred_placement, 12.0)
        self.assertEqual(resolved.corrected_placement, 5.0)
        self.assertTrue(resolved.is_selected)

    def test_random_labels_do_not_overlap_and_resolution_is_stable(self) -> None:
        rng = np.random.default_rng(5)
        for _ in range(50):
            n = int(rng.integers(1, 40))
            width = float(rng.uniform(5.0, 30.0))
            labels = [_label(f"l{i}", float(x)) for i, x in enumerate(rng.uniform(0.0, 600.0, size=n))]
            resolved = resolve_label_collisions(labels, width, 600.0)
            placements = [label.corrected_placement for label in resolved]
            for left, right in zip(placements, placements[1:]):
                self.assertGreaterEqual(right - left, width - 1e-9)
            self.assertLessEqual(placements[-1], 600.0)

            again = resolve_label_collisions(
                [_label(label.label_key, label.corrected_placement) for label in resolved], width, 600.0
            )
            for first, second in zip(resolved, again):
                self.assertAlmostEqual(first.corrected_placement, second.corrected_placement, places=6)


class ConnectorLineTests(unittest.TestCase):
    def test_unshifted_label_gets_straight_line(self) -> None:
        (line,) = connector_lines([_label("a", 42.0)], 200.0)
        self.assertEqual(line, ConnectorLine(label_key="a", points=((42.0, 204.0), (42.0, 221.0)), is_shifted=False))
        self.assertEqual(line.to_svg_path(), "M42,204 L42,221")

    def test_left_shifted_group_steps_down(self) -> None:
        lines = connector_lines([_label("a", 90.0, 60.0), _label("b", 100.0, 80.0)], 200.0)
        a, b = lines
        self.assertTrue(a.is_shifted)
        self.assertEqual(len(a.points), 4)
        self.assertAlmostEqual(a.points[1][1], 204.0 + 17.0 / 3)
        self.assertAlmostEqual(b.points[1][1], 204.0 + 34.0 / 3)
        self.assertEqual(a.to_svg_path(), "M90,204 L90,209.67 L60,209.67 L60,221")

    def test_right_shifted_group_steps_up(self) -> None:
        lines = connector_lines([_label("d", 10.0, 30.0), _label("e", 20.0, 50.0)], 200.0)
        d, e = lines
        self.assertAlmostEqual(d.points[1][1], 204.0 + 34.0 / 3)
        self.assertAlmostEqual(e.points[1][1], 204.0 + 17.0 / 3)
        self.assertEqual(d.points[2], (30.0, d.points[1][1]))
        self.assertEqual(d.points[3], (30.0, 221.0))

    def test_unshifted_label_splits_groups_and_comes_last(self) -> None:
        labels = [_label("a", 10.0, 0.0), _label("b", 40.0), _label("c", 70.0, 60.0)]
        lines = connector_lines(labels, 0.0, marker_margin=0.0, marker_area_height=10.0)
        self.assertEqual([line.label_key for line in lines], ["a", "c", "b"])
        # each shifted label is alone in its group
        self.assertAlmostEqual(lines[0].points[1][1], 5.0)
        self.assertAlmostEqual(lines[1].points[1][1], 5.0)

    def test_selected_flag_carries_through(self) -> None:
        (line,) = connector_lines([_label("a", 1.0, selected=True)], 0.0)
        self.assertTrue(line.is_selected)


if __name__ == "__main__":
    unittest.main()
