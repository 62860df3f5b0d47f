from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Sequence

from grapher_plot.config import MARKER_AREA_HEIGHT, MARKER_MARGIN


@dataclass(frozen=True)
class LabelWithPlacement:
    label_key: str
    preferred_placement: float
    corrected_placement: float
    width: float = 0.0
    height: float = 0.0
    is_selected: bool = False

    @property
    def is_shifted(self) -> bool:
        return self.preferred_placement != self.corrected_placement


@dataclass(frozen=True)
class ConnectorLine:
    label_key: str
    points: tuple[tuple[float, float], ...]
    is_shifted: bool
    is_selected: bool = False

    def to_svg_path(self) -> str:
        if not self.points:
            return ""
        x0, y0 = self.points[0]
        parts = [f"M{_fmt(x0)},{_fmt(y0)}"]
        for x, y in self.points[1:]:
            parts.append(f"L{_fmt(x)},{_fmt(y)}")
        return " ".join(parts)


def _fmt(value: float) -> str:
    out = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if out == "-0" else out


def corrected_label_width(highest_label_height: float, longest_label_width: float, angle_deg: float) -> float:
    """Horizontal room one rotated label needs next to its neighbour.

    The spacing term is `|tan(angle_deg)|` with the degree value passed to
    `tan` unconverted, which is what published charts are laid out with.
    It is capped at the width-to-height ratio of the longest label.
    """
    if highest_label_height <= 0:
        return max(0.0, longest_label_width)
    tan_term = abs(math.tan(angle_deg))
    return highest_label_height * (1.0 + min(longest_label_width / highest_label_height, tan_term))


def resolve_label_collisions(
    labels: Sequence[LabelWithPlacement],
    label_width: float,
    range_max: float,
) -> list[LabelWithPlacement]:
    """Spread labels along x so neighbours are at least ``label_width`` apart.

    Left-to-right pass pushes labels right, the last label is clamped to
    ``range_max``, then a right-to-left pass pulls labels left. Linear in the
    number of labels after sorting.
    """
    if not labels:
        return []
    ordered = sorted(labels, key=lambda label: label.preferred_placement)
    placements = [label.preferred_placement for label in ordered]

    for i in range(len(placements) - 1):
        min_next = placements[i] + label_width
        if placements[i + 1] < min_next:
            placements[i + 1] = min_next

    placements[-1] = min(placements[-1], range_max)

    for i in range(len(placements) - 1, 0, -1):
        max_previous = placements[i] - label_width
        if placements[i - 1] > max_previous:
            placements[i - 1] = max_previous

    return [replace(label, corrected_placement=x) for label, x in zip(ordered, placements)]


def connector_lines(
    labels: Sequence[LabelWithPlacement],
    bar_endpoint_y: float,
    *,
    marker_margin: float = MARKER_MARGIN,
    marker_area_height: float = MARKER_AREA_HEIGHT,
) -> list[ConnectorLine]:
    """Lines from each bar down to its label.

    Shifted labels get an elbow; within a run of neighbouring shifted labels
    the elbows are spread over the marker area, stacked in the opposite
    order for labels moved right so their lines do not cross.
    """
    shifted_groups: list[list[LabelWithPlacement]] = []
    unshifted: list[LabelWithPlacement] = []
    start_new_group = True
    for label in labels:
        if not label.is_shifted:
            unshifted.append(label)
            start_new_group = True
        elif start_new_group:
            shifted_groups.append([label])
            start_new_group = False
        else:
            shifted_groups[-1].append(label)

    bar_y = bar_endpoint_y + marker_margin
    text_y = bar_endpoint_y + marker_area_height - marker_margin
    net_height = marker_area_height - 2 * marker_margin

    lines: list[ConnectorLine] = []
    for group in shifted_groups:
        step = net_height / (len(group) + 1)
        for index, label in enumerate(group):
            bar_x = label.preferred_placement
            text_x = label.corrected_placement
            offset = (index + 1) * step
            y_mid = offset if bar_x > text_x else net_height - offset
            lines.append(
                ConnectorLine(
                    label_key=label.label_key,
                    points=((bar_x, bar_y), (bar_x, bar_y + y_mid), (text_x, bar_y + y_mid), (text_x, text_y)),
                    is_shifted=True,
                    is_selected=label.is_selected,
                )
            )
    for label in unshifted:
        x = label.preferred_placement
        lines.append(
            ConnectorLine(
                label_key=label.label_key,
                points=((x, bar_y), (x, text_y)),
                is_shifted=False,
                is_selected=label.is_selected,
            )
        )
    return lines
