from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Sequence

from grapher_plot.raster.canvas import RGBA


@dataclass(frozen=True)
class StackedPoint:
    position: str
    time: int
    value: float
    value_offset: float = 0.0
    fake: bool = False

    @property
    def top(self) -> float:
        return self.value_offset + self.value


@dataclass(frozen=True)
class StackedSeries:
    series_name: str
    color: RGBA
    points: tuple[StackedPoint, ...] = field(default_factory=tuple)
    column_slug: str | None = None

    def point_for(self, position: str) -> StackedPoint | None:
        for point in self.points:
            if point.position == position:
                return point
        return None


def stack_series(series: Sequence[StackedSeries]) -> list[StackedSeries]:
    """Fill in ``value_offset`` so each series sits on top of the ones before it.

    Offsets accumulate per position in series order. Negative values are
    stacked like positive ones, matching the bar layout which only draws
    the running sum.
    """
    running: dict[str, float] = {}
    stacked: list[StackedSeries] = []
    for s in series:
        points = []
        for point in s.points:
            offset = running.get(point.position, 0.0)
            points.append(replace(point, value_offset=offset))
            running[point.position] = offset + point.value
        stacked.append(replace(s, points=tuple(points)))
    return stacked


def with_missing_values_as_zeroes(
    series: Sequence[StackedSeries],
    *,
    enforce_uniform_spacing: bool = False,
) -> list[StackedSeries]:
    """Give every series a point for every position, using zero-valued fake points."""
    positions: list[str] = []
    seen: set[str] = set()
    for s in series:
        for point in s.points:
            if point.position not in seen:
                seen.add(point.position)
                positions.append(point.position)
    if enforce_uniform_spacing:
        positions = sorted(positions)

    out: list[StackedSeries] = []
    for s in series:
        by_position = {point.position: point for point in s.points}
        time = s.points[0].time if s.points else 0
        points = tuple(
            by_position.get(position, StackedPoint(position=position, time=time, value=0.0, fake=True))
            for position in positions
        )
        out.append(replace(s, points=points))
    return out
