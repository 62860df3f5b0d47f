from __future__ import annotations

import logging
from typing import Mapping, Sequence

from grapher_plot.scales import LinearAxis
from grapher_plot.series import Bar, EntityColor, Item, PlacedItem, SimpleSeries
from grapher_plot.stacking import StackedSeries


LOGGER = logging.getLogger(__name__)


def build_items(
    entity_names: Sequence[str],
    x_series: SimpleSeries,
    stacked_series: Sequence[StackedSeries],
    entity_colors: Mapping[str, EntityColor] | None = None,
) -> list[Item]:
    """One item per entity with an x value; bars keep the series order."""
    x_points = {}
    for point in x_series.points:
        x_points.setdefault(point.entity, point)
    y_points = [{point.position: point for point in s.points} for s in stacked_series]

    items: list[Item] = []
    for entity_name in entity_names:
        x_point = x_points.get(entity_name)
        if x_point is None:
            continue
        bars: list[Bar] = []
        for s, points in zip(stacked_series, y_points):
            y_point = points.get(entity_name)
            if y_point is None:
                continue
            bars.append(Bar(series_name=s.series_name, color=s.color, y_point=y_point))
        items.append(
            Item(
                entity_name=entity_name,
                x_point=x_point,
                bars=tuple(bars),
                entity_color=entity_colors.get(entity_name) if entity_colors else None,
            )
        )
    return items


def sort_items(items: Sequence[Item]) -> list[Item]:
    """Descending by top-of-stack value; placeholders go last."""
    ordered = sorted(items, key=lambda item: item.top_of_stack)
    ordered.reverse()
    return ordered


def bar_width(item: Item, correction_factor: float, axis: LinearAxis) -> float:
    exact = axis.place(item.x_point.value * correction_factor) - axis.place(0.0)
    return max(1.0, exact)


def place_items(sorted_items: Sequence[Item], correction_factor: float, axis: LinearAxis) -> list[PlacedItem]:
    placed: list[PlacedItem] = []
    current_x = 0.0
    for item in sorted_items:
        placed.append(PlacedItem(item=item, x_position=current_x))
        current_x += bar_width(item, correction_factor, axis)
    return placed


def first_placeholder_index(placed_items: Sequence[PlacedItem]) -> int | None:
    """Index where the no-data band starts, assuming placeholders form a suffix.

    A bar-carrying item after the first placeholder breaks that assumption;
    it is logged and the band still starts at the first placeholder.
    """
    first = None
    for i, placed in enumerate(placed_items):
        if placed.item.is_placeholder:
            first = i
            break
    if first is None:
        return None
    stray = [p.entity_name for p in placed_items[first + 1 :] if not p.item.is_placeholder]
    if stray:
        LOGGER.error(
            "found items with data after the first item without data (%s): %s",
            placed_items[first].entity_name,
            ", ".join(stray),
        )
    return first
