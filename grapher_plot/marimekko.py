from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any

from grapher_plot.collision import (
    ConnectorLine,
    LabelWithPlacement,
    connector_lines,
    corrected_label_width,
    resolve_label_collisions,
)
from grapher_plot.config import (
    DEFAULT_PALETTE,
    LABEL_PADDING_PX,
    MARKER_AREA_HEIGHT,
    NO_DATA_COLOR,
    RIGHT_PADDING_PX,
    MarimekkoConfig,
)
from grapher_plot.correction import DomainCorrection, compute_domain_correction
from grapher_plot.items import bar_width, build_items, first_placeholder_index, place_items, sort_items
from grapher_plot.labels import LabelCandidate, TextMeasure, make_label_candidates, measure_text, pick_label_candidates
from grapher_plot.raster.canvas import RGBA
from grapher_plot.scales import Bounds, LinearAxis, format_ticks_for_axis
from grapher_plot.series import BarShape, EntityColor, Item, PlacedItem, SimplePoint, SimpleSeries
from grapher_plot.stacking import StackedPoint, StackedSeries, stack_series
from grapher_plot.table import ChartTable


LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class BarRect:
    entity_name: str
    series_name: str
    x: float
    y: float
    width: float
    height: float
    color: RGBA
    is_placeholder: bool = False
    is_selected: bool = False


@dataclass(frozen=True)
class NoDataBand:
    x: float
    y: float
    width: float
    height: float

    @property
    def label_position(self) -> tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)


@dataclass(frozen=True)
class PlacedLabel:
    entity_name: str
    x: float
    y: float
    angle_deg: float
    font_size: float
    width: float
    height: float
    is_selected: bool = False


@dataclass(frozen=True)
class AxisTick:
    value: float
    label: str
    position: float


@dataclass(frozen=True)
class MarimekkoLayout:
    bounds: Bounds
    fail_message: str = ""
    plot_bounds: Bounds | None = None
    correction_factor: float = 1.0
    placed_items: tuple[PlacedItem, ...] = ()
    bars: tuple[BarRect, ...] = ()
    no_data_band: NoDataBand | None = None
    labels: tuple[PlacedLabel, ...] = ()
    connectors: tuple[ConnectorLine, ...] = ()
    x_ticks: tuple[AxisTick, ...] = ()
    y_ticks: tuple[AxisTick, ...] = ()
    series_names: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        band = self.no_data_band
        return {
            "failMessage": self.fail_message,
            "bounds": _bounds_dict(self.bounds),
            "plotBounds": _bounds_dict(self.plot_bounds) if self.plot_bounds is not None else None,
            "correctionFactor": self.correction_factor,
            "series": list(self.series_names),
            "items": [
                {
                    "entityName": p.entity_name,
                    "xValue": p.x_value,
                    "xPosition": p.x_position,
                    "isPlaceholder": p.item.is_placeholder,
                }
                for p in self.placed_items
            ],
            "bars": [
                {
                    "entityName": b.entity_name,
                    "seriesName": b.series_name,
                    "x": b.x,
                    "y": b.y,
                    "width": b.width,
                    "height": b.height,
                    "color": list(b.color),
                    "isPlaceholder": b.is_placeholder,
                }
                for b in self.bars
            ],
            "noDataBand": None
            if band is None
            else {"x": band.x, "y": band.y, "width": band.width, "height": band.height},
            "labels": [
                {"entityName": label.entity_name, "x": label.x, "y": label.y, "angle": label.angle_deg, "isSelected": label.is_selected}
                for label in self.labels
            ],
            "connectors": [
                {"entityName": c.label_key, "path": c.to_svg_path(), "isShifted": c.is_shifted} for c in self.connectors
            ],
            "xTicks": [{"value": t.value, "label": t.label, "position": t.position} for t in self.x_ticks],
            "yTicks": [{"value": t.value, "label": t.label, "position": t.position} for t in self.y_ticks],
        }


def _bounds_dict(bounds: Bounds) -> dict[str, float]:
    return {"x": bounds.x, "y": bounds.y, "width": bounds.width, "height": bounds.height}


class MarimekkoChart:
    """Derives Marimekko geometry from a table snapshot and a chart config.

    Every derived quantity is a cached property over the immutable inputs;
    a new table, config or size means a new chart instance.
    """

    def __init__(self, table: ChartTable, config: MarimekkoConfig, *, measure: TextMeasure = measure_text) -> None:
        self.input_table = table
        self.config = config
        self._measure = measure

    # columns

    @cached_property
    def x_column_slug(self) -> str | None:
        return self.config.x_column_slug

    @cached_property
    def y_column_slugs(self) -> tuple[str, ...]:
        if self.config.y_column_slugs:
            return self.config.y_column_slugs
        skip = {self.config.x_column_slug, self.config.color_column_slug}
        return tuple(c for c in self.input_table.numeric_columns() if c not in skip)

    @cached_property
    def available_y_column_slugs(self) -> tuple[str, ...]:
        present = tuple(s for s in self.y_column_slugs if self.input_table.has_column(s))
        missing = [s for s in self.y_column_slugs if s not in present]
        if missing:
            LOGGER.warning("y columns not found in table: %s", ", ".join(missing))
        return present

    @cached_property
    def color_column_slug(self) -> str | None:
        slug = self.config.color_column_slug
        if slug is not None and not self.input_table.has_column(slug):
            LOGGER.warning("color column not found in table: %s", slug)
            return None
        return slug

    @cached_property
    def has_required_columns(self) -> bool:
        return bool(self.available_y_column_slugs) and self.input_table.has_column(self.x_column_slug)

    @cached_property
    def fail_message(self) -> str:
        if not self.available_y_column_slugs:
            return "No Y column to chart"
        if not self.input_table.has_column(self.x_column_slug):
            return "No X column to chart"
        table = self.transformed_table
        if all(table.is_column_empty(slug) for slug in self.available_y_column_slugs):
            return f"No matching data in columns {', '.join(self.available_y_column_slugs)}"
        return ""

    # tables

    @cached_property
    def latest_time(self) -> int | None:
        slugs = list(self.available_y_column_slugs)
        times = self.input_table.replace_non_numeric_with_errors(slugs).times_sorted_asc(slugs)
        return times[-1] if times else None

    @cached_property
    def end_time(self) -> int | None:
        return self.config.end_time if self.config.end_time is not None else self.latest_time

    @cached_property
    def transformed_table(self) -> ChartTable:
        table = self.input_table
        if not self.has_required_columns:
            return table
        x_slug = self.x_column_slug
        assert x_slug is not None
        table = table.exclude_entities(self.config.excluded_entities)
        table = table.replace_non_numeric_with_errors(list(self.available_y_column_slugs) + [x_slug])
        if self.end_time is not None:
            tolerances = dict(self.config.tolerances)
            if self.color_column_slug is not None:
                tolerances.setdefault(self.color_column_slug, math.inf)
            table = table.filter_by_target_time(self.end_time, tolerances)
        table = table.drop_rows_with_errors([x_slug])
        if self.config.is_relative_mode:
            table = table.to_percentage_of_total(x_slug)
        if self.color_column_slug is not None and self.config.matching_entities_only:
            table = table.drop_rows_with_errors([self.color_column_slug])
        return table

    # series

    @cached_property
    def series(self) -> list[StackedSeries]:
        if not self.has_required_columns:
            return []
        slugs = self.available_y_column_slugs
        unstacked = []
        for i, slug in enumerate(slugs):
            color = self.config.series_colors.get(slug, DEFAULT_PALETTE[i % len(DEFAULT_PALETTE)])
            points = tuple(
                StackedPoint(position=row.entity_name, time=row.time, value=float(row.value))
                for row in self.transformed_table.column_rows(slug)
            )
            if points:
                unstacked.append(StackedSeries(series_name=slug, color=color, points=points, column_slug=slug))
        return stack_series(unstacked)

    @cached_property
    def x_series(self) -> SimpleSeries:
        slug = self.x_column_slug
        if not self.has_required_columns or slug is None:
            return SimpleSeries(series_name=slug or "")
        points = tuple(
            SimplePoint(value=float(row.value), entity=row.entity_name, time=row.time)
            for row in self.transformed_table.column_rows(slug)
        )
        return SimpleSeries(series_name=slug, points=points)

    @cached_property
    def entity_colors(self) -> dict[str, EntityColor]:
        slug = self.color_column_slug
        if slug is None or not self.has_required_columns:
            return {}
        # Bins come from the unfiltered table so a category keeps its color across times.
        categories = sorted({str(row.value) for row in self.input_table.column_rows(slug)})
        colors: dict[str, EntityColor] = {}
        for row in self.transformed_table.column_rows(slug):
            value = str(row.value)
            color = self.config.color_map.get(value)
            if color is None:
                color = DEFAULT_PALETTE[categories.index(value) % len(DEFAULT_PALETTE)] if value in categories else NO_DATA_COLOR
            colors.setdefault(row.entity_name, EntityColor(color=color, color_domain_value=value))
        return colors

    # items

    @cached_property
    def items(self) -> list[Item]:
        if not self.has_required_columns:
            return []
        entity_names = self.transformed_table.entity_names(self.x_column_slug)
        return build_items(entity_names, self.x_series, self.series, self.entity_colors)

    @cached_property
    def sorted_items(self) -> list[Item]:
        return sort_items(self.items)

    # geometry

    @cached_property
    def bounds(self) -> Bounds:
        return Bounds.from_tuple(self.config.bounds).pad_right(RIGHT_PADDING_PX)

    @cached_property
    def x_domain_default(self) -> tuple[float, float]:
        if self.config.is_relative_mode:
            return (0.0, 100.0)
        return (0.0, float(sum(p.value for p in self.x_series.points)))

    @cached_property
    def y_domain_default(self) -> tuple[float, float]:
        tops = [point.top for s in self.series for point in s.points]
        if not tops:
            return (0.0, 0.0)
        return (min(0.0, min(tops)), max(0.0, max(tops)))

    @cached_property
    def y_tick_axis(self) -> LinearAxis:
        return LinearAxis.with_user_settings(self.y_domain_default, (0.0, 1.0), self.config.y_axis, inverted=True)

    @cached_property
    def vertical_axis_width(self) -> float:
        labels = format_ticks_for_axis(self.y_tick_axis.ticks())
        if not labels:
            return 0.0
        widths = [self._measure(label, self.config.label_font_size)[0] for label in labels]
        return max(widths) + LABEL_PADDING_PX

    @cached_property
    def inner_bounds(self) -> Bounds:
        white_space_on_left = self.bounds.left + self.vertical_axis_width
        margin_for_widest_label = max(white_space_on_left, self.longest_label_width) - white_space_on_left
        return (
            self.bounds.pad_bottom(self.longest_label_height + MARKER_AREA_HEIGHT)
            .pad_top(self.config.base_font_size)
            .pad_left(margin_for_widest_label)
        )

    @cached_property
    def plot_bounds(self) -> Bounds:
        return self.inner_bounds.pad_left(self.vertical_axis_width)

    @cached_property
    def horizontal_axis(self) -> LinearAxis:
        pixel_range = (self.plot_bounds.left, self.plot_bounds.right)
        if self.config.is_relative_mode:
            return LinearAxis(domain=(0.0, 100.0), range=pixel_range)
        return LinearAxis.with_user_settings(self.x_domain_default, pixel_range, self.config.x_axis)

    @cached_property
    def vertical_axis(self) -> LinearAxis:
        return LinearAxis.with_user_settings(
            self.y_domain_default,
            (self.plot_bounds.top, self.plot_bounds.bottom),
            self.config.y_axis,
            inverted=True,
        )

    @cached_property
    def domain_correction(self) -> DomainCorrection:
        return compute_domain_correction((p.value for p in self.x_series.points), self.horizontal_axis.range_size)

    @cached_property
    def x_domain_correction_factor(self) -> float:
        return self.domain_correction.factor

    @cached_property
    def placed_items(self) -> list[PlacedItem]:
        return place_items(self.sorted_items, self.x_domain_correction_factor, self.horizontal_axis)

    @cached_property
    def placed_items_map(self) -> dict[str, PlacedItem]:
        return {placed.entity_name: placed for placed in self.placed_items}

    def _item_width(self, item: Item) -> float:
        return bar_width(item, self.x_domain_correction_factor, self.horizontal_axis)

    @cached_property
    def bar_rects(self) -> list[BarRect]:
        h_axis, v_axis = self.horizontal_axis, self.vertical_axis
        selected = set(self.config.selected_entities)
        rects: list[BarRect] = []
        for placed in self.placed_items:
            item = placed.item
            x = h_axis.place(0.0) + placed.x_position
            width = self._item_width(item)
            for bar in item.bars_or_placeholder():
                if bar.kind is BarShape.BAR:
                    y_top = v_axis.place(bar.y_point.top)
                    y_base = v_axis.place(bar.y_point.value_offset)
                    color = item.entity_color.color if item.entity_color is not None else bar.color
                    rects.append(
                        BarRect(
                            entity_name=item.entity_name,
                            series_name=bar.series_name,
                            x=x,
                            y=min(y_top, y_base),
                            width=width,
                            height=abs(y_base - y_top),
                            color=color,
                            is_selected=item.entity_name in selected,
                        )
                    )
                elif bar.kind is BarShape.PLACEHOLDER:
                    rects.append(
                        BarRect(
                            entity_name=item.entity_name,
                            series_name=bar.series_name,
                            x=x,
                            y=v_axis.range_min,
                            width=width,
                            height=v_axis.range_size,
                            color=NO_DATA_COLOR,
                            is_placeholder=True,
                            is_selected=item.entity_name in selected,
                        )
                    )
                else:
                    raise AssertionError(f"unhandled bar kind: {bar.kind!r}")
        return rects

    @cached_property
    def no_data_band(self) -> NoDataBand | None:
        placed = self.placed_items
        first = first_placeholder_index(placed)
        if first is None:
            return None
        origin = self.horizontal_axis.place(0.0)
        last = placed[-1]
        start_x = origin + placed[first].x_position
        end_x = origin + last.x_position + self._item_width(last.item)
        v_axis = self.vertical_axis
        return NoDataBand(x=start_x, y=v_axis.range_min, width=end_x - start_x, height=v_axis.range_size)

    # labels

    @cached_property
    def label_candidates(self) -> list[LabelCandidate]:
        slug = self.x_column_slug
        if not self.has_required_columns or self.latest_time is None or slug is None:
            return []
        # Labels are picked at the latest time so they stay put while the end time changes.
        y_slug = self.available_y_column_slugs[0]
        table = (
            self.input_table.exclude_entities(self.config.excluded_entities)
            .replace_non_numeric_with_errors([slug, y_slug])
            .filter_by_target_time(self.latest_time)
        )
        x_rows = [(row.entity_name, float(row.value)) for row in table.column_rows(slug)]
        y_sort_values = {row.entity_name: float(row.value) for row in table.column_rows(y_slug)}
        return make_label_candidates(
            x_rows,
            y_sort_values,
            font_size=self.config.label_font_size,
            selected=set(self.config.selected_entities),
            measure=self._measure,
        )

    @cached_property
    def picked_label_candidates(self) -> list[LabelCandidate]:
        return pick_label_candidates(self.label_candidates, self.bounds.width)

    @cached_property
    def unrotated_longest_label_width(self) -> float:
        return max((c.bounds.width for c in self.picked_label_candidates), default=0.0)

    @cached_property
    def unrotated_highest_label_height(self) -> float:
        return max((c.bounds.height for c in self.picked_label_candidates), default=0.0)

    @cached_property
    def longest_label_height(self) -> float:
        # Treats the rotated label as a line; the font size stands in for its thickness.
        rotated = self.unrotated_longest_label_width * abs(math.sin(math.radians(self.config.label_angle_deg)))
        return max(self.config.base_font_size, rotated)

    @cached_property
    def longest_label_width(self) -> float:
        rotated = self.unrotated_longest_label_width * abs(math.cos(math.radians(self.config.label_angle_deg)))
        return max(self.config.base_font_size, rotated)

    @cached_property
    def corrected_label_width(self) -> float:
        return corrected_label_width(
            self.unrotated_highest_label_height,
            self.unrotated_longest_label_width,
            self.config.label_angle_deg,
        )

    @cached_property
    def labels_with_placement(self) -> list[LabelWithPlacement]:
        origin = self.horizontal_axis.place(0.0)
        labels = []
        for candidate in self.picked_label_candidates:
            placed = self.placed_items_map.get(candidate.entity_id)
            if placed is None:
                LOGGER.error("could not find placed item for label %s", candidate.entity_id)
                continue
            center = origin + placed.x_position + self._item_width(placed.item) / 2
            labels.append(
                LabelWithPlacement(
                    label_key=candidate.entity_id,
                    preferred_placement=center,
                    corrected_placement=center,
                    width=candidate.bounds.width,
                    height=candidate.bounds.height,
                    is_selected=candidate.is_selected,
                )
            )
        return resolve_label_collisions(labels, self.corrected_label_width, self.horizontal_axis.range_max)

    @cached_property
    def bar_endpoint_y(self) -> float:
        return self.vertical_axis.place(0.0)

    @cached_property
    def connectors(self) -> list[ConnectorLine]:
        return connector_lines(self.labels_with_placement, self.bar_endpoint_y)

    @cached_property
    def placed_labels(self) -> list[PlacedLabel]:
        y = self.bar_endpoint_y + MARKER_AREA_HEIGHT
        return [
            PlacedLabel(
                entity_name=label.label_key,
                x=label.corrected_placement,
                y=y,
                angle_deg=self.config.label_angle_deg,
                font_size=self.config.label_font_size,
                width=label.width,
                height=label.height,
                is_selected=label.is_selected,
            )
            for label in self.labels_with_placement
        ]

    # ticks

    def _ticks(self, axis: LinearAxis) -> tuple[AxisTick, ...]:
        values = axis.ticks()
        labels = format_ticks_for_axis(values)
        return tuple(
            AxisTick(value=float(v), label=label, position=axis.place(float(v)))
            for v, label in zip(values.tolist(), labels)
        )

    def layout(self) -> MarimekkoLayout:
        if self.fail_message:
            return MarimekkoLayout(bounds=self.bounds, fail_message=self.fail_message)
        return MarimekkoLayout(
            bounds=self.bounds,
            plot_bounds=self.plot_bounds,
            correction_factor=self.x_domain_correction_factor,
            placed_items=tuple(self.placed_items),
            bars=tuple(self.bar_rects),
            no_data_band=self.no_data_band,
            labels=tuple(self.placed_labels),
            connectors=tuple(self.connectors),
            x_ticks=self._ticks(self.horizontal_axis),
            y_ticks=self._ticks(self.vertical_axis),
            series_names=tuple(s.series_name for s in self.series),
        )


def compute_marimekko_layout(
    table: ChartTable,
    config: MarimekkoConfig,
    *,
    measure: TextMeasure = measure_text,
) -> MarimekkoLayout:
    return MarimekkoChart(table, config, measure=measure).layout()
