from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Union

from grapher_plot.raster.canvas import RGBA
from grapher_plot.stacking import StackedPoint


@dataclass(frozen=True)
class SimplePoint:
    value: float
    entity: str
    time: int


@dataclass(frozen=True)
class SimpleSeries:
    series_name: str
    points: tuple[SimplePoint, ...] = field(default_factory=tuple)

    def point_for(self, entity: str) -> SimplePoint | None:
        for point in self.points:
            if point.entity == entity:
                return point
        return None


class BarShape(Enum):
    BAR = "bar"
    PLACEHOLDER = "placeholder"


@dataclass(frozen=True)
class Bar:
    series_name: str
    color: RGBA
    y_point: StackedPoint
    kind: Literal[BarShape.BAR] = field(default=BarShape.BAR, init=False)


@dataclass(frozen=True)
class BarPlaceholder:
    series_name: str
    kind: Literal[BarShape.PLACEHOLDER] = field(default=BarShape.PLACEHOLDER, init=False)


BarOrPlaceholder = Union[Bar, BarPlaceholder]


@dataclass(frozen=True)
class EntityColor:
    color: RGBA
    color_domain_value: str


@dataclass(frozen=True)
class Item:
    entity_name: str
    x_point: SimplePoint
    bars: tuple[Bar, ...] = ()
    entity_color: EntityColor | None = None

    @property
    def is_placeholder(self) -> bool:
        return not self.bars

    @property
    def top_of_stack(self) -> float:
        if not self.bars:
            return float("-inf")
        return self.bars[-1].y_point.top

    def bars_or_placeholder(self) -> tuple[BarOrPlaceholder, ...]:
        if self.bars:
            return self.bars
        return (BarPlaceholder(series_name=self.entity_name),)


@dataclass(frozen=True)
class PlacedItem:
    item: Item
    x_position: float

    @property
    def entity_name(self) -> str:
        return self.item.entity_name

    @property
    def x_value(self) -> float:
        return self.item.x_point.value
