from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from grapher_plot.raster.canvas import RGBA


BASE_FONT_SIZE = 16.0
LABEL_FONT_SCALE = 0.7
DEFAULT_LABEL_ANGLE_DEG = -45.0
LABEL_PADDING_PX = 5.0
MAX_LABELS_TO_ADD = 20
LABEL_BUDGET_DIVISOR = 4.0
MARKER_MARGIN = 4.0
MARKER_AREA_HEIGHT = 25.0
RIGHT_PADDING_PX = 10.0
DEFAULT_BOUNDS = (0.0, 0.0, 640.0, 480.0)

# Categorical palette used when a series or color bin has no configured color.
DEFAULT_PALETTE: tuple[RGBA, ...] = (
    (51, 104, 153, 255),
    (135, 64, 55, 255),
    (101, 142, 85, 255),
    (195, 133, 49, 255),
    (131, 78, 143, 255),
    (42, 148, 148, 255),
    (181, 62, 118, 255),
    (88, 88, 88, 255),
    (224, 110, 92, 255),
    (56, 160, 208, 255),
)
NO_DATA_COLOR: RGBA = (149, 149, 149, 255)


@dataclass(frozen=True)
class AxisConfig:
    min: float | None = None
    max: float | None = None


@dataclass(frozen=True)
class MarimekkoConfig:
    x_column_slug: str | None = None
    y_column_slugs: tuple[str, ...] = ()
    color_column_slug: str | None = None
    end_time: int | None = None
    is_relative_mode: bool = False
    matching_entities_only: bool = False
    excluded_entities: tuple[str, ...] = ()
    selected_entities: tuple[str, ...] = ()
    bounds: tuple[float, float, float, float] = DEFAULT_BOUNDS
    base_font_size: float = BASE_FONT_SIZE
    label_angle_deg: float = DEFAULT_LABEL_ANGLE_DEG
    x_axis: AxisConfig = field(default_factory=AxisConfig)
    y_axis: AxisConfig = field(default_factory=AxisConfig)
    tolerances: Mapping[str, float] = field(default_factory=dict)
    series_colors: Mapping[str, RGBA] = field(default_factory=dict)
    color_map: Mapping[str, RGBA] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.base_font_size <= 0:
            raise ValueError("base_font_size must be > 0")
        _, _, width, height = self.bounds
        if width < 0 or height < 0:
            raise ValueError("bounds width/height must be >= 0")
        # Accept lists from callers; keep the config hashable-friendly.
        object.__setattr__(self, "y_column_slugs", tuple(self.y_column_slugs))
        object.__setattr__(self, "excluded_entities", tuple(self.excluded_entities))
        object.__setattr__(self, "selected_entities", tuple(self.selected_entities))

    @property
    def label_font_size(self) -> float:
        return LABEL_FONT_SCALE * self.base_font_size
