from grapher_plot.collision import ConnectorLine, LabelWithPlacement, connector_lines, resolve_label_collisions
from grapher_plot.config import AxisConfig, MarimekkoConfig
from grapher_plot.correction import compute_domain_correction, domain_correction_factor
from grapher_plot.errors import GrapherDataError
from grapher_plot.items import build_items, place_items, sort_items
from grapher_plot.labels import LabelCandidate, pick_label_candidates
from grapher_plot.marimekko import MarimekkoChart, MarimekkoLayout, compute_marimekko_layout
from grapher_plot.scales import Bounds, LinearAxis
from grapher_plot.series import Bar, BarPlaceholder, BarShape, Item, PlacedItem, SimplePoint, SimpleSeries
from grapher_plot.stacking import StackedPoint, StackedSeries, stack_series
from grapher_plot.table import ChartTable

__all__ = [
    "AxisConfig",
    "Bar",
    "BarPlaceholder",
    "BarShape",
    "Bounds",
    "ChartTable",
    "ConnectorLine",
    "GrapherDataError",
    "Item",
    "LabelCandidate",
    "LabelWithPlacement",
    "LinearAxis",
    "MarimekkoChart",
    "MarimekkoConfig",
    "MarimekkoLayout",
    "PlacedItem",
    "SimplePoint",
    "SimpleSeries",
    "StackedPoint",
    "StackedSeries",
    "build_items",
    "compute_domain_correction",
    "compute_marimekko_layout",
    "connector_lines",
    "domain_correction_factor",
    "pick_label_candidates",
    "place_items",
    "resolve_label_collisions",
    "sort_items",
    "stack_series",
]
