from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Sequence

from grapher_plot.config import AxisConfig, MarimekkoConfig
from grapher_plot.errors import GrapherDataError
from grapher_plot.marimekko import compute_marimekko_layout
from grapher_plot.render import save_png
from grapher_plot.table import ENTITY_NAME, TIME, ChartTable


LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="grapher-plot")
    parser.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    sub = parser.add_subparsers(dest="command", required=True)

    layout = sub.add_parser("layout", help="Compute a Marimekko layout from a long-format CSV table.")
    layout.add_argument("csv", type=Path)
    layout.add_argument("--x", dest="x_column", required=True, help="Column giving bar widths.")
    layout.add_argument(
        "--y",
        dest="y_columns",
        action="append",
        default=[],
        help="Stacked column (repeatable). Default: every numeric column except --x and --color.",
    )
    layout.add_argument("--color", dest="color_column", default=None, help="Categorical column coloring entities.")
    layout.add_argument("--entity-column", default=ENTITY_NAME)
    layout.add_argument("--time-column", default=TIME)
    layout.add_argument("--time", type=int, default=None, help="Target time. Default: latest time with y data.")
    layout.add_argument(
        "--tolerance",
        action="append",
        default=[],
        metavar="SLUG=N",
        help="Interpolation tolerance for a column, in time units (repeatable).",
    )
    layout.add_argument("--relative", action="store_true", help="Show x as a share of the total.")
    layout.add_argument("--matching-entities-only", action="store_true")
    layout.add_argument("--exclude", action="append", default=[], help="Entity to leave out (repeatable).")
    layout.add_argument("--select", action="append", default=[], help="Entity to highlight (repeatable).")
    layout.add_argument("--width", type=int, default=640)
    layout.add_argument("--height", type=int, default=480)
    layout.add_argument("--font-size", type=float, default=16.0)
    layout.add_argument("--label-angle", type=float, default=-45.0)
    layout.add_argument("--y-min", type=float, default=None)
    layout.add_argument("--y-max", type=float, default=None)
    layout.add_argument("--json", dest="json_out", type=Path, default=None, help="Write the layout as JSON ('-' for stdout).")
    layout.add_argument("--png", dest="png_out", type=Path, default=None, help="Render the layout to a PNG file.")
    return parser


def _parse_tolerances(values: Sequence[str]) -> dict[str, float]:
    out: dict[str, float] = {}
    for raw in values:
        slug, sep, amount = raw.partition("=")
        if not sep or not slug:
            raise GrapherDataError(f"tolerance must look like SLUG=N, got {raw!r}")
        try:
            out[slug] = float(amount)
        except ValueError as exc:
            raise GrapherDataError(f"tolerance for {slug} is not a number: {amount!r}") from exc
    return out


def config_from_args(args: argparse.Namespace) -> MarimekkoConfig:
    return MarimekkoConfig(
        x_column_slug=args.x_column,
        y_column_slugs=tuple(args.y_columns),
        color_column_slug=args.color_column,
        end_time=args.time,
        is_relative_mode=args.relative,
        matching_entities_only=args.matching_entities_only,
        excluded_entities=tuple(args.exclude),
        selected_entities=tuple(args.select),
        bounds=(0.0, 0.0, float(args.width), float(args.height)),
        base_font_size=args.font_size,
        label_angle_deg=args.label_angle,
        y_axis=AxisConfig(min=args.y_min, max=args.y_max),
        tolerances=_parse_tolerances(args.tolerance),
    )


def run_layout(args: argparse.Namespace) -> int:
    table = ChartTable.from_csv(args.csv, entity_column=args.entity_column, time_column=args.time_column)
    config = config_from_args(args)
    layout = compute_marimekko_layout(table, config)
    if layout.fail_message:
        LOGGER.warning("nothing to chart: %s", layout.fail_message)

    if args.json_out is not None:
        payload = json.dumps(layout.to_dict(), indent=2)
        if str(args.json_out) == "-":
            sys.stdout.write(payload + "\n")
        else:
            args.json_out.write_text(payload + "\n", encoding="utf-8")
    if args.png_out is not None:
        save_png(layout, args.png_out, width=args.width, height=args.height)
    if args.json_out is None and args.png_out is None:
        sys.stdout.write(json.dumps(layout.to_dict(), indent=2) + "\n")
    return 1 if layout.fail_message else 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")
    try:
        if args.command == "layout":
            return run_layout(args)
    except GrapherDataError as exc:
        LOGGER.error("%s", exc)
        return 2
    parser.error(f"unknown command: {args.command}")
    return 2
