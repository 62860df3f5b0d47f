from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

import numpy as np
import pandas as pd

from grapher_plot.errors import GrapherDataError


LOGGER = logging.getLogger(__name__)

ENTITY_NAME = "entityName"
TIME = "time"
ORIGINAL_TIME_SUFFIX = "-originalTime"


@dataclass(frozen=True)
class ColumnRow:
    entity_name: str
    time: int
    value: Any


class ChartTable:
    """Long-format table: one row per entity and time, one column per variable.

    Missing and error values are stored as NaN/None. Transforms return new
    tables and never mutate the receiver.
    """

    def __init__(
        self,
        frame: pd.DataFrame,
        *,
        entity_column: str = ENTITY_NAME,
        time_column: str = TIME,
    ) -> None:
        for required in (entity_column, time_column):
            if required not in frame.columns:
                raise GrapherDataError(f"column not found: {required}")
        frame = frame.rename(columns={entity_column: ENTITY_NAME, time_column: TIME})
        frame = frame.reset_index(drop=True).copy()
        frame[ENTITY_NAME] = frame[ENTITY_NAME].astype(str)
        try:
            frame[TIME] = pd.to_numeric(frame[TIME], errors="raise").astype(np.int64)
        except (TypeError, ValueError) as exc:
            raise GrapherDataError(f"{time_column} must contain integer times") from exc
        self._frame = frame

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]], **kwargs: Any) -> "ChartTable":
        return cls(pd.DataFrame.from_records(list(records)), **kwargs)

    @classmethod
    def from_csv(cls, path: str | Path, **kwargs: Any) -> "ChartTable":
        return cls(pd.read_csv(path), **kwargs)

    @property
    def frame(self) -> pd.DataFrame:
        return self._frame.copy()

    @property
    def value_columns(self) -> list[str]:
        return [
            str(c)
            for c in self._frame.columns
            if c not in (ENTITY_NAME, TIME) and not str(c).endswith(ORIGINAL_TIME_SUFFIX)
        ]

    def has_column(self, slug: str | None) -> bool:
        return slug is not None and slug in self.value_columns

    def numeric_columns(self) -> list[str]:
        return [c for c in self.value_columns if pd.api.types.is_numeric_dtype(self._frame[c])]

    def _require(self, slug: str) -> pd.Series:
        if not self.has_column(slug):
            raise GrapherDataError(f"column not found: {slug}")
        return self._frame[slug]

    def column_rows(self, slug: str) -> list[ColumnRow]:
        column = self._require(slug)
        original_times = self._frame.get(slug + ORIGINAL_TIME_SUFFIX)
        rows = []
        for i, value in enumerate(column.tolist()):
            if _is_missing(value):
                continue
            time = self._frame[TIME].iat[i]
            if original_times is not None and not _is_missing(original_times.iat[i]):
                time = original_times.iat[i]
            rows.append(ColumnRow(entity_name=self._frame[ENTITY_NAME].iat[i], time=int(time), value=value))
        return rows

    def is_column_empty(self, slug: str) -> bool:
        return not self.column_rows(slug)

    def entity_names(self, slug: str | None = None) -> list[str]:
        if slug is None:
            return [str(e) for e in pd.unique(self._frame[ENTITY_NAME])]
        seen: dict[str, None] = {}
        for row in self.column_rows(slug):
            seen.setdefault(row.entity_name, None)
        return list(seen)

    def times_sorted_asc(self, slugs: Sequence[str]) -> list[int]:
        present = [s for s in slugs if self.has_column(s)]
        if not present or self._frame.empty:
            return []
        mask = self._frame[present].notna().any(axis=1)
        return sorted(int(t) for t in pd.unique(self._frame.loc[mask, TIME]))

    def exclude_entities(self, entity_names: Iterable[str]) -> "ChartTable":
        excluded = set(entity_names)
        if not excluded:
            return self
        return self._with(self._frame[~self._frame[ENTITY_NAME].isin(excluded)])

    def replace_non_numeric_with_errors(self, slugs: Sequence[str]) -> "ChartTable":
        frame = self._frame.copy()
        for slug in slugs:
            if slug in frame.columns:
                frame[slug] = pd.to_numeric(frame[slug], errors="coerce")
        return self._with(frame)

    def drop_rows_with_errors(self, slugs: Sequence[str]) -> "ChartTable":
        present = [s for s in slugs if s in self._frame.columns]
        if not present:
            return self
        return self._with(self._frame.dropna(subset=present))

    def to_percentage_of_total(self, slug: str) -> "ChartTable":
        """Express ``slug`` as a share (0-100) of its total across entities at each time."""
        self._require(slug)
        frame = self._frame.copy()
        totals = frame.groupby(TIME)[slug].transform("sum")
        frame[slug] = (frame[slug] / totals.where(totals != 0)) * 100.0
        return self._with(frame)

    def filter_by_target_time(
        self,
        target: int,
        tolerances: Mapping[str, float] | None = None,
        *,
        default_tolerance: float = 0.0,
    ) -> "ChartTable":
        """One row per entity at ``target``, each value taken from the nearest time within tolerance.

        Ties between an earlier and a later time prefer the earlier one. The
        time a value actually comes from is kept in ``<slug>-originalTime``.
        """
        tolerances = tolerances or {}
        frame = self._frame
        times = frame[TIME].to_numpy(dtype=np.float64)
        slugs = self.value_columns
        values = {slug: frame[slug].to_numpy() for slug in slugs}
        missing = {slug: frame[slug].isna().to_numpy() for slug in slugs}
        original = {}
        for slug in slugs:
            col = frame.get(slug + ORIGINAL_TIME_SUFFIX)
            original[slug] = col.to_numpy(dtype=np.float64) if col is not None else times

        groups = frame.groupby(ENTITY_NAME, sort=False).indices
        records = []
        for entity in pd.unique(frame[ENTITY_NAME]):
            positions = np.asarray(groups[entity])
            positions = positions[np.argsort(times[positions], kind="stable")]
            record: dict[str, Any] = {ENTITY_NAME: entity, TIME: int(target)}
            for slug in slugs:
                tolerance = float(tolerances.get(slug, default_tolerance))
                valid = positions[~missing[slug][positions]]
                record[slug] = None
                record[slug + ORIGINAL_TIME_SUFFIX] = None
                if valid.size == 0:
                    continue
                distance = np.abs(times[valid] - float(target))
                j = int(np.argmin(distance))
                if distance[j] <= tolerance:
                    record[slug] = values[slug][valid[j]]
                    record[slug + ORIGINAL_TIME_SUFFIX] = original[slug][valid[j]]
            records.append(record)

        columns = [ENTITY_NAME, TIME] + slugs + [s + ORIGINAL_TIME_SUFFIX for s in slugs]
        out = pd.DataFrame.from_records(records, columns=columns)
        for slug in slugs:
            if pd.api.types.is_numeric_dtype(frame[slug]):
                out[slug] = pd.to_numeric(out[slug], errors="coerce")
            out[slug + ORIGINAL_TIME_SUFFIX] = pd.to_numeric(out[slug + ORIGINAL_TIME_SUFFIX], errors="coerce")
        return self._with(out)

    def _with(self, frame: pd.DataFrame) -> "ChartTable":
        table = ChartTable.__new__(ChartTable)
        table._frame = frame.reset_index(drop=True)
        return table

    def __len__(self) -> int:
        return len(self._frame)


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (float, np.floating)):
        return not np.isfinite(value)
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False
