from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Tuple

from .axes import date_label, slot_instant, time_label

EMPTY = "-"
CORNER_LABEL = "Time"


@dataclass(frozen=True)
class Cell:
    value: str
    is_header_row: bool = False
    is_header_column: bool = False

    @property
    def is_data(self) -> bool:
        return not (self.is_header_row or self.is_header_column) and self.value != EMPTY


@dataclass(frozen=True)
class SampleRecord:
    """One stored draw: an instant plus one value per positional head."""
    ts: dt.datetime
    values: Tuple[str, ...]


Grid = Tuple[Tuple[Cell, ...], ...]
SampleMap = Dict[dt.datetime, str]


def _key(ts: dt.datetime) -> dt.datetime:
    return ts.astimezone(dt.timezone.utc)


def collect_samples(categories: Sequence[str], records: Iterable[SampleRecord]) -> Dict[str, SampleMap]:
    """
    Spread positional record values over the category list.

    values[i] belongs to categories[i]. Extra values are dropped and short
    records leave the trailing categories without a sample at that instant.
    """
    out: Dict[str, SampleMap] = {c: {} for c in categories}
    for rec in records:
        if not rec.values:
            continue
        key = _key(rec.ts)
        for idx, value in enumerate(rec.values[:len(categories)]):
            out[categories[idx]][key] = value
    return out


def build_grid(
    category: str,
    sample_map: SampleMap,
    date_axis: Sequence[dt.date],
    time_axis: Sequence[dt.time],
    tz: dt.tzinfo,
) -> Grid:
    header: List[Cell] = [Cell(CORNER_LABEL, is_header_row=True, is_header_column=True)]
    header += [Cell(date_label(d), is_header_row=True) for d in date_axis]

    rows: List[Tuple[Cell, ...]] = [tuple(header)]
    for t in time_axis:
        row = [Cell(time_label(t), is_header_column=True)]
        for d in date_axis:
            row.append(Cell(sample_map.get(slot_instant(d, t, tz), EMPTY)))
        rows.append(tuple(row))
    return tuple(rows)


@dataclass(frozen=True)
class GridSet:
    """Per-category grids sharing one pair of axes. Read-only once built."""
    categories: Tuple[str, ...]
    grids: Dict[str, Grid]
    date_axis: Tuple[dt.date, ...]
    time_axis: Tuple[dt.time, ...]

    @property
    def row_count(self) -> int:
        return len(self.time_axis) + 1

    @property
    def column_count(self) -> int:
        return len(self.date_axis) + 1

    def __contains__(self, category: object) -> bool:
        return category in self.grids

    def __getitem__(self, category: str) -> Grid:
        return self.grids[category]


def build_grid_set(
    categories: Sequence[str],
    sample_maps: Dict[str, SampleMap],
    date_axis: Sequence[dt.date],
    time_axis: Sequence[dt.time],
    tz: dt.tzinfo,
) -> GridSet:
    grids = {
        c: build_grid(c, sample_maps.get(c, {}), date_axis, time_axis, tz)
        for c in categories
    }
    return GridSet(
        categories=tuple(categories),
        grids=grids,
        date_axis=tuple(date_axis),
        time_axis=tuple(time_axis),
    )
