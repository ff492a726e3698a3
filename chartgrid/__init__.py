"""Calendar x time-of-day chart grids for lottery draw heads."""

from .axes import build_date_axis, build_time_axis, days_in_month
from .grid import Cell, GridSet, SampleRecord, build_grid, build_grid_set, collect_samples
from .selection import ComposedCell, InvalidCellError, SelectionStore
from .session import ChartSession, SessionState
from .view import InvalidCategoryError, ViewController

__all__ = [
    "build_date_axis",
    "build_time_axis",
    "days_in_month",
    "Cell",
    "GridSet",
    "SampleRecord",
    "build_grid",
    "build_grid_set",
    "collect_samples",
    "ComposedCell",
    "InvalidCellError",
    "SelectionStore",
    "ChartSession",
    "SessionState",
    "InvalidCategoryError",
    "ViewController",
]
