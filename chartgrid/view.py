from __future__ import annotations

from dataclasses import dataclass
from typing import List, Protocol

from .grid import GridSet
from .selection import SelectionStore, Snapshot


class InvalidCategoryError(ValueError):
    pass


class Renderer(Protocol):
    def force_redraw(self) -> None: ...


class RevisionCounter:
    """Renderer stand-in for HTTP clients: every redraw bumps the revision."""

    def __init__(self) -> None:
        self.revision = 0

    def force_redraw(self) -> None:
        self.revision += 1


@dataclass(frozen=True)
class GridView:
    category: str
    row_count: int
    column_count: int
    cells: Snapshot
    fixed_row_count: int = 1
    fixed_column_count: int = 1


class ViewController:
    def __init__(self, grid_set: GridSet, selection: SelectionStore) -> None:
        if not grid_set.categories:
            raise InvalidCategoryError("no categories to show")
        self._grids = grid_set
        self._selection = selection
        self._renderers: List[Renderer] = []
        self.active_category = grid_set.categories[0]

    def attach(self, renderer: Renderer) -> None:
        self._renderers.append(renderer)

    def _redraw(self) -> None:
        # renderers do not watch the overlay, they have to be told
        for r in self._renderers:
            r.force_redraw()

    def set_active(self, category: str) -> None:
        if category not in self._grids:
            raise InvalidCategoryError(f"unknown category: {category!r}")
        self.active_category = category
        self._redraw()

    def toggle(self, row: int, col: int) -> bool:
        state = self._selection.toggle(self.active_category, row, col)
        self._redraw()
        return state

    def select_all(self, checked: bool = True) -> None:
        self._selection.select_all(self.active_category, checked)
        self._redraw()

    def snapshot(self) -> GridView:
        return GridView(
            category=self.active_category,
            row_count=self._grids.row_count,
            column_count=self._grids.column_count,
            cells=self._selection.snapshot(self.active_category),
        )
