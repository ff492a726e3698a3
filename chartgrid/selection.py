from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Set, Tuple

from .grid import Cell, GridSet


class InvalidCellError(ValueError):
    pass


@dataclass(frozen=True)
class ComposedCell:
    value: str
    is_header_row: bool
    is_header_column: bool
    selected: bool


Snapshot = Tuple[Tuple[ComposedCell, ...], ...]


class SelectionStore:
    """
    Selection overlay kept beside the grids, one set of (row, col) per category.

    Only data cells holding a value can be selected. The overlay is written by
    toggle() and select_all() and nothing else.
    """

    def __init__(self, grid_set: GridSet) -> None:
        self._grids = grid_set
        self._selected: Dict[str, Set[Tuple[int, int]]] = {c: set() for c in grid_set.categories}

    def _require(self, category: str) -> None:
        if category not in self._grids:
            raise InvalidCellError(f"unknown category: {category!r}")

    def _cell(self, category: str, row: int, col: int) -> Cell:
        self._require(category)
        if not (0 <= row < self._grids.row_count and 0 <= col < self._grids.column_count):
            raise InvalidCellError(f"cell ({row}, {col}) outside the grid")
        return self._grids[category][row][col]

    def toggle(self, category: str, row: int, col: int) -> bool:
        """Flip the bit at (row, col); returns the new state."""
        if not self._cell(category, row, col).is_data:
            return False
        bits = self._selected[category]
        if (row, col) in bits:
            bits.discard((row, col))
            return False
        bits.add((row, col))
        return True

    def select_all(self, category: str, checked: bool = True) -> None:
        self._require(category)
        grid = self._grids[category]
        bits = self._selected[category]
        for r, row in enumerate(grid):
            for c, cell in enumerate(row):
                if not cell.is_data:
                    continue
                if checked:
                    bits.add((r, c))
                else:
                    bits.discard((r, c))

    def is_selected(self, category: str, row: int, col: int) -> bool:
        self._cell(category, row, col)
        return (row, col) in self._selected[category]

    def selected_cells(self, category: str) -> List[Tuple[int, int]]:
        self._require(category)
        return sorted(self._selected[category])

    def snapshot(self, category: str) -> Snapshot:
        self._require(category)
        bits = self._selected[category]
        return tuple(
            tuple(
                ComposedCell(cell.value, cell.is_header_row, cell.is_header_column, (r, c) in bits)
                for c, cell in enumerate(row)
            )
            for r, row in enumerate(self._grids[category])
        )
