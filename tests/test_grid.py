import datetime as dt
import unittest

from chartgrid.axes import build_date_axis, build_time_axis
from chartgrid.grid import EMPTY, SampleRecord, build_grid_set, collect_samples

IST = dt.timezone(dt.timedelta(hours=5, minutes=30))
NOW = dt.datetime(2026, 10, 19, 12, 0, tzinfo=IST)


def make_grid_set(categories, records, n_days=3):
    dates = build_date_axis(NOW, n_days)
    times = build_time_axis()
    maps = collect_samples(categories, records)
    return build_grid_set(categories, maps, dates, times, IST)


class TestGridBuilder(unittest.TestCase):
    def test_sample_lands_only_in_its_category(self):
        rec = SampleRecord(dt.datetime(2026, 10, 19, 8, 30, tzinfo=IST), ("5",))
        gs = make_grid_set(["A", "B", "C"], [rec])
        self.assertEqual(gs["A"][1][1].value, "5")
        self.assertEqual(gs["B"][1][1].value, EMPTY)
        self.assertEqual(gs["C"][1][1].value, EMPTY)

    def test_instant_match_ignores_offset_notation(self):
        # 03:00 UTC is 08:30 in IST
        rec = SampleRecord(dt.datetime(2026, 10, 18, 3, 0, tzinfo=dt.timezone.utc), ("7", "8"))
        gs = make_grid_set(["A", "B"], [rec])
        self.assertEqual(gs["A"][1][2].value, "7")
        self.assertEqual(gs["B"][1][2].value, "8")

    def test_shape_and_headers_identical_across_categories(self):
        gs = make_grid_set(["A", "B", "C"], [], n_days=31)
        for c in gs.categories:
            grid = gs[c]
            self.assertEqual(len(grid), 60)
            self.assertTrue(all(len(row) == 32 for row in grid))
            self.assertEqual(grid[0], gs["A"][0])
            self.assertEqual([row[0] for row in grid], [row[0] for row in gs["A"]])
        self.assertEqual(gs.row_count, 60)
        self.assertEqual(gs.column_count, 32)

    def test_header_cells(self):
        gs = make_grid_set(["A"], [])
        grid = gs["A"]
        self.assertEqual(grid[0][0].value, "Time")
        self.assertTrue(grid[0][0].is_header_row and grid[0][0].is_header_column)
        self.assertEqual(grid[0][1].value, "19\nOct")
        self.assertTrue(grid[0][1].is_header_row)
        self.assertEqual(grid[1][0].value, "08:30\nAM")
        self.assertTrue(grid[1][0].is_header_column)
        self.assertEqual(grid[-1][0].value, "23:00\nPM")

    def test_off_grid_sample_is_ignored(self):
        rec = SampleRecord(dt.datetime(2026, 10, 19, 8, 37, tzinfo=IST), ("5",))
        gs = make_grid_set(["A"], [rec])
        values = {cell.value for row in gs["A"][1:] for cell in row[1:]}
        self.assertEqual(values, {EMPTY})


class TestCollectSamples(unittest.TestCase):
    def test_short_record_leaves_trailing_categories_empty(self):
        ts = dt.datetime(2026, 10, 19, 9, 0, tzinfo=IST)
        maps = collect_samples(["A", "B", "C"], [SampleRecord(ts, ("1", "2"))])
        self.assertEqual(len(maps["A"]), 1)
        self.assertEqual(len(maps["B"]), 1)
        self.assertEqual(maps["C"], {})

    def test_extra_values_are_dropped(self):
        ts = dt.datetime(2026, 10, 19, 9, 0, tzinfo=IST)
        maps = collect_samples(["A"], [SampleRecord(ts, ("1", "2", "3"))])
        self.assertEqual(list(maps), ["A"])
        self.assertEqual(list(maps["A"].values()), ["1"])

    def test_empty_record_is_skipped(self):
        ts = dt.datetime(2026, 10, 19, 9, 0, tzinfo=IST)
        maps = collect_samples(["A"], [SampleRecord(ts, ())])
        self.assertEqual(maps["A"], {})


if __name__ == "__main__":
    unittest.main()
