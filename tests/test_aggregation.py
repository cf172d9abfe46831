import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from kpi_tracker.domain.constants import TaskStatus, UNCATEGORIZED_LABEL, WeightLevel
from kpi_tracker.domain.models import Category, DayData, SubTask, Task
from kpi_tracker.services import aggregation as agg


def _task(task_id, status, weight=WeightLevel.MEDIUM, category_id=None, subs=None, est=0.0, act=0.0):
    return Task(
        id=task_id,
        name=task_id,
        category_id=category_id,
        weight_level=weight,
        status=status,
        time_estimated=est,
        time_actual=act,
        sub_tasks=subs or [],
    )


def _day(date_key, tasks=None, target=80, expense=0.0, actual=0.0):
    return DayData(
        date=date_key,
        target_kpi=target,
        expense=expense,
        tasks=tasks or [],
        actual_kpi=actual,
    )


WORK = Category(id="work", name="Travail", color="#3b82f6")
SPORT = Category(id="sport", name="Sports", color="#10b981")
FINANCE = Category(id="finance", name="Finance", color="#eab308")


class RangeSelectionTests(unittest.TestCase):
    def setUp(self) -> None:
        # ten recorded dates with calendar gaps between them
        keys = [
            "2024-01-01",
            "2024-01-03",
            "2024-01-04",
            "2024-01-09",
            "2024-01-10",
            "2024-01-15",
            "2024-01-20",
            "2024-02-01",
            "2024-02-02",
            "2024-03-01",
        ]
        self.days = {key: _day(key) for key in reversed(keys)}
        self.keys = keys

    def test_last_seven_uses_recorded_dates(self) -> None:
        self.assertEqual(agg.select_range_dates(self.days, "7"), self.keys[-7:])

    def test_all_returns_every_date_sorted(self) -> None:
        self.assertEqual(agg.select_range_dates(self.days, "all"), self.keys)

    def test_range_larger_than_store_returns_everything(self) -> None:
        self.assertEqual(agg.select_range_dates(self.days, "30"), self.keys)
        self.assertEqual(agg.select_range_dates(self.days, 3), self.keys[-3:])

    def test_unknown_range_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            agg.select_range_dates(self.days, "14")
        with self.assertRaises(ValueError):
            agg.select_range_dates(self.days, 0)

    def test_trend_series_is_ascending_and_not_synthesized(self) -> None:
        series = agg.build_trend_series(self.days, "all")
        self.assertEqual([entry["date"] for entry in series], self.keys)


class TrendSeriesTests(unittest.TestCase):
    def test_entry_fields(self) -> None:
        tasks = [
            _task(
                "a",
                TaskStatus.NOT_DONE,
                est=600,
                act=600,
                subs=[
                    SubTask(id="a1", status=TaskStatus.DONE, time_estimated=90, time_actual=60),
                    SubTask(id="a2", status=TaskStatus.NEUTRAL, time_estimated=45, time_actual=30),
                ],
            ),
            _task("b", TaskStatus.DONE),
        ]
        days = {"2024-05-01": _day("2024-05-01", tasks, target=70, expense=12.5, actual=1.0)}
        [entry] = agg.build_trend_series(days, "all")

        self.assertEqual(entry["date"], "2024-05-01")
        self.assertEqual(entry["target_kpi"], 70)
        self.assertEqual(entry["expense"], 12.5)
        self.assertAlmostEqual(entry["completion_rate"], 200 / 3)
        # 135 min -> 2.25 h -> 2.3, the container's own 600 min are ignored
        self.assertEqual(entry["time_estimated_hours"], 2.3)
        self.assertEqual(entry["time_actual_hours"], 1.5)
        # stale cached KPI is not trusted
        self.assertEqual(entry["actual_kpi"], 75.0)

    def test_day_without_leaves(self) -> None:
        days = {"2024-05-01": _day("2024-05-01")}
        [entry] = agg.build_trend_series(days, "7")
        self.assertEqual(entry["completion_rate"], 0.0)
        self.assertEqual(entry["actual_kpi"], 0.0)
        self.assertEqual(entry["time_estimated_hours"], 0.0)

    def test_empty_store(self) -> None:
        self.assertEqual(agg.build_trend_series({}, "7"), [])
        self.assertEqual(agg.build_category_rollup({}, [WORK], "all"), [])


class CategoryRollupTests(unittest.TestCase):
    def setUp(self) -> None:
        self.days = {
            "2024-06-01": _day(
                "2024-06-01",
                [
                    _task("w1", TaskStatus.DONE, category_id="work"),
                    _task("w2", TaskStatus.NEUTRAL, category_id="work"),
                    _task("gone", TaskStatus.DONE, category_id="deleted-category"),
                    _task("none", TaskStatus.NOT_DONE),
                ],
            ),
            "2024-06-02": _day(
                "2024-06-02",
                [
                    _task(
                        "s",
                        TaskStatus.NOT_DONE,
                        category_id="sport",
                        subs=[
                            SubTask(id="s1", status=TaskStatus.DONE),
                            SubTask(id="s2", status=TaskStatus.NOT_DONE),
                        ],
                    ),
                ],
            ),
        }

    def test_rollup_follows_category_order_and_skips_empty(self) -> None:
        rollup = agg.build_category_rollup(self.days, [SPORT, FINANCE, WORK], "all")
        self.assertEqual([row["name"] for row in rollup], ["Sports", "Travail"])

        sport, work = rollup
        self.assertEqual(sport["volume"], 2)
        self.assertAlmostEqual(sport["performance"], 50.0)
        self.assertEqual(sport["color"], "#10b981")
        self.assertEqual(work["volume"], 2)
        self.assertAlmostEqual(work["performance"], 62.5)

    def test_dangling_category_is_excluded(self) -> None:
        rollup = agg.build_category_rollup(self.days, [WORK, SPORT], "all")
        self.assertEqual(sum(row["volume"] for row in rollup), 4)
        self.assertNotIn(UNCATEGORIZED_LABEL, [row["name"] for row in rollup])

    def test_uncategorized_bucket_is_opt_in(self) -> None:
        rollup = agg.build_category_rollup(
            self.days, [WORK, SPORT], "all", include_uncategorized=True
        )
        orphan = rollup[-1]
        self.assertEqual(orphan["name"], UNCATEGORIZED_LABEL)
        self.assertIsNone(orphan["id"])
        self.assertEqual(orphan["volume"], 2)
        self.assertAlmostEqual(orphan["performance"], 50.0)

    def test_rollup_respects_range(self) -> None:
        rollup = agg.build_category_rollup(self.days, [WORK, SPORT], 1)
        self.assertEqual([row["name"] for row in rollup], ["Sports"])


class SummaryTests(unittest.TestCase):
    def test_summary_over_series(self) -> None:
        series = [
            {"date": "d1", "actual_kpi": 90.0, "target_kpi": 80, "expense": 10.1,
             "completion_rate": 0.0, "time_estimated_hours": 1.1, "time_actual_hours": 2.0},
            {"date": "d2", "actual_kpi": 50.0, "target_kpi": 80, "expense": 20.2,
             "completion_rate": 0.0, "time_estimated_hours": 2.2, "time_actual_hours": 0.5},
            {"date": "d3", "actual_kpi": 80.0, "target_kpi": 80, "expense": 0.0,
             "completion_rate": 0.0, "time_estimated_hours": 0.0, "time_actual_hours": 0.0},
        ]
        summary = agg.summarize_trend(series)
        self.assertEqual(summary["tracked_days"], 3)
        self.assertAlmostEqual(summary["average_kpi"], 220 / 3)
        self.assertAlmostEqual(summary["success_rate"], 200 / 3)
        self.assertEqual(summary["total_expense"], 30.3)
        self.assertEqual(summary["total_time_estimated_hours"], 3.3)
        self.assertEqual(summary["total_time_actual_hours"], 2.5)

    def test_empty_summary(self) -> None:
        summary = agg.summarize_trend([])
        self.assertEqual(summary["average_kpi"], 0.0)
        self.assertEqual(summary["success_rate"], 0.0)
        self.assertEqual(summary["tracked_days"], 0)

    def test_build_dashboard_bundles_everything(self) -> None:
        days = {"2024-07-01": _day("2024-07-01", [_task("a", TaskStatus.DONE, category_id="work")])}
        dashboard = agg.build_dashboard(days, [WORK], "7")
        self.assertEqual(len(dashboard["trend"]), 1)
        self.assertEqual(dashboard["categories"][0]["performance"], 100.0)
        self.assertEqual(dashboard["summary"]["success_rate"], 100.0)


class TrendFrameTests(unittest.TestCase):
    def test_frame_has_display_dates(self) -> None:
        days = {
            "2024-07-02": _day("2024-07-02"),
            "2024-07-01": _day("2024-07-01"),
        }
        df = agg.trend_frame(agg.build_trend_series(days, "all"))
        self.assertEqual(df["display_date"].tolist(), ["01/07", "02/07"])
        self.assertIn("actual_kpi", df.columns)

    def test_empty_frame(self) -> None:
        df = agg.trend_frame([])
        self.assertTrue(df.empty)
        self.assertIn("display_date", df.columns)


if __name__ == "__main__":
    unittest.main()
