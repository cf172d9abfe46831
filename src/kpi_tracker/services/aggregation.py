from __future__ import annotations

from collections import defaultdict
from typing import Any, Mapping

import pandas as pd

from kpi_tracker.domain.constants import (
    RANGE_OPTIONS,
    STATUS_COEFFICIENTS,
    UNCATEGORIZED_COLOR,
    UNCATEGORIZED_LABEL,
)
from kpi_tracker.domain.models import Category, DayData
from kpi_tracker.services.scoring import (
    completion_rate,
    compute_kpi,
    flatten_leaves,
    round_half_up,
)

TREND_COLUMNS = [
    "date",
    "actual_kpi",
    "target_kpi",
    "expense",
    "completion_rate",
    "time_estimated_hours",
    "time_actual_hours",
]


def _range_limit(range_key: str | int | None) -> int | None:
    if range_key is None:
        return None
    if isinstance(range_key, int) and not isinstance(range_key, bool):
        if range_key <= 0:
            raise ValueError(f"Range must be positive, got {range_key}")
        return range_key
    key = str(range_key).strip().lower()
    if key not in RANGE_OPTIONS:
        raise ValueError(f"Unknown range '{range_key}'. Use one of: {', '.join(RANGE_OPTIONS)}")
    return RANGE_OPTIONS[key]


def select_range_dates(days: Mapping[str, DayData], range_key: str | int | None = "7") -> list[str]:
    """
    Chronologically latest recorded dates for a range selector.

    "Last N" means the last N recorded dates, not N calendar days back;
    dates without a record are never filled in.
    """
    sorted_dates = sorted(days)
    limit = _range_limit(range_key)
    if limit is None:
        return sorted_dates
    return sorted_dates[-limit:]


def _trend_entry(day: DayData) -> dict[str, Any]:
    leaves = flatten_leaves(day.tasks)
    minutes_estimated = sum(leaf.time_estimated for leaf in leaves)
    minutes_actual = sum(leaf.time_actual for leaf in leaves)
    return {
        "date": day.date,
        "actual_kpi": compute_kpi(day.tasks),
        "target_kpi": day.target_kpi,
        "expense": day.expense or 0.0,
        "completion_rate": completion_rate(day.tasks),
        "time_estimated_hours": round_half_up(minutes_estimated / 60, 1),
        "time_actual_hours": round_half_up(minutes_actual / 60, 1),
    }


def build_trend_series(
    days: Mapping[str, DayData],
    range_key: str | int | None = "7",
) -> list[dict[str, Any]]:
    series: list[dict[str, Any]] = []
    for date_key in select_range_dates(days, range_key):
        entry = _trend_entry(days[date_key])
        entry["date"] = date_key
        series.append(entry)
    return series


def build_category_rollup(
    days: Mapping[str, DayData],
    categories: list[Category],
    range_key: str | int | None = "7",
    include_uncategorized: bool = False,
) -> list[dict[str, Any]]:
    """
    Per-category completion performance over the selected range.

    Leaves whose task points at a missing category are dropped unless
    ``include_uncategorized`` is set, in which case they are reported in a
    trailing "Sans catégorie" bucket.
    """
    known_ids = {category.id for category in categories}
    stats: dict[str, dict[str, float]] = defaultdict(lambda: {"total_score": 0.0, "count": 0})
    orphan = {"total_score": 0.0, "count": 0}

    for date_key in select_range_dates(days, range_key):
        for leaf in flatten_leaves(days[date_key].tasks):
            coefficient = STATUS_COEFFICIENTS[leaf.status]
            if leaf.category_id and leaf.category_id in known_ids:
                bucket = stats[leaf.category_id]
            else:
                bucket = orphan
            bucket["count"] += 1
            bucket["total_score"] += coefficient

    rollup: list[dict[str, Any]] = []
    for category in categories:
        bucket = stats.get(category.id)
        if not bucket or bucket["count"] == 0:
            continue
        rollup.append(
            {
                "id": category.id,
                "name": category.name,
                "color": category.color,
                "performance": bucket["total_score"] / bucket["count"] * 100,
                "volume": int(bucket["count"]),
            }
        )

    if include_uncategorized and orphan["count"] > 0:
        rollup.append(
            {
                "id": None,
                "name": UNCATEGORIZED_LABEL,
                "color": UNCATEGORIZED_COLOR,
                "performance": orphan["total_score"] / orphan["count"] * 100,
                "volume": int(orphan["count"]),
            }
        )
    return rollup


def summarize_trend(series: list[dict[str, Any]]) -> dict[str, Any]:
    if not series:
        return {
            "tracked_days": 0,
            "average_kpi": 0.0,
            "success_rate": 0.0,
            "total_expense": 0.0,
            "total_time_estimated_hours": 0.0,
            "total_time_actual_hours": 0.0,
        }
    count = len(series)
    success_days = sum(1 for entry in series if entry["actual_kpi"] >= entry["target_kpi"])
    return {
        "tracked_days": count,
        "average_kpi": sum(entry["actual_kpi"] for entry in series) / count,
        "success_rate": success_days / count * 100,
        "total_expense": round_half_up(sum(entry["expense"] for entry in series), 2),
        "total_time_estimated_hours": round_half_up(
            sum(entry["time_estimated_hours"] for entry in series), 1
        ),
        "total_time_actual_hours": round_half_up(
            sum(entry["time_actual_hours"] for entry in series), 1
        ),
    }


def build_dashboard(
    days: Mapping[str, DayData],
    categories: list[Category],
    range_key: str | int | None = "7",
    include_uncategorized: bool = False,
) -> dict[str, Any]:
    series = build_trend_series(days, range_key)
    return {
        "trend": series,
        "categories": build_category_rollup(
            days,
            categories,
            range_key,
            include_uncategorized=include_uncategorized,
        ),
        "summary": summarize_trend(series),
    }


def trend_frame(series: list[dict[str, Any]]) -> pd.DataFrame:
    if not series:
        return pd.DataFrame(columns=TREND_COLUMNS + ["display_date"])
    df = pd.DataFrame(series, columns=TREND_COLUMNS)
    df["date"] = pd.to_datetime(df["date"], errors="coerce")
    df["display_date"] = df["date"].dt.strftime("%d/%m")
    return df
