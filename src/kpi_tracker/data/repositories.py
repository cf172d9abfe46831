from __future__ import annotations

import json
import logging
import sqlite3
from typing import Any

from kpi_tracker.data.db import CATEGORIES_KEY, DAYS_KEY, read_value, write_value
from kpi_tracker.domain.constants import DEFAULT_CATEGORIES
from kpi_tracker.domain.models import Category, DayData, generate_id
from kpi_tracker.services.scoring import compute_kpi

LOGGER = logging.getLogger(__name__)


def _load_json_entry(con: sqlite3.Connection, key: str, expected: type) -> Any:
    try:
        raw = read_value(con, key)
    except sqlite3.Error as exc:
        LOGGER.warning("Could not read '%s': %s", key, exc)
        return None
    if raw is None:
        return None
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        LOGGER.warning("Ignoring corrupted entry '%s': %s", key, exc)
        return None
    if not isinstance(payload, expected):
        LOGGER.warning(
            "Ignoring entry '%s': expected %s, got %s",
            key,
            expected.__name__,
            type(payload).__name__,
        )
        return None
    return payload


def _dump_json(payload: Any) -> str:
    return json.dumps(payload, ensure_ascii=False)


class DayRepository:
    def __init__(self, con: sqlite3.Connection) -> None:
        self.con = con

    def _load_raw(self) -> dict[str, Any]:
        return _load_json_entry(self.con, DAYS_KEY, dict) or {}

    def get_day(self, date_key: str) -> DayData:
        payload = self._load_raw().get(date_key)
        if not isinstance(payload, dict):
            return DayData.empty(date_key)
        return DayData.from_dict(payload, date_key=date_key)

    def get_all_days(self) -> dict[str, DayData]:
        days: dict[str, DayData] = {}
        for date_key, payload in self._load_raw().items():
            if not isinstance(payload, dict):
                LOGGER.warning("Skipping malformed day record '%s'", date_key)
                continue
            days[date_key] = DayData.from_dict(payload, date_key=date_key)
        return days

    def save_day(self, day: DayData) -> DayData:
        data = self._load_raw()
        day.actual_kpi = compute_kpi(day.tasks)
        data[day.date] = day.to_dict()
        with self.con:
            write_value(self.con, DAYS_KEY, _dump_json(data))
        LOGGER.info("Saved %s (KPI %.2f)", day.date, day.actual_kpi)
        return day

    def delete_day(self, date_key: str) -> bool:
        data = self._load_raw()
        if date_key not in data:
            return False
        data.pop(date_key)
        with self.con:
            write_value(self.con, DAYS_KEY, _dump_json(data))
        return True


class CategoryRepository:
    def __init__(self, con: sqlite3.Connection) -> None:
        self.con = con

    def list_categories(self) -> list[Category]:
        payload = _load_json_entry(self.con, CATEGORIES_KEY, list)
        if payload is not None:
            return [Category.from_dict(row) for row in payload if isinstance(row, dict)]

        defaults = [
            Category(id=generate_id(), name=name, color=color)
            for name, color in DEFAULT_CATEGORIES
        ]
        self.save_categories(defaults)
        return defaults

    def save_categories(self, categories: list[Category]) -> None:
        with self.con:
            write_value(
                self.con,
                CATEGORIES_KEY,
                _dump_json([category.to_dict() for category in categories]),
            )

    def create_category(self, name: str, color: str) -> Category:
        clean_name = (name or "").strip()
        if not clean_name:
            raise ValueError("Le nom de la catégorie est obligatoire.")
        category = Category(id=generate_id(), name=clean_name, color=color)
        categories = self.list_categories()
        categories.append(category)
        self.save_categories(categories)
        return category

    def delete_category(self, category_id: str) -> bool:
        categories = self.list_categories()
        remaining = [category for category in categories if category.id != category_id]
        if len(remaining) == len(categories):
            return False
        self.save_categories(remaining)
        return True
