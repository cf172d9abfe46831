from __future__ import annotations

from dataclasses import dataclass, field
import math
from typing import Any
from uuid import uuid4

from kpi_tracker.domain.constants import (
    DEFAULT_EXPENSE,
    DEFAULT_STATUS,
    DEFAULT_TARGET_KPI,
    DEFAULT_WEIGHT_LEVEL,
    TaskStatus,
    WeightLevel,
)


def generate_id() -> str:
    return uuid4().hex[:12]


def _to_float(value: Any) -> float | None:
    if value in (None, "") or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def _minutes(value: Any) -> float:
    number = _to_float(value)
    if number is None or number < 0:
        return 0.0
    return number


def _target(value: Any) -> int:
    number = _to_float(value)
    if number is None:
        return DEFAULT_TARGET_KPI
    return max(0, min(100, int(number)))


def parse_weight_level(value: Any) -> WeightLevel:
    if isinstance(value, WeightLevel):
        return value
    try:
        return WeightLevel(str(value))
    except ValueError:
        return DEFAULT_WEIGHT_LEVEL


def parse_status(value: Any) -> TaskStatus:
    if isinstance(value, TaskStatus):
        return value
    try:
        return TaskStatus(str(value))
    except ValueError:
        return DEFAULT_STATUS


@dataclass
class Category:
    id: str
    name: str
    color: str

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> Category:
        return cls(
            id=str(payload.get("id") or generate_id()),
            name=str(payload.get("name") or ""),
            color=str(payload.get("color") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "color": self.color}


@dataclass
class SubTask:
    id: str
    name: str = ""
    weight_level: WeightLevel = DEFAULT_WEIGHT_LEVEL
    status: TaskStatus = DEFAULT_STATUS
    time_estimated: float = 0.0
    time_actual: float = 0.0

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> SubTask:
        return cls(
            id=str(payload.get("id") or generate_id()),
            name=str(payload.get("name") or ""),
            weight_level=parse_weight_level(payload.get("weightLevel")),
            status=parse_status(payload.get("status")),
            time_estimated=_minutes(payload.get("timeEstimated")),
            time_actual=_minutes(payload.get("timeActual")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "weightLevel": self.weight_level.value,
            "status": self.status.value,
            "timeEstimated": self.time_estimated,
            "timeActual": self.time_actual,
        }


@dataclass
class Task:
    """A day's task. Once it has sub-tasks, only those are scored."""

    id: str
    name: str = ""
    category_id: str | None = None
    weight_level: WeightLevel = DEFAULT_WEIGHT_LEVEL
    status: TaskStatus = DEFAULT_STATUS
    time_estimated: float = 0.0
    time_actual: float = 0.0
    sub_tasks: list[SubTask] = field(default_factory=list)

    @property
    def is_container(self) -> bool:
        return len(self.sub_tasks) > 0

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> Task:
        raw_subtasks = payload.get("subTasks")
        if not isinstance(raw_subtasks, list):
            raw_subtasks = []
        return cls(
            id=str(payload.get("id") or generate_id()),
            name=str(payload.get("name") or ""),
            category_id=payload.get("categoryId") or None,
            weight_level=parse_weight_level(payload.get("weightLevel")),
            status=parse_status(payload.get("status")),
            time_estimated=_minutes(payload.get("timeEstimated")),
            time_actual=_minutes(payload.get("timeActual")),
            sub_tasks=[SubTask.from_dict(sub) for sub in raw_subtasks if isinstance(sub, dict)],
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "weightLevel": self.weight_level.value,
            "status": self.status.value,
            "timeEstimated": self.time_estimated,
            "timeActual": self.time_actual,
            "subTasks": [sub.to_dict() for sub in self.sub_tasks],
        }
        if self.category_id:
            payload["categoryId"] = self.category_id
        return payload


@dataclass
class DayData:
    """
    One calendar day of tasks.

    ``actual_kpi`` is a cache of the scoring engine output; repositories
    overwrite it on every save.
    """

    date: str
    target_kpi: int = DEFAULT_TARGET_KPI
    expense: float = DEFAULT_EXPENSE
    tasks: list[Task] = field(default_factory=list)
    actual_kpi: float = 0.0

    @classmethod
    def empty(cls, date_key: str) -> DayData:
        return cls(date=date_key)

    @classmethod
    def from_dict(cls, payload: dict[str, Any], date_key: str | None = None) -> DayData:
        raw_tasks = payload.get("tasks")
        if not isinstance(raw_tasks, list):
            raw_tasks = []
        expense = _to_float(payload.get("expense"))
        actual = _to_float(payload.get("actualKpi"))
        return cls(
            date=str(date_key or payload.get("date") or ""),
            target_kpi=_target(payload.get("targetKpi")),
            expense=expense if expense is not None and expense >= 0 else DEFAULT_EXPENSE,
            tasks=[Task.from_dict(task) for task in raw_tasks if isinstance(task, dict)],
            actual_kpi=actual if actual is not None else 0.0,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "targetKpi": self.target_kpi,
            "expense": self.expense,
            "tasks": [task.to_dict() for task in self.tasks],
            "actualKpi": self.actual_kpi,
        }
