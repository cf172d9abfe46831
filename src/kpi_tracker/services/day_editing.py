from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Any

from kpi_tracker.domain.constants import DEFAULT_WEIGHT_LEVEL, TaskStatus, WeightLevel
from kpi_tracker.domain.models import DayData, SubTask, Task, generate_id


def parse_date_key(value: Any) -> date | None:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


def previous_day(date_key: str) -> str:
    parsed = parse_date_key(date_key)
    if parsed is None:
        raise ValueError(f"Invalid date key '{date_key}' (expected YYYY-MM-DD).")
    return (parsed - timedelta(days=1)).isoformat()


def new_task(
    name: str = "",
    weight_level: WeightLevel = DEFAULT_WEIGHT_LEVEL,
    category_id: str | None = None,
) -> Task:
    return Task(
        id=generate_id(),
        name=name,
        category_id=category_id,
        weight_level=weight_level,
        status=TaskStatus.NEUTRAL,
    )


def new_subtask(name: str = "", weight_level: WeightLevel = DEFAULT_WEIGHT_LEVEL) -> SubTask:
    return SubTask(
        id=generate_id(),
        name=name,
        weight_level=weight_level,
        status=TaskStatus.NEUTRAL,
    )


def add_task(day: DayData, task: Task) -> Task:
    day.tasks.append(task)
    return task


def remove_task(day: DayData, task_id: str) -> bool:
    remaining = [task for task in day.tasks if task.id != task_id]
    removed = len(remaining) != len(day.tasks)
    day.tasks = remaining
    return removed


def add_subtask(task: Task, sub_task: SubTask) -> SubTask:
    task.sub_tasks.append(sub_task)
    return sub_task


def remove_subtask(task: Task, sub_task_id: str) -> bool:
    remaining = [sub for sub in task.sub_tasks if sub.id != sub_task_id]
    removed = len(remaining) != len(task.sub_tasks)
    task.sub_tasks = remaining
    return removed


def copy_tasks(tasks: list[Task]) -> list[Task]:
    """Clone tasks with fresh ids and every status reset to neutral."""
    return [
        replace(
            task,
            id=generate_id(),
            status=TaskStatus.NEUTRAL,
            sub_tasks=[
                replace(sub, id=generate_id(), status=TaskStatus.NEUTRAL)
                for sub in task.sub_tasks
            ],
        )
        for task in tasks
    ]


def copy_from_previous_day(day: DayData, previous: DayData) -> int:
    if not previous.tasks:
        return 0
    copied = copy_tasks(previous.tasks)
    day.tasks.extend(copied)
    return len(copied)
