from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from kpi_tracker.domain.constants import (
    STATUS_COEFFICIENTS,
    WEIGHT_VALUES,
    TaskStatus,
    WeightLevel,
)
from kpi_tracker.domain.models import Task


@dataclass(frozen=True)
class LeafItem:
    task_id: str
    item_id: str
    category_id: str | None
    weight_level: WeightLevel
    status: TaskStatus
    time_estimated: float
    time_actual: float


def round_half_up(value: float, digits: int) -> float:
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def flatten_leaves(tasks: Iterable[Task]) -> list[LeafItem]:
    """
    Resolve a day's task tree into scoring leaves.

    A task with sub-tasks is a pure container: its own weight, status and
    times are dropped and each sub-task becomes a leaf carrying the parent's
    category. A task without sub-tasks is itself the leaf.
    """
    leaves: list[LeafItem] = []
    for task in tasks:
        if task.sub_tasks:
            for sub in task.sub_tasks:
                leaves.append(
                    LeafItem(
                        task_id=task.id,
                        item_id=sub.id,
                        category_id=task.category_id,
                        weight_level=sub.weight_level,
                        status=sub.status,
                        time_estimated=sub.time_estimated,
                        time_actual=sub.time_actual,
                    )
                )
        else:
            leaves.append(
                LeafItem(
                    task_id=task.id,
                    item_id=task.id,
                    category_id=task.category_id,
                    weight_level=task.weight_level,
                    status=task.status,
                    time_estimated=task.time_estimated,
                    time_actual=task.time_actual,
                )
            )
    return leaves


def _total_raw_weight(leaves: list[LeafItem]) -> float:
    return float(sum(WEIGHT_VALUES[leaf.weight_level] for leaf in leaves))


def leaf_weight_shares(tasks: Iterable[Task]) -> dict[str, float]:
    """Percentage of the day carried by each leaf, keyed by leaf item id."""
    leaves = flatten_leaves(tasks)
    total = _total_raw_weight(leaves)
    if total == 0:
        return {leaf.item_id: 0.0 for leaf in leaves}
    return {
        leaf.item_id: WEIGHT_VALUES[leaf.weight_level] / total * 100
        for leaf in leaves
    }


def compute_kpi(tasks: Iterable[Task]) -> float:
    leaves = flatten_leaves(tasks)
    if not leaves:
        return 0.0

    total = _total_raw_weight(leaves)
    if total == 0:
        return 0.0

    score = 0.0
    for leaf in leaves:
        normalized = WEIGHT_VALUES[leaf.weight_level] / total * 100
        score += normalized * STATUS_COEFFICIENTS[leaf.status]

    return round_half_up(score, 2)


def completion_rate(tasks: Iterable[Task]) -> float:
    leaves = flatten_leaves(tasks)
    if not leaves:
        return 0.0
    done = sum(1 for leaf in leaves if leaf.status == TaskStatus.DONE)
    return done / len(leaves) * 100
