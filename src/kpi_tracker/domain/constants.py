from __future__ import annotations

from enum import Enum


class WeightLevel(str, Enum):
    VERY_HIGH = "VERY_HIGH"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW_MEDIUM = "LOW_MEDIUM"
    LOW = "LOW"


class TaskStatus(str, Enum):
    DONE = "DONE"
    NEUTRAL = "NEUTRAL"
    NOT_DONE = "NOT_DONE"


# Raw values before normalization
WEIGHT_VALUES: dict[WeightLevel, int] = {
    WeightLevel.VERY_HIGH: 40,
    WeightLevel.HIGH: 30,
    WeightLevel.MEDIUM: 15,
    WeightLevel.LOW_MEDIUM: 10,
    WeightLevel.LOW: 5,
}

WEIGHT_LABELS: dict[WeightLevel, str] = {
    WeightLevel.VERY_HIGH: "Très Haute",
    WeightLevel.HIGH: "Haute",
    WeightLevel.MEDIUM: "Moyenne",
    WeightLevel.LOW_MEDIUM: "Assez Faible",
    WeightLevel.LOW: "Faible",
}

STATUS_COEFFICIENTS: dict[TaskStatus, float] = {
    TaskStatus.DONE: 1.0,
    TaskStatus.NEUTRAL: 0.25,
    TaskStatus.NOT_DONE: 0.0,
}

STATUS_LABELS: dict[TaskStatus, str] = {
    TaskStatus.DONE: "Fait",
    TaskStatus.NEUTRAL: "Neutre",
    TaskStatus.NOT_DONE: "Pas Fait",
}

STATUS_COLORS: dict[TaskStatus, str] = {
    TaskStatus.DONE: "#10b981",
    TaskStatus.NEUTRAL: "#eab308",
    TaskStatus.NOT_DONE: "#ef4444",
}

DEFAULT_WEIGHT_LEVEL = WeightLevel.MEDIUM
DEFAULT_STATUS = TaskStatus.NEUTRAL
DEFAULT_TARGET_KPI = 80
DEFAULT_EXPENSE = 0.0

# Max 10 colors for categories
CATEGORY_PALETTE: list[dict[str, str]] = [
    {"name": "Émeraude", "hex": "#10b981"},
    {"name": "Bleu", "hex": "#3b82f6"},
    {"name": "Violet", "hex": "#8b5cf6"},
    {"name": "Rose", "hex": "#ec4899"},
    {"name": "Orange", "hex": "#f97316"},
    {"name": "Jaune", "hex": "#eab308"},
    {"name": "Cyan", "hex": "#06b6d4"},
    {"name": "Rouge", "hex": "#ef4444"},
    {"name": "Indigo", "hex": "#6366f1"},
    {"name": "Gris", "hex": "#64748b"},
]

DEFAULT_CATEGORIES: list[tuple[str, str]] = [
    ("Travail", CATEGORY_PALETTE[1]["hex"]),
    ("Sports", CATEGORY_PALETTE[0]["hex"]),
    ("Dev Perso", CATEGORY_PALETTE[2]["hex"]),
    ("Santé Mentale", CATEGORY_PALETTE[6]["hex"]),
    ("Finance", CATEGORY_PALETTE[5]["hex"]),
]

UNCATEGORIZED_LABEL = "Sans catégorie"
UNCATEGORIZED_COLOR = CATEGORY_PALETTE[9]["hex"]

RANGE_OPTIONS: dict[str, int | None] = {
    "7": 7,
    "30": 30,
    "all": None,
}

RANGE_LABELS: dict[str, str] = {
    "7": "7 Jours",
    "30": "30 Jours",
    "all": "Tout",
}
