from __future__ import annotations

from datetime import date, datetime, timezone
import json
import logging
import sqlite3
from typing import Any

from kpi_tracker.data.db import CATEGORIES_KEY, DAYS_KEY, delete_value, write_value
from kpi_tracker.data.repositories import CategoryRepository, DayRepository

LOGGER = logging.getLogger(__name__)

EXPORT_VERSION = "1.0"


class InvalidFormatError(ValueError):
    """Backup document does not have the expected shape."""


def export_document(con: sqlite3.Connection) -> dict[str, Any]:
    days = DayRepository(con).get_all_days()
    categories = CategoryRepository(con).list_categories()
    return {
        "version": EXPORT_VERSION,
        "exportDate": datetime.now(timezone.utc).isoformat(),
        "data": {date_key: day.to_dict() for date_key, day in sorted(days.items())},
        "categories": [category.to_dict() for category in categories],
    }


def export_json(con: sqlite3.Connection) -> str:
    return json.dumps(export_document(con), ensure_ascii=False, indent=2)


def backup_filename(today: date | None = None) -> str:
    today = today or date.today()
    return f"kpi-master-backup-{today.isoformat()}.json"


def import_document(con: sqlite3.Connection, document: Any) -> None:
    """Replace both stores with the document contents, or change nothing."""
    if (
        not isinstance(document, dict)
        or not isinstance(document.get("data"), dict)
        or not isinstance(document.get("categories"), list)
    ):
        raise InvalidFormatError("Format de fichier invalide ou corrompu.")

    with con:
        write_value(con, DAYS_KEY, json.dumps(document["data"], ensure_ascii=False))
        write_value(con, CATEGORIES_KEY, json.dumps(document["categories"], ensure_ascii=False))
    LOGGER.info(
        "Imported %d day(s) and %d categories",
        len(document["data"]),
        len(document["categories"]),
    )


def import_json(con: sqlite3.Connection, content: str | bytes) -> None:
    try:
        document = json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InvalidFormatError("Format de fichier invalide ou corrompu.") from exc
    import_document(con, document)


def clear_all(con: sqlite3.Connection) -> None:
    with con:
        delete_value(con, DAYS_KEY)
        delete_value(con, CATEGORIES_KEY)
    LOGGER.info("All tracker data erased")
