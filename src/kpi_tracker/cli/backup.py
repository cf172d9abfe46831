from __future__ import annotations

import argparse
from datetime import date
import logging
from pathlib import Path
import sqlite3
import sys

from kpi_tracker.data.backup import (
    InvalidFormatError,
    backup_filename,
    clear_all,
    export_json,
    import_json,
)
from kpi_tracker.data.db import connect, init_db, resolve_db_path
from kpi_tracker.data.repositories import CategoryRepository, DayRepository
from kpi_tracker.domain.constants import RANGE_OPTIONS
from kpi_tracker.services.aggregation import build_dashboard

LOGGER = logging.getLogger(__name__)


def _get_db_connection(db_path: str | None = None) -> sqlite3.Connection:
    con = connect(Path(db_path) if db_path else resolve_db_path())
    init_db(con)
    return con


def _run_export(con: sqlite3.Connection, output: str | None) -> int:
    target = Path(output) if output else Path(backup_filename(date.today()))
    target.write_text(export_json(con), encoding="utf-8")
    LOGGER.info("Backup written to %s", target)
    return 0


def _run_import(con: sqlite3.Connection, source: str) -> int:
    path = Path(source)
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        LOGGER.error("Cannot read %s: %s", path, exc)
        return 1
    try:
        import_json(con, content)
    except InvalidFormatError as exc:
        LOGGER.error("Import rejected: %s", exc)
        return 1
    return 0


def _run_clear(con: sqlite3.Connection, confirmed: bool) -> int:
    if not confirmed:
        LOGGER.error("Refusing to erase data without --yes.")
        return 1
    clear_all(con)
    return 0


def _run_summary(con: sqlite3.Connection, range_key: str) -> int:
    days = DayRepository(con).get_all_days()
    categories = CategoryRepository(con).list_categories()
    dashboard = build_dashboard(days, categories, range_key)
    summary = dashboard["summary"]

    print(f"Tracked days:      {summary['tracked_days']}")
    print(f"Average KPI:       {summary['average_kpi']:.1f}%")
    print(f"Targets reached:   {summary['success_rate']:.0f}%")
    print(f"Total expense:     {summary['total_expense']:.2f}")
    print(
        "Time est./actual:  "
        f"{summary['total_time_estimated_hours']:.1f}h / {summary['total_time_actual_hours']:.1f}h"
    )
    if dashboard["categories"]:
        print("")
        for row in dashboard["categories"]:
            print(f"  {row['name']:<20} {row['performance']:6.1f}%  ({row['volume']} items)")
    for entry in dashboard["trend"]:
        LOGGER.debug("%s", entry)
    return 0


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kpi-tracker",
        description="Back up, restore and summarize KPI tracker data.",
    )
    parser.add_argument("--db", help="SQLite database path (default: KPI_TRACKER_DB_PATH).")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    sub = parser.add_subparsers(dest="command", required=True)

    export_parser = sub.add_parser("export", help="Write a JSON backup.")
    export_parser.add_argument("--output", help="Target file (default: kpi-master-backup-<today>.json).")

    import_parser = sub.add_parser("import", help="Replace all data with a JSON backup.")
    import_parser.add_argument("path", help="Backup file to import.")

    clear_parser = sub.add_parser("clear", help="Erase every day record and category.")
    clear_parser.add_argument("--yes", action="store_true", help="Confirm the reset.")

    summary_parser = sub.add_parser("summary", help="Print dashboard statistics.")
    summary_parser.add_argument("--range", dest="range_key", choices=list(RANGE_OPTIONS), default="7")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(message)s",
    )

    con = _get_db_connection(args.db)
    try:
        if args.command == "export":
            return _run_export(con, args.output)
        if args.command == "import":
            return _run_import(con, args.path)
        if args.command == "clear":
            return _run_clear(con, args.yes)
        return _run_summary(con, args.range_key)
    finally:
        con.close()


if __name__ == "__main__":
    sys.exit(main())
