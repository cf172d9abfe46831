import io
import json
import sys
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from kpi_tracker.cli import backup as cli
from kpi_tracker.data.db import connect, init_db
from kpi_tracker.data.repositories import DayRepository
from kpi_tracker.domain.constants import TaskStatus
from kpi_tracker.domain.models import DayData, Task


class BackupCliTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.db_path = self.tmp / "app.db"
        con = connect(self.db_path)
        init_db(con)
        DayRepository(con).save_day(
            DayData(date="2024-08-01", tasks=[Task(id="t", status=TaskStatus.DONE)])
        )
        con.close()

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _main(self, *args: str) -> int:
        return cli.main(["--db", str(self.db_path), *args])

    def test_export_then_import(self) -> None:
        out = self.tmp / "backup.json"
        self.assertEqual(self._main("export", "--output", str(out)), 0)
        document = json.loads(out.read_text(encoding="utf-8"))
        self.assertEqual(document["data"]["2024-08-01"]["actualKpi"], 100.0)

        self.assertEqual(self._main("clear", "--yes"), 0)
        self.assertEqual(self._main("import", str(out)), 0)

        con = connect(self.db_path)
        try:
            self.assertEqual(list(DayRepository(con).get_all_days()), ["2024-08-01"])
        finally:
            con.close()

    def test_invalid_import_fails(self) -> None:
        bad = self.tmp / "bad.json"
        bad.write_text('{"data": {}}', encoding="utf-8")
        with self.assertLogs("kpi_tracker.cli.backup", level="ERROR"):
            self.assertEqual(self._main("import", str(bad)), 1)

    def test_missing_import_file_fails(self) -> None:
        with self.assertLogs("kpi_tracker.cli.backup", level="ERROR"):
            self.assertEqual(self._main("import", str(self.tmp / "nope.json")), 1)

    def test_clear_requires_confirmation(self) -> None:
        with self.assertLogs("kpi_tracker.cli.backup", level="ERROR"):
            self.assertEqual(self._main("clear"), 1)

    def test_summary_prints_statistics(self) -> None:
        buffer = io.StringIO()
        with redirect_stdout(buffer):
            self.assertEqual(self._main("summary", "--range", "all"), 0)
        output = buffer.getvalue()
        self.assertIn("Tracked days:      1", output)
        self.assertIn("Average KPI:       100.0%", output)


if __name__ == "__main__":
    unittest.main()
