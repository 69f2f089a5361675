import tempfile
import unittest
from pathlib import Path
from zoneinfo import ZoneInfo

from frontdesk.core.filesystem_utils import (
    format_file_size,
    list_snapshot_files,
    photo_upload_name,
    safe_filename_in_dir,
)


class FileUtilsTests(unittest.TestCase):
    def test_format_file_size(self):
        self.assertEqual(format_file_size(10), "10 B")
        self.assertEqual(format_file_size(1024), "1.0 KB")

    def test_list_snapshot_files_newest_name_first(self):
        with tempfile.TemporaryDirectory() as tmp:
            base = Path(tmp)
            (base / "database-2024-01-01.db").write_text("a", encoding="utf-8")
            (base / "database-2024-01-03.db").write_text("bb", encoding="utf-8")
            (base / "notes.txt").write_text("x", encoding="utf-8")
            items = list_snapshot_files(base, "database-*.db", ZoneInfo("UTC"))
            self.assertEqual(
                [item["name"] for item in items],
                ["database-2024-01-03.db", "database-2024-01-01.db"],
            )
            self.assertEqual(items[0]["size_bytes"], 2)

    def test_list_snapshot_files_missing_dir(self):
        self.assertEqual(list_snapshot_files(Path("/nonexistent/backups"), "*.db", ZoneInfo("UTC")), [])

    def test_photo_upload_name(self):
        self.assertEqual(photo_upload_name("Me Photo.PNG", now=1700000000.5), "photo-1700000000500.png")
        self.assertIsNone(photo_upload_name("script.sh"))
        self.assertIsNone(photo_upload_name(""))

    def test_safe_filename_in_dir_rejects_traversal(self):
        with tempfile.TemporaryDirectory() as tmp:
            base = Path(tmp)
            (base / "photo-1.png").write_bytes(b"x")
            self.assertEqual(safe_filename_in_dir(base, "photo-1.png"), "photo-1.png")
            self.assertIsNone(safe_filename_in_dir(base, "../photo-1.png"))
            self.assertIsNone(safe_filename_in_dir(base, "missing.png"))


if __name__ == "__main__":
    unittest.main()
