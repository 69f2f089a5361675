import threading
import unittest

from frontdesk.state import AppState, REQUIRED_STATE_KEYS, StatusTracker


class StatusTrackerTests(unittest.TestCase):
    def test_defaults(self):
        self.assertEqual(
            StatusTracker().get_status(),
            {"db_ready": False, "last_backup": "N/A", "last_cleanup": "N/A", "last_error": None},
        )

    def test_update_overwrites_and_accepts_new_keys(self):
        tracker = StatusTracker()
        tracker.update_status("db_ready", True)
        tracker.update_status("last_error", "first")
        tracker.update_status("last_error", "second")
        tracker.update_status("custom", 3)
        snapshot = tracker.get_status()
        self.assertTrue(snapshot["db_ready"])
        self.assertEqual(snapshot["last_error"], "second")
        self.assertEqual(snapshot["custom"], 3)

    def test_get_status_returns_a_copy(self):
        tracker = StatusTracker()
        snapshot = tracker.get_status()
        snapshot["db_ready"] = True
        self.assertFalse(tracker.get_status()["db_ready"])

    def test_concurrent_updates(self):
        tracker = StatusTracker()

        def writer(index):
            for count in range(200):
                tracker.update_status(f"worker_{index}", count)
                tracker.get_status()

        threads = [threading.Thread(target=writer, args=(i,)) for i in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        snapshot = tracker.get_status()
        for index in range(4):
            self.assertEqual(snapshot[f"worker_{index}"], 199)


class AppStateTests(unittest.TestCase):
    def _data(self):
        return {key: None for key in REQUIRED_STATE_KEYS}

    def test_missing_member_raises(self):
        data = self._data()
        del data["DB_PATH"]
        with self.assertRaises(KeyError):
            AppState(data)

    def test_unknown_key_rejected(self):
        state = AppState(self._data())
        with self.assertRaises(KeyError):
            state["SOMETHING_ELSE"] = 1
        with self.assertRaises(AttributeError):
            state.something_else = 1

    def test_item_access_and_fixed_members(self):
        state = AppState(self._data())
        state["DB_PATH"] = "/tmp/database.db"
        self.assertEqual(state["DB_PATH"], "/tmp/database.db")
        self.assertEqual(len(state), len(REQUIRED_STATE_KEYS))
        self.assertEqual(list(state), list(REQUIRED_STATE_KEYS))
        with self.assertRaises(TypeError):
            del state["DB_PATH"]


if __name__ == "__main__":
    unittest.main()
