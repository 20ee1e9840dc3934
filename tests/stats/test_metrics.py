import unittest
from datetime import datetime, timedelta, timezone

from src.shared.stats.metrics import compute_files_per_s, compute_runtime_s


class TestStatsMetrics(unittest.TestCase):
    def test_compute_runtime_s_returns_zero_without_started_at(self) -> None:
        now = datetime(2026, 1, 13, 12, 0, 0, tzinfo=timezone.utc)
        self.assertEqual(compute_runtime_s(None, None, now=now), 0.0)

    def test_compute_runtime_s_uses_started_at_and_finished_at(self) -> None:
        start = datetime(2026, 1, 13, 12, 0, 0, tzinfo=timezone.utc)
        end = start + timedelta(seconds=2.5)
        self.assertAlmostEqual(compute_runtime_s(start, end), 2.5, places=6)

    def test_compute_runtime_s_treats_naive_as_utc(self) -> None:
        start = datetime(2026, 1, 13, 12, 0, 0)
        end = datetime(2026, 1, 13, 12, 0, 4, tzinfo=timezone.utc)
        self.assertAlmostEqual(compute_runtime_s(start, end), 4.0, places=6)

    def test_compute_files_per_s_formula(self) -> None:
        self.assertEqual(compute_files_per_s(6, 2.0), 3.0)

    def test_compute_files_per_s_zero_runtime(self) -> None:
        self.assertEqual(compute_files_per_s(5, 0.0), 0.0)


if __name__ == "__main__":
    unittest.main()
