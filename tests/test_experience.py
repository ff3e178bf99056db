import unittest
from decimal import Decimal

from domain.errors import InvalidAmountError
from domain.experience import (
    LOW_MAX,
    MID_MAX,
    level_progress_from_total,
    points_to_next_level,
    points_to_reach_level,
    total_from_level_progress,
)


class PointsToReachLevelTests(unittest.TestCase):
    def test_known_values_in_each_regime(self):
        self.assertEqual(points_to_reach_level(0), 0)
        self.assertEqual(points_to_reach_level(1), 7)
        self.assertEqual(points_to_reach_level(16), 352)
        self.assertEqual(points_to_reach_level(17), 394)
        self.assertEqual(points_to_reach_level(30), 1395)
        self.assertEqual(points_to_reach_level(31), 1507)
        self.assertEqual(points_to_reach_level(32), 1628)
        self.assertEqual(points_to_reach_level(50), 5345)

    def test_strictly_increasing(self):
        previous = points_to_reach_level(0)
        for level in range(1, 200):
            current = points_to_reach_level(level)
            self.assertGreater(current, previous, level)
            previous = current

    def test_next_level_cost_matches_difference(self):
        for level in range(0, 100):
            self.assertEqual(
                points_to_next_level(level),
                points_to_reach_level(level + 1) - points_to_reach_level(level),
                level,
            )

    def test_next_level_regime_edges(self):
        self.assertEqual(points_to_next_level(LOW_MAX - 1), 37)
        self.assertEqual(points_to_next_level(LOW_MAX), 42)
        self.assertEqual(points_to_next_level(MID_MAX - 1), 112)
        self.assertEqual(points_to_next_level(MID_MAX), 121)


class LevelProgressTests(unittest.TestCase):
    def test_zero_total(self):
        self.assertEqual(level_progress_from_total(0), (0, Decimal(0)))

    def test_exact_level_boundaries_have_zero_progress(self):
        for level in (1, 15, 16, 17, 30, 31, 32, 60):
            got_level, progress = level_progress_from_total(points_to_reach_level(level))
            self.assertEqual(got_level, level)
            self.assertEqual(progress, 0)

    def test_level_seventeen_after_regime_switch(self):
        level, progress = level_progress_from_total(points_to_reach_level(17))
        self.assertEqual(level, 17)
        self.assertEqual(progress, 0)

    def test_mid_level_progress(self):
        level, progress = level_progress_from_total(10)
        self.assertEqual(level, 1)
        self.assertTrue(Decimal(0) < progress < Decimal(1))

    def test_non_decreasing(self):
        previous = level_progress_from_total(0)
        for total in range(1, 3000):
            current = level_progress_from_total(total)
            self.assertGreaterEqual(current, previous, total)
            previous = current

    def test_negative_total_rejected(self):
        with self.assertRaises(InvalidAmountError):
            level_progress_from_total(-1)


class RoundTripTests(unittest.TestCase):
    def test_total_round_trips_within_one_point(self):
        for total in range(0, 6000):
            level, progress = level_progress_from_total(total)
            self.assertLessEqual(abs(total_from_level_progress(level, progress) - total), 1, total)

    def test_round_trip_is_exact_below_level_sixteen(self):
        for total in range(0, points_to_reach_level(LOW_MAX) + 1):
            level, progress = level_progress_from_total(total)
            self.assertEqual(total_from_level_progress(level, progress), total)

    def test_level_progress_round_trip(self):
        for level in (0, 5, 16, 20, 31, 40):
            for progress in ("0", "0.25", "0.5", "0.75"):
                total = total_from_level_progress(level, Decimal(progress))
                got_level, got_progress = level_progress_from_total(total)
                self.assertEqual(got_level, level)
                self.assertLessEqual(
                    abs(total_from_level_progress(got_level, got_progress) - total), 1
                )

    def test_accepts_float_progress(self):
        self.assertEqual(total_from_level_progress(1, 0.5), 7 + 5)


if __name__ == "__main__":
    unittest.main()
