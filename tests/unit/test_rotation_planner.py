from __future__ import annotations

import math
import unittest

from spinworks.render.planner import plan_rotations


class TestRotationPlanner(unittest.TestCase):
    def test_floor_plus_one(self) -> None:
        plan = plan_rotations(12.3, 5.0)
        self.assertEqual(plan.frames_needed, 3)
        self.assertEqual(plan.frame_duration, 5.0)

    def test_exact_multiple_gets_spare_rotation(self) -> None:
        self.assertEqual(plan_rotations(10.0, 5.0).frames_needed, 3)

    def test_zero_duration_needs_one_rotation(self) -> None:
        self.assertEqual(plan_rotations(0.0, 5.0).frames_needed, 1)

    def test_angular_speed_is_one_turn_per_rotation(self) -> None:
        plan = plan_rotations(60.0, 5.0)
        self.assertAlmostEqual(plan.angular_speed, 2 * math.pi / 5.0)
        self.assertAlmostEqual(plan.angular_speed * plan.frame_duration, 2 * math.pi)

    def test_monotonic_and_covers_audio(self) -> None:
        prev = 0
        d = 0.0
        while d < 1500.0:
            plan = plan_rotations(d, 5.0)
            self.assertGreaterEqual(plan.frames_needed, prev)
            self.assertGreaterEqual(plan.covered_sec, d)
            prev = plan.frames_needed
            d += 0.7

    def test_other_rotation_durations(self) -> None:
        self.assertEqual(plan_rotations(4.0, 2.0).frames_needed, 3)
        self.assertGreaterEqual(plan_rotations(3599.99, 1.8).covered_sec, 3599.99)

    def test_invalid_inputs_raise(self) -> None:
        with self.assertRaises(ValueError):
            plan_rotations(-1.0, 5.0)
        with self.assertRaises(ValueError):
            plan_rotations(float("nan"), 5.0)
        with self.assertRaises(ValueError):
            plan_rotations(10.0, 0.0)


if __name__ == "__main__":
    unittest.main()
