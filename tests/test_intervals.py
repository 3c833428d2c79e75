from __future__ import annotations

import unittest
from datetime import datetime, timedelta, timezone

from worktrack.domain import Interval
from worktrack.errors import IntervalAlreadyOpen, InvalidRange, NoOpenInterval
from worktrack.services.intervals import close_if_open, close_interval, is_open, open_interval

T0 = datetime(2025, 6, 2, 10, 0, tzinfo=timezone.utc)


class IntervalTrackerTests(unittest.TestCase):
    def test_empty_sequence_is_not_open(self) -> None:
        self.assertFalse(is_open(()))

    def test_open_appends_interval_without_end(self) -> None:
        sequence = open_interval((), now=T0)

        self.assertEqual(sequence, (Interval(start=T0),))
        self.assertTrue(is_open(sequence))

    def test_open_twice_raises(self) -> None:
        sequence = open_interval((), now=T0)

        with self.assertRaises(IntervalAlreadyOpen) as exc:
            open_interval(sequence, now=T0 + timedelta(minutes=1))
        self.assertEqual(exc.exception.code, "INTERVAL_ALREADY_OPEN")
        self.assertEqual(exc.exception.status_code, 409)

    def test_close_returns_elapsed_minutes(self) -> None:
        sequence = open_interval((), now=T0)

        closed, minutes = close_interval(sequence, now=T0 + timedelta(minutes=15, seconds=30))

        self.assertAlmostEqual(minutes, 15.5)
        self.assertEqual(closed[-1].end, T0 + timedelta(minutes=15, seconds=30))
        self.assertFalse(is_open(closed))

    def test_close_without_open_interval_raises(self) -> None:
        closed = (Interval(start=T0, end=T0 + timedelta(minutes=5)),)

        with self.assertRaises(NoOpenInterval):
            close_interval(closed, now=T0 + timedelta(minutes=10))
        with self.assertRaises(NoOpenInterval):
            close_interval((), now=T0)

    def test_close_before_start_is_rejected(self) -> None:
        sequence = open_interval((), now=T0)

        with self.assertRaises(InvalidRange):
            close_interval(sequence, now=T0 - timedelta(seconds=1))

    def test_only_trailing_interval_is_touched(self) -> None:
        first = Interval(start=T0, end=T0 + timedelta(minutes=10))
        sequence = open_interval((first,), now=T0 + timedelta(minutes=30))

        closed, minutes = close_interval(sequence, now=T0 + timedelta(minutes=40))

        self.assertEqual(closed[0], first)
        self.assertEqual(len(closed), 2)
        self.assertAlmostEqual(minutes, 10.0)
        self.assertEqual(sum(1 for item in closed if item.end is None), 0)

    def test_close_if_open_is_noop_for_closed_sequence(self) -> None:
        closed = (Interval(start=T0, end=T0 + timedelta(minutes=5)),)

        sequence, minutes = close_if_open(closed, now=T0 + timedelta(hours=1))

        self.assertIs(sequence, closed)
        self.assertEqual(minutes, 0.0)


if __name__ == "__main__":
    unittest.main()
