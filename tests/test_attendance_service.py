from __future__ import annotations

import unittest
from datetime import date, datetime
from zoneinfo import ZoneInfo

from worktrack.clock import FixedClock
from worktrack.domain import Caller, TaskEntry
from worktrack.errors import (
    AlreadyCheckedIn,
    AlreadyCheckedOut,
    InvalidRange,
    NoActiveCheckIn,
    RecordAlreadyClosed,
    StaleRecord,
)
from worktrack.models import AttendanceStatus, Role, ShiftType
from worktrack.services.attendance import (
    IntervalKind,
    check_in,
    check_out,
    finish_day,
    get_today,
    late_threshold,
    list_attendance,
    start_day,
    toggle_break,
    toggle_interval,
    toggle_namaz,
)
from worktrack.services.intervals import is_open
from worktrack.settings import Settings
from worktrack.stores.memory import InMemoryAttendanceStore

KARACHI = ZoneInfo("Asia/Karachi")
SETTINGS = Settings(
    jwt_secret="",
    late_grace_minutes=60,
    half_day_threshold_hours=4.0,
    default_page_size=10,
    max_page_size=100,
)


def _at(hour: int, minute: int = 0, *, day: int = 2) -> datetime:
    return datetime(2025, 6, day, hour, minute, tzinfo=KARACHI)


class ShiftThresholdTests(unittest.TestCase):
    def test_morning_threshold_is_shift_start_plus_grace(self) -> None:
        threshold = late_threshold(ShiftType.MORNING, date(2025, 6, 2), tzinfo=KARACHI, settings=SETTINGS)

        self.assertEqual(threshold, _at(9, 0))

    def test_exactly_at_threshold_is_present(self) -> None:
        record = start_day(employee_id=1, shift=ShiftType.MORNING, now=_at(9, 0), settings=SETTINGS)

        self.assertEqual(record.status, AttendanceStatus.PRESENT)

    def test_evening_shift_uses_its_own_start(self) -> None:
        early = start_day(employee_id=1, shift=ShiftType.EVENING, now=_at(16, 45), settings=SETTINGS)
        late = start_day(employee_id=1, shift=ShiftType.EVENING, now=_at(17, 5), settings=SETTINGS)

        self.assertEqual(early.status, AttendanceStatus.PRESENT)
        self.assertEqual(late.status, AttendanceStatus.LATE)


class AttendanceDayTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = InMemoryAttendanceStore()
        self.clock = FixedClock(_at(8, 30))

    def test_late_check_in_then_short_day_becomes_half_day(self) -> None:
        self.clock.set(_at(9, 10))
        record = check_in(self.store, employee_id=1, shift=ShiftType.MORNING, clock=self.clock)
        self.assertEqual(record.status, AttendanceStatus.LATE)
        self.assertEqual(record.calendar_date, date(2025, 6, 2))

        self.clock.set(_at(12, 10))
        record = check_out(self.store, employee_id=1, clock=self.clock)

        self.assertAlmostEqual(record.total_hours or 0.0, 3.0, places=6)
        self.assertEqual(record.status, AttendanceStatus.HALF_DAY)

    def test_full_day_keeps_present_status(self) -> None:
        check_in(self.store, employee_id=1, shift=ShiftType.MORNING, reason="on site", clock=self.clock)
        self.clock.set(_at(17, 0))
        tasks = [TaskEntry(name="Payroll", hours_spent=3.5)]

        record = check_out(self.store, employee_id=1, reason="done", tasks_completed=tasks, clock=self.clock)

        self.assertEqual(record.status, AttendanceStatus.PRESENT)
        self.assertAlmostEqual(record.total_hours or 0.0, 8.5)
        self.assertEqual(record.check_in_reason, "on site")
        self.assertEqual(record.check_out_reason, "done")
        self.assertEqual(record.tasks_completed, tuple(tasks))
        self.assertGreaterEqual(record.check_out, record.check_in)

    def test_second_check_in_same_day_is_rejected(self) -> None:
        check_in(self.store, employee_id=1, shift=ShiftType.MORNING, clock=self.clock)
        self.clock.advance(hours=1)

        with self.assertRaises(AlreadyCheckedIn):
            check_in(self.store, employee_id=1, shift=ShiftType.MORNING, clock=self.clock)

    def test_store_rejects_duplicate_day_key(self) -> None:
        record = start_day(employee_id=1, shift=ShiftType.MORNING, now=_at(8, 0), settings=SETTINGS)
        self.store.insert(record)

        with self.assertRaises(AlreadyCheckedIn):
            self.store.insert(record)

    def test_check_out_twice_keeps_first_totals(self) -> None:
        check_in(self.store, employee_id=1, shift=ShiftType.MORNING, clock=self.clock)
        self.clock.set(_at(17, 30))
        first = check_out(self.store, employee_id=1, clock=self.clock)

        self.clock.set(_at(18, 0))
        with self.assertRaises(AlreadyCheckedOut):
            check_out(self.store, employee_id=1, clock=self.clock)

        stored = get_today(self.store, employee_id=1, clock=self.clock)
        self.assertEqual(stored.total_hours, first.total_hours)
        self.assertEqual(stored.check_out, _at(17, 30))

    def test_check_out_without_check_in(self) -> None:
        with self.assertRaises(NoActiveCheckIn) as exc:
            check_out(self.store, employee_id=1, clock=self.clock)
        self.assertEqual(exc.exception.status_code, 404)

    def test_check_out_before_check_in_is_invalid(self) -> None:
        record = start_day(employee_id=1, shift=ShiftType.MORNING, now=_at(8, 0), settings=SETTINGS)

        with self.assertRaises(InvalidRange):
            finish_day(record, now=_at(7, 59), settings=SETTINGS)

    def test_break_opened_and_closed_fifteen_minutes_later(self) -> None:
        check_in(self.store, employee_id=1, shift=ShiftType.MORNING, clock=self.clock)
        self.clock.set(_at(11, 0))
        opened = toggle_break(self.store, employee_id=1, clock=self.clock)
        self.assertTrue(is_open(opened.breaks))

        self.clock.advance(minutes=15)
        closed = toggle_break(self.store, employee_id=1, clock=self.clock)

        self.assertAlmostEqual(closed.total_break_minutes, 15.0)
        self.assertEqual(len(closed.breaks), 1)
        self.assertEqual(closed.breaks[0].end, _at(11, 15))

    def test_break_and_namaz_can_be_open_together(self) -> None:
        check_in(self.store, employee_id=1, shift=ShiftType.MORNING, clock=self.clock)
        self.clock.set(_at(13, 0))
        toggle_break(self.store, employee_id=1, clock=self.clock)
        self.clock.advance(minutes=5)
        record = toggle_namaz(self.store, employee_id=1, clock=self.clock)

        self.assertTrue(is_open(record.breaks))
        self.assertTrue(is_open(record.namaz))

        self.clock.advance(minutes=10)
        record = toggle_namaz(self.store, employee_id=1, clock=self.clock)
        self.assertAlmostEqual(record.total_namaz_minutes, 10.0)
        self.assertEqual(record.total_break_minutes, 0.0)
        self.assertTrue(is_open(record.breaks))

    def test_check_out_closes_open_intervals(self) -> None:
        check_in(self.store, employee_id=1, shift=ShiftType.MORNING, clock=self.clock)
        self.clock.set(_at(16, 30))
        toggle_break(self.store, employee_id=1, clock=self.clock)

        self.clock.set(_at(17, 0))
        record = check_out(self.store, employee_id=1, clock=self.clock)

        self.assertFalse(is_open(record.breaks))
        self.assertAlmostEqual(record.total_break_minutes, 30.0)

    def test_toggle_after_check_out_is_rejected(self) -> None:
        check_in(self.store, employee_id=1, shift=ShiftType.MORNING, clock=self.clock)
        self.clock.set(_at(17, 0))
        check_out(self.store, employee_id=1, clock=self.clock)

        with self.assertRaises(RecordAlreadyClosed):
            toggle_break(self.store, employee_id=1, clock=self.clock)
        with self.assertRaises(RecordAlreadyClosed):
            toggle_namaz(self.store, employee_id=1, clock=self.clock)

    def test_toggle_from_stale_read_cannot_reopen_checked_out_day(self) -> None:
        check_in(self.store, employee_id=1, shift=ShiftType.MORNING, clock=self.clock)
        stale = self.store.find_by_key(1, date(2025, 6, 2))
        self.clock.set(_at(17, 0))
        closed = check_out(self.store, employee_id=1, clock=self.clock)

        with self.assertRaises(StaleRecord):
            self.store.update(toggle_interval(stale, IntervalKind.BREAK, now=_at(17, 5)))

        stored = get_today(self.store, employee_id=1, clock=self.clock)
        self.assertEqual(stored.check_out, _at(17, 0))
        self.assertEqual(stored.total_hours, closed.total_hours)
        self.assertEqual(stored.breaks, ())

    def test_toggle_without_check_in(self) -> None:
        with self.assertRaises(NoActiveCheckIn):
            toggle_break(self.store, employee_id=1, clock=self.clock)

    def test_new_day_starts_from_no_record(self) -> None:
        check_in(self.store, employee_id=1, shift=ShiftType.NIGHT, clock=self.clock)
        self.clock.set(_at(0, 30, day=3))

        self.assertIsNone(get_today(self.store, employee_id=1, clock=self.clock))
        with self.assertRaises(NoActiveCheckIn):
            check_out(self.store, employee_id=1, clock=self.clock)

        record = check_in(self.store, employee_id=1, shift=ShiftType.NIGHT, clock=self.clock)
        self.assertEqual(record.calendar_date, date(2025, 6, 3))

    def test_employees_are_independent(self) -> None:
        check_in(self.store, employee_id=1, shift=ShiftType.MORNING, clock=self.clock)
        record = check_in(self.store, employee_id=2, shift=ShiftType.MORNING, clock=self.clock)

        self.assertEqual(record.employee_id, 2)


class AttendanceHistoryTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = InMemoryAttendanceStore()
        clock = FixedClock(_at(8, 0, day=2))
        for day in (2, 3, 4):
            clock.set(_at(8, 0, day=day))
            check_in(self.store, employee_id=1, shift=ShiftType.MORNING, clock=clock)
            check_in(self.store, employee_id=2, shift=ShiftType.MORNING, clock=clock)

    def test_employee_only_sees_own_history(self) -> None:
        page = list_attendance(self.store, caller=Caller(employee_id=1, role=Role.EMPLOYEE), employee_id=2)

        self.assertEqual(page.total, 3)
        self.assertTrue(all(item.employee_id == 1 for item in page.items))
        self.assertEqual([item.calendar_date.day for item in page.items], [4, 3, 2])

    def test_reviewer_filters_and_paginates(self) -> None:
        caller = Caller(employee_id=99, role=Role.HR)

        page = list_attendance(self.store, caller=caller, page=2, limit=4)

        self.assertEqual(page.total, 6)
        self.assertEqual(len(page.items), 2)
        self.assertEqual(page.page, 2)

        filtered = list_attendance(
            self.store,
            caller=caller,
            employee_id=2,
            date_from=date(2025, 6, 3),
            date_to=date(2025, 6, 3),
        )
        self.assertEqual(filtered.total, 1)
        self.assertEqual(filtered.items[0].employee_id, 2)

    def test_inverted_window_is_rejected(self) -> None:
        with self.assertRaises(InvalidRange):
            list_attendance(
                self.store,
                caller=Caller(employee_id=1, role=Role.EMPLOYEE),
                date_from=date(2025, 6, 5),
                date_to=date(2025, 6, 1),
            )


if __name__ == "__main__":
    unittest.main()
