from __future__ import annotations

import unittest
from datetime import date

from worktrack.domain import Caller, LeaveRequest
from worktrack.errors import Forbidden
from worktrack.models import LeaveStatus, LeaveType, Role
from worktrack.services.leave_stats import aggregate, compute_year_stats, summarize_year, year_bounds
from worktrack.stores.memory import InMemoryLeaveStore


def _leave(start: date, end: date, status: LeaveStatus, leave_type: LeaveType = LeaveType.VACATION, employee_id: int = 1):
    return LeaveRequest(
        employee_id=employee_id,
        type=leave_type,
        start_date=start,
        end_date=end,
        reason="r",
        status=status,
    )


class LeaveStatsTests(unittest.TestCase):
    def test_single_three_day_approved_vacation(self) -> None:
        stats = aggregate([_leave(date(2025, 6, 1), date(2025, 6, 3), LeaveStatus.APPROVED)])

        vacation = stats[LeaveType.VACATION]
        self.assertEqual(vacation.count, 1)
        self.assertEqual(vacation.total_days, 3)
        self.assertEqual(vacation.approved_days, 3)
        self.assertEqual(vacation.pending_days, 0)

    def test_single_day_request_counts_one_day(self) -> None:
        stats = aggregate([_leave(date(2025, 2, 10), date(2025, 2, 10), LeaveStatus.PENDING, LeaveType.SICK)])

        self.assertEqual(stats[LeaveType.SICK].total_days, 1)
        self.assertEqual(stats[LeaveType.SICK].pending_days, 1)

    def test_pending_days_use_group_average_span(self) -> None:
        # spans 0, 4 and 8 days; average 4, one pending request
        stats = aggregate(
            [
                _leave(date(2025, 1, 1), date(2025, 1, 1), LeaveStatus.PENDING),
                _leave(date(2025, 3, 1), date(2025, 3, 5), LeaveStatus.APPROVED),
                _leave(date(2025, 5, 1), date(2025, 5, 9), LeaveStatus.REJECTED),
            ]
        )

        vacation = stats[LeaveType.VACATION]
        self.assertEqual(vacation.count, 3)
        self.assertEqual(vacation.total_days, 15)
        self.assertEqual(vacation.approved_days, 5)
        self.assertEqual(vacation.pending_days, 5)

    def test_groups_are_split_by_type(self) -> None:
        stats = aggregate(
            [
                _leave(date(2025, 1, 1), date(2025, 1, 2), LeaveStatus.APPROVED),
                _leave(date(2025, 2, 1), date(2025, 2, 1), LeaveStatus.CANCELLED, LeaveType.PERSONAL),
            ]
        )

        self.assertEqual(set(stats), {LeaveType.VACATION, LeaveType.PERSONAL})
        self.assertEqual(stats[LeaveType.PERSONAL].approved_days, 0)

    def test_year_window_is_selected_by_start_date(self) -> None:
        store = InMemoryLeaveStore()
        store.insert(_leave(date(2024, 12, 30), date(2025, 1, 2), LeaveStatus.APPROVED))
        store.insert(_leave(date(2025, 12, 31), date(2026, 1, 3), LeaveStatus.APPROVED))
        store.insert(_leave(date(2025, 7, 1), date(2025, 7, 1), LeaveStatus.APPROVED, employee_id=2))

        stats = compute_year_stats(store, employee_id=1, year=2025)

        self.assertEqual(year_bounds(2025), (date(2025, 1, 1), date(2026, 1, 1)))
        self.assertEqual(stats[LeaveType.VACATION].count, 1)
        self.assertEqual(stats[LeaveType.VACATION].total_days, 4)

    def test_empty_year_has_no_groups(self) -> None:
        self.assertEqual(compute_year_stats(InMemoryLeaveStore(), employee_id=1, year=2025), {})

    def test_employee_cannot_read_someone_elses_stats(self) -> None:
        store = InMemoryLeaveStore()

        with self.assertRaises(Forbidden):
            summarize_year(store, caller=Caller(employee_id=1, role=Role.EMPLOYEE), year=2025, employee_id=2)
        self.assertEqual(
            summarize_year(store, caller=Caller(employee_id=9, role=Role.HR), year=2025, employee_id=2),
            {},
        )


if __name__ == "__main__":
    unittest.main()
