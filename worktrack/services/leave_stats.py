from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from math import ceil

from worktrack.domain import Caller, LeaveRequest
from worktrack.errors import Forbidden
from worktrack.models import LeaveStatus, LeaveType
from worktrack.stores.base import LeaveStore


@dataclass(frozen=True)
class LeaveTypeStats:
    total_days: int
    approved_days: int
    pending_days: int
    count: int


def year_bounds(year: int) -> tuple[date, date]:
    return date(year, 1, 1), date(year + 1, 1, 1)


def _raw_span_days(leave: LeaveRequest) -> int:
    # end - start; a single-day request spans 0 days here.
    return (leave.end_date - leave.start_date).days


def aggregate(leaves: list[LeaveRequest]) -> dict[LeaveType, LeaveTypeStats]:
    """Summarize leave days per type.

    Each request counts ``span + 1`` days because both ends are inclusive.
    ``pending_days`` is the average span-plus-one of the whole group times the
    number of pending requests, not the sum of the pending spans themselves.
    """
    groups: dict[LeaveType, list[LeaveRequest]] = defaultdict(list)
    for leave in leaves:
        groups[leave.type].append(leave)

    stats: dict[LeaveType, LeaveTypeStats] = {}
    for leave_type, items in groups.items():
        count = len(items)
        raw_total = sum(_raw_span_days(item) for item in items)
        approved = [item for item in items if item.status == LeaveStatus.APPROVED]
        raw_approved = sum(_raw_span_days(item) for item in approved)
        pending_count = sum(1 for item in items if item.status == LeaveStatus.PENDING)

        pending_days = 0
        if pending_count > 0:
            pending_days = ceil(raw_total / count) * pending_count + pending_count

        stats[leave_type] = LeaveTypeStats(
            total_days=ceil(raw_total) + count,
            approved_days=ceil(raw_approved) + len(approved),
            pending_days=pending_days,
            count=count,
        )
    return stats


def compute_year_stats(store: LeaveStore, *, employee_id: int, year: int) -> dict[LeaveType, LeaveTypeStats]:
    year_start, year_end = year_bounds(year)
    leaves = list(store.query_by_year_and_employee(employee_id, year_start, year_end))
    return aggregate(leaves)


def summarize_year(
    store: LeaveStore,
    *,
    caller: Caller,
    year: int,
    employee_id: int | None = None,
) -> dict[LeaveType, LeaveTypeStats]:
    target_id = employee_id if employee_id is not None else caller.employee_id
    if target_id != caller.employee_id and not caller.is_reviewer:
        raise Forbidden("Only reviewers can read another employee's leave statistics.")
    return compute_year_stats(store, employee_id=target_id, year=year)
