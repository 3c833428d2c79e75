from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime

from worktrack.models import (
    AttendanceStatus,
    LeaveStatus,
    LeaveType,
    Role,
    ShiftType,
)

REVIEWER_ROLES: frozenset[Role] = frozenset({Role.HR, Role.ADMIN, Role.SUPERADMIN})


@dataclass(frozen=True, slots=True)
class Caller:
    employee_id: int
    role: Role

    @property
    def is_reviewer(self) -> bool:
        return self.role in REVIEWER_ROLES


@dataclass(frozen=True, slots=True)
class Interval:
    start: datetime
    end: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.end is None


@dataclass(frozen=True, slots=True)
class TaskEntry:
    name: str
    description: str | None = None
    hours_spent: float | None = None


@dataclass(frozen=True, slots=True)
class AttendanceDay:
    employee_id: int
    calendar_date: date
    shift: ShiftType
    check_in: datetime
    status: AttendanceStatus
    id: int | None = None
    check_out: datetime | None = None
    check_in_reason: str | None = None
    check_out_reason: str | None = None
    breaks: tuple[Interval, ...] = ()
    namaz: tuple[Interval, ...] = ()
    total_break_minutes: float = 0.0
    total_namaz_minutes: float = 0.0
    total_hours: float | None = None
    tasks_completed: tuple[TaskEntry, ...] = ()
    notes: str | None = None
    # bumped by the store on every successful write
    version: int = 0

    @property
    def is_checked_out(self) -> bool:
        return self.check_out is not None


@dataclass(frozen=True, slots=True)
class LeaveRequest:
    employee_id: int
    type: LeaveType
    start_date: date
    end_date: date
    reason: str
    status: LeaveStatus = LeaveStatus.PENDING
    id: int | None = None
    reviewed_by: int | None = None
    reviewed_at: datetime | None = None
    attachments: tuple[str, ...] = ()
    created_at: datetime | None = None
    version: int = 0

    @property
    def span(self) -> tuple[date, date]:
        return self.start_date, self.end_date


@dataclass(frozen=True, slots=True)
class LeavePatch:
    type: LeaveType | None = None
    start_date: date | None = None
    end_date: date | None = None
    reason: str | None = None
    attachments: tuple[str, ...] | None = None


@dataclass(frozen=True, slots=True)
class AttendanceFilters:
    employee_id: int | None = None
    date_from: date | None = None
    date_to: date | None = None
    status: AttendanceStatus | None = None
    offset: int = 0
    limit: int = 10


@dataclass(frozen=True, slots=True)
class LeaveFilters:
    employee_id: int | None = None
    status: LeaveStatus | None = None
    type: LeaveType | None = None
    date_from: date | None = None
    date_to: date | None = None
    offset: int = 0
    limit: int = 10


@dataclass(frozen=True, slots=True)
class Page:
    items: list = field(default_factory=list)
    page: int = 1
    limit: int = 10
    total: int = 0
