from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date
from typing import Protocol

from worktrack.domain import (
    AttendanceDay,
    AttendanceFilters,
    LeaveFilters,
    LeaveRequest,
)
from worktrack.models import LeaveStatus


class AttendanceStore(Protocol):
    def find_by_key(
        self,
        employee_id: int,
        calendar_date: date,
        *,
        for_update: bool = False,
    ) -> AttendanceDay | None:
        """Load the day record; ``for_update`` locks the row until the next write."""
        raise NotImplementedError

    def insert(self, record: AttendanceDay) -> AttendanceDay:
        """Persist a new day record; raise AlreadyCheckedIn if the key is taken."""
        raise NotImplementedError

    def update(self, record: AttendanceDay) -> AttendanceDay:
        """Write back a record read at ``record.version``; raise StaleRecord if it moved on."""
        raise NotImplementedError

    def list_records(self, filters: AttendanceFilters) -> tuple[Sequence[AttendanceDay], int]:
        """Return one page of records (newest day first) and the total match count."""
        raise NotImplementedError


class LeaveStore(Protocol):
    def find_by_id(self, request_id: int, *, for_update: bool = False) -> LeaveRequest | None:
        raise NotImplementedError

    def find_active_leave_spans(
        self,
        employee_id: int,
        statuses: Iterable[LeaveStatus],
    ) -> Sequence[LeaveRequest]:
        raise NotImplementedError

    def insert(self, request: LeaveRequest) -> LeaveRequest:
        """Persist a new request; raise OverlappingLeave if storage rejects the span."""
        raise NotImplementedError

    def update(self, request: LeaveRequest) -> LeaveRequest:
        """Write back a request read at ``request.version``; raise StaleRecord if it moved on."""
        raise NotImplementedError

    def delete(self, request_id: int, *, expected_version: int | None = None) -> None:
        raise NotImplementedError

    def query_by_year_and_employee(
        self,
        employee_id: int,
        year_start: date,
        year_end: date,
    ) -> Sequence[LeaveRequest]:
        """Requests whose start_date is in [year_start, year_end)."""
        raise NotImplementedError

    def list_requests(self, filters: LeaveFilters) -> tuple[Sequence[LeaveRequest], int]:
        raise NotImplementedError
