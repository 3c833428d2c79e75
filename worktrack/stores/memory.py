from __future__ import annotations

import threading
from collections.abc import Iterable, Sequence
from dataclasses import replace
from datetime import date

from worktrack.domain import (
    AttendanceDay,
    AttendanceFilters,
    LeaveFilters,
    LeaveRequest,
)
from worktrack.errors import AlreadyCheckedIn, NotFound, OverlappingLeave, StaleRecord
from worktrack.models import ACTIVE_LEAVE_STATUSES, LeaveStatus
from worktrack.services.overlap import spans_overlap


class InMemoryAttendanceStore:
    """Dict-backed store; enforces the same keys the database does."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._by_key: dict[tuple[int, date], AttendanceDay] = {}
        self._next_id = 1

    def find_by_key(
        self,
        employee_id: int,
        calendar_date: date,
        *,
        for_update: bool = False,
    ) -> AttendanceDay | None:
        return self._by_key.get((employee_id, calendar_date))

    def insert(self, record: AttendanceDay) -> AttendanceDay:
        key = (record.employee_id, record.calendar_date)
        with self._lock:
            if key in self._by_key:
                raise AlreadyCheckedIn()
            stored = replace(record, id=self._next_id, version=0)
            self._next_id += 1
            self._by_key[key] = stored
        return stored

    def update(self, record: AttendanceDay) -> AttendanceDay:
        key = (record.employee_id, record.calendar_date)
        with self._lock:
            current = self._by_key.get(key)
            if current is None or current.id != record.id:
                raise NotFound("Attendance record not found.")
            if current.version != record.version:
                raise StaleRecord()
            stored = replace(record, version=record.version + 1)
            self._by_key[key] = stored
        return stored

    def list_records(self, filters: AttendanceFilters) -> tuple[Sequence[AttendanceDay], int]:
        rows = [
            record
            for record in self._by_key.values()
            if (filters.employee_id is None or record.employee_id == filters.employee_id)
            and (filters.date_from is None or record.calendar_date >= filters.date_from)
            and (filters.date_to is None or record.calendar_date <= filters.date_to)
            and (filters.status is None or record.status == filters.status)
        ]
        rows.sort(key=lambda item: (item.calendar_date, item.check_in), reverse=True)
        return rows[filters.offset : filters.offset + filters.limit], len(rows)


class InMemoryLeaveStore:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._by_id: dict[int, LeaveRequest] = {}
        self._next_id = 1

    def _ensure_no_active_overlap(self, request: LeaveRequest) -> None:
        if request.status not in ACTIVE_LEAVE_STATUSES:
            return
        for other in self._by_id.values():
            if other.id == request.id or other.employee_id != request.employee_id:
                continue
            if other.status not in ACTIVE_LEAVE_STATUSES:
                continue
            if spans_overlap(request.start_date, request.end_date, other.start_date, other.end_date):
                raise OverlappingLeave()

    def find_by_id(self, request_id: int, *, for_update: bool = False) -> LeaveRequest | None:
        return self._by_id.get(request_id)

    def find_active_leave_spans(
        self,
        employee_id: int,
        statuses: Iterable[LeaveStatus],
    ) -> Sequence[LeaveRequest]:
        wanted = set(statuses)
        return [
            item
            for item in self._by_id.values()
            if item.employee_id == employee_id and item.status in wanted
        ]

    def insert(self, request: LeaveRequest) -> LeaveRequest:
        with self._lock:
            self._ensure_no_active_overlap(request)
            stored = replace(request, id=self._next_id, version=0)
            self._next_id += 1
            self._by_id[stored.id] = stored
        return stored

    def update(self, request: LeaveRequest) -> LeaveRequest:
        with self._lock:
            current = self._by_id.get(request.id)
            if current is None:
                raise NotFound("Leave request not found.")
            if current.version != request.version:
                raise StaleRecord()
            self._ensure_no_active_overlap(request)
            stored = replace(request, version=request.version + 1)
            self._by_id[stored.id] = stored
        return stored

    def delete(self, request_id: int, *, expected_version: int | None = None) -> None:
        with self._lock:
            current = self._by_id.get(request_id)
            if current is None:
                raise NotFound("Leave request not found.")
            if expected_version is not None and current.version != expected_version:
                raise StaleRecord()
            del self._by_id[request_id]

    def query_by_year_and_employee(
        self,
        employee_id: int,
        year_start: date,
        year_end: date,
    ) -> Sequence[LeaveRequest]:
        return [
            item
            for item in self._by_id.values()
            if item.employee_id == employee_id and year_start <= item.start_date < year_end
        ]

    def list_requests(self, filters: LeaveFilters) -> tuple[Sequence[LeaveRequest], int]:
        rows = [
            item
            for item in self._by_id.values()
            if (filters.employee_id is None or item.employee_id == filters.employee_id)
            and (filters.status is None or item.status == filters.status)
            and (filters.type is None or item.type == filters.type)
            and (filters.date_to is None or item.start_date <= filters.date_to)
            and (filters.date_from is None or item.end_date >= filters.date_from)
        ]
        rows.sort(key=lambda item: (item.start_date, item.id or 0), reverse=True)
        return rows[filters.offset : filters.offset + filters.limit], len(rows)
