from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import date, datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from worktrack.domain import (
    AttendanceDay,
    AttendanceFilters,
    Interval,
    LeaveFilters,
    LeaveRequest,
    TaskEntry,
)
from worktrack.errors import AlreadyCheckedIn, NotFound, OverlappingLeave, StaleRecord
from worktrack.models import AttendanceRecord, Leave, LeaveStatus

ATTENDANCE_DAY_CONSTRAINT = "uq_attendance_records_employee_day"
LEAVE_OVERLAP_CONSTRAINT = "ex_leave_requests_active_overlap"

logger = logging.getLogger("worktrack.stores")


def _intervals_to_json(intervals: tuple[Interval, ...]) -> list[dict[str, Any]]:
    return [
        {
            "start": item.start.isoformat(),
            "end": item.end.isoformat() if item.end is not None else None,
        }
        for item in intervals
    ]


def _intervals_from_json(
    raw: list[dict[str, Any]] | None,
    *,
    record_id: int | None = None,
    field: str = "breaks",
) -> tuple[Interval, ...]:
    out: list[Interval] = []
    for item in raw or []:
        if not isinstance(item, dict) or not item.get("start"):
            logger.warning(
                "attendance_interval_malformed",
                extra={"record_id": record_id, "field": field, "entry": repr(item)},
            )
            continue
        end_raw = item.get("end")
        out.append(
            Interval(
                start=datetime.fromisoformat(str(item["start"])),
                end=datetime.fromisoformat(str(end_raw)) if end_raw else None,
            )
        )
    return tuple(out)


def _tasks_to_json(tasks: tuple[TaskEntry, ...]) -> list[dict[str, Any]]:
    return [
        {"name": task.name, "description": task.description, "hours_spent": task.hours_spent}
        for task in tasks
    ]


def _tasks_from_json(raw: list[dict[str, Any]] | None) -> tuple[TaskEntry, ...]:
    return tuple(
        TaskEntry(
            name=str(item.get("name") or ""),
            description=item.get("description"),
            hours_spent=item.get("hours_spent"),
        )
        for item in raw or []
        if isinstance(item, dict)
    )


def _constraint_violated(exc: IntegrityError, name: str) -> bool:
    return name in str(exc.orig)


def attendance_from_row(row: AttendanceRecord) -> AttendanceDay:
    return AttendanceDay(
        id=row.id,
        employee_id=row.employee_id,
        calendar_date=row.calendar_date,
        shift=row.shift,
        check_in=row.check_in,
        check_out=row.check_out,
        check_in_reason=row.check_in_reason,
        check_out_reason=row.check_out_reason,
        status=row.status,
        breaks=_intervals_from_json(row.breaks, record_id=row.id, field="breaks"),
        namaz=_intervals_from_json(row.namaz, record_id=row.id, field="namaz"),
        total_break_minutes=float(row.total_break_minutes or 0),
        total_namaz_minutes=float(row.total_namaz_minutes or 0),
        total_hours=row.total_hours,
        tasks_completed=_tasks_from_json(row.tasks_completed),
        notes=row.notes,
        version=row.version or 0,
    )


def _apply_attendance(row: AttendanceRecord, record: AttendanceDay) -> None:
    row.employee_id = record.employee_id
    row.calendar_date = record.calendar_date
    row.shift = record.shift
    row.check_in = record.check_in
    row.check_out = record.check_out
    row.check_in_reason = record.check_in_reason
    row.check_out_reason = record.check_out_reason
    row.status = record.status
    row.breaks = _intervals_to_json(record.breaks)
    row.namaz = _intervals_to_json(record.namaz)
    row.total_break_minutes = record.total_break_minutes
    row.total_namaz_minutes = record.total_namaz_minutes
    row.total_hours = record.total_hours
    row.tasks_completed = _tasks_to_json(record.tasks_completed)
    row.notes = record.notes


def leave_from_row(row: Leave) -> LeaveRequest:
    return LeaveRequest(
        id=row.id,
        employee_id=row.employee_id,
        type=row.type,
        start_date=row.start_date,
        end_date=row.end_date,
        reason=row.reason,
        status=row.status,
        reviewed_by=row.reviewed_by,
        reviewed_at=row.reviewed_at,
        attachments=tuple(row.attachments or ()),
        created_at=row.created_at,
        version=row.version or 0,
    )


def _apply_leave(row: Leave, request: LeaveRequest) -> None:
    row.employee_id = request.employee_id
    row.type = request.type
    row.start_date = request.start_date
    row.end_date = request.end_date
    row.reason = request.reason
    row.status = request.status
    row.reviewed_by = request.reviewed_by
    row.reviewed_at = request.reviewed_at
    row.attachments = list(request.attachments)


class SqlAttendanceStore:
    def __init__(self, db: Session) -> None:
        self._db = db

    def find_by_key(
        self,
        employee_id: int,
        calendar_date: date,
        *,
        for_update: bool = False,
    ) -> AttendanceDay | None:
        stmt = select(AttendanceRecord).where(
            AttendanceRecord.employee_id == employee_id,
            AttendanceRecord.calendar_date == calendar_date,
        )
        if for_update:
            stmt = stmt.with_for_update()
        row = self._db.scalar(stmt)
        if row is None:
            return None
        return attendance_from_row(row)

    def insert(self, record: AttendanceDay) -> AttendanceDay:
        row = AttendanceRecord()
        _apply_attendance(row, record)
        row.version = 0
        self._db.add(row)
        try:
            self._db.commit()
        except IntegrityError as exc:
            self._db.rollback()
            if _constraint_violated(exc, ATTENDANCE_DAY_CONSTRAINT):
                raise AlreadyCheckedIn() from exc
            raise
        self._db.refresh(row)
        return attendance_from_row(row)

    def update(self, record: AttendanceDay) -> AttendanceDay:
        row = self._db.get(AttendanceRecord, record.id, with_for_update=True)
        if row is None:
            raise NotFound("Attendance record not found.")
        if (row.version or 0) != record.version:
            self._db.rollback()
            raise StaleRecord()
        _apply_attendance(row, record)
        row.version = record.version + 1
        self._db.commit()
        self._db.refresh(row)
        return attendance_from_row(row)

    def list_records(self, filters: AttendanceFilters) -> tuple[Sequence[AttendanceDay], int]:
        clauses = []
        if filters.employee_id is not None:
            clauses.append(AttendanceRecord.employee_id == filters.employee_id)
        if filters.date_from is not None:
            clauses.append(AttendanceRecord.calendar_date >= filters.date_from)
        if filters.date_to is not None:
            clauses.append(AttendanceRecord.calendar_date <= filters.date_to)
        if filters.status is not None:
            clauses.append(AttendanceRecord.status == filters.status)

        total = self._db.scalar(select(func.count(AttendanceRecord.id)).where(*clauses)) or 0
        rows = self._db.scalars(
            select(AttendanceRecord)
            .where(*clauses)
            .order_by(AttendanceRecord.calendar_date.desc(), AttendanceRecord.check_in.desc())
            .offset(filters.offset)
            .limit(filters.limit)
        ).all()
        return [attendance_from_row(row) for row in rows], int(total)


class SqlLeaveStore:
    def __init__(self, db: Session) -> None:
        self._db = db

    def _commit_leave(self) -> None:
        try:
            self._db.commit()
        except IntegrityError as exc:
            self._db.rollback()
            if _constraint_violated(exc, LEAVE_OVERLAP_CONSTRAINT):
                raise OverlappingLeave() from exc
            raise

    def find_by_id(self, request_id: int, *, for_update: bool = False) -> LeaveRequest | None:
        row = self._db.get(Leave, request_id, with_for_update=for_update or None)
        if row is None:
            return None
        return leave_from_row(row)

    def find_active_leave_spans(
        self,
        employee_id: int,
        statuses: Iterable[LeaveStatus],
    ) -> Sequence[LeaveRequest]:
        rows = self._db.scalars(
            select(Leave)
            .where(
                Leave.employee_id == employee_id,
                Leave.status.in_(list(statuses)),
            )
            .order_by(Leave.start_date.asc(), Leave.id.asc())
        ).all()
        return [leave_from_row(row) for row in rows]

    def insert(self, request: LeaveRequest) -> LeaveRequest:
        row = Leave()
        _apply_leave(row, request)
        row.version = 0
        self._db.add(row)
        self._commit_leave()
        self._db.refresh(row)
        return leave_from_row(row)

    def update(self, request: LeaveRequest) -> LeaveRequest:
        row = self._db.get(Leave, request.id, with_for_update=True)
        if row is None:
            raise NotFound("Leave request not found.")
        if (row.version or 0) != request.version:
            self._db.rollback()
            raise StaleRecord()
        _apply_leave(row, request)
        row.version = request.version + 1
        self._commit_leave()
        self._db.refresh(row)
        return leave_from_row(row)

    def delete(self, request_id: int, *, expected_version: int | None = None) -> None:
        row = self._db.get(Leave, request_id, with_for_update=True)
        if row is None:
            raise NotFound("Leave request not found.")
        if expected_version is not None and (row.version or 0) != expected_version:
            self._db.rollback()
            raise StaleRecord()
        self._db.delete(row)
        self._db.commit()

    def query_by_year_and_employee(
        self,
        employee_id: int,
        year_start: date,
        year_end: date,
    ) -> Sequence[LeaveRequest]:
        rows = self._db.scalars(
            select(Leave)
            .where(
                Leave.employee_id == employee_id,
                Leave.start_date >= year_start,
                Leave.start_date < year_end,
            )
            .order_by(Leave.start_date.asc(), Leave.id.asc())
        ).all()
        return [leave_from_row(row) for row in rows]

    def list_requests(self, filters: LeaveFilters) -> tuple[Sequence[LeaveRequest], int]:
        clauses = []
        if filters.employee_id is not None:
            clauses.append(Leave.employee_id == filters.employee_id)
        if filters.status is not None:
            clauses.append(Leave.status == filters.status)
        if filters.type is not None:
            clauses.append(Leave.type == filters.type)
        if filters.date_to is not None:
            clauses.append(Leave.start_date <= filters.date_to)
        if filters.date_from is not None:
            clauses.append(Leave.end_date >= filters.date_from)

        total = self._db.scalar(select(func.count(Leave.id)).where(*clauses)) or 0
        rows = self._db.scalars(
            select(Leave)
            .where(*clauses)
            .order_by(Leave.start_date.desc(), Leave.id.desc())
            .offset(filters.offset)
            .limit(filters.limit)
        ).all()
        return [leave_from_row(row) for row in rows], int(total)
