from __future__ import annotations

import enum
import logging
from collections.abc import Iterable
from dataclasses import replace
from datetime import date, datetime, time, timedelta

from worktrack.clock import Clock, system_clock
from worktrack.domain import (
    AttendanceDay,
    AttendanceFilters,
    Caller,
    Page,
    TaskEntry,
)
from worktrack.errors import (
    AlreadyCheckedIn,
    AlreadyCheckedOut,
    InvalidRange,
    NoActiveCheckIn,
    RecordAlreadyClosed,
)
from worktrack.models import AttendanceStatus, ShiftType
from worktrack.services.intervals import close_if_open, close_interval, is_open, open_interval
from worktrack.settings import Settings, get_settings
from worktrack.stores.base import AttendanceStore

logger = logging.getLogger("worktrack.attendance")


class IntervalKind(str, enum.Enum):
    BREAK = "BREAK"
    NAMAZ = "NAMAZ"


# record field holding the sequence, record field holding its running total
_INTERVAL_FIELDS: dict[IntervalKind, tuple[str, str]] = {
    IntervalKind.BREAK: ("breaks", "total_break_minutes"),
    IntervalKind.NAMAZ: ("namaz", "total_namaz_minutes"),
}


def shift_start(shift: ShiftType, settings: Settings | None = None) -> time:
    settings = settings or get_settings()
    if shift == ShiftType.MORNING:
        return settings.morning_shift_start
    if shift == ShiftType.EVENING:
        return settings.evening_shift_start
    return settings.night_shift_start


def late_threshold(shift: ShiftType, day: date, *, tzinfo=None, settings: Settings | None = None) -> datetime:
    settings = settings or get_settings()
    start = datetime.combine(day, shift_start(shift, settings), tzinfo=tzinfo)
    return start + timedelta(minutes=max(0, settings.late_grace_minutes))


def worked_hours(check_in: datetime, check_out: datetime) -> float:
    return (check_out - check_in).total_seconds() / 3600


def start_day(
    *,
    employee_id: int,
    shift: ShiftType,
    now: datetime,
    reason: str | None = None,
    notes: str | None = None,
    settings: Settings | None = None,
) -> AttendanceDay:
    threshold = late_threshold(shift, now.date(), tzinfo=now.tzinfo, settings=settings)
    return AttendanceDay(
        employee_id=employee_id,
        calendar_date=now.date(),
        shift=shift,
        check_in=now,
        check_in_reason=reason,
        notes=notes,
        status=AttendanceStatus.LATE if now > threshold else AttendanceStatus.PRESENT,
    )


def finish_day(
    record: AttendanceDay,
    *,
    now: datetime,
    reason: str | None = None,
    tasks_completed: Iterable[TaskEntry] = (),
    settings: Settings | None = None,
) -> AttendanceDay:
    settings = settings or get_settings()
    if record.is_checked_out:
        raise AlreadyCheckedOut()
    if now < record.check_in:
        raise InvalidRange("Check-out cannot be earlier than check-in.")

    # A closed day must not keep an open break or namaz interval.
    breaks, break_minutes = close_if_open(record.breaks, now=now)
    namaz, namaz_minutes = close_if_open(record.namaz, now=now)

    total_hours = worked_hours(record.check_in, now)
    status = record.status
    if total_hours < settings.half_day_threshold_hours:
        status = AttendanceStatus.HALF_DAY

    return replace(
        record,
        check_out=now,
        check_out_reason=reason,
        tasks_completed=tuple(tasks_completed),
        breaks=breaks,
        namaz=namaz,
        total_break_minutes=record.total_break_minutes + break_minutes,
        total_namaz_minutes=record.total_namaz_minutes + namaz_minutes,
        total_hours=total_hours,
        status=status,
    )


def toggle_interval(record: AttendanceDay, kind: IntervalKind, *, now: datetime) -> AttendanceDay:
    if record.is_checked_out:
        raise RecordAlreadyClosed()

    sequence_field, total_field = _INTERVAL_FIELDS[kind]
    sequence = getattr(record, sequence_field)
    if not is_open(sequence):
        return replace(record, **{sequence_field: open_interval(sequence, now=now)})

    closed, minutes = close_interval(sequence, now=now)
    return replace(
        record,
        **{
            sequence_field: closed,
            total_field: getattr(record, total_field) + minutes,
        },
    )


def _require_today(store: AttendanceStore, *, employee_id: int, now: datetime) -> AttendanceDay:
    record = store.find_by_key(employee_id, now.date(), for_update=True)
    if record is None:
        raise NoActiveCheckIn()
    return record


def get_today(store: AttendanceStore, *, employee_id: int, clock: Clock = system_clock) -> AttendanceDay | None:
    return store.find_by_key(employee_id, clock().date())


def check_in(
    store: AttendanceStore,
    *,
    employee_id: int,
    shift: ShiftType,
    reason: str | None = None,
    notes: str | None = None,
    clock: Clock = system_clock,
) -> AttendanceDay:
    now = clock()
    if store.find_by_key(employee_id, now.date()) is not None:
        raise AlreadyCheckedIn()

    record = store.insert(
        start_day(employee_id=employee_id, shift=shift, now=now, reason=reason, notes=notes)
    )
    logger.info(
        "attendance_checked_in",
        extra={
            "employee_id": employee_id,
            "calendar_date": record.calendar_date.isoformat(),
            "shift": shift.value,
            "attendance_status": record.status.value,
        },
    )
    return record


def check_out(
    store: AttendanceStore,
    *,
    employee_id: int,
    reason: str | None = None,
    tasks_completed: Iterable[TaskEntry] = (),
    clock: Clock = system_clock,
) -> AttendanceDay:
    now = clock()
    record = _require_today(store, employee_id=employee_id, now=now)
    updated = store.update(
        finish_day(record, now=now, reason=reason, tasks_completed=tasks_completed)
    )
    logger.info(
        "attendance_checked_out",
        extra={
            "employee_id": employee_id,
            "calendar_date": updated.calendar_date.isoformat(),
            "total_hours": round(updated.total_hours or 0.0, 4),
            "attendance_status": updated.status.value,
        },
    )
    return updated


def _toggle(store: AttendanceStore, *, employee_id: int, kind: IntervalKind, clock: Clock) -> AttendanceDay:
    now = clock()
    record = _require_today(store, employee_id=employee_id, now=now)
    updated = store.update(toggle_interval(record, kind, now=now))
    sequence_field, total_field = _INTERVAL_FIELDS[kind]
    logger.info(
        "attendance_interval_toggled",
        extra={
            "employee_id": employee_id,
            "interval_kind": kind.value,
            "interval_open": is_open(getattr(updated, sequence_field)),
            "total_minutes": round(getattr(updated, total_field), 2),
        },
    )
    return updated


def toggle_break(store: AttendanceStore, *, employee_id: int, clock: Clock = system_clock) -> AttendanceDay:
    return _toggle(store, employee_id=employee_id, kind=IntervalKind.BREAK, clock=clock)


def toggle_namaz(store: AttendanceStore, *, employee_id: int, clock: Clock = system_clock) -> AttendanceDay:
    return _toggle(store, employee_id=employee_id, kind=IntervalKind.NAMAZ, clock=clock)


def list_attendance(
    store: AttendanceStore,
    *,
    caller: Caller,
    employee_id: int | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    status: AttendanceStatus | None = None,
    page: int = 1,
    limit: int | None = None,
) -> Page:
    settings = get_settings()
    if date_from is not None and date_to is not None and date_from > date_to:
        raise InvalidRange("date_from must not be after date_to.")

    # Employees only ever see their own history.
    if not caller.is_reviewer:
        employee_id = caller.employee_id

    safe_page = max(1, page)
    safe_limit = min(max(1, limit or settings.default_page_size), settings.max_page_size)
    items, total = store.list_records(
        AttendanceFilters(
            employee_id=employee_id,
            date_from=date_from,
            date_to=date_to,
            status=status,
            offset=(safe_page - 1) * safe_limit,
            limit=safe_limit,
        )
    )
    return Page(items=list(items), page=safe_page, limit=safe_limit, total=total)
