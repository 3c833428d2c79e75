from datetime import date

from fastapi import APIRouter, Depends, Query, Request, status

from worktrack.clock import Clock
from worktrack.dependencies import get_attendance_store, get_clock
from worktrack.domain import AttendanceDay, Caller, TaskEntry
from worktrack.models import AttendanceStatus
from worktrack.schemas import (
    AttendanceCheckinRequest,
    AttendanceCheckoutRequest,
    AttendanceDayRead,
    AttendancePage,
    AttendanceTodayResponse,
)
from worktrack.security import require_caller
from worktrack.services.attendance import (
    check_in,
    check_out,
    get_today,
    list_attendance,
    toggle_break,
    toggle_namaz,
)
from worktrack.services.intervals import is_open
from worktrack.stores.base import AttendanceStore

router = APIRouter(prefix="/api/attendance", tags=["attendance"])


def _remember(request: Request, record: AttendanceDay) -> AttendanceDayRead:
    request.state.attendance_id = record.id
    request.state.attendance_status = record.status.value
    return AttendanceDayRead.model_validate(record)


@router.get("/today", response_model=AttendanceTodayResponse)
def read_today(
    caller: Caller = Depends(require_caller),
    store: AttendanceStore = Depends(get_attendance_store),
    clock: Clock = Depends(get_clock),
) -> AttendanceTodayResponse:
    record = get_today(store, employee_id=caller.employee_id, clock=clock)
    if record is None:
        return AttendanceTodayResponse(record=None)
    return AttendanceTodayResponse(
        record=AttendanceDayRead.model_validate(record),
        break_open=is_open(record.breaks),
        namaz_open=is_open(record.namaz),
    )


@router.get("", response_model=AttendancePage)
def read_history(
    employee_id: int | None = Query(default=None, ge=1),
    date_from: date | None = Query(default=None),
    date_to: date | None = Query(default=None),
    status_filter: AttendanceStatus | None = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    caller: Caller = Depends(require_caller),
    store: AttendanceStore = Depends(get_attendance_store),
) -> AttendancePage:
    result = list_attendance(
        store,
        caller=caller,
        employee_id=employee_id,
        date_from=date_from,
        date_to=date_to,
        status=status_filter,
        page=page,
        limit=limit,
    )
    return AttendancePage.model_validate(result)


@router.post("/check-in", response_model=AttendanceDayRead, status_code=status.HTTP_201_CREATED)
def post_check_in(
    payload: AttendanceCheckinRequest,
    request: Request,
    caller: Caller = Depends(require_caller),
    store: AttendanceStore = Depends(get_attendance_store),
    clock: Clock = Depends(get_clock),
) -> AttendanceDayRead:
    record = check_in(
        store,
        employee_id=caller.employee_id,
        shift=payload.shift,
        reason=payload.reason,
        notes=payload.notes,
        clock=clock,
    )
    return _remember(request, record)


@router.post("/check-out", response_model=AttendanceDayRead)
def post_check_out(
    payload: AttendanceCheckoutRequest,
    request: Request,
    caller: Caller = Depends(require_caller),
    store: AttendanceStore = Depends(get_attendance_store),
    clock: Clock = Depends(get_clock),
) -> AttendanceDayRead:
    record = check_out(
        store,
        employee_id=caller.employee_id,
        reason=payload.reason,
        tasks_completed=[
            TaskEntry(name=item.name, description=item.description, hours_spent=item.hours_spent)
            for item in payload.tasks_completed
        ],
        clock=clock,
    )
    return _remember(request, record)


@router.post("/break", response_model=AttendanceDayRead)
def post_break_toggle(
    request: Request,
    caller: Caller = Depends(require_caller),
    store: AttendanceStore = Depends(get_attendance_store),
    clock: Clock = Depends(get_clock),
) -> AttendanceDayRead:
    return _remember(request, toggle_break(store, employee_id=caller.employee_id, clock=clock))


@router.post("/namaz", response_model=AttendanceDayRead)
def post_namaz_toggle(
    request: Request,
    caller: Caller = Depends(require_caller),
    store: AttendanceStore = Depends(get_attendance_store),
    clock: Clock = Depends(get_clock),
) -> AttendanceDayRead:
    return _remember(request, toggle_namaz(store, employee_id=caller.employee_id, clock=clock))
