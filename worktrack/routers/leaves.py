from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session

from worktrack.audit import actor_type_for, log_audit
from worktrack.clock import Clock
from worktrack.db import get_db
from worktrack.dependencies import get_clock, get_leave_store
from worktrack.domain import Caller, LeavePatch, LeaveRequest
from worktrack.models import LeaveStatus, LeaveType
from worktrack.schemas import (
    LeaveCreateRequest,
    LeavePage,
    LeaveRead,
    LeaveStatsResponse,
    LeaveTypeStatsRead,
    LeaveUpdateRequest,
)
from worktrack.security import require_caller
from worktrack.services.leave_stats import summarize_year
from worktrack.services.leaves import (
    Transition,
    create_leave,
    delete_leave,
    edit_leave,
    get_leave,
    list_leaves,
    transition_leave,
)
from worktrack.stores.base import LeaveStore

router = APIRouter(prefix="/api/leaves", tags=["leaves"])


def _client_ip(request: Request) -> str | None:
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    if request.client:
        return request.client.host
    return None


def _user_agent(request: Request) -> str | None:
    return request.headers.get("user-agent")


def _audit(
    db: Session,
    request: Request,
    *,
    caller: Caller,
    action: str,
    leave: LeaveRequest,
    details: dict[str, Any] | None = None,
) -> None:
    log_audit(
        db,
        actor_type=actor_type_for(caller),
        actor_id=str(caller.employee_id),
        action=action,
        success=True,
        entity_type="leave_request",
        entity_id=str(leave.id),
        ip=_client_ip(request),
        user_agent=_user_agent(request),
        details={"employee_id": leave.employee_id, "status": leave.status.value, **(details or {})},
        request_id=getattr(request.state, "request_id", None),
    )


@router.get("", response_model=LeavePage)
def read_leaves(
    employee_id: int | None = Query(default=None, ge=1),
    status_filter: LeaveStatus | None = Query(default=None, alias="status"),
    type_filter: LeaveType | None = Query(default=None, alias="type"),
    date_from: date | None = Query(default=None),
    date_to: date | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    caller: Caller = Depends(require_caller),
    store: LeaveStore = Depends(get_leave_store),
) -> LeavePage:
    result = list_leaves(
        store,
        caller=caller,
        employee_id=employee_id,
        status=status_filter,
        type=type_filter,
        date_from=date_from,
        date_to=date_to,
        page=page,
        limit=limit,
    )
    return LeavePage.model_validate(result)


@router.get("/stats", response_model=LeaveStatsResponse)
def read_leave_stats(
    year: int | None = Query(default=None, ge=1970, le=9999),
    employee_id: int | None = Query(default=None, ge=1),
    caller: Caller = Depends(require_caller),
    store: LeaveStore = Depends(get_leave_store),
    clock: Clock = Depends(get_clock),
) -> LeaveStatsResponse:
    target_year = year if year is not None else clock().year
    target_employee_id = employee_id if employee_id is not None else caller.employee_id
    stats = summarize_year(store, caller=caller, year=target_year, employee_id=target_employee_id)
    return LeaveStatsResponse(
        employee_id=target_employee_id,
        year=target_year,
        stats={leave_type: LeaveTypeStatsRead.model_validate(item) for leave_type, item in stats.items()},
    )


@router.post("", response_model=LeaveRead, status_code=status.HTTP_201_CREATED)
def post_leave(
    payload: LeaveCreateRequest,
    request: Request,
    caller: Caller = Depends(require_caller),
    store: LeaveStore = Depends(get_leave_store),
    clock: Clock = Depends(get_clock),
    db: Session = Depends(get_db),
) -> LeaveRead:
    leave = create_leave(
        store,
        caller=caller,
        type=payload.type,
        start_date=payload.start_date,
        end_date=payload.end_date,
        reason=payload.reason,
        attachments=payload.attachments,
        clock=clock,
    )
    _audit(db, request, caller=caller, action="LEAVE_CREATED", leave=leave, details={"type": leave.type.value})
    return LeaveRead.model_validate(leave)


@router.get("/{leave_id}", response_model=LeaveRead)
def read_leave(
    leave_id: int,
    caller: Caller = Depends(require_caller),
    store: LeaveStore = Depends(get_leave_store),
) -> LeaveRead:
    return LeaveRead.model_validate(get_leave(store, request_id=leave_id, caller=caller))


@router.patch("/{leave_id}", response_model=LeaveRead)
def patch_leave(
    leave_id: int,
    payload: LeaveUpdateRequest,
    request: Request,
    caller: Caller = Depends(require_caller),
    store: LeaveStore = Depends(get_leave_store),
    db: Session = Depends(get_db),
) -> LeaveRead:
    leave = edit_leave(
        store,
        request_id=leave_id,
        caller=caller,
        patch=LeavePatch(
            type=payload.type,
            start_date=payload.start_date,
            end_date=payload.end_date,
            reason=payload.reason,
            attachments=tuple(payload.attachments) if payload.attachments is not None else None,
        ),
    )
    _audit(db, request, caller=caller, action="LEAVE_EDITED", leave=leave)
    return LeaveRead.model_validate(leave)


def _transition_endpoint(transition: Transition):
    def _endpoint(
        leave_id: int,
        request: Request,
        caller: Caller = Depends(require_caller),
        store: LeaveStore = Depends(get_leave_store),
        clock: Clock = Depends(get_clock),
        db: Session = Depends(get_db),
    ) -> LeaveRead:
        leave = transition_leave(store, request_id=leave_id, caller=caller, action=transition, clock=clock)
        _audit(db, request, caller=caller, action=f"LEAVE_{leave.status.value}", leave=leave)
        return LeaveRead.model_validate(leave)

    _endpoint.__name__ = f"post_leave_{transition.value.lower()}"
    return _endpoint


for _transition in Transition:
    router.add_api_route(
        f"/{{leave_id}}/{_transition.value.lower()}",
        _transition_endpoint(_transition),
        methods=["POST"],
        response_model=LeaveRead,
    )


@router.delete("/{leave_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_leave(
    leave_id: int,
    request: Request,
    caller: Caller = Depends(require_caller),
    store: LeaveStore = Depends(get_leave_store),
    db: Session = Depends(get_db),
) -> Response:
    leave = delete_leave(store, request_id=leave_id, caller=caller)
    _audit(db, request, caller=caller, action="LEAVE_DELETED", leave=leave)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
