from __future__ import annotations

import enum
import logging
from collections.abc import Iterable
from dataclasses import replace
from datetime import date, datetime

from worktrack.clock import Clock, system_clock
from worktrack.domain import Caller, LeaveFilters, LeavePatch, LeaveRequest, Page
from worktrack.errors import (
    InvalidRange,
    InvalidTransition,
    NotDeletable,
    NotEditable,
    NotFound,
    OverlappingLeave,
)
from worktrack.models import ACTIVE_LEAVE_STATUSES, LeaveStatus, LeaveType
from worktrack.services.access import Grant, LeaveAction, authorize
from worktrack.services.overlap import find_conflict
from worktrack.settings import get_settings
from worktrack.stores.base import LeaveStore

logger = logging.getLogger("worktrack.leaves")


class Transition(str, enum.Enum):
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    CANCEL = "CANCEL"


_TARGET_STATUS: dict[Transition, LeaveStatus] = {
    Transition.APPROVE: LeaveStatus.APPROVED,
    Transition.REJECT: LeaveStatus.REJECTED,
    Transition.CANCEL: LeaveStatus.CANCELLED,
}

_TRANSITION_ACTION: dict[Transition, LeaveAction] = {
    Transition.APPROVE: LeaveAction.APPROVE,
    Transition.REJECT: LeaveAction.REJECT,
    Transition.CANCEL: LeaveAction.CANCEL,
}

# Statuses each transition may start from, keyed by the grant that allowed it.
# A reviewer cancel is an administrative override and may undo a decision.
_ALLOWED_SOURCES: dict[tuple[Transition, Grant], frozenset[LeaveStatus]] = {
    (Transition.APPROVE, Grant.ANY): frozenset({LeaveStatus.PENDING}),
    (Transition.REJECT, Grant.ANY): frozenset({LeaveStatus.PENDING}),
    (Transition.CANCEL, Grant.OWN): frozenset({LeaveStatus.PENDING}),
    (Transition.CANCEL, Grant.ANY): frozenset(
        {LeaveStatus.PENDING, LeaveStatus.APPROVED, LeaveStatus.REJECTED}
    ),
}


def _ensure_valid_range(start_date: date, end_date: date) -> None:
    if start_date > end_date:
        raise InvalidRange("end_date must be greater than or equal to start_date")


def _ensure_no_overlap(store: LeaveStore, candidate: LeaveRequest) -> None:
    existing = [
        item.span
        for item in store.find_active_leave_spans(candidate.employee_id, ACTIVE_LEAVE_STATUSES)
        if candidate.id is None or item.id != candidate.id
    ]
    conflict = find_conflict(candidate.start_date, candidate.end_date, existing)
    if conflict is not None:
        raise OverlappingLeave(
            f"Leave overlaps an existing request from {conflict[0].isoformat()} to {conflict[1].isoformat()}."
        )


def _load(store: LeaveStore, request_id: int, *, for_update: bool = False) -> LeaveRequest:
    leave = store.find_by_id(request_id, for_update=for_update)
    if leave is None:
        raise NotFound("Leave request not found.")
    return leave


def apply_patch(leave: LeaveRequest, patch: LeavePatch) -> LeaveRequest:
    if leave.status != LeaveStatus.PENDING:
        raise NotEditable()

    updated = replace(
        leave,
        type=patch.type if patch.type is not None else leave.type,
        start_date=patch.start_date if patch.start_date is not None else leave.start_date,
        end_date=patch.end_date if patch.end_date is not None else leave.end_date,
        reason=patch.reason if patch.reason is not None else leave.reason,
        attachments=patch.attachments if patch.attachments is not None else leave.attachments,
    )
    _ensure_valid_range(updated.start_date, updated.end_date)
    return updated


def apply_transition(
    leave: LeaveRequest,
    transition: Transition,
    *,
    grant: Grant,
    reviewer_id: int,
    now: datetime,
) -> LeaveRequest:
    allowed = _ALLOWED_SOURCES.get((transition, grant), frozenset())
    if leave.status not in allowed:
        raise InvalidTransition(
            f"Cannot {transition.value.lower()} a leave request that is {leave.status.value.lower()}."
        )
    return replace(
        leave,
        status=_TARGET_STATUS[transition],
        reviewed_by=reviewer_id,
        reviewed_at=now,
    )


def create_leave(
    store: LeaveStore,
    *,
    caller: Caller,
    type: LeaveType,
    start_date: date,
    end_date: date,
    reason: str,
    attachments: Iterable[str] = (),
    clock: Clock = system_clock,
) -> LeaveRequest:
    authorize(caller, LeaveAction.CREATE, owner_id=caller.employee_id)
    _ensure_valid_range(start_date, end_date)

    candidate = LeaveRequest(
        employee_id=caller.employee_id,
        type=type,
        start_date=start_date,
        end_date=end_date,
        reason=reason,
        status=LeaveStatus.PENDING,
        attachments=tuple(attachments),
        created_at=clock(),
    )
    _ensure_no_overlap(store, candidate)
    leave = store.insert(candidate)
    logger.info(
        "leave_created",
        extra={
            "leave_id": leave.id,
            "employee_id": leave.employee_id,
            "leave_type": leave.type.value,
            "start_date": leave.start_date.isoformat(),
            "end_date": leave.end_date.isoformat(),
        },
    )
    return leave


def get_leave(store: LeaveStore, *, request_id: int, caller: Caller) -> LeaveRequest:
    leave = _load(store, request_id)
    if not caller.is_reviewer and leave.employee_id != caller.employee_id:
        # Do not reveal other employees' requests.
        raise NotFound("Leave request not found.")
    authorize(caller, LeaveAction.VIEW, owner_id=leave.employee_id)
    return leave


def edit_leave(
    store: LeaveStore,
    *,
    request_id: int,
    caller: Caller,
    patch: LeavePatch,
) -> LeaveRequest:
    leave = store.find_by_id(request_id, for_update=True)
    if leave is None or leave.employee_id != caller.employee_id:
        raise NotFound("Leave request not found.")
    authorize(caller, LeaveAction.EDIT, owner_id=leave.employee_id)

    updated = apply_patch(leave, patch)
    _ensure_no_overlap(store, updated)
    saved = store.update(updated)
    logger.info(
        "leave_edited",
        extra={
            "leave_id": saved.id,
            "employee_id": saved.employee_id,
            "start_date": saved.start_date.isoformat(),
            "end_date": saved.end_date.isoformat(),
        },
    )
    return saved


def transition_leave(
    store: LeaveStore,
    *,
    request_id: int,
    caller: Caller,
    action: Transition,
    clock: Clock = system_clock,
) -> LeaveRequest:
    leave = _load(store, request_id, for_update=True)
    grant = authorize(caller, _TRANSITION_ACTION[action], owner_id=leave.employee_id)

    previous_status = leave.status
    updated = store.update(
        apply_transition(
            leave,
            action,
            grant=grant,
            reviewer_id=caller.employee_id,
            now=clock(),
        )
    )
    logger.info(
        "leave_transitioned",
        extra={
            "leave_id": updated.id,
            "employee_id": updated.employee_id,
            "transition": action.value,
            "from_status": previous_status.value,
            "to_status": updated.status.value,
            "reviewed_by": updated.reviewed_by,
            "override": previous_status != LeaveStatus.PENDING,
        },
    )
    return updated


def delete_leave(store: LeaveStore, *, request_id: int, caller: Caller) -> LeaveRequest:
    leave = _load(store, request_id, for_update=True)
    grant = authorize(caller, LeaveAction.DELETE, owner_id=leave.employee_id)
    if grant == Grant.OWN and leave.status != LeaveStatus.PENDING:
        raise NotDeletable()

    store.delete(request_id, expected_version=leave.version)
    logger.info(
        "leave_deleted",
        extra={
            "leave_id": leave.id,
            "employee_id": leave.employee_id,
            "leave_status": leave.status.value,
            "deleted_by": caller.employee_id,
        },
    )
    return leave


def list_leaves(
    store: LeaveStore,
    *,
    caller: Caller,
    employee_id: int | None = None,
    status: LeaveStatus | None = None,
    type: LeaveType | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    page: int = 1,
    limit: int | None = None,
) -> Page:
    settings = get_settings()
    if date_from is not None and date_to is not None:
        _ensure_valid_range(date_from, date_to)

    if not caller.is_reviewer:
        employee_id = caller.employee_id

    safe_page = max(1, page)
    safe_limit = min(max(1, limit or settings.default_page_size), settings.max_page_size)
    items, total = store.list_requests(
        LeaveFilters(
            employee_id=employee_id,
            status=status,
            type=type,
            date_from=date_from,
            date_to=date_to,
            offset=(safe_page - 1) * safe_limit,
            limit=safe_limit,
        )
    )
    return Page(items=list(items), page=safe_page, limit=safe_limit, total=total)
