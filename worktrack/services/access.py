from __future__ import annotations

import enum

from worktrack.domain import Caller
from worktrack.errors import Forbidden
from worktrack.models import Role


class LeaveAction(str, enum.Enum):
    CREATE = "CREATE"
    VIEW = "VIEW"
    EDIT = "EDIT"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    CANCEL = "CANCEL"
    DELETE = "DELETE"


class Grant(str, enum.Enum):
    ANY = "ANY"
    OWN = "OWN"
    DENY = "DENY"


_EMPLOYEE_GRANTS: dict[LeaveAction, Grant] = {
    LeaveAction.CREATE: Grant.OWN,
    LeaveAction.VIEW: Grant.OWN,
    LeaveAction.EDIT: Grant.OWN,
    LeaveAction.APPROVE: Grant.DENY,
    LeaveAction.REJECT: Grant.DENY,
    LeaveAction.CANCEL: Grant.OWN,
    LeaveAction.DELETE: Grant.OWN,
}

_REVIEWER_GRANTS: dict[LeaveAction, Grant] = {
    LeaveAction.CREATE: Grant.OWN,
    LeaveAction.VIEW: Grant.ANY,
    # Reviewers edit only their own requests; other people's go through approve/reject.
    LeaveAction.EDIT: Grant.OWN,
    LeaveAction.APPROVE: Grant.ANY,
    LeaveAction.REJECT: Grant.ANY,
    LeaveAction.CANCEL: Grant.ANY,
    LeaveAction.DELETE: Grant.ANY,
}

PERMISSION_MATRIX: dict[tuple[Role, LeaveAction], Grant] = {
    **{(Role.EMPLOYEE, action): grant for action, grant in _EMPLOYEE_GRANTS.items()},
    **{
        (role, action): grant
        for role in (Role.HR, Role.ADMIN, Role.SUPERADMIN)
        for action, grant in _REVIEWER_GRANTS.items()
    },
}


def grant_for(role: Role, action: LeaveAction) -> Grant:
    return PERMISSION_MATRIX.get((role, action), Grant.DENY)


def authorize(caller: Caller, action: LeaveAction, *, owner_id: int) -> Grant:
    """Return the grant that allowed the action or raise Forbidden.

    An ``ANY`` grant is reported even when the caller also owns the record so
    callers can tell reviewer overrides apart from owner actions.
    """
    grant = grant_for(caller.role, action)
    if grant == Grant.ANY:
        return grant
    if grant == Grant.OWN and caller.employee_id == owner_id:
        return grant
    raise Forbidden(f"Role {caller.role.value} may not {action.value.lower()} this leave request.")
