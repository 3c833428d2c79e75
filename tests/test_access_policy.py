from __future__ import annotations

import unittest

from worktrack.domain import Caller
from worktrack.errors import Forbidden
from worktrack.models import Role
from worktrack.services.access import PERMISSION_MATRIX, Grant, LeaveAction, authorize, grant_for


class PermissionMatrixTests(unittest.TestCase):
    def test_every_role_has_an_entry_for_every_action(self) -> None:
        for role in Role:
            for action in LeaveAction:
                self.assertIn((role, action), PERMISSION_MATRIX)

    def test_employee_cannot_review(self) -> None:
        self.assertEqual(grant_for(Role.EMPLOYEE, LeaveAction.APPROVE), Grant.DENY)
        self.assertEqual(grant_for(Role.EMPLOYEE, LeaveAction.REJECT), Grant.DENY)

    def test_reviewer_roles_share_grants(self) -> None:
        for action in LeaveAction:
            grants = {grant_for(role, action) for role in (Role.HR, Role.ADMIN, Role.SUPERADMIN)}
            self.assertEqual(len(grants), 1, action)

    def test_owner_may_cancel_own_request(self) -> None:
        caller = Caller(employee_id=5, role=Role.EMPLOYEE)

        self.assertEqual(authorize(caller, LeaveAction.CANCEL, owner_id=5), Grant.OWN)

    def test_employee_cannot_touch_someone_elses_request(self) -> None:
        caller = Caller(employee_id=5, role=Role.EMPLOYEE)

        for action in (LeaveAction.VIEW, LeaveAction.EDIT, LeaveAction.CANCEL, LeaveAction.DELETE):
            with self.assertRaises(Forbidden):
                authorize(caller, action, owner_id=6)

    def test_reviewer_gets_any_grant_even_on_own_request(self) -> None:
        caller = Caller(employee_id=9, role=Role.HR)

        self.assertEqual(authorize(caller, LeaveAction.CANCEL, owner_id=9), Grant.ANY)
        self.assertEqual(authorize(caller, LeaveAction.APPROVE, owner_id=3), Grant.ANY)

    def test_reviewer_cannot_edit_other_requests(self) -> None:
        caller = Caller(employee_id=9, role=Role.ADMIN)

        with self.assertRaises(Forbidden) as exc:
            authorize(caller, LeaveAction.EDIT, owner_id=3)
        self.assertEqual(exc.exception.status_code, 403)


if __name__ == "__main__":
    unittest.main()
