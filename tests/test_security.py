from __future__ import annotations

import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from jose import jwt

from worktrack.errors import ApiError
from worktrack.models import Role
from worktrack.security import caller_from_claims, decode_token
from worktrack.settings import Settings

SECRET = "unit-test-secret"
TEST_SETTINGS = Settings(jwt_secret=SECRET, jwt_issuer="worktrack-auth", jwt_audience="worktrack")


def _token(**overrides) -> str:
    claims = {
        "sub": "7",
        "role": "hr",
        "iss": "worktrack-auth",
        "aud": "worktrack",
        "exp": datetime.now(timezone.utc) + timedelta(hours=1),
    }
    claims.update(overrides)
    return jwt.encode(claims, SECRET, algorithm="HS256")


class TokenVerificationTests(unittest.TestCase):
    def test_valid_token_resolves_caller(self) -> None:
        with patch("worktrack.security.get_settings", return_value=TEST_SETTINGS):
            caller = caller_from_claims(decode_token(_token()))

        self.assertEqual(caller.employee_id, 7)
        self.assertEqual(caller.role, Role.HR)
        self.assertTrue(caller.is_reviewer)

    def test_expired_token_is_rejected(self) -> None:
        with patch("worktrack.security.get_settings", return_value=TEST_SETTINGS):
            with self.assertRaises(ApiError) as exc:
                decode_token(_token(exp=datetime.now(timezone.utc) - timedelta(minutes=1)))
        self.assertEqual(exc.exception.status_code, 401)
        self.assertEqual(exc.exception.code, "INVALID_TOKEN")

    def test_wrong_audience_is_rejected(self) -> None:
        with patch("worktrack.security.get_settings", return_value=TEST_SETTINGS):
            with self.assertRaises(ApiError):
                decode_token(_token(aud="someone-else"))

    def test_wrong_signature_is_rejected(self) -> None:
        forged = jwt.encode(
            {
                "sub": "7",
                "role": "admin",
                "iss": "worktrack-auth",
                "aud": "worktrack",
                "exp": datetime.now(timezone.utc) + timedelta(hours=1),
            },
            "not-the-secret",
            algorithm="HS256",
        )
        with patch("worktrack.security.get_settings", return_value=TEST_SETTINGS):
            with self.assertRaises(ApiError):
                decode_token(forged)

    def test_unconfigured_secret_rejects_everything(self) -> None:
        with patch("worktrack.security.get_settings", return_value=Settings(jwt_secret="")):
            with self.assertRaises(ApiError) as exc:
                decode_token(_token())
        self.assertEqual(exc.exception.status_code, 401)


class ClaimsTests(unittest.TestCase):
    def test_role_is_case_insensitive(self) -> None:
        self.assertEqual(caller_from_claims({"sub": "3", "role": "SuperAdmin"}).role, Role.SUPERADMIN)
        self.assertFalse(caller_from_claims({"sub": "3", "role": "employee"}).is_reviewer)

    def test_unknown_role_is_forbidden(self) -> None:
        with self.assertRaises(ApiError) as exc:
            caller_from_claims({"sub": "3", "role": "contractor"})
        self.assertEqual(exc.exception.status_code, 403)

    def test_non_numeric_subject_is_invalid(self) -> None:
        for subject in ("abc", "0", "-4", None):
            with self.assertRaises(ApiError) as exc:
                caller_from_claims({"sub": subject, "role": "employee"})
            self.assertEqual(exc.exception.status_code, 401)


if __name__ == "__main__":
    unittest.main()
