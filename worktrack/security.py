from __future__ import annotations

from typing import Any

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from worktrack.domain import Caller
from worktrack.errors import ApiError
from worktrack.models import Role
from worktrack.settings import get_settings

bearer_scheme = HTTPBearer(auto_error=False)

# Accept the lower-case role names issued by the identity provider.
_ROLE_ALIASES: dict[str, Role] = {role.value.lower(): role for role in Role}


def decode_token(token: str) -> dict[str, Any]:
    settings = get_settings()
    if not settings.jwt_secret:
        raise ApiError(status_code=401, code="INVALID_TOKEN", message="Token verification is not configured.")
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=["HS256"],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
            options={"require_sub": True, "require_exp": True},
        )
    except JWTError as exc:
        raise ApiError(status_code=401, code="INVALID_TOKEN", message="Token is invalid.") from exc
    return payload


def caller_from_claims(claims: dict[str, Any]) -> Caller:
    subject = claims.get("sub")
    try:
        employee_id = int(str(subject))
    except (TypeError, ValueError):
        raise ApiError(status_code=401, code="INVALID_TOKEN", message="Token subject is invalid.") from None
    if employee_id <= 0:
        raise ApiError(status_code=401, code="INVALID_TOKEN", message="Token subject is invalid.")

    raw_role = str(claims.get("role") or "").strip().lower()
    role = _ROLE_ALIASES.get(raw_role)
    if role is None:
        raise ApiError(status_code=403, code="FORBIDDEN", message="Unknown role.")
    return Caller(employee_id=employee_id, role=role)


def require_caller(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Caller:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise ApiError(status_code=401, code="INVALID_TOKEN", message="Missing bearer token.")

    caller = caller_from_claims(decode_token(credentials.credentials))
    request.state.actor = "reviewer" if caller.is_reviewer else "employee"
    request.state.actor_id = str(caller.employee_id)
    request.state.employee_id = caller.employee_id
    return caller
