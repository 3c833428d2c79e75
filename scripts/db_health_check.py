#!/usr/bin/env python
from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from alembic.config import Config
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection

from worktrack.services.schema_guard import verify_runtime_schema
from worktrack.settings import get_settings

ROOT_DIR = Path(__file__).resolve().parents[1]


@dataclass(slots=True)
class CheckResult:
    name: str
    status: str
    details: dict[str, Any]


# name -> query returning offending rows; any row fails the check
INTEGRITY_PROBES: dict[str, str] = {
    "duplicate_attendance_day": """
        select employee_id, calendar_date, count(*)
        from attendance_records
        group by employee_id, calendar_date
        having count(*) > 1
        limit 20
    """,
    "overlapping_active_leaves": """
        select a.id, b.id
        from leave_requests a
        join leave_requests b
          on a.employee_id = b.employee_id
         and a.id < b.id
         and a.start_date <= b.end_date
         and b.start_date <= a.end_date
        where a.status in ('PENDING', 'APPROVED')
          and b.status in ('PENDING', 'APPROVED')
        limit 20
    """,
    "inverted_leave_span": """
        select id from leave_requests where start_date > end_date limit 20
    """,
    "open_interval_after_checkout": """
        select id
        from attendance_records
        where check_out is not null
          and (
            jsonb_path_exists(breaks, '$[*] ? (@.end == null)')
            or jsonb_path_exists(namaz, '$[*] ? (@.end == null)')
          )
        limit 20
    """,
}


def expected_alembic_heads() -> list[str]:
    config = Config(str(ROOT_DIR / "alembic.ini"))
    script = ScriptDirectory.from_config(config)
    return sorted(script.get_heads())


def check_migration_head(connection: Connection, expected_heads: list[str]) -> CheckResult:
    current_versions = [
        str(row[0]).strip()
        for row in connection.execute(text("select version_num from alembic_version")).fetchall()
        if row and row[0] is not None
    ]
    missing_heads = [head for head in expected_heads if head not in current_versions]
    return CheckResult(
        name="migration_up_to_date",
        status="ok" if not missing_heads else "fail",
        details={
            "expected_heads": expected_heads,
            "current_versions": current_versions,
            "missing_heads": missing_heads,
        },
    )


def run_integrity_probes(connection: Connection) -> list[CheckResult]:
    results: list[CheckResult] = []
    for name, query in INTEGRITY_PROBES.items():
        rows = connection.execute(text(query)).fetchall()
        results.append(
            CheckResult(
                name=name,
                status="fail" if rows else "ok",
                details={"rows": [list(row) for row in rows]},
            )
        )
    return results


def run() -> tuple[bool, dict[str, Any]]:
    engine = create_engine(get_settings().database_url, pool_pre_ping=True)
    checks: list[CheckResult] = []
    try:
        schema_result = verify_runtime_schema(engine)
        checks.append(
            CheckResult(
                name="schema_guard",
                status="ok" if schema_result.ok else "fail",
                details=schema_result.to_dict(),
            )
        )
        with engine.connect() as connection:
            checks.append(check_migration_head(connection, expected_alembic_heads()))
            if schema_result.ok:
                checks.extend(run_integrity_probes(connection))
    finally:
        engine.dispose()

    ok = all(check.status != "fail" for check in checks)
    report = {
        "generated_at_utc": datetime.now(timezone.utc).isoformat(),
        "ok": ok,
        "checks": [
            {
                "name": check.name,
                "status": check.status,
                "details": check.details,
            }
            for check in checks
        ],
    }
    return ok, report


def main() -> int:
    ok, report = run()
    print(json.dumps(report, ensure_ascii=False, indent=2))
    return 0 if ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
