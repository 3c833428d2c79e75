from fastapi import Depends
from sqlalchemy.orm import Session

from worktrack.clock import Clock, system_clock
from worktrack.db import get_db
from worktrack.stores.base import AttendanceStore, LeaveStore
from worktrack.stores.sql import SqlAttendanceStore, SqlLeaveStore


def get_clock() -> Clock:
    return system_clock


def get_attendance_store(db: Session = Depends(get_db)) -> AttendanceStore:
    return SqlAttendanceStore(db)


def get_leave_store(db: Session = Depends(get_db)) -> LeaveStore:
    return SqlLeaveStore(db)
