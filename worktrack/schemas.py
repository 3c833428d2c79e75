from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from worktrack.models import (
    AttendanceStatus,
    LeaveStatus,
    LeaveType,
    ShiftType,
)


class IntervalRead(BaseModel):
    start: datetime
    end: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class TaskEntryPayload(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    hours_spent: float | None = Field(default=None, ge=0, le=24)

    model_config = ConfigDict(from_attributes=True)


class AttendanceCheckinRequest(BaseModel):
    shift: ShiftType
    reason: str | None = Field(default=None, max_length=1000)
    notes: str | None = Field(default=None, max_length=2000)


class AttendanceCheckoutRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=1000)
    tasks_completed: list[TaskEntryPayload] = Field(default_factory=list)


class AttendanceDayRead(BaseModel):
    id: int | None
    employee_id: int
    calendar_date: date
    shift: ShiftType
    check_in: datetime
    check_out: datetime | None
    check_in_reason: str | None
    check_out_reason: str | None
    status: AttendanceStatus
    breaks: list[IntervalRead]
    namaz: list[IntervalRead]
    total_break_minutes: float
    total_namaz_minutes: float
    total_hours: float | None
    tasks_completed: list[TaskEntryPayload]
    notes: str | None

    model_config = ConfigDict(from_attributes=True)


class AttendancePage(BaseModel):
    items: list[AttendanceDayRead]
    page: int
    limit: int
    total: int

    model_config = ConfigDict(from_attributes=True)


class AttendanceTodayResponse(BaseModel):
    record: AttendanceDayRead | None
    break_open: bool = False
    namaz_open: bool = False


class LeaveCreateRequest(BaseModel):
    type: LeaveType
    start_date: date
    end_date: date
    reason: str = Field(min_length=1, max_length=2000)
    attachments: list[str] = Field(default_factory=list, max_length=20)

    @model_validator(mode="after")
    def _strip_reason(self) -> "LeaveCreateRequest":
        self.reason = self.reason.strip()
        if not self.reason:
            raise ValueError("reason must not be blank")
        return self


class LeaveUpdateRequest(BaseModel):
    type: LeaveType | None = None
    start_date: date | None = None
    end_date: date | None = None
    reason: str | None = Field(default=None, min_length=1, max_length=2000)
    attachments: list[str] | None = Field(default=None, max_length=20)

    @model_validator(mode="after")
    def _strip_reason(self) -> "LeaveUpdateRequest":
        if self.reason is not None:
            self.reason = self.reason.strip()
            if not self.reason:
                raise ValueError("reason must not be blank")
        return self


class LeaveRead(BaseModel):
    id: int
    employee_id: int
    type: LeaveType
    start_date: date
    end_date: date
    reason: str
    status: LeaveStatus
    reviewed_by: int | None
    reviewed_at: datetime | None
    attachments: list[str]
    created_at: datetime | None

    model_config = ConfigDict(from_attributes=True)


class LeavePage(BaseModel):
    items: list[LeaveRead]
    page: int
    limit: int
    total: int

    model_config = ConfigDict(from_attributes=True)


class LeaveTypeStatsRead(BaseModel):
    total_days: int
    approved_days: int
    pending_days: int
    count: int

    model_config = ConfigDict(from_attributes=True)


class LeaveStatsResponse(BaseModel):
    employee_id: int
    year: int
    stats: dict[LeaveType, LeaveTypeStatsRead]
