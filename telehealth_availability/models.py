from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RemoteSlot(BaseModel):
    """A persisted availability record as returned by the slots API."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    id: str
    date: Optional[datetime] = None
    start_time: datetime = Field(alias="startTime")
    end_time: datetime = Field(alias="endTime")
    duration: Optional[int | str] = None
    is_booked: bool = Field(default=False, alias="isBooked")


class SlotCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date: str
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    duration: int


class TimeSlotView(BaseModel):
    time: str  # HH:MM, local
    available: bool
    exists: bool
    start: datetime  # aware, local zone
    end: datetime


class DaySchedule(BaseModel):
    day: str  # Mon..Sun
    date: int
    month: int  # 1-based
    year: int
    full_date: date
    slots: List[TimeSlotView]


class AppointmentStatus(str, Enum):
    PENDING = "PENDING"
    SCHEDULED = "SCHEDULED"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


class Appointment(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    appointment_date: datetime = Field(alias="appointmentDate")
    status: AppointmentStatus
    duration: Optional[int] = None


class AppointmentStats(BaseModel):
    today: int
    upcoming: int
    completed: int
    cancelled: int


class SlotStatus(str, Enum):
    LOADING = "loading"
    PAST = "past"
    BOOKED = "booked"
    OPEN = "open"
    EMPTY = "empty"


class ToggleOutcome(str, Enum):
    CREATED = "created"
    REMOVED = "removed"
    SKIPPED = "skipped"  # already in flight
    REJECTED = "rejected"  # refused locally, no remote call
    FAILED = "failed"  # remote call failed
