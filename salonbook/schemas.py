# salonbook/schemas.py

from datetime import date, datetime, time
from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def weekday_name(day: date) -> str:
    return WEEKDAYS[day.weekday()]  # 0=Mon, 1=Tues....


class AppointmentStatus(str, Enum):
    pending = "PENDING"
    confirmed = "CONFIRMED"
    completed = "COMPLETED"
    cancelled = "CANCELLED"
    no_show = "NO_SHOW"


class BlockKind(str, Enum):
    full_day = "full_day"
    partial = "partial"


class SlotReason(str, Enum):
    outside_hours = "outside_hours"
    blocked = "blocked"
    stylist_busy = "stylist_busy"
    past = "past"


class PhaseKind(str, Enum):
    active = "active"
    gap = "gap"


class WorkingDay(BaseModel):
    is_working: bool = True
    start: time = time(9, 0)
    end: time = time(17, 0)

    @model_validator(mode="after")
    def check_order(self):
        if self.is_working and self.start >= self.end:
            raise ValueError("start must be earlier than end on a working day")
        return self


WeeklySchedule = Dict[str, WorkingDay]

# field names below shadow these types inside some models
OptionalDate = Optional[date]
OptionalTime = Optional[time]


def check_whole_minute(value: time) -> time:
    # the engine works in whole minutes
    if value.second or value.microsecond:
        raise ValueError("time must be a whole minute (HH:MM)")
    return value


def check_weekday_keys(schedule: WeeklySchedule) -> WeeklySchedule:
    unknown = [key for key in schedule if key not in WEEKDAYS]
    if unknown:
        raise ValueError(f"unknown weekdays: {', '.join(sorted(unknown))}")
    return schedule


class ServiceDurationProfile(BaseModel):
    """
    How long a service takes and when the stylist is free during it.

    processing_wait_time is measured from the service start; the stylist
    is then free for processing_duration minutes and returns to finish.
    """

    name: Optional[str] = None
    duration: int = Field(gt=0)
    processing_wait_time: int = Field(default=0, ge=0)
    processing_duration: int = Field(default=0, ge=0)

    @property
    def has_gap(self) -> bool:
        return self.processing_duration > 0


class FullDayBlock(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: Literal["full_day"] = "full_day"
    date: date
    reason: Optional[str] = None


class PartialBlock(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: Literal["partial"] = "partial"
    date: date
    start_time: time
    end_time: time
    reason: Optional[str] = None

    @model_validator(mode="after")
    def check_order(self):
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be earlier than end_time")
        return self


BlockedPeriod = Annotated[Union[FullDayBlock, PartialBlock], Field(discriminator="kind")]


class BookedAppointment(BaseModel):
    """An existing appointment as seen by the engine."""

    id: Optional[int] = None
    start_time: time
    services: List[ServiceDurationProfile]
    status: AppointmentStatus = AppointmentStatus.confirmed


class DaySnapshot(BaseModel):
    """Everything the engine reads for one stylist on one date."""

    stylist_id: int
    date: date
    working_hours: WeeklySchedule = Field(default_factory=dict)
    salon_hours: WeeklySchedule = Field(default_factory=dict)
    blocked: List[BlockedPeriod] = Field(default_factory=list)
    appointments: List[BookedAppointment] = Field(default_factory=list)


class TimeSlot(BaseModel):
    time: str
    available: bool
    reason: Optional[SlotReason] = None


class TimeWindowPublic(BaseModel):
    start: str
    end: str


class PhasePublic(BaseModel):
    kind: PhaseKind
    start: str
    end: str
    service: Optional[str] = None


# API payloads

class SalonSchedule(BaseModel):
    weekly_schedule: WeeklySchedule

    @field_validator("weekly_schedule")
    @classmethod
    def known_weekdays(cls, value):
        return check_weekday_keys(value)


class ClosedDates(BaseModel):
    closed_dates: List[date]


class StylistCreate(BaseModel):
    name: str = Field(min_length=1)
    email: Optional[str] = None
    working_hours: WeeklySchedule = Field(default_factory=dict)

    @field_validator("working_hours")
    @classmethod
    def known_weekdays(cls, value):
        return check_weekday_keys(value)


class WorkingHoursUpdate(BaseModel):
    working_hours: WeeklySchedule

    @field_validator("working_hours")
    @classmethod
    def known_weekdays(cls, value):
        return check_weekday_keys(value)


class StylistPublic(BaseModel):
    id: int
    name: str
    email: Optional[str]
    is_active: bool
    working_hours: WeeklySchedule


class BlockedPeriodPublic(BaseModel):
    id: int
    stylist_id: int
    kind: BlockKind
    date: date
    start_time: Optional[time]
    end_time: Optional[time]
    reason: Optional[str]


class ServiceCreate(BaseModel):
    name: str = Field(min_length=1)
    duration: int = Field(gt=0)
    processing_wait_time: int = Field(default=0, ge=0)
    processing_duration: int = Field(default=0, ge=0)


class ServiceUpdate(BaseModel):
    name: Optional[str] = None
    duration: Optional[int] = Field(default=None, gt=0)
    processing_wait_time: Optional[int] = Field(default=None, ge=0)
    processing_duration: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None


class ServicePublic(BaseModel):
    id: int
    name: str
    duration: int
    processing_wait_time: int
    processing_duration: int
    is_active: bool


class AppointmentCreate(BaseModel):
    date: date
    time: time
    services: List[int] = Field(min_length=1)
    customer_name: str
    customer_email: str
    status: AppointmentStatus = AppointmentStatus.confirmed

    @field_validator("time")
    @classmethod
    def whole_minute(cls, value):
        return check_whole_minute(value)

    @field_validator("status")
    @classmethod
    def bookable_status(cls, value):
        if value not in (AppointmentStatus.pending, AppointmentStatus.confirmed):
            raise ValueError("new appointments must be PENDING or CONFIRMED")
        return value


class RescheduleRequest(BaseModel):
    date: date
    time: time
    stylist_id: Optional[int] = None

    @field_validator("time")
    @classmethod
    def whole_minute(cls, value):
        return check_whole_minute(value)


class AppointmentEdit(BaseModel):
    """Admin edit; fields left out keep their current value."""

    services: Optional[List[int]] = Field(default=None, min_length=1)
    date: OptionalDate = None
    time: OptionalTime = None
    stylist_id: Optional[int] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None

    @field_validator("time")
    @classmethod
    def whole_minute(cls, value):
        if value is None:
            return value
        return check_whole_minute(value)

    def moves_slot(self) -> bool:
        return any(v is not None for v in (self.services, self.date, self.time, self.stylist_id))


class AppointmentPublic(BaseModel):
    id: int
    stylist_id: int
    date: date
    start_time: str
    end_time: str
    starts_at: datetime
    ends_at: datetime
    services: List[ServiceDurationProfile]
    occupied: List[TimeWindowPublic]
    customer_name: str
    customer_email: str
    status: AppointmentStatus


class AvailabilityResponse(BaseModel):
    stylist_id: int
    date: date
    granularity: int
    slots: List[TimeSlot]


class SalonTimeSlot(BaseModel):
    time: str
    available: bool
    stylist_ids: List[int] = Field(default_factory=list)


class SalonAvailabilityResponse(BaseModel):
    date: date
    granularity: int
    slots: List[SalonTimeSlot]


class TimelineRequest(BaseModel):
    time: time
    services: List[int] = Field(min_length=1)

    @field_validator("time")
    @classmethod
    def whole_minute(cls, value):
        return check_whole_minute(value)


class TimelineResponse(BaseModel):
    start_time: str
    end_time: str
    total_duration: int
    phases: List[PhasePublic]
    occupied: List[TimeWindowPublic]


class AppointmentStatusUpdate(BaseModel):
    status: AppointmentStatus
