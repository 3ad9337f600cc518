# salonbook/models.py

from typing import Optional, List
from datetime import datetime, date as Date, time, timezone

from sqlalchemy import DateTime, Index
from sqlalchemy.types import JSON
from sqlmodel import SQLModel, Field, Column

def utc_now() -> datetime:
    return datetime.now(timezone.utc)


DEFAULT_WEEKLY_SCHEDULE = {
    "monday": {"is_working": True, "start": "11:00", "end": "19:00"},
    "tuesday": {"is_working": False, "start": "11:00", "end": "19:00"},
    "wednesday": {"is_working": True, "start": "11:00", "end": "19:00"},
    "thursday": {"is_working": True, "start": "11:00", "end": "19:00"},
    "friday": {"is_working": True, "start": "11:00", "end": "19:00"},
    "saturday": {"is_working": True, "start": "11:00", "end": "19:00"},
    "sunday": {"is_working": True, "start": "11:00", "end": "19:00"},
}


class SalonSettings(SQLModel, table=True):
    __tablename__ = "salon_settings"

    id: Optional[int] = Field(default=None, primary_key=True)
    weekly_schedule: dict = Field(default_factory=lambda: dict(DEFAULT_WEEKLY_SCHEDULE), sa_column=Column(JSON))
    closed_dates: List[str] = Field(default_factory=list, sa_column=Column(JSON))  # YYYY-MM-DD


class Stylist(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: Optional[str] = Field(default=None, index=True)
    is_active: bool = True
    # weekday -> {"is_working", "start", "end"}; missing weekdays use the salon schedule
    working_hours: dict = Field(default_factory=dict, sa_column=Column(JSON))


class Service(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    duration: int
    processing_wait_time: int = 0
    processing_duration: int = 0
    is_active: bool = True


class BlockedPeriod(SQLModel, table=True):
    __tablename__ = "blocked_periods"

    id: Optional[int] = Field(default=None, primary_key=True)

    stylist_id: int = Field(foreign_key="stylist.id", index=True)
    date: Date = Field(index=True)
    kind: str  # "full_day" or "partial"
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    reason: Optional[str] = None


class Appointment(SQLModel, table=True):
    __table_args__ = (
        Index("idx_stylist_date", "stylist_id", "date"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    stylist_id: int = Field(foreign_key="stylist.id")
    date: Date
    start_time: time
    end_time: time
    # ordered duration profiles as booked; occupancy is recomputed from these
    services: List[dict] = Field(sa_column=Column(JSON))
    customer_name: str
    customer_email: str
    status: str = "CONFIRMED"
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime(timezone=True), nullable=False))
