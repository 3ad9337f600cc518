# salonbook/repository.py

"""
Reads stylist, salon and appointment rows into the plain records the
scheduling engine consumes.
"""

from datetime import date
from typing import Dict, List, Sequence, Union

from sqlmodel import Session, select

from salonbook import models
from salonbook.core.blocked import parse_blocked_period
from salonbook.errors import AppointmentNotFound, InvalidService, StylistNotFound
from salonbook.schemas import (
    AppointmentStatus,
    BlockKind,
    BookedAppointment,
    DaySnapshot,
    FullDayBlock,
    PartialBlock,
    ServiceDurationProfile,
    WeeklySchedule,
    WorkingDay,
)


def get_salon_settings(session: Session) -> models.SalonSettings:
    """
    The salon settings row, or unsaved defaults when none was seeded.

    Writers add the returned object to the session themselves.
    """
    salon = session.exec(select(models.SalonSettings).order_by(models.SalonSettings.id)).first()
    if salon is None:
        return models.SalonSettings()
    return salon


def to_weekly_schedule(raw: Dict[str, dict]) -> WeeklySchedule:
    return {day: WorkingDay.model_validate(hours) for day, hours in (raw or {}).items()}


def dump_weekly_schedule(schedule: WeeklySchedule) -> Dict[str, dict]:
    return {day: hours.model_dump(mode="json") for day, hours in schedule.items()}


def get_active_stylist(session: Session, stylist_id: int) -> models.Stylist:
    stylist = session.get(models.Stylist, stylist_id)
    if stylist is None or not stylist.is_active:
        raise StylistNotFound(f"Stylist {stylist_id} not found")
    return stylist


def get_appointment(session: Session, appointment_id: int) -> models.Appointment:
    appointment = session.get(models.Appointment, appointment_id)
    if appointment is None:
        raise AppointmentNotFound(f"Appointment {appointment_id} not found")
    return appointment


def block_from_row(row: models.BlockedPeriod) -> Union[FullDayBlock, PartialBlock]:
    data = {"kind": row.kind, "date": row.date, "reason": row.reason}
    if row.kind == BlockKind.partial.value:
        data["start_time"] = row.start_time
        data["end_time"] = row.end_time
    return parse_blocked_period(data)


def blocks_for_day(session: Session, stylist_id: int, day: date) -> List[models.BlockedPeriod]:
    return session.exec(
        select(models.BlockedPeriod)
        .where(models.BlockedPeriod.stylist_id == stylist_id)
        .where(models.BlockedPeriod.date == day)
        .order_by(models.BlockedPeriod.start_time)
    ).all()


def appointments_for_day(session: Session, stylist_id: int, day: date) -> List[models.Appointment]:
    return session.exec(
        select(models.Appointment)
        .where(models.Appointment.stylist_id == stylist_id)
        .where(models.Appointment.date == day)
        .order_by(models.Appointment.start_time)
    ).all()


def profiles_from_row(appointment: models.Appointment) -> List[ServiceDurationProfile]:
    return [ServiceDurationProfile.model_validate(s) for s in appointment.services]


def booked_from_row(appointment: models.Appointment) -> BookedAppointment:
    return BookedAppointment(
        id=appointment.id,
        start_time=appointment.start_time,
        services=profiles_from_row(appointment),
        status=AppointmentStatus(appointment.status),
    )


def load_day_snapshot(session: Session, stylist_id: int, day: date) -> DaySnapshot:
    """Fresh read of everything that decides the stylist's availability on day."""
    # drop anything cached by earlier reads in this session
    session.expire_all()

    stylist = get_active_stylist(session, stylist_id)
    salon = get_salon_settings(session)

    blocked = [block_from_row(row) for row in blocks_for_day(session, stylist_id, day)]
    if day.isoformat() in (salon.closed_dates or []):
        blocked.append(FullDayBlock(date=day, reason="Salon closed"))

    return DaySnapshot(
        stylist_id=stylist_id,
        date=day,
        working_hours=to_weekly_schedule(stylist.working_hours),
        salon_hours=to_weekly_schedule(salon.weekly_schedule),
        blocked=blocked,
        appointments=[booked_from_row(a) for a in appointments_for_day(session, stylist_id, day)],
    )


def service_profile(service: models.Service) -> ServiceDurationProfile:
    return ServiceDurationProfile(
        name=service.name,
        duration=service.duration,
        processing_wait_time=service.processing_wait_time,
        processing_duration=service.processing_duration,
    )


def get_service_profiles(session: Session, service_ids: Sequence[int]) -> List[ServiceDurationProfile]:
    """Profiles in the requested order; the same service may appear twice."""
    if not service_ids:
        raise InvalidService("At least one service is required")

    rows = session.exec(
        select(models.Service).where(models.Service.id.in_(set(service_ids)))
    ).all()
    by_id = {row.id: row for row in rows if row.is_active}

    missing = [str(sid) for sid in service_ids if sid not in by_id]
    if missing:
        raise InvalidService(f"Service not available: {', '.join(missing)}")
    return [service_profile(by_id[sid]) for sid in service_ids]
