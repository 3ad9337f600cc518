# salonbook/routers/appointments_routes.py

import logging
from datetime import date, datetime
from typing import List, Optional, Sequence

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select

from salonbook.clock import not_before_for, to_instant
from salonbook.core.guard import BookingGuard
from salonbook.core.timeline import build_timeline
from salonbook.core.timewindow import format_minutes, parse_time, to_time
from salonbook.db import get_session
from salonbook.deps import get_booking_guard, get_now
from salonbook.errors import AppointmentStateConflict
from salonbook.models import Appointment, utc_now
from salonbook.repository import (
    get_active_stylist,
    get_appointment,
    get_service_profiles,
    load_day_snapshot,
    profiles_from_row,
)
from salonbook.schemas import (
    AppointmentCreate,
    AppointmentEdit,
    AppointmentPublic,
    AppointmentStatus,
    AppointmentStatusUpdate,
    RescheduleRequest,
    ServiceDurationProfile,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["appointments"],
)

# from-status -> statuses it may move to
STATUS_TRANSITIONS = {
    AppointmentStatus.pending: {
        AppointmentStatus.confirmed,
        AppointmentStatus.completed,
        AppointmentStatus.no_show,
        AppointmentStatus.cancelled,
    },
    AppointmentStatus.confirmed: {
        AppointmentStatus.completed,
        AppointmentStatus.no_show,
        AppointmentStatus.cancelled,
    },
}

MOVABLE_STATUSES = (AppointmentStatus.pending, AppointmentStatus.confirmed)


def appointment_public(appointment: Appointment) -> dict:
    profiles = profiles_from_row(appointment)
    timeline = build_timeline(parse_time(appointment.start_time), profiles)
    return {
        "id": appointment.id,
        "stylist_id": appointment.stylist_id,
        "date": appointment.date,
        "start_time": format_minutes(timeline.start),
        "end_time": format_minutes(timeline.end),
        "starts_at": to_instant(appointment.date, timeline.start),
        "ends_at": to_instant(appointment.date, timeline.end),
        "services": profiles,
        "occupied": [
            {"start": format_minutes(w.start), "end": format_minutes(w.end)}
            for w in timeline.occupied
        ],
        "customer_name": appointment.customer_name,
        "customer_email": appointment.customer_email,
        "status": appointment.status,
    }


def refresh_for_update(session: Session, appointment_id: int) -> Appointment:
    # state may have changed while waiting for the lock
    session.expire_all()
    return get_appointment(session, appointment_id)


@router.post(
    "/stylists/{stylist_id}/appointments",
    response_model=AppointmentPublic,
    status_code=201,
)
def create_appointment(
    stylist_id: int,
    appt: AppointmentCreate,
    session: Session = Depends(get_session),
    guard: BookingGuard = Depends(get_booking_guard),
    now: datetime = Depends(get_now),
):
    # 1) Validate stylist and services
    get_active_stylist(session, stylist_id)
    profiles = get_service_profiles(session, appt.services)

    # 2) Build the candidate in business-local minutes
    start = parse_time(appt.time)
    key = (appt.date, stylist_id)

    # 3) Persist only after re-validating against a fresh snapshot under the lock
    def persist(timeline):
        db_appt = Appointment(
            stylist_id=stylist_id,
            date=appt.date,
            start_time=to_time(timeline.start),
            end_time=to_time(timeline.end),
            services=[p.model_dump() for p in profiles],
            customer_name=appt.customer_name,
            customer_email=appt.customer_email,
            status=appt.status.value,
        )
        session.add(db_appt)
        session.commit()
        session.refresh(db_appt)
        return db_appt

    db_appt = guard.commit(
        key,
        lambda: load_day_snapshot(session, stylist_id, appt.date),
        start,
        profiles,
        persist,
        not_before=not_before_for(appt.date, now),
    )
    return appointment_public(db_appt)


@router.get("/stylists/{stylist_id}/appointments", response_model=List[AppointmentPublic])
def list_stylist_appointments(
    stylist_id: int,
    on_date: date = Query(alias="date"),
    status: str = "all",
    session: Session = Depends(get_session),
):
    get_active_stylist(session, stylist_id)

    valid = [s.value for s in AppointmentStatus]
    if status != "all" and status not in valid:
        raise HTTPException(
            status_code=422,
            detail=f"status must be one of {', '.join(valid)} or 'all'",
        )

    stmt = (
        select(Appointment)
        .where(Appointment.stylist_id == stylist_id)
        .where(Appointment.date == on_date)
    )
    if status != "all":
        stmt = stmt.where(Appointment.status == status)
    stmt = stmt.order_by(Appointment.start_time)

    return [appointment_public(a) for a in session.exec(stmt).all()]


@router.get("/appointments/{appointment_id}", response_model=AppointmentPublic)
def read_appointment(appointment_id: int, session: Session = Depends(get_session)):
    return appointment_public(get_appointment(session, appointment_id))


def check_movable(db_appt: Appointment) -> None:
    if AppointmentStatus(db_appt.status) not in MOVABLE_STATUSES:
        raise AppointmentStateConflict(f"Cannot move a {db_appt.status} appointment")


def move_appointment(
    session: Session,
    guard: BookingGuard,
    now: datetime,
    appointment_id: int,
    day: date,
    start: int,
    stylist_id: int,
    profiles: Sequence[ServiceDurationProfile],
    changes: Optional[dict] = None,
) -> Appointment:
    """
    Re-place an appointment under the locks of its old and new stylist-day.

    Its own occupancy is left out of the check, so it may overlap where
    it currently sits.
    """
    db_appt = get_appointment(session, appointment_id)
    old_key = (db_appt.date, db_appt.stylist_id)
    new_key = (day, stylist_id)

    def persist(timeline):
        current = refresh_for_update(session, appointment_id)
        check_movable(current)

        current.stylist_id = stylist_id
        current.date = day
        current.start_time = to_time(timeline.start)
        current.end_time = to_time(timeline.end)
        current.services = [p.model_dump() for p in profiles]
        for field, value in (changes or {}).items():
            setattr(current, field, value)
        current.updated_at = utc_now()
        session.add(current)
        session.commit()
        session.refresh(current)
        return current

    db_appt = guard.commit(
        new_key,
        lambda: load_day_snapshot(session, stylist_id, day),
        start,
        profiles,
        persist,
        not_before=not_before_for(day, now),
        release_keys=[old_key],
        exclude_appointment_id=appointment_id,
    )

    logger.info(
        "Moved appointment %s from stylist %s on %s to stylist %s on %s",
        appointment_id, old_key[1], old_key[0], new_key[1], new_key[0],
    )
    return db_appt


@router.post("/appointments/{appointment_id}/reschedule", response_model=AppointmentPublic)
def reschedule_appointment(
    appointment_id: int,
    move: RescheduleRequest,
    session: Session = Depends(get_session),
    guard: BookingGuard = Depends(get_booking_guard),
    now: datetime = Depends(get_now),
):
    # 1) Only live appointments can move
    db_appt = get_appointment(session, appointment_id)
    check_movable(db_appt)

    # 2) Target stylist-day; the booked profiles move unchanged
    stylist_id = move.stylist_id or db_appt.stylist_id
    get_active_stylist(session, stylist_id)
    profiles = profiles_from_row(db_appt)

    # 3) Move under both locks
    db_appt = move_appointment(
        session, guard, now, appointment_id, move.date, parse_time(move.time), stylist_id, profiles
    )
    return appointment_public(db_appt)


@router.put("/appointments/{appointment_id}", response_model=AppointmentPublic)
def edit_appointment(
    appointment_id: int,
    edit: AppointmentEdit,
    session: Session = Depends(get_session),
    guard: BookingGuard = Depends(get_booking_guard),
    now: datetime = Depends(get_now),
):
    db_appt = get_appointment(session, appointment_id)
    changes = edit.model_dump(include={"customer_name", "customer_email"}, exclude_none=True)

    # 1) Customer details only: occupancy is untouched, no guard needed
    if not edit.moves_slot():
        for field, value in changes.items():
            setattr(db_appt, field, value)
        db_appt.updated_at = utc_now()
        session.add(db_appt)
        session.commit()
        session.refresh(db_appt)
        logger.info("Edited customer details of appointment %s", appointment_id)
        return appointment_public(db_appt)

    # 2) New services change the occupancy shape; re-check it like a booking
    check_movable(db_appt)
    stylist_id = edit.stylist_id or db_appt.stylist_id
    get_active_stylist(session, stylist_id)
    if edit.services is not None:
        profiles = get_service_profiles(session, edit.services)
    else:
        profiles = profiles_from_row(db_appt)

    day = edit.date or db_appt.date
    start = parse_time(edit.time) if edit.time is not None else parse_time(db_appt.start_time)

    db_appt = move_appointment(
        session, guard, now, appointment_id, day, start, stylist_id, profiles, changes
    )
    return appointment_public(db_appt)


def change_status(
    session: Session,
    guard: BookingGuard,
    appointment_id: int,
    new_status: AppointmentStatus,
) -> Appointment:
    db_appt = get_appointment(session, appointment_id)

    # status changes that free time share the stylist-day lock with commits
    with guard.hold((db_appt.date, db_appt.stylist_id)):
        db_appt = refresh_for_update(session, appointment_id)
        current = AppointmentStatus(db_appt.status)
        if new_status not in STATUS_TRANSITIONS.get(current, set()):
            raise AppointmentStateConflict(
                f"Cannot change appointment from {current.value} to {new_status.value}"
            )

        db_appt.status = new_status.value
        db_appt.updated_at = utc_now()
        session.add(db_appt)
        session.commit()
        session.refresh(db_appt)

    logger.info("Appointment %s: %s -> %s", appointment_id, current.value, new_status.value)
    return db_appt


@router.patch("/appointments/{appointment_id}/cancel", response_model=AppointmentPublic)
def cancel_appointment(
    appointment_id: int,
    session: Session = Depends(get_session),
    guard: BookingGuard = Depends(get_booking_guard),
):
    # Cancel = status change (no delete)
    db_appt = change_status(session, guard, appointment_id, AppointmentStatus.cancelled)
    return appointment_public(db_appt)


@router.patch("/appointments/{appointment_id}/status", response_model=AppointmentPublic)
def update_appointment_status(
    appointment_id: int,
    update: AppointmentStatusUpdate,
    session: Session = Depends(get_session),
    guard: BookingGuard = Depends(get_booking_guard),
):
    db_appt = change_status(session, guard, appointment_id, update.status)
    return appointment_public(db_appt)
