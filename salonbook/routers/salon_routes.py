# salonbook/routers/salon_routes.py

import logging
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, select

from salonbook.clock import not_before_for
from salonbook.config import settings
from salonbook.core.slots import combine_stylist_slots, generate_slots
from salonbook.db import get_session
from salonbook.deps import get_now
from salonbook.models import Stylist
from salonbook.repository import (
    dump_weekly_schedule,
    get_salon_settings,
    get_service_profiles,
    load_day_snapshot,
    to_weekly_schedule,
)
from salonbook.schemas import ClosedDates, SalonAvailabilityResponse, SalonSchedule

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/salon",
    tags=["salon"],
)


@router.get("/schedule", response_model=SalonSchedule)
def get_salon_schedule(session: Session = Depends(get_session)):
    salon = get_salon_settings(session)
    return {"weekly_schedule": to_weekly_schedule(salon.weekly_schedule)}


@router.put("/schedule", response_model=SalonSchedule)
def update_salon_schedule(
    schedule: SalonSchedule,
    session: Session = Depends(get_session),
):
    salon = get_salon_settings(session)
    # merge so a partial update keeps the other weekdays
    weekly = dict(salon.weekly_schedule or {})
    weekly.update(dump_weekly_schedule(schedule.weekly_schedule))
    salon.weekly_schedule = weekly

    session.add(salon)
    session.commit()
    session.refresh(salon)

    logger.info("Salon schedule updated: %s", sorted(schedule.weekly_schedule))
    return {"weekly_schedule": to_weekly_schedule(salon.weekly_schedule)}


@router.get("/closed-dates", response_model=ClosedDates)
def get_closed_dates(session: Session = Depends(get_session)):
    salon = get_salon_settings(session)
    return {"closed_dates": sorted(salon.closed_dates or [])}


@router.put("/closed-dates", response_model=ClosedDates)
def update_closed_dates(
    closed: ClosedDates,
    session: Session = Depends(get_session),
):
    salon = get_salon_settings(session)
    salon.closed_dates = sorted({d.isoformat() for d in closed.closed_dates})

    session.add(salon)
    session.commit()
    session.refresh(salon)

    logger.info("Salon closed dates set: %d dates", len(salon.closed_dates))
    return {"closed_dates": salon.closed_dates}


@router.get("/availability", response_model=SalonAvailabilityResponse)
def salon_availability(
    date: date,
    services: List[int] = Query(...),
    granularity: Optional[int] = Query(default=None, ge=5, le=240),
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
):
    # 1) Resolve requested services into duration profiles
    profiles = get_service_profiles(session, services)
    slot_minutes = granularity or settings.SLOT_MINUTES
    not_before = not_before_for(date, now)

    # 2) One grid per active stylist, then "any stylist" per start time
    stylists = session.exec(select(Stylist).where(Stylist.is_active == True)).all()  # noqa: E712
    per_stylist = {
        s.id: generate_slots(load_day_snapshot(session, s.id, date), profiles, slot_minutes, not_before)
        for s in stylists
    }

    return {
        "date": date,
        "granularity": slot_minutes,
        "slots": combine_stylist_slots(per_stylist),
    }
