# salonbook/routers/stylists_routes.py

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response
from sqlmodel import Session, select

from salonbook.clock import not_before_for
from salonbook.config import settings
from salonbook.core.blocked import check_new_block, parse_blocked_period
from salonbook.core.slots import generate_slots
from salonbook.core.guard import BookingGuard
from salonbook.db import get_session
from salonbook.deps import get_booking_guard, get_now
from salonbook.models import BlockedPeriod as BlockedPeriodModel, Stylist
from salonbook.repository import (
    block_from_row,
    blocks_for_day,
    dump_weekly_schedule,
    get_active_stylist,
    get_service_profiles,
    load_day_snapshot,
    to_weekly_schedule,
)
from salonbook.schemas import (
    AvailabilityResponse,
    BlockedPeriodPublic,
    PartialBlock,
    StylistCreate,
    StylistPublic,
    WorkingHoursUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/stylists",
    tags=["stylists"],
)


def stylist_public(stylist: Stylist) -> dict:
    return {
        "id": stylist.id,
        "name": stylist.name,
        "email": stylist.email,
        "is_active": stylist.is_active,
        "working_hours": to_weekly_schedule(stylist.working_hours),
    }


def block_public(block: BlockedPeriodModel) -> dict:
    return {
        "id": block.id,
        "stylist_id": block.stylist_id,
        "kind": block.kind,
        "date": block.date,
        "start_time": block.start_time,
        "end_time": block.end_time,
        "reason": block.reason,
    }


@router.post("", response_model=StylistPublic, status_code=201)
def create_stylist(
    stylist: StylistCreate,
    session: Session = Depends(get_session),
):
    db_stylist = Stylist(
        name=stylist.name,
        email=stylist.email,
        working_hours=dump_weekly_schedule(stylist.working_hours),
    )
    session.add(db_stylist)
    session.commit()
    session.refresh(db_stylist)  # fills db_stylist.id

    logger.info("Created stylist %s (%s)", db_stylist.id, db_stylist.name)
    return stylist_public(db_stylist)


@router.get("", response_model=List[StylistPublic])
def list_stylists(session: Session = Depends(get_session)):
    stylists = session.exec(
        select(Stylist).where(Stylist.is_active == True).order_by(Stylist.name)  # noqa: E712
    ).all()
    return [stylist_public(s) for s in stylists]


@router.get("/{stylist_id}", response_model=StylistPublic)
def get_stylist(stylist_id: int, session: Session = Depends(get_session)):
    return stylist_public(get_active_stylist(session, stylist_id))


@router.put("/{stylist_id}/working-hours", response_model=StylistPublic)
def update_working_hours(
    stylist_id: int,
    update: WorkingHoursUpdate,
    session: Session = Depends(get_session),
):
    # Weekdays left out fall back to the salon schedule
    db_stylist = get_active_stylist(session, stylist_id)
    db_stylist.working_hours = dump_weekly_schedule(update.working_hours)
    session.add(db_stylist)
    session.commit()
    session.refresh(db_stylist)

    logger.info("Stylist %s working hours updated: %s", stylist_id, sorted(update.working_hours))
    return stylist_public(db_stylist)


@router.get("/{stylist_id}/blocked-periods", response_model=List[BlockedPeriodPublic])
def list_blocked_periods(
    stylist_id: int,
    on_date: Optional[date] = Query(default=None, alias="date"),
    session: Session = Depends(get_session),
):
    get_active_stylist(session, stylist_id)

    stmt = select(BlockedPeriodModel).where(BlockedPeriodModel.stylist_id == stylist_id)
    if on_date is not None:
        stmt = stmt.where(BlockedPeriodModel.date == on_date)
    stmt = stmt.order_by(BlockedPeriodModel.date, BlockedPeriodModel.start_time)

    return [block_public(b) for b in session.exec(stmt).all()]


@router.post("/{stylist_id}/blocked-periods", response_model=BlockedPeriodPublic, status_code=201)
def create_blocked_period(
    stylist_id: int,
    payload: Dict[str, Any] = Body(...),
    session: Session = Depends(get_session),
    guard: BookingGuard = Depends(get_booking_guard),
):
    get_active_stylist(session, stylist_id)
    block = parse_blocked_period(payload)

    # check and insert under the stylist-day lock
    with guard.hold((block.date, stylist_id)):
        # One full-day block per date, partial blocks never overlap
        existing = [block_from_row(b) for b in blocks_for_day(session, stylist_id, block.date)]
        check_new_block(block, existing)

        db_block = BlockedPeriodModel(
            stylist_id=stylist_id,
            date=block.date,
            kind=block.kind,
            start_time=block.start_time if isinstance(block, PartialBlock) else None,
            end_time=block.end_time if isinstance(block, PartialBlock) else None,
            reason=block.reason,
        )
        session.add(db_block)
        session.commit()
        session.refresh(db_block)

    logger.info("Stylist %s blocked %s (%s)", stylist_id, block.date, block.kind)
    return block_public(db_block)


@router.delete("/{stylist_id}/blocked-periods/{block_id}", status_code=204)
def delete_blocked_period(
    stylist_id: int,
    block_id: int,
    session: Session = Depends(get_session),
):
    db_block = session.get(BlockedPeriodModel, block_id)
    if db_block is None or db_block.stylist_id != stylist_id:
        raise HTTPException(status_code=404, detail="Blocked period not found")

    blocked_date = db_block.date
    session.delete(db_block)
    session.commit()

    logger.info("Stylist %s unblocked %s (block %s)", stylist_id, blocked_date, block_id)
    return Response(status_code=204)


@router.get("/{stylist_id}/availability", response_model=AvailabilityResponse)
def stylist_availability(
    stylist_id: int,
    date: date,
    services: List[int] = Query(...),
    granularity: Optional[int] = Query(default=None, ge=5, le=240),
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
):
    # 1) Resolve requested services into duration profiles
    profiles = get_service_profiles(session, services)

    # 2) Read the stylist-day; unknown stylists raise before any slot work
    snapshot = load_day_snapshot(session, stylist_id, date)

    # 3) Full grid, unavailable entries included
    slot_minutes = granularity or settings.SLOT_MINUTES
    slots = generate_slots(snapshot, profiles, slot_minutes, not_before_for(date, now))

    return {
        "stylist_id": stylist_id,
        "date": date,
        "granularity": slot_minutes,
        "slots": slots,
    }
