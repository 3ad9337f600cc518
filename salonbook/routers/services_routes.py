# salonbook/routers/services_routes.py

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from salonbook.core.timeline import build_timeline, validate_profile
from salonbook.core.timewindow import format_minutes, parse_time
from salonbook.db import get_session
from salonbook.models import Service
from salonbook.repository import get_service_profiles, service_profile
from salonbook.schemas import (
    ServiceCreate,
    ServicePublic,
    ServiceUpdate,
    TimelineRequest,
    TimelineResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["services"],
)


@router.post("/services", response_model=ServicePublic, status_code=201)
def create_service(
    service: ServiceCreate,
    session: Session = Depends(get_session),
):
    db_service = Service(
        name=service.name,
        duration=service.duration,
        processing_wait_time=service.processing_wait_time,
        processing_duration=service.processing_duration,
    )
    # Reject bad processing gaps here, never at booking time
    validate_profile(service_profile(db_service))

    session.add(db_service)
    session.commit()
    session.refresh(db_service)

    logger.info("Created service %s (%s, %d min)", db_service.id, db_service.name, db_service.duration)
    return db_service


@router.get("/services", response_model=List[ServicePublic])
def list_services(
    include_inactive: bool = False,
    session: Session = Depends(get_session),
):
    stmt = select(Service)
    if not include_inactive:
        stmt = stmt.where(Service.is_active == True)  # noqa: E712
    return session.exec(stmt.order_by(Service.name)).all()


@router.patch("/services/{service_id}", response_model=ServicePublic)
def update_service(
    service_id: int,
    update: ServiceUpdate,
    session: Session = Depends(get_session),
):
    db_service = session.get(Service, service_id)
    if db_service is None:
        raise HTTPException(status_code=404, detail="Service not found")

    for field, value in update.model_dump(exclude_unset=True).items():
        setattr(db_service, field, value)

    # Existing appointments keep the profile they were booked with
    validate_profile(service_profile(db_service))

    session.add(db_service)
    session.commit()
    session.refresh(db_service)

    logger.info("Updated service %s", service_id)
    return db_service


@router.post("/timeline", response_model=TimelineResponse)
def service_timeline(
    request: TimelineRequest,
    session: Session = Depends(get_session),
):
    profiles = get_service_profiles(session, request.services)
    timeline = build_timeline(parse_time(request.time), profiles)

    return {
        "start_time": format_minutes(timeline.start),
        "end_time": format_minutes(timeline.end),
        "total_duration": timeline.end - timeline.start,
        "phases": [
            {
                "kind": phase.kind,
                "start": format_minutes(phase.window.start),
                "end": format_minutes(phase.window.end),
                "service": phase.service,
            }
            for phase in timeline.phases
        ],
        "occupied": [
            {"start": format_minutes(w.start), "end": format_minutes(w.end)}
            for w in timeline.occupied
        ],
    }
