# tests/test_db.py

from datetime import date, time

from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, select

from salonbook.db import init_db
from salonbook.models import Appointment, SalonSettings, Stylist
from salonbook.repository import get_salon_settings, load_day_snapshot


def bare_engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    SQLModel.metadata.create_all(engine)
    return engine


def test_init_db_seeds_salon_settings_once(engine):
    init_db(engine)
    with Session(engine) as session:
        rows = session.exec(select(SalonSettings)).all()
    assert len(rows) == 1
    assert rows[0].weekly_schedule["tuesday"]["is_working"] is False


def test_reading_settings_never_writes():
    engine = bare_engine()
    with Session(engine) as session:
        stylist = Stylist(name="Mei")
        session.add(stylist)
        session.commit()
        session.refresh(stylist)

        assert get_salon_settings(session).weekly_schedule["monday"]["start"] == "11:00"
        snapshot = load_day_snapshot(session, stylist.id, date(2030, 1, 14))
        assert "monday" in snapshot.salon_hours

        assert session.exec(select(SalonSettings)).all() == []


def test_appointment_timestamps_are_timezone_aware(session):
    stylist = Stylist(name="Mei")
    session.add(stylist)
    session.commit()
    session.refresh(stylist)

    appt = Appointment(
        stylist_id=stylist.id,
        date=date(2030, 1, 14),
        start_time=time(10, 0),
        end_time=time(11, 0),
        services=[{"name": "Cut", "duration": 60}],
        customer_name="Ana",
        customer_email="ana@example.com",
    )
    assert appt.created_at.tzinfo is not None
    assert appt.updated_at.tzinfo is not None

    session.add(appt)
    session.commit()
    session.refresh(appt)
    assert appt.id is not None
