# tests/test_api.py

from datetime import date

import pytest

MONDAY = "2030-01-14"
TUESDAY = "2030-01-15"
TODAY = "2030-01-07"  # Monday, see FIXED_NOW

test_stylist = {
    "name": "Mei",
    "email": "mei@salon.test",
    "working_hours": {
        "monday": {"is_working": True, "start": "09:00", "end": "17:00"},
    },
}

test_services = {
    "hour": {"name": "Cut & Style", "duration": 60},
    "haircut": {"name": "Haircut", "duration": 30},
    "color": {"name": "Color", "duration": 120, "processing_wait_time": 45, "processing_duration": 45},
}


@pytest.fixture
def stylist_id(client):
    res = client.post("/stylists", json=test_stylist)
    assert res.status_code == 201
    return res.json()["id"]


@pytest.fixture
def service_ids(client):
    ids = {}
    for key, payload in test_services.items():
        res = client.post("/services", json=payload)
        assert res.status_code == 201
        ids[key] = res.json()["id"]
    return ids


def book(client, stylist_id, services, day=MONDAY, at="10:00"):
    return client.post(
        f"/stylists/{stylist_id}/appointments",
        json={
            "date": day,
            "time": at,
            "services": services,
            "customer_name": "Ana",
            "customer_email": "ana@example.com",
        },
    )


def slots(client, stylist_id, services, day=MONDAY, granularity=30):
    res = client.get(
        f"/stylists/{stylist_id}/availability",
        params={"date": day, "services": services, "granularity": granularity},
    )
    assert res.status_code == 200
    return {s["time"]: s for s in res.json()["slots"]}


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_default_salon_schedule_closes_tuesday(client):
    weekly = client.get("/salon/schedule").json()["weekly_schedule"]
    assert weekly["tuesday"]["is_working"] is False
    assert weekly["monday"]["start"] == "11:00:00"


def test_unknown_weekday_rejected(client):
    res = client.post("/stylists", json={"name": "X", "working_hours": {"funday": {}}})
    assert res.status_code == 422


def test_availability_grid(client, stylist_id, service_ids):
    grid = slots(client, stylist_id, [service_ids["hour"]])
    assert list(grid)[0] == "09:00"
    assert grid["16:00"]["available"] is True
    assert grid["16:30"] == {"time": "16:30", "available": False, "reason": "outside_hours"}


def test_closed_day_has_no_slots(client, stylist_id, service_ids):
    assert slots(client, stylist_id, [service_ids["hour"]], day=TUESDAY) == {}


def test_booking_color_then_haircut_in_gap(client, stylist_id, service_ids):
    res = book(client, stylist_id, [service_ids["color"]], at="10:00")
    assert res.status_code == 201
    body = res.json()
    assert body["start_time"] == "10:00"
    assert body["end_time"] == "12:00"
    assert body["occupied"] == [{"start": "10:00", "end": "10:45"}, {"start": "11:30", "end": "12:00"}]
    assert body["status"] == "CONFIRMED"
    assert body["starts_at"].startswith("2030-01-14T10:00:00")

    grid = slots(client, stylist_id, [service_ids["haircut"]], granularity=15)
    assert grid["10:45"]["available"] is True
    assert grid["10:30"]["reason"] == "stylist_busy"

    assert book(client, stylist_id, [service_ids["haircut"]], at="10:45").status_code == 201

    again = book(client, stylist_id, [service_ids["haircut"]], at="10:45")
    assert again.status_code == 409
    assert again.json()["error"] == "SlotNoLongerAvailable"


def test_booking_rejections(client, stylist_id, service_ids):
    closed = book(client, stylist_id, [service_ids["hour"]], day=TUESDAY)
    assert closed.status_code == 422
    assert closed.json()["error"] == "ClosedDay"

    past = book(client, stylist_id, [service_ids["hour"]], day=TODAY, at="08:30")
    assert past.status_code == 422
    assert past.json()["error"] == "BookingInPast"

    unknown = book(client, stylist_id, [9999])
    assert unknown.status_code == 422
    assert unknown.json()["error"] == "InvalidService"

    missing = book(client, 9999, [service_ids["hour"]])
    assert missing.status_code == 404
    assert missing.json()["error"] == "StylistNotFound"


def test_past_dates_are_fully_past(client, stylist_id, service_ids):
    # 2029-12-31 is a Monday before FIXED_NOW
    grid = slots(client, stylist_id, [service_ids["hour"]], day="2029-12-31")
    assert grid
    assert {s["reason"] for s in grid.values()} == {"past"}


def test_blocked_periods(client, stylist_id, service_ids):
    base = f"/stylists/{stylist_id}/blocked-periods"

    full = client.post(base, json={"kind": "full_day", "date": "2030-01-21", "reason": "Holiday"})
    assert full.status_code == 201
    assert slots(client, stylist_id, [service_ids["hour"]], day="2030-01-21") == {}

    dup = client.post(base, json={"kind": "full_day", "date": "2030-01-21"})
    assert dup.status_code == 409

    ambiguous = client.post(
        base, json={"kind": "full_day", "date": MONDAY, "start_time": "12:00", "end_time": "13:00"}
    )
    assert ambiguous.status_code == 422
    assert ambiguous.json()["error"] == "InvalidBlockedPeriod"

    lunch = client.post(base, json={"is_full_day": False, "date": MONDAY, "start_time": "12:00", "end_time": "13:00"})
    assert lunch.status_code == 201
    assert lunch.json()["kind"] == "partial"
    assert slots(client, stylist_id, [service_ids["hour"]])["12:00"]["reason"] == "blocked"

    listed = client.get(base, params={"date": MONDAY}).json()
    assert [b["id"] for b in listed] == [lunch.json()["id"]]

    assert client.delete(f"{base}/{lunch.json()['id']}").status_code == 204
    assert slots(client, stylist_id, [service_ids["hour"]])["12:00"]["available"] is True


def test_salon_closed_date_blocks_everyone(client, stylist_id, service_ids):
    res = client.put("/salon/closed-dates", json={"closed_dates": [MONDAY]})
    assert res.status_code == 200
    assert res.json()["closed_dates"] == [MONDAY]
    assert slots(client, stylist_id, [service_ids["hour"]]) == {}


def test_invalid_service_configuration(client):
    res = client.post(
        "/services",
        json={"name": "Bad", "duration": 60, "processing_wait_time": 30, "processing_duration": 45},
    )
    assert res.status_code == 422
    assert res.json()["error"] == "InvalidServiceConfiguration"


def test_reschedule_and_cancel(client, stylist_id, service_ids):
    appt = book(client, stylist_id, [service_ids["hour"]], at="10:00").json()

    moved = client.post(f"/appointments/{appt['id']}/reschedule", json={"date": MONDAY, "time": "10:30"})
    assert moved.status_code == 200
    assert moved.json()["start_time"] == "10:30"
    assert moved.json()["end_time"] == "11:30"

    cancelled = client.patch(f"/appointments/{appt['id']}/cancel")
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "CANCELLED"
    assert slots(client, stylist_id, [service_ids["hour"]])["10:30"]["available"] is True

    again = client.patch(f"/appointments/{appt['id']}/cancel")
    assert again.status_code == 409
    assert again.json()["error"] == "AppointmentStateConflict"

    stale = client.post(f"/appointments/{appt['id']}/reschedule", json={"date": MONDAY, "time": "11:00"})
    assert stale.status_code == 409


def test_reschedule_into_taken_slot(client, stylist_id, service_ids):
    first = book(client, stylist_id, [service_ids["hour"]], at="10:00").json()
    book(client, stylist_id, [service_ids["hour"]], at="11:00")

    res = client.post(f"/appointments/{first['id']}/reschedule", json={"date": MONDAY, "time": "10:30"})
    assert res.status_code == 409
    assert client.get(f"/appointments/{first['id']}").json()["start_time"] == "10:00"


def test_list_and_status_updates(client, stylist_id, service_ids):
    a = book(client, stylist_id, [service_ids["hour"]], at="13:00").json()
    b = book(client, stylist_id, [service_ids["hour"]], at="09:00").json()

    listed = client.get(f"/stylists/{stylist_id}/appointments", params={"date": MONDAY}).json()
    assert [x["id"] for x in listed] == [b["id"], a["id"]]

    done = client.patch(f"/appointments/{a['id']}/status", json={"status": "COMPLETED"})
    assert done.status_code == 200
    back = client.patch(f"/appointments/{a['id']}/status", json={"status": "CONFIRMED"})
    assert back.status_code == 409

    completed = client.get(
        f"/stylists/{stylist_id}/appointments", params={"date": MONDAY, "status": "COMPLETED"}
    ).json()
    assert [x["id"] for x in completed] == [a["id"]]

    bad = client.get(f"/stylists/{stylist_id}/appointments", params={"date": MONDAY, "status": "booked"})
    assert bad.status_code == 422

    assert client.get("/appointments/9999").status_code == 404


def test_timeline_endpoint(client, service_ids):
    res = client.post("/timeline", json={"time": "10:00", "services": [service_ids["color"], service_ids["haircut"]]})
    assert res.status_code == 200
    body = res.json()
    assert body["end_time"] == "12:30"
    assert body["total_duration"] == 150
    assert [p["kind"] for p in body["phases"]] == ["active", "gap", "active", "active"]
    assert body["occupied"] == [{"start": "10:00", "end": "10:45"}, {"start": "11:30", "end": "12:30"}]


def test_times_with_seconds_rejected(client, stylist_id, service_ids):
    res = book(client, stylist_id, [service_ids["hour"]], at="10:00:59")
    assert res.status_code == 422

    ok = book(client, stylist_id, [service_ids["hour"]], at="10:00:00")
    assert ok.status_code == 201

    moved = client.post(f"/appointments/{ok.json()['id']}/reschedule", json={"date": MONDAY, "time": "11:00:30"})
    assert moved.status_code == 422


def test_edit_services_into_neighbour_is_rejected(client, stylist_id, service_ids):
    first = book(client, stylist_id, [service_ids["hour"]], at="10:00").json()
    book(client, stylist_id, [service_ids["hour"]], at="11:00")

    longer = client.put(
        f"/appointments/{first['id']}",
        json={"services": [service_ids["hour"], service_ids["haircut"]]},
    )
    assert longer.status_code == 409
    assert longer.json()["error"] == "SlotNoLongerAvailable"
    assert client.get(f"/appointments/{first['id']}").json()["end_time"] == "11:00"

    shorter = client.put(
        f"/appointments/{first['id']}",
        json={"services": [service_ids["haircut"]], "customer_name": "Ana Lima"},
    )
    assert shorter.status_code == 200
    body = shorter.json()
    assert body["end_time"] == "10:30"
    assert body["customer_name"] == "Ana Lima"
    assert [s["name"] for s in body["services"]] == ["Haircut"]


def test_edit_customer_details_only(client, stylist_id, service_ids):
    appt = book(client, stylist_id, [service_ids["hour"]], at="10:00").json()

    res = client.put(f"/appointments/{appt['id']}", json={"customer_email": "ana@new.example.com"})
    assert res.status_code == 200
    assert res.json()["customer_email"] == "ana@new.example.com"
    assert res.json()["start_time"] == "10:00"


def test_edit_cancelled_appointment_slot_is_rejected(client, stylist_id, service_ids):
    appt = book(client, stylist_id, [service_ids["hour"]], at="10:00").json()
    client.patch(f"/appointments/{appt['id']}/cancel")

    res = client.put(f"/appointments/{appt['id']}", json={"time": "12:00"})
    assert res.status_code == 409
    assert res.json()["error"] == "AppointmentStateConflict"


def test_blocked_period_creation_waits_for_the_stylist_day(client, guard, stylist_id):
    with guard.hold((date(2030, 1, 21), stylist_id)):
        res = client.post(
            f"/stylists/{stylist_id}/blocked-periods",
            json={"kind": "full_day", "date": "2030-01-21"},
        )
    assert res.status_code == 503
    assert res.json()["error"] == "BookingTimeout"

    created = client.post(
        f"/stylists/{stylist_id}/blocked-periods",
        json={"kind": "full_day", "date": "2030-01-21"},
    )
    assert created.status_code == 201


def test_any_stylist_availability(client, stylist_id, service_ids):
    other = client.post(
        "/stylists",
        json={"name": "Jun", "working_hours": {"monday": {"is_working": True, "start": "12:00", "end": "14:00"}}},
    ).json()["id"]
    book(client, stylist_id, [service_ids["hour"]], at="12:00")

    res = client.get(
        "/salon/availability",
        params={"date": MONDAY, "services": [service_ids["hour"]], "granularity": 60},
    )
    assert res.status_code == 200
    grid = {s["time"]: s for s in res.json()["slots"]}
    assert list(grid)[0] == "09:00"
    assert grid["12:00"]["stylist_ids"] == [other]
    assert grid["13:00"]["stylist_ids"] == sorted([stylist_id, other])
    assert grid["16:00"]["stylist_ids"] == [stylist_id]

    closed = client.get("/salon/availability", params={"date": TUESDAY, "services": [service_ids["hour"]]})
    assert closed.json()["slots"] == []
