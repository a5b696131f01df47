"""Tests for reviews and master rating."""

import pytest

from app.core.exceptions import ReviewNotAllowed
from app.services import appointment_state
from app.services.booking import create_appointment
from app.services.review_service import create_review, get_master_rating

WORK_DAY = "2030-06-10"


@pytest.fixture
def completed_appointment(db, make_master, make_user, make_service, dispatcher):
    async def _complete(master=None, client_telegram_id="2001", time="09:00"):
        master = master or await make_master()
        client = await make_user(client_telegram_id, first_name="Ivan")
        service = await make_service(master)
        appointment = await create_appointment(db, client, master.id, service.id, WORK_DAY, time, dispatcher)
        await appointment_state.confirm(db, appointment.id, master, dispatcher)
        await appointment_state.mark_complete(db, appointment.id, master, dispatcher)
        await appointment_state.confirm_complete(db, appointment.id, client, dispatcher)
        return master, client, appointment
    return _complete


@pytest.mark.asyncio
async def test_review_only_once_for_completed(db, completed_appointment):
    master, client, appointment = await completed_appointment()

    review = await create_review(db, client, appointment.id, 5, "Great")
    assert review.master_id == master.id
    assert review.client.first_name == "Ivan"

    with pytest.raises(ReviewNotAllowed):
        await create_review(db, client, appointment.id, 4)


@pytest.mark.asyncio
async def test_review_requires_completed_and_own(db, make_master, make_user, make_service, dispatcher, completed_appointment):
    master = await make_master()
    client = await make_user("2001")
    service = await make_service(master)
    pending = await create_appointment(db, client, master.id, service.id, WORK_DAY, "09:00", dispatcher)

    with pytest.raises(ReviewNotAllowed):
        await create_review(db, client, pending.id, 5)

    _, _, done = await completed_appointment(master=master, client_telegram_id="2002", time="10:15")
    with pytest.raises(ReviewNotAllowed):
        await create_review(db, client, done.id, 5)


@pytest.mark.asyncio
async def test_rating_average(db, make_master, completed_appointment):
    master = await make_master()
    ratings = {"2001": ("09:00", 5), "2002": ("10:15", 4), "2003": ("11:00", 4)}
    for telegram_id, (time, rating) in ratings.items():
        _, client, appointment = await completed_appointment(master=master, client_telegram_id=telegram_id, time=time)
        await create_review(db, client, appointment.id, rating)

    summary = await get_master_rating(db, master.id)
    assert summary.count == 3
    assert summary.average == 4.3


@pytest.mark.asyncio
async def test_review_endpoints(client, completed_appointment, headers):
    master, customer, appointment = await completed_appointment()

    resp = await client.get(f"/api/v1/reviews/can-leave/{appointment.id}", headers=headers(customer))
    assert resp.json() == {"can_leave_review": True}

    resp = await client.post("/api/v1/reviews", headers=headers(customer), json={
        "appointment_id": str(appointment.id), "rating": 6,
    })
    assert resp.status_code == 400

    resp = await client.post("/api/v1/reviews", headers=headers(customer), json={
        "appointment_id": str(appointment.id), "rating": 5, "comment": "Great",
    })
    assert resp.status_code == 201
    assert resp.json()["client"]["first_name"] == "Ivan"

    resp = await client.get(f"/api/v1/reviews/can-leave/{appointment.id}", headers=headers(customer))
    assert resp.json() == {"can_leave_review": False}

    resp = await client.get(f"/api/v1/reviews/master/{master.id}")
    data = resp.json()
    assert data["rating"] == {"average": 5.0, "count": 1}
    assert data["reviews"][0]["comment"] == "Great"

    resp = await client.get(f"/api/v1/appointments/{appointment.id}", headers=headers(customer))
    assert resp.json()["has_review"] is True
