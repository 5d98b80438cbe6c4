import pytest

from league.core.errors import UpstreamNotFoundError
from league.db import SessionLocal
from league.models import ParticipantToken, StoredActivity, WebhookEvent
from league.services.engine import EngineConfig, ReconciliationEngine
from league.services.webhooks import process_webhook_event, record_event

from tests.factories import T0, add_participant, add_season, add_stored_activity, add_week
from tests.fakes import make_detail, make_ref

RIDE_AT = T0 + 3600


def activity_event(aspect, object_id=900, owner_id=10):
    return {
        "object_type": "activity",
        "aspect_type": aspect,
        "object_id": object_id,
        "owner_id": owner_id,
        "subscription_id": 1,
        # when Strava sent the event, not when the ride started
        "event_time": T0 + 30 * 86_400,
        "updates": {},
    }


@pytest.fixture
def engine(strava, tokens, sleep):
    return ReconciliationEngine(SessionLocal, strava, tokens, EngineConfig(retry_delays=()), sleep=sleep)


def event_row(db, event_id):
    db.expire_all()
    return db.get(WebhookEvent, event_id)


@pytest.mark.asyncio
async def test_create_event_places_activity_by_start_date(db, engine, strava):
    week_id = add_week(db, add_season(db)).id
    add_participant(db, 10)
    strava.add_activity(10, make_ref(900, RIDE_AT), make_detail(900, RIDE_AT, [100]))
    payload = activity_event("create")
    event = record_event(db, payload)

    await process_webhook_event(engine, event.id, payload)

    row = event_row(db, event.id)
    assert row.processed is True
    assert row.error_message is None
    assert row.processed_at is not None
    activities = db.query(StoredActivity).all()
    assert [(a.week_id, a.external_id) for a in activities] == [(week_id, 900)]


@pytest.mark.asyncio
async def test_failed_fetch_marks_event(db, engine, strava):
    add_week(db, add_season(db))
    add_participant(db, 10)
    strava.details[900] = [UpstreamNotFoundError("Fetch activity 900: not found on Strava", 404)]
    payload = activity_event("update")
    event = record_event(db, payload)

    await process_webhook_event(engine, event.id, payload)

    row = event_row(db, event.id)
    assert row.processed is False
    assert "not found" in row.error_message


@pytest.mark.asyncio
async def test_delete_event_removes_stored_activity(db, engine, strava):
    week = add_week(db, add_season(db))
    add_participant(db, 10)
    add_stored_activity(db, week, 10, 900, [100])
    payload = activity_event("delete")
    event = record_event(db, payload)

    await process_webhook_event(engine, event.id, payload)

    assert db.query(StoredActivity).count() == 0
    assert event_row(db, event.id).processed is True
    assert strava.calls == []


@pytest.mark.asyncio
async def test_deauthorization_drops_tokens(db, engine):
    add_participant(db, 10)
    payload = {
        "object_type": "athlete",
        "aspect_type": "update",
        "object_id": 10,
        "owner_id": 10,
        "updates": {"authorized": "false"},
    }
    event = record_event(db, payload)

    await process_webhook_event(engine, event.id, payload)

    db.expire_all()
    assert db.get(ParticipantToken, 10) is None
    assert event_row(db, event.id).processed is True


@pytest.mark.asyncio
async def test_unhandled_event_is_marked_processed(db, engine, strava):
    payload = {"object_type": "athlete", "aspect_type": "update", "object_id": 10, "owner_id": 10, "updates": {"title": "x"}}
    event = record_event(db, payload)

    await process_webhook_event(engine, event.id, payload)

    assert event_row(db, event.id).processed is True
    assert strava.calls == []
