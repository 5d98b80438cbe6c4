"""Strava webhook event handling.

Strava expects a 200 within two seconds, so the HTTP handler only records
the event; `process_webhook_event` runs afterwards in the background and
marks the row processed or failed.
"""
import asyncio
import logging
from datetime import datetime, timezone

from league.core.errors import LeagueError
from league.core.time_utils import epoch_to_iso
from league.models.webhook_event import WebhookEvent
from league.services.engine import ReconciliationEngine
from league.services.upstream import ActivityRef

log = logging.getLogger(__name__)


def record_event(db, payload: dict) -> WebhookEvent:
    event = WebhookEvent(
        object_type=str(payload.get("object_type") or ""),
        aspect_type=str(payload.get("aspect_type") or ""),
        object_id=int(payload["object_id"]),
        owner_id=int(payload["owner_id"]),
        payload=payload,
        processed=False,
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


def _mark(session_factory, event_id: int, error: str | None) -> None:
    with session_factory() as db:
        event = db.get(WebhookEvent, event_id)
        if event is None:
            return
        event.processed = error is None
        event.error_message = error
        event.processed_at = datetime.now(timezone.utc)
        db.commit()


async def dispatch(engine: ReconciliationEngine, payload: dict):
    object_type = payload.get("object_type")
    aspect = payload.get("aspect_type")
    object_id = int(payload["object_id"])
    owner_id = int(payload["owner_id"])

    if object_type == "activity" and aspect in ("create", "update"):
        # event_time is when Strava emitted the event, not when the ride
        # started. start_date is present before segment indexing finishes,
        # so one plain fetch is enough to place the activity in seasons.
        detail = await engine.fetch_activity(owner_id, ActivityRef(external_id=object_id))
        ref = ActivityRef(
            external_id=object_id,
            start_date=epoch_to_iso(detail.occurred_at),
            name=detail.name,
        )
        return await engine.reconcile_for_webhook_event(owner_id, ref, detail.occurred_at)
    if object_type == "activity" and aspect == "delete":
        return await asyncio.to_thread(engine.remove_activity, object_id)
    if object_type == "athlete" and (payload.get("updates") or {}).get("authorized") == "false":
        return await asyncio.to_thread(engine.disconnect_participant, owner_id)

    log.info("Ignoring webhook %s/%s for %s", object_type, aspect, object_id)
    return None


async def process_webhook_event(engine: ReconciliationEngine, event_id: int, payload: dict) -> None:
    try:
        outcome = await dispatch(engine, payload)
    except LeagueError as e:
        log.exception("Webhook event %s failed", event_id)
        await asyncio.to_thread(_mark, engine.session_factory, event_id, str(e))
        return
    log.info("Webhook event %s processed: %s", event_id, outcome)
    await asyncio.to_thread(_mark, engine.session_factory, event_id, None)
