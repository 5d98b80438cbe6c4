import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from league.api.deps import get_engine, get_settings
from league.core.config import Settings
from league.db import get_db
from league.services.engine import ReconciliationEngine
from league.services.webhooks import process_webhook_event, record_event

log = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.get("/strava")
def verify_subscription(
    mode: str = Query(..., alias="hub.mode"),
    verify_token: str = Query(..., alias="hub.verify_token"),
    challenge: str = Query(..., alias="hub.challenge"),
    settings: Settings = Depends(get_settings),
):
    """Subscription handshake: echo the challenge if the token is ours."""
    expected = settings.strava_webhook_verify_token
    if mode != "subscribe" or not expected or verify_token != expected:
        raise HTTPException(status_code=403, detail="Verification failed")
    return {"hub.challenge": challenge}


@router.post("/strava")
def receive_event(
    payload: dict,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    engine: ReconciliationEngine = Depends(get_engine),
):
    if "object_id" not in payload or "owner_id" not in payload:
        raise HTTPException(status_code=422, detail="object_id and owner_id are required")
    event = record_event(db, payload)
    log.info(
        "Webhook %s: %s/%s object=%s owner=%s",
        event.id, event.object_type, event.aspect_type, event.object_id, event.owner_id,
    )
    background_tasks.add_task(process_webhook_event, engine, event.id, payload)
    return {"received": True, "event_id": event.id}
