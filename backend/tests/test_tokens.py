import threading

import pytest

from league.core.errors import NotConnectedError
from league.core.time_utils import now_epoch
from league.db import SessionLocal
from league.models import Participant, ParticipantToken
from league.services.tokens import TokenProvider


def connect(db, participant_id, expires_at):
    db.add(Participant(id=participant_id, name=f"Rider {participant_id}"))
    db.add(
        ParticipantToken(
            participant_id=participant_id,
            access_token="access-0",
            refresh_token="refresh-0",
            expires_at=expires_at,
        )
    )
    db.commit()


@pytest.mark.asyncio
async def test_fresh_token_is_returned_as_is(db, strava):
    connect(db, 10, now_epoch() + 6 * 3600)

    token = await TokenProvider(SessionLocal, strava).get_valid_token(10)

    assert token == "access-0"
    assert strava.refreshed == []


@pytest.mark.asyncio
async def test_expiring_token_is_refreshed_and_stored(db, strava):
    connect(db, 10, now_epoch() + 600)

    token = await TokenProvider(SessionLocal, strava).get_valid_token(10)

    assert token == "access-1"
    assert strava.refreshed == ["refresh-0"]
    db.expire_all()
    row = db.get(ParticipantToken, 10)
    assert (row.access_token, row.refresh_token, row.expires_at) == ("access-1", "refresh-1", 4_000_000_000)


@pytest.mark.asyncio
async def test_forced_refresh_ignores_expiry(db, strava):
    connect(db, 10, now_epoch() + 6 * 3600)

    token = await TokenProvider(SessionLocal, strava).get_valid_token(10, force_refresh=True)

    assert token == "access-1"


@pytest.mark.asyncio
async def test_missing_token_raises(strava):
    with pytest.raises(NotConnectedError):
        await TokenProvider(SessionLocal, strava).get_valid_token(10)


@pytest.mark.asyncio
async def test_token_storage_runs_off_the_event_loop_thread(db, strava):
    connect(db, 10, now_epoch() + 600)
    session_threads = []

    def tracking_factory():
        session_threads.append(threading.get_ident())
        return SessionLocal()

    await TokenProvider(tracking_factory, strava).get_valid_token(10)

    assert len(session_threads) == 2
    assert threading.get_ident() not in session_threads
