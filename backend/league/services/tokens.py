import asyncio
import logging

from sqlalchemy.orm import Session, sessionmaker

from league.core.errors import NotConnectedError
from league.core.time_utils import now_epoch
from league.models.participant_token import ParticipantToken

log = logging.getLogger(__name__)


class TokenProvider:
    """Hands out a usable Strava access token per participant.

    Tokens close to expiry (or any token when `force_refresh` is set) are
    exchanged through the Strava client and the new pair is written back;
    Strava rotates the refresh token on every exchange.
    """

    def __init__(self, session_factory: sessionmaker, strava, refresh_margin_seconds: int = 3600):
        self.session_factory = session_factory
        self.strava = strava
        self.refresh_margin_seconds = refresh_margin_seconds

    def _load(self, db: Session, participant_id: int) -> ParticipantToken:
        tok = db.get(ParticipantToken, participant_id)
        if tok is None:
            raise NotConnectedError(participant_id)
        return tok

    def _current(self, participant_id: int, force_refresh: bool) -> tuple[str | None, str]:
        """(access token if still usable, refresh token)."""
        with self.session_factory() as db:
            tok = self._load(db, participant_id)
            if not force_refresh and tok.expires_at - now_epoch() > self.refresh_margin_seconds:
                return tok.access_token, tok.refresh_token
            return None, tok.refresh_token

    def _save(self, participant_id: int, new_tok: dict) -> str:
        with self.session_factory() as db:
            tok = self._load(db, participant_id)
            tok.access_token = new_tok["access_token"]
            tok.refresh_token = new_tok.get("refresh_token") or tok.refresh_token
            tok.expires_at = int(new_tok.get("expires_at") or 0)
            db.commit()
            return tok.access_token

    async def get_valid_token(self, participant_id: int, force_refresh: bool = False) -> str:
        access_token, refresh_token = await asyncio.to_thread(self._current, participant_id, force_refresh)
        if access_token is not None:
            return access_token

        log.info(
            "Refreshing token for participant %s (%s)",
            participant_id,
            "forced" if force_refresh else "expiring soon",
        )
        new_tok = await self.strava.refresh_access_token(refresh_token)
        return await asyncio.to_thread(self._save, participant_id, new_tok)
