"""Reconciliation entry points.

Both triggers end up in `_reconcile_key`:

  webhook push  -> reconcile_for_webhook_event -> every open week holding the activity
  admin batch   -> reconcile_week_for_all_participants -> every connected participant

`_reconcile_key` lists the participant's activities in the week window,
lets the matcher pick the best (fetching details through the retry
orchestrator) and hands the winner to the reconciler. Only one
reconciliation per (week, participant) runs at a time; others queue on
its lock.
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, Sequence, TypeVar

from sqlalchemy.orm import sessionmaker

from league.core.config import Settings
from league.core.constants import (
    DEFAULT_RETRY_DELAYS_S,
    REASON_CANCELLED,
    REASON_INVALID_TIMESTAMP,
    REASON_NO_ACTIVITIES,
)
from league.core.errors import (
    LeagueError,
    NotConnectedError,
    PersistenceError,
    TimestampError,
    UpstreamAuthError,
    UpstreamError,
)
from league.core.time_utils import epoch_to_iso, iso_to_epoch
from league.models.participant import Participant
from league.models.participant_token import ParticipantToken
from league.services.matcher import ActivityMatcher, MatchedActivity, MatchOutcome
from league.services.reconciler import ResultReconciler, StoredResult
from league.services.retry import RetryOrchestrator, Sleep
from league.services.scoring import ScoredEntry, Standing, season_standings, week_leaderboard
from league.services.seasons import SeasonResolver, WeekTarget, is_closed
from league.services.upstream import ActivityDetail, ActivityRef

log = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class EngineConfig:
    retry_delays: tuple[float, ...] = DEFAULT_RETRY_DELAYS_S
    batch_concurrency: int = 1

    @classmethod
    def from_settings(cls, settings: Settings) -> "EngineConfig":
        return cls(
            retry_delays=settings.retry_delays_seconds,
            batch_concurrency=settings.batch_concurrency,
        )


@dataclass
class ParticipantOutcome:
    participant_id: int
    participant_name: str
    activity_found: bool
    activity_id: Optional[int] = None
    total_time_seconds: Optional[int] = None
    segment_efforts: Optional[int] = None
    lap_indices: list[int] = field(default_factory=list)
    reason: Optional[str] = None
    rejections: list[dict] = field(default_factory=list)


@dataclass
class BatchSummary:
    week_id: int
    week_name: str
    status: str  # completed | cancelled | season_ended
    message: str
    participants_processed: int = 0
    results_found: int = 0
    summary: list[ParticipantOutcome] = field(default_factory=list)


@dataclass
class WeekOutcome:
    week_id: int
    season_id: int
    week_name: str
    matched: bool
    total_time_seconds: Optional[int] = None
    reason: Optional[str] = None


@dataclass
class WebhookOutcome:
    participant_id: int
    activity_id: int
    weeks: list[WeekOutcome] = field(default_factory=list)
    reason: Optional[str] = None


@dataclass
class BatchJob:
    week_id: int
    cancel_event: asyncio.Event = field(default_factory=asyncio.Event)

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()


@dataclass
class _KeyLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


def _rejections(outcome: MatchOutcome) -> list[dict]:
    return [{"activity_id": r.external_id, "reason": r.reason} for r in outcome.rejections]


def _no_match_reason(outcome: MatchOutcome) -> str:
    failures = outcome.fetch_failures()
    if failures and len(failures) == len(outcome.rejections):
        return failures[0].reason
    return REASON_NO_ACTIVITIES


class ReconciliationEngine:
    def __init__(
        self,
        session_factory: sessionmaker,
        strava,
        tokens,
        config: EngineConfig = EngineConfig(),
        sleep: Sleep | None = None,
    ):
        self.session_factory = session_factory
        self.strava = strava
        self.tokens = tokens
        self.config = config
        self.retry = RetryOrchestrator(config.retry_delays, sleep=sleep)
        self.matcher = ActivityMatcher(self.retry)
        self.reconciler = ResultReconciler()
        self._locks: dict[tuple[int, int], _KeyLock] = {}
        self._jobs: dict[int, list[BatchJob]] = {}

    # -- upstream helpers ---------------------------------------------------

    async def _with_token(self, participant_id: int, call: Callable[[str], Awaitable[T]]) -> T:
        """Run one upstream call; on 401 force a token refresh and try once more."""
        token = await self.tokens.get_valid_token(participant_id)
        try:
            return await call(token)
        except UpstreamAuthError:
            log.info("Strava rejected token for participant %s; forcing refresh", participant_id)
            token = await self.tokens.get_valid_token(participant_id, force_refresh=True)
            return await call(token)

    async def fetch_activity(self, participant_id: int, ref: ActivityRef) -> ActivityDetail:
        """Single detail fetch, no effort retry."""
        return await self._with_token(
            participant_id, lambda token: self.strava.get_activity_detail(ref, token)
        )

    @asynccontextmanager
    async def _key_lock(self, week_id: int, participant_id: int):
        """Hold the (week, participant) lock; the entry is dropped once nobody uses it."""
        key = (week_id, participant_id)
        entry = self._locks.get(key)
        if entry is None:
            entry = self._locks[key] = _KeyLock()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._locks[key]

    def _store(self, week: WeekTarget, participant_id: int, match: MatchedActivity) -> StoredResult:
        with self.session_factory() as db:
            return self.reconciler.replace(db, week, participant_id, match)

    async def _reconcile_key(
        self,
        week: WeekTarget,
        participant_id: int,
        extra_refs: Sequence[ActivityRef] = (),
    ) -> tuple[MatchOutcome, Optional[StoredResult]]:
        async with self._key_lock(week.id, participant_id):
            refs: list[ActivityRef] = []
            if week.has_window:
                refs = list(
                    await self._with_token(
                        participant_id,
                        lambda token: self.strava.list_activities(token, week.start_at, week.end_at),
                    )
                )
            # A just-pushed activity may not show up in the listing yet
            seen = {r.external_id for r in refs}
            refs.extend(r for r in extra_refs if r.external_id not in seen)

            outcome = await self.matcher.find_best(
                refs,
                week,
                lambda ref: self.fetch_activity(participant_id, ref),
            )
            stored = None
            if outcome.best is not None:
                # session work stays off the event loop
                stored = await asyncio.to_thread(self._store, week, participant_id, outcome.best)
            return outcome, stored

    # -- push path ----------------------------------------------------------

    async def reconcile_for_webhook_event(
        self,
        participant_id: int,
        activity_ref: ActivityRef | int,
        occurred_at: int | str,
    ) -> WebhookOutcome:
        ref_id = activity_ref.external_id if isinstance(activity_ref, ActivityRef) else int(activity_ref)
        result = WebhookOutcome(participant_id=participant_id, activity_id=ref_id)

        try:
            ts = iso_to_epoch(occurred_at)
        except TimestampError as e:
            log.warning("Webhook for activity %s has bad timestamp %r: %s", ref_id, e.raw, e.problem)
            result.reason = f"{REASON_INVALID_TIMESTAMP}: {e.raw}"
            return result

        if not isinstance(activity_ref, ActivityRef):
            activity_ref = ActivityRef(external_id=ref_id, start_date=epoch_to_iso(ts))

        weeks = await asyncio.to_thread(self._open_weeks_for, participant_id, ts)
        if weeks is None:
            log.info("Participant %s not registered, ignoring activity %s", participant_id, ref_id)
            result.reason = "participant not registered"
            return result
        if not weeks:
            result.reason = "no open week contains this activity"
            return result

        # Each week stands alone; a failed write for one must not cost the others.
        persistence_error: PersistenceError | None = None
        failed_weeks: list[int] = []
        for week in weeks:
            try:
                outcome, stored = await self._reconcile_key(week, participant_id, [activity_ref])
            except (UpstreamError, NotConnectedError, PersistenceError) as e:
                log.warning("Week %s for participant %s not reconciled: %s", week.id, participant_id, e)
                result.weeks.append(
                    WeekOutcome(week.id, week.season_id, week.name, matched=False, reason=str(e))
                )
                if isinstance(e, PersistenceError):
                    failed_weeks.append(week.id)
                    persistence_error = persistence_error or e
                continue
            result.weeks.append(
                WeekOutcome(
                    week_id=week.id,
                    season_id=week.season_id,
                    week_name=week.name,
                    matched=stored is not None,
                    total_time_seconds=stored.total_time_seconds if stored else None,
                    reason=None if stored else _no_match_reason(outcome),
                )
            )

        if persistence_error is not None:
            # every week has had its turn by now
            raise PersistenceError(
                f"Activity {ref_id} could not be stored for week(s) {failed_weeks}: {persistence_error}"
            ) from persistence_error
        return result

    def _open_weeks_for(self, participant_id: int, ts: int) -> list[WeekTarget] | None:
        """Weeks of open seasons holding `ts`; None when the participant isn't registered."""
        with self.session_factory() as db:
            participant = db.get(Participant, participant_id)
            if participant is None or not participant.active:
                return None

            resolver = SeasonResolver(db)
            weeks: list[WeekTarget] = []
            for season in resolver.all_seasons_containing(ts):
                status = is_closed(season)
                if status.closed:
                    log.info("Skipping season %s at %s: %s", season.id, ts, status.reason)
                    continue
                weeks.extend(resolver.weeks_containing(season.id, ts))
            return weeks

    # -- pull path ----------------------------------------------------------

    def _batch_roster(self, week_id: int):
        with self.session_factory() as db:
            resolver = SeasonResolver(db)
            week = resolver.get_week(week_id)
            season = resolver.get_season(week.season_id)
            participants = [
                (p.id, p.name)
                for p in db.query(Participant)
                .join(ParticipantToken, ParticipantToken.participant_id == Participant.id)
                .filter(Participant.active.is_(True))
                .order_by(Participant.id)
                .all()
            ]
        return week, season, participants

    async def reconcile_week_for_all_participants(self, week_id: int) -> BatchSummary:
        week, season, participants = await asyncio.to_thread(self._batch_roster, week_id)

        status = is_closed(season)
        if status.closed:
            log.info("Batch fetch for week %s refused: %s", week_id, status.reason)
            return BatchSummary(week.id, week.name, status="season_ended", message=status.reason)

        if not participants:
            return BatchSummary(week.id, week.name, status="completed", message="No participants connected")

        log.info(
            "Batch fetch for week %s (%s): %d participants, segment %s x%d",
            week.id, week.name, len(participants), week.target_segment_id, week.required_repetitions,
        )

        job = BatchJob(week.id)
        self._jobs.setdefault(week.id, []).append(job)
        sem = asyncio.Semaphore(self.config.batch_concurrency)

        async def run_one(participant_id: int, name: str) -> ParticipantOutcome:
            async with sem:
                if job.cancelled:
                    return ParticipantOutcome(participant_id, name, activity_found=False, reason=REASON_CANCELLED)
                try:
                    return await self._reconcile_participant(week, participant_id, name)
                except Exception as e:
                    # one participant must never sink the whole gather
                    log.exception("Unexpected error reconciling %s for week %s", name, week.id)
                    return ParticipantOutcome(
                        participant_id, name, activity_found=False, reason=f"unexpected error: {e}"
                    )

        try:
            outcomes = await asyncio.gather(*(run_one(pid, name) for pid, name in participants))
        finally:
            self._jobs[week.id].remove(job)
            if not self._jobs[week.id]:
                del self._jobs[week.id]

        processed = [o for o in outcomes if o.reason != REASON_CANCELLED]
        found = sum(1 for o in outcomes if o.activity_found)
        state = "cancelled" if job.cancelled else "completed"
        log.info("Batch fetch for week %s %s: %d/%d results found", week.id, state, found, len(outcomes))
        return BatchSummary(
            week_id=week.id,
            week_name=week.name,
            status=state,
            message="Fetch cancelled" if job.cancelled else "Results fetched successfully",
            participants_processed=len(processed),
            results_found=found,
            summary=list(outcomes),
        )

    async def _reconcile_participant(self, week: WeekTarget, participant_id: int, name: str) -> ParticipantOutcome:
        try:
            outcome, stored = await self._reconcile_key(week, participant_id)
        except PersistenceError as e:
            log.exception("Could not store result for %s", name)
            return ParticipantOutcome(participant_id, name, activity_found=False, reason=str(e))
        except LeagueError as e:
            log.warning("Error processing %s: %s", name, e)
            return ParticipantOutcome(participant_id, name, activity_found=False, reason=str(e))

        if stored is None:
            return ParticipantOutcome(
                participant_id,
                name,
                activity_found=False,
                reason=_no_match_reason(outcome),
                rejections=_rejections(outcome),
            )
        window = outcome.best.window
        log.info("%s matched: %s", name, window.describe())
        return ParticipantOutcome(
            participant_id,
            name,
            activity_found=True,
            activity_id=stored.external_id,
            total_time_seconds=stored.total_time_seconds,
            segment_efforts=stored.effort_count,
            lap_indices=list(window.lap_indices),
            rejections=_rejections(outcome),
        )

    def cancel_batch(self, week_id: int) -> bool:
        """Stop scheduling more participants for running batches of this week."""
        jobs = self._jobs.get(week_id) or []
        for job in jobs:
            job.cancel_event.set()
        if jobs:
            log.info("Cancellation requested for %d batch job(s) on week %s", len(jobs), week_id)
        return bool(jobs)

    # -- reads and upstream-driven deletes ------------------------------------

    def get_week_leaderboard(self, week_id: int) -> list[ScoredEntry]:
        with self.session_factory() as db:
            week = SeasonResolver(db).get_week(week_id)
            return week_leaderboard(db, week)

    def get_season_standings(self, season_id: int) -> list[Standing]:
        with self.session_factory() as db:
            SeasonResolver(db).get_season(season_id)
            return season_standings(db, season_id)

    def rebuild_results(self, week_id: int) -> int:
        with self.session_factory() as db:
            SeasonResolver(db).get_week(week_id)
            return self.reconciler.rebuild_results(db, week_id)

    def remove_activity(self, external_id: int) -> int:
        with self.session_factory() as db:
            removed = self.reconciler.remove_activity(db, external_id)
        log.info("Activity %s deleted upstream; removed from %d week(s)", external_id, removed)
        return removed

    def disconnect_participant(self, participant_id: int) -> bool:
        """Drop tokens on deauthorization; results stay for season integrity."""
        with self.session_factory() as db:
            deleted = (
                db.query(ParticipantToken)
                .filter(ParticipantToken.participant_id == participant_id)
                .delete(synchronize_session=False)
            )
            db.commit()
        log.info("Participant %s deauthorized; %d token row(s) removed", participant_id, deleted)
        return deleted > 0
