import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, Sequence

from league.core.constants import (
    REASON_FETCH_FAILED,
    REASON_INVALID_TIMESTAMP,
    REASON_OUTSIDE_WINDOW,
)
from league.core.errors import TimestampError, UpstreamError
from league.core.time_utils import epoch_to_iso, iso_to_epoch
from league.services.effort_window import EffortWindow, Rejection, select_best_window
from league.services.retry import RetryOrchestrator
from league.services.seasons import WeekTarget
from league.services.upstream import ActivityDetail, ActivityRef

log = logging.getLogger(__name__)

FetchDetail = Callable[[ActivityRef], Awaitable[ActivityDetail]]


@dataclass(frozen=True)
class MatchedActivity:
    detail: ActivityDetail
    window: EffortWindow

    @property
    def total_seconds(self) -> int:
        return self.window.total_seconds


@dataclass(frozen=True)
class CandidateRejection:
    external_id: int
    rejection: Rejection

    @property
    def reason(self) -> str:
        return str(self.rejection)


@dataclass
class MatchOutcome:
    best: Optional[MatchedActivity] = None
    rejections: list[CandidateRejection] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.best is not None

    def fetch_failures(self) -> list[CandidateRejection]:
        return [r for r in self.rejections if r.rejection.reason == REASON_FETCH_FAILED]


class ActivityMatcher:
    """Picks a participant's single best activity for a week."""

    def __init__(self, retry: RetryOrchestrator):
        self.retry = retry

    async def find_best(
        self,
        candidates: Sequence[ActivityRef],
        week: WeekTarget,
        fetch_detail: FetchDetail,
    ) -> MatchOutcome:
        outcome = MatchOutcome()

        for ref in candidates:
            rejection = self._check_window(ref, week)
            if rejection is not None:
                outcome.rejections.append(CandidateRejection(ref.external_id, rejection))
                continue

            try:
                detail = await self.retry.fetch_with_effort_retry(
                    lambda ref=ref: fetch_detail(ref),
                    label=f"Activity {ref.external_id}",
                )
            except TimestampError as e:
                log.warning("Activity %s rejected, bad timestamp %r: %s", ref.external_id, e.raw, e.problem)
                outcome.rejections.append(
                    CandidateRejection(ref.external_id, Rejection(REASON_INVALID_TIMESTAMP, str(e.raw)))
                )
                continue
            except UpstreamError as e:
                log.warning("Activity %s could not be fetched: %s", ref.external_id, e)
                outcome.rejections.append(
                    CandidateRejection(ref.external_id, Rejection(REASON_FETCH_FAILED, str(e)))
                )
                continue

            result = select_best_window(detail.efforts_on(week.target_segment_id), week.required_repetitions)
            if isinstance(result, Rejection):
                log.info("Activity %s rejected for week %s: %s", ref.external_id, week.id, result)
                outcome.rejections.append(CandidateRejection(ref.external_id, result))
                continue

            log.info("Activity %s qualifies for week %s: %s", ref.external_id, week.id, result.describe())
            if outcome.best is None or result.total_seconds < outcome.best.total_seconds:
                outcome.best = MatchedActivity(detail=detail, window=result)

        if outcome.best is None:
            log.info("No qualifying activity for week %s among %d candidates", week.id, len(candidates))
        return outcome

    @staticmethod
    def _check_window(ref: ActivityRef, week: WeekTarget) -> Rejection | None:
        if not week.has_window:
            return None
        try:
            ts = iso_to_epoch(ref.start_date)
        except TimestampError as e:
            log.warning("Activity %s has an unusable start_date %r: %s", ref.external_id, e.raw, e.problem)
            return Rejection(REASON_INVALID_TIMESTAMP, str(e.raw))
        if not week.contains(ts):
            return Rejection(
                REASON_OUTSIDE_WINDOW,
                f"{ref.start_date} not in [{epoch_to_iso(week.start_at)}, {epoch_to_iso(week.end_at)}]",
            )
        return None
