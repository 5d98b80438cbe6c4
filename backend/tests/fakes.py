"""In-memory stand-ins for Strava, the token store and asyncio.sleep."""
from __future__ import annotations

from typing import Callable, Optional, Sequence

from league.core.errors import NotConnectedError, UpstreamAuthError
from league.core.time_utils import epoch_to_iso
from league.services.upstream import ActivityDetail, ActivityRef, EffortAttempt

SEGMENT_ID = 555
OTHER_SEGMENT_ID = 777


def make_ref(external_id: int, start: int | str | None, name: str | None = None) -> ActivityRef:
    start_date = epoch_to_iso(start) if isinstance(start, int) else start
    return ActivityRef(external_id=external_id, start_date=start_date, name=name)


def make_detail(
    external_id: int,
    start: int,
    laps: Sequence[int] = (),
    segment_id: int = SEGMENT_ID,
    pr_ranks: Optional[Sequence[Optional[int]]] = None,
    name: str | None = None,
) -> ActivityDetail:
    """Detail with one effort per lap, laps spaced ten minutes apart."""
    ranks = list(pr_ranks) if pr_ranks is not None else [None] * len(laps)
    efforts = tuple(
        EffortAttempt(
            external_id=external_id * 100 + i,
            segment_id=segment_id,
            occurred_at=start + 600 * i,
            elapsed_seconds=elapsed,
            pr_rank=ranks[i],
        )
        for i, elapsed in enumerate(laps)
    )
    return ActivityDetail(
        external_id=external_id,
        occurred_at=start,
        name=name or f"Ride {external_id}",
        device_name="Garmin Edge 530",
        efforts=efforts,
    )


def participant_of(token: str) -> int:
    # FakeTokens hands out "tok-<participant>-<refresh count>"
    return int(token.split("-")[1])


class FakeStrava:
    """Serves canned listings and details, recording every call."""

    def __init__(self):
        self.activities: dict[int, list[ActivityRef]] = {}
        # Successive responses per activity; the last one repeats.
        self.details: dict[int, list] = {}
        self.rejected_tokens: set[str] = set()
        self.list_errors: dict[int, Exception] = {}
        self.on_list: Optional[Callable[[int], None]] = None
        self.calls: list[tuple] = []
        self.refreshed: list[str] = []

    def add_activity(self, participant_id: int, ref: ActivityRef, *responses) -> None:
        self.activities.setdefault(participant_id, []).append(ref)
        if responses:
            self.details[ref.external_id] = list(responses)

    def detail_calls(self, external_id: int | None = None) -> list[tuple]:
        return [c for c in self.calls if c[0] == "detail" and (external_id is None or c[1] == external_id)]

    def list_calls(self) -> list[tuple]:
        return [c for c in self.calls if c[0] == "list"]

    def _check(self, token: str) -> None:
        if token in self.rejected_tokens:
            raise UpstreamAuthError("invalid or expired Strava token", 401)

    async def list_activities(self, token: str, start_epoch: int, end_epoch: int) -> list[ActivityRef]:
        participant_id = participant_of(token)
        self.calls.append(("list", participant_id, start_epoch, end_epoch, token))
        self._check(token)
        if self.on_list is not None:
            self.on_list(participant_id)
        if participant_id in self.list_errors:
            raise self.list_errors[participant_id]
        return list(self.activities.get(participant_id, []))

    async def get_activity_detail(self, ref: ActivityRef, token: str) -> ActivityDetail:
        self.calls.append(("detail", ref.external_id, token))
        self._check(token)
        responses = self.details[ref.external_id]
        response = responses.pop(0) if len(responses) > 1 else responses[0]
        if isinstance(response, Exception):
            raise response
        return response

    async def refresh_access_token(self, refresh_token: str) -> dict:
        self.refreshed.append(refresh_token)
        return {
            "access_token": f"access-{len(self.refreshed)}",
            "refresh_token": f"refresh-{len(self.refreshed)}",
            "expires_at": 4_000_000_000,
        }


class FakeTokens:
    def __init__(self):
        self.forced: list[int] = []
        self.disconnected: set[int] = set()

    async def get_valid_token(self, participant_id: int, force_refresh: bool = False) -> str:
        if participant_id in self.disconnected:
            raise NotConnectedError(participant_id)
        if force_refresh:
            self.forced.append(participant_id)
        return f"tok-{participant_id}-{self.forced.count(participant_id)}"


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
