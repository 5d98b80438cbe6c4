"""Value types for what Strava hands us.

Summaries come from /athlete/activities, details from /activities/{id}.
Only `start_date` (UTC, 'Z' suffix) is ever read; `start_date_local` is the
athlete's wall-clock time and would shift windows by their UTC offset.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from league.core.constants import ABSOLUTE_PR_RANK
from league.core.time_utils import iso_to_epoch


@dataclass(frozen=True)
class ActivityRef:
    external_id: int
    start_date: Optional[str] = None  # raw upstream value, parsed lazily
    name: Optional[str] = None

    @classmethod
    def from_summary(cls, payload: dict) -> "ActivityRef":
        return cls(
            external_id=int(payload["id"]),
            start_date=payload.get("start_date"),
            name=payload.get("name"),
        )


@dataclass(frozen=True)
class EffortAttempt:
    external_id: Optional[int]
    segment_id: int
    occurred_at: int
    elapsed_seconds: int
    pr_rank: Optional[int] = None

    @property
    def is_personal_record(self) -> bool:
        return self.pr_rank == ABSOLUTE_PR_RANK

    @classmethod
    def from_payload(cls, payload: dict) -> "EffortAttempt":
        segment = payload.get("segment") or {}
        effort_id = payload.get("id")
        return cls(
            external_id=int(effort_id) if effort_id is not None else None,
            segment_id=int(segment["id"]),
            occurred_at=iso_to_epoch(payload.get("start_date")),
            elapsed_seconds=int(payload["elapsed_time"]),
            pr_rank=payload.get("pr_rank"),
        )


@dataclass(frozen=True)
class ActivityDetail:
    external_id: int
    occurred_at: int
    name: Optional[str] = None
    device_name: Optional[str] = None
    efforts: tuple[EffortAttempt, ...] = field(default_factory=tuple)

    @property
    def has_efforts(self) -> bool:
        return len(self.efforts) > 0

    def efforts_on(self, segment_id: int) -> list[EffortAttempt]:
        """Efforts on one segment, in the order Strava returned them."""
        return [e for e in self.efforts if e.segment_id == segment_id]

    @classmethod
    def from_payload(cls, payload: dict) -> "ActivityDetail":
        # Strava omits segment_efforts (or sends null) until indexing is done
        raw_efforts = payload.get("segment_efforts") or []
        return cls(
            external_id=int(payload["id"]),
            occurred_at=iso_to_epoch(payload.get("start_date")),
            name=payload.get("name"),
            device_name=payload.get("device_name") or None,
            efforts=tuple(EffortAttempt.from_payload(e) for e in raw_efforts),
        )
