"""Weekly and season scoring.

For a week with N finishers, ranked fastest first:

    base_points     = N - rank + 1   (one per finisher beaten, plus one for finishing)
    pr_bonus_points = 1 if any counted lap was an all-time PR, else 0
    total_points    = (base_points + pr_bonus_points) * week multiplier

Points are never stored; they are recomputed from activities + efforts
each time a leaderboard is read.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from league.models.activity import StoredActivity
from league.models.participant import Participant
from league.models.week import Week
from league.services.seasons import WeekTarget


@dataclass(frozen=True)
class ScoringEntry:
    participant_id: int
    total_time_seconds: int
    pr_achieved: bool = False
    participant_name: Optional[str] = None
    activity_external_id: Optional[int] = None
    lap_indices: tuple[int, ...] = ()


@dataclass(frozen=True)
class ScoredEntry:
    rank: int
    participant_id: int
    participant_name: Optional[str]
    total_time_seconds: int
    base_points: int
    pr_bonus_points: int
    multiplier: int
    total_points: int
    activity_external_id: Optional[int] = None
    lap_indices: tuple[int, ...] = ()


def score(entries: Iterable[ScoringEntry], multiplier: int = 1) -> list[ScoredEntry]:
    ordered = sorted(entries, key=lambda e: (e.total_time_seconds, e.participant_id))
    n = len(ordered)
    scored = []
    for i, e in enumerate(ordered):
        rank = i + 1
        base = n - rank + 1
        bonus = 1 if e.pr_achieved else 0
        scored.append(
            ScoredEntry(
                rank=rank,
                participant_id=e.participant_id,
                participant_name=e.participant_name,
                total_time_seconds=e.total_time_seconds,
                base_points=base,
                pr_bonus_points=bonus,
                multiplier=multiplier,
                total_points=(base + bonus) * multiplier,
                activity_external_id=e.activity_external_id,
                lap_indices=e.lap_indices,
            )
        )
    return scored


def load_week_entries(db: Session, week_id: int) -> list[ScoringEntry]:
    """One entry per stored activity; totals summed from its efforts."""
    rows = (
        db.query(StoredActivity, Participant.name)
        .outerjoin(Participant, Participant.id == StoredActivity.participant_id)
        .filter(StoredActivity.week_id == week_id)
        .all()
    )
    entries = []
    for activity, name in rows:
        efforts = activity.efforts
        if not efforts:
            continue
        entries.append(
            ScoringEntry(
                participant_id=activity.participant_id,
                participant_name=name,
                total_time_seconds=sum(e.elapsed_seconds for e in efforts),
                pr_achieved=any(e.pr_achieved for e in efforts),
                activity_external_id=activity.external_id,
                lap_indices=tuple(e.lap_index for e in efforts),
            )
        )
    return entries


def week_leaderboard(db: Session, week: WeekTarget) -> list[ScoredEntry]:
    return score(load_week_entries(db, week.id), multiplier=week.multiplier)


@dataclass(frozen=True)
class Standing:
    rank: int
    participant_id: int
    participant_name: Optional[str]
    total_points: int
    weeks_completed: int


def season_standings(db: Session, season_id: int) -> list[Standing]:
    """Sum of weekly points per participant across a season's weeks."""
    weeks = db.query(Week).filter(Week.season_id == season_id).order_by(Week.start_at).all()
    points: dict[int, int] = defaultdict(int)
    completed: dict[int, int] = defaultdict(int)
    names: dict[int, Optional[str]] = {}
    for w in weeks:
        for entry in week_leaderboard(db, WeekTarget.from_row(w)):
            points[entry.participant_id] += entry.total_points
            completed[entry.participant_id] += 1
            names[entry.participant_id] = entry.participant_name

    order = sorted(points, key=lambda pid: (-points[pid], -completed[pid], pid))
    return [
        Standing(
            rank=i + 1,
            participant_id=pid,
            participant_name=names.get(pid),
            total_points=points[pid],
            weeks_completed=completed[pid],
        )
        for i, pid in enumerate(order)
    ]
