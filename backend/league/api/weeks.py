from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from league.api.deps import get_engine
from league.core.time_utils import seconds_to_mmss
from league.db import get_db
from league.schemas.leaderboard import LeaderboardEntry, WeekLeaderboard
from league.services.engine import ReconciliationEngine
from league.services.seasons import SeasonResolver

router = APIRouter(prefix="/weeks", tags=["weeks"])


@router.get("/{week_id}/leaderboard", response_model=WeekLeaderboard)
def get_week_leaderboard(
    week_id: int,
    db: Session = Depends(get_db),
    engine: ReconciliationEngine = Depends(get_engine),
):
    week = SeasonResolver(db).get_week(week_id)
    entries = [
        LeaderboardEntry(
            rank=e.rank,
            participant_id=e.participant_id,
            participant_name=e.participant_name,
            total_time_seconds=e.total_time_seconds,
            total_time=seconds_to_mmss(e.total_time_seconds),
            base_points=e.base_points,
            pr_bonus_points=e.pr_bonus_points,
            multiplier=e.multiplier,
            points=e.total_points,
            activity_id=e.activity_external_id,
            laps=[i + 1 for i in e.lap_indices],
        )
        for e in engine.get_week_leaderboard(week_id)
    ]
    return WeekLeaderboard(week_id=week.id, week_name=week.name, entries=entries)
