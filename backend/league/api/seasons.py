from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from league.api.deps import get_engine
from league.core.time_utils import now_epoch
from league.db import get_db
from league.schemas.leaderboard import StandingRead
from league.schemas.season import SeasonRead
from league.services.engine import ReconciliationEngine
from league.services.seasons import SeasonResolver, SeasonWindow, is_open

router = APIRouter(prefix="/seasons", tags=["seasons"])


def _to_read(s: SeasonWindow) -> SeasonRead:
    status = is_open(s)
    return SeasonRead(
        id=s.id,
        name=s.name,
        start_at=s.start_at,
        end_at=s.end_at,
        is_active=s.is_active,
        is_open=status.open,
        status_reason=status.reason,
    )


@router.get("/containing", response_model=list[SeasonRead])
def seasons_containing(
    at: int | None = Query(None, description="Epoch seconds (UTC); defaults to now"),
    db: Session = Depends(get_db),
):
    """Seasons holding `at`, primary (most recently started) first."""
    ts = now_epoch() if at is None else at
    return [_to_read(s) for s in SeasonResolver(db).all_seasons_containing(ts)]


@router.get("/primary", response_model=SeasonRead)
def primary_season(
    at: int | None = Query(None, description="Epoch seconds (UTC); defaults to now"),
    db: Session = Depends(get_db),
):
    """The season shown by default at `at`."""
    ts = now_epoch() if at is None else at
    season = SeasonResolver(db).primary_season(ts)
    if season is None:
        raise HTTPException(status_code=404, detail=f"No season contains {ts}")
    return _to_read(season)


@router.get("/{season_id}/standings", response_model=list[StandingRead])
def season_standings(season_id: int, engine: ReconciliationEngine = Depends(get_engine)):
    return [StandingRead.model_validate(s) for s in engine.get_season_standings(season_id)]
