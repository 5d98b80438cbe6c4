from fastapi import APIRouter, Depends, HTTPException

from league.api.deps import get_engine, require_admin
from league.schemas.fetch import BatchSummaryRead
from league.services.engine import ReconciliationEngine

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.post("/weeks/{week_id}/fetch", response_model=BatchSummaryRead)
async def fetch_week_results(week_id: int, engine: ReconciliationEngine = Depends(get_engine)):
    """
    Pull every connected participant's activities for the week and store
    their best qualifying result. Always returns the per-participant summary,
    even when some participants failed.
    """
    summary = await engine.reconcile_week_for_all_participants(week_id)
    if summary.status == "season_ended":
        raise HTTPException(status_code=409, detail=summary.message)
    return BatchSummaryRead.model_validate(summary)


@router.delete("/weeks/{week_id}/fetch")
async def cancel_week_fetch(week_id: int, engine: ReconciliationEngine = Depends(get_engine)):
    if not engine.cancel_batch(week_id):
        raise HTTPException(status_code=404, detail="No fetch running for this week")
    return {"cancelled": True}


@router.post("/weeks/{week_id}/rebuild-results")
def rebuild_week_results(week_id: int, engine: ReconciliationEngine = Depends(get_engine)):
    return {"results": engine.rebuild_results(week_id)}
