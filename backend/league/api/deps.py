from fastapi import Depends, Header, HTTPException, Request

from league.core.config import Settings, settings as app_settings
from league.services.engine import ReconciliationEngine


def get_settings() -> Settings:
    return app_settings


def get_engine(request: Request) -> ReconciliationEngine:
    return request.app.state.engine


def require_admin(
    x_admin_id: int | None = Header(None),
    settings: Settings = Depends(get_settings),
) -> int:
    # Session auth lives in front of this service; it forwards the athlete id.
    if x_admin_id is None or x_admin_id not in settings.admin_ids:
        raise HTTPException(status_code=403, detail="Admin access required")
    return x_admin_id
