from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from league.api.admin import router as admin_router
from league.api.seasons import router as seasons_router
from league.api.webhooks import router as webhooks_router
from league.api.weeks import router as weeks_router
from league.core.config import settings
from league.core.errors import InvalidRowError, NotFoundError
from league.core.logging import setup_logging
from league.db import Base, SessionLocal, engine as db_engine
import league.models  # noqa: F401  (import ensures tables are registered)
from league.services.engine import EngineConfig, ReconciliationEngine
from league.services.strava_client import StravaClient
from league.services.tokens import TokenProvider


setup_logging(settings.log_level, settings.is_dev)


@asynccontextmanager
async def lifespan(app: FastAPI):
    strava = StravaClient(settings)
    tokens = TokenProvider(SessionLocal, strava, settings.token_refresh_margin_seconds)
    app.state.engine = ReconciliationEngine(
        SessionLocal, strava, tokens, EngineConfig.from_settings(settings)
    )
    try:
        yield
    finally:
        await strava.aclose()


app = FastAPI(lifespan=lifespan)

# Allow CORS for local frontend
origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Create DB tables on startup
Base.metadata.create_all(bind=db_engine)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(InvalidRowError)
async def invalid_row_handler(request: Request, exc: InvalidRowError):
    return JSONResponse(status_code=500, content={"detail": str(exc)})


app.include_router(webhooks_router)
app.include_router(weeks_router)
app.include_router(seasons_router)
app.include_router(admin_router)


@app.get("/")
def root():
    return {"message": "League backend is running"}
