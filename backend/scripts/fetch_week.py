#!/usr/bin/env python3
"""
Run an admin batch fetch for one week from the command line.

Usage:
    cd backend && python -m scripts.fetch_week 12
    cd backend && python -m scripts.fetch_week 12 --concurrency 4

Ctrl-C asks the running batch to stop; participants already being
reconciled finish, the rest are reported as cancelled.
"""
import argparse
import asyncio
import signal

from league.core.config import settings
from league.core.logging import setup_logging
from league.core.time_utils import seconds_to_mmss
from league.db import SessionLocal
from league.services.engine import EngineConfig, ReconciliationEngine
from league.services.strava_client import StravaClient
from league.services.tokens import TokenProvider


def print_summary(summary) -> None:
    print(f"{summary.week_name}: {summary.status} ({summary.message})")
    print(f"  processed {summary.participants_processed}, results {summary.results_found}")
    for o in summary.summary:
        if o.activity_found:
            laps = ", ".join(str(i + 1) for i in o.lap_indices)
            print(f"  + {o.participant_name}: {seconds_to_mmss(o.total_time_seconds)} (activity {o.activity_id}, laps {laps})")
        else:
            print(f"  - {o.participant_name}: {o.reason}")


async def run(week_id: int, concurrency: int) -> None:
    strava = StravaClient(settings)
    tokens = TokenProvider(SessionLocal, strava, settings.token_refresh_margin_seconds)
    config = EngineConfig(retry_delays=settings.retry_delays_seconds, batch_concurrency=concurrency)
    engine = ReconciliationEngine(SessionLocal, strava, tokens, config)

    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, engine.cancel_batch, week_id)
    except NotImplementedError:  # Windows
        pass

    try:
        summary = await engine.reconcile_week_for_all_participants(week_id)
    finally:
        await strava.aclose()
    print_summary(summary)


def main() -> None:
    ap = argparse.ArgumentParser(description="Fetch and store results for one league week")
    ap.add_argument("week_id", type=int)
    ap.add_argument("--concurrency", type=int, default=settings.batch_concurrency)
    args = ap.parse_args()

    setup_logging(settings.log_level, settings.is_dev)
    asyncio.run(run(args.week_id, max(1, args.concurrency)))


if __name__ == "__main__":
    main()
