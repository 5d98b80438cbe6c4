from datetime import datetime, timedelta, timezone

from league.db import Base, SessionLocal, engine
from league.models import (
    Participant,
    ParticipantToken,
    Result,
    Season,
    StoredActivity,
    StoredEffort,
    Week,
)

DEMO_SEGMENTS = [
    (229781, "Hawk Hill"),
    (8109834, "Old La Honda"),
    (617475, "Tunitas Creek"),
    (1173191, "Kings Mountain"),
]

DEMO_PARTICIPANTS = [
    (1001, "Ana Ruiz"),
    (1002, "Ben Okafor"),
    (1003, "Chloe Park"),
]


def monday_utc(d: datetime) -> datetime:
    d = d.astimezone(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    return d - timedelta(days=d.weekday())


def clear_league(db) -> None:
    """Delete every league row so we can reseed cleanly."""
    for model in (StoredEffort, Result, StoredActivity, Week, Season, ParticipantToken, Participant):
        db.query(model).delete()
    db.commit()


def seed_demo_league(db) -> None:
    """One open season of four weeks, each on a different segment."""
    start = monday_utc(datetime.now(timezone.utc)) - timedelta(weeks=2)
    season = Season(name="Demo Season", start_at=int(start.timestamp()), end_at=None)
    db.add(season)
    db.flush()

    for i, (segment_id, segment_name) in enumerate(DEMO_SEGMENTS):
        # Tuesday 00:00 to 22:00 UTC, the club's weekly ride day
        day = start + timedelta(weeks=i, days=1)
        db.add(
            Week(
                season_id=season.id,
                name=f"Week {i + 1}: {segment_name}",
                target_segment_id=segment_id,
                required_repetitions=2 if i % 2 else 1,
                start_at=int(day.timestamp()),
                end_at=int((day + timedelta(hours=22)).timestamp()),
                multiplier=2 if i == len(DEMO_SEGMENTS) - 1 else 1,
            )
        )

    for athlete_id, name in DEMO_PARTICIPANTS:
        db.add(Participant(id=athlete_id, name=name))
        # Placeholder tokens; real ones arrive through the OAuth flow
        db.add(
            ParticipantToken(
                participant_id=athlete_id,
                access_token="demo",
                refresh_token="demo",
                expires_at=0,
            )
        )

    db.commit()
    print(f"Seeded season {season.id} with {len(DEMO_SEGMENTS)} weeks and {len(DEMO_PARTICIPANTS)} participants")


def main():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        clear_league(db)
        seed_demo_league(db)
    finally:
        db.close()


if __name__ == "__main__":
    main()
