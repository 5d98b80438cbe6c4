"""Season and week windows.

Rows are converted to frozen dataclasses at this boundary so the rest of
the engine never touches ORM objects (and never discovers a NULL required
column halfway through a reconciliation).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from league.core.errors import InvalidRowError, NotFoundError
from league.core.time_utils import epoch_to_iso, is_within, now_epoch
from league.models.season import Season
from league.models.week import Week


def _required(table: str, row, name: str):
    value = getattr(row, name, None)
    if value is None:
        raise InvalidRowError(table, getattr(row, "id", None), name)
    return value


@dataclass(frozen=True)
class SeasonWindow:
    id: int
    name: str
    start_at: int
    end_at: Optional[int]
    is_active: int = 1

    def contains(self, ts: int) -> bool:
        return is_within(ts, self.start_at, self.end_at)

    @classmethod
    def from_row(cls, row: Season) -> "SeasonWindow":
        return cls(
            id=_required("seasons", row, "id"),
            name=_required("seasons", row, "name"),
            start_at=_required("seasons", row, "start_at"),
            end_at=row.end_at,
            is_active=1 if row.is_active is None else int(row.is_active),
        )


@dataclass(frozen=True)
class WeekTarget:
    id: int
    season_id: int
    name: str
    target_segment_id: int
    required_repetitions: int
    start_at: Optional[int]
    end_at: Optional[int]
    multiplier: int = 1

    @property
    def has_window(self) -> bool:
        return self.start_at is not None

    def contains(self, ts: int) -> bool:
        # No window at all: every activity is eligible
        if not self.has_window:
            return True
        return is_within(ts, self.start_at, self.end_at)

    @classmethod
    def from_row(cls, row: Week) -> "WeekTarget":
        reps = _required("weeks", row, "required_repetitions")
        if reps < 1:
            raise InvalidRowError("weeks", row.id, "required_repetitions")
        return cls(
            id=_required("weeks", row, "id"),
            season_id=_required("weeks", row, "season_id"),
            name=_required("weeks", row, "name"),
            target_segment_id=_required("weeks", row, "target_segment_id"),
            required_repetitions=reps,
            start_at=_required("weeks", row, "start_at"),
            end_at=_required("weeks", row, "end_at"),
            multiplier=row.multiplier if row.multiplier is not None else 1,
        )


@dataclass(frozen=True)
class SeasonStatus:
    open: bool
    closed: bool
    reason: Optional[str] = None


def is_closed(season: SeasonWindow, now: int | None = None) -> SeasonStatus:
    """Closed when deactivated by an admin or once `now` passes end_at."""
    now = now_epoch() if now is None else now
    if not season.is_active:
        return SeasonStatus(open=False, closed=True, reason=f"Season '{season.name}' was deactivated")
    if season.end_at is not None and now > season.end_at:
        return SeasonStatus(
            open=False,
            closed=True,
            reason=f"Season has ended (ended {epoch_to_iso(season.end_at)})",
        )
    return SeasonStatus(open=True, closed=False)


def is_open(season: SeasonWindow, now: int | None = None) -> SeasonStatus:
    """Like is_closed, but also reports seasons that haven't started yet."""
    now = now_epoch() if now is None else now
    status = is_closed(season, now)
    if status.closed:
        return status
    if now < season.start_at:
        return SeasonStatus(
            open=False,
            closed=False,
            reason=f"Season hasn't started yet (starts {epoch_to_iso(season.start_at)})",
        )
    return status


class SeasonResolver:
    def __init__(self, db: Session):
        self.db = db

    def all_seasons_containing(self, ts: int) -> list[SeasonWindow]:
        """
        Every season whose interval holds `ts`, most recently started first,
        ties broken by most recently created (highest id). The first entry is
        the "primary" season everywhere it is displayed.
        """
        rows = (
            self.db.query(Season)
            .filter(Season.start_at <= ts)
            .filter(or_(Season.end_at.is_(None), Season.end_at >= ts))
            .order_by(Season.start_at.desc(), Season.id.desc())
            .all()
        )
        return [SeasonWindow.from_row(r) for r in rows]

    def primary_season(self, ts: int) -> SeasonWindow | None:
        seasons = self.all_seasons_containing(ts)
        return seasons[0] if seasons else None

    def get_season(self, season_id: int) -> SeasonWindow:
        row = self.db.get(Season, season_id)
        if row is None:
            raise NotFoundError("Season", season_id)
        return SeasonWindow.from_row(row)

    def get_week(self, week_id: int) -> WeekTarget:
        row = self.db.get(Week, week_id)
        if row is None:
            raise NotFoundError("Week", week_id)
        return WeekTarget.from_row(row)

    def weeks_containing(self, season_id: int, ts: int) -> list[WeekTarget]:
        rows = (
            self.db.query(Week)
            .filter(Week.season_id == season_id)
            .filter(Week.start_at <= ts)
            .filter(Week.end_at >= ts)
            .order_by(Week.start_at, Week.id)
            .all()
        )
        return [WeekTarget.from_row(r) for r in rows]
