import pytest

from league.core.errors import InvalidRowError, NotFoundError
from league.models import Week
from league.services.seasons import SeasonResolver, SeasonWindow, WeekTarget, is_closed, is_open

from tests.factories import DAY, T0, add_season, add_week


def test_overlapping_seasons_most_recent_start_first(db):
    fall = add_season(db, name="Fall", start_at=T0 - 60 * DAY, end_at=T0 + 30 * DAY)
    winter = add_season(db, name="Winter", start_at=T0 - 10 * DAY, end_at=T0 + 90 * DAY)
    add_season(db, name="Spring", start_at=T0 + 100 * DAY)

    seasons = SeasonResolver(db).all_seasons_containing(T0)

    assert [s.id for s in seasons] == [winter.id, fall.id]
    assert SeasonResolver(db).primary_season(T0).name == "Winter"


def test_equal_start_prefers_latest_created(db):
    first = add_season(db, name="A", start_at=T0 - DAY)
    second = add_season(db, name="B", start_at=T0 - DAY)

    seasons = SeasonResolver(db).all_seasons_containing(T0)

    assert [s.id for s in seasons] == [second.id, first.id]


def test_season_bounds_are_inclusive(db):
    add_season(db, start_at=T0, end_at=T0 + DAY)
    resolver = SeasonResolver(db)

    assert resolver.all_seasons_containing(T0 - 1) == []
    assert len(resolver.all_seasons_containing(T0)) == 1
    assert len(resolver.all_seasons_containing(T0 + DAY)) == 1
    assert resolver.all_seasons_containing(T0 + DAY + 1) == []
    assert resolver.primary_season(T0 - 1) is None


def test_open_ended_season_contains_far_future(db):
    add_season(db, start_at=T0, end_at=None)
    assert len(SeasonResolver(db).all_seasons_containing(T0 + 3650 * DAY)) == 1


def test_weeks_containing_respects_week_bounds(db):
    season = add_season(db)
    week = add_week(db, season, start_at=T0, end_at=T0 + 79_200)
    resolver = SeasonResolver(db)

    assert resolver.weeks_containing(season.id, T0 - 1) == []
    assert [w.id for w in resolver.weeks_containing(season.id, T0)] == [week.id]
    assert [w.id for w in resolver.weeks_containing(season.id, T0 + 79_200)] == [week.id]
    assert resolver.weeks_containing(season.id, T0 + 79_201) == []


def test_get_week_missing_raises_not_found(db):
    with pytest.raises(NotFoundError):
        SeasonResolver(db).get_week(404)
    with pytest.raises(NotFoundError):
        SeasonResolver(db).get_season(404)


def test_week_target_rejects_missing_required_field():
    row = Week(id=3, season_id=1, name="Broken", target_segment_id=None, required_repetitions=1, start_at=T0, end_at=T0)
    with pytest.raises(InvalidRowError) as exc:
        WeekTarget.from_row(row)
    assert exc.value.field == "target_segment_id"


def test_week_target_defaults_multiplier():
    row = Week(id=3, season_id=1, name="W", target_segment_id=9, required_repetitions=2, start_at=T0, end_at=T0 + 1)
    target = WeekTarget.from_row(row)
    assert target.multiplier == 1
    assert target.required_repetitions == 2


def test_week_without_window_accepts_everything():
    week = WeekTarget(1, 1, "Open", 9, 1, start_at=None, end_at=None)
    assert not week.has_window
    assert week.contains(0)


def test_is_closed_past_end_and_deactivated():
    ended = SeasonWindow(1, "Fall", start_at=T0 - DAY, end_at=T0)
    assert not is_closed(ended, now=T0).closed
    status = is_closed(ended, now=T0 + 1)
    assert status.closed
    assert "Season has ended" in status.reason

    deactivated = SeasonWindow(2, "Winter", start_at=T0 - DAY, end_at=None, is_active=0)
    assert is_closed(deactivated, now=T0).closed


def test_is_open_reports_not_started():
    future = SeasonWindow(1, "Spring", start_at=T0 + DAY, end_at=None)
    status = is_open(future, now=T0)
    assert not status.open
    assert not status.closed
    assert "hasn't started" in status.reason

    assert is_open(future, now=T0 + DAY).open
