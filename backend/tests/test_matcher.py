import pytest

from league.core.constants import (
    REASON_FETCH_FAILED,
    REASON_INSUFFICIENT_REPS,
    REASON_INVALID_TIMESTAMP,
    REASON_OUTSIDE_WINDOW,
    REASON_SEGMENT_NOT_FOUND,
)
from league.core.errors import TimestampError, UpstreamError
from league.services.matcher import ActivityMatcher
from league.services.retry import RetryOrchestrator
from league.services.seasons import WeekTarget

from tests.fakes import OTHER_SEGMENT_ID, SEGMENT_ID, make_detail, make_ref

T0 = 1_700_000_000
WEEK = WeekTarget(
    id=1,
    season_id=1,
    name="Week 1",
    target_segment_id=SEGMENT_ID,
    required_repetitions=2,
    start_at=T0,
    end_at=T0 + 79_200,
)


def matcher(sleep):
    return ActivityMatcher(RetryOrchestrator((15, 45, 90), sleep=sleep))


def fetcher(details):
    fetched = []

    async def fetch(ref):
        fetched.append(ref.external_id)
        response = details[ref.external_id]
        if isinstance(response, Exception):
            raise response
        return response

    return fetch, fetched


@pytest.mark.asyncio
async def test_picks_lowest_total_among_qualifying(sleep):
    details = {
        1: make_detail(1, T0 + 100, [150, 160, 140]),  # best pair 300
        2: make_detail(2, T0 + 200, [140, 145]),  # 285
        3: make_detail(3, T0 + 300, [200, 210]),  # 410
    }
    fetch, _ = fetcher(details)
    refs = [make_ref(1, T0 + 100), make_ref(2, T0 + 200), make_ref(3, T0 + 300)]

    outcome = await matcher(sleep).find_best(refs, WEEK, fetch)

    assert outcome.found
    assert outcome.best.detail.external_id == 2
    assert outcome.best.total_seconds == 285
    assert outcome.rejections == []


@pytest.mark.asyncio
async def test_equal_totals_keep_first_candidate(sleep):
    details = {1: make_detail(1, T0 + 100, [150, 150]), 2: make_detail(2, T0 + 200, [150, 150])}
    fetch, _ = fetcher(details)

    outcome = await matcher(sleep).find_best([make_ref(1, T0 + 100), make_ref(2, T0 + 200)], WEEK, fetch)

    assert outcome.best.detail.external_id == 1


@pytest.mark.asyncio
async def test_window_boundaries_inclusive_and_no_fetch_outside(sleep):
    details = {
        1: make_detail(1, T0 - 1, [100, 100]),
        2: make_detail(2, T0, [120, 120]),
        3: make_detail(3, T0 + 79_200, [110, 110]),
        4: make_detail(4, T0 + 79_201, [90, 90]),
    }
    fetch, fetched = fetcher(details)
    refs = [make_ref(1, T0 - 1), make_ref(2, T0), make_ref(3, T0 + 79_200), make_ref(4, T0 + 79_201)]

    outcome = await matcher(sleep).find_best(refs, WEEK, fetch)

    assert outcome.best.detail.external_id == 3
    assert fetched == [2, 3]
    assert {r.external_id: r.rejection.reason for r in outcome.rejections} == {
        1: REASON_OUTSIDE_WINDOW,
        4: REASON_OUTSIDE_WINDOW,
    }


@pytest.mark.asyncio
async def test_local_time_start_date_is_rejected_not_guessed(sleep):
    fetch, fetched = fetcher({1: make_detail(1, T0 + 100, [100, 100])})

    outcome = await matcher(sleep).find_best([make_ref(1, "2023-11-14T14:30:00")], WEEK, fetch)

    assert not outcome.found
    assert fetched == []
    assert outcome.rejections[0].rejection.reason == REASON_INVALID_TIMESTAMP


@pytest.mark.asyncio
async def test_rejection_reasons_per_candidate(sleep):
    details = {
        1: make_detail(1, T0 + 100, [100, 100], segment_id=OTHER_SEGMENT_ID),
        2: make_detail(2, T0 + 200, [100]),
        3: UpstreamError("Fetch activity 3 failed (500)", 500),
        4: TimestampError("2023-11-14T14:30:00", "missing UTC designator"),
    }
    fetch, _ = fetcher(details)
    refs = [make_ref(i, T0 + 100 * i) for i in (1, 2, 3, 4)]

    outcome = await matcher(sleep).find_best(refs, WEEK, fetch)

    assert not outcome.found
    reasons = {r.external_id: r.rejection.reason for r in outcome.rejections}
    assert reasons == {
        1: REASON_SEGMENT_NOT_FOUND,
        2: REASON_INSUFFICIENT_REPS,
        3: REASON_FETCH_FAILED,
        4: REASON_INVALID_TIMESTAMP,
    }
    assert [r.external_id for r in outcome.fetch_failures()] == [3]


@pytest.mark.asyncio
async def test_empty_detail_is_retried_before_rejection(sleep):
    fetch, fetched = fetcher({1: make_detail(1, T0 + 100)})

    outcome = await matcher(sleep).find_best([make_ref(1, T0 + 100)], WEEK, fetch)

    assert fetched == [1, 1, 1, 1]
    assert sleep.delays == [15, 45, 90]
    assert outcome.rejections[0].rejection.reason == REASON_SEGMENT_NOT_FOUND


@pytest.mark.asyncio
async def test_no_candidates(sleep):
    fetch, _ = fetcher({})
    outcome = await matcher(sleep).find_best([], WEEK, fetch)
    assert not outcome.found
    assert outcome.rejections == []
