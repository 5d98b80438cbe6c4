"""Shared league constants.

Values the reconciliation engine and the Strava client agree on, kept in
one place so they can be documented and adjusted together.
"""

# Strava pr_rank value for the athlete's fastest-ever effort on a segment.
# Ranks 2 and 3 (second/third best) do not earn the PR bonus.
ABSOLUTE_PR_RANK = 1

# Page size for /athlete/activities (Strava caps this at 200)
ACTIVITIES_PER_PAGE = 100

# Default waits (seconds) before detail fetch attempts 2, 3 and 4
DEFAULT_RETRY_DELAYS_S = (15.0, 45.0, 90.0)

# Rejection reasons reported per candidate activity / participant.
REASON_OUTSIDE_WINDOW = "outside time window"
REASON_INVALID_TIMESTAMP = "invalid timestamp"
REASON_SEGMENT_NOT_FOUND = "segment not found in activity"
REASON_INSUFFICIENT_REPS = "insufficient repetitions"
REASON_FETCH_FAILED = "fetch failed"
REASON_NO_ACTIVITIES = "no qualifying activities found"
REASON_CANCELLED = "cancelled"
