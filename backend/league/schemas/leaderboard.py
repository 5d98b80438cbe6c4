from typing import Optional

from pydantic import BaseModel, ConfigDict


class LeaderboardEntry(BaseModel):
    """One row of a week's leaderboard, computed fresh on every read."""

    model_config = ConfigDict(from_attributes=True)

    rank: int
    participant_id: int
    participant_name: Optional[str] = None
    total_time_seconds: int
    total_time: str  # 'M:SS'
    base_points: int
    pr_bonus_points: int
    multiplier: int = 1
    points: int
    activity_id: Optional[int] = None
    # 1-based lap numbers that counted, e.g. [2, 3]
    laps: list[int] = []


class WeekLeaderboard(BaseModel):
    week_id: int
    week_name: str
    entries: list[LeaderboardEntry]


class StandingRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    rank: int
    participant_id: int
    participant_name: Optional[str] = None
    total_points: int
    weeks_completed: int
