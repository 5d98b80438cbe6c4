from typing import Optional

from pydantic import BaseModel, ConfigDict


class RejectionRead(BaseModel):
    activity_id: int
    reason: str


class ParticipantOutcomeRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    participant_id: int
    participant_name: str
    activity_found: bool
    activity_id: Optional[int] = None
    total_time_seconds: Optional[int] = None
    segment_efforts: Optional[int] = None
    lap_indices: list[int] = []
    reason: Optional[str] = None
    rejections: list[RejectionRead] = []


class BatchSummaryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    week_id: int
    week_name: str
    status: str
    message: str
    participants_processed: int
    results_found: int
    summary: list[ParticipantOutcomeRead]
