from typing import Optional

from pydantic import BaseModel, ConfigDict


class SeasonRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    start_at: int
    end_at: Optional[int] = None
    is_active: int
    is_open: bool = True
    status_reason: Optional[str] = None
