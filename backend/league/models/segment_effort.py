from sqlalchemy import Column, Integer, BigInteger, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from league.db import Base


class StoredEffort(Base):
    __tablename__ = "segment_efforts"

    id = Column(Integer, primary_key=True, index=True)
    activity_id = Column(Integer, ForeignKey("activities.id", ondelete="CASCADE"), nullable=False, index=True)

    segment_id = Column(BigInteger, nullable=False)
    external_id = Column(BigInteger, nullable=True)  # Strava effort id

    effort_index = Column(Integer, nullable=False)  # 0-based within the selected window
    lap_index = Column(Integer, nullable=False)     # 0-based within all laps of the activity
    elapsed_seconds = Column(Integer, nullable=False)
    occurred_at = Column(BigInteger, nullable=False)

    # Strava pr_rank == 1 only (athlete's all-time best on the segment)
    pr_achieved = Column(Boolean, nullable=False, server_default="0", default=False)

    activity = relationship("StoredActivity", back_populates="efforts")
