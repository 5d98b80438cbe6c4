from sqlalchemy import Column, Integer, String, DateTime, BigInteger, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from league.db import Base


class Week(Base):
    __tablename__ = "weeks"
    __table_args__ = (
        CheckConstraint("required_repetitions >= 1", name="ck_week_reps"),
        CheckConstraint("start_at <= end_at", name="ck_week_bounds"),
    )

    id = Column(Integer, primary_key=True, index=True)
    season_id = Column(Integer, ForeignKey("seasons.id"), nullable=False, index=True)

    name = Column(String, nullable=False)

    # Strava segment the week is contested on, and how many consecutive
    # laps of it count as one result.
    target_segment_id = Column(BigInteger, nullable=False)
    required_repetitions = Column(Integer, nullable=False, server_default="1", default=1)

    # Epoch seconds (UTC), inclusive on both ends
    start_at = Column(BigInteger, nullable=False)
    end_at = Column(BigInteger, nullable=False)

    # Scales every point a participant earns this week (1 = normal week)
    multiplier = Column(Integer, nullable=False, server_default="1", default=1)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    season = relationship("Season", back_populates="weeks")
