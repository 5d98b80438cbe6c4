from sqlalchemy import Column, Integer, BigInteger, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from league.db import Base


class Result(Base):
    """Materialized total per (week, participant).

    Rank and points are NOT stored; they are computed on read from the
    activity + effort rows, which are the source of truth.
    """

    __tablename__ = "results"
    __table_args__ = (
        UniqueConstraint("week_id", "participant_id", name="uq_result_week_participant"),
    )

    id = Column(Integer, primary_key=True, index=True)
    week_id = Column(Integer, ForeignKey("weeks.id"), nullable=False, index=True)
    participant_id = Column(BigInteger, ForeignKey("participants.id"), nullable=False, index=True)
    activity_id = Column(Integer, ForeignKey("activities.id", ondelete="CASCADE"), nullable=False)

    total_time_seconds = Column(Integer, nullable=False)

    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
