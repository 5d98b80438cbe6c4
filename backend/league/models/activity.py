from sqlalchemy import Column, Integer, BigInteger, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from league.db import Base


class StoredActivity(Base):
    """The one activity that counts for a participant in a week."""

    __tablename__ = "activities"
    # Reconciliation deletes then inserts; never merge into an existing row.
    __table_args__ = (
        UniqueConstraint("week_id", "participant_id", name="uq_activity_week_participant"),
    )

    id = Column(Integer, primary_key=True, index=True)
    week_id = Column(Integer, ForeignKey("weeks.id"), nullable=False, index=True)
    participant_id = Column(BigInteger, ForeignKey("participants.id"), nullable=False, index=True)

    external_id = Column(BigInteger, nullable=False, index=True)  # Strava activity id
    name = Column(String, nullable=True)
    occurred_at = Column(BigInteger, nullable=False)  # epoch seconds (UTC)
    device_name = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    efforts = relationship(
        "StoredEffort",
        back_populates="activity",
        order_by="StoredEffort.effort_index",
    )
