from sqlalchemy import Column, Integer, String, DateTime, BigInteger, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from league.db import Base


class Season(Base):
    __tablename__ = "seasons"
    __table_args__ = (
        CheckConstraint("end_at IS NULL OR start_at <= end_at", name="ck_season_bounds"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)

    # Epoch seconds (UTC). Seasons may overlap; end_at NULL = open-ended.
    start_at = Column(BigInteger, nullable=False)
    end_at = Column(BigInteger, nullable=True)

    # 0 = closed manually by an admin, regardless of end_at
    is_active = Column(Integer, nullable=False, server_default="1", default=1)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    weeks = relationship("Week", back_populates="season", order_by="Week.start_at")
