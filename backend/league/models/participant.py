from sqlalchemy import Column, BigInteger, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from league.db import Base


class Participant(Base):
    __tablename__ = "participants"

    # Strava athlete id
    id = Column(BigInteger, primary_key=True, autoincrement=False)
    name = Column(String, nullable=False)
    active = Column(Boolean, nullable=False, server_default="1", default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    token = relationship(
        "ParticipantToken",
        uselist=False,
        back_populates="participant",
        cascade="all, delete-orphan",
    )
