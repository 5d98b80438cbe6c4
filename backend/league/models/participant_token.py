from sqlalchemy import Column, BigInteger, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from league.db import Base


class ParticipantToken(Base):
    __tablename__ = "participant_tokens"

    participant_id = Column(
        BigInteger, ForeignKey("participants.id", ondelete="CASCADE"), primary_key=True
    )

    access_token = Column(String, nullable=False)
    refresh_token = Column(String, nullable=False)
    expires_at = Column(BigInteger, nullable=False)  # epoch seconds
    scope = Column(String, nullable=True)

    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    participant = relationship("Participant", back_populates="token")
