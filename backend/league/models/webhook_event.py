from sqlalchemy import Column, Integer, BigInteger, String, Boolean, DateTime, JSON
from sqlalchemy.sql import func
from league.db import Base


class WebhookEvent(Base):
    __tablename__ = "webhook_events"

    id = Column(Integer, primary_key=True, index=True)

    object_type = Column(String(20), nullable=False)  # activity | athlete
    aspect_type = Column(String(20), nullable=False)  # create | update | delete
    object_id = Column(BigInteger, nullable=False)
    owner_id = Column(BigInteger, nullable=False, index=True)
    payload = Column(JSON, nullable=False)

    processed = Column(Boolean, nullable=False, server_default="0", default=False)
    error_message = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), index=True)
    processed_at = Column(DateTime(timezone=True), nullable=True)
