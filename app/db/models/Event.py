# app/db/models/Event.py
import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, Text, Boolean, String
from sqlalchemy.orm import relationship
from app.db.base import Base
from app.db.models.Photo import Photo

class Event(Base):
    __tablename__ = 'events'

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(64), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    is_public = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    photos = relationship("Photo", back_populates="event", passive_deletes=True)

    def __repr__(self):
        return f"<Event(id={self.id}, name={self.name})>"
