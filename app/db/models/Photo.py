# app/db/models/Photo.py
import uuid
from datetime import datetime

from sqlalchemy import Column, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from app.db.base import Base


class Photo(Base):
    __tablename__ = 'photos'

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(36), ForeignKey('events.id', ondelete='CASCADE'), nullable=False, index=True)
    storage_path = Column(Text, nullable=False)
    taken_by = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    event = relationship("Event", back_populates="photos")

    @property
    def file_name(self) -> str:
        return self.storage_path.split("/")[-1]

    def __repr__(self):
        return f"<Photo(id={self.id}, storage_path={self.storage_path})>"
