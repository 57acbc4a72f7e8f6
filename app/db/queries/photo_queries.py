from typing import List, Optional

from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import RemoteCallError
from app.db.models.Event import Event
from app.db.models.Photo import Photo


def get_event(db: Session, event_id: str) -> Optional[Event]:
    try:
        return db.query(Event).filter(Event.id == event_id).first()
    except SQLAlchemyError as e:
        raise RemoteCallError(f"Database error: {e}", stage="event_lookup") from e

def get_events_for_owner(db: Session, user_id: str) -> List[Event]:
    try:
        return db.query(Event).filter(Event.user_id == user_id).order_by(desc(Event.created_at)).all()
    except SQLAlchemyError as e:
        raise RemoteCallError(f"Database error: {e}", stage="event_list") from e

def get_event_photos(db: Session, event_id: str) -> List[Photo]:
    """All photos of an event, most recent first. No pagination."""
    try:
        return db.query(Photo).filter(Photo.event_id == event_id).order_by(
            desc(Photo.created_at), desc(Photo.storage_path)
        ).all()
    except SQLAlchemyError as e:
        raise RemoteCallError(f"Database error: {e}", stage="photo_list") from e

def get_photo(db: Session, event_id: str, photo_id: str) -> Optional[Photo]:
    try:
        return db.query(Photo).filter(Photo.id == photo_id, Photo.event_id == event_id).first()
    except SQLAlchemyError as e:
        raise RemoteCallError(f"Database error: {e}", stage="photo_lookup") from e

def get_referenced_paths(db: Session, paths: List[str]) -> set:
    if not paths:
        return set()
    try:
        rows = db.query(Photo.storage_path).filter(Photo.storage_path.in_(paths)).all()
    except SQLAlchemyError as e:
        raise RemoteCallError(f"Database error: {e}", stage="photo_paths") from e
    return {row[0] for row in rows}
