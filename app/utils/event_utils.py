import logging
from typing import Iterable, List, Optional

from pydantic import ValidationError

from app.config.settings import settings
from app.core.exceptions import PhotoShareError
from app.schemas.event import EventOut
from app.schemas.photo import PhotoOut
from app.schemas.user import Response
from app.services.digital_oceans import generate_public_url

logger = logging.getLogger(__name__)

def to_event(row) -> Optional[EventOut]:
    if row is None:
        return None
    try:
        return EventOut.model_validate(row)
    except ValidationError as e:
        logger.warning(f"Skipping malformed event row {getattr(row, 'id', None)}: {e}")
        return None

def to_events(rows: Iterable) -> List[EventOut]:
    events = []
    for row in rows:
        event = to_event(row)
        if event is not None:
            events.append(event)
    return events

def to_photos(rows: Iterable) -> List[PhotoOut]:
    photos = []
    for row in rows:
        try:
            photos.append(PhotoOut.model_validate(row))
        except ValidationError as e:
            logger.warning(f"Skipping malformed photo row {getattr(row, 'id', None)}: {e}")
    return photos

def guest_url(event_id: str) -> str:
    return f"{settings.PUBLIC_BASE_URL}/event/{event_id}"

def format_event_data(event: EventOut) -> dict:
    return {
        "id": event.id,
        "name": event.name,
        "description": event.description,
        "is_public": event.is_public,
        "user_id": event.user_id,
        "created_at": event.created_at.isoformat(),
        "guest_url": guest_url(event.id),
        "qr_url": f"/api/v1/event-qr?event_id={event.id}",
    }

def format_photo_data(photos: List[PhotoOut]) -> List[dict]:
    return [
        {
            "id": photo.id,
            "event_id": photo.event_id,
            "storage_path": photo.storage_path,
            "file_name": photo.file_name,
            "taken_by": photo.taken_by,
            "created_at": photo.created_at.isoformat(),
            "url": generate_public_url(photo.storage_path),
        }
        for photo in photos
    ]

def error_response(error: PhotoShareError, title: Optional[str] = None) -> Response:
    data = error.to_data() or {}
    data["title"] = title or error.title
    return Response(
        message=error.message,
        status="error",
        status_code=error.status_code,
        data=data
    )
