import logging
import time
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, RemoteCallError
from app.db.models.Event import Event
from app.db.models.Photo import Photo
from app.db.queries.photo_queries import get_event, get_event_photos
from app.services.digital_oceans import upload_bytes_to_spaces, delete_files_from_spaces

logger = logging.getLogger(__name__)

GUEST_CONTRIBUTOR = "guest"


def build_storage_path(event_id: str, timestamp_ms: Optional[int] = None) -> str:
    # Keyed on capture time; two captures in the same millisecond collide
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{event_id}/{timestamp_ms}.jpg"


def create_photo(db: Session, event_id: str, data: bytes, taken_by: str = GUEST_CONTRIBUTOR,
                 timestamp_ms: Optional[int] = None) -> Photo:
    """Put the encoded frame in the object store, then insert its record.

    If the insert fails after the put succeeded the object is left orphaned
    and the error is still raised to the caller.
    """
    if get_event(db, event_id) is None:
        raise NotFoundError("Evento não encontrado")

    file_path = build_storage_path(event_id, timestamp_ms)
    upload_bytes_to_spaces(data, file_path, content_type="image/jpeg")

    try:
        photo = Photo(event_id=event_id, storage_path=file_path, taken_by=taken_by)
        db.add(photo)
        db.commit()
        db.refresh(photo)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Photo record insert failed, {file_path} is orphaned: {e}")
        raise RemoteCallError(f"Erro ao registrar foto: {e}", stage="record_insert") from e

    logger.info(f"Stored photo {photo.id} at {file_path}")
    return photo


def delete_photo(db: Session, photo: Photo) -> None:
    """Remove the stored object, then the record. A storage failure leaves both in place."""
    delete_files_from_spaces([photo.storage_path])

    try:
        db.query(Photo).filter(Photo.id == photo.id).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Photo record delete failed after storage removal of {photo.storage_path}: {e}")
        raise RemoteCallError(f"Erro ao excluir registro da foto: {e}", stage="record_delete") from e

    logger.info(f"Deleted photo {photo.id}")


def delete_event_cascade(db: Session, event: Event) -> None:
    """Delete every stored object of the event, then its photo rows, then the event.

    Each stage runs only if the previous one succeeded. Nothing is rolled back
    across stages.
    """
    event_id = event.id
    storage_paths = [photo.storage_path for photo in get_event_photos(db, event_id)]

    if storage_paths:
        delete_files_from_spaces(storage_paths)
        logger.info(f"Removed {len(storage_paths)} stored file(s) of event {event_id}")

    try:
        db.query(Photo).filter(Photo.event_id == event_id).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error deleting photo records of event {event_id}: {e}")
        raise RemoteCallError(f"Erro ao excluir fotos do evento: {e}", stage="photo_records") from e

    try:
        db.query(Event).filter(Event.id == event_id).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error deleting event {event_id}: {e}")
        raise RemoteCallError(f"Erro ao excluir evento: {e}", stage="event_record") from e

    logger.info(f"Deleted event {event_id}")
