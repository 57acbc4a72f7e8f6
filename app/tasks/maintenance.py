from app.config.settings import settings
from app.core.celery_app import celery_app
from app.db.session import SessionLocal
from app.db.queries.photo_queries import get_referenced_paths
from app.services.digital_oceans import list_files_in_spaces, delete_files_from_spaces
from app.core.exceptions import RemoteCallError
import logging
from datetime import datetime, timedelta, timezone

logger = logging.getLogger(__name__)

CHECK_BATCH_SIZE = 500


def find_orphaned_files(db, keys):
    """Keys that no photo record references."""
    orphaned = []
    for start in range(0, len(keys), CHECK_BATCH_SIZE):
        batch = keys[start:start + CHECK_BATCH_SIZE]
        referenced = get_referenced_paths(db, batch)
        orphaned.extend(key for key in batch if key not in referenced)
    return orphaned


def settled_keys(listing, min_age_minutes, now=None):
    """Split a (key, last_modified) listing into keys old enough to judge and a count of the rest.

    A capture uploads its object before inserting the record, so a fresh
    unreferenced key may simply not have its record yet.
    """
    cutoff = (now or datetime.now(timezone.utc)) - timedelta(minutes=min_age_minutes)
    keys, recent = [], 0
    for key, last_modified in listing:
        if key.endswith('/'):
            continue
        if last_modified is None or last_modified > cutoff:
            recent += 1
        else:
            keys.append(key)
    return keys, recent


@celery_app.task(name="cleanup_orphaned_files")
def cleanup_orphaned_files():
    """Remove stored files left behind by photo inserts that failed after upload."""
    logger.info("Starting orphaned file cleanup")

    try:
        keys, recent = settled_keys(list_files_in_spaces(), settings.ORPHAN_MIN_AGE_MINUTES)
        with SessionLocal() as db:
            orphaned = find_orphaned_files(db, keys)
        delete_files_from_spaces(orphaned)

        logger.info(
            f"Orphaned file cleanup finished: checked {len(keys)}, deleted {len(orphaned)}, "
            f"skipped {recent} recent"
        )
        return {
            "success": True,
            "checked_files": len(keys),
            "skipped_recent_files": recent,
            "deleted_files": len(orphaned),
            "timestamp": datetime.utcnow().isoformat()
        }

    except RemoteCallError as e:
        logger.error(f"Orphaned file cleanup failed: {e.message}")
        return {
            "success": False,
            "error": e.message,
            "timestamp": datetime.utcnow().isoformat()
        }
