import io
import logging
import zipfile
from typing import Callable, List, NamedTuple

from app.schemas.photo import PhotoOut
from app.services.digital_oceans import download_file_from_spaces
from app.utils.validation import sanitize_event_name, format_size

logger = logging.getLogger(__name__)


class ExportArchive(NamedTuple):
    filename: str
    content: bytes
    photo_count: int


def export_file_name(event_name: str) -> str:
    return f"{sanitize_event_name(event_name)}_fotos.zip"


def select_export_targets(photos: List[PhotoOut], selected_ids) -> List[PhotoOut]:
    """The selected subset in list order, or every photo when nothing is selected."""
    if selected_ids:
        selected = set(selected_ids)
        return [photo for photo in photos if photo.id in selected]
    return list(photos)


def build_export_archive(event_name: str, photos: List[PhotoOut],
                         fetch: Callable[[str], bytes] = download_file_from_spaces) -> ExportArchive:
    """Fetch each photo in turn and pack it under the event folder.

    The first failing fetch propagates and no archive is produced.
    """
    folder = sanitize_event_name(event_name)
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, mode="w", compression=zipfile.ZIP_DEFLATED) as zf:
        for photo in photos:
            data = fetch(photo.storage_path)
            zf.writestr(f"{folder}/{photo.file_name}", data)

    content = buffer.getvalue()
    logger.info(f"Export of '{event_name}' finished: {len(photos)} photo(s), {format_size(len(content))}")
    return ExportArchive(filename=export_file_name(event_name), content=content, photo_count=len(photos))
