import logging
from typing import List, Optional, Set

from starlette.concurrency import run_in_threadpool

from app.core.context import AppContext
from app.core.exceptions import AuthorizationError, NotFoundError, PhotoShareError
from app.db.queries.photo_queries import get_event, get_event_photos, get_photo
from app.schemas.event import EventOut
from app.schemas.photo import PhotoOut
from app.services.export_service import ExportArchive, build_export_archive, select_export_targets
from app.services.photo_service import delete_photo, delete_event_cascade
from app.utils.event_utils import to_event, to_photos

logger = logging.getLogger(__name__)

EMPTY_GALLERY_MESSAGE = "Nenhuma foto foi adicionada a este evento ainda."


def load_owned_event(db, event_id: str, current_user) -> EventOut:
    """Fetch an event the current user owns, or raise the matching error."""
    if current_user is None:
        raise AuthorizationError("Usuário não autenticado", redirect_to="/login")

    event = to_event(get_event(db, event_id))
    if event is None:
        raise NotFoundError("O evento que você está procurando não existe ou foi removido.",
                            back_to="/dashboard")
    if event.user_id != current_user.id:
        raise AuthorizationError("Este evento pertence a outro usuário", redirect_to="/dashboard")
    return event


class GallerySession:
    """Host view of one event: photo list, selection, deletion and export."""

    def __init__(self, context: AppContext, event_id: str):
        self.context = context
        self.event_id = event_id
        self.event: Optional[EventOut] = None
        self.photos: List[PhotoOut] = []
        self.selected: Set[str] = set()
        self.exporting = False
        self.load_error: Optional[PhotoShareError] = None

    @property
    def is_empty(self) -> bool:
        return not self.photos

    @property
    def empty_message(self) -> Optional[str]:
        return EMPTY_GALLERY_MESSAGE if self.is_empty else None

    @property
    def can_export(self) -> bool:
        return not self.exporting and not self.is_empty

    @property
    def all_selected(self) -> bool:
        ids = self._photo_ids()
        return bool(ids) and ids <= self.selected

    async def load(self) -> bool:
        """Fetch event and photos. On failure ``load_error`` says where the view should go."""
        try:
            self.event, self.photos = await run_in_threadpool(self._load)
        except PhotoShareError as e:
            self.load_error = e
            self.context.notifier.error("Erro ao carregar evento", e)
            return False
        self.load_error = None
        self.selected &= {photo.id for photo in self.photos}
        return True

    def _load(self):
        with self.context.db_session() as db:
            event = load_owned_event(db, self.event_id, self.context.current_user)
            photos = to_photos(get_event_photos(db, self.event_id))
            return event, photos

    def _photo_ids(self) -> Set[str]:
        return {photo.id for photo in self.photos}

    def toggle(self, photo_id: str) -> None:
        if photo_id not in self._photo_ids():
            logger.warning(f"Ignoring toggle of unknown photo {photo_id}")
            return
        if photo_id in self.selected:
            self.selected.discard(photo_id)
        else:
            self.selected.add(photo_id)

    def toggle_all(self) -> None:
        ids = self._photo_ids()
        if ids and not ids <= self.selected:
            self.selected = ids
        else:
            self.selected = set()

    async def delete_photo(self, photo_id: str) -> bool:
        photo = next((p for p in self.photos if p.id == photo_id), None)
        if photo is None:
            self.context.notifier.error("Erro ao excluir foto", NotFoundError("Foto não encontrada"))
            return False

        try:
            await run_in_threadpool(self._delete_photo, photo_id)
        except PhotoShareError as e:
            self.context.notifier.error("Erro ao excluir foto", e)
            return False

        self.photos = [p for p in self.photos if p.id != photo_id]
        self.selected.discard(photo_id)
        self.context.notifier.notify("Foto excluída com sucesso")
        return True

    def _delete_photo(self, photo_id: str) -> None:
        with self.context.db_session() as db:
            row = get_photo(db, self.event_id, photo_id)
            if row is None:
                raise NotFoundError("Foto não encontrada")
            delete_photo(db, row)

    async def export(self) -> Optional[ExportArchive]:
        if not self.can_export:
            return None

        self.exporting = True
        try:
            # Snapshot of the list at the time of the request
            targets = select_export_targets(self.photos, self.selected)
            archive = await run_in_threadpool(build_export_archive, self.event.name, targets)
        except PhotoShareError as e:
            self.context.notifier.error("Erro ao exportar fotos", e)
            return None
        finally:
            self.exporting = False

        self.context.notifier.notify(
            "Exportação concluída",
            f"{archive.photo_count} fotos exportadas com sucesso."
        )
        return archive

    async def delete_event(self) -> bool:
        try:
            await run_in_threadpool(self._delete_event)
        except PhotoShareError as e:
            self.context.notifier.error("Erro ao excluir evento", e)
            return False

        self.photos = []
        self.selected = set()
        self.context.notifier.notify("Evento excluído com sucesso")
        return True

    def _delete_event(self) -> None:
        with self.context.db_session() as db:
            load_owned_event(db, self.event_id, self.context.current_user)
            delete_event_cascade(db, get_event(db, self.event_id))
