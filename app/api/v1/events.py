import io
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form
from fastapi.responses import JSONResponse, StreamingResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from pydantic import ValidationError as PydanticValidationError

from app.core.exceptions import AuthorizationError, NotFoundError, PhotoShareError
from app.db.models.Event import Event
from app.db.queries.photo_queries import get_event, get_event_photos, get_events_for_owner, get_photo
from app.db.session import get_db
from app.gallery.session import load_owned_event, EMPTY_GALLERY_MESSAGE
from app.schemas.event import EventCreate
from app.schemas.photo import ExportRequest
from app.schemas.user import CurrentUser, Response
from app.security.auth import get_current_user
from app.services.export_service import build_export_archive, select_export_targets
from app.services.photo_service import delete_photo as delete_photo_record, delete_event_cascade
from app.utils.event_utils import to_event, to_events, to_photos, format_event_data, format_photo_data, \
    error_response

router = APIRouter()
logger = logging.getLogger(__name__)


def _list_events(db: Session, current_user: CurrentUser) -> list:
    return [format_event_data(event) for event in to_events(get_events_for_owner(db, current_user.id))]


@router.get("/events", response_model=Response)
def get_events(
    db: Session = Depends(get_db),
    current_user: Optional[CurrentUser] = Depends(get_current_user)
):
    if current_user is None:
        return error_response(AuthorizationError("Usuário não autenticado", redirect_to="/login"))

    try:
        events_data = _list_events(db, current_user)
    except PhotoShareError as e:
        return error_response(e)

    return Response(
        message="Events retrieved successfully",
        data={
            "total_events": len(events_data),
            "events": events_data
        },
        status="success",
        status_code=200
    )

@router.post("/create-event", response_model=Response)
def create_event(
    name: str = Form(""),
    description: Optional[str] = Form(None),
    is_public: bool = Form(False),
    db: Session = Depends(get_db),
    current_user: Optional[CurrentUser] = Depends(get_current_user)
):
    if current_user is None:
        return error_response(AuthorizationError("Usuário não autenticado", redirect_to="/login"))

    try:
        payload = EventCreate(name=name, description=description, is_public=is_public)
    except PydanticValidationError as e:
        return Response(
            message=e.errors()[0]["msg"].removeprefix("Value error, "),
            status="error",
            status_code=400
        )

    try:
        new_event = Event(
            name=payload.name,
            description=payload.description,
            is_public=payload.is_public,
            user_id=current_user.id
        )
        db.add(new_event)
        db.commit()
        db.refresh(new_event)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error creating event: {e}")
        return Response(
            message="Erro ao criar evento: " + str(e),
            status="error",
            status_code=500
        )

    logger.info(f"Event {new_event.id} created by {current_user.id}")
    return Response(
        message="Evento criado com sucesso!",
        data={"event": format_event_data(to_event(new_event))},
        status="success",
        status_code=201
    )

@router.get("/event-details", response_model=Response)
def get_event_details(
    event_id: str,
    db: Session = Depends(get_db),
    current_user: Optional[CurrentUser] = Depends(get_current_user)
):
    try:
        event = load_owned_event(db, event_id, current_user)
        photos = to_photos(get_event_photos(db, event_id))
    except PhotoShareError as e:
        return error_response(e)

    return Response(
        message="Data retrieved successfully",
        data={
            "event": format_event_data(event),
            "total_photos": len(photos),
            "photos": format_photo_data(photos),
            "can_export": bool(photos),
            "empty_message": None if photos else EMPTY_GALLERY_MESSAGE
        },
        status="success",
        status_code=200
    )

@router.delete("/delete-photo", response_model=Response)
def delete_photo(
    event_id: str,
    photo_id: str,
    db: Session = Depends(get_db),
    current_user: Optional[CurrentUser] = Depends(get_current_user)
):
    try:
        load_owned_event(db, event_id, current_user)
        photo = get_photo(db, event_id, photo_id)
        if not photo:
            raise NotFoundError("Foto não encontrada", back_to=f"/dashboard/event/{event_id}")
        delete_photo_record(db, photo)
    except PhotoShareError as e:
        return error_response(e, title="Erro ao excluir foto")

    return Response(
        message="Foto excluída com sucesso",
        data={"photo_id": photo_id},
        status="success",
        status_code=200
    )

@router.post("/export-photos")
def export_photos(
    event_id: str,
    body: Optional[ExportRequest] = None,
    db: Session = Depends(get_db),
    current_user: Optional[CurrentUser] = Depends(get_current_user)
):
    selected_ids = body.photo_ids if body else []
    try:
        event = load_owned_event(db, event_id, current_user)
        photos = to_photos(get_event_photos(db, event_id))
        if not photos:
            raise NotFoundError(EMPTY_GALLERY_MESSAGE, back_to=f"/dashboard/event/{event_id}")
        targets = select_export_targets(photos, selected_ids)
        archive = build_export_archive(event.name, targets)
    except PhotoShareError as e:
        response = error_response(e, title="Erro ao exportar fotos")
        return JSONResponse(status_code=response.status_code, content=response.model_dump())

    headers = {
        "Content-Disposition": f'attachment; filename="{archive.filename}"',
        "X-Photo-Count": str(archive.photo_count)
    }
    return StreamingResponse(io.BytesIO(archive.content), media_type="application/zip", headers=headers)

@router.delete("/delete-event", response_model=Response)
def delete_event(
    event_id: str,
    db: Session = Depends(get_db),
    current_user: Optional[CurrentUser] = Depends(get_current_user)
):
    try:
        load_owned_event(db, event_id, current_user)
        delete_event_cascade(db, get_event(db, event_id))
        events_data = _list_events(db, current_user)
    except PhotoShareError as e:
        return error_response(e, title="Erro ao excluir evento")

    return Response(
        message="Evento excluído com sucesso",
        status="success",
        status_code=200,
        data={
            "total_events": len(events_data),
            "events": events_data,
            "redirect": "/dashboard"
        }
    )
