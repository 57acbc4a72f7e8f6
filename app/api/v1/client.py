import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import Response as RawResponse
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.config.settings import settings
from app.core.exceptions import NotFoundError, PhotoShareError, ValidationError
from app.core.rate_limit import limiter
from app.db.queries.photo_queries import get_event, get_event_photos
from app.db.session import get_db
from app.schemas.photo import PhotoOut
from app.schemas.user import Response
from app.services.photo_service import create_photo
from app.services.qr_service import generate_event_qr_png
from app.utils.event_utils import to_event, to_photos, format_event_data, format_photo_data, error_response
from app.utils.validation import validate_event_code, decode_data_url

public_router = APIRouter()
logger = logging.getLogger(__name__)

EVENT_NOT_FOUND = "Evento não encontrado"


def _require_event(db: Session, event_id: str):
    event = to_event(get_event(db, event_id))
    if event is None:
        raise NotFoundError(EVENT_NOT_FOUND, back_to="/")
    return event


@public_router.post("/access-event", response_model=Response)
def access_event(
    event_code: Optional[str] = Form(None),
    db: Session = Depends(get_db)
):
    try:
        # Blank codes are rejected before touching the record store
        code = validate_event_code(event_code)
        event = to_event(get_event(db, code))
        if event is None:
            raise ValidationError(EVENT_NOT_FOUND)
    except PhotoShareError as e:
        return error_response(e, title="Erro ao acessar evento")

    return Response(
        message="Evento encontrado",
        data={"event_id": event.id, "redirect": f"/event/{event.id}"},
        status="success",
        status_code=200
    )

@public_router.get("/public-event", response_model=Response)
def get_public_event(
    event_id: str,
    db: Session = Depends(get_db)
):
    try:
        event = _require_event(db, event_id)
        photos = to_photos(get_event_photos(db, event_id))
    except PhotoShareError as e:
        return error_response(e, title="Erro ao carregar evento")

    event_data = format_event_data(event)
    event_data.pop("user_id")
    return Response(
        message="Event retrieved successfully",
        data={
            "event": event_data,
            "photos": format_photo_data(photos)
        },
        status="success",
        status_code=200
    )

@public_router.get("/event-qr")
def get_event_qr(
    event_id: str,
    db: Session = Depends(get_db)
):
    try:
        event = _require_event(db, event_id)
    except PhotoShareError as e:
        response = error_response(e)
        return RawResponse(content=response.model_dump_json(), status_code=response.status_code,
                           media_type="application/json")

    return RawResponse(content=generate_event_qr_png(event.id), media_type="image/png")

@public_router.post("/capture-photo", response_model=Response)
@limiter.limit(settings.CAPTURE_RATE_LIMIT)
async def capture_photo(
    request: Request,
    event_id: str,
    file: Optional[UploadFile] = File(None),
    image: Optional[str] = Form(None),
    db: Session = Depends(get_db)
):
    """Store one frame captured by the guest camera.

    The frame arrives either as the canvas blob (``file``) or as its data URL (``image``).
    """
    try:
        if file is not None:
            data = await file.read()
            if not data:
                raise ValidationError("Imagem vazia")
        elif image:
            data = decode_data_url(image)
        else:
            raise ValidationError("Nenhuma imagem enviada")

        photo = await run_in_threadpool(create_photo, db, event_id, data)
    except PhotoShareError as e:
        return error_response(e, title="Erro ao salvar foto")

    photo_out = PhotoOut.model_validate(photo)
    return Response(
        message="Foto capturada com sucesso!",
        data={"photo": format_photo_data([photo_out])[0]},
        status="success",
        status_code=201
    )
