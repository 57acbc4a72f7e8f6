import enum
import logging
from typing import Optional

from starlette.concurrency import run_in_threadpool

from app.capture.camera import CameraDevice, MediaStream
from app.capture.frames import capture_still
from app.config.settings import settings
from app.core.context import AppContext
from app.core.exceptions import DeviceAccessError, PhotoShareError
from app.schemas.photo import PhotoOut
from app.services.photo_service import create_photo, GUEST_CONTRIBUTOR

logger = logging.getLogger(__name__)


class CaptureState(str, enum.Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    LIVE = "live"
    CAPTURING = "capturing"
    UPLOADING = "uploading"


class CaptureSession:
    """Turns a live camera feed into persisted photos for one event.

    Use as ``async with CaptureSession(...) as session`` so the stream is
    released when the view goes away, whatever state it is in.
    """

    def __init__(self, context: AppContext, event_id: str, camera: CameraDevice,
                 quality: Optional[float] = None, taken_by: str = GUEST_CONTRIBUTOR):
        self.context = context
        self.event_id = event_id
        self.camera = camera
        self.quality = settings.CAPTURE_JPEG_QUALITY if quality is None else quality
        self.taken_by = taken_by
        self.state = CaptureState.IDLE
        self.stream: Optional[MediaStream] = None

    @property
    def is_camera_open(self) -> bool:
        return self.stream is not None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    async def open(self) -> bool:
        if self.state != CaptureState.IDLE:
            logger.warning(f"Ignoring open while {self.state.value}")
            return self.is_camera_open

        self.state = CaptureState.REQUESTING
        try:
            stream = await run_in_threadpool(self.camera.get_user_media, "environment", False)
        except DeviceAccessError as e:
            self.state = CaptureState.IDLE
            self.context.notifier.error("Erro ao acessar a câmera", e)
            return False

        self.stream = stream
        self.state = CaptureState.LIVE
        logger.info(f"Camera live for event {self.event_id}")
        return True

    async def capture(self) -> Optional[PhotoOut]:
        """Snapshot the current frame and upload it. Always ends LIVE unless the device failed."""
        if self.state != CaptureState.LIVE:
            logger.warning(f"Ignoring capture while {self.state.value}")
            return None

        self.state = CaptureState.CAPTURING
        try:
            frame = await run_in_threadpool(self.stream.read_frame)
        except DeviceAccessError as e:
            self.context.notifier.error("Erro ao acessar a câmera", e)
            await self.close()
            return None
        except Exception as e:
            # Driver errors (cv2.error and the like) end the session the same way
            logger.exception(f"Camera read failed for event {self.event_id}")
            self.context.notifier.error("Erro ao acessar a câmera", DeviceAccessError(str(e)))
            await self.close()
            return None

        try:
            data = await run_in_threadpool(capture_still, frame, self.quality)
        except (OSError, ValueError) as e:
            logger.error(f"Could not encode frame: {e}")
            self.context.notifier.notify("Erro ao salvar foto", str(e), variant="destructive")
            self.state = CaptureState.LIVE
            return None

        self.state = CaptureState.UPLOADING
        try:
            photo = await run_in_threadpool(self._upload, data)
        except PhotoShareError as e:
            self.context.notifier.error("Erro ao salvar foto", e)
            return None
        finally:
            if self.state == CaptureState.UPLOADING:
                self.state = CaptureState.LIVE

        self.context.notifier.notify(
            "Foto capturada com sucesso!",
            "Sua foto foi adicionada à galeria do evento."
        )
        return photo

    def _upload(self, data: bytes) -> PhotoOut:
        with self.context.db_session() as db:
            photo = create_photo(db, self.event_id, data, taken_by=self.taken_by)
            return PhotoOut.model_validate(photo)

    async def close(self) -> None:
        if self.stream is not None:
            self.stream.stop()
            self.stream = None
        self.state = CaptureState.IDLE

    async def aclose(self) -> None:
        await self.close()
