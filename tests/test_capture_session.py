import numpy as np
import pytest
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, sessionmaker

from app.capture.camera import CameraDevice, MediaStream, MediaTrack
from app.capture.frames import capture_still
from app.capture.session import CaptureSession, CaptureState
from app.core.context import AppContext
from app.core.exceptions import DeviceAccessError
from app.db.models.Photo import Photo
from app.db.session import engine, SessionLocal
from conftest import count_photos, create_event


def _frame(seed: int = 0) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(48, 64, 3), dtype=np.uint8)


class FakeStream(MediaStream):
    def __init__(self, frame):
        super().__init__([MediaTrack("video", "fake-camera")])
        self.frame = frame
        self.fail_read = False

    def read_frame(self):
        if self.fail_read:
            raise DeviceAccessError("Camera disconnected")
        return self.frame


class FakeCamera(CameraDevice):
    def __init__(self, frame=None, deny=False):
        self.frame = _frame() if frame is None else frame
        self.deny = deny
        self.streams = []

    def get_user_media(self, facing_mode="environment", audio=False):
        if self.deny:
            raise DeviceAccessError("Permission denied")
        stream = FakeStream(self.frame)
        self.streams.append(stream)
        return stream


class FailingCommitSession(Session):
    def commit(self):
        raise OperationalError("INSERT INTO photos", {}, Exception("database is locked"))


def _all_tracks_stopped(camera: FakeCamera) -> bool:
    return all(not track.is_live for stream in camera.streams for track in stream.get_tracks())


async def test_open_goes_live():
    camera = FakeCamera()
    session = CaptureSession(AppContext(), create_event(), camera)
    assert session.state == CaptureState.IDLE

    assert await session.open() is True
    assert session.state == CaptureState.LIVE
    assert session.is_camera_open
    await session.close()


async def test_denied_camera_returns_to_idle_with_inline_error():
    context = AppContext()
    session = CaptureSession(context, create_event(), FakeCamera(deny=True))

    assert await session.open() is False
    assert session.state == CaptureState.IDLE
    assert context.notifier.last.title == "Erro ao acessar a câmera"
    assert context.notifier.last.variant == "destructive"


async def test_capture_creates_one_photo_with_encoded_frame(storage, clock):
    event_id = create_event()
    camera = FakeCamera(frame=_frame(3))
    context = AppContext()

    async with CaptureSession(context, event_id, camera, quality=0.8) as session:
        await session.open()
        photo = await session.capture()
        assert session.state == CaptureState.LIVE

    assert photo is not None
    assert photo.taken_by == "guest"
    assert photo.storage_path.startswith(f"{event_id}/")
    assert photo.storage_path.endswith(".jpg")
    assert storage.objects[photo.storage_path] == capture_still(_frame(3), 0.8)
    assert count_photos(event_id) == 1
    assert context.notifier.last.title == "Foto capturada com sucesso!"


async def test_consecutive_captures_each_add_one_photo(storage, clock):
    event_id = create_event()
    async with CaptureSession(AppContext(), event_id, FakeCamera()) as session:
        await session.open()
        first = await session.capture()
        second = await session.capture()

    assert first.storage_path != second.storage_path
    assert count_photos(event_id) == 2
    assert len(storage.objects) == 2


async def test_upload_failure_returns_to_live_and_notifies(storage):
    event_id = create_event()
    storage.fail_upload = True
    context = AppContext()
    session = CaptureSession(context, event_id, FakeCamera())
    await session.open()

    assert await session.capture() is None
    assert session.state == CaptureState.LIVE
    assert context.notifier.last.title == "Erro ao salvar foto"
    assert count_photos(event_id) == 0
    await session.close()


async def test_insert_failure_is_reported_and_leaves_orphan(storage):
    event_id = create_event()
    context = AppContext(session_factory=sessionmaker(bind=engine, class_=FailingCommitSession))
    session = CaptureSession(context, event_id, FakeCamera())
    await session.open()

    assert await session.capture() is None
    assert session.state == CaptureState.LIVE
    assert context.notifier.last.variant == "destructive"
    assert len(storage.objects) == 1
    assert count_photos(event_id) == 0
    await session.close()


async def test_capture_when_not_live_is_ignored(storage):
    session = CaptureSession(AppContext(), create_event(), FakeCamera())
    assert await session.capture() is None
    assert storage.objects == {}


async def test_close_stops_every_track():
    camera = FakeCamera()
    session = CaptureSession(AppContext(), create_event(), camera)
    await session.open()
    await session.close()

    assert session.state == CaptureState.IDLE
    assert not session.is_camera_open
    assert _all_tracks_stopped(camera)


async def test_frame_read_failure_releases_camera():
    camera = FakeCamera()
    context = AppContext()
    session = CaptureSession(context, create_event(), camera)
    await session.open()
    camera.streams[0].fail_read = True

    assert await session.capture() is None
    assert session.state == CaptureState.IDLE
    assert _all_tracks_stopped(camera)
    assert context.notifier.last.title == "Erro ao acessar a câmera"


async def test_teardown_releases_camera_even_on_error():
    camera = FakeCamera()
    with pytest.raises(RuntimeError):
        async with CaptureSession(AppContext(), create_event(), camera) as session:
            await session.open()
            raise RuntimeError("view unmounted")

    assert _all_tracks_stopped(camera)


async def test_reopen_after_close_acquires_new_stream():
    camera = FakeCamera()
    session = CaptureSession(AppContext(), create_event(), camera)
    await session.open()
    await session.close()
    await session.open()

    assert len(camera.streams) == 2
    assert not camera.streams[0].active
    assert camera.streams[1].active
    await session.aclose()
    assert _all_tracks_stopped(camera)


def test_photo_record_references_event():
    event_id = create_event()
    with SessionLocal() as db:
        db.add(Photo(event_id="does-not-exist", storage_path="x/1.jpg"))
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()
    assert count_photos(event_id) == 0


def _broken_driver_read():
    raise RuntimeError("OpenCV(4.9.0) error: (-215:Assertion failed) !_src.empty() in function 'cvtColor'")


async def test_unexpected_driver_error_releases_camera(storage):
    camera = FakeCamera()
    context = AppContext()
    session = CaptureSession(context, create_event(), camera)
    await session.open()
    camera.streams[0].read_frame = _broken_driver_read

    assert await session.capture() is None
    assert session.state == CaptureState.IDLE
    assert not session.is_camera_open
    assert _all_tracks_stopped(camera)
    assert context.notifier.last.title == "Erro ao acessar a câmera"
    assert context.notifier.last.variant == "destructive"
    assert storage.objects == {}
