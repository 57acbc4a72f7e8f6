import logging

import cv2
import numpy as np

from app.capture.camera import CameraDevice, MediaStream, MediaTrack
from app.core.exceptions import DeviceAccessError

logger = logging.getLogger(__name__)


class VideoCaptureTrack(MediaTrack):
    def __init__(self, capture: "cv2.VideoCapture", label: str):
        super().__init__(kind="video", label=label)
        self._capture = capture

    def _release(self) -> None:
        self._capture.release()

    def read(self) -> np.ndarray:
        if not self.is_live:
            raise DeviceAccessError("A câmera já foi fechada")
        ok, frame = self._capture.read()
        if not ok or frame is None:
            raise DeviceAccessError("Não foi possível ler a imagem da câmera")
        return cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)


class VideoCaptureStream(MediaStream):
    def __init__(self, track: VideoCaptureTrack):
        super().__init__([track])
        self._track = track

    def read_frame(self) -> np.ndarray:
        return self._track.read()


class OpenCVCamera(CameraDevice):
    """Local camera through ``cv2.VideoCapture``.

    ``facing_mode`` has no meaning for a local device index and is only
    recorded in the track label.
    """

    def __init__(self, device_index: int = 0, width: int = None, height: int = None):
        self.device_index = device_index
        self.width = width
        self.height = height

    def get_user_media(self, facing_mode: str = "environment", audio: bool = False) -> MediaStream:
        capture = cv2.VideoCapture(self.device_index)
        if not capture.isOpened():
            capture.release()
            raise DeviceAccessError(f"Câmera {self.device_index} indisponível")

        if self.width:
            capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        if self.height:
            capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)

        logger.info(f"Opened camera {self.device_index} ({facing_mode})")
        return VideoCaptureStream(VideoCaptureTrack(capture, label=f"camera:{self.device_index}:{facing_mode}"))
