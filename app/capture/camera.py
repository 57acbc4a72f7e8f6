"""Camera device abstraction used by the capture flow.

A device hands out a ``MediaStream`` made of ``MediaTrack`` objects. The
stream owns the hardware handle until every one of its tracks is stopped.
Frames are returned as RGB ``numpy`` arrays of shape ``(height, width, 3)``.
"""
import logging
from typing import List

import numpy as np

logger = logging.getLogger(__name__)


class MediaTrack:
    def __init__(self, kind: str = "video", label: str = ""):
        self.kind = kind
        self.label = label
        self.ready_state = "live"

    @property
    def is_live(self) -> bool:
        return self.ready_state == "live"

    def stop(self) -> None:
        if self.ready_state != "ended":
            self.ready_state = "ended"
            self._release()

    def _release(self) -> None:
        """Hook for subclasses holding a real device handle."""


class MediaStream:
    def __init__(self, tracks: List[MediaTrack]):
        self._tracks = list(tracks)

    def get_tracks(self) -> List[MediaTrack]:
        return list(self._tracks)

    @property
    def active(self) -> bool:
        return any(track.is_live for track in self._tracks)

    def stop(self) -> None:
        for track in self._tracks:
            track.stop()
        logger.info(f"Released media stream ({len(self._tracks)} track(s))")

    def read_frame(self) -> np.ndarray:
        raise NotImplementedError


class CameraDevice:
    """Grants a stream, or raises ``DeviceAccessError`` when denied or unavailable."""

    def get_user_media(self, facing_mode: str = "environment", audio: bool = False) -> MediaStream:
        raise NotImplementedError
