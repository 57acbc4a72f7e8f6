import io

import numpy as np
from PIL import Image


def snapshot_frame(frame: np.ndarray) -> Image.Image:
    """Copy a preview frame into an offscreen RGB raster."""
    if frame.ndim != 3 or frame.shape[2] not in (3, 4):
        raise ValueError(f"Unexpected frame shape {frame.shape}")
    raster = np.ascontiguousarray(frame[:, :, :3], dtype=np.uint8).copy()
    return Image.fromarray(raster)


def encode_jpeg(image: Image.Image, quality: float = 0.8) -> bytes:
    """Encode with a 0..1 quality factor, as canvas.toBlob takes it."""
    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=int(round(quality * 100)))
    return buffer.getvalue()


def capture_still(frame: np.ndarray, quality: float = 0.8) -> bytes:
    return encode_jpeg(snapshot_frame(frame), quality)
