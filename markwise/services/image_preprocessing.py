"""
Contrast enhancement for photographed handwriting.

Averages each pixel's RGB channels to one grey value, then pushes it away
from mid-grey: dark values get darker and light values get lighter by a
fixed offset. Helps the OCR model with faint pencil and poor lighting.
"""
import io
import logging

import numpy as np
from PIL import Image, UnidentifiedImageError

from markwise.config import PREPROCESS_OFFSET, PREPROCESS_JPEG_QUALITY

logger = logging.getLogger(__name__)


def enhance_pixels(rgb: np.ndarray, offset: int = PREPROCESS_OFFSET) -> np.ndarray:
    """Apply the grayscale + contrast transform to an (H, W, 3) uint8 array."""
    avg = rgb.astype(np.float32).mean(axis=2)
    value = np.where(
        avg < 128,
        np.maximum(0.0, avg - offset),
        np.minimum(255.0, avg + offset),
    )
    grey = np.rint(value).astype(np.uint8)
    return np.stack([grey, grey, grey], axis=2)


def enhance_for_ocr(image_bytes: bytes, offset: int = PREPROCESS_OFFSET,
                    quality: int = PREPROCESS_JPEG_QUALITY) -> bytes:
    """
    Return a JPEG of the contrast-enhanced image.

    If the bytes cannot be decoded as an image, they are returned unchanged.
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            rgb = np.asarray(img.convert("RGB"))
    except (UnidentifiedImageError, OSError) as e:
        logger.warning("Could not preprocess image, uploading original: %s", e)
        return image_bytes

    enhanced = Image.fromarray(enhance_pixels(rgb, offset))
    out = io.BytesIO()
    enhanced.save(out, format="JPEG", quality=quality)
    return out.getvalue()
