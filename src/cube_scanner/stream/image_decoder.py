"""
Image Decoder
=============

Decodes base64 JPEG/PNG frames into BGRA PixelBuffers.

Design Rules:
    - This is the ONLY place in the codebase that decodes images
    - Validates shape and dtype
    - Fails fast on corrupt frames
"""

import base64
import binascii
import logging

import cv2
import numpy as np

from cube_scanner.stream.frame import Frame
from cube_scanner.stream.pixel_buffer import PixelBuffer


logger = logging.getLogger(__name__)


class ImageDecodeError(Exception):
    """Raised when image decoding fails."""
    pass


def decode_frame_bgra(frame: Frame) -> PixelBuffer:
    """
    Decode a base64 image frame into a BGRA PixelBuffer.

    Args:
        frame: Frame with base64-encoded JPEG/PNG image

    Returns:
        PixelBuffer over a (H, W, 4) uint8 BGRA copy of the image

    Raises:
        ImageDecodeError: If decoding fails or image is invalid
    """
    try:
        image_bytes = base64.b64decode(frame.image_b64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageDecodeError(
            f"Base64 decode failed for frame {frame.frame_id}: {e}"
        ) from e

    nparr = np.frombuffer(image_bytes, np.uint8)
    if nparr.size == 0:
        raise ImageDecodeError(f"Empty image payload for frame {frame.frame_id}")

    bgr = cv2.imdecode(nparr, cv2.IMREAD_COLOR)
    if bgr is None:
        raise ImageDecodeError(
            f"Failed to decode frame {frame.frame_id}: cv2.imdecode returned None"
        )

    if bgr.ndim != 3 or bgr.shape[2] != 3:
        raise ImageDecodeError(
            f"Invalid image shape for frame {frame.frame_id}: {bgr.shape}"
        )
    if bgr.dtype != np.uint8:
        raise ImageDecodeError(
            f"Invalid dtype for frame {frame.frame_id}: {bgr.dtype}"
        )

    bgra = cv2.cvtColor(bgr, cv2.COLOR_BGR2BGRA)
    return PixelBuffer.from_array(bgra)


def encode_bgr_frame(bgr: np.ndarray, frame_id: int, timestamp: float) -> Frame:
    """
    Encode a BGR image as a lossless PNG Frame.

    Used by test harnesses and replay tools to feed synthetic images
    through the same path as camera frames.
    """
    ok, encoded = cv2.imencode(".png", bgr)
    if not ok:
        raise ImageDecodeError(f"Failed to encode frame {frame_id}")
    return Frame(
        frame_id=frame_id,
        timestamp=timestamp,
        image_b64=base64.b64encode(encoded.tobytes()).decode("ascii"),
    )
