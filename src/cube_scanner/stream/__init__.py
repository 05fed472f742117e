"""
Stream Module
=============

Frame ingestion components.

    - PixelBuffer: Lockable BGRA frame view consumed by the sampler
    - Frame: Encoded frame awaiting decode
    - FrameBuffer: Drop-oldest asyncio queue
    - FrameConsumer: WebSocket client feeding the buffer
    - decode_frame_bgra: base64 JPEG/PNG -> PixelBuffer
"""

from cube_scanner.stream.pixel_buffer import PixelBuffer
from cube_scanner.stream.frame import Frame
from cube_scanner.stream.buffer import FrameBuffer
from cube_scanner.stream.consumer import FrameConsumer, FrameConsumerMetrics
from cube_scanner.stream.image_decoder import (
    ImageDecodeError,
    decode_frame_bgra,
    encode_bgr_frame,
)


__all__ = [
    "PixelBuffer",
    "Frame",
    "FrameBuffer",
    "FrameConsumer",
    "FrameConsumerMetrics",
    "ImageDecodeError",
    "decode_frame_bgra",
    "encode_bgr_frame",
]
