"""
Frame Data Model
=================

Internal representation of an encoded frame waiting to be scanned.

Design Rules:
    - Does NOT decode or manipulate image data
    - Decoding into a PixelBuffer happens in image_decoder
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Frame:
    """
    Encoded frame accepted for scanning.

    Attributes:
        frame_id: Monotonically increasing frame counter from source
        timestamp: UNIX timestamp when the frame was captured
        image_b64: Base64-encoded JPEG/PNG frame data (NOT decoded)
    """

    frame_id: int
    timestamp: float
    image_b64: str

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the full image."""
        return (
            f"Frame(frame_id={self.frame_id}, "
            f"timestamp={self.timestamp:.3f})"
        )
