"""
Data Models
===========

Types passed through the scanning pipeline.

Models:
    Colors:
        - DiscreteColor: Sticker color labels (plus UNKNOWN)
        - face_index_for: Center color -> face slot table

    Readings:
        - ColorSample / HSV: Averaged patch colors
        - FaceReading: 9 sticker colors, row-major

    Outcomes:
        - FrameOutcome: Result of processing one frame

    Messages:
        - FrameMessage: Incoming encoded frame
        - CubeSnapshot / FaceView: Serialized cube state
"""

from cube_scanner.models.colors import (
    CENTER_INDEX,
    DISPLAY_COLORS,
    FACE_COUNT,
    FACE_NAMES,
    STICKERS_PER_FACE,
    DiscreteColor,
    face_index_for,
)
from cube_scanner.models.reading import HSV, ColorSample, FaceReading
from cube_scanner.models.outcomes import FrameOutcome
from cube_scanner.models.input import FrameMessage
from cube_scanner.models.output import CubeSnapshot, FaceView

__all__ = [
    # Colors
    "DiscreteColor",
    "face_index_for",
    "FACE_COUNT",
    "FACE_NAMES",
    "STICKERS_PER_FACE",
    "CENTER_INDEX",
    "DISPLAY_COLORS",
    # Readings
    "HSV",
    "ColorSample",
    "FaceReading",
    # Outcomes
    "FrameOutcome",
    # Messages
    "FrameMessage",
    "CubeSnapshot",
    "FaceView",
]
