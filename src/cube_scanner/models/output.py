"""
Cube Output Models
==================

Serializable view of the assembled cube state, returned by `GET /cube`
and pushed over `WS /ws/cube`.

Output Contract:
    {
        "revision": 3,
        "complete": false,
        "faces": [
            {
                "index": 0,
                "name": "U",
                "scanned": true,
                "stickers": ["WHITE", ...],
                "display": ["#ffffff", ...]
            },
            ...
        ]
    }
"""

from typing import List

from pydantic import BaseModel, Field

from cube_scanner.models.colors import DISPLAY_COLORS, FACE_NAMES
from cube_scanner.models.reading import FaceReading


class FaceView(BaseModel):
    """One face of the cube as seen by clients."""

    index: int = Field(..., ge=0, le=5, description="Face slot")
    name: str = Field(..., description="Face name (U, R, F, D, L, B)")
    scanned: bool = Field(..., description="True once every sticker is known")
    stickers: List[str] = Field(..., min_length=9, max_length=9)
    display: List[str] = Field(..., min_length=9, max_length=9, description="Hex RGB per sticker")

    @classmethod
    def from_reading(cls, index: int, reading: FaceReading) -> "FaceView":
        return cls(
            index=index,
            name=FACE_NAMES[index],
            scanned=reading.is_complete,
            stickers=reading.to_list(),
            display=[DISPLAY_COLORS[c] for c in reading],
        )


class CubeSnapshot(BaseModel):
    """
    Complete cube state at a given revision.

    Attributes:
        revision: Number of state changes applied so far
        complete: True once all six faces are scanned
        faces: Six faces in slot order
    """

    revision: int = Field(..., ge=0)
    complete: bool
    faces: List[FaceView] = Field(..., min_length=6, max_length=6)
