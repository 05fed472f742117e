"""
Color Models
============

Discrete sticker colors and the fixed face layout of the cube.

A face is identified by the color of its center sticker once scanned.
The mapping from center color to face slot is a total table: every
DiscreteColor has an entry, and colors without a face map to None.

Face Layout:
    0 = U (White)    3 = D (Yellow)
    1 = R (Red)      4 = L (Orange)
    2 = F (Green)    5 = B (Blue)
"""

from enum import Enum
from typing import Dict, Optional, Tuple


class DiscreteColor(str, Enum):
    """
    Discrete sticker colors.

    UNKNOWN is a valid classification outcome (too dark, or too far from
    every palette entry) but is never committed as a sticker color.
    """

    WHITE = "WHITE"
    YELLOW = "YELLOW"
    RED = "RED"
    ORANGE = "ORANGE"
    BLUE = "BLUE"
    GREEN = "GREEN"
    UNKNOWN = "UNKNOWN"

    @property
    def is_known(self) -> bool:
        return self is not DiscreteColor.UNKNOWN


FACE_COUNT = 6
STICKERS_PER_FACE = 9
CENTER_INDEX = 4

FACE_NAMES: Tuple[str, ...] = ("U", "R", "F", "D", "L", "B")

FACE_SLOTS: Dict[DiscreteColor, Optional[int]] = {
    DiscreteColor.WHITE: 0,
    DiscreteColor.RED: 1,
    DiscreteColor.GREEN: 2,
    DiscreteColor.YELLOW: 3,
    DiscreteColor.ORANGE: 4,
    DiscreteColor.BLUE: 5,
    DiscreteColor.UNKNOWN: None,
}

# Hex RGB used when rendering a face; UNKNOWN renders as neutral gray
DISPLAY_COLORS: Dict[DiscreteColor, str] = {
    DiscreteColor.WHITE: "#ffffff",
    DiscreteColor.YELLOW: "#ffff00",
    DiscreteColor.RED: "#ff0000",
    DiscreteColor.ORANGE: "#ff8000",
    DiscreteColor.BLUE: "#0000ff",
    DiscreteColor.GREEN: "#00ff00",
    DiscreteColor.UNKNOWN: "#808080",
}


def face_index_for(center: DiscreteColor) -> Optional[int]:
    """
    Resolve a center sticker color to its face slot.

    Returns:
        Face index in [0, 6), or None if the color has no face.
    """
    return FACE_SLOTS[center]
