"""
Reading Models
==============

Per-frame data passed between pipeline stages.

    ColorSample  - averaged patch color (RGB, with an HSV view)
    FaceReading  - 9 discrete colors in row-major order

Both are immutable and live only for the processing of one frame,
except a FaceReading that is committed to the cube state.
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, Tuple

from cube_scanner.models.colors import (
    CENTER_INDEX,
    STICKERS_PER_FACE,
    DiscreteColor,
)


@dataclass(frozen=True, slots=True)
class HSV:
    """HSV color with hue on the [0, 1) circle."""

    hue: float
    saturation: float
    value: float


@dataclass(frozen=True, slots=True)
class ColorSample:
    """
    Averaged color of one grid cell.

    Attributes:
        red, green, blue: Channel means normalized to [0, 1]
        hsv: The same color in HSV space, computed by the sampler
        pixel_count: Number of in-bounds pixels that were averaged
    """

    red: float
    green: float
    blue: float
    hsv: HSV
    pixel_count: int = 1

    def __repr__(self) -> str:
        return (
            f"ColorSample(rgb=({self.red:.3f}, {self.green:.3f}, {self.blue:.3f}), "
            f"hsv=({self.hsv.hue:.3f}, {self.hsv.saturation:.3f}, {self.hsv.value:.3f}))"
        )


@dataclass(frozen=True, slots=True)
class FaceReading:
    """
    Nine sticker colors of one face, row-major.

    Index 0 is the top-left sticker, index 8 the bottom-right and
    index 4 the center.
    """

    colors: Tuple[DiscreteColor, ...]

    def __post_init__(self) -> None:
        """Validate invariants."""
        if len(self.colors) != STICKERS_PER_FACE:
            raise ValueError(
                f"FaceReading needs {STICKERS_PER_FACE} colors, got {len(self.colors)}"
            )

    @classmethod
    def of(cls, colors: Iterable[DiscreteColor]) -> "FaceReading":
        return cls(tuple(DiscreteColor(c) for c in colors))

    @classmethod
    def placeholder(cls) -> "FaceReading":
        """All-unknown reading used before a face has been scanned."""
        return cls((DiscreteColor.UNKNOWN,) * STICKERS_PER_FACE)

    @property
    def center(self) -> DiscreteColor:
        return self.colors[CENTER_INDEX]

    @property
    def is_complete(self) -> bool:
        """True if no sticker is UNKNOWN."""
        return all(c.is_known for c in self.colors)

    def __getitem__(self, index: int) -> DiscreteColor:
        return self.colors[index]

    def __iter__(self) -> Iterator[DiscreteColor]:
        return iter(self.colors)

    def __len__(self) -> int:
        return len(self.colors)

    def rows(self) -> Tuple[Tuple[DiscreteColor, ...], ...]:
        return tuple(self.colors[i:i + 3] for i in range(0, STICKERS_PER_FACE, 3))

    def to_list(self) -> list:
        """Export as list of color names for logging/serialization."""
        return [c.value for c in self.colors]

    def __repr__(self) -> str:
        return "FaceReading(" + " | ".join(
            " ".join(c.value[0] for c in row) for row in self.rows()
        ) + ")"
