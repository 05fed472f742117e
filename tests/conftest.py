"""
Test Configuration
==================

Pytest fixtures for CubeScanner: synthetic BGRA frames laid out on the
scanner's 3x3 grid, and a wired pipeline with its cube state.
"""

import numpy as np
import pytest

from cube_scanner.models.colors import DiscreteColor


# BGR of an ideal sticker per color
STICKER_BGR = {
    DiscreteColor.WHITE: (255, 255, 255),
    DiscreteColor.YELLOW: (0, 255, 255),
    DiscreteColor.RED: (0, 0, 255),
    DiscreteColor.ORANGE: (0, 128, 255),
    DiscreteColor.BLUE: (255, 0, 0),
    DiscreteColor.GREEN: (0, 255, 0),
}

FRAME_SIZE = 120


def paint_grid(cells, size=FRAME_SIZE):
    """
    Build a (size, size, 4) BGRA frame whose 3x3 grid cells are filled
    with the given BGR colors (row-major).
    """
    bgra = np.zeros((size, size, 4), dtype=np.uint8)
    bgra[..., 3] = 255
    step = size // 4
    origin = size // 2 - step
    for index, bgr in enumerate(cells):
        row, col = divmod(index, 3)
        cx = origin + col * step
        cy = origin + row * step
        y0, y1 = cy - step // 2, cy + step // 2
        x0, x1 = cx - step // 2, cx + step // 2
        bgra[y0:y1, x0:x1, :3] = bgr
    return bgra


@pytest.fixture
def green_face():
    """Known-color face with a green center."""
    return (
        DiscreteColor.WHITE, DiscreteColor.RED, DiscreteColor.BLUE,
        DiscreteColor.ORANGE, DiscreteColor.GREEN, DiscreteColor.YELLOW,
        DiscreteColor.GREEN, DiscreteColor.WHITE, DiscreteColor.RED,
    )


@pytest.fixture
def face_image():
    """Factory: FaceReading colors -> BGRA frame."""
    def make(colors, size=FRAME_SIZE):
        return paint_grid([STICKER_BGR[c] for c in colors], size=size)
    return make


@pytest.fixture
def pixel_buffer():
    """Factory: BGRA array -> PixelBuffer."""
    from cube_scanner.stream.pixel_buffer import PixelBuffer

    return PixelBuffer.from_array


@pytest.fixture
def cube():
    from cube_scanner.cube import CubeFaceSet

    return CubeFaceSet()


@pytest.fixture
def channel(cube):
    from cube_scanner.cube import CommitChannel

    return CommitChannel(cube)


@pytest.fixture
def pipeline(cube, channel):
    from cube_scanner.config import Settings
    from cube_scanner.pipeline import ScanPipeline

    return ScanPipeline.from_settings(Settings(), cube, channel)
