"""
Frame Sampler
=============

Extracts 9 averaged color patches from a BGRA pixel buffer.

Grid Geometry:
    The 3x3 grid is centered in the frame with a fixed step:

        step_x = width // 4         step_y = height // 4
        origin = (width // 2 - step_x, height // 2 - step_y)
        cell(row, col) = origin + (col * step_x, row * step_y)

    Each cell is sampled as a square patch of half-width
    max(2, min(step_x, step_y) // 6) around its center, clipped to
    the frame. Averaging a patch instead of reading one pixel removes
    most sensor and compression noise.

Output:
    Nine ColorSamples in row-major order (row 0 first, column 0 first
    within a row), matching the FaceReading layout.

Design Rules:
    - Only reads the buffer; the caller holds the lock
    - Sums are integer; normalization happens once per patch
    - HSV for all nine means is computed in one OpenCV call
"""

import logging
from dataclasses import dataclass
from typing import List, Tuple

import cv2
import numpy as np

from cube_scanner.models.colors import STICKERS_PER_FACE
from cube_scanner.models.reading import HSV, ColorSample
from cube_scanner.stream.pixel_buffer import PixelBuffer


logger = logging.getLogger(__name__)

GRID_SIZE = 3


class SampleError(Exception):
    """Base class for frames that cannot be sampled."""
    pass


class BufferUnavailableError(SampleError):
    """Raised when the pixel buffer has no accessible memory."""
    pass


class IncompleteSampleError(SampleError):
    """Raised when fewer than 9 patches contain an in-bounds pixel."""

    def __init__(self, valid_patches: int) -> None:
        super().__init__(
            f"Only {valid_patches} of {STICKERS_PER_FACE} patches had in-bounds pixels"
        )
        self.valid_patches = valid_patches


@dataclass(frozen=True, slots=True)
class GridGeometry:
    """
    Sampling grid derived from frame dimensions.

    Attributes:
        step_x: Horizontal distance between cell centers
        step_y: Vertical distance between cell centers
        origin_x: X of the top-left cell center
        origin_y: Y of the top-left cell center
        half_width: Patch half-width in pixels
    """

    step_x: int
    step_y: int
    origin_x: int
    origin_y: int
    half_width: int

    @classmethod
    def for_frame(
        cls,
        width: int,
        height: int,
        grid_divisions: int = 4,
        min_half_width: int = 2,
        patch_divisor: int = 6,
    ) -> "GridGeometry":
        step_x = width // grid_divisions
        step_y = height // grid_divisions
        return cls(
            step_x=step_x,
            step_y=step_y,
            origin_x=width // 2 - step_x,
            origin_y=height // 2 - step_y,
            half_width=max(min_half_width, min(step_x, step_y) // patch_divisor),
        )

    def cell_centers(self) -> List[Tuple[int, int]]:
        """(x, y) of every cell center, row-major."""
        return [
            (self.origin_x + col * self.step_x, self.origin_y + row * self.step_y)
            for row in range(GRID_SIZE)
            for col in range(GRID_SIZE)
        ]

    def patch_bounds(
        self, center: Tuple[int, int], width: int, height: int
    ) -> Tuple[int, int, int, int]:
        """
        Clipped patch rectangle as half-open (x0, x1, y0, y1).

        The rectangle is empty (x0 >= x1 or y0 >= y1) if the patch lies
        entirely outside the frame.
        """
        cx, cy = center
        x0 = max(0, cx - self.half_width)
        x1 = min(width, cx + self.half_width + 1)
        y0 = max(0, cy - self.half_width)
        y1 = min(height, cy + self.half_width + 1)
        return x0, x1, y0, y1


def bgr_means_to_hsv(bgr: np.ndarray) -> np.ndarray:
    """
    Convert normalized BGR means to HSV with hue on the [0, 1) circle.

    Args:
        bgr: (N, 3) float array, channels in [0, 1]

    Returns:
        (N, 3) float array of (hue, saturation, value)
    """
    row = np.ascontiguousarray(bgr, dtype=np.float32).reshape(1, -1, 3)
    hsv = cv2.cvtColor(row, cv2.COLOR_BGR2HSV).reshape(-1, 3).astype(np.float64)
    # Float HSV from OpenCV has hue in degrees
    hsv[:, 0] = (hsv[:, 0] / 360.0) % 1.0
    return hsv


class FrameSampler:
    """
    Samples the fixed 3x3 sticker grid from a pixel buffer.

    Example:
        sampler = FrameSampler()

        with buffer.locked():
            samples = sampler.sample(buffer)
    """

    def __init__(
        self,
        grid_divisions: int = 4,
        min_patch_half_width: int = 2,
        patch_divisor: int = 6,
    ) -> None:
        """
        Initialize frame sampler.

        Args:
            grid_divisions: Frame dimension divisor giving the cell step
            min_patch_half_width: Lower bound for patch half-width
            patch_divisor: half-width = min(step_x, step_y) // patch_divisor
        """
        if grid_divisions < 2:
            raise ValueError("grid_divisions must be >= 2")
        if patch_divisor < 1:
            raise ValueError("patch_divisor must be >= 1")
        if min_patch_half_width < 0:
            raise ValueError("min_patch_half_width must be non-negative")

        self.grid_divisions = grid_divisions
        self.min_patch_half_width = min_patch_half_width
        self.patch_divisor = patch_divisor

        logger.info(
            f"FrameSampler initialized: grid_divisions={grid_divisions}, "
            f"min_half_width={min_patch_half_width}, patch_divisor={patch_divisor}"
        )

    def geometry(self, width: int, height: int) -> GridGeometry:
        return GridGeometry.for_frame(
            width,
            height,
            grid_divisions=self.grid_divisions,
            min_half_width=self.min_patch_half_width,
            patch_divisor=self.patch_divisor,
        )

    def sample(self, buffer: PixelBuffer) -> List[ColorSample]:
        """
        Average the 9 grid patches of a locked buffer.

        Args:
            buffer: Locked pixel buffer

        Returns:
            Exactly 9 ColorSamples, row-major

        Raises:
            BufferUnavailableError: If the buffer has no accessible memory
            IncompleteSampleError: If any patch has no in-bounds pixel
        """
        pixels = buffer.pixels()
        if pixels is None:
            raise BufferUnavailableError(f"No accessible memory in {buffer!r}")

        width, height = buffer.width, buffer.height
        geometry = self.geometry(width, height)

        means: List[np.ndarray] = []
        counts: List[int] = []

        for center in geometry.cell_centers():
            x0, x1, y0, y1 = geometry.patch_bounds(center, width, height)
            if x0 >= x1 or y0 >= y1:
                continue

            patch = pixels[y0:y1, x0:x1, :3]
            count = (x1 - x0) * (y1 - y0)
            totals = patch.sum(axis=(0, 1), dtype=np.uint64)
            means.append(totals.astype(np.float64) / (count * 255.0))
            counts.append(count)

        if len(means) < STICKERS_PER_FACE:
            raise IncompleteSampleError(len(means))

        bgr = np.stack(means)
        hsv = bgr_means_to_hsv(bgr)

        return [
            ColorSample(
                red=float(mean[2]),
                green=float(mean[1]),
                blue=float(mean[0]),
                hsv=HSV(hue=float(h[0]), saturation=float(h[1]), value=float(h[2])),
                pixel_count=count,
            )
            for mean, h, count in zip(bgr, hsv, counts)
        ]
