"""
Pixel Buffer
============

Read-only view of one BGRA video frame.

A PixelBuffer describes the frame geometry (width, height, row stride)
and holds the backing memory, laid out as 4 interleaved bytes per pixel
in blue, green, red, alpha order. Rows may be padded: the row stride in
bytes can exceed width * 4.

Design Rules:
    - Memory is only read while the buffer is locked
    - `locked()` is the only way to lock; it always unlocks on exit
    - The pipeline never keeps a reference past one frame
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional, Union

import numpy as np


logger = logging.getLogger(__name__)

BYTES_PER_PIXEL = 4

BufferLike = Union[bytes, bytearray, memoryview]


class PixelBuffer:
    """
    Lockable BGRA frame buffer.

    Attributes:
        width: Frame width in pixels
        height: Frame height in pixels
        bytes_per_row: Row stride in bytes
        lock_count: Number of completed lock/unlock cycles

    Example:
        buffer = PixelBuffer.from_array(bgra)

        with buffer.locked():
            pixels = buffer.pixels()
    """

    def __init__(
        self,
        width: int,
        height: int,
        bytes_per_row: int,
        data: Optional[BufferLike],
    ) -> None:
        """
        Initialize pixel buffer.

        Args:
            width: Frame width in pixels
            height: Frame height in pixels
            bytes_per_row: Row stride in bytes (>= width * 4)
            data: Backing memory, or None if the frame has none
        """
        if width < 0 or height < 0:
            raise ValueError("width and height must be non-negative")
        if bytes_per_row < width * BYTES_PER_PIXEL:
            raise ValueError(
                f"bytes_per_row ({bytes_per_row}) must be >= width * 4 ({width * BYTES_PER_PIXEL})"
            )

        self.width = width
        self.height = height
        self.bytes_per_row = bytes_per_row
        self._data = data
        self._locked = False
        self.lock_count: int = 0

    @classmethod
    def from_array(cls, bgra: np.ndarray) -> "PixelBuffer":
        """
        Wrap an (H, W, 4) uint8 BGRA array.

        The array is copied into contiguous memory so the buffer owns
        its bytes.
        """
        if bgra.ndim != 3 or bgra.shape[2] != BYTES_PER_PIXEL or bgra.dtype != np.uint8:
            raise ValueError(f"Expected (H, W, 4) uint8 array, got {bgra.shape} {bgra.dtype}")

        height, width = bgra.shape[:2]
        data = np.ascontiguousarray(bgra).tobytes()
        return cls(width, height, width * BYTES_PER_PIXEL, data)

    @property
    def is_locked(self) -> bool:
        return self._locked

    @property
    def has_memory(self) -> bool:
        """True if backing memory exists and covers every row."""
        if self._data is None:
            return False
        return len(self._data) >= self._required_bytes()

    def _required_bytes(self) -> int:
        if self.width == 0 or self.height == 0:
            return 0
        return self.bytes_per_row * (self.height - 1) + self.width * BYTES_PER_PIXEL

    @contextmanager
    def locked(self) -> Iterator["PixelBuffer"]:
        """
        Hold the read lock for the duration of the block.

        The lock is released on every exit path, including exceptions.
        """
        if self._locked:
            raise RuntimeError("PixelBuffer is already locked")

        self._locked = True
        try:
            yield self
        finally:
            self._locked = False
            self.lock_count += 1

    def pixels(self) -> Optional[np.ndarray]:
        """
        Strided (H, W, 4) view of the frame, channels in B, G, R, A order.

        Returns:
            Read-only array view, or None if there is no accessible memory.

        Raises:
            RuntimeError: If called while the buffer is not locked
        """
        if not self._locked:
            raise RuntimeError("PixelBuffer must be locked before reading pixels")
        if not self.has_memory:
            return None

        if self.width == 0 or self.height == 0:
            return np.zeros((self.height, self.width, BYTES_PER_PIXEL), dtype=np.uint8)

        view = np.ndarray(
            shape=(self.height, self.width, BYTES_PER_PIXEL),
            dtype=np.uint8,
            buffer=self._data,
            strides=(self.bytes_per_row, BYTES_PER_PIXEL, 1),
        )
        view.flags.writeable = False
        return view

    def __repr__(self) -> str:
        return (
            f"PixelBuffer(width={self.width}, height={self.height}, "
            f"bytes_per_row={self.bytes_per_row}, "
            f"memory={'yes' if self._data is not None else 'no'})"
        )
