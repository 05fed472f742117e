"""
Frame Buffer
=============

Latest-frames queue between frame ingestion and the scan loop.

Design Rules:
    - Holds at most `maxsize` frames; a full buffer drops its OLDEST frame
    - Frames come out in arrival order
    - Producers and the single consumer run on the same event loop
"""

import asyncio
import logging
from collections import deque
from typing import Deque, Optional

from cube_scanner.stream.frame import Frame


logger = logging.getLogger(__name__)


class FrameBuffer:
    """
    Drop-oldest frame queue.

    Example:
        buffer = FrameBuffer(maxsize=8)

        # Producer (HTTP handler or stream consumer)
        buffer.put(frame)

        # Consumer (scan loop)
        frame = await buffer.get(timeout=1.0)
    """

    def __init__(self, maxsize: int = 8) -> None:
        if maxsize < 1:
            raise ValueError("maxsize must be >= 1")

        self._frames: Deque[Frame] = deque(maxlen=maxsize)
        self._available = asyncio.Event()
        self._received: int = 0
        self._dropped: int = 0

    @property
    def size(self) -> int:
        return len(self._frames)

    @property
    def dropped_count(self) -> int:
        return self._dropped

    def put(self, frame: Frame) -> bool:
        """
        Append a frame, evicting the oldest one if the buffer is full.

        Returns:
            True if no frame was evicted.
        """
        self._received += 1
        evicted = len(self._frames) == self._frames.maxlen
        if evicted:
            self._dropped += 1
            logger.debug(f"Buffer full, dropped frame {self._frames[0].frame_id}")

        self._frames.append(frame)
        self._available.set()
        return not evicted

    async def get(self, timeout: Optional[float] = None) -> Optional[Frame]:
        """
        Oldest buffered frame, waiting up to `timeout` seconds for one.

        Returns:
            Next frame, or None on timeout.
        """
        while not self._frames:
            self._available.clear()
            try:
                await asyncio.wait_for(self._available.wait(), timeout=timeout)
            except asyncio.TimeoutError:
                return None
        return self._frames.popleft()

    def metrics(self) -> dict:
        return {
            "size": self.size,
            "maxsize": self._frames.maxlen,
            "received": self._received,
            "dropped_count": self._dropped,
        }
