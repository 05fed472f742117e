"""
Commit Channel
==============

Ordered hand-off of face commits from the capture context to the
single owner of the cube state.

The capture side calls `submit`, which never blocks. The owner side
applies pending commits in submission order with `drain`. When the
channel is bound to an asyncio event loop, every submit schedules a
drain on that loop, so the loop thread is the owner.

Design Rules:
    - FIFO: a later commit is never applied before an earlier one
    - The owner re-checks redundancy, so a reading submitted twice
      before the first is applied changes state once
    - `latest` reports the newest reading submitted for a face until it
      has been applied, so redundancy checks see queued commits too
    - A commit the store rejects is logged and skipped; the rest of the
      queue is still applied
"""

import asyncio
import logging
import queue
import threading
from dataclasses import dataclass
from typing import Dict, Optional

from cube_scanner.cube.state import FaceStore
from cube_scanner.models.reading import FaceReading


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FaceCommit:
    """A reading destined for one face slot."""

    face_index: int
    reading: FaceReading


class CommitChannel:
    """
    Thread-safe FIFO from the capture context to the state owner.

    Example:
        channel = CommitChannel(cube, loop=asyncio.get_running_loop())

        # capture thread
        channel.submit(FaceCommit(2, reading))

        # without a loop, the owner drains explicitly
        channel.drain()
    """

    def __init__(
        self,
        store: FaceStore,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        """
        Initialize commit channel.

        Args:
            store: Face state the commits are applied to
            loop: Owner event loop; None means the owner calls drain()
        """
        self._store = store
        self._loop = loop
        self._pending: "queue.SimpleQueue[FaceCommit]" = queue.SimpleQueue()
        self._latest: Dict[int, FaceReading] = {}
        self._latest_lock = threading.Lock()
        self._submitted: int = 0
        self._applied: int = 0
        self._redundant: int = 0
        self._failed: int = 0

    def bind(self, loop: Optional[asyncio.AbstractEventLoop]) -> None:
        self._loop = loop

    @property
    def pending(self) -> int:
        return self._pending.qsize()

    def latest(self, face_index: int) -> Optional[FaceReading]:
        """Newest reading submitted for a face and not yet applied, if any."""
        with self._latest_lock:
            return self._latest.get(face_index)

    def submit(self, commit: FaceCommit) -> None:
        """Queue a commit for the owner. Never blocks."""
        with self._latest_lock:
            self._latest[commit.face_index] = commit.reading
        self._pending.put(commit)
        self._submitted += 1
        if self._loop is not None:
            self._loop.call_soon_threadsafe(self.drain)

    def drain(self) -> int:
        """
        Apply all pending commits in order. Owner context only.

        Returns:
            Number of commits that changed state.
        """
        changed = 0
        while True:
            try:
                commit = self._pending.get_nowait()
            except queue.Empty:
                break

            try:
                if self._store.update(commit.face_index, commit.reading):
                    changed += 1
                    self._applied += 1
                else:
                    self._redundant += 1
                    logger.debug(f"Dropped redundant commit for face {commit.face_index}")
            except Exception as e:
                self._failed += 1
                logger.exception(f"Commit for face {commit.face_index} failed: {e}")
            finally:
                self._settle(commit)
        return changed

    def _settle(self, commit: FaceCommit) -> None:
        # A newer submit for the same face keeps its entry
        with self._latest_lock:
            if self._latest.get(commit.face_index) is commit.reading:
                del self._latest[commit.face_index]

    def get_metrics(self) -> dict:
        return {
            "submitted": self._submitted,
            "applied": self._applied,
            "redundant": self._redundant,
            "failed": self._failed,
            "pending": self.pending,
        }
