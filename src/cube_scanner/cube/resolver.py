"""
Face Resolver
=============

Routes a consensus reading to its face slot and commits it if new.

The center sticker (index 4) decides the face. A center without a face
slot (UNKNOWN) discards the reading. A reading identical to what the
face will hold once queued commits are applied is a no-op, which keeps downstream listeners from
seeing redundant notifications.

The resolver never writes the cube state itself; commits go through a
CommitChannel to the state owner.
"""

import logging

from cube_scanner.cube.channel import CommitChannel, FaceCommit
from cube_scanner.cube.state import FaceStore
from cube_scanner.models.colors import FACE_NAMES
from cube_scanner.models.outcomes import FrameOutcome
from cube_scanner.models.reading import FaceReading


logger = logging.getLogger(__name__)


class FaceResolver:
    """
    Consensus reading -> at most one face commit.

    Example:
        resolver = FaceResolver(cube, channel)
        outcome = resolver.resolve(consensus)
    """

    def __init__(self, store: FaceStore, channel: CommitChannel) -> None:
        self._store = store
        self._channel = channel

    def resolve(self, reading: FaceReading) -> FrameOutcome:
        """
        Resolve and commit one consensus reading.

        Returns:
            UNRESOLVABLE_CENTER, REDUNDANT_READING or COMMITTED
        """
        face_index = self._store.face_index_for(reading.center)
        if face_index is None:
            logger.debug(f"No face for center {reading.center.value}, discarding")
            return FrameOutcome.UNRESOLVABLE_CENTER

        # Compare against the newest queued commit, else the stored face
        current = self._channel.latest(face_index)
        if current is None:
            current = self._store.face(face_index)
        if current == reading:
            return FrameOutcome.REDUNDANT_READING

        self._channel.submit(FaceCommit(face_index=face_index, reading=reading))
        logger.info(f"Committing face {FACE_NAMES[face_index]}: {reading!r}")
        return FrameOutcome.COMMITTED
