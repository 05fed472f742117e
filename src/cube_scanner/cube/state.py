"""
Cube State
==========

The assembled 6-face cube, owned by a single context.

CubeFaceSet holds one FaceReading per face slot, initialized to an
all-UNKNOWN placeholder. It is mutated only through `update`, which must
run on the owner thread (the thread that created the set, or the one
bound with `bind_owner`). Lookups (`face`, `face_index_for`, `faces`)
may be called from any thread.

Design Rules:
    - Exactly 6 faces of exactly 9 stickers at all times
    - `update` is idempotent: an identical reading changes nothing
    - Subscribers are notified only on real changes
"""

import logging
import threading
from typing import Callable, List, Optional, Protocol, Sequence, Tuple, Union

from cube_scanner.models.colors import (
    FACE_COUNT,
    FACE_NAMES,
    DiscreteColor,
    face_index_for,
)
from cube_scanner.models.output import CubeSnapshot, FaceView
from cube_scanner.models.reading import FaceReading


logger = logging.getLogger(__name__)

FaceListener = Callable[[int, FaceReading], None]


class FaceStore(Protocol):
    """
    Protocol for the shared face state the resolver commits into.

    Implemented by CubeFaceSet; hosts may provide their own.
    """

    def face_index_for(self, center: DiscreteColor) -> Optional[int]:
        """Pure lookup of the face slot for a center color."""
        ...

    def face(self, index: int) -> FaceReading:
        """Currently stored reading for a face slot."""
        ...

    def update(self, face_index: int, reading: FaceReading) -> bool:
        """Store a reading; owner context only. Returns True if changed."""
        ...


class CubeFaceSet:
    """
    Six committed face readings plus change notification.

    Attributes:
        revision: Number of state changes applied
    """

    def __init__(self) -> None:
        self._faces: List[FaceReading] = [FaceReading.placeholder()] * FACE_COUNT
        self._listeners: List[FaceListener] = []
        self._owner: int = threading.get_ident()
        self.revision: int = 0

    def bind_owner(self) -> None:
        """Make the calling thread the only one allowed to update."""
        self._owner = threading.get_ident()

    @staticmethod
    def face_index_for(center: DiscreteColor) -> Optional[int]:
        return face_index_for(center)

    def face(self, index: int) -> FaceReading:
        return self._faces[index]

    @property
    def faces(self) -> Tuple[FaceReading, ...]:
        return tuple(self._faces)

    @property
    def is_complete(self) -> bool:
        """True once every face has been scanned."""
        return all(face.is_complete for face in self._faces)

    def update(
        self,
        face_index: int,
        reading: Union[FaceReading, Sequence[DiscreteColor]],
    ) -> bool:
        """
        Replace the stored reading of one face.

        Args:
            face_index: Face slot in [0, 6)
            reading: 9 known sticker colors

        Returns:
            True if the state changed, False if the reading was identical

        Raises:
            ValueError: On a bad face index or an invalid reading
            RuntimeError: If called off the owner thread
        """
        if threading.get_ident() != self._owner:
            raise RuntimeError("CubeFaceSet.update must run on the owner thread")
        if not 0 <= face_index < FACE_COUNT:
            raise ValueError(f"face_index must be in [0, {FACE_COUNT}), got {face_index}")

        if not isinstance(reading, FaceReading):
            reading = FaceReading.of(reading)
        if not reading.is_complete:
            raise ValueError("Cannot commit a reading with UNKNOWN stickers")

        if self._faces[face_index] == reading:
            return False

        self._faces[face_index] = reading
        self.revision += 1
        logger.info(f"Face {FACE_NAMES[face_index]} updated: {reading!r}")

        for listener in list(self._listeners):
            listener(face_index, reading)
        return True

    @property
    def subscriber_count(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: FaceListener) -> Callable[[], None]:
        """
        Register a change listener, called on the owner thread.

        Returns:
            Function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def reset(self) -> None:
        """Return every face to the placeholder."""
        self._faces = [FaceReading.placeholder()] * FACE_COUNT
        self.revision += 1
        logger.info("Cube state reset")

    def snapshot(self) -> CubeSnapshot:
        return CubeSnapshot(
            revision=self.revision,
            complete=self.is_complete,
            faces=[FaceView.from_reading(i, face) for i, face in enumerate(self._faces)],
        )
