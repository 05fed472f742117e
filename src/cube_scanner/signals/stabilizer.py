"""
Temporal Stabilizer
===================

Turns a stream of noisy per-frame readings into stable face readings.

Each classified frame is appended to a bounded History of the last N
readings. Once the History is full, every sticker position is voted on
independently:

    - winner = most frequent color at that position (ties: first seen)
    - the position is stable if winner != UNKNOWN and its count reaches
      the quorum (N - 1 by default, or N with the unanimous policy)

If all 9 positions are stable the 9 winners are emitted as the
consensus and the History is cleared, so the same frames cannot
produce a second consensus. Otherwise nothing is emitted and the
History is kept; the next frame pushes out the oldest entry and the
vote runs again.

States:
    ACCUMULATING: len(History) < N, no vote
    DECIDING:     len(History) == N, vote on this frame

The transition logic is a pure function (`advance`) over an immutable
History value. TemporalStabilizer owns the current History and feeds it
through `advance` one frame at a time.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple

from cube_scanner.models.colors import STICKERS_PER_FACE, DiscreteColor
from cube_scanner.models.reading import FaceReading


logger = logging.getLogger(__name__)


class QuorumPolicy(str, Enum):
    """
    How many of the N history frames must agree on a position.

    Attributes:
        NEAR_UNANIMOUS: N - 1 of N (tolerates one flickered frame)
        UNANIMOUS: all N
    """

    NEAR_UNANIMOUS = "near_unanimous"
    UNANIMOUS = "unanimous"

    def required_votes(self, capacity: int) -> int:
        if self is QuorumPolicy.UNANIMOUS:
            return capacity
        return max(1, capacity - 1)


@dataclass(frozen=True, slots=True)
class History:
    """
    Bounded FIFO of recent readings, oldest first.

    Invariant: len(entries) <= capacity.
    """

    capacity: int
    entries: Tuple[FaceReading, ...] = ()

    def __post_init__(self) -> None:
        if self.capacity < 1:
            raise ValueError("capacity must be >= 1")
        if len(self.entries) > self.capacity:
            raise ValueError("History holds more entries than its capacity")

    def append(self, reading: FaceReading) -> "History":
        """New History with `reading` added and the oldest dropped if over capacity."""
        entries = self.entries + (reading,)
        return History(self.capacity, entries[-self.capacity:])

    def cleared(self) -> "History":
        return History(self.capacity)

    @property
    def is_full(self) -> bool:
        return len(self.entries) == self.capacity

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True, slots=True)
class StabilizerStep:
    """
    Result of feeding one reading to the stabilizer.

    Attributes:
        history: History after this step
        evaluated: True if the History was full and a vote ran
        consensus: Emitted reading, if every position reached quorum
    """

    history: History
    evaluated: bool
    consensus: Optional[FaceReading] = None


def vote(entries: Sequence[FaceReading], position: int) -> Tuple[DiscreteColor, int]:
    """Most frequent color at one position, with its count."""
    tally = Counter(entry[position] for entry in entries)
    return tally.most_common(1)[0]


def find_consensus(
    entries: Sequence[FaceReading], required: int
) -> Optional[FaceReading]:
    """
    Vote every position; return the winners if all reach quorum.

    Returns:
        Consensus reading, or None if any position is unstable
    """
    winners = []
    for position in range(STICKERS_PER_FACE):
        color, count = vote(entries, position)
        if count < required or not color.is_known:
            return None
        winners.append(color)
    return FaceReading(tuple(winners))


def advance(history: History, reading: FaceReading, required: int) -> StabilizerStep:
    """
    Pure stabilizer transition.

    Args:
        history: Current History
        reading: Newly classified frame
        required: Votes needed per position

    Returns:
        StabilizerStep with the next History and any consensus
    """
    history = history.append(reading)
    if not history.is_full:
        return StabilizerStep(history=history, evaluated=False)

    consensus = find_consensus(history.entries, required)
    if consensus is None:
        return StabilizerStep(history=history, evaluated=True)

    return StabilizerStep(history=history.cleared(), evaluated=True, consensus=consensus)


class TemporalStabilizer:
    """
    Stateful wrapper that owns the pipeline's History.

    Not thread-safe: frames must be delivered serially.

    Example:
        stabilizer = TemporalStabilizer(history_length=5)

        for reading in readings:
            step = stabilizer.update(reading)
            if step.consensus is not None:
                commit(step.consensus)
    """

    def __init__(
        self,
        history_length: int = 5,
        quorum_policy: QuorumPolicy = QuorumPolicy.NEAR_UNANIMOUS,
        log_every_n_frames: int = 30,
    ) -> None:
        """
        Initialize temporal stabilizer.

        Args:
            history_length: N, number of frames voted on
            quorum_policy: Agreement needed per position
            log_every_n_frames: Log counters every N frames
        """
        if history_length < 1:
            raise ValueError("history_length must be >= 1")

        self.quorum_policy = QuorumPolicy(quorum_policy)
        self.required_votes = self.quorum_policy.required_votes(history_length)
        self.log_every_n_frames = log_every_n_frames

        self._history = History(history_length)
        self._frame_count: int = 0
        self._consensus_count: int = 0
        self._rejected_count: int = 0

        logger.info(
            f"TemporalStabilizer initialized: history_length={history_length}, "
            f"policy={self.quorum_policy.value}, required={self.required_votes}"
        )

    @property
    def history(self) -> History:
        return self._history

    @property
    def history_length(self) -> int:
        return self._history.capacity

    def update(self, reading: FaceReading) -> StabilizerStep:
        """
        Feed one classified frame.

        Returns:
            StabilizerStep; `consensus` is set at most once per full History
        """
        self._frame_count += 1

        step = advance(self._history, reading, self.required_votes)
        self._history = step.history

        if step.consensus is not None:
            self._consensus_count += 1
            logger.debug(f"Consensus reached: {step.consensus!r}")
        elif step.evaluated:
            self._rejected_count += 1

        if self._frame_count % self.log_every_n_frames == 0:
            logger.info(
                f"TemporalStabilizer [frame {self._frame_count}]: "
                f"consensus={self._consensus_count}, rejected={self._rejected_count}"
            )

        return step

    def reset(self) -> None:
        """Drop all history and counters."""
        self._history = self._history.cleared()
        self._frame_count = 0
        self._consensus_count = 0
        self._rejected_count = 0
        logger.info("TemporalStabilizer reset")

    def get_metrics(self) -> dict:
        """Get stabilizer metrics for observability."""
        return {
            "frame_count": self._frame_count,
            "history_size": len(self._history),
            "history_length": self._history.capacity,
            "quorum_policy": self.quorum_policy.value,
            "required_votes": self.required_votes,
            "consensus_count": self._consensus_count,
            "rejected_count": self._rejected_count,
        }
