"""
Frame Outcomes
==============

Fixed set of machine-readable outcomes for processing one frame.

Every frame ends in exactly ONE outcome. None of them is fatal: all
failures degrade to waiting for the next frame.
"""

from enum import Enum


class FrameOutcome(str, Enum):
    """
    Result of running one frame through the pipeline.

    Attributes:
        BUFFER_UNAVAILABLE: Pixel buffer had no accessible memory
        INCOMPLETE_SAMPLE: Fewer than 9 patches had in-bounds pixels
        ACCUMULATING: Frame stored, history not yet full
        QUORUM_NOT_REACHED: At least one position lacked agreement
        UNRESOLVABLE_CENTER: Consensus center has no face mapping
        REDUNDANT_READING: Consensus equals the stored face (no-op)
        COMMITTED: Consensus submitted to the cube state owner
    """

    # Sampling failures
    BUFFER_UNAVAILABLE = "BUFFER_UNAVAILABLE"
    INCOMPLETE_SAMPLE = "INCOMPLETE_SAMPLE"

    # Stabilization
    ACCUMULATING = "ACCUMULATING"
    QUORUM_NOT_REACHED = "QUORUM_NOT_REACHED"

    # Resolution
    UNRESOLVABLE_CENTER = "UNRESOLVABLE_CENTER"
    REDUNDANT_READING = "REDUNDANT_READING"
    COMMITTED = "COMMITTED"
