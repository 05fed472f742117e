"""
Signals Module
==============

Temporal processing of per-frame readings.
"""

from cube_scanner.signals.stabilizer import (
    History,
    QuorumPolicy,
    StabilizerStep,
    TemporalStabilizer,
    advance,
    find_consensus,
)

__all__ = [
    "TemporalStabilizer",
    "QuorumPolicy",
    "History",
    "StabilizerStep",
    "advance",
    "find_consensus",
]
