"""
Cube Module
===========

Shared cube state and the commit path into it.

    - CubeFaceSet: six committed faces, single owner
    - CommitChannel / FaceCommit: ordered capture -> owner hand-off
    - FaceResolver: consensus reading -> face commit
"""

from cube_scanner.cube.state import CubeFaceSet, FaceStore
from cube_scanner.cube.channel import CommitChannel, FaceCommit
from cube_scanner.cube.resolver import FaceResolver

__all__ = [
    "CubeFaceSet",
    "FaceStore",
    "CommitChannel",
    "FaceCommit",
    "FaceResolver",
]
