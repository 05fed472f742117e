"""
CubeScanner
===========

Sticker color detection and stabilization for scanning a 3x3 cube
from a live video feed.

Each frame is turned into a 3x3 grid of discrete colors, voted on
across recent frames, and committed to the face its center sticker
identifies.

Components:
    - sampling: Averaged grid patches from a BGRA frame
    - classify: Weighted HSV palette matching
    - signals: Temporal consensus over a bounded history
    - cube: Face state, commit channel and resolver
    - stream: Frame ingestion and decoding
    - pipeline: Per-frame composition of the above

Example:
    from cube_scanner.cube import CommitChannel, CubeFaceSet
    from cube_scanner.pipeline import ScanPipeline
    from cube_scanner.config import settings

    cube = CubeFaceSet()
    channel = CommitChannel(cube)
    pipeline = ScanPipeline.from_settings(settings, cube, channel)
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
