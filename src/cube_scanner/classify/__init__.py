"""
Classification Module
=====================

Maps averaged patch colors to discrete sticker colors.
"""

from cube_scanner.classify.classifier import (
    REFERENCE_PALETTE,
    ColorClassifier,
    hue_distance,
)

__all__ = [
    "ColorClassifier",
    "REFERENCE_PALETTE",
    "hue_distance",
]
