"""
Color Classifier
================

Maps an averaged patch color to one discrete sticker color.

Distance Metric:
    Colors are compared in HSV with a weighted sum of three terms:

        d = 2.0 * hue_distance + 1.0 * |Δsaturation| + 1.0 * |Δvalue|

    Hue lives on a circle, so hue_distance is the shorter way round:
    min(|h1 - h2|, 1 - |h1 - h2|). Hue 0.99 and 0.01 are 0.02 apart.

Rejection:
    - value <= 0.1: too dark to be informative (shadow, glare edge),
      UNKNOWN without looking at the palette
    - nearest palette distance > 0.6: no confident match, UNKNOWN
      instead of a forced label
"""

import logging
from typing import Dict, Iterable, Mapping, Tuple

from cube_scanner.models.colors import DiscreteColor
from cube_scanner.models.reading import HSV, ColorSample, FaceReading


logger = logging.getLogger(__name__)


REFERENCE_PALETTE: Dict[DiscreteColor, HSV] = {
    DiscreteColor.WHITE: HSV(hue=0.0, saturation=0.0, value=1.0),
    DiscreteColor.YELLOW: HSV(hue=1.0 / 6.0, saturation=1.0, value=1.0),
    DiscreteColor.RED: HSV(hue=0.0, saturation=1.0, value=1.0),
    DiscreteColor.ORANGE: HSV(hue=1.0 / 12.0, saturation=1.0, value=1.0),
    DiscreteColor.BLUE: HSV(hue=2.0 / 3.0, saturation=1.0, value=1.0),
    DiscreteColor.GREEN: HSV(hue=1.0 / 3.0, saturation=1.0, value=1.0),
}


def hue_distance(a: float, b: float) -> float:
    """Circular distance between two hues on [0, 1)."""
    diff = abs(a - b) % 1.0
    return min(diff, 1.0 - diff)


class ColorClassifier:
    """
    Nearest-palette color classifier with brightness gate and rejection.

    Stateless: the same sample always yields the same color.

    Example:
        classifier = ColorClassifier()
        reading = classifier.classify_frame(samples)
    """

    def __init__(
        self,
        palette: Mapping[DiscreteColor, HSV] = REFERENCE_PALETTE,
        hue_weight: float = 2.0,
        saturation_weight: float = 1.0,
        value_weight: float = 1.0,
        min_value: float = 0.1,
        rejection_threshold: float = 0.6,
    ) -> None:
        """
        Initialize color classifier.

        Args:
            palette: Reference HSV per known color
            hue_weight: Weight of circular hue distance
            saturation_weight: Weight of saturation distance
            value_weight: Weight of value distance
            min_value: Samples at or below this value are UNKNOWN
            rejection_threshold: Best distances above this are UNKNOWN
        """
        if DiscreteColor.UNKNOWN in palette:
            raise ValueError("palette must not contain UNKNOWN")
        if not palette:
            raise ValueError("palette must not be empty")
        if rejection_threshold <= 0:
            raise ValueError("rejection_threshold must be positive")

        self._palette: Tuple[Tuple[DiscreteColor, HSV], ...] = tuple(palette.items())
        self.hue_weight = hue_weight
        self.saturation_weight = saturation_weight
        self.value_weight = value_weight
        self.min_value = min_value
        self.rejection_threshold = rejection_threshold

        logger.info(
            f"ColorClassifier initialized: weights=({hue_weight}, "
            f"{saturation_weight}, {value_weight}), min_value={min_value}, "
            f"rejection_threshold={rejection_threshold}"
        )

    def distance(self, a: HSV, b: HSV) -> float:
        """Weighted HSV distance between two colors."""
        return (
            self.hue_weight * hue_distance(a.hue, b.hue)
            + self.saturation_weight * abs(a.saturation - b.saturation)
            + self.value_weight * abs(a.value - b.value)
        )

    def classify_hsv(self, hsv: HSV) -> DiscreteColor:
        if hsv.value <= self.min_value:
            return DiscreteColor.UNKNOWN

        best_color, best_distance = min(
            ((color, self.distance(hsv, reference)) for color, reference in self._palette),
            key=lambda item: item[1],
        )

        if best_distance > self.rejection_threshold:
            return DiscreteColor.UNKNOWN
        return best_color

    def classify(self, sample: ColorSample) -> DiscreteColor:
        """Classify one averaged patch."""
        return self.classify_hsv(sample.hsv)

    def classify_frame(self, samples: Iterable[ColorSample]) -> FaceReading:
        """Classify the 9 samples of one frame into a FaceReading."""
        return FaceReading(tuple(self.classify(s) for s in samples))
