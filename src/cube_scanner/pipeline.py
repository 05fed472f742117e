"""
Scan Pipeline
=============

Runs one frame through sample -> classify -> stabilize -> resolve.

    PixelBuffer
        -> FrameSampler        9 ColorSamples (or skip)
        -> ColorClassifier     FaceReading
        -> TemporalStabilizer  consensus (or wait)
        -> FaceResolver        commit (or no-op)

Every frame ends in exactly one FrameOutcome. No outcome is fatal; a
rejected frame is dropped and the next one is awaited.

Concurrency:
    `process` must be called serially (one frame at a time) because
    the stabilizer's History is not locked. The only cross-thread hand-off
    is the commit, which goes through the CommitChannel.
"""

import logging
from collections import Counter
from typing import Optional

from cube_scanner.classify import ColorClassifier
from cube_scanner.config import Settings
from cube_scanner.cube import CommitChannel, FaceResolver, FaceStore
from cube_scanner.models.outcomes import FrameOutcome
from cube_scanner.sampling import (
    BufferUnavailableError,
    FrameSampler,
    IncompleteSampleError,
)
from cube_scanner.signals import QuorumPolicy, TemporalStabilizer
from cube_scanner.stream.pixel_buffer import PixelBuffer


logger = logging.getLogger(__name__)


class ScanPipeline:
    """
    Per-frame scanning pipeline.

    Attributes:
        sampler: Grid patch sampler
        classifier: Palette classifier
        stabilizer: Temporal consensus (owns the History)
        resolver: Face commit routing

    Example:
        cube = CubeFaceSet()
        channel = CommitChannel(cube)
        pipeline = ScanPipeline.from_settings(settings, cube, channel)

        outcome = pipeline.process(buffer)
        channel.drain()
    """

    def __init__(
        self,
        sampler: FrameSampler,
        classifier: ColorClassifier,
        stabilizer: TemporalStabilizer,
        resolver: FaceResolver,
        log_every_n_frames: int = 100,
    ) -> None:
        self.sampler = sampler
        self.classifier = classifier
        self.stabilizer = stabilizer
        self.resolver = resolver
        self.log_every_n_frames = log_every_n_frames

        self._outcomes: Counter = Counter()
        self._frame_count: int = 0
        self._last_outcome: Optional[FrameOutcome] = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        store: FaceStore,
        channel: CommitChannel,
    ) -> "ScanPipeline":
        """Build a pipeline from the loaded configuration."""
        return cls(
            sampler=FrameSampler(
                grid_divisions=settings.sampler.grid_divisions,
                min_patch_half_width=settings.sampler.min_patch_half_width,
                patch_divisor=settings.sampler.patch_divisor,
            ),
            classifier=ColorClassifier(
                hue_weight=settings.classifier.hue_weight,
                saturation_weight=settings.classifier.saturation_weight,
                value_weight=settings.classifier.value_weight,
                min_value=settings.classifier.min_value,
                rejection_threshold=settings.classifier.rejection_threshold,
            ),
            stabilizer=TemporalStabilizer(
                history_length=settings.stabilizer.history_length,
                quorum_policy=QuorumPolicy(settings.stabilizer.quorum_policy),
            ),
            resolver=FaceResolver(store, channel),
        )

    @property
    def last_outcome(self) -> Optional[FrameOutcome]:
        return self._last_outcome

    def process(self, buffer: PixelBuffer) -> FrameOutcome:
        """
        Process one frame.

        The buffer is locked only while its pixels are sampled and is
        released on every path, including sampling failures.

        Args:
            buffer: Frame to scan; not retained after the call

        Returns:
            The FrameOutcome for this frame
        """
        outcome = self._run(buffer)

        self._frame_count += 1
        self._outcomes[outcome] += 1
        self._last_outcome = outcome

        if self._frame_count % self.log_every_n_frames == 0:
            logger.info(
                f"ScanPipeline [frame {self._frame_count}]: "
                + ", ".join(f"{k.value}={v}" for k, v in sorted(self._outcomes.items()))
            )

        return outcome

    def _run(self, buffer: PixelBuffer) -> FrameOutcome:
        try:
            with buffer.locked():
                samples = self.sampler.sample(buffer)
        except BufferUnavailableError as e:
            logger.debug(f"Skipping frame: {e}")
            return FrameOutcome.BUFFER_UNAVAILABLE
        except IncompleteSampleError as e:
            logger.debug(f"Skipping frame: {e}")
            return FrameOutcome.INCOMPLETE_SAMPLE

        reading = self.classifier.classify_frame(samples)

        step = self.stabilizer.update(reading)
        if not step.evaluated:
            return FrameOutcome.ACCUMULATING
        if step.consensus is None:
            return FrameOutcome.QUORUM_NOT_REACHED

        return self.resolver.resolve(step.consensus)

    def reset(self) -> None:
        """Drop the History and outcome counters."""
        self.stabilizer.reset()
        self._outcomes.clear()
        self._frame_count = 0
        self._last_outcome = None

    def get_metrics(self) -> dict:
        """Pipeline metrics for observability."""
        return {
            "frames_processed": self._frame_count,
            "outcomes": {k.value: v for k, v in self._outcomes.items()},
            "last_outcome": self._last_outcome.value if self._last_outcome else None,
            "stabilizer": self.stabilizer.get_metrics(),
        }
