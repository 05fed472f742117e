"""
Sampling Module
===============

Turns a raw BGRA frame into 9 averaged color samples.
"""

from cube_scanner.sampling.sampler import (
    BufferUnavailableError,
    FrameSampler,
    GridGeometry,
    IncompleteSampleError,
    SampleError,
    bgr_means_to_hsv,
)

__all__ = [
    "FrameSampler",
    "GridGeometry",
    "SampleError",
    "BufferUnavailableError",
    "IncompleteSampleError",
    "bgr_means_to_hsv",
]
