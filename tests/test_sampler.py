"""
Frame Sampler Tests
===================

Grid geometry, patch averaging and failure signalling.
"""

import numpy as np
import pytest

from cube_scanner.sampling import (
    BufferUnavailableError,
    FrameSampler,
    GridGeometry,
    IncompleteSampleError,
)
from cube_scanner.stream.pixel_buffer import PixelBuffer


def _sample(buffer):
    with buffer.locked():
        return FrameSampler().sample(buffer)


class TestGridGeometry:
    """Cell centers and patch size derived from frame dimensions."""

    def test_centered_grid(self):
        """A 120x120 frame has a 30px step and origin at (30, 30)."""
        geometry = GridGeometry.for_frame(120, 120)

        assert geometry.step_x == 30
        assert geometry.step_y == 30
        assert (geometry.origin_x, geometry.origin_y) == (30, 30)
        assert geometry.half_width == 5

    def test_centers_are_row_major(self):
        geometry = GridGeometry.for_frame(160, 120)

        assert geometry.cell_centers() == [
            (40, 30), (80, 30), (120, 30),
            (40, 60), (80, 60), (120, 60),
            (40, 90), (80, 90), (120, 90),
        ]

    def test_half_width_has_a_floor(self):
        """Small frames still get a patch, not a single pixel."""
        geometry = GridGeometry.for_frame(24, 24)
        assert geometry.half_width == 2

    def test_patch_bounds_clip_to_frame(self):
        geometry = GridGeometry(step_x=0, step_y=0, origin_x=1, origin_y=1, half_width=3)
        assert geometry.patch_bounds((1, 1), 4, 4) == (0, 4, 0, 4)


class TestFrameSampler:
    """Averaging patches of a locked buffer."""

    def test_uniform_frame(self, pixel_buffer):
        """Every patch of a uniform frame averages to that color."""
        bgra = np.zeros((120, 120, 4), dtype=np.uint8)
        bgra[..., :3] = (51, 102, 204)

        samples = _sample(pixel_buffer(bgra))

        assert len(samples) == 9
        for sample in samples:
            assert sample.blue == pytest.approx(0.2)
            assert sample.green == pytest.approx(0.4)
            assert sample.red == pytest.approx(0.8)
            assert sample.pixel_count == 121

    def test_hsv_view(self, pixel_buffer):
        """Pure green has hue 1/3 and full saturation and value."""
        bgra = np.zeros((60, 60, 4), dtype=np.uint8)
        bgra[..., 1] = 255

        sample = _sample(pixel_buffer(bgra))[4]

        assert sample.hsv.hue == pytest.approx(1 / 3, abs=1e-4)
        assert sample.hsv.saturation == pytest.approx(1.0)
        assert sample.hsv.value == pytest.approx(1.0)

    def test_row_major_order(self, face_image, pixel_buffer):
        """Sample i comes from grid cell i."""
        from cube_scanner.models.colors import DiscreteColor as C

        colors = [C.RED, C.GREEN, C.BLUE, C.WHITE, C.YELLOW, C.ORANGE, C.BLUE, C.RED, C.GREEN]
        samples = _sample(pixel_buffer(face_image(colors)))

        assert samples[0].red == pytest.approx(1.0) and samples[0].green == 0.0
        assert samples[1].green == pytest.approx(1.0) and samples[1].red == 0.0
        assert samples[2].blue == pytest.approx(1.0) and samples[2].red == 0.0
        assert samples[8].green == pytest.approx(1.0) and samples[8].blue == 0.0

    def test_patch_averages_noise(self, pixel_buffer):
        """Alternating dark/bright rows average to the midpoint."""
        bgra = np.zeros((120, 120, 4), dtype=np.uint8)
        bgra[0::2, :, 2] = 100
        bgra[1::2, :, 2] = 200

        samples = _sample(pixel_buffer(bgra))

        for sample in samples:
            assert sample.red == pytest.approx(150 / 255, abs=0.03)

    def test_padded_rows(self):
        """Row padding beyond width * 4 bytes is never read."""
        width, height, stride = 40, 40, 40 * 4 + 16
        data = bytearray(b"\xff" * (stride * height))
        for y in range(height):
            row = y * stride
            data[row:row + width * 4] = bytes((0, 0, 255, 255)) * width

        samples = _sample(PixelBuffer(width, height, stride, bytes(data)))

        for sample in samples:
            assert sample.red == pytest.approx(1.0)
            assert sample.green == 0.0
            assert sample.blue == 0.0

    def test_missing_memory(self):
        buffer = PixelBuffer(64, 64, 256, None)
        with pytest.raises(BufferUnavailableError):
            _sample(buffer)

    def test_short_memory(self):
        """Memory not covering every row counts as unavailable."""
        buffer = PixelBuffer(64, 64, 256, bytes(256 * 10))
        with pytest.raises(BufferUnavailableError):
            _sample(buffer)

    def test_degenerate_geometry(self):
        """A zero-width frame has no in-bounds patch."""
        buffer = PixelBuffer(0, 10, 0, b"")
        with pytest.raises(IncompleteSampleError) as excinfo:
            _sample(buffer)
        assert excinfo.value.valid_patches == 0

    def test_empty_patches(self, pixel_buffer):
        """With no patch width, cells on the far edge fall outside the frame."""
        sampler = FrameSampler(grid_divisions=2, min_patch_half_width=0, patch_divisor=1000)
        buffer = pixel_buffer(np.zeros((10, 10, 4), dtype=np.uint8))

        with buffer.locked():
            with pytest.raises(IncompleteSampleError) as excinfo:
                sampler.sample(buffer)
        assert excinfo.value.valid_patches == 4

    def test_requires_lock(self, pixel_buffer):
        buffer = pixel_buffer(np.zeros((8, 8, 4), dtype=np.uint8))
        with pytest.raises(RuntimeError):
            FrameSampler().sample(buffer)


class TestPixelBuffer:
    """Scoped lock acquisition."""

    def test_lock_released_on_error(self, pixel_buffer):
        buffer = pixel_buffer(np.zeros((8, 8, 4), dtype=np.uint8))

        with pytest.raises(ValueError):
            with buffer.locked():
                raise ValueError("boom")

        assert not buffer.is_locked
        assert buffer.lock_count == 1

    def test_rejects_short_stride(self):
        with pytest.raises(ValueError):
            PixelBuffer(10, 10, 39, bytes(400))

    def test_from_array_validates_shape(self):
        with pytest.raises(ValueError):
            PixelBuffer.from_array(np.zeros((8, 8, 3), dtype=np.uint8))
