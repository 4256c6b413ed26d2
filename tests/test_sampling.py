# Copyright (c) 2026 Colorvec
# SPDX-License-Identifier: MIT

"""Tests for pixel sampling and budget downsampling."""

import numpy as np
import pytest

from colorvec.errors import InvalidConfigurationError
from colorvec.measure.sampling import (
    as_rgba,
    pixels_from_accessor,
    sample_pixels,
    scaled_dimensions,
)


def _quadrants(alpha=(255, 255, 255, 255)):
    """2x2 RGBA image with four distinct solid colors."""
    img = np.zeros((2, 2, 4), dtype=np.uint8)
    img[0, 0] = (255, 0, 0, alpha[0])
    img[0, 1] = (0, 255, 0, alpha[1])
    img[1, 0] = (0, 0, 255, alpha[2])
    img[1, 1] = (255, 255, 255, alpha[3])
    return img


class TestScaledDimensions:

    def test_within_budget_unchanged(self):
        assert scaled_dimensions(30, 20, 600) == (30, 20)
        assert scaled_dimensions(30, 20, 1000) == (30, 20)

    def test_unbounded_unchanged(self):
        assert scaled_dimensions(4000, 3000, None) == (4000, 3000)

    def test_landscape(self):
        assert scaled_dimensions(4000, 3000, 1000) == (36, 27)

    @pytest.mark.parametrize("width, height, budget", [
        (4000, 3000, 1000),
        (3000, 4000, 1000),
        (1920, 1080, 5000),
        (500, 500, 999),
        (1000, 200, 250),
    ])
    def test_budget_and_aspect(self, width, height, budget):
        w, h = scaled_dimensions(width, height, budget)
        assert w * h <= budget
        assert w / h == pytest.approx(width / height, rel=0.1)

    def test_extreme_aspect_keeps_one_pixel(self):
        w, h = scaled_dimensions(10000, 1, 100)
        assert h == 1
        assert w * h <= 100

    def test_extreme_portrait(self):
        w, h = scaled_dimensions(1, 10000, 100)
        assert w == 1
        assert w * h <= 100

    def test_non_positive_budget_raises(self):
        with pytest.raises(InvalidConfigurationError):
            scaled_dimensions(10, 10, 0)


class TestSamplePixels:

    def test_all_opaque(self):
        samples = sample_pixels(_quadrants())
        assert samples.shape == (4, 3)
        assert samples.dtype == np.uint8

    def test_row_major_order(self):
        samples = sample_pixels(_quadrants())
        np.testing.assert_array_equal(
            samples,
            [[255, 0, 0], [0, 255, 0], [0, 0, 255], [255, 255, 255]],
        )

    def test_half_transparent_halves_samples(self):
        opaque = sample_pixels(_quadrants())
        half = sample_pixels(_quadrants(alpha=(255, 0, 255, 0)))
        assert len(half) == len(opaque) // 2
        np.testing.assert_array_equal(half, [[255, 0, 0], [0, 0, 255]])

    def test_partial_alpha_excluded(self):
        samples = sample_pixels(_quadrants(alpha=(254, 255, 1, 255)))
        assert len(samples) == 2

    def test_rgb_input_is_opaque(self):
        rgb = np.full((3, 5, 3), 77, dtype=np.uint8)
        assert len(sample_pixels(rgb)) == 15

    def test_zero_area_is_empty(self):
        samples = sample_pixels(np.zeros((0, 10, 4), dtype=np.uint8))
        assert samples.shape == (0, 3)

    def test_downsampled_to_budget(self):
        img = np.zeros((100, 100, 4), dtype=np.uint8)
        img[...] = (10, 120, 200, 255)
        samples = sample_pixels(img, max_pixels=100)
        assert len(samples) == 100
        assert np.all(samples == [10, 120, 200])

    def test_within_budget_not_resized(self):
        img = np.random.RandomState(0).randint(0, 256, size=(10, 10, 4)).astype(np.uint8)
        img[..., 3] = 255
        samples = sample_pixels(img, max_pixels=100)
        np.testing.assert_array_equal(samples, img[..., :3].reshape(-1, 3))


class TestInputValidation:

    def test_invalid_shape_raises(self):
        with pytest.raises(ValueError, match="Expected"):
            sample_pixels(np.zeros((10, 10), dtype=np.uint8))

    def test_invalid_channels_raises(self):
        with pytest.raises(ValueError, match="Expected"):
            as_rgba(np.zeros((4, 4, 2), dtype=np.uint8))

    def test_invalid_dtype_raises(self):
        with pytest.raises(ValueError, match="Expected uint8"):
            sample_pixels(np.zeros((4, 4, 4), dtype=np.float32))


class TestAccessor:

    def test_builds_buffer(self):
        source = _quadrants(alpha=(255, 0, 255, 255))
        buffer = pixels_from_accessor(2, 2, lambda x, y: tuple(source[y, x]))
        np.testing.assert_array_equal(buffer, source)

    def test_feeds_sampler(self):
        buffer = pixels_from_accessor(3, 2, lambda x, y: (x * 10, y * 10, 0, 255))
        samples = sample_pixels(buffer)
        np.testing.assert_array_equal(samples[:, 0], [0, 10, 20, 0, 10, 20])
        np.testing.assert_array_equal(samples[:, 1], [0, 0, 0, 10, 10, 10])

    def test_negative_dimensions_raise(self):
        with pytest.raises(ValueError):
            pixels_from_accessor(-1, 2, lambda x, y: (0, 0, 0, 255))
