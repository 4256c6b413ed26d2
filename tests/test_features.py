# Copyright (c) 2026 Colorvec
# SPDX-License-Identifier: MIT

"""Tests for feature normalization and scale/offset loading."""

import numpy as np
import pytest

from colorvec import analyze, ExtractionConfig
from colorvec.errors import InvalidConfigurationError
from colorvec.schema import ColorVector, DominantColor, FeatureVector
from colorvec.measure.features import (
    FeatureNormalizer,
    flatten_colors,
    load_affine_vector,
    parse_affine_vector,
)


def _three_region_image(height=10, width=30):
    """Red, green and blue vertical bands."""
    img = np.zeros((height, width, 3), dtype=np.uint8)
    third = width // 3
    img[:, :third] = (200, 30, 30)
    img[:, third:2 * third] = (30, 200, 30)
    img[:, 2 * third:] = (30, 30, 200)
    return img


def _color(L, a, b, proportion, count):
    return DominantColor(lab=ColorVector(L, a, b), proportion=proportion, count=count)


SCALE_12 = [0.01, 0.005, 0.005, 1.0] * 3
OFFSET_12 = [0.0, 0.5, 0.5, 0.0, -0.1, 0.4, 0.4, 0.1, 0.2, 0.3, 0.3, -0.2]


class TestFlatten:

    def test_layout(self):
        colors = (_color(50.0, 10.0, -5.0, 0.75, 3), _color(20.0, 0.0, 1.0, 0.25, 1))
        np.testing.assert_allclose(
            flatten_colors(colors),
            [50.0, 10.0, -5.0, 0.75, 20.0, 0.0, 1.0, 0.25],
        )


class TestFeatureNormalizer:

    def test_affine_transform(self):
        colors = (_color(50.0, 10.0, -5.0, 0.6, 6), _color(20.0, 0.0, 1.0, 0.4, 4))
        normalizer = FeatureNormalizer([1, 2, 3, 4, 5, 6, 7, 8], [0, 1, 0, 1, 0, 1, 0, 1])
        features = normalizer.transform(colors)

        assert isinstance(features, FeatureVector)
        assert features.to_list() == pytest.approx(
            [50.0, 21.0, -15.0, 3.4, 100.0, 1.0, 7.0, 4.2]
        )

    def test_n_clusters(self):
        assert FeatureNormalizer(SCALE_12, OFFSET_12).n_clusters == 3
        assert len(FeatureNormalizer(SCALE_12, OFFSET_12)) == 12

    def test_scale_offset_length_mismatch(self):
        with pytest.raises(InvalidConfigurationError, match="offset"):
            FeatureNormalizer(SCALE_12, OFFSET_12[:8])

    def test_length_not_multiple_of_four(self):
        with pytest.raises(InvalidConfigurationError, match="multiple"):
            FeatureNormalizer([1.0] * 6, [0.0] * 6)

    def test_empty_rejected(self):
        with pytest.raises(InvalidConfigurationError):
            FeatureNormalizer([], [])

    def test_cluster_count_mismatch(self):
        normalizer = FeatureNormalizer(SCALE_12, OFFSET_12)
        colors = (_color(50.0, 0.0, 0.0, 1.0, 1),)
        with pytest.raises(InvalidConfigurationError, match="expects 12 features"):
            normalizer.transform(colors)

    def test_to_array_is_float32(self):
        normalizer = FeatureNormalizer([1.0] * 4, [0.0] * 4)
        features = normalizer.transform((_color(50.0, 1.0, 2.0, 1.0, 1),))
        arr = features.to_array()
        assert arr.dtype == np.float32
        assert arr.shape == (4,)


class TestAffineFiles:

    def test_parse_ignores_blank_lines(self):
        values = parse_affine_vector("0.5\n1.25\n\n-3e-2\n")
        np.testing.assert_allclose(values, [0.5, 1.25, -0.03])

    def test_parse_invalid_line(self):
        with pytest.raises(InvalidConfigurationError, match="Line 2"):
            parse_affine_vector("1.0\nabc\n")

    def test_load_from_files(self, tmp_path):
        scale_path = tmp_path / "scales.txt"
        offset_path = tmp_path / "mins.txt"
        scale_path.write_text("\n".join(str(v) for v in SCALE_12) + "\n")
        offset_path.write_text("\n".join(str(v) for v in OFFSET_12) + "\n")

        np.testing.assert_allclose(load_affine_vector(scale_path), SCALE_12)

        normalizer = FeatureNormalizer.from_files(scale_path, offset_path)
        np.testing.assert_allclose(normalizer.scale, SCALE_12)
        np.testing.assert_allclose(normalizer.offset, OFFSET_12)


class TestPipelineFeatures:

    def test_three_regions_k3(self):
        normalizer = FeatureNormalizer(SCALE_12, OFFSET_12)
        config = ExtractionConfig(n_clusters=3, seed=3571)
        result = analyze(_three_region_image(), normalizer, config)

        assert len(result.features) == 12
        raw = flatten_colors(result.colors)
        expected = raw * np.array(SCALE_12) + np.array(OFFSET_12)
        np.testing.assert_allclose(result.features.to_list(), expected, atol=1e-12)

    def test_k_taken_from_normalizer(self):
        normalizer = FeatureNormalizer(SCALE_12, OFFSET_12)
        result = analyze(_three_region_image(), normalizer)
        assert result.n_clusters == 3

    def test_config_k_mismatch_raises(self):
        normalizer = FeatureNormalizer(SCALE_12, OFFSET_12)
        with pytest.raises(InvalidConfigurationError, match="fitted for 3 clusters"):
            analyze(_three_region_image(), normalizer, ExtractionConfig(n_clusters=4))
