# Copyright (c) 2026 Colorvec
# SPDX-License-Identifier: MIT

"""Tests for seeded k-means clustering."""

import logging

import numpy as np
import pytest

from colorvec.errors import InvalidConfigurationError
from colorvec.schema import ColorSpace, ColorVector
from colorvec.measure.distance import cie76_squared, cie94_squared, cie2000_squared
from colorvec.measure.kmeans import choose_initial_indices, kmeans


class Scalar:
    """Minimal one-dimensional clusterable type."""

    def __init__(self, value):
        self.value = value

    def __add__(self, other):
        return Scalar(self.value + other.value)

    def __truediv__(self, count):
        return Scalar(self.value / count)

    @classmethod
    def identity(cls):
        return cls(0.0)


def _scalar_distance(p, q):
    return (p.value - q.value) ** 2


def _lab_points(seed=0, n=60):
    rng = np.random.RandomState(seed)
    labs = np.column_stack([rng.uniform(0, 100, n), rng.uniform(-60, 60, (n, 2))])
    return [ColorVector.from_array(row) for row in labs]


def _two_flat_groups(size=10):
    a = ColorVector(20.0, 0.0, 0.0)
    b = ColorVector(80.0, 0.0, 0.0)
    return [a] * size + [b] * size


class TestInitialSelection:

    def test_distinct_indices(self):
        indices = choose_initial_indices(100, 10, seed=3571)
        assert len(indices) == 10
        assert len(set(indices)) == 10
        assert all(0 <= i < 100 for i in indices)

    def test_same_seed_same_indices(self):
        assert choose_initial_indices(50, 5, seed=42) == choose_initial_indices(50, 5, seed=42)

    def test_different_seeds_usually_differ(self):
        picks = {tuple(choose_initial_indices(1000, 4, seed=s)) for s in range(10)}
        assert len(picks) > 1

    def test_k_equals_n_is_permutation(self):
        indices = choose_initial_indices(8, 8, seed=1)
        assert sorted(indices) == list(range(8))

    def test_full_64_bit_seed(self):
        indices = choose_initial_indices(10, 3, seed=2 ** 64 - 1)
        assert len(set(indices)) == 3

    @pytest.mark.parametrize("seed", [-1, 2 ** 64])
    def test_seed_out_of_range(self, seed):
        with pytest.raises(InvalidConfigurationError, match="Seed"):
            choose_initial_indices(10, 3, seed=seed)


class TestPreconditions:

    def test_k_larger_than_points_raises(self):
        points = _lab_points(n=3)
        with pytest.raises(InvalidConfigurationError, match="k cannot be larger"):
            kmeans(points, k=4, seed=1, distance=cie76_squared)

    @pytest.mark.parametrize("k", [0, -2])
    def test_non_positive_k_raises(self, k):
        with pytest.raises(InvalidConfigurationError, match="k must be positive"):
            kmeans(_lab_points(n=5), k=k, seed=1, distance=cie76_squared)

    def test_invalid_configuration_is_value_error(self):
        with pytest.raises(ValueError):
            kmeans(_lab_points(n=2), k=3, seed=1, distance=cie76_squared)


class TestClustering:

    def test_single_cluster_is_mean(self):
        points = _lab_points(seed=5, n=40)
        result = kmeans(points, k=1, seed=9, distance=cie94_squared)

        expected = np.mean([p.to_array() for p in points], axis=0)
        np.testing.assert_allclose(result.clusters[0].centroid.to_array(), expected, atol=1e-9)
        assert result.clusters[0].size == 40

    def test_sizes_sum_to_point_count(self):
        points = _lab_points(seed=2, n=50)
        result = kmeans(points, k=5, seed=3571, distance=cie2000_squared)
        assert sum(c.size for c in result.clusters) == 50
        assert len(result.clusters) == 5
        assert len(result.memberships) == 50

    def test_centroid_is_mean_of_members(self):
        points = _lab_points(seed=4, n=50)
        result = kmeans(points, k=3, seed=17, distance=cie76_squared)

        for j, cluster in enumerate(result.clusters):
            members = [p.to_array() for p, m in zip(points, result.memberships) if m == j]
            if members:
                np.testing.assert_allclose(
                    cluster.centroid.to_array(), np.mean(members, axis=0), atol=1e-9
                )

    @pytest.mark.parametrize("seed", [0, 1, 2, 3, 4])
    def test_flat_groups_separate(self, seed):
        result = kmeans(_two_flat_groups(), k=2, seed=seed, distance=cie76_squared)
        assert sorted(c.size for c in result.clusters) == [10, 10]
        lightness = sorted(c.centroid.v1 for c in result.clusters)
        assert lightness == pytest.approx([20.0, 80.0])

    def test_empty_cluster_keeps_initial_centroid(self):
        point = ColorVector(42.0, 1.0, -1.0)
        result = kmeans([point] * 5, k=2, seed=0, distance=cie76_squared)

        assert [c.size for c in result.clusters] == [5, 0]
        assert result.clusters[1].centroid == point

    def test_integer_components_give_float_centroids(self):
        points = [ColorVector(50, 10, 10)] * 3 + [ColorVector(20, 0, 0)] * 3
        result = kmeans(points, k=2, seed=3, distance=cie76_squared)
        for cluster in result.clusters:
            assert all(type(c) is float for c in cluster.centroid)

    def test_centroids_stay_lab(self):
        result = kmeans(_lab_points(n=20), k=3, seed=8, distance=cie76_squared)
        assert all(c.centroid.space is ColorSpace.LAB for c in result.clusters)


class TestDeterminism:

    @pytest.mark.parametrize("distance", [cie76_squared, cie94_squared, cie2000_squared])
    def test_same_seed_same_result(self, distance):
        points = _lab_points(seed=12, n=80)
        r1 = kmeans(points, k=4, seed=3571, distance=distance)
        r2 = kmeans(points, k=4, seed=3571, distance=distance)

        assert r1.memberships == r2.memberships
        assert r1.clusters == r2.clusters
        assert r1.iterations == r2.iterations


class TestConvergence:

    def test_stops_when_churn_repeats(self):
        """k=1: churn is n, then 0, then 0 again, so three passes."""
        result = kmeans(_lab_points(n=10), k=1, seed=0, distance=cie76_squared)
        assert result.iterations == 3

    def test_max_iterations_caps_and_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="colorvec.measure.kmeans"):
            result = kmeans(
                _lab_points(n=10), k=1, seed=0, distance=cie76_squared, max_iterations=1
            )
        assert result.iterations == 1
        assert "without converging" in caplog.text

    def test_invalid_max_iterations(self):
        with pytest.raises(InvalidConfigurationError, match="max_iterations"):
            kmeans(_lab_points(n=10), k=1, seed=0, distance=cie76_squared, max_iterations=0)


class TestGenericTypes:

    def test_custom_scalar_type(self):
        points = [Scalar(v) for v in (1.0, 1.1, 0.9, 10.0, 10.2, 9.8)]
        result = kmeans(points, k=2, seed=7, distance=_scalar_distance)

        assert sorted(c.size for c in result.clusters) == [3, 3]
        centers = sorted(c.centroid.value for c in result.clusters)
        assert centers == pytest.approx([1.0, 10.0])

    def test_numpy_rows_with_explicit_identity(self):
        vectors = _lab_points(seed=21, n=30)
        arrays = [v.to_array() for v in vectors]

        from_vectors = kmeans(vectors, k=3, seed=5, distance=cie76_squared)
        from_arrays = kmeans(
            arrays, k=3, seed=5, distance=cie76_squared, identity=np.zeros(3)
        )

        assert from_vectors.memberships == from_arrays.memberships
        for cv, ca in zip(from_vectors.clusters, from_arrays.clusters):
            np.testing.assert_allclose(cv.centroid.to_array(), ca.centroid, atol=1e-9)
