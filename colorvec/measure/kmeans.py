# Copyright (c) 2026 Colorvec
# SPDX-License-Identifier: MIT

"""
Seeded k-means clustering over any averageable vector type.

Based on the k-means description at
http://users.eecs.northwestern.edu/~wkliao/Kmeans/

Initial centroids are k distinct input points chosen by a partial
Fisher–Yates shuffle driven by NumPy's PCG64 bit generator. Only the raw
64-bit output stream of the bit generator is consumed, and that stream is
fixed for a given seed, so the same (seed, n, k) always selects the same
indices regardless of NumPy's higher-level sampling routines.

Stopping rule: each iteration counts how many points changed cluster
(churn). The loop stops once the churn of two consecutive iterations
differs by no more than ``threshold``. This is not the
sum-of-squared-error criterion. It fixes the iteration count and so
the exact output for a given seed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Generic, Optional, Protocol, Sequence, TypeVar

import numpy as np
from numpy.typing import NDArray

from colorvec.errors import InvalidConfigurationError
from colorvec.schema import Cluster


logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.0001
DEFAULT_MAX_ITERATIONS = 100

_SEED_LIMIT = 2 ** 64


class ClusteredType(Protocol):
    """
    A type that can be clustered with k-means.

    Centroids are computed as ``sum(members, identity) / len(members)``.
    """

    def __add__(self, other): ...

    def __truediv__(self, count: int): ...

    @classmethod
    def identity(cls): ...


T = TypeVar("T", bound=ClusteredType)


@dataclass(frozen=True, slots=True)
class KMeansResult(Generic[T]):
    """
    Outcome of one k-means run.

    Attributes:
        clusters: One Cluster per initial centroid, in seed-selection order
        memberships: Cluster index assigned to each input point
        iterations: Number of assignment passes performed
    """
    clusters: tuple[Cluster[T], ...]
    memberships: tuple[int, ...]
    iterations: int


def choose_initial_indices(n: int, k: int, seed: int) -> list[int]:
    """
    Choose k distinct indices from range(n) without replacement.

    Partial Fisher–Yates: for position i in [0, k), swap it with a position
    drawn uniformly (modulo reduction of a raw 64-bit draw) from [i, n).
    """
    if not 0 <= seed < _SEED_LIMIT:
        raise InvalidConfigurationError(f"Seed must be an unsigned 64-bit integer, got {seed}")
    if not 0 <= k <= n:
        raise InvalidConfigurationError(f"Cannot choose {k} distinct indices from {n}")

    bit_generator = np.random.PCG64(seed)
    pool = list(range(n))
    for i in range(k):
        span = n - i
        j = i + int(bit_generator.random_raw()) % span
        pool[i], pool[j] = pool[j], pool[i]
    return pool[:k]


def _nearest_cluster(
    point: T,
    centroids: list[T],
    distance: Callable[[T, T], float],
) -> int:
    # Strict comparison: ties go to the lowest cluster index
    min_distance = float("inf")
    cluster_index = 0
    for i, centroid in enumerate(centroids):
        d = distance(point, centroid)
        if d < min_distance:
            min_distance = d
            cluster_index = i
    return cluster_index


def kmeans(
    points: Sequence[T],
    k: int,
    seed: int,
    distance: Callable[[T, T], float],
    *,
    identity: Optional[T] = None,
    threshold: float = DEFAULT_THRESHOLD,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> KMeansResult[T]:
    """
    Cluster ``points`` into ``k`` groups.

    Args:
        points: Input vectors; any type supporting ``+``, ``/ int`` and an
            identity value
        k: Number of clusters; must satisfy 1 <= k <= len(points)
        seed: Unsigned 64-bit seed for initial centroid selection
        distance: Squared distance ``distance(point, centroid)``
        identity: Zero value for accumulating sums. Defaults to
            ``type(points[0]).identity()``.
        threshold: Churn-delta convergence threshold
        max_iterations: Upper bound on assignment passes

    Returns:
        KMeansResult with k clusters. A centroid that attracts no points in
        an iteration keeps its previous value, so clusters of size 0 are
        possible when the input has fewer distinct values than k.

    Raises:
        InvalidConfigurationError: k <= 0 or k > len(points)
    """
    n = len(points)
    if k <= 0:
        raise InvalidConfigurationError(f"k must be positive, got {k}")
    if k > n:
        raise InvalidConfigurationError(
            f"k cannot be larger than the number of points (k={k}, points={n})"
        )
    if max_iterations <= 0:
        raise InvalidConfigurationError(f"max_iterations must be positive, got {max_iterations}")

    if identity is None:
        identity = type(points[0]).identity()

    centroids = [points[i] for i in choose_initial_indices(n, k, seed)]
    memberships = [-1] * n
    cluster_sizes = [0] * k

    previous_changes = 0
    iterations = 0

    while True:
        changes = 0
        sums = [identity] * k
        sizes = [0] * k

        for i, point in enumerate(points):
            cluster_index = _nearest_cluster(point, centroids, distance)
            if memberships[i] != cluster_index:
                changes += 1
                memberships[i] = cluster_index
            sizes[cluster_index] += 1
            sums[cluster_index] = sums[cluster_index] + point

        for j in range(k):
            if sizes[j] > 0:
                centroids[j] = sums[j] / sizes[j]

        cluster_sizes = sizes
        iterations += 1
        logger.debug("k-means iteration %d: %d membership changes", iterations, changes)

        if abs(changes - previous_changes) <= threshold:
            break
        if iterations >= max_iterations:
            logger.warning(
                "k-means stopped after %d iterations without converging "
                "(last churn %d, previous %d)",
                iterations, changes, previous_changes,
            )
            break
        previous_changes = changes

    clusters = tuple(
        Cluster(centroid=c, size=s) for c, s in zip(centroids, cluster_sizes)
    )
    return KMeansResult(
        clusters=clusters,
        memberships=tuple(memberships),
        iterations=iterations,
    )


def memberships_array(result: KMeansResult) -> NDArray[np.int64]:
    """Memberships as an int array, for mask-based lookups."""
    return np.asarray(result.memberships, dtype=np.int64)
