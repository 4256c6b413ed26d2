# Copyright (c) 2026 Colorvec
# SPDX-License-Identifier: MIT

"""
Cluster ranking.

Orders clusters from most to least populous and attaches each cluster's
share of the sampled pixels.
"""

from __future__ import annotations

from typing import Sequence, TypeVar

from colorvec.errors import NoSamplesError
from colorvec.schema import Cluster


T = TypeVar("T")


def ranked_indices(clusters: Sequence[Cluster[T]]) -> tuple[int, ...]:
    """
    Positions of ``clusters`` ordered most populous first.

    The sort is stable, so equally sized clusters keep their k-means order.
    """
    return tuple(sorted(range(len(clusters)), key=lambda i: clusters[i].size, reverse=True))


def rank_clusters(
    clusters: Sequence[Cluster[T]],
) -> tuple[tuple[Cluster[T], float], ...]:
    """
    Sort clusters by size, most populous first, and compute proportions.

    Proportions are ``size / total`` where total is the summed size of all
    clusters (every sampled point belongs to exactly one cluster). See
    ``ranked_indices`` for the ordering.

    Returns:
        Tuple of (cluster, proportion) pairs, proportions summing to 1.0.

    Raises:
        NoSamplesError: the clusters hold no points at all
    """
    total = sum(c.size for c in clusters)
    if total == 0:
        raise NoSamplesError("Cannot rank clusters with no members")

    return tuple(
        (clusters[i], clusters[i].size / total) for i in ranked_indices(clusters)
    )
