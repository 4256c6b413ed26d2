# Copyright (c) 2026 Colorvec
# SPDX-License-Identifier: MIT

"""
Feature normalization for the downstream classifier.

Ranked dominant colors are flattened into (L, a, b, proportion) per cluster
and passed through a position-wise affine transform::

    output[i] = raw[i] * scale[i] + offset[i]

The scale/offset pair is learned offline. It has the same form as
scikit-learn's MinMaxScaler export (``scale_`` and ``min_``), shipped as two
newline-delimited text files with one number per line.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence, Union

import numpy as np
from numpy.typing import NDArray

from colorvec.errors import InvalidConfigurationError
from colorvec.schema import DominantColor, FeatureVector


logger = logging.getLogger(__name__)

FEATURES_PER_CLUSTER = 4


def parse_affine_vector(text: str) -> NDArray[np.float64]:
    """
    Parse newline-delimited numbers. Blank lines are ignored.

    Raises:
        InvalidConfigurationError: a non-blank line is not a number
    """
    values = []
    for line_no, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            values.append(float(line))
        except ValueError as e:
            raise InvalidConfigurationError(
                f"Line {line_no}: expected a number, got {line!r}"
            ) from e
    return np.array(values, dtype=np.float64)


def load_affine_vector(path: Union[str, Path]) -> NDArray[np.float64]:
    """Read a newline-delimited scale or offset file."""
    path = Path(path)
    values = parse_affine_vector(path.read_text(encoding="utf-8"))
    logger.debug("Loaded %d values from %s", len(values), path)
    return values


def flatten_colors(colors: Sequence[DominantColor]) -> NDArray[np.float64]:
    """Concatenate (L, a, b, proportion) for each color, in the given order."""
    raw = np.empty(len(colors) * FEATURES_PER_CLUSTER, dtype=np.float64)
    for i, color in enumerate(colors):
        base = i * FEATURES_PER_CLUSTER
        raw[base:base + 3] = color.lab.to_array()
        raw[base + 3] = color.proportion
    return raw


class FeatureNormalizer:
    """
    Position-wise affine transform from ranked colors to classifier input.

    Args:
        scale: Per-feature multipliers, length 4 x k
        offset: Per-feature offsets, same length as scale

    Raises:
        InvalidConfigurationError: scale and offset differ in length, are
            empty, or are not a whole number of clusters long
    """

    def __init__(
        self,
        scale: Sequence[float] | NDArray[np.float64],
        offset: Sequence[float] | NDArray[np.float64],
    ) -> None:
        self.scale = np.asarray(scale, dtype=np.float64).reshape(-1)
        self.offset = np.asarray(offset, dtype=np.float64).reshape(-1)

        if len(self.scale) != len(self.offset):
            raise InvalidConfigurationError(
                f"scale has {len(self.scale)} values but offset has {len(self.offset)}"
            )
        if len(self.scale) == 0 or len(self.scale) % FEATURES_PER_CLUSTER:
            raise InvalidConfigurationError(
                f"scale/offset length must be a positive multiple of "
                f"{FEATURES_PER_CLUSTER}, got {len(self.scale)}"
            )

    @classmethod
    def from_files(
        cls,
        scale_path: Union[str, Path],
        offset_path: Union[str, Path],
    ) -> FeatureNormalizer:
        """Load scale and offset from newline-delimited text files."""
        return cls(load_affine_vector(scale_path), load_affine_vector(offset_path))

    def __len__(self) -> int:
        return len(self.scale)

    @property
    def n_clusters(self) -> int:
        """Number of clusters k this normalizer was fitted for."""
        return len(self.scale) // FEATURES_PER_CLUSTER

    def transform(self, colors: Sequence[DominantColor]) -> FeatureVector:
        """
        Flatten ranked colors and apply the affine transform.

        Raises:
            InvalidConfigurationError: ``4 * len(colors)`` differs from the
                normalizer length
        """
        raw = flatten_colors(colors)
        if len(raw) != len(self.scale):
            raise InvalidConfigurationError(
                f"Normalizer expects {len(self.scale)} features "
                f"({self.n_clusters} clusters), got {len(raw)} "
                f"({len(colors)} clusters)"
            )
        return FeatureVector(tuple(float(v) for v in raw * self.scale + self.offset))
