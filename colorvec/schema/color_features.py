# Copyright (c) 2026 Colorvec
# SPDX-License-Identifier: MIT

"""
Schema for dominant-color extraction results.

Design principles:
- Immutable: All types are frozen dataclasses
- Deterministic: Same input, k, metric and seed → same result
- Explicit color spaces: every ColorVector carries the representation it is
  expressed in, and arithmetic between representations is refused
- Serializable: JSON-ready for handing to the host application

CIE LAB (D65):
- L (Lightness): 0 = black, 100 = white
- a: green (-) ↔ red (+)
- b: blue (-) ↔ yellow (+)
Centroids produced by clustering are means of LAB points and may fall
slightly outside the sRGB gamut; they are stored as-is.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Generic, Iterator, Optional, TypeVar

import numpy as np
from numpy.typing import NDArray


SCHEMA_VERSION = "1.0"

T = TypeVar("T")

# Proportions of one run must sum to 1.0 within this tolerance
PROPORTION_TOLERANCE = 1e-5


# =============================================================================
# Enums
# =============================================================================


class ColorSpace(Enum):
    """Representation a ColorVector is expressed in."""
    SRGB = "srgb"              # gamma-encoded, [0, 1] per channel
    LINEAR_RGB = "linear_rgb"  # gamma-decoded, [0, 1] per channel
    XYZ = "xyz"                # CIE 1931 XYZ, scaled x100
    LAB = "lab"                # CIE LAB relative to D65


class Accuracy(Enum):
    """
    Level of accuracy used when grouping similar colors.

    Higher accuracy comes with a performance cost.
    """
    LOW = "low"        # CIE76 - Euclidean distance
    MEDIUM = "medium"  # CIE94 - perceptual non-uniformity corrections
    HIGH = "high"      # CIE2000 - corrections for neutrals, lightness, chroma and hue


# =============================================================================
# Core Vector Type
# =============================================================================


@dataclass(frozen=True, slots=True)
class ColorVector:
    """
    Three floating-point color components in a declared color space.

    Supports the operations k-means needs to average members into a
    centroid: addition, division by an integer count and an identity
    (zero) value.

    Attributes:
        v1, v2, v3: Components (R/G/B, X/Y/Z or L/a/b depending on space)
        space: The representation the components are expressed in
    """
    v1: float
    v2: float
    v3: float
    space: ColorSpace = ColorSpace.LAB

    def __post_init__(self) -> None:
        object.__setattr__(self, "v1", float(self.v1))
        object.__setattr__(self, "v2", float(self.v2))
        object.__setattr__(self, "v3", float(self.v3))

    def __add__(self, other: ColorVector) -> ColorVector:
        if not isinstance(other, ColorVector):
            return NotImplemented
        if other.space is not self.space:
            raise ValueError(
                f"Cannot add {other.space.value} vector to {self.space.value} vector"
            )
        return ColorVector(
            self.v1 + other.v1,
            self.v2 + other.v2,
            self.v3 + other.v3,
            self.space,
        )

    def __truediv__(self, count: int) -> ColorVector:
        return ColorVector(
            self.v1 / count,
            self.v2 / count,
            self.v3 / count,
            self.space,
        )

    def __iter__(self) -> Iterator[float]:
        yield self.v1
        yield self.v2
        yield self.v3

    @classmethod
    def identity(cls, space: ColorSpace = ColorSpace.LAB) -> ColorVector:
        """Zero vector such that ``x + identity == x``."""
        return cls(0.0, 0.0, 0.0, space)

    @classmethod
    def from_array(
        cls,
        values: NDArray[np.float64],
        space: ColorSpace = ColorSpace.LAB,
    ) -> ColorVector:
        """Build from a length-3 array."""
        return cls(float(values[0]), float(values[1]), float(values[2]), space)

    def to_array(self) -> NDArray[np.float64]:
        return np.array([self.v1, self.v2, self.v3], dtype=np.float64)

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {"space": self.space.value, "values": [self.v1, self.v2, self.v3]}

    @classmethod
    def from_dict(cls, data: dict) -> ColorVector:
        """Deserialize from dictionary."""
        v1, v2, v3 = data["values"]
        return cls(float(v1), float(v2), float(v3), ColorSpace(data["space"]))


# =============================================================================
# Clustering Results
# =============================================================================


@dataclass(frozen=True, slots=True)
class Cluster(Generic[T]):
    """
    One k-means cluster.

    Attributes:
        centroid: Mean of the cluster's members (LAB for the color pipeline)
        size: Number of member points (may be 0 if a centroid attracted
              no points in the final assignment)
    """
    centroid: T
    size: int

    def __post_init__(self) -> None:
        if self.size < 0:
            raise ValueError(f"Cluster size must be >= 0, got {self.size}")


@dataclass(frozen=True, slots=True)
class DominantColor:
    """
    A cluster centroid paired with the share of sampled pixels it covers.

    Attributes:
        lab: Centroid in CIE LAB
        proportion: count / total sampled pixels, in [0, 1]
        count: Number of sampled pixels assigned to the cluster
        sample_rgb: Optional 8-bit sRGB value of the real sampled pixel
            nearest to the centroid. The centroid is an average and need
            not correspond to any pixel in the image.
    """
    lab: ColorVector
    proportion: float
    count: int
    sample_rgb: Optional[tuple[int, int, int]] = None

    def __post_init__(self) -> None:
        if self.lab.space is not ColorSpace.LAB:
            raise ValueError(f"Dominant color must be LAB, got {self.lab.space.value}")
        if not 0.0 <= self.proportion <= 1.0:
            raise ValueError(f"Proportion must be 0-1, got {self.proportion}")
        if self.count < 0:
            raise ValueError(f"Count must be >= 0, got {self.count}")

    @property
    def rgb(self) -> ColorVector:
        """Centroid converted back to sRGB [0, 1] (not clipped)."""
        from colorvec.measure.colorspace import lab_to_srgb
        return ColorVector.from_array(lab_to_srgb(self.lab.to_array()), ColorSpace.SRGB)

    @property
    def hex(self) -> str:
        """Hex string of the centroid, clipped into the sRGB gamut."""
        from colorvec.measure.colorspace import lab_to_hex
        return lab_to_hex(self.lab.to_array())

    @property
    def sample_hex(self) -> Optional[str]:
        if self.sample_rgb is None:
            return None
        r, g, b = self.sample_rgb
        return f"#{r:02X}{g:02X}{b:02X}"

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        d = {
            "lab": [self.lab.v1, self.lab.v2, self.lab.v3],
            "proportion": self.proportion,
            "count": self.count,
            "hex": self.hex,
        }
        if self.sample_rgb is not None:
            d["sample_rgb"] = list(self.sample_rgb)
        return d

    @classmethod
    def from_dict(cls, data: dict) -> DominantColor:
        """Deserialize from dictionary."""
        L, a, b = data["lab"]
        sample = data.get("sample_rgb")
        return cls(
            lab=ColorVector(float(L), float(a), float(b), ColorSpace.LAB),
            proportion=data["proportion"],
            count=data["count"],
            sample_rgb=tuple(int(c) for c in sample) if sample is not None else None,
        )


# =============================================================================
# Classifier Input
# =============================================================================


@dataclass(frozen=True, slots=True)
class FeatureVector:
    """
    Normalized classifier input.

    Layout: for each ranked cluster, (L, a, b, proportion), so the length
    is always 4 x k.
    """
    values: tuple[float, ...]

    def __len__(self) -> int:
        return len(self.values)

    def __iter__(self) -> Iterator[float]:
        return iter(self.values)

    def __getitem__(self, index: int) -> float:
        return self.values[index]

    def to_array(self, dtype=np.float32) -> NDArray:
        """Array form ready to copy into a model input tensor."""
        return np.asarray(self.values, dtype=dtype)

    def to_list(self) -> list[float]:
        return list(self.values)


# =============================================================================
# Top-Level Container
# =============================================================================


@dataclass(frozen=True, slots=True)
class ColorAnalysis:
    """
    Result of one extraction run.

    Attributes:
        colors: Dominant colors, most dominant first
        sample_count: Number of opaque pixels that were clustered
        accuracy: Distance metric tier used for grouping
        seed: Seed used for initial centroid selection
        features: Normalized feature vector, when a normalizer was supplied
        version: Schema version
    """
    colors: tuple[DominantColor, ...]
    sample_count: int
    accuracy: Accuracy
    seed: int
    features: Optional[FeatureVector] = None
    version: str = SCHEMA_VERSION

    def __post_init__(self) -> None:
        """Validate that the run accounts for every sampled pixel."""
        if not self.colors:
            raise ValueError("colors cannot be empty")
        total = sum(c.proportion for c in self.colors)
        if abs(total - 1.0) > PROPORTION_TOLERANCE:
            raise ValueError(f"Proportions must sum to 1.0, got {total:.6f}")
        counted = sum(c.count for c in self.colors)
        if counted != self.sample_count:
            raise ValueError(
                f"Cluster counts sum to {counted}, expected {self.sample_count}"
            )

    @property
    def dominant(self) -> DominantColor:
        """The most dominant color (convenience accessor)."""
        return self.colors[0]

    @property
    def n_clusters(self) -> int:
        return len(self.colors)

    def to_dict(self) -> dict:
        """Serialize to dictionary for JSON output."""
        result = {
            "version": self.version,
            "colors": [c.to_dict() for c in self.colors],
            "sample_count": self.sample_count,
            "accuracy": self.accuracy.value,
            "seed": self.seed,
        }
        if self.features is not None:
            result["features"] = self.features.to_list()
        return result

    def to_json(self, indent: Optional[int] = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: dict) -> ColorAnalysis:
        """Deserialize from dictionary."""
        features = data.get("features")
        return cls(
            version=data.get("version", SCHEMA_VERSION),
            colors=tuple(DominantColor.from_dict(c) for c in data["colors"]),
            sample_count=data["sample_count"],
            accuracy=Accuracy(data["accuracy"]),
            seed=data["seed"],
            features=(
                FeatureVector(tuple(float(v) for v in features))
                if features is not None else None
            ),
        )

    @classmethod
    def from_json(cls, json_str: str) -> ColorAnalysis:
        """Deserialize from JSON string."""
        return cls.from_dict(json.loads(json_str))
