# Copyright (c) 2026 Colorvec
# SPDX-License-Identifier: MIT

"""
Extraction core for colorvec.

Deterministic dominant-color extraction from image pixels. All operations
are synchronous, pixel-based and free of shared state between calls.
"""

from colorvec.measure.colorspace import LabConversionCache
from colorvec.measure.extract import (
    ExtractionConfig,
    analyze,
    dominant_colors,
    extract_features,
)
from colorvec.measure.features import FeatureNormalizer, load_affine_vector
from colorvec.measure.kmeans import KMeansResult, kmeans
from colorvec.measure.sampling import pixels_from_accessor, sample_pixels

__all__ = [
    "analyze",
    "dominant_colors",
    "extract_features",
    "ExtractionConfig",
    "FeatureNormalizer",
    "load_affine_vector",
    "LabConversionCache",
    "kmeans",
    "KMeansResult",
    "pixels_from_accessor",
    "sample_pixels",
]
