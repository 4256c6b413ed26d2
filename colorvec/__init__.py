# Copyright (c) 2026 Colorvec
# SPDX-License-Identifier: MIT

"""
Colorvec -- Dominant-color feature vectors for image classifiers.

Samples an image's opaque pixels, clusters them in CIE LAB with a seeded
k-means and a perceptual ΔE metric, and turns the ranked clusters into the
fixed-length vector a color classifier consumes.

Quick start::

    from colorvec import analyze, FeatureNormalizer

    normalizer = FeatureNormalizer.from_files("scales.txt", "mins.txt")
    result = analyze("rock.jpg", normalizer)
    result.colors      # Dominant colors, most dominant first
    result.features    # 4 x k normalized feature vector
    result.to_json()   # Compact JSON
"""

from __future__ import annotations

__version__ = "1.0.0"

from colorvec.errors import ColorVecError, InvalidConfigurationError, NoSamplesError
from colorvec.measure import (
    ExtractionConfig,
    FeatureNormalizer,
    LabConversionCache,
    analyze,
    dominant_colors,
    extract_features,
    pixels_from_accessor,
)
from colorvec.schema import (
    Accuracy,
    ColorAnalysis,
    ColorSpace,
    ColorVector,
    DominantColor,
    FeatureVector,
)

__all__ = [
    # Core API
    "analyze",
    "dominant_colors",
    "extract_features",
    "ExtractionConfig",
    "FeatureNormalizer",
    "LabConversionCache",
    "pixels_from_accessor",
    # Types (commonly needed)
    "Accuracy",
    "ColorAnalysis",
    "ColorSpace",
    "ColorVector",
    "DominantColor",
    "FeatureVector",
    # Errors
    "ColorVecError",
    "InvalidConfigurationError",
    "NoSamplesError",
    # Version
    "__version__",
]
