# Copyright (c) 2026 Colorvec
# SPDX-License-Identifier: MIT

"""
Schema definitions for dominant-color extraction.

All types in this module are immutable (frozen dataclasses).
"""

from colorvec.schema.color_features import (
    PROPORTION_TOLERANCE,
    SCHEMA_VERSION,
    Accuracy,
    Cluster,
    ColorAnalysis,
    ColorSpace,
    ColorVector,
    DominantColor,
    FeatureVector,
)

__all__ = [
    # Version
    "SCHEMA_VERSION",
    "PROPORTION_TOLERANCE",
    # Color types
    "ColorSpace",
    "ColorVector",
    # Clustering
    "Accuracy",
    "Cluster",
    "DominantColor",
    # Classifier input
    "FeatureVector",
    # Top-level container
    "ColorAnalysis",
]
