# Copyright (c) 2026 Colorvec
# SPDX-License-Identifier: MIT

"""
Main extraction API.

This is the primary entry point for colorvec: image in, ranked dominant
colors and (optionally) the normalized classifier feature vector out.

Pipeline:
    pixels → opaque samples → LAB → seeded k-means → ranking → features
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from numbers import Real
from pathlib import Path
from typing import Optional, Union

import numpy as np
from numpy.typing import NDArray
from PIL import Image, ImageCms

from colorvec.errors import InvalidConfigurationError, NoSamplesError
from colorvec.schema import (
    Accuracy,
    ColorAnalysis,
    ColorVector,
    DominantColor,
    FeatureVector,
)
from colorvec.measure.colorspace import LabConversionCache, pixels_to_lab
from colorvec.measure.distance import batch_distance_for_accuracy, distance_for_accuracy
from colorvec.measure.features import FeatureNormalizer
from colorvec.measure.kmeans import (
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_THRESHOLD,
    kmeans,
    memberships_array,
)
from colorvec.measure.ranking import rank_clusters, ranked_indices
from colorvec.measure.sampling import as_rgba, sample_pixels


logger = logging.getLogger(__name__)

ImageInput = Union[str, Path, Image.Image, NDArray[np.uint8]]

UNBOUNDED = "unbounded"


@dataclass(frozen=True)
class ExtractionConfig:
    """Configuration for one extraction run."""

    # Number of dominant colors (k)
    n_clusters: int = 4

    # Distance metric tier used to group similar colors
    accuracy: Accuracy = Accuracy.MEDIUM

    # Seed for choosing the initial centroids. The same seed always
    # returns the same colors for the same image.
    seed: int = 3571

    # Images with more pixels are resized to fit; None = no downsampling
    max_sampled_pixels: Optional[int] = 1000

    # Cache RGB → LAB conversions per call. Only pays off for large
    # budgets on images made mostly of flat colors.
    memoize_conversions: bool = False

    # k-means stopping rule: churn delta between iterations
    threshold: float = DEFAULT_THRESHOLD
    max_iterations: int = DEFAULT_MAX_ITERATIONS

    def __post_init__(self) -> None:
        """Normalize the accuracy tier and validate types and ranges."""
        try:
            object.__setattr__(self, "accuracy", Accuracy(self.accuracy))
        except ValueError as e:
            raise InvalidConfigurationError(
                f"accuracy must be one of low/medium/high, got {self.accuracy!r}"
            ) from e

        for name in ("n_clusters", "seed", "max_sampled_pixels", "max_iterations"):
            value = getattr(self, name)
            if value is None and name == "max_sampled_pixels":
                continue
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                raise InvalidConfigurationError(
                    f"{name} must be an integer, got {value!r}"
                )
            object.__setattr__(self, name, int(value))
        if isinstance(self.threshold, bool) or not isinstance(self.threshold, Real):
            raise InvalidConfigurationError(
                f"threshold must be a number, got {self.threshold!r}"
            )
        if not isinstance(self.memoize_conversions, bool):
            raise InvalidConfigurationError(
                f"memoize_conversions must be a bool, got {self.memoize_conversions!r}"
            )

        if self.n_clusters <= 0:
            raise InvalidConfigurationError(
                f"n_clusters must be positive, got {self.n_clusters}"
            )
        if not 0 <= self.seed < 2 ** 64:
            raise InvalidConfigurationError(
                f"seed must be an unsigned 64-bit integer, got {self.seed}"
            )
        if self.max_sampled_pixels is not None and self.max_sampled_pixels <= 0:
            raise InvalidConfigurationError(
                f"max_sampled_pixels must be positive or None, got {self.max_sampled_pixels}"
            )
        if self.threshold < 0:
            raise InvalidConfigurationError(
                f"threshold must be >= 0, got {self.threshold}"
            )
        if self.max_iterations <= 0:
            raise InvalidConfigurationError(
                f"max_iterations must be positive, got {self.max_iterations}"
            )

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {
            "n_clusters": self.n_clusters,
            "accuracy": self.accuracy.value,
            "seed": self.seed,
            "max_sampled_pixels": self.max_sampled_pixels,
            "memoize_conversions": self.memoize_conversions,
            "threshold": self.threshold,
            "max_iterations": self.max_iterations,
        }

    @classmethod
    def from_dict(cls, data: dict) -> ExtractionConfig:
        """
        Build from a plain mapping (e.g. parsed JSON). Missing keys take
        their defaults; unknown keys are rejected. ``max_sampled_pixels``
        may be given as ``"unbounded"`` for no downsampling.
        """
        unknown = set(data) - set(cls.__dataclass_fields__)
        if unknown:
            raise InvalidConfigurationError(
                f"Unknown configuration keys: {sorted(unknown)}"
            )
        data = dict(data)
        if data.get("max_sampled_pixels") == UNBOUNDED:
            data["max_sampled_pixels"] = None
        return cls(**data)


def analyze(
    image: ImageInput,
    normalizer: Optional[FeatureNormalizer] = None,
    config: Optional[ExtractionConfig] = None,
    *,
    cache: Optional[LabConversionCache] = None,
) -> ColorAnalysis:
    """
    Extract the dominant colors of an image.

    Args:
        image: One of:
            - Path to image file (str or Path). Embedded ICC profiles are
              converted to sRGB.
            - PIL Image
            - NumPy array of shape (H, W, 4) RGBA or (H, W, 3) RGB, uint8.
              RGB arrays are treated as fully opaque. Build one from a
              per-pixel accessor with ``pixels_from_accessor``.
        normalizer: When given, the ranked colors are also turned into the
            classifier feature vector.
        config: Extraction settings (defaults if None; when only a
            normalizer is given, k is taken from it)
        cache: Explicit RGB → LAB memoization cache to reuse across calls.
            When None and ``config.memoize_conversions`` is set, a fresh
            cache is used for this call only.

    Returns:
        ColorAnalysis with colors ordered most dominant first.

    Raises:
        NoSamplesError: zero-area image or no fully opaque pixels
        InvalidConfigurationError: k exceeds the number of samples, or the
            normalizer does not match k

    Example:
        >>> from colorvec import analyze
        >>> result = analyze("rock.jpg")
        >>> result.dominant.hex
        '#7A6B5C'
    """
    if config is None:
        config = (
            ExtractionConfig(n_clusters=normalizer.n_clusters)
            if normalizer is not None else ExtractionConfig()
        )
    if normalizer is not None and normalizer.n_clusters != config.n_clusters:
        raise InvalidConfigurationError(
            f"Normalizer is fitted for {normalizer.n_clusters} clusters, "
            f"config requests {config.n_clusters}"
        )

    pixels = _load_image(image)
    samples = sample_pixels(pixels, config.max_sampled_pixels)
    if len(samples) == 0:
        raise NoSamplesError(
            f"No fully opaque pixels in {pixels.shape[1]}x{pixels.shape[0]} image"
        )

    if cache is None and config.memoize_conversions:
        cache = LabConversionCache()
    lab = pixels_to_lab(samples, cache)
    points = [ColorVector.from_array(row) for row in lab]

    result = kmeans(
        points,
        k=config.n_clusters,
        seed=config.seed,
        distance=distance_for_accuracy(config.accuracy),
        identity=ColorVector.identity(),
        threshold=config.threshold,
        max_iterations=config.max_iterations,
    )
    logger.debug(
        "Clustered %d samples into %d clusters in %d iterations",
        len(points), config.n_clusters, result.iterations,
    )

    memberships = memberships_array(result)
    batch_distance = batch_distance_for_accuracy(config.accuracy)
    ranked = zip(ranked_indices(result.clusters), rank_clusters(result.clusters))

    colors = tuple(
        DominantColor(
            lab=cluster.centroid,
            proportion=proportion,
            count=cluster.size,
            sample_rgb=_nearest_sample(
                cluster.centroid,
                lab,
                samples,
                memberships == index,
                batch_distance,
            ),
        )
        for index, (cluster, proportion) in ranked
    )

    features = normalizer.transform(colors) if normalizer is not None else None

    return ColorAnalysis(
        colors=colors,
        sample_count=len(samples),
        accuracy=config.accuracy,
        seed=config.seed,
        features=features,
    )


def dominant_colors(
    image: ImageInput,
    config: Optional[ExtractionConfig] = None,
    *,
    cache: Optional[LabConversionCache] = None,
) -> tuple[DominantColor, ...]:
    """Dominant colors of an image, most dominant first. See ``analyze``."""
    return analyze(image, config=config, cache=cache).colors


def extract_features(
    image: ImageInput,
    normalizer: FeatureNormalizer,
    config: Optional[ExtractionConfig] = None,
    *,
    cache: Optional[LabConversionCache] = None,
) -> FeatureVector:
    """
    Normalized classifier input for an image (length 4 x k).

    Example:
        >>> normalizer = FeatureNormalizer.from_files("scales.txt", "mins.txt")
        >>> features = extract_features("rock.jpg", normalizer)
        >>> features.to_array()  # copy into the model's input tensor
    """
    return analyze(image, normalizer, config, cache=cache).features


def _nearest_sample(
    centroid: ColorVector,
    lab: NDArray[np.float64],
    samples: NDArray[np.uint8],
    mask: NDArray[np.bool_],
    batch_distance,
) -> Optional[tuple[int, int, int]]:
    """
    Find the real sampled pixel nearest to a centroid within its cluster.

    Returns None for an empty cluster.
    """
    if not mask.any():
        return None
    distances = batch_distance(lab[mask], centroid.to_array())
    r, g, b = samples[mask][int(np.argmin(distances))]
    return int(r), int(g), int(b)


def _load_image(image: ImageInput) -> NDArray[np.uint8]:
    """
    Load image from file, PIL image or array as an (H, W, 4) RGBA buffer.

    Applies ICC profile conversion to sRGB if the image has an embedded
    color profile, keeping the alpha channel untouched.
    """
    if isinstance(image, (str, Path)):
        with Image.open(image) as img:
            return _pil_to_rgba(img)
    if isinstance(image, Image.Image):
        return _pil_to_rgba(image)
    if isinstance(image, np.ndarray):
        return as_rgba(image)
    raise TypeError(
        f"Expected file path, PIL image or numpy array, got {type(image)}"
    )


def _pil_to_rgba(img: Image.Image) -> NDArray[np.uint8]:
    rgba = img.convert("RGBA")

    if "icc_profile" in img.info:
        alpha = rgba.getchannel("A")
        try:
            embedded_profile = ImageCms.ImageCmsProfile(io.BytesIO(img.info["icc_profile"]))
            srgb_profile = ImageCms.createProfile("sRGB")
            rgb = ImageCms.profileToProfile(
                rgba.convert("RGB"), embedded_profile, srgb_profile
            )
        except ImageCms.PyCMSError as e:
            logger.warning("ICC profile conversion failed, using raw pixels: %s", e)
        else:
            rgb.putalpha(alpha)
            rgba = rgb

    return np.array(rgba, dtype=np.uint8)
