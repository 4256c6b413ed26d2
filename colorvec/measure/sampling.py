# Copyright (c) 2026 Colorvec
# SPDX-License-Identifier: MIT

"""
Pixel sampling.

Turns an RGBA pixel buffer into the flat list of fully opaque RGB samples
that get clustered. Buffers larger than the pixel budget are resized first,
preserving the aspect ratio, so the cost of clustering stays bounded.
"""

from __future__ import annotations

import logging
import math
from typing import Callable, Optional

import numpy as np
from numpy.typing import NDArray
from PIL import Image

from colorvec.errors import InvalidConfigurationError


logger = logging.getLogger(__name__)

OPAQUE = 255

PixelAccessor = Callable[[int, int], tuple[int, int, int, int]]


def scaled_dimensions(
    width: int,
    height: int,
    max_pixels: Optional[int],
) -> tuple[int, int]:
    """
    Compute dimensions that fit within ``max_pixels`` at the same aspect ratio.

    If ``width * height`` is within the budget (or there is no budget) the
    dimensions are returned unchanged. Otherwise::

        aspect = width / height
        scaled_width = floor(sqrt(aspect * max_pixels))
        scaled_height = floor(max_pixels / sqrt(aspect * max_pixels))

    Each side is kept at least 1 pixel; for extreme aspect ratios the long
    side is then reduced so the product still respects the budget.
    """
    if max_pixels is None or width * height <= max_pixels:
        return width, height
    if max_pixels <= 0:
        raise InvalidConfigurationError(f"max_pixels must be positive, got {max_pixels}")

    aspect = width / height
    exact_width = math.sqrt(aspect * max_pixels)
    scaled_width = max(1, int(exact_width))
    scaled_height = max(1, int(max_pixels / exact_width))

    if scaled_width * scaled_height > max_pixels:
        if scaled_width == 1:
            scaled_height = max_pixels
        else:
            scaled_width = max_pixels // scaled_height
    return scaled_width, scaled_height


def downsample(
    pixels: NDArray[np.uint8],
    new_width: int,
    new_height: int,
) -> NDArray[np.uint8]:
    """Resize an (H, W, 4) RGBA buffer using PIL (Lanczos)."""
    img = Image.fromarray(pixels)
    img = img.resize((new_width, new_height), Image.Resampling.LANCZOS)
    return np.array(img, dtype=np.uint8)


def as_rgba(pixels: NDArray[np.uint8]) -> NDArray[np.uint8]:
    """
    Validate a pixel buffer and return it as (H, W, 4) RGBA.

    (H, W, 3) RGB input is treated as fully opaque.
    """
    pixels = np.asarray(pixels)

    if pixels.ndim != 3 or pixels.shape[2] not in (3, 4):
        raise ValueError(
            f"Expected (H, W, 3) or (H, W, 4) array, got shape {pixels.shape}"
        )
    if pixels.dtype != np.uint8:
        raise ValueError(f"Expected uint8 array, got {pixels.dtype}")

    if pixels.shape[2] == 3:
        alpha = np.full(pixels.shape[:2] + (1,), OPAQUE, dtype=np.uint8)
        pixels = np.concatenate([pixels, alpha], axis=2)
    return pixels


def pixels_from_accessor(
    width: int,
    height: int,
    accessor: PixelAccessor,
) -> NDArray[np.uint8]:
    """
    Build an (H, W, 4) buffer from a per-pixel ``accessor(x, y) -> (r, g, b, a)``.

    Pixels are read in row-major order (y outer, x inner).
    """
    if width < 0 or height < 0:
        raise ValueError(f"Invalid dimensions {width}x{height}")

    buffer = np.zeros((height, width, 4), dtype=np.uint8)
    for y in range(height):
        for x in range(width):
            buffer[y, x] = accessor(x, y)
    return buffer


def sample_pixels(
    pixels: NDArray[np.uint8],
    max_pixels: Optional[int] = None,
) -> NDArray[np.uint8]:
    """
    Extract the fully opaque RGB samples from a pixel buffer.

    Args:
        pixels: (H, W, 4) RGBA or (H, W, 3) RGB uint8 buffer
        max_pixels: Pixel budget; None disables downsampling

    Returns:
        (N, 3) uint8 array of RGB samples in row-major order. Pixels whose
        alpha is below 255 are skipped. A zero-area buffer yields N = 0.
    """
    rgba = as_rgba(pixels)
    height, width = rgba.shape[:2]

    if width == 0 or height == 0:
        return np.empty((0, 3), dtype=np.uint8)

    scaled_width, scaled_height = scaled_dimensions(width, height, max_pixels)
    if (scaled_width, scaled_height) != (width, height):
        logger.debug(
            "Downsampling %dx%d to %dx%d (budget %d)",
            width, height, scaled_width, scaled_height, max_pixels,
        )
        rgba = downsample(rgba, scaled_width, scaled_height)

    flat = rgba.reshape(-1, 4)
    samples = flat[flat[:, 3] == OPAQUE, :3]
    logger.debug("Sampled %d opaque pixels of %d", len(samples), len(flat))
    return np.ascontiguousarray(samples)
