# Copyright (c) 2026 Colorvec
# SPDX-License-Identifier: MIT

"""
Color space conversions.

Conversion chain: sRGB → Linear RGB → CIE XYZ (D65, x100) → CIE LAB

References:
- sRGB transfer function: IEC 61966-2-1
- XYZ ↔ LAB: http://en.wikipedia.org/wiki/Lab_color_space#CIELAB-CIEXYZ_conversions

All conversions are pure NumPy over arrays of shape (..., 3). No stage
clamps its output: the inverse chain is the exact algebraic inverse of the
forward chain, so out-of-gamut LAB centroids come back as out-of-range sRGB
rather than being silently mapped. Clipping happens only when formatting a
displayable value (lab_to_srgb_uint8, lab_to_hex).
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np
from numpy.typing import NDArray


logger = logging.getLogger(__name__)


# =============================================================================
# sRGB ↔ Linear RGB
# =============================================================================

_SRGB_THRESHOLD = 0.04045
_LINEAR_THRESHOLD = 0.0031308


def srgb_to_linear(srgb: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Convert sRGB values [0,1] to linear RGB.

    sRGB uses a piecewise gamma curve:
    - For values <= 0.04045: linear/12.92
    - For values > 0.04045: ((value + 0.055) / 1.055) ^ 2.4
    """
    srgb = np.asarray(srgb, dtype=np.float64)
    # Keep the power branch's base non-negative so np.where never sees NaN
    decoded = np.power(np.maximum(srgb + 0.055, 0.0) / 1.055, 2.4)
    return np.where(srgb <= _SRGB_THRESHOLD, srgb / 12.92, decoded)


def linear_to_srgb(linear: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Convert linear RGB to sRGB.

    Inverse of srgb_to_linear. Values are not clipped.
    """
    linear = np.asarray(linear, dtype=np.float64)
    encoded = 1.055 * np.power(np.maximum(linear, 0.0), 1.0 / 2.4) - 0.055
    return np.where(linear <= _LINEAR_THRESHOLD, linear * 12.92, encoded)


# =============================================================================
# Linear RGB ↔ XYZ
# =============================================================================

# Linear sRGB to XYZ (D65). Rows are X, Y, Z.
_RGB_TO_XYZ = np.array([
    [0.4124, 0.3576, 0.1805],
    [0.2126, 0.7152, 0.0722],
    [0.0193, 0.1192, 0.9505],
], dtype=np.float64)

_XYZ_TO_RGB = np.linalg.inv(_RGB_TO_XYZ)

_XYZ_SCALE = 100.0


def linear_rgb_to_xyz(rgb: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Convert linear RGB to CIE XYZ scaled to [0, 100].

    Args:
        rgb: Array of shape (..., 3) with linear RGB values

    Returns:
        Array of shape (..., 3) with XYZ values (Y = 100 for white)
    """
    rgb = np.asarray(rgb, dtype=np.float64)
    return np.einsum('...j,ij->...i', rgb, _RGB_TO_XYZ) * _XYZ_SCALE


def xyz_to_linear_rgb(xyz: NDArray[np.float64]) -> NDArray[np.float64]:
    """Convert CIE XYZ [0, 100] to linear RGB."""
    xyz = np.asarray(xyz, dtype=np.float64)
    return np.einsum('...j,ij->...i', xyz / _XYZ_SCALE, _XYZ_TO_RGB)


# =============================================================================
# XYZ ↔ LAB
# =============================================================================

# Reference white (D65, 2° observer), same scale as linear_rgb_to_xyz
D65_WHITE = np.array([95.047, 100.0, 108.883], dtype=np.float64)

_DELTA = 6.0 / 29.0
_DELTA_CUBED = _DELTA ** 3


def _lab_f(t: NDArray[np.float64]) -> NDArray[np.float64]:
    return np.where(
        t > _DELTA_CUBED,
        np.cbrt(t),
        t / (3.0 * _DELTA ** 2) + 4.0 / 29.0,
    )


def _lab_f_inv(t: NDArray[np.float64]) -> NDArray[np.float64]:
    return np.where(
        t > _DELTA,
        t ** 3,
        3.0 * _DELTA ** 2 * (t - 4.0 / 29.0),
    )


def xyz_to_lab(
    xyz: NDArray[np.float64],
    white: NDArray[np.float64] = D65_WHITE,
) -> NDArray[np.float64]:
    """
    Convert CIE XYZ to CIE LAB.

    Uses the cube-root compression above (6/29)^3 and the linear segment
    below it.

    Args:
        xyz: Array of shape (..., 3) with XYZ values
        white: Reference white tristimulus on the same scale

    Returns:
        Array of shape (..., 3) with LAB values (L, a, b)
    """
    xyz = np.asarray(xyz, dtype=np.float64)
    f = _lab_f(xyz / white)
    fx, fy, fz = f[..., 0], f[..., 1], f[..., 2]

    L = 116.0 * fy - 16.0
    a = 500.0 * (fx - fy)
    b = 200.0 * (fy - fz)

    return np.stack([L, a, b], axis=-1)


def lab_to_xyz(
    lab: NDArray[np.float64],
    white: NDArray[np.float64] = D65_WHITE,
) -> NDArray[np.float64]:
    """Convert CIE LAB to CIE XYZ. Inverse of xyz_to_lab."""
    lab = np.asarray(lab, dtype=np.float64)
    fy = (lab[..., 0] + 16.0) / 116.0
    fx = fy + lab[..., 1] / 500.0
    fz = fy - lab[..., 2] / 200.0

    return white * _lab_f_inv(np.stack([fx, fy, fz], axis=-1))


# =============================================================================
# Convenience: sRGB ↔ LAB (full chain)
# =============================================================================


def srgb_to_lab(srgb: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Convert sRGB [0,1] to CIE LAB.

    Full chain: sRGB → Linear RGB → XYZ → LAB

    Args:
        srgb: Array of shape (..., 3) with sRGB values [0, 1]

    Returns:
        Array of shape (..., 3) with LAB values
        - L: Lightness [0, 100]
        - a, b: roughly [-128, 128] for the sRGB gamut
    """
    return xyz_to_lab(linear_rgb_to_xyz(srgb_to_linear(srgb)))


def lab_to_srgb(lab: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Convert CIE LAB to sRGB.

    Full chain: LAB → XYZ → Linear RGB → sRGB. Out-of-gamut input yields
    values outside [0, 1]; nothing is clipped.
    """
    return linear_to_srgb(xyz_to_linear_rgb(lab_to_xyz(lab)))


def srgb_uint8_to_lab(pixels: NDArray[np.uint8]) -> NDArray[np.float64]:
    """
    Convert uint8 sRGB pixels [0,255] to LAB.

    Args:
        pixels: Array of shape (..., 3) with uint8 sRGB values [0, 255]

    Returns:
        Array of shape (..., 3) with LAB values
    """
    srgb_float = np.asarray(pixels).astype(np.float64) / 255.0
    return srgb_to_lab(srgb_float)


def lab_to_srgb_uint8(lab: NDArray[np.float64]) -> NDArray[np.uint8]:
    """Convert LAB to displayable uint8 sRGB, clipping into the gamut."""
    srgb = np.clip(lab_to_srgb(lab), 0.0, 1.0)
    return (srgb * 255.0).round().astype(np.uint8)


def lab_to_hex(lab: NDArray[np.float64]) -> str:
    """
    Convert a single LAB color to a hex string.

    Returns:
        Hex color string like "#3941C8"
    """
    r, g, b = lab_to_srgb_uint8(np.asarray(lab, dtype=np.float64).reshape(3))
    return f"#{int(r):02X}{int(g):02X}{int(b):02X}"


def hex_to_lab(hex_color: str) -> NDArray[np.float64]:
    """
    Convert hex color string to LAB.

    Args:
        hex_color: Hex string like "#3941C8" or "3941C8"
    """
    hex_color = hex_color.lstrip("#")
    if len(hex_color) != 6:
        raise ValueError(f"Expected 6 hex digits, got {hex_color!r}")

    r = int(hex_color[0:2], 16)
    g = int(hex_color[2:4], 16)
    b = int(hex_color[4:6], 16)

    return srgb_uint8_to_lab(np.array([r, g, b], dtype=np.uint8))


# =============================================================================
# Memoized conversion
# =============================================================================


class LabConversionCache:
    """
    Memoizes sRGB uint8 → LAB conversions keyed by the (r, g, b) triple.

    Only worthwhile for large sample budgets on images made mostly of flat
    colors. The cache is unbounded and lives as long as the instance does;
    create one per call unless the same palette of inputs is expected again.
    """

    def __init__(self) -> None:
        self._table: dict[tuple[int, int, int], NDArray[np.float64]] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, rgb: tuple[int, int, int]) -> bool:
        return tuple(int(c) for c in rgb) in self._table

    def clear(self) -> None:
        self._table.clear()
        self.hits = 0
        self.misses = 0

    def convert(self, pixels: NDArray[np.uint8]) -> NDArray[np.float64]:
        """
        Convert (N, 3) uint8 sRGB pixels to (N, 3) LAB, reusing cached rows.

        Only triples not yet in the cache are run through the conversion
        chain, once each.
        """
        pixels = np.asarray(pixels, dtype=np.uint8).reshape(-1, 3)
        if len(pixels) == 0:
            return np.empty((0, 3), dtype=np.float64)

        unique, inverse = np.unique(pixels, axis=0, return_inverse=True)
        keys = [tuple(int(c) for c in row) for row in unique]

        missing = [i for i, key in enumerate(keys) if key not in self._table]
        if missing:
            converted = srgb_uint8_to_lab(unique[missing])
            for row, i in zip(converted, missing):
                self._table[keys[i]] = row

        self.misses += len(missing)
        self.hits += len(pixels) - len(missing)

        unique_lab = np.stack([self._table[key] for key in keys])
        return unique_lab[np.asarray(inverse).reshape(-1)]


def pixels_to_lab(
    pixels: NDArray[np.uint8],
    cache: Optional[LabConversionCache] = None,
) -> NDArray[np.float64]:
    """Convert (N, 3) uint8 sRGB samples to LAB, through ``cache`` when given."""
    if cache is None:
        return srgb_uint8_to_lab(np.asarray(pixels).reshape(-1, 3))

    lab = cache.convert(pixels)
    logger.debug(
        "LAB cache: %d entries, %d hits, %d misses",
        len(cache), cache.hits, cache.misses,
    )
    return lab
