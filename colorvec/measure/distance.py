# Copyright (c) 2026 Colorvec
# SPDX-License-Identifier: MIT

"""
Perceptual color difference (ΔE) in CIE LAB.

Every function returns the SQUARED difference: clustering only compares
distances, so the final square root is never needed.

Three accuracy tiers:
- CIE76: Euclidean distance in L, a, b
- CIE94: separate lightness/chroma/hue terms with chroma-dependent weights
- CIE2000: CIE94 plus hue rotation, neutral-color and lightness corrections

References:
- http://www.brucelindbloom.com/index.html?Eqn_DeltaE_CIE76.html
- http://www.brucelindbloom.com/index.html?Eqn_DeltaE_CIE94.html
- http://www.brucelindbloom.com/index.html?Eqn_DeltaE_CIE2000.html

Scalar functions take any two 3-sequences (ColorVector, tuple, array row)
and are what the k-means assignment loop calls per point. The ``_batch``
variants broadcast over NumPy arrays of shape (..., 3) and agree with the
scalar functions element-wise.
"""

from __future__ import annotations

import math
from typing import Callable, Sequence

import numpy as np
from numpy.typing import NDArray

from colorvec.schema import Accuracy


DistanceFn = Callable[[Sequence[float], Sequence[float]], float]
BatchDistanceFn = Callable[[NDArray[np.float64], NDArray[np.float64]], NDArray[np.float64]]

# CIE94 graphic-arts constants
CIE94_K1 = 0.045
CIE94_K2 = 0.015

_25_POW_7 = 25.0 ** 7


# =============================================================================
# Scalar
# =============================================================================


def _hue_degrees(a: float, b: float) -> float:
    """Hue angle in [0, 360); defined as 0 for the achromatic axis."""
    if a == 0.0 and b == 0.0:
        return 0.0
    return math.degrees(math.atan2(b, a)) % 360.0


def cie76_squared(lab1: Sequence[float], lab2: Sequence[float]) -> float:
    """Squared CIE76 ΔE: plain Euclidean distance in LAB."""
    L1, a1, b1 = lab1
    L2, a2, b2 = lab2
    return (L2 - L1) ** 2 + (a2 - a1) ** 2 + (b2 - b1) ** 2


def cie94_squared(
    lab1: Sequence[float],
    lab2: Sequence[float],
    kL: float = 1.0,
    kC: float = 1.0,
    kH: float = 1.0,
    K1: float = CIE94_K1,
    K2: float = CIE94_K2,
) -> float:
    """
    Squared CIE94 ΔE.

    The chroma and hue weights are computed from the first color's chroma,
    so the metric is not symmetric. Callers pass the point first and the
    centroid second.
    """
    L1, a1, b1 = lab1
    L2, a2, b2 = lab2

    dL = L1 - L2
    C1 = math.hypot(a1, b1)
    C2 = math.hypot(a2, b2)
    dC = C1 - C2

    # ΔH² = Δa² + Δb² - ΔC²; rounding can push it a hair below zero
    dH_sq = max((a1 - a2) ** 2 + (b1 - b2) ** 2 - dC ** 2, 0.0)

    Sl = 1.0
    Sc = 1.0 + K1 * C1
    Sh = 1.0 + K2 * C1

    return (
        (dL / (kL * Sl)) ** 2
        + (dC / (kC * Sc)) ** 2
        + dH_sq / (kH * Sh) ** 2
    )


def cie2000_squared(
    lab1: Sequence[float],
    lab2: Sequence[float],
    kL: float = 1.0,
    kC: float = 1.0,
    kH: float = 1.0,
) -> float:
    """Squared CIEDE2000 ΔE."""
    L1, a1, b1 = lab1
    L2, a2, b2 = lab2

    dLp = L2 - L1
    Lbp = (L1 + L2) / 2.0

    Cb = (math.hypot(a1, b1) + math.hypot(a2, b2)) / 2.0
    Cb7 = Cb ** 7
    G = (1.0 - math.sqrt(Cb7 / (Cb7 + _25_POW_7))) / 2.0

    a1p = a1 * (1.0 + G)
    a2p = a2 * (1.0 + G)
    C1p = math.hypot(a1p, b1)
    C2p = math.hypot(a2p, b2)
    dCp = C2p - C1p
    Cbp = (C1p + C2p) / 2.0

    h1p = _hue_degrees(a1p, b1)
    h2p = _hue_degrees(a2p, b2)
    dh_abs = abs(h1p - h2p)

    if C1p == 0.0 or C2p == 0.0:
        dhp = 0.0
    elif dh_abs <= 180.0:
        dhp = h2p - h1p
    elif h2p <= h1p:
        dhp = h2p - h1p + 360.0
    else:
        dhp = h2p - h1p - 360.0

    dHp = 2.0 * math.sqrt(C1p * C2p) * math.sin(math.radians(dhp / 2.0))

    if C1p == 0.0 or C2p == 0.0:
        Hbp = h1p + h2p
    elif dh_abs > 180.0:
        Hbp = (h1p + h2p + 360.0) / 2.0
    else:
        Hbp = (h1p + h2p) / 2.0

    T = (
        1.0
        - 0.17 * math.cos(math.radians(Hbp - 30.0))
        + 0.24 * math.cos(math.radians(2.0 * Hbp))
        + 0.32 * math.cos(math.radians(3.0 * Hbp + 6.0))
        - 0.20 * math.cos(math.radians(4.0 * Hbp - 63.0))
    )

    Sl = 1.0 + (0.015 * (Lbp - 50.0) ** 2) / math.sqrt(20.0 + (Lbp - 50.0) ** 2)
    Sc = 1.0 + 0.045 * Cbp
    Sh = 1.0 + 0.015 * Cbp * T

    d_theta = 30.0 * math.exp(-(((Hbp - 275.0) / 25.0) ** 2))
    Cbp7 = Cbp ** 7
    Rc = 2.0 * math.sqrt(Cbp7 / (Cbp7 + _25_POW_7))
    Rt = -Rc * math.sin(math.radians(2.0 * d_theta))

    L_term = dLp / (kL * Sl)
    C_term = dCp / (kC * Sc)
    H_term = dHp / (kH * Sh)
    return L_term ** 2 + C_term ** 2 + H_term ** 2 + Rt * C_term * H_term


# =============================================================================
# Batch (vectorized)
# =============================================================================


def _hue_degrees_batch(a: NDArray[np.float64], b: NDArray[np.float64]) -> NDArray[np.float64]:
    achromatic = (a == 0.0) & (b == 0.0)
    return np.where(achromatic, 0.0, np.degrees(np.arctan2(b, a)) % 360.0)


def _split(lab: NDArray[np.float64]) -> tuple[NDArray, NDArray, NDArray]:
    lab = np.asarray(lab, dtype=np.float64)
    return lab[..., 0], lab[..., 1], lab[..., 2]


def cie76_squared_batch(
    lab1: NDArray[np.float64],
    lab2: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Vectorized cie76_squared over broadcastable (..., 3) arrays."""
    delta = np.asarray(lab2, dtype=np.float64) - np.asarray(lab1, dtype=np.float64)
    return np.sum(delta ** 2, axis=-1)


def cie94_squared_batch(
    lab1: NDArray[np.float64],
    lab2: NDArray[np.float64],
    kL: float = 1.0,
    kC: float = 1.0,
    kH: float = 1.0,
    K1: float = CIE94_K1,
    K2: float = CIE94_K2,
) -> NDArray[np.float64]:
    """Vectorized cie94_squared over broadcastable (..., 3) arrays."""
    L1, a1, b1 = _split(lab1)
    L2, a2, b2 = _split(lab2)

    dL = L1 - L2
    C1 = np.hypot(a1, b1)
    C2 = np.hypot(a2, b2)
    dC = C1 - C2
    dH_sq = np.maximum((a1 - a2) ** 2 + (b1 - b2) ** 2 - dC ** 2, 0.0)

    Sc = 1.0 + K1 * C1
    Sh = 1.0 + K2 * C1

    return (dL / kL) ** 2 + (dC / (kC * Sc)) ** 2 + dH_sq / (kH * Sh) ** 2


def cie2000_squared_batch(
    lab1: NDArray[np.float64],
    lab2: NDArray[np.float64],
    kL: float = 1.0,
    kC: float = 1.0,
    kH: float = 1.0,
) -> NDArray[np.float64]:
    """Vectorized cie2000_squared over broadcastable (..., 3) arrays."""
    L1, a1, b1 = _split(lab1)
    L2, a2, b2 = _split(lab2)

    dLp = L2 - L1
    Lbp = (L1 + L2) / 2.0

    Cb = (np.hypot(a1, b1) + np.hypot(a2, b2)) / 2.0
    Cb7 = Cb ** 7
    G = (1.0 - np.sqrt(Cb7 / (Cb7 + _25_POW_7))) / 2.0

    a1p = a1 * (1.0 + G)
    a2p = a2 * (1.0 + G)
    C1p = np.hypot(a1p, b1)
    C2p = np.hypot(a2p, b2)
    dCp = C2p - C1p
    Cbp = (C1p + C2p) / 2.0

    h1p = _hue_degrees_batch(a1p, b1)
    h2p = _hue_degrees_batch(a2p, b2)
    dh_abs = np.abs(h1p - h2p)
    achromatic = (C1p == 0.0) | (C2p == 0.0)

    dhp = np.where(
        achromatic, 0.0,
        np.where(
            dh_abs <= 180.0, h2p - h1p,
            np.where(h2p <= h1p, h2p - h1p + 360.0, h2p - h1p - 360.0),
        ),
    )
    dHp = 2.0 * np.sqrt(C1p * C2p) * np.sin(np.radians(dhp / 2.0))

    Hbp = np.where(
        achromatic, h1p + h2p,
        np.where(dh_abs > 180.0, (h1p + h2p + 360.0) / 2.0, (h1p + h2p) / 2.0),
    )

    T = (
        1.0
        - 0.17 * np.cos(np.radians(Hbp - 30.0))
        + 0.24 * np.cos(np.radians(2.0 * Hbp))
        + 0.32 * np.cos(np.radians(3.0 * Hbp + 6.0))
        - 0.20 * np.cos(np.radians(4.0 * Hbp - 63.0))
    )

    Sl = 1.0 + (0.015 * (Lbp - 50.0) ** 2) / np.sqrt(20.0 + (Lbp - 50.0) ** 2)
    Sc = 1.0 + 0.045 * Cbp
    Sh = 1.0 + 0.015 * Cbp * T

    d_theta = 30.0 * np.exp(-(((Hbp - 275.0) / 25.0) ** 2))
    Cbp7 = Cbp ** 7
    Rc = 2.0 * np.sqrt(Cbp7 / (Cbp7 + _25_POW_7))
    Rt = -Rc * np.sin(np.radians(2.0 * d_theta))

    L_term = dLp / (kL * Sl)
    C_term = dCp / (kC * Sc)
    H_term = dHp / (kH * Sh)
    return L_term ** 2 + C_term ** 2 + H_term ** 2 + Rt * C_term * H_term


# =============================================================================
# Selection
# =============================================================================

_METRICS: dict[Accuracy, tuple[DistanceFn, BatchDistanceFn]] = {
    Accuracy.LOW: (cie76_squared, cie76_squared_batch),
    Accuracy.MEDIUM: (cie94_squared, cie94_squared_batch),
    Accuracy.HIGH: (cie2000_squared, cie2000_squared_batch),
}


def distance_for_accuracy(accuracy: Accuracy | str) -> DistanceFn:
    """Scalar squared-distance function for an accuracy tier."""
    return _METRICS[Accuracy(accuracy)][0]


def batch_distance_for_accuracy(accuracy: Accuracy | str) -> BatchDistanceFn:
    """Vectorized squared-distance function for an accuracy tier."""
    return _METRICS[Accuracy(accuracy)][1]
