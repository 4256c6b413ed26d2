# Copyright (c) 2026 Colorvec
# SPDX-License-Identifier: MIT

"""
Typed failures raised by the extraction pipeline.

Both concrete errors subclass ValueError so callers that only catch
ValueError keep working.
"""


class ColorVecError(Exception):
    """Base class for colorvec errors."""


class InvalidConfigurationError(ColorVecError, ValueError):
    """A precondition on k, the seed, the pixel budget or scale/offset was violated."""


class NoSamplesError(ColorVecError, ValueError):
    """The image produced no fully opaque pixels to cluster."""
