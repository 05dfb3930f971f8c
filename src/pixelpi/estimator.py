#!/usr/bin/env python3
"""Monte Carlo estimate of pi from the colour channels of an image.

Every pixel is a point (r, g, b) in the unit cube. The fraction of points that
fall inside the unit sphere approximates the volume of one octant of the
sphere, pi / 6, so ``6 * inside / total`` approximates pi.
"""

from __future__ import annotations

import logging
from typing import Any

import numpy as np
import numpy.typing as npt

from .config import OUT_OF_RANGE_POLICIES, Boundary, OutOfRangePolicy
from .exceptions import InvalidInputError
from .models import EstimateRecord

logger = logging.getLogger(__name__)

# Volume of the unit cube over the volume of one sphere octant, times pi
OCTANT_FACTOR = 6.0

# Channel maximum per supported integer dtype
_INTEGER_SCALES: dict[np.dtype[Any], int] = {
    np.dtype(np.uint8): 255,
    np.dtype(np.uint16): 65535,
}


def _prepare(
    image: npt.ArrayLike, out_of_range: OutOfRangePolicy
) -> tuple[npt.NDArray[Any], float | int]:
    """Flatten an image into samples and report the channel scale.

    Integer samples are returned unscaled so the sphere test can run in exact
    integer arithmetic.

    Args:
        image: Array of shape (H, W, 3) or (N, 3).
        out_of_range: "reject" or "clamp" for float components outside [0, 1].

    Returns:
        Tuple of (samples with shape (N, 3), channel maximum).

    Raises:
        InvalidInputError: On empty input, bad shape or dtype, non-finite
            values, or out-of-range values under the reject policy.
    """
    if out_of_range not in OUT_OF_RANGE_POLICIES:
        msg = f"Unknown out-of-range policy {out_of_range!r}"
        raise InvalidInputError(msg)

    arr = np.asarray(image)

    if arr.ndim not in (2, 3) or arr.shape[-1] != 3:
        msg = f"Expected an image of shape (H, W, 3) or (N, 3), got {arr.shape}"
        raise InvalidInputError(msg)

    samples = arr.reshape(-1, 3)
    if samples.shape[0] == 0:
        msg = "Cannot estimate pi from an empty image"
        raise InvalidInputError(msg)

    if arr.dtype in _INTEGER_SCALES:
        return samples.astype(np.int64), _INTEGER_SCALES[arr.dtype]

    if not np.issubdtype(arr.dtype, np.floating):
        msg = f"Unsupported pixel dtype {arr.dtype}; use uint8, uint16 or float"
        raise InvalidInputError(msg)

    samples = samples.astype(np.float64)
    if not np.all(np.isfinite(samples)):
        msg = "Image contains NaN or infinite components"
        raise InvalidInputError(msg)

    outside = np.count_nonzero((samples < 0.0) | (samples > 1.0))
    if outside:
        if out_of_range == "reject":
            msg = f"{outside} colour components lie outside [0, 1]"
            raise InvalidInputError(msg)
        logger.warning(f"Clamping {outside} colour components outside [0, 1]")
        samples = np.clip(samples, 0.0, 1.0)

    return samples, 1.0


def to_samples(
    image: npt.ArrayLike, out_of_range: OutOfRangePolicy = "reject"
) -> npt.NDArray[np.float64]:
    """Normalise an image into an (N, 3) array of samples in [0, 1].

    uint8 and uint16 images are divided by their channel maximum; float
    images are taken as already normalised.

    Args:
        image: Array of shape (H, W, 3) or (N, 3).
        out_of_range: "reject" or "clamp" for float components outside [0, 1].

    Returns:
        Float64 array of shape (N, 3).
    """
    samples, scale = _prepare(image, out_of_range)
    return samples.astype(np.float64) / scale


def count_inside(
    image: npt.ArrayLike,
    boundary: Boundary = "inclusive",
    out_of_range: OutOfRangePolicy = "reject",
) -> tuple[int, int]:
    """Count samples inside the unit sphere.

    Args:
        image: Array of shape (H, W, 3) or (N, 3).
        boundary: "inclusive" tests r²+g²+b² <= 1, "strict" tests < 1.
        out_of_range: "reject" or "clamp" for float components outside [0, 1].

    Returns:
        Tuple of (samples inside, total samples).
    """
    samples, scale = _prepare(image, out_of_range)
    squared_norms = np.einsum("ij,ij->i", samples, samples)
    limit = scale * scale

    if boundary == "inclusive":
        inside = squared_norms <= limit
    elif boundary == "strict":
        inside = squared_norms < limit
    else:
        msg = f"Unknown boundary {boundary!r}"
        raise InvalidInputError(msg)

    return int(np.count_nonzero(inside)), int(samples.shape[0])


def estimate(
    image: npt.ArrayLike,
    boundary: Boundary = "inclusive",
    out_of_range: OutOfRangePolicy = "reject",
) -> tuple[float, float]:
    """Approximate pi from an image.

    Args:
        image: Array of shape (H, W, 3) or (N, 3).
        boundary: "inclusive" (default) or "strict" sphere membership.
        out_of_range: "reject" (default) or "clamp".

    Returns:
        Tuple of (estimate in [0, 6], absolute error from pi).

    Raises:
        InvalidInputError: If the image is empty or malformed.
    """
    inside, total = count_inside(image, boundary, out_of_range)
    value = OCTANT_FACTOR * inside / total
    return value, abs(value - np.pi)


def estimate_record(
    identifier: str,
    image: npt.ArrayLike,
    boundary: Boundary = "inclusive",
    out_of_range: OutOfRangePolicy = "reject",
) -> EstimateRecord:
    """Estimate pi for one image and wrap the result in a record."""
    value, error = estimate(image, boundary, out_of_range)
    return EstimateRecord(identifier=identifier, estimate=value, error=error)


def random_image(
    height: int, width: int, rng: np.random.Generator | None = None
) -> npt.NDArray[np.float64]:
    """Uniform random RGB image with components in [0, 1).

    Estimates over many such images average to pi, which makes them a
    baseline for comparing real photos.

    Args:
        height: Image height in pixels.
        width: Image width in pixels.
        rng: Random generator (default: a fresh unseeded generator).

    Returns:
        Float64 array of shape (height, width, 3).
    """
    if rng is None:
        rng = np.random.default_rng()
    return rng.random((height, width, 3))
