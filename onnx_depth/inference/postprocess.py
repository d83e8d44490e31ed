"""
Turning raw network output into a 16-bit depth image.

Depth values are relative (no physical unit, arbitrary sign), so the grid is
min-max normalized before quantization. Non-finite values never take part in
the min/max: NaN and -inf quantize to 0, +inf to 65535.
"""

import numpy as np
from PIL import Image

from ..data.transforms import RESAMPLE
from ..utils.errors import (
    InvariantViolation,
    UnexpectedBatchSize,
    UnexpectedShape,
    UnsupportedRank,
)

UINT16_MAX = 65535
MIN_DEPTH_RANGE = 1e-6


def normalize_shape(raw: np.ndarray) -> np.ndarray:
    """
    Strip batch/channel axes from a model output.

    Accepts ``[1, H, W]`` or ``[1, 1, H, W]``; returns an owned float32
    ``[H, W]`` array that does not share memory with ``raw``.
    """
    raw = np.asarray(raw)
    shape = raw.shape

    if raw.ndim == 3:
        if shape[0] != 1:
            raise UnexpectedBatchSize(shape)
        depth = raw[0]
    elif raw.ndim == 4:
        if shape[0] != 1 or shape[1] != 1:
            raise UnexpectedShape(shape)
        depth = raw[0, 0]
    else:
        raise UnsupportedRank(shape)

    return np.array(depth, dtype=np.float32, copy=True, order="C")


def depth_range(depth: np.ndarray):
    """Return ``(min, max)`` over finite values, or ``None`` if there are none."""
    finite = depth[np.isfinite(depth)]
    if finite.size == 0:
        return None
    return float(finite.min()), float(finite.max())


def quantize_to_grayscale16(depth: np.ndarray) -> np.ndarray:
    """
    Min-max normalize a depth grid and quantize it to uint16.

    ``denom = max(max - min, 1e-6)`` keeps near-constant grids from being
    amplified into noise; a constant grid maps to all zeros.
    """
    depth = np.asarray(depth)
    if depth.ndim != 2:
        raise InvariantViolation(f"Expected a 2-D depth grid, got shape {depth.shape}")

    values = depth.astype(np.float64)
    bounds = depth_range(values)
    if bounds is None:
        out = np.zeros(depth.shape, dtype=np.uint16)
    else:
        lo, hi = bounds
        denom = max(hi - lo, MIN_DEPTH_RANGE)
        with np.errstate(invalid="ignore", over="ignore"):
            norm = np.clip((values - lo) / denom, 0.0, 1.0)
        norm = np.nan_to_num(norm, nan=0.0)
        out = np.floor(norm * UINT16_MAX + 0.5).astype(np.uint16)

    if out.shape != depth.shape:
        raise InvariantViolation(
            f"Failed to build Luma16 image: {out.shape} != {depth.shape}"
        )
    return out


def resize_depth_image(image16: np.ndarray, width: int, height: int) -> np.ndarray:
    """
    Resample a 16-bit depth image to ``width x height``.

    Uses the same cubic filter as preprocessing; resampling happens in float
    so no precision is lost before the final round/clamp.
    """
    if image16.ndim != 2:
        raise InvariantViolation(f"Expected a 2-D depth image, got shape {image16.shape}")
    if width < 1 or height < 1:
        raise ValueError(f"Target dimensions must be >= 1, got {width}x{height}")

    if image16.shape == (height, width):
        return image16

    src = Image.fromarray(image16.astype(np.float32))
    resized = np.asarray(src.resize((width, height), resample=RESAMPLE))
    out = np.clip(np.floor(resized + 0.5), 0, UINT16_MAX).astype(np.uint16)
    return out
