"""
Input transforms for Depth Anything v2 / DPT style networks.

The network expects a ``[1, 3, H, W]`` float32 tensor normalized with ImageNet
statistics. How ``H`` and ``W`` are chosen depends on the resize policy of the
model variant:

- ``StaticSquash``: resize to exactly ``size x size``, aspect ratio is lost.
- ``AspectFit``: keep the aspect ratio, fit within ``size x size`` and round
  both sides down to a multiple of the patch size (14).
"""

import math
from dataclasses import dataclass
from typing import Optional, Tuple, Union

import numpy as np
from PIL import Image

# ImageNet stats (from HF DPT processor config for Depth Anything v2)
IMAGENET_MEAN = np.array([0.485, 0.456, 0.406], dtype=np.float32)
IMAGENET_STD = np.array([0.229, 0.224, 0.225], dtype=np.float32)

PATCH_SIZE = 14

# Pillow's bicubic kernel uses a = -0.5, i.e. Catmull-Rom
RESAMPLE = Image.BICUBIC


def _round_half_away(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class StaticSquash:
    """Resize to exactly ``size x size``."""

    size: int

    def __post_init__(self):
        if self.size < 1:
            raise ValueError(f"Target size must be >= 1, got {self.size}")

    def target_dims(self, width: int, height: int) -> Tuple[int, int]:
        _check_dims(width, height)
        return self.size, self.size


@dataclass(frozen=True)
class AspectFit:
    """Fit within ``size x size`` keeping aspect, sides floored to ``multiple_of``."""

    size: int
    multiple_of: int = PATCH_SIZE

    def __post_init__(self):
        if self.size < 1:
            raise ValueError(f"Target size must be >= 1, got {self.size}")
        if self.multiple_of < 1:
            raise ValueError(f"multiple_of must be >= 1, got {self.multiple_of}")

    def target_dims(self, width: int, height: int) -> Tuple[int, int]:
        _check_dims(width, height)
        scale = min(self.size / width, self.size / height)
        new_w = _round_half_away(width * scale)
        new_h = _round_half_away(height * scale)
        # never collapse to zero, keep at least one multiple
        new_w = max(new_w // self.multiple_of, 1) * self.multiple_of
        new_h = max(new_h // self.multiple_of, 1) * self.multiple_of
        return new_w, new_h


ResizePolicy = Union[StaticSquash, AspectFit]


def _check_dims(width: int, height: int) -> None:
    if width < 1 or height < 1:
        raise ValueError(f"Image dimensions must be >= 1, got {width}x{height}")


def resize_policy_for(target_size: int, use_static_resize: bool) -> ResizePolicy:
    """Map the (size, static flag) pair of a model variant to a resize policy."""
    if use_static_resize:
        return StaticSquash(target_size)
    return AspectFit(target_size, PATCH_SIZE)


def resize_image(image: Image.Image, policy: ResizePolicy) -> Image.Image:
    """Resize an RGB image according to ``policy``. The input is left untouched."""
    new_w, new_h = policy.target_dims(*image.size)
    if (new_w, new_h) == image.size:
        return image.copy()
    return image.resize((new_w, new_h), resample=RESAMPLE)


def normalize(rgb: np.ndarray) -> np.ndarray:
    """
    Convert an ``(H, W, 3)`` uint8 array to a ``(1, 3, H, W)`` float32 tensor.

    Each value becomes ``(x / 255 - mean[c]) / std[c]``.
    """
    if rgb.ndim != 3 or rgb.shape[2] != 3:
        raise ValueError(f"Expected an (H, W, 3) array, got shape {rgb.shape}")

    x = rgb.astype(np.float32) / np.float32(255.0)
    x = (x - IMAGENET_MEAN) / IMAGENET_STD
    x = np.transpose(x, (2, 0, 1))[np.newaxis, ...]
    return np.ascontiguousarray(x, dtype=np.float32)


def preprocess(
    image: Image.Image,
    policy: Union[ResizePolicy, int],
    use_static_resize: Optional[bool] = None,
) -> np.ndarray:
    """
    Turn an RGB image into the network input tensor.

    Args:
        image: PIL image, converted to RGB if needed
        policy: Resize policy, or a target size when ``use_static_resize``
            is given as well
        use_static_resize: Only used with an integer ``policy``

    Returns:
        C-contiguous float32 array of shape (1, 3, H, W)
    """
    if isinstance(policy, int):
        policy = resize_policy_for(policy, bool(use_static_resize))

    if image.mode != "RGB":
        image = image.convert("RGB")

    resized = resize_image(image, policy)
    return normalize(np.asarray(resized, dtype=np.uint8))
