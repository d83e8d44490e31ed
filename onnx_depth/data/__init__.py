"""Image loading, saving and input transforms."""

from .image_io import load_image, save_image
from .transforms import (
    AspectFit,
    StaticSquash,
    preprocess,
    resize_policy_for,
)

__all__ = [
    'load_image',
    'save_image',
    'AspectFit',
    'StaticSquash',
    'preprocess',
    'resize_policy_for',
]
