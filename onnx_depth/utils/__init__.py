"""Utility functions."""

from .helpers import (
    ensure_dir,
    setup_logging,
    load_config
)
from .visualize import save_depth_preview

__all__ = [
    'ensure_dir',
    'setup_logging',
    'load_config',
    'save_depth_preview'
]
