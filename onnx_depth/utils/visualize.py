import logging
import os

import matplotlib.pyplot as plt
import numpy as np

from .helpers import ensure_dir

logger = logging.getLogger(__name__)


def save_depth_preview(depth, path, cmap="plasma"):
    """Save a colour-mapped 8-bit visualization of a depth image or depth grid."""
    depth = np.asarray(depth)
    if depth.ndim != 2:
        raise ValueError(f"Expected a 2-D depth map, got shape {depth.shape}")

    depth = depth.astype(np.float32)
    finite = np.isfinite(depth)
    if finite.any():
        lo, hi = float(depth[finite].min()), float(depth[finite].max())
    else:
        lo, hi = 0.0, 0.0

    # Normalize for visualization
    depth = np.where(finite, depth, lo)
    depth = (depth - lo) / max(hi - lo, 1e-6)

    ensure_dir(os.path.dirname(str(path)))
    plt.imsave(str(path), depth, cmap=cmap, vmin=0.0, vmax=1.0)
    logger.info(f"Saved depth preview: {path}")
