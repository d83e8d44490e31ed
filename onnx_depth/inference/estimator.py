import logging
from typing import Optional

import numpy as np
from PIL import Image

from ..data.image_io import load_image, save_image
from ..data.transforms import preprocess
from ..models.variants import ModelConfig
from ..utils.visualize import save_depth_preview
from .postprocess import normalize_shape, quantize_to_grayscale16, resize_depth_image
from .session import InferenceSession

logger = logging.getLogger(__name__)


class DepthEstimator:
    """Single-image depth estimation: preprocess, infer, postprocess."""

    def __init__(self, session: InferenceSession, config: ModelConfig):
        """
        Initialize the estimator.

        Args:
            session: Inference collaborator, owned by the estimator from now on
            config: Model variant configuration (resize policy, model path)
        """
        self.session = session
        self.config = config

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def close(self):
        if self.session is not None:
            self.session.close()
            self.session = None

    def estimate_depth(self, image: Image.Image) -> np.ndarray:
        """
        Estimate a 16-bit depth image at network resolution.

        Args:
            image: RGB input image

        Returns:
            uint16 array of shape (H, W) as produced by the network
        """
        if self.session is None:
            raise RuntimeError("DepthEstimator is closed")

        tensor = preprocess(image, self.config.policy)
        logger.debug(f"Input tensor shape: {tensor.shape}")

        raw = self.session.run(tensor)
        logger.debug(f"Output shape: {np.shape(raw)}")

        depth = normalize_shape(raw)
        return quantize_to_grayscale16(depth)

    def run(
        self,
        input_path,
        output_path,
        resize_to_input: bool = True,
        preview_path: Optional[str] = None,
    ) -> np.ndarray:
        """
        Run the full pipeline on one image file and save the result.

        Args:
            input_path: Source RGB image
            output_path: Destination of the 16-bit depth image
            resize_to_input: Resample the depth image back to the source size
            preview_path: Optional colour-mapped preview destination

        Returns:
            The saved uint16 depth image
        """
        image = load_image(input_path)
        orig_w, orig_h = image.size

        depth_map = self.estimate_depth(image)

        if resize_to_input:
            depth_map = resize_depth_image(depth_map, orig_w, orig_h)

        save_image(depth_map, output_path)
        logger.info(
            f"Saved depth map: {output_path} ({depth_map.shape[1]}x{depth_map.shape[0]}, 16-bit)"
        )

        if preview_path:
            save_depth_preview(depth_map, preview_path)

        return depth_map
