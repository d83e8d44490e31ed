"""Inference sessions, postprocessing and the estimation pipeline."""

from .estimator import DepthEstimator
from .postprocess import normalize_shape, quantize_to_grayscale16, resize_depth_image
from .session import InferenceSession, OnnxDepthSession, TorchDepthSession, create_session

__all__ = [
    'DepthEstimator',
    'normalize_shape',
    'quantize_to_grayscale16',
    'resize_depth_image',
    'InferenceSession',
    'OnnxDepthSession',
    'TorchDepthSession',
    'create_session',
]
