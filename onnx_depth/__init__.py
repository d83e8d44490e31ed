"""
Monocular Depth Estimation with ONNX Runtime

This package turns a single RGB image into a 16-bit relative depth map using a
pretrained Depth Anything v2 network. Images are resized and normalized into
the network input tensor, run through ONNX Runtime (or a TorchScript module),
and the raw depth output is min-max normalized and quantized to uint16.
"""

__version__ = '0.1.0'
