"""
Inference backends.

A session wraps one loaded model and exposes ``run(tensor) -> ndarray``. The
pipeline only depends on that call, so tests can substitute any object with a
``run`` method.
"""

import logging
from pathlib import Path
from typing import Optional, Sequence

import numpy as np
import onnxruntime as ort
import torch
import torch.nn as nn

from ..config.device import get_device, provider_names, select_providers
from ..utils.errors import InferenceFailed, ModelNotFoundError

logger = logging.getLogger(__name__)

TORCH_SUFFIXES = (".pt", ".pth", ".ts")


class InferenceSession:
    """Interface of an inference collaborator."""

    def run(self, tensor: np.ndarray) -> np.ndarray:
        raise NotImplementedError("Subclasses must implement this method")

    def close(self) -> None:
        pass


class OnnxDepthSession(InferenceSession):
    """ONNX Runtime session for a single-input depth model."""

    def __init__(
        self,
        model_path,
        threads: int = 4,
        providers: Optional[Sequence] = None,
    ):
        """
        Args:
            model_path: Path to the ``.onnx`` file
            threads: Number of intra-op threads
            providers: ORT provider list, see ``select_providers``
        """
        self.model_path = Path(model_path)
        if not self.model_path.is_file():
            raise ModelNotFoundError(self.model_path.name, [self.model_path])

        options = ort.SessionOptions()
        options.graph_optimization_level = ort.GraphOptimizationLevel.ORT_ENABLE_ALL
        options.intra_op_num_threads = threads

        if providers is None:
            providers = select_providers(ort.get_available_providers())

        try:
            self.session = ort.InferenceSession(
                str(self.model_path), sess_options=options, providers=list(providers)
            )
        except Exception as e:
            raise InferenceFailed(
                f"Failed to load ONNX model: {self.model_path}: {e}"
            ) from e

        self.input_name = self.session.get_inputs()[0].name
        logger.info(f"Execution providers: {self.session.get_providers()}")
        logger.debug(f"Model input names: {[i.name for i in self.session.get_inputs()]}")
        logger.debug(f"Model output names: {[o.name for o in self.session.get_outputs()]}")

    @classmethod
    def from_options(
        cls,
        model_path,
        threads: int = 4,
        use_cuda: bool = False,
        use_tensorrt: bool = False,
        use_directml: bool = False,
        device_id: int = 0,
    ) -> "OnnxDepthSession":
        providers = select_providers(
            ort.get_available_providers(),
            use_tensorrt=use_tensorrt,
            use_cuda=use_cuda,
            use_directml=use_directml,
            device_id=device_id,
        )
        logger.debug(f"Requested providers: {provider_names(providers)}")
        return cls(model_path, threads=threads, providers=providers)

    def run(self, tensor: np.ndarray) -> np.ndarray:
        try:
            outputs = self.session.run(None, {self.input_name: tensor})
        except Exception as e:
            raise InferenceFailed(f"ORT inference failed: {e}") from e
        # copy out of the engine-owned buffer
        return np.array(outputs[0], copy=True)

    def close(self) -> None:
        self.session = None


class TorchDepthSession(InferenceSession):
    """Run a ``torch.nn.Module`` (usually TorchScript) as the depth model."""

    def __init__(self, model: nn.Module, device: Optional[torch.device] = None):
        self.device = device if device is not None else get_device()
        self.model = model.to(self.device)
        self.model.eval()

    @classmethod
    def from_file(cls, model_path, prefer_cpu: bool = False, device_id: int = 0) -> "TorchDepthSession":
        model_path = Path(model_path)
        if not model_path.is_file():
            raise ModelNotFoundError(model_path.name, [model_path])
        device = get_device(prefer_cpu, device_id)
        try:
            model = torch.jit.load(str(model_path), map_location=device)
        except Exception as e:
            raise InferenceFailed(f"Failed to load TorchScript model: {model_path}: {e}") from e
        return cls(model, device)

    def run(self, tensor: np.ndarray) -> np.ndarray:
        x = torch.from_numpy(np.ascontiguousarray(tensor)).to(self.device)
        try:
            with torch.no_grad():
                output = self.model(x)
        except Exception as e:
            raise InferenceFailed(f"Torch inference failed: {e}") from e

        # HF-style outputs carry predicted_depth, DepthPro returns a dict
        if hasattr(output, "predicted_depth"):
            output = output.predicted_depth
        elif isinstance(output, dict):
            output = output["depth"]
        elif isinstance(output, (tuple, list)):
            output = output[0]

        if not isinstance(output, torch.Tensor):
            raise InferenceFailed(f"Model returned {type(output).__name__}, expected a tensor")
        return output.detach().float().cpu().numpy().copy()

    def close(self) -> None:
        self.model = None


def create_session(
    model_path,
    threads: int = 4,
    use_cuda: bool = False,
    use_tensorrt: bool = False,
    use_directml: bool = False,
    device_id: int = 0,
) -> InferenceSession:
    """Pick the backend from the model file suffix."""
    if Path(model_path).suffix.lower() in TORCH_SUFFIXES:
        # the torch backend only distinguishes CPU and CUDA
        return TorchDepthSession.from_file(
            model_path, prefer_cpu=not (use_cuda or use_tensorrt), device_id=device_id
        )
    return OnnxDepthSession.from_options(
        model_path,
        threads=threads,
        use_cuda=use_cuda,
        use_tensorrt=use_tensorrt,
        use_directml=use_directml,
        device_id=device_id,
    )
