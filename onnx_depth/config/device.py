"""Execution provider and device selection for the inference backends."""

import logging
from typing import Dict, List, Sequence, Tuple, Union

import torch

logger = logging.getLogger(__name__)

CPU_PROVIDER = "CPUExecutionProvider"

# Preference order: first entry is tried first by ONNX Runtime.
# (option name, ORT provider name, accepts device_id)
PROVIDER_POLICY: Tuple[Tuple[str, str, bool], ...] = (
    ("tensorrt", "TensorrtExecutionProvider", True),
    ("cuda", "CUDAExecutionProvider", True),
    ("directml", "DmlExecutionProvider", True),
    ("cpu", CPU_PROVIDER, False),
)

ProviderSpec = Union[str, Tuple[str, Dict[str, str]]]


def select_providers(
    available: Sequence[str],
    use_tensorrt: bool = False,
    use_cuda: bool = False,
    use_directml: bool = False,
    device_id: int = 0,
) -> List[ProviderSpec]:
    """
    Build the ONNX Runtime provider list from the policy table.

    Only providers that were requested and are present in ``available`` are
    kept, in policy order. CPU is always appended as the final fallback.

    Args:
        available: Providers reported by ``onnxruntime.get_available_providers()``
        use_tensorrt: Request the TensorRT provider
        use_cuda: Request the CUDA provider
        use_directml: Request the DirectML provider
        device_id: GPU index passed to accelerator providers

    Returns:
        List usable as the ``providers`` argument of ``InferenceSession``
    """
    requested = {"tensorrt": use_tensorrt, "cuda": use_cuda, "directml": use_directml, "cpu": True}
    providers: List[ProviderSpec] = []

    for option, name, takes_device in PROVIDER_POLICY:
        if not requested[option]:
            continue
        if name not in available:
            logger.warning(f"Requested {option} execution provider ({name}) is not available, skipping")
            continue
        if takes_device:
            providers.append((name, {"device_id": str(device_id)}))
        else:
            providers.append(name)

    # CPU provider ships with every ORT build
    if CPU_PROVIDER not in providers:
        providers.append(CPU_PROVIDER)
    return providers


def provider_names(providers: Sequence[ProviderSpec]) -> List[str]:
    return [p[0] if isinstance(p, tuple) else p for p in providers]


def get_device(prefer_cpu=False, device_id=0):
    """Get the torch device for the TorchScript backend.

    Args:
        prefer_cpu: If True, use the CPU even when CUDA is available
        device_id: CUDA device index

    Returns:
        torch.device: The selected device (cuda or cpu only)
    """
    if prefer_cpu:
        device = torch.device("cpu")
        logger.info(f"Device: {device} (CPU preferred)")
    elif torch.cuda.is_available():
        device = torch.device(f"cuda:{device_id}")
        logger.info(f"Device: {device} (CUDA available)")
    else:
        device = torch.device("cpu")
        logger.info(f"Device: {device} (fallback to CPU)")

    return device
