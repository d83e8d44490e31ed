"""Supported Depth Anything v2 model variants and model file discovery."""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from ..config.paths import model_search_dirs
from ..data.transforms import AspectFit, ResizePolicy, StaticSquash
from ..utils.errors import ModelNotFoundError, UnknownModelVariant

logger = logging.getLogger(__name__)

NATIVE_SIZE = 518


class ModelType(Enum):
    """Depth model variants shipped as ONNX files."""

    # fixed 518x518 input, faster, suited to GPU providers
    STATIC = "static"
    # flexible input size (multiple of 14), higher quality
    DYNAMIC = "dynamic"

    @classmethod
    def from_name(cls, name) -> "ModelType":
        if isinstance(name, cls):
            return name
        try:
            return cls(str(name).strip().lower())
        except ValueError:
            raise UnknownModelVariant(name, [m.value for m in cls]) from None


_VARIANTS = {
    ModelType.STATIC: ("depth_anything_v2_vitb.onnx", StaticSquash(NATIVE_SIZE)),
    ModelType.DYNAMIC: ("depth_anything_v2_vitb_dynamic.onnx", AspectFit(NATIVE_SIZE, 14)),
}


@dataclass(frozen=True)
class ModelConfig:
    model_type: ModelType
    path: Path
    policy: ResizePolicy

    @property
    def target_size(self) -> int:
        return self.policy.size

    @property
    def static_resize(self) -> bool:
        return isinstance(self.policy, StaticSquash)

    @classmethod
    def from_type(
        cls,
        model_type,
        model_path: Optional[str] = None,
        models_dir: Optional[str] = None,
    ) -> "ModelConfig":
        """
        Resolve a variant to its model file and resize policy.

        Args:
            model_type: ``ModelType`` or its name
            model_path: Explicit model file, skips the directory search
            models_dir: Extra directory searched before the defaults

        Raises:
            UnknownModelVariant: if ``model_type`` is not a supported variant
            ModelNotFoundError: if no model file can be found
        """
        model_type = ModelType.from_name(model_type)
        filename, policy = _VARIANTS[model_type]

        if model_path is not None:
            path = Path(model_path)
            if not path.is_file():
                raise ModelNotFoundError(path.name, [path])
        else:
            path = find_model_path(filename, models_dir)

        return cls(model_type=model_type, path=path, policy=policy)


def model_filename(model_type) -> str:
    return _VARIANTS[ModelType.from_name(model_type)][0]


def find_model_path(filename: str, models_dir: Optional[str] = None) -> Path:
    searched = []
    for directory in model_search_dirs(models_dir):
        candidate = directory / filename
        searched.append(candidate)
        if candidate.is_file():
            logger.debug(f"Found model file: {candidate}")
            return candidate

    raise ModelNotFoundError(filename, searched)
