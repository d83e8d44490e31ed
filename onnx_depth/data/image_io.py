"""Loading RGB inputs and writing 16-bit depth images."""

import logging
import os
import tempfile
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from ..utils.errors import ImageLoadError, ImageSaveError
from ..utils.helpers import ensure_dir

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def load_image(path: PathLike) -> Image.Image:
    """
    Load an image from disk as RGB.

    Raises:
        ImageLoadError: if the file is missing, unreadable or not an image
    """
    path = Path(path)
    try:
        with Image.open(path) as img:
            img.load()
            rgb = img.convert("RGB")
    except FileNotFoundError:
        raise ImageLoadError(path, "no such file") from None
    except UnidentifiedImageError as e:
        raise ImageLoadError(path, "unrecognized image format") from e
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise ImageLoadError(path, str(e)) from e

    logger.debug(f"Loaded {path} ({rgb.width}x{rgb.height})")
    return rgb


def to_pil16(image16: np.ndarray) -> Image.Image:
    """Wrap a 2-D uint16 array as a single-channel 16-bit PIL image."""
    if image16.ndim != 2:
        raise ValueError(f"Expected a 2-D depth image, got shape {image16.shape}")
    arr = np.ascontiguousarray(image16, dtype=np.uint16)
    return Image.frombytes("I;16", (arr.shape[1], arr.shape[0]), arr.astype("<u2").tobytes())


def _current_umask() -> int:
    umask = os.umask(0)
    os.umask(umask)
    return umask


def save_image(image16: np.ndarray, path: PathLike) -> Path:
    """
    Save a 16-bit grayscale depth image.

    The image is written to a temporary file next to ``path`` and moved into
    place once complete, so a failed save never leaves a partial file behind.

    Raises:
        ImageSaveError: if the destination cannot be written
    """
    path = Path(path)
    img = to_pil16(image16)
    fmt = Image.registered_extensions().get(path.suffix.lower())
    if fmt is None:
        raise ImageSaveError(path, f"unsupported file extension '{path.suffix}'")

    tmp_name = None
    try:
        ensure_dir(str(path.parent))
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.stem}.", suffix=path.suffix, dir=str(path.parent)
        )
        with os.fdopen(fd, "wb") as f:
            img.save(f, format=fmt)
        # mkstemp creates the file as 0600
        os.chmod(tmp_name, 0o666 & ~_current_umask())
        os.replace(tmp_name, path)
        tmp_name = None
    except (OSError, ValueError, KeyError) as e:
        raise ImageSaveError(path, str(e)) from e
    finally:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.remove(tmp_name)

    return path
