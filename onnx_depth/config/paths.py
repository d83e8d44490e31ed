import os
import sys
from pathlib import Path

# Environment variable pointing at a directory holding the ONNX models
MODELS_DIR_ENV = "ONNX_DEPTH_MODELS_DIR"
MODELS_DIR_NAME = "models"


def script_dir() -> Path:
    """Directory of the running entry point (the console script or ``python -m`` target)."""
    argv0 = sys.argv[0] if sys.argv and sys.argv[0] else ""
    if argv0 and argv0 != "-c":
        return Path(os.path.abspath(argv0)).parent
    return Path.cwd()


def model_search_dirs(models_dir=None):
    """Directories searched for model files, highest priority first."""
    dirs = []
    if models_dir:
        dirs.append(Path(models_dir))
    env_dir = os.getenv(MODELS_DIR_ENV)
    if env_dir:
        dirs.append(Path(env_dir))
    dirs.append(script_dir() / MODELS_DIR_NAME)
    dirs.append(Path(MODELS_DIR_NAME))

    # drop duplicates, keep order
    unique = []
    for d in dirs:
        if d not in unique:
            unique.append(d)
    return unique
