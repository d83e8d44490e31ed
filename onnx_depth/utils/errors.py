"""Exceptions raised by the depth estimation pipeline."""


class DepthEstimationError(Exception):
    """Base class for all pipeline errors."""


class ImageLoadError(DepthEstimationError, OSError):
    """Source image is missing, unreadable or corrupt."""

    def __init__(self, path, reason):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Failed to open image: {self.path} ({reason})")


class ImageSaveError(DepthEstimationError, OSError):
    """Depth image could not be written."""

    def __init__(self, path, reason):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Failed to save {self.path} ({reason})")


class InferenceFailed(DepthEstimationError, RuntimeError):
    """The inference engine rejected the input or crashed while running."""


class OutputShapeError(DepthEstimationError, ValueError):
    """Raw model output does not follow the [1,H,W] / [1,1,H,W] convention."""

    def __init__(self, message, shape):
        self.shape = tuple(shape)
        super().__init__(message)


class UnexpectedBatchSize(OutputShapeError):
    def __init__(self, shape):
        super().__init__(f"Unexpected batch size {shape[0]} (expected 1)", shape)


class UnexpectedShape(OutputShapeError):
    def __init__(self, shape):
        super().__init__(f"Unexpected shape {list(shape)} (expected [1,1,H,W])", shape)


class UnsupportedRank(OutputShapeError):
    def __init__(self, shape):
        super().__init__(
            f"Unexpected output dimensionality {len(shape)} "
            "(expected 3D [1,H,W] or 4D [1,1,H,W])",
            shape,
        )


class InvariantViolation(DepthEstimationError, AssertionError):
    """Internal buffer construction produced an inconsistent result."""


class ConfigurationError(DepthEstimationError, ValueError):
    """Invalid option or configuration file."""


class UnknownModelVariant(ConfigurationError):
    def __init__(self, name, choices):
        self.name = name
        super().__init__(
            f"Unknown model type '{name}' (choose from: {', '.join(choices)})"
        )


class ModelNotFoundError(DepthEstimationError, FileNotFoundError):
    """No model file was found in any of the searched locations."""

    def __init__(self, filename, searched):
        self.filename = filename
        self.searched = [str(p) for p in searched]
        locations = "\n".join(
            f"  {i}. {p}" for i, p in enumerate(self.searched, start=1)
        )
        super().__init__(
            f"Model file '{filename}' not found. Searched in:\n{locations}\n"
            "Please ensure the model file exists in one of these locations."
        )
