"""Error taxonomy. Only RootNotFound and ConfigError end a run."""
from pathlib import Path
from typing import Optional


class OptimizerError(Exception):
    """Base class for all errors raised by the optimizer."""


class ConfigError(OptimizerError, ValueError):
    """Invalid run configuration (out-of-range quality/effort, bad env value)."""


class RootNotFound(OptimizerError):
    """The scan root, or every explicitly requested file, is missing."""

    def __init__(self, path: Optional[Path], message: Optional[str] = None):
        self.path = path
        super().__init__(message or f"Directory not found: {path}")


class SubtreeUnreadable(OptimizerError):
    """A directory below the root could not be listed. Recovered by the scanner."""

    def __init__(self, path: Path, cause: OSError):
        self.path = path
        self.cause = cause
        super().__init__(f"Error reading directory {path}: {cause.strerror or cause}")


class ConversionError(OptimizerError):
    """Per-file failure. Counted by the batch driver, never propagated."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class UnreadableInput(ConversionError):
    """The codec could not open or probe the input."""


class EncodeFailure(ConversionError):
    """The codec opened the input but could not write the output."""
