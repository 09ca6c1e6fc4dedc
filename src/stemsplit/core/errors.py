"""
Error taxonomy for the separation pipeline.

Every stage raises the first error it hits; nothing here is retried. The
`stage` label is what the CLI prints in its one-line diagnostic.
"""

from pathlib import Path
from typing import Optional, Union


class StemSplitError(Exception):
    """Base exception for stemsplit pipeline errors"""

    stage = "pipeline"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnsupportedFormat(StemSplitError):
    """Input channel count or sample rate is not accepted"""

    stage = "validation"


class ModelInitializationFailure(StemSplitError):
    """Engine or model assets could not be set up"""

    stage = "initialization"


class SeparationFailure(StemSplitError):
    """Inference-time error raised by the separation engine"""

    stage = "separation"


class EngineContractViolation(StemSplitError):
    """Engine returned a stem count or shape that disagrees with the catalog"""

    stage = "separation"


class IOFailure(StemSplitError):
    """Read or write failure on a specific file"""

    stage = "io"

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None):
        super().__init__(message)
        self.path = Path(path) if path is not None else None
