"""
stemsplit package root.

Splits a stereo recording into stems (vocals, drums, bass, ...) for a chosen
separation variant and writes each stem as a 32-bit float WAV file.

Public API policy:
- Keep this file lightweight and free of heavy imports (e.g. torch) at import time.
- Re-export only the stable, high-level entry points here.

Examples:
    from stemsplit import SeparationOrchestrator, SeparationVariant
    from stemsplit.models.demucs_engine import DemucsEngine
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version

__all__ = [
    "__version__",
    "AudioFileSpec",
    "Config",
    "SeparationEngine",
    "SeparationManager",
    "SeparationOrchestrator",
    "SeparationResult",
    "SeparationVariant",
    "StemOutputWriter",
    "WaveformBuffer",
]

try:
    __version__ = _pkg_version("stemsplit")
except PackageNotFoundError:
    # Package is being used from source without installed metadata
    __version__ = "0.0.0+local"

from stemsplit.audio.stem_writer import StemOutputWriter  # noqa: E402
from stemsplit.audio.waveform import AudioFileSpec, WaveformBuffer  # noqa: E402
from stemsplit.core.config import Config  # noqa: E402
from stemsplit.core.orchestrator import SeparationOrchestrator, SeparationResult  # noqa: E402
from stemsplit.core.separation_manager import SeparationManager  # noqa: E402
from stemsplit.models.engine import SeparationEngine  # noqa: E402
from stemsplit.models.variants import SeparationVariant  # noqa: E402
