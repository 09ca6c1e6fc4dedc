"""
Reading input audio with soundfile.

The header is read separately from the samples so the format gate can reject
a file without decoding it.
"""

import logging
from pathlib import Path
from typing import Union

import numpy as np
import soundfile as sf

from stemsplit.audio.waveform import AudioFileSpec
from stemsplit.core.errors import IOFailure

logger = logging.getLogger(__name__)


def read_spec(path: Union[str, Path]) -> AudioFileSpec:
    """Read the header of `path` without decoding samples."""
    try:
        info = sf.info(str(path))
    except (sf.SoundFileError, RuntimeError, OSError) as e:
        raise IOFailure(f"Error opening input file {path}: {e}", path) from e

    spec = AudioFileSpec.from_info(info)
    logger.info(
        f"Input {Path(path).name}: {spec.duration_seconds:.2f}s, "
        f"{spec.sample_rate}Hz, {spec.channel_count}ch"
    )
    return spec


def read_interleaved(path: Union[str, Path]) -> np.ndarray:
    """
    Decode every frame of `path` to 32-bit float.

    Returns:
        1-D interleaved float32 buffer of length `channels * frames`.
    """
    try:
        data, _ = sf.read(str(path), dtype="float32", always_2d=True)
    except (sf.SoundFileError, RuntimeError, OSError) as e:
        raise IOFailure(f"Error reading input file {path}: {e}", path) from e

    # soundfile returns (frames, channels) in C order, i.e. interleaved memory
    return np.ascontiguousarray(data).reshape(-1)
