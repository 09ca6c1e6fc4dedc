"""
Per-stem persistence.

Each stem is interleaved with the codec and written as a WAV file with
32-bit float samples, keeping the source channel count and sample rate.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Union

import soundfile as sf

from stemsplit.audio.interleaving import interleaved_frames
from stemsplit.audio.waveform import WaveformBuffer
from stemsplit.core.errors import IOFailure
from stemsplit.models.variants import output_filename

if TYPE_CHECKING:
    from stemsplit.core.orchestrator import SeparationResult

logger = logging.getLogger(__name__)


class StemOutputWriter:
    """
    Writes stems to disk.

    Args:
        subtype: soundfile subtype; "FLOAT" is 32-bit float PCM.
        max_workers: Stems written concurrently. Stems are independent, so
            with more than one worker they fan out on a thread pool.
    """

    FILE_FORMAT = "WAV"

    def __init__(self, subtype: str = "FLOAT", max_workers: int = 1):
        self.subtype = subtype
        self.max_workers = max(1, int(max_workers or 1))

    def write(
        self,
        buffer: WaveformBuffer,
        destination: Union[str, Path],
        sample_rate: int,
    ) -> Path:
        """
        Write one stem.

        Returns:
            Path: The written file.

        Raises:
            IOFailure: If the file cannot be created or written.
        """
        path = Path(destination)
        frames = interleaved_frames(buffer)
        try:
            sf.write(
                str(path),
                frames,
                sample_rate,
                subtype=self.subtype,
                format=self.FILE_FORMAT,
            )
        except (sf.SoundFileError, RuntimeError, OSError, ValueError) as e:
            raise IOFailure(f"Error creating output file {path}: {e}", path) from e

        logger.debug(f"Wrote {buffer.frame_count} frames to {path}")
        return path

    def write_all(
        self,
        result: "SeparationResult",
        directory: Union[str, Path],
        sample_rate: int,
    ) -> Dict[str, Path]:
        """
        Write every stem of `result` to `<directory>/<stem>.wav`.

        The first failure, in catalog order, is raised and no further result
        is collected. Files already written are left to the caller.
        """
        directory = Path(directory)
        targets = [
            (name, buffer, directory / output_filename(name))
            for name, buffer in result
        ]

        written: Dict[str, Path] = {}
        if self.max_workers == 1 or len(targets) < 2:
            for name, buffer, path in targets:
                written[name] = self.write(buffer, path, sample_rate)
            return written

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [
                (name, executor.submit(self.write, buffer, path, sample_rate))
                for name, buffer, path in targets
            ]
            try:
                for name, future in futures:
                    written[name] = future.result()
            except IOFailure:
                for _, future in futures:
                    future.cancel()
                raise

        return written
