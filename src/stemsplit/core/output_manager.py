"""
Output directory management for separated stems.

Derives the per-run output directory, checks free disk space, and stages
writes so that a failed run leaves no partial stem set behind.
"""

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional, Union

import psutil

from stemsplit.core.errors import IOFailure

logger = logging.getLogger(__name__)

OUTPUT_DIR_SUFFIX = "_stems"
WAV_HEADER_BYTES = 4096


def output_dir_for(input_path: Union[str, Path], base_dir: Optional[Union[str, Path]] = None) -> Path:
    """
    Output directory for one input: `<base_dir>/<input name without extension>_stems`.

    Example:
        >>> output_dir_for("/music/song.flac", "/tmp")
        PosixPath('/tmp/song_stems')
    """
    base = Path(base_dir) if base_dir is not None else Path.cwd()
    return base / f"{Path(input_path).stem}{OUTPUT_DIR_SUFFIX}"


def estimate_output_bytes(stem_count: int, channel_count: int, frame_count: int) -> int:
    """Bytes needed for `stem_count` float32 WAV files"""
    return stem_count * (channel_count * frame_count * 4 + WAV_HEADER_BYTES)


class OutputPathManager:
    """
    Prepares and publishes one run's output directory.

    With `staged=True` stems go to a hidden sibling directory first;
    `publish()` moves them into place, `discard()` deletes them. With
    `staged=False` stems are written straight into the output directory.

    Args:
        output_dir: Final output directory.
        staged: Write to a staging directory and publish on success.
        min_free_space_mb: Extra headroom required on top of the estimate.
    """

    def __init__(self, output_dir: Union[str, Path], staged: bool = True, min_free_space_mb: float = 0):
        self.output_dir = Path(output_dir)
        self.staged = staged
        self.min_free_space_mb = float(min_free_space_mb or 0)
        self._staging_dir: Optional[Path] = None

    @property
    def write_dir(self) -> Path:
        """Directory stems should be written to right now"""
        if self._staging_dir is not None:
            return self._staging_dir
        return self.output_dir

    def check_free_space(self, required_bytes: int) -> None:
        """
        Raise IOFailure if the output location cannot hold `required_bytes`.
        """
        check_path = self.output_dir
        while not check_path.exists() and check_path != check_path.parent:
            check_path = check_path.parent

        try:
            usage = psutil.disk_usage(str(check_path))
        except OSError as e:
            logger.warning(f"Could not get disk space for {check_path}: {e}")
            return

        needed = required_bytes + int(self.min_free_space_mb * 1024 * 1024)
        if usage.free < needed:
            raise IOFailure(
                f"Insufficient space in {check_path}. "
                f"Need {needed / (1024**2):.1f} MB, have {usage.free / (1024**2):.1f} MB",
                check_path,
            )
        logger.debug(f"Free space OK: {usage.free / (1024**3):.2f} GB at {check_path}")

    def prepare(self) -> Path:
        """Create the directory stems will be written to and return it."""
        try:
            self.output_dir.parent.mkdir(parents=True, exist_ok=True)
            if self.staged:
                self._staging_dir = Path(
                    tempfile.mkdtemp(
                        prefix=f".{self.output_dir.name}.",
                        suffix=".partial",
                        dir=str(self.output_dir.parent),
                    )
                )
                # mkdtemp creates 0700; published directories are 0755
                os.chmod(self._staging_dir, 0o755)
                logger.debug(f"Staging stems in {self._staging_dir}")
            else:
                self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise IOFailure(f"Cannot create output directory {self.output_dir}: {e}", self.output_dir) from e

        return self.write_dir

    def publish(self) -> Path:
        """Move staged stems into the output directory."""
        staging = self._staging_dir
        if staging is None:
            return self.output_dir

        try:
            if not self.output_dir.exists():
                os.rename(staging, self.output_dir)
            else:
                for item in staging.iterdir():
                    os.replace(item, self.output_dir / item.name)
                shutil.rmtree(staging)
        except OSError as e:
            self.discard()
            raise IOFailure(f"Cannot publish stems to {self.output_dir}: {e}", self.output_dir) from e

        self._staging_dir = None
        logger.info(f"Published stems to {self.output_dir}")
        return self.output_dir

    def discard(self) -> None:
        """Remove staged stems after a failed run."""
        staging = self._staging_dir
        if staging is None:
            return
        self._staging_dir = None
        try:
            shutil.rmtree(staging)
            logger.debug(f"Discarded staging directory {staging}")
        except OSError as e:
            logger.warning(f"Failed to remove staging directory {staging}: {e}")
