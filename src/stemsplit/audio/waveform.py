"""
Audio buffer data model.

`WaveformBuffer` holds planar float32 samples shaped (channels, frames), the
layout the separation engine works in. `AudioFileSpec` is the header of the
input file: sample rate, channel count and frame count.
"""

from dataclasses import dataclass
from typing import Any

import numpy as np


@dataclass(frozen=True)
class AudioFileSpec:
    """Header properties of an audio file, immutable once read"""
    sample_rate: int
    channel_count: int
    frame_count: int

    @classmethod
    def from_info(cls, info: Any) -> "AudioFileSpec":
        """Build from a `soundfile.info` result (or anything with the same fields)"""
        return cls(
            sample_rate=int(info.samplerate),
            channel_count=int(info.channels),
            frame_count=int(info.frames),
        )

    @property
    def duration_seconds(self) -> float:
        if self.sample_rate <= 0:
            return 0.0
        return self.frame_count / float(self.sample_rate)


class WaveformBuffer:
    """
    Fixed channel count, variable length multi-channel audio.

    Samples are stored planar: one contiguous float32 row of `frame_count`
    values per channel. The constructor always copies, so a buffer never
    shares memory with the array it was built from.
    """

    __slots__ = ("_samples",)

    def __init__(self, samples: np.ndarray):
        data = np.array(samples, dtype=np.float32, order="C", copy=True)
        if data.ndim != 2:
            raise ValueError(
                f"Planar samples must be 2-D (channels, frames), got shape {data.shape}"
            )
        if data.shape[0] < 1:
            raise ValueError("WaveformBuffer needs at least one channel")
        self._samples = data

    @classmethod
    def silent(cls, channel_count: int, frame_count: int) -> "WaveformBuffer":
        return cls(np.zeros((channel_count, frame_count), dtype=np.float32))

    @property
    def samples(self) -> np.ndarray:
        return self._samples

    @property
    def channel_count(self) -> int:
        return int(self._samples.shape[0])

    @property
    def frame_count(self) -> int:
        return int(self._samples.shape[1])

    def channel(self, index: int) -> np.ndarray:
        """Read-only view of one channel"""
        view = self._samples[index]
        view.flags.writeable = False
        return view

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, WaveformBuffer):
            return NotImplemented
        return np.array_equal(self._samples, other._samples)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"WaveformBuffer(channel_count={self.channel_count}, "
            f"frame_count={self.frame_count})"
        )
