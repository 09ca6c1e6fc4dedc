"""
Conversion between interleaved and planar sample order.

Interleaved order is what audio codecs read and write: for two channels
`[L0, R0, L1, R1, ...]`. Planar order is one contiguous run per channel, the
layout `WaveformBuffer` stores. For C channels the mapping is

    planar[c][f] == interleaved[f * C + c]

Both directions allocate a new array and never touch the filesystem.
"""

import numpy as np

from stemsplit.audio.waveform import WaveformBuffer

STEREO = 2


def deinterleave(interleaved: np.ndarray, channel_count: int = STEREO) -> WaveformBuffer:
    """
    Decode interleaved samples into a planar WaveformBuffer.

    Args:
        interleaved: 1-D buffer of length `channel_count * frames`, or a
            frame-major `(frames, channel_count)` array as returned by
            `soundfile.read`.
        channel_count: Number of interleaved channels.

    Returns:
        WaveformBuffer with `channel_count` channels.

    Raises:
        ValueError: If the buffer length is not a multiple of `channel_count`
            or a 2-D array has the wrong number of columns.
    """
    if channel_count < 1:
        raise ValueError(f"channel_count must be positive, got {channel_count}")

    data = np.asarray(interleaved, dtype=np.float32)
    if data.ndim == 2:
        if data.shape[1] != channel_count:
            raise ValueError(
                f"Expected {channel_count} interleaved channels, got array of shape {data.shape}"
            )
        data = data.reshape(-1)
    elif data.ndim != 1:
        raise ValueError(f"Interleaved buffer must be 1-D, got shape {data.shape}")

    if data.size % channel_count != 0:
        raise ValueError(
            f"Interleaved length {data.size} is not a multiple of {channel_count} channels"
        )

    frames = data.size // channel_count
    # (frames, C) -> (C, frames); WaveformBuffer copies into contiguous rows
    return WaveformBuffer(data.reshape(frames, channel_count).T)


def interleave(buffer: WaveformBuffer) -> np.ndarray:
    """Encode a planar WaveformBuffer to a 1-D interleaved float32 buffer."""
    return interleaved_frames(buffer).reshape(-1)


def interleaved_frames(buffer: WaveformBuffer) -> np.ndarray:
    """
    Encode to a frame-major `(frames, channels)` array.

    Same memory layout as `interleave`; this is the shape soundfile writes.
    """
    return np.ascontiguousarray(buffer.samples.T, dtype=np.float32)
