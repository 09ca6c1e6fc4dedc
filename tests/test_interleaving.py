import numpy as np
import pytest

from stemsplit.audio.interleaving import deinterleave, interleave, interleaved_frames
from stemsplit.audio.waveform import WaveformBuffer


def test_deinterleave_splits_even_and_odd_indices():
    buf = deinterleave(np.array([0.1, -0.1, 0.2, -0.2, 0.3, -0.3], dtype=np.float32))

    assert buf.channel_count == 2
    assert buf.frame_count == 3
    np.testing.assert_array_equal(buf.channel(0), np.array([0.1, 0.2, 0.3], dtype=np.float32))
    np.testing.assert_array_equal(buf.channel(1), np.array([-0.1, -0.2, -0.3], dtype=np.float32))


def test_interleave_alternates_channels():
    buf = WaveformBuffer(np.array([[1, 2, 3], [4, 5, 6]], dtype=np.float32))

    out = interleave(buf)

    assert out.dtype == np.float32
    np.testing.assert_array_equal(out, np.array([1, 4, 2, 5, 3, 6], dtype=np.float32))


@pytest.mark.parametrize("frames", [0, 1, 7, 4096])
def test_round_trip_interleaved(interleaved_noise, frames):
    x = interleaved_noise(frames)
    np.testing.assert_array_equal(interleave(deinterleave(x)), x)


def test_round_trip_planar():
    y = WaveformBuffer(np.arange(20, dtype=np.float32).reshape(2, 10))
    assert deinterleave(interleave(y)) == y


def test_generalized_channel_count():
    # 3 channels, 2 frames: planar[c][f] == interleaved[f * 3 + c]
    x = np.array([0, 1, 2, 10, 11, 12], dtype=np.float32)

    buf = deinterleave(x, channel_count=3)

    np.testing.assert_array_equal(buf.samples, np.array([[0, 10], [1, 11], [2, 12]], dtype=np.float32))
    np.testing.assert_array_equal(interleave(buf), x)


def test_accepts_frame_major_array_from_soundfile():
    frames = np.array([[0.5, -0.5], [0.25, -0.25]], dtype=np.float32)

    buf = deinterleave(frames)

    np.testing.assert_array_equal(buf.channel(0), [0.5, 0.25])
    np.testing.assert_array_equal(interleaved_frames(buf), frames)


def test_odd_length_rejected():
    with pytest.raises(ValueError, match="not a multiple"):
        deinterleave(np.zeros(5, dtype=np.float32))


def test_decoded_buffer_does_not_alias_input():
    x = np.zeros(8, dtype=np.float32)
    buf = deinterleave(x)
    x[0] = 1.0
    assert buf.samples[0, 0] == 0.0


def test_waveform_rejects_non_planar_shapes():
    with pytest.raises(ValueError):
        WaveformBuffer(np.zeros(10, dtype=np.float32))
    with pytest.raises(ValueError):
        WaveformBuffer(np.zeros((1, 2, 3), dtype=np.float32))


def test_waveform_channel_view_is_read_only():
    buf = WaveformBuffer.silent(2, 4)
    with pytest.raises(ValueError):
        buf.channel(0)[0] = 1.0
