import os
import sys

import numpy as np
import pytest
import soundfile as sf

# Ensure src/ is importable when running from a checkout without installing
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "../src")))
sys.path.insert(0, os.path.abspath(os.path.dirname(__file__)))

from stemsplit.audio.waveform import AudioFileSpec  # noqa: E402
from stemsplit.core.config import Config  # noqa: E402


@pytest.fixture
def stereo_spec():
    def _make(frames: int = 1000, sample_rate: int = 44100, channels: int = 2) -> AudioFileSpec:
        return AudioFileSpec(sample_rate=sample_rate, channel_count=channels, frame_count=frames)

    return _make


@pytest.fixture
def interleaved_noise():
    def _make(frames: int, channels: int = 2, seed: int = 0) -> np.ndarray:
        rng = np.random.default_rng(seed)
        return rng.uniform(-1.0, 1.0, size=frames * channels).astype(np.float32)

    return _make


@pytest.fixture
def make_wav(tmp_path, interleaved_noise):
    def _make(name: str = "song.wav", frames: int = 4410, sample_rate: int = 44100, channels: int = 2):
        path = tmp_path / name
        data = interleaved_noise(frames, channels).reshape(frames, channels)
        sf.write(str(path), data, sample_rate, subtype="FLOAT")
        return path

    return _make


@pytest.fixture
def config(tmp_path, monkeypatch):
    monkeypatch.delenv("STEMSPLIT_MODELS_DIR", raising=False)
    cfg = Config(tmp_path / "config.json")
    cfg.set("logging.file_enabled", False)
    return cfg
