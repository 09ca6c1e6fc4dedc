import numpy as np
import pytest
import soundfile as sf

from fixtures.fake_engine import FakeEngine
from stemsplit.audio.interleaving import interleaved_frames
from stemsplit.audio.stem_writer import StemOutputWriter
from stemsplit.audio.waveform import WaveformBuffer
from stemsplit.core.errors import (
    IOFailure,
    ModelInitializationFailure,
    SeparationFailure,
    UnsupportedFormat,
)
from stemsplit.core.separation_manager import SeparationManager
from stemsplit.models.variants import SeparationVariant


def test_end_to_end_two_stems(tmp_path, make_wav, config):
    frames = 220500  # 5 seconds at 44.1kHz
    src = make_wav("song.wav", frames=frames)
    rng = np.random.default_rng(1)
    outputs = [
        WaveformBuffer(rng.uniform(-1, 1, size=(2, frames)).astype(np.float32))
        for _ in range(2)
    ]
    engine = FakeEngine(outputs=outputs)
    out_base = tmp_path / "out"

    report = SeparationManager(engine, config).run(src, SeparationVariant.TWO_STEMS, output_base=out_base)

    assert report.output_dir == out_base / "song_stems"
    assert sorted(p.name for p in report.output_dir.iterdir()) == ["accompaniment.wav", "vocals.wav"]
    for name, expected in zip(["vocals", "accompaniment"], outputs):
        info = sf.info(str(report.output_files[name]))
        assert (info.frames, info.channels, info.samplerate) == (frames, 2, 44100)
        data, _ = sf.read(str(report.output_files[name]), dtype="float32", always_2d=True)
        np.testing.assert_array_equal(data, interleaved_frames(expected))


def test_engine_initialized_with_asset_location_and_variant(tmp_path, make_wav, config):
    src = make_wav()
    models = tmp_path / "models"
    engine = FakeEngine()

    SeparationManager(engine, config).run(
        src, SeparationVariant.FIVE_STEMS, output_base=tmp_path, models_dir=models
    )

    assert engine.asset_location == models
    assert engine.initialized_variants == [SeparationVariant.FIVE_STEMS]


def test_models_dir_falls_back_to_config(tmp_path, make_wav, config):
    config.set("paths.models_dir", str(tmp_path / "assets"))
    engine = FakeEngine()

    SeparationManager(engine, config).run(make_wav(), SeparationVariant.TWO_STEMS, output_base=tmp_path)

    assert engine.asset_location == tmp_path / "assets"


def test_initialization_failure_aborts_before_reading(tmp_path, config, monkeypatch):
    from stemsplit.core import separation_manager

    def _fail(path):
        raise AssertionError("input must not be read")

    monkeypatch.setattr(separation_manager, "read_spec", _fail)
    engine = FakeEngine(init_error=ModelInitializationFailure("assets missing"))

    with pytest.raises(ModelInitializationFailure):
        SeparationManager(engine, config).run(tmp_path / "song.wav", SeparationVariant.TWO_STEMS, output_base=tmp_path)
    assert engine.split_calls == 0


def test_unsupported_input_creates_no_output(tmp_path, make_wav, config):
    src = make_wav("mono.wav", channels=1)
    engine = FakeEngine()
    out_base = tmp_path / "out"

    with pytest.raises(UnsupportedFormat):
        SeparationManager(engine, config).run(src, SeparationVariant.TWO_STEMS, output_base=out_base)

    assert engine.split_calls == 0
    assert not out_base.exists()


def test_48k_input_rejected(tmp_path, make_wav, config):
    engine = FakeEngine()

    with pytest.raises(UnsupportedFormat):
        SeparationManager(engine, config).run(
            make_wav("hi.wav", sample_rate=48000), SeparationVariant.FOUR_STEMS, output_base=tmp_path / "out"
        )
    assert engine.split_calls == 0


def test_missing_input_is_io_failure(tmp_path, config):
    with pytest.raises(IOFailure):
        SeparationManager(FakeEngine(), config).run(
            tmp_path / "nope.wav", SeparationVariant.TWO_STEMS, output_base=tmp_path
        )


def test_separation_failure_writes_nothing(tmp_path, make_wav, config):
    engine = FakeEngine(split_error=SeparationFailure("nan in output"))
    out_base = tmp_path / "out"

    with pytest.raises(SeparationFailure):
        SeparationManager(engine, config).run(make_wav(), SeparationVariant.TWO_STEMS, output_base=out_base)

    assert not (out_base / "song_stems").exists()


class _FailOnSecondStem(StemOutputWriter):
    def write(self, buffer, destination, sample_rate):
        if destination.name == "drums.wav":
            raise IOFailure("disk full", destination)
        return super().write(buffer, destination, sample_rate)


def test_write_failure_rolls_back_staged_stems(tmp_path, make_wav, config):
    out_base = tmp_path / "out"
    manager = SeparationManager(FakeEngine(), config, writer=_FailOnSecondStem())

    with pytest.raises(IOFailure, match="disk full"):
        manager.run(make_wav(), SeparationVariant.FOUR_STEMS, output_base=out_base)

    assert list(out_base.iterdir()) == []


def test_unstaged_write_failure_keeps_earlier_stems(tmp_path, make_wav, config):
    config.set("output.staged_writes", False)
    out_base = tmp_path / "out"
    manager = SeparationManager(FakeEngine(), config, writer=_FailOnSecondStem())

    with pytest.raises(IOFailure):
        manager.run(make_wav(), SeparationVariant.FOUR_STEMS, output_base=out_base)

    assert [p.name for p in (out_base / "song_stems").iterdir()] == ["vocals.wav"]


def test_publish_failure_leaves_no_staging_dir(tmp_path, make_wav, config):
    out_base = tmp_path / "out"
    out_base.mkdir()
    (out_base / "song_stems").write_text("x")

    with pytest.raises(IOFailure, match="Cannot publish"):
        SeparationManager(FakeEngine(), config).run(make_wav(), SeparationVariant.TWO_STEMS, output_base=out_base)

    assert sorted(p.name for p in out_base.iterdir()) == ["song_stems"]
