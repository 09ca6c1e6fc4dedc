import pytest

from fixtures.fake_engine import FakeEngine
from stemsplit import cli
from stemsplit.core.errors import ModelInitializationFailure


@pytest.fixture
def fake_engine(monkeypatch):
    holder = {"engine": FakeEngine()}
    monkeypatch.setattr(cli, "engine_from_config", lambda config: holder["engine"])
    return holder


@pytest.fixture
def quiet_config(tmp_path):
    path = tmp_path / "config.json"
    path.write_text('{"logging": {"file_enabled": false, "level": "ERROR"}}', encoding="utf-8")
    return str(path)


def test_success_exit_code_and_message(tmp_path, make_wav, fake_engine, quiet_config, capsys):
    src = make_wav()

    code = cli.main([str(src), "4stems", "-o", str(tmp_path / "out"), "--config", quiet_config])

    assert code == 0
    out_dir = tmp_path / "out" / "song_stems"
    assert "Separation complete. Output saved to: " + str(out_dir) in capsys.readouterr().out
    assert sorted(p.name for p in out_dir.iterdir()) == ["bass.wav", "drums.wav", "other.wav", "vocals.wav"]


@pytest.mark.parametrize("argv", [[], ["song.wav"], ["song.wav", "3stems"], ["a", "2stems", "extra"]])
def test_usage_errors_exit_1(argv, capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(argv)
    assert exc.value.code == 1
    assert "usage:" in capsys.readouterr().err


def test_unsupported_format_exit_1(tmp_path, make_wav, fake_engine, quiet_config, capsys):
    src = make_wav("mono.wav", channels=1)

    code = cli.main([str(src), "2stems", "-o", str(tmp_path / "out"), "--config", quiet_config])

    assert code == 1
    assert "Validation failed: Input must be 44100Hz" in capsys.readouterr().err
    assert fake_engine["engine"].split_calls == 0


def test_initialization_failure_exit_1(tmp_path, make_wav, fake_engine, quiet_config, capsys):
    fake_engine["engine"] = FakeEngine(init_error=ModelInitializationFailure("models not found"))

    code = cli.main([str(make_wav()), "5stems", "-o", str(tmp_path), "--config", quiet_config])

    assert code == 1
    assert "Initialization failed: models not found" in capsys.readouterr().err


def test_unexpected_error_exit_1(tmp_path, make_wav, fake_engine, quiet_config):
    fake_engine["engine"] = FakeEngine(init_error=KeyError("boom"))

    assert cli.main([str(make_wav()), "2stems", "-o", str(tmp_path), "--config", quiet_config]) == 1


def test_workers_and_device_flags_reach_config(tmp_path, make_wav, quiet_config, monkeypatch):
    seen = {}

    def _engine(config):
        seen["device"] = config.get("engine.device")
        seen["workers"] = config.get("output.max_workers")
        return FakeEngine()

    monkeypatch.setattr(cli, "engine_from_config", _engine)

    code = cli.main([
        str(make_wav()), "2stems", "-o", str(tmp_path),
        "--config", quiet_config, "--device", "cpu", "--workers", "2",
    ])

    assert code == 0
    assert seen == {"device": "cpu", "workers": 2}


def test_failure_prints_one_line_at_default_log_level(tmp_path, make_wav, fake_engine, capsys):
    cfg = tmp_path / "config.json"
    cfg.write_text('{"logging": {"file_enabled": false}}', encoding="utf-8")
    src = make_wav("mono.wav", channels=1)

    code = cli.main([str(src), "2stems", "-o", str(tmp_path / "out"), "--config", str(cfg)])

    assert code == 1
    lines = [line for line in capsys.readouterr().err.splitlines() if line.strip()]
    assert len(lines) == 1
    assert lines[0].startswith("Validation failed: ")
