"""Tests for the command-line runner."""

import pytest

import scripts.run_analysis as cli
from selfcite.core.errors import RetrievalError


@pytest.fixture()
def captured(monkeypatch):
    calls = []

    def fake_run(author_ids, config, output_dir=None, sort_by="self_citations"):
        calls.append((author_ids, config, output_dir, sort_by))

    monkeypatch.setattr(cli, "run_analysis", fake_run)
    monkeypatch.delenv("S2_API_KEY", raising=False)
    return calls


def test_options_override_config(captured):
    assert cli.main(["A1", "A2", "--batch-size", "3", "--pause", "0"]) == 0
    author_ids, config, output_dir, sort_by = captured[0]
    assert author_ids == ["A1", "A2"]
    assert config.pipeline.batch_size == 3
    assert config.pipeline.batch_pause_s == 0.0
    assert output_dir is None
    assert sort_by == "self_citations"


@pytest.mark.parametrize(
    "option", [["--batch-size", "0"], ["--batch-size", "-2"], ["--pause=-1"], ["--batch-size", "x"]]
)
def test_invalid_options_rejected(option, captured, capsys):
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["A1", *option])
    assert exc_info.value.code == 2
    assert "error" in capsys.readouterr().err
    assert captured == []


def test_invalid_config_file_rejected(tmp_path, captured, capsys):
    path = tmp_path / "bad.yaml"
    path.write_text("pipeline:\n  batch_size: 0\n")
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["A1", "--config", str(path)])
    assert exc_info.value.code == 2
    assert "invalid config" in capsys.readouterr().err


def test_api_key_from_environment(captured, monkeypatch):
    monkeypatch.setenv("S2_API_KEY", "env-key")
    cli.main(["A1"])
    assert captured[0][1].api.api_key.get_secret_value() == "env-key"


def test_retrieval_failure_exits_nonzero(monkeypatch):
    def failing_run(*args, **kwargs):
        raise RetrievalError("Malformed author record for A1", status_code=200, author_id="A1")

    monkeypatch.setattr(cli, "run_analysis", failing_run)
    assert cli.main(["A1"]) == 1
