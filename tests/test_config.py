"""Tests for configuration loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from selfcite.core.config import AnalysisConfig, PipelineSettings, load_config

DEFAULT_CONFIG = Path(__file__).resolve().parent.parent / "configs" / "default.yaml"


def test_default_yaml_matches_model_defaults():
    config = load_config(DEFAULT_CONFIG)
    assert config == AnalysisConfig()


def test_defaults():
    config = AnalysisConfig()
    assert config.api.base_url == "https://api.semanticscholar.org/graph/v1"
    assert config.api.api_key is None
    assert config.api.max_retries == 5
    assert config.api.initial_delay_s == 0.5
    assert config.pipeline.page_size == 100
    assert config.pipeline.citation_limit == 1000
    assert config.pipeline.batch_size == 1
    assert config.pipeline.batch_pause_s == 1.0


def test_partial_yaml_uses_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("pipeline:\n  batch_size: 4\n")
    config = load_config(path)
    assert config.pipeline.batch_size == 4
    assert config.pipeline.page_size == 100
    assert config.api.max_retries == 5


def test_empty_yaml(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_config(path) == AnalysisConfig()


def test_api_key_hidden(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("api:\n  api_key: very-secret\n")
    config = load_config(path)
    assert config.api.api_key.get_secret_value() == "very-secret"
    assert "very-secret" not in repr(config)
    assert "very-secret" not in str(config.model_dump())


def test_base_url_trailing_slash_stripped():
    config = AnalysisConfig.model_validate({"api": {"base_url": "http://localhost/"}})
    assert config.api.base_url == "http://localhost"


@pytest.mark.parametrize(
    "pipeline",
    [{"batch_size": 0}, {"batch_pause_s": -1}, {"page_size": 0}, {"citation_limit": 5000}],
)
def test_invalid_pipeline_settings_rejected(pipeline):
    with pytest.raises(ValidationError):
        AnalysisConfig.model_validate({"pipeline": pipeline})


def test_assignment_validated():
    settings = PipelineSettings()
    with pytest.raises(ValidationError):
        settings.batch_size = 0
