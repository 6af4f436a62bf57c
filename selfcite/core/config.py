"""Analysis configuration: Pydantic models and YAML loader."""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator


# ── API ──────────────────────────────────────────────────────────────


class ApiSettings(BaseModel):
    """Semantic Scholar Graph API access and retry policy."""

    base_url: str = "https://api.semanticscholar.org/graph/v1"
    api_key: Optional[SecretStr] = Field(
        default=None, description="Sent as x-api-key, never logged"
    )
    timeout_s: float = Field(default=30.0, gt=0)
    max_retries: int = Field(default=5, ge=0, description="Retries after a 429")
    initial_delay_s: float = Field(default=0.5, ge=0)

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


# ── Pipeline ─────────────────────────────────────────────────────────


class PipelineSettings(BaseModel):
    """Pagination sizes and pacing of the analysis run."""

    model_config = ConfigDict(validate_assignment=True)

    page_size: int = Field(default=100, ge=1, le=1000)
    citation_limit: int = Field(default=1000, ge=1, le=1000)
    author_pause_s: float = Field(default=1.0, ge=0)
    batch_size: int = Field(default=1, ge=1)
    batch_pause_s: float = Field(default=1.0, ge=0)


# ── Top-level ────────────────────────────────────────────────────────


class AnalysisConfig(BaseModel):
    """Configuration for one analyzer instance."""

    api: ApiSettings = Field(default_factory=ApiSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)


def load_config(path: str | Path) -> AnalysisConfig:
    """Load a YAML config from disk and return a validated model.

    An empty file, or one missing a section, falls back to the defaults.
    """
    path = Path(path)
    with open(path) as f:
        raw = yaml.safe_load(f) or {}
    return AnalysisConfig.model_validate(raw)
