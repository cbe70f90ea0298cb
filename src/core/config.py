"""Configuration models and YAML loader for the CI runtime summary."""

from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

DEFAULT_COMMENT_HEADER = "## Performance Summary for commit"


class DuplicatePolicy(str, Enum):
    """Which run to keep when one side reports the same job more than once."""

    LAST = "last"
    MIN = "min"
    MAX = "max"


class ComparisonConfig(BaseModel):
    """Knobs for the comparison engine."""

    duplicate_policy: DuplicatePolicy = DuplicatePolicy.LAST


class GitHubConfig(BaseModel):
    """GitHub REST API access."""

    api_url: str = "https://api.github.com"
    timeout_s: float = Field(default=30.0, gt=0)
    per_page: int = Field(default=100, ge=1, le=100)

    @field_validator("api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class ReportConfig(BaseModel):
    """Rendering options for the PR comment."""

    comment_header: str = DEFAULT_COMMENT_HEADER

    @field_validator("comment_header")
    @classmethod
    def header_not_empty(cls, v: str) -> str:
        if not v.strip():
            msg = "comment_header must not be empty"
            raise ValueError(msg)
        return v.strip()


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    tracked_workflows: list[str]
    comparison: ComparisonConfig = Field(default_factory=ComparisonConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)

    @field_validator("tracked_workflows")
    @classmethod
    def at_least_one_workflow(cls, v: list[str]) -> list[str]:
        names = [name.strip() for name in v if name.strip()]
        if not names:
            msg = "at least one tracked workflow must be configured"
            raise ValueError(msg)
        return names

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)
