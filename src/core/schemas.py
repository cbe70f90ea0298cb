"""Core data models for the CI runtime comparison."""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class JobRecord(BaseModel):
    """One completed execution of a named CI job.

    Frozen - a job that never produced a runtime is left out of the input
    entirely rather than recorded with a zero duration.
    """

    model_config = ConfigDict(frozen=True)

    workflow_name: str
    job_name: str
    duration_seconds: int = Field(ge=0)

    @field_validator("workflow_name", "job_name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v.strip():
            msg = "workflow and job names must not be empty"
            raise ValueError(msg)
        return v.strip()

    @property
    def key(self) -> tuple[str, str]:
        """Identity used for deduplication; the runtime is not part of it."""
        return (self.workflow_name, self.job_name)


class Comparison(BaseModel):
    """A base run and a PR run of the same job, side by side."""

    model_config = ConfigDict(frozen=True)

    job_name: str
    base_runtime_seconds: int = Field(ge=0)
    candidate_runtime_seconds: int = Field(ge=0)
    runtime_difference_pct: float = Field(allow_inf_nan=False)


class ComparisonResult(BaseModel):
    """Per-workflow comparisons. Dict insertion order is the report order."""

    model_config = ConfigDict(frozen=True)

    workflows: dict[str, list[Comparison]] = Field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.workflows

    def workflow_names(self) -> list[str]:
        return list(self.workflows)

    def total_comparisons(self) -> int:
        return sum(len(c) for c in self.workflows.values())
