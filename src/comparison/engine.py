"""Runtime comparison engine: pairs base and PR job records per workflow.

Steps:
  1. Reject empty input (either side)
  2. Collapse duplicate (workflow, job) keys on each side (DuplicatePolicy)
  3. Group each side's runtimes by workflow_name
  4. Match job names present on both sides
  5. Compute the percentage delta, skipping zero base runtimes
  6. Order workflows by the tracked list, jobs by first sighting in base
"""

import logging
from collections.abc import Iterable, Mapping, Sequence

from src.core.config import DuplicatePolicy
from src.core.errors import EmptyJobSetError
from src.core.schemas import Comparison, ComparisonResult, JobRecord

logger = logging.getLogger(__name__)


def build_comparison(
    base_jobs: Sequence[JobRecord],
    candidate_jobs: Sequence[JobRecord],
    tracked_workflows: Sequence[str] | None = None,
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.LAST,
) -> ComparisonResult:
    """Compare base-branch job runtimes against PR job runtimes.

    Args:
        base_jobs: Flat job records from the base branch, any order.
        candidate_jobs: Flat job records from the PR branch, any order.
        tracked_workflows: Workflows to compare, in report order. None compares
            every workflow seen, ordered by first appearance in base then PR.
        duplicate_policy: How repeated (workflow, job) records on one side collapse.

    Returns:
        ComparisonResult holding only workflows with at least one matched job.

    Raises:
        EmptyJobSetError: If either input is empty.
    """
    if not base_jobs:
        raise EmptyJobSetError("base")
    if not candidate_jobs:
        raise EmptyJobSetError("PR")

    base_by_workflow = group_by_workflow(collapse_duplicates(base_jobs, duplicate_policy))
    candidate_by_workflow = group_by_workflow(collapse_duplicates(candidate_jobs, duplicate_policy))

    if tracked_workflows is None:
        workflow_order = _unique(list(base_by_workflow) + list(candidate_by_workflow))
    else:
        workflow_order = _unique(tracked_workflows)

    workflows: dict[str, list[Comparison]] = {}
    for workflow_name in workflow_order:
        base = base_by_workflow.get(workflow_name)
        candidate = candidate_by_workflow.get(workflow_name)
        if not base or not candidate:
            logger.debug("Workflow '%s' missing on one side - skipped", workflow_name)
            continue

        comparisons = compare_workflow(workflow_name, base, candidate)
        if comparisons:
            workflows[workflow_name] = comparisons

    result = ComparisonResult(workflows=workflows)
    logger.info(
        "Compared %d jobs across %d workflows",
        result.total_comparisons(), len(result.workflows),
    )
    return result


def collapse_duplicates(
    jobs: Iterable[JobRecord],
    policy: DuplicatePolicy = DuplicatePolicy.LAST,
) -> dict[tuple[str, str], int]:
    """Map JobRecord.key -> runtime, one entry per (workflow, job).

    Keys are ordered by the first time each key appears; the runtime is
    chosen by ``policy`` (last observed, shortest or longest).
    """
    runtimes: dict[tuple[str, str], int] = {}
    for job in jobs:
        current = runtimes.get(job.key)
        if current is None or policy is DuplicatePolicy.LAST:
            runtimes[job.key] = job.duration_seconds
        elif policy is DuplicatePolicy.MIN:
            runtimes[job.key] = min(current, job.duration_seconds)
        else:
            runtimes[job.key] = max(current, job.duration_seconds)
    return runtimes


def group_by_workflow(runtimes: Mapping[tuple[str, str], int]) -> dict[str, dict[str, int]]:
    """Split collapsed runtimes into workflow_name -> {job_name: runtime}, keeping order."""
    grouped: dict[str, dict[str, int]] = {}
    for (workflow_name, job_name), seconds in runtimes.items():
        grouped.setdefault(workflow_name, {})[job_name] = seconds
    return grouped


def compare_workflow(
    workflow_name: str,
    base_runtimes: dict[str, int],
    candidate_runtimes: dict[str, int],
) -> list[Comparison]:
    """Pair job names present on both sides, in base order."""
    comparisons: list[Comparison] = []
    for job_name, base_runtime in base_runtimes.items():
        candidate_runtime = candidate_runtimes.get(job_name)
        if candidate_runtime is None:
            logger.debug("'%s/%s' not run on PR - skipped", workflow_name, job_name)
            continue

        pct = runtime_difference_pct(base_runtime, candidate_runtime)
        if pct is None:
            logger.debug("'%s/%s' has zero base runtime - skipped", workflow_name, job_name)
            continue

        comparisons.append(Comparison(
            job_name=job_name,
            base_runtime_seconds=base_runtime,
            candidate_runtime_seconds=candidate_runtime,
            runtime_difference_pct=pct,
        ))
    return comparisons


def runtime_difference_pct(base_seconds: int, candidate_seconds: int) -> float | None:
    """Percent change of candidate vs. base; None when base is zero."""
    if base_seconds == 0:
        return None
    return (candidate_seconds - base_seconds) / base_seconds * 100.0


def _unique(names: Iterable[str]) -> list[str]:
    """Stripped, non-empty names in first-seen order."""
    return list(dict.fromkeys(name.strip() for name in names if name.strip()))
