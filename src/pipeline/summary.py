"""Summary pipeline: wires the GitHub gateway, comparison engine and report.

Data flow:
  1. List workflows, keep the tracked ones
  2. Fetch base (push) and PR (pull_request) jobs concurrently
  3. Build the comparison (EmptyJobSetError aborts here)
  4. Render the comment body
  5. Upsert the PR comment (skipped on dry run)

Any exception before step 5 means nothing is posted.
"""

import json
import logging

from src.comparison.engine import build_comparison
from src.core.config import Settings
from src.core.schemas import ComparisonResult
from src.github.client import GitHubClient, Workflow
from src.report.markdown import format_comment_body

logger = logging.getLogger(__name__)


class SummaryResult:
    """Outcome of one summary run."""

    def __init__(
        self,
        comparison: ComparisonResult,
        body: str,
        base_job_count: int,
        pr_job_count: int,
        comment_id: int | None = None,
    ) -> None:
        self.comparison = comparison
        self.body = body
        self.base_job_count = base_job_count
        self.pr_job_count = pr_job_count
        self.comment_id = comment_id


def select_tracked_workflows(workflows: list[Workflow], tracked: list[str]) -> list[Workflow]:
    """Keep the tracked workflows, ordered as configured."""
    by_name: dict[str, Workflow] = {}
    for workflow in workflows:
        by_name.setdefault(workflow.name, workflow)

    selected = [by_name[name] for name in dict.fromkeys(tracked) if name in by_name]
    missing = [name for name in tracked if name not in by_name]
    if missing:
        logger.warning("Tracked workflows not found in repository: %s", ", ".join(missing))
    return selected


async def run_summary(
    settings: Settings,
    client: GitHubClient,
    *,
    dry_run: bool = False,
) -> SummaryResult:
    """Fetch, compare, render and (unless dry_run) post the runtime summary."""
    workflows = select_tracked_workflows(await client.list_workflows(), settings.tracked_workflows)
    logger.info("Tracking %d workflows", len(workflows))

    base_jobs, pr_jobs = await client.fetch_base_and_pr_jobs(workflows)

    comparison = build_comparison(
        base_jobs,
        pr_jobs,
        tracked_workflows=settings.tracked_workflows,
        duplicate_policy=settings.comparison.duplicate_policy,
    )
    body = format_comment_body(comparison, client.context, settings.report.comment_header)

    comment_id = None
    if dry_run:
        logger.info("Dry run - not posting PR comment")
    else:
        comment_id = await client.upsert_comment(body, settings.report.comment_header)

    return SummaryResult(
        comparison=comparison,
        body=body,
        base_job_count=len(base_jobs),
        pr_job_count=len(pr_jobs),
        comment_id=comment_id,
    )


def export_comparison_json(result: ComparisonResult) -> str:
    """Export a comparison as a JSON string, one row per job."""
    data = []
    for workflow_name, comparisons in result.workflows.items():
        for c in comparisons:
            data.append({
                "workflow_name": workflow_name,
                "job_name": c.job_name,
                "base_runtime_seconds": c.base_runtime_seconds,
                "pr_runtime_seconds": c.candidate_runtime_seconds,
                "runtime_difference_pct": round(c.runtime_difference_pct, 2),
            })
    return json.dumps(data, indent=2)
