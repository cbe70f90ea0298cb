"""GitHub Actions gateway: workflows, latest runs, job durations, PR comments.

Hard rules:
  - Read-only except for the single summary comment
  - No retries; any HTTP failure becomes FetchError and aborts the run
  - Jobs that did not run to completion (skipped, cancelled, unfinished)
    are dropped, never reported as 0s
"""

import asyncio
import logging
from collections.abc import Sequence
from datetime import datetime
from types import TracebackType
from typing import Any

import httpx
from pydantic import BaseModel

from src.core.config import GitHubConfig
from src.core.errors import FetchError
from src.core.schemas import JobRecord
from src.github.context import GitHubContext

logger = logging.getLogger(__name__)

BASE_EVENT = "push"
PR_EVENT = "pull_request"

# Only these conclusions mean the job actually ran to completion.
COUNTED_CONCLUSIONS = frozenset({"success", "failure"})


class Workflow(BaseModel):
    """A workflow definition as listed by the Actions API."""

    id: int
    name: str


class _WorkflowJob(BaseModel):
    name: str
    conclusion: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None


class GitHubClient:
    """Async context manager that owns one httpx client for the GitHub REST API.

    Usage::

        async with GitHubClient(config, context, token) as client:
            workflows = await client.list_workflows()
            base_jobs, pr_jobs = await client.fetch_base_and_pr_jobs(workflows)
    """

    def __init__(
        self,
        config: GitHubConfig,
        context: GitHubContext,
        token: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._context = context
        self._token = token
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    @property
    def http(self) -> httpx.AsyncClient:
        """The underlying httpx client. Raises if not entered."""
        if self._http is None:
            msg = "GitHubClient not entered - use 'async with'"
            raise RuntimeError(msg)
        return self._http

    async def __aenter__(self) -> "GitHubClient":
        self._http = httpx.AsyncClient(
            base_url=self._config.api_url,
            headers={
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {self._token}",
                "X-GitHub-Api-Version": "2022-11-28",
            },
            timeout=self._config.timeout_s,
            transport=self._transport,
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    @property
    def context(self) -> GitHubContext:
        return self._context

    @property
    def _repo_path(self) -> str:
        return f"/repos/{self._context.owner}/{self._context.repo}"

    # --- Workflows and jobs ---

    async def list_workflows(self) -> list[Workflow]:
        """Return every workflow defined in the repository."""
        items = await self._get_paginated(f"{self._repo_path}/actions/workflows", "workflows")
        return [Workflow.model_validate(item) for item in items]

    async def latest_run(self, workflow_id: int, branch: str, event: str) -> dict[str, Any] | None:
        """Return the most recent run of a workflow for a branch and event, if any."""
        data = await self._get_json(
            f"{self._repo_path}/actions/workflows/{workflow_id}/runs",
            params={"branch": branch, "event": event, "per_page": 1},
        )
        runs = data.get("workflow_runs") or []
        return runs[0] if runs else None

    async def run_jobs(self, run_id: int, workflow_name: str) -> list[JobRecord]:
        """Return completed jobs of a workflow run as JobRecords."""
        items = await self._get_paginated(f"{self._repo_path}/actions/runs/{run_id}/jobs", "jobs")
        records: list[JobRecord] = []
        for item in items:
            job = _WorkflowJob.model_validate(item)
            if job.conclusion not in COUNTED_CONCLUSIONS:
                logger.debug(
                    "Job '%s' in run %d concluded %s - skipped", job.name, run_id, job.conclusion,
                )
                continue
            if job.started_at is None or job.completed_at is None:
                logger.debug("Job '%s' in run %d has no runtime - skipped", job.name, run_id)
                continue
            duration = int((job.completed_at - job.started_at).total_seconds())
            records.append(JobRecord(
                workflow_name=workflow_name,
                job_name=job.name,
                duration_seconds=max(0, duration),
            ))
        return records

    async def latest_jobs(
        self,
        branch: str,
        event: str,
        workflows: Sequence[Workflow],
    ) -> list[JobRecord]:
        """Collect the jobs of the latest run of each workflow on a branch."""
        jobs: list[JobRecord] = []
        for workflow in workflows:
            run = await self.latest_run(workflow.id, branch, event)
            if run is None:
                logger.info("No '%s' run of '%s' on %s", event, workflow.name, branch)
                continue
            run_jobs = await self.run_jobs(run["id"], workflow.name)
            logger.debug(
                "Run %d of '%s' on %s: %d jobs", run["id"], workflow.name, branch, len(run_jobs),
            )
            jobs.extend(run_jobs)
        return jobs

    async def fetch_base_and_pr_jobs(
        self,
        workflows: Sequence[Workflow],
    ) -> tuple[list[JobRecord], list[JobRecord]]:
        """Fetch base (push) and PR (pull_request) jobs concurrently.

        A failure on either side propagates; no partial result is returned.
        """
        base_jobs, pr_jobs = await asyncio.gather(
            self.latest_jobs(self._context.base_branch, BASE_EVENT, workflows),
            self.latest_jobs(self._context.pr_branch, PR_EVENT, workflows),
        )
        logger.info("Fetched %d base jobs, %d PR jobs", len(base_jobs), len(pr_jobs))
        return base_jobs, pr_jobs

    # --- PR comment ---

    async def upsert_comment(self, body: str, header: str) -> int:
        """Replace the comment starting with ``header`` or create one. Returns its id."""
        comments_path = f"{self._repo_path}/issues/{self._context.pr_number}/comments"
        comments = await self._get_paginated(comments_path)

        existing = next(
            (c for c in comments if (c.get("body") or "").startswith(header)),
            None,
        )
        if existing is not None:
            data = await self._send("PATCH", f"{self._repo_path}/issues/comments/{existing['id']}", body)
            logger.info("Updated PR comment %d", data["id"])
        else:
            data = await self._send("POST", comments_path, body)
            logger.info("Created PR comment %d", data["id"])
        return int(data["id"])

    # --- HTTP helpers ---

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        try:
            resp = await self.http.get(path, params=params)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPError as e:
            msg = f"GET {path} failed: {e}"
            raise FetchError(msg) from e

    async def _get_paginated(self, path: str, key: str | None = None) -> list[dict[str, Any]]:
        """Follow ``page`` until a short page. ``key`` selects the list in wrapped responses."""
        per_page = self._config.per_page
        items: list[dict[str, Any]] = []
        page = 1
        while True:
            data = await self._get_json(path, params={"per_page": per_page, "page": page})
            batch = (data.get(key) or []) if key is not None else data
            items.extend(batch)
            if len(batch) < per_page:
                return items
            page += 1

    async def _send(self, method: str, path: str, body: str) -> dict[str, Any]:
        try:
            resp = await self.http.request(method, path, json={"body": body})
            resp.raise_for_status()
            return resp.json()  # type: ignore[no-any-return]
        except httpx.HTTPError as e:
            msg = f"{method} {path} failed: {e}"
            raise FetchError(msg) from e
