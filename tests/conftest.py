"""Shared fixtures: an in-memory GitHub Actions API served through httpx.MockTransport."""

import json
from typing import Any

import httpx
import pytest

from src.github.context import GitHubContext


class FakeGitHub:
    """Just enough of the REST API for workflows, runs, jobs and issue comments."""

    def __init__(self) -> None:
        self.workflows: list[dict[str, Any]] = []
        self.runs: dict[tuple[int, str, str], dict[str, Any]] = {}
        self.jobs: dict[int, list[dict[str, Any]]] = {}
        self.comments: list[dict[str, Any]] = []
        self.fail_paths: set[str] = set()
        self.requests: list[httpx.Request] = []
        self._next_comment_id = 1000

    def add_workflow(self, workflow_id: int, name: str) -> None:
        self.workflows.append({"id": workflow_id, "name": name, "state": "active"})

    def add_run(
        self,
        workflow_id: int,
        branch: str,
        event: str,
        run_id: int,
        jobs: list[tuple[str, int | None]],
        conclusions: dict[str, str] | None = None,
    ) -> None:
        """Register a run; each job is (name, seconds) with None meaning not finished.

        Finished jobs conclude "success" unless ``conclusions`` says otherwise.
        """
        conclusions = conclusions or {}
        self.runs[(workflow_id, branch, event)] = {"id": run_id, "head_branch": branch, "event": event}
        self.jobs[run_id] = [
            _job_payload(run_id * 100 + i, name, secs, conclusions.get(name, "success"))
            for i, (name, secs) in enumerate(jobs)
        ]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        params = request.url.params
        if any(fragment in path for fragment in self.fail_paths):
            return httpx.Response(500, json={"message": "boom"})

        parts = path.strip("/").split("/")
        # /repos/{owner}/{repo}/...
        tail = parts[3:]

        if tail == ["actions", "workflows"]:
            return httpx.Response(200, json={"workflows": _page(self.workflows, params)})

        if len(tail) == 4 and tail[:2] == ["actions", "workflows"] and tail[3] == "runs":
            run = self.runs.get((int(tail[2]), params["branch"], params["event"]))
            return httpx.Response(200, json={"workflow_runs": [run] if run else []})

        if len(tail) == 4 and tail[:2] == ["actions", "runs"] and tail[3] == "jobs":
            return httpx.Response(200, json={"jobs": _page(self.jobs.get(int(tail[2]), []), params)})

        if len(tail) == 3 and tail[0] == "issues" and tail[2] == "comments":
            if request.method == "GET":
                return httpx.Response(200, json=_page(self.comments, params))
            comment = {"id": self._next_comment_id, "body": json.loads(request.content)["body"]}
            self._next_comment_id += 1
            self.comments.append(comment)
            return httpx.Response(201, json=comment)

        if len(tail) == 3 and tail[:2] == ["issues", "comments"] and request.method == "PATCH":
            comment_id = int(tail[2])
            for comment in self.comments:
                if comment["id"] == comment_id:
                    comment["body"] = json.loads(request.content)["body"]
                    return httpx.Response(200, json=comment)

        return httpx.Response(404, json={"message": "Not Found"})


def _page(items: list[dict[str, Any]], params: httpx.QueryParams) -> list[dict[str, Any]]:
    per_page = int(params.get("per_page", 30))
    page = int(params.get("page", 1))
    return items[(page - 1) * per_page:page * per_page]


def _job_payload(job_id: int, name: str, seconds: int | None, conclusion: str) -> dict[str, Any]:
    started = "2026-01-01T10:00:00Z"
    if seconds is None:
        return {
            "id": job_id, "name": name, "status": "in_progress", "conclusion": None,
            "started_at": started, "completed_at": None,
        }
    minutes, secs = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    completed = f"2026-01-01T{10 + hours:02d}:{minutes:02d}:{secs:02d}Z"
    return {
        "id": job_id, "name": name, "status": "completed", "conclusion": conclusion,
        "started_at": started, "completed_at": completed,
    }


@pytest.fixture
def fake_github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def gh_context() -> GitHubContext:
    return GitHubContext(
        owner="acme",
        repo="widgets",
        base_branch="main",
        pr_branch="feature/faster-tests",
        pr_number=42,
        pr_commit_sha="abcdef0123456789abcdef0123456789abcdef01",
    )
