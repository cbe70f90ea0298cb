"""Pull request context read from the GitHub Actions environment."""

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict


class GitHubContext(BaseModel):
    """Repository and pull request the summary is produced for."""

    model_config = ConfigDict(frozen=True)

    owner: str
    repo: str
    base_branch: str
    pr_branch: str
    pr_number: int
    pr_commit_sha: str

    @property
    def short_sha(self) -> str:
        return self.pr_commit_sha[:7]

    def commit_url(self) -> str:
        return f"https://github.com/{self.owner}/{self.repo}/commit/{self.pr_commit_sha}"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "GitHubContext":
        """Build the context from the variables GitHub sets on pull_request runs.

        Raises:
            ValueError: If a variable is missing or the event payload has no PR.
        """
        env = os.environ if env is None else env

        repository = _require(env, "GITHUB_REPOSITORY")
        owner, sep, repo = repository.partition("/")
        if not sep or not owner or not repo:
            msg = f"GITHUB_REPOSITORY must look like 'owner/repo', got '{repository}'"
            raise ValueError(msg)

        event = _load_event(_require(env, "GITHUB_EVENT_PATH"))
        pull_request = event.get("pull_request")
        if not isinstance(pull_request, dict):
            msg = "Event payload has no pull_request - run this on pull_request events"
            raise ValueError(msg)

        return cls(
            owner=owner,
            repo=repo,
            base_branch=_require(env, "GITHUB_BASE_REF"),
            pr_branch=_require(env, "GITHUB_HEAD_REF"),
            pr_number=pull_request.get("number"),
            pr_commit_sha=(pull_request.get("head") or {}).get("sha"),
        )


def _require(env: Mapping[str, str], name: str) -> str:
    value = env.get(name, "").strip()
    if not value:
        msg = f"{name} environment variable is required"
        raise ValueError(msg)
    return value


def _load_event(path: str) -> dict[str, Any]:
    event_path = Path(path)
    if not event_path.exists():
        msg = f"Event payload not found: {path}"
        raise FileNotFoundError(msg)
    try:
        data = json.loads(event_path.read_text())
    except json.JSONDecodeError as e:
        msg = f"Failed to parse event payload {path}: {e}"
        raise ValueError(msg) from e
    if not isinstance(data, dict):
        msg = f"Event payload is not a JSON object: {path}"
        raise ValueError(msg)
    return data
