"""Markdown rendering of a ComparisonResult into the PR comment body."""

from src.core.config import DEFAULT_COMMENT_HEADER
from src.core.schemas import ComparisonResult
from src.github.context import GitHubContext

_UNITS: list[tuple[str, int]] = [
    ("d", 86_400),
    ("h", 3_600),
    ("m", 60),
    ("s", 1),
]

TABLE_HEADER = (
    "| Job Name | Base Runtime | PR Runtime | Runtime Difference (%) |\n"
    "|---|---|---|---|\n"
)

NOTHING_TO_COMPARE = (
    "_No job ran on both the base branch and this PR in the tracked workflows, "
    "so there is nothing to compare yet._\n"
)


def format_duration(seconds: int) -> str:
    """Render seconds as e.g. '1h 2m 3s'; zero components are left out."""
    if seconds <= 0:
        return "0s"
    parts: list[str] = []
    remaining = seconds
    for suffix, size in _UNITS:
        value, remaining = divmod(remaining, size)
        if value:
            parts.append(f"{value}{suffix}")
    return " ".join(parts)


def format_pct(value: float) -> str:
    """Signed percentage with two decimals: '+50.00%', '-12.50%', '0.00%'."""
    value = round(value, 2)
    if value == 0:
        return "0.00%"
    return f"{value:+.2f}%"


def escape_cell(text: str) -> str:
    """Escape pipes so a name cannot split a table row."""
    return text.replace("|", "\\|")


def format_comparison_tables(result: ComparisonResult) -> str:
    """One markdown table per workflow, in result order."""
    if result.is_empty:
        return NOTHING_TO_COMPARE

    sections: list[str] = []
    for workflow_name, comparisons in result.workflows.items():
        rows = "".join(
            f"| {escape_cell(c.job_name)} | {format_duration(c.base_runtime_seconds)} | "
            f"{format_duration(c.candidate_runtime_seconds)} | "
            f"{format_pct(c.runtime_difference_pct)} |\n"
            for c in comparisons
        )
        sections.append(f"#### Workflow: {workflow_name}\n\n{TABLE_HEADER}{rows}")
    return "\n".join(sections)


def format_comment_body(
    result: ComparisonResult,
    context: GitHubContext,
    header: str = DEFAULT_COMMENT_HEADER,
) -> str:
    """Full PR comment. Starts with ``header`` so later runs can find and replace it."""
    return (
        f"{header} [{context.short_sha}]({context.commit_url()})\n\n"
        "### CI Runtime Comparison\n\n"
        f"{format_comparison_tables(result)}"
    )
