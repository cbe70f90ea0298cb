"""Tests for markdown rendering of the comparison."""

from src.core.schemas import Comparison, ComparisonResult
from src.github.context import GitHubContext
from src.report.markdown import (
    NOTHING_TO_COMPARE,
    format_comment_body,
    format_comparison_tables,
    format_duration,
    format_pct,
)


def _context() -> GitHubContext:
    return GitHubContext(
        owner="acme",
        repo="widgets",
        base_branch="main",
        pr_branch="feature",
        pr_number=7,
        pr_commit_sha="0123456789abcdef0123456789abcdef01234567",
    )


def _comparison(job_name: str, base: int, pr: int, pct: float) -> Comparison:
    return Comparison(
        job_name=job_name,
        base_runtime_seconds=base,
        candidate_runtime_seconds=pr,
        runtime_difference_pct=pct,
    )


class TestFormatDuration:
    def test_zero(self) -> None:
        assert format_duration(0) == "0s"

    def test_seconds_only(self) -> None:
        assert format_duration(45) == "45s"

    def test_whole_minute(self) -> None:
        assert format_duration(60) == "1m"

    def test_hours_minutes_seconds(self) -> None:
        assert format_duration(3723) == "1h 2m 3s"

    def test_zero_components_omitted(self) -> None:
        assert format_duration(3605) == "1h 5s"

    def test_days(self) -> None:
        assert format_duration(90061) == "1d 1h 1m 1s"


class TestFormatPct:
    def test_positive_has_sign(self) -> None:
        assert format_pct(50.0) == "+50.00%"

    def test_negative(self) -> None:
        assert format_pct(-12.5) == "-12.50%"

    def test_zero_unsigned(self) -> None:
        assert format_pct(0.0) == "0.00%"

    def test_tiny_negative_rounds_to_zero(self) -> None:
        assert format_pct(-0.001) == "0.00%"

    def test_tiny_positive_rounds_to_zero(self) -> None:
        assert format_pct(0.004) == "0.00%"

    def test_rounds_before_formatting(self) -> None:
        assert format_pct(0.006) == "+0.01%"


class TestFormatComparisonTables:
    def test_empty_result_note(self) -> None:
        assert format_comparison_tables(ComparisonResult()) == NOTHING_TO_COMPARE

    def test_table_rows(self) -> None:
        result = ComparisonResult(workflows={
            "Rust": [_comparison("test", 100, 150, 50.0)],
        })
        text = format_comparison_tables(result)
        assert "#### Workflow: Rust" in text
        assert "| Job Name | Base Runtime | PR Runtime | Runtime Difference (%) |" in text
        assert "|---|---|---|---|\n| test | 1m 40s | 2m 30s | +50.00% |\n" in text

    def test_pipe_in_job_name_escaped(self) -> None:
        result = ComparisonResult(workflows={
            "Rust": [_comparison("test (linux | x64)", 60, 60, 0.0)],
        })
        text = format_comparison_tables(result)
        assert "| test (linux \\| x64) | 1m | 1m | 0.00% |\n" in text

    def test_workflow_order(self) -> None:
        result = ComparisonResult(workflows={
            "B": [_comparison("b", 10, 10, 0.0)],
            "A": [_comparison("a", 10, 10, 0.0)],
        })
        text = format_comparison_tables(result)
        assert text.index("Workflow: B") < text.index("Workflow: A")


class TestFormatCommentBody:
    def test_header_and_commit_link(self) -> None:
        result = ComparisonResult(workflows={"Rust": [_comparison("test", 10, 5, -50.0)]})
        body = format_comment_body(result, _context(), "## Performance Summary for commit")
        assert body.startswith(
            "## Performance Summary for commit [0123456]"
            "(https://github.com/acme/widgets/commit/0123456789abcdef0123456789abcdef01234567)"
        )
        assert "### CI Runtime Comparison" in body
        assert "-50.00%" in body

    def test_custom_header(self) -> None:
        body = format_comment_body(ComparisonResult(), _context(), "## Runtimes")
        assert body.startswith("## Runtimes [0123456]")
        assert NOTHING_TO_COMPARE in body
