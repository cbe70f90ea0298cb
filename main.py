"""CLI entry point for the CI runtime summary."""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

from pydantic import TypeAdapter

from src.comparison.engine import build_comparison
from src.core.config import DuplicatePolicy, Settings
from src.core.errors import EmptyJobSetError, FetchError
from src.core.schemas import JobRecord
from src.github.client import GitHubClient
from src.github.context import GitHubContext
from src.pipeline.summary import export_comparison_json, run_summary
from src.report.markdown import format_comparison_tables

_JOB_LIST = TypeAdapter(list[JobRecord])


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Compare CI job runtimes between the base branch and a pull request",
    )
    subparsers = parser.add_subparsers(dest="command")

    # --- summary subcommand (default) ---
    summary_parser = subparsers.add_parser(
        "summary",
        help="Fetch runs from GitHub Actions and upsert the PR comment",
    )
    summary_parser.add_argument(
        "--config",
        default="config/settings.yaml",
        help="Path to settings YAML file (default: config/settings.yaml)",
    )
    summary_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the comment instead of posting it",
    )
    summary_parser.add_argument(
        "--output",
        help="Also write the rendered markdown to this path",
    )
    summary_parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    # --- compare subcommand ---
    compare_parser = subparsers.add_parser(
        "compare",
        help="Compare two local JSON job lists without calling GitHub",
    )
    compare_parser.add_argument("--base", required=True, help="JSON array of base-branch job records")
    compare_parser.add_argument("--pr", required=True, help="JSON array of PR job records")
    compare_parser.add_argument(
        "--config",
        help="Optional settings YAML for tracked workflows and duplicate policy",
    )
    compare_parser.add_argument(
        "--format",
        choices=["markdown", "json"],
        default="markdown",
        help="Output format (default: markdown)",
    )
    compare_parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    # --- backward compat: top-level flags for summary ---
    parser.add_argument("--config", default="config/settings.yaml", help=argparse.SUPPRESS)
    parser.add_argument("--dry-run", action="store_true", help=argparse.SUPPRESS)
    parser.add_argument("--output", help=argparse.SUPPRESS)
    parser.add_argument("--verbose", "-v", action="store_true", help=argparse.SUPPRESS)

    args = parser.parse_args(argv)

    if args.command is None:
        args.command = "summary"

    return args


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def load_job_records(path: str | Path) -> list[JobRecord]:
    """Load a JSON array of job records."""
    path = Path(path)
    if not path.exists():
        msg = f"Job file not found: {path}"
        raise FileNotFoundError(msg)
    # Malformed JSON and invalid records both surface as ValidationError (a ValueError).
    return _JOB_LIST.validate_json(path.read_text())


async def run(settings: Settings, dry_run: bool, output: str | None) -> None:
    """Run the full summary against the GitHub API."""
    context = GitHubContext.from_env()
    token = os.environ.get("GITHUB_TOKEN")
    if not token:
        msg = "GITHUB_TOKEN environment variable is required"
        raise ValueError(msg)

    async with GitHubClient(settings.github, context, token) as client:
        result = await run_summary(settings, client, dry_run=dry_run)

    print(f"Compared {result.comparison.total_comparisons()} jobs "
          f"({result.base_job_count} base, {result.pr_job_count} PR) "
          f"across {len(result.comparison.workflows)} workflows.")

    if output:
        Path(output).write_text(result.body)
        print(f"Report written to {output}")

    if dry_run:
        print(f"\n{result.body}")
    elif result.comment_id is not None:
        print(f"PR comment {result.comment_id} upserted on #{context.pr_number}")


def cmd_compare(args: argparse.Namespace) -> None:
    """Handle compare subcommand."""
    tracked = None
    policy = DuplicatePolicy.LAST
    if args.config:
        settings = Settings.from_yaml(args.config)
        tracked = settings.tracked_workflows
        policy = settings.comparison.duplicate_policy

    result = build_comparison(
        load_job_records(args.base),
        load_job_records(args.pr),
        tracked_workflows=tracked,
        duplicate_policy=policy,
    )

    if args.format == "json":
        print(export_comparison_json(result))
    else:
        print(format_comparison_tables(result))


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    if args.command == "compare":
        try:
            cmd_compare(args)
        except (EmptyJobSetError, FileNotFoundError, ValueError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
    else:
        # summary (default)
        try:
            settings = Settings.from_yaml(args.config)
        except (FileNotFoundError, ValueError) as e:
            print(f"Error loading config: {e}", file=sys.stderr)
            sys.exit(1)

        try:
            asyncio.run(run(settings, args.dry_run, args.output))
        except (EmptyJobSetError, FetchError, FileNotFoundError, ValueError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)


if __name__ == "__main__":
    main()
