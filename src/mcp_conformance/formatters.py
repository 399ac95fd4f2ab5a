"""CLI output formatting helpers."""

import json
from typing import Any

import click
import yaml

from .runner import RunResult, RunSummary
from .types import Check


def print_checks_json(checks: list[Check]) -> None:
    """Print checks as the JSON report."""
    click.echo(f"Checks:\n{json.dumps([c.to_dict() for c in checks], indent=2)}")


def print_failed_checks(checks: list[Check]) -> None:
    failed = [c for c in checks if c.failed]
    if not failed:
        return
    click.echo("\nFailed Checks:")
    for check in failed:
        click.echo(f"  - {check.name}: {check.description}")
        if check.error_message:
            click.echo(f"    Error: {check.error_message}")


def print_run_result(result: RunResult, verbose: bool = False) -> None:
    """Print one run's checks and pass/fail line.

    Args:
        result: Run to print
        verbose: Also dump the full JSON report
    """
    if verbose:
        print_checks_json(result.checks)

    click.echo(f"\n[{result.role}] {result.scenario}")
    for check in result.checks:
        click.echo(f"  {_status_icon(check)} {check.id}")
    click.echo(f"Passed: {result.passed}/{result.denominator}, {result.failed} failed")
    print_failed_checks(result.checks)
    if result.result_dir:
        click.echo(f"Results saved to {result.result_dir}")


def print_summary(summary: RunSummary, verbose: bool = False) -> None:
    """Print every run followed by the overall totals."""
    for result in summary.results:
        print_run_result(result, verbose=verbose)

    click.echo("\nTest Results:")
    click.echo(f"Passed: {summary.passed}/{summary.denominator}, {summary.failed} failed")


def print_config_yaml(data: dict[str, Any], sources: dict[str, str] | None = None) -> None:
    """Print config as YAML, with the source of each value when given."""
    if not sources:
        click.echo(yaml.dump(data, default_flow_style=False, sort_keys=False))
        return
    for line in yaml.dump(data, default_flow_style=False, sort_keys=False).splitlines():
        key = line.split(":", 1)[0]
        click.echo(f"{line}  # {sources.get(key, 'default')}")


def _status_icon(check: Check) -> str:
    return {
        "SUCCESS": "✓",
        "FAILURE": "✗",
        "WARNING": "⚠",
        "SKIPPED": "-",
        "INFO": "i",
    }[check.status.value]
