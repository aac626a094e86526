"""
Text and JSON rendering of test results.
"""

from __future__ import annotations

import json

import click

from utils.models import (
    RESULT_SKIPPED,
    RESULT_SUCCESS,
    TestResult,
    TestSummary,
)

NO_TESTS_HINT = "\n".join([
    "No test results found. This could mean:",
    "- The job has no test results stored",
    "- Tests were not configured to store results in CircleCI",
    "- All tests were filtered out (try without --failed-only)",
    "",
    "Make sure your CircleCI config uses store_test_results",
])


def _plain(text: str, **_styles) -> str:
    return text


def _basename(path: str | None) -> str:
    return path.split("/")[-1] if path else "unknown"


def _format_failed(test: TestResult, style) -> list[str]:
    lines = [style(f"✗ FAIL: {test.file or 'unknown'}", fg="red")]
    if test.classname:
        lines.append(f"  {style('Class:', fg='bright_black')} {test.classname}")
    lines.append(f"  {style('Test:', fg='bright_black')}  {test.name}")
    if test.run_time is not None:
        lines.append(f"  {style('Time:', fg='bright_black')}  {test.run_time:.3f}s")
    if test.message:
        lines.append("")
        lines.extend(f"  {msg_line}" for msg_line in test.message.split("\n"))
    lines.append("")
    return lines


def format_summary(summary: TestSummary, styled: bool = True) -> str:
    style = click.style if styled else _plain
    parts = []
    if summary.passed:
        parts.append(style(f"{summary.passed} passed", fg="green"))
    if summary.failed:
        parts.append(style(f"{summary.failed} failed", fg="red"))
    if summary.errors:
        parts.append(style(f"{summary.errors} errors", fg="red"))
    if summary.skipped:
        parts.append(style(f"{summary.skipped} skipped", fg="bright_black"))
    duration = style(f"({summary.duration:.3f}s)", fg="bright_black")
    return style(f"Summary: {', '.join(parts)} {duration}", bold=True)


def format_test_results(
    tests: list[TestResult],
    summary: TestSummary,
    failed_only: bool = False,
    styled: bool = True,
) -> str:
    """Failed tests first with details, then passed and skipped lists."""
    style = click.style if styled else _plain
    status = "failed" if summary.failed or summary.errors else "success"

    out = [
        style("## ", fg="blue", bold=True)
        + style("[Test Results] ", fg="cyan")
        + style("Test Suite", fg="white")
        + "  "
        + style(f"[{status}]", fg="red" if status == "failed" else "green"),
        "",
    ]

    for test in tests:
        if test.failed:
            out.extend(_format_failed(test, style))

    passed = [t for t in tests if t.result == RESULT_SUCCESS]
    skipped = [t for t in tests if t.result == RESULT_SKIPPED]

    if not failed_only and passed:
        out.append(style("\n✓ Passed Tests:", fg="green"))
        for t in passed:
            time = f" ({t.run_time:.3f}s)" if t.run_time else ""
            out.append(f"  ✓ {_basename(t.file)}: {t.name}{time}")

    if not failed_only and skipped:
        out.append(style("\n⊘ Skipped Tests:", fg="bright_black"))
        for t in skipped:
            out.append(f"  ⊘ {_basename(t.file)}: {t.name}")

    out.append("")
    out.append(format_summary(summary, styled))
    return "\n".join(out)


def format_test_results_json(tests: list[TestResult], summary: TestSummary) -> str:
    return json.dumps(
        {"tests": [t.to_dict() for t in tests], "summary": summary.to_dict()},
        indent=2,
    )
