"""
CircleCI Logs MCP Server

A Model Context Protocol server that lets an AI assistant pull CircleCI job
step logs and test results from a job URL, filtered down to what matters.

Transport: stdio by default (MCP_TRANSPORT=stdio).  Set MCP_TRANSPORT=http to
           serve Streamable HTTP on MCP_HOST:MCP_PORT instead.
Logs:      All application logs go to stderr to avoid corrupting the JSON-RPC stream.
Auth:      CIRCLE_TOKEN from the environment (or a .env file).
"""

import logging
import os
import sys
from functools import partial

from fastmcp import FastMCP

from utils import config
from utils.aggregate import collect_segments
from utils.circleci_api import fetch_action_output, fetch_job_details
from utils.errors import HttpError, InvalidJson, MissingToken, UsageError
from utils.filters import compile_pattern
from utils.formatter import format_segments, format_segments_json
from utils.job_url import parse_job_url
from utils.tests_api import (
    calculate_test_summary,
    fetch_test_results as fetch_tests_api,
    filter_test_results,
)
from utils.tests_formatter import format_test_results, format_test_results_json

# Route all library and application logs to stderr, never stdout.
logging.basicConfig(
    stream=sys.stderr,
    level=logging.WARNING,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("circleci-logs-mcp")

mcp = FastMCP(
    "circleci-logs",
    instructions=(
        "You are a CircleCI debugging assistant. "
        "Use fetch_logs with a CircleCI job URL to read the job's step output; "
        "pass errors_only=true to see only failing steps and grep to narrow the lines. "
        "Use fetch_test_results to see which tests failed and why."
    ),
)

_FORMATS = ("text", "json")


def _handle_error(exc: Exception, context: str) -> str:
    """Convert common exceptions into readable strings for the AI."""
    if isinstance(exc, MissingToken):
        return f"[{context}] Error: CIRCLE_TOKEN environment variable is required"
    if isinstance(exc, UsageError):
        return f"[{context}] Error: {exc}"
    if isinstance(exc, HttpError):
        if exc.status == 401:
            return f"[{context}] Authentication failed (401). Check CIRCLE_TOKEN."
        if exc.status == 404:
            return f"[{context}] Not found (404). Verify the job URL and that the token can see this project."
        return f"[{context}] CircleCI API error: {exc}"
    if isinstance(exc, InvalidJson):
        return f"[{context}] CircleCI returned an unreadable response: {exc}"
    if isinstance(exc, (ConnectionError, TimeoutError)):
        return f"[{context}] {exc}"
    return f"[{context}] Unexpected error: {exc}"


def _check_format(fmt: str) -> str | None:
    if fmt not in _FORMATS:
        return f"Unsupported format '{fmt}'. Use one of: {', '.join(_FORMATS)}."
    return None


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


@mcp.tool
def fetch_logs(
    url: str,
    errors_only: bool = False,
    grep: str | None = None,
    format: str = "text",
) -> str:
    """Fetch CircleCI job step logs from a job URL.

    Args:
        url: CircleCI job URL (circleci.com/gh/... or app.circleci.com/pipelines/...).
        errors_only: Only include actions whose status is not success.
        grep: Regex; only log lines matching it are kept.
        format: "text" (default) or "json".
    """
    bad_format = _check_format(format)
    if bad_format:
        return f"[fetch_logs] {bad_format}"

    try:
        settings = config.load_settings()
        token = settings.require_token()
        pattern = compile_pattern(grep)
        job_id = parse_job_url(url)
        job = fetch_job_details(
            job_id, token, settings.api_base_v1, timeout=settings.http_timeout,
        )
        segments = collect_segments(
            job,
            errors_only=errors_only,
            pattern=pattern,
            fetch_output=partial(fetch_action_output, timeout=settings.http_timeout),
            max_workers=settings.max_workers,
        )
    except Exception as exc:
        logger.debug("fetch_logs failed for %s", url, exc_info=True)
        return _handle_error(exc, "fetch_logs")

    if format == "json":
        return format_segments_json(segments)

    if not segments:
        if errors_only:
            return "No error actions found. All steps completed successfully."
        return "No actions found in this job."

    return format_segments(segments, styled=False).rstrip("\n")


@mcp.tool
def fetch_test_results(
    url: str,
    failed_only: bool = False,
    grep: str | None = None,
    format: str = "text",
) -> str:
    """Fetch stored test results for a CircleCI job, with a pass/fail summary.

    Args:
        url: CircleCI job URL.
        failed_only: Only include failed and errored tests.
        grep: Regex matched against "classname name file" of each test.
        format: "text" (default) or "json".
    """
    bad_format = _check_format(format)
    if bad_format:
        return f"[fetch_test_results] {bad_format}"

    try:
        settings = config.load_settings()
        token = settings.require_token()
        pattern = compile_pattern(grep)
        job_id = parse_job_url(url)
        tests = fetch_tests_api(
            job_id, token, settings.api_base_v2, timeout=settings.http_timeout,
        )
    except Exception as exc:
        logger.debug("fetch_test_results failed for %s", url, exc_info=True)
        return _handle_error(exc, "fetch_test_results")

    filtered = filter_test_results(tests, failed_only=failed_only, pattern=pattern)
    summary = calculate_test_summary(filtered)

    if format == "json":
        return format_test_results_json(filtered, summary)

    if not filtered:
        if tests:
            return f"No test results match the given filters ({len(tests)} stored for this job)."
        return "No test results found for this job. It may not use store_test_results."

    return format_test_results(filtered, summary, failed_only=failed_only, styled=False)


def main() -> None:
    transport = os.getenv("MCP_TRANSPORT", "stdio")
    host = os.getenv("MCP_HOST", "127.0.0.1")
    port = int(os.getenv("MCP_PORT", "8000"))

    if transport == "stdio":
        mcp.run(transport="stdio", show_banner=False)
    else:
        print(
            f"CircleCI Logs MCP server starting\n"
            f"  Local:    http://{host}:{port}/mcp",
            file=sys.stderr,
        )
        mcp.run(transport=transport, host=host, port=port, show_banner=False)


if __name__ == "__main__":
    main()
