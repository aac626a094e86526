"""
circleci-logs command line interface.

  circleci-logs <url> [options]        same as `circleci-logs logs <url>`
  circleci-logs logs <url> [options]   job step logs
  circleci-logs tests <url> [options]  stored test results (v2 API)
  circleci-logs mcp                    MCP server on stdio

Exit codes: 0 ok, 1 failures found (--fail-on-error / --fail-on-test-failure),
2 bad input or configuration, 3 fetch or unexpected error.
"""

import logging
import sys
from functools import partial
from importlib.metadata import PackageNotFoundError, version

import click

from utils import config
from utils.aggregate import check_for_errors, collect_segments
from utils.circleci_api import fetch_action_output, fetch_job_details
from utils.errors import UsageError
from utils.filters import compile_pattern
from utils.formatter import NO_LOGS_HINT, format_segments, format_segments_json
from utils.job_url import parse_job_url
from utils.tests_api import (
    calculate_test_summary,
    fetch_test_results,
    filter_test_results,
    has_failed_tests,
)
from utils.tests_formatter import (
    NO_TESTS_HINT,
    format_test_results,
    format_test_results_json,
)

EXIT_OK = 0
EXIT_FAILURES_FOUND = 1
EXIT_USAGE = 2
EXIT_ERROR = 3

logger = logging.getLogger("circleci-logs")

try:
    __version__ = version("circleci-logs")
except PackageNotFoundError:
    __version__ = "0.0.0"


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        force=True,
    )
    # urllib3 is noisy at DEBUG and its lines can include signed URLs.
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def _fail(message: str, code: int) -> None:
    click.echo(click.style("Error: ", fg="red") + message, err=True)
    sys.exit(code)


def _run(body) -> None:
    """Run a command body, mapping errors to the documented exit codes."""
    try:
        body()
    except UsageError as exc:
        _fail(str(exc), EXIT_USAGE)
    except Exception as exc:
        logger.debug("Command failed", exc_info=True)
        _fail(str(exc), EXIT_ERROR)


class DefaultCommandGroup(click.Group):
    """A group that runs `logs` when no subcommand name is given.

    Subcommand options may also come before the subcommand name
    (`--token T tests URL`); they are moved behind it.
    """

    default_command = "logs"
    _group_flags = ("--help", "--version")

    def _value_options(self) -> set:
        names = set()
        for command in self.commands.values():
            for param in command.params:
                if isinstance(param, click.Option) and not param.is_flag:
                    names.update(param.opts)
        return names

    def _first_positional(self, args) -> int | None:
        value_options = self._value_options()
        skip_next = False
        for index, arg in enumerate(args):
            if skip_next:
                skip_next = False
            elif arg == "--":
                return index + 1 if index + 1 < len(args) else None
            elif arg.startswith("-"):
                skip_next = arg in value_options
            else:
                return index
        return None

    def parse_args(self, ctx, args):
        if args and args[0] not in self._group_flags:
            index = self._first_positional(args)
            if index is None or args[index] not in self.commands:
                args = [self.default_command, *args]
            elif index > 0:
                args = [args[index], *args[:index], *args[index + 1:]]
        return super().parse_args(ctx, args)


_token_option = click.option(
    "--token", default=None, help="CircleCI Personal Token (defaults to CIRCLE_TOKEN env)",
)
_verbose_option = click.option(
    "--verbose", is_flag=True, help="Show verbose output including debug information",
)


@click.group(cls=DefaultCommandGroup)
@click.version_option(__version__, prog_name="circleci-logs")
def cli():
    """Fetch CircleCI job step logs and test results from a job URL."""


@cli.command("logs")
@click.argument("url")
@click.option("--errors-only", is_flag=True, help="Only show actions with non-success status")
@click.option("--grep", "grep_pattern", default=None, help="Filter log lines with regex pattern")
@click.option("--json", "as_json", is_flag=True, help="Output as structured JSON")
@click.option("--fail-on-error", is_flag=True, help="Exit with code 1 if there are error actions")
@_token_option
@_verbose_option
def logs_command(url, errors_only, grep_pattern, as_json, fail_on_error, token, verbose):
    """Fetch CircleCI job step logs."""
    _configure_logging(verbose)
    found_errors = False

    def body():
        nonlocal found_errors
        settings = config.load_settings(token)
        api_token = settings.require_token()
        pattern = compile_pattern(grep_pattern)
        job_id = parse_job_url(url)
        logger.debug("Parsed URL: %s", job_id.to_dict())

        job = fetch_job_details(
            job_id, api_token, settings.api_base_v1, timeout=settings.http_timeout,
        )
        logger.debug("Job status: %s, Steps: %d", job.status, len(job.steps))

        segments = collect_segments(
            job,
            errors_only=errors_only,
            pattern=pattern,
            fetch_output=partial(fetch_action_output, timeout=settings.http_timeout),
            max_workers=settings.max_workers,
        )

        if as_json:
            click.echo(format_segments_json(segments))
        elif not segments:
            click.echo(click.style(NO_LOGS_HINT.splitlines()[0], fg="yellow"))
            click.echo("\n".join(NO_LOGS_HINT.splitlines()[1:]))
        else:
            click.echo(format_segments(segments), nl=False)

        found_errors = check_for_errors(segments)

    _run(body)
    if fail_on_error and found_errors:
        sys.exit(EXIT_FAILURES_FOUND)


@cli.command("tests")
@click.argument("url")
@click.option("--json", "as_json", is_flag=True, help="Output test results as JSON")
@click.option("--failed-only", is_flag=True, help="Only show failed tests")
@click.option("--grep", "grep_pattern", default=None, help="Filter tests by regex pattern")
@click.option("--fail-on-test-failure", is_flag=True, help="Exit with code 1 if there are failed tests")
@_token_option
@_verbose_option
def tests_command(url, as_json, failed_only, grep_pattern, fail_on_test_failure, token, verbose):
    """Fetch and display test results from the CircleCI v2 API."""
    _configure_logging(verbose)
    found_failures = False

    def body():
        nonlocal found_failures
        settings = config.load_settings(token)
        api_token = settings.require_token()
        pattern = compile_pattern(grep_pattern)
        job_id = parse_job_url(url)
        logger.debug("Parsed URL: %s", job_id.to_dict())

        tests = fetch_test_results(
            job_id, api_token, settings.api_base_v2, timeout=settings.http_timeout,
        )
        logger.debug("Found %d test results", len(tests))

        filtered = filter_test_results(tests, failed_only=failed_only, pattern=pattern)
        summary = calculate_test_summary(filtered)

        if as_json:
            click.echo(format_test_results_json(filtered, summary))
        elif not filtered:
            click.echo(click.style(NO_TESTS_HINT.splitlines()[0], fg="yellow"))
            click.echo("\n".join(NO_TESTS_HINT.splitlines()[1:]))
        else:
            click.echo(format_test_results(filtered, summary, failed_only=failed_only))

        found_failures = has_failed_tests(filtered)

    _run(body)
    if fail_on_test_failure and found_failures:
        sys.exit(EXIT_FAILURES_FOUND)


@cli.command("mcp")
def mcp_command():
    """Start MCP (Model Context Protocol) server for AI assistant integration."""
    import server

    try:
        server.mcp.run(transport="stdio", show_banner=False)
    except Exception as exc:
        _fail(f"Failed to start MCP server: {exc}", EXIT_ERROR)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
