"""Tests for the click command line interface."""

from __future__ import annotations

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from cli import EXIT_ERROR, EXIT_FAILURES_FOUND, EXIT_USAGE, cli
from utils.config import Settings
from utils.errors import HttpError, InvalidJson
from utils.models import Action, Job, LogLine, Step, TestResult

URL = "https://circleci.com/gh/owner/repo/123"

JOB = Job(status="failed", steps=[
    Step(name="Build", actions=[
        Action(name="make", status="success", has_output=True, output_url="https://o/1"),
    ]),
    Step(name="Test", actions=[
        Action(name="pytest", status="failed", has_output=True, output_url="https://o/2"),
    ]),
])

OUTPUTS = {
    "https://o/1": [LogLine(message="built")],
    "https://o/2": [LogLine(message="FAILED test_x")],
}


def _fake_output(url, timeout=None):
    return OUTPUTS[url]


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def token_env(monkeypatch):
    monkeypatch.setenv("CIRCLE_TOKEN", "env-token")
    with patch("utils.config.load_dotenv"):
        yield


@pytest.fixture
def no_token_env(monkeypatch):
    monkeypatch.delenv("CIRCLE_TOKEN", raising=False)
    with patch("utils.config.load_dotenv"):
        yield


# ---------------------------------------------------------------------------
# logs
# ---------------------------------------------------------------------------


class TestLogsCommand:
    @patch("cli.fetch_action_output", side_effect=_fake_output)
    @patch("cli.fetch_job_details", return_value=JOB)
    def test_human_output(self, mock_job, mock_output, runner, token_env):
        result = runner.invoke(cli, ["logs", URL])
        assert result.exit_code == 0, result.output
        assert "## [Build] make  [success]" in result.output
        assert "FAILED test_x" in result.output
        assert mock_job.call_args[0][1] == "env-token"

    @patch("cli.fetch_action_output", side_effect=_fake_output)
    @patch("cli.fetch_job_details", return_value=JOB)
    def test_bare_url_runs_logs(self, mock_job, mock_output, runner, token_env):
        result = runner.invoke(cli, [URL, "--errors-only"])
        assert result.exit_code == 0, result.output
        assert "[Test] pytest" in result.output
        assert "[Build] make" not in result.output

    @patch("cli.fetch_action_output", side_effect=_fake_output)
    @patch("cli.fetch_job_details", return_value=JOB)
    def test_json_output(self, mock_job, mock_output, runner, token_env):
        result = runner.invoke(cli, ["logs", URL, "--json", "--grep", "FAILED"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data[0]["lines"] == []
        assert data[1]["lines"] == [{"message": "FAILED test_x"}]

    @patch("cli.fetch_action_output", side_effect=_fake_output)
    @patch("cli.fetch_job_details", return_value=JOB)
    def test_token_option_wins(self, mock_job, mock_output, runner, token_env):
        runner.invoke(cli, ["logs", URL, "--token", "cli-token"])
        assert mock_job.call_args[0][1] == "cli-token"

    @patch("cli.fetch_action_output", side_effect=_fake_output)
    @patch("cli.fetch_job_details", return_value=JOB)
    def test_fail_on_error(self, mock_job, mock_output, runner, token_env):
        result = runner.invoke(cli, ["logs", URL, "--fail-on-error"])
        assert result.exit_code == EXIT_FAILURES_FOUND
        assert "FAILED test_x" in result.output

    @patch("cli.fetch_job_details", return_value=Job(steps=[
        Step(name="Build", actions=[Action(name="make", status="success")]),
    ]))
    def test_fail_on_error_all_green(self, mock_job, runner, token_env):
        result = runner.invoke(cli, ["logs", URL, "--fail-on-error"])
        assert result.exit_code == 0
        assert "(no output)" in result.output

    @patch("cli.fetch_job_details", return_value=Job())
    def test_empty_job_hint(self, mock_job, runner, token_env):
        result = runner.invoke(cli, ["logs", URL])
        assert result.exit_code == 0
        assert "No log output found" in result.output

    @patch("cli.fetch_job_details")
    def test_missing_token(self, mock_job, runner, no_token_env):
        result = runner.invoke(cli, ["logs", URL])
        assert result.exit_code == EXIT_USAGE
        assert "CIRCLE_TOKEN is required" in result.output
        mock_job.assert_not_called()

    def test_bad_url(self, runner, token_env):
        result = runner.invoke(cli, ["logs", "https://example.com/x"])
        assert result.exit_code == EXIT_USAGE
        assert "Unsupported CircleCI job URL format" in result.output

    def test_bad_grep(self, runner, token_env):
        result = runner.invoke(cli, ["logs", URL, "--grep", "(oops"])
        assert result.exit_code == EXIT_USAGE

    @patch("cli.fetch_job_details", side_effect=HttpError(404, "Not Found", "u"))
    def test_http_error(self, mock_job, runner, token_env):
        result = runner.invoke(cli, ["logs", URL])
        assert result.exit_code == EXIT_ERROR
        assert "HTTP 404 Not Found" in result.output

    @patch("cli.fetch_job_details", side_effect=InvalidJson("['unexpected']", "u"))
    def test_unexpected_body_fails_run(self, mock_job, runner, token_env):
        result = runner.invoke(cli, ["logs", URL, "--fail-on-error"])
        assert result.exit_code == EXIT_ERROR
        assert "Invalid JSON response" in result.output


# ---------------------------------------------------------------------------
# tests
# ---------------------------------------------------------------------------


TESTS = [
    TestResult(name="test_ok", result="success", file="tests/test_a.py", run_time=0.5),
    TestResult(name="test_bad", result="failure", classname="tests.a",
               file="tests/test_a.py", message="assert False"),
]


class TestTestsCommand:
    @patch("cli.fetch_test_results", return_value=TESTS)
    def test_human_output(self, mock_fetch, runner, token_env):
        result = runner.invoke(cli, ["tests", URL])
        assert result.exit_code == 0, result.output
        assert "FAIL: tests/test_a.py" in result.output
        assert "Summary: 1 passed, 1 failed" in result.output

    @patch("cli.fetch_test_results", return_value=TESTS)
    def test_json_failed_only(self, mock_fetch, runner, token_env):
        result = runner.invoke(cli, ["tests", URL, "--json", "--failed-only"])
        data = json.loads(result.output)
        assert [t["name"] for t in data["tests"]] == ["test_bad"]
        assert data["summary"]["failed"] == 1

    @patch("cli.fetch_test_results", return_value=TESTS)
    def test_fail_on_test_failure(self, mock_fetch, runner, token_env):
        result = runner.invoke(cli, ["tests", URL, "--fail-on-test-failure"])
        assert result.exit_code == EXIT_FAILURES_FOUND

    @patch("cli.fetch_test_results", return_value=TESTS)
    def test_grep_filters_out_failure(self, mock_fetch, runner, token_env):
        result = runner.invoke(
            cli, ["tests", URL, "--grep", "test_ok", "--fail-on-test-failure"],
        )
        assert result.exit_code == 0

    @patch("cli.fetch_test_results", return_value=[])
    def test_no_results_hint(self, mock_fetch, runner, token_env):
        result = runner.invoke(cli, ["tests", URL])
        assert result.exit_code == 0
        assert "No test results found" in result.output

    def test_missing_token(self, runner, no_token_env):
        result = runner.invoke(cli, ["tests", URL])
        assert result.exit_code == EXIT_USAGE


class TestGroup:
    @patch("cli.fetch_test_results", return_value=TESTS)
    def test_options_before_subcommand(self, mock_fetch, runner, token_env):
        result = runner.invoke(cli, ["--token", "cli-token", "tests", URL])
        assert result.exit_code == 0, result.output
        assert mock_fetch.call_args[0][1] == "cli-token"
        assert "Summary: 1 passed, 1 failed" in result.output

    @patch("cli.fetch_action_output", side_effect=_fake_output)
    @patch("cli.fetch_job_details", return_value=JOB)
    def test_options_before_bare_url(self, mock_job, mock_output, runner, token_env):
        result = runner.invoke(cli, ["--token", "cli-token", URL])
        assert result.exit_code == 0, result.output
        assert mock_job.call_args[0][1] == "cli-token"

    @patch("cli.fetch_test_results")
    @patch("cli.fetch_action_output", side_effect=_fake_output)
    @patch("cli.fetch_job_details", return_value=JOB)
    def test_option_value_named_like_subcommand(
        self, mock_job, mock_output, mock_tests, runner, token_env,
    ):
        result = runner.invoke(cli, [URL, "--grep", "tests"])
        assert result.exit_code == 0, result.output
        mock_job.assert_called_once()
        mock_tests.assert_not_called()

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "circleci-logs" in result.output

    def test_help_lists_subcommands(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for name in ("logs", "tests", "mcp"):
            assert name in result.output
