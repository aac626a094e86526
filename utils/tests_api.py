"""
Test results from the CircleCI v2 API: paginated fetch, filtering, summary.
"""

from __future__ import annotations

import logging
import re
from urllib.parse import quote

from utils.errors import HttpError, InvalidJson
from utils.http import fetch_json
from utils.job_url import JobIdentifier
from utils.models import (
    RESULT_ERROR,
    RESULT_FAILURE,
    RESULT_SKIPPED,
    RESULT_SUCCESS,
    TestResult,
    TestSummary,
)

logger = logging.getLogger(__name__)

V2_API_BASE = "https://circleci.com/api/v2"


def job_tests_url(job: JobIdentifier, api_base: str = V2_API_BASE) -> str:
    return f"{api_base.rstrip('/')}/project/{job.project_slug}/{job.job_number}/tests"


def fetch_test_results(
    job: JobIdentifier,
    token: str,
    api_base: str = V2_API_BASE,
    timeout: float | None = None,
) -> list[TestResult]:
    """Fetch every page of test results for a job.

    A 404 on the first page means the job never stored results and yields an
    empty list.  Any error after that, including a 404 on a later page,
    propagates and the pages collected so far are dropped.  A page that is
    not an object, or whose items are not objects, raises InvalidJson.
    """
    base_url = job_tests_url(job, api_base)
    headers = {"Circle-Token": token, "Accept": "application/json"}

    results: list[TestResult] = []
    page_token: str | None = None
    first_page = True

    while True:
        url = base_url
        if page_token:
            url += f"?page-token={quote(page_token, safe='')}"
        try:
            data = fetch_json(url, headers, timeout=timeout)
        except HttpError as exc:
            if first_page and exc.status == 404:
                logger.debug("No test results stored for %s", base_url)
                return []
            raise

        if not isinstance(data, dict):
            raise InvalidJson(str(data), url)
        items = data.get("items") or []
        if not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
            raise InvalidJson(str(data), url)
        results.extend(TestResult.from_api(item) for item in items)
        logger.debug("Fetched %d test results (total %d)", len(items), len(results))

        page_token = data.get("next_page_token")
        first_page = False
        if not page_token:
            break

    return results


def filter_test_results(
    tests: list[TestResult],
    failed_only: bool = False,
    pattern: re.Pattern | None = None,
) -> list[TestResult]:
    """Apply the status filter and the pattern filter (both must pass).

    The pattern is searched in "{classname} {name} {file}" so a single
    expression can match across class, test, and file names.
    """
    filtered = list(tests)
    if failed_only:
        filtered = [t for t in filtered if t.failed]
    if pattern is not None:
        filtered = [
            t for t in filtered
            if pattern.search(f"{t.classname or ''} {t.name} {t.file or ''}")
        ]
    return filtered


_SUMMARY_FIELD = {
    RESULT_SUCCESS: "passed",
    RESULT_FAILURE: "failed",
    RESULT_SKIPPED: "skipped",
    RESULT_ERROR: "errors",
}


def calculate_test_summary(tests: list[TestResult]) -> TestSummary:
    summary = TestSummary(total=len(tests))
    for test in tests:
        counter = _SUMMARY_FIELD.get(test.result)
        if counter:
            setattr(summary, counter, getattr(summary, counter) + 1)
        if test.run_time:
            summary.duration += test.run_time
    return summary


def has_failed_tests(tests: list[TestResult]) -> bool:
    return any(t.failed for t in tests)
