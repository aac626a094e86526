"""
Wrappers for the CircleCI v1.1 job endpoint and signed action-output URLs.

fetch_job_details() raises on any failure: without the job there is nothing
to show.  Action output is different: one broken output URL must not sink the
whole run, so fetch_action_output() turns failures into a diagnostic line.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from utils.errors import InvalidJson
from utils.http import fetch_json
from utils.job_url import JobIdentifier
from utils.models import Job, LogLine

logger = logging.getLogger(__name__)

V1_API_BASE = "https://circleci.com/api/v1.1"


def job_details_url(job: JobIdentifier, api_base: str = V1_API_BASE) -> str:
    return (
        f"{api_base.rstrip('/')}/project/{job.vcs_abbrev}/{job.org}/{job.repo}"
        f"/{job.job_number}"
    )


def fetch_job_details(
    job: JobIdentifier,
    token: str,
    api_base: str = V1_API_BASE,
    timeout: float | None = None,
) -> Job:
    """Fetch the full step/action tree for one job."""
    url = job_details_url(job, api_base)
    data = fetch_json(url, {"Circle-Token": token}, timeout=timeout)
    if not isinstance(data, dict):
        raise InvalidJson(str(data), url)
    return Job.from_api(data)


@dataclass
class ActionOutput:
    """Result of fetching one action's output: ok, or degraded to a diagnostic."""

    lines: list[LogLine] = field(default_factory=list)
    error: str | None = None

    @property
    def degraded(self) -> bool:
        return self.error is not None

    @classmethod
    def failed(cls, error: str) -> ActionOutput:
        return cls(
            lines=[LogLine(message=f"(failed to fetch output_url: {error})")],
            error=error,
        )


def fetch_action_output_result(
    output_url: str, timeout: float | None = None,
) -> ActionOutput:
    # Signed URLs carry their own authorization; never send the token here.
    try:
        data = fetch_json(output_url, timeout=timeout)
    except Exception as exc:
        logger.warning("Could not fetch action output: %s", exc)
        return ActionOutput.failed(str(exc))

    if not isinstance(data, list):
        logger.warning("Action output at %s is not a list", output_url)
        return ActionOutput.failed(f"unexpected payload type {type(data).__name__}")

    lines = []
    for item in data:
        if isinstance(item, str):
            lines.append(LogLine(message=item))
        elif isinstance(item, dict):
            lines.append(LogLine.from_api(item))
        else:
            logger.debug("Skipping output entry of type %s", type(item).__name__)
    return ActionOutput(lines=lines)


def fetch_action_output(output_url: str, timeout: float | None = None) -> list[LogLine]:
    """Fetch the log lines behind a signed output URL.  Never raises."""
    return fetch_action_output_result(output_url, timeout=timeout).lines
