"""
Assemble a job's steps, actions and log output into ordered segments.

Action outputs are fetched concurrently, but the returned segments always
follow the job's step order and each step's action order.
"""

from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from typing import Callable

from utils.circleci_api import fetch_action_output
from utils.filters import filter_actions, filter_lines
from utils.models import UNNAMED_STEP, Action, Job, LogLine, Segment

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 8


def collect_segments(
    job: Job,
    errors_only: bool = False,
    pattern: re.Pattern | None = None,
    fetch_output: Callable[[str], list[LogLine]] = fetch_action_output,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> list[Segment]:
    """Build one Segment per (step, action) that survives *errors_only*.

    Actions without fetchable output still get a segment, with no lines.
    """
    pending: list[tuple[str, Action]] = []
    for step in job.steps:
        actions = filter_actions(step.actions, errors_only)
        logger.debug(
            'Step "%s": %d actions, %d after filter',
            step.name, len(step.actions), len(actions),
        )
        for action in actions:
            pending.append((step.name or UNNAMED_STEP, action))

    def _lines_for(action: Action) -> list[LogLine]:
        url = action.fetchable_output_url
        if url is None:
            return []
        return filter_lines(fetch_output(url), pattern)

    if not pending:
        return []

    workers = max(1, min(max_workers, len(pending)))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        # executor.map yields in submission order regardless of completion order.
        all_lines = list(executor.map(_lines_for, [a for _, a in pending]))

    segments = [
        Segment(step=step_name, action=action, lines=lines)
        for (step_name, action), lines in zip(pending, all_lines)
    ]
    logger.debug("Total segments: %d", len(segments))
    return segments


def check_for_errors(segments: list[Segment]) -> bool:
    """True if any segment's action has a known, non-success status.

    A missing or empty status is not an error here, even though the
    errors-only action filter drops such actions.
    """
    for segment in segments:
        status = (segment.action.status or "").lower()
        if status and status != "success":
            return True
    return False
