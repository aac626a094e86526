"""
Text and JSON rendering of log segments.

Rendering returns strings; callers decide where they go.  Styled output uses
click.style, and click.echo strips the ANSI codes when stdout is not a TTY.
"""

from __future__ import annotations

import json

import click

from utils.models import Segment

_STATUS_COLORS = {
    "success": "green",
    "failed": "red",
    "failure": "red",
    "error": "red",
    "timedout": "yellow",
    "timeout": "yellow",
    "canceled": "bright_black",
    "cancelled": "bright_black",
    "running": "blue",
    "in_progress": "blue",
}

NO_LOGS_HINT = "\n".join([
    "No log output found. This could mean:",
    "- The job has no steps with output",
    "- All steps were filtered out (try without --errors-only)",
    "- The job is still running or has no logs",
    "",
    "Use --verbose for more details",
])


def _plain(text: str, **_styles) -> str:
    return text


def format_status(status: str, styled: bool = True) -> str:
    label = f"[{status}]"
    if not styled:
        return label
    return click.style(label, fg=_STATUS_COLORS.get(status.lower(), "white"))


def format_segment_header(segment: Segment, styled: bool = True) -> str:
    style = click.style if styled else _plain
    step_name = segment.step or "(no step name)"
    action_name = segment.action.name or "(no action name)"
    status = segment.action.status or "unknown"
    return (
        style("## ", fg="blue", bold=True)
        + style(f"[{step_name}] ", fg="cyan")
        + style(action_name, fg="white")
        + "  "
        + format_status(status, styled)
    )


def format_segments(segments: list[Segment], styled: bool = True) -> str:
    """Human-readable rendering: a header per segment followed by its lines."""
    style = click.style if styled else _plain
    out: list[str] = []
    for segment in segments:
        out.append(format_segment_header(segment, styled) + "\n")
        if not segment.lines:
            out.append(style("(no output)", fg="bright_black") + "\n")
        else:
            for line in segment.lines:
                message = line.text
                out.append(message if message.endswith("\n") else message + "\n")
        out.append("\n")
    return "".join(out)


def format_segments_json(segments: list[Segment]) -> str:
    return json.dumps([s.to_dict() for s in segments], indent=2)
