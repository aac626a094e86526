"""
Runtime configuration for the CLI and the MCP server.

Values come from explicit arguments first, then the environment (a local
.env file is loaded via python-dotenv).  Library code never reads the
environment itself; it receives a Settings instance or plain values.

Environment variables:
  CIRCLE_TOKEN            CircleCI personal API token.
  CIRCLECI_API_V1_BASE    Base URL of the v1.1 API (job details).
  CIRCLECI_API_V2_BASE    Base URL of the v2 API (test results).
  CIRCLECI_MAX_WORKERS    Concurrent action-output downloads (default 8).
  CIRCLECI_HTTP_TIMEOUT   Per-request timeout in seconds (default: none).
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from utils.aggregate import DEFAULT_MAX_WORKERS
from utils.circleci_api import V1_API_BASE
from utils.errors import MissingToken
from utils.tests_api import V2_API_BASE


@dataclass(frozen=True)
class Settings:
    token: str | None = None
    api_base_v1: str = V1_API_BASE
    api_base_v2: str = V2_API_BASE
    max_workers: int = DEFAULT_MAX_WORKERS
    http_timeout: float | None = None

    def require_token(self) -> str:
        if not self.token:
            raise MissingToken()
        return self.token


def _float_or_none(raw: str | None) -> float | None:
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if value > 0 else None


def _positive_int(raw: str | None, default: int) -> int:
    try:
        value = int(raw) if raw else default
    except ValueError:
        return default
    return max(1, value)


def load_settings(token: str | None = None) -> Settings:
    """Build Settings from *token* (if given) and the environment."""
    load_dotenv()
    return Settings(
        token=token or os.environ.get("CIRCLE_TOKEN") or None,
        api_base_v1=os.environ.get("CIRCLECI_API_V1_BASE", V1_API_BASE).rstrip("/"),
        api_base_v2=os.environ.get("CIRCLECI_API_V2_BASE", V2_API_BASE).rstrip("/"),
        max_workers=_positive_int(os.environ.get("CIRCLECI_MAX_WORKERS"), DEFAULT_MAX_WORKERS),
        http_timeout=_float_or_none(os.environ.get("CIRCLECI_HTTP_TIMEOUT")),
    )
