"""
Minimal JSON-over-HTTP primitive shared by every CircleCI call.

No retries, no default headers, and no timeout unless the caller asks for
one.  Non-2xx responses raise HttpError; bodies that fail to parse raise
InvalidJson.
"""

import logging

import requests

from utils.errors import HttpError, InvalidJson

logger = logging.getLogger(__name__)


def fetch_json(url: str, headers: dict | None = None, timeout: float | None = None):
    """GET *url* and return the decoded JSON body."""
    try:
        response = requests.get(url, headers=headers or {}, timeout=timeout)
    except requests.Timeout:
        raise TimeoutError(f"CircleCI did not respond within {timeout} seconds ({url}).")
    except requests.ConnectionError as exc:
        raise ConnectionError(f"Cannot reach {url}: {exc}")

    if not 200 <= response.status_code < 300:
        logger.debug("HTTP %s for %s", response.status_code, url)
        raise HttpError(response.status_code, response.reason or "", url)

    try:
        return response.json()
    except ValueError:
        raise InvalidJson(response.text, url)
