"""
Error types raised by the CircleCI client code.

Two families matter to callers:
  - usage errors (bad URL, missing token, bad pattern): the user must fix
    their input before anything can be fetched.
  - fetch errors (HTTP status, unparseable body): the API call itself failed.
"""

from __future__ import annotations


class CircleCIError(Exception):
    """Base class for everything this package raises on purpose."""


class UsageError(CircleCIError):
    """Input or configuration problem detected before any network call."""


class UnsupportedUrlFormat(UsageError, ValueError):
    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Unsupported CircleCI job URL format: {url}")


class MissingToken(UsageError):
    def __init__(self):
        super().__init__(
            "CIRCLE_TOKEN is required. Set environment variable or use --token."
        )


class InvalidPattern(UsageError, ValueError):
    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        super().__init__(f"Invalid --grep pattern {pattern!r}: {reason}")


class FetchError(CircleCIError):
    """An API call completed but did not yield usable JSON."""


class HttpError(FetchError):
    def __init__(self, status: int, status_text: str, url: str):
        self.status = status
        self.status_text = status_text
        self.url = url
        super().__init__(f"HTTP {status} {status_text} for {url}")


class InvalidJson(FetchError):
    def __init__(self, raw_body: str, url: str):
        self.raw_body = raw_body
        self.url = url
        preview = raw_body[:200]
        super().__init__(f"Invalid JSON response from {url}: {preview!r}")
