"""
Normalize CircleCI job URLs into a canonical job identifier.

Two URL shapes are accepted, tried in this order (first match wins):
  legacy:  https://circleci.com/gh/<org>/<repo>/<job_number>
  modern:  https://app.circleci.com/pipelines/github/<org>/<repo>/.../jobs/<job_number>

Both may carry a trailing '/', '?query' or '#fragment' after the job number.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from utils.errors import UnsupportedUrlFormat

_PROVIDER_TO_VCS = {
    "github": "gh",
    "bitbucket": "bb",
}
_VCS_TO_PROVIDER = {v: k for k, v in _PROVIDER_TO_VCS.items()}

_LEGACY_RE = re.compile(
    r"^https?://circleci\.com/(gh|bb)/([^/]+)/([^/]+)/(\d+)(?:$|[/?#])"
)
_MODERN_RE = re.compile(
    r"^https?://app\.circleci\.com/pipelines/(github|bitbucket)/([^/]+)/([^/]+)"
    r"/[^?#]*/jobs/(\d+)(?:$|[/?#])"
)


@dataclass(frozen=True)
class JobIdentifier:
    vcs_abbrev: str
    org: str
    repo: str
    job_number: str

    @property
    def provider(self) -> str:
        # Anything that is not Bitbucket is served by the GitHub endpoints.
        return _VCS_TO_PROVIDER.get(self.vcs_abbrev, "github")

    @property
    def project_slug(self) -> str:
        """``{provider}/{org}/{repo}`` as required by the v2 API."""
        return f"{self.provider}/{self.org}/{self.repo}"

    def to_dict(self) -> dict:
        return {
            "vcs_abbrev": self.vcs_abbrev,
            "org": self.org,
            "repo": self.repo,
            "job_number": self.job_number,
        }


def _match_legacy(url: str) -> JobIdentifier | None:
    m = _LEGACY_RE.match(url)
    if not m:
        return None
    return JobIdentifier(m.group(1), m.group(2), m.group(3), m.group(4))


def _match_modern(url: str) -> JobIdentifier | None:
    m = _MODERN_RE.match(url)
    if not m:
        return None
    # Unknown providers fall back to GitHub rather than failing.
    vcs = _PROVIDER_TO_VCS.get(m.group(1), "gh")
    return JobIdentifier(vcs, m.group(2), m.group(3), m.group(4))


# Order is part of the contract: legacy URLs win over modern ones.
URL_MATCHERS = (
    ("legacy", _match_legacy),
    ("modern", _match_modern),
)


def parse_job_url(url: str) -> JobIdentifier:
    """Resolve *url* to a JobIdentifier or raise UnsupportedUrlFormat."""
    for _name, matcher in URL_MATCHERS:
        job = matcher(url)
        if job is not None:
            return job
    raise UnsupportedUrlFormat(url)
