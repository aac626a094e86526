"""
Typed views over the loosely-shaped CircleCI payloads.

Only the fields the filters and aggregation branch on are lifted into
attributes.  Everything else the API sends is kept verbatim in ``extra`` and
re-emitted by ``to_dict()`` so JSON output loses nothing.
"""

from __future__ import annotations

from dataclasses import dataclass, field

UNNAMED_STEP = "(unnamed step)"


def _rest(data: dict, known: tuple[str, ...]) -> dict:
    return {k: v for k, v in data.items() if k not in known}


@dataclass
class LogLine:
    message: str | None = None
    time: str | None = None
    type: str | None = None
    extra: dict = field(default_factory=dict)

    _KNOWN = ("message", "time", "type")

    @classmethod
    def from_api(cls, data: dict) -> LogLine:
        return cls(
            message=data.get("message"),
            time=data.get("time"),
            type=data.get("type"),
            extra=_rest(data, cls._KNOWN),
        )

    @property
    def text(self) -> str:
        return self.message or ""

    def to_dict(self) -> dict:
        out = {k: getattr(self, k) for k in self._KNOWN if getattr(self, k) is not None}
        out.update(self.extra)
        return out


@dataclass
class Action:
    """One executed unit of work (usually a single command) within a step."""

    name: str | None = None
    status: str | None = None
    has_output: bool = False
    output_url: str | None = None
    extra: dict = field(default_factory=dict)

    _KNOWN = ("name", "status", "has_output", "output_url")

    @classmethod
    def from_api(cls, data: dict) -> Action:
        return cls(
            name=data.get("name"),
            status=data.get("status"),
            has_output=bool(data.get("has_output")),
            output_url=data.get("output_url"),
            extra=_rest(data, cls._KNOWN),
        )

    @property
    def fetchable_output_url(self) -> str | None:
        """The signed output URL, or None when there is nothing to fetch."""
        if self.has_output and self.output_url:
            return self.output_url
        return None

    def to_dict(self) -> dict:
        out = {}
        if self.name is not None:
            out["name"] = self.name
        if self.status is not None:
            out["status"] = self.status
        out["has_output"] = self.has_output
        if self.output_url is not None:
            out["output_url"] = self.output_url
        out.update(self.extra)
        return out


@dataclass
class Step:
    name: str | None = None
    actions: list[Action] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict) -> Step:
        return cls(
            name=data.get("name"),
            actions=[Action.from_api(a) for a in data.get("actions") or []],
        )


@dataclass
class Job:
    steps: list[Step] = field(default_factory=list)
    status: str | None = None
    outcome: str | None = None
    lifecycle: str | None = None
    extra: dict = field(default_factory=dict)

    _KNOWN = ("steps", "status", "outcome", "lifecycle")

    @classmethod
    def from_api(cls, data: dict) -> Job:
        return cls(
            steps=[Step.from_api(s) for s in data.get("steps") or []],
            status=data.get("status"),
            outcome=data.get("outcome"),
            lifecycle=data.get("lifecycle"),
            extra=_rest(data, cls._KNOWN),
        )


@dataclass
class Segment:
    """A step/action pair together with its (possibly filtered) log lines."""

    step: str
    action: Action
    lines: list[LogLine] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "step": self.step,
            "action": self.action.to_dict(),
            "lines": [line.to_dict() for line in self.lines],
        }


# ---------------------------------------------------------------------------
# Test results (v2 API)
# ---------------------------------------------------------------------------

RESULT_SUCCESS = "success"
RESULT_FAILURE = "failure"
RESULT_SKIPPED = "skipped"
RESULT_ERROR = "error"

FAILED_RESULTS = frozenset({RESULT_FAILURE, RESULT_ERROR})


@dataclass
class TestResult:
    __test__ = False  # keep pytest from collecting this class

    name: str
    result: str
    classname: str | None = None
    file: str | None = None
    message: str | None = None
    run_time: float | None = None
    extra: dict = field(default_factory=dict)

    _KNOWN = ("name", "result", "classname", "file", "message", "run_time")

    @classmethod
    def from_api(cls, data: dict) -> TestResult:
        return cls(
            name=data.get("name") or "",
            result=data.get("result") or "",
            classname=data.get("classname"),
            file=data.get("file"),
            message=data.get("message"),
            run_time=data.get("run_time"),
            extra=_rest(data, cls._KNOWN),
        )

    @property
    def failed(self) -> bool:
        return self.result in FAILED_RESULTS

    def to_dict(self) -> dict:
        out = {"name": self.name, "result": self.result}
        for key in ("classname", "file", "message", "run_time"):
            value = getattr(self, key)
            if value is not None:
                out[key] = value
        out.update(self.extra)
        return out


@dataclass
class TestSummary:
    __test__ = False

    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    errors: int = 0
    duration: float = 0.0

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "skipped": self.skipped,
            "errors": self.errors,
            "duration": self.duration,
        }
