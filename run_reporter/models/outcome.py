"""Models for test identities, attempt results and recorded outcomes."""

from collections.abc import Sequence
from typing import Literal, TypeAlias

from pydantic import Field

from run_reporter.models.base import ReportModel

TestStatus: TypeAlias = Literal["passed", "failed", "timedOut", "skipped", "interrupted"]

RunStatus: TypeAlias = Literal["passed", "failed", "timedout", "interrupted"]

FAILURE_STATUSES: frozenset[TestStatus] = frozenset(["failed", "timedOut"])


class Location(ReportModel):
    """Where a test is defined."""

    file: str
    line: int
    column: int | None = None


class Attachment(ReportModel):
    """Reference to a file produced by the runner (screenshot, trace, ...)."""

    name: str
    path: str
    content_type: str = "application/octet-stream"


class Annotation(ReportModel):
    """Free-form metadata declared on a test."""

    type: str
    description: str | None = None


class TestError(ReportModel):
    """Error raised by a test attempt or step."""

    __test__ = False

    message: str
    stack: str | None = None


class TestIdentity(ReportModel):
    """Runner-provided description of a test, independent of any attempt."""

    __test__ = False

    title: str
    full_title_path: Sequence[str] = Field(default_factory=list)
    location: Location
    tags: Sequence[str] = Field(default_factory=list)
    annotations: Sequence[Annotation] = Field(default_factory=list)

    @property
    def full_title(self) -> str:
        """Nested title joined for display (suite > test)."""
        return " > ".join(self.full_title_path) or self.title


class AttemptResult(ReportModel):
    """Runner-provided result of a single test attempt."""

    status: TestStatus
    duration_ms: int = Field(..., ge=0)
    retry_index: int = Field(default=0, ge=0)
    error: TestError | None = None
    stdout: str | None = None
    stderr: str | None = None
    attachments: Sequence[Attachment] = Field(default_factory=list)


class StepInfo(ReportModel):
    """A step reported live while a test runs."""

    title: str
    category: str = "test.step"
    error: TestError | None = None


class TestOutcome(ReportModel):
    """Terminal state of one test attempt, as recorded in the report."""

    __test__ = False

    title: str
    full_title_path: Sequence[str] = Field(default_factory=list)
    location: Location
    status: TestStatus
    duration_ms: int = Field(..., ge=0)
    retry_index: int = Field(default=0, ge=0)
    error_message: str | None = None
    error_stack: str | None = None
    stdout: str | None = None
    stderr: str | None = None
    attachments: Sequence[Attachment] = Field(default_factory=list)
    tags: Sequence[str] = Field(default_factory=list)
    annotations: Sequence[Annotation] = Field(default_factory=list)

    @classmethod
    def from_attempt(cls, test: TestIdentity, result: AttemptResult) -> "TestOutcome":
        """Merge a test identity with one of its attempt results.

        Error details are only kept for failed and timed out attempts.
        """
        error = result.error if result.status in FAILURE_STATUSES else None
        return cls(
            title=test.title,
            full_title_path=list(test.full_title_path),
            location=test.location,
            status=result.status,
            duration_ms=result.duration_ms,
            retry_index=result.retry_index,
            error_message=error.message if error else None,
            error_stack=error.stack if error else None,
            stdout=result.stdout,
            stderr=result.stderr,
            attachments=list(result.attachments),
            tags=list(dict.fromkeys(test.tags)),
            annotations=list(test.annotations),
        )

    @property
    def full_title(self) -> str:
        """Nested title joined for display (suite > test)."""
        return " > ".join(self.full_title_path) or self.title

    @property
    def is_failure(self) -> bool:
        """Whether the attempt failed or timed out."""
        return self.status in FAILURE_STATUSES
