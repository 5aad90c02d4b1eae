# SPDX-License-Identifier: MIT
"""Review record and completion event — the shapes handed to persistence and broadcast.

A ``CodeReview`` is built from one detection pass and stored by the review
persistence layer; a ``ReviewCompletedEvent`` carries its id, status and counts
to whoever listens for completed reviews.
"""

from __future__ import annotations

import hashlib
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field

from diffwarden.detectors.base import Violation
from diffwarden.detectors.diff import DiffResult
from diffwarden.detectors.orchestrator import DetectionOutcome

SeverityLabel = Literal["critical", "high", "medium", "low"]


class ReviewStatus(StrEnum):
    PENDING = "pending"
    ANALYZING = "analyzing"
    COMPLETED = "completed"
    FAILED = "failed"


_STATUS_LABELS: dict[ReviewStatus, str] = {
    ReviewStatus.PENDING: "Pending",
    ReviewStatus.ANALYZING: "Analyzing",
    ReviewStatus.COMPLETED: "Completed",
    ReviewStatus.FAILED: "Failed",
}


class ViolationRecord(BaseModel):
    """Persisted form of a Violation. Snippets are already masked."""

    model_config = ConfigDict(frozen=True)

    rule_id: str
    rule_category: str = ""
    source: Literal["regex", "llm"] = "regex"
    severity: SeverityLabel
    confidence: float = Field(ge=0.0, le=1.0)
    file_path: str
    line_number: int = Field(ge=1)
    message: str
    snippet: str = ""
    suggestion: str | None = None
    contains_secret: bool = False

    @computed_field  # type: ignore[prop-decorator]
    @property
    def location(self) -> str:
        return f"{self.file_path}:{self.line_number}"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_deterministic(self) -> bool:
        return self.source == "regex"

    @classmethod
    def from_violation(cls, violation: Violation) -> ViolationRecord:
        return cls(
            rule_id=violation.rule_id,
            rule_category=violation.rule_category,
            source=violation.source.value,
            severity=violation.severity.label,
            confidence=violation.confidence,
            file_path=violation.file,
            line_number=violation.line,
            message=violation.message,
            snippet=violation.snippet,
            suggestion=violation.suggestion,
            contains_secret=violation.contains_secret,
        )


class CodeReview(BaseModel):
    """One review of a commit, ready for the persistence layer."""

    review_id: str
    commit_sha: str
    base_commit_sha: str | None = None
    status: ReviewStatus = ReviewStatus.COMPLETED
    summary: str = ""
    files_analyzed: list[str] = Field(default_factory=list)
    violations_count: int = Field(default=0, ge=0)
    critical_count: int = Field(default=0, ge=0)
    violations_by_severity: dict[SeverityLabel, int] = Field(default_factory=dict)
    duration_ms: int = Field(default=0, ge=0)
    detectors: list[str] = Field(default_factory=list)  # "name@version"
    violations: list[ViolationRecord] = Field(default_factory=list)
    error_message: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def status_label(self) -> str:
        return _STATUS_LABELS[self.status]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def files_analyzed_count(self) -> int:
        return len(self.files_analyzed)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_violations(self) -> bool:
        return self.violations_count > 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_critical(self) -> bool:
        return self.critical_count > 0


class ReviewCompletedEvent(BaseModel):
    """Broadcast payload announcing a finished review."""

    model_config = ConfigDict(frozen=True)

    review_id: str
    status: ReviewStatus
    violations_count: int
    critical_count: int
    files_analyzed_count: int


def review_id_for(commit_sha: str, base_commit_sha: str | None = None) -> str:
    """Deterministic review ID: 'REVIEW:{sha256[:12]}' of the commit pair."""
    raw = ":".join(["review", commit_sha, base_commit_sha or ""])
    digest = hashlib.sha256(raw.encode()).hexdigest()[:12]
    return f"REVIEW:{digest}"


def _summary_text(outcome: DetectionOutcome) -> str:
    summary = outcome.summary
    if not summary.has_violations:
        return "No security violations found in added lines."
    parts = [f"{count} {label}" for label, count in summary.by_severity.items() if count]
    noun = "violation" if summary.total == 1 else "violations"
    return f"{summary.total} {noun} found ({', '.join(parts)})."


def build_code_review(
    diff: DiffResult,
    outcome: DetectionOutcome,
    *,
    duration_ms: int = 0,
) -> CodeReview:
    """Build the persisted review record for one detection pass."""
    return CodeReview(
        review_id=review_id_for(diff.commit_sha, diff.base_commit_sha),
        commit_sha=diff.commit_sha,
        base_commit_sha=diff.base_commit_sha,
        status=ReviewStatus.COMPLETED,
        summary=_summary_text(outcome),
        files_analyzed=sorted(diff.files),
        violations_count=outcome.summary.total,
        critical_count=outcome.summary.critical_count,
        violations_by_severity=dict(outcome.summary.by_severity),
        duration_ms=duration_ms,
        detectors=[f"{name}@{version}" for name, version in outcome.detectors],
        violations=[ViolationRecord.from_violation(v) for v in outcome.violations],
    )


def build_failed_review(
    commit_sha: str,
    base_commit_sha: str | None,
    error_message: str,
    *,
    duration_ms: int = 0,
) -> CodeReview:
    """Build a FAILED review record (e.g. the diff could not be read)."""
    return CodeReview(
        review_id=review_id_for(commit_sha, base_commit_sha),
        commit_sha=commit_sha,
        base_commit_sha=base_commit_sha,
        status=ReviewStatus.FAILED,
        summary="Review failed before detection could run.",
        duration_ms=duration_ms,
        error_message=error_message,
    )


def build_completed_event(review: CodeReview) -> ReviewCompletedEvent:
    return ReviewCompletedEvent(
        review_id=review.review_id,
        status=review.status,
        violations_count=review.violations_count,
        critical_count=review.critical_count,
        files_analyzed_count=review.files_analyzed_count,
    )
