"""diffwarden — advisory security detection over the lines added in a code change."""

from diffwarden.detectors import (
    DangerousFunctionDetector,
    DetectionOrchestrator,
    DetectorConfig,
    DiffLine,
    DiffResult,
    SecretsDetector,
    Severity,
    Violation,
    load_config,
    parse_diff,
    run_detectors,
)
from diffwarden.report import format_annotations, format_summary_markdown
from diffwarden.scan import run_scan
from diffwarden.schema import (
    CodeReview,
    ReviewCompletedEvent,
    ReviewStatus,
    ViolationRecord,
    build_code_review,
    build_completed_event,
)

__version__ = "0.1.0"

__all__ = [
    "CodeReview",
    "DangerousFunctionDetector",
    "DetectionOrchestrator",
    "DetectorConfig",
    "DiffLine",
    "DiffResult",
    "ReviewCompletedEvent",
    "ReviewStatus",
    "SecretsDetector",
    "Severity",
    "Violation",
    "ViolationRecord",
    "build_code_review",
    "build_completed_event",
    "format_annotations",
    "format_summary_markdown",
    "load_config",
    "parse_diff",
    "run_detectors",
    "run_scan",
]
