# SPDX-License-Identifier: MIT
"""Violation detection engine — deterministic detectors over the added side of a diff."""

from diffwarden.detectors.base import (
    Detector,
    Rule,
    RulePattern,
    Severity,
    Violation,
    ViolationSource,
)
from diffwarden.detectors.config import DetectorConfig, load_config
from diffwarden.detectors.dangerous_functions import DangerousFunctionDetector
from diffwarden.detectors.diff import DiffLine, DiffResult, parse_diff
from diffwarden.detectors.filters import Language
from diffwarden.detectors.orchestrator import (
    DetectionOrchestrator,
    DetectionOutcome,
    DetectionSummary,
    summarize,
)
from diffwarden.detectors.secrets import SecretsDetector

__all__ = [
    "DangerousFunctionDetector",
    "DetectionOrchestrator",
    "DetectionOutcome",
    "DetectionSummary",
    "Detector",
    "DetectorConfig",
    "DiffLine",
    "DiffResult",
    "Language",
    "Rule",
    "RulePattern",
    "SecretsDetector",
    "Severity",
    "Violation",
    "ViolationSource",
    "load_config",
    "parse_diff",
    "run_detectors",
    "summarize",
]


def run_detectors(
    diff: str,
    config: DetectorConfig | None = None,
    *,
    commit_sha: str = "",
    base_commit_sha: str | None = None,
    parallel: bool = False,
) -> DetectionOutcome:
    """Convenience: parse a unified diff, run all enabled detectors, return the outcome."""
    parsed = parse_diff(diff, commit_sha=commit_sha, base_commit_sha=base_commit_sha)
    return DetectionOrchestrator(config=config, parallel=parallel).run(parsed)
