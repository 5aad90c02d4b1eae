# SPDX-License-Identifier: MIT
"""diffwarden CI entry point — reads a diff, runs detectors, reports advisory findings.

Usage (GitHub Actions):
    git diff "$BASE" "$HEAD" | python -m diffwarden --commit "$HEAD" --base "$BASE"

Environment variables:
    DIFFWARDEN_DIFF_PATH                      — unified diff file (default: stdin)
    DIFFWARDEN_COMMIT_SHA                     — reviewed commit (fallback: GITHUB_SHA)
    DIFFWARDEN_BASE_SHA                       — base commit of the comparison
    DIFFWARDEN_FORMAT                         — "annotations", "json" or "markdown"
    DIFFWARDEN_ENABLED                        — master switch (default: true)
    DIFFWARDEN_DETECTORS_SECRETS              — secrets detector (default: true)
    DIFFWARDEN_DETECTORS_DANGEROUS_FUNCTIONS  — dangerous-function detector (default: true)
    GITHUB_OUTPUT                             — step outputs file (set by GitHub Actions)
    GITHUB_STEP_SUMMARY                       — job summary file (set by GitHub Actions)

Findings are warn-only: the process exits 0 whenever a scan completes.
"""

from __future__ import annotations

import logging
import os
import sys
import time
from collections.abc import Mapping
from pathlib import Path

from diffwarden.detectors import DetectionOrchestrator, DetectorConfig, load_config, parse_diff
from diffwarden.report import format_annotations, format_summary_markdown
from diffwarden.schema import (
    CodeReview,
    build_code_review,
    build_completed_event,
    build_failed_review,
)

OUTPUT_FORMATS = ("annotations", "json", "markdown")

log = logging.getLogger(__name__)


def read_diff(path: str | None) -> str:
    """Read diff text from a file path, or stdin when path is None or "-"."""
    if path is None or path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8", errors="replace")


def run_scan(
    raw_diff: str,
    *,
    config: DetectorConfig | None = None,
    commit_sha: str = "",
    base_commit_sha: str | None = None,
    parallel: bool = False,
) -> CodeReview:
    """Parse a diff, run all enabled detectors, and build the review record."""
    started = time.perf_counter()
    diff = parse_diff(raw_diff, commit_sha=commit_sha, base_commit_sha=base_commit_sha)
    outcome = DetectionOrchestrator(config=config, parallel=parallel).run(diff)
    duration_ms = int((time.perf_counter() - started) * 1000)
    review = build_code_review(diff, outcome, duration_ms=duration_ms)
    log.info(
        "Review %s: %d violation(s), %d critical, %d ms",
        review.review_id,
        review.violations_count,
        review.critical_count,
        review.duration_ms,
    )
    return review


def write_github_outputs(review: CodeReview, output_path: str) -> None:
    """Append step outputs for GitHub Actions."""
    with open(output_path, "a", encoding="utf-8") as f:
        f.write(f"review-id={review.review_id}\n")
        f.write(f"violations-count={review.violations_count}\n")
        f.write(f"critical-count={review.critical_count}\n")
        f.write(f"files-analyzed-count={review.files_analyzed_count}\n")
        f.write(f"has-critical={str(review.has_critical).lower()}\n")


def main(
    *,
    diff_path: str | None = None,
    commit_sha: str | None = None,
    base_commit_sha: str | None = None,
    output_format: str | None = None,
    detector_overrides: Mapping[str, bool] | None = None,
    parallel: bool = False,
) -> None:
    """CLI entry point — reads env and arguments, runs the scan, prints results."""
    diff_path = diff_path or os.environ.get("DIFFWARDEN_DIFF_PATH") or None
    commit_sha = commit_sha or os.environ.get("DIFFWARDEN_COMMIT_SHA") or os.environ.get("GITHUB_SHA", "")
    base_commit_sha = base_commit_sha or os.environ.get("DIFFWARDEN_BASE_SHA") or None
    output_format = output_format or os.environ.get("DIFFWARDEN_FORMAT", "annotations")

    if output_format not in OUTPUT_FORMATS:
        print(f"::error::Invalid output format: {output_format!r}. Valid formats: {list(OUTPUT_FORMATS)}")
        sys.exit(1)

    try:
        config = load_config(detector_overrides)
    except ValueError as exc:
        print(f"::error::Invalid configuration: {exc}")
        sys.exit(1)

    if not config.enabled:
        print("::notice::diffwarden is disabled (DIFFWARDEN_ENABLED=false), skipping scan")
        return

    try:
        raw_diff = read_diff(diff_path)
    except OSError as exc:
        print(f"::error::Failed to read diff: {exc}")
        if output_format == "json":
            print(build_failed_review(commit_sha, base_commit_sha, str(exc)).model_dump_json(indent=2))
        sys.exit(1)

    review = run_scan(
        raw_diff,
        config=config,
        commit_sha=commit_sha,
        base_commit_sha=base_commit_sha,
        parallel=parallel,
    )

    if output_format == "json":
        print(review.model_dump_json(indent=2))
    elif output_format == "markdown":
        print(format_summary_markdown(review))
    else:
        print("=== diffwarden ===")
        for annotation in format_annotations(review):
            print(annotation)
        print(f"  {review.summary} ({review.files_analyzed_count} files, {review.duration_ms} ms)")

    event = build_completed_event(review)
    log.info("Review completed: %s", event.model_dump_json())

    github_output = os.environ.get("GITHUB_OUTPUT", "")
    if github_output:
        write_github_outputs(review, github_output)

    step_summary = os.environ.get("GITHUB_STEP_SUMMARY", "")
    if step_summary:
        with open(step_summary, "a", encoding="utf-8") as f:
            f.write(format_summary_markdown(review) + "\n")


if __name__ == "__main__":
    main()
