# SPDX-License-Identifier: MIT
"""Output formatting — workflow-command annotations and a markdown summary.

File paths, messages and snippets come from the reviewed change, so every
field is sanitized before it is written to a log or a comment.
"""

from __future__ import annotations

import re

import navi_sanitize
import nh3

from diffwarden.schema import CodeReview, ViolationRecord

# Annotation level per severity; findings are advisory, never "error"
_ANNOTATION_LEVEL: dict[str, str] = {
    "critical": "warning",
    "high": "warning",
    "medium": "notice",
    "low": "notice",
}

_SEVERITY_EMOJI: dict[str, str] = {
    "critical": "\U0001f534",
    "high": "\U0001f7e0",
    "medium": "\U0001f7e1",
    "low": "\U0001f7e2",
}

# Dangerous URL schemes in markdown link syntax, not covered by nh3
_DANGEROUS_SCHEME_RE = re.compile(r"(?:javascript|data|vbscript)\s*:", re.IGNORECASE)


def _escape_data(text: str) -> str:
    """Escape the message part of a workflow command."""
    text = navi_sanitize.clean(text)
    return text.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def _escape_property(text: str) -> str:
    """Escape a workflow-command property value (file, title)."""
    return _escape_data(text).replace(":", "%3A").replace(",", "%2C")


def format_annotation(violation: ViolationRecord) -> str:
    """Render one violation as a GitHub Actions workflow command."""
    level = _ANNOTATION_LEVEL.get(violation.severity, "notice")
    title = f"{violation.rule_id} {violation.rule_category}".strip()
    props = (
        f"file={_escape_property(violation.file_path)},"
        f"line={violation.line_number},"
        f"title={_escape_property(title)}"
    )
    body = f"[{violation.severity}] {violation.message}"
    if violation.snippet:
        body += f": {violation.snippet}"
    return f"::{level} {props}::{_escape_data(body)}"


def format_annotations(review: CodeReview) -> list[str]:
    return [format_annotation(v) for v in review.violations]


def _sanitize_markdown(text: str) -> str:
    """Strip HTML and dangerous link schemes, then escape table pipes."""
    text = nh3.clean(navi_sanitize.clean(text), tags=set())
    text = _DANGEROUS_SCHEME_RE.sub("", text)
    return text.replace("|", "\\|").replace("\n", " ")


def _code_span(text: str) -> str:
    return "`" + _sanitize_markdown(text).replace("`", "'") + "`"


def format_summary_markdown(review: CodeReview) -> str:
    """Build a markdown summary of a review for a PR comment or job summary."""
    lines = [
        f"## diffwarden review \u2014 {review.status_label}",
        "",
        _sanitize_markdown(review.summary),
        "",
        f"Files analyzed: {review.files_analyzed_count} | Duration: {review.duration_ms} ms",
    ]
    if review.error_message:
        lines += ["", f"Error: {_sanitize_markdown(review.error_message)}"]

    if review.violations:
        lines += [
            "",
            "| Severity | Rule | Location | Message |",
            "|---|---|---|---|",
        ]
        for v in review.violations:
            emoji = _SEVERITY_EMOJI.get(v.severity, "")
            secret_tag = " (secret, masked)" if v.contains_secret else ""
            lines.append(
                f"| {emoji} {v.severity} | {v.rule_id} | {_code_span(v.location)} | "
                f"{_sanitize_markdown(v.message)}{secret_tag} |"
            )

    lines += ["", "_Findings are advisory and do not block this change._", "<!-- diffwarden -->"]
    return "\n".join(lines)
