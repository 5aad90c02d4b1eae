# SPDX-License-Identifier: MIT
"""Dangerous-function detector — shell exec, eval, deserialization, raw SQL, JS sinks."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from diffwarden.detectors.base import Rule, RulePattern, Severity, Violation
from diffwarden.detectors.config import DetectorConfig
from diffwarden.detectors.diff import DiffLine, DiffResult
from diffwarden.detectors.filters import (
    Language,
    detect_language,
    is_comment_line,
    language_applies,
    should_skip_file,
)
from diffwarden.detectors.redaction import clip_snippet

log = logging.getLogger(__name__)

# Bare function call: not a method (->, ::), not a variable function, not a declaration
_BARE = r"(?<![\w$>:])(?<!function )"

_SQL_CALLS = (
    r"(?P<function>DB::(?:raw|select|statement|unprepared|insert|update|delete)"
    r"|(?:orWhere|where|select|orderBy|having|groupBy)Raw)"
)

DANGEROUS_FUNCTION_RULES: tuple[Rule, ...] = (
    Rule(
        id="SEC004",
        display_name="Shell command execution",
        severity=Severity.HIGH,
        language=Language.PHP,
        patterns=(
            RulePattern(
                regex=re.compile(
                    _BARE + r"(?P<function>shell_exec|exec|system|passthru|popen|proc_open|pcntl_exec)\s*\("
                ),
                name="{function}()",
                message="Shell command execution via {name}; validate and escape every argument",
            ),
            RulePattern(
                regex=re.compile(r"`[^`]{0,512}\$\w+[^`]{0,512}`"),
                name="backtick operator",
                message="Shell command execution via {name} with an interpolated variable",
            ),
        ),
    ),
    Rule(
        id="SEC005",
        display_name="Code evaluation",
        severity=Severity.HIGH,
        language=Language.PHP,
        patterns=(
            RulePattern(
                regex=re.compile(_BARE + r"(?P<function>eval|create_function)\s*\("),
                name="{function}()",
                message="Dynamic code evaluation via {name}",
            ),
            RulePattern(
                regex=re.compile(
                    r"""\b(?P<function>preg_replace)\s*\(\s*(?P<quote>['"])(?P<delim>[^\w\s\\])"""
                    r"""(?:(?!(?P=delim)).){0,512}(?P=delim)[a-zA-Z]*e[a-zA-Z]*(?P=quote)"""
                ),
                name="{function}() with the /e modifier",
                message="Dynamic code evaluation via {name}; use preg_replace_callback",
            ),
            RulePattern(
                regex=re.compile(_BARE + r"(?P<function>assert)\s*\(\s*\$"),
                name="{function}() with a variable argument",
                message="Dynamic code evaluation via {name}",
            ),
        ),
    ),
    Rule(
        id="SEC006",
        display_name="Unsafe deserialization",
        severity=Severity.HIGH,
        language=Language.PHP,
        patterns=(
            RulePattern(
                regex=re.compile(
                    _BARE + r"(?P<function>unserialize)\s*\(\s*(?:\$_(?:GET|POST|REQUEST|COOKIE|SERVER|FILES)\b"
                    r"|\$request\b|request\(|\$input\b|base64_decode\s*\(|file_get_contents\s*\()"
                ),
                name="{function}() of untrusted input",
                message="Unsafe deserialization via {name}; prefer json_decode or allowed_classes",
            ),
        ),
    ),
    Rule(
        id="SEC008",
        display_name="SQL injection risk",
        severity=Severity.MEDIUM,
        language=Language.PHP,
        patterns=(
            RulePattern(
                regex=re.compile(_SQL_CALLS + r"""\s*\(\s*"[^"]{0,1024}\$"""),
                name="{function}() with an interpolated variable",
                message="Raw SQL built with {name}; use parameter bindings",
            ),
            RulePattern(
                regex=re.compile(
                    _SQL_CALLS + r"""\s*\(\s*(?:"[^"]{0,1024}"|'[^']{0,1024}')\s*\.\s*\$"""
                ),
                name="{function}() with a concatenated variable",
                message="Raw SQL built with {name}; use parameter bindings",
            ),
            RulePattern(
                regex=re.compile(
                    _BARE + r"""(?P<function>mysqli_query|mysql_query|pg_query)\s*\(\s*\$\w+\s*,\s*"[^"]{0,1024}\$"""
                ),
                name="{function}() with an interpolated variable",
                message="Raw SQL built with {name}; use prepared statements",
            ),
        ),
    ),
    Rule(
        id="SEC009",
        display_name="Dynamic file inclusion",
        severity=Severity.HIGH,
        language=Language.PHP,
        patterns=(
            RulePattern(
                regex=re.compile(
                    _BARE + r"(?P<function>include_once|include|require_once|require)\s*\(?\s*\$"
                ),
                name="{function} with a variable path",
                message="Dynamic file inclusion via {name}",
            ),
        ),
    ),
    Rule(
        id="SEC010",
        display_name="Dangerous JavaScript sink",
        severity=Severity.HIGH,
        language=Language.JAVASCRIPT,
        patterns=(
            RulePattern(
                regex=re.compile(r"(?<![\w$.])(?P<function>eval)\s*\("),
                name="{function}()",
                message="Dangerous JavaScript sink: {name}",
            ),
            RulePattern(
                regex=re.compile(r"\bnew\s+Function\s*\("),
                name="Function constructor",
                message="Dangerous JavaScript sink: {name}",
            ),
            RulePattern(
                regex=re.compile(r"\.(?P<function>innerHTML)\s*(?:\+=|=(?!=)[^;]{0,1024}\+)"),
                name="{function} built by string concatenation",
                message="Dangerous JavaScript sink: {name}",
            ),
            RulePattern(
                regex=re.compile(r"\bdocument\.(?P<function>writeln|write)\s*\("),
                name="document.{function}()",
                message="Dangerous JavaScript sink: {name}",
            ),
        ),
    ),
)

# Safe process wrappers provide their own escaping / argument-list semantics
_SAFE_PROCESS_RE = re.compile(r"\bProcess\s*(?:::|\()|\$process->")

# Parameter bindings: an array literal holding a bound variable
_BINDINGS_RE = re.compile(r",\s*\[[^\]]{0,512}\$\w+")

RULE_SUPPRESSIONS: dict[str, re.Pattern[str]] = {
    "SEC004": _SAFE_PROCESS_RE,
    "SEC008": _BINDINGS_RE,
}

_DISABLED_RE = re.compile(r"disabled", re.IGNORECASE)
_TRAILING_COMMENT_RE = re.compile(r"[^:/]\s*//\s")


def _is_suppressed(rule_id: str, content: str) -> bool:
    """Apply the generic and rule-specific context checks."""
    if _DISABLED_RE.search(content) or _TRAILING_COMMENT_RE.search(content):
        return True
    suppression = RULE_SUPPRESSIONS.get(rule_id)
    return bool(suppression and suppression.search(content))


class DangerousFunctionDetector:
    """Detect unsafe API usage in PHP and JavaScript added lines (advisory)."""

    name = "dangerous_functions"
    version = "1.0.0"
    config_key = "dangerous_functions"

    def __init__(
        self,
        config: DetectorConfig | None = None,
        rules: Sequence[Rule] | None = None,
    ) -> None:
        self._config = config or DetectorConfig()
        self._rules = tuple(
            sorted(DANGEROUS_FUNCTION_RULES if rules is None else rules, key=lambda r: r.id)
        )

    def is_enabled(self) -> bool:
        return self._config.is_detector_enabled(self.config_key)

    def detect(self, diff: DiffResult) -> list[Violation]:
        results: list[Violation] = []
        applicable: dict[str, tuple[Rule, ...]] = {}
        for line in diff.added_lines:
            try:
                if line.file not in applicable:
                    applicable[line.file] = self._rules_for(line.file)
                rules = applicable[line.file]
                if rules:
                    results.extend(self._scan_line(line, rules))
            except (AttributeError, TypeError, UnicodeError):
                log.warning(
                    "dangerous_functions: skipping malformed line %s:%s",
                    getattr(line, "file", "?"),
                    getattr(line, "number", "?"),
                )
        return results

    def _rules_for(self, path: str) -> tuple[Rule, ...]:
        """Rules that apply to a file; empty for skipped paths."""
        if should_skip_file(path):
            return ()
        language = detect_language(path)
        return tuple(r for r in self._rules if language_applies(r.language, language))

    def _scan_line(self, line: DiffLine, rules: Sequence[Rule]) -> list[Violation]:
        content = line.content
        if is_comment_line(content):
            return []

        results: list[Violation] = []
        for rule in rules:
            for pattern in rule.patterns:
                match = pattern.regex.search(content)
                if not match:
                    continue
                if not _is_suppressed(rule.id, content):
                    _, message = pattern.describe(match)
                    results.append(
                        Violation(
                            rule_id=rule.id,
                            rule_category=rule.display_name,
                            severity=rule.severity,
                            file=line.file,
                            line=line.number,
                            message=message,
                            snippet=clip_snippet(content),
                        )
                    )
                break  # First matching pattern decides for this rule
        return results
