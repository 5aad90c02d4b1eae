# SPDX-License-Identifier: MIT
"""Secrets detector — hardcoded credentials, private keys, and provider token formats."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from diffwarden.detectors.base import Rule, RulePattern, Severity, Violation
from diffwarden.detectors.config import DetectorConfig
from diffwarden.detectors.diff import DiffLine, DiffResult
from diffwarden.detectors.filters import is_comment_line, should_skip_file
from diffwarden.detectors.redaction import mask_snippet

log = logging.getLogger(__name__)

# Provider token shapes: display name -> fixed-prefix regex body
PROVIDER_TOKENS: dict[str, str] = {
    "GitHub personal access token": r"ghp_[A-Za-z0-9]{36}",
    "GitHub OAuth token": r"gho_[A-Za-z0-9]{36}",
    "GitHub user-to-server token": r"ghu_[A-Za-z0-9]{36}",
    "GitHub server-to-server token": r"ghs_[A-Za-z0-9]{36}",
    "GitHub refresh token": r"ghr_[A-Za-z0-9]{36}",
    "GitHub fine-grained personal access token": r"github_pat_[A-Za-z0-9]{22}_[A-Za-z0-9]{59}",
    "GitLab personal access token": r"glpat-[A-Za-z0-9_-]{20}",
    "Anthropic API key": r"sk-ant-[A-Za-z0-9_-]{32,200}",
    "OpenAI project API key": r"sk-proj-[A-Za-z0-9_-]{32,200}",
    "OpenAI API key": r"sk-[A-Za-z0-9]{48}",
    "AWS access key ID": r"(?:AKIA|ASIA)[0-9A-Z]{16}",
    "Google API key": r"AIza[0-9A-Za-z_-]{35}",
    "Slack token": r"xox[abprs]-[0-9A-Za-z-]{10,72}",
    "Slack webhook URL": r"https://hooks\.slack\.com/services/T[0-9A-Z]{8,12}/B[0-9A-Z]{8,12}/[0-9A-Za-z]{24}",
    "Stripe secret key": r"sk_live_[0-9A-Za-z]{24,99}",
    "Stripe restricted key": r"rk_live_[0-9A-Za-z]{24,99}",
    "SendGrid API key": r"SG\.[0-9A-Za-z_-]{22}\.[0-9A-Za-z_-]{43}",
    "npm access token": r"npm_[A-Za-z0-9]{36}",
    "JSON Web Token": r"eyJ[A-Za-z0-9_-]{10,2048}\.eyJ[A-Za-z0-9_-]{10,2048}\.[A-Za-z0-9_-]{10,2048}",
}


def _provider_pattern(name: str, body: str) -> RulePattern:
    # Token chars on either side mean a longer or concatenated value, not this shape
    regex = re.compile(rf"(?<![A-Za-z0-9_-])(?P<secret>{body})(?![A-Za-z0-9_-])")
    return RulePattern(regex=regex, name=name, message="Hardcoded {name} detected")


# Bounded so long identifier runs stay linear
_ASSIGN = r"""[\w-]{0,64}["']?\s{0,16}(?:=>|:=|[:=])\s{0,16}["']"""

SECRET_RULES: tuple[Rule, ...] = (
    Rule(
        id="SEC001",
        display_name="Hardcoded API key",
        severity=Severity.CRITICAL,
        patterns=(
            RulePattern(
                regex=re.compile(
                    r"(?:api[_-]?key|api[_-]?secret|secret[_-]?key|access[_-]?token"
                    r"|auth[_-]?token|client[_-]?secret|private[_-]?token)"
                    + _ASSIGN
                    + r"""(?P<secret>[^"'\s]{1,512})["']""",
                    re.IGNORECASE,
                ),
                name="API key or secret assignment",
                message="Hardcoded {name} detected",
            ),
        ),
    ),
    Rule(
        id="SEC002",
        display_name="Hardcoded password",
        severity=Severity.CRITICAL,
        patterns=(
            RulePattern(
                regex=re.compile(
                    r"(?:password|passwd|pwd)" + _ASSIGN + r"""(?P<secret>[^"'\s|]{1,512})["']""",
                    re.IGNORECASE,
                ),
                name="password assignment",
                message="Hardcoded {name} detected",
            ),
        ),
    ),
    Rule(
        id="SEC003",
        display_name="Database credentials",
        severity=Severity.CRITICAL,
        patterns=(
            RulePattern(
                regex=re.compile(
                    r"(?P<secret>\b(?:mysql|postgres(?:ql)?|mongodb(?:\+srv)?|rediss?|amqps?"
                    r"|mssql|mariadb|sqlserver)://[^\s:/@\"']{1,256}:[^\s@\"']{1,256}@[^\s\"'/]{1,256})",
                    re.IGNORECASE,
                ),
                name="database connection string with credentials",
                message="Hardcoded {name} detected",
            ),
            RulePattern(
                regex=re.compile(
                    r"""DATABASE_URL["']?\s{0,16}(?:=>|[:=])\s{0,16}["']?(?P<secret>[^\s"']{1,512})"""
                ),
                name="DATABASE_URL value",
                message="Hardcoded {name} detected",
            ),
        ),
    ),
    Rule(
        id="SEC007",
        display_name="Private key",
        severity=Severity.CRITICAL,
        patterns=(
            RulePattern(
                regex=re.compile(
                    r"(?P<secret>-----BEGIN (?:RSA |DSA |EC |OPENSSH |PGP |ENCRYPTED )?"
                    r"PRIVATE KEY(?: BLOCK)?-----)"
                ),
                name="private key block",
                message="Hardcoded {name} detected",
            ),
        ),
    ),
    Rule(
        id="SEC011",
        display_name="Provider token",
        severity=Severity.CRITICAL,
        patterns=tuple(_provider_pattern(name, body) for name, body in PROVIDER_TOKENS.items()),
    ),
)

# Known placeholder values and environment lookups that should not trigger findings
PLACEHOLDER_TOKENS: tuple[str, ...] = (
    "your-api-key",
    "your_api_key",
    "xxx",
    "example",
    "test",
    "dummy",
    "todo",
    "changeme",
    "placeholder",
    "process.env",
    "env(",
    "getenv(",
    "config(",
)

_ENV_REFERENCE_RE = re.compile(r"\$\{\s*[A-Za-z_][A-Za-z0-9_]*\s*\}")
_URL_PASSWORD_RE = re.compile(r"://[^\s:/@]{0,256}:(?P<password>[^\s@]{0,256})@")

MIN_SECRET_LENGTH = 10


def _secret_of(pattern: RulePattern, match: re.Match[str]) -> str:
    if "secret" in pattern.regex.groupindex:
        return match.group("secret")
    return match.group(0)


def _credential_part(secret: str) -> str:
    # Connection strings are judged by their password component
    match = _URL_PASSWORD_RE.search(secret)
    return match.group("password") if match else secret


def _is_env_reference(secret: str) -> bool:
    """True when the value is a ${VAR} reference, or little more than one."""
    value = _credential_part(secret)
    if not _ENV_REFERENCE_RE.search(value):
        return False
    return len(_ENV_REFERENCE_RE.sub("", value)) < MIN_SECRET_LENGTH


def _is_false_positive(content: str, secret: str) -> bool:
    """Check placeholder tokens, ${VAR} references, and too-short captures."""
    if len(secret) < MIN_SECRET_LENGTH:
        return True
    lower = content.lower()
    if any(token in lower for token in PLACEHOLDER_TOKENS):
        return True
    return _is_env_reference(secret)


class SecretsDetector:
    """Detect hardcoded secrets in added lines and mask them before reporting."""

    name = "secrets"
    version = "1.0.0"
    config_key = "secrets"

    def __init__(
        self,
        config: DetectorConfig | None = None,
        rules: Sequence[Rule] | None = None,
    ) -> None:
        self._config = config or DetectorConfig()
        self._rules = tuple(sorted(SECRET_RULES if rules is None else rules, key=lambda r: r.id))

    def is_enabled(self) -> bool:
        return self._config.is_detector_enabled(self.config_key)

    def detect(self, diff: DiffResult) -> list[Violation]:
        results: list[Violation] = []
        skipped: dict[str, bool] = {}
        for line in diff.added_lines:
            try:
                if line.file not in skipped:
                    skipped[line.file] = should_skip_file(line.file)
                if skipped[line.file]:
                    continue
                results.extend(self._scan_line(line))
            except (AttributeError, TypeError, UnicodeError):
                log.warning(
                    "secrets: skipping malformed line %s:%s",
                    getattr(line, "file", "?"),
                    getattr(line, "number", "?"),
                )
        return results

    def _scan_line(self, line: DiffLine) -> list[Violation]:
        content = line.content
        if is_comment_line(content):
            return []

        candidates: list[tuple[Rule, RulePattern, re.Match[str]]] = []
        for rule in self._rules:
            for pattern in rule.patterns:
                match = pattern.regex.search(content)
                if not match:
                    continue
                if not _is_false_positive(content, _secret_of(pattern, match)):
                    candidates.append((rule, pattern, match))
                break  # First matching pattern decides for this rule

        if not candidates:
            return []

        snippet = mask_snippet(content, self._line_secrets(content))
        results: list[Violation] = []
        for rule, pattern, match in candidates:
            _, message = pattern.describe(match)
            results.append(
                Violation(
                    rule_id=rule.id,
                    rule_category=rule.display_name,
                    severity=rule.severity,
                    file=line.file,
                    line=line.number,
                    message=message,
                    snippet=snippet,
                    contains_secret=True,
                )
            )
        return results

    def _line_secrets(self, content: str) -> list[str]:
        """Every secret any pattern captures on the line, for masking the snippet."""
        return [
            _secret_of(pattern, match)
            for rule in self._rules
            for pattern in rule.patterns
            for match in pattern.regex.finditer(content)
        ]
