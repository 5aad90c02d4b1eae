# SPDX-License-Identifier: MIT
"""Shared line filters — skip paths, comment lines, and file language detection."""

from __future__ import annotations

import re
from enum import StrEnum


class Language(StrEnum):
    """Language tag derived from a file path; ANY is only used by rules."""

    PHP = "php"
    JAVASCRIPT = "javascript"
    UNKNOWN = "unknown"
    ANY = "any"


# Paths with structurally high false-positive rates and no shipped code
SKIP_PATH_PATTERNS: tuple[re.Pattern[str], ...] = (
    # Test suites
    re.compile(r"(?:^|/)(?:tests?|spec|specs|__tests__)/", re.IGNORECASE),
    re.compile(r"\.(?:test|spec)\.[A-Za-z0-9]+$", re.IGNORECASE),
    re.compile(r"(?:^|/)test_[^/]*$", re.IGNORECASE),
    re.compile(r"_test\.[A-Za-z0-9]+$", re.IGNORECASE),
    re.compile(r"(?:^|/)[A-Z]\w*Test\.php$"),
    # Fixtures and mocks
    re.compile(r"(?:^|/)(?:fixtures?|mocks?|__mocks__|stubs)/", re.IGNORECASE),
    re.compile(r"\.(?:mock|fixture)\.[A-Za-z0-9]+$", re.IGNORECASE),
    # Examples and samples
    re.compile(r"(?:^|/)(?:examples?|samples?)/", re.IGNORECASE),
    re.compile(r"\.(?:example|sample|dist)(?:\.|$)", re.IGNORECASE),
    # Docs
    re.compile(r"(?:^|/)(?:CHANGELOG|README)[^/]*$", re.IGNORECASE),
    # Lockfiles
    re.compile(
        r"(?:^|/)(?:package-lock\.json|yarn\.lock|pnpm-lock\.yaml|composer\.lock"
        r"|Gemfile\.lock|poetry\.lock|Cargo\.lock)$"
    ),
    # Third-party code
    re.compile(r"(?:^|/)(?:vendor|node_modules)/"),
)

_COMMENT_PREFIXES = ("//", "#", "/*", "*")

_JS_EXTENSIONS = frozenset({".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx", ".vue"})


def should_skip_file(path: str) -> bool:
    """Check if a file path matches any skip pattern."""
    return any(pattern.search(path) for pattern in SKIP_PATH_PATTERNS)


def is_comment_line(content: str) -> bool:
    """Check if a line opens or continues a single- or multi-line comment."""
    return content.strip().startswith(_COMMENT_PREFIXES)


def _file_ext(path: str) -> str:
    """Get file extension including the dot, lowercased."""
    name = path.rsplit("/", 1)[-1]
    dot = name.rfind(".")
    return name[dot:].lower() if dot >= 0 else ""


def detect_language(path: str) -> Language:
    """Derive a language tag from the file extension (``.blade.php`` is PHP)."""
    ext = _file_ext(path)
    if ext == ".php":
        return Language.PHP
    if ext in _JS_EXTENSIONS:
        return Language.JAVASCRIPT
    return Language.UNKNOWN


def language_applies(rule_language: Language, file_language: Language) -> bool:
    """Return True if a rule declared for ``rule_language`` applies to the file."""
    return rule_language == Language.ANY or rule_language == file_language
