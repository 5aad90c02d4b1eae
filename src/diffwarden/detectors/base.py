# SPDX-License-Identifier: MIT
"""Severity, violation and rule dataclasses, and the Detector protocol."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import IntEnum, StrEnum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from diffwarden.detectors.filters import Language

if TYPE_CHECKING:
    from diffwarden.detectors.diff import DiffResult


class Severity(IntEnum):
    """Severity levels for violations, ordered for comparison."""

    LOW = 0
    MEDIUM = 1
    HIGH = 2
    CRITICAL = 3

    @property
    def label(self) -> str:
        """Lowercase wire name: "critical", "high", "medium" or "low"."""
        return self.name.lower()

    @classmethod
    def from_label(cls, label: str) -> Severity:
        try:
            return cls[label.upper()]
        except KeyError:
            msg = f"Unknown severity: {label!r}. Valid severities: {[s.label for s in cls]}"
            raise ValueError(msg) from None


class ViolationSource(StrEnum):
    """Which kind of engine produced a violation."""

    REGEX = "regex"
    LLM = "llm"


@dataclass(frozen=True)
class Violation:
    """A single located finding produced by a detector."""

    rule_id: str
    severity: Severity
    file: str
    line: int
    message: str
    snippet: str
    rule_category: str = ""
    source: ViolationSource = ViolationSource.REGEX
    confidence: float = 1.0
    contains_secret: bool = False
    suggestion: str | None = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence <= 1.0:
            msg = f"confidence must be within [0.0, 1.0], got {self.confidence!r}"
            raise ValueError(msg)

    @property
    def location(self) -> str:
        return f"{self.file}:{self.line}"

    @property
    def is_deterministic(self) -> bool:
        return self.source == ViolationSource.REGEX


@dataclass(frozen=True)
class RulePattern:
    """One match pattern of a rule.

    ``name`` and ``message`` are templates: ``{function}`` is replaced by the
    pattern's ``function`` capture group and ``{name}`` in the message by the
    formatted name.
    """

    regex: re.Pattern[str]
    name: str
    message: str

    def describe(self, match: re.Match[str]) -> tuple[str, str]:
        """Return (canonical name, message) for a match of this pattern."""
        function = match.groupdict().get("function") or ""
        name = self.name.format(function=function)
        return name, self.message.format(name=name, function=function)


@dataclass(frozen=True)
class Rule:
    """A named group of patterns sharing a severity and applicable language."""

    id: str
    display_name: str
    severity: Severity
    patterns: tuple[RulePattern, ...]
    language: Language = Language.ANY


@runtime_checkable
class Detector(Protocol):
    """Protocol that every detector must satisfy.

    ``name`` is the stable identifier recorded in audit trails, ``version`` is
    bumped (MAJOR.MINOR.PATCH) whenever the rule table changes, and
    ``config_key`` names the ``detectors.*`` switch read by ``is_enabled``.
    """

    name: str
    version: str
    config_key: str

    def is_enabled(self) -> bool: ...

    def detect(self, diff: DiffResult) -> list[Violation]: ...
