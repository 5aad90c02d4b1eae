# SPDX-License-Identifier: MIT
"""Detection orchestrator — runs enabled detectors over a diff and summarizes the result."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING

from diffwarden.detectors.base import Detector, Severity, Violation
from diffwarden.detectors.config import DetectorConfig

if TYPE_CHECKING:
    from diffwarden.detectors.diff import DiffResult
    from diffwarden.detectors.registry import DetectorFactory

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetectionSummary:
    """Aggregate counts for a review verdict."""

    total: int
    by_severity: Mapping[str, int]
    critical_count: int

    @property
    def has_critical(self) -> bool:
        return self.critical_count > 0

    @property
    def has_violations(self) -> bool:
        return self.total > 0


@dataclass(frozen=True)
class DetectionOutcome:
    """Merged violations from one detection pass, in detector order."""

    violations: tuple[Violation, ...]
    summary: DetectionSummary
    detectors: tuple[tuple[str, str], ...]  # (name, version) of each detector that ran


def summarize(violations: Iterable[Violation]) -> DetectionSummary:
    """Count violations overall and per severity label (every label present)."""
    counts = Counter(v.severity for v in violations)
    by_severity = {s.label: counts.get(s, 0) for s in sorted(Severity, reverse=True)}
    return DetectionSummary(
        total=sum(counts.values()),
        by_severity=by_severity,
        critical_count=counts.get(Severity.CRITICAL, 0),
    )


class DetectionOrchestrator:
    """Instantiates detectors from the registry and runs the enabled ones against a diff.

    Detectors never observe each other's output. Overlapping findings from
    different rules or detectors at the same location are all kept.
    """

    def __init__(
        self,
        detector_classes: Iterable[DetectorFactory] | None = None,
        config: DetectorConfig | None = None,
        *,
        parallel: bool = False,
    ) -> None:
        from diffwarden.detectors.registry import DETECTOR_REGISTRY

        self._config = config or DetectorConfig()
        factories = DETECTOR_REGISTRY if detector_classes is None else detector_classes
        self._detectors: list[Detector] = [factory(self._config) for factory in factories]
        self._parallel = parallel

    @property
    def detectors(self) -> list[Detector]:
        return list(self._detectors)

    def enabled_detectors(self) -> list[Detector]:
        enabled: list[Detector] = []
        for detector in self._detectors:
            if detector.is_enabled():
                enabled.append(detector)
            else:
                log.debug("Detector %s disabled, skipping", detector.name)
        return enabled

    def run(self, diff: DiffResult) -> DetectionOutcome:
        """Run every enabled detector and merge their violations."""
        active = self.enabled_detectors()
        log.info(
            "Running %d detector(s) over %d added line(s) in %d file(s)",
            len(active),
            diff.total_additions,
            len(diff.files),
        )

        if self._parallel and len(active) > 1:
            with ThreadPoolExecutor(
                max_workers=len(active), thread_name_prefix="diffwarden-detector"
            ) as pool:
                # map() yields in submission order, so output stays deterministic
                batches = list(pool.map(lambda d: d.detect(diff), active))
        else:
            batches = [d.detect(diff) for d in active]

        violations: list[Violation] = []
        for detector, batch in zip(active, batches, strict=True):
            log.debug("Detector %s@%s found %d violation(s)", detector.name, detector.version, len(batch))
            violations.extend(batch)

        return DetectionOutcome(
            violations=tuple(violations),
            summary=summarize(violations),
            detectors=tuple((d.name, d.version) for d in active),
        )
