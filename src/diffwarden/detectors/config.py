# SPDX-License-Identifier: MIT
"""Detector configuration — master switch plus one boolean per detector."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

# Keys under ``detectors.*`` and the environment variable that sets each
DETECTOR_ENV_VARS: dict[str, str] = {
    "secrets": "DIFFWARDEN_DETECTORS_SECRETS",
    "dangerous_functions": "DIFFWARDEN_DETECTORS_DANGEROUS_FUNCTIONS",
}

ENABLED_ENV_VAR = "DIFFWARDEN_ENABLED"

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True)
class DetectorConfig:
    """Configuration injected into every detector.

    ``enabled`` mirrors the global ``code_review.enabled`` switch; ``detectors``
    maps ``detectors.<key>`` to a boolean. Unknown keys default to enabled.
    """

    enabled: bool = True
    detectors: Mapping[str, bool] = field(default_factory=lambda: MappingProxyType({}))

    def is_detector_enabled(self, key: str) -> bool:
        return self.enabled and self.detectors.get(key, True)


def parse_bool(value: str, *, name: str) -> bool:
    """Parse a configuration boolean.

    Raises:
        ValueError: If the value is not a recognized boolean spelling.
    """
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    msg = f"Invalid boolean for {name}: {value!r}. Use one of {sorted(_TRUE | _FALSE)}"
    raise ValueError(msg)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return parse_bool(raw, name=name)


def load_config(
    overrides: Mapping[str, bool] | None = None,
    *,
    enabled: bool | None = None,
) -> DetectorConfig:
    """Load detector config with CLI > env > default priority.

    Args:
        overrides: Per-detector switches from the CLI (highest priority).
        enabled: Master switch from the CLI (highest priority).

    Returns:
        DetectorConfig with every known detector key resolved.

    Raises:
        ValueError: If an environment variable holds an invalid boolean.
    """
    overrides = overrides or {}
    resolved: dict[str, bool] = {}
    for key, env_var in DETECTOR_ENV_VARS.items():
        if key in overrides:
            resolved[key] = overrides[key]
        else:
            resolved[key] = _env_bool(env_var, True)
    for key, value in overrides.items():
        resolved.setdefault(key, value)

    master = enabled if enabled is not None else _env_bool(ENABLED_ENV_VAR, True)
    return DetectorConfig(enabled=master, detectors=MappingProxyType(resolved))
