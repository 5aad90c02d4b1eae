# SPDX-License-Identifier: MIT
"""Detector class registry — explicit list of all detector classes."""

from __future__ import annotations

from collections.abc import Callable

from diffwarden.detectors.base import Detector
from diffwarden.detectors.config import DetectorConfig
from diffwarden.detectors.dangerous_functions import DangerousFunctionDetector
from diffwarden.detectors.secrets import SecretsDetector

DetectorFactory = Callable[[DetectorConfig], Detector]

DETECTOR_REGISTRY: list[DetectorFactory] = [
    SecretsDetector,
    DangerousFunctionDetector,
]
