# SPDX-License-Identifier: MIT
"""Secret masking — irreversible partial redaction before a finding leaves a detector."""

from __future__ import annotations

from collections.abc import Iterable

REDACTION_MARKER = "****"

# Longest snippet kept on a violation, measured after masking
MAX_SNIPPET_CHARS = 300


def mask_secret(secret: str) -> str:
    """Mask a secret, keeping at most ``min(4, len // 4)`` chars visible on each side.

    Secrets too short to reveal any characters are replaced entirely.
    """
    visible = min(4, len(secret) // 4)
    if visible == 0:
        return REDACTION_MARKER
    return secret[:visible] + REDACTION_MARKER + secret[-visible:]


def clip_snippet(text: str, max_len: int = MAX_SNIPPET_CHARS) -> str:
    stripped = text.strip()
    if len(stripped) <= max_len:
        return stripped
    return stripped[: max_len - 3] + "..."


def mask_snippet(line: str, secrets: Iterable[str]) -> str:
    """Return the stripped line with every occurrence of every secret masked.

    Longer secrets are masked first so a secret that contains another is
    never left partially visible.
    """
    for secret in sorted({s for s in secrets if s}, key=lambda s: (-len(s), s)):
        line = line.replace(secret, mask_secret(secret))
    return clip_snippet(line)
