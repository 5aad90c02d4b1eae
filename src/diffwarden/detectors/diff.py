# SPDX-License-Identifier: MIT
"""Diff model and parser — the added side of a reviewed change."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field


@dataclass(frozen=True)
class DiffLine:
    """A single added line, located by file path and 1-based line number."""

    file: str
    number: int
    content: str  # Line content without the leading "+"
    kind: str = "added"

    def __post_init__(self) -> None:
        if self.number < 1:
            msg = f"DiffLine.number must be a positive 1-based line number, got {self.number!r}"
            raise ValueError(msg)


@dataclass(frozen=True)
class DiffResult:
    """A materialized change, read-only for the duration of one detection pass."""

    commit_sha: str
    added_lines: tuple[DiffLine, ...]
    total_additions: int
    total_deletions: int = 0
    base_commit_sha: str | None = None
    files: frozenset[str] = field(default_factory=frozenset)
    raw_diff: str = ""

    def __post_init__(self) -> None:
        if len(self.added_lines) != self.total_additions:
            msg = (
                f"DiffResult has {len(self.added_lines)} added lines "
                f"but total_additions={self.total_additions}"
            )
            raise ValueError(msg)

    @classmethod
    def from_added_lines(
        cls,
        lines: Iterable[DiffLine],
        *,
        commit_sha: str = "",
        base_commit_sha: str | None = None,
        total_deletions: int = 0,
        raw_diff: str = "",
    ) -> DiffResult:
        """Build a DiffResult from already line-numbered added lines."""
        added = tuple(lines)
        return cls(
            commit_sha=commit_sha,
            base_commit_sha=base_commit_sha,
            files=frozenset(line.file for line in added),
            added_lines=added,
            total_additions=len(added),
            total_deletions=total_deletions,
            raw_diff=raw_diff,
        )

    def lines_for(self, path: str) -> list[DiffLine]:
        """Return the added lines belonging to a single file."""
        return [line for line in self.added_lines if line.file == path]


# --- Diff parser ---

_FILE_HEADER_RE = re.compile(r"^diff --git a/.+ b/(.+)$")
_NEW_PATH_RE = re.compile(r"^\+\+\+ (?:b/)?([^\t]+)")
_HUNK_HEADER_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")


def parse_diff(
    diff_text: str,
    *,
    commit_sha: str = "",
    base_commit_sha: str | None = None,
) -> DiffResult:
    """Parse a unified diff into a DiffResult holding only the added side.

    Handles: multiple files, plain (non-git) headers, new/deleted files,
    renames, binary files, no-newline markers. Deleted lines are counted but
    not kept. Hunk line counts bound each hunk, so a following "--- a/..."
    header is never mistaken for a deletion.
    """
    files: set[str] = set()
    added_files: set[str] = set()
    added: list[DiffLine] = []
    deletions = 0

    current_path: str | None = None
    new_line = 0
    old_remaining = 0
    new_remaining = 0

    # Only "\n" ends a diff line; form feeds and Unicode separators are line content
    for raw_line in diff_text.split("\n"):
        line = raw_line[:-1] if raw_line.endswith("\r") else raw_line
        in_hunk = old_remaining > 0 or new_remaining > 0

        if in_hunk and current_path is not None:
            if line.startswith("+"):
                # +0 hunks hold no additions in well-formed diffs
                added.append(DiffLine(file=current_path, number=max(new_line, 1), content=line[1:]))
                added_files.add(current_path)
                new_line += 1
                new_remaining -= 1
                continue
            if line.startswith("-"):
                deletions += 1
                old_remaining -= 1
                continue
            if line.startswith(" ") or line == "":
                new_line += 1
                old_remaining -= 1
                new_remaining -= 1
                continue
            if line.startswith("\\"):
                # "\ No newline at end of file"
                continue
            # Unexpected line in hunk: treat the hunk as finished
            old_remaining = new_remaining = 0

        file_match = _FILE_HEADER_RE.match(line)
        if file_match:
            current_path = file_match.group(1)
            files.add(current_path)
            continue

        # New-side path; "+++ /dev/null" marks a deleted file
        if line.startswith("+++ "):
            path_match = _NEW_PATH_RE.match(line)
            if path_match and path_match.group(1) != "/dev/null":
                # The new-side path replaces the header path unless lines were already kept under it
                if current_path is not None and current_path not in added_files:
                    files.discard(current_path)
                current_path = path_match.group(1)
                files.add(current_path)
            continue

        hunk_match = _HUNK_HEADER_RE.match(line)
        if hunk_match and current_path is not None:
            old_remaining = int(hunk_match.group(2) or "1")
            new_line = int(hunk_match.group(3))
            new_remaining = int(hunk_match.group(4) or "1")

    return DiffResult(
        commit_sha=commit_sha,
        base_commit_sha=base_commit_sha,
        files=frozenset(files),
        added_lines=tuple(added),
        total_additions=len(added),
        total_deletions=deletions,
        raw_diff=diff_text,
    )
