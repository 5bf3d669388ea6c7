# ============================================================================
# CloudShift -- Data Model (cloudshift/core/models.py)
# ============================================================================
#
# WHAT THIS FILE DOES:
#   The small set of types that flow through the migration pipeline:
#     - FileTask:        one enumerated file (immutable)
#     - CloudFileState:  what the filesystem says about a file right now
#     - DehydrateMode:   the run-level "free up space afterwards?" choice
#     - MigrationSummary: the running tally handed to the log at the end
#
# NOTHING HERE IS PERSISTED. Resume works by comparing destination sizes
# on every run, not by reading a database of previous runs.
#
# INTERNET ACCESS: NONE
# ============================================================================

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class FileTask:
    """One regular file found under the source root."""
    source_path: str        # Absolute path under the source root
    relative_path: str      # Path relative to the source root
    size_bytes: int         # Logical size (same for placeholders and local files)


class CloudFileState(Enum):
    """
    Hydration state observed from filesystem metadata.

    This is a point-in-time read, never stored. The sync client can
    change it at any moment.
    """
    LOCAL = "local"
    CLOUD_ONLY = "cloud_only"


class DehydrateMode(Enum):
    """
    Which source files to return to cloud-only after migration.

      HYDRATED_ONLY -- only files this run had to download (default)
      ALL           -- every migrated file, even ones already local
      NONE          -- leave everything as it is
    """
    HYDRATED_ONLY = "hydrated-only"
    ALL = "all"
    NONE = "none"

    @classmethod
    def parse(cls, value: Any) -> "DehydrateMode":
        """Accept 'hydrated-only', 'HydratedOnly', 'hydrated_only', 'all', 'none'."""
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower().replace("_", "-")
        if text == "hydratedonly":
            text = "hydrated-only"
        for mode in cls:
            if mode.value == text:
                return mode
        raise ValueError(
            f"Invalid dehydrate mode: {value!r}. "
            f"Must be one of: {', '.join(m.value for m in cls)}"
        )


@dataclass
class MigrationSummary:
    """
    Running tally for one migration run.

    Owned by the orchestrator; everything else only reads it. At the end
    of a run total == succeeded + skipped + errored.

    NON-PROGRAMMER NOTE:
      This is the "receipt" for the run. The error list keeps the order
      files were processed in, so the first failure is always at the top.
    """
    total: int = 0
    succeeded: int = 0
    skipped: int = 0
    errored: int = 0
    errors: List[str] = field(default_factory=list)

    bytes_copied: int = 0
    hydrated: int = 0           # Files this run downloaded from the cloud
    dehydrated: int = 0         # Files returned to cloud-only
    warnings: int = 0           # Non-fatal problems (dehydrate denied, etc.)

    started_at: float = field(default_factory=time.time)
    finished_at: Optional[float] = None

    def record_success(self, size_bytes: int) -> None:
        self.succeeded += 1
        self.bytes_copied += size_bytes

    def record_skip(self) -> None:
        self.skipped += 1

    def record_error(self, message: str) -> None:
        self.errored += 1
        self.errors.append(message)

    def finish(self) -> None:
        self.finished_at = time.time()

    @property
    def processed(self) -> int:
        return self.succeeded + self.skipped + self.errored

    @property
    def elapsed(self) -> float:
        """Seconds from start to finish (or to now, while running)."""
        end = self.finished_at if self.finished_at is not None else time.time()
        return max(0.0, end - self.started_at)

    def is_consistent(self) -> bool:
        return self.total == self.processed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "succeeded": self.succeeded,
            "skipped": self.skipped,
            "errored": self.errored,
            "bytes_copied": self.bytes_copied,
            "hydrated": self.hydrated,
            "dehydrated": self.dehydrated,
            "warnings": self.warnings,
            "elapsed_sec": round(self.elapsed, 2),
            "errors": list(self.errors),
        }

    def summary_line(self) -> str:
        """One-line tally for the console."""
        return (
            f"[{self.processed}/{self.total}] "
            f"ok:{self.succeeded} skip:{self.skipped} err:{self.errored} | "
            f"{fmt_size(self.bytes_copied)}"
        )

    def full_report(self) -> str:
        """Multi-line final report printed at the end of a run."""
        e = self.elapsed
        avg = self.bytes_copied / max(e, 0.1)
        lines = [
            "", "=" * 70,
            "  CLOUDSHIFT MIGRATION -- FINAL SUMMARY",
            "=" * 70, "",
            f"  Total time:              {fmt_dur(e)}",
            f"  Average speed:           {fmt_size(avg)}/s",
            f"  Data copied:             {fmt_size(self.bytes_copied)}",
            "",
            f"  Files found:             {self.total:,}",
            f"  Migrated:                {self.succeeded:,}",
            f"  Skipped (already there): {self.skipped:,}",
            f"  Errors:                  {self.errored:,}",
            "",
            f"  Hydrated by this run:    {self.hydrated:,}",
            f"  Returned to cloud-only:  {self.dehydrated:,}",
            f"  Warnings:                {self.warnings:,}",
        ]
        if self.errors:
            lines.extend(["", "  Errors:"])
            for msg in self.errors:
                lines.append(f"    {msg}")
        lines.extend(["", "=" * 70])
        return "\n".join(lines)


def fmt_size(b) -> str:
    """Format bytes as human-readable string (KB, MB, GB)."""
    b = float(b)
    if b < 1024:
        return f"{b:.0f} B"
    elif b < 1024**2:
        return f"{b / 1024:.1f} KB"
    elif b < 1024**3:
        return f"{b / 1024**2:.1f} MB"
    return f"{b / 1024**3:.2f} GB"


def fmt_dur(s: float) -> str:
    """Format seconds as human-readable duration (e.g., '2m 30s')."""
    if s < 60:
        return f"{s:.1f}s"
    elif s < 3600:
        m, sec = divmod(s, 60)
        return f"{int(m)}m {int(sec)}s"
    h, rem = divmod(s, 3600)
    m, sec = divmod(rem, 60)
    return f"{int(h)}h {int(m)}m"
