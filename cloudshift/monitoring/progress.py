# ============================================================================
# CloudShift -- Progress Reporting (cloudshift/monitoring/progress.py)
# ============================================================================
#
# WHAT THIS FILE DOES:
#   Receives per-file stage events from the orchestrator and (optionally)
#   shows them to a human.
#
#   The orchestrator calls:
#       reporter.report(current_index, total, current_task_label,
#                       last_completed_relative_path)
#   once per stage of every file: checking, hydrating, copying,
#   verifying, dehydrating.
#
# SAFETY DESIGN:
#   - The reporter is passed in; there is no global "show progress" switch
#   - The console reporter only writes to stdout; a broken terminal never
#     fails a file
#
# INTERNET ACCESS: None
# ============================================================================

from __future__ import annotations

import sys
import time
from typing import List, Optional, Protocol, TextIO, Tuple


class ProgressReporter(Protocol):
    """Anything with this report() method can be handed to the orchestrator."""

    def report(
        self,
        current_index: int,
        total: int,
        current_task_label: str,
        last_completed_relative_path: str,
    ) -> None:
        ...


class NullProgressReporter:
    """Discards every event (quiet mode, tests)."""

    def report(self, current_index, total, current_task_label, last_completed_relative_path):
        return None


class ConsoleProgressReporter:
    """
    Single self-overwriting status line, redrawn at most every
    min_interval seconds.

    NON-PROGRAMMER NOTE:
      The "\\r" at the start of each line moves the cursor back to the
      start of the line, so the status updates in place instead of
      scrolling thousands of lines past.
    """

    def __init__(
        self, stream: Optional[TextIO] = None, min_interval: float = 0.25,
        width: int = 100,
    ) -> None:
        self.stream = stream or sys.stdout
        self.min_interval = min_interval
        self.width = width
        self._last_draw: Optional[float] = None

    def report(self, current_index, total, current_task_label, last_completed_relative_path):
        now = time.monotonic()
        final = current_index >= total and current_task_label == "done"
        if (not final and self._last_draw is not None
                and now - self._last_draw < self.min_interval):
            return
        self._last_draw = now

        pct = (current_index / total * 100.0) if total else 100.0
        line = f"[{current_index}/{total}] {pct:5.1f}% {current_task_label}"
        if last_completed_relative_path:
            line += f" | last: {last_completed_relative_path}"
        if len(line) > self.width:
            line = line[: self.width - 3] + "..."
        try:
            self.stream.write("\r" + line.ljust(self.width))
            if final:
                self.stream.write("\n")
            self.stream.flush()
        except (OSError, ValueError):
            pass  # Closed/broken console: progress is cosmetic


class RecordingProgressReporter:
    """Keeps every event in memory. Useful for GUIs that poll, and for tests."""

    def __init__(self) -> None:
        self.events: List[Tuple[int, int, str, str]] = []

    def report(self, current_index, total, current_task_label, last_completed_relative_path):
        self.events.append(
            (current_index, total, current_task_label, last_completed_relative_path)
        )

    def labels(self) -> List[str]:
        return [e[2] for e in self.events]
