# ============================================================================
# CloudShift -- Migration Orchestrator (cloudshift/core/orchestrator.py)
# ============================================================================
#
# WHAT THIS FILE DOES (plain English):
#   Runs the whole migration, one file at a time, smallest first:
#
#     for each file:
#       1. Work out where it goes (and refuse paths that escape the
#          source root or are too long for Windows)
#       2. Already there with the same non-zero size? -> skip it
#       3. Make sure the content is local (hydrate, may take minutes)
#       4. Stream-copy it into the destination tree
#       5. Verify the destination size matches
#       6. Optionally return the source to cloud-only
#
#   ONE BAD FILE NEVER STOPS THE RUN. Any failure in steps 2-5 is
#   counted, written to the error list, cleaned up (partial destination
#   deleted, source released) and the loop moves on. The only fatal
#   condition is a missing source root -- then there is nothing to do.
#
# RESUME:
#   Nothing is remembered between runs. Re-running after a crash or a
#   Ctrl+C simply skips every file whose destination already has the
#   right size. A file killed mid-copy has the wrong size, so it is
#   copied again.
#
#   Zero-byte files are NEVER skipped: a zero-byte destination could be
#   a real empty file or the remains of a copy that died right after
#   creating it. Re-copying an empty file costs nothing.
#
# WHY ONE FILE AT A TIME:
#   The real bottleneck is the cloud clients (download on one side,
#   upload on the other), not local disk. Parallel copies would not make
#   them faster, and "exactly one file pinned by us at any moment" keeps
#   disk usage predictable on a nearly-full laptop.
#
# INTERNET ACCESS: NONE
# ============================================================================

from __future__ import annotations

import os
from typing import Optional

from .cloud_attributes import CloudFilesystem, default_cloud_filesystem
from .config import RunSettings
from .copier import stream_copy
from .dehydration import dehydrate, should_dehydrate
from .enumerator import enumerate_files
from .exceptions import HydrateTimeoutError, SourceRootMissingError
from .hydration import HydrationController
from .models import FileTask, MigrationSummary
from .path_resolver import is_path_too_long, resolve_destination
from .verifier import verify_copy
from ..monitoring.logger import FileErrorLogEntry, MigrationLogEntry, get_app_logger
from ..monitoring.progress import NullProgressReporter, ProgressReporter


class MigrationOrchestrator:
    """
    Sequences hydrate -> copy -> verify -> dehydrate for every file.

    Every collaborator is injectable: pass a fake CloudFilesystem, a
    recording reporter and a MagicMock logger and the whole pipeline
    runs against temp folders.
    """

    def __init__(
        self,
        settings: RunSettings,
        fs: Optional[CloudFilesystem] = None,
        reporter: Optional[ProgressReporter] = None,
        logger=None,
        hydrator: Optional[HydrationController] = None,
    ) -> None:
        self.settings = settings
        self.fs = fs or default_cloud_filesystem()
        self.reporter = reporter or NullProgressReporter()
        self.logger = logger if logger is not None else get_app_logger("migration")
        self.hydrator = hydrator or HydrationController(
            self.fs,
            timeout_seconds=settings.hydrate_timeout_seconds,
            initial_delay=settings.poll_initial_seconds,
            max_delay=settings.poll_max_seconds,
        )
        self.summary = MigrationSummary()
        self._last_completed = ""

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(self) -> MigrationSummary:
        """
        Migrate every file under the source root.

        Raises SourceRootMissingError if the source root is absent.
        Everything else ends up in the returned summary.
        """
        s = self.settings
        if not os.path.isdir(s.source_root):
            self.logger.error("source_root_missing", source_root=s.source_root)
            raise SourceRootMissingError(s.source_root)

        os.makedirs(s.dest_root, exist_ok=True)

        tasks = enumerate_files(s.source_root, s.skip_names, logger=self.logger)
        self.summary = MigrationSummary(total=len(tasks))
        self._last_completed = ""
        total = len(tasks)

        self.logger.info(
            "migration_started",
            source_root=s.source_root, dest_root=s.dest_root,
            dehydrate_mode=s.dehydrate_mode.value, files=total,
            bytes=sum(t.size_bytes for t in tasks),
        )

        for index, task in enumerate(tasks, 1):
            self._process(index, total, task)
            self._last_completed = task.relative_path

        self.summary.finish()
        self._report(total, total, "done")

        for line in self.summary.errors:
            self.logger.error("migration_error", message=line)
        self.logger.info(
            "migration_finished",
            **MigrationLogEntry.build(
                self.summary, s.source_root, s.dest_root, s.dehydrate_mode.value,
            ),
        )
        return self.summary

    # ------------------------------------------------------------------
    # Per-file pipeline
    # ------------------------------------------------------------------

    def _stage(self, index: int, total: int, label: str, rel: str) -> None:
        self._report(index, total, f"{label}: {rel}")

    def _report(self, index: int, total: int, label: str) -> None:
        """Forward to the reporter. A broken progress display never fails a file."""
        try:
            self.reporter.report(index, total, label, self._last_completed)
        except Exception as e:
            self.summary.warnings += 1
            self.logger.warning(
                "progress_report_failed", label=label,
                error=f"{type(e).__name__}: {e}",
            )

    def _process(self, index: int, total: int, task: FileTask) -> None:
        s = self.settings
        rel = task.relative_path

        hydrated = False
        copy_started = False
        dest = ""
        try:
            self._stage(index, total, "checking", rel)
            rel, dest = resolve_destination(s.source_root, s.dest_root, task.source_path)

            # Path-length rejection is a policy decision, not an exception:
            # nothing was attempted, so there is nothing to clean up.
            too_long = [
                p for p in (task.source_path, dest)
                if is_path_too_long(p, s.max_path_length)
            ]
            if too_long:
                self._record_error(
                    index, total, rel,
                    f"PathTooLong: {len(too_long[0])} chars >= {s.max_path_length}: {too_long[0]}",
                )
                return

            if self._already_migrated(task, dest):
                self._finish_source(index, total, task, was_hydrated=False)
                self.summary.record_skip()
                self.logger.info("file_skipped", path=rel, bytes=task.size_bytes)
                return

            self._stage(index, total, "hydrating", rel)
            hydrated = self.hydrator.hydrate(task.source_path)
            if hydrated:
                self.summary.hydrated += 1

            self._stage(index, total, "copying", rel)
            os.makedirs(os.path.dirname(dest), exist_ok=True)
            copy_started = True
            copied = stream_copy(task.source_path, dest, s.copy_buffer_bytes)

            self._stage(index, total, "verifying", rel)
            verify_copy(task.source_path, dest, logger=self.logger)

            if s.preserve_timestamps:
                self._preserve_timestamps(task.source_path, dest)

            self._finish_source(index, total, task, hydrated)
            self.summary.record_success(copied)
            self.logger.info(
                "file_migrated", path=rel, bytes=copied, hydrated=hydrated,
            )

        except Exception as e:
            # Catch-all: whatever went wrong with THIS file, the next
            # file still gets its turn.
            self._record_error(index, total, rel, f"{type(e).__name__}: {e}", e)
            # A timed-out hydration was still requested and pinned by us
            pinned = hydrated or isinstance(e, HydrateTimeoutError)
            self._cleanup_after_failure(task, dest, pinned, copy_started)

    def _already_migrated(self, task: FileTask, dest: str) -> bool:
        """Same non-zero size at the destination means a previous run finished it."""
        if task.size_bytes <= 0:
            return False
        try:
            if not os.path.isfile(dest):
                return False
            return os.path.getsize(dest) == task.size_bytes
        except OSError:
            return False

    def _finish_source(self, index: int, total: int, task: FileTask, was_hydrated: bool) -> None:
        if not should_dehydrate(self.settings.dehydrate_mode, was_hydrated):
            return
        self._stage(index, total, "dehydrating", task.relative_path)
        if dehydrate(self.fs, task.source_path, logger=self.logger):
            self.summary.dehydrated += 1
        else:
            self.summary.warnings += 1

    def _preserve_timestamps(self, src: str, dst: str) -> None:
        """Copy mtime/atime to the destination. Nice to have, never fatal."""
        try:
            st = os.stat(src)
            os.utime(dst, (st.st_atime, st.st_mtime))
        except OSError as e:
            self.summary.warnings += 1
            self.logger.warning(
                "timestamp_copy_failed", path=dst,
                error=f"{type(e).__name__}: {e}",
            )

    def _record_error(
        self, index: int, total: int, rel: str, cause: str,
        error: Optional[BaseException] = None,
    ) -> None:
        self.summary.record_error(f"[{index}/{total}] {rel}: {cause}")
        if error is not None:
            self.logger.error("file_failed", **FileErrorLogEntry.build(index, total, rel, error))
        else:
            self.logger.error("file_failed", index=index, total=total, path=rel, message=cause)

    def _cleanup_after_failure(
        self, task: FileTask, dest: str, pinned: bool, copy_started: bool,
    ) -> None:
        """Release the source and remove any partial destination. Never raises."""
        if should_dehydrate(self.settings.dehydrate_mode, pinned):
            if os.path.exists(task.source_path):
                if dehydrate(self.fs, task.source_path, logger=self.logger):
                    self.summary.dehydrated += 1
                else:
                    self.summary.warnings += 1

        if copy_started and dest:
            try:
                if os.path.exists(dest):
                    os.remove(dest)
            except OSError as e:
                self.summary.warnings += 1
                self.logger.warning(
                    "partial_cleanup_failed", path=dest,
                    error=f"{type(e).__name__}: {e}",
                )
