# ===========================================================================
# CloudShift -- TYPED EXCEPTIONS
# ===========================================================================
# FILE: cloudshift/core/exceptions.py
#
# WHAT THIS IS:
#   Custom error types for CloudShift. Each one says EXACTLY which step of
#   the per-file pipeline failed (hydrate, copy, verify, ...) and HOW TO
#   FIX IT.
#
# WHY THIS MATTERS:
#   A migration run touches tens of thousands of files over several hours.
#   When 37 of them fail, the end-of-run error list must tell you at a
#   glance whether the cloud client stalled (HYD-003), the disk filled
#   (COPY-001) or a copy came out short (VER-002). A generic "Exception"
#   tells you nothing.
#
# HOW IT'S USED:
#   The orchestrator catches every per-file failure and
#   turns it into a counted error line. Only SourceRootMissingError and
#   ConfigurationError escape a run -- they mean there is nothing to do.
#
#     try:
#         summary = MigrationOrchestrator(settings).run()
#     except SourceRootMissingError as e:
#         print(f"{e} -- Fix: {e.fix_suggestion}")
#
# DESIGN DECISION:
#   All exceptions inherit from CloudShiftError:
#     - "except CloudShiftError" catches ALL our custom errors
#     - "except HydrateTimeoutError" catches only the stalled downloads
#     - SizeMismatchError is a VerificationError, so one except clause
#       covers both "destination missing" and "destination wrong size"
# ===========================================================================

from __future__ import annotations


class CloudShiftError(Exception):
    """
    Base class for all CloudShift errors.

    Attributes:
        fix_suggestion (str | None): Human-readable fix instruction.
        error_code (str | None): Machine-readable code like "HYD-003"
            for logs and the end-of-run summary.
    """

    def __init__(self, message, fix_suggestion=None, error_code=None):
        self.fix_suggestion = fix_suggestion
        self.error_code = error_code
        super().__init__(message)

    def to_dict(self):
        """Convert to dictionary for structured (JSON) logging."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": str(self),
            "fix_suggestion": self.fix_suggestion,
        }


# ---------------------------------------------------------------------------
# CONFIGURATION ERRORS (CFG-xxx)
# Raised before the first file is touched. These are fatal to the run.
# ---------------------------------------------------------------------------

class ConfigurationError(CloudShiftError):
    """
    Run settings are incomplete or contradictory.

    WHEN YOU'LL SEE THIS:
      - source_root or dest_root is empty or relative
      - dest_root is inside source_root (the run would copy into itself)
      - dehydrate_mode is not one of hydrated-only / all / none
    """
    def __init__(self, problems):
        self.problems = list(problems)
        super().__init__(
            "Invalid configuration: " + "; ".join(self.problems),
            fix_suggestion=(
                "Check config/default_config.yaml or the --source/--dest/"
                "--dehydrate command-line flags."
            ),
            error_code="CFG-001",
        )


class SourceRootMissingError(CloudShiftError):
    """
    The source root folder does not exist.

    WHEN YOU'LL SEE THIS:
      - The cloud client has not mounted the synced folder yet
      - The account was signed out and the folder was removed
      - A typo in the configured path
    """
    def __init__(self, source_root):
        self.source_root = source_root
        super().__init__(
            f"Source root does not exist: {source_root}",
            fix_suggestion=(
                "Make sure the cloud sync client is running and signed in, "
                "then check the source path."
            ),
            error_code="CFG-002",
        )


# ---------------------------------------------------------------------------
# PATH ERRORS (PATH-xxx)
# ---------------------------------------------------------------------------

class PathEscapeError(CloudShiftError):
    """
    A file path resolves outside the source root.

    WHEN YOU'LL SEE THIS:
      - A junction or symlink inside the source tree points elsewhere
      - A malformed entry with ".." segments
    The file is NOT migrated -- no destination path is ever built for it.
    """
    def __init__(self, root, path):
        self.root = root
        self.path = path
        super().__init__(
            f"Path escapes source root: {path} (root: {root})",
            fix_suggestion="Remove or fix the junction/symlink that points outside the source folder.",
            error_code="PATH-001",
        )


# ---------------------------------------------------------------------------
# HYDRATION ERRORS (HYD-xxx)
# The cloud client could not make the file available locally.
# ---------------------------------------------------------------------------

class NotFoundError(CloudShiftError):
    """Source file vanished between enumeration and hydration."""
    def __init__(self, path):
        self.path = path
        super().__init__(
            f"Source file not found: {path}",
            fix_suggestion="The file was moved or deleted during the run. Re-run to pick up the current state.",
            error_code="HYD-001",
        )


class HydrationRequestError(CloudShiftError):
    """
    The OS / sync client refused the "download and pin" request.

    WHEN YOU'LL SEE THIS:
      - The sync client is paused or signed out
      - The platform has no cloud placeholder support
      - The attrib command is missing or timed out
    """
    def __init__(self, path, detail=""):
        self.path = path
        self.detail = detail
        msg = f"Hydration request failed: {path}"
        if detail:
            msg += f" ({detail})"
        super().__init__(
            msg,
            fix_suggestion="Resume syncing in the cloud client and make sure you are signed in.",
            error_code="HYD-002",
        )


class HydrateTimeoutError(CloudShiftError):
    """
    The file did not become fully local within the hydration timeout.

    WHEN YOU'LL SEE THIS:
      - Very large file on a slow connection
      - The sync client is stuck (check its status icon)
    """
    def __init__(self, path, timeout_seconds, last_error=None):
        self.path = path
        self.timeout_seconds = timeout_seconds
        self.last_error = last_error
        msg = f"File not hydrated after {timeout_seconds:.0f}s: {path}"
        if last_error:
            msg += f" (last read error: {last_error})"
        super().__init__(
            msg,
            fix_suggestion="Raise migration.hydrate_timeout_seconds or download the file manually, then re-run.",
            error_code="HYD-003",
        )


# ---------------------------------------------------------------------------
# COPY / VERIFY ERRORS (COPY-xxx, VER-xxx)
# ---------------------------------------------------------------------------

class CopyIoError(CloudShiftError):
    """A read or write failed while streaming the file (disk full, I/O error)."""
    def __init__(self, src, dst, cause):
        self.src = src
        self.dst = dst
        self.cause = cause
        super().__init__(
            f"Copy failed {src} -> {dst}: {type(cause).__name__}: {cause}",
            fix_suggestion="Check free space and permissions on the destination drive.",
            error_code="COPY-001",
        )


class VerificationError(CloudShiftError):
    """The destination file is missing after the copy."""
    def __init__(self, message, fix_suggestion=None, error_code="VER-001"):
        super().__init__(
            message,
            fix_suggestion=fix_suggestion or "Re-run the migration; the file will be copied again.",
            error_code=error_code,
        )


class SizeMismatchError(VerificationError):
    """
    Destination byte length differs from the source.

    The destination has already been deleted when you see this, so the
    next run copies the file again from scratch.
    """
    def __init__(self, dst, source_size, dest_size):
        self.dst = dst
        self.source_size = source_size
        self.dest_size = dest_size
        super().__init__(
            f"Size mismatch for {dst}: source={source_size} bytes, "
            f"destination={dest_size} bytes",
            error_code="VER-002",
        )


# ---------------------------------------------------------------------------
# DEHYDRATION (DEH-xxx) -- warning only, never fails a file
# ---------------------------------------------------------------------------

class DehydrateRequestFailure(CloudShiftError):
    """
    The request to return a source file to cloud-only state was denied.

    The file simply stays local. Space reclamation is a bonus, so this
    is only ever logged as a warning.
    """
    def __init__(self, path, detail=""):
        self.path = path
        self.detail = detail
        msg = f"Dehydrate request failed: {path}"
        if detail:
            msg += f" ({detail})"
        super().__init__(
            msg,
            fix_suggestion="Use 'Free up space' in the cloud client to release the file manually.",
            error_code="DEH-001",
        )
