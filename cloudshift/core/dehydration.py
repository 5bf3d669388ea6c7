# ============================================================================
# CloudShift -- Dehydration Policy (cloudshift/core/dehydration.py)
# ============================================================================
#
# WHAT THIS FILE DOES (plain English):
#   Decides whether a SOURCE file goes back to "cloud-only" after it has
#   been migrated, and asks the sync client to do it.
#
#     mode            | file was downloaded by this run | dehydrate?
#     ----------------+---------------------------------+-----------
#     all             | (doesn't matter)                | yes
#     none            | (doesn't matter)                | no
#     hydrated-only   | yes                             | yes
#     hydrated-only   | no (was already local)          | no
#
#   "hydrated-only" is the polite default: files you had on this device
#   before the run stay on this device afterwards.
#
# NEVER FATAL:
#   Freeing up space is a bonus, not a correctness requirement. If the
#   client refuses, the file stays local, a warning is logged, and the
#   file still counts as migrated.
#
#   The destination is never dehydrated: its own sync client has to
#   finish uploading it first.
#
# INTERNET ACCESS: NONE
# ============================================================================

from __future__ import annotations

from .cloud_attributes import CloudFilesystem
from .exceptions import DehydrateRequestFailure
from .models import DehydrateMode


def should_dehydrate(mode: DehydrateMode, was_hydrated_this_run: bool) -> bool:
    if mode is DehydrateMode.ALL:
        return True
    if mode is DehydrateMode.NONE:
        return False
    return bool(was_hydrated_this_run)


def dehydrate(fs: CloudFilesystem, path: str, logger=None) -> bool:
    """Request cloud-only state for path. Returns False (and warns) on failure."""
    try:
        fs.request_dehydrate(path)
    except (DehydrateRequestFailure, OSError) as e:
        if logger is not None:
            logger.warning(
                "dehydrate_failed", path=path,
                error=f"{type(e).__name__}: {e}",
            )
        return False
    return True
