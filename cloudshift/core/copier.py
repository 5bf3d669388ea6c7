# ============================================================================
# CloudShift -- Streaming Copier (cloudshift/core/copier.py)
# ============================================================================
#
# WHAT THIS FILE DOES (plain English):
#   Copies one file in 4 MB chunks. Memory use stays flat whether the
#   file is 10 bytes or 40 GB.
#
#   The source is opened read-only, so the sync client can keep reading
#   it too (uploading, indexing) while we copy. The destination is
#   created EXCLUSIVELY: a stale file from an earlier attempt is removed
#   first, then the new one is created with O_CREAT | O_EXCL. If anything
#   else creates the same file in between, the copy fails instead of
#   writing into someone else's file.
#
#   Both handles live in "with" blocks, so they are closed on every exit
#   path, including a write that fails when the disk fills up halfway
#   through.
#
#   Any read/write fault becomes CopyIoError. Deleting the partial
#   destination is the orchestrator's job, because it decides whether
#   a destination file was written by THIS attempt.
#
# WHY 4 MB:
#   Cloud-synced folders are usually on local SSDs; bigger buffers mean
#   fewer syscalls. The copy is never the bottleneck -- the cloud
#   upload of the destination is -- so anything from 1 MB up is fine.
#
# INTERNET ACCESS: NONE
# ============================================================================

from __future__ import annotations

import os

from .exceptions import CopyIoError

DEFAULT_BUFFER_SIZE = 4 * 1024 * 1024

_EXCLUSIVE_CREATE = os.O_WRONLY | os.O_CREAT | os.O_EXCL | getattr(os, "O_BINARY", 0)


def _open_destination(dst: str):
    """Replace any stale dst and open a brand-new file for writing."""
    if os.path.lexists(dst):
        os.remove(dst)
    fd = os.open(dst, _EXCLUSIVE_CREATE, 0o666)
    try:
        return os.fdopen(fd, "wb")
    except BaseException:
        os.close(fd)
        raise


def stream_copy(src: str, dst: str, buffer_size: int = DEFAULT_BUFFER_SIZE) -> int:
    """Copy src to dst through a fixed-size buffer. Returns bytes written."""
    copied = 0
    try:
        with open(src, "rb") as fsrc, _open_destination(dst) as fdst:
            while True:
                chunk = fsrc.read(buffer_size)
                if not chunk:
                    break
                fdst.write(chunk)
                copied += len(chunk)
            fdst.flush()
    except OSError as e:
        raise CopyIoError(src, dst, e) from e
    return copied
