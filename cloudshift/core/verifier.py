# ============================================================================
# CloudShift -- Copy Verifier (cloudshift/core/verifier.py)
# ============================================================================
#
# WHAT THIS FILE DOES (plain English):
#   Confirms the destination is a byte-length-exact replica of the
#   source. If it is not, the destination is DELETED so a truncated
#   file can never be mistaken for a finished one on the next run.
#
# WHY SIZE ONLY (no SHA-256):
#   The cloud client gives the same guarantee for its own sync: a file
#   is "done" when its length matches. Hashing would mean re-reading
#   every byte of both copies, doubling I/O on multi-hour runs. A size
#   check is one stat() call per side.
#
# INTERNET ACCESS: NONE
# ============================================================================

from __future__ import annotations

import os

from .exceptions import SizeMismatchError, VerificationError


def verify_copy(src: str, dst: str, logger=None) -> int:
    """
    Compare byte lengths of src and dst. Returns the verified size.

    Raises VerificationError if dst is missing, SizeMismatchError
    (after deleting dst) if the lengths differ.
    """
    if not os.path.isfile(dst):
        raise VerificationError(f"Destination missing after copy: {dst}")

    src_size = os.path.getsize(src)
    dst_size = os.path.getsize(dst)
    if src_size == dst_size:
        return dst_size

    try:
        os.remove(dst)
    except OSError as e:
        if logger is not None:
            logger.warning(
                "verify_cleanup_failed", path=dst,
                error=f"{type(e).__name__}: {e}",
            )
    raise SizeMismatchError(dst, src_size, dst_size)
