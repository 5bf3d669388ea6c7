# ============================================================================
# CloudShift -- Path Resolver (cloudshift/core/path_resolver.py)
# ============================================================================
#
# WHAT THIS FILE DOES (plain English):
#   Turns "C:\Users\me\OneDrive\Reports\Q1.pdf" into "Reports\Q1.pdf"
#   so the same relative path can be rebuilt under the destination root.
#
#   It FAILS CLOSED: if a path does not sit strictly inside the source
#   root (a junction pointing elsewhere, a ".." segment, a different
#   drive), it raises PathEscapeError and no destination path is built.
#
# PATH LENGTH:
#   Windows MAX_PATH is 260 characters. Many tools (Explorer, the sync
#   clients themselves) still choke on longer paths, so a source or
#   destination path at or above the limit is rejected up front instead
#   of failing halfway through a copy.
#
# INTERNET ACCESS: NONE
# ============================================================================

from __future__ import annotations

import os
from typing import Tuple

from .exceptions import PathEscapeError

DEFAULT_MAX_PATH_LENGTH = 260

_SEPARATORS = "\\/"


def _normalize(path: str) -> str:
    """Absolute, collapsed ("a/../b" -> "b") and without trailing separator."""
    norm = os.path.normpath(os.path.abspath(path))
    stripped = norm.rstrip(_SEPARATORS)
    # "/" or "C:\" stripped down to nothing / a bare drive stays a root
    return stripped if stripped and not stripped.endswith(":") else norm


def relative_path(root: str, full_path: str) -> str:
    """
    Return full_path relative to root.

    The comparison is case-insensitive (NTFS and APFS both treat
    "Reports" and "reports" as the same folder) and ignores trailing
    separators on the root. Raises PathEscapeError when full_path is
    not strictly inside root, either as written or once symlinks and
    junctions are resolved. The returned path is always the written one.
    """
    root_n = _normalize(root)
    full_n = _normalize(full_path)

    rel = _strip_root(root_n, full_n)
    if not rel:
        raise PathEscapeError(root, full_path)

    # The text says "inside"; the filesystem must agree. realpath()
    # resolves symlinks and junctions, so a linked folder that points
    # outside the root is caught here.
    if not _strip_root(_normalize(os.path.realpath(root_n)),
                       _normalize(os.path.realpath(full_n))):
        raise PathEscapeError(root, full_path)
    return rel


def _strip_root(root_n: str, full_n: str) -> str:
    """full_n with the root prefix removed, or "" if it is not strictly inside."""
    prefix = root_n if root_n.endswith(tuple(_SEPARATORS)) else root_n + os.sep
    if not full_n.lower().startswith(prefix.lower()):
        return ""
    return full_n[len(prefix):]


def resolve_destination(
    source_root: str, dest_root: str, source_path: str,
) -> Tuple[str, str]:
    """
    Map a source file onto the destination tree.

    Returns (relative_path, destination_path). The relative path is
    verified to stay inside the source root before it is joined onto
    dest_root.
    """
    rel = relative_path(source_root, source_path)
    return rel, os.path.join(dest_root, rel)


def is_path_too_long(path: str, max_length: int = DEFAULT_MAX_PATH_LENGTH) -> bool:
    """True when path is at or above max_length characters."""
    return len(path) >= max_length
