# ============================================================================
# CloudShift -- Cloud Placeholder Attributes (cloudshift/core/cloud_attributes.py)
# ============================================================================
#
# WHAT THIS FILE DOES (plain English):
#   The one place that talks to the operating system about cloud
#   placeholder files. Everything else in CloudShift asks THIS module
#   three questions:
#     1. Is this file cloud-only right now?        -> get_state()
#     2. Please download it and keep it local.      -> request_hydrate()
#     3. Please free up its space again.            -> request_dehydrate()
#
# HOW CLOUD-ONLY FILES LOOK ON WINDOWS:
#   OneDrive / Dropbox / Google Drive use the Windows Cloud Files API.
#   A cloud-only file is a "placeholder": its size is correct, but its
#   content lives in the cloud. os.stat() exposes this through
#   st_file_attributes WITHOUT downloading anything:
#
#     FILE_ATTRIBUTE_RECALL_ON_DATA_ACCESS (0x400000) -- reading triggers download
#     FILE_ATTRIBUTE_RECALL_ON_OPEN        (0x040000) -- opening triggers download
#     FILE_ATTRIBUTE_OFFLINE               (0x001000) -- content not present
#
#   Pin state is changed the same way Explorer does it:
#     attrib +P -U <file>   "Always keep on this device" (hydrate + pin)
#     attrib -P +U <file>   "Free up space"              (dehydrate)
#
#   The sync client performs the actual download ASYNCHRONOUSLY. The
#   attrib call only returns "request accepted"; the hydration
#   controller polls get_state() until the file is really local.
#
# OTHER PLATFORMS:
#   Without placeholder attributes every file reads as LOCAL, so the
#   pipeline degrades to a verified copy. Attribute change requests
#   fail with a clear "not supported" message.
#
# INTERNET ACCESS: NONE (the sync client does the network part)
# ============================================================================

from __future__ import annotations

import os
import subprocess
import sys
from typing import List

from .exceptions import DehydrateRequestFailure, HydrationRequestError
from .models import CloudFileState

FILE_ATTRIBUTE_OFFLINE = 0x00001000
FILE_ATTRIBUTE_RECALL_ON_OPEN = 0x00040000
FILE_ATTRIBUTE_PINNED = 0x00080000
FILE_ATTRIBUTE_UNPINNED = 0x00100000
FILE_ATTRIBUTE_RECALL_ON_DATA_ACCESS = 0x00400000

CLOUD_ONLY_MASK = (
    FILE_ATTRIBUTE_RECALL_ON_DATA_ACCESS
    | FILE_ATTRIBUTE_RECALL_ON_OPEN
    | FILE_ATTRIBUTE_OFFLINE
)


class CloudFilesystem:
    """
    Interface to the placeholder filesystem.

    Subclasses override all three methods. Tests use a fake that keeps
    cloud state in memory over real temp files.
    """

    def get_state(self, path: str) -> CloudFileState:
        raise NotImplementedError

    def request_hydrate(self, path: str) -> None:
        """Ask the sync client to download and pin. Raises HydrationRequestError."""
        raise NotImplementedError

    def request_dehydrate(self, path: str) -> None:
        """Ask the sync client to unpin and free space. Raises DehydrateRequestFailure."""
        raise NotImplementedError


class WindowsCloudFilesystem(CloudFilesystem):
    """
    Cloud Files API placeholders, observed via st_file_attributes and
    changed via attrib.exe.

    NON-PROGRAMMER NOTE:
      attrib.exe is the same command-line tool Windows has shipped since
      DOS. Since Windows 10 1709 it understands +P (pinned) and +U
      (unpinned), which is exactly what Explorer's "Always keep on this
      device" and "Free up space" menu items set.
    """

    def __init__(self, attrib_timeout: float = 60.0) -> None:
        self.attrib_timeout = attrib_timeout

    def get_state(self, path: str) -> CloudFileState:
        attrs = getattr(os.stat(path), "st_file_attributes", 0)
        if attrs & CLOUD_ONLY_MASK:
            return CloudFileState.CLOUD_ONLY
        return CloudFileState.LOCAL

    def request_hydrate(self, path: str) -> None:
        error = self._attrib(["+P", "-U"], path)
        if error:
            raise HydrationRequestError(path, error)

    def request_dehydrate(self, path: str) -> None:
        error = self._attrib(["-P", "+U"], path)
        if error:
            raise DehydrateRequestFailure(path, error)

    def _attrib(self, flags: List[str], path: str) -> str:
        """Run attrib.exe; return "" on success or an error description."""
        try:
            r = subprocess.run(
                ["attrib", *flags, path],
                capture_output=True, text=True, timeout=self.attrib_timeout,
            )
        except subprocess.TimeoutExpired:
            return f"attrib timed out after {self.attrib_timeout:.0f}s"
        except OSError as e:
            return f"{type(e).__name__}: {e}"
        if r.returncode != 0:
            detail = (r.stderr or r.stdout or "").strip()
            return f"attrib exit code {r.returncode}: {detail}"
        # attrib reports some failures on stdout with exit code 0
        out = (r.stdout or "").strip()
        if out:
            return out
        return ""


class PlainFilesystem(CloudFilesystem):
    """Filesystem without cloud placeholders: every file is already local."""

    def get_state(self, path: str) -> CloudFileState:
        os.stat(path)
        return CloudFileState.LOCAL

    def request_hydrate(self, path: str) -> None:
        raise HydrationRequestError(path, "cloud placeholders not supported on this platform")

    def request_dehydrate(self, path: str) -> None:
        raise DehydrateRequestFailure(path, "cloud placeholders not supported on this platform")


def default_cloud_filesystem() -> CloudFilesystem:
    """Pick the implementation for the running platform."""
    if sys.platform == "win32":
        return WindowsCloudFilesystem()
    return PlainFilesystem()
