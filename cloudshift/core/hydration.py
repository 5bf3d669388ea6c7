# ============================================================================
# CloudShift -- Hydration Controller (cloudshift/core/hydration.py)
# ============================================================================
#
# WHAT THIS FILE DOES (plain English):
#   Makes sure a file's content is really on this machine before we try
#   to copy it.
#
#   A "cloud-only" file is a placeholder: Explorer shows it with the
#   correct size, but the bytes live in the cloud. Copying it directly
#   either blocks for a long time or fails. So before every copy we:
#
#     1. Check the placeholder attributes (metadata only, no download)
#     2. If already local -> nothing to do, report "not hydrated by us"
#     3. Otherwise ask the sync client to download AND pin the file
#        (pinning stops the client from evicting it mid-copy)
#     4. Poll until the cloud-only attribute clears
#
# WHY POLLING:
#   The sync client downloads in the background on its own schedule.
#   There is no "download now and tell me when done" call we can make,
#   so we watch the attribute like you would watch the green check mark
#   in Explorer. Each poll also reads one byte from the file, which both
#   proves the data is readable and nudges the client to hurry up.
#
#   Waits grow 0.2s -> 0.4s -> 0.8s -> 1.6s -> 2.0s -> 2.0s ...
#   Small files finish in well under a second; big ones don't hot-spin.
#
# STATE MACHINE:
#   CLOUD_ONLY --(request + pin)--> HYDRATING --(attribute clears)--> LOCAL
#   This module never goes back to CLOUD_ONLY. That is the dehydration
#   policy's job, and only after a verified copy.
#
# INTERNET ACCESS: NONE (the sync client does the download)
# ============================================================================

from __future__ import annotations

import os
import time
from typing import Callable, Optional

from .cloud_attributes import CloudFilesystem
from .exceptions import HydrateTimeoutError, NotFoundError
from .models import CloudFileState

DEFAULT_TIMEOUT_SECONDS = 1800.0
DEFAULT_INITIAL_DELAY = 0.2
DEFAULT_MAX_DELAY = 2.0


class HydrationController:
    """
    Drives one cloud-only file to fully-local state.

    sleep and clock are injectable so tests can simulate a 30-minute
    timeout in microseconds.
    """

    def __init__(
        self,
        fs: CloudFilesystem,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        initial_delay: float = DEFAULT_INITIAL_DELAY,
        max_delay: float = DEFAULT_MAX_DELAY,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.fs = fs
        self.timeout_seconds = timeout_seconds
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self._sleep = sleep
        self._clock = clock

    def hydrate(self, path: str) -> bool:
        """
        Ensure path is fully local.

        Returns True if this call had to hydrate the file, False if it
        was already local (no request, no pin). Raises NotFoundError,
        HydrationRequestError or HydrateTimeoutError.
        """
        if not os.path.exists(path):
            raise NotFoundError(path)

        if self.fs.get_state(path) is CloudFileState.LOCAL:
            return False

        self.fs.request_hydrate(path)

        start = self._clock()
        delay = self.initial_delay
        last_error: Optional[str] = None

        while True:
            read_error = _probe_read(path)
            if read_error:
                last_error = read_error
            if self.fs.get_state(path) is CloudFileState.LOCAL:
                return True

            if self._clock() - start > self.timeout_seconds:
                raise HydrateTimeoutError(path, self.timeout_seconds, last_error)

            self._sleep(delay)
            delay = min(delay * 2, self.max_delay)


def _probe_read(path: str) -> Optional[str]:
    """
    Read one byte. Returns None on success or the error text.

    Failures are expected while the download is still running
    (sharing violations, "cloud operation in progress").
    """
    try:
        with open(path, "rb") as f:
            f.read(1)
    except OSError as e:
        return f"{type(e).__name__}: {e}"
    return None
