# ============================================================================
# conftest.py -- Shared Test Fixtures for the CloudShift Test Suite
# ============================================================================
#
# WHAT THIS FILE DOES:
#   Pytest automatically loads this file before any test runs.
#   It provides:
#     1. sys.path setup so "from cloudshift.core.X import Y" works from any test
#     2. FakeCloudFilesystem -- a pretend OneDrive over real temp files
#     3. FakeClock -- lets a 30-minute hydration timeout pass instantly
#     4. make_settings() -- RunSettings with test-friendly defaults
#
# WHY A FAKE FILESYSTEM:
#   Real cloud placeholders only exist on Windows with a signed-in sync
#   client. The fake keeps "which files are cloud-only" in a set, and
#   makes hydration finish after N polls, so every pipeline path runs on
#   any machine in milliseconds. The FILE CONTENT is real (tmp_path), so
#   copy and verify are exercised for real.
#
# INTERNET ACCESS: NONE
# ============================================================================

import os
import sys
from pathlib import Path
from typing import List, Optional

import pytest

# -- sys.path setup --
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from cloudshift.core.cloud_attributes import CloudFilesystem
from cloudshift.core.config import RunSettings
from cloudshift.core.exceptions import DehydrateRequestFailure, HydrationRequestError
from cloudshift.core.models import CloudFileState, DehydrateMode


# ============================================================================
# SECTION 0: FAKE CLOUD FILESYSTEM AND CLOCK
# ============================================================================

class FakeCloudFilesystem(CloudFilesystem):
    """
    In-memory cloud state over real files.

    polls_to_hydrate: how many get_state() calls after request_hydrate()
        before the file reads as LOCAL.
    never_hydrates: the sync client accepts the request but never
        finishes (for timeout tests).
    hydrate_error / dehydrate_error: make the request itself fail.
    """

    def __init__(
        self,
        polls_to_hydrate: int = 1,
        never_hydrates: bool = False,
        hydrate_error: Optional[str] = None,
        dehydrate_error: Optional[str] = None,
    ) -> None:
        self.polls_to_hydrate = polls_to_hydrate
        self.never_hydrates = never_hydrates
        self.hydrate_error = hydrate_error
        self.dehydrate_error = dehydrate_error
        self.cloud_only = set()
        self.hydrate_requests: List[str] = []
        self.dehydrate_requests: List[str] = []
        self.state_checks = 0
        self._pending = {}

    @staticmethod
    def _key(path) -> str:
        return os.path.abspath(str(path))

    def mark_cloud_only(self, path) -> None:
        self.cloud_only.add(self._key(path))

    def is_cloud_only(self, path) -> bool:
        return self._key(path) in self.cloud_only

    def get_state(self, path: str) -> CloudFileState:
        os.stat(path)  # Missing files fail like the real thing
        self.state_checks += 1
        key = self._key(path)
        if key in self._pending:
            self._pending[key] -= 1
            if self._pending[key] <= 0:
                del self._pending[key]
                self.cloud_only.discard(key)
        if key in self.cloud_only:
            return CloudFileState.CLOUD_ONLY
        return CloudFileState.LOCAL

    def request_hydrate(self, path: str) -> None:
        self.hydrate_requests.append(path)
        if self.hydrate_error:
            raise HydrationRequestError(path, self.hydrate_error)
        if not self.never_hydrates:
            self._pending[self._key(path)] = self.polls_to_hydrate

    def request_dehydrate(self, path: str) -> None:
        self.dehydrate_requests.append(path)
        if self.dehydrate_error:
            raise DehydrateRequestFailure(path, self.dehydrate_error)
        self.cloud_only.add(self._key(path))


class FakeClock:
    """time.monotonic / time.sleep pair where sleeping just moves the hands."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    def clock(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def make_settings(source_root, dest_root, **overrides) -> RunSettings:
    """RunSettings for temp folders; keyword arguments override fields."""
    values = dict(
        source_root=str(source_root),
        dest_root=str(dest_root),
        dehydrate_mode=DehydrateMode.HYDRATED_ONLY,
        skip_names=frozenset({"desktop.ini", "thumbs.db", ".ds_store"}),
        max_path_length=4096,
        hydrate_timeout_seconds=60.0,
        copy_buffer_bytes=64 * 1024,
    )
    values.update(overrides)
    return RunSettings(**values)


# ============================================================================
# SECTION 1: FIXTURES
# ============================================================================

@pytest.fixture
def fake_fs():
    return FakeCloudFilesystem()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def roots(tmp_path):
    """(source_root, dest_root) as Path objects; only the source exists."""
    src = tmp_path / "OneDrive - Old"
    src.mkdir()
    dst = tmp_path / "OneDrive - New" / "Imported"
    return src, dst


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Machine env vars must not leak into config tests."""
    for name in (
        "CLOUDSHIFT_SOURCE_ROOT", "CLOUDSHIFT_DEST_ROOT",
        "CLOUDSHIFT_DEHYDRATE_MODE", "CLOUDSHIFT_HYDRATE_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)
