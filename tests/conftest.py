import os
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import platformdirs
import pytest
import requests

from releasecache import fetcher as fetcher_module
from releasecache.interfaces import (
    Chooser,
    Clock,
    MetadataProvider,
    PersistentCache,
    ReleaseMetadata,
    TransportRunner,
)
from releasecache.models import CacheRecord, Release, Request

_NETWORK_BLOCK_MSG = (
    "Network access is blocked during tests. Mock requests.* or Session.request."
)


def _block_network(*_args, **_kwargs):
    """
    Prevent network calls in tests by raising a RuntimeError.

    Raises:
        RuntimeError: with `_NETWORK_BLOCK_MSG` indicating that network access is blocked during tests.
    """
    raise RuntimeError(_NETWORK_BLOCK_MSG)


def pytest_configure(config):
    """Register the markers used to group the test suite."""
    config.addinivalue_line("markers", "unit: fast isolated tests")
    config.addinivalue_line("markers", "infrastructure: cache and transport tests")


@pytest.fixture(autouse=True)
def _isolate_test_environment(tmp_path_factory, monkeypatch):
    """
    Point platformdirs user directories at a temporary tree and forget the transport probe.
    """
    base = tmp_path_factory.mktemp("releasecache")
    cache_dir = base / "cache"
    config_dir = base / "config"
    for path in (cache_dir, config_dir):
        path.mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv("XDG_CACHE_HOME", str(cache_dir))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_dir))
    monkeypatch.setattr(
        platformdirs, "user_cache_dir", lambda *_args, **_kwargs: str(cache_dir)
    )
    monkeypatch.setattr(
        platformdirs, "user_config_dir", lambda *_args, **_kwargs: str(config_dir)
    )

    fetcher_module.reset_transport_probe()
    yield
    fetcher_module.reset_transport_probe()


def pytest_runtest_setup():
    """Replace requests entry points so no test can reach the network."""
    requests.get = _block_network
    requests.post = _block_network
    requests.head = _block_network
    requests.Session.request = _block_network


# =============================================================================
# Fakes for the engine collaborators
# =============================================================================


class FixedClock(Clock):
    """Clock that returns a settable time."""

    def __init__(self, now: Optional[float] = None):
        self.current = time.time() if now is None else now

    def now(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


class MemoryCacheStore(PersistentCache):
    """In-memory PersistentCache recording every call."""

    def __init__(self, clock: FixedClock):
        self.clock = clock
        self.records: Dict[Tuple[str, str], CacheRecord] = {}
        self.get_calls: List[Tuple[str, str]] = []
        self.cleared: List[Tuple[str, str]] = []

    def get(self, key: str, bin: str) -> Optional[CacheRecord]:
        self.get_calls.append((key, bin))
        return self.records.get((key, bin))

    def set(self, key: str, bin: str, payload: Any, expires_at: float) -> None:
        self.records[(key, bin)] = CacheRecord(
            payload=payload, created_at=self.clock.now(), expires_at=expires_at
        )

    def clear(self, key: str, bin: str) -> None:
        self.cleared.append((key, bin))
        self.records.pop((key, bin), None)


class FakeReleaseMetadata(ReleaseMetadata):
    """Release metadata backed by a list of releases."""

    def __init__(
        self,
        releases: Sequence[Release] = (),
        project_type: str = "module",
        valid: bool = True,
        recommended: Optional[str] = None,
        dev: Optional[str] = None,
    ):
        self.releases = list(releases)
        self.project_type = project_type
        self.valid = valid
        self.recommended = recommended
        self.dev = dev
        self.filter_calls: List[Tuple[str, Optional[str]]] = []

    def _find(self, version: Optional[str]):
        for release in self.releases:
            if release.version == version:
                return release
        return False

    def is_valid(self) -> bool:
        return self.valid

    def get_type(self) -> str:
        return self.project_type

    def get_dev_release(self):
        return self._find(self.dev)

    def get_specific_release(self, version: str):
        return self._find(version)

    def get_recommended_or_supported_release(self):
        return self._find(self.recommended)

    def filter_releases(self, filter: str = "", version: Optional[str] = None):
        self.filter_calls.append((filter, version))
        if filter == "dev":
            selected = [r for r in self.releases if r.version.endswith("-dev")]
        elif filter == "all":
            selected = list(self.releases)
        else:
            selected = [r for r in self.releases if "supported" in r.status]
        return {release.version: release for release in selected}


class FakeMetadataProvider(MetadataProvider):
    """Returns preconfigured metadata and counts constructions."""

    def __init__(self, metadata: Any = None):
        self.metadata = metadata
        self.calls: List[Tuple[Request, int]] = []

    def get_instance(self, request: Request, cache_duration: int):
        self.calls.append((request, cache_duration))
        return self.metadata


class FakeChooser(Chooser):
    """Chooser answering with a fixed key and remembering what it was shown."""

    def __init__(self, answer: Optional[str] = None):
        self.answer = answer
        self.calls: List[Tuple[Mapping[str, Tuple[str, ...]], str]] = []

    def choose(self, options, prompt):
        self.calls.append((dict(options), prompt))
        return self.answer


class FakeTransport(TransportRunner):
    """
    TransportRunner that writes scripted content instead of running tools.

    `outcomes` maps a tool name ("wget", "curl", "requests") to the bytes it
    writes; tools missing from the mapping fail without writing.
    """

    def __init__(
        self,
        outcomes: Optional[Dict[str, bytes]] = None,
        available: Sequence[str] = ("wget", "curl"),
    ):
        self.outcomes = outcomes or {}
        self.available = set(available)
        self.runs: List[List[str]] = []
        self.probes: List[List[str]] = []
        self.in_process: List[str] = []

    def run(self, command, timeout=None) -> bool:
        command = list(command)
        self.runs.append(command)
        tool = command[0]
        if tool not in self.available or tool not in self.outcomes:
            return False
        flag = "-O" if tool == "wget" else "-o"
        destination = command[command.index(flag) + 1]
        with open(destination, "wb") as f:
            f.write(self.outcomes[tool])
        return True

    def probe(self, command) -> bool:
        command = list(command)
        self.probes.append(command)
        tool = command[-1] if command[0] == "which" else command[0]
        return tool in self.available

    def fetch_in_process(self, url, destination, timeout) -> bool:
        self.in_process.append(url)
        if "requests" not in self.outcomes:
            return False
        with open(destination, "wb") as f:
            f.write(self.outcomes["requests"])
        return True

    @property
    def attempts(self) -> int:
        return len(self.runs) + len(self.in_process)


def make_release(version: str, date: float = 1700000000, *status: str) -> Release:
    return Release(version=version, date=date, status=frozenset(status))


@pytest.fixture
def clock():
    return FixedClock(1700000000.0)


@pytest.fixture
def cache_store(clock):
    return MemoryCacheStore(clock)


@pytest.fixture
def sample_releases():
    return [
        make_release("7.x-3.14", 1700000000, "published", "recommended", "supported"),
        make_release("7.x-3.13", 1690000000, "published", "supported", "insecure"),
        make_release("7.x-3.x-dev", 1700500000, "published"),
    ]


@pytest.fixture
def sample_metadata(sample_releases):
    return FakeReleaseMetadata(
        sample_releases, recommended="7.x-3.14", dev="7.x-3.x-dev"
    )


@pytest.fixture
def views_request():
    return Request(name="views", platform_version="7.x")


@pytest.fixture
def work_dir(tmp_path, monkeypatch):
    """Run the test from an empty working directory."""
    path = tmp_path / "work"
    path.mkdir()
    monkeypatch.chdir(path)
    return path


@pytest.fixture
def download_cache_dir(tmp_path):
    path = tmp_path / "cache"
    path.mkdir()
    return str(path)


def write_file(path, content: bytes = b"data") -> str:
    os.makedirs(os.path.dirname(str(path)), exist_ok=True)
    with open(path, "wb") as f:
        f.write(content)
    return str(path)
