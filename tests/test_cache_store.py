"""
Tests for the on-disk persistent cache store.
"""

import json
import os
from unittest.mock import patch

import pytest

from releasecache.cache import FileCacheStore, get_default_cache_dir
from releasecache.models import Release

pytestmark = [pytest.mark.unit, pytest.mark.infrastructure]


@pytest.fixture
def store(tmp_path):
    return FileCacheStore(str(tmp_path / "store"), clock=lambda: 1000.0)


class TestFileCacheStore:
    """Test FileCacheStore get/set/clear."""

    def test_default_cache_dir(self):
        store = FileCacheStore()
        assert store.cache_dir == get_default_cache_dir()
        assert os.path.isdir(store.cache_dir)

    def test_missing_entry(self, store):
        assert store.get("7.x-views", "release-info") is None

    def test_set_then_get(self, store):
        payload = {"releases": [Release("7.x-3.14", 1700000000, {"supported"})]}
        store.set("7.x-views", "release-info", payload, 5000.0)

        record = store.get("7.x-views", "release-info")

        assert record.payload == payload
        assert record.created_at == 1000.0
        assert record.expires_at == 5000.0

    def test_expired_entries_are_still_returned(self, store):
        store.set("7.x-views", "release-info", "x", 10.0)
        record = store.get("7.x-views", "release-info")
        assert record.is_expired(1000.0)

    def test_bins_are_separate(self, store):
        store.set("key", "a", "from-a", 5000.0)
        assert store.get("key", "b") is None

    def test_clear(self, store):
        store.set("7.x-views", "release-info", "x", 5000.0)
        store.clear("7.x-views", "release-info")
        store.clear("7.x-views", "release-info")
        assert store.get("7.x-views", "release-info") is None

    def test_corrupt_entry_is_a_miss(self, store):
        path = store.get_cache_file_path("7.x-views", "release-info")
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w") as f:
            f.write("{not json")
        assert store.get("7.x-views", "release-info") is None

    def test_envelope_format(self, store):
        store.set("7.x-views", "release-info", "x", 5000.0)
        with open(store.get_cache_file_path("7.x-views", "release-info")) as f:
            envelope = json.load(f)
        assert envelope["key"] == "7.x-views"
        assert envelope["cached_at"] == 1000.0
        assert envelope["expires_at"] == 5000.0

    def test_failed_write_keeps_previous_record(self, store):
        store.set("7.x-views", "release-info", "old", 5000.0)
        bin_dir = os.path.dirname(store.get_cache_file_path("7.x-views", "release-info"))

        with patch("releasecache.cache.os.replace", side_effect=OSError("disk full")):
            store.set("7.x-views", "release-info", "new", 6000.0)

        assert store.get("7.x-views", "release-info").payload == "old"
        assert os.listdir(bin_dir) == ["7.x-views.cache.json"]

    def test_unsafe_key_characters_are_replaced(self, store):
        path = store.get_cache_file_path("../x/y", "release-info")
        assert os.path.dirname(path) == os.path.join(store.cache_dir, "release-info")

    def test_clear_bin(self, store):
        store.set("a", "release-info", 1, 5000.0)
        store.set("b", "release-info", 2, 5000.0)
        store.set("c", "other", 3, 5000.0)

        assert store.clear_bin("release-info") is True

        assert store.get("a", "release-info") is None
        assert store.get("b", "release-info") is None
        assert store.get("c", "other").payload == 3

    def test_clear_missing_bin(self, store):
        assert store.clear_bin("never-used") is True
