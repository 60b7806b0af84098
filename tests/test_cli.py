"""
Tests for the releasecache command-line interface.
"""

import os
from unittest.mock import patch

import pytest

from releasecache import cli
from releasecache.cache import FileCacheStore, get_default_cache_dir
from releasecache.exceptions import TransportUnavailableError

pytestmark = [pytest.mark.unit]


def test_no_command_prints_help(capsys):
    assert cli.main([]) == 1
    assert "usage" in capsys.readouterr().out


def test_fetch_local_file(tmp_path):
    source = tmp_path / "a.txt"
    source.write_text("hello")
    destination = tmp_path / "b.txt"

    assert cli.main(["fetch", str(source), "-o", str(destination)]) == 0
    assert destination.read_text() == "hello"


def test_fetch_keeps_downloaded_file(tmp_path):
    destination = tmp_path / "out.tar.gz"

    def fake_download(self, url, target, overwrite=True):
        with open(target, "wb") as f:
            f.write(b"x")
        return target

    with patch.object(cli.ArtifactFetcher, "download", fake_download):
        assert cli.main(["fetch", "https://x.org/out.tar.gz", "-o", str(destination)]) == 0

    assert destination.exists()


def test_fetch_failure_exit_status(tmp_path):
    with patch.object(cli.ArtifactFetcher, "download", return_value=False):
        assert cli.main(["fetch", "https://x.org/a", "-o", str(tmp_path / "a")]) == 1


def test_fetch_with_cache_flag_populates_download_cache(tmp_path):
    def fake_download(self, url, target, overwrite=True):
        with open(target, "wb") as f:
            f.write(b"x")
        return target

    with patch.object(cli.ArtifactFetcher, "download", fake_download):
        cli.main(["fetch", "--cache", "https://x.org/a.zip", "-o", str(tmp_path / "a.zip")])

    download_dir = os.path.join(get_default_cache_dir(), "download")
    assert os.listdir(download_dir) == ["https---x.org-a.zip"]


def test_clear_cache(tmp_path):
    cache_dir = get_default_cache_dir()
    download_dir = os.path.join(cache_dir, "download")
    os.makedirs(download_dir, exist_ok=True)
    with open(os.path.join(download_dir, "https---x.org-a"), "w") as f:
        f.write("x")
    store = FileCacheStore(cache_dir)
    store.set("7.x-views", "release-info", "x", 1.0)

    assert cli.main(["clear-cache"]) == 0

    assert os.listdir(download_dir) == []
    assert store.get("7.x-views", "release-info") is None


def test_validate_missing_tools():
    with patch.object(
        cli.ArtifactFetcher,
        "validate",
        side_effect=TransportUnavailableError("wget nor curl executables found."),
    ):
        assert cli.main(["validate"]) == 1


def test_invalid_config_file(tmp_path):
    config_file = tmp_path / "releasecache.yaml"
    config_file.write_text("- not a mapping\n")
    assert cli.main(["--config", str(config_file), "validate"]) == 1
