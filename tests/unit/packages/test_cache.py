"""Tests for the git clone cache."""

import hashlib
import json
from pathlib import Path
from unittest.mock import patch

from seastar.file_utils import safe_rmtree
from seastar.packages import PackageCache, cache_key, get_cache_root

REPO = "https://github.com/acme/ring.git"


def test_cache_key_is_md5_of_url():
    digest = hashlib.md5(REPO.encode("utf-8")).hexdigest()

    assert cache_key(REPO) == digest
    assert cache_key(REPO, "v1.0") == f"{digest}-v1.0"


def test_get_cache_root_honors_env(tmp_path, monkeypatch):
    monkeypatch.setenv("SEASTAR_CACHE_DIR", str(tmp_path / "cache"))
    assert get_cache_root() == (tmp_path / "cache").resolve()


def test_get_cache_root_default(monkeypatch):
    monkeypatch.delenv("SEASTAR_CACHE_DIR", raising=False)
    assert get_cache_root() == Path.home() / ".seastar" / "package_cache" / "git_clones"


class TestPackageCache:
    """Tests for PackageCache."""

    def test_creates_root(self, tmp_path):
        cache = PackageCache(tmp_path / "a" / "b")
        assert cache.cache_root.is_dir()

    def test_entry_path_and_has_entry(self, tmp_path):
        cache = PackageCache(tmp_path)
        entry = cache.entry_path(REPO, "v2")

        assert entry == tmp_path / cache_key(REPO, "v2")
        assert not cache.has_entry(REPO, "v2")
        entry.mkdir()
        assert cache.has_entry(REPO, "v2")
        assert not cache.has_entry(REPO)

    def test_entries_read_manifest(self, tmp_path):
        cache = PackageCache(tmp_path)
        entry = cache.entry_path(REPO, "v1")
        entry.mkdir()
        (entry / "ring.c").write_text("x" * 100)
        cache.write_manifest(REPO, "v1")

        (listed,) = cache.entries()

        assert listed.key == entry.name
        assert listed.repo == REPO
        assert listed.tag == "v1"
        assert listed.size_bytes == 100
        assert listed.install_date != "unknown"

    def test_entry_without_manifest(self, tmp_path):
        cache = PackageCache(tmp_path)
        (tmp_path / "legacy").mkdir()

        (listed,) = cache.entries()

        assert listed.repo == "unknown"
        assert listed.tag is None

    def test_corrupt_manifest(self, tmp_path):
        cache = PackageCache(tmp_path)
        cache.entry_path(REPO).mkdir()
        cache.manifest_path(cache_key(REPO)).write_text("{not json")

        assert cache.entries()[0].repo == "unknown"

    def test_find_by_key_prefix_and_url(self, tmp_path):
        cache = PackageCache(tmp_path)
        for repo in (REPO, "https://github.com/acme/vec.git"):
            cache.entry_path(repo).mkdir()
            cache.write_manifest(repo)

        assert [e.repo for e in cache.find(REPO)] == [REPO]
        assert [e.repo for e in cache.find(cache_key(REPO)[:8])] == [REPO]
        assert cache.find("nothing-matches") == []

    def test_remove(self, tmp_path):
        cache = PackageCache(tmp_path)
        entry = cache.entry_path(REPO)
        (entry / ".git").mkdir(parents=True)
        pack = entry / ".git" / "pack"
        pack.write_text("x")
        pack.chmod(0o444)
        cache.write_manifest(REPO)

        assert cache.remove(entry.name)

        assert not entry.exists()
        assert not cache.manifest_path(entry.name).exists()
        assert not cache.remove(entry.name)

    def test_remove_uses_shared_rmtree(self, tmp_path):
        cache = PackageCache(tmp_path)
        entry = cache.entry_path(REPO)
        entry.mkdir()

        with patch("seastar.packages.cache.safe_rmtree", wraps=safe_rmtree) as rmtree:
            cache.remove(entry.name)

        rmtree.assert_called_once_with(entry)
        assert not entry.exists()

    def test_discard_partial_clone(self, tmp_path):
        cache = PackageCache(tmp_path)
        entry = cache.entry_path(REPO, "v9")
        entry.mkdir()
        (entry / "half").write_text("")

        cache.discard(REPO, "v9")

        assert not entry.exists()

    def test_manifest_contents(self, tmp_path):
        cache = PackageCache(tmp_path)
        cache.write_manifest(REPO, "v1")

        data = json.loads(cache.manifest_path(cache_key(REPO, "v1")).read_text())

        assert data["repo"] == REPO
        assert data["tag"] == "v1"
