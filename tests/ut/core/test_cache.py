"""本地缓存测试"""

from __future__ import annotations

import hashlib
import threading
from pathlib import Path

import pytest

from charmrepo.core.exceptions import CacheDirError
from charmrepo.core.store.cache import CharmCache
from charmrepo.core.store.models import parse_url

URL = parse_url("cs:~who/trusty/mysql-0")
DATA = b"mysql charm archive"
HASH = hashlib.sha384(DATA).hexdigest()


@pytest.fixture()
def cache(tmp_path: Path) -> CharmCache:
    return CharmCache(tmp_path / "cache")


class TestStore:
    def test_store_writes_file(self, cache: CharmCache) -> None:
        entry = cache.store(URL, DATA, HASH)
        assert entry.path.read_bytes() == DATA
        assert entry.path.parent == cache.cache_dir
        assert entry.path.name.endswith(".charm")
        assert entry.content_hash == HASH

    def test_path_is_deterministic(self, cache: CharmCache) -> None:
        first = cache.store(URL, DATA, HASH)
        second = cache.store(URL, b"other", hashlib.sha384(b"other").hexdigest())
        assert first.path == second.path
        assert second.path.read_bytes() == b"other"
        assert len(list(cache.cache_dir.iterdir())) == 1

    def test_distinct_urls_distinct_files(self, cache: CharmCache) -> None:
        a = cache.store(URL, DATA, HASH)
        b = cache.store(parse_url("cs:~who/trusty/mysql-1"), DATA, HASH)
        assert a.path != b.path

    def test_no_temp_files_left(self, cache: CharmCache) -> None:
        cache.store(URL, DATA, HASH)
        assert [p.name for p in cache.cache_dir.iterdir()] == [cache.path_for(URL).name]

    def test_concurrent_store_same_url(self, cache: CharmCache) -> None:
        threads = [
            threading.Thread(target=cache.store, args=(URL, DATA, HASH))
            for _ in range(8)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert cache.path_for(URL).read_bytes() == DATA
        assert len(list(cache.cache_dir.iterdir())) == 1

    def test_store_unwritable_root(self, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("x")
        cache = CharmCache(blocker / "cache")
        with pytest.raises(CacheDirError, match="cannot create the cache directory"):
            cache.store(URL, DATA, HASH)


class TestLookup:
    def test_miss(self, cache: CharmCache) -> None:
        assert cache.lookup(URL, HASH) is None

    def test_hit_with_declared_hash(self, cache: CharmCache) -> None:
        cache.store(URL, DATA, HASH)
        entry = cache.lookup(URL, "declared")
        assert entry is not None
        assert entry.content_hash == "declared"

    def test_hit_with_recorded_hash(self, cache: CharmCache) -> None:
        cache.store(URL, DATA, HASH)
        entry = cache.lookup(URL)
        assert entry is not None
        assert entry.content_hash == HASH
        assert entry.url == URL

    def test_unknown_hash_is_miss(self, cache: CharmCache) -> None:
        """其他进程写入的文件，且服务端未声明摘要时无法校验"""
        cache.ensure_dir()
        cache.path_for(URL).write_bytes(DATA)
        assert cache.lookup(URL) is None
        assert cache.lookup(URL, HASH) is not None


class TestValidate:
    def test_valid(self, cache: CharmCache) -> None:
        entry = cache.store(URL, DATA, HASH)
        assert cache.validate(entry) is True

    def test_tampered(self, cache: CharmCache) -> None:
        entry = cache.store(URL, DATA, HASH)
        entry.path.write_bytes(b"invalid")
        assert cache.validate(entry) is False

    def test_truncated(self, cache: CharmCache) -> None:
        entry = cache.store(URL, DATA, HASH)
        entry.path.write_bytes(DATA[:5])
        assert cache.validate(entry) is False

    def test_removed(self, cache: CharmCache) -> None:
        entry = cache.store(URL, DATA, HASH)
        entry.path.unlink()
        assert cache.validate(entry) is False

    def test_uppercase_recorded_hash(self, cache: CharmCache) -> None:
        """服务端声明的摘要大小写、首尾空白不影响后续命中"""
        cache.store(URL, DATA, f" {HASH.upper()}\n")
        entry = cache.lookup(URL)
        assert entry is not None
        assert entry.content_hash == HASH
        assert cache.validate(entry) is True

    def test_uppercase_declared_hash(self, cache: CharmCache) -> None:
        cache.store(URL, DATA, HASH)
        entry = cache.lookup(URL, HASH.upper())
        assert entry is not None
        assert cache.validate(entry) is True


class TestEnsureDir:
    def test_creates_nested(self, tmp_path: Path) -> None:
        cache = CharmCache(tmp_path / "a" / "b" / "cache")
        cache.ensure_dir()
        assert cache.cache_dir.is_dir()

    def test_error_names_cause(self, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(CacheDirError, match="Not a directory"):
            CharmCache(blocker / "cache").ensure_dir()
