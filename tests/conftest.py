"""测试共享 fixture: 本地 charm store 服务 + 独立缓存目录

  FakeCharmStore (Flask)  <──HTTP──  StoreClient  <──  CharmStore
        │                                                │
   fake_store fixture                             charm_store fixture
   (add_charm / 故障注入)                          (tmp_path/cache 缓存)
"""

from __future__ import annotations

from pathlib import Path

import pytest

from charmrepo.core.charmstore import CharmStore
from charmrepo.core.config import Config
from charmrepo.utils.logger import reset_logging
from fakestore import FakeCharmStore, StoreServer


@pytest.fixture()
def fake_store():
    """启动本地 charm store，测试结束后关闭"""
    store = FakeCharmStore()
    server = StoreServer(store)
    server.start()
    yield store
    server.stop()


@pytest.fixture()
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "cache"


@pytest.fixture()
def config(fake_store: FakeCharmStore, cache_dir: Path) -> Config:
    return Config(server_url=fake_store.url, cache_dir=str(cache_dir), timeout=5)


@pytest.fixture()
def charm_store(config: Config) -> CharmStore:
    return CharmStore(config)


@pytest.fixture(autouse=True)
def _reset_logging():
    """CLI 测试会配置包日志器，测试之间恢复默认"""
    yield
    reset_logging()
