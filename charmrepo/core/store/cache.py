"""charm 归档本地缓存

缓存策略:
  - 以已解析的 CharmURL 为缓存键，不同的未解析引用解析到同一标识时共享缓存文件
  - 每个标识对应 <cache_dir>/<quote(url)>.charm，重复写入覆盖同一路径
  - 命中时重新计算文件摘要，被截断 / 篡改的文件视为未命中
  - 写入使用临时文件 + rename，读者不会看到写了一半的文件
  - 不做主动淘汰，缓存目录的生命周期由外部管理
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from charmrepo.core.exceptions import CacheDirError
from charmrepo.core.store.models import CacheEntry, CharmURL, quote
from charmrepo.core.store.verifier import hash_file, normalize_hash
from charmrepo.utils.yaml_io import atomic_write

logger = logging.getLogger(__name__)

CACHE_SUFFIX = ".charm"


class CharmCache:
    """charm 归档缓存管理器"""

    def __init__(self, cache_dir: Path) -> None:
        self.cache_dir = Path(cache_dir)
        # 本进程内写入过的条目摘要，服务端未声明摘要时用于校验
        self._hashes: dict[CharmURL, str] = {}
        self._lock = threading.Lock()

    def ensure_dir(self) -> None:
        """创建缓存根目录

        Raises:
            CacheDirError: 目录无法创建（如父目录无写权限）
        """
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheDirError(f"cannot create the cache directory: {e}") from e

    def path_for(self, url: CharmURL) -> Path:
        return self.cache_dir / f"{quote(str(url))}{CACHE_SUFFIX}"

    def lookup(self, url: CharmURL, content_hash: str = "") -> CacheEntry | None:
        """查找缓存条目，未命中返回 None（不是错误）

        content_hash 为空时使用本进程写入时记录的摘要；两者都没有则
        无法校验，按未命中处理。
        """
        path = self.path_for(url)
        if not path.is_file():
            return None
        content_hash = normalize_hash(content_hash)
        if not content_hash:
            with self._lock:
                content_hash = self._hashes.get(url, "")
        if not content_hash:
            logger.debug("缓存文件存在但摘要未知，按未命中处理: %s", path)
            return None
        return CacheEntry(url=url, path=path, content_hash=content_hash)

    def validate(self, entry: CacheEntry) -> bool:
        """重新计算磁盘文件摘要，与条目记录比较"""
        try:
            actual = hash_file(entry.path)
        except OSError as e:
            logger.warning("缓存文件不可读: %s (%s)", entry.path, e)
            return False
        if actual != normalize_hash(entry.content_hash):
            logger.warning("缓存文件已损坏: %s", entry.path, extra={"charm": entry.url})
            return False
        return True

    def store(self, url: CharmURL, data: bytes, content_hash: str) -> CacheEntry:
        """写入已校验的归档内容，覆盖同一标识的旧文件

        Raises:
            CacheDirError: 缓存目录无法创建或文件无法写入
        """
        content_hash = normalize_hash(content_hash)
        self.ensure_dir()
        path = self.path_for(url)
        try:
            atomic_write(path, data)
        except OSError as e:
            raise CacheDirError(f"cannot write cache file {path}: {e}") from e
        with self._lock:
            self._hashes[url] = content_hash
        logger.info("已缓存: %s -> %s", url, path, extra={"charm": url})
        return CacheEntry(url=url, path=path, content_hash=content_hash)
