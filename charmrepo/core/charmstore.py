"""charm store 仓库门面

对外提供三个操作:
  - resolve(ref):  未解析引用 -> 完整标识（仅元数据查询）
  - latest(*refs): 一次请求批量查询最新修订号与 sha256，按位置对应
  - get(ref):      解析 -> 查缓存 -> 校验 -> 未命中/损坏时下载、校验、缓存 -> 解析归档

get() 的核心逻辑是 "缓存优先":
  1. bundle 引用直接拒绝，不发起任何 IO
  2. 创建缓存目录（失败时在任何归档请求之前报错）
  3. 远端解析得到 CharmURL 与声明摘要，失败时附加 "cannot retrieve charm" 上下文
  4. 缓存命中且文件摘要一致 -> 直接返回，不下载
  5. 否则下载归档，校验摘要（不一致则不写缓存），原子写入缓存后返回

用法:
    from charmrepo.core.charmstore import CharmStore

    store = CharmStore(Config(cache_dir="/tmp/charmcache"))
    url = store.resolve("~who/mysql")
    revs = store.latest("cs:~who/trusty/mysql", "cs:trusty/no-such")
    charm = store.get(url)
"""

from __future__ import annotations

import copy
import logging
from typing import Union

from charmrepo.core.config import Config, get_config
from charmrepo.core.exceptions import CharmRepoError, NotFoundError, WrongEntityKindError
from charmrepo.core.store.archive import CharmArchive, read_charm_archive
from charmrepo.core.store.cache import CharmCache
from charmrepo.core.store.client import StoreClient
from charmrepo.core.store.models import (
    CharmRevision,
    CharmURL,
    EntityKind,
    Reference,
    parse_reference,
)
from charmrepo.core.store.verifier import verify

logger = logging.getLogger(__name__)

RefLike = Union[str, Reference, CharmURL]


def as_reference(ref: RefLike) -> Reference | CharmURL:
    """字符串按引用语法解析，其余类型原样返回"""
    if isinstance(ref, str):
        return parse_reference(ref)
    return ref


def _check_kind(ref: Reference | CharmURL, expected: EntityKind) -> None:
    if ref.kind is not expected:
        raise WrongEntityKindError(
            f'expected a {expected.value} URL, got {ref.kind.value} URL "{ref}"',
            expected=expected.value,
            actual=ref.kind.value,
        )


class CharmStore:
    """charm store 仓库

    配置显式传入；未传入时使用进程级默认配置。
    同一实例的缓存索引在多次调用间共享。
    """

    def __init__(
        self,
        config: Config | None = None,
        *,
        client: StoreClient | None = None,
        cache: CharmCache | None = None,
    ) -> None:
        self.config = config or get_config()
        self.client = client or StoreClient(
            self.config.server_url,
            username=self.config.username,
            password=self.config.password,
            timeout=self.config.timeout,
            test_mode=self.config.test_mode,
        )
        self.cache = cache or CharmCache(self.config.cache_path())

    @property
    def url(self) -> str:
        return self.client.server_url

    def with_test_mode(self) -> CharmStore:
        """返回开启测试模式的副本（下载不计入统计），共享同一缓存"""
        config = copy.copy(self.config)
        config.test_mode = True
        client = copy.copy(self.client)
        client.test_mode = True
        return CharmStore(config, client=client, cache=self.cache)

    # ------------------------------------------------------------------
    # 解析
    # ------------------------------------------------------------------

    def resolve(self, ref: RefLike) -> CharmURL:
        """解析为完整标识，不访问缓存和归档

        Raises:
            MalformedReferenceError / NotFoundError / RemoteError / TransportError
        """
        return self.client.resolve(as_reference(ref))

    def latest(self, *refs: RefLike) -> list[CharmRevision]:
        """批量查询最新修订号，结果与输入按位置一一对应

        单项不存在时该位置的 err 为 NotFoundError，不影响其他项；空输入返回空列表。
        """
        if not refs:
            return []
        parsed = [as_reference(r) for r in refs]
        revisions = self.client.batch_revisions(parsed)
        failed = sum(1 for r in revisions if r.err is not None)
        if failed:
            logger.info("批量查询: %d 项, %d 项未找到", len(revisions), failed)
        return revisions

    # ------------------------------------------------------------------
    # 拉取（缓存优先 + 远程回退）
    # ------------------------------------------------------------------

    def get(self, ref: RefLike) -> CharmArchive:
        """获取 charm 归档，返回解析后的 CharmArchive

        Raises:
            WrongEntityKindError: 引用指向 bundle
            CacheDirError: 缓存目录无法创建或写入
            NotFoundError / RemoteError / TransportError: 解析或下载失败
            HashMismatchError: 下载内容摘要不一致（不写缓存）
            ArchiveError: 归档无法解析
        """
        ref = as_reference(ref)
        _check_kind(ref, EntityKind.CHARM)
        self.cache.ensure_dir()

        try:
            info = self.client.resolve_info(ref)
        except NotFoundError as e:
            raise NotFoundError(
                e.reference, f'cannot retrieve charm "{ref}": charm not found',
            ) from e
        except CharmRepoError as e:
            e.add_context(f'cannot retrieve charm "{ref}"')
            raise
        url = info.url
        _check_kind(url, EntityKind.CHARM)

        # ---- 1. 缓存优先 ----
        entry = self.cache.lookup(url, info.content_hash)
        if entry is not None:
            if self.cache.validate(entry):
                logger.info("缓存命中: %s -> %s", url, entry.path, extra={"charm": url})
                return read_charm_archive(entry.path)
            logger.warning("缓存失效，重新下载: %s", url, extra={"charm": url})

        # ---- 2. 远程下载 + 校验 ----
        try:
            archive = self.client.fetch_archive(url, EntityKind.CHARM)
        except CharmRepoError as e:
            e.add_context(f'cannot retrieve charm "{ref}"')
            raise
        verify(archive.data, archive.content_hash)

        # ---- 3. 写入缓存 ----
        entry = self.cache.store(url, archive.data, archive.content_hash)
        return read_charm_archive(entry.path)
