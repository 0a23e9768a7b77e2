"""charm store 访问模块

拆分说明:
- models.py: 引用 / 标识等数据模型
- client.py: 远端目录客户端
- verifier.py: 摘要校验
- cache.py: 本地缓存
- archive.py: 归档解析
"""

from charmrepo.core.store.archive import CharmArchive, read_charm_archive
from charmrepo.core.store.cache import CharmCache
from charmrepo.core.store.client import StoreClient
from charmrepo.core.store.models import (
    CacheEntry,
    CharmRevision,
    CharmURL,
    EntityKind,
    Reference,
    parse_reference,
    parse_url,
)

__all__ = [
    "CacheEntry",
    "CharmArchive",
    "CharmCache",
    "CharmRevision",
    "CharmURL",
    "EntityKind",
    "Reference",
    "StoreClient",
    "parse_reference",
    "parse_url",
    "read_charm_archive",
]
