"""charmrepo - charm store 客户端：引用解析、归档下载校验与本地缓存"""

from charmrepo.core.charmstore import CharmStore
from charmrepo.core.config import Config
from charmrepo.core.store.models import CharmURL, Reference, parse_reference, parse_url

__version__ = "0.1.0"

__all__ = [
    "CharmStore",
    "CharmURL",
    "Config",
    "Reference",
    "__version__",
    "parse_reference",
    "parse_url",
]
