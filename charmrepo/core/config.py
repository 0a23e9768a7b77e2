"""集中配置管理

charm store 地址、缓存目录、测试模式、认证信息统一由 Config 承载，
显式传给 CharmStore；get_config() 只提供进程级默认值。
支持从 YAML 文件加载 + 编程式覆盖。
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path

from charmrepo.core.exceptions import ConfigError
from charmrepo.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

DEFAULT_SERVER_URL = "https://api.jujucharms.com/charmstore/v4"
DEFAULT_CACHE_DIR = "~/.cache/charmrepo"


@dataclass
class Config:
    """charmrepo 配置"""

    server_url: str = DEFAULT_SERVER_URL
    cache_dir: str = DEFAULT_CACHE_DIR

    # 为 True 时下载不计入服务端统计
    test_mode: bool = False

    # HTTP basic auth，原样透传
    username: str = ""
    password: str = ""

    timeout: float = 30.0

    # 自定义扩展 (放不到字段里的配置项)
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_file(cls, path: str | Path = "charmrepo.yml") -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        data = load_yaml(path)
        if not data:
            return cls()
        known = {f for f in cls.__dataclass_fields__ if f != "extra"}
        matched = {k: v for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}
        try:
            cfg = cls(**matched)
            cfg.timeout = float(cfg.timeout)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"invalid configuration in {path}: {e}") from e
        if not isinstance(cfg.test_mode, bool):
            raise ConfigError(
                f"invalid configuration in {path}: test_mode must be true or false, "
                f"got {cfg.test_mode!r}"
            )
        cfg.server_url = cfg.server_url or DEFAULT_SERVER_URL
        cfg.cache_dir = cfg.cache_dir or DEFAULT_CACHE_DIR
        cfg.extra = extra
        return cfg

    def cache_path(self) -> Path:
        """缓存根目录（展开 ~）"""
        return Path(self.cache_dir).expanduser()

    def to_dict(self) -> dict:
        data = asdict(self)
        if data["password"]:
            data["password"] = "***"
        return data


# 进程级默认配置，首次 import 时不加载文件；由 CLI 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前默认配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(path: str | Path = "charmrepo.yml") -> Config:
    """从文件初始化默认配置"""
    global _current  # noqa: PLW0603
    _current = Config.from_file(path)
    logger.info("配置已加载: %s", path)
    return _current
