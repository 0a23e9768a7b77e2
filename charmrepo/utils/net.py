"""网络工具: 服务地址校验与拼接"""

from __future__ import annotations

from urllib.parse import urlparse

from charmrepo.core.exceptions import ConfigError

_ALLOWED_SCHEMES = frozenset(("http", "https"))


def validate_url_scheme(url: str, *, context: str = "") -> None:
    """校验 URL 仅使用 http/https，防止 file:// 等非预期协议访问

    Raises:
        ConfigError: URL scheme 不在白名单内，或缺少主机名
    """
    parsed = urlparse(url)
    label = f" ({context})" if context else ""
    if parsed.scheme not in _ALLOWED_SCHEMES:
        raise ConfigError(
            f"unsupported URL scheme {parsed.scheme!r}{label}, "
            f"only http/https allowed: {url}"
        )
    if not parsed.netloc:
        raise ConfigError(f"URL has no host{label}: {url}")


def join_url(base: str, path: str) -> str:
    """拼接服务地址与相对路径，避免重复或缺失的斜杠"""
    return f"{base.rstrip('/')}/{path.lstrip('/')}"
