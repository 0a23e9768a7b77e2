"""归档完整性校验"""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path

from charmrepo.core.exceptions import HashMismatchError

logger = logging.getLogger(__name__)

# 下载归档与缓存文件使用 SHA-384，批量修订号查询返回 SHA-256
ARCHIVE_HASH = "sha384"

_CHUNK_SIZE = 64 * 1024


def normalize_hash(value: str) -> str:
    """十六进制摘要统一为去空白的小写形式"""
    return value.strip().lower()


def hash_bytes(data: bytes, algorithm: str = ARCHIVE_HASH) -> str:
    return hashlib.new(algorithm, data).hexdigest()


def hash_file(path: Path, algorithm: str = ARCHIVE_HASH) -> str:
    """分块计算文件摘要

    异常:
        OSError: 文件不可读
    """
    digest = hashlib.new(algorithm)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def verify(data: bytes, declared: str, algorithm: str = ARCHIVE_HASH) -> None:
    """校验内容摘要与服务端声明一致，不一致视为传输损坏

    Raises:
        HashMismatchError: 摘要不一致
    """
    actual = hash_bytes(data, algorithm)
    if actual != normalize_hash(declared):
        logger.error("摘要不匹配: 期望 %s, 实际 %s", declared, actual)
        raise HashMismatchError(expected=declared, actual=actual)
    logger.debug("摘要校验通过: %s", actual)
