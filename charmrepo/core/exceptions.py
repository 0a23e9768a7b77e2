"""统一异常体系

所有 charmrepo 异常继承 CharmRepoError，调用方可按类型区分失败原因，
CLI 层据此输出友好提示。错误消息文本保持与 charm store 客户端一致（英文），
以便上层按文本匹配。
"""

from __future__ import annotations


class CharmRepoError(Exception):
    """基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message

    def add_context(self, context: str) -> None:
        """在原消息前追加上下文，异常类型与附加字段保持不变"""
        self.message = f"{context}: {self.message}"
        self.args = (self.message,)


class ConfigError(CharmRepoError):
    """配置内容无效（如服务地址协议非法）"""

    code = "CONFIG_ERROR"


class MalformedReferenceError(CharmRepoError):
    """charm 引用语法错误，未发起任何 IO"""

    code = "MALFORMED_REFERENCE"


class NotFoundError(CharmRepoError):
    """远端目录中没有匹配的 charm"""

    code = "NOT_FOUND"

    def __init__(self, reference: str, message: str = "") -> None:
        super().__init__(message or f"charm not found: {reference}")
        self.reference = reference


class WrongEntityKindError(CharmRepoError):
    """实体类型不符（需要 charm 却得到 bundle，或相反）"""

    code = "WRONG_ENTITY_KIND"

    def __init__(self, message: str, expected: str = "", actual: str = "") -> None:
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class RemoteError(CharmRepoError):
    """服务端返回了结构化错误，remote_message 为原文"""

    code = "REMOTE_ERROR"

    def __init__(
        self,
        message: str,
        *,
        remote_message: str = "",
        remote_code: str = "",
        status: int = 0,
    ) -> None:
        super().__init__(message)
        self.remote_message = remote_message or message
        self.remote_code = remote_code
        self.status = status


class TransportError(CharmRepoError):
    """网络层失败（连接拒绝、超时、连接重置），本层不重试"""

    code = "TRANSPORT_ERROR"


class HashMismatchError(CharmRepoError):
    """下载内容的摘要与服务端声明不一致"""

    code = "HASH_MISMATCH"

    def __init__(self, expected: str = "", actual: str = "") -> None:
        super().__init__("hash mismatch; network corruption?")
        self.expected = expected
        self.actual = actual


class CacheDirError(CharmRepoError):
    """缓存目录无法创建或写入，消息中包含底层 OS 错误"""

    code = "CACHE_DIR_ERROR"


class ArchiveError(CharmRepoError):
    """归档文件不是可读的 charm"""

    code = "ARCHIVE_ERROR"
