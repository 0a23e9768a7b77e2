"""charmrepo 日志配置

支持普通文本和结构化 JSON 两种输出格式。库代码只通过
logging.getLogger(__name__) 记录日志，是否输出由调用方（CLI）决定。
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone

PACKAGE_LOGGER = "charmrepo"

TEXT_FORMAT = "%(asctime)s [%(levelname)-7s] %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """结构化 JSON 日志格式器，便于 CI 流水线消费

    输出格式:
        {
            "timestamp": "2024-01-01T12:00:00+00:00",
            "level": "INFO",
            "logger": "charmrepo.core.charmstore",
            "message": "...",
            "charm": "cs:~who/trusty/mysql-0" (仅在 extra 中携带时),
            "exception": "traceback..." (仅在有异常时)
        }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            # 使用 record.created，记录事件发生时间而非格式化时间
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }
        charm = getattr(record, "charm", None)
        if charm:
            log_entry["charm"] = str(charm)
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, ensure_ascii=False)


def setup_logging(level: str = "INFO", json_output: bool = False) -> logging.Logger:
    """配置 charmrepo 包日志器，输出到 stderr

    参数:
        level: 日志级别字符串（DEBUG, INFO, WARNING, ERROR）
        json_output: 为 True 时使用 JSON 格式（适用于 CI）

    返回:
        配置好的包日志器。重复调用会先清理已有 handlers，避免重复输出。
    """
    log = logging.getLogger(PACKAGE_LOGGER)
    reset_logging()
    log.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stderr)
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    log.addHandler(handler)
    log.propagate = False
    return log


def reset_logging() -> None:
    """清理包日志器上的 handlers，恢复向根日志器传播"""
    log = logging.getLogger(PACKAGE_LOGGER)
    for handler in log.handlers[:]:
        log.removeHandler(handler)
        handler.close()
    log.propagate = True
