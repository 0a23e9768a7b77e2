"""charm 引用与标识的数据模型

数据类:
- Reference: 未解析的引用，owner / series / revision 均可缺省
- CharmURL: 已解析的标识，series 与 revision 必须确定
- CharmRevision: 批量查询的单项结果（修订号 + sha256，或错误）
- CacheEntry: 缓存条目
- ResolvedInfo / Archive: 远端查询与下载的返回值

两种引用类型互不继承，只能通过 Reference.to_url() 单向转换。
"""

from __future__ import annotations

import re
import string
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path

from charmrepo.core.exceptions import MalformedReferenceError

SCHEMA = "cs"
BUNDLE_SERIES = "bundle"

_OWNER_RE = re.compile(r"^[a-z0-9][a-zA-Z0-9+.-]+$")
_SERIES_RE = re.compile(r"^[a-z]+([a-z0-9]+)?$")
_NAME_RE = re.compile(r"^[a-z][a-z0-9]*(-[a-z0-9]*[a-z][a-z0-9]*)*$")
_REVISION_SUFFIX_RE = re.compile(r"^(.+)-(\d+)$")

_SAFE_CHARS = frozenset(string.ascii_letters + string.digits)


class EntityKind(str, Enum):
    """实体类型：独立 charm 或由多个 charm 组成的 bundle"""

    CHARM = "charm"
    BUNDLE = "bundle"

    @classmethod
    def for_series(cls, series: str | None) -> EntityKind:
        return cls.BUNDLE if series == BUNDLE_SERIES else cls.CHARM


def _id_path(
    owner: str | None, series: str | None, name: str, revision: int | None,
) -> str:
    parts = []
    if owner:
        parts.append(f"~{owner}")
    if series:
        parts.append(series)
    parts.append(name if revision is None else f"{name}-{revision}")
    return "/".join(parts)


@dataclass(frozen=True)
class Reference:
    """未解析的 charm 引用，如 cs:~who/mysql、cs:trusty/wordpress-3"""

    name: str
    owner: str | None = None
    series: str | None = None
    revision: int | None = None

    @property
    def kind(self) -> EntityKind:
        return EntityKind.for_series(self.series)

    def path(self, revision: bool = True) -> str:
        """服务端 API 路径中的 id 部分（不带 schema）"""
        return _id_path(
            self.owner, self.series, self.name,
            self.revision if revision else None,
        )

    def without_revision(self) -> Reference:
        return replace(self, revision=None)

    def to_url(
        self, series: str | None = None, revision: int | None = None,
    ) -> CharmURL:
        """补全 series / revision 得到 CharmURL，仍缺失则报错"""
        series = self.series or series
        revision = self.revision if self.revision is not None else revision
        if not series:
            raise MalformedReferenceError(f'charm URL has no series: "{self}"')
        if revision is None:
            raise MalformedReferenceError(f'charm URL has no revision: "{self}"')
        return CharmURL(
            owner=self.owner, series=series, name=self.name, revision=revision,
        )

    def __str__(self) -> str:
        return f"{SCHEMA}:{self.path()}"


@dataclass(frozen=True)
class CharmURL:
    """已解析、锁定修订号的 charm 标识，同一标识永远对应同一份内容"""

    series: str
    name: str
    revision: int
    owner: str | None = None

    def __post_init__(self) -> None:
        if not self.series:
            raise MalformedReferenceError(f"charm URL has no series: {self.name}")
        if self.revision < 0:
            raise MalformedReferenceError(
                f"charm URL has invalid revision {self.revision}: {self.name}"
            )

    @property
    def kind(self) -> EntityKind:
        return EntityKind.for_series(self.series)

    def path(self, revision: bool = True) -> str:
        return _id_path(
            self.owner, self.series, self.name,
            self.revision if revision else None,
        )

    def __str__(self) -> str:
        return f"{SCHEMA}:{self.path()}"


def parse_reference(text: str) -> Reference:
    """解析 charm 引用文本，格式: [cs:][~owner/][series/]name[-revision]

    纯函数，不访问网络或磁盘。

    Raises:
        MalformedReferenceError: 语法非法
    """
    raw = text.strip()
    body = raw
    if ":" in body:
        schema, body = body.split(":", 1)
        if schema != SCHEMA:
            raise MalformedReferenceError(
                f'charm URL has invalid schema: "{text}"'
            )
    parts = body.split("/")

    owner = None
    if parts and parts[0].startswith("~"):
        owner = parts.pop(0)[1:]
        if not _OWNER_RE.match(owner):
            raise MalformedReferenceError(
                f'charm URL has invalid user name: "{text}"'
            )

    if len(parts) == 2:
        series, name_part = parts
        if not _SERIES_RE.match(series):
            raise MalformedReferenceError(
                f'charm URL has invalid series: "{text}"'
            )
    elif len(parts) == 1:
        series, name_part = None, parts[0]
    else:
        raise MalformedReferenceError(f'charm URL has invalid form: "{text}"')

    name, revision = name_part, None
    match = _REVISION_SUFFIX_RE.match(name_part)
    if match and _NAME_RE.match(match.group(1)):
        name, revision = match.group(1), int(match.group(2))
    if not _NAME_RE.match(name):
        raise MalformedReferenceError(f'charm URL has invalid charm name: "{text}"')

    return Reference(name=name, owner=owner, series=series, revision=revision)


def parse_url(text: str) -> CharmURL:
    """解析完整的 charm 标识，series 与 revision 缺一不可"""
    return parse_reference(text).to_url()


def quote(text: str) -> str:
    """转换为可安全用作文件名的字符串，字母数字以外的字符编码为 _xx_"""
    return "".join(
        ch if ch in _SAFE_CHARS else f"_{ord(ch):02x}_" for ch in text
    )


@dataclass
class CharmRevision:
    """批量修订号查询的单项结果；失败时 err 非空，其余字段无意义"""

    revision: int = 0
    sha256: str = ""
    err: Exception | None = None


@dataclass(frozen=True)
class ResolvedInfo:
    """解析结果：标识 + 服务端声明的 SHA-384 摘要（可能为空）"""

    url: CharmURL
    content_hash: str = ""


@dataclass(frozen=True)
class Archive:
    """下载得到的归档内容"""

    url: CharmURL
    data: bytes
    content_hash: str


@dataclass(frozen=True)
class CacheEntry:
    """缓存条目，由 CharmCache 独占管理"""

    url: CharmURL
    path: Path
    content_hash: str
