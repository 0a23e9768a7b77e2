"""charm store 远端目录客户端

职责:
- 引用解析（meta/any?include=id）
- 批量修订号 + sha256 查询，一次请求
- 归档下载，读取 Entity-Id / Content-Sha384 响应头
- 下载计数查询（仅用于核对统计）
- 将服务端错误负载 {"Message", "Code"} 与网络异常映射为类型化异常

本层不做重试，重试策略由调用方决定。
"""

from __future__ import annotations

import base64
import http.client
import json
import logging
import urllib.error
import urllib.request
from email.message import Message
from typing import Any
from urllib.parse import quote as url_quote
from urllib.parse import urlencode

from charmrepo.core.exceptions import (
    MalformedReferenceError,
    NotFoundError,
    RemoteError,
    TransportError,
    WrongEntityKindError,
)
from charmrepo.core.store.models import (
    Archive,
    CharmRevision,
    CharmURL,
    EntityKind,
    Reference,
    ResolvedInfo,
    parse_reference,
)
from charmrepo.utils.net import join_url, validate_url_scheme

logger = logging.getLogger(__name__)

ENTITY_ID_HEADER = "Entity-Id"
CONTENT_HASH_HEADER = "Content-Sha384"

# 服务端用于 "不存在" 的错误码
ERR_NOT_FOUND = "not found"

STATS_ARCHIVE_DOWNLOAD = "archive-download"

_ID_SAFE_CHARS = "~/+.-"


class StoreClient:
    """charm store HTTP 客户端（基于 urllib，同步请求/响应）"""

    def __init__(
        self,
        server_url: str,
        *,
        username: str = "",
        password: str = "",
        timeout: float = 30.0,
        test_mode: bool = False,
    ) -> None:
        validate_url_scheme(server_url, context="charm store server_url")
        self.server_url = server_url.rstrip("/")
        self.username = username
        self.password = password
        self.timeout = timeout
        self.test_mode = test_mode

    # ------------------------------------------------------------------
    # 底层请求
    # ------------------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.username:
            token = base64.b64encode(
                f"{self.username}:{self.password}".encode()
            ).decode("ascii")
            headers["Authorization"] = f"Basic {token}"
        return headers

    def _request(
        self, path: str, params: list[tuple[str, str]] | None = None,
    ) -> tuple[bytes, Message]:
        """发起 GET 请求，返回 (响应体, 响应头)

        Raises:
            RemoteError: 服务端返回错误状态
            TransportError: 连接失败、超时等网络层异常
        """
        url = join_url(self.server_url, path)
        if params:
            url = f"{url}?{urlencode(params)}"
        req = urllib.request.Request(url, headers=self._headers())
        logger.debug("GET %s", url)
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:  # nosec B310
                return resp.read(), resp.headers
        except urllib.error.HTTPError as e:
            raise self._error_from_response(e) from e
        except (urllib.error.URLError, http.client.HTTPException, OSError) as e:
            raise TransportError(f"cannot get {url}: {e}") from e

    @staticmethod
    def _error_from_response(e: urllib.error.HTTPError) -> RemoteError:
        """把错误响应映射为 RemoteError，Message 字段原文保留"""
        try:
            body = e.read()
        except (http.client.HTTPException, OSError):
            body = b""
        try:
            payload = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            payload = None
        if isinstance(payload, dict) and payload.get("Message"):
            message = str(payload["Message"])
            return RemoteError(
                message,
                remote_message=message,
                remote_code=str(payload.get("Code", "")),
                status=e.code,
            )
        text = body.decode("utf-8", "replace").strip()
        return RemoteError(
            f"unexpected response status {e.code}: {text or e.reason}",
            status=e.code,
        )

    def _get_json(
        self, path: str, params: list[tuple[str, str]] | None = None,
    ) -> Any:
        body, _ = self._request(path, params)
        try:
            return json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise RemoteError(f"cannot unmarshal response: {e}") from e

    def _get_object(
        self, path: str, params: list[tuple[str, str]] | None = None,
    ) -> dict[str, Any]:
        """同 _get_json，但要求响应为 JSON 对象"""
        data = self._get_json(path, params)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise RemoteError(
                f"cannot unmarshal response: expected a JSON object, got {type(data).__name__}"
            )
        return data

    @staticmethod
    def _id_path(ref: Reference | CharmURL, revision: bool = True) -> str:
        return url_quote(ref.path(revision=revision), safe=_ID_SAFE_CHARS)

    # ------------------------------------------------------------------
    # 解析
    # ------------------------------------------------------------------

    def resolve_info(self, ref: Reference | CharmURL) -> ResolvedInfo:
        """解析引用为完整标识，并取回服务端声明的归档摘要

        bundle 不视为错误，实体类型检查由调用方负责。

        Raises:
            NotFoundError: 没有匹配的 charm 或 bundle
            RemoteError / TransportError: 其他失败
        """
        try:
            data = self._get_object(
                f"{self._id_path(ref)}/meta/any",
                [("include", "id"), ("include", "hash")],
            )
        except RemoteError as e:
            if e.remote_code == ERR_NOT_FOUND:
                raise NotFoundError(
                    str(ref), f'cannot resolve charm URL "{ref}": charm not found',
                ) from e
            e.add_context(f'cannot resolve charm URL "{ref}"')
            raise

        meta = data.get("Meta") or {}
        id_text = (meta.get("id") or {}).get("Id") or data.get("Id")
        if not id_text:
            raise RemoteError(f'cannot resolve charm URL "{ref}": no id in response')
        try:
            url = parse_reference(id_text).to_url()
        except MalformedReferenceError as e:
            raise RemoteError(
                f'cannot resolve charm URL "{ref}": invalid id {id_text!r} in response'
            ) from e
        content_hash = (meta.get("hash") or {}).get("Sum", "")
        logger.debug("已解析: %s -> %s", ref, url)
        return ResolvedInfo(url=url, content_hash=content_hash)

    def resolve(self, ref: Reference | CharmURL) -> CharmURL:
        return self.resolve_info(ref).url

    def batch_revisions(
        self, refs: list[Reference | CharmURL],
    ) -> list[CharmRevision]:
        """一次请求查询多个 charm 的最新修订号与 sha256

        结果与输入按位置一一对应（允许重复）；单项不存在只影响该项。
        """
        if not refs:
            return []
        ids = [ref.path(revision=False) for ref in refs]
        params = [("include", "id-revision"), ("include", "hash256")]
        params += [("id", i) for i in dict.fromkeys(ids)]
        data = self._get_object("meta/any", params)

        results: list[CharmRevision] = []
        for id_ in ids:
            item = data.get(id_)
            if not isinstance(item, dict) or not item:
                results.append(CharmRevision(err=NotFoundError(f"cs:{id_}")))
                continue
            meta = item.get("Meta") or {}
            results.append(CharmRevision(
                revision=int((meta.get("id-revision") or {}).get("Revision", 0)),
                sha256=(meta.get("hash256") or {}).get("Sum", ""),
            ))
        return results

    # ------------------------------------------------------------------
    # 下载
    # ------------------------------------------------------------------

    def fetch_archive(
        self, url: CharmURL, kind: EntityKind = EntityKind.CHARM,
    ) -> Archive:
        """下载归档内容与服务端声明的 SHA-384 摘要

        测试模式下附加 stats=0，下载不计入统计。摘要校验由调用方完成。

        Raises:
            NotFoundError: 标识在服务端不存在
            WrongEntityKindError: 返回的实体类型与 kind 不符
            RemoteError: 服务端错误负载，消息为 "cannot get archive: <Message>"
            TransportError: 网络层失败
        """
        params = [("stats", "0")] if self.test_mode else None
        try:
            data, headers = self._request(f"{self._id_path(url)}/archive", params)
        except RemoteError as e:
            if e.remote_code == ERR_NOT_FOUND:
                raise NotFoundError(str(url)) from e
            e.add_context("cannot get archive")
            raise

        entity_id = headers.get(ENTITY_ID_HEADER, "")
        actual = url
        if entity_id:
            try:
                actual = parse_reference(entity_id).to_url()
            except MalformedReferenceError as e:
                raise RemoteError(
                    f"cannot get archive: invalid entity id {entity_id!r}"
                ) from e
        if actual.kind is not kind:
            raise WrongEntityKindError(
                f'expected a {kind.value} URL, got {actual.kind.value} URL "{actual}"',
                expected=kind.value,
                actual=actual.kind.value,
            )

        logger.info("已下载: %s (%d 字节)", actual, len(data), extra={"charm": actual})
        return Archive(
            url=actual,
            data=data,
            content_hash=headers.get(CONTENT_HASH_HEADER, ""),
        )

    # ------------------------------------------------------------------
    # 统计
    # ------------------------------------------------------------------

    def download_count(self, url: CharmURL) -> int:
        """查询某个标识的归档下载次数

        计数在服务端异步累加，下载后立即查询可能尚未可见，调用方应有限次轮询。
        """
        key = ":".join([
            STATS_ARCHIVE_DOWNLOAD, url.series, url.name,
            url.owner or "", str(url.revision),
        ])
        data = self._get_json(f"stats/counter/{url_quote(key, safe=':~+.-')}")
        if not data:
            return 0
        return int(data[0].get("Count", 0))
