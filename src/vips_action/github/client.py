"""GitHub REST API 的薄封装。

只包含本工具用到的接口，返回值为 API 的原始 JSON。所有网络与 HTTP
错误统一转换为 RemoteApiError，不做重试。
"""

from __future__ import annotations

import logging
from typing import Any, Iterator, Optional, Sequence
from urllib.parse import quote

import requests

from vips_action.core.config import GitHubContext
from vips_action.core.exceptions import RemoteApiError

LOGGER = logging.getLogger(__name__)

API_VERSION = "2022-11-28"
DEFAULT_TIMEOUT = 30
PER_PAGE = 100


class GitHubClient:
    """针对单个仓库的 GitHub API 客户端。"""

    def __init__(
        self,
        token: str,
        context: GitHubContext,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.context = context
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": API_VERSION,
                "User-Agent": "vips-action",
            }
        )

    # ------------------------------------------------------------------ 读取

    def get_tree(self, sha: str, recursive: bool = True) -> dict[str, Any]:
        params = {"recursive": "1"} if recursive else None
        return self._request("GET", self._repo_path(f"git/trees/{sha}"), params=params)

    def list_commit_files(self, sha: str) -> list[dict[str, Any]]:
        """提交的全部变更文件，GitHub 每页最多返回 300 个。"""

        return list(self._paginate(self._repo_path(f"commits/{sha}"), key="files"))

    def get_git_commit(self, sha: str) -> dict[str, Any]:
        """Git 提交对象，包含 tree.sha。"""

        return self._request("GET", self._repo_path(f"git/commits/{sha}"))

    def list_pull_request_files(self, number: int) -> list[dict[str, Any]]:
        return list(self._paginate(self._repo_path(f"pulls/{number}/files")))

    def list_matching_refs(self, ref: str) -> list[dict[str, Any]]:
        """前缀匹配，ref 形如 heads/<branch>。"""

        return self._request("GET", self._repo_path(f"git/matching-refs/{_quote_ref(ref)}"))

    def get_repository(self) -> dict[str, Any]:
        return self._request("GET", self._repo_path(""))

    def list_pull_requests(self, head: str, base: str, state: str = "open") -> list[dict[str, Any]]:
        params = {"head": head, "base": base, "state": state}
        return list(self._paginate(self._repo_path("pulls"), params=params))

    # ------------------------------------------------------------------ 写入

    def create_blob(self, content_b64: str) -> dict[str, Any]:
        payload = {"content": content_b64, "encoding": "base64"}
        return self._request("POST", self._repo_path("git/blobs"), json=payload)

    def create_tree(self, base_tree: str, entries: Sequence[dict[str, Any]]) -> dict[str, Any]:
        payload = {"base_tree": base_tree, "tree": list(entries)}
        return self._request("POST", self._repo_path("git/trees"), json=payload)

    def create_commit(self, message: str, tree: str, parents: Sequence[str]) -> dict[str, Any]:
        payload = {"message": message, "tree": tree, "parents": list(parents)}
        return self._request("POST", self._repo_path("git/commits"), json=payload)

    def create_ref(self, ref: str, sha: str) -> dict[str, Any]:
        """ref 需为完整名称，如 refs/heads/<branch>。"""

        payload = {"ref": ref, "sha": sha}
        return self._request("POST", self._repo_path("git/refs"), json=payload)

    def update_ref(self, ref: str, sha: str, force: bool = True) -> dict[str, Any]:
        """ref 不带 refs/ 前缀，如 heads/<branch>。"""

        payload = {"sha": sha, "force": force}
        return self._request("PATCH", self._repo_path(f"git/refs/{_quote_ref(ref)}"), json=payload)

    def create_pull_request(self, title: str, body: str, head: str, base: str) -> dict[str, Any]:
        payload = {"title": title, "body": body, "head": head, "base": base}
        return self._request("POST", self._repo_path("pulls"), json=payload)

    def update_pull_request(self, number: int, title: str, body: str) -> dict[str, Any]:
        payload = {"title": title, "body": body}
        return self._request("PATCH", self._repo_path(f"pulls/{number}"), json=payload)

    # ------------------------------------------------------------------ 内部

    def _repo_path(self, suffix: str) -> str:
        base = f"repos/{self.context.owner}/{self.context.repo}"
        return f"{base}/{suffix}" if suffix else base

    def _url(self, path: str) -> str:
        return f"{self.context.api_url}/{path.lstrip('/')}"

    def _paginate(
        self,
        path: str,
        params: Optional[dict[str, Any]] = None,
        key: Optional[str] = None,
    ) -> Iterator[dict[str, Any]]:
        """沿 Link: rel="next" 逐页读取；key 不为空时取每页对象中的该列表字段。"""

        url: Optional[str] = self._url(path)
        query: Optional[dict[str, Any]] = {**(params or {}), "per_page": PER_PAGE}
        while url:
            response = self._send("GET", url, params=query)
            page = _decode(response, "GET", url)
            if key is not None:
                page = (page or {}).get(key) or []
            yield from page
            url = response.links.get("next", {}).get("url")
            # next 链接已携带查询参数。
            query = None

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = self._url(path)
        return _decode(self._send(method, url, **kwargs), method, url)

    def _send(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        LOGGER.debug("%s %s", method, url)
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except requests.exceptions.HTTPError as exc:
            raise _http_error(method, url, exc) from exc
        except requests.exceptions.Timeout as exc:
            raise RemoteApiError(f"GitHub API 请求超时 ({self.timeout}s): {method} {url}") from exc
        except requests.exceptions.RequestException as exc:
            raise RemoteApiError(f"GitHub API 网络错误: {method} {url}: {exc}") from exc
        return response


def _decode(response: requests.Response, method: str, url: str) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise RemoteApiError(
            f"GitHub API 返回了无法解析的响应 ({response.status_code}): {method} {url}",
            status_code=response.status_code,
        ) from exc


def _quote_ref(ref: str) -> str:
    return quote(ref, safe="/")


def _http_error(method: str, url: str, exc: requests.exceptions.HTTPError) -> RemoteApiError:
    response = exc.response
    status = response.status_code if response is not None else None
    detail = ""
    if response is not None:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            detail = str(body.get("message", ""))
        else:
            detail = response.text[:200]

    if status == 401:
        reason = "认证失败，请检查 token"
    elif status == 429 or (status == 403 and response is not None and response.headers.get("X-RateLimit-Remaining") == "0"):
        reason = "触发 API 速率限制"
    elif status == 403:
        reason = "权限不足"
    elif status == 404:
        reason = "资源不存在"
    else:
        reason = "HTTP 错误"

    message = f"{reason} ({status}): {method} {url}"
    if detail:
        message += f" - {detail}"
    return RemoteApiError(message, status_code=status)
