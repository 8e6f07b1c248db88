"""运行配置模型，启动时构建一次，之后只读。"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

from vips_action.core.exceptions import InvalidConfigurationError
from vips_action.core.models import ScopeMode
from vips_action.core.scanner import DEFAULT_FILE_ENDINGS, parse_file_endings

LOGGER = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_BRANCH = "vips"
DEFAULT_COMMIT_MESSAGE = "compress images"
DEFAULT_TIMEOUT_MS = 10_000


@dataclass(frozen=True, slots=True)
class ProcessingOptions:
    """压缩与发布参数。"""

    quality: int = 80
    strip_metadata: bool = True
    png_compression_level: int = 9
    jpeg_progressive: bool = True
    min_savings_bytes: int = 0
    target_branch: str = DEFAULT_BRANCH
    commit_message: str = DEFAULT_COMMIT_MESSAGE
    file_endings: tuple[str, ...] = DEFAULT_FILE_ENDINGS
    scope: ScopeMode = ScopeMode.ALL_FILES
    process_timeout_ms: int = DEFAULT_TIMEOUT_MS


@dataclass(frozen=True, slots=True)
class GitHubContext:
    """触发本次运行的仓库与引用信息。"""

    owner: str
    repo: str
    sha: str
    ref: str = ""
    pull_request_number: Optional[int] = None
    api_url: str = DEFAULT_API_URL
    workspace: Path = field(default_factory=Path.cwd)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @classmethod
    def from_env(cls, environ: Mapping[str, str], workspace: Optional[Path] = None) -> "GitHubContext":
        """从 GitHub Actions 环境变量构建上下文。"""

        repository = environ.get("GITHUB_REPOSITORY", "")
        owner, _, repo = repository.partition("/")
        if not owner or not repo or "/" in repo:
            raise InvalidConfigurationError(f"GITHUB_REPOSITORY 格式不正确: {repository!r}")

        sha = environ.get("GITHUB_SHA", "").strip()
        if not sha:
            raise InvalidConfigurationError("缺少 GITHUB_SHA")

        if workspace is None:
            workspace = Path(environ.get("GITHUB_WORKSPACE") or Path.cwd())

        payload = _load_event_payload(environ.get("GITHUB_EVENT_PATH"))
        pull_request = payload.get("pull_request") or {}
        number = pull_request.get("number")

        return cls(
            owner=owner,
            repo=repo,
            sha=sha,
            ref=environ.get("GITHUB_REF", ""),
            pull_request_number=int(number) if number is not None else None,
            api_url=(environ.get("GITHUB_API_URL") or DEFAULT_API_URL).rstrip("/"),
            workspace=workspace.expanduser().resolve(),
        )


@dataclass(frozen=True, slots=True)
class ActionConfig:
    """单次运行的完整配置。"""

    token: str = field(repr=False)
    options: ProcessingOptions
    context: GitHubContext


def build_processing_options(  # noqa: PLR0913
    *,
    quality: int = 80,
    strip_metadata: bool = True,
    png_compression_level: int = 9,
    jpeg_progressive: bool = True,
    min_savings_bytes: int = 0,
    target_branch: Optional[str] = None,
    commit_message: Optional[str] = None,
    file_endings: Optional[str] = None,
    scope: str | ScopeMode = ScopeMode.ALL_FILES,
    process_timeout_ms: int = DEFAULT_TIMEOUT_MS,
) -> ProcessingOptions:
    """校验参数并生成 ProcessingOptions。"""

    if not 0 <= quality <= 100:
        raise InvalidConfigurationError(f"quality 必须在 0~100 之间: {quality}")
    if not 0 <= png_compression_level <= 9:
        raise InvalidConfigurationError(f"PNG 压缩级别必须在 0~9 之间: {png_compression_level}")
    if min_savings_bytes < 0:
        raise InvalidConfigurationError(f"最小节省字节数不能为负: {min_savings_bytes}")
    if process_timeout_ms <= 0:
        raise InvalidConfigurationError(f"超时时间必须大于 0: {process_timeout_ms}")

    try:
        scope_mode = ScopeMode(scope)
    except ValueError as exc:
        raise InvalidConfigurationError(f"未知的扫描范围: {scope}") from exc

    branch = (target_branch or "").strip() or DEFAULT_BRANCH
    if branch.startswith("refs/"):
        raise InvalidConfigurationError(f"分支名不应包含 refs/ 前缀: {branch}")

    message = commit_message if commit_message and commit_message.strip() else DEFAULT_COMMIT_MESSAGE

    return ProcessingOptions(
        quality=quality,
        strip_metadata=strip_metadata,
        png_compression_level=png_compression_level,
        jpeg_progressive=jpeg_progressive,
        min_savings_bytes=min_savings_bytes,
        target_branch=branch,
        commit_message=message,
        file_endings=parse_file_endings(file_endings),
        scope=scope_mode,
        process_timeout_ms=process_timeout_ms,
    )


def load_config(
    token: Optional[str],
    options: ProcessingOptions,
    environ: Optional[Mapping[str, str]] = None,
    workspace: Optional[Path] = None,
) -> ActionConfig:
    """组合 token、处理参数与 GitHub 上下文。"""

    if not token or not token.strip():
        raise InvalidConfigurationError("缺少访问令牌 (token)")

    context = GitHubContext.from_env(os.environ if environ is None else environ, workspace=workspace)
    LOGGER.debug("运行上下文: %s@%s", context.full_name, context.sha)
    return ActionConfig(token=token.strip(), options=options, context=context)


def _load_event_payload(event_path: Optional[str]) -> dict[str, Any]:
    if not event_path:
        return {}
    path = Path(event_path)
    if not path.is_file():
        LOGGER.warning("事件文件不存在: %s", path)
        return {}
    try:
        with path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except (OSError, json.JSONDecodeError) as exc:
        raise InvalidConfigurationError(f"无法读取事件文件: {path}") from exc
    return payload if isinstance(payload, dict) else {}
