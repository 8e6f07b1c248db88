"""候选图片枚举：整棵树或单次提交/PR 的变更文件。"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from vips_action.core.config import ActionConfig
from vips_action.core.models import ChangeStatus, FileChange, ImageFile, ScopeMode
from vips_action.core.scanner import resolve_candidates
from vips_action.github.client import GitHubClient

LOGGER = logging.getLogger(__name__)

# 符号链接在树中同样是 blob，压缩后会被替换为普通文件。
SYMLINK_MODE = "120000"


class ChangeEnumerator:
    """通过 GitHub API 列出当前引用下需要压缩的图片。"""

    def __init__(self, client: GitHubClient, config: ActionConfig) -> None:
        self.client = client
        self.config = config

    def list_image_files(self) -> list[ImageFile]:
        """按配置的范围枚举。"""

        if self.config.options.scope is ScopeMode.CHANGED_ONLY:
            return self.list_changed_image_files()
        return self.list_all_image_files()

    def list_all_image_files(self) -> list[ImageFile]:
        sha = self.config.context.sha
        tree = self.client.get_tree(sha, recursive=True)
        if tree.get("truncated"):
            LOGGER.warning("仓库树过大，GitHub 返回的列表被截断，部分图片可能被遗漏")

        changes = [
            FileChange(path=entry["path"], status=ChangeStatus.UNCHANGED)
            for entry in tree.get("tree", [])
            if entry.get("type") == "blob" and entry.get("mode") != SYMLINK_MODE
        ]
        LOGGER.debug("树 %s 共 %d 个文件", sha, len(changes))
        return self._resolve(changes, ScopeMode.ALL_FILES)

    def list_changed_image_files(self) -> list[ImageFile]:
        number = self.config.context.pull_request_number
        if number is not None:
            LOGGER.info("读取 PR #%d 的变更文件", number)
            files = self.client.list_pull_request_files(number)
        else:
            sha = self.config.context.sha
            LOGGER.info("读取提交 %s 的变更文件", sha)
            files = self.client.list_commit_files(sha)
        return self._resolve(_to_changes(files), ScopeMode.CHANGED_ONLY)

    def _resolve(self, changes: Iterable[FileChange], scope: ScopeMode) -> list[ImageFile]:
        return resolve_candidates(
            changes,
            scope,
            file_endings=self.config.options.file_endings,
            workspace=self.config.context.workspace,
        )


def _to_changes(files: Iterable[dict[str, Any]]) -> list[FileChange]:
    return [FileChange(path=item["filename"], status=ChangeStatus.from_github(item.get("status", ""))) for item in files]
