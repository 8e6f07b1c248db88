"""将压缩结果发布为目标分支上的单个提交，并新建或更新 PR。"""

from __future__ import annotations

import base64
import logging
from typing import Any, Optional, Sequence

from vips_action.core.config import ActionConfig
from vips_action.core.models import CompressionResult, PublishedCommit
from vips_action.core.report import render_markdown_report
from vips_action.github.client import GitHubClient

LOGGER = logging.getLogger(__name__)

PULL_REQUEST_TITLE = "Compress Images"
FILE_MODE = "100644"


class PublicationReconciler:
    """把本地压缩结果同步到远端分支与 PR。"""

    def __init__(self, client: GitHubClient, config: ActionConfig) -> None:
        self.client = client
        self.config = config

    @property
    def branch_ref(self) -> str:
        return f"refs/heads/{self.config.options.target_branch}"

    def publish(self, results: Sequence[CompressionResult]) -> tuple[Optional[PublishedCommit], Optional[str]]:
        """结果为空时不发起任何远端写入。"""

        if not results:
            LOGGER.info("没有需要发布的压缩结果")
            return None, None
        commit = self.create_commit(results)
        url = self.upsert_pull_request(results)
        return commit, url

    def create_commit(self, results: Sequence[CompressionResult]) -> Optional[PublishedCommit]:
        """结果为空时返回 None，不创建提交也不移动分支。"""

        if not results:
            return None

        context = self.config.context

        entries: list[dict[str, Any]] = []
        for result in results:
            content = base64.b64encode(result.local_path.read_bytes()).decode("ascii")
            blob = self.client.create_blob(content)
            LOGGER.debug("blob %s <- %s", blob["sha"], result.repo_path)
            entries.append({"path": result.repo_path, "mode": FILE_MODE, "type": "blob", "sha": blob["sha"]})

        base_tree = self.client.get_git_commit(context.sha)["tree"]["sha"]
        tree = self.client.create_tree(base_tree, entries)
        commit = self.client.create_commit(
            message=self.config.options.commit_message,
            tree=tree["sha"],
            parents=[context.sha],
        )
        sha = commit["sha"]

        if self._branch_exists():
            LOGGER.warning("强制更新 %s -> %s，分支上已有的提交将被覆盖", self.branch_ref, sha)
            self.client.update_ref(self.branch_ref[len("refs/"):], sha, force=True)
        else:
            LOGGER.info("创建分支 %s -> %s", self.branch_ref, sha)
            self.client.create_ref(self.branch_ref, sha)

        return PublishedCommit(ref=self.branch_ref, sha=sha)

    def upsert_pull_request(self, results: Sequence[CompressionResult]) -> str:
        """返回 PR 的 html_url；结果为空时返回空串，不创建也不更新 PR。"""

        if not results:
            return ""

        context = self.config.context
        branch = self.config.options.target_branch
        default_branch = self.client.get_repository()["default_branch"]
        body = render_markdown_report(results)

        candidates = self.client.list_pull_requests(head=f"{context.owner}:{branch}", base=default_branch)
        existing = next((pr for pr in candidates if self._is_own_branch(pr)), None)

        if existing is not None:
            LOGGER.info("更新已有 PR #%s", existing["number"])
            pull_request = self.client.update_pull_request(existing["number"], title=PULL_REQUEST_TITLE, body=body)
        else:
            LOGGER.info("创建 PR: %s -> %s", branch, default_branch)
            pull_request = self.client.create_pull_request(
                title=PULL_REQUEST_TITLE,
                body=body,
                head=branch,
                base=default_branch,
            )
        return pull_request.get("html_url", "")

    def _branch_exists(self) -> bool:
        # matching-refs 是前缀匹配，需要完整比较 ref 名称。
        refs = self.client.list_matching_refs(self.branch_ref[len("refs/"):])
        return any(ref.get("ref") == self.branch_ref for ref in refs)

    def _is_own_branch(self, pull_request: dict[str, Any]) -> bool:
        head = pull_request.get("head") or {}
        repo = head.get("repo") or {}
        return (
            repo.get("full_name") == self.config.context.full_name
            and head.get("ref") == self.config.options.target_branch
        )
