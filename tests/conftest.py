"""测试公共夹具：伪造的 GitHub 客户端、vips 执行器与配置。"""

from __future__ import annotations

import logging
import shlex
from pathlib import Path
from typing import Any, Callable, Iterator, Optional, Sequence

import pytest
from PIL import Image

from vips_action.core.config import ActionConfig, GitHubContext, ProcessingOptions, build_processing_options
from vips_action.processing.runner import ProcessRunner

OWNER = "octo"
REPO = "site"
SHA = "c0ffee"


def make_config(workspace: Path, *, pull_request_number: Optional[int] = None, **option_overrides: Any) -> ActionConfig:
    options: ProcessingOptions = build_processing_options(**option_overrides)
    context = GitHubContext(
        owner=OWNER,
        repo=REPO,
        sha=SHA,
        ref="refs/heads/main",
        pull_request_number=pull_request_number,
        workspace=workspace,
    )
    return ActionConfig(token="test-token", options=options, context=context)


class FakeGitHubClient:
    """记录调用顺序的 GitHubClient 替身。"""

    def __init__(
        self,
        *,
        tree: Sequence[dict[str, Any]] = (),
        commit_files: Sequence[dict[str, Any]] = (),
        pr_files: Sequence[dict[str, Any]] = (),
        refs: Sequence[dict[str, Any]] = (),
        pulls: Sequence[dict[str, Any]] = (),
        default_branch: str = "main",
    ) -> None:
        self.tree = list(tree)
        self.commit_files = list(commit_files)
        self.pr_files = list(pr_files)
        self.refs = list(refs)
        self.pulls = list(pulls)
        self.default_branch = default_branch
        self.calls: list[tuple[str, tuple[Any, ...], dict[str, Any]]] = []
        self.blobs: list[str] = []

    def _record(self, name: str, *args: Any, **kwargs: Any) -> None:
        self.calls.append((name, args, kwargs))

    def call_names(self) -> list[str]:
        return [name for name, _, _ in self.calls]

    def get_tree(self, sha: str, recursive: bool = True) -> dict[str, Any]:
        self._record("get_tree", sha, recursive=recursive)
        return {"sha": sha, "tree": self.tree, "truncated": False}

    def list_commit_files(self, sha: str) -> list[dict[str, Any]]:
        self._record("list_commit_files", sha)
        return list(self.commit_files)

    def get_git_commit(self, sha: str) -> dict[str, Any]:
        self._record("get_git_commit", sha)
        return {"sha": sha, "tree": {"sha": "base-tree"}}

    def list_pull_request_files(self, number: int) -> list[dict[str, Any]]:
        self._record("list_pull_request_files", number)
        return self.pr_files

    def create_blob(self, content_b64: str) -> dict[str, Any]:
        self._record("create_blob", content_b64)
        self.blobs.append(content_b64)
        return {"sha": f"blob-{len(self.blobs)}"}

    def create_tree(self, base_tree: str, entries: Sequence[dict[str, Any]]) -> dict[str, Any]:
        self._record("create_tree", base_tree, list(entries))
        return {"sha": "new-tree"}

    def create_commit(self, message: str, tree: str, parents: Sequence[str]) -> dict[str, Any]:
        self._record("create_commit", message=message, tree=tree, parents=list(parents))
        return {"sha": "new-commit"}

    def list_matching_refs(self, ref: str) -> list[dict[str, Any]]:
        self._record("list_matching_refs", ref)
        return self.refs

    def create_ref(self, ref: str, sha: str) -> dict[str, Any]:
        self._record("create_ref", ref, sha)
        return {"ref": ref, "object": {"sha": sha}}

    def update_ref(self, ref: str, sha: str, force: bool = True) -> dict[str, Any]:
        self._record("update_ref", ref, sha, force=force)
        return {"ref": f"refs/{ref}", "object": {"sha": sha}}

    def get_repository(self) -> dict[str, Any]:
        self._record("get_repository")
        return {"full_name": f"{OWNER}/{REPO}", "default_branch": self.default_branch}

    def list_pull_requests(self, head: str, base: str, state: str = "open") -> list[dict[str, Any]]:
        self._record("list_pull_requests", head=head, base=base, state=state)
        return self.pulls

    def create_pull_request(self, title: str, body: str, head: str, base: str) -> dict[str, Any]:
        self._record("create_pull_request", title=title, body=body, head=head, base=base)
        return {"number": 99, "html_url": "https://github.com/octo/site/pull/99"}

    def update_pull_request(self, number: int, title: str, body: str) -> dict[str, Any]:
        self._record("update_pull_request", number, title=title, body=body)
        return {"number": number, "html_url": f"https://github.com/octo/site/pull/{number}"}


class FakeVipsRunner(ProcessRunner):
    """模拟 vips：按 shrink 函数把输入截断后写到输出路径。"""

    def __init__(self, shrink: Callable[[int], int] = lambda size: size // 2) -> None:
        super().__init__()
        self.shrink = shrink
        self.invocations: list[list[str]] = []

    def run(self, command: str, args: Sequence[str] = (), timeout_ms: int = 10_000, shell: bool = False) -> int:
        parts = shlex.split(" ".join(args))
        self.invocations.append([command, *parts])
        _, source, destination = parts[:3]
        data = Path(source).read_bytes()
        Path(destination).write_bytes(data[: self.shrink(len(data))])
        return 0


def save_noise_image(path: Path, size: tuple[int, int] = (64, 64)) -> Path:
    """写入一张带渐变的真实图片，保证文件有一定体积。"""

    path.parent.mkdir(parents=True, exist_ok=True)
    image = Image.new("RGB", size)
    image.putdata([((x * 7) % 256, (y * 13) % 256, (x * y) % 256) for y in range(size[1]) for x in range(size[0])])
    image.save(path)
    return path


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    root = tmp_path / "repo"
    root.mkdir()
    return root


@pytest.fixture(autouse=True)
def restore_root_logging() -> Iterator[None]:
    """命令行测试会调用 setup_logging，测试结束后恢复根日志配置。"""

    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
