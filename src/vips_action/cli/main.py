"""命令行入口。

参数同时可通过 GitHub Action 的 INPUT_* 环境变量提供。
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from vips_action.core.config import ActionConfig, build_processing_options, load_config
from vips_action.core.exceptions import VipsActionError
from vips_action.core.progress import ProgressUpdate
from vips_action.github.client import GitHubClient
from vips_action.github.enumerator import ChangeEnumerator
from vips_action.processing.pipeline import run_action
from vips_action.utils.logging import setup_logging

LOGGER = logging.getLogger(__name__)

app = typer.Typer(help="使用 vips 压缩仓库中的图片，并以 PR 形式提交结果。", no_args_is_help=True)

TokenOption = typer.Option(None, "--token", envvar="INPUT_TOKEN", help="GitHub 访问令牌", show_default=False)
ScopeOption = typer.Option("all", "--scope", envvar="INPUT_SCOPE", help="扫描范围：all 或 changed")
FileEndingsOption = typer.Option(
    None, "--file-endings", envvar="INPUT_FILE-ENDINGS", help="逗号分隔的扩展名，默认 png,jpeg,jpg,gif"
)
WorkspaceOption = typer.Option(
    None, "--workspace", envvar="INPUT_WORKSPACE", help="本地工作副本路径，默认 GITHUB_WORKSPACE 或当前目录"
)
VerboseOption = typer.Option(False, "--verbose", "-v", help="输出调试日志")


@app.callback()
def main() -> None:
    """vips-action 命令组。"""


def _build_progress_callback(progress: Progress):
    task_id: Optional[int] = None

    def callback(update: ProgressUpdate) -> None:
        nonlocal task_id
        if update.total == 0:
            return
        if task_id is None:
            task_id = progress.add_task("压缩图片", total=update.total)
        progress.update(task_id, completed=update.completed, description=update.repo_path or "压缩图片")

    return callback


def _resolve_workspace(workspace: Optional[Path]) -> Optional[Path]:
    return workspace.expanduser().resolve() if workspace else None


def _fail(exc: VipsActionError) -> typer.Exit:
    LOGGER.error("%s: %s", type(exc).__name__, exc)
    return typer.Exit(code=1)


@app.command("run")
def run_cli(  # noqa: PLR0913
    token: Optional[str] = TokenOption,
    commit_message: Optional[str] = typer.Option(
        None, "--commit-message", envvar="INPUT_COMMIT-MESSAGE", help="提交信息，默认 compress images"
    ),
    file_endings: Optional[str] = FileEndingsOption,
    quality: int = typer.Option(80, "--quality", "-q", envvar="INPUT_QUALITY", help="压缩质量 0~100"),
    strip_metadata: bool = typer.Option(
        True, "--strip/--no-strip", envvar="INPUT_STRIP-METADATA", help="是否移除元数据"
    ),
    png_compression: int = typer.Option(
        9, "--png-compression", envvar="INPUT_PNG-COMPRESSION", help="PNG 压缩级别 0~9"
    ),
    jpeg_progressive: bool = typer.Option(
        True, "--progressive/--no-progressive", envvar="INPUT_JPEG-PROGRESSIVE", help="JPEG 渐进式编码"
    ),
    min_savings: int = typer.Option(0, "--min-savings", envvar="INPUT_MIN-SAVINGS", help="最小节省字节数"),
    branch: str = typer.Option("vips", "--branch", "-b", envvar="INPUT_BRANCH", help="结果推送的目标分支"),
    scope: str = ScopeOption,
    timeout_ms: int = typer.Option(10_000, "--timeout-ms", help="单次 vips 调用超时（毫秒）"),
    workspace: Optional[Path] = WorkspaceOption,
    verbose: bool = VerboseOption,
) -> None:
    """压缩图片并发布到目标分支与 PR。"""

    setup_logging(logging.DEBUG if verbose else logging.INFO)

    try:
        options = build_processing_options(
            quality=quality,
            strip_metadata=strip_metadata,
            png_compression_level=png_compression,
            jpeg_progressive=jpeg_progressive,
            min_savings_bytes=min_savings,
            target_branch=branch,
            commit_message=commit_message,
            file_endings=file_endings,
            scope=scope,
            process_timeout_ms=timeout_ms,
        )
        config = load_config(token, options, workspace=_resolve_workspace(workspace))
        client = GitHubClient(config.token, config.context)

        progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TimeElapsedColumn(),
            transient=True,
        )
        with progress:
            summary = run_action(config, client, progress_callback=_build_progress_callback(progress))
    except VipsActionError as exc:
        raise _fail(exc) from exc

    typer.echo(
        f"完成：候选 {summary.found} 个，可发布 {len(summary.accepted)} 个，跳过 {len(summary.discarded)} 个。"
    )
    if summary.commit is not None:
        typer.echo(f"提交 {summary.commit.sha} -> {summary.commit.ref}")
    if summary.pull_request_url:
        typer.echo(f"PR：{summary.pull_request_url}")


@app.command("list")
def list_cli(
    token: Optional[str] = TokenOption,
    file_endings: Optional[str] = FileEndingsOption,
    scope: str = ScopeOption,
    workspace: Optional[Path] = WorkspaceOption,
    verbose: bool = VerboseOption,
) -> None:
    """只列出候选图片，不压缩也不写入远端。"""

    setup_logging(logging.DEBUG if verbose else logging.WARNING)

    try:
        options = build_processing_options(file_endings=file_endings, scope=scope)
        config: ActionConfig = load_config(token, options, workspace=_resolve_workspace(workspace))
        images = ChangeEnumerator(GitHubClient(config.token, config.context), config).list_image_files()
    except VipsActionError as exc:
        raise _fail(exc) from exc

    for image in images:
        typer.echo(image.repo_path)


if __name__ == "__main__":
    app()
