"""处理流水线：枚举候选图片，逐个压缩，最后一次性发布。"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from vips_action.core.config import ActionConfig, ProcessingOptions
from vips_action.core.models import CompressionResult, ImageFile, RunSummary
from vips_action.core.output_manager import OutputManager
from vips_action.core.progress import ProgressUpdate
from vips_action.github.client import GitHubClient
from vips_action.github.enumerator import ChangeEnumerator
from vips_action.github.publisher import PublicationReconciler
from vips_action.processing.runner import ProcessRunner
from vips_action.processing.worker import CompressionTask, run_task

LOGGER = logging.getLogger(__name__)


ProgressCallback = Optional[Callable[[ProgressUpdate], None]]


def compress_images(
    images: Sequence[ImageFile],
    options: ProcessingOptions,
    runner: ProcessRunner,
    output_manager: OutputManager,
    progress_callback: ProgressCallback = None,
    summary: Optional[RunSummary] = None,
) -> list[CompressionResult]:
    """依次压缩每个文件，同一时刻只运行一个 vips 进程。

    任一文件的进程失败都会中止整批处理。
    """

    accepted: list[CompressionResult] = []
    total = len(images)

    for index, image in enumerate(images):
        LOGGER.info("压缩 %s (%d/%d)", image.repo_path, index + 1, total)
        _emit_progress(progress_callback, index, total, image.repo_path, f"压缩 {image.repo_path}")

        result = run_task(CompressionTask(image=image, options=options), runner, output_manager)
        if result is not None:
            accepted.append(result)
        elif summary is not None:
            summary.discarded.append(image.repo_path)

    _emit_progress(progress_callback, total, total, None, "压缩完成")
    return accepted


def run_action(
    config: ActionConfig,
    client: GitHubClient,
    runner: Optional[ProcessRunner] = None,
    progress_callback: ProgressCallback = None,
    output_manager: Optional[OutputManager] = None,
) -> RunSummary:
    """完整流程入口：枚举 -> 压缩 -> 发布。"""

    runner = runner or ProcessRunner()
    summary = RunSummary()

    LOGGER.info("开始枚举候选图片 (范围: %s)", config.options.scope.value)
    images = ChangeEnumerator(client, config).list_image_files()
    summary.found = len(images)
    LOGGER.info("发现 %d 个候选图片文件", summary.found)

    if not images:
        LOGGER.info("没有找到需要处理的图片")
        return summary

    with output_manager or OutputManager() as outputs:
        summary.accepted = compress_images(
            images,
            config.options,
            runner,
            outputs,
            progress_callback=progress_callback,
            summary=summary,
        )
        LOGGER.info("可发布 %d 个，跳过 %d 个", len(summary.accepted), len(summary.discarded))

        # 发布需要读取临时文件，必须在清理之前完成。
        summary.commit, summary.pull_request_url = PublicationReconciler(client, config).publish(summary.accepted)

    return summary


def _emit_progress(
    callback: ProgressCallback,
    completed: int,
    total: int,
    repo_path: Optional[str],
    message: Optional[str] = None,
) -> None:
    if not callback:
        return
    callback(ProgressUpdate(total=total, completed=completed, repo_path=repo_path, message=message))
