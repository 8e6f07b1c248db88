"""单个文件的压缩工作单元。"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from vips_action.core.config import ProcessingOptions
from vips_action.core.models import CompressionResult, ImageFile, ImageFormat, file_suffix
from vips_action.core.output_manager import OutputManager
from vips_action.processing.runner import ProcessRunner
from vips_action.processing.vips import VIPS_COMMAND, build_vips_arguments

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CompressionTask:
    """描述单个图片压缩任务。"""

    image: ImageFile
    options: ProcessingOptions


def is_worth_publishing(size_before: int, size_after: int, threshold: int) -> bool:
    """文件必须变小，且减少的字节数不低于阈值。"""

    return size_after < size_before and size_before - size_after >= threshold


def run_task(
    task: CompressionTask,
    runner: ProcessRunner,
    output_manager: OutputManager,
) -> Optional[CompressionResult]:
    """压缩单个文件；收益不足时返回 None，进程失败时异常直接向上抛出。"""

    image = task.image
    options = task.options

    # 格式不支持时在创建临时文件之前失败。
    image_format = ImageFormat.from_path(image.local_path)
    output_path = output_manager.create_empty_file(f".{file_suffix(image.local_path)}")
    arguments = build_vips_arguments(image_format, image.local_path, output_path, options)

    runner.run(VIPS_COMMAND, [arguments], timeout_ms=options.process_timeout_ms, shell=True)

    size_before = image.local_path.stat().st_size
    size_after = output_path.stat().st_size
    LOGGER.info("%s: %d -> %d 字节", image.repo_path, size_before, size_after)

    if not is_worth_publishing(size_before, size_after, options.min_savings_bytes):
        LOGGER.info(
            "跳过 %s：节省 %d 字节，未达到阈值 %d",
            image.repo_path,
            size_before - size_after,
            options.min_savings_bytes,
        )
        return None

    return CompressionResult(
        repo_path=image.repo_path,
        local_path=output_path,
        size_before=size_before,
        size_after=size_after,
    )
