"""vips 命令行参数构建，每种格式一个构建函数。"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict

from vips_action.core.config import ProcessingOptions
from vips_action.core.exceptions import UnsupportedFormatError
from vips_action.core.models import ImageFormat
from vips_action.processing.runner import shell_quote

VIPS_COMMAND = "vips"

ArgumentBuilder = Callable[[str, str, ProcessingOptions], str]


def _png_arguments(source: str, destination: str, options: ProcessingOptions) -> str:
    parts = [
        "pngsave",
        source,
        destination,
        f"--compression={options.png_compression_level}",
        f"--Q={options.quality}",
    ]
    if options.strip_metadata:
        parts.append("--strip=1")
    parts.extend(["--interlace=true", "--palette=true"])
    return " ".join(parts)


def _jpeg_arguments(source: str, destination: str, options: ProcessingOptions) -> str:
    parts = ["jpegsave", source, destination, f"--Q={options.quality}"]
    if options.jpeg_progressive:
        parts.append("--interlace=1")
    if options.strip_metadata:
        parts.append("--strip=1")
    return " ".join(parts)


ARGUMENT_BUILDERS: Dict[ImageFormat, ArgumentBuilder] = {
    ImageFormat.PNG: _png_arguments,
    ImageFormat.JPEG: _jpeg_arguments,
}


def build_vips_arguments(
    image_format: ImageFormat,
    input_path: Path,
    output_path: Path,
    options: ProcessingOptions,
) -> str:
    """生成传给 vips 的复合参数字符串，路径已做 shell 转义。"""

    builder = ARGUMENT_BUILDERS.get(image_format)
    if builder is None:
        raise UnsupportedFormatError(f"没有 {image_format} 的参数构建函数")
    return builder(shell_quote(str(input_path)), shell_quote(str(output_path)), options)
