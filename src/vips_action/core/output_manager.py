"""压缩输出的临时文件管理。"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional

from vips_action.core.exceptions import VipsActionError

LOGGER = logging.getLogger(__name__)

FILE_MODE = 0o600


class TempFileError(VipsActionError):
    """临时文件创建失败。"""


class OutputManager:
    """在私有临时目录中为每次压缩创建空输出文件，运行结束时统一清理。

    输出文件保留输入的扩展名，vips 会根据输出路径推断格式。
    """

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self._base_dir = base_dir
        self._directory: Optional[Path] = None

    @property
    def directory(self) -> Path:
        if self._directory is None:
            try:
                created = tempfile.mkdtemp(prefix="vips-action-", dir=self._base_dir)
            except OSError as exc:
                raise TempFileError(f"无法创建临时目录: {exc}") from exc
            self._directory = Path(created)
            LOGGER.debug("临时目录: %s", self._directory)
        return self._directory

    def create_empty_file(self, suffix: str) -> Path:
        """创建仅当前用户可读写的空文件，suffix 需包含前导 "."。"""

        try:
            fd, name = tempfile.mkstemp(suffix=suffix, dir=self.directory)
        except OSError as exc:
            raise TempFileError(f"无法创建临时文件: {exc}") from exc
        os.close(fd)
        path = Path(name)
        path.chmod(FILE_MODE)
        return path

    def cleanup(self) -> None:
        if self._directory is None:
            return
        shutil.rmtree(self._directory, ignore_errors=True)
        LOGGER.debug("已清理临时目录: %s", self._directory)
        self._directory = None

    def __enter__(self) -> "OutputManager":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cleanup()
