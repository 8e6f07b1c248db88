"""核心数据模型定义。"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from vips_action.core.exceptions import UnsupportedFormatError


class ChangeStatus(str, Enum):
    """变更记录的状态。"""

    ADDED = "added"
    CHANGED = "changed"
    REMOVED = "removed"
    UNCHANGED = "unchanged"

    @classmethod
    def from_github(cls, value: str) -> "ChangeStatus":
        """将 GitHub 返回的状态归一化。"""

        lowered = (value or "").lower()
        if lowered == "added":
            return cls.ADDED
        if lowered in {"modified", "changed", "renamed", "copied"}:
            return cls.CHANGED
        if lowered == "removed":
            return cls.REMOVED
        return cls.UNCHANGED


class ScopeMode(str, Enum):
    """枚举范围：整棵树或仅变更文件。"""

    ALL_FILES = "all"
    CHANGED_ONLY = "changed"


def file_suffix(path: str | Path) -> str:
    """最后一个 "." 之后的小写扩展名，不含 "."；没有扩展名时返回空串。

    与 Path.suffix 不同，"img/.png" 这样的点文件也视为扩展名 png。
    """

    name = str(path).rpartition("/")[2]
    head, dot, tail = name.rpartition(".")
    if not dot:
        return ""
    return tail.lower()


class ImageFormat(str, Enum):
    """vips 支持写出的图片格式。"""

    PNG = "png"
    JPEG = "jpeg"

    @classmethod
    def from_path(cls, path: str | Path) -> "ImageFormat":
        suffix = file_suffix(path)
        if suffix == "png":
            return cls.PNG
        if suffix in {"jpg", "jpeg"}:
            return cls.JPEG
        shown = f".{suffix}" if suffix else "(无扩展名)"
        raise UnsupportedFormatError(f"不支持的图片格式: {shown} ({path})")


@dataclass(frozen=True, slots=True)
class FileChange:
    """单条文件变更记录。"""

    path: str
    status: ChangeStatus


@dataclass(frozen=True, slots=True)
class ImageFile:
    """扫描阶段得到的候选图片。"""

    repo_path: str
    local_path: Path


@dataclass(frozen=True, slots=True)
class CompressionResult:
    """单个文件的压缩结果，local_path 指向压缩后的临时文件。"""

    repo_path: str
    local_path: Path
    size_before: int
    size_after: int

    @property
    def saved_bytes(self) -> int:
        return self.size_before - self.size_after

    @property
    def percentage_diff(self) -> float:
        """体积变化百分比，缩小为负数。"""

        if self.size_before == 0:
            return 0.0
        return -((self.size_before - self.size_after) / self.size_before) * 100


@dataclass(frozen=True, slots=True)
class PublishedCommit:
    """推送到目标分支的提交。"""

    ref: str
    sha: str


@dataclass(slots=True)
class RunSummary:
    """一次运行的汇总信息。"""

    found: int = 0
    accepted: list[CompressionResult] = field(default_factory=list)
    discarded: list[str] = field(default_factory=list)
    commit: Optional[PublishedCommit] = None
    pull_request_url: Optional[str] = None

    @property
    def published(self) -> bool:
        return self.commit is not None
