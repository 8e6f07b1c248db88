"""压缩进度事件。"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class ProgressUpdate:
    """逐文件压缩时发出的进度事件，repo_path 为当前处理的文件。"""

    total: int
    completed: int
    repo_path: Optional[str] = None
    message: Optional[str] = None

    @property
    def finished(self) -> bool:
        return self.total > 0 and self.completed >= self.total
