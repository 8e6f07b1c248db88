"""文件筛选逻辑：按扩展名与变更状态挑选候选图片。"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional, Sequence

from vips_action.core.models import ChangeStatus, FileChange, ImageFile, ScopeMode, file_suffix

DEFAULT_FILE_ENDINGS: tuple[str, ...] = ("png", "jpeg", "jpg", "gif")

_SCOPE_STATUSES = {
    ScopeMode.ALL_FILES: frozenset({ChangeStatus.ADDED, ChangeStatus.CHANGED, ChangeStatus.UNCHANGED}),
    ScopeMode.CHANGED_ONLY: frozenset({ChangeStatus.ADDED, ChangeStatus.CHANGED}),
}


def parse_file_endings(raw: Optional[str]) -> tuple[str, ...]:
    """解析逗号分隔的扩展名列表，空值回退到默认列表。"""

    if not raw:
        return DEFAULT_FILE_ENDINGS

    endings: list[str] = []
    for part in raw.split(","):
        ending = part.strip().lstrip(".").lower()
        if ending and ending not in endings:
            endings.append(ending)
    return tuple(endings) or DEFAULT_FILE_ENDINGS


def is_image_file(path: str, file_endings: Sequence[str] = DEFAULT_FILE_ENDINGS) -> bool:
    """最后一个 "." 之后的小写后缀是否在扩展名集合中。"""

    suffix = file_suffix(path)
    if not suffix:
        return False
    return suffix in {ending.lower() for ending in file_endings}


def matches_scope(change: FileChange, scope: ScopeMode) -> bool:
    return change.status in _SCOPE_STATUSES[scope]


def resolve_candidates(
    changes: Iterable[FileChange],
    scope: ScopeMode,
    file_endings: Sequence[str] = DEFAULT_FILE_ENDINGS,
    workspace: Optional[Path] = None,
) -> list[ImageFile]:
    """根据范围与扩展名筛选变更记录，映射为本地路径。"""

    root = (workspace or Path.cwd()).resolve()
    collected: list[ImageFile] = []
    seen_paths: set[str] = set()

    for change in changes:
        if not matches_scope(change, scope):
            continue
        if not is_image_file(change.path, file_endings):
            continue
        if change.path in seen_paths:
            continue
        seen_paths.add(change.path)
        collected.append(ImageFile(repo_path=change.path, local_path=(root / change.path).resolve()))

    return collected
