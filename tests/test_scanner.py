"""扩展名与变更状态筛选。"""

from __future__ import annotations

from pathlib import Path

import pytest

from vips_action.core.models import ChangeStatus, FileChange, ScopeMode
from vips_action.core.scanner import (
    DEFAULT_FILE_ENDINGS,
    is_image_file,
    parse_file_endings,
    resolve_candidates,
)


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("logo.png", True),
        ("assets/Photo.JPG", True),
        ("a/b/c.jpeg", True),
        ("anim.gif", True),
        ("icon.svg", False),
        ("README", False),
        ("archive.png.zip", False),
        ("dir.png/notes", False),
        ("trailing.", False),
        ("img/.png", True),
    ],
)
def test_is_image_file_uses_last_suffix(path: str, expected: bool) -> None:
    assert is_image_file(path, DEFAULT_FILE_ENDINGS) is expected


def test_is_image_file_is_case_insensitive_on_both_sides() -> None:
    assert is_image_file("banner.WebP", ("WEBP",))
    assert not is_image_file("banner.png", ("WEBP",))


def test_parse_file_endings_normalises_and_falls_back() -> None:
    assert parse_file_endings(" PNG, .jpg ,,png ") == ("png", "jpg")
    assert parse_file_endings("") == DEFAULT_FILE_ENDINGS
    assert parse_file_endings(" , ,") == DEFAULT_FILE_ENDINGS
    assert parse_file_endings(None) == DEFAULT_FILE_ENDINGS


CHANGES = [
    FileChange("added.png", ChangeStatus.ADDED),
    FileChange("changed.jpg", ChangeStatus.CHANGED),
    FileChange("removed.png", ChangeStatus.REMOVED),
    FileChange("same.jpeg", ChangeStatus.UNCHANGED),
    FileChange("notes.txt", ChangeStatus.ADDED),
]


def test_all_files_scope_excludes_removed(tmp_path: Path) -> None:
    images = resolve_candidates(CHANGES, ScopeMode.ALL_FILES, workspace=tmp_path)

    assert [image.repo_path for image in images] == ["added.png", "changed.jpg", "same.jpeg"]


def test_changed_only_scope_keeps_added_and_changed(tmp_path: Path) -> None:
    images = resolve_candidates(CHANGES, ScopeMode.CHANGED_ONLY, workspace=tmp_path)

    assert [image.repo_path for image in images] == ["added.png", "changed.jpg"]


def test_candidates_resolve_against_workspace(tmp_path: Path) -> None:
    changes = [FileChange("img/a b.png", ChangeStatus.ADDED), FileChange("img/a b.png", ChangeStatus.CHANGED)]

    images = resolve_candidates(changes, ScopeMode.CHANGED_ONLY, workspace=tmp_path)

    assert len(images) == 1
    assert images[0].local_path == (tmp_path / "img" / "a b.png").resolve()
    assert images[0].local_path.is_absolute()


@pytest.mark.parametrize(
    ("github_status", "expected"),
    [
        ("added", ChangeStatus.ADDED),
        ("modified", ChangeStatus.CHANGED),
        ("renamed", ChangeStatus.CHANGED),
        ("changed", ChangeStatus.CHANGED),
        ("removed", ChangeStatus.REMOVED),
        ("unchanged", ChangeStatus.UNCHANGED),
    ],
)
def test_github_statuses_are_normalised(github_status: str, expected: ChangeStatus) -> None:
    assert ChangeStatus.from_github(github_status) is expected
