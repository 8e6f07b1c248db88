"""压缩报告生成工具。"""

from __future__ import annotations

from typing import Iterable

from vips_action.core.models import CompressionResult

HEADER = ["Path", "Previous Size (KB)", "New Size (KB)", "Percentage Diff"]


def render_markdown_report(results: Iterable[CompressionResult]) -> str:
    """将压缩结果渲染为 Markdown 表格，用作 PR 正文。"""

    records = list(results)
    lines = [
        "## Compression Report",
        "",
        "| " + " | ".join(HEADER) + " |",
        "| " + " | ".join("---" for _ in HEADER) + " |",
    ]
    for record in records:
        lines.append(
            "| "
            + " | ".join(
                [
                    f"`{record.repo_path}`",
                    _format_kb(record.size_before),
                    _format_kb(record.size_after),
                    format_percentage(record.percentage_diff),
                ]
            )
            + " |"
        )

    total_before = sum(r.size_before for r in records)
    total_after = sum(r.size_after for r in records)
    lines.append("")
    lines.append(
        f"Compressed {len(records)} image(s): "
        f"{_format_kb(total_before)} KB -> {_format_kb(total_after)} KB "
        f"(saved {_format_kb(total_before - total_after)} KB)."
    )
    return "\n".join(lines) + "\n"


def format_percentage(value: float) -> str:
    return f"{value:.2f}%"


def _format_kb(size: int) -> str:
    return f"{size / 1024:.2f}"
