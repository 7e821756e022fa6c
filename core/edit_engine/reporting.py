"""结果呈现辅助函数

给外层（工具 / CLI）使用：diff 预览、失败上下文片段、逐编辑状态。
这里只做纯计算，不读写文件。
"""

import difflib
from typing import Any, Dict, List, Optional, Sequence

from .errors import ErrorCode
from .matching import find_positions

# Diff 预览的最大行数（超过此行数会截断 diff 预览）
MAX_DIFF_LINES = 100

# Diff 预览的最大字节数（10KB）
MAX_DIFF_BYTES = 10240

# 歧义匹配最多展示的位置数
MAX_MATCH_LOCATIONS = 5


def truncate_for_display(text: str, max_len: int) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def compute_diff(
    old_content: str,
    new_content: str,
    file_path: str,
    max_lines: int = MAX_DIFF_LINES,
    max_bytes: int = MAX_DIFF_BYTES,
) -> Dict[str, Any]:
    """
    计算 Unified Diff 并处理截断

    Args:
        old_content: 原文件内容
        new_content: 新文件内容
        file_path: 文件路径（用于 diff header）

    Returns:
        包含 preview、truncated、lines_added、lines_removed 的字典
    """
    if old_content == new_content:
        return {"preview": "No changes", "truncated": False, "lines_added": 0, "lines_removed": 0}

    diff_gen = difflib.unified_diff(
        old_content.splitlines(keepends=True),
        new_content.splitlines(keepends=True),
        fromfile=f"a/{file_path}",
        tofile=f"b/{file_path}",
        lineterm="\n",
    )

    preview_lines: List[str] = []
    preview_bytes = 0
    truncated = False
    lines_added = 0
    lines_removed = 0

    for line in diff_gen:
        # 统计增删行数（排除 header 行）
        if line.startswith("+") and not line.startswith("+++"):
            lines_added += 1
        elif line.startswith("-") and not line.startswith("---"):
            lines_removed += 1

        if truncated:
            continue
        line_bytes = len(line.encode("utf-8"))
        if len(preview_lines) >= max_lines or preview_bytes + line_bytes > max_bytes:
            truncated = True
            continue
        preview_lines.append(line.rstrip("\n"))
        preview_bytes += line_bytes

    preview = "\n".join(preview_lines)
    if truncated:
        preview += "\n... (truncated)"

    return {
        "preview": preview,
        "truncated": truncated,
        "lines_added": lines_added,
        "lines_removed": lines_removed,
    }


def extract_file_context(content: str, search: str) -> Dict[str, Any]:
    """
    为 MATCH_NOT_FOUND 提取约 15 行原始内容（不带行号）

    依次用 search 的前 20 / 10 / 5 个字符做部分匹配，找到后取前后 7 行；
    全都找不到时返回文件前 15 行。
    """
    if not content:
        return {}

    lines = content.split("\n")
    prefixes = [search[:n] for n in (20, 10, 5) if len(search) >= n]
    if 0 < len(search) < 5:
        prefixes.append(search)

    for prefix in prefixes:
        index = content.find(prefix)
        if index == -1:
            continue
        match_line = content.count("\n", 0, index)
        start = max(0, match_line - 7)
        end = min(len(lines), match_line + 8)
        return {"snippet": "\n".join(lines[start:end])}

    return {"snippet": "\n".join(lines[:15])}


def extract_match_locations(
    content: str,
    search: str,
    case_insensitive: bool = False,
    limit: int = MAX_MATCH_LOCATIONS,
) -> Dict[str, Any]:
    """为 AMBIGUOUS_MATCH 列出匹配位置（每处前后 3 行），最多 limit 处"""
    positions = find_positions(content, search, case_insensitive)
    if not positions:
        return {}

    lines = content.split("\n")
    locations = []
    for pos in positions[:limit]:
        line_index = content.count("\n", 0, pos)
        start = max(0, line_index - 3)
        end = min(len(lines), line_index + 4)
        locations.append({"line": line_index + 1, "snippet": "\n".join(lines[start:end])})

    context: Dict[str, Any] = {"match_locations": locations}
    if len(positions) > limit:
        context["snippet"] = f"{limit} of {len(positions)} matches shown"
    return context


def build_edit_status(
    old_strings: Sequence[str],
    failed_index: int,
    failed_code: ErrorCode,
    failed_message: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    逐编辑状态：只列出失败和被跳过的编辑，未列出即为成功
    """
    if not 0 <= failed_index < len(old_strings):
        return []

    status: List[Dict[str, Any]] = [{
        "edit_index": failed_index,
        "status": "failed",
        "error_code": failed_code.value,
        "message": failed_message,
        "old_string_preview": old_strings[failed_index][:40],
    }]
    for index in range(failed_index + 1, len(old_strings)):
        status.append({
            "edit_index": index,
            "status": "skipped",
            "old_string_preview": old_strings[index][:40],
        })
    return status
