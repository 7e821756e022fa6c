"""字面量匹配引擎

纯函数，无 I/O。只做逐字符的精确匹配（可选大小写不敏感），
不做 Unicode 归一化、不裁剪空白。
"""

from typing import List, Tuple

Span = Tuple[int, int]


def find_spans(content: str, needle: str, case_insensitive: bool = False) -> List[Span]:
    """
    从左到右查找所有不重叠的匹配区间 [start, end)

    区间始终以原始 content 为坐标系；大小写不敏感时只影响比较，
    不会改变偏移量。

    Args:
        content: 被搜索的文本
        needle: 要查找的字面量
        case_insensitive: 是否忽略大小写

    Returns:
        按起始位置升序排列的 (start, end) 列表；needle 为空时返回空列表
    """
    if not needle:
        return []

    if case_insensitive:
        return _find_spans_lowercased(content, needle)
    return _scan(content, needle, len(needle))


def _scan(haystack: str, needle: str, width: int) -> List[Span]:
    spans: List[Span] = []
    pos = haystack.find(needle)
    while pos != -1:
        spans.append((pos, pos + width))
        pos = haystack.find(needle, pos + width)
    return spans


def _find_spans_lowercased(content: str, needle: str) -> List[Span]:
    """两边都做 str.lower() 后比较（不是 casefold），偏移仍落在原文上"""
    lowered_needle = needle.lower()
    lowered = content.lower()
    width = len(needle)
    if len(lowered) == len(content) and len(lowered_needle) == width:
        return _scan(lowered, lowered_needle, width)

    # lower() 改变了长度（如 'İ'），逐个偏移比较原文切片
    spans: List[Span] = []
    pos = 0
    while pos <= len(content) - width:
        if content[pos:pos + width].lower() == lowered_needle:
            spans.append((pos, pos + width))
            pos += width
        else:
            pos += 1
    return spans


def find_positions(content: str, needle: str, case_insensitive: bool = False) -> List[int]:
    """返回所有匹配的起始偏移（升序、不重叠）"""
    return [start for start, _ in find_spans(content, needle, case_insensitive)]


def count_occurrences(content: str, needle: str, case_insensitive: bool = False) -> int:
    return len(find_spans(content, needle, case_insensitive))


def line_number_at(content: str, offset: int) -> int:
    """偏移量所在的行号（1-based）：1 + offset 之前的换行符数量"""
    return content.count("\n", 0, offset) + 1


def match_line_numbers(content: str, needle: str, case_insensitive: bool = False) -> List[int]:
    return [line_number_at(content, pos) for pos in find_positions(content, needle, case_insensitive)]


def replace(
    content: str,
    needle: str,
    replacement: str,
    replace_all: bool = False,
    case_insensitive: bool = False,
) -> Tuple[str, int]:
    """
    替换匹配文本

    replace_all=False 时只替换偏移最小的那一处。大小写不敏感匹配时，
    被移除的是原文中实际出现的那段文本（保持原大小写）。

    Returns:
        (新内容, 替换次数)
    """
    spans = find_spans(content, needle, case_insensitive)
    if not spans:
        return content, 0
    if not replace_all:
        spans = spans[:1]

    parts: List[str] = []
    cursor = 0
    for start, end in spans:
        parts.append(content[cursor:start])
        parts.append(replacement)
        cursor = end
    parts.append(content[cursor:])
    return "".join(parts), len(spans)
