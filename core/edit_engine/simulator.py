"""顺序模拟器

在内存中按顺序校验并应用一批编辑：第 i 个编辑作用于前 i-1 个编辑的产物。
只有整批模拟成功后才允许落盘，整个操作的原子性建立在这一步之上。
"""

import logging
from typing import List, Sequence

from .errors import ErrorCode
from .matching import find_spans, line_number_at, replace
from .models import EditOperation, EditOutcome, SimulationFailure, SimulationResult

logger = logging.getLogger(__name__)


def simulate(content: str, edits: Sequence[EditOperation]) -> SimulationResult:
    """
    模拟整批编辑（无 I/O、不修改入参）

    规则：
    1. 空批次直接成功，内容不变
    2. old_string == new_string 视为 no-op，记录 0 次替换，即使文本不存在也不报错
    3. 0 处匹配 → MATCH_NOT_FOUND（replace_all=True 时同样报错）
    4. 多处匹配且未设置 replace_all → AMBIGUOUS_MATCH，附带所有匹配行号
    5. 否则应用替换，并把结果传给下一个编辑

    Args:
        content: 文件原始内容
        edits: 有序的编辑列表

    Returns:
        SimulationResult：成功时包含最终内容；失败时包含首个失败编辑的诊断
    """
    total = len(edits)
    outcomes: List[EditOutcome] = []
    current = content

    for index, edit in enumerate(edits):
        if edit.old_string == edit.new_string:
            outcomes.append(EditOutcome(
                old_string=edit.old_string,
                # no-op 的匹配数始终按精确大小写统计
                matches=len(find_spans(current, edit.old_string)),
                replaced=0,
            ))
            continue

        spans = find_spans(current, edit.old_string, edit.case_insensitive)

        if not spans:
            logger.debug("Edit %d/%d: old_string not found", index + 1, total)
            return _failed(current, outcomes, SimulationFailure(
                reason=ErrorCode.MATCH_NOT_FOUND,
                edit_index=index,
                total_edits=total,
                old_string=edit.old_string,
                content=current,
            ))

        if len(spans) > 1 and not edit.replace_all:
            lines = [line_number_at(current, start) for start, _ in spans]
            logger.debug("Edit %d/%d: ambiguous, %d matches", index + 1, total, len(spans))
            return _failed(current, outcomes, SimulationFailure(
                reason=ErrorCode.AMBIGUOUS_MATCH,
                edit_index=index,
                total_edits=total,
                old_string=edit.old_string,
                content=current,
                match_lines=lines,
            ))

        current, replaced = replace(
            current,
            edit.old_string,
            edit.new_string,
            replace_all=edit.replace_all,
            case_insensitive=edit.case_insensitive,
        )
        outcomes.append(EditOutcome(old_string=edit.old_string, matches=len(spans), replaced=replaced))

    return SimulationResult(
        success=True,
        final_content=current,
        outcomes=outcomes,
        edits_applied=sum(1 for o in outcomes if o.success),
    )


def _failed(current: str, outcomes: List[EditOutcome], failure: SimulationFailure) -> SimulationResult:
    return SimulationResult(
        success=False,
        final_content=current,
        outcomes=outcomes,
        edits_applied=failure.edit_index,
        failure=failure,
    )
