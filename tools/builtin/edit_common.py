"""MultiEdit / MultiEditFiles 共用的请求模型与结果渲染

- 请求模型：pydantic 严格类型校验（类型、必填、默认值）
- 渲染：把引擎的结构化结果转为协议 data 字段
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple, Type, TypeVar

from pydantic import BaseModel, Field, StrictBool, StrictStr, ValidationError

from core.config import Config
from core.edit_engine.errors import ErrorCode, get_recovery_hints
from core.edit_engine.models import EditOperation, FileTransactionResult, ValidationIssue
from core.edit_engine.reporting import (
    build_edit_status,
    compute_diff,
    extract_file_context,
    extract_match_locations,
    truncate_for_display,
)

RequestT = TypeVar("RequestT", bound=BaseModel)


# =============================================================================
# 请求模型
# =============================================================================

class EditSpec(BaseModel):
    """单个编辑（空 old_string 留给引擎校验，以便给出 EMPTY_OLD_STRING）"""
    old_string: StrictStr
    new_string: StrictStr
    replace_all: StrictBool = False
    case_insensitive: StrictBool = False

    def to_operation(self) -> EditOperation:
        return EditOperation(**self.model_dump())


class MultiEditRequest(BaseModel):
    file_path: StrictStr
    edits: List[EditSpec]
    # None 表示使用配置默认值
    dry_run: Optional[StrictBool] = None
    backup: Optional[StrictBool] = None
    include_content: Optional[StrictBool] = None


class FileEditSpec(BaseModel):
    file_path: StrictStr
    edits: List[EditSpec]


class MultiEditFilesRequest(BaseModel):
    files: List[FileEditSpec] = Field(min_length=1)
    dry_run: Optional[StrictBool] = None
    # 多文件编辑强制备份（备份即回滚来源），此字段仅用于提示
    backup: Optional[StrictBool] = None
    include_content: Optional[StrictBool] = None


def parse_request(
    model: Type[RequestT],
    parameters: Dict[str, Any],
) -> Tuple[Optional[RequestT], List[ValidationIssue]]:
    """
    按请求模型解析参数

    Returns:
        (请求对象, []) 或 (None, 校验问题列表)
    """
    try:
        return model.model_validate(parameters), []
    except ValidationError as e:
        issues = []
        for err in e.errors():
            loc = [str(part) for part in err.get("loc", ())]
            issues.append(ValidationIssue(
                code=ErrorCode.VALIDATION_FAILED,
                message=f"{'.'.join(loc) or 'input'}: {err.get('msg', 'invalid value')}",
                location=loc,
                recovery_hint="Check input format matches the tool schema",
            ))
        return None, issues


def validation_error_payload(issues: Sequence[ValidationIssue]) -> Tuple[ErrorCode, str, Dict[str, Any]]:
    """
    校验失败的错误码、消息与 data

    只有一个问题时使用该问题自身的错误码，多个问题统一为 VALIDATION_FAILED。
    """
    code = issues[0].code if len(issues) == 1 else ErrorCode.VALIDATION_FAILED
    if len(issues) == 1:
        message = f"Input validation failed: {issues[0].message}"
    else:
        message = f"Input validation failed with {len(issues)} issues: " + "; ".join(i.message for i in issues)
    data = {
        "applied": False,
        "retryable": True,
        "validation_errors": [i.to_dict() for i in issues],
        "recovery_hints": [f"{i.code.value}: {i.recovery_hint}" for i in issues],
    }
    return code, message, data


# =============================================================================
# 结果渲染
# =============================================================================

def render_file_success(
    result: FileTransactionResult,
    include_content: bool,
    config: Config,
) -> Dict[str, Any]:
    """成功文件的 data（含 diff 预览）"""
    diff = compute_diff(
        result.original_content or "",
        result.final_content if result.final_content is not None else (result.original_content or ""),
        result.path,
        max_lines=config.max_diff_lines,
        max_bytes=config.max_diff_bytes,
    )
    data: Dict[str, Any] = {
        "file_path": result.path,
        "applied": result.success and not result.dry_run and not result.rolled_back,
        "dry_run": result.dry_run,
        "edits_applied": result.edits_applied,
        "edits": [
            {
                "old_string": truncate_for_display(o.old_string, 50),
                "matched": o.success,
                "matches": o.matches,
                "occurrences_replaced": o.replaced,
            }
            for o in result.outcomes
        ],
        "diff_preview": diff["preview"],
        "diff_truncated": diff["truncated"],
        "lines_added": diff["lines_added"],
        "lines_removed": diff["lines_removed"],
    }
    if result.dry_run:
        data["message"] = "DRY RUN - No changes made to file"
    if result.backup_path is not None:
        data["backup_path"] = result.backup_path
    if result.rolled_back:
        data["rolled_back"] = True
    if include_content and result.final_content is not None:
        data["final_content"] = result.final_content
    return data


def render_file_failure(
    result: FileTransactionResult,
    edits: Sequence[EditOperation],
    config: Config,
) -> Dict[str, Any]:
    """失败文件的 data：错误码、失败编辑、上下文片段、备份位置"""
    error = result.error
    data: Dict[str, Any] = {
        "file_path": result.path,
        "applied": False,
        "dry_run": result.dry_run,
        "edits_applied": 0,
        "error_code": error.code.value,
        "message": error.message,
        "retryable": error.retryable,
        "recovery_hints": get_recovery_hints(error.code),
    }
    if error.cause is not None:
        data["cause"] = error.cause
    if result.backup_path is not None:
        data["backup_path"] = result.backup_path

    index = error.edit_index
    if index is None:
        return data

    data["edit_index"] = index
    data["failed_edit_index"] = index
    data["edit_status"] = build_edit_status(
        [e.old_string for e in edits],
        index,
        error.code,
        error.message,
    )

    content = result.content_at_failure or ""
    if 0 <= index < len(edits) and content:
        failed_edit = edits[index]
        if error.code == ErrorCode.MATCH_NOT_FOUND:
            data["context"] = extract_file_context(content, failed_edit.old_string)
        elif error.code == ErrorCode.AMBIGUOUS_MATCH:
            data["match_lines"] = list(error.match_lines)
            data["context"] = extract_match_locations(
                content,
                failed_edit.old_string,
                case_insensitive=failed_edit.case_insensitive,
                limit=config.max_match_locations,
            )
    return data


def edit_parameter_items() -> Dict[str, Any]:
    """edits 数组的元素 schema"""
    return {
        "type": "object",
        "properties": {
            "old_string": {"type": "string", "description": "Exact text to find (non-empty)"},
            "new_string": {"type": "string", "description": "Replacement text (may be empty)"},
            "replace_all": {"type": "boolean", "description": "Replace all occurrences (default: false)"},
            "case_insensitive": {"type": "boolean", "description": "Case-insensitive matching (default: false)"},
        },
        "required": ["old_string", "new_string"],
    }
