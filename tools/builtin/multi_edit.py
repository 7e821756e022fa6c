"""多次编辑工具 (MultiEdit)

遵循《通用工具响应协议》，返回标准化结构。
对单个文件原子地应用一批顺序编辑：全部成功才落盘，否则文件保持原样。
"""

import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from core.config import Config
from core.edit_engine import apply_edits, sweep_stale_temp_files
from core.edit_engine.validation import resolve_existing_file, validate_edits, validate_path
from prompts.tools_prompts.multi_edit_prompt import multi_edit_prompt

from ..base import Tool, ToolParameter
from .edit_common import (
    MultiEditRequest,
    edit_parameter_items,
    parse_request,
    render_file_failure,
    render_file_success,
    validation_error_payload,
)

logger = logging.getLogger(__name__)


class MultiEditTool(Tool):
    """单文件原子批量编辑工具"""

    def __init__(self, name: str = "MultiEdit", config: Optional[Config] = None):
        super().__init__(name=name, description=multi_edit_prompt, config=config)

    def run(self, parameters: Dict[str, Any]) -> str:
        """
        执行多次编辑操作

        Args:
            parameters: 包含以下键的字典：
                - file_path: 目标文件绝对路径（必填）
                - edits: 编辑列表，每项包含 old_string / new_string / replace_all / case_insensitive
                - dry_run: 是否仅预览不写入
                - backup: 是否创建 .bak 备份
                - include_content: 是否返回最终内容

        Returns:
            JSON 格式的响应字符串（遵循《通用工具响应协议》）
        """
        start_time = time.monotonic()
        params_input = dict(parameters)

        # =====================================================================
        # 参数校验
        # =====================================================================

        request, issues = parse_request(MultiEditRequest, parameters)
        if request is None:
            return self._validation_error(issues, params_input, start_time)

        edits = [spec.to_operation() for spec in request.edits]
        issues = validate_edits(edits)
        resolved: Optional[str] = None
        path_issue = validate_path(request.file_path)
        if path_issue is None:
            resolved, path_issue = resolve_existing_file(request.file_path)
        if path_issue is not None:
            issues.insert(0, path_issue)
        if issues:
            return self._validation_error(issues, params_input, start_time)

        dry_run = self.config.default_dry_run if request.dry_run is None else request.dry_run
        backup = self.config.default_backup if request.backup is None else request.backup
        include_content = (
            self.config.default_include_content if request.include_content is None else request.include_content
        )

        # =====================================================================
        # 执行
        # =====================================================================

        if self.config.sweep_temp_files:
            sweep_stale_temp_files(Path(resolved).parent, self.config.temp_file_max_age_s)

        # 总是取回最终内容用于 diff，输出时再按 include_content 过滤
        result = apply_edits(resolved, edits, dry_run=dry_run, backup=backup, include_content=True)
        time_ms = int((time.monotonic() - start_time) * 1000)

        if not result.success:
            data = render_file_failure(result, edits, self.config)
            return self.create_error_response(
                error_code=result.error.code,
                message=result.error.message,
                params_input=params_input,
                time_ms=time_ms,
                path_resolved=resolved,
                data=data,
            )

        data = render_file_success(result, include_content, self.config)
        stats = {
            "lines_added": data["lines_added"],
            "lines_removed": data["lines_removed"],
            "edits_applied": result.edits_applied,
        }
        text = self._summary_text(data, request.file_path)

        if dry_run or data["diff_truncated"]:
            return self.create_partial_response(
                data=data,
                text=text,
                params_input=params_input,
                time_ms=time_ms,
                extra_stats=stats,
                path_resolved=resolved,
            )
        return self.create_success_response(
            data=data,
            text=text,
            params_input=params_input,
            time_ms=time_ms,
            extra_stats=stats,
            path_resolved=resolved,
        )

    def _validation_error(self, issues, params_input: Dict[str, Any], start_time: float) -> str:
        code, message, data = validation_error_payload(issues)
        logger.info("MultiEdit request rejected: %s", message)
        return self.create_error_response(
            error_code=code,
            message=message,
            params_input=params_input,
            time_ms=int((time.monotonic() - start_time) * 1000),
            data=data,
        )

    @staticmethod
    def _summary_text(data: Dict[str, Any], file_path: str) -> str:
        count = data["edits_applied"]
        delta = f"(+{data['lines_added']}/-{data['lines_removed']} lines)"
        if data["dry_run"]:
            text = f"[Dry Run] Would apply {count} edit(s) to '{file_path}' {delta}. No changes written."
        else:
            text = f"Applied {count} edit(s) to '{file_path}' {delta}."
        if "backup_path" in data:
            text += f"\nBackup: {data['backup_path']}"
        if data["diff_truncated"]:
            text += "\nDiff preview truncated."
        return text

    def get_parameters(self) -> List[ToolParameter]:
        """获取工具参数定义"""
        return [
            ToolParameter(
                name="file_path",
                type="string",
                description="Absolute path to the file to edit",
                required=True,
            ),
            ToolParameter(
                name="edits",
                type="array",
                description="Ordered edits, each applied to the result of the previous ones",
                required=True,
                items=edit_parameter_items(),
            ),
            ToolParameter(
                name="dry_run",
                type="boolean",
                description="Simulate and return a diff without writing (default: false)",
                required=False,
                default=False,
            ),
            ToolParameter(
                name="backup",
                type="boolean",
                description="Save the original as <file_path>.bak before editing (default: true)",
                required=False,
                default=True,
            ),
            ToolParameter(
                name="include_content",
                type="boolean",
                description="Return the resulting file content (default: false)",
                required=False,
                default=False,
            ),
        ]
