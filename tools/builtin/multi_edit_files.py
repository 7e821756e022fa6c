"""多文件编辑工具 (MultiEditFiles)

遵循《通用工具响应协议》，返回标准化结构。
多个文件作为一个整体提交：任一文件失败时，已写入的文件按逆序从备份恢复。
"""

import logging
import time
from typing import Any, Dict, List, Optional

from core.config import Config
from core.edit_engine import FileEdits, MultiFileTransactionResult, apply_edits_across_files
from prompts.tools_prompts.multi_edit_files_prompt import multi_edit_files_prompt

from ..base import Tool, ToolParameter
from .edit_common import (
    MultiEditFilesRequest,
    edit_parameter_items,
    parse_request,
    render_file_failure,
    render_file_success,
    validation_error_payload,
)

logger = logging.getLogger(__name__)


class MultiEditFilesTool(Tool):
    """跨文件原子批量编辑工具"""

    def __init__(self, name: str = "MultiEditFiles", config: Optional[Config] = None):
        super().__init__(name=name, description=multi_edit_files_prompt, config=config)

    def run(self, parameters: Dict[str, Any]) -> str:
        """
        执行多文件编辑

        Args:
            parameters: 包含以下键的字典：
                - files: [{file_path, edits}]，按提交顺序排列（必填）
                - dry_run: 是否仅预览不写入
                - include_content: 是否返回每个文件的最终内容

        Returns:
            JSON 格式的响应字符串（遵循《通用工具响应协议》）
        """
        start_time = time.monotonic()
        params_input = dict(parameters)

        request, issues = parse_request(MultiEditFilesRequest, parameters)
        if request is None:
            return self._validation_error(issues, params_input, start_time)

        dry_run = self.config.default_dry_run if request.dry_run is None else request.dry_run
        include_content = (
            self.config.default_include_content if request.include_content is None else request.include_content
        )
        file_edits = [
            FileEdits(path=spec.file_path, edits=[e.to_operation() for e in spec.edits])
            for spec in request.files
        ]

        result = apply_edits_across_files(
            file_edits,
            dry_run=dry_run,
            include_content=True,
            sweep_max_age_s=self.config.temp_file_max_age_s if self.config.sweep_temp_files else None,
        )
        time_ms = int((time.monotonic() - start_time) * 1000)

        if result.validation_errors:
            return self._validation_error(result.validation_errors, params_input, start_time)

        data = self._render(result, file_edits, include_content)

        if not result.success:
            message = result.error.message
            if result.rollback is not None and result.rollback.files_failed_rollback:
                kept = ", ".join(
                    d.backup_path for d in result.rollback.details if d.status == "failed"
                )
                message += (
                    f" Rollback could not restore {result.rollback.files_failed_rollback} file(s);"
                    f" backups kept at: {kept}"
                )
            data.update({
                "retryable": result.error.retryable,
                "recovery_hints": result.error.recovery_hints,
            })
            if result.error.edit_index is not None:
                data["edit_index"] = result.error.edit_index
            return self.create_error_response(
                error_code=result.error.code,
                message=message,
                params_input=params_input,
                time_ms=time_ms,
                data=data,
            )

        text = self._summary_text(data, request.backup is False)
        stats = {
            "files_edited": data["files_edited"],
            "edits_applied": result.summary.total_edits,
        }
        if dry_run:
            return self.create_partial_response(
                data=data,
                text=text,
                params_input=params_input,
                time_ms=time_ms,
                extra_stats=stats,
            )
        return self.create_success_response(
            data=data,
            text=text,
            params_input=params_input,
            time_ms=time_ms,
            extra_stats=stats,
        )

    def _render(
        self,
        result: MultiFileTransactionResult,
        file_edits: List[FileEdits],
        include_content: bool,
    ) -> Dict[str, Any]:
        file_results = []
        for index, file_result in enumerate(result.file_results):
            if file_result.success:
                file_results.append(render_file_success(file_result, include_content, self.config))
            else:
                file_results.append(render_file_failure(file_result, file_edits[index].edits, self.config))

        data: Dict[str, Any] = {
            "applied": result.success and not result.dry_run,
            "dry_run": result.dry_run,
            "files_edited": 0 if result.dry_run else result.summary.files_succeeded,
            "file_results": file_results,
            "summary": result.summary.to_dict(),
        }
        if result.failed_file_index is not None:
            data["failed_file_index"] = result.failed_file_index
        if result.rollback is not None:
            data["rollback"] = result.rollback.to_dict()
        return data

    def _validation_error(self, issues, params_input: Dict[str, Any], start_time: float) -> str:
        code, message, data = validation_error_payload(issues)
        logger.info("MultiEditFiles request rejected: %s", message)
        return self.create_error_response(
            error_code=code,
            message=message,
            params_input=params_input,
            time_ms=int((time.monotonic() - start_time) * 1000),
            data=data,
        )

    @staticmethod
    def _summary_text(data: Dict[str, Any], backup_refused: bool) -> str:
        summary = data["summary"]
        if data["dry_run"]:
            text = (
                f"[Dry Run] Would apply {sum(r['edits_applied'] for r in data['file_results'])} edit(s) "
                f"across {summary['total_files']} file(s). No changes written."
            )
        else:
            text = f"Applied {summary['total_edits']} edit(s) across {data['files_edited']} file(s)."
        for file_result in data["file_results"]:
            text += f"\n- {file_result['file_path']}: {file_result['edits_applied']} edit(s)"
            if "backup_path" in file_result:
                text += f" (backup: {file_result['backup_path']})"
        if backup_refused:
            text += "\nNote: backup=false is ignored; multi-file edits always keep backups for rollback."
        return text

    def get_parameters(self) -> List[ToolParameter]:
        """获取工具参数定义"""
        return [
            ToolParameter(
                name="files",
                type="array",
                description="Files to edit in commit order, each with file_path and edits",
                required=True,
                items={
                    "type": "object",
                    "properties": {
                        "file_path": {"type": "string", "description": "Absolute path to an existing file"},
                        "edits": {"type": "array", "items": edit_parameter_items()},
                    },
                    "required": ["file_path", "edits"],
                },
            ),
            ToolParameter(
                name="dry_run",
                type="boolean",
                description="Simulate every file without writing (default: false)",
                required=False,
                default=False,
            ),
            ToolParameter(
                name="include_content",
                type="boolean",
                description="Return each file's resulting content (default: false)",
                required=False,
                default=False,
            ),
        ]
