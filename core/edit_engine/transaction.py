"""单文件事务

READ -> (BACKUP) -> SIMULATE -> [dry_run 停止] -> WRITE -> DONE

写入之前的任何失败都不会触碰目标文件；所有文件/编码/匹配错误都以
结构化结果返回，不向调用方抛出异常。
"""

import logging
from pathlib import Path
from typing import Iterable, List, Union

from .atomic_io import atomic_write, read_text_strict, write_backup
from .errors import EditEngineError, ErrorCode, classify_os_error, describe_os_error
from .models import EditError, EditLike, EditOperation, FileTransactionResult, coerce_edits
from .simulator import simulate

logger = logging.getLogger(__name__)


def apply_edits(
    path: Union[str, Path],
    edits: Iterable[EditLike],
    dry_run: bool = False,
    backup: bool = True,
    include_content: bool = False,
) -> FileTransactionResult:
    """
    对单个文件原子地应用一批编辑

    Args:
        path: 目标文件路径（调用方已校验为存在的绝对路径）
        edits: 有序的编辑列表
        dry_run: 仅模拟，不写入目标文件（备份仍会创建）
        backup: 是否在编辑前创建 <path>.bak
        include_content: 是否在结果中携带最终内容

    Returns:
        FileTransactionResult
    """
    operations: List[EditOperation] = coerce_edits(edits)
    file_path = str(path)
    result = FileTransactionResult(
        success=False,
        path=file_path,
        dry_run=dry_run,
        total_edits=len(operations),
    )

    # =====================================================================
    # READ
    # =====================================================================

    try:
        raw, content = read_text_strict(file_path)
    except (OSError, EditEngineError) as exc:
        result.error = _file_error(exc, file_path)
        logger.warning("Read failed for %s: %s", file_path, result.error.message)
        return result
    result.original_content = content

    # =====================================================================
    # BACKUP（先于模拟，dry_run 也创建）
    # =====================================================================

    if backup:
        try:
            result.backup_path = str(write_backup(file_path, raw))
        except EditEngineError as exc:
            result.error = EditError(
                code=exc.code,
                message=exc.message,
                path=exc.path,
                cause=exc.cause,
            )
            logger.warning("Aborting edits on %s: %s", file_path, exc.message)
            return result

    # =====================================================================
    # SIMULATE
    # =====================================================================

    simulation = simulate(content, operations)
    result.outcomes = simulation.outcomes
    result.edits_applied = simulation.edits_applied

    if not simulation.success:
        failure = simulation.failure
        result.error = EditError(
            code=failure.reason,
            message=failure.message,
            path=file_path,
            edit_index=failure.edit_index,
            match_lines=list(failure.match_lines),
        )
        result.content_at_failure = failure.content
        logger.info("Edits rejected for %s: %s", file_path, failure.message)
        return result

    # 最终内容必须能编码成 UTF-8（例如孤立代理字符无法写入），dry_run 同样校验
    try:
        payload = simulation.final_content.encode("utf-8")
    except UnicodeEncodeError as exc:
        result.error = EditError(
            code=ErrorCode.INVALID_ENCODING,
            message=(
                f"Edited content for {file_path} cannot be encoded as UTF-8 "
                f"(character {exc.object[exc.start:exc.end]!r} at offset {exc.start})"
            ),
            path=file_path,
            cause=str(exc),
        )
        result.edits_applied = 0
        logger.warning("Edits rejected for %s: %s", file_path, result.error.message)
        return result

    if include_content or dry_run:
        result.final_content = simulation.final_content

    if dry_run:
        result.success = True
        logger.debug("Dry run for %s: %d edits would apply", file_path, result.edits_applied)
        return result

    # =====================================================================
    # WRITE
    # =====================================================================

    try:
        atomic_write(file_path, payload)
    except OSError as exc:
        code = classify_os_error(exc)
        result.error = EditError(
            code=ErrorCode.WRITE_FAILED if code == ErrorCode.UNKNOWN_ERROR else code,
            message=describe_os_error(exc, file_path),
            path=file_path,
            cause=str(exc),
        )
        result.edits_applied = 0
        logger.warning("Write failed for %s: %s", file_path, result.error.message)
        return result

    result.success = True
    logger.info("Applied %d edits to %s", result.edits_applied, file_path)
    return result


def _file_error(exc: Exception, path: str) -> EditError:
    if isinstance(exc, EditEngineError):
        return EditError(code=exc.code, message=exc.message, path=exc.path or path, cause=exc.cause)
    return EditError(
        code=classify_os_error(exc),
        message=describe_os_error(exc, path),
        path=path,
        cause=str(exc),
    )
