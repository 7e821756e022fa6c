"""编辑引擎错误分类

所有失败都归入一个封闭的错误码集合，调用方可以对 code 做穷举匹配，
而不需要解析自由文本。
"""

from __future__ import annotations

import errno
from enum import Enum
from pathlib import Path
from typing import FrozenSet, List, Optional, Union


class ErrorCode(str, Enum):
    """
    标准错误码

    - 输入校验类（可重试）：VALIDATION_FAILED ~ DUPLICATE_FILE_PATH
    - 匹配类（可重试）：MATCH_NOT_FOUND、AMBIGUOUS_MATCH
    - 文件系统类（不可重试）：FILE_NOT_FOUND ~ WRITE_FAILED
    - 其他：UNKNOWN_TOOL、INTERNAL_ERROR、UNKNOWN_ERROR
    """
    # 输入校验
    VALIDATION_FAILED = "VALIDATION_FAILED"
    RELATIVE_PATH = "RELATIVE_PATH"
    PATH_TRAVERSAL = "PATH_TRAVERSAL"
    EMPTY_EDITS = "EMPTY_EDITS"
    EMPTY_OLD_STRING = "EMPTY_OLD_STRING"
    DUPLICATE_OLD_STRING = "DUPLICATE_OLD_STRING"
    DUPLICATE_FILE_PATH = "DUPLICATE_FILE_PATH"
    # 匹配
    MATCH_NOT_FOUND = "MATCH_NOT_FOUND"
    AMBIGUOUS_MATCH = "AMBIGUOUS_MATCH"
    # 文件系统
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    IS_DIRECTORY = "IS_DIRECTORY"
    INVALID_ENCODING = "INVALID_ENCODING"
    DISK_FULL = "DISK_FULL"
    READ_ONLY_FS = "READ_ONLY_FS"
    SYMLINK_LOOP = "SYMLINK_LOOP"
    BACKUP_FAILED = "BACKUP_FAILED"
    WRITE_FAILED = "WRITE_FAILED"
    # 其他
    UNKNOWN_TOOL = "UNKNOWN_TOOL"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


RETRYABLE_CODES: FrozenSet[ErrorCode] = frozenset({
    ErrorCode.VALIDATION_FAILED,
    ErrorCode.RELATIVE_PATH,
    ErrorCode.PATH_TRAVERSAL,
    ErrorCode.EMPTY_EDITS,
    ErrorCode.EMPTY_OLD_STRING,
    ErrorCode.DUPLICATE_OLD_STRING,
    ErrorCode.DUPLICATE_FILE_PATH,
    ErrorCode.MATCH_NOT_FOUND,
    ErrorCode.AMBIGUOUS_MATCH,
})


_RECOVERY_HINTS = {
    ErrorCode.MATCH_NOT_FOUND: [
        "Check for whitespace differences between old_string and file content",
        "Re-read the file to see its current content before retrying",
    ],
    ErrorCode.AMBIGUOUS_MATCH: [
        "Use replace_all: true to replace all occurrences",
        "Make old_string more specific to match only the intended location",
    ],
    ErrorCode.FILE_NOT_FOUND: ["Check that the file path is correct and the file exists"],
    ErrorCode.PERMISSION_DENIED: ["Check file permissions or run with appropriate access"],
    ErrorCode.IS_DIRECTORY: ["Point file_path at a regular file, not a directory"],
    ErrorCode.VALIDATION_FAILED: ["Check input format matches the tool schema"],
    ErrorCode.RELATIVE_PATH: ["Provide an absolute file path starting with /"],
    ErrorCode.PATH_TRAVERSAL: ["Remove .. segments from the file path"],
    ErrorCode.EMPTY_EDITS: ["Provide at least one edit operation in the edits array"],
    ErrorCode.EMPTY_OLD_STRING: ["Each edit must have a non-empty old_string"],
    ErrorCode.DUPLICATE_OLD_STRING: [
        "Each edit must have a unique old_string",
        "Combine edits or make old_strings more specific",
    ],
    ErrorCode.DUPLICATE_FILE_PATH: [
        "Remove duplicate file paths from the files array",
        "Each file should appear only once",
    ],
    ErrorCode.INVALID_ENCODING: ["Ensure the file uses UTF-8 encoding"],
    ErrorCode.DISK_FULL: ["Free up disk space and retry"],
    ErrorCode.READ_ONLY_FS: ["Check that the file system is writable"],
    ErrorCode.SYMLINK_LOOP: ["Check for circular symlinks in the file path"],
    ErrorCode.BACKUP_FAILED: [
        "Check write permissions for the backup file location",
        "Use backup: false to skip backup creation (single-file edits only)",
    ],
    ErrorCode.WRITE_FAILED: ["Check write permissions for the target file"],
    ErrorCode.UNKNOWN_TOOL: ["Check the tool name matches a supported tool"],
}


def is_retryable(code: ErrorCode) -> bool:
    """输入修正后重试即可成功的错误码"""
    return code in RETRYABLE_CODES


def get_recovery_hints(code: ErrorCode) -> List[str]:
    """按错误码返回通用的恢复建议（不是具体指令）"""
    return list(_RECOVERY_HINTS.get(code, ["Check error details and retry"]))


class EditEngineError(Exception):
    """Typed error carrying a stable code, raised by the I/O primitives."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        path: Optional[Union[str, Path]] = None,
        cause: Optional[str] = None,
    ):
        super().__init__(message)
        self.code = ErrorCode(code)
        self.message = str(message or "")
        self.path = str(path) if path is not None else None
        self.cause = cause


_ERRNO_CODES = {
    errno.ENOENT: ErrorCode.FILE_NOT_FOUND,
    errno.EACCES: ErrorCode.PERMISSION_DENIED,
    errno.EPERM: ErrorCode.PERMISSION_DENIED,
    errno.ENOSPC: ErrorCode.DISK_FULL,
    errno.EROFS: ErrorCode.READ_ONLY_FS,
    errno.ELOOP: ErrorCode.SYMLINK_LOOP,
    errno.EISDIR: ErrorCode.IS_DIRECTORY,
}
if hasattr(errno, "EDQUOT"):
    _ERRNO_CODES[errno.EDQUOT] = ErrorCode.DISK_FULL


def classify_os_error(exc: BaseException) -> ErrorCode:
    """
    将底层异常映射为错误码

    Args:
        exc: 捕获到的异常（OSError / UnicodeDecodeError / EditEngineError）

    Returns:
        对应的 ErrorCode，无法识别时为 UNKNOWN_ERROR
    """
    if isinstance(exc, EditEngineError):
        return exc.code
    if isinstance(exc, UnicodeDecodeError):
        return ErrorCode.INVALID_ENCODING
    if isinstance(exc, OSError) and exc.errno is not None:
        return _ERRNO_CODES.get(exc.errno, ErrorCode.UNKNOWN_ERROR)
    return ErrorCode.UNKNOWN_ERROR


def describe_os_error(exc: BaseException, path: Union[str, Path]) -> str:
    """生成带路径的人类可读错误描述"""
    code = classify_os_error(exc)
    if isinstance(exc, EditEngineError):
        return exc.message
    reason = exc.strerror if isinstance(exc, OSError) and exc.strerror else str(exc)
    if code == ErrorCode.FILE_NOT_FOUND:
        return f"File not found: {path}. Check that the file exists."
    if code == ErrorCode.PERMISSION_DENIED:
        return f"Permission denied: {path}. Check file permissions."
    if code == ErrorCode.DISK_FULL:
        return f"No space left on device while writing {path}: {reason}"
    if code == ErrorCode.READ_ONLY_FS:
        return f"Read-only file system: {path}"
    if code == ErrorCode.SYMLINK_LOOP:
        return f"Too many symbolic links in path: {path}"
    if code == ErrorCode.IS_DIRECTORY:
        return f"Path is a directory, not a file: {path}"
    if code == ErrorCode.INVALID_ENCODING:
        return f"File contains invalid UTF-8 encoding: {path}. Ensure the file is UTF-8 encoded."
    return f"File error on {path}: {reason}"
