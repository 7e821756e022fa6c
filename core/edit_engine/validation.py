"""Request-level validation shared by the tools and the multi-file coordinator.

Every check returns ``ValidationIssue`` records instead of raising, so a
batch can report all of its problems in one pass.
"""

from __future__ import annotations

import errno
import os
from pathlib import Path, PurePath
from typing import Dict, List, Optional, Sequence, Tuple

from .errors import ErrorCode
from .models import EditOperation, FileEdits, ValidationIssue
from .reporting import truncate_for_display


def validate_path(file_path: str, location: Sequence[str] = ("file_path",)) -> Optional[ValidationIssue]:
    """Absolute path without ``..`` segments, or an issue describing why not."""
    shown = truncate_for_display(file_path, 50)
    if not file_path:
        return ValidationIssue(
            code=ErrorCode.VALIDATION_FAILED,
            message="file_path is required",
            location=list(location),
            recovery_hint="Provide an absolute path to an existing file",
        )
    if not os.path.isabs(file_path):
        return ValidationIssue(
            code=ErrorCode.RELATIVE_PATH,
            message=f'Path must be absolute, received: "{shown}"',
            location=list(location),
            recovery_hint="Use absolute path (e.g., /home/user/project/file.ts)",
        )
    if ".." in PurePath(file_path).parts:
        return ValidationIssue(
            code=ErrorCode.PATH_TRAVERSAL,
            message=f'Path contains directory traversal (..) which is not allowed: "{shown}"',
            location=list(location),
            recovery_hint='Use resolved absolute path without ".." segments',
        )
    return None


def resolve_existing_file(
    file_path: str,
    location: Sequence[str] = ("file_path",),
) -> Tuple[Optional[str], Optional[ValidationIssue]]:
    """
    Resolve symlinks and check the target is an existing, readable file.

    Returns:
        (resolved_path, None) on success, (None, issue) otherwise
    """
    shown = truncate_for_display(file_path, 50)
    try:
        resolved = Path(file_path).resolve(strict=True)
    except RuntimeError:
        # Python < 3.13 reports symlink loops as RuntimeError
        return None, _loop_issue(shown, location)
    except OSError as exc:
        if exc.errno == errno.ELOOP:
            return None, _loop_issue(shown, location)
        if exc.errno in (errno.EACCES, errno.EPERM):
            return None, ValidationIssue(
                code=ErrorCode.PERMISSION_DENIED,
                message=f'Permission denied accessing: "{shown}"',
                location=list(location),
                recovery_hint="Check file permissions or run with appropriate access",
            )
        if exc.errno == errno.ENOENT:
            return None, _missing_issue(shown, location)
        return None, ValidationIssue(
            code=ErrorCode.UNKNOWN_ERROR,
            message=f'Cannot access file: "{shown}" ({exc.strerror or exc})',
            location=list(location),
            recovery_hint="Check file path and system error details",
        )

    if resolved.is_dir():
        return None, ValidationIssue(
            code=ErrorCode.IS_DIRECTORY,
            message=f'Path is a directory, not a file: "{shown}"',
            location=list(location),
            recovery_hint="Point file_path at a regular file",
        )
    if not resolved.is_file():
        return None, _missing_issue(shown, location)
    if not os.access(resolved, os.R_OK):
        return None, ValidationIssue(
            code=ErrorCode.PERMISSION_DENIED,
            message=f'File is not readable: "{shown}"',
            location=list(location),
            recovery_hint="Check file permissions or run with appropriate access",
        )
    return str(resolved), None


def _missing_issue(shown: str, location: Sequence[str]) -> ValidationIssue:
    return ValidationIssue(
        code=ErrorCode.FILE_NOT_FOUND,
        message=f'File does not exist: "{shown}"',
        location=list(location),
        recovery_hint="Check the file path and ensure the file exists",
    )


def _loop_issue(shown: str, location: Sequence[str]) -> ValidationIssue:
    return ValidationIssue(
        code=ErrorCode.SYMLINK_LOOP,
        message=f'Too many symbolic links in path: "{shown}"',
        location=list(location),
        recovery_hint="Check for circular symlink references",
    )


def find_duplicate_old_strings(edits: Sequence[EditOperation]) -> List[int]:
    """Indices of edits whose old_string already appeared earlier in the batch."""
    seen = set()
    duplicates: List[int] = []
    for index, edit in enumerate(edits):
        if edit.old_string in seen:
            duplicates.append(index)
        seen.add(edit.old_string)
    return duplicates


def validate_edits(
    edits: Sequence[EditOperation],
    location: Sequence[str] = (),
) -> List[ValidationIssue]:
    """Empty batch, empty old_string and duplicate old_string checks."""
    prefix = list(location)
    if not edits:
        return [ValidationIssue(
            code=ErrorCode.EMPTY_EDITS,
            message="At least one edit is required",
            location=prefix + ["edits"],
            recovery_hint="Provide at least one edit operation in the edits array",
        )]

    issues: List[ValidationIssue] = []
    for index, edit in enumerate(edits):
        if not edit.old_string:
            issues.append(ValidationIssue(
                code=ErrorCode.EMPTY_OLD_STRING,
                message=f"edits[{index}].old_string cannot be empty",
                location=prefix + ["edits", str(index), "old_string"],
                recovery_hint="Each edit must have a non-empty old_string",
            ))
    for index in find_duplicate_old_strings(edits):
        old = edits[index].old_string
        if not old:
            continue
        issues.append(ValidationIssue(
            code=ErrorCode.DUPLICATE_OLD_STRING,
            message=f'Duplicate old_string at edits[{index}]: "{truncate_for_display(old, 40)}"',
            location=prefix + ["edits", str(index), "old_string"],
            recovery_hint="Combine edits or make old_strings more specific",
        ))
    return issues


def validate_batch(file_edits: Sequence[FileEdits]) -> Tuple[List[Optional[str]], List[ValidationIssue]]:
    """
    Validate a whole multi-file batch without side effects.

    Checks run in a fixed order and every violation is collected:
    path shape + existence/readability, duplicate resolved paths
    (symlink aliases included), then each file's edit list.

    Returns:
        (resolved paths aligned with the input, issues)
    """
    issues: List[ValidationIssue] = []
    resolved_paths: List[Optional[str]] = []

    for index, item in enumerate(file_edits):
        location = ["files", str(index), "file_path"]
        issue = validate_path(item.path, location)
        resolved: Optional[str] = None
        if issue is None:
            resolved, issue = resolve_existing_file(item.path, location)
        if issue is not None:
            issues.append(issue)
        resolved_paths.append(resolved)

    first_seen: Dict[str, int] = {}
    for index, resolved in enumerate(resolved_paths):
        if resolved is None:
            continue
        if resolved in first_seen:
            issues.append(ValidationIssue(
                code=ErrorCode.DUPLICATE_FILE_PATH,
                message=(
                    f"files[{index}] resolves to the same file as files[{first_seen[resolved]}]: "
                    f'"{truncate_for_display(resolved, 50)}"'
                ),
                location=["files", str(index), "file_path"],
                recovery_hint="Each file should appear only once",
            ))
        else:
            first_seen[resolved] = index

    for index, item in enumerate(file_edits):
        issues.extend(validate_edits(item.edits, ["files", str(index)]))

    return resolved_paths, issues
