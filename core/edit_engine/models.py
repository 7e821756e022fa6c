"""Data model for the edit engine.

Inputs are pydantic models (already schema-validated by the tool layer);
results are plain dataclasses created per call and never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import BaseModel, ConfigDict

from .errors import ErrorCode, get_recovery_hints, is_retryable


class EditOperation(BaseModel):
    """One requested literal replacement."""

    model_config = ConfigDict(frozen=True)

    old_string: str
    new_string: str
    replace_all: bool = False
    case_insensitive: bool = False


class FileEdits(BaseModel):
    """The ordered batch of edits for one file inside a multi-file request."""

    model_config = ConfigDict(frozen=True)

    path: str
    edits: List[EditOperation]


EditLike = Union[EditOperation, Dict[str, Any]]


def coerce_edits(edits: Iterable[EditLike]) -> List[EditOperation]:
    """Accept EditOperation instances or plain dicts; order is preserved."""
    return [e if isinstance(e, EditOperation) else EditOperation(**e) for e in edits]


def coerce_file_edits(items: Iterable[Any]) -> List[FileEdits]:
    result: List[FileEdits] = []
    for item in items:
        if isinstance(item, FileEdits):
            result.append(item)
        elif isinstance(item, dict):
            path = item.get("path", item.get("file_path"))
            result.append(FileEdits(path=str(path), edits=coerce_edits(item.get("edits") or [])))
        else:
            path, edits = item
            result.append(FileEdits(path=str(path), edits=coerce_edits(edits)))
    return result


# =============================================================================
# Simulation
# =============================================================================

@dataclass
class EditOutcome:
    old_string: str
    matches: int
    replaced: int
    success: bool = True
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "old_string": self.old_string,
            "matches": self.matches,
            "replaced": self.replaced,
            "success": self.success,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class SimulationFailure:
    """First failing edit of a batch; reason is MATCH_NOT_FOUND or AMBIGUOUS_MATCH."""

    reason: ErrorCode
    edit_index: int
    total_edits: int
    old_string: str
    content: str
    match_lines: List[int] = field(default_factory=list)

    @property
    def message(self) -> str:
        prefix = f"Edit {self.edit_index + 1} of {self.total_edits} failed"
        if self.reason == ErrorCode.AMBIGUOUS_MATCH:
            lines = ", ".join(str(n) for n in self.match_lines)
            return (
                f"{prefix}: Found {len(self.match_lines)} matches at lines {lines}. "
                "Use replace_all: true to replace all occurrences."
            )
        return f'{prefix}: "{self.old_string}" not found in file'


@dataclass
class SimulationResult:
    success: bool
    final_content: str
    outcomes: List[EditOutcome] = field(default_factory=list)
    edits_applied: int = 0
    failure: Optional[SimulationFailure] = None


# =============================================================================
# Errors & single-file results
# =============================================================================

@dataclass
class EditError:
    """Structured failure attached to a file result."""

    code: ErrorCode
    message: str
    path: Optional[str] = None
    edit_index: Optional[int] = None
    match_lines: List[int] = field(default_factory=list)
    cause: Optional[str] = None

    @property
    def retryable(self) -> bool:
        return is_retryable(self.code)

    @property
    def recovery_hints(self) -> List[str]:
        return get_recovery_hints(self.code)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "code": self.code.value,
            "message": self.message,
            "retryable": self.retryable,
            "recovery_hints": self.recovery_hints,
        }
        if self.path is not None:
            data["file_path"] = self.path
        if self.edit_index is not None:
            data["edit_index"] = self.edit_index
        if self.match_lines:
            data["match_lines"] = list(self.match_lines)
        if self.cause is not None:
            data["cause"] = self.cause
        return data


@dataclass
class FileTransactionResult:
    success: bool
    path: str
    dry_run: bool = False
    edits_applied: int = 0
    total_edits: int = 0
    outcomes: List[EditOutcome] = field(default_factory=list)
    backup_path: Optional[str] = None
    final_content: Optional[str] = None
    error: Optional[EditError] = None
    # 诊断用：失败时刻的内容（供外层提取上下文片段）
    content_at_failure: Optional[str] = None
    # 原始内容，仅在读取成功后保留，用于 diff 预览
    original_content: Optional[str] = field(default=None, repr=False)
    rolled_back: bool = False

    @property
    def failed_edit_index(self) -> Optional[int]:
        return self.error.edit_index if self.error is not None else None

    def to_dict(self, include_content: bool = False) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "success": self.success,
            "file_path": self.path,
            "dry_run": self.dry_run,
            "edits_applied": self.edits_applied,
            "results": [o.to_dict() for o in self.outcomes],
        }
        if self.backup_path is not None:
            data["backup_path"] = self.backup_path
        if self.rolled_back:
            data["rolled_back"] = True
        if self.error is not None:
            data["error"] = self.error.to_dict()
            data["failed_edit_index"] = self.error.edit_index
        if include_content and self.final_content is not None:
            data["final_content"] = self.final_content
        return data


# =============================================================================
# Multi-file transaction
# =============================================================================

@dataclass(frozen=True)
class CommittedFile:
    """A durably written file and the backup that can undo it (never optional)."""

    path: str
    backup_path: Path


@dataclass
class RollbackDetail:
    path: str
    status: str  # "restored" | "failed"
    backup_path: str
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"file_path": self.path, "status": self.status, "backup_path": self.backup_path}
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class RollbackReport:
    files_rolled_back: int = 0
    files_failed_rollback: int = 0
    details: List[RollbackDetail] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "files_rolled_back": self.files_rolled_back,
            "files_failed_rollback": self.files_failed_rollback,
            "details": [d.to_dict() for d in self.details],
        }


@dataclass
class BatchSummary:
    total_files: int = 0
    files_attempted: int = 0
    files_succeeded: int = 0
    files_failed: int = 0
    total_edits: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_files": self.total_files,
            "files_attempted": self.files_attempted,
            "files_succeeded": self.files_succeeded,
            "files_failed": self.files_failed,
            "total_edits": self.total_edits,
        }


@dataclass
class ValidationIssue:
    code: ErrorCode
    message: str
    location: List[str] = field(default_factory=list)
    recovery_hint: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "path": list(self.location),
            "recovery_hint": self.recovery_hint,
        }


@dataclass
class MultiFileTransactionResult:
    success: bool
    dry_run: bool = False
    file_results: List[FileTransactionResult] = field(default_factory=list)
    summary: BatchSummary = field(default_factory=BatchSummary)
    error: Optional[EditError] = None
    failed_file_index: Optional[int] = None
    validation_errors: List[ValidationIssue] = field(default_factory=list)
    rollback: Optional[RollbackReport] = None

    def to_dict(self, include_content: bool = False) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "success": self.success,
            "dry_run": self.dry_run,
            "files_edited": sum(1 for r in self.file_results if r.success and not r.rolled_back),
            "file_results": [r.to_dict(include_content) for r in self.file_results],
            "summary": self.summary.to_dict(),
        }
        if self.error is not None:
            data["error"] = self.error.to_dict()
        if self.failed_file_index is not None:
            data["failed_file_index"] = self.failed_file_index
        if self.validation_errors:
            data["validation_errors"] = [v.to_dict() for v in self.validation_errors]
        if self.rollback is not None:
            data["rollback"] = self.rollback.to_dict()
        return data
