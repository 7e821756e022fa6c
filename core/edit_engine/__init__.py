"""Atomic multi-edit engine.

Either every requested edit succeeds and is durably written, or the
file(s) are left exactly as they were found.

Example:
    from core.edit_engine import apply_edits, apply_edits_across_files

    result = apply_edits("/abs/path/app.py", [{"old_string": "foo", "new_string": "bar"}])
    batch = apply_edits_across_files([
        ("/abs/a.py", [{"old_string": "1", "new_string": "111"}]),
        ("/abs/b.py", [{"old_string": "2", "new_string": "222"}]),
    ])
"""

from .atomic_io import (
    atomic_write,
    backup_path_for,
    read_text_strict,
    restore_from_backup,
    sweep_stale_temp_files,
    write_backup,
)
from .coordinator import MultiFileTransaction, apply_edits_across_files
from .errors import EditEngineError, ErrorCode, classify_os_error, get_recovery_hints, is_retryable
from .matching import find_positions, find_spans, line_number_at, match_line_numbers, replace
from .models import (
    BatchSummary,
    CommittedFile,
    EditError,
    EditOperation,
    EditOutcome,
    FileEdits,
    FileTransactionResult,
    MultiFileTransactionResult,
    RollbackDetail,
    RollbackReport,
    SimulationFailure,
    SimulationResult,
    ValidationIssue,
)
from .simulator import simulate
from .transaction import apply_edits

__all__ = [
    "apply_edits",
    "apply_edits_across_files",
    "atomic_write",
    "backup_path_for",
    "BatchSummary",
    "classify_os_error",
    "CommittedFile",
    "EditEngineError",
    "EditError",
    "EditOperation",
    "EditOutcome",
    "ErrorCode",
    "FileEdits",
    "FileTransactionResult",
    "find_positions",
    "find_spans",
    "get_recovery_hints",
    "is_retryable",
    "line_number_at",
    "match_line_numbers",
    "MultiFileTransaction",
    "MultiFileTransactionResult",
    "read_text_strict",
    "replace",
    "restore_from_backup",
    "RollbackDetail",
    "RollbackReport",
    "simulate",
    "SimulationFailure",
    "SimulationResult",
    "sweep_stale_temp_files",
    "ValidationIssue",
    "write_backup",
]
