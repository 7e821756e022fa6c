"""Multi-file transaction coordinator.

Validate everything, commit file by file in the given order, and roll the
committed files back in reverse order if a later file fails. Backups are
mandatory here: the ``.bak`` file is the rollback source.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .atomic_io import restore_from_backup, sweep_stale_temp_files
from .errors import ErrorCode, describe_os_error
from .models import (
    BatchSummary,
    CommittedFile,
    EditError,
    FileEdits,
    FileTransactionResult,
    MultiFileTransactionResult,
    RollbackDetail,
    RollbackReport,
    coerce_file_edits,
)
from .transaction import apply_edits
from .validation import validate_batch

logger = logging.getLogger(__name__)


class MultiFileTransaction:
    """
    One N-file all-or-nothing batch.

    ``written_files`` only ever holds files whose atomic write succeeded,
    and rollback walks nothing else.
    """

    def __init__(
        self,
        file_edits: Iterable[Any],
        dry_run: bool = False,
        include_content: bool = False,
        sweep_max_age_s: Optional[float] = None,
    ):
        self.file_edits: List[FileEdits] = coerce_file_edits(file_edits)
        self.dry_run = dry_run
        self.include_content = include_content
        self.sweep_max_age_s = sweep_max_age_s
        self.written_files: List[CommittedFile] = []
        self.backups: Dict[str, Path] = {}
        self.file_results: List[FileTransactionResult] = []

    def run(self) -> MultiFileTransactionResult:
        resolved_paths, issues = validate_batch(self.file_edits)
        if issues:
            logger.warning("Multi-file batch rejected: %d validation issue(s)", len(issues))
            return MultiFileTransactionResult(
                success=False,
                dry_run=self.dry_run,
                summary=BatchSummary(total_files=len(self.file_edits)),
                error=EditError(
                    code=ErrorCode.VALIDATION_FAILED,
                    message=f"Batch validation failed with {len(issues)} issue(s); no file was modified",
                ),
                validation_errors=issues,
            )

        if self.sweep_max_age_s is not None:
            for directory in sorted({str(Path(p).parent) for p in resolved_paths if p}):
                sweep_stale_temp_files(directory, self.sweep_max_age_s)

        failed_index, error = self._commit_all(resolved_paths)
        if failed_index is None:
            logger.info(
                "Multi-file batch %s: %d file(s)",
                "simulated" if self.dry_run else "committed",
                len(self.file_results),
            )
            return MultiFileTransactionResult(
                success=True,
                dry_run=self.dry_run,
                file_results=self.file_results,
                summary=self._summary(),
            )

        failed_path = self.file_results[failed_index].path
        rollback = self.rollback()
        return MultiFileTransactionResult(
            success=False,
            dry_run=self.dry_run,
            file_results=self.file_results,
            summary=self._summary(),
            error=EditError(
                code=error.code,
                message=f"Failed to edit file {failed_path}: {error.message}",
                path=failed_path,
                edit_index=error.edit_index,
                match_lines=list(error.match_lines),
                cause=error.cause,
            ),
            failed_file_index=failed_index,
            rollback=rollback,
        )

    # ------------------------------------------------------------------
    # Phase B: backup + commit, fail-fast
    # ------------------------------------------------------------------

    def _commit_all(self, resolved_paths: List[Optional[str]]) -> Tuple[Optional[int], Optional[EditError]]:
        for index, item in enumerate(self.file_edits):
            path = resolved_paths[index] or item.path
            logger.debug("File %d/%d: %s", index + 1, len(self.file_edits), path)
            try:
                result = apply_edits(
                    path,
                    item.edits,
                    dry_run=self.dry_run,
                    backup=True,
                    include_content=self.include_content,
                )
            except Exception as exc:
                # rollback must still run for anything the single-file layer did not map
                logger.exception("Unexpected failure while editing %s", path)
                result = FileTransactionResult(
                    success=False,
                    path=path,
                    dry_run=self.dry_run,
                    total_edits=len(item.edits),
                    error=EditError(code=ErrorCode.INTERNAL_ERROR, message=str(exc), path=path),
                )

            self.file_results.append(result)
            if result.backup_path is not None:
                self.backups[path] = Path(result.backup_path)
            if not result.success:
                return index, result.error
            if not self.dry_run:
                self.written_files.append(CommittedFile(path=path, backup_path=self.backups[path]))
        return None, None

    # ------------------------------------------------------------------
    # Phase C: reverse-order rollback
    # ------------------------------------------------------------------

    def rollback(self) -> RollbackReport:
        """Restore every committed file from its backup, most recent first."""
        report = RollbackReport()
        results_by_path = {r.path: r for r in self.file_results}

        for committed in reversed(self.written_files):
            try:
                restore_from_backup(committed.path, committed.backup_path)
            except OSError as exc:
                message = describe_os_error(exc, committed.path)
                logger.warning(
                    "Rollback failed for %s, backup kept at %s: %s",
                    committed.path, committed.backup_path, message,
                )
                report.files_failed_rollback += 1
                report.details.append(RollbackDetail(
                    path=committed.path,
                    status="failed",
                    backup_path=str(committed.backup_path),
                    error=message,
                ))
                continue

            logger.info("Rolled back %s from %s", committed.path, committed.backup_path)
            report.files_rolled_back += 1
            report.details.append(RollbackDetail(
                path=committed.path,
                status="restored",
                backup_path=str(committed.backup_path),
            ))
            if committed.path in results_by_path:
                results_by_path[committed.path].rolled_back = True

        return report

    def _summary(self) -> BatchSummary:
        kept = [r for r in self.file_results if r.success and not r.rolled_back]
        return BatchSummary(
            total_files=len(self.file_edits),
            files_attempted=len(self.file_results),
            files_succeeded=len(kept),
            files_failed=sum(1 for r in self.file_results if not r.success),
            total_edits=sum(r.edits_applied for r in kept),
        )


def apply_edits_across_files(
    file_edits: Iterable[Any],
    dry_run: bool = False,
    include_content: bool = False,
    sweep_max_age_s: Optional[float] = None,
) -> MultiFileTransactionResult:
    """
    Apply per-file edit batches as one all-or-nothing unit.

    Args:
        file_edits: ``FileEdits`` items, ``{"path"/"file_path", "edits"}``
            dicts or ``(path, edits)`` pairs, in commit order
        dry_run: simulate every file (backups are still taken) without writing
        include_content: keep each file's final content in its result
        sweep_max_age_s: when set, remove stale temp files older than this
            from every target directory once validation has passed
    """
    return MultiFileTransaction(
        file_edits,
        dry_run=dry_run,
        include_content=include_content,
        sweep_max_age_s=sweep_max_age_s,
    ).run()
