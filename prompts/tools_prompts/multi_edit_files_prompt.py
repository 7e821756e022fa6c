"""MultiEditFilesTool 的提示词定义"""

multi_edit_files_prompt = """MultiEditFiles: Apply edit batches to SEVERAL files as one all-or-nothing operation.

## Purpose
Coordinated changes across files (rename a symbol and its call sites, move a config key). Either every file receives all of its edits, or every file is restored to its original content.

## How it works
1. The whole request is validated first and every problem is reported together. Nothing is touched on a validation failure.
2. Files are processed in the given order. Each file is backed up to `<file_path>.bak`, its edits are simulated, then it is written atomically.
3. The first failing file stops the batch. Files already written are restored from their backups in reverse order.
4. Backups are always created here (they are the rollback source) and are left on disk afterwards.

## Parameters
- `files` (array, required): At least one entry. Each entry has:
  - `file_path` (string, required): Absolute path to an existing file. Each file may appear only once (symlinks included).
  - `edits` (array, required): Same edit objects as MultiEdit (`old_string`, `new_string`, `replace_all`, `case_insensitive`).
- `dry_run` (boolean, optional): Simulate every file without writing. Default: false.
- `include_content` (boolean, optional): Return each file's resulting content. Default: false.

## Response Structure
- status: "success" | "partial" | "error"
- data.files_edited: Number of files changed
- data.file_results: Per-file result (edits, diff_preview, backup_path, or the error for the failing file)
- data.summary: {total_files, files_attempted, files_succeeded, files_failed, total_edits}
- data.failed_file_index: Index of the file that stopped the batch
- data.validation_errors: Every request problem, each with a path like ["files", "1", "edits", "0", "old_string"]
- data.rollback: {files_rolled_back, files_failed_rollback, details}. A failed restore leaves the backup for manual recovery.
- error: {code, message} (only when status="error")
"""
