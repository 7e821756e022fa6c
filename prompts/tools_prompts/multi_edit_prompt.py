"""MultiEditTool 的提示词定义

该提示词用于向 LLM 描述 MultiEdit 工具的功能和使用方式。
"""

multi_edit_prompt = """MultiEdit: Apply several literal find-and-replace edits to ONE file atomically.

## Purpose
Make multiple surgical edits to a single existing file in one call. Either every edit succeeds and the file is written once, or the file is left exactly as it was.

## How edits are applied
1. Edits run **sequentially**: edit N sees the text produced by edits 1..N-1, not the original file.
2. Matching is literal (no regex). `case_insensitive: true` ignores letter case.
3. An edit whose `old_string` equals its `new_string` is a no-op and always succeeds.
4. All edits are simulated in memory first; nothing is written unless all of them succeed.
5. The new content is written to a temporary file in the same directory and renamed over the target.

## Parameters
- `file_path` (string, required): Absolute path to an existing file. No `..` segments.
- `edits` (array, required): At least one edit. Each edit has:
  - `old_string` (string, required): Exact text to find. Non-empty, unique within the batch.
  - `new_string` (string, required): Replacement text. May be empty to delete.
  - `replace_all` (boolean, optional): Replace every occurrence. Default: false.
  - `case_insensitive` (boolean, optional): Case-insensitive matching. Default: false.
- `dry_run` (boolean, optional): Simulate and return a diff without writing. Default: false.
- `backup` (boolean, optional): Save the original as `<file_path>.bak` before editing. Default: true.
- `include_content` (boolean, optional): Return the resulting file content. Default: false.

## Important Rules
1. Without `replace_all`, `old_string` must occur **exactly once** in the current text. Add surrounding context to disambiguate.
2. `replace_all` still fails when `old_string` does not occur at all.
3. Because edits are sequential, an earlier edit can create or remove text that a later edit targets.
4. The backup is taken before the edits are checked, even on dry run.
5. Use Write for new files. MultiEdit only works on existing UTF-8 text files.

## Response Structure
- status: "success" | "partial" | "error"
  - "success": all edits applied and written
  - "partial": dry run (nothing written)
  - "error": validation, match or file-system failure (file untouched)
- data.applied: Whether the file was written
- data.edits_applied: Number of edits applied
- data.edits: Per-edit {old_string, matched, matches, occurrences_replaced}
- data.diff_preview: Unified diff of the change
- data.backup_path: Location of the backup, when one was created
- data.final_content: Resulting content (only with include_content)
- On error: data.edit_index, data.edit_status, data.context, data.retryable, data.recovery_hints
- error: {code, message} (only when status="error")

## Error Codes
- `VALIDATION_FAILED`, `RELATIVE_PATH`, `PATH_TRAVERSAL`, `EMPTY_EDITS`, `EMPTY_OLD_STRING`, `DUPLICATE_OLD_STRING`: fix the request
- `MATCH_NOT_FOUND`: Re-read the file; `data.context.snippet` shows nearby text
- `AMBIGUOUS_MATCH`: Add context or set replace_all; `data.context.match_locations` lists the matches
- `FILE_NOT_FOUND`, `IS_DIRECTORY`, `PERMISSION_DENIED`, `INVALID_ENCODING`, `SYMLINK_LOOP`: target problems
- `BACKUP_FAILED`: Backup could not be written; nothing was changed
- `DISK_FULL`, `READ_ONLY_FS`, `WRITE_FAILED`: Write failed; the original file is intact
"""
