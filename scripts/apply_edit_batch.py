"""Apply a MultiEdit / MultiEditFiles batch described in a JSON file.

Usage:
    python scripts/apply_edit_batch.py batch.json [--dry-run] [--no-backup] [--include-content] [--json]

The batch file holds either a single-file request ({"file_path", "edits"})
or a multi-file request ({"files": [...]}).

Exit codes: 0 success, 1 edit failure, 2 unreadable input.
"""

import argparse
import json
import os
import sys
from typing import Any, Dict, List, Optional, Tuple

# Ensure project root is on sys.path when running as a script
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from core.env import load_env

load_env()

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.theme import Theme

from core.config import Config
from tools.registry import create_default_registry
from utils import setup_logger

custom_theme = Theme({
    "info": "bright_cyan",
    "warning": "bright_yellow",
    "error": "bold bright_red",
    "success": "bold bright_green",
})

console = Console(theme=custom_theme)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_BAD_INPUT = 2


def load_batch(path: str) -> Dict[str, Any]:
    """读取批处理文件，必须是 JSON 对象"""
    with open(path, "r", encoding="utf-8") as f:
        batch = json.load(f)
    if not isinstance(batch, dict):
        raise ValueError("batch file must contain a JSON object")
    return batch


def build_request(batch: Dict[str, Any], args: argparse.Namespace) -> Tuple[str, Dict[str, Any]]:
    """根据批处理内容选择工具，并叠加命令行开关"""
    params = dict(batch)
    if args.dry_run:
        params["dry_run"] = True
    if args.no_backup:
        params["backup"] = False
    if args.include_content:
        params["include_content"] = True
    tool_name = "MultiEditFiles" if "files" in params else "MultiEdit"
    return tool_name, params


def render(response: Dict[str, Any]) -> None:
    status = response.get("status")
    data = response.get("data") or {}
    style = {"success": "success", "partial": "warning"}.get(status, "error")

    file_results: List[Dict[str, Any]] = data.get("file_results") or ([data] if "file_path" in data else [])
    if file_results:
        table = Table(title="Files", show_lines=False)
        table.add_column("File", style="info")
        table.add_column("Edits", justify="right")
        table.add_column("Backup")
        table.add_column("Result")
        for item in file_results:
            if item.get("error_code"):
                outcome = f"[error]{item['error_code']}[/error]"
            elif item.get("rolled_back"):
                outcome = "[warning]rolled back[/warning]"
            elif item.get("dry_run"):
                outcome = "[warning]dry run[/warning]"
            else:
                outcome = "[success]written[/success]"
            table.add_row(
                str(item.get("file_path", "")),
                str(item.get("edits_applied", 0)),
                str(item.get("backup_path", "-")),
                outcome,
            )
        console.print(table)

        for item in file_results:
            preview = item.get("diff_preview")
            if preview and preview != "No changes":
                console.print(Syntax(preview, "diff", theme="ansi_dark", word_wrap=True))

    for issue in data.get("validation_errors") or []:
        location = ".".join(issue.get("path") or [])
        console.print(f"[error]{issue['code']}[/error] {location}: {issue['message']}")

    rollback = data.get("rollback")
    if rollback:
        console.print(
            f"Rollback: {rollback['files_rolled_back']} restored, "
            f"{rollback['files_failed_rollback']} failed"
        )

    console.print(Panel(response.get("text", ""), title=f"[{style}]{status}[/{style}]", border_style=style))


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Apply an atomic multi-edit batch from a JSON file")
    parser.add_argument("batch", help="path to the batch JSON file")
    parser.add_argument("--dry-run", action="store_true", help="simulate without writing")
    parser.add_argument("--no-backup", action="store_true", help="skip the .bak backup (single-file only)")
    parser.add_argument("--include-content", action="store_true", help="include final file content")
    parser.add_argument("--json", action="store_true", help="print the raw JSON response")
    args = parser.parse_args(argv)

    config = Config.from_env()
    setup_logger("core", level="DEBUG" if config.debug else config.log_level)
    setup_logger("tools", level="DEBUG" if config.debug else config.log_level)

    try:
        batch = load_batch(args.batch)
    except (OSError, ValueError) as e:
        console.print(f"[error]Cannot read batch file {args.batch}: {e}[/error]")
        return EXIT_BAD_INPUT

    tool_name, params = build_request(batch, args)
    registry = create_default_registry(config)
    response_str = registry.execute_tool(tool_name, params)

    if args.json:
        print(response_str)
    else:
        render(json.loads(response_str))

    status = json.loads(response_str).get("status")
    return EXIT_OK if status in ("success", "partial") else EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
