"""MultiEditTool 单元测试

遵循《通用工具响应协议》规范，测试 MultiEdit 工具的各项功能。

运行方式：
    python -m pytest tests/test_multi_edit_tool.py -v
    python -m unittest tests.test_multi_edit_tool -v
"""

import os
import time
import unittest

from core.config import Config
from core.edit_engine.atomic_io import backup_path_for
from core.edit_engine.errors import ErrorCode
from tools.builtin.multi_edit import MultiEditTool
from tests.utils.protocol_validator import ProtocolValidator
from tests.utils.test_helpers import create_temp_project, parse_response


class TestMultiEditTool(unittest.TestCase):
    """MultiEditTool 单元测试套件

    覆盖场景：
    1. Success（成功）：单处/多处编辑、顺序编辑、备份
    2. Partial（部分成功）：dry_run 模式
    3. Error（错误）：参数校验、MATCH_NOT_FOUND、AMBIGUOUS_MATCH、文件问题
    """

    # ========================================================================
    # 辅助方法
    # ========================================================================

    def _validate_and_assert(self, response_str: str, expected_status: str = None) -> dict:
        """验证协议合规性并返回解析结果"""
        result = ProtocolValidator.validate(response_str, tool_type="multi_edit")
        if not result.passed:
            self.fail("\n协议验证失败\n" + "\n".join(f"  {e}" for e in result.errors))

        parsed = parse_response(response_str)
        if expected_status:
            self.assertEqual(parsed["status"], expected_status,
                             f"期望 status='{expected_status}'，实际 '{parsed['status']}': {parsed['text']}")
        return parsed

    def _tool(self, **config_overrides) -> MultiEditTool:
        return MultiEditTool(config=Config(**config_overrides))

    # ========================================================================
    # Success 场景
    # ========================================================================

    def test_success_single_edit(self):
        """单处替换，写入并创建备份"""
        with create_temp_project({"greet.txt": "hello world"}) as project:
            path = project.path("greet.txt")
            response = self._tool().run({
                "file_path": str(path),
                "edits": [{"old_string": "hello", "new_string": "goodbye"}],
            })
            parsed = self._validate_and_assert(response, "success")
            data = parsed["data"]

            self.assertTrue(data["applied"])
            self.assertEqual(data["edits_applied"], 1)
            self.assertEqual(data["edits"][0]["occurrences_replaced"], 1)
            self.assertEqual(data["backup_path"], str(backup_path_for(path)))
            self.assertNotIn("final_content", data)
            self.assertIn("+goodbye world", data["diff_preview"])
            self.assertEqual(parsed["context"]["path_resolved"], str(path))
            self.assertEqual(project.read("greet.txt"), "goodbye world")
            self.assertEqual(backup_path_for(path).read_text(), "hello world")

    def test_success_sequential_edits(self):
        """后一个编辑作用于前一个编辑的结果"""
        with create_temp_project({"a.py": "x = 1\n"}) as project:
            response = self._tool().run({
                "file_path": str(project.path("a.py")),
                "edits": [
                    {"old_string": "x = 1", "new_string": "y = 1"},
                    {"old_string": "y = 1", "new_string": "y = 2"},
                ],
            })
            self._validate_and_assert(response, "success")
            self.assertEqual(project.read("a.py"), "y = 2\n")

    def test_success_replace_all_and_case_insensitive(self):
        with create_temp_project({"a.txt": "Foo foo FOO"}) as project:
            response = self._tool().run({
                "file_path": str(project.path("a.txt")),
                "edits": [{"old_string": "foo", "new_string": "bar", "replace_all": True, "case_insensitive": True}],
            })
            parsed = self._validate_and_assert(response, "success")
            self.assertEqual(parsed["data"]["edits"][0]["occurrences_replaced"], 3)
            self.assertEqual(project.read("a.txt"), "bar bar bar")

    def test_include_content(self):
        with create_temp_project({"a.txt": "a"}) as project:
            response = self._tool().run({
                "file_path": str(project.path("a.txt")),
                "edits": [{"old_string": "a", "new_string": "b"}],
                "include_content": True,
            })
            parsed = self._validate_and_assert(response, "success")
            self.assertEqual(parsed["data"]["final_content"], "b")

    def test_backup_disabled(self):
        with create_temp_project({"a.txt": "a"}) as project:
            response = self._tool().run({
                "file_path": str(project.path("a.txt")),
                "edits": [{"old_string": "a", "new_string": "b"}],
                "backup": False,
            })
            parsed = self._validate_and_assert(response, "success")
            self.assertNotIn("backup_path", parsed["data"])
            self.assertFalse(backup_path_for(project.path("a.txt")).exists())

    # ========================================================================
    # Partial 场景
    # ========================================================================

    def test_dry_run_is_partial_and_keeps_file(self):
        with create_temp_project({"x.txt": "x"}) as project:
            path = project.path("x.txt")
            response = self._tool().run({
                "file_path": str(path),
                "edits": [{"old_string": "x", "new_string": "y"}],
                "dry_run": True,
            })
            parsed = self._validate_and_assert(response, "partial")
            data = parsed["data"]

            self.assertFalse(data["applied"])
            self.assertTrue(data["dry_run"])
            self.assertIn("+y", data["diff_preview"])
            self.assertIn("Dry Run", parsed["text"])
            self.assertEqual(project.read("x.txt"), "x")
            self.assertEqual(backup_path_for(path).read_text(), "x")

    def test_config_default_dry_run(self):
        with create_temp_project({"x.txt": "x"}) as project:
            response = self._tool(default_dry_run=True).run({
                "file_path": str(project.path("x.txt")),
                "edits": [{"old_string": "x", "new_string": "y"}],
            })
            self._validate_and_assert(response, "partial")
            self.assertEqual(project.read("x.txt"), "x")

    def test_truncated_diff_is_partial(self):
        content = "".join(f"line{i}\n" for i in range(20))
        with create_temp_project({"a.txt": content}) as project:
            response = self._tool(max_diff_lines=3).run({
                "file_path": str(project.path("a.txt")),
                "edits": [{"old_string": "line", "new_string": "LINE", "replace_all": True}],
            })
            parsed = self._validate_and_assert(response, "partial")
            self.assertTrue(parsed["data"]["applied"])
            self.assertTrue(parsed["data"]["diff_truncated"])

    # ========================================================================
    # Error 场景：匹配失败
    # ========================================================================

    def test_match_not_found(self):
        with create_temp_project({"a.txt": "alpha\nbeta\n"}) as project:
            response = self._tool().run({
                "file_path": str(project.path("a.txt")),
                "edits": [
                    {"old_string": "alpha", "new_string": "ALPHA"},
                    {"old_string": "gamma", "new_string": "GAMMA"},
                    {"old_string": "beta", "new_string": "BETA"},
                ],
            })
            parsed = self._validate_and_assert(response, "error")
            data = parsed["data"]

            self.assertEqual(parsed["error"]["code"], ErrorCode.MATCH_NOT_FOUND.value)
            self.assertIn("Edit 2 of 3 failed", parsed["error"]["message"])
            self.assertFalse(data["applied"])
            self.assertEqual(data["edit_index"], 1)
            self.assertTrue(data["retryable"])
            self.assertEqual([s["status"] for s in data["edit_status"]], ["failed", "skipped"])
            self.assertIn("ALPHA", data["context"]["snippet"])
            self.assertIn("backup_path", data)
            self.assertEqual(project.read("a.txt"), "alpha\nbeta\n")

    def test_ambiguous_match(self):
        with create_temp_project({"a.txt": "foo\nbar\nfoo\n"}) as project:
            response = self._tool().run({
                "file_path": str(project.path("a.txt")),
                "edits": [{"old_string": "foo", "new_string": "baz"}],
            })
            parsed = self._validate_and_assert(response, "error")
            data = parsed["data"]

            self.assertEqual(parsed["error"]["code"], ErrorCode.AMBIGUOUS_MATCH.value)
            self.assertIn("lines 1, 3", parsed["error"]["message"])
            self.assertEqual(data["match_lines"], [1, 3])
            self.assertEqual([m["line"] for m in data["context"]["match_locations"]], [1, 3])
            self.assertEqual(project.read("a.txt"), "foo\nbar\nfoo\n")

    # ========================================================================
    # Error 场景：参数与文件
    # ========================================================================

    def test_relative_path_rejected(self):
        response = self._tool().run({
            "file_path": "src/a.txt",
            "edits": [{"old_string": "a", "new_string": "b"}],
        })
        parsed = self._validate_and_assert(response, "error")
        self.assertEqual(parsed["error"]["code"], ErrorCode.RELATIVE_PATH.value)

    def test_traversal_rejected(self):
        response = self._tool().run({
            "file_path": "/tmp/project/../etc/passwd",
            "edits": [{"old_string": "a", "new_string": "b"}],
        })
        parsed = self._validate_and_assert(response, "error")
        self.assertEqual(parsed["error"]["code"], ErrorCode.PATH_TRAVERSAL.value)

    def test_schema_errors(self):
        response = self._tool().run({"file_path": "/tmp/a.txt"})
        parsed = self._validate_and_assert(response, "error")
        self.assertEqual(parsed["error"]["code"], ErrorCode.VALIDATION_FAILED.value)
        self.assertEqual(parsed["data"]["validation_errors"][0]["path"], ["edits"])

        response = self._tool().run({
            "file_path": "/tmp/a.txt",
            "edits": [{"old_string": "a", "new_string": "b", "replace_all": "yes"}],
        })
        parsed = self._validate_and_assert(response, "error")
        self.assertEqual(parsed["data"]["validation_errors"][0]["path"], ["edits", "0", "replace_all"])

    def test_empty_edits(self):
        with create_temp_project({"a.txt": "a"}) as project:
            response = self._tool().run({"file_path": str(project.path("a.txt")), "edits": []})
            parsed = self._validate_and_assert(response, "error")
            self.assertEqual(parsed["error"]["code"], ErrorCode.EMPTY_EDITS.value)

    def test_multiple_issues_reported_together(self):
        with create_temp_project({"a.txt": "a"}) as project:
            response = self._tool().run({
                "file_path": str(project.path("a.txt")),
                "edits": [
                    {"old_string": "", "new_string": "x"},
                    {"old_string": "a", "new_string": "b"},
                    {"old_string": "a", "new_string": "c"},
                ],
            })
            parsed = self._validate_and_assert(response, "error")
            codes = [e["code"] for e in parsed["data"]["validation_errors"]]

            self.assertEqual(parsed["error"]["code"], ErrorCode.VALIDATION_FAILED.value)
            self.assertEqual(codes, ["EMPTY_OLD_STRING", "DUPLICATE_OLD_STRING"])
            self.assertFalse(backup_path_for(project.path("a.txt")).exists())

    def test_file_not_found(self):
        with create_temp_project({}) as project:
            response = self._tool().run({
                "file_path": str(project.path("missing.txt")),
                "edits": [{"old_string": "a", "new_string": "b"}],
            })
            parsed = self._validate_and_assert(response, "error")
            self.assertEqual(parsed["error"]["code"], ErrorCode.FILE_NOT_FOUND.value)

    def test_directory_rejected(self):
        with create_temp_project({"sub/": None}) as project:
            response = self._tool().run({
                "file_path": str(project.path("sub")),
                "edits": [{"old_string": "a", "new_string": "b"}],
            })
            parsed = self._validate_and_assert(response, "error")
            self.assertEqual(parsed["error"]["code"], ErrorCode.IS_DIRECTORY.value)

    def test_invalid_encoding(self):
        with create_temp_project({"bin.dat": b"\xff\xfeabc"}) as project:
            response = self._tool().run({
                "file_path": str(project.path("bin.dat")),
                "edits": [{"old_string": "abc", "new_string": "xyz"}],
            })
            parsed = self._validate_and_assert(response, "error")
            self.assertEqual(parsed["error"]["code"], ErrorCode.INVALID_ENCODING.value)
            self.assertFalse(parsed["data"]["retryable"])

    def test_unencodable_new_string(self):
        """new_string 含孤立代理字符时返回结构化错误，文件不变"""
        with create_temp_project({"a.txt": "hello"}) as project:
            response = self._tool().run({
                "file_path": str(project.path("a.txt")),
                "edits": [{"old_string": "hello", "new_string": "\ud800"}],
            })
            parsed = self._validate_and_assert(response, "error")
            self.assertEqual(parsed["error"]["code"], ErrorCode.INVALID_ENCODING.value)
            self.assertEqual(project.read("a.txt"), "hello")

    # ========================================================================
    # 其他
    # ========================================================================

    def test_sweeps_stale_temp_files_when_enabled(self):
        with create_temp_project({"a.txt": "a"}) as project:
            stale = project.create_file(".a.txt.leftover.tmp", "partial")
            old = time.time() - 7200
            os.utime(stale, (old, old))

            response = self._tool(sweep_temp_files=True, temp_file_max_age_s=60).run({
                "file_path": str(project.path("a.txt")),
                "edits": [{"old_string": "a", "new_string": "b"}],
            })
            self._validate_and_assert(response, "success")
            self.assertFalse(stale.exists())

    def test_parameters_schema(self):
        params = {p.name: p for p in self._tool().get_parameters()}
        self.assertEqual(set(params), {"file_path", "edits", "dry_run", "backup", "include_content"})
        self.assertTrue(params["file_path"].required)
        self.assertEqual(params["edits"].items["required"], ["old_string", "new_string"])


if __name__ == "__main__":
    unittest.main()
