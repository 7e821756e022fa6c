"""测试辅助工具

提供测试所需的临时项目创建、响应解析等复用函数。
"""

import json
import tempfile
import shutil
from pathlib import Path
from typing import Dict, Any, Optional, Union
from contextlib import contextmanager
from dataclasses import dataclass


@dataclass
class TempProject:
    """临时测试项目"""
    root: Path

    def __post_init__(self):
        # macOS 的 /tmp 是符号链接，统一为解析后的真实路径
        self.root = Path(self.root).resolve()

    def path(self, *parts: str) -> Path:
        """获取项目内路径"""
        return self.root.joinpath(*parts)

    def create_file(self, rel_path: str, content: Union[str, bytes] = "") -> Path:
        """创建文件（bytes 原样写入）"""
        file_path = self.path(rel_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            file_path.write_bytes(content)
        else:
            file_path.write_bytes(content.encode("utf-8"))
        return file_path

    def create_dir(self, rel_path: str) -> Path:
        """创建目录"""
        dir_path = self.path(rel_path)
        dir_path.mkdir(parents=True, exist_ok=True)
        return dir_path

    def read(self, rel_path: str) -> str:
        """按 UTF-8 读取文件（不做换行转换）"""
        return self.path(rel_path).read_bytes().decode("utf-8")

    def cleanup(self):
        """清理临时目录"""
        if self.root.exists():
            shutil.rmtree(self.root)


@contextmanager
def create_temp_project(structure: Optional[Dict[str, Any]] = None):
    """
    创建临时测试项目（上下文管理器）

    Args:
        structure: 项目结构字典，格式如:
            {
                "src/app.py": "x = 1\\n",
                "data/": None,  # 空目录
            }

    Yields:
        TempProject: 临时项目对象

    Example:
        with create_temp_project({"src/app.py": "..."}) as project:
            tool = MultiEditTool()
            response = tool.run({"file_path": str(project.path("src/app.py")), "edits": [...]})
    """
    temp_dir = Path(tempfile.mkdtemp(prefix="test_project_"))
    project = TempProject(root=temp_dir)

    try:
        if structure is None:
            structure = DEFAULT_PROJECT_STRUCTURE

        for path, content in structure.items():
            if path.endswith("/"):
                project.create_dir(path.rstrip("/"))
            else:
                project.create_file(path, content or "")

        yield project
    finally:
        project.cleanup()


# 默认测试项目结构
DEFAULT_PROJECT_STRUCTURE = {
    "src/": None,
    "src/main.py": """#!/usr/bin/env python3
\"\"\"主模块\"\"\"

class MyClass:
    \"\"\"示例类\"\"\"

    def __init__(self, name: str):
        self.name = name

    def greet(self) -> str:
        return f"Hello, {self.name}!"


def main():
    obj = MyClass("World")
    print(obj.greet())


if __name__ == "__main__":
    main()
""",
    "src/utils.py": """\"\"\"工具函数\"\"\"

from typing import List, Optional


def helper(items: List[str], prefix: Optional[str] = None) -> List[str]:
    \"\"\"添加前缀\"\"\"
    if prefix:
        return [f"{prefix}{item}" for item in items]
    return items
""",
    "src/config.py": """DEBUG = False
API_KEY = ""
""",
    "README.md": "# 测试项目\n",
}


def parse_response(response_str: str) -> Dict[str, Any]:
    """
    解析工具响应 JSON

    Raises:
        ValueError: JSON 解析失败
    """
    try:
        return json.loads(response_str)
    except json.JSONDecodeError as e:
        raise ValueError(f"响应不是有效的 JSON: {e}")


def assert_response_status(response_str: str, expected_status: str) -> Dict[str, Any]:
    """
    断言响应状态并返回解析结果

    Raises:
        AssertionError: 状态不匹配
    """
    parsed = parse_response(response_str)
    actual_status = parsed.get("status")

    if actual_status != expected_status:
        raise AssertionError(
            f"期望 status='{expected_status}'，实际 status='{actual_status}'\n"
            f"响应: {json.dumps(parsed, ensure_ascii=False, indent=2)}"
        )

    return parsed


def get_response_data(response_str: str) -> Dict[str, Any]:
    """提取响应中的 data 字段"""
    return parse_response(response_str).get("data", {})


def get_response_error(response_str: str) -> Optional[Dict[str, Any]]:
    """提取响应中的 error 字段"""
    return parse_response(response_str).get("error")
