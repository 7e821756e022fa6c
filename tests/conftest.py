"""Pytest 配置和共享 fixtures

提供测试所需的共享 fixtures，支持 pytest 运行。
"""

import pytest

from core.config import Config
from tests.utils.test_helpers import create_temp_project


@pytest.fixture
def temp_project():
    """
    提供临时测试项目 fixture

    Usage:
        def test_something(temp_project, multi_edit_tool):
            path = temp_project.create_file("a.py", "x = 1\\n")
            ...
    """
    with create_temp_project({}) as project:
        yield project


@pytest.fixture
def config():
    """与环境变量无关的默认配置"""
    return Config()


@pytest.fixture
def multi_edit_tool(config):
    """MultiEditTool fixture"""
    from tools.builtin.multi_edit import MultiEditTool
    return MultiEditTool(config=config)


@pytest.fixture
def multi_edit_files_tool(config):
    """MultiEditFilesTool fixture"""
    from tools.builtin.multi_edit_files import MultiEditFilesTool
    return MultiEditFilesTool(config=config)
