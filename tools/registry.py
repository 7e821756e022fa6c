"""工具注册表

负责工具的注册、查找、schema 导出与执行。
执行期间逃逸出工具的异常统一包装为 INTERNAL_ERROR 协议响应。
"""

import json
import logging
from typing import Any, Dict, List, Optional

from core.config import Config
from core.edit_engine.errors import ErrorCode

from .base import Tool, ToolParameter, ToolStatus

logger = logging.getLogger(__name__)


class ToolRegistry:
    """
    工具注册表

    Tool 对象按名称注册，execute_tool 始终返回符合《通用工具响应协议》的 JSON 字符串。
    """

    def __init__(self):
        self._tools: Dict[str, Tool] = {}

    def register_tool(self, tool: Tool):
        """
        注册Tool对象

        Args:
            tool: Tool实例
        """
        if tool.name in self._tools:
            logger.warning("Tool '%s' already registered, overriding", tool.name)
        self._tools[tool.name] = tool
        logger.debug("Tool '%s' registered", tool.name)

    def unregister(self, name: str):
        """注销工具"""
        if self._tools.pop(name, None) is None:
            logger.warning("Tool '%s' is not registered", name)
        else:
            logger.debug("Tool '%s' unregistered", name)

    def get_tool(self, name: str) -> Optional[Tool]:
        """获取Tool对象"""
        return self._tools.get(name)

    def execute_tool(self, name: str, parameters: Any) -> str:
        """
        执行工具

        Args:
            name: 工具名称
            parameters: 参数字典（JSON 字符串会先被解析）

        Returns:
            工具执行结果（符合《通用工具响应协议》的 JSON 字符串）
        """
        tool = self._tools.get(name)
        if tool is None:
            return self._create_error_response(
                code=ErrorCode.UNKNOWN_TOOL,
                name=name,
                message=f"Tool '{name}' is not registered. Available: {', '.join(self.list_tools()) or 'none'}",
                params_input=parameters if isinstance(parameters, dict) else {},
            )

        if isinstance(parameters, str):
            try:
                parameters = json.loads(parameters)
            except json.JSONDecodeError as e:
                return self._create_error_response(
                    code=ErrorCode.VALIDATION_FAILED,
                    name=name,
                    message=f"Tool input is not valid JSON: {e}",
                    params_input={"input": parameters},
                )
        if not isinstance(parameters, dict):
            return self._create_error_response(
                code=ErrorCode.VALIDATION_FAILED,
                name=name,
                message="Tool input must be a JSON object",
                params_input={"input": parameters},
            )

        try:
            return tool.run(parameters)
        except Exception as e:
            logger.exception("Tool '%s' raised while executing", name)
            return self._create_error_response(
                code=ErrorCode.INTERNAL_ERROR,
                name=name,
                message=f"Tool '{name}' raised an unexpected error: {e}",
                params_input=parameters,
            )

    def _create_error_response(self, code: ErrorCode, name: str, message: str, params_input: Dict[str, Any]) -> str:
        """注册表层错误响应（符合协议）"""
        return json.dumps({
            "status": ToolStatus.ERROR.value,
            "data": {},
            "text": message,
            "error": {
                "code": code.value,
                "message": message,
            },
            "stats": {"time_ms": 0},
            "context": {
                "tool": name,
                "params_input": params_input,
            },
        }, ensure_ascii=False, indent=2)

    # -------------------------------------------------------------------------
    # Schema 导出
    # -------------------------------------------------------------------------

    def get_schemas(self) -> List[Dict[str, Any]]:
        """每个工具的 JSON Schema（name / description / parameters）"""
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "parameters": self._parameters_schema(tool.get_parameters()),
            }
            for tool in self._tools.values()
        ]

    def get_openai_tools(self) -> List[Dict[str, Any]]:
        """OpenAI function calling 格式的工具列表"""
        return [{"type": "function", "function": schema} for schema in self.get_schemas()]

    @staticmethod
    def _parameters_schema(params: List[ToolParameter]) -> Dict[str, Any]:
        properties: Dict[str, Any] = {}
        required: List[str] = []
        for param in params:
            prop: Dict[str, Any] = {"type": param.type, "description": param.description}
            if param.type == "array":
                # 部分模型要求 array 必须带 items
                prop["items"] = param.items or {"type": "string"}
            if param.default is not None:
                prop["default"] = param.default
            properties[param.name] = prop
            if param.required:
                required.append(param.name)
        return {"type": "object", "properties": properties, "required": required}

    # -------------------------------------------------------------------------
    # 查询
    # -------------------------------------------------------------------------

    def get_tools_description(self) -> str:
        """
        获取所有可用工具的格式化描述字符串

        Returns:
            工具描述字符串，用于构建提示词
        """
        descriptions = [f"- {tool.name}: {tool.description}" for tool in self._tools.values()]
        return "\n".join(descriptions) if descriptions else "No tools available"

    def list_tools(self) -> List[str]:
        """列出所有工具名称"""
        return list(self._tools.keys())

    def get_all_tools(self) -> List[Tool]:
        """获取所有Tool对象"""
        return list(self._tools.values())

    def clear(self):
        """清空所有工具"""
        self._tools.clear()


def create_default_registry(config: Optional[Config] = None) -> ToolRegistry:
    """注册 MultiEdit 与 MultiEditFiles 的注册表"""
    from .builtin.multi_edit import MultiEditTool
    from .builtin.multi_edit_files import MultiEditFilesTool

    config = config or Config.from_env()
    registry = ToolRegistry()
    registry.register_tool(MultiEditTool(config=config))
    registry.register_tool(MultiEditFilesTool(config=config))
    return registry
