"""工具基类与响应协议支持

遵循《通用工具响应协议》，所有工具返回必须使用标准信封结构：
顶层字段严格限制为 status, data, text, stats, context（error 仅在出错时存在）。
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional
import json

from pydantic import BaseModel

from core.config import Config
from core.edit_engine.errors import ErrorCode


# =============================================================================
# 响应协议枚举
# =============================================================================

class ToolStatus(str, Enum):
    """
    工具运行状态枚举

    - SUCCESS: 任务完全按预期执行，已落盘
    - PARTIAL: 结果可用但有"折扣"（dry_run 未落盘 / diff 截断）
    - ERROR: 无法提供有效结果
    """
    SUCCESS = "success"
    PARTIAL = "partial"
    ERROR = "error"


# =============================================================================
# 工具参数定义
# =============================================================================

class ToolParameter(BaseModel):
    """工具参数定义"""
    name: str
    type: str
    description: str
    required: bool = True
    default: Any = None
    # array 类型的元素 schema（如 edits 的对象结构）
    items: Optional[Dict[str, Any]] = None


# =============================================================================
# 工具基类
# =============================================================================

class Tool(ABC):
    """
    工具基类

    Attributes:
        name: 工具名称
        description: 工具描述（给 LLM 阅读）
        config: 运行配置（未注入时从环境变量读取）
    """

    def __init__(self, name: str, description: str, config: Optional[Config] = None):
        self.name = name
        self.description = description
        self.config = config or Config.from_env()

    # -------------------------------------------------------------------------
    # 抽象方法
    # -------------------------------------------------------------------------

    @abstractmethod
    def run(self, parameters: Dict[str, Any]) -> str:
        """
        执行工具（必须实现）

        Returns:
            JSON 格式的响应字符串（必须符合《通用工具响应协议》）
        """
        pass

    @abstractmethod
    def get_parameters(self) -> List[ToolParameter]:
        """获取工具参数定义（必须实现）"""
        pass

    # -------------------------------------------------------------------------
    # 响应构建辅助方法
    # -------------------------------------------------------------------------

    def create_success_response(
        self,
        data: Dict[str, Any],
        text: str,
        params_input: Dict[str, Any],
        time_ms: int,
        extra_stats: Optional[Dict[str, Any]] = None,
        path_resolved: Optional[str] = None,
    ) -> str:
        """创建成功响应（status="success"）"""
        return self._build_response(
            status=ToolStatus.SUCCESS,
            data=data,
            text=text,
            params_input=params_input,
            time_ms=time_ms,
            extra_stats=extra_stats,
            path_resolved=path_resolved,
        )

    def create_partial_response(
        self,
        data: Dict[str, Any],
        text: str,
        params_input: Dict[str, Any],
        time_ms: int,
        extra_stats: Optional[Dict[str, Any]] = None,
        path_resolved: Optional[str] = None,
    ) -> str:
        """
        创建部分成功响应（status="partial"）

        注意：data 中应包含 dry_run / diff_truncated 等标记说明原因。
        """
        return self._build_response(
            status=ToolStatus.PARTIAL,
            data=data,
            text=text,
            params_input=params_input,
            time_ms=time_ms,
            extra_stats=extra_stats,
            path_resolved=path_resolved,
        )

    def create_error_response(
        self,
        error_code: ErrorCode,
        message: str,
        params_input: Dict[str, Any],
        time_ms: int = 0,
        path_resolved: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        创建错误响应（status="error"）

        Args:
            error_code: 标准错误码
            message: 人类可读的错误消息
            params_input: 调用时传入的原始参数
            time_ms: 工具执行耗时（毫秒）
            path_resolved: 解析后的路径
            data: 结构化的失败细节（失败编辑序号、回滚报告等）

        Returns:
            JSON 格式的响应字符串
        """
        context: Dict[str, Any] = {"tool": self.name, "params_input": params_input}
        if path_resolved is not None:
            context["path_resolved"] = path_resolved

        payload = {
            "status": ToolStatus.ERROR.value,
            "data": data or {},
            "text": message,
            "error": {
                "code": ErrorCode(error_code).value,
                "message": message,
            },
            "stats": {"time_ms": time_ms},
            "context": context,
        }
        return json.dumps(payload, ensure_ascii=False, indent=2)

    def _build_response(
        self,
        status: ToolStatus,
        data: Dict[str, Any],
        text: str,
        params_input: Dict[str, Any],
        time_ms: int,
        extra_stats: Optional[Dict[str, Any]] = None,
        path_resolved: Optional[str] = None,
    ) -> str:
        """内部方法：构建标准响应信封"""
        context: Dict[str, Any] = {"tool": self.name, "params_input": params_input}
        if path_resolved is not None:
            context["path_resolved"] = path_resolved

        stats: Dict[str, Any] = {"time_ms": time_ms}
        if extra_stats:
            stats.update(extra_stats)

        payload = {
            "status": status.value,
            "data": data,
            "text": text,
            "stats": stats,
            "context": context,
        }
        return json.dumps(payload, ensure_ascii=False, indent=2)

    # -------------------------------------------------------------------------
    # 其他辅助方法
    # -------------------------------------------------------------------------

    def validate_parameters(self, parameters: Dict[str, Any]) -> bool:
        """验证必填参数是否齐全"""
        required_params = [p.name for p in self.get_parameters() if p.required]
        return all(param in parameters for param in required_params)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式"""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": [param.model_dump(exclude_none=True) for param in self.get_parameters()],
        }

    def __str__(self) -> str:
        return f"Tool(name={self.name})"

    def __repr__(self) -> str:
        return self.__str__()
