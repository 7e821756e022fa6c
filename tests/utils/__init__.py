"""测试工具模块"""

from .protocol_validator import ProtocolValidator, ValidationResult
from .test_helpers import create_temp_project, TempProject, parse_response

__all__ = [
    "ProtocolValidator",
    "ValidationResult",
    "create_temp_project",
    "TempProject",
    "parse_response",
]
