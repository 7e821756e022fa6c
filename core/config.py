"""配置管理"""

from typing import Any, Dict

from pydantic import BaseModel

from core.env import getenv, getenv_bool, getenv_float, getenv_int, load_env

load_env()


class Config(BaseModel):
    """MultiEdit 配置类"""

    # 系统配置
    debug: bool = False
    log_level: str = "INFO"

    # 请求默认值（请求中显式传入时以请求为准）
    default_dry_run: bool = False
    default_backup: bool = True
    default_include_content: bool = False

    # 响应呈现
    max_diff_lines: int = 100
    max_diff_bytes: int = 10240  # 10KB
    max_match_locations: int = 5

    # 崩溃残留的临时文件清理（默认关闭）
    sweep_temp_files: bool = False
    temp_file_max_age_s: float = 3600.0

    @classmethod
    def from_env(cls) -> "Config":
        """从环境变量创建配置"""
        return cls(
            debug=getenv_bool("DEBUG", False),
            log_level=getenv("LOG_LEVEL", "INFO") or "INFO",
            default_dry_run=getenv_bool("MULTI_EDIT_DRY_RUN", False),
            default_backup=getenv_bool("MULTI_EDIT_BACKUP", True),
            default_include_content=getenv_bool("MULTI_EDIT_INCLUDE_CONTENT", False),
            max_diff_lines=getenv_int("MULTI_EDIT_MAX_DIFF_LINES", 100),
            max_diff_bytes=getenv_int("MULTI_EDIT_MAX_DIFF_BYTES", 10240),
            max_match_locations=getenv_int("MULTI_EDIT_MAX_MATCH_LOCATIONS", 5),
            sweep_temp_files=getenv_bool("MULTI_EDIT_SWEEP_TEMP_FILES", False),
            temp_file_max_age_s=getenv_float("MULTI_EDIT_TEMP_MAX_AGE_S", 3600.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return self.model_dump()
