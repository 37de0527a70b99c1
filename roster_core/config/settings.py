"""配置管理模块。

支持从 .env、config.yaml 以及环境变量加载配置。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("ROSTER_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        Path(__file__).resolve().parents[2] / "config.yaml",
    ])

    seen: set[Path] = set()
    for path in candidates:
        if not path or path in seen:
            continue
        seen.add(path)
        try:
            if path.exists():
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
                if isinstance(data, dict):
                    return data
                warnings.warn(f"Config file {path} is not a mapping, ignored")
        except (OSError, yaml.YAMLError) as exc:
            warnings.warn(f"Failed to read config file {path}: {exc}")
    return {}


class RosterSettings(BaseSettings):
    """配置设置（使用 Pydantic）。"""

    # ---- 后端接口 ----
    api_base_url: str = Field(
        default="http://localhost:5001",
        description="聊天后端的基础 URL，不含 /api 前缀",
    )
    http_timeout: float = Field(default=30.0, ge=1.0, description="HTTP 超时时间（秒）")

    # ---- 会话凭证 ----
    session_file: str = Field(
        default=".storage/session.json",
        description="登录后保存 token/user 的 JSON 文件",
    )

    # ---- 日志 ----
    log_dir: str = Field(default="logs", description="日志目录")
    log_redact_content: bool = Field(default=False, description="是否脱敏日志内容")

    # ---- 展示相关 ----
    preview_max_chars: int = Field(default=50, ge=1, description="最后一条消息预览的最大字符数")
    default_avatar_url: str = Field(
        default="https://randomuser.me/api/portraits/lego/1.jpg",
        description="联系人没有头像时使用的默认头像",
    )

    # ---- 导航路径 ----
    login_path: str = Field(default="/login", description="缺少凭证时跳转的路径")
    home_path: str = Field(default="/home", description="返回按钮跳转的路径")
    chat_path_template: str = Field(default="/chat/{conversation_id}", description="会话详情路径模板")

    model_config = SettingsConfigDict(
        env_prefix="ROSTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("api_base_url must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("chat_path_template")
    @classmethod
    def validate_chat_template(cls, v: str) -> str:
        if "{conversation_id}" not in v:
            raise ValueError("chat_path_template must contain {conversation_id}")
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls._config_source,
            file_secret_settings,
        )

    def chat_path(self, conversation_id: str) -> str:
        """根据会话 ID 生成详情页路径。"""

        return self.chat_path_template.format(conversation_id=conversation_id)


settings = RosterSettings()

# 类型别名，让外部代码可以使用 Settings 类型
Settings = RosterSettings
