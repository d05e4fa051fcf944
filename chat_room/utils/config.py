"""Chat Room 配置管理

本模块提供统一的配置管理接口，支持环境变量、默认值和运行时配置。
配置优先级：运行时设置 > 环境变量 > 默认值
"""

import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_optional_int(key: str, default: Optional[int]) -> Optional[int]:
    value = os.getenv(key)
    if value is None:
        return default
    if value.strip().lower() in ("", "none"):
        return None
    return int(value)


@dataclass
class ChatConfig:
    """Chat Room 配置类

    包含服务器、会话、客户端和日志的所有配置选项。
    """

    # 服务器配置
    host: str = "localhost"
    port: int = 8080
    max_connections: int = 1000

    # WebSocket 配置
    ws_ping_interval: float = 30.0
    ws_ping_timeout: float = 10.0
    ws_close_timeout: float = 10.0
    max_message_size: Optional[int] = 64 * 1024

    # 会话配置
    login_timeout: float = 30.0
    send_timeout: float = 10.0
    max_name_length: int = 32

    # 客户端配置
    server_url: str = "ws://localhost:8080/ws"

    # 日志配置
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_file: Optional[str] = None
    enable_rich_logging: bool = True

    # 自定义配置
    custom: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_env(cls) -> "ChatConfig":
        """从环境变量创建配置

        环境变量格式：CHAT_<配置名大写>，例如 CHAT_PORT、CHAT_LOG_LEVEL。

        Returns:
            从环境变量读取的配置实例
        """
        config = cls()

        # 服务器配置
        config.host = os.getenv("CHAT_HOST", config.host)
        config.port = int(os.getenv("CHAT_PORT", str(config.port)))
        config.max_connections = int(
            os.getenv("CHAT_MAX_CONNECTIONS", str(config.max_connections))
        )

        # WebSocket 配置
        config.ws_ping_interval = float(
            os.getenv("CHAT_WS_PING_INTERVAL", str(config.ws_ping_interval))
        )
        config.ws_ping_timeout = float(
            os.getenv("CHAT_WS_PING_TIMEOUT", str(config.ws_ping_timeout))
        )
        config.ws_close_timeout = float(
            os.getenv("CHAT_WS_CLOSE_TIMEOUT", str(config.ws_close_timeout))
        )
        config.max_message_size = _env_optional_int(
            "CHAT_MAX_MESSAGE_SIZE", config.max_message_size
        )

        # 会话配置
        config.login_timeout = float(
            os.getenv("CHAT_LOGIN_TIMEOUT", str(config.login_timeout))
        )
        config.send_timeout = float(
            os.getenv("CHAT_SEND_TIMEOUT", str(config.send_timeout))
        )
        config.max_name_length = int(
            os.getenv("CHAT_MAX_NAME_LENGTH", str(config.max_name_length))
        )

        # 客户端配置
        config.server_url = os.getenv("CHAT_SERVER_URL", config.server_url)

        # 日志配置
        config.log_level = os.getenv("CHAT_LOG_LEVEL", config.log_level)
        config.log_format = os.getenv("CHAT_LOG_FORMAT", config.log_format)
        config.log_file = os.getenv("CHAT_LOG_FILE", config.log_file)
        config.enable_rich_logging = _env_bool(
            "CHAT_ENABLE_RICH_LOGGING", config.enable_rich_logging
        )

        return config

    def update(self, **kwargs) -> None:
        """更新配置项

        值为 None 的参数会被忽略，方便直接传入命令行参数。

        Args:
            **kwargs: 要更新的配置项，未知键保存到 custom
        """
        for key, value in kwargs.items():
            if value is None:
                continue
            if key != "custom" and hasattr(self, key):
                setattr(self, key, value)
            else:
                self.custom[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """获取配置项

        Args:
            key: 配置项名称
            default: 默认值

        Returns:
            配置项的值
        """
        if key != "custom" and hasattr(self, key):
            return getattr(self, key)
        return self.custom.get(key, default)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典

        Returns:
            配置的字典表示，自定义配置平铺在最后
        """
        result = {f.name: getattr(self, f.name) for f in fields(self) if f.name != "custom"}
        result.update(self.custom)
        return result
