"""
Chat Room - 实时聊天室

主要组件：
- protocol: 线上格式、在线事件和行解析
- hub: 注册表、Hub 控制循环、会话协议和 WebSocket 服务器
- client: 客户端 SDK 和终端界面
- cli: 命令行入口
- utils: 配置和日志
"""

__version__ = "1.0.0"

from .exceptions import (
    ChatRoomError,
    ConnectionClosedError,
    LoginError,
    NameTakenError,
    InvalidNameError,
    HubClosedError,
    ProtocolError,
)
from .protocol import ChatLine, LineKind, Message, PresenceEvent, parse_line
from .hub import ChatServer, Hub, Registry, Session, User, run_server
from .client import ChatClient, Roster
from .utils import ChatConfig, configure_logging, get_logger

__all__ = [
    # 版本
    "__version__",
    # 异常
    "ChatRoomError",
    "ConnectionClosedError",
    "LoginError",
    "NameTakenError",
    "InvalidNameError",
    "HubClosedError",
    "ProtocolError",
    # 协议
    "ChatLine",
    "LineKind",
    "Message",
    "PresenceEvent",
    "parse_line",
    # Hub
    "ChatServer",
    "Hub",
    "Registry",
    "Session",
    "User",
    "run_server",
    # 客户端
    "ChatClient",
    "Roster",
    # 工具
    "ChatConfig",
    "configure_logging",
    "get_logger",
]
