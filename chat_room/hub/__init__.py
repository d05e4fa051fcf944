"""
Hub 服务器模块

聊天室核心：
- 连接抽象
- 用户注册表
- Hub 控制循环
- 会话协议
- WebSocket 服务器
"""

from .connection import Connection, WebSocketConnection
from .registry import Registry, User
from .hub import Hub
from .session import Session
from .server import ChatServer, run_server

__all__ = [
    "Connection",
    "WebSocketConnection",
    "Registry",
    "User",
    "Hub",
    "Session",
    "ChatServer",
    "run_server",
]
