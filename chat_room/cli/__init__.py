"""
命令行入口

- chat-room-server: 启动聊天室服务器
- chat-room-client: 终端聊天客户端
"""

from .server import main as server_main
from .client import main as client_main

__all__ = [
    "server_main",
    "client_main",
]
