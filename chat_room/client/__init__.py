"""
Chat Room 客户端模块

提供客户端连接、成员视图和终端界面
"""

from .base import ChatClient
from .roster import Roster
from .terminal import ChatTerminal

__all__ = [
    "ChatClient",
    "Roster",
    "ChatTerminal",
]
