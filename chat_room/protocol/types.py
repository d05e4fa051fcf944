"""Chat Room 类型定义

本模块定义了聊天协议的基础枚举：登录应答、在线事件、会话状态和行类型。
"""

from enum import Enum


class LoginReply(Enum):
    """登录应答枚举

    服务器对客户端第一帧（用户名）的应答，单字符文本帧。
    """

    ACCEPTED = "0"
    NAME_TAKEN = "1"
    INVALID_NAME = "2"

    def to_bytes(self) -> bytes:
        return self.value.encode("utf-8")


class PresenceEvent(Enum):
    """在线事件枚举"""

    JOINED = "joined"
    LEFT = "left"


class SessionState(Enum):
    """会话状态枚举

    状态只会向前推进：CONNECTING → LOGGING_IN → ACTIVE → CLOSED。
    """

    CONNECTING = "connecting"
    LOGGING_IN = "logging_in"
    ACTIVE = "active"
    CLOSED = "closed"


class LineKind(Enum):
    """客户端收到的行类型"""

    CHAT = "chat"
    PRESENCE = "presence"
    MEMBERS = "members"
    SERVER = "server"
