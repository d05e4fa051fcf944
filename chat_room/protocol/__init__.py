"""Chat Room 协议核心模块"""

from .types import LineKind, LoginReply, PresenceEvent, SessionState
from .messages import (
    CONTROL_PREFIX,
    ChatLine,
    Message,
    format_members,
    format_presence,
    is_control_payload,
    parse_line,
    validate_name,
)

__all__ = [
    # 类型枚举
    "LineKind",
    "LoginReply",
    "PresenceEvent",
    "SessionState",
    # 消息
    "CONTROL_PREFIX",
    "ChatLine",
    "Message",
    # 编解码
    "format_members",
    "format_presence",
    "is_control_payload",
    "parse_line",
    "validate_name",
]
