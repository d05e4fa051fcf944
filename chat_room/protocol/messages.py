"""
Chat Room 消息构建和解析

提供聊天消息、在线事件和成员列表的编码，以及客户端侧的行解析
"""

import json
import re
from dataclasses import dataclass, field
from typing import List, Optional, Union

from ..exceptions import InvalidNameError, ProtocolError
from .types import LineKind, PresenceEvent

# 服务器生成的行和客户端保留的控制指令都以此前缀开头
CONTROL_PREFIX = "//"
CONTROL_PREFIX_BYTES = CONTROL_PREFIX.encode("utf-8")

PRESENCE_TEMPLATE = CONTROL_PREFIX + " {name} has {event} the channel"
MEMBERS_TEMPLATE = CONTROL_PREFIX + " members: {names}"

_PRESENCE_RE = re.compile(
    r"^// (?P<name>.+) has (?P<event>joined|left) the channel$", re.DOTALL
)
_MEMBERS_RE = re.compile(r"^// members: (?P<names>\[.*\])$", re.DOTALL)
_CHAT_RE = re.compile(r"^\[(?P<sender>[^\[\]]*)\] (?P<body>.*)$", re.DOTALL)

_FORBIDDEN_NAME_CHARS = set("[]")


@dataclass(frozen=True)
class Message:
    """聊天消息

    Attributes:
        sender: 发送者用户名
        body: 原始消息内容
    """

    sender: str
    body: bytes

    def compose(self) -> bytes:
        """编码为线上格式 ``[sender] body``"""
        return f"[{self.sender}] ".encode("utf-8") + self.body


def format_presence(name: str, event: Union[PresenceEvent, str]) -> bytes:
    """生成在线事件文本

    Args:
        name: 加入或离开的用户名
        event: 事件类型

    Returns:
        ``// <name> has joined|left the channel``
    """
    event = PresenceEvent(event)
    return PRESENCE_TEMPLATE.format(name=name, event=event.value).encode("utf-8")


def format_members(names: List[str]) -> bytes:
    """生成成员列表行，发送给刚登录的用户"""
    return MEMBERS_TEMPLATE.format(
        names=json.dumps(sorted(names), ensure_ascii=False)
    ).encode("utf-8")


def is_control_payload(payload: bytes) -> bool:
    """判断客户端负载是否为保留的控制指令"""
    return payload.startswith(CONTROL_PREFIX_BYTES)


def validate_name(raw: Union[bytes, str], max_length: int = 32) -> str:
    """校验并规范化用户名

    Args:
        raw: 客户端发送的第一帧
        max_length: 最大长度

    Returns:
        去除首尾空白后的用户名

    Raises:
        InvalidNameError: 用户名不合法
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            raise InvalidNameError(repr(raw), "username is not valid UTF-8")

    name = raw.strip()
    if not name:
        raise InvalidNameError(name, "username must not be empty")
    if len(name) > max_length:
        raise InvalidNameError(name, f"username longer than {max_length} characters")
    if name.startswith(CONTROL_PREFIX):
        raise InvalidNameError(name, f"username must not start with {CONTROL_PREFIX!r}")
    if not name.isprintable() or _FORBIDDEN_NAME_CHARS & set(name):
        raise InvalidNameError(name, "username contains forbidden characters")
    return name


@dataclass
class ChatLine:
    """客户端收到并解析后的一行

    Attributes:
        kind: 行类型
        text: 原始文本
        sender: 聊天消息的发送者，或在线事件涉及的用户
        body: 聊天消息正文
        event: 在线事件类型
        members: 成员列表（仅 MEMBERS 行）
    """

    kind: LineKind
    text: str
    sender: Optional[str] = None
    body: Optional[str] = None
    event: Optional[PresenceEvent] = None
    members: List[str] = field(default_factory=list)

    @property
    def is_server_line(self) -> bool:
        return self.kind != LineKind.CHAT


def parse_line(text: Union[bytes, str]) -> ChatLine:
    """解析服务器发送的一行

    Args:
        text: 服务器帧内容

    Returns:
        解析后的 ChatLine；无法识别的 ``//`` 行归为 SERVER

    Raises:
        ProtocolError: 既不是聊天消息也不是服务器行
    """
    if isinstance(text, bytes):
        text = text.decode("utf-8", errors="replace")

    if text.startswith(CONTROL_PREFIX):
        match = _PRESENCE_RE.match(text)
        if match:
            return ChatLine(
                kind=LineKind.PRESENCE,
                text=text,
                sender=match.group("name"),
                event=PresenceEvent(match.group("event")),
            )

        match = _MEMBERS_RE.match(text)
        if match:
            try:
                members = json.loads(match.group("names"))
            except ValueError as e:
                raise ProtocolError(f"malformed member list: {text!r}") from e
            return ChatLine(kind=LineKind.MEMBERS, text=text, members=list(members))

        return ChatLine(kind=LineKind.SERVER, text=text)

    match = _CHAT_RE.match(text)
    if not match:
        raise ProtocolError(f"unrecognised line: {text!r}")

    return ChatLine(
        kind=LineKind.CHAT,
        text=text,
        sender=match.group("sender"),
        body=match.group("body"),
    )
