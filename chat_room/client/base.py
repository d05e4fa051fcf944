"""
Chat Room 客户端

提供 WebSocket 客户端的登录、收发和成员视图
"""

import asyncio
from typing import AsyncIterator, Optional

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, InvalidHandshake

from .roster import Roster
from ..exceptions import (
    ConnectionClosedError,
    InvalidNameError,
    LoginError,
    NameTakenError,
    ProtocolError,
)
from ..protocol import ChatLine, LoginReply, parse_line
from ..utils import get_logger


class ChatClient:
    """聊天室客户端

    Args:
        url: 服务器 WebSocket 地址
        open_timeout: 建立连接的超时（秒）
    """

    def __init__(self, url: str = "ws://localhost:8080/ws", open_timeout: float = 10.0):
        self.url = url
        self.open_timeout = open_timeout
        self.websocket: Optional[ClientConnection] = None
        self.name: Optional[str] = None
        self.logged_in = False
        self.roster = Roster()

        self.logger = get_logger("chat_room.client")

    @property
    def connected(self) -> bool:
        return self.websocket is not None

    async def connect(self) -> None:
        """连接到服务器"""
        if self.websocket is not None:
            return

        self.logger.info(f"连接到 {self.url}")
        try:
            self.websocket = await connect(self.url, open_timeout=self.open_timeout)
        except (OSError, asyncio.TimeoutError, InvalidHandshake) as e:
            raise ConnectionClosedError(f"无法连接到 {self.url}: {e}") from e

    async def login(self, name: str) -> None:
        """以指定用户名登录

        服务器拒绝登录后会关闭连接，再次调用时自动重新连接。

        Raises:
            NameTakenError: 用户名已被占用
            InvalidNameError: 用户名不合法
            ProtocolError: 服务器应答无法识别
            ConnectionClosedError: 连接失败或中断
        """
        if self.logged_in:
            raise LoginError(f"already logged in as {self.name!r}")

        await self.connect()
        try:
            await self.websocket.send(name)
            reply = await self.websocket.recv()
        except ConnectionClosed as e:
            await self._drop()
            raise ConnectionClosedError(f"登录时连接中断: {e}") from e

        if isinstance(reply, bytes):
            reply = reply.decode("utf-8", errors="replace")

        if reply == LoginReply.ACCEPTED.value:
            self.name = name.strip()
            self.logged_in = True
            self.logger.info(f"以 {self.name} 登录成功")
            return

        await self._drop()
        if reply == LoginReply.NAME_TAKEN.value:
            raise NameTakenError(name)
        if reply == LoginReply.INVALID_NAME.value:
            raise InvalidNameError(name)
        raise ProtocolError(f"unexpected login reply: {reply!r}")

    async def send(self, text: str) -> None:
        """发送一行聊天内容"""
        if not self.logged_in:
            raise LoginError("not logged in")
        try:
            await self.websocket.send(text)
        except ConnectionClosed as e:
            raise ConnectionClosedError(f"发送失败: {e}") from e

    async def lines(self) -> AsyncIterator[ChatLine]:
        """逐行接收服务器消息，连接关闭时结束

        每行在交给调用方之前已应用到 roster。
        """
        while self.websocket is not None:
            try:
                frame = await self.websocket.recv()
            except ConnectionClosed:
                self.logger.info("服务器已关闭连接")
                await self._drop()
                return

            try:
                line = parse_line(frame)
            except ProtocolError as e:
                self.logger.warning(f"忽略无法解析的消息: {e.message}")
                continue

            self.roster.apply(line)
            yield line

    async def close(self) -> None:
        """断开连接"""
        await self._drop()

    async def _drop(self) -> None:
        self.logged_in = False
        self.roster.clear()
        if self.websocket is not None:
            websocket, self.websocket = self.websocket, None
            await websocket.close()

    async def __aenter__(self) -> "ChatClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
