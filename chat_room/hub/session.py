"""
Chat Room 会话协议

每个连接一个会话：登录 → 活跃 → 关闭，负责在合适的时机调用 Hub 的操作
"""

import asyncio
from typing import Optional

from .connection import Connection
from .hub import Hub
from .registry import User
from ..exceptions import (
    ConnectionClosedError,
    HubClosedError,
    InvalidNameError,
    NameTakenError,
)
from ..protocol import LoginReply, SessionState, is_control_payload, validate_name
from ..utils import get_logger


class Session:
    """单个连接的会话状态机

    Args:
        hub: 聊天室 Hub
        connection: 客户端连接
        login_timeout: 等待用户名的超时（秒），None 表示不限制
        max_name_length: 用户名最大长度
    """

    def __init__(
        self,
        hub: Hub,
        connection: Connection,
        login_timeout: Optional[float] = 30.0,
        max_name_length: int = 32,
    ):
        self.hub = hub
        self.connection = connection
        self.login_timeout = login_timeout
        self.max_name_length = max_name_length

        self.user: Optional[User] = None
        self._state = SessionState.CONNECTING

        self.logger = get_logger("chat_room.hub.session")

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def name(self) -> Optional[str]:
        return self.user.name if self.user else None

    async def run(self) -> None:
        """运行会话直到连接关闭"""
        self._state = SessionState.LOGGING_IN
        try:
            if await self._login():
                self._state = SessionState.ACTIVE
                await self._relay()
        except ConnectionClosedError as e:
            self.logger.debug(f"连接 {self._describe()} 已关闭: {e}")
        except HubClosedError:
            self.logger.info(f"Hub 已关闭，结束会话 {self._describe()}")
        finally:
            await self._close()

    async def _login(self) -> bool:
        """读取用户名并向 Hub 注册

        Returns:
            是否登录成功
        """
        try:
            payload = await asyncio.wait_for(
                self.connection.receive(), self.login_timeout
            )
        except asyncio.TimeoutError:
            self.logger.warning(f"等待 {self._describe()} 的用户名超时")
            return False

        try:
            name = validate_name(payload, self.max_name_length)
        except InvalidNameError as e:
            self.logger.info(f"拒绝登录 {self._describe()}: {e.message}")
            await self.connection.send(LoginReply.INVALID_NAME.to_bytes())
            return False

        try:
            self.user = await self.hub.register(name, self.connection)
        except NameTakenError as e:
            self.logger.info(f"拒绝登录 {self._describe()}: {e.message}")
            await self.connection.send(LoginReply.NAME_TAKEN.to_bytes())
            return False

        self.logger.info(f"用户 {name} 登录成功 ({self._describe()})")
        return True

    async def _relay(self) -> None:
        """逐条读取消息并提交广播，直到读取失败"""
        while True:
            payload = await self.connection.receive()
            if not payload:
                continue

            if is_control_payload(payload):
                # 保留给后续协议扩展，服务器端暂不处理
                self.logger.debug(f"忽略来自 {self.name} 的控制指令")
                continue

            await self.hub.broadcast(self.user.name, payload)

    async def _close(self) -> None:
        if self._state == SessionState.CLOSED:
            return
        self._state = SessionState.CLOSED

        if self.user is not None:
            try:
                await self.hub.deregister(self.user.name)
            except HubClosedError:
                self.logger.debug(f"Hub 已关闭，跳过注销 {self.user.name}")

        try:
            await self.connection.close()
        except Exception as e:
            self.logger.debug(f"关闭连接 {self._describe()} 出错: {e}")

    def _describe(self) -> str:
        if self.user is not None:
            return self.user.name
        return self.connection.remote_address or "unknown"
