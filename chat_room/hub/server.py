"""Chat Room WebSocket 服务器"""

import asyncio
import json
import signal
import sys
from http import HTTPStatus
from typing import Optional, Set
from urllib.parse import urlsplit

from websockets.asyncio.server import Server, ServerConnection, serve
from websockets.http11 import Request, Response

from .connection import WebSocketConnection
from .hub import Hub
from .session import Session
from ..exceptions import HubClosedError
from ..utils import ChatConfig, get_logger

WS_PATH = "/ws"
USERS_PATH = "/users"


class ChatServer:
    """聊天室服务器

    WebSocket 端点 ``/ws`` 承载会话，HTTP ``GET /users`` 返回在线用户列表。

    Args:
        config: 服务器配置，默认使用 ChatConfig()
        hub: 聊天室 Hub，默认按配置新建
    """

    def __init__(self, config: Optional[ChatConfig] = None, hub: Optional[Hub] = None):
        self.config = config or ChatConfig()
        self.hub = hub or Hub(send_timeout=self.config.send_timeout)

        self.server: Optional[Server] = None
        self.running = False
        self._sessions: Set[Session] = set()

        self.logger = get_logger("chat_room.hub.server")

    @property
    def port(self) -> Optional[int]:
        """实际监听端口（配置端口为 0 时由系统分配）"""
        if not self.server or not self.server.sockets:
            return None
        return self.server.sockets[0].getsockname()[1]

    @property
    def url(self) -> str:
        return f"ws://{self.config.host}:{self.port or self.config.port}{WS_PATH}"

    async def start(self) -> None:
        """启动 Hub 和 WebSocket 服务器"""
        if self.running:
            self.logger.warning("服务器已经在运行")
            return

        self.logger.info(f"启动聊天室服务器: {self.config.host}:{self.config.port}")
        await self.hub.start()

        try:
            self.server = await serve(
                self._handle_client,
                self.config.host,
                self.config.port,
                process_request=self._process_request,
                max_size=self.config.max_message_size,
                ping_interval=self.config.ws_ping_interval,
                ping_timeout=self.config.ws_ping_timeout,
                close_timeout=self.config.ws_close_timeout,
            )
        except OSError as e:
            self.logger.error(f"启动服务器失败: {e}")
            await self.hub.stop()
            raise

        self.running = True
        self.logger.info(f"聊天室服务器启动成功: {self.url}")

    async def stop(self) -> None:
        """停止服务器

        先停止 Hub，再关闭监听和所有客户端连接。
        """
        if not self.running:
            return

        self.logger.info("停止聊天室服务器")
        self.running = False

        await self.hub.stop()
        if self.server:
            self.server.close()
            await self.server.wait_closed()
            self.server = None

        self.logger.info("聊天室服务器已停止")

    async def _process_request(
        self, connection: ServerConnection, request: Request
    ) -> Optional[Response]:
        """在握手前处理普通 HTTP 请求

        Returns:
            None 表示继续 WebSocket 握手
        """
        path = urlsplit(request.path).path
        if path == WS_PATH:
            return None

        if path == USERS_PATH:
            try:
                names = await self.hub.members()
            except HubClosedError:
                return connection.respond(
                    HTTPStatus.SERVICE_UNAVAILABLE, "Hub is closed\n"
                )
            response = connection.respond(HTTPStatus.OK, json.dumps(names) + "\n")
            del response.headers["Content-Type"]
            response.headers["Content-Type"] = "application/json"
            return response

        return connection.respond(HTTPStatus.NOT_FOUND, "Not Found\n")

    async def _handle_client(self, websocket: ServerConnection) -> None:
        """处理一个 WebSocket 连接"""
        if len(self._sessions) >= self.config.max_connections:
            self.logger.warning(f"拒绝连接 {websocket.remote_address}: 超过最大连接数")
            await websocket.close(code=1013, reason="Server overloaded")
            return

        session = Session(
            self.hub,
            WebSocketConnection(websocket),
            login_timeout=self.config.login_timeout,
            max_name_length=self.config.max_name_length,
        )
        self._sessions.add(session)
        try:
            await session.run()
        finally:
            self._sessions.discard(session)

    def get_stats(self) -> dict:
        """获取服务器统计信息"""
        return {
            "server": {
                "running": self.running,
                "host": self.config.host,
                "port": self.port,
                "max_connections": self.config.max_connections,
            },
            "sessions": len(self._sessions),
            "hub": self.hub.get_stats(),
        }


async def run_server(config: Optional[ChatConfig] = None) -> None:
    """启动服务器并运行到收到 SIGINT/SIGTERM

    Args:
        config: 服务器配置
    """
    server = ChatServer(config)
    stop_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    if sys.platform != "win32":
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, stop_event.set)

    await server.start()
    try:
        await stop_event.wait()
        server.logger.info("收到停止信号，正在关闭服务器...")
    finally:
        await server.stop()
