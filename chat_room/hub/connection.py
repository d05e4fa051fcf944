"""Hub 连接抽象

会话和 Hub 只通过 Connection 收发字节，不直接依赖传输层。
"""

from abc import ABC, abstractmethod
from typing import Optional

from websockets.asyncio.server import ServerConnection
from websockets.exceptions import ConnectionClosed

from ..exceptions import ConnectionClosedError


class Connection(ABC):
    """单个客户端的双向连接"""

    @abstractmethod
    async def send(self, payload: bytes) -> None:
        """发送一条负载

        Raises:
            ConnectionClosedError: 连接已不可用
        """

    @abstractmethod
    async def receive(self) -> bytes:
        """阻塞读取下一条负载

        Raises:
            ConnectionClosedError: 连接已关闭或损坏
        """

    @abstractmethod
    async def close(self) -> None:
        """释放连接"""

    @property
    def remote_address(self) -> Optional[str]:
        return None


class WebSocketConnection(Connection):
    """基于 websockets 的连接实现

    每个 WebSocket 帧是一条负载；出站负载以文本帧发送。
    """

    def __init__(self, websocket: ServerConnection):
        self.websocket = websocket

    async def send(self, payload: bytes) -> None:
        try:
            await self.websocket.send(payload.decode("utf-8", errors="replace"))
        except ConnectionClosed as e:
            raise ConnectionClosedError(f"send failed: {e}") from e

    async def receive(self) -> bytes:
        try:
            message = await self.websocket.recv()
        except ConnectionClosed as e:
            raise ConnectionClosedError(f"receive failed: {e}") from e

        if isinstance(message, str):
            return message.encode("utf-8")
        return bytes(message)

    async def close(self) -> None:
        await self.websocket.close()

    @property
    def remote_address(self) -> Optional[str]:
        address = self.websocket.remote_address
        if not address:
            return None
        return f"{address[0]}:{address[1]}"

    def __repr__(self) -> str:
        return f"WebSocketConnection({self.remote_address})"
