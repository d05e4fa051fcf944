"""Hub 控制循环

Hub 是注册表的唯一写者。注册、注销、广播和成员查询都作为操作提交到同一个队列，
由单个控制任务按到达顺序逐个处理，任意两个操作不会交错执行。
"""

import asyncio
from dataclasses import dataclass
from typing import List, Optional, Union

from .connection import Connection
from .registry import Registry, User
from ..exceptions import HubClosedError, NameTakenError
from ..protocol import (
    LoginReply,
    Message,
    PresenceEvent,
    format_members,
    format_presence,
)
from ..utils import get_logger


@dataclass
class RegisterOperation:
    user: User
    future: asyncio.Future


@dataclass
class DeregisterOperation:
    name: str


@dataclass
class BroadcastOperation:
    message: Message


@dataclass
class MembersOperation:
    future: asyncio.Future


Operation = Union[
    RegisterOperation, DeregisterOperation, BroadcastOperation, MembersOperation
]


class Hub:
    """聊天室协调者

    Args:
        registry: 用户注册表，默认新建
        send_timeout: 单个接收者的发送超时（秒），None 表示不限制
    """

    def __init__(
        self, registry: Optional[Registry] = None, send_timeout: Optional[float] = 10.0
    ):
        self.registry = registry if registry is not None else Registry()
        self.send_timeout = send_timeout

        self._operations: "asyncio.Queue[Operation]" = asyncio.Queue()
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self._running = False
        self._closed = False

        self.logger = get_logger("chat_room.hub")

    @property
    def running(self) -> bool:
        return self._running

    @property
    def closed(self) -> bool:
        return self._closed

    # ===========================================
    # 公开操作 - 会话通过这些方法提交操作
    # ===========================================

    async def register(self, name: str, connection: Connection) -> User:
        """提交注册并等待结果

        成功时 Hub 已向该连接写入登录成功应答和成员列表，随后广播加入事件。

        Args:
            name: 用户名
            connection: 用户连接

        Returns:
            注册成功的用户

        Raises:
            NameTakenError: 用户名已被占用
            HubClosedError: Hub 已关闭
        """
        future = asyncio.get_running_loop().create_future()
        self._submit(RegisterOperation(User(name, connection), future))
        return await future

    async def deregister(self, name: str) -> None:
        """提交注销，不等待处理完成"""
        self._submit(DeregisterOperation(name))

    async def broadcast(self, sender: str, body: bytes) -> None:
        """提交广播，不等待处理完成"""
        self._submit(BroadcastOperation(Message(sender, body)))

    async def members(self) -> List[str]:
        """获取当前在线用户名列表（已排序），不修改注册表"""
        future = asyncio.get_running_loop().create_future()
        self._submit(MembersOperation(future))
        return await future

    async def drain(self) -> None:
        """等待所有已提交的操作处理完毕"""
        await self._operations.join()

    def _submit(self, operation: Operation) -> None:
        if self._closed:
            raise HubClosedError()
        self._operations.put_nowait(operation)

    # ===========================================
    # 生命周期
    # ===========================================

    async def start(self) -> None:
        """在后台任务中启动控制循环"""
        if self._task is not None:
            self.logger.warning("Hub 已经在运行")
            return
        self._task = asyncio.create_task(self.run(), name="chat-room-hub")

    async def stop(self) -> None:
        """停止控制循环

        正在处理的操作会完成，队列中剩余的操作不再处理。
        """
        self._stop_event.set()
        if self._task is not None:
            await self._task
            self._task = None
        elif not self._running and not self._closed:
            self._close()

    async def run(self) -> None:
        """控制循环：逐个处理操作，直到收到停止信号"""
        if self._running or self._closed:
            self.logger.warning("Hub 控制循环不能重复运行")
            return

        self._running = True
        self.logger.info("Hub 控制循环启动")

        stop_waiter = asyncio.ensure_future(self._stop_event.wait())
        getter: Optional[asyncio.Future] = None
        try:
            while True:
                getter = asyncio.ensure_future(self._operations.get())
                done, _ = await asyncio.wait(
                    {getter, stop_waiter}, return_when=asyncio.FIRST_COMPLETED
                )
                if stop_waiter in done:
                    break

                operation = getter.result()
                getter = None
                try:
                    await self._dispatch(operation)
                finally:
                    self._operations.task_done()
        finally:
            stop_waiter.cancel()
            if getter is not None:
                if getter.done() and not getter.cancelled():
                    # 与停止信号同时取出的操作同样不再处理
                    self._reject(getter.result())
                    self._operations.task_done()
                else:
                    getter.cancel()
            self._running = False
            self._close()
            self.logger.info("Hub 已关闭")

    def _close(self) -> None:
        self._closed = True
        while True:
            try:
                operation = self._operations.get_nowait()
            except asyncio.QueueEmpty:
                break
            self._reject(operation)
            self._operations.task_done()

    def _reject(self, operation: Operation) -> None:
        future = getattr(operation, "future", None)
        if future is not None and not future.done():
            future.set_exception(HubClosedError())

    # ===========================================
    # 操作处理
    # ===========================================

    async def _dispatch(self, operation: Operation) -> None:
        if isinstance(operation, RegisterOperation):
            await self._handle_register(operation)
        elif isinstance(operation, DeregisterOperation):
            await self._handle_deregister(operation)
        elif isinstance(operation, BroadcastOperation):
            await self._handle_broadcast(operation)
        elif isinstance(operation, MembersOperation):
            if not operation.future.done():
                operation.future.set_result(self.registry.names())
        else:
            self.logger.error(f"未知操作: {operation!r}")

    async def _handle_register(self, operation: RegisterOperation) -> None:
        user = operation.user
        if operation.future.done():
            # 提交者已放弃等待，注册后将无人注销
            self.logger.debug(f"用户 {user.name!r} 的注册请求已取消，跳过")
            return

        try:
            self.registry.try_register(user.name, user.connection)
        except NameTakenError as e:
            operation.future.set_exception(e)
            return

        operation.future.set_result(user)

        # 新用户先收到登录应答和成员列表，然后所有人收到加入事件
        await self._send(user, LoginReply.ACCEPTED.to_bytes())
        await self._send(user, format_members(self.registry.names()))
        await self._fan_out(format_presence(user.name, PresenceEvent.JOINED))

    async def _handle_deregister(self, operation: DeregisterOperation) -> None:
        if not self.registry.remove(operation.name):
            return
        await self._fan_out(format_presence(operation.name, PresenceEvent.LEFT))

    async def _handle_broadcast(self, operation: BroadcastOperation) -> None:
        message = operation.message
        self.logger.debug(
            f"广播来自 {message.sender} 的消息 ({len(message.body)} bytes)"
        )
        await self._fan_out(message.compose())

    async def _fan_out(self, payload: bytes) -> int:
        """向当前所有成员发送负载

        Returns:
            发送成功的接收者数量
        """
        recipients = self.registry.snapshot()
        if not recipients:
            return 0

        results = await asyncio.gather(*(self._send(user, payload) for user in recipients))
        sent = sum(results)
        if sent < len(recipients):
            self.logger.debug(f"广播完成: 成功 {sent}，失败 {len(recipients) - sent}")
        return sent

    async def _send(self, user: User, payload: bytes) -> bool:
        try:
            await asyncio.wait_for(user.connection.send(payload), self.send_timeout)
            return True
        except asyncio.TimeoutError:
            self.logger.warning(f"向 {user.name} 发送消息超时")
        except Exception as e:
            self.logger.warning(f"向 {user.name} 发送消息失败: {e}")
        return False

    def get_stats(self) -> dict:
        return {
            "running": self._running,
            "closed": self._closed,
            "users": len(self.registry),
            "pending_operations": self._operations.qsize(),
        }
