"""
终端聊天界面

基于 rich 的行式界面：登录提示、消息渲染、/users 与 /quit 命令
"""

import asyncio
import threading
from typing import Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from .base import ChatClient
from ..exceptions import ConnectionClosedError, LoginError, NameTakenError
from ..protocol import ChatLine, LineKind, PresenceEvent

PROMPT = "\033[1;95m> \033[0m"

# 用户输入线程结束时放入队列的标记
_EOF = None


class ChatTerminal:
    """终端聊天界面

    Args:
        client: 聊天室客户端
        console: rich 控制台，默认新建
    """

    def __init__(self, client: ChatClient, console: Optional[Console] = None):
        self.client = client
        self.console = console or Console()
        self.running = False

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._inputs: "asyncio.Queue[Optional[str]]" = asyncio.Queue()
        self._input_thread: Optional[threading.Thread] = None
        self._input_active = False
        self._prompt_lock = threading.Lock()

    async def run(self, name: Optional[str] = None) -> None:
        """运行界面直到用户退出或服务器断开

        Args:
            name: 首次尝试的用户名，None 时提示输入
        """
        self.running = True
        self._loop = asyncio.get_running_loop()
        self._input_thread = threading.Thread(target=self._input_loop, daemon=True)
        self._input_thread.start()

        try:
            if not await self._login(name):
                return
            self.console.print(
                f"[green]已登录为 [bold]{self.client.name}[/bold]，"
                "输入 /users 查看在线用户，/quit 退出[/green]"
            )
            reader = asyncio.create_task(self._read_loop())
            writer = asyncio.create_task(self._write_loop())
            done, pending = await asyncio.wait(
                {reader, writer}, return_when=asyncio.FIRST_COMPLETED
            )
            for task in pending:
                task.cancel()
            for task in done:
                task.result()
        finally:
            self.running = False
            await self.client.close()

    async def _login(self, name: Optional[str]) -> bool:
        """登录循环：用户名被占用时重新提示"""
        while self.running:
            if not name:
                self.console.print("[bold]请输入用户名:[/bold]")
                name = await self._inputs.get()
                if name is _EOF:
                    return False

            try:
                await self.client.login(name)
                return True
            except NameTakenError as e:
                self.console.print(f"[red]{e.message}[/red]")
            except LoginError as e:
                self.console.print(f"[red]登录失败: {e.message}[/red]")
            except ConnectionClosedError as e:
                self.console.print(f"[red]{e.message}[/red]")
                return False
            name = None
        return False

    async def _read_loop(self) -> None:
        async for line in self.client.lines():
            self.print_line(line)
        self.print_message(Text("与服务器的连接已断开", style="red"))

    async def _write_loop(self) -> None:
        while True:
            text = await self._inputs.get()
            if text is _EOF or text.strip() == "/quit":
                return
            if text.strip() == "/users":
                self.show_users()
                continue
            if not text:
                continue
            try:
                await self.client.send(text)
            except ConnectionClosedError as e:
                self.print_message(Text(e.message, style="red"))
                return

    def render_line(self, line: ChatLine) -> Text:
        """把一行消息渲染为 rich Text"""
        if line.kind == LineKind.CHAT:
            text = Text()
            style = "bold green" if line.sender == self.client.name else "bold cyan"
            text.append(f"[{line.sender}] ", style=style)
            text.append(line.body or "")
            return text

        if line.kind == LineKind.PRESENCE:
            style = "yellow" if line.event == PresenceEvent.JOINED else "dim yellow"
            return Text(f"* {line.sender} has {line.event.value} the channel", style=style)

        if line.kind == LineKind.MEMBERS:
            members = ", ".join(line.members) or "-"
            return Text(f"* 在线用户: {members}", style="dim")

        return Text(line.text, style="dim")

    def print_line(self, line: ChatLine) -> None:
        self.print_message(self.render_line(line))

    def show_users(self) -> None:
        """以表格显示在线用户"""
        table = Table(title=f"在线用户 ({len(self.client.roster)})", show_header=False)
        table.add_column("name", style="cyan")
        for name in self.client.roster.names():
            table.add_row(name)
        self.print_message(table)

    def print_message(self, renderable) -> None:
        """打印消息并恢复输入提示符，避免打断用户输入"""
        with self._prompt_lock:
            if self._input_active:
                print("\r\033[K", end="", flush=True)
            self.console.print(renderable)
            if self._input_active:
                print(PROMPT, end="", flush=True)

    def _input_loop(self) -> None:
        """输入循环（在单独线程中运行）"""
        while self.running:
            try:
                with self._prompt_lock:
                    self._input_active = True
                    print(PROMPT, end="", flush=True)
                user_input = input()
            except (EOFError, KeyboardInterrupt):
                user_input = _EOF
            finally:
                with self._prompt_lock:
                    self._input_active = False

            if self._loop.is_closed():
                break
            self._loop.call_soon_threadsafe(self._inputs.put_nowait, user_input)
            if user_input is _EOF:
                break
