"""
聊天室终端客户端命令行入口
"""

import argparse
import asyncio
import os
import sys
from typing import List, Optional

from rich.console import Console

from ..client import ChatClient, ChatTerminal
from ..utils import ChatConfig, configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Chat room terminal client")
    parser.add_argument("--url", default=None, help="Server WebSocket URL")
    parser.add_argument("--name", default=None, help="Username to log in with")
    parser.add_argument("--log-level", default=None, help="Log level")
    parser.add_argument("--log-file", default=None, help="Write logs to this file")
    return parser


def load_config(args: argparse.Namespace) -> ChatConfig:
    """环境变量配置叠加命令行参数"""
    config = ChatConfig.from_env()
    config.update(server_url=args.url, log_file=args.log_file)
    # 终端被聊天内容占用，默认只输出警告及以上日志
    config.log_level = args.log_level or os.getenv("CHAT_LOG_LEVEL", "WARNING")
    return config


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config(args)

    configure_logging(
        level=config.log_level,
        log_file=config.log_file,
        enable_rich=config.enable_rich_logging,
        log_format=config.log_format,
    )

    console = Console()
    terminal = ChatTerminal(ChatClient(config.server_url), console)
    try:
        asyncio.run(terminal.run(args.name))
    except KeyboardInterrupt:
        pass
    console.print("[yellow]再见![/yellow]")
    return 0


if __name__ == "__main__":
    sys.exit(main())
