"""
聊天室服务器命令行入口
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from ..hub import run_server
from ..utils import ChatConfig, configure_logging, get_logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Chat room server")
    parser.add_argument("--host", default=None, help="Host address")
    parser.add_argument("--port", type=int, default=None, help="Port number")
    parser.add_argument(
        "--max-connections", type=int, default=None, help="Maximum concurrent sessions"
    )
    parser.add_argument("--log-level", default=None, help="Log level")
    parser.add_argument("--log-file", default=None, help="Write logs to this file")
    parser.add_argument(
        "--plain-logs", action="store_true", help="Disable rich console logging"
    )
    return parser


def load_config(args: argparse.Namespace) -> ChatConfig:
    """环境变量配置叠加命令行参数"""
    config = ChatConfig.from_env()
    config.update(
        host=args.host,
        port=args.port,
        max_connections=args.max_connections,
        log_level=args.log_level,
        log_file=args.log_file,
    )
    if args.plain_logs:
        config.enable_rich_logging = False
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
    logger = get_logger("chat_room.cli")

    try:
        asyncio.run(run_server(config))
    except KeyboardInterrupt:
        logger.info("再见!")
    except OSError as e:
        logger.error(f"服务器异常退出: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
