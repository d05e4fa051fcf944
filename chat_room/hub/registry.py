"""Hub 用户注册表"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from .connection import Connection
from ..exceptions import NameTakenError
from ..utils import get_logger


@dataclass(frozen=True)
class User:
    """已登录用户：唯一用户名与其连接"""

    name: str
    connection: Connection


class Registry:
    """在线用户注册表

    用户名 -> User 的映射，是"谁在线"的唯一依据。
    只应由 Hub 控制任务修改。
    """

    def __init__(self):
        self._users: Dict[str, User] = {}
        self.logger = get_logger("chat_room.hub.registry")

    def try_register(self, name: str, connection: Connection) -> User:
        """注册用户

        Args:
            name: 用户名
            connection: 用户连接

        Returns:
            新注册的用户

        Raises:
            NameTakenError: 用户名已被占用，注册表保持不变
        """
        if name in self._users:
            self.logger.info(f"用户名 {name!r} 已被占用，拒绝注册")
            raise NameTakenError(name)

        user = User(name=name, connection=connection)
        self._users[name] = user
        self.logger.info(f"注册用户: {name}")
        return user

    def remove(self, name: str) -> bool:
        """移除用户

        Args:
            name: 用户名

        Returns:
            是否移除成功；用户不存在时仅记录日志
        """
        if self._users.pop(name, None) is None:
            self.logger.info(f"用户 {name!r} 不在注册表中，忽略注销")
            return False

        self.logger.info(f"注销用户: {name}")
        return True

    def get(self, name: str) -> Optional[User]:
        return self._users.get(name)

    def snapshot(self) -> List[User]:
        """当前成员的时间点副本，用于广播"""
        return list(self._users.values())

    def names(self) -> List[str]:
        return sorted(self._users)

    def __contains__(self, name: str) -> bool:
        return name in self._users

    def __len__(self) -> int:
        return len(self._users)
