"""客户端在线成员视图"""

from typing import List, Set

from ..protocol import ChatLine, LineKind, PresenceEvent


class Roster:
    """根据成员列表和在线事件增量维护的在线用户集合"""

    def __init__(self):
        self._names: Set[str] = set()

    def apply(self, line: ChatLine) -> bool:
        """应用一行服务器消息

        Args:
            line: 解析后的行

        Returns:
            成员集合是否发生变化
        """
        before = set(self._names)

        if line.kind == LineKind.MEMBERS:
            self._names = set(line.members)
        elif line.kind == LineKind.PRESENCE:
            if line.event == PresenceEvent.JOINED:
                self._names.add(line.sender)
            elif line.event == PresenceEvent.LEFT:
                self._names.discard(line.sender)

        return self._names != before

    def names(self) -> List[str]:
        return sorted(self._names)

    def clear(self) -> None:
        self._names.clear()

    def __contains__(self, name: str) -> bool:
        return name in self._names

    def __len__(self) -> int:
        return len(self._names)
