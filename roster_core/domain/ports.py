"""外部协作者协议。

roster 核心不实现这些能力，只依赖以下协议：

- SessionStore: 同步读取 {token, user}，对本核心只读。
- Navigator: 唯一操作 "go to path"。
- Notifier: 展示一次性的、可关闭的提示（不进入持久错误状态）。
"""

from typing import Any, Dict, Optional, Protocol


class SessionStore(Protocol):
    def read(self) -> Optional[Dict[str, Any]]:
        """返回 {"token": str, "user": {...}}，未登录时返回 None。"""

        ...


class Navigator(Protocol):
    def go(self, path: str) -> None:
        ...


class Notifier(Protocol):
    def notify(self, message: str) -> None:
        ...
