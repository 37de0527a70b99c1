"""Roster 可变状态与存活令牌。"""

from dataclasses import dataclass, field
from typing import Generic, Optional, Tuple, TypeVar

from roster_core.domain.exceptions import BusinessError
from roster_core.domain.models import Contact, Conversation

T = TypeVar("T")


@dataclass
class RosterState:
    """当前持有的 roster 数据。

    - conversations / contacts: 各自由一个获取任务整体替换，互不干扰。
    - error: 会话列表获取失败时的用户可见错误槽；联系人获取失败永远不写这里。
    - loading: 激活后到会话列表首次获取结束之前为 True。
    """

    conversations: Tuple[Conversation, ...] = ()
    contacts: Tuple[Contact, ...] = ()
    error: Optional[str] = None
    loading: bool = False

    def reset(self) -> None:
        self.conversations = ()
        self.contacts = ()
        self.error = None
        self.loading = False


@dataclass
class FetchOutcome(Generic[T]):
    """一次获取的结果。

    applied 为 False 表示结果到达时视图已失活（或已有更新的激活），被丢弃。
    """

    ok: bool
    value: Optional[T] = None
    error: Optional[BusinessError] = None
    applied: bool = False


@dataclass
class Liveness:
    """激活代数。

    每次激活 begin() 得到一个新代数；异步任务在写回结果前用 is_current()
    检查自己所属的代数是否仍然有效，失活后到达的结果一律丢弃。
    """

    generation: int = 0
    active: bool = field(default=False)

    def begin(self) -> int:
        self.generation += 1
        self.active = True
        return self.generation

    def end(self) -> None:
        self.active = False

    def is_current(self, generation: int) -> bool:
        return self.active and generation == self.generation
