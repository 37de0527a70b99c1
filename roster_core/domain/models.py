"""聊天列表使用的统一数据模型。

本模块定义了 roster 核心在各组件之间共享的标准数据结构：

- SessionContext: 当前登录身份与凭证。
- Contact: 目录查询返回的用户快照。
- Message: 会话中的一条消息。
- Conversation: 后端拥有、本地只读缓存的一段会话。

所有结构都是不可变的；获取成功时整体替换集合，不做原地修改。
API 客户端负责在后端 JSON 和这些模型之间做转换。
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple


@dataclass(frozen=True)
class SessionContext:
    """当前会话身份。

    - user_id: 当前登录用户 ID，用于确定 counterpart 与过滤联系人。
    - token: Bearer 凭证，所有接口调用都需要。
    """

    user_id: str
    token: str

    def __repr__(self) -> str:
        # token 不进入日志
        return f"SessionContext(user_id={self.user_id!r}, token='***')"


@dataclass(frozen=True)
class Contact:
    id: str
    display_name: str
    avatar_url: Optional[str] = None
    location: Optional[str] = None
    is_online: bool = False


@dataclass(frozen=True)
class Message:
    content: str
    timestamp: datetime  # 带时区


@dataclass(frozen=True)
class Conversation:
    """一段会话。

    participants 应恰好包含当前用户和一个 counterpart；
    messages 按追加顺序（时间顺序）排列，最后一个元素即“最后一条消息”。
    """

    id: str
    participants: Tuple[Contact, ...]
    messages: Tuple[Message, ...] = ()

    @property
    def last_message(self) -> Optional[Message]:
        return self.messages[-1] if self.messages else None
