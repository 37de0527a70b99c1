"""聊天后端抽象接口。

roster 组件不直接依赖 HTTP 细节，而是依赖此协议：

- ChatApiClient 是基于 httpx 的默认实现。
- 测试里可以用任何实现了这三个协程的对象替换。

所有方法在失败时抛出 domain.exceptions 中的 BusinessError 子类，
网络异常与非 2xx 响应都被归一化为同一种异常形状。
"""

from typing import List, Protocol

from roster_core.domain.models import Contact, Conversation, SessionContext


class ChatBackend(Protocol):
    """聊天后端客户端协议。

    - list_conversations: GET /api/chat
    - search_users: GET /api/users/search
    - start_conversation: POST /api/chat/start
    """

    async def list_conversations(self, session: SessionContext) -> List[Conversation]:
        ...

    async def search_users(self, session: SessionContext) -> List[Contact]:
        ...

    async def start_conversation(self, session: SessionContext, other_user_id: str) -> Conversation:
        ...
