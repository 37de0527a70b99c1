"""聊天后端 HTTP 适配器。

本模块负责：

1. 为三个 REST 接口构造带 Bearer 凭证的请求。
2. 调用 HTTP 接口并把网络/API 异常归一化为 BusinessError。
3. 在边界处把响应 JSON 解析为 Conversation / Contact / Message，
   结构不符时抛出 ValidationError，而不是把“鸭子类型”的字典传给上层。
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

from roster_core.domain.exceptions import ApiError, NetworkError, ValidationError
from roster_core.domain.models import Contact, Conversation, Message, SessionContext

CONVERSATIONS_PATH = "/api/chat"
USERS_SEARCH_PATH = "/api/users/search"
START_CONVERSATION_PATH = "/api/chat/start"


class ChatApiClient:
    """聊天后端客户端实现。

    每次调用创建一个短生命周期的 httpx.AsyncClient，超时策略完全交给
    settings.http_timeout，本层不做重试。
    """

    def __init__(self, settings):
        # Settings 里包含 api_base_url、超时等配置
        self._settings = settings

    async def list_conversations(self, session: SessionContext) -> List[Conversation]:
        data = await self._request(
            "GET", CONVERSATIONS_PATH, session, fallback_message="Failed to fetch chats"
        )
        return [parse_conversation(item) for item in _expect_list(data, CONVERSATIONS_PATH)]

    async def search_users(self, session: SessionContext) -> List[Contact]:
        data = await self._request(
            "GET", USERS_SEARCH_PATH, session, fallback_message="Failed to fetch users"
        )
        return [parse_contact(item) for item in _expect_list(data, USERS_SEARCH_PATH)]

    async def start_conversation(self, session: SessionContext, other_user_id: str) -> Conversation:
        data = await self._request(
            "POST",
            START_CONVERSATION_PATH,
            session,
            fallback_message="Failed to start chat",
            json_body={"otherUserId": other_user_id},
        )
        return parse_conversation(data)

    async def _request(
        self,
        method: str,
        path: str,
        session: SessionContext,
        *,
        fallback_message: str,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """发送请求并返回解析后的 JSON。

        - httpx.RequestError -> NetworkError
        - 状态码 >= 400 -> ApiError（message 优先取响应体中的 message 字段）
        """

        headers = {"Authorization": f"Bearer {session.token}"}
        if json_body is not None:
            headers["Content-Type"] = "application/json"
        try:
            async with httpx.AsyncClient(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = await client.request(
                    method,
                    f"{self._settings.api_base_url}{path}",
                    json=json_body,
                    headers=headers,
                )
        except httpx.RequestError as e:
            # 网络错误：DNS 失败、连接超时等
            raise NetworkError(code="NETWORK_ERROR", message=str(e), endpoint=path)
        if resp.status_code >= 400:
            server_message = _server_message(resp)
            raise ApiError(
                code="API_ERROR",
                message=server_message or fallback_message,
                http_status=resp.status_code,
                server_message=server_message,
                endpoint=path,
            )
        try:
            return resp.json()
        except ValueError as e:
            raise ValidationError(code="BAD_PAYLOAD", message=f"{path}: invalid JSON ({e})", endpoint=path)


def _server_message(resp) -> Optional[str]:
    """读取错误响应中的 message 字段，响应体不是 JSON 时返回 None。"""

    try:
        body = resp.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, str) and message:
            return message
    return None


def _expect_list(data: Any, path: str) -> List[Any]:
    if not isinstance(data, list):
        raise ValidationError(code="BAD_PAYLOAD", message=f"{path}: expected a JSON array", endpoint=path)
    return data


def _require_id(data: Dict[str, Any], kind: str) -> str:
    raw = data.get("_id", data.get("id"))
    if raw is None or raw == "":
        raise ValidationError(code="BAD_PAYLOAD", message=f"{kind} record without _id")
    return str(raw)


def parse_contact(data: Any) -> Contact:
    """把后端用户记录转换为 Contact。"""

    if not isinstance(data, dict):
        raise ValidationError(code="BAD_PAYLOAD", message="user record must be an object")
    return Contact(
        id=_require_id(data, "user"),
        display_name=str(data.get("name") or ""),
        avatar_url=data.get("avatar") or None,
        location=data.get("location") or None,
        # 只有 JSON true 才算在线，"false" 之类的字符串不算
        is_online=data.get("isOnline") is True,
    )


def parse_message(data: Any) -> Message:
    if not isinstance(data, dict):
        raise ValidationError(code="BAD_PAYLOAD", message="message record must be an object")
    content = data.get("content")
    if not isinstance(content, str):
        raise ValidationError(code="BAD_PAYLOAD", message="message record without content")
    return Message(content=content, timestamp=parse_timestamp(data.get("timestamp")))


def parse_conversation(data: Any) -> Conversation:
    """把后端会话记录（含嵌套 participants / messages）转换为 Conversation。

    messages 保持后端返回的追加顺序，不在客户端重新排序。
    """

    if not isinstance(data, dict):
        raise ValidationError(code="BAD_PAYLOAD", message="chat record must be an object")
    participants_raw = data.get("participants") or []
    messages_raw = data.get("messages") or []
    if not isinstance(participants_raw, list) or not isinstance(messages_raw, list):
        raise ValidationError(code="BAD_PAYLOAD", message="participants/messages must be arrays")
    return Conversation(
        id=_require_id(data, "chat"),
        participants=tuple(parse_contact(p) for p in participants_raw),
        messages=tuple(parse_message(m) for m in messages_raw),
    )


def parse_timestamp(raw: Any) -> datetime:
    """解析 ISO-8601 字符串或毫秒时间戳，统一返回带时区的 datetime。"""

    if isinstance(raw, bool):
        raise ValidationError(code="BAD_PAYLOAD", message=f"invalid timestamp: {raw!r}")
    if isinstance(raw, (int, float)):
        return datetime.fromtimestamp(raw / 1000, tz=timezone.utc)
    if isinstance(raw, str) and raw:
        try:
            dt = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError(code="BAD_PAYLOAD", message=f"invalid timestamp: {raw!r}")
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt
    raise ValidationError(code="BAD_PAYLOAD", message=f"invalid timestamp: {raw!r}")
