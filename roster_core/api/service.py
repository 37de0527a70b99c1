"""对外 API 服务模块。

提供简化的函数接口供上层应用（UI 外壳）调用。
"""

from typing import Any, Dict, Optional

from roster_core.api.base import ChatBackend
from roster_core.api.client import ChatApiClient
from roster_core.config.settings import settings
from roster_core.domain.ports import Navigator, Notifier, SessionStore
from roster_core.domain.session import SessionContextReader
from roster_core.infrastructure.storage.json_session_store import JsonSessionStore
from roster_core.roster.controller import RosterController
from roster_core.roster.view import RosterView


_session_store: Optional[SessionStore] = None


def get_default_session_store() -> SessionStore:
    """获取默认的 JSON 会话存储（单例）。"""
    global _session_store
    if _session_store is None:
        _session_store = JsonSessionStore(settings.session_file)
    return _session_store


def create_roster_controller(
    navigator: Navigator,
    notifier: Notifier,
    session_store: Optional[SessionStore] = None,
    backend: Optional[ChatBackend] = None,
) -> RosterController:
    """按默认配置组装一个 RosterController。

    Args:
        navigator: 导航协作者
        notifier: 一次性提示协作者
        session_store: 会话存储（可选，默认使用 JSON 文件存储）
        backend: 聊天后端（可选，默认使用 httpx 客户端）
    """
    return RosterController(
        session_reader=SessionContextReader(session_store or get_default_session_store()),
        backend=backend or ChatApiClient(settings),
        navigator=navigator,
        notifier=notifier,
        settings=settings,
    )


def view_to_dict(view: RosterView) -> Dict[str, Any]:
    """把 RosterView 转成可序列化的字典，供非 Python 的展示层使用。

    Returns:
        包含 loading、error、conversations、contacts 与占位文案的字典
    """
    return {
        "loading": view.loading,
        "error": view.error,
        "starting": view.starting,
        "conversations": [
            {
                "id": row.conversation_id,
                "name": row.name,
                "avatar": row.avatar_url,
                "preview": row.preview,
                "time": row.time_label,
                "presence": row.presence.value,
                "presence_label": row.presence.label,
            }
            for row in view.conversations
        ],
        "contacts": [
            {
                "id": row.contact_id,
                "name": row.name,
                "avatar": row.avatar_url,
                "location": row.location,
                "presence": row.presence.value,
                "presence_label": row.presence.label,
                "starting": row.starting,
            }
            for row in view.contacts
        ],
        "conversations_placeholder": list(view.conversations_placeholder) if view.conversations_placeholder else None,
        "contacts_placeholder": view.contacts_placeholder,
    }
