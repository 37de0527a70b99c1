"""视图派生。

纯函数，不修改任何实体：每次渲染时基于当前持有的数据重新计算。
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional, Tuple

from roster_core.domain.exceptions import DataIntegrityError
from roster_core.domain.models import Contact, Conversation, SessionContext
from roster_core.roster.state import RosterState

NO_MESSAGES_PLACEHOLDER = "No messages yet"
PREVIEW_MAX_CHARS = 50
ELLIPSIS = "..."
UNKNOWN_USER = "Unknown User"
NO_LOCATION = "Location not specified"
NO_CONVERSATIONS = ("No conversations yet", "Start a chat with someone below!")
NO_CONTACTS = "No users available"
DEFAULT_AVATAR_URL = "https://randomuser.me/api/portraits/lego/1.jpg"

_MINUTE_MS = 60_000
_HOUR_MS = 3_600_000
_DAY_MS = 86_400_000


class Presence(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"

    @property
    def label(self) -> str:
        return "Online" if self is Presence.ONLINE else "Offline"


def counterpart(conversation: Conversation, session_user_id: str) -> Contact:
    """返回 id 与当前用户不同的那个参与者。"""

    for participant in conversation.participants:
        if participant.id != session_user_id:
            return participant
    raise DataIntegrityError(
        code="NO_COUNTERPART",
        message=f"conversation {conversation.id} has no participant other than {session_user_id}",
        conversation_id=conversation.id,
    )


def last_message_preview(conversation: Conversation, max_chars: int = PREVIEW_MAX_CHARS) -> str:
    last = conversation.last_message
    if last is None:
        return NO_MESSAGES_PLACEHOLDER
    if len(last.content) > max_chars:
        return last.content[:max_chars] + ELLIPSIS
    return last.content


def last_message_instant(conversation: Conversation) -> Optional[datetime]:
    last = conversation.last_message
    return last.timestamp if last is not None else None


def relative_time(instant: datetime, now: datetime) -> str:
    """把 now - instant 格式化为相对时间。

    各档位用已过毫秒数整除得到，每档下界包含在内；超过 7 天显示本地日期。
    """

    elapsed_ms = (now - instant) // timedelta(milliseconds=1)
    minutes = elapsed_ms // _MINUTE_MS
    hours = elapsed_ms // _HOUR_MS
    days = elapsed_ms // _DAY_MS
    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if hours < 24:
        return f"{hours}h ago"
    if days < 7:
        return f"{days}d ago"
    return calendar_date(instant)


def calendar_date(instant: datetime) -> str:
    # %x 按当前 locale 输出日期
    return instant.astimezone().strftime("%x")


def presence(contact: Contact) -> Presence:
    return Presence.ONLINE if contact.is_online else Presence.OFFLINE


@dataclass(frozen=True)
class ConversationRow:
    conversation_id: str
    name: str
    avatar_url: str
    preview: str
    time_label: str
    presence: Presence


@dataclass(frozen=True)
class ContactRow:
    contact_id: str
    name: str
    avatar_url: str
    location: str
    presence: Presence
    starting: bool


@dataclass(frozen=True)
class RosterView:
    """交给展示层的完整视图状态。

    空集合时对应的 *_placeholder 字段非空，rows 为空元组。
    """

    loading: bool
    error: Optional[str]
    conversations: Tuple[ConversationRow, ...]
    contacts: Tuple[ContactRow, ...]
    conversations_placeholder: Optional[Tuple[str, str]]
    contacts_placeholder: Optional[str]
    starting: bool


def conversation_row(
    conversation: Conversation,
    session_user_id: str,
    now: datetime,
    *,
    preview_max_chars: int = PREVIEW_MAX_CHARS,
    default_avatar_url: str = DEFAULT_AVATAR_URL,
) -> ConversationRow:
    other = counterpart(conversation, session_user_id)
    instant = last_message_instant(conversation)
    return ConversationRow(
        conversation_id=conversation.id,
        name=other.display_name or UNKNOWN_USER,
        avatar_url=other.avatar_url or default_avatar_url,
        preview=last_message_preview(conversation, preview_max_chars),
        time_label=relative_time(instant, now) if instant is not None else "",
        presence=presence(other),
    )


def contact_row(contact: Contact, *, starting: bool, default_avatar_url: str = DEFAULT_AVATAR_URL) -> ContactRow:
    return ContactRow(
        contact_id=contact.id,
        name=contact.display_name,
        avatar_url=contact.avatar_url or default_avatar_url,
        location=contact.location or NO_LOCATION,
        presence=presence(contact),
        starting=starting,
    )


def build_roster_view(
    state: RosterState,
    session: SessionContext,
    now: datetime,
    *,
    starting: bool = False,
    preview_max_chars: int = PREVIEW_MAX_CHARS,
    default_avatar_url: str = DEFAULT_AVATAR_URL,
) -> RosterView:
    conversations = tuple(
        conversation_row(
            c,
            session.user_id,
            now,
            preview_max_chars=preview_max_chars,
            default_avatar_url=default_avatar_url,
        )
        for c in state.conversations
    )
    contacts = tuple(
        contact_row(c, starting=starting, default_avatar_url=default_avatar_url) for c in state.contacts
    )
    return RosterView(
        loading=state.loading,
        error=state.error,
        conversations=conversations,
        contacts=contacts,
        conversations_placeholder=None if conversations else NO_CONVERSATIONS,
        contacts_placeholder=None if contacts else NO_CONTACTS,
        starting=starting,
    )
