"""Roster 控制器：一次激活周期的编排。

激活流程：
1. SessionContextReader 解析身份；缺失则交给 Navigator 跳转登录页，不发任何请求。
2. 并发获取会话列表与联系人列表，各自独立写回。
3. 视图在每次读取时由 view() 惰性派生。

失活后仍在路上的任务不会被取消，它们的结果通过 Liveness 检查被丢弃。
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from roster_core.api.base import ChatBackend
from roster_core.domain.exceptions import BusinessError, StartInFlightError, ValidationError
from roster_core.domain.models import Conversation, SessionContext
from roster_core.domain.ports import Navigator, Notifier
from roster_core.domain.session import SessionContextReader
from roster_core.infrastructure.logging.logger import logger
from roster_core.roster.fetcher import RosterFetcher
from roster_core.roster.initiator import ConversationInitiator
from roster_core.roster.state import FetchOutcome, Liveness, RosterState
from roster_core.roster.view import RosterView, build_roster_view


class RosterController:
    def __init__(
        self,
        session_reader: SessionContextReader,
        backend: ChatBackend,
        navigator: Navigator,
        notifier: Notifier,
        settings,
    ):
        self._reader = session_reader
        self._navigator = navigator
        self._settings = settings
        self.state = RosterState()
        self._liveness = Liveness()
        self._fetcher = RosterFetcher(backend, self.state, self._liveness)
        self._initiator = ConversationInitiator(backend, notifier)
        self._session: Optional[SessionContext] = None

    @property
    def active(self) -> bool:
        return self._liveness.active

    @property
    def session(self) -> Optional[SessionContext]:
        return self._session

    async def activate(self) -> bool:
        """开始一个激活周期。返回 False 表示缺少凭证，已跳转登录页。"""

        session = self._reader.resolve()
        if session is None:
            self._log(logging.INFO, "roster.activate.no_session")
            self._navigator.go(self._settings.login_path)
            return False

        self._session = session
        self.state.reset()
        self.state.loading = True
        generation = self._liveness.begin()
        self._log(logging.INFO, "roster.activate", user_id=session.user_id, generation=generation)
        await self._fetcher.fetch_all(session, generation)
        return True

    def deactivate(self) -> None:
        """结束激活周期，丢弃集合；之后到达的结果不会再写回。"""

        self._liveness.end()
        self.state.reset()
        self._session = None
        self._log(logging.INFO, "roster.deactivate", generation=self._liveness.generation)

    async def retry(self) -> Optional[FetchOutcome]:
        """错误槽上的重试入口，只重新获取会话列表。"""

        if self._session is None or not self._liveness.active:
            return None
        return await self._fetcher.fetch_conversations(self._session, self._liveness.generation)

    async def start_conversation(self, contact_id: str) -> Optional[Conversation]:
        """用户点击联系人：发起或恢复会话，成功后跳转到会话页。

        被单飞保护拒绝或失败时返回 None；失败文案已由 Notifier 展示。
        """

        if self._session is None:
            return None
        generation = self._liveness.generation
        try:
            conversation = await self._initiator.start_or_resume(self._session, contact_id)
        except StartInFlightError:
            return None
        except BusinessError:
            # 失败文案已经交给 Notifier，这里不再向上抛
            return None
        if not self._liveness.is_current(generation):
            self._log(
                logging.INFO,
                "roster.start.discarded",
                conversation_id=conversation.id,
                generation=generation,
            )
            return conversation
        self._navigator.go(self._settings.chat_path(conversation.id))
        return conversation

    def open_conversation(self, conversation_id: str) -> None:
        self._navigator.go(self._settings.chat_path(conversation_id))

    def back(self) -> None:
        self._navigator.go(self._settings.home_path)

    def view(self, now: Optional[datetime] = None) -> RosterView:
        if self._session is None:
            raise ValidationError(code="NOT_ACTIVE", message="roster view requested outside an activation")
        return build_roster_view(
            self.state,
            self._session,
            now or datetime.now(timezone.utc),
            starting=self._initiator.in_flight,
            preview_max_chars=self._settings.preview_max_chars,
            default_avatar_url=self._settings.default_avatar_url,
        )

    @staticmethod
    def _log(level: int, message: str, **fields: Any) -> None:
        logger.log(level, message, extra={"extra": dict(fields)})
