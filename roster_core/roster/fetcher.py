"""Roster 获取器。

两个互相独立的获取操作，形状相同但失败策略不同：

- 会话列表失败：写入用户可见的错误槽，可重试，保留旧集合。
- 联系人列表失败：只记日志，不进入错误槽，也没有重试入口。

这种不对称是有意保留的。
"""

import asyncio
import logging
from typing import Any, Dict, List, Tuple

from roster_core.api.base import ChatBackend
from roster_core.domain.exceptions import ApiError, BusinessError, NetworkError
from roster_core.domain.models import Contact, Conversation, SessionContext
from roster_core.infrastructure.logging.logger import logger
from roster_core.roster.state import FetchOutcome, Liveness, RosterState

CONVERSATIONS_FALLBACK = "Failed to fetch chats"
CONNECT_FALLBACK = "Failed to connect to server"


def conversation_error_message(err: BusinessError) -> str:
    """会话列表失败时展示给用户的文案。"""

    if isinstance(err, NetworkError):
        return CONNECT_FALLBACK
    if isinstance(err, ApiError):
        return err.server_message or CONVERSATIONS_FALLBACK
    return CONVERSATIONS_FALLBACK


class RosterFetcher:
    def __init__(self, backend: ChatBackend, state: RosterState, liveness: Liveness):
        self._backend = backend
        self._state = state
        self._liveness = liveness

    async def fetch_all(
        self, session: SessionContext, generation: int
    ) -> Tuple[FetchOutcome[List[Conversation]], FetchOutcome[List[Contact]]]:
        """并发发起两个获取，彼此之间没有顺序依赖。"""

        conversations, contacts = await asyncio.gather(
            self.fetch_conversations(session, generation),
            self.fetch_contacts(session, generation),
        )
        return conversations, contacts

    async def fetch_conversations(
        self, session: SessionContext, generation: int
    ) -> FetchOutcome[List[Conversation]]:
        try:
            items = await self._backend.list_conversations(session)
        except BusinessError as e:
            outcome: FetchOutcome[List[Conversation]] = FetchOutcome(ok=False, error=e)
            if self._is_stale(generation, "conversations"):
                return outcome
            self._state.error = conversation_error_message(e)
            self._state.loading = False
            outcome.applied = True
            self._log(
                logging.WARNING,
                "roster.conversations.failed",
                generation=generation,
                code=e.code,
                http_status=e.http_status,
                error=e.message,
            )
            return outcome

        outcome = FetchOutcome(ok=True, value=items)
        if self._is_stale(generation, "conversations"):
            return outcome
        self._state.conversations = tuple(items)
        self._state.error = None
        self._state.loading = False
        outcome.applied = True
        self._log(logging.INFO, "roster.conversations.loaded", generation=generation, count=len(items))
        return outcome

    async def fetch_contacts(self, session: SessionContext, generation: int) -> FetchOutcome[List[Contact]]:
        try:
            items = await self._backend.search_users(session)
        except BusinessError as e:
            # 仅用于诊断，不写错误槽
            self._log(
                logging.ERROR,
                "roster.contacts.failed",
                generation=generation,
                code=e.code,
                http_status=e.http_status,
                error=e.message,
            )
            return FetchOutcome(ok=False, error=e)

        candidates = [c for c in items if c.id != session.user_id]
        outcome = FetchOutcome(ok=True, value=candidates)
        if self._is_stale(generation, "contacts"):
            return outcome
        self._state.contacts = tuple(candidates)
        outcome.applied = True
        self._log(
            logging.INFO,
            "roster.contacts.loaded",
            generation=generation,
            count=len(candidates),
            filtered=len(items) - len(candidates),
        )
        return outcome

    def _is_stale(self, generation: int, slice_name: str) -> bool:
        if self._liveness.is_current(generation):
            return False
        self._log(
            logging.INFO,
            "roster.result.discarded",
            slice=slice_name,
            generation=generation,
            current=self._liveness.generation,
        )
        return True

    @staticmethod
    def _log(level: int, message: str, **fields: Any) -> None:
        payload: Dict[str, Any] = dict(fields)
        logger.log(level, message, extra={"extra": payload})
