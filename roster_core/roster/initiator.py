"""会话发起器（start-or-resume）。

单飞保护：一次调用未结束前，后续调用在客户端直接被拒绝，不发网络请求。
保护标志在所有退出路径（包括失败）上都会被释放。

注意：这只能防止本客户端重复提交。同一对用户在两个客户端并发发起时，
是否会产生重复会话取决于后端是否对 (session_user_id, contact_id) 做唯一约束。
"""

import logging
from typing import Any

from roster_core.api.base import ChatBackend
from roster_core.domain.exceptions import ApiError, BusinessError, StartInFlightError
from roster_core.domain.models import Conversation, SessionContext
from roster_core.domain.ports import Notifier
from roster_core.infrastructure.logging.logger import logger

START_FALLBACK = "Failed to start chat"
START_RETRY_FALLBACK = "Failed to start chat. Please try again."


class ConversationInitiator:
    def __init__(self, backend: ChatBackend, notifier: Notifier):
        self._backend = backend
        self._notifier = notifier
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    async def start_or_resume(self, session: SessionContext, contact_id: str) -> Conversation:
        """发起或恢复与 contact_id 的会话，返回后端给出的会话。

        Raises:
            StartInFlightError: 已有调用在进行中。
            BusinessError: 后端或网络失败；失败文案已通过 Notifier 展示。
        """

        if self._in_flight:
            self._log(logging.INFO, "initiator.rejected", contact_id=contact_id)
            raise StartInFlightError(
                code="START_IN_FLIGHT",
                message="A conversation start is already in progress",
                http_status=409,
                contact_id=contact_id,
            )

        self._in_flight = True
        try:
            conversation = await self._backend.start_conversation(session, contact_id)
        except BusinessError as e:
            notice = e.message if isinstance(e, ApiError) else START_RETRY_FALLBACK
            self._log(
                logging.ERROR,
                "initiator.failed",
                contact_id=contact_id,
                code=e.code,
                http_status=e.http_status,
                error=e.message,
            )
            self._notifier.notify(notice)
            raise
        finally:
            self._in_flight = False

        self._log(logging.INFO, "initiator.started", contact_id=contact_id, conversation_id=conversation.id)
        return conversation

    @staticmethod
    def _log(level: int, message: str, **fields: Any) -> None:
        logger.log(level, message, extra={"extra": dict(fields)})
