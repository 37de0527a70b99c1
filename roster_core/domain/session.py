"""会话上下文读取。

当前用户的推导只在这里做一次，其他组件一律消费 resolve() 的结果，
不再自行解析 session store 的内容。
"""

from typing import Any, Optional

from roster_core.domain.exceptions import BusinessError
from roster_core.domain.models import SessionContext
from roster_core.domain.ports import SessionStore
from roster_core.infrastructure.logging.logger import logger


class SessionContextReader:
    """从外部 SessionStore 解析出 SessionContext。

    resolve() 返回 None 表示前置条件不满足（未登录或凭证已清除），
    调用方必须转交给导航协作者，而不是发起任何网络请求。
    """

    def __init__(self, store: SessionStore):
        self._store = store

    def resolve(self) -> Optional[SessionContext]:
        try:
            record = self._store.read()
        except BusinessError as e:
            # 凭证文件损坏或不可读，等同于未登录
            logger.warning(
                "session.unreadable",
                extra={"extra": {"code": e.code, "error": e.message}},
            )
            return None
        if not isinstance(record, dict):
            return None
        token = record.get("token")
        if not isinstance(token, str) or not token:
            return None
        user_id = _extract_user_id(record.get("user"))
        if not user_id:
            return None
        return SessionContext(user_id=user_id, token=token)


def _extract_user_id(user: Any) -> Optional[str]:
    # 后端用户记录使用 _id，兼容 id
    if not isinstance(user, dict):
        return None
    raw = user.get("_id") or user.get("id")
    if raw is None:
        return None
    return str(raw)
