import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional
from uuid import uuid4

from roster_core.config.settings import settings
from roster_core.domain.exceptions import BusinessError
from roster_core.domain.ports import SessionStore


class JsonSessionStore(SessionStore):
    """把登录凭证保存在单个 JSON 文件中。

    生命周期：登录时 save()，登出时 clear()；roster 核心只调用 read()。
    """

    def __init__(self, path: str | Path | None = None):
        self._path = Path(path or settings.session_file).resolve()
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> Optional[Dict[str, Any]]:
        if not self._path.exists():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise BusinessError(code="STORE_READ_ERROR", message=str(e))
        if not isinstance(data, dict):
            return None
        return {"token": data.get("token"), "user": data.get("user")}

    def save(self, token: str, user: Dict[str, Any]) -> None:
        obj = {
            "token": token,
            "user": user,
            "saved_at": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        }
        tmp_path = self._path.parent / f"session.{uuid4().hex}.json.tmp"
        try:
            tmp_path.write_text(json.dumps(obj, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as e:
            raise BusinessError(code="STORE_WRITE_ERROR", message=str(e))

    def clear(self) -> None:
        try:
            self._path.unlink(missing_ok=True)
        except OSError as e:
            raise BusinessError(code="STORE_DELETE_ERROR", message=str(e))
