"""AuditLogger — append-only record of messages, auth, tool use, errors, rate limits."""
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from src.constants import (
    AUDIT_DEFAULT_PATH,
    AUDIT_SEPARATOR,
    AUDIT_TRUNCATE_AT,
    AUDIT_TRUNCATED_FIELDS,
)

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def format_event(event: dict[str, Any], json_format: bool) -> str:
    match json_format:
        case True:
            return json.dumps(event) + "\n"
        case False:
            lines = ["\n" + AUDIT_SEPARATOR]
            for key, value in event.items():
                shown = str(value)
                if key in AUDIT_TRUNCATED_FIELDS and len(shown) > AUDIT_TRUNCATE_AT:
                    shown = shown[:AUDIT_TRUNCATE_AT] + "..."
                lines.append(f"{key}: {shown}")
            return "\n".join(lines) + "\n"


class AuditLogger:

    def __init__(self, path: Path = Path(AUDIT_DEFAULT_PATH), json_format: bool = False) -> None:
        self._path = Path(path)
        self._json = json_format

    def _write(self, event: dict[str, Any]) -> None:
        try:
            with open(self._path, "a", encoding="utf-8") as f:
                f.write(format_event(event, self._json))
        except Exception as e:
            logger.warning("Audit log write failed: %s", e)

    def _base(self, kind: str, user_id: int, username: str) -> dict[str, Any]:
        return {"timestamp": _now(), "event": kind, "user_id": user_id, "username": username}

    def log_message(
        self,
        user_id: int,
        username: str,
        message_type: str,
        content: str,
        response: str = "",
    ) -> None:
        event = self._base("message", user_id, username)
        event.update(message_type=message_type, content=content)
        if response:
            event["response"] = response
        self._write(event)

    def log_auth(self, user_id: int, username: str, authorized: bool) -> None:
        event = self._base("auth", user_id, username)
        event["authorized"] = authorized
        self._write(event)

    def log_tool_use(
        self,
        user_id: int,
        username: str,
        tool_name: str,
        tool_input: dict[str, Any],
        blocked: bool = False,
        reason: str = "",
    ) -> None:
        event = self._base("tool_use", user_id, username)
        event.update(tool_name=tool_name, tool_input=tool_input, blocked=blocked)
        if blocked and reason:
            event["reason"] = reason
        self._write(event)

    def log_error(self, user_id: int, username: str, error: str, context: str = "") -> None:
        event = self._base("error", user_id, username)
        event["error"] = error
        if context:
            event["context"] = context
        self._write(event)

    def log_rate_limit(self, user_id: int, username: str, retry_after: float) -> None:
        event = self._base("rate_limit", user_id, username)
        event["retry_after"] = retry_after
        self._write(event)
