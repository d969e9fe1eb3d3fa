"""관찰성 및 구조화 로깅(Request correlation and JSON log records)."""
from __future__ import annotations

import logging
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

# 요청/명령 단위 추적 ID(Request or console-command correlation ID)
request_id_ctx: ContextVar[str] = ContextVar("request_id", default="system")


def get_request_id() -> str:
    """Return the current request ID, or "system" outside a request."""
    return request_id_ctx.get()


class ServiceJsonFormatter(jsonlogger.JsonFormatter):
    """서비스 JSON 포매터(One JSON object per record, tagged with service and request ID).

    Emits ``timestamp``, ``level``, ``logger``, ``message``, ``request_id``,
    ``service`` and ``environment``, plus any ``extra=`` fields of the call.
    """

    def __init__(self, service: str, environment: str) -> None:
        super().__init__(
            "%(levelname)s %(name)s %(message)s",
            rename_fields={"levelname": "level", "name": "logger"},
        )
        self._service = service
        self._environment = environment

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        # instant the record was created, in UTC
        log_record["timestamp"] = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()
        log_record["request_id"] = get_request_id()
        log_record["service"] = self._service
        log_record["environment"] = self._environment
